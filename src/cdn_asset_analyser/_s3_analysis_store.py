"""Read the asset catalog and access logs from S3, and write the analysis back to S3."""

import datetime
import logging
from collections.abc import Iterable

import boto3
import botocore.config
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from ._access_log_file_parser import filter_log_files_by_modification_date, parse_all_access_log_files
from ._analysis_interfaces import AnalysisInput, AnalysisOutput
from ._config import AnalyserConfig, S3StoreConfig
from ._error_collection import _collect_error
from ._globals import (
    _ASSET_USAGE_REPORT_TOTAL_KEY,
    _FAILED_ASSET_REQUESTS_KEY,
    _RAW_ASSET_ACCESS_DATA_KEY,
    _SUCCESSFUL_ASSET_REQUESTS_KEY,
)
from ._models import AccessRecord, FailureReport, LogFile, UsageReport
from ._report_serialization import (
    dump_access_records,
    dump_failure_reports,
    dump_total_usage_report,
    dump_usage_reports,
    load_access_records,
    load_failure_reports,
)

logger = logging.getLogger(__name__)

_MISSING_OBJECT_ERROR_CODES = ("NoSuchKey", "404")


def create_s3_client(s3_store_config: S3StoreConfig):
    """
    Create the S3 client used by both adapters.

    Credentials come from the default boto3 chain. When an `endpoint_url` is configured (a local S3 emulator),
    path-style addressing is used.
    """
    if s3_store_config.endpoint_url is None:
        return boto3.client("s3", region_name=s3_store_config.region_name)

    return boto3.client(
        "s3",
        region_name=s3_store_config.region_name,
        endpoint_url=s3_store_config.endpoint_url,
        config=botocore.config.Config(s3={"addressing_style": "path"}),
    )


def _list_objects(*, s3_client, bucket: str, prefix: str = "") -> list[dict]:
    paginator = s3_client.get_paginator("list_objects_v2")
    s3_objects = []
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        s3_objects.extend(page.get("Contents", []))
    return s3_objects


def _is_missing_object_error(exception: ClientError) -> bool:
    return exception.response.get("Error", {}).get("Code") in _MISSING_OBJECT_ERROR_CODES


class S3AnalysisReader(AnalysisInput):
    def __init__(self, *, s3_client, config: AnalyserConfig):
        if config.s3 is None:
            raise ValueError("The S3 analysis reader requires the `s3` section of the configuration.")

        self.s3_client = s3_client
        self.config = config
        self.s3_store_config = config.s3

    def list_asset_keys(self) -> list[str]:
        bucket = self.s3_store_config.cdn_assets_bucket
        try:
            s3_objects = _list_objects(s3_client=self.s3_client, bucket=bucket)
        except (BotoCoreError, ClientError) as exception:
            logger.error("Error listing objects in bucket %s: %s", bucket, exception)
            return []

        return [
            s3_object["Key"]
            for s3_object in s3_objects
            if self.config.cdn_asset_filter_in_path in s3_object["Key"]
        ]

    def list_and_parse_access_log_lines(self, now: datetime.datetime | None = None) -> set[AccessRecord]:
        bucket = self.s3_store_config.access_logs_bucket
        try:
            s3_objects = _list_objects(
                s3_client=self.s3_client, bucket=bucket, prefix=self.s3_store_config.access_logs_prefix
            )
        except (BotoCoreError, ClientError) as exception:
            logger.error("Error listing objects in bucket %s: %s", bucket, exception)
            return set()

        log_files = filter_log_files_by_modification_date(
            [LogFile(path=s3_object["Key"], last_modified=s3_object["LastModified"]) for s3_object in s3_objects],
            process_todays_logs_only=self.config.process_todays_logs_only,
            time_zone=self.config.zone_info,
            now=now,
        )
        logger.info("Parsing %d access log files from bucket %s.", len(log_files), bucket)

        return parse_all_access_log_files(
            log_files=log_files,
            read_log_file_lines=self._read_log_file_lines,
            asset_path_filter=self.config.access_log_filter_in_path,
            maximum_number_of_workers=self.config.maximum_number_of_workers,
            errors_folder_path=self.config.errors_folder_path,
        )

    def _read_log_file_lines(self, log_file: LogFile) -> list[str]:
        bucket = self.s3_store_config.access_logs_bucket
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=log_file.path)
            content = response["Body"].read().decode("utf-8", errors="replace")
        except (BotoCoreError, ClientError) as exception:
            logger.error("Error reading content from S3 object %s/%s: %s", bucket, log_file.path, exception)
            if self.config.errors_folder_path is not None:
                message = f"Error reading content from S3 object {bucket}/{log_file.path}: {exception}"
                _collect_error(message=message, error_type="fetch", errors_folder_path=self.config.errors_folder_path)
            return []

        return content.splitlines()

    def _read_analysis_document(self, *, key: str) -> bytes | None:
        """Read a previously saved document; None if there is none, raises on any other S3 error."""
        bucket = self.s3_store_config.cdn_analysis_bucket
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
        except ClientError as exception:
            if not _is_missing_object_error(exception):
                raise
            logger.info("No previous %s found in bucket %s; treating as a first run.", key, bucket)
            return None

        return response["Body"].read()

    def read_previously_stored_records(self) -> list[AccessRecord] | None:
        bucket = self.s3_store_config.cdn_analysis_bucket
        try:
            content = self._read_analysis_document(key=_RAW_ASSET_ACCESS_DATA_KEY)
            if content is None:
                return []

            return load_access_records(content)
        except (BotoCoreError, ClientError, ValidationError) as exception:
            logger.error("The stored %s/%s could not be read: %s", bucket, _RAW_ASSET_ACCESS_DATA_KEY, exception)
            return None

    def read_previous_failure_report(self) -> list[FailureReport]:
        bucket = self.s3_store_config.cdn_analysis_bucket
        try:
            content = self._read_analysis_document(key=_FAILED_ASSET_REQUESTS_KEY)
            if content is None:
                return []

            return load_failure_reports(content)
        except (BotoCoreError, ClientError, ValidationError) as exception:
            logger.error("The stored %s/%s could not be read: %s", bucket, _FAILED_ASSET_REQUESTS_KEY, exception)
            return []


class S3AnalysisWriter(AnalysisOutput):
    def __init__(self, *, s3_client, bucket: str):
        self.s3_client = s3_client
        self.bucket = bucket

    def _put_document(self, *, key: str, serialize) -> bool:
        try:
            body = serialize()
            self.s3_client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType="application/json")
        except (BotoCoreError, ClientError, TypeError, ValueError) as exception:
            logger.error("Failed to save %s to S3 bucket %s: %s", key, self.bucket, exception)
            return False

        logger.info("Saved %s to S3 bucket %s.", key, self.bucket)
        return True

    def save_raw_records(self, access_records: Iterable[AccessRecord]) -> bool:
        return self._put_document(key=_RAW_ASSET_ACCESS_DATA_KEY, serialize=lambda: dump_access_records(access_records))

    def save_failure_report(self, failure_reports: Iterable[FailureReport]) -> bool:
        return self._put_document(
            key=_FAILED_ASSET_REQUESTS_KEY, serialize=lambda: dump_failure_reports(failure_reports)
        )

    def save_usage_reports(self, usage_reports: Iterable[UsageReport]) -> bool:
        return self._put_document(
            key=_SUCCESSFUL_ASSET_REQUESTS_KEY, serialize=lambda: dump_usage_reports(usage_reports)
        )

    def save_total_usage_report(self, usage_report: UsageReport) -> bool:
        return self._put_document(
            key=_ASSET_USAGE_REPORT_TOTAL_KEY, serialize=lambda: dump_total_usage_report(usage_report)
        )
