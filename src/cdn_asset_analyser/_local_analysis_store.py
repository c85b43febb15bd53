"""Run the same analysis over local folders, e.g. for access logs and assets downloaded from their buckets."""

import datetime
import logging
import pathlib
from collections.abc import Iterable

import natsort
from pydantic import ValidationError

from ._access_log_file_parser import filter_log_files_by_modification_date, parse_all_access_log_files
from ._analysis_interfaces import AnalysisInput, AnalysisOutput
from ._buffered_text_reader import BufferedTextReader
from ._config import AnalyserConfig
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


def _find_all_files(folder_path: pathlib.Path) -> list[pathlib.Path]:
    return natsort.natsorted(
        (
            file_path
            for file_path in folder_path.rglob(pattern="*")
            if file_path.is_file() and not file_path.name.startswith(".")
        ),
        key=lambda file_path: file_path.as_posix(),
    )


class LocalFolderAnalysisReader(AnalysisInput):
    """
    Read the asset catalog, the raw access logs and the previous analysis from local folders.

    Parameters
    ----------
    assets_folder_path : pathlib.Path
        Every file below this folder is an asset; its key is its path relative to this folder.
    raw_access_logs_folder_path : pathlib.Path
        Every file below this folder is treated as a raw access log file.
    analysis_folder_path : pathlib.Path
        The folder holding the documents written by the previous run, if any.
    config : AnalyserConfig
        The filters, worker count and time zone to apply.
    maximum_buffer_size_in_bytes : int, default: 100 MB
        The theoretical maximum amount of RAM (in bytes) to use on each buffer iteration when reading a log file.
    """

    def __init__(
        self,
        *,
        assets_folder_path: pathlib.Path,
        raw_access_logs_folder_path: pathlib.Path,
        analysis_folder_path: pathlib.Path,
        config: AnalyserConfig,
        maximum_buffer_size_in_bytes: int = 10**8,
    ):
        self.assets_folder_path = pathlib.Path(assets_folder_path)
        self.raw_access_logs_folder_path = pathlib.Path(raw_access_logs_folder_path)
        self.analysis_folder_path = pathlib.Path(analysis_folder_path)
        self.config = config
        self.maximum_buffer_size_in_bytes = maximum_buffer_size_in_bytes

    def list_asset_keys(self) -> list[str]:
        if not self.assets_folder_path.is_dir():
            logger.error("The assets folder %s does not exist.", self.assets_folder_path)
            return []

        try:
            asset_file_paths = _find_all_files(self.assets_folder_path)
        except OSError as exception:
            logger.error("Error listing the assets folder %s: %s", self.assets_folder_path, exception)
            return []

        asset_keys = [file_path.relative_to(self.assets_folder_path).as_posix() for file_path in asset_file_paths]
        return [asset_key for asset_key in asset_keys if self.config.cdn_asset_filter_in_path in asset_key]

    def list_and_parse_access_log_lines(self, now: datetime.datetime | None = None) -> set[AccessRecord]:
        if not self.raw_access_logs_folder_path.is_dir():
            logger.error("The raw access logs folder %s does not exist.", self.raw_access_logs_folder_path)
            return set()

        try:
            log_file_paths = _find_all_files(self.raw_access_logs_folder_path)
        except OSError as exception:
            logger.error("Error listing the raw access logs folder %s: %s", self.raw_access_logs_folder_path, exception)
            return set()

        log_files = []
        for file_path in log_file_paths:
            # Log files may be rotated away between listing and reading
            try:
                modification_time = file_path.stat().st_mtime
            except OSError as exception:
                self._report_unreadable_log_file(log_file_path=str(file_path), exception=exception)
                continue

            last_modified = datetime.datetime.fromtimestamp(modification_time, tz=datetime.timezone.utc)
            log_files.append(LogFile(path=str(file_path), last_modified=last_modified))

        log_files = filter_log_files_by_modification_date(
            log_files,
            process_todays_logs_only=self.config.process_todays_logs_only,
            time_zone=self.config.zone_info,
            now=now,
        )
        logger.info("Parsing %d access log files from %s.", len(log_files), self.raw_access_logs_folder_path)

        return parse_all_access_log_files(
            log_files=log_files,
            read_log_file_lines=self._read_log_file_lines,
            asset_path_filter=self.config.access_log_filter_in_path,
            maximum_number_of_workers=self.config.maximum_number_of_workers,
            errors_folder_path=self.config.errors_folder_path,
        )

    def _read_log_file_lines(self, log_file: LogFile) -> list[str]:
        try:
            buffered_text_reader = BufferedTextReader(
                file_path=log_file.path, maximum_buffer_size_in_bytes=self.maximum_buffer_size_in_bytes
            )
            return [raw_access_log_line for buffer in buffered_text_reader for raw_access_log_line in buffer]
        except (OSError, ValueError) as exception:
            self._report_unreadable_log_file(log_file_path=log_file.path, exception=exception)
            return []

    def _report_unreadable_log_file(self, *, log_file_path: str, exception: Exception) -> None:
        logger.error("Error reading content from log file %s: %s", log_file_path, exception)
        if self.config.errors_folder_path is not None:
            message = f"Error reading content from log file {log_file_path}: {exception}"
            _collect_error(message=message, error_type="fetch", errors_folder_path=self.config.errors_folder_path)

        return None

    def _read_analysis_document(self, *, file_name: str) -> bytes | None:
        """Read a previously saved document; None if there is none, raises OSError if it cannot be read."""
        file_path = self.analysis_folder_path / file_name
        if not file_path.exists():
            logger.info("No previous %s found in %s; treating as a first run.", file_name, self.analysis_folder_path)
            return None

        return file_path.read_bytes()

    def read_previously_stored_records(self) -> list[AccessRecord] | None:
        try:
            content = self._read_analysis_document(file_name=_RAW_ASSET_ACCESS_DATA_KEY)
            if content is None:
                return []

            return load_access_records(content)
        except (OSError, ValidationError) as exception:
            logger.error("The stored %s could not be read: %s", _RAW_ASSET_ACCESS_DATA_KEY, exception)
            return None

    def read_previous_failure_report(self) -> list[FailureReport]:
        try:
            content = self._read_analysis_document(file_name=_FAILED_ASSET_REQUESTS_KEY)
            if content is None:
                return []

            return load_failure_reports(content)
        except (OSError, ValidationError) as exception:
            logger.error("The stored %s could not be read: %s", _FAILED_ASSET_REQUESTS_KEY, exception)
            return []


class LocalFolderAnalysisWriter(AnalysisOutput):
    """Write the analysis documents into a local folder, overwriting those of the previous run."""

    def __init__(self, *, analysis_folder_path: pathlib.Path):
        self.analysis_folder_path = pathlib.Path(analysis_folder_path)

    def _write_document(self, *, file_name: str, serialize) -> bool:
        file_path = self.analysis_folder_path / file_name
        try:
            content = serialize()
            self.analysis_folder_path.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(content)
        except (OSError, TypeError, ValueError) as exception:
            logger.error("Failed to save %s: %s", file_path, exception)
            return False

        logger.info("Saved %s.", file_path)
        return True

    def save_raw_records(self, access_records: Iterable[AccessRecord]) -> bool:
        return self._write_document(
            file_name=_RAW_ASSET_ACCESS_DATA_KEY, serialize=lambda: dump_access_records(access_records)
        )

    def save_failure_report(self, failure_reports: Iterable[FailureReport]) -> bool:
        return self._write_document(
            file_name=_FAILED_ASSET_REQUESTS_KEY, serialize=lambda: dump_failure_reports(failure_reports)
        )

    def save_usage_reports(self, usage_reports: Iterable[UsageReport]) -> bool:
        return self._write_document(
            file_name=_SUCCESSFUL_ASSET_REQUESTS_KEY, serialize=lambda: dump_usage_reports(usage_reports)
        )

    def save_total_usage_report(self, usage_report: UsageReport) -> bool:
        return self._write_document(
            file_name=_ASSET_USAGE_REPORT_TOTAL_KEY, serialize=lambda: dump_total_usage_report(usage_report)
        )
