"""
CDN asset analyser
==================

Batch analysis of the S3 server access logs of a bucket serving assets through a CDN.

Each run parses the GET requests for assets out of the raw access logs, merges them with the requests kept by the
previous run, drops those older than the retention period, and reports:

- the number of successful requests per asset per calendar day, and in total,
- the number of failed requests (status code 400 and above) per asset and status code.

Assets in the catalog that were never requested are always reported with a count of zero.
"""

from ._access_log_file_parser import (
    filter_log_files_by_modification_date,
    parse_access_log_lines,
    parse_all_access_log_files,
)
from ._access_log_line_parser import parse_access_log_line
from ._analysis_interfaces import AnalysisInput, AnalysisOutput
from ._buffered_text_reader import BufferedTextReader
from ._config import AnalyserConfig, S3StoreConfig, load_analyser_config
from ._globals import RejectionReason
from ._lambda_handler import lambda_handler
from ._local_analysis_store import LocalFolderAnalysisReader, LocalFolderAnalysisWriter
from ._models import AccessRecord, FailureReport, LogFile, UsageReport
from ._pipeline import AssetAccessAnalysisPipeline
from ._record_aggregation import (
    aggregate_failed_requests,
    aggregate_successful_requests,
    calculate_usage_total,
    filter_records_by_retention_period,
    merge_access_records,
)
from ._s3_analysis_store import S3AnalysisReader, S3AnalysisWriter, create_s3_client

__all__ = [
    "parse_access_log_line",
    "parse_access_log_lines",
    "parse_all_access_log_files",
    "filter_log_files_by_modification_date",
    "RejectionReason",
    "AccessRecord",
    "FailureReport",
    "LogFile",
    "UsageReport",
    "merge_access_records",
    "filter_records_by_retention_period",
    "aggregate_successful_requests",
    "calculate_usage_total",
    "aggregate_failed_requests",
    "AnalysisInput",
    "AnalysisOutput",
    "BufferedTextReader",
    "S3AnalysisReader",
    "S3AnalysisWriter",
    "create_s3_client",
    "LocalFolderAnalysisReader",
    "LocalFolderAnalysisWriter",
    "AnalyserConfig",
    "S3StoreConfig",
    "load_analyser_config",
    "AssetAccessAnalysisPipeline",
    "lambda_handler",
]
