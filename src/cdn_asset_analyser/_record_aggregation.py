"""
Deduplication, retention filtering and aggregation of access records.

All functions here are pure: they never mutate their inputs and the result depends only on the set of
records given, not on the order in which they arrive.
"""

import datetime
import logging
import zoneinfo
from collections.abc import Iterable

import natsort
import pandas
from pydantic import ConfigDict, Field, validate_call

from ._globals import _FAILURE_STATUS_CODE_THRESHOLD, _TOTAL_USAGE_REPORT_ID
from ._models import AccessRecord, FailureReport, UsageReport

logger = logging.getLogger(__name__)

_RECORD_FRAME_COLUMNS = ["request_method", "asset_path", "timestamp", "status_code"]


@validate_call
def merge_access_records(
    parsed_access_records: Iterable[AccessRecord], previously_stored_access_records: Iterable[AccessRecord]
) -> set[AccessRecord]:
    """Union of both collections; a record present in both contributes exactly once."""
    return set(parsed_access_records) | set(previously_stored_access_records)


@validate_call
def filter_records_by_retention_period(
    access_records: Iterable[AccessRecord],
    *,
    data_retention_period_in_days: int = Field(ge=1),
    now: datetime.datetime | None = None,
) -> list[AccessRecord]:
    """
    Drop every record at or before the start of the retention period.

    Returns
    -------
    list of AccessRecord
        The retained records, sorted chronologically (ties broken by the remaining fields).
    """
    now = now or datetime.datetime.now(tz=datetime.timezone.utc)
    start_of_retention_period = now - datetime.timedelta(days=data_retention_period_in_days)
    logger.debug("Start of retention period: %s", start_of_retention_period.isoformat())

    retained_access_records = [
        access_record for access_record in access_records if access_record.timestamp > start_of_retention_period
    ]
    return sorted(retained_access_records, key=_access_record_sort_key)


def _access_record_sort_key(access_record: AccessRecord) -> tuple:
    return access_record.timestamp, access_record.asset_path, access_record.request_method, access_record.status_code


def _to_record_frame(access_records: Iterable[AccessRecord]) -> pandas.DataFrame:
    data_frame = pandas.DataFrame(
        data=[access_record.model_dump(by_alias=False) for access_record in access_records],
        columns=_RECORD_FRAME_COLUMNS,
    )
    data_frame["timestamp"] = pandas.to_datetime(data_frame["timestamp"], utc=True)
    data_frame["status_code"] = data_frame["status_code"].astype("int64")
    return data_frame


def strip_asset_path_filter(asset_path: str, asset_path_filter: str) -> str:
    """Turn an asset path from the access log into its key in the asset catalog."""
    if not asset_path_filter:
        return asset_path
    return asset_path.removeprefix(asset_path_filter).removeprefix("/")


@validate_call(config=ConfigDict(arbitrary_types_allowed=True))
def aggregate_successful_requests(
    access_records: Iterable[AccessRecord],
    asset_catalog: Iterable[str],
    *,
    asset_path_filter: str = "",
    time_zone: zoneinfo.ZoneInfo | None = None,
) -> list[UsageReport]:
    """
    Count the successful requests of each catalog asset per calendar day.

    Parameters
    ----------
    access_records : iterable of AccessRecord
        The records to count; failed requests are ignored.
    asset_catalog : iterable of strings
        Every asset key to report on. Each resulting report maps exactly these keys, including those with no
        requests. Requests for assets outside the catalog are dropped with a warning.
    asset_path_filter : str, default: ""
        Stripped from the front of each asset path to obtain its catalog key.
    time_zone : zoneinfo.ZoneInfo, optional
        Records are bucketed by their UTC day; each bucket is named by the date of its start in this time zone.
        Defaults to UTC.

    Returns
    -------
    list of UsageReport
        One report per day that saw at least one counted request, in chronological order.
    """
    asset_catalog = list(dict.fromkeys(asset_catalog))
    known_assets = set(asset_catalog)
    time_zone = time_zone or zoneinfo.ZoneInfo("UTC")

    record_frame = _to_record_frame(access_records)
    successful_frame = record_frame[record_frame["status_code"] < _FAILURE_STATUS_CODE_THRESHOLD].copy()
    successful_frame["asset_key"] = [
        strip_asset_path_filter(asset_path, asset_path_filter) for asset_path in successful_frame["asset_path"]
    ]

    is_known_asset = successful_frame["asset_key"].isin(known_assets)
    for unknown_asset_key in sorted(set(successful_frame.loc[~is_known_asset, "asset_key"])):
        logger.warning(
            "The asset '%s' was not found in the asset catalog; its requests are not counted.", unknown_asset_key
        )
    successful_frame = successful_frame[is_known_asset].copy()
    if successful_frame.empty:
        return []

    successful_frame["day"] = successful_frame["timestamp"].dt.floor("D")
    counts_by_day_and_asset = successful_frame.groupby(["day", "asset_key"]).size()

    usage_reports = []
    for day, counts_by_asset in counts_by_day_and_asset.groupby(level="day", sort=True):
        asset_access_count = {asset_key: 0 for asset_key in asset_catalog}
        for (_, asset_key), count in counts_by_asset.items():
            asset_access_count[asset_key] = int(count)

        report_id = day.tz_convert(time_zone).date().isoformat()
        usage_reports.append(UsageReport(id=report_id, asset_access_count=asset_access_count))

    return usage_reports


@validate_call
def calculate_usage_total(usage_reports: Iterable[UsageReport], asset_catalog: Iterable[str]) -> UsageReport:
    """Sum the counts of all given usage reports into one 'total' report over the whole asset catalog."""
    asset_access_count = {asset_key: 0 for asset_key in asset_catalog}
    for usage_report in usage_reports:
        for asset_key, count in usage_report.asset_access_count.items():
            if asset_key in asset_access_count:
                asset_access_count[asset_key] += count

    return UsageReport(id=_TOTAL_USAGE_REPORT_ID, asset_access_count=asset_access_count)


@validate_call
def aggregate_failed_requests(
    access_records: Iterable[AccessRecord], previous_failure_reports: Iterable[FailureReport] | None = None
) -> list[FailureReport]:
    """
    Count the failed requests per asset and status code, adding on any previously stored counts.

    Pairs of asset and status code found only in the previous reports are carried through unchanged.

    Returns
    -------
    list of FailureReport
        One report per (asset, status code) pair, sorted by asset (naturally) then by status code.
    """
    previous_failure_reports = previous_failure_reports or []

    record_frame = _to_record_frame(access_records)
    failed_frame = record_frame[record_frame["status_code"] >= _FAILURE_STATUS_CODE_THRESHOLD]
    failure_counts = dict()
    if not failed_frame.empty:
        counts_by_asset_and_status_code = failed_frame.groupby(["asset_path", "status_code"]).size()
        failure_counts = {
            (asset, int(status_code)): int(count)
            for (asset, status_code), count in counts_by_asset_and_status_code.items()
        }
    for previous_failure_report in previous_failure_reports:
        key = previous_failure_report.key
        failure_counts[key] = failure_counts.get(key, 0) + previous_failure_report.failure_count

    sorted_keys = natsort.natsorted(failure_counts.keys())
    return [
        FailureReport(asset=asset, status_code=status_code, failure_count=failure_counts[(asset, status_code)])
        for asset, status_code in sorted_keys
    ]
