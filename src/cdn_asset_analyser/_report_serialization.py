"""JSON documents exchanged with the analysis store."""

import json
from collections.abc import Iterable

import natsort
from pydantic import TypeAdapter

from ._models import AccessRecord, FailureReport, UsageReport

_ACCESS_RECORDS_ADAPTER = TypeAdapter(list[AccessRecord])
_FAILURE_REPORTS_ADAPTER = TypeAdapter(list[FailureReport])


def _dump_json(content: object) -> bytes:
    return json.dumps(content, indent=2).encode("utf-8")


def dump_access_records(access_records: Iterable[AccessRecord]) -> bytes:
    sorted_access_records = sorted(
        access_records,
        key=lambda record: (record.timestamp, record.asset_path, record.request_method, record.status_code),
    )
    return _dump_json([record.model_dump(mode="json", by_alias=True) for record in sorted_access_records])


def dump_failure_reports(failure_reports: Iterable[FailureReport]) -> bytes:
    sorted_failure_reports = natsort.natsorted(failure_reports, key=lambda report: report.key)
    return _dump_json([report.model_dump(mode="json", by_alias=True) for report in sorted_failure_reports])


def dump_usage_reports(usage_reports: Iterable[UsageReport]) -> bytes:
    """Daily reports in order of their id, each with its assets in natural order."""
    documents = []
    for usage_report in sorted(usage_reports, key=lambda report: report.id):
        asset_access_count = {
            asset_key: usage_report.asset_access_count[asset_key]
            for asset_key in natsort.natsorted(usage_report.asset_access_count.keys())
        }
        documents.append({"id": usage_report.id, "assetAccessCount": asset_access_count})

    return _dump_json(documents)


def dump_total_usage_report(usage_report: UsageReport) -> bytes:
    """A single report with its assets ordered from most to least requested."""
    naturally_sorted_asset_keys = natsort.natsorted(usage_report.asset_access_count.keys())
    asset_keys_by_count = sorted(
        naturally_sorted_asset_keys, key=lambda asset_key: usage_report.asset_access_count[asset_key], reverse=True
    )
    asset_access_count = {asset_key: usage_report.asset_access_count[asset_key] for asset_key in asset_keys_by_count}

    return _dump_json({"id": usage_report.id, "assetAccessCount": asset_access_count})


def load_access_records(content: bytes | str) -> list[AccessRecord]:
    return _ACCESS_RECORDS_ADAPTER.validate_json(content)


def load_failure_reports(content: bytes | str) -> list[FailureReport]:
    return _FAILURE_REPORTS_ADAPTER.validate_json(content)
