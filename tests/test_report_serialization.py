import datetime
import json

import pytest
from pydantic import ValidationError

import cdn_asset_analyser
from cdn_asset_analyser._report_serialization import (
    dump_access_records,
    dump_failure_reports,
    dump_total_usage_report,
    dump_usage_reports,
    load_access_records,
    load_failure_reports,
)

UTC = datetime.timezone.utc


def test_dump_access_records():
    access_records = [
        cdn_asset_analyser.AccessRecord(
            request_method="GET",
            asset_path="cidev/app.js",
            timestamp=datetime.datetime(2024, 11, 29, 10, 15, 0, 123456, tzinfo=UTC),
            status_code=304,
        ),
        cdn_asset_analyser.AccessRecord(
            request_method="GET",
            asset_path="cidev/app.css",
            timestamp=datetime.datetime(2024, 11, 28, 7, 30, 46, tzinfo=UTC),
            status_code=200,
        ),
    ]

    documents = json.loads(dump_access_records(access_records))

    assert documents == [
        {"requestType": "GET", "asset": "cidev/app.css", "timestamp": "2024-11-28T07:30:46.000Z", "statusCode": 200},
        {"requestType": "GET", "asset": "cidev/app.js", "timestamp": "2024-11-29T10:15:00.123Z", "statusCode": 304},
    ]


def test_load_access_records_from_previous_run():
    content = json.dumps(
        [
            {
                "requestType": "GET",
                "asset": "cidev/app.js",
                "timestamp": "2024-11-28T07:30:46.000Z",
                "statusCode": 200,
                "successful": True,
            }
        ]
    )

    access_records = load_access_records(content)

    assert access_records == [
        cdn_asset_analyser.AccessRecord(
            request_method="GET",
            asset_path="cidev/app.js",
            timestamp=datetime.datetime(2024, 11, 28, 7, 30, 46, tzinfo=UTC),
            status_code=200,
        )
    ]
    assert access_records[0].is_successful


def test_load_access_records_rejects_malformed_documents():
    with pytest.raises(ValidationError):
        load_access_records(b'[{"requestType": "GET", "asset": "cidev/app.js"}]')


def test_dump_and_load_failure_reports():
    failure_reports = [
        cdn_asset_analyser.FailureReport(asset="cidev/app10.js", status_code=404, failure_count=1),
        cdn_asset_analyser.FailureReport(asset="cidev/app2.js", status_code=500, failure_count=4),
        cdn_asset_analyser.FailureReport(asset="cidev/app2.js", status_code=403, failure_count=2),
    ]

    content = dump_failure_reports(failure_reports)

    assert json.loads(content) == [
        {"asset": "cidev/app2.js", "failureCode": 403, "failureCount": 2},
        {"asset": "cidev/app2.js", "failureCode": 500, "failureCount": 4},
        {"asset": "cidev/app10.js", "failureCode": 404, "failureCount": 1},
    ]
    assert sorted(report.key for report in load_failure_reports(content)) == sorted(
        report.key for report in failure_reports
    )


def test_dump_usage_reports():
    usage_reports = [
        cdn_asset_analyser.UsageReport(id="2024-11-29", asset_access_count={"b.js": 2, "a.js": 0}),
        cdn_asset_analyser.UsageReport(id="2024-11-28", asset_access_count={"b.js": 0, "a.js": 1}),
    ]

    documents = json.loads(dump_usage_reports(usage_reports))

    assert [document["id"] for document in documents] == ["2024-11-28", "2024-11-29"]
    assert list(documents[0]["assetAccessCount"].items()) == [("a.js", 1), ("b.js", 0)]


def test_dump_total_usage_report_orders_by_count():
    usage_report_total = cdn_asset_analyser.UsageReport(
        id="total", asset_access_count={"images/logo.png": 0, "app10.js": 3, "app2.js": 3, "application.css": 1}
    )

    document = json.loads(dump_total_usage_report(usage_report_total))

    assert document["id"] == "total"
    assert list(document["assetAccessCount"].items()) == [
        ("app2.js", 3),
        ("app10.js", 3),
        ("application.css", 1),
        ("images/logo.png", 0),
    ]


def test_dumped_documents_are_indented_utf8():
    content = dump_total_usage_report(cdn_asset_analyser.UsageReport(id="total", asset_access_count={"é.css": 1}))

    assert isinstance(content, bytes)
    assert content.startswith(b'{\n  "id": "total"')
