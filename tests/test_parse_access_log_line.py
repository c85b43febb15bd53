import datetime

import pytest

import cdn_asset_analyser
from cdn_asset_analyser import RejectionReason

EXAMPLE_LINE = (
    "57f2f030b6e5545bca67c0389164fd7e495aef43831451cc8275ca1bcc012683 chs-cdn.development.ch.gov.uk "
    "[28/Nov/2024:07:30:46 +0000] - svc:cloudfront.amazonaws.com 4A0VA8BRDAQXTMR5 REST.GET.OBJECT "
    'cidev/javascripts/app/generate-document.js "GET /cidev/javascripts/app/generate-document.js HTTP/1.1" 200 - '
    '6138 6138 33 32 "-" "-" - Fy2SBAMztbDT8DtgDL/Q9DTk7l46E21JhAJU8H0PhGfRQuO+iBSKb0MV9q7y5vV//pZle0NJEfM= SigV4 '
    "ECDHE-RSA-AES128-GCM-SHA256 AuthHeader chs-cdn.development.ch.gov.uk.s3.eu-west-2.amazonaws.com TLSv1.2 - -"
)


def test_parse_access_log_line_example() -> None:
    access_record = cdn_asset_analyser.parse_access_log_line(
        raw_access_log_line=EXAMPLE_LINE, asset_path_filter="cidev/"
    )

    assert isinstance(access_record, cdn_asset_analyser.AccessRecord)
    assert access_record.request_method == "GET"
    assert access_record.asset_path == "cidev/javascripts/app/generate-document.js"
    assert access_record.status_code == 200
    assert access_record.timestamp == datetime.datetime(2024, 11, 28, 7, 30, 46, tzinfo=datetime.timezone.utc)


def test_parse_access_log_line_without_filter() -> None:
    access_record = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=EXAMPLE_LINE)

    assert isinstance(access_record, cdn_asset_analyser.AccessRecord)
    assert access_record.asset_path == "cidev/javascripts/app/generate-document.js"


def test_parse_access_log_line_converts_time_shift_to_utc() -> None:
    shifted_line = EXAMPLE_LINE.replace("[28/Nov/2024:07:30:46 +0000]", "[28/Nov/2024:08:30:46 +0100]")

    access_record = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=shifted_line)

    assert access_record.timestamp == datetime.datetime(2024, 11, 28, 7, 30, 46, tzinfo=datetime.timezone.utc)
    assert access_record.timestamp.utcoffset() == datetime.timedelta(0)


def test_parse_access_log_line_single_digit_day() -> None:
    line = '1.2.3.4 - - [1/Jun/2024:12:00:00 +0000] "REST.GET.OBJECT environment/asset1.js HTTP/1.1" 200 -'

    access_record = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=line, asset_path_filter="environment")

    assert isinstance(access_record, cdn_asset_analyser.AccessRecord)
    assert access_record.request_method == "REST.GET.OBJECT"
    assert access_record.asset_path == "environment/asset1.js"
    assert access_record.timestamp == datetime.datetime(2024, 6, 1, 12, tzinfo=datetime.timezone.utc)


@pytest.mark.parametrize(
    "raw_access_log_line",
    [
        "no markers here",
        "",
        EXAMPLE_LINE.replace("REST.GET.OBJECT", "REST.HEAD.OBJECT").replace('"GET ', '"HEAD '),
        EXAMPLE_LINE.replace("REST.GET.OBJECT", "REST.PUT.OBJECT"),
    ],
)
def test_parse_access_log_line_not_get_object(raw_access_log_line: str) -> None:
    result = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=raw_access_log_line)

    assert result is RejectionReason.NOT_GET_OBJECT


def test_parse_access_log_line_no_quoted_request() -> None:
    line = "owner bucket [28/Nov/2024:07:30:46 +0000] - requester id REST.GET.OBJECT cidev/app.js 200"

    result = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=line)

    assert result is RejectionReason.NO_QUOTED_REQUEST


def test_parse_access_log_line_wrong_request_token_count() -> None:
    line = EXAMPLE_LINE.replace('"GET /cidev', '"/cidev')

    result = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=line)

    assert result is RejectionReason.WRONG_REQUEST_TOKEN_COUNT


def test_parse_access_log_line_timestamp_markers_have_distinct_reasons() -> None:
    missing_start = EXAMPLE_LINE.replace("[28/Nov", "28/Nov")
    missing_end = EXAMPLE_LINE.replace("+0000]", "+0000")
    end_before_start = EXAMPLE_LINE.replace("chs-cdn.development.ch.gov.uk [", "chs-cdn.development]ch.gov.uk [", 1)

    results = [
        cdn_asset_analyser.parse_access_log_line(raw_access_log_line=line)
        for line in (missing_start, missing_end, end_before_start)
    ]

    assert results == [
        RejectionReason.MISSING_TIMESTAMP_START,
        RejectionReason.MISSING_TIMESTAMP_END,
        RejectionReason.TIMESTAMP_END_BEFORE_START,
    ]
    assert len(set(results)) == 3


@pytest.mark.parametrize("timestamp", ["bad-date", "yh/Feb/2025:09:20:04 +0000", "28/Nov/2024 07:30:46"])
def test_parse_access_log_line_unparsable_timestamp(timestamp: str) -> None:
    line = EXAMPLE_LINE.replace("28/Nov/2024:07:30:46 +0000", timestamp)

    result = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=line)

    assert result is RejectionReason.UNPARSABLE_TIMESTAMP


@pytest.mark.parametrize(
    "raw_access_log_line",
    [
        '1.2.3.4 - - [1/Jun/2024:12:00:00 +0000] "REST.GET.OBJECT environment/asset1.js HTTP/1.1" abc -',
        EXAMPLE_LINE.replace('HTTP/1.1" 200 -', 'HTTP/1.1" AccessDenied'),
        EXAMPLE_LINE.replace("HTTP/1.1", "HTTP/2.0"),
        '1.2.3.4 - - [1/Jun/2024:12:00:00 +0000] "GET /environment/asset1.js HTTP/1.1" 20',
    ],
)
def test_parse_access_log_line_invalid_status_code(raw_access_log_line: str) -> None:
    result = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=raw_access_log_line + " REST.GET.OBJECT")

    assert result is RejectionReason.INVALID_STATUS_CODE


def test_parse_access_log_line_asset_not_in_scope() -> None:
    line = '1.2.3.4 - - [1/Jun/2024:12:00:00 +0000] "REST.GET.OBJECT prod/asset1.js HTTP/1.1" 200 -'

    result = cdn_asset_analyser.parse_access_log_line(raw_access_log_line=line, asset_path_filter="environment")

    assert result is RejectionReason.ASSET_NOT_IN_SCOPE
