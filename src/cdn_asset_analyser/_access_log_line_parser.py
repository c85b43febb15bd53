"""
Primary function for parsing a single line of a raw S3 server access log.

The strategy is to...

1) Skip everything that is not a GET request for an object.
2) Split the line on quotes; the first quoted block is the HTTP request line ("GET /path HTTP/1.1").
3) Take the timestamp from between the first pair of square brackets preceding the request line.
4) Take the three characters following the end of the request line as the HTTP status code.
5) Drop the line if the requested asset is outside the path filter.

No step ever raises; a line that cannot be parsed returns the `RejectionReason` explaining why.
"""

import datetime

from ._globals import (
    _ACCESS_LOG_TIMESTAMP_FORMAT,
    _END_OF_REQUEST_MARKER,
    _GET_OBJECT_OPERATION_MARKER,
    RejectionReason,
)
from ._models import AccessRecord


def parse_access_log_line(*, raw_access_log_line: str, asset_path_filter: str = "") -> AccessRecord | RejectionReason:
    """
    Parse one raw access log line into an access record.

    Parameters
    ----------
    raw_access_log_line : str
        A single line of an S3 server access log.
    asset_path_filter : str, default: ""
        If non-empty, only requests whose asset path contains this string are accepted.

    Returns
    -------
    AccessRecord or RejectionReason
        The parsed record, or the reason the line was rejected.
    """
    if _GET_OBJECT_OPERATION_MARKER not in raw_access_log_line:
        return RejectionReason.NOT_GET_OBJECT

    split_by_quote = raw_access_log_line.split('"')
    if len(split_by_quote) < 2:
        return RejectionReason.NO_QUOTED_REQUEST

    request_detail = split_by_quote[1].split(" ")
    if len(request_detail) != 3:
        return RejectionReason.WRONG_REQUEST_TOKEN_COUNT
    request_method, request_uri, _ = request_detail

    timestamp = _parse_timestamp(pre_request_section=split_by_quote[0])
    if isinstance(timestamp, RejectionReason):
        return timestamp

    status_code = _parse_status_code(raw_access_log_line=raw_access_log_line)
    if status_code is None:
        return RejectionReason.INVALID_STATUS_CODE

    asset_path = request_uri.removeprefix("/")
    if asset_path_filter and asset_path_filter not in asset_path:
        return RejectionReason.ASSET_NOT_IN_SCOPE

    return AccessRecord(
        request_method=request_method,
        asset_path=asset_path,
        timestamp=timestamp,
        status_code=status_code,
    )


def _parse_timestamp(*, pre_request_section: str) -> datetime.datetime | RejectionReason:
    start_index = pre_request_section.find("[")
    end_index = pre_request_section.find("]")

    if start_index == -1:
        return RejectionReason.MISSING_TIMESTAMP_START
    if end_index == -1:
        return RejectionReason.MISSING_TIMESTAMP_END
    if end_index < start_index:
        return RejectionReason.TIMESTAMP_END_BEFORE_START

    try:
        timestamp = datetime.datetime.strptime(
            pre_request_section[start_index + 1 : end_index], _ACCESS_LOG_TIMESTAMP_FORMAT
        )
    except ValueError:
        return RejectionReason.UNPARSABLE_TIMESTAMP

    return timestamp.astimezone(tz=datetime.timezone.utc)


def _parse_status_code(*, raw_access_log_line: str) -> int | None:
    end_of_request_index = raw_access_log_line.find(_END_OF_REQUEST_MARKER)
    if end_of_request_index == -1:
        return None

    # Skip the single space separating the request line from the status code
    start_of_status_code = end_of_request_index + len(_END_OF_REQUEST_MARKER) + 1
    status_code = raw_access_log_line[start_of_status_code : start_of_status_code + 3]
    if len(status_code) != 3 or not status_code.isdecimal():
        return None

    return int(status_code)
