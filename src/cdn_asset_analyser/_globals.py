import enum

_GET_OBJECT_OPERATION_MARKER = "REST.GET.OBJECT"
_END_OF_REQUEST_MARKER = 'HTTP/1.1"'
_ACCESS_LOG_TIMESTAMP_FORMAT = "%d/%b/%Y:%H:%M:%S %z"
_FAILURE_STATUS_CODE_THRESHOLD = 400

_RAW_ASSET_ACCESS_DATA_KEY = "raw-asset-access-data.json"
_FAILED_ASSET_REQUESTS_KEY = "failed-asset-requests.json"
_SUCCESSFUL_ASSET_REQUESTS_KEY = "successful-asset-requests.json"
_ASSET_USAGE_REPORT_TOTAL_KEY = "asset-usage-report-total.json"

_TOTAL_USAGE_REPORT_ID = "total"


class RejectionReason(str, enum.Enum):
    """Why a single access log line did not produce an access record."""

    NOT_GET_OBJECT = "not a GET-object log line"
    NO_QUOTED_REQUEST = "malformed line, no quoted request section"
    WRONG_REQUEST_TOKEN_COUNT = "request-detail section has wrong token count"
    MISSING_TIMESTAMP_START = "timestamp start marker '[' not present"
    MISSING_TIMESTAMP_END = "timestamp end marker ']' not present"
    TIMESTAMP_END_BEFORE_START = "timestamp end marker ']' precedes start marker '['"
    UNPARSABLE_TIMESTAMP = "unparsable timestamp"
    INVALID_STATUS_CODE = "status code missing or non-numeric"
    ASSET_NOT_IN_SCOPE = "asset not in scope"


# Rejections that are routine for a shared log bucket and only reported at debug level
_SILENT_REJECTION_REASONS = frozenset((RejectionReason.NOT_GET_OBJECT, RejectionReason.ASSET_NOT_IN_SCOPE))
