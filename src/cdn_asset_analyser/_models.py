"""Data shapes flowing through the analysis pipeline and persisted in the analysis store."""

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ._globals import _FAILURE_STATUS_CODE_THRESHOLD


def _ensure_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(tz=datetime.timezone.utc)


def _format_utc_timestamp(value: datetime.datetime) -> str:
    value = _ensure_utc(value)
    return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{value.microsecond // 1000:03d}Z"


class AccessRecord(BaseModel):
    """
    A single request for an asset, as parsed from one line of an access log.

    Records are immutable and compared by value; two records with identical fields are the same record.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    request_method: str = Field(alias="requestType")
    asset_path: str = Field(alias="asset")
    timestamp: datetime.datetime
    status_code: int = Field(alias="statusCode")

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime.datetime) -> datetime.datetime:
        return _ensure_utc(value)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime.datetime) -> str:
        return _format_utc_timestamp(value)

    @property
    def is_successful(self) -> bool:
        return self.status_code < _FAILURE_STATUS_CODE_THRESHOLD


class UsageReport(BaseModel):
    """Count of successful requests per catalog asset, either for one calendar day or in total."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    asset_access_count: dict[str, int] = Field(alias="assetAccessCount")


class FailureReport(BaseModel):
    """Count of failed requests for one asset with one status code."""

    model_config = ConfigDict(populate_by_name=True)

    asset: str
    status_code: int = Field(alias="failureCode")
    failure_count: int = Field(alias="failureCount", ge=0)

    @property
    def key(self) -> tuple[str, int]:
        return self.asset, self.status_code


class LogFile(BaseModel):
    """One access log file retrieved from a store."""

    path: str
    last_modified: datetime.datetime
    lines: list[str] = Field(default_factory=list)

    @field_validator("last_modified")
    @classmethod
    def _normalize_last_modified(cls, value: datetime.datetime) -> datetime.datetime:
        return _ensure_utc(value)
