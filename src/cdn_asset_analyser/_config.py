"""Configuration of a single analysis run."""

import pathlib
import zoneinfo

import yaml
from pydantic import BaseModel, ConfigDict, Field, FilePath, field_validator, validate_call


class S3StoreConfig(BaseModel):
    """Location of the buckets holding the CDN assets, the raw access logs and the analysis output."""

    model_config = ConfigDict(extra="forbid")

    access_logs_bucket: str = Field(min_length=1)
    cdn_assets_bucket: str = Field(min_length=1)
    cdn_analysis_bucket: str = Field(min_length=1)
    access_logs_prefix: str = ""
    region_name: str = "eu-west-2"
    endpoint_url: str | None = None  # Only set when targeting a local S3 emulator


class AnalyserConfig(BaseModel):
    """
    All settings consumed by the analysis pipeline and its store adapters.

    Parameters
    ----------
    access_log_filter_in_path : str, default: ""
        Only requests for asset paths containing this string are parsed.
        The same string is stripped from the front of an asset path to obtain its catalog key.
    cdn_asset_filter_in_path : str, default: ""
        Only asset keys containing this string are part of the asset catalog.
    data_retention_period_in_days : int, default: 30
        Access records older than this many days are dropped from the store and from all reports.
    process_todays_logs_only : bool, default: False
        If True, only access log files last modified today (in `time_zone`) are parsed.
    time_zone : str, default: "Europe/London"
        The IANA time zone used to name daily usage reports and to define 'today'.
    maximum_number_of_workers : int, default: 1
        The maximum number of log files to fetch and parse concurrently.
    errors_folder_path : directory path, optional
        If given, malformed lines are additionally collected into text files inside this folder.
    s3 : S3StoreConfig, optional
        Required only when analysing logs held in S3.
    """

    model_config = ConfigDict(extra="forbid")

    access_log_filter_in_path: str = ""
    cdn_asset_filter_in_path: str = ""
    data_retention_period_in_days: int = Field(default=30, ge=1)
    process_todays_logs_only: bool = False
    time_zone: str = "Europe/London"
    maximum_number_of_workers: int = Field(default=1, ge=1)
    errors_folder_path: pathlib.Path | None = None
    s3: S3StoreConfig | None = None

    @field_validator("time_zone")
    @classmethod
    def _validate_time_zone(cls, value: str) -> str:
        try:
            zoneinfo.ZoneInfo(value)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError) as exception:
            raise ValueError(f"Unknown time zone '{value}'.") from exception
        return value

    @property
    def zone_info(self) -> zoneinfo.ZoneInfo:
        return zoneinfo.ZoneInfo(self.time_zone)


@validate_call
def load_analyser_config(config_file_path: FilePath | None = None, **overrides) -> AnalyserConfig:
    """
    Load the analyser configuration from a YAML file, with keyword overrides taking precedence.

    Missing or invalid settings raise a `pydantic.ValidationError`; there is no sensible way to continue a run
    without them.
    """
    settings = dict()
    if config_file_path is not None:
        with open(file=config_file_path, mode="r") as io:
            settings = yaml.safe_load(io) or dict()

    for key, value in overrides.items():
        if value is None:
            continue
        if key == "s3" and isinstance(value, dict):
            settings["s3"] = {**settings.get("s3", dict()), **value}
            continue
        settings[key] = value

    return AnalyserConfig.model_validate(settings)
