"""The boundary between the analysis pipeline and the stores it reads from and writes to."""

import abc
import datetime
from collections.abc import Iterable

from ._models import AccessRecord, FailureReport, UsageReport


class AnalysisInput(abc.ABC):
    """
    Everything the pipeline reads.

    Implementations never raise on store access failures; a source that cannot be read is logged and reported
    as empty, except for the previously stored records which are then reported as None.
    """

    @abc.abstractmethod
    def list_asset_keys(self) -> list[str]:
        """All keys of the asset catalog."""

    @abc.abstractmethod
    def list_and_parse_access_log_lines(self, now: datetime.datetime | None = None) -> set[AccessRecord]:
        """
        Every access record parsed from the currently visible access log files.

        `now` fixes the meaning of 'today' when only the logs modified today are to be parsed.
        """

    @abc.abstractmethod
    def read_previously_stored_records(self) -> list[AccessRecord] | None:
        """
        The access records persisted by the previous run, or nothing on a first run.

        None if the stored records exist but cannot be read, so that they are not mistaken for a first run.
        """

    @abc.abstractmethod
    def read_previous_failure_report(self) -> list[FailureReport]:
        """The failure report persisted by the previous run, or nothing on a first run."""


class AnalysisOutput(abc.ABC):
    """
    Everything the pipeline writes.

    Each method persists one artifact and returns whether it succeeded; a failure is logged and never prevents
    the remaining artifacts from being saved.
    """

    @abc.abstractmethod
    def save_raw_records(self, access_records: Iterable[AccessRecord]) -> bool:
        pass

    @abc.abstractmethod
    def save_failure_report(self, failure_reports: Iterable[FailureReport]) -> bool:
        pass

    @abc.abstractmethod
    def save_usage_reports(self, usage_reports: Iterable[UsageReport]) -> bool:
        pass

    @abc.abstractmethod
    def save_total_usage_report(self, usage_report: UsageReport) -> bool:
        pass
