"""Sequencing of a single analysis run."""

import datetime
import logging

from ._analysis_interfaces import AnalysisInput, AnalysisOutput
from ._config import AnalyserConfig
from ._record_aggregation import (
    aggregate_failed_requests,
    aggregate_successful_requests,
    calculate_usage_total,
    filter_records_by_retention_period,
    merge_access_records,
)

logger = logging.getLogger(__name__)


class AssetAccessAnalysisPipeline:
    """
    One batch analysis of CDN asset access logs.

    A run reads the asset catalog, the currently visible access logs and the records kept by the previous run;
    merges and deduplicates the records; drops those outside the retention period; and saves four artifacts:

    - the retained records themselves, replacing the previously stored ones,
    - the failure report, with the failures first seen in this run added onto the previous counts,
    - one usage report per calendar day,
    - the total usage report over all retained days.

    The failure report is only saved once the retained records have been saved, and is only added onto the
    previous counts while the previously stored records can be read.

    Parameters
    ----------
    config : AnalyserConfig
        The retention period, path filter and time zone of this run.
    analysis_input : AnalysisInput
        Where the catalog, the logs and the previous analysis are read from.
    analysis_output : AnalysisOutput
        Where the artifacts are saved to.
    """

    def __init__(self, *, config: AnalyserConfig, analysis_input: AnalysisInput, analysis_output: AnalysisOutput):
        self.config = config
        self.analysis_input = analysis_input
        self.analysis_output = analysis_output

    def run(self, now: datetime.datetime | None = None) -> bool:
        """
        Perform the analysis.

        Parameters
        ----------
        now : datetime.datetime, optional
            The moment the retention period is measured back from. Defaults to the current time.

        Returns
        -------
        bool
            True if the artifacts were handed to the output, False if there was nothing to analyse.
        """
        now = now or datetime.datetime.now(tz=datetime.timezone.utc)
        self._log_analysis_period(now=now)

        asset_catalog = self.analysis_input.list_asset_keys()
        logger.info("The number of assets found is: %d", len(asset_catalog))

        parsed_access_records = self.analysis_input.list_and_parse_access_log_lines(now=now)
        logger.info("The number of asset access records parsed is: %d", len(parsed_access_records))

        previously_stored_access_records = self.analysis_input.read_previously_stored_records()
        stored_records_are_readable = previously_stored_access_records is not None
        if not stored_records_are_readable:
            logger.error(
                "The previously stored asset access records could not be read; failures are recounted from the "
                "retained records instead of being added to the previous failure report."
            )
            previously_stored_access_records = []
        merged_access_records = merge_access_records(parsed_access_records, previously_stored_access_records)

        if not asset_catalog and not merged_access_records:
            logger.info("No asset requests or assets have been found; there is no data to analyse.")
            return False

        retained_access_records = filter_records_by_retention_period(
            merged_access_records, data_retention_period_in_days=self.config.data_retention_period_in_days, now=now
        )
        logger.info(
            "Of the %d merged asset access records, %d are within the retention period.",
            len(merged_access_records),
            len(retained_access_records),
        )

        usage_reports = aggregate_successful_requests(
            retained_access_records,
            asset_catalog,
            asset_path_filter=self.config.access_log_filter_in_path,
            time_zone=self.config.zone_info,
        )
        usage_report_total = calculate_usage_total(usage_reports, asset_catalog)
        logger.info(
            "Of the %d retained asset access records, %d are counted in usage reports.",
            len(retained_access_records),
            sum(usage_report_total.asset_access_count.values()),
        )

        # Failures of previously stored records are already part of the previous failure report
        already_counted_access_records = set(previously_stored_access_records)
        newly_seen_access_records = [
            access_record
            for access_record in retained_access_records
            if access_record not in already_counted_access_records
        ]
        # Without the stored records there is no telling which failures the previous report already counts
        previous_failure_reports = []
        if stored_records_are_readable:
            previous_failure_reports = self.analysis_input.read_previous_failure_report()
        failure_reports = aggregate_failed_requests(newly_seen_access_records, previous_failure_reports)
        logger.info(
            "Of the %d newly seen asset access records, %d are failed requests.",
            len(newly_seen_access_records),
            sum(not access_record.is_successful for access_record in newly_seen_access_records),
        )

        self._save_artifacts(
            retained_access_records=retained_access_records,
            failure_reports=failure_reports,
            usage_reports=usage_reports,
            usage_report_total=usage_report_total,
        )

        return True

    def _save_artifacts(self, *, retained_access_records, failure_reports, usage_reports, usage_report_total) -> None:
        results = {"raw records": self.analysis_output.save_raw_records(retained_access_records)}

        # The failure report must never run ahead of the stored records it was counted against
        if results["raw records"]:
            results["failure report"] = self.analysis_output.save_failure_report(failure_reports)
        else:
            logger.error("The failure report is not saved because the raw records could not be saved.")
            results["failure report"] = False

        results["usage reports"] = self.analysis_output.save_usage_reports(usage_reports)
        results["total usage report"] = self.analysis_output.save_total_usage_report(usage_report_total)

        failed_artifacts = [artifact for artifact, succeeded in results.items() if not succeeded]
        if failed_artifacts:
            logger.error("The following artifacts could not be saved: %s", ", ".join(failed_artifacts))

    def _log_analysis_period(self, *, now: datetime.datetime) -> None:
        zone_info = self.config.zone_info
        today = now.astimezone(tz=zone_info).date()
        start_date = (now - datetime.timedelta(days=self.config.data_retention_period_in_days)).astimezone(
            tz=zone_info
        ).date()
        logger.info(
            "Analysing CDN asset requests made between the dates %s <---> %s.",
            start_date.isoformat(),
            today.isoformat(),
        )
