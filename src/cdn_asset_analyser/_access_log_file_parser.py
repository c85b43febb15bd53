"""Functions for turning the lines of whole access log files into sets of access records."""

import datetime
import logging
import pathlib
import uuid
import zoneinfo
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed

import tqdm
from pydantic import ConfigDict, Field, validate_call

from ._access_log_line_parser import parse_access_log_line
from ._error_collection import _collect_error
from ._globals import _SILENT_REJECTION_REASONS, RejectionReason
from ._models import AccessRecord, LogFile

logger = logging.getLogger(__name__)


@validate_call
def parse_access_log_lines(
    *,
    raw_access_log_lines: Iterable[str],
    asset_path_filter: str = "",
    errors_folder_path: pathlib.Path | None = None,
    task_id: str | None = None,
) -> set[AccessRecord]:
    """
    Parse a collection of raw access log lines, keeping only the lines that produce an access record.

    Rejected lines never interrupt parsing. Malformed lines are reported at error level and, if an
    `errors_folder_path` is given, collected into a text file there for later review.

    Parameters
    ----------
    raw_access_log_lines : iterable of strings
        The raw lines, usually the full content of one access log file.
    asset_path_filter : str, default: ""
        If non-empty, only requests whose asset path contains this string are kept.
    errors_folder_path : pathlib.Path, optional
        The folder to collect malformed lines into.
    task_id : str, optional
        An identifier tagging the error collection file; a random one is generated if not given.
    """
    task_id = task_id or str(uuid.uuid4())[:5]

    access_records = set()
    for raw_access_log_line in raw_access_log_lines:
        if not raw_access_log_line.strip():
            continue

        parsed_line = parse_access_log_line(
            raw_access_log_line=raw_access_log_line, asset_path_filter=asset_path_filter
        )
        if isinstance(parsed_line, AccessRecord):
            access_records.add(parsed_line)
            continue

        _report_rejected_line(
            raw_access_log_line=raw_access_log_line,
            rejection_reason=parsed_line,
            errors_folder_path=errors_folder_path,
            task_id=task_id,
        )

    return access_records


def _report_rejected_line(
    *,
    raw_access_log_line: str,
    rejection_reason: RejectionReason,
    errors_folder_path: pathlib.Path | None,
    task_id: str,
) -> None:
    if rejection_reason in _SILENT_REJECTION_REASONS:
        logger.debug("Skipping log line (%s): %s", rejection_reason.value, raw_access_log_line)
        return None

    logger.error("Invalid log entry, %s: %s", rejection_reason.value, raw_access_log_line)
    if errors_folder_path is not None:
        message = f"Rejected line ({rejection_reason.value}): '{raw_access_log_line}'"
        _collect_error(message=message, error_type="line", errors_folder_path=errors_folder_path, task_id=task_id)

    return None


@validate_call(config=ConfigDict(arbitrary_types_allowed=True))
def filter_log_files_by_modification_date(
    log_files: Iterable[LogFile],
    *,
    process_todays_logs_only: bool,
    time_zone: zoneinfo.ZoneInfo,
    now: datetime.datetime | None = None,
) -> list[LogFile]:
    """Keep every log file, or only those last modified today in the given time zone."""
    log_files = list(log_files)
    if not process_todays_logs_only:
        return log_files

    now = now or datetime.datetime.now(tz=datetime.timezone.utc)
    today = now.astimezone(tz=time_zone).date()

    todays_log_files = []
    for log_file in log_files:
        if log_file.last_modified.astimezone(tz=time_zone).date() == today:
            todays_log_files.append(log_file)
        else:
            logger.debug("The log file '%s' was not modified today and will not be parsed.", log_file.path)

    return todays_log_files


@validate_call
def parse_all_access_log_files(
    *,
    log_files: Iterable[LogFile],
    read_log_file_lines: Callable[[LogFile], list[str]],
    asset_path_filter: str = "",
    maximum_number_of_workers: int = Field(ge=1, default=1),
    errors_folder_path: pathlib.Path | None = None,
) -> set[AccessRecord]:
    """
    Read and parse many access log files, merging the records of all of them into a single set.

    Each file is read and parsed independently, so files may be distributed across worker threads; the set
    union that combines them does not depend on the order in which the workers finish.

    Parameters
    ----------
    log_files : iterable of LogFile
        The files to parse. Their `lines` are not used; content is retrieved through `read_log_file_lines`.
    read_log_file_lines : callable
        Retrieves the raw lines of one log file. Expected to handle and report its own store errors by
        returning no lines.
    asset_path_filter : str, default: ""
        If non-empty, only requests whose asset path contains this string are kept.
    maximum_number_of_workers : int, default: 1
        The maximum number of files to read and parse concurrently.
    errors_folder_path : pathlib.Path, optional
        The folder to collect malformed lines into.
    """
    log_files = list(log_files)
    task_id = str(uuid.uuid4())[:5]

    def _read_and_parse(log_file: LogFile) -> set[AccessRecord]:
        return parse_access_log_lines(
            raw_access_log_lines=read_log_file_lines(log_file),
            asset_path_filter=asset_path_filter,
            errors_folder_path=errors_folder_path,
            task_id=task_id,
        )

    access_records = set()
    if maximum_number_of_workers == 1:
        for log_file in tqdm.tqdm(
            iterable=log_files,
            total=len(log_files),
            desc="Parsing access log files...",
            position=0,
            leave=False,
            smoothing=0,
        ):
            access_records |= _read_and_parse(log_file)

        return access_records

    with ThreadPoolExecutor(max_workers=maximum_number_of_workers) as executor:
        futures = [executor.submit(_read_and_parse, log_file) for log_file in log_files]

        progress_bar_iterable = tqdm.tqdm(
            iterable=as_completed(futures),
            total=len(futures),
            desc=f"Parsing access log files using {maximum_number_of_workers} workers...",
            position=0,
            leave=False,
            mininterval=3.0,
            smoothing=0,
        )
        for future in progress_bar_iterable:
            access_records |= future.result()

    return access_records
