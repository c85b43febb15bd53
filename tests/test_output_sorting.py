import calendar
import datetime
import json
import random

import pytest

import cdn_asset_analyser
from cdn_asset_analyser._report_serialization import dump_access_records

SEED = 0
random.seed(SEED)


def _generate_random_datetime() -> datetime.datetime:
    """Generate a random datetime for testing."""
    year = random.randint(2000, 2020)
    month = random.randint(1, 12)

    max_days = calendar.monthrange(year=year, month=month)[1]
    day = random.randint(1, max_days)
    hour = random.randint(0, 23)
    minute = random.randint(0, 59)
    second = random.randint(0, 59)

    result = datetime.datetime(
        year=year, month=month, day=day, hour=hour, minute=minute, second=second, tzinfo=datetime.timezone.utc
    )
    return result


def _generate_random_datetimes(number_of_elements: int) -> list[datetime.datetime]:
    """Generate random datetimes for testing."""
    random_datetimes = [_generate_random_datetime() for _ in range(number_of_elements)]
    return random_datetimes


@pytest.fixture(scope="session")
def unordered_access_records() -> list[cdn_asset_analyser.AccessRecord]:
    """Generate access records in the arbitrary order in which parallel parsing may produce them."""
    random_datetimes = _generate_random_datetimes(number_of_elements=100)

    access_records = [
        cdn_asset_analyser.AccessRecord(
            request_method="GET",
            asset_path=random.choice(["cidev/app.js", "cidev/app.css"]),
            timestamp=random_datetime,
            status_code=random.choice([200, 304, 404]),
        )
        for random_datetime in random_datetimes
    ]
    random.shuffle(access_records)
    return access_records


def test_output_file_reordering(unordered_access_records: list[cdn_asset_analyser.AccessRecord]):
    """
    Performing parallelized parsing over a set of records can result in a break to chronological ordering.

    This is a test that the stored raw records are always written in chronological order.
    """
    documents = json.loads(dump_access_records(set(unordered_access_records)))

    timestamps = [document["timestamp"] for document in documents]
    assert len(timestamps) == len(set(unordered_access_records))
    assert timestamps == sorted(timestamps)


def test_retention_filter_reordering(unordered_access_records: list[cdn_asset_analyser.AccessRecord]):
    retained_access_records = cdn_asset_analyser.filter_records_by_retention_period(
        unordered_access_records,
        data_retention_period_in_days=365 * 10,
        now=datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc),
    )

    timestamps = [access_record.timestamp for access_record in retained_access_records]
    assert timestamps == sorted(timestamps)
    assert all(timestamp.year >= 2011 for timestamp in timestamps)
