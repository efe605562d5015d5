from datetime import datetime, timedelta, timezone

import pytest

from school_records.common.datetime_utils import FixedClock, parse_iso_datetime


def test_bare_date_is_midnight():
    assert parse_iso_datetime("2026-02-03") == datetime(2026, 2, 3)


def test_naive_datetime_is_kept():
    assert parse_iso_datetime(" 2026-02-03T08:15:00 ") == datetime(2026, 2, 3, 8, 15)


@pytest.mark.parametrize(
    "value,instant",
    [
        ("2026-02-03T00:00:00Z", datetime(2026, 2, 3, tzinfo=timezone.utc)),
        ("2026-02-03T00:00:00.000Z", datetime(2026, 2, 3, tzinfo=timezone.utc)),
        ("2026-02-03T07:00:00+07:00", datetime(2026, 2, 3, tzinfo=timezone.utc)),
    ],
)
def test_aware_values_become_naive_local(value, instant):
    parsed = parse_iso_datetime(value)

    assert parsed.tzinfo is None
    assert parsed == instant.astimezone().replace(tzinfo=None)


def test_mixed_bounds_compare():
    since = parse_iso_datetime("2026-01-01")
    until = parse_iso_datetime("2026-02-03T00:00:00Z")

    assert since < until


def test_fixed_clock():
    clock = FixedClock(datetime(2026, 2, 2, 23, 59))

    assert clock.today() == (clock.now() + timedelta(seconds=30)).date()
