from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from suncalc.types import EventResult, EventStatus, InvalidParameterError, Unit, parse_zone, truncate

LATE = datetime(2017, 8, 10, 23, 40, 31, 600_000, tzinfo=UTC)


@pytest.mark.parametrize(
    "unit, expected",
    [
        (Unit.seconds, datetime(2017, 8, 10, 23, 40, 32, tzinfo=UTC)),
        (Unit.minutes, datetime(2017, 8, 10, 23, 41, tzinfo=UTC)),
        (Unit.hours, datetime(2017, 8, 11, 0, 0, tzinfo=UTC)),
        (Unit.days, datetime(2017, 8, 10, 0, 0, tzinfo=UTC)),
    ],
)
def test_truncate_units(unit, expected):
    assert truncate(LATE, unit) == expected


def test_hours_round_down_before_half_past():
    instant = datetime(2017, 8, 10, 4, 29, 29, tzinfo=UTC)
    assert truncate(instant, Unit.hours) == datetime(2017, 8, 10, 4, 0, tzinfo=UTC)


def test_days_keep_the_local_date():
    zone = timezone(timedelta(hours=2))
    instant = datetime(2017, 8, 10, 23, 59, 59, 900_000, tzinfo=zone)
    assert truncate(instant, Unit.days) == datetime(2017, 8, 10, tzinfo=zone)


def test_truncate_none():
    assert truncate(None, Unit.days) is None


def test_truncated_result_applies_to_every_event():
    result = EventResult(
        rise=datetime(2017, 8, 10, 4, 11, 49, tzinfo=UTC),
        set=datetime(2017, 8, 10, 23, 45, tzinfo=UTC),
        status=EventStatus.ok,
    )
    truncated = result.truncated(Unit.days)
    assert truncated.rise == datetime(2017, 8, 10, tzinfo=UTC)
    assert truncated.set == datetime(2017, 8, 10, tzinfo=UTC)
    assert truncated.noon is None
    assert truncated.status is EventStatus.ok


def test_parse_zone():
    assert parse_zone(None) is UTC
    assert parse_zone("5.5").utcoffset(None) == timedelta(hours=5, minutes=30)
    assert parse_zone("Europe/Berlin").key == "Europe/Berlin"
    with pytest.raises(InvalidParameterError):
        parse_zone("30")
