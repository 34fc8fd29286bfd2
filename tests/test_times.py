from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

import pytest

from conftest import ALERT, BASE, COLOGNE, EQUATOR, assert_close
from suncalc.times import Twilight, compute_times, find_events, resolve_target
from suncalc.types import (
    Body,
    EventStatus,
    GeoLocation,
    InvalidLocationError,
    InvalidParameterError,
)
from suncalc.window import SearchWindow

MINUTE = timedelta(minutes=1)


def _daily(tau: float) -> float:
    return math.sin(2.0 * math.pi * (tau - 6.3) / 24.0)


def _at(hours: float) -> datetime:
    return BASE + timedelta(hours=hours)


def test_daily_wave_yields_all_four_events(recording):
    height = recording(_daily)
    result = find_events(height, SearchWindow.one_day(BASE))
    assert result.status is EventStatus.ok
    assert_close(result.rise, _at(6.3), MINUTE)
    assert_close(result.set, _at(18.3), MINUTE)
    assert_close(result.noon, _at(12.3), MINUTE)
    assert_close(result.nadir, _at(0.3), MINUTE)
    assert not result.always_up
    assert not result.always_down


def test_reverse_search_finds_the_same_day(recording):
    height = recording(_daily)
    result = find_events(height, SearchWindow.create(_at(24.0), limit=timedelta(hours=-24)))
    assert result.status is EventStatus.ok
    assert_close(result.rise, _at(6.3), MINUTE)
    assert_close(result.set, _at(18.3), MINUTE)
    assert_close(result.noon, _at(12.3), MINUTE)
    assert_close(result.nadir, _at(0.3), MINUTE)


def test_always_above_threshold(recording):
    height = recording(lambda tau: 2.0 + _daily(tau))
    result = find_events(height, SearchWindow.one_day(BASE))
    assert result.status is EventStatus.circumpolar_up
    assert result.always_up and not result.always_down
    assert result.rise is None and result.set is None
    assert_close(result.noon, _at(12.3), MINUTE)


def test_always_below_threshold(recording):
    height = recording(lambda tau: _daily(tau) - 2.0)
    result = find_events(height, SearchWindow.one_day(BASE))
    assert result.status is EventStatus.circumpolar_down
    assert result.always_down and not result.always_up
    assert result.rise is None and result.set is None


def test_circumpolar_stops_unbounded_search(recording):
    height = recording(lambda tau: 2.0 + _daily(tau))
    result = find_events(height, SearchWindow.full_cycle(BASE))
    assert result.always_up
    assert max(height.calls) <= _at(24.5)


def test_short_window_reports_partial(recording):
    height = recording(_daily)
    result = find_events(height, SearchWindow.create(BASE, limit=timedelta(hours=10)))
    assert result.status is EventStatus.partial
    assert_close(result.rise, _at(6.3), MINUTE)
    assert result.set is None
    assert result.noon is None


def test_short_window_without_crossing_is_not_circumpolar(recording):
    height = recording(lambda tau: 2.0 + _daily(tau))
    result = find_events(height, SearchWindow.create(BASE, limit=timedelta(hours=4)))
    assert result.status is EventStatus.partial
    assert not result.always_up
    assert not result.always_down


def test_zero_limit_is_empty_without_sampling(recording):
    height = recording(_daily)
    result = find_events(height, SearchWindow.create(BASE, limit=timedelta(0)))
    assert result.status is EventStatus.empty
    assert height.calls == []
    assert result.rise is None and result.noon is None


def test_set_only(recording):
    height = recording(lambda tau: 5.3 - tau)
    result = find_events(height, SearchWindow.one_day(BASE))
    assert result.status is EventStatus.partial
    assert result.rise is None
    assert_close(result.set, _at(5.3), timedelta(seconds=1))


def test_unbounded_search_spans_several_days(recording):
    height = recording(lambda tau: math.cos(2.0 * math.pi * (tau + 50.5) / 240.0))
    result = find_events(height, SearchWindow.full_cycle(BASE))
    assert result.status is EventStatus.ok
    assert_close(result.set, _at(9.5), MINUTE)
    assert_close(result.nadir, _at(69.5), 5 * MINUTE)
    assert_close(result.rise, _at(129.5), MINUTE)
    assert_close(result.noon, _at(189.5), 5 * MINUTE)


def test_crossing_on_interval_boundary_is_reported_once(recording):
    height = recording(lambda tau: tau - 2.0)
    result = find_events(height, SearchWindow.one_day(BASE))
    assert result.rise == _at(2.0)
    assert result.set is None


def test_samples_are_hourly_and_monotonic(recording):
    height = recording(lambda tau: 1.0)
    find_events(height, SearchWindow.one_day(BASE))
    assert height.calls[0] == BASE
    steps = {b - a for a, b in zip(height.calls, height.calls[1:])}
    assert steps == {timedelta(hours=1)}
    assert height.calls[-1] == _at(24.0)


def test_reverse_samples_run_backwards(recording):
    height = recording(lambda tau: 1.0)
    find_events(height, SearchWindow.one_day(BASE, reverse=True))
    steps = {b - a for a, b in zip(height.calls, height.calls[1:])}
    assert steps == {timedelta(hours=-1)}


def test_invalid_horizon_days():
    with pytest.raises(InvalidParameterError):
        find_events(lambda instant: 1.0, SearchWindow.one_day(BASE), horizon_days=0)


COLOGNE_DAY = datetime(2017, 8, 10, tzinfo=UTC)


def test_cologne_visual_sun_times():
    result = compute_times(Body.sun, Twilight.VISUAL, COLOGNE, SearchWindow.one_day(COLOGNE_DAY))
    tolerance = timedelta(minutes=2)
    assert result.status is EventStatus.ok
    assert_close(result.rise, datetime(2017, 8, 10, 4, 11, 49, tzinfo=UTC), tolerance)
    assert_close(result.set, datetime(2017, 8, 10, 19, 2, 20, tzinfo=UTC), tolerance)
    assert_close(result.noon, datetime(2017, 8, 10, 11, 37, 22, tzinfo=UTC), tolerance)
    assert_close(result.nadir, datetime(2017, 8, 10, 23, 37, 45, tzinfo=UTC), tolerance)


def test_twilight_rises_are_ordered():
    window = SearchWindow.one_day(COLOGNE_DAY)
    order = [
        Twilight.ASTRONOMICAL,
        Twilight.NAUTICAL,
        Twilight.NIGHT_HOUR,
        Twilight.CIVIL,
        Twilight.BLUE_HOUR,
        Twilight.VISUAL,
        Twilight.GOLDEN_HOUR,
    ]
    rises = [compute_times(Body.sun, twilight, COLOGNE, window).rise for twilight in order]
    assert rises == sorted(rises)


def test_custom_angle_matches_named_twilight():
    window = SearchWindow.one_day(COLOGNE_DAY)
    named = compute_times(Body.sun, Twilight.BLUE_HOUR, COLOGNE, window)
    custom = compute_times(Body.sun, -4.0, COLOGNE, window)
    assert named == custom
    assert compute_times("sun", "blue_hour", COLOGNE, window) == named


def test_visual_lower_rises_after_visual():
    window = SearchWindow.one_day(COLOGNE_DAY)
    upper = compute_times(Body.sun, Twilight.VISUAL, COLOGNE, window)
    lower = compute_times(Body.sun, Twilight.VISUAL_LOWER, COLOGNE, window)
    assert upper.rise < lower.rise
    assert lower.set < upper.set


def test_alert_polar_day_and_night():
    summer = compute_times(
        Body.sun, Twilight.VISUAL, ALERT, SearchWindow.one_day(COLOGNE_DAY)
    )
    assert summer.status is EventStatus.circumpolar_up
    assert summer.always_up
    assert_close(summer.noon, datetime(2017, 8, 10, 16, 13, 14, tzinfo=UTC), timedelta(minutes=3))

    winter = compute_times(
        Body.sun,
        Twilight.VISUAL,
        ALERT,
        SearchWindow.one_day(datetime(2017, 2, 10, tzinfo=UTC)),
    )
    assert winter.status is EventStatus.circumpolar_down
    assert winter.always_down


def test_alert_unbounded_stops_on_polar_day():
    result = compute_times(Body.sun, Twilight.VISUAL, ALERT, SearchWindow.full_cycle(COLOGNE_DAY))
    assert result.always_up
    assert result.rise is None and result.set is None


def test_alert_near_equinox():
    start = datetime(2017, 9, 24, tzinfo=UTC)
    result = compute_times(Body.sun, Twilight.VISUAL, ALERT, SearchWindow.full_cycle(start))
    tolerance = timedelta(minutes=10)
    assert result.status is EventStatus.ok
    assert_close(result.rise, datetime(2017, 9, 24, 9, 54, 29, tzinfo=UTC), tolerance)
    assert_close(result.set, datetime(2017, 9, 24, 22, 2, 1, tzinfo=UTC), tolerance)


def test_equator_equinox_has_one_rise_and_set_per_day():
    start = datetime(2024, 3, 20, tzinfo=UTC)
    result = compute_times(Body.sun, Twilight.HORIZON, EQUATOR, SearchWindow.full_cycle(start))
    assert result.status is EventStatus.ok
    assert result.rise - start < timedelta(hours=24)
    assert result.set - start < timedelta(hours=24)


def test_high_arctic_summer_is_always_up():
    location = GeoLocation.create(80.0, 0.0)
    start = datetime(2024, 6, 21, tzinfo=UTC)
    result = compute_times(Body.sun, Twilight.VISUAL, location, SearchWindow.full_cycle(start))
    assert result.always_up
    assert result.status is EventStatus.circumpolar_up


def test_moon_rises_and_sets_within_a_lunar_day():
    start = datetime(2017, 8, 10, tzinfo=UTC)
    result = compute_times(
        Body.moon,
        Twilight.VISUAL,
        COLOGNE,
        SearchWindow.create(start, limit=timedelta(hours=26)),
    )
    assert result.rise is not None
    assert result.set is not None


def test_reverse_matches_forward_from_earlier_start():
    start = datetime(2017, 8, 11, tzinfo=UTC)
    backwards = compute_times(
        Body.sun, Twilight.VISUAL, COLOGNE, SearchWindow.create(start, limit=timedelta(hours=-24))
    )
    forwards = compute_times(
        Body.sun, Twilight.VISUAL, COLOGNE, SearchWindow.one_day(start - timedelta(hours=24))
    )
    assert_close(backwards.rise, forwards.rise, timedelta(seconds=1))
    assert_close(backwards.set, forwards.set, timedelta(seconds=1))


def test_repeated_calls_are_identical():
    window = SearchWindow.one_day(COLOGNE_DAY)
    first = compute_times(Body.sun, Twilight.CIVIL, COLOGNE, window)
    second = compute_times(Body.sun, Twilight.CIVIL, COLOGNE, window)
    assert first == second


def test_observer_elevation_advances_sunrise():
    window = SearchWindow.one_day(COLOGNE_DAY)
    ground = compute_times(Body.sun, Twilight.VISUAL, COLOGNE, window)
    mountain = GeoLocation.create(COLOGNE.latitude, COLOGNE.longitude, 2000.0)
    high = compute_times(Body.sun, Twilight.VISUAL, mountain, window)
    assert high.rise < ground.rise
    assert high.set > ground.set


def test_negative_elevation_counts_as_sea_level():
    window = SearchWindow.one_day(COLOGNE_DAY)
    below = GeoLocation.create(COLOGNE.latitude, COLOGNE.longitude, -100.0)
    assert below.elevation == 0.0
    assert compute_times(Body.sun, Twilight.VISUAL, below, window) == compute_times(
        Body.sun, Twilight.VISUAL, COLOGNE, window
    )


def test_results_keep_the_start_zone():
    from zoneinfo import ZoneInfo

    berlin = ZoneInfo("Europe/Berlin")
    start = datetime(2017, 8, 10, tzinfo=berlin)
    result = compute_times(Body.sun, Twilight.VISUAL, COLOGNE, SearchWindow.one_day(start))
    assert result.rise.tzinfo is berlin
    assert result.rise.utcoffset() == timedelta(hours=2)


@pytest.mark.parametrize("target", ["dusk", 91.0, float("nan")])
def test_bad_targets_are_rejected(target):
    with pytest.raises(InvalidParameterError):
        resolve_target(target)


def test_unknown_body_is_rejected():
    with pytest.raises(InvalidParameterError):
        compute_times("mars", Twilight.VISUAL, COLOGNE, SearchWindow.one_day(COLOGNE_DAY))


def test_missing_coordinates_are_rejected():
    with pytest.raises(InvalidLocationError):
        GeoLocation.create(None, 6.9)
    with pytest.raises(InvalidLocationError):
        GeoLocation.create(91.0, 0.0)
