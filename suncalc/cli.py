"""Command line front end.

Examples::

    suncalc times --lat 50.94 --lon 6.96 --date 2017-08-10 --twilight civil
    suncalc phase --date 2017-09-01 --phase full_moon
    suncalc table --lat 78.22 --lon 15.65 --date 2025-06-01 --days 30
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from .batch import compute_table
from .config import load_settings
from .oracle import evaluate, illumination
from .phase import compute_phase
from .times import compute_times
from .types import (
    Body,
    EventResult,
    GeoLocation,
    InvalidParameterError,
    Unit,
    parse_zone,
    truncate,
)
from .window import SearchWindow


def _iso(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()


def event_to_dict(result: EventResult) -> Dict[str, Any]:
    return {
        "status": result.status.value,
        "rise": _iso(result.rise),
        "set": _iso(result.set),
        "noon": _iso(result.noon),
        "nadir": _iso(result.nadir),
        "always_up": result.always_up,
        "always_down": result.always_down,
    }


def _start(ns: argparse.Namespace) -> datetime:
    zone = parse_zone(ns.tz)
    if ns.at:
        try:
            instant = datetime.fromisoformat(ns.at)
        except ValueError as exc:
            raise InvalidParameterError(f"Invalid --at value: {ns.at}") from exc
        return instant if instant.tzinfo is not None else instant.replace(tzinfo=zone)
    if ns.date:
        try:
            day = date.fromisoformat(ns.date)
        except ValueError as exc:
            raise InvalidParameterError(f"Invalid --date value: {ns.date}") from exc
    else:
        day = datetime.now(zone).date()
    return datetime.combine(day, time.min, tzinfo=zone)


def _window(ns: argparse.Namespace) -> SearchWindow:
    limit = None if ns.limit_hours is None else timedelta(hours=ns.limit_hours)
    return SearchWindow.create(_start(ns), limit=limit, reverse=ns.reverse)


def _location(ns: argparse.Namespace) -> GeoLocation:
    return GeoLocation.create(ns.lat, ns.lon, ns.elev)


def _add_time_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--date", type=str, default=None, help="YYYY-MM-DD, local midnight")
    parser.add_argument("--at", type=str, default=None, help="ISO-8601 start instant")
    parser.add_argument("--tz", type=str, default=None, help="IANA zone or UTC offset in hours")
    parser.add_argument("--limit-hours", type=float, default=None,
                        help="bounded search window; negative searches backwards")
    parser.add_argument("--reverse", action="store_true", help="search backwards in time")


def _add_location_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--elev", type=float, default=0.0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="suncalc", description="Sun and Moon events")
    sub = parser.add_subparsers(dest="command", required=True)

    times = sub.add_parser("times", help="rise, set, noon and nadir")
    _add_location_args(times)
    _add_time_args(times)
    times.add_argument("--body", choices=[b.value for b in Body], default="sun")
    times.add_argument("--twilight", type=str, default="visual",
                       help="twilight name or altitude in degrees")
    times.add_argument("--truncate", choices=[u.value for u in Unit], default="seconds")

    phase = sub.add_parser("phase", help="next moon phase")
    _add_time_args(phase)
    phase.add_argument("--phase", type=str, default="new_moon",
                       help="phase name or elongation in degrees")
    phase.add_argument("--truncate", choices=[u.value for u in Unit], default="minutes")

    position = sub.add_parser("position", help="altitude and azimuth at an instant")
    _add_location_args(position)
    _add_time_args(position)
    position.add_argument("--body", choices=[b.value for b in Body], default="sun")

    table = sub.add_parser("table", help="one-day windows for consecutive days")
    _add_location_args(table)
    _add_time_args(table)
    table.add_argument("--body", choices=[b.value for b in Body], default="sun")
    table.add_argument("--twilight", type=str, default="visual")
    table.add_argument("--days", type=int, default=7)
    table.add_argument("--jobs", type=int, default=None)
    return parser


def _target(value: str) -> Any:
    try:
        return float(value)
    except ValueError:
        return value


def run(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    ns = build_parser().parse_args(argv)
    settings = load_settings()

    if ns.command == "times":
        result = compute_times(
            ns.body,
            _target(ns.twilight),
            _location(ns),
            _window(ns),
            atmosphere=settings.atmosphere,
            horizon_days=settings.unbounded_horizon_days,
        )
        return event_to_dict(result.truncated(Unit(ns.truncate)))

    if ns.command == "phase":
        result = compute_phase(
            _target(ns.phase), _window(ns), horizon_days=settings.unbounded_horizon_days
        )
        return {
            "phase": result.phase,
            "time": _iso(truncate(result.time, Unit(ns.truncate))),
            "distance_km": result.distance,
            "super_moon": result.is_super_moon,
            "micro_moon": result.is_micro_moon,
        }

    if ns.command == "position":
        start = _start(ns)
        sample = evaluate(start, _location(ns), Body(ns.body), settings.atmosphere)
        payload = {
            "time": start.isoformat(),
            "altitude": sample.altitude,
            "true_altitude": sample.true_altitude,
            "azimuth": sample.azimuth,
            "distance_km": sample.distance,
            "parallactic_angle": sample.parallactic_angle,
        }
        if ns.body == Body.moon.value:
            lit = illumination(start)
            payload["fraction"] = lit.fraction
            payload["phase"] = lit.phase
            payload["cycle"] = lit.cycle
            payload["bright_limb_angle"] = lit.angle
            payload["closest_phase"] = lit.closest_phase.name
        return payload

    start = _start(ns)
    rows = compute_table(
        ns.body,
        _target(ns.twilight),
        _location(ns),
        start.date(),
        ns.days,
        start.tzinfo,
        atmosphere=settings.atmosphere,
        n_jobs=ns.jobs if ns.jobs is not None else settings.batch_jobs,
        horizon_days=settings.unbounded_horizon_days,
    )
    return {"days": [dict(date=day.isoformat(), **event_to_dict(res)) for day, res in rows]}


def main(argv: Optional[List[str]] = None) -> int:
    try:
        payload = run(argv)
    except ValueError as exc:
        print(json.dumps({"ok": False, "error": str(exc)}), file=sys.stderr)
        return 2
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
