"""Day-by-day event tables computed in parallel worker processes."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Tuple, Union

from joblib import Parallel, cpu_count, delayed

from .oracle import STANDARD_ATMOSPHERE, Atmosphere
from .times import DEFAULT_HORIZON_DAYS, TargetAngle, Twilight, compute_times
from .types import Body, EventResult, GeoLocation, InvalidParameterError
from .window import SearchWindow

__all__ = ["compute_table"]

LOGGER = logging.getLogger(__name__)

MAX_TABLE_DAYS = 3660


def _solve_day(
    day: date,
    zone: tzinfo,
    body: Body,
    target: Union[Twilight, TargetAngle, float],
    location: GeoLocation,
    atmosphere: Atmosphere,
    horizon_days: float,
) -> Tuple[date, EventResult]:
    start = datetime.combine(day, time.min, tzinfo=zone)
    result = compute_times(
        body,
        target,
        location,
        SearchWindow.one_day(start),
        atmosphere=atmosphere,
        horizon_days=horizon_days,
    )
    return day, result


def compute_table(
    body: Union[Body, str],
    target: Union[Twilight, TargetAngle, float, str],
    location: GeoLocation,
    first_day: date,
    days: int,
    zone: tzinfo,
    *,
    atmosphere: Atmosphere = STANDARD_ATMOSPHERE,
    n_jobs: int = -1,
    horizon_days: float = DEFAULT_HORIZON_DAYS,
) -> List[Tuple[date, EventResult]]:
    """Compute one-day event windows for *days* consecutive local days.

    Each day starts at local midnight in *zone*. Days are independent, so
    they are spread over ``n_jobs`` processes (``-1`` uses every CPU).
    """

    if days <= 0 or days > MAX_TABLE_DAYS:
        raise InvalidParameterError(f"days must be within 1..{MAX_TABLE_DAYS}: {days}")
    if n_jobs == 0:
        raise InvalidParameterError("n_jobs cannot be 0")

    try:
        body = Body(body)
    except ValueError as exc:
        raise InvalidParameterError(f"Unsupported body: {body}") from exc
    tasks = [first_day + timedelta(days=offset) for offset in range(days)]
    jobs = cpu_count() if n_jobs < 0 else n_jobs
    jobs = max(1, min(jobs, len(tasks)))

    if jobs == 1:
        rows = [
            _solve_day(day, zone, body, target, location, atmosphere, horizon_days)
            for day in tasks
        ]
    else:
        rows = Parallel(n_jobs=jobs)(
            delayed(_solve_day)(day, zone, body, target, location, atmosphere, horizon_days)
            for day in tasks
        )

    LOGGER.info(
        json.dumps(
            {
                "event": "table_computed",
                "body": body.value,
                "first_day": first_day.isoformat(),
                "days": days,
                "jobs": jobs,
            }
        )
    )
    return list(rows)
