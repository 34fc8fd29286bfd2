"""Search for the instant the Moon reaches a given phase angle."""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timedelta
from typing import Union

from .interpolation import QuadraticInterpolation, RisingCrossing
from .oracle import elongation, geocentric_distance
from .times import DEFAULT_HORIZON_DAYS
from .types import Body, InvalidParameterError, MoonPhase, PhaseResult
from .window import SearchWindow

__all__ = ["compute_phase", "phase_offset"]

LOGGER = logging.getLogger(__name__)

STEP = timedelta(days=1)
# Half-widths used to narrow the bracketed crossing.
_REFINE_SPANS = (timedelta(hours=12), timedelta(hours=1), timedelta(minutes=1))


def _resolve_phase(target: Union[MoonPhase, float, str]) -> float:
    if isinstance(target, MoonPhase):
        return target.angle
    if isinstance(target, str):
        try:
            return MoonPhase[target.upper()].angle
        except KeyError as exc:
            raise InvalidParameterError(f"Unsupported moon phase: {target}") from exc
    angle = float(target)
    if not math.isfinite(angle):
        raise InvalidParameterError(f"Phase angle must be finite: {target}")
    return angle % 360.0


def phase_offset(instant: datetime, target: float) -> float:
    """Elongation minus *target*, wrapped to [-180, 180) degrees.

    The value increases through zero once per synodic month.
    """

    return (elongation(instant) - target + 180.0) % 360.0 - 180.0


def _refine(early: datetime, target: float) -> datetime:
    """Locate the crossing inside the one-day bracket starting at *early*."""

    center = early + STEP / 2
    for span in _REFINE_SPANS:
        qi = QuadraticInterpolation(
            phase_offset(center - span, target),
            phase_offset(center, target),
            phase_offset(center + span, target),
        )
        rising = [c.x for c in qi.crossings() if isinstance(c, RisingCrossing)]
        if rising:
            x = min(rising, key=abs)
        elif qi.b > 0.0:
            # Root just outside the fit; follow the local slope.
            x = max(-2.0, min(2.0, -qi.c / qi.b))
        else:
            break
        center += span * x
    return center


def compute_phase(
    target: Union[MoonPhase, float, str],
    window: SearchWindow,
    *,
    horizon_days: float = DEFAULT_HORIZON_DAYS,
) -> PhaseResult:
    """Find the next (or, searching in reverse, previous) moment of *target*.

    *target* is a :class:`MoonPhase` or a Moon-Sun elongation in degrees
    (0 new moon, 90 first quarter, 180 full moon, 270 last quarter). A start
    instant exactly at the phase counts as a hit.
    """

    angle = _resolve_phase(target)
    sign = window.direction.sign
    horizon = timedelta(days=horizon_days)

    current = window.offset(0.0)
    value = phase_offset(current, angle)
    elapsed = timedelta(0)
    found = None
    steps = 0
    while found is None and window.should_continue(elapsed) and elapsed < horizon:
        following = current + sign * STEP
        next_value = phase_offset(following, angle)
        steps += 1
        if sign > 0:
            early, early_value, late_value = current, value, next_value
        else:
            early, early_value, late_value = following, next_value, value
        if early_value <= 0.0 <= late_value and late_value - early_value < 180.0:
            if early_value == 0.0:
                found = early
            elif late_value == 0.0:
                found = early + STEP
            else:
                found = _refine(early, angle)
        current, value = following, next_value
        elapsed += STEP

    if found is not None and window.end is not None:
        if sign * (found - window.end).total_seconds() > 0:
            found = None
    if found is not None and sign * (found - window.offset(0.0)).total_seconds() < 0:
        found = None

    LOGGER.debug(
        json.dumps(
            {
                "event": "phase_search",
                "phase": angle,
                "direction": window.direction.value,
                "steps": steps,
                "found": found is not None,
            }
        )
    )
    if found is None:
        return PhaseResult(time=None, phase=angle)
    return PhaseResult(
        time=window.localize(found),
        phase=angle,
        distance=geocentric_distance(found, Body.moon),
    )
