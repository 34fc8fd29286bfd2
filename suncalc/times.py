"""Rise, set, noon and nadir search for the Sun and Moon."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Union

from .interpolation import (
    FallingCrossing,
    Maximum,
    Minimum,
    QuadraticInterpolation,
    RisingCrossing,
)
from .oracle import (
    STANDARD_ATMOSPHERE,
    Atmosphere,
    angular_radius,
    apparent_to_true,
    evaluate,
    horizon_dip,
)
from .types import Body, EventResult, EventStatus, GeoLocation, InvalidParameterError
from .window import SearchWindow

__all__ = [
    "DEFAULT_HORIZON_DAYS",
    "TargetAngle",
    "Twilight",
    "compute_times",
    "find_events",
    "resolve_target",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 366
# Half-width of one sampling interval; each interval spans two of these.
STEP_HOURS = 1.0
HOURS_PER_DAY = 24.0
# Successive half-widths (hours) used to pin down noon and nadir.
_EXTREMUM_SPANS = (0.5, 5.0 / 60.0, 1.0 / 60.0)

HeightFunction = Callable[[datetime], float]


class Twilight(Enum):
    """Altitude thresholds for rise/set style events.

    The first element is the altitude in degrees. The second is the limb
    offset in semidiameters for horizon events (which also account for
    refraction and horizon dip), or None for plain centre altitudes.
    """

    VISUAL = (0.0, 1.0)
    VISUAL_LOWER = (0.0, -1.0)
    HORIZON = (0.0, 0.0)
    ASTRONOMICAL = (-18.0, None)
    NAUTICAL = (-12.0, None)
    NIGHT_HOUR = (-8.0, None)
    CIVIL = (-6.0, None)
    BLUE_HOUR = (-4.0, None)
    GOLDEN_HOUR = (6.0, None)

    @property
    def angle(self) -> float:
        return self.value[0]

    @property
    def limb(self) -> Optional[float]:
        return self.value[1]


@dataclass(frozen=True)
class TargetAngle:
    angle: float
    limb: Optional[float] = None

    @property
    def topocentric(self) -> bool:
        return self.limb is not None


def resolve_target(target: Union[Twilight, TargetAngle, float, str]) -> TargetAngle:
    if isinstance(target, TargetAngle):
        return target
    if isinstance(target, Twilight):
        return TargetAngle(target.angle, target.limb)
    if isinstance(target, str):
        try:
            return resolve_target(Twilight[target.upper()])
        except KeyError as exc:
            raise InvalidParameterError(f"Unsupported twilight selector: {target}") from exc
    angle = float(target)
    if not math.isfinite(angle) or not -90.0 <= angle <= 90.0:
        raise InvalidParameterError(f"Target altitude out of range: {target}")
    return TargetAngle(angle)


def _height_function(
    body: Body,
    target: TargetAngle,
    location: GeoLocation,
    atmosphere: Atmosphere,
) -> HeightFunction:
    """Altitude above the target threshold, in degrees, as a function of time."""

    if target.topocentric:
        base = apparent_to_true(target.angle, atmosphere) - horizon_dip(location.elevation)
    else:
        base = target.angle

    def height(instant: datetime) -> float:
        sample = evaluate(instant, location, body, atmosphere)
        threshold = base
        if target.limb:
            threshold -= target.limb * angular_radius(body, sample.distance)
        return sample.true_altitude - threshold

    return height


class _State(Enum):
    SEARCHING = "searching"
    FOUND = "found"
    EXHAUSTED = "exhausted"
    CIRCUMPOLAR = "circumpolar"


class _DayStepper:
    """Walks two-hour sampling intervals through a search window.

    Offsets are hours from the window start counted in the search
    direction, so offset 0 is the start and offsets grow for both forward
    and reverse searches.
    """

    def __init__(self, height: HeightFunction, window: SearchWindow, horizon_days: float) -> None:
        self.height = height
        self.window = window
        self.horizon = timedelta(days=horizon_days)
        self.state = _State.SEARCHING
        self.rise: Optional[float] = None
        self.set: Optional[float] = None
        self.noon: Optional[float] = None
        self.nadir: Optional[float] = None
        self.first_day_heights: List[float] = []
        self.steps = 0

    def _sample(self, offset: float) -> float:
        return self.height(self.window.offset(offset))

    def _accept(self, offset: float, seam: Optional[float]) -> bool:
        if seam is not None and offset == seam:
            return False
        return self.window.contains_offset(offset)

    def _interval(self, index: int, values: List[float]) -> None:
        """Evaluate interval *index* given heights at its three offsets."""

        sign = self.window.direction.sign
        center = 2.0 * index + STEP_HOURS
        # The fit is chronological; reverse searches see the samples backwards.
        if sign > 0:
            qi = QuadraticInterpolation(values[0], values[1], values[2])
        else:
            qi = QuadraticInterpolation(values[2], values[1], values[0])
        seam = 2.0 * index if index > 0 else None

        crossings = sorted(qi.crossings(), key=lambda c: center + sign * c.x)
        for crossing in crossings:
            offset = center + sign * crossing.x
            if not self._accept(offset, seam):
                continue
            if isinstance(crossing, RisingCrossing) and self.rise is None:
                self.rise = offset
            elif isinstance(crossing, FallingCrossing) and self.set is None:
                self.set = offset

        extremum = qi.extremum()
        if extremum is not None:
            offset = center + sign * extremum.x
            if self._accept(offset, seam):
                if isinstance(extremum, Maximum) and self.noon is None:
                    self.noon = offset
                elif isinstance(extremum, Minimum) and self.nadir is None:
                    self.nadir = offset
                if offset <= HOURS_PER_DAY:
                    self.first_day_heights.append(extremum.y)

    def _first_day_complete(self, covered: float) -> bool:
        return covered >= HOURS_PER_DAY

    def _classify_first_day(self) -> None:
        if self.rise is not None or self.set is not None:
            return
        if self.window.limit is not None and self.window.limit < timedelta(hours=HOURS_PER_DAY):
            return
        self.state = _State.CIRCUMPOLAR

    def run(self) -> EventResult:
        window = self.window
        if window.limit is not None and window.limit == timedelta(0):
            self.state = _State.EXHAUSTED
            return self._result()

        values = [self._sample(0.0)]
        self.first_day_heights.append(values[0])
        index = 0
        classified = False
        while self.state is _State.SEARCHING:
            lo = 2.0 * index
            values = [values[-1], self._sample(lo + 1.0), self._sample(lo + 2.0)]
            if lo < HOURS_PER_DAY:
                self.first_day_heights.extend(
                    v for k, v in enumerate(values[1:], start=1)
                    if window.contains_offset(lo + k)
                )
            self._interval(index, values)
            self.steps += 1
            index += 1
            covered = timedelta(hours=2.0 * index)

            if not classified and (
                self._first_day_complete(2.0 * index) or not window.should_continue(covered)
            ):
                classified = True
                self._classify_first_day()
                if self.state is _State.CIRCUMPOLAR:
                    break

            if None not in (self.rise, self.set, self.noon, self.nadir):
                self.state = _State.FOUND
            elif not window.should_continue(covered) or covered >= self.horizon:
                self.state = _State.EXHAUSTED

        self._refine_extrema()
        result = self._result()
        LOGGER.debug(
            json.dumps(
                {
                    "event": "times_search",
                    "direction": window.direction.value,
                    "bounded": window.bounded,
                    "steps": self.steps,
                    "state": self.state.value,
                    "status": result.status.value,
                }
            )
        )
        return result

    def _refine(self, offset: float, kind: type) -> Optional[float]:
        sign = self.window.direction.sign
        for span in _EXTREMUM_SPANS:
            qi = QuadraticInterpolation(
                self._sample(offset - sign * span),
                self._sample(offset),
                self._sample(offset + sign * span),
            )
            extremum = qi.extremum()
            if not isinstance(extremum, kind):
                break
            offset += sign * extremum.x * span
        return offset if self.window.contains_offset(offset) else None

    def _refine_extrema(self) -> None:
        if self.noon is not None:
            self.noon = self._refine(self.noon, Maximum)
        if self.nadir is not None:
            self.nadir = self._refine(self.nadir, Minimum)

    def _instant(self, offset: Optional[float]) -> Optional[datetime]:
        if offset is None:
            return None
        return self.window.localize(self.window.offset(offset))

    def _result(self) -> EventResult:
        always_up = always_down = False
        if self.state is _State.CIRCUMPOLAR:
            always_up = min(self.first_day_heights) > 0.0
            always_down = not always_up
            status = EventStatus.circumpolar_up if always_up else EventStatus.circumpolar_down
        elif self.steps == 0:
            status = EventStatus.empty
        elif self.rise is not None and self.set is not None:
            status = EventStatus.ok
        else:
            status = EventStatus.partial
        return EventResult(
            rise=None if self.state is _State.CIRCUMPOLAR else self._instant(self.rise),
            set=None if self.state is _State.CIRCUMPOLAR else self._instant(self.set),
            noon=self._instant(self.noon),
            nadir=self._instant(self.nadir),
            always_up=always_up,
            always_down=always_down,
            status=status,
        )


def find_events(
    height: HeightFunction,
    window: SearchWindow,
    *,
    horizon_days: float = DEFAULT_HORIZON_DAYS,
) -> EventResult:
    """Find crossings of zero and the extrema of *height* within *window*.

    Positive values of *height* mean "up". Rising zero crossings are reported
    as ``rise``, falling ones as ``set``, maxima as ``noon`` and minima as
    ``nadir``; the first of each in search order wins.
    """

    if horizon_days <= 0:
        raise InvalidParameterError("horizon_days must be positive")
    return _DayStepper(height, window, horizon_days).run()


def compute_times(
    body: Union[Body, str],
    target: Union[Twilight, TargetAngle, float, str],
    location: GeoLocation,
    window: SearchWindow,
    *,
    atmosphere: Atmosphere = STANDARD_ATMOSPHERE,
    horizon_days: float = DEFAULT_HORIZON_DAYS,
) -> EventResult:
    """Compute rise, set, noon and nadir of *body* for *target*.

    Parameters
    ----------
    body:
        ``Body.sun`` or ``Body.moon``.
    target:
        A :class:`Twilight`, a name of one, or a centre altitude in degrees.
    location:
        Observer position, validated by :meth:`GeoLocation.create`.
    window:
        Start, direction and optional limit of the search.

    Returns
    -------
    EventResult
        Absent fields mean the event was not found in the window. The
        ``always_up``/``always_down`` flags are only set when no rise or set
        happens during the first day of the search.
    """

    try:
        body = Body(body)
    except ValueError as exc:
        raise InvalidParameterError(f"Unsupported body: {body}") from exc
    height = _height_function(body, resolve_target(target), location, atmosphere)
    return find_events(height, window, horizon_days=horizon_days)
