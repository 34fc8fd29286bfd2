"""Three-point quadratic interpolation of a sampled scalar function.

Samples are taken at x = -1, 0, +1. Roots and the extremum are reported in
that normalised coordinate; callers map them back to instants.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

__all__ = [
    "Crossing",
    "Extremum",
    "FallingCrossing",
    "Maximum",
    "Minimum",
    "QuadraticInterpolation",
    "RisingCrossing",
]

# Below this curvature the segment is treated as a straight line.
_LINEAR_EPSILON = 1e-12


@dataclass(frozen=True)
class RisingCrossing:
    x: float


@dataclass(frozen=True)
class FallingCrossing:
    x: float


@dataclass(frozen=True)
class Maximum:
    x: float
    y: float


@dataclass(frozen=True)
class Minimum:
    x: float
    y: float


Crossing = Union[RisingCrossing, FallingCrossing]
Extremum = Union[Maximum, Minimum]


class QuadraticInterpolation:
    """Fit ``y = a*x**2 + b*x + c`` through three equally spaced samples."""

    def __init__(self, y_minus: float, y0: float, y_plus: float) -> None:
        self.y_minus = y_minus
        self.y0 = y0
        self.y_plus = y_plus
        self.a = 0.5 * (y_plus + y_minus) - y0
        self.b = 0.5 * (y_plus - y_minus)
        self.c = y0

    @property
    def is_linear(self) -> bool:
        scale = max(abs(self.y_minus), abs(self.y0), abs(self.y_plus), 1.0)
        return abs(self.a) <= _LINEAR_EPSILON * scale

    def value(self, x: float) -> float:
        return (self.a * x + self.b) * x + self.c

    def slope(self, x: float) -> float:
        return 2.0 * self.a * x + self.b

    def roots(self) -> Tuple[float, ...]:
        """Real roots within [-1, 1], ascending. Tangent roots are dropped."""

        if self.is_linear:
            if self.b == 0.0:
                return ()
            x = -self.c / self.b
            return (x,) if -1.0 <= x <= 1.0 else ()

        xe = -self.b / (2.0 * self.a)
        ye = self.value(xe)
        dis = self.b * self.b - 4.0 * self.a * self.c
        if dis <= 0.0 or ye == 0.0:
            return ()
        dx = 0.5 * math.sqrt(dis) / abs(self.a)
        return tuple(x for x in (xe - dx, xe + dx) if -1.0 <= x <= 1.0)

    def crossings(self) -> Tuple[Crossing, ...]:
        """Roots tagged by the sign of the slope at the crossing."""

        tagged = []
        for x in self.roots():
            slope = self.slope(x)
            if slope > 0.0:
                tagged.append(RisingCrossing(x))
            elif slope < 0.0:
                tagged.append(FallingCrossing(x))
        return tuple(tagged)

    def extremum(self) -> Optional[Extremum]:
        """Vertex of the parabola if it lies within [-1, 1]."""

        if self.is_linear:
            return None
        xe = -self.b / (2.0 * self.a)
        if abs(xe) > 1.0:
            return None
        ye = self.value(xe)
        return Maximum(xe, ye) if self.a < 0.0 else Minimum(xe, ye)
