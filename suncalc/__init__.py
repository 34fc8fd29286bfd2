"""Sun and Moon rise/set, noon/nadir and lunar phase computations."""

from .oracle import Atmosphere, evaluate, illumination
from .phase import compute_phase
from .times import TargetAngle, Twilight, compute_times, find_events
from .types import (
    AltitudeSample,
    Body,
    EventResult,
    EventStatus,
    GeoLocation,
    InvalidLocationError,
    InvalidParameterError,
    MoonPhase,
    PhaseResult,
)
from .window import Direction, SearchWindow

__all__ = [
    "AltitudeSample",
    "Atmosphere",
    "Body",
    "Direction",
    "EventResult",
    "EventStatus",
    "GeoLocation",
    "InvalidLocationError",
    "InvalidParameterError",
    "MoonPhase",
    "PhaseResult",
    "SearchWindow",
    "TargetAngle",
    "Twilight",
    "compute_phase",
    "compute_times",
    "evaluate",
    "find_events",
    "illumination",
]
