"""Value types shared by the position oracle and the event finders."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

__all__ = [
    "Body",
    "EventStatus",
    "EventResult",
    "GeoLocation",
    "AltitudeSample",
    "InvalidLocationError",
    "InvalidParameterError",
    "MoonPhase",
    "PhaseResult",
    "Unit",
    "parse_zone",
    "require_aware",
    "truncate",
]


class InvalidLocationError(ValueError):
    """Raised when latitude or longitude is missing or out of range."""


class InvalidParameterError(ValueError):
    """Raised for malformed search parameters."""


class Body(str, Enum):
    """Bodies known to the position oracle."""

    sun = "sun"
    moon = "moon"


class EventStatus(str, Enum):
    """Outcome classification of a rise/set search."""

    ok = "ok"
    circumpolar_up = "circumpolar_up"
    circumpolar_down = "circumpolar_down"
    partial = "partial"
    empty = "empty"


class MoonPhase(Enum):
    """Named lunar phases and their Moon-Sun elongation in degrees."""

    NEW_MOON = 0.0
    WAXING_CRESCENT = 45.0
    FIRST_QUARTER = 90.0
    WAXING_GIBBOUS = 135.0
    FULL_MOON = 180.0
    WANING_GIBBOUS = 225.0
    LAST_QUARTER = 270.0
    WANING_CRESCENT = 315.0

    @property
    def angle(self) -> float:
        return self.value

    @classmethod
    def to_phase(cls, angle: float) -> "MoonPhase":
        """Return the named phase closest to *angle* (any value, wrapped)."""

        normalized = angle % 360.0
        index = int(round(normalized / 45.0)) % 8
        return list(cls)[index]


class Unit(str, Enum):
    """Rounding units for reported instants."""

    seconds = "seconds"
    minutes = "minutes"
    hours = "hours"
    days = "days"


def parse_zone(value: Union[str, float, None]) -> tzinfo:
    """Return a tzinfo for an IANA name or a fixed offset in hours."""

    if value is None or value == "":
        return UTC
    try:
        hours = float(value)
    except (TypeError, ValueError):
        try:
            return ZoneInfo(str(value))
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise InvalidParameterError(f"Unknown time zone: {value}") from exc
    if not -24.0 < hours < 24.0:
        raise InvalidParameterError("offset_hours must be within ±24 hours")
    return timezone(timedelta(hours=hours))


def require_aware(instant: datetime) -> datetime:
    if not isinstance(instant, datetime):
        raise InvalidParameterError(f"Expected a datetime, got {type(instant).__name__}")
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidParameterError("datetime must be timezone-aware")
    return instant


def truncate(instant: Optional[datetime], unit: Unit) -> Optional[datetime]:
    """Round *instant* to the nearest *unit*; days always round down to midnight."""

    if instant is None:
        return None
    if unit is Unit.days:
        return instant.replace(hour=0, minute=0, second=0, microsecond=0)
    rounded = instant.replace(microsecond=0)
    if instant.microsecond >= 500_000:
        rounded += timedelta(seconds=1)
    if unit is Unit.seconds:
        return rounded
    rounded = (rounded + timedelta(seconds=30)).replace(second=0)
    if unit is Unit.minutes:
        return rounded
    return (rounded + timedelta(minutes=30)).replace(minute=0)


@dataclass(frozen=True)
class GeoLocation:
    """Observer position. Elevation is in meters above the horizon plane."""

    latitude: float
    longitude: float
    elevation: float = 0.0

    @classmethod
    def create(
        cls,
        latitude: Optional[float],
        longitude: Optional[float],
        elevation: Optional[float] = 0.0,
    ) -> "GeoLocation":
        if latitude is None or longitude is None:
            raise InvalidLocationError("Latitude and longitude are required")
        lat = float(latitude)
        lon = float(longitude)
        if not math.isfinite(lat) or not -90.0 <= lat <= 90.0:
            raise InvalidLocationError(f"Latitude out of range, -90.0 <= {latitude} <= 90.0")
        if not math.isfinite(lon) or not -180.0 <= lon <= 180.0:
            raise InvalidLocationError(
                f"Longitude out of range, -180.0 <= {longitude} <= 180.0"
            )
        elev = float(elevation or 0.0)
        if not math.isfinite(elev):
            raise InvalidParameterError(f"Elevation must be finite: {elevation}")
        return cls(latitude=lat, longitude=lon, elevation=max(0.0, elev))

    @property
    def latitude_rad(self) -> float:
        return math.radians(self.latitude)

    @property
    def longitude_rad(self) -> float:
        return math.radians(self.longitude)


@dataclass(frozen=True)
class AltitudeSample:
    """Topocentric position of a body at one instant.

    ``altitude`` includes atmospheric refraction, ``true_altitude`` does not.
    Azimuth is measured from north through east. The parallactic angle is
    the angle between the zenith and the celestial pole at the body, in
    degrees, positive west of the meridian.
    """

    instant: datetime
    altitude: float
    true_altitude: float
    azimuth: float
    distance: float
    parallactic_angle: float = 0.0


@dataclass(frozen=True)
class EventResult:
    """Rise, set, noon and nadir found by one search."""

    rise: Optional[datetime] = None
    set: Optional[datetime] = None
    noon: Optional[datetime] = None
    nadir: Optional[datetime] = None
    always_up: bool = False
    always_down: bool = False
    status: EventStatus = EventStatus.empty

    def __post_init__(self) -> None:
        if self.always_up and self.always_down:
            raise InvalidParameterError("always_up and always_down are exclusive")
        if (self.always_up or self.always_down) and (
            self.rise is not None or self.set is not None
        ):
            raise InvalidParameterError("circumpolar results cannot carry rise/set")

    def truncated(self, unit: Unit) -> "EventResult":
        return EventResult(
            rise=truncate(self.rise, unit),
            set=truncate(self.set, unit),
            noon=truncate(self.noon, unit),
            nadir=truncate(self.nadir, unit),
            always_up=self.always_up,
            always_down=self.always_down,
            status=self.status,
        )


@dataclass(frozen=True)
class PhaseResult:
    """Instant at which the Moon reaches the requested phase angle."""

    time: Optional[datetime]
    phase: float
    distance: Optional[float] = None

    @property
    def is_super_moon(self) -> bool:
        # Perigee-side full or new moon.
        return self.distance is not None and self.distance < 360_000.0

    @property
    def is_micro_moon(self) -> bool:
        return self.distance is not None and self.distance > 405_000.0
