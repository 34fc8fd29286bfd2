"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from suncalc.times import Twilight
from suncalc.types import Body, MoonPhase, Unit

TwilightName = Enum(  # type: ignore[misc]
    "TwilightName", {member.name.lower(): member.name.lower() for member in Twilight}, type=str
)
TwilightName.__doc__ = "Enumeration of supported twilight definitions."

PhaseName = Enum(  # type: ignore[misc]
    "PhaseName", {member.name.lower(): member.name.lower() for member in MoonPhase}, type=str
)
PhaseName.__doc__ = "Enumeration of named lunar phases."


class _StartParams(BaseModel):
    """Where a search starts: a local date, an explicit instant, and a zone."""

    model_config = ConfigDict(populate_by_name=True)

    date_utc: Optional[date] = Field(
        None, alias="date", description="Calendar date (YYYY-MM-DD); search starts at local midnight"
    )
    at: Optional[datetime] = Field(
        None, description="Explicit start instant (ISO-8601); overrides date"
    )
    tz: Optional[str] = Field(None, description="IANA time zone used for input and output")
    offset_hours: Optional[float] = Field(
        None,
        description="Optional fixed offset in hours, used when tz is not given",
    )

    @field_validator("offset_hours")
    @classmethod
    def validate_offset_hours(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return value
        if not -24.0 < value < 24.0:
            raise ValueError("offset_hours must be within ±24 hours")
        return value


class _WindowParams(_StartParams):
    limit_hours: Optional[float] = Field(
        None,
        ge=-24.0 * 3660,
        le=24.0 * 3660,
        description="Bounded search length in hours; negative searches backwards. "
        "Omit for a full-cycle search.",
    )
    reverse: bool = Field(False, description="Search backwards from the start instant")


class TimesQueryParams(_WindowParams):
    """Validated query parameters for the ``/times`` endpoint."""

    lat: Optional[float] = Field(None, ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: Optional[float] = Field(None, ge=-180.0, le=180.0, description="Longitude in degrees")
    elev_m: float = Field(
        0.0, ge=-500.0, description="Observer elevation in meters; negative values count as 0"
    )
    body: Body = Field(Body.sun, description="Sun or Moon")
    twilight: TwilightName = Field(TwilightName.visual, description="Twilight definition")
    angle: Optional[float] = Field(
        None, ge=-90.0, le=90.0, description="Custom centre altitude in degrees; overrides twilight"
    )
    truncate: Unit = Field(Unit.seconds, description="Rounding of reported times")


class PhaseQueryParams(_WindowParams):
    """Validated query parameters for the ``/phase`` endpoint."""

    phase: PhaseName = Field(PhaseName.new_moon, description="Named lunar phase")
    angle: Optional[float] = Field(
        None, description="Custom Moon-Sun elongation in degrees; overrides phase"
    )
    truncate: Unit = Field(Unit.minutes, description="Rounding of the reported time")


class PositionQueryParams(_StartParams):
    """Validated query parameters for the ``/position`` endpoint."""

    lat: Optional[float] = Field(None, ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: Optional[float] = Field(None, ge=-180.0, le=180.0, description="Longitude in degrees")
    elev_m: float = Field(0.0, ge=-500.0, description="Observer elevation in meters")
    body: Body = Field(Body.sun, description="Sun or Moon")


class TimesResponse(BaseModel):
    """Rise/set search result payload."""

    ok: bool = True
    status: str = Field(..., description="ok, circumpolar_up, circumpolar_down, partial or empty")
    body: Body
    latitude: float
    longitude: float
    elevation_m: float
    twilight: str = Field(..., description="Applied twilight name, or 'custom'")
    angle: float = Field(..., description="Applied altitude threshold in degrees")
    direction: str
    limit_hours: Optional[float] = None
    rise_utc: Optional[str] = None
    set_utc: Optional[str] = None
    noon_utc: Optional[str] = None
    nadir_utc: Optional[str] = None
    rise_local: Optional[str] = None
    set_local: Optional[str] = None
    noon_local: Optional[str] = None
    nadir_local: Optional[str] = None
    always_up: bool = False
    always_down: bool = False
    source: Literal["suncalc-analytic"] = "suncalc-analytic"


class PhaseResponse(BaseModel):
    """Lunar phase search result payload."""

    ok: bool = True
    phase: float = Field(..., description="Target elongation in degrees")
    time_utc: Optional[str] = None
    time_local: Optional[str] = None
    distance_km: Optional[float] = None
    super_moon: bool = False
    micro_moon: bool = False


class PositionResponse(BaseModel):
    """Topocentric position payload."""

    ok: bool = True
    body: Body
    time_utc: str
    altitude: float
    true_altitude: float
    azimuth: float
    distance_km: float
    parallactic_angle: float = Field(..., description="Zenith-to-pole angle at the body, degrees")
    illuminated_fraction: Optional[float] = None
    phase_angle: Optional[float] = Field(None, description="Moon-Sun elongation in degrees")
    phase_cycle: Optional[float] = Field(
        None, description="0.0 new moon, 0.5 full moon, approaching 1.0 before the next new moon"
    )
    bright_limb_angle: Optional[float] = Field(
        None, description="Bright limb midpoint, degrees east of north; negative while waxing"
    )
    closest_phase: Optional[str] = None


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    bodies: List[str]
    twilights: List[str]
    unbounded_horizon_days: float


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
