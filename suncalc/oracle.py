"""Topocentric positions of the Sun and Moon.

Geocentric vectors come from ERFA: the Sun from the Earth ephemeris
``epv00`` (light time and annual aberration applied), the Moon from
``moon98``. Both are rotated into the terrestrial frame with ``c2t06a``
and reduced to the observer's WGS84 site, which also accounts for parallax.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Tuple

import erfa
import numpy as np

from .types import AltitudeSample, Body, GeoLocation, MoonPhase, require_aware

__all__ = [
    "Atmosphere",
    "MoonIllumination",
    "STANDARD_ATMOSPHERE",
    "angular_radius",
    "apparent_to_true",
    "ecliptic_longitude",
    "elongation",
    "evaluate",
    "geocentric_distance",
    "horizon_dip",
    "illumination",
    "refraction",
]

TWO_PI = 2.0 * math.pi
AU_KM = 149_597_870.7
C_AU_PER_DAY = 173.144632674  # Speed of light (AU/day).
EARTH_EQUATORIAL_RADIUS_KM = 6378.137
EARTH_EQUATORIAL_RADIUS_M = EARTH_EQUATORIAL_RADIUS_KM * 1000.0
SUN_MEAN_RADIUS_KM = 695_700.0
MOON_MEAN_RADIUS_KM = 1737.1
WGS84 = 1


@dataclass(frozen=True)
class Atmosphere:
    """Surface conditions used to scale refraction."""

    pressure_hpa: float = 1013.25
    temperature_c: float = 10.0


STANDARD_ATMOSPHERE = Atmosphere()


@dataclass(frozen=True)
class _TimeScales:
    """Container for time-scale representations of a UTC instant."""

    ut1: Tuple[float, float]
    tt: Tuple[float, float]


@dataclass(frozen=True)
class MoonIllumination:
    """Lit fraction and phase of the Moon at one instant.

    ``phase`` is the Moon-Sun elongation in degrees (0 new moon, 180 full
    moon). ``cycle`` runs from 0.0 at new moon through 0.5 at full moon
    towards 1.0. ``angle`` is the midpoint of the bright limb in degrees,
    reckoned eastward from the north point of the disk; negative while
    waxing and positive while waning.
    """

    fraction: float
    phase: float
    cycle: float
    angle: float
    closest_phase: MoonPhase


def _datetime_to_timescales(dt: datetime) -> _TimeScales:
    """Convert a timezone-aware datetime into UT1 and TT two-part Julian dates."""

    dt_utc = require_aware(dt).astimezone(UTC)
    utc1, utc2 = erfa.dtf2d(
        "UTC",
        dt_utc.year,
        dt_utc.month,
        dt_utc.day,
        dt_utc.hour,
        dt_utc.minute,
        dt_utc.second + dt_utc.microsecond / 1_000_000,
    )
    tai1, tai2 = erfa.utctai(utc1, utc2)
    tt1, tt2 = erfa.taitt(tai1, tai2)
    ut11, ut12 = erfa.utcut1(utc1, utc2, 0.0)
    return _TimeScales(ut1=(float(ut11), float(ut12)), tt=(float(tt1), float(tt2)))


def _position(pv: np.ndarray) -> np.ndarray:
    return np.array(pv["p"], dtype=float)


def _velocity(pv: np.ndarray) -> np.ndarray:
    return np.array(pv["v"], dtype=float)


def _sun_gcrs(scales: _TimeScales) -> np.ndarray:
    """Apparent geocentric vector of the Sun in km, GCRS axes."""

    tt1, tt2 = scales.tt
    _, earth_bary = erfa.epv00(tt1, tt2)
    earth_pos = _position(earth_bary)
    earth_vel = _velocity(earth_bary)

    # Light time: the Sun is seen where it was when the light left it.
    geometric = np.zeros(3)
    light_time = 0.0
    for _ in range(2):
        helio, bary = erfa.epv00(tt1, tt2 - light_time)
        sun_bary = _position(bary) - _position(helio)
        geometric = sun_bary - earth_pos
        light_time = float(np.linalg.norm(geometric)) / C_AU_PER_DAY

    distance_au = float(np.linalg.norm(geometric))
    v = earth_vel / C_AU_PER_DAY
    bm1 = math.sqrt(1.0 - float(np.dot(v, v)))
    apparent = erfa.ab(geometric / distance_au, v, distance_au, bm1)
    return np.array(apparent, dtype=float) * distance_au * AU_KM


def _moon_gcrs(scales: _TimeScales) -> np.ndarray:
    """Geocentric vector of the Moon in km, GCRS axes."""

    return _position(erfa.moon98(*scales.tt)) * AU_KM


def _gcrs(scales: _TimeScales, body: Body) -> np.ndarray:
    return _sun_gcrs(scales) if body is Body.sun else _moon_gcrs(scales)


def _site_frame(location: GeoLocation) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Observer position (km) and local north/east/up unit vectors in ITRS."""

    lat = location.latitude_rad
    lon = location.longitude_rad
    site = np.array(erfa.gd2gc(WGS84, lon, lat, location.elevation), dtype=float) / 1000.0
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)
    north = np.array([-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat])
    east = np.array([-sin_lon, cos_lon, 0.0])
    up = np.array([cos_lat * cos_lon, cos_lat * sin_lon, sin_lat])
    return site, north, east, up


def _parallactic_angle(direction: np.ndarray, location: GeoLocation) -> float:
    """Parallactic angle in radians for a unit vector in ITRS (Meeus 14.1)."""

    dec = math.asin(float(np.clip(direction[2], -1.0, 1.0)))
    hour_angle = location.longitude_rad - math.atan2(direction[1], direction[0])
    return math.atan2(
        math.sin(hour_angle),
        math.tan(location.latitude_rad) * math.cos(dec) - math.sin(dec) * math.cos(hour_angle),
    )


def _topocentric(
    scales: _TimeScales, location: GeoLocation, body: Body
) -> Tuple[float, float, float, float]:
    """Return true altitude, azimuth, parallactic angle (radians) and distance (km)."""

    gcrs = _gcrs(scales, body)
    rotation = np.array(erfa.c2t06a(*scales.tt, *scales.ut1, 0.0, 0.0), dtype=float)
    itrs = rotation @ gcrs
    site, north, east, up = _site_frame(location)
    topocentric = itrs - site
    norm = float(np.linalg.norm(topocentric))
    unit = topocentric / norm
    altitude = math.asin(float(np.clip(np.dot(unit, up), -1.0, 1.0)))
    azimuth = math.atan2(float(np.dot(unit, east)), float(np.dot(unit, north))) % TWO_PI
    return altitude, azimuth, _parallactic_angle(unit, location), float(np.linalg.norm(gcrs))


def refraction(altitude: float, atmosphere: Atmosphere = STANDARD_ATMOSPHERE) -> float:
    """Refraction in degrees for a true altitude in degrees (Saemundsson)."""

    alt_deg = max(-2.0, min(90.0, altitude))
    r_arcmin = (
        1.02
        / math.tan(math.radians(alt_deg + 10.3 / (alt_deg + 5.11)))
        * (atmosphere.pressure_hpa / 1010.0)
        * (283.0 / (273.0 + atmosphere.temperature_c))
    )
    return r_arcmin / 60.0


def apparent_to_true(altitude: float, atmosphere: Atmosphere = STANDARD_ATMOSPHERE) -> float:
    """Invert :func:`refraction` for an apparent altitude in degrees."""

    true_alt = altitude
    for _ in range(3):
        true_alt = altitude - refraction(true_alt, atmosphere)
    return true_alt


def horizon_dip(elevation_m: float) -> float:
    """Depression of the visible horizon in degrees for an observer height."""

    if elevation_m <= 0:
        return 0.0
    ratio = EARTH_EQUATORIAL_RADIUS_M / (EARTH_EQUATORIAL_RADIUS_M + elevation_m)
    return math.degrees(math.acos(max(0.0, min(1.0, ratio))))


def angular_radius(body: Body, distance_km: float) -> float:
    """Apparent semidiameter in degrees."""

    radius = SUN_MEAN_RADIUS_KM if body is Body.sun else MOON_MEAN_RADIUS_KM
    return math.degrees(math.asin(min(1.0, radius / distance_km)))


def evaluate(
    instant: datetime,
    location: GeoLocation,
    body: Body,
    atmosphere: Atmosphere = STANDARD_ATMOSPHERE,
) -> AltitudeSample:
    """Compute the topocentric altitude, azimuth and distance of *body*."""

    scales = _datetime_to_timescales(instant)
    true_alt, azimuth, parallactic, dist = _topocentric(scales, location, Body(body))
    true_deg = math.degrees(true_alt)
    return AltitudeSample(
        instant=instant,
        altitude=true_deg + refraction(true_deg, atmosphere),
        true_altitude=true_deg,
        azimuth=math.degrees(azimuth),
        distance=dist,
        parallactic_angle=math.degrees(parallactic),
    )


def ecliptic_longitude(instant: datetime, body: Body) -> float:
    """Geocentric apparent ecliptic longitude of *body* in degrees [0, 360).

    Uses the IAU 2006 ecliptic of date.
    """

    body = Body(body)
    scales = _datetime_to_timescales(instant)
    rotation = np.array(erfa.ecm06(*scales.tt), dtype=float)
    ecliptic = rotation @ _gcrs(scales, body)
    return math.degrees(math.atan2(ecliptic[1], ecliptic[0])) % 360.0


def geocentric_distance(instant: datetime, body: Body) -> float:
    """Distance in km from the Earth's centre."""

    scales = _datetime_to_timescales(instant)
    return float(np.linalg.norm(_gcrs(scales, Body(body))))


def elongation(instant: datetime) -> float:
    """Moon minus Sun ecliptic longitude in degrees [0, 360); 0 is new moon."""

    return (ecliptic_longitude(instant, Body.moon) - ecliptic_longitude(instant, Body.sun)) % 360.0


def illumination(instant: datetime) -> MoonIllumination:
    """Illuminated fraction of the Moon's disk as seen from the geocentre."""

    scales = _datetime_to_timescales(instant)
    sun = _sun_gcrs(scales)
    moon = _moon_gcrs(scales)
    sun_ra, sun_dec = erfa.c2s(sun)
    moon_ra, moon_dec = erfa.c2s(moon)
    sun_ra, sun_dec, moon_ra, moon_dec = map(float, (sun_ra, sun_dec, moon_ra, moon_dec))

    sun_dist = float(np.linalg.norm(sun))
    moon_dist = float(np.linalg.norm(moon))
    psi = math.acos(float(np.clip(np.dot(sun, moon) / (sun_dist * moon_dist), -1.0, 1.0)))
    # Phase angle at the Moon, Sun-Moon-Earth.
    incidence = math.atan2(sun_dist * math.sin(psi), moon_dist - sun_dist * math.cos(psi))
    # Position angle of the bright limb (Meeus 48.5).
    angle = math.atan2(
        math.cos(sun_dec) * math.sin(sun_ra - moon_ra),
        math.sin(sun_dec) * math.cos(moon_dec)
        - math.cos(sun_dec) * math.sin(moon_dec) * math.cos(sun_ra - moon_ra),
    )
    phase = elongation(instant)
    return MoonIllumination(
        fraction=(1.0 + math.cos(incidence)) / 2.0,
        phase=phase,
        cycle=0.5 + 0.5 * incidence * math.copysign(1.0, angle) / math.pi,
        angle=math.degrees(angle),
        closest_phase=MoonPhase.to_phase(phase),
    )
