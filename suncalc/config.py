"""Runtime settings read from the environment."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .oracle import Atmosphere
from .times import DEFAULT_HORIZON_DAYS
from .types import InvalidParameterError

__all__ = ["Settings", "load_settings"]

DEFAULT_CORS_ORIGINS: Tuple[str, ...] = ()
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    pressure_hpa: float = 1013.25
    temperature_c: float = 10.0
    unbounded_horizon_days: float = float(DEFAULT_HORIZON_DAYS)
    batch_jobs: int = -1
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"

    @property
    def atmosphere(self) -> Atmosphere:
        return Atmosphere(pressure_hpa=self.pressure_hpa, temperature_c=self.temperature_c)


def _float(env: Mapping[str, str], name: str, default: float, low: float, high: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise InvalidParameterError(f"{name} must be a number: {raw!r}") from exc
    if not math.isfinite(value) or not low <= value <= high:
        raise InvalidParameterError(f"{name} must be within [{low}, {high}]: {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``SUNCALC_*`` environment variables."""

    env = os.environ if environ is None else environ

    jobs_raw = env.get("SUNCALC_BATCH_JOBS", "-1")
    try:
        batch_jobs = int(jobs_raw)
    except ValueError as exc:
        raise InvalidParameterError(f"SUNCALC_BATCH_JOBS must be an integer: {jobs_raw!r}") from exc
    if batch_jobs == 0:
        raise InvalidParameterError("SUNCALC_BATCH_JOBS cannot be 0")

    origins_raw = env.get("SUNCALC_CORS_ORIGINS")
    if origins_raw:
        origins = tuple(item.strip() for item in origins_raw.split(",") if item.strip())
    else:
        origins = DEFAULT_CORS_ORIGINS

    log_level = env.get("SUNCALC_LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        raise InvalidParameterError(f"Unsupported SUNCALC_LOG_LEVEL: {log_level}")

    return Settings(
        pressure_hpa=_float(env, "SUNCALC_PRESSURE_HPA", 1013.25, 300.0, 1100.0),
        temperature_c=_float(env, "SUNCALC_TEMPERATURE_C", 10.0, -80.0, 60.0),
        unbounded_horizon_days=_float(
            env, "SUNCALC_UNBOUNDED_HORIZON_DAYS", float(DEFAULT_HORIZON_DAYS), 1.0, 3660.0
        ),
        batch_jobs=batch_jobs,
        cors_origins=origins,
        log_level=log_level,
    )
