"""FastAPI application exposing Sun/Moon event and phase computations."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta, tzinfo
from typing import Annotated, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from models import (
    ErrorResponse,
    HealthResponse,
    PhaseQueryParams,
    PhaseResponse,
    PositionQueryParams,
    PositionResponse,
    TimesQueryParams,
    TimesResponse,
)
from suncalc.config import Settings, load_settings
from suncalc.oracle import evaluate, illumination
from suncalc.phase import compute_phase
from suncalc.times import Twilight, compute_times, resolve_target
from suncalc.types import (
    Body,
    GeoLocation,
    InvalidLocationError,
    InvalidParameterError,
    parse_zone,
    truncate,
)
from suncalc.window import SearchWindow

SETTINGS = load_settings()

logging.basicConfig(level=SETTINGS.log_level, format="%(message)s")
LOGGER = logging.getLogger("suncalc-api")

APP_DESCRIPTION = "Sun and Moon rise/set, noon/nadir and lunar phase calculations"


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = SETTINGS
    LOGGER.info(
        json.dumps(
            {
                "event": "startup",
                "pressure_hpa": app.state.settings.pressure_hpa,
                "temperature_c": app.state.settings.temperature_c,
                "unbounded_horizon_days": app.state.settings.unbounded_horizon_days,
            }
        )
    )
    yield


app = FastAPI(
    title="Suncalc API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", SETTINGS)


def _format_utc(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _format_local(dt: Optional[datetime], zone: tzinfo) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(zone).isoformat()


def _zone(params) -> tzinfo:
    if params.tz:
        return parse_zone(params.tz)
    return parse_zone(params.offset_hours)


def _start(params, zone: tzinfo) -> datetime:
    if params.at is not None:
        at = params.at
        return at if at.tzinfo is not None else at.replace(tzinfo=zone)
    day = params.date_utc or datetime.now(zone).date()
    return datetime.combine(day, datetime.min.time(), tzinfo=zone)


def _window(params, zone: tzinfo) -> SearchWindow:
    limit = None if params.limit_hours is None else timedelta(hours=params.limit_hours)
    return SearchWindow.create(_start(params, zone), limit=limit, reverse=params.reverse)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(InvalidLocationError)
async def location_exception_handler(request: Request, exc: InvalidLocationError) -> JSONResponse:
    return _error_response(400, "invalid_location", str(exc))


@app.exception_handler(InvalidParameterError)
async def parameter_exception_handler(request: Request, exc: InvalidParameterError) -> JSONResponse:
    return _error_response(400, "invalid_parameter", str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    return HealthResponse(
        ok=True,
        bodies=[body.value for body in Body],
        twilights=[member.name.lower() for member in Twilight],
        unbounded_horizon_days=_settings(request).unbounded_horizon_days,
    )


@app.get(
    "/times",
    response_model=TimesResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def times_endpoint(
    request: Request, params: Annotated[TimesQueryParams, Query()]
) -> TimesResponse:
    start_time = time.perf_counter()
    settings = _settings(request)
    location = GeoLocation.create(params.lat, params.lon, params.elev_m)
    zone = _zone(params)
    window = _window(params, zone)
    if params.angle is not None:
        target = resolve_target(params.angle)
        twilight_name = "custom"
    else:
        target = resolve_target(params.twilight.value)
        twilight_name = params.twilight.value

    result = compute_times(
        params.body,
        target,
        location,
        window,
        atmosphere=settings.atmosphere,
        horizon_days=settings.unbounded_horizon_days,
    ).truncated(params.truncate)

    duration_ms = (time.perf_counter() - start_time) * 1000.0

    response = TimesResponse(
        status=result.status.value,
        body=params.body,
        latitude=location.latitude,
        longitude=location.longitude,
        elevation_m=location.elevation,
        twilight=twilight_name,
        angle=target.angle,
        direction=window.direction.value,
        limit_hours=None if window.limit is None else window.limit.total_seconds() / 3600.0,
        rise_utc=_format_utc(result.rise),
        set_utc=_format_utc(result.set),
        noon_utc=_format_utc(result.noon),
        nadir_utc=_format_utc(result.nadir),
        rise_local=_format_local(result.rise, zone),
        set_local=_format_local(result.set, zone),
        noon_local=_format_local(result.noon, zone),
        nadir_local=_format_local(result.nadir, zone),
        always_up=result.always_up,
        always_down=result.always_down,
    )

    LOGGER.info(
        json.dumps(
            {
                "event": "times",
                "body": params.body.value,
                "lat": location.latitude,
                "lon": location.longitude,
                "start": window.start.isoformat(),
                "twilight": twilight_name,
                "status": response.status,
                "duration_ms": round(duration_ms, 3),
            }
        )
    )
    return response


@app.get(
    "/phase",
    response_model=PhaseResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def phase_endpoint(
    request: Request, params: Annotated[PhaseQueryParams, Query()]
) -> PhaseResponse:
    start_time = time.perf_counter()
    zone = _zone(params)
    window = _window(params, zone)
    target = params.angle if params.angle is not None else params.phase.value
    result = compute_phase(
        target, window, horizon_days=_settings(request).unbounded_horizon_days
    )
    found = truncate(result.time, params.truncate)

    LOGGER.info(
        json.dumps(
            {
                "event": "phase",
                "phase": result.phase,
                "start": window.start.isoformat(),
                "found": found is not None,
                "duration_ms": round((time.perf_counter() - start_time) * 1000.0, 3),
            }
        )
    )
    return PhaseResponse(
        phase=result.phase,
        time_utc=_format_utc(found),
        time_local=_format_local(found, zone),
        distance_km=result.distance,
        super_moon=result.is_super_moon,
        micro_moon=result.is_micro_moon,
    )


@app.get(
    "/position",
    response_model=PositionResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def position_endpoint(
    request: Request, params: Annotated[PositionQueryParams, Query()]
) -> PositionResponse:
    location = GeoLocation.create(params.lat, params.lon, params.elev_m)
    instant = _start(params, _zone(params))
    sample = evaluate(instant, location, params.body, _settings(request).atmosphere)
    response = PositionResponse(
        body=params.body,
        time_utc=_format_utc(instant),
        altitude=sample.altitude,
        true_altitude=sample.true_altitude,
        azimuth=sample.azimuth,
        distance_km=sample.distance,
        parallactic_angle=sample.parallactic_angle,
    )
    if params.body is Body.moon:
        lit = illumination(instant)
        response.illuminated_fraction = lit.fraction
        response.phase_angle = lit.phase
        response.phase_cycle = lit.cycle
        response.bright_limb_angle = lit.angle
        response.closest_phase = lit.closest_phase.name.lower()
    return response
