from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from suncalc.types import GeoLocation

COLOGNE = GeoLocation.create(50.938056, 6.956944)
ALERT = GeoLocation.create(82.5, -62.316667)
SVALBARD = GeoLocation.create(78.2232, 15.6469)
BEIJING = GeoLocation.create(39.9042, 116.4074, 43.5)
EQUATOR = GeoLocation.create(0.0, 0.0)

BASE = datetime(2024, 1, 1, tzinfo=UTC)


def hours_since_base(instant: datetime) -> float:
    return (instant - BASE).total_seconds() / 3600.0


def assert_close(actual: datetime, expected: datetime, tolerance: timedelta) -> None:
    assert actual is not None, f"expected {expected.isoformat()}, got None"
    delta = abs(actual - expected)
    assert delta <= tolerance, f"{actual.isoformat()} differs from {expected.isoformat()} by {delta}"


class RecordingHeight:
    """Wraps a height function and remembers every instant it was asked for."""

    def __init__(self, func: Callable[[float], float]) -> None:
        self.func = func
        self.calls: List[datetime] = []

    def __call__(self, instant: datetime) -> float:
        self.calls.append(instant)
        return self.func(hours_since_base(instant))


@pytest.fixture
def recording() -> Callable[[Callable[[float], float]], RecordingHeight]:
    return RecordingHeight


@pytest.fixture(scope="session")
def api_client() -> Iterable["TestClient"]:
    from fastapi.testclient import TestClient

    from suncalc_api import app

    with TestClient(app) as client:
        yield client
