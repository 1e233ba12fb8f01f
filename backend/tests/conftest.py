"""Test fixtures for the backend test suite.

The OpenF1 API is replaced by an in-process fake served through
``httpx.MockTransport``.  Time-window filters are ignored: each driver has
exactly one lap's worth of samples.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import numpy as np
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pitwall.openf1_client import OpenF1Client

from backend.api.dependencies import get_openf1_client
from backend.api.main import app

SESSION_KEY = 9472
MEETING_KEY = 1229
SESSION_START = datetime(2024, 3, 2, 15, 0, tzinfo=UTC)

# Lap durations per driver; None is a lap without a recorded time
LAP_TIMES: dict[int, list[float | None]] = {
    1: [92.0, 90.5, 91.0],
    44: [92.5, 90.8, 91.2],
    16: [93.0, 91.5, None],
}

# Zigzag reference lap: five legs of 80 samples, turns at 80/160/240/320
TRACK_LEGS = 5
TRACK_LEG = 80
CAR_SAMPLES = 200


def build_track() -> list[tuple[float, float]]:
    """Straight legs joined by alternating 90-degree turns."""
    points: list[tuple[float, float]] = []
    x, y = 100.0, 100.0
    for i in range(TRACK_LEGS * TRACK_LEG):
        points.append((x, y))
        if (i // TRACK_LEG) % 2 == 0:
            x += 10.0
        else:
            y += 10.0
    return points


def _iso(dt: datetime) -> str:
    return dt.isoformat()


class FakeOpenF1:
    """Serves canned OpenF1 payloads; set ``failing`` to break endpoints."""

    def __init__(self) -> None:
        # (endpoint, driver_number or None) pairs that answer 500
        self.failing: set[tuple[str, int | None]] = set()
        # Drivers whose car data is cut to a handful of samples
        self.sparse_car_data: set[int] = {16}
        self.requests: list[httpx.Request] = []

    def laps(self) -> list[dict[str, Any]]:
        records = []
        for driver, times in LAP_TIMES.items():
            start = SESSION_START
            for lap_number, duration in enumerate(times, start=1):
                records.append(
                    {
                        "session_key": SESSION_KEY,
                        "driver_number": driver,
                        "lap_number": lap_number,
                        "date_start": _iso(start),
                        "lap_duration": duration,
                        "is_pit_out_lap": lap_number == 1,
                        "duration_sector_1": None if duration is None else 30.0,
                        "duration_sector_2": None if duration is None else 30.0,
                        "duration_sector_3": None if duration is None else duration - 60.0,
                    }
                )
                start += timedelta(seconds=duration or 90.0)
        return records

    def locations(self, driver: int) -> list[dict[str, Any]]:
        # One "no fix" sentinel ahead of the lap
        records = [{"date": _iso(SESSION_START), "driver_number": driver, "x": 0, "y": 0, "z": 0}]
        for i, (x, y) in enumerate(build_track(), start=1):
            records.append(
                {
                    "date": _iso(SESSION_START + timedelta(seconds=i * 0.27)),
                    "driver_number": driver,
                    "x": x,
                    "y": y,
                    "z": 0,
                }
            )
        return records

    def car_data(self, driver: int) -> list[dict[str, Any]]:
        n = 5 if driver in self.sparse_car_data else CAR_SAMPLES
        idx = np.arange(n)
        # Speed dips to 100 km/h around the first corner (sample 36 of 200)
        speed = 100.0 + 5.0 * np.abs(idx - 36)
        return [
            {
                "date": _iso(SESSION_START + timedelta(seconds=float(i) * 0.27)),
                "driver_number": driver,
                "speed": float(speed[i]),
                "throttle": 100.0 if i > 40 else 0.0,
                "brake": 100.0 if 30 <= i < 36 else 0.0,
                "n_gear": 4,
                "rpm": 10000,
                "drs": 0,
            }
            for i in range(n)
        ]

    def stints(self) -> list[dict[str, Any]]:
        def _stint(
            driver: int, number: int, compound: str, start: int, end: int | None
        ) -> dict[str, Any]:
            return {
                "driver_number": driver,
                "stint_number": number,
                "compound": compound,
                "lap_start": start,
                "lap_end": end,
                "tyre_age_at_start": 3 if driver == 44 else 0,
            }

        return [
            _stint(1, 1, "SOFT", 1, 2),
            _stint(1, 2, "MEDIUM", 3, None),
            _stint(44, 1, "MEDIUM", 1, None),
        ]

    def pits(self) -> list[dict[str, Any]]:
        return [
            {
                "date": _iso(SESSION_START + timedelta(minutes=3)),
                "driver_number": 1,
                "lap_number": 2,
                "pit_duration": 22.4,
            }
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        raw_driver = request.url.params.get("driver_number")
        driver = int(raw_driver) if raw_driver is not None else None

        if (endpoint, driver) in self.failing:
            return httpx.Response(500, json={"detail": "upstream exploded"})

        payload: list[dict[str, Any]]
        if endpoint == "laps":
            payload = self.laps()
        elif endpoint == "location" and driver is not None:
            payload = self.locations(driver)
        elif endpoint == "car_data" and driver is not None:
            payload = self.car_data(driver)
        elif endpoint == "stints":
            payload = self.stints()
        elif endpoint == "pit":
            payload = self.pits()
        elif endpoint == "drivers":
            payload = [
                {"driver_number": 1, "name_acronym": "VER", "team_name": "Red Bull Racing"},
                {"driver_number": 44, "name_acronym": "HAM", "team_name": None},
            ]
        elif endpoint == "meetings":
            payload = [
                {
                    "meeting_key": MEETING_KEY,
                    "meeting_name": "Bahrain Grand Prix",
                    "year": 2024,
                    "circuit_short_name": "Sakhir",
                }
            ]
        elif endpoint == "sessions":
            payload = [
                {
                    "session_key": SESSION_KEY,
                    "meeting_key": MEETING_KEY,
                    "session_name": "Race",
                    "session_type": "Race",
                }
            ]
        else:
            return httpx.Response(404, json={"detail": "No results found."})
        return httpx.Response(200, json=payload)


@pytest.fixture
def fake_openf1() -> FakeOpenF1:
    return FakeOpenF1()


@pytest.fixture(autouse=True)
def _mock_openf1(fake_openf1: FakeOpenF1) -> Generator[None, None, None]:
    """Route every OpenF1 call through the fake for the duration of a test."""

    async def _override() -> AsyncGenerator[OpenF1Client, None]:
        transport = httpx.MockTransport(fake_openf1.handler)
        async with OpenF1Client("https://openf1.test/v1", transport=transport) as client:
            yield client

    app.dependency_overrides[get_openf1_client] = _override
    yield
    app.dependency_overrides.pop(get_openf1_client, None)


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
