"""Shared test fixtures for pitwall tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import numpy as np
import pandas as pd
import pytest

from pitwall.parser import parse_laps

# Type alias for the lap_frame factory fixture
LapFactory = Callable[[dict[int, list[float | None]]], pd.DataFrame]

SESSION_START = datetime(2024, 3, 2, 15, 0, tzinfo=UTC)

# Zigzag track: five straight legs alternating east/north, 80 samples each
ZIGZAG_LEG = 80
ZIGZAG_TURNS = [80, 160, 240, 320]


def build_zigzag(n_legs: int = 5, leg: int = ZIGZAG_LEG, step: float = 10.0) -> pd.DataFrame:
    """Straight legs joined by alternating 90-degree left and right turns."""
    xs: list[float] = []
    ys: list[float] = []
    x, y = 100.0, 100.0
    for i in range(n_legs * leg):
        xs.append(x)
        ys.append(y)
        if (i // leg) % 2 == 0:
            x += step
        else:
            y += step
    return pd.DataFrame({"x": xs, "y": ys, "z": np.zeros(len(xs))})


def build_double_bend(gap: int, n: int = 400, first: int = 200, turn: float = 0.4) -> pd.DataFrame:
    """Two same-direction kinks of *turn* radians, *gap* samples apart.

    Unit steps head east until *first*, then turn left twice.
    """
    i = np.arange(n)
    heading = np.where(i < first, 0.0, np.where(i < first + gap, turn, 2 * turn))
    x = 100.0 + np.concatenate([[0.0], np.cumsum(np.cos(heading))])[:n]
    y = 100.0 + np.concatenate([[0.0], np.cumsum(np.sin(heading))])[:n]
    return pd.DataFrame({"x": x, "y": y, "z": np.zeros(n)})


def build_circle(n: int = 400, radius: float = 1000.0) -> pd.DataFrame:
    """Evenly spaced points on a circle, so heading changes uniformly."""
    theta = np.linspace(0.0, 2 * np.pi, n, endpoint=False)
    return pd.DataFrame(
        {"x": radius * np.cos(theta), "y": radius * np.sin(theta), "z": np.zeros(n)}
    )


def build_corner_telemetry(
    n: int = 41,
    apex: int = 20,
    min_speed: float = 80.0,
    brake_lead: int = 5,
    throttle_lag: int = 5,
) -> pd.DataFrame:
    """Parabolic speed dip through a corner.

    Brake is applied for the *brake_lead* samples before the apex and the
    throttle first passes 50% *throttle_lag* samples after it.
    """
    idx = np.arange(n)
    speed = min_speed + 0.5 * (idx - apex) ** 2
    brake = np.where((idx >= apex - brake_lead) & (idx < apex), 80.0, 0.0)
    throttle = np.where(idx >= apex + throttle_lag, 100.0, np.where(idx > apex, 30.0, 0.0))
    return pd.DataFrame({"speed": speed, "throttle": throttle, "brake": brake})


def lap_record(
    driver_number: int,
    lap_number: int,
    lap_duration: float | None,
    *,
    is_pit_out_lap: bool = False,
    sectors: tuple[float | None, float | None, float | None] | None = None,
    date_start: datetime | None = None,
) -> dict[str, Any]:
    """One OpenF1 ``/laps`` record."""
    if date_start is None:
        date_start = SESSION_START + timedelta(seconds=90 * (lap_number - 1))
    s1, s2, s3 = sectors if sectors is not None else (None, None, None)
    return {
        "driver_number": driver_number,
        "lap_number": lap_number,
        "date_start": date_start.isoformat(),
        "lap_duration": lap_duration,
        "is_pit_out_lap": is_pit_out_lap,
        "duration_sector_1": s1,
        "duration_sector_2": s2,
        "duration_sector_3": s3,
    }


@pytest.fixture
def zigzag_positions() -> pd.DataFrame:
    """400-sample reference lap with four 90-degree turns."""
    return build_zigzag()


@pytest.fixture
def circle_positions() -> pd.DataFrame:
    return build_circle()


@pytest.fixture
def corner_telemetry() -> pd.DataFrame:
    return build_corner_telemetry()


@pytest.fixture
def lap_frame() -> LapFactory:
    """Factory: ``{driver: [duration per lap]}`` -> parsed laps DataFrame.

    ``None`` marks a lap without a recorded duration.
    """

    def _make(durations: dict[int, list[float | None]]) -> pd.DataFrame:
        records = [
            lap_record(driver, lap_number, duration)
            for driver, laps in durations.items()
            for lap_number, duration in enumerate(laps, start=1)
        ]
        return parse_laps(records)

    return _make
