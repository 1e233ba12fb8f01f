"""Full-lap speed traces on a shared lap-percent axis.

Drivers' fastest laps have different sample counts, so each trace is
plotted against its position within the lap (0-100%) rather than by
sample index or time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
import pandas as pd

from pitwall.parser import downsample

logger = logging.getLogger(__name__)

# Points kept per trace after downsampling
SPEED_TRACE_POINTS = 200

# Traces overlaid in one chart
MAX_TRACE_DRIVERS = 4


@dataclass
class SpeedTrace:
    """Speed over one lap, with each sample's position in the lap."""

    driver_number: int
    lap_number: int
    lap_pct: np.ndarray
    speed_kph: np.ndarray


def lap_speed_trace(
    car_data: pd.DataFrame,
    driver_number: int,
    lap_number: int,
    target_points: int = SPEED_TRACE_POINTS,
) -> SpeedTrace | None:
    """Downsample a lap's telemetry and place it on a 0-100 lap-percent axis.

    Sample ``i`` of ``n`` lands at ``100 * i / (n - 1)``, so the first and
    last samples sit at 0 and 100.  A single sample sits at 0.

    Returns None when the lap has no speed samples.
    """
    if car_data.empty or "speed" not in car_data.columns:
        return None
    samples = car_data.dropna(subset=["speed"])
    if samples.empty:
        logger.debug("Driver %d lap %d has no speed samples", driver_number, lap_number)
        return None

    sampled = downsample(samples, target_points)
    n = len(sampled)
    lap_pct = np.linspace(0.0, 100.0, n) if n > 1 else np.zeros(1)
    return SpeedTrace(
        driver_number=driver_number,
        lap_number=lap_number,
        lap_pct=lap_pct,
        speed_kph=sampled["speed"].to_numpy(dtype=np.float64),
    )


def select_trace_drivers(
    drivers: Iterable[int], max_drivers: int = MAX_TRACE_DRIVERS
) -> list[int]:
    """Drop repeats, then keep the *max_drivers* most recently picked drivers."""
    unique = list(dict.fromkeys(drivers))
    if len(unique) > max_drivers:
        logger.debug("Keeping the last %d of %d trace drivers", max_drivers, len(unique))
        return unique[-max_drivers:]
    return unique
