"""Corner kinematics: apex, entry/exit speed, braking and throttle-on distances."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from pitwall.constants import METERS_PER_SAMPLE

# Pedal thresholds (percent)
BRAKE_THRESHOLD = 10.0
THROTTLE_ON_THRESHOLD = 50.0


@dataclass
class DriverCornerMetrics:
    """One driver's kinematic profile through a corner window.

    Distances are sample counts scaled by a fixed meters-per-sample
    heuristic, not measured distances.
    """

    driver_number: int
    entry_speed_kph: float
    min_speed_kph: float
    exit_speed_kph: float
    braking_distance_m: float
    throttle_on_distance_m: float
    apex_index: int
    braking_start_index: int
    throttle_on_index: int
    trace_distance_m: np.ndarray  # negative before the apex, 0 at the apex
    trace_speed_kph: np.ndarray


def _find_braking_start(brake: np.ndarray, apex_idx: int) -> int:
    """First index before the apex with brake above threshold, else 0."""
    hits = np.flatnonzero(brake[:apex_idx] > BRAKE_THRESHOLD)
    return int(hits[0]) if len(hits) else 0


def _find_throttle_on(throttle: np.ndarray, apex_idx: int) -> int:
    """First index from the apex onward with throttle above threshold, else the apex."""
    hits = np.flatnonzero(throttle[apex_idx:] > THROTTLE_ON_THRESHOLD)
    return apex_idx + int(hits[0]) if len(hits) else apex_idx


def extract_corner_metrics(
    window: pd.DataFrame,
    driver_number: int,
    meters_per_sample: float = METERS_PER_SAMPLE,
) -> DriverCornerMetrics | None:
    """Compute corner metrics from a telemetry window.

    Parameters
    ----------
    window:
        Telemetry samples around one corner with ``speed``, ``throttle``
        and ``brake`` columns, as cut by the segment aligner.
    driver_number:
        Driver the window belongs to.
    meters_per_sample:
        Approximate distance covered between consecutive samples.

    Returns
    -------
    DriverCornerMetrics, or None for an empty window.  Minimum window length
    is enforced by the aligner, not here.
    """
    if window.empty:
        return None

    speed = window["speed"].to_numpy(dtype=np.float64)
    brake = window["brake"].to_numpy(dtype=np.float64)
    throttle = window["throttle"].to_numpy(dtype=np.float64)

    # np.argmin returns the first occurrence on ties
    apex_idx = int(np.argmin(speed))
    braking_idx = _find_braking_start(brake, apex_idx)
    throttle_idx = _find_throttle_on(throttle, apex_idx)

    offsets = np.arange(len(speed)) - apex_idx

    return DriverCornerMetrics(
        driver_number=driver_number,
        entry_speed_kph=float(speed[0]),
        min_speed_kph=float(speed[apex_idx]),
        exit_speed_kph=float(speed[-1]),
        braking_distance_m=float((apex_idx - braking_idx) * meters_per_sample),
        throttle_on_distance_m=float((throttle_idx - apex_idx) * meters_per_sample),
        apex_index=apex_idx,
        braking_start_index=braking_idx,
        throttle_on_index=throttle_idx,
        trace_distance_m=offsets * meters_per_sample,
        trace_speed_kph=speed,
    )
