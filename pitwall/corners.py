"""Corner detection from heading changes along a reference lap's position trace."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from pitwall.constants import CORNER_WINDOW_FRACTION

logger = logging.getLogger(__name__)

# Detection parameters
HEADING_CHANGE_THRESHOLD = 0.25  # rad -- below this is "straight"
MIN_WINDOW = 10  # samples
WINDOW_DIVISOR = 30  # window = N / 30 samples for long traces
DEDUP_FACTOR = 1.5  # candidates closer than 1.5 windows are the same corner
MAX_CORNERS = 20


@dataclass(frozen=True)
class Corner:
    """Detected corner on the reference lap.

    ``index`` is a position within the reference sample sequence, not an
    official corner number.  ``number`` is the 1-based ordinal in lap
    progress order.  Both are only meaningful for the lap they came from.
    """

    number: int
    index: int
    center_x: float
    center_y: float
    heading_change_rad: float
    reference_window: pd.DataFrame = field(compare=False, repr=False)


def step_window_size(n_samples: int, min_window: int = MIN_WINDOW) -> int:
    """Heading window used for a trace of *n_samples* points."""
    return max(min_window, n_samples // WINDOW_DIVISOR)


def _normalize_heading_change(diff: np.ndarray) -> np.ndarray:
    """Fold absolute heading differences into [0, pi]."""
    diff = np.abs(diff)
    return np.where(diff > np.pi, 2 * np.pi - diff, diff)


def _find_candidates(
    x: np.ndarray,
    y: np.ndarray,
    window: int,
    threshold: float,
) -> list[tuple[int, float]]:
    """Slide the heading window over the trace and collect sharp-turn centres.

    Centres advance by ``window // 2`` and must satisfy ``i - window >= 0``
    and ``i + window < N``.

    Returns (index, heading_change_rad) pairs in ascending index order.
    """
    n = len(x)
    step = max(1, window // 2)
    centers = np.arange(window, n - window, step)
    if len(centers) == 0:
        return []

    prev = centers - window
    nxt = centers + window
    heading_in = np.arctan2(y[centers] - y[prev], x[centers] - x[prev])
    heading_out = np.arctan2(y[nxt] - y[centers], x[nxt] - x[centers])
    change = _normalize_heading_change(heading_out - heading_in)

    mask = change > threshold
    return list(zip(centers[mask].tolist(), change[mask].tolist(), strict=True))


def _deduplicate(
    candidates: list[tuple[int, float]],
    min_gap: float,
) -> list[tuple[int, float]]:
    """Keep a candidate only if no accepted one lies within *min_gap* samples.

    Consecutive window steps over one physical corner all fire; this keeps
    the first of them.
    """
    accepted: list[tuple[int, float]] = []
    for idx, change in sorted(candidates):
        if any(abs(idx - kept) < min_gap for kept, _ in accepted):
            continue
        accepted.append((idx, change))
    return accepted


def detect_corners(
    positions: pd.DataFrame,
    threshold: float = HEADING_CHANGE_THRESHOLD,
    *,
    min_window: int = MIN_WINDOW,
    max_corners: int = MAX_CORNERS,
    window_fraction: float = CORNER_WINDOW_FRACTION,
) -> list[Corner]:
    """Detect corners in one reference lap's position samples.

    Parameters
    ----------
    positions:
        Time-ordered position samples with ``x`` and ``y`` columns.  Sentinel
        ``(0, 0)`` rows must already be removed.
    threshold:
        Minimum heading change (radians) between the incoming and outgoing
        window for a point to count as a corner.
    min_window:
        Lower bound on the heading window (samples).
    max_corners:
        Catalog size cap.
    window_fraction:
        Fraction of the lap's samples kept either side of each corner in
        ``reference_window``.

    Returns
    -------
    Corners in track-progress order (ascending index), numbered from 1.
    Traces shorter than four windows give an empty list.
    """
    n = len(positions)
    window = step_window_size(n, min_window)
    if n < 4 * window:
        logger.debug("Trace too short for corner detection: %d samples, window %d", n, window)
        return []

    x = positions["x"].to_numpy(dtype=np.float64)
    y = positions["y"].to_numpy(dtype=np.float64)

    candidates = _find_candidates(x, y, window, threshold)
    accepted = _deduplicate(candidates, DEDUP_FACTOR * window)[:max_corners]

    segment = int(n * window_fraction)
    corners: list[Corner] = []
    for number, (idx, change) in enumerate(accepted, start=1):
        start_idx = max(0, idx - segment)
        end_idx = min(n - 1, idx + segment)
        corners.append(
            Corner(
                number=number,
                index=idx,
                center_x=float(x[idx]),
                center_y=float(y[idx]),
                heading_change_rad=round(change, 4),
                reference_window=positions.iloc[start_idx : end_idx + 1].reset_index(drop=True),
            )
        )

    logger.debug(
        "Detected %d corner(s) from %d candidate(s) over %d samples",
        len(corners),
        len(candidates),
        n,
    )
    return corners


def find_corner(corners: list[Corner], number: int) -> Corner:
    """Look up a corner by its 1-based number.

    Raises
    ------
    ValueError
        If no corner carries *number*.
    """
    for corner in corners:
        if corner.number == number:
            return corner
    msg = f"Corner {number} not found ({len(corners)} detected)"
    raise ValueError(msg)
