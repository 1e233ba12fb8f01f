"""Align a reference-lap corner onto another driver's sample stream.

Alignment is by positional ratio: a corner found at 40% of the reference
lap's samples is looked up at 40% of the target lap's samples.  It is not a
time or arc-length alignment, so it assumes comparable sampling rates and
lap coverage.  That holds for same-session laps but degrades when a lap
includes the pit lane or a safety-car phase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd

from pitwall.constants import CORNER_WINDOW_FRACTION, MIN_WINDOW_SAMPLES
from pitwall.corners import Corner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlignedSegment:
    """A contiguous window of a target driver's samples around a corner."""

    center_index: int
    start_index: int
    end_index: int  # inclusive
    samples: pd.DataFrame = field(compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.samples)


def positional_ratio(corner_index: int, n_reference: int) -> float:
    """Fraction of the reference lap covered at *corner_index*, within [0, 1]."""
    if n_reference <= 0:
        return 0.0
    return min(1.0, max(0.0, corner_index / n_reference))


def extract_window(
    samples: pd.DataFrame,
    ratio: float,
    *,
    window_fraction: float = CORNER_WINDOW_FRACTION,
) -> AlignedSegment:
    """Cut ``floor(N * window_fraction)`` samples either side of ``floor(ratio * N)``.

    Indices are clamped into ``[0, N - 1]``.  An empty input yields an empty
    segment.
    """
    n = len(samples)
    if n == 0:
        return AlignedSegment(
            center_index=0, start_index=0, end_index=-1, samples=samples.iloc[0:0]
        )

    center = min(n - 1, int(ratio * n))
    segment = int(n * window_fraction)
    start_idx = max(0, center - segment)
    end_idx = min(n - 1, center + segment)

    return AlignedSegment(
        center_index=center,
        start_index=start_idx,
        end_index=end_idx,
        samples=samples.iloc[start_idx : end_idx + 1].reset_index(drop=True),
    )


def align_to_corner(
    samples: pd.DataFrame,
    corner: Corner,
    n_reference: int,
    *,
    window_fraction: float = CORNER_WINDOW_FRACTION,
    min_samples: int = MIN_WINDOW_SAMPLES,
) -> AlignedSegment | None:
    """Extract the window of *samples* matching *corner* on the reference lap.

    Parameters
    ----------
    samples:
        The target driver's valid position or telemetry samples for one lap.
    corner:
        Corner from the reference lap's catalog.
    n_reference:
        Sample count of the reference lap the corner was detected on.

    Returns
    -------
    The aligned segment, or None when it holds fewer than *min_samples*
    samples.  None means "leave this driver out of the corner", not failure.
    """
    ratio = positional_ratio(corner.index, n_reference)
    segment = extract_window(samples, ratio, window_fraction=window_fraction)
    if len(segment) < min_samples:
        logger.info(
            "Skipping corner %d: only %d of %d required samples",
            corner.number,
            len(segment),
            min_samples,
        )
        return None
    return segment
