"""Shared constants for the pitwall analysis core.

Centralises sampling heuristics used across multiple modules.
"""

from __future__ import annotations

# OpenF1 position and car data are sampled at ~3.7 Hz.  At ~360 km/h a car
# covers ~100 m/s, so one sample spans roughly 27 m.  Not measured per lap.
METERS_PER_SAMPLE: float = 27.0

# Fraction of the lap's samples taken either side of a corner centre
CORNER_WINDOW_FRACTION: float = 0.08

# Windows shorter than this are excluded from a corner comparison
MIN_WINDOW_SAMPLES: int = 10

# Lap duration assumed when a lap record has none (seconds)
DEFAULT_LAP_DURATION_S: float = 90.0

# Extra time fetched past the end of a lap (seconds)
POSITION_PADDING_S: float = 5.0
TELEMETRY_PADDING_S: float = 2.0
