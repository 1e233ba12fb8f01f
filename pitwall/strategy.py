"""Tyre strategy and pit stop summaries per driver."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

# Session length assumed when no lap records are available
DEFAULT_SESSION_LAPS = 60


@dataclass
class StintSpan:
    """A run on one set of tyres."""

    stint_number: int
    compound: str
    lap_start: int
    lap_end: int
    tyre_age_at_start: int

    @property
    def laps(self) -> int:
        return self.lap_end - self.lap_start + 1


@dataclass
class DriverStrategy:
    """All stints for one driver, in stint order."""

    driver_number: int
    stints: list[StintSpan]
    total_laps: int


@dataclass
class PitStop:
    """One pit stop with the compound change around it."""

    lap_number: int
    duration_s: float | None
    compound_from: str | None
    compound_to: str | None


@dataclass
class DriverPitSummary:
    """A driver's pit stops and the total time spent in them."""

    driver_number: int
    pit_stops: list[PitStop]
    total_pit_time_s: float
    stints: list[StintSpan] = field(default_factory=list)


def _session_laps(laps: pd.DataFrame | None, stints: pd.DataFrame) -> int:
    if laps is not None and not laps.empty:
        return int(laps["lap_number"].max())
    if not stints.empty:
        return max(DEFAULT_SESSION_LAPS, int(stints["lap_start"].max()))
    return DEFAULT_SESSION_LAPS


def _resolve_stints(driver_stints: pd.DataFrame, session_laps: int) -> list[StintSpan]:
    """Close open stints at the next stint's start, or at the session's last lap."""
    rows = driver_stints.sort_values("stint_number", kind="mergesort").to_dict("records")
    spans: list[StintSpan] = []
    for i, row in enumerate(rows):
        lap_end = row["lap_end"]
        if pd.isna(lap_end):
            lap_end = rows[i + 1]["lap_start"] - 1 if i + 1 < len(rows) else session_laps
        spans.append(
            StintSpan(
                stint_number=int(row["stint_number"]),
                compound=str(row["compound"]),
                lap_start=int(row["lap_start"]),
                lap_end=int(lap_end),
                tyre_age_at_start=int(row["tyre_age_at_start"]),
            )
        )
    return spans


def driver_strategies(
    stints: pd.DataFrame,
    laps: pd.DataFrame | None = None,
) -> list[DriverStrategy]:
    """Build each driver's stint sequence.

    Returns
    -------
    Strategies sorted by laps covered (most first), then driver number.
    """
    if stints.empty:
        return []

    session_laps = _session_laps(laps, stints)
    strategies: list[DriverStrategy] = []
    for driver_number, group in stints.groupby("driver_number", sort=True):
        spans = _resolve_stints(group, session_laps)
        strategies.append(
            DriverStrategy(
                driver_number=int(driver_number),
                stints=spans,
                total_laps=max(s.lap_end for s in spans),
            )
        )

    strategies.sort(key=lambda s: (-s.total_laps, s.driver_number))
    return strategies


def _compound_before(spans: list[StintSpan], lap_number: int) -> str | None:
    for span in spans:
        if span.lap_end == lap_number or span.lap_start <= lap_number <= span.lap_end:
            return span.compound
    return None


def _compound_after(spans: list[StintSpan], lap_number: int) -> str | None:
    for span in spans:
        if span.lap_start in (lap_number, lap_number + 1):
            return span.compound
    return None


def pit_stop_summary(
    pits: pd.DataFrame,
    stints: pd.DataFrame,
    laps: pd.DataFrame | None = None,
) -> list[DriverPitSummary]:
    """Summarize pit stops per driver, matching each stop to its tyre change.

    Stops with an unknown duration count as zero towards the total.

    Returns
    -------
    Summaries for drivers with at least one stop, quickest total first.
    """
    if pits.empty:
        return []

    session_laps = _session_laps(laps, stints)
    summaries: list[DriverPitSummary] = []
    for driver_number, group in pits.groupby("driver_number", sort=True):
        spans: list[StintSpan] = []
        if not stints.empty:
            own = stints[stints["driver_number"] == driver_number]
            if not own.empty:
                spans = _resolve_stints(own, session_laps)

        stops: list[PitStop] = []
        for row in group.sort_values("lap_number", kind="mergesort").to_dict("records"):
            lap_number = int(row["lap_number"])
            duration = row["pit_duration"]
            stops.append(
                PitStop(
                    lap_number=lap_number,
                    duration_s=None if pd.isna(duration) else round(float(duration), 3),
                    compound_from=_compound_before(spans, lap_number),
                    compound_to=_compound_after(spans, lap_number),
                )
            )

        total = sum(s.duration_s or 0.0 for s in stops)
        summaries.append(
            DriverPitSummary(
                driver_number=int(driver_number),
                pit_stops=stops,
                total_pit_time_s=round(total, 3),
                stints=spans,
            )
        )

    summaries.sort(key=lambda s: (s.total_pit_time_s, s.driver_number))
    return summaries
