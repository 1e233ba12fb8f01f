"""Lap selection: fastest laps, the reference lap, lap time windows, standings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import pandas as pd

from pitwall.constants import DEFAULT_LAP_DURATION_S

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LapWindow:
    """One driver's lap, located in session time."""

    driver_number: int
    lap_number: int
    date_start: datetime
    lap_duration_s: float | None

    def time_range(self, padding_s: float = 0.0) -> tuple[datetime, datetime]:
        """Return ``(start, end)`` covering the lap plus *padding_s* seconds.

        Laps without a recorded duration are assumed to last
        ``DEFAULT_LAP_DURATION_S``.
        """
        duration = (
            self.lap_duration_s if self.lap_duration_s is not None else DEFAULT_LAP_DURATION_S
        )
        end = self.date_start + timedelta(seconds=duration + padding_s)
        return self.date_start, end


@dataclass
class DriverStanding:
    """Cumulative session standing for one driver."""

    driver_number: int
    total_time_s: float
    best_lap_s: float | None
    laps_completed: int


def valid_laps(laps: pd.DataFrame, *, exclude_pit_out: bool = True) -> pd.DataFrame:
    """Return laps with a recorded duration, optionally dropping pit-out laps."""
    if laps.empty:
        return laps
    mask = laps["lap_duration"].notna()
    if exclude_pit_out:
        mask &= ~laps["is_pit_out_lap"].astype(bool)
    return laps[mask]


def _to_window(row: pd.Series) -> LapWindow:
    duration = row["lap_duration"]
    return LapWindow(
        driver_number=int(row["driver_number"]),
        lap_number=int(row["lap_number"]),
        date_start=row["date_start"].to_pydatetime(),
        lap_duration_s=None if pd.isna(duration) else float(duration),
    )


def fastest_laps(laps: pd.DataFrame) -> dict[int, LapWindow]:
    """Find each driver's fastest valid lap.

    Valid means a recorded duration and not a pit-out lap.  Laps without a
    start time cannot be located in the sample streams and are ignored.  On
    equal durations the earlier lap wins.

    Returns
    -------
    Dict of driver_number -> LapWindow, ascending by driver number.
    """
    candidates = valid_laps(laps)
    if candidates.empty:
        return {}

    candidates = candidates[candidates["date_start"].notna()]
    result: dict[int, LapWindow] = {}
    for driver_number, group in candidates.groupby("driver_number", sort=True):
        best_idx = group["lap_duration"].idxmin()
        result[int(driver_number)] = _to_window(group.loc[best_idx])

    return result


def reference_lap(fastest: dict[int, LapWindow]) -> LapWindow | None:
    """Pick the session's fastest lap, used to build the corner catalog.

    Ties go to the lower driver number.
    """
    if not fastest:
        return None

    def _sort_key(window: LapWindow) -> tuple[float, int]:
        duration = window.lap_duration_s
        return (duration if duration is not None else float("inf"), window.driver_number)

    return min(fastest.values(), key=_sort_key)


def driver_standings(laps: pd.DataFrame) -> list[DriverStanding]:
    """Rank drivers by total recorded lap time (pit-out laps included).

    Drivers whose total is zero (no timed laps) are left out.
    """
    timed = valid_laps(laps, exclude_pit_out=False)
    if timed.empty:
        return []

    standings: list[DriverStanding] = []
    for driver_number, group in timed.groupby("driver_number", sort=True):
        total = float(group["lap_duration"].sum())
        if total <= 0:
            continue
        standings.append(
            DriverStanding(
                driver_number=int(driver_number),
                total_time_s=round(total, 3),
                best_lap_s=round(float(group["lap_duration"].min()), 3),
                laps_completed=len(group),
            )
        )

    standings.sort(key=lambda s: (s.total_time_s, s.driver_number))
    return standings


def fastest_lap_holder(standings: list[DriverStanding]) -> DriverStanding | None:
    """Return the standing with the quickest single lap, or None."""
    timed = [s for s in standings if s.best_lap_s is not None]
    if not timed:
        return None
    return min(timed, key=lambda s: (s.best_lap_s, s.driver_number))


def top_drivers(standings: list[DriverStanding], n: int = 3) -> list[int]:
    """Driver numbers of the first *n* standings."""
    return [s.driver_number for s in standings[:n]]
