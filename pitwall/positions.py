"""Lap-by-lap running order reconstructed from lap durations.

Each driver's lap durations are accumulated in lap-number order and drivers
are ranked by cumulative time after every lap.  A driver with no valid lap
at some lap number keeps their previous total for that lap's ranking.  This
is an approximation: a lapped or retired driver is not detected, their total
simply stops growing.

Ties on cumulative time are broken by ascending driver number.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from pitwall.laps import valid_laps


@dataclass(frozen=True)
class PositionEntry:
    """A driver's position after completing (or carrying over) one lap."""

    lap_number: int
    driver_number: int
    position: int
    cumulative_time_s: float


def reconstruct_positions(
    laps: pd.DataFrame,
    *,
    exclude_pit_out_laps: bool = False,
) -> list[PositionEntry]:
    """Rank every timed driver after each lap number.

    Parameters
    ----------
    laps:
        All lap records for the session, including invalid ones.
    exclude_pit_out_laps:
        Also treat pit-out laps as invalid.  Off by default, since a pit-out
        lap's time is part of a driver's race time.

    Returns
    -------
    Entries ordered by lap number, then position.  Drivers without a single
    valid lap never appear.
    """
    usable = valid_laps(laps, exclude_pit_out=exclude_pit_out_laps)
    if usable.empty:
        return []

    # One record per (driver, lap); the first one wins
    usable = usable.drop_duplicates(subset=["driver_number", "lap_number"], keep="first")

    cumulative: dict[int, float] = {}
    entries: list[PositionEntry] = []
    for lap_number, group in usable.groupby("lap_number", sort=True):
        for driver_number, duration in zip(
            group["driver_number"].tolist(), group["lap_duration"].tolist(), strict=True
        ):
            cumulative[int(driver_number)] = cumulative.get(int(driver_number), 0.0) + float(
                duration
            )

        ranked = sorted(cumulative.items(), key=lambda item: (item[1], item[0]))
        for rank, (driver_number, total) in enumerate(ranked):
            entries.append(
                PositionEntry(
                    lap_number=int(lap_number),
                    driver_number=driver_number,
                    position=rank + 1,
                    cumulative_time_s=round(total, 3),
                )
            )

    return entries


def positions_by_driver(entries: list[PositionEntry]) -> dict[int, list[PositionEntry]]:
    """Group position entries into a per-driver series ordered by lap."""
    series: dict[int, list[PositionEntry]] = {}
    for entry in sorted(entries, key=lambda e: (e.driver_number, e.lap_number)):
        series.setdefault(entry.driver_number, []).append(entry)
    return series
