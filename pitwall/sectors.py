"""Best-lap table: per-driver fastest lap, sector splits, and gaps to the leader."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from pitwall.laps import valid_laps

SECTOR_COLUMNS: tuple[str, str, str] = (
    "duration_sector_1",
    "duration_sector_2",
    "duration_sector_3",
)


@dataclass
class BestLapRow:
    """A driver's fastest valid lap with its sector splits."""

    driver_number: int
    lap_number: int | None
    lap_time_s: float | None
    sector_1_s: float | None
    sector_2_s: float | None
    sector_3_s: float | None
    gap_to_leader_s: float | None = None


@dataclass
class SectorBests:
    """Fastest time per sector across the best-lap table."""

    sector_1_s: float | None
    sector_2_s: float | None
    sector_3_s: float | None


def _optional(value: object) -> float | None:
    if value is None or pd.isna(value):
        return None
    return round(float(value), 3)  # type: ignore[arg-type]


def _best_lap_records(laps: pd.DataFrame) -> dict[int, pd.Series]:
    """Each driver's fastest valid lap record; the earlier lap wins ties."""
    candidates = valid_laps(laps)
    if candidates.empty:
        return {}
    return {
        int(driver_number): group.loc[group["lap_duration"].idxmin()]
        for driver_number, group in candidates.groupby("driver_number", sort=True)
    }


def best_lap_table(
    laps: pd.DataFrame,
    driver_numbers: Iterable[int] | None = None,
) -> list[BestLapRow]:
    """Build the best-lap table, fastest driver first.

    Parameters
    ----------
    laps:
        All lap records for the session.
    driver_numbers:
        Drivers to include.  Defaults to every driver in *laps*.  Drivers
        without a valid lap are listed last with empty times.

    Returns
    -------
    Rows sorted by lap time.  The leader and untimed drivers have no gap.
    """
    if driver_numbers is None:
        driver_numbers = sorted(set(laps["driver_number"].tolist())) if not laps.empty else []

    best = _best_lap_records(laps)

    rows: list[BestLapRow] = []
    for driver_number in driver_numbers:
        lap = best.get(driver_number)
        if lap is None:
            rows.append(BestLapRow(driver_number, None, None, None, None, None))
            continue
        s1, s2, s3 = (_optional(lap[col]) for col in SECTOR_COLUMNS)
        rows.append(
            BestLapRow(
                driver_number=driver_number,
                lap_number=int(lap["lap_number"]),
                lap_time_s=_optional(lap["lap_duration"]),
                sector_1_s=s1,
                sector_2_s=s2,
                sector_3_s=s3,
            )
        )

    # Stable sort: timed rows by lap time, untimed rows keep input order at the end
    rows.sort(key=lambda r: (r.lap_time_s is None, r.lap_time_s or 0.0))

    leader_time = rows[0].lap_time_s if rows else None
    for i, row in enumerate(rows):
        if i == 0 or row.lap_time_s is None or leader_time is None:
            continue
        row.gap_to_leader_s = round(row.lap_time_s - leader_time, 3)

    return rows


def fastest_sectors(rows: list[BestLapRow]) -> SectorBests:
    """Minimum of each sector over the rows' best laps."""

    def _min(values: list[float | None]) -> float | None:
        present = [v for v in values if v is not None]
        return min(present) if present else None

    return SectorBests(
        sector_1_s=_min([r.sector_1_s for r in rows]),
        sector_2_s=_min([r.sector_2_s for r in rows]),
        sector_3_s=_min([r.sector_3_s for r in rows]),
    )
