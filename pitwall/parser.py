"""Normalize OpenF1 JSON records into telemetry DataFrames.

Every parser returns a DataFrame with a fixed set of canonical columns, even
for an empty payload, so downstream code never has to special-case missing
columns.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pandas as pd

LOCATION_COLUMNS: list[str] = ["date", "driver_number", "x", "y", "z"]
CAR_DATA_COLUMNS: list[str] = [
    "date",
    "driver_number",
    "speed",
    "throttle",
    "brake",
    "gear",
    "rpm",
    "drs",
]
LAP_COLUMNS: list[str] = [
    "driver_number",
    "lap_number",
    "date_start",
    "lap_duration",
    "is_pit_out_lap",
    "duration_sector_1",
    "duration_sector_2",
    "duration_sector_3",
]
STINT_COLUMNS: list[str] = [
    "driver_number",
    "stint_number",
    "compound",
    "lap_start",
    "lap_end",
    "tyre_age_at_start",
]
PIT_COLUMNS: list[str] = ["date", "driver_number", "lap_number", "pit_duration"]
DRIVER_COLUMNS: list[str] = [
    "driver_number",
    "name_acronym",
    "full_name",
    "team_name",
    "team_colour",
]

# OpenF1 calls the gear channel n_gear
_CAR_DATA_RENAMES: dict[str, str] = {"n_gear": "gear"}

# Uniform-stride target before geometric analysis
DEFAULT_TRACK_POINTS = 500

Records = Sequence[dict[str, Any]]


def _to_frame(
    records: Records,
    columns: list[str],
    renames: dict[str, str] | None = None,
) -> pd.DataFrame:
    """Build a DataFrame restricted to *columns*, adding any that are missing."""
    if not records:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame.from_records(list(records))
    if renames:
        df = df.rename(columns=renames)
    return df.reindex(columns=columns)


def _coerce_numeric(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    for col in columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def _coerce_dates(df: pd.DataFrame, column: str) -> pd.DataFrame:
    df[column] = pd.to_datetime(df[column], utc=True, format="ISO8601", errors="coerce")
    return df


def parse_locations(records: Records) -> pd.DataFrame:
    """Parse ``/location`` records into time-ordered position samples.

    Sentinel ``(0, 0)`` rows are kept here; call
    :func:`filter_valid_positions` before any geometric use.
    """
    df = _to_frame(records, LOCATION_COLUMNS)
    if df.empty:
        return df
    df = _coerce_dates(df, "date")
    df = _coerce_numeric(df, ["driver_number", "x", "y", "z"])
    df = df.dropna(subset=["date", "x", "y"])
    return df.sort_values("date", kind="mergesort").reset_index(drop=True)


def parse_car_data(records: Records) -> pd.DataFrame:
    """Parse ``/car_data`` records into time-ordered telemetry samples."""
    df = _to_frame(records, CAR_DATA_COLUMNS, _CAR_DATA_RENAMES)
    if df.empty:
        return df
    df = _coerce_dates(df, "date")
    df = _coerce_numeric(df, CAR_DATA_COLUMNS[1:])
    df = df.dropna(subset=["date", "speed"])

    # Sanity: clamp speed to >= 0 and pedal channels to [0, 100]
    df["speed"] = df["speed"].clip(lower=0.0)
    df["throttle"] = df["throttle"].fillna(0.0).clip(0.0, 100.0)
    df["brake"] = df["brake"].fillna(0.0).clip(0.0, 100.0)

    return df.sort_values("date", kind="mergesort").reset_index(drop=True)


def parse_laps(records: Records) -> pd.DataFrame:
    """Parse ``/laps`` records.

    ``lap_duration`` and sector columns are NaN when OpenF1 reports null.
    ``is_pit_out_lap`` is only True when the record says so explicitly.
    """
    df = _to_frame(records, LAP_COLUMNS)
    if df.empty:
        return df
    df = _coerce_dates(df, "date_start")
    df = _coerce_numeric(
        df,
        [
            "driver_number",
            "lap_number",
            "lap_duration",
            "duration_sector_1",
            "duration_sector_2",
            "duration_sector_3",
        ],
    )
    df = df.dropna(subset=["driver_number", "lap_number"])
    df["driver_number"] = df["driver_number"].astype(int)
    df["lap_number"] = df["lap_number"].astype(int)
    df = df[df["lap_number"] >= 1].copy()
    df["is_pit_out_lap"] = df["is_pit_out_lap"].eq(True)
    return df.sort_values(["driver_number", "lap_number"], kind="mergesort").reset_index(
        drop=True
    )


def parse_stints(records: Records) -> pd.DataFrame:
    """Parse ``/stints`` records.  ``lap_end`` is NaN for an open stint."""
    df = _to_frame(records, STINT_COLUMNS)
    if df.empty:
        return df
    df = _coerce_numeric(
        df, ["driver_number", "stint_number", "lap_start", "lap_end", "tyre_age_at_start"]
    )
    df = df.dropna(subset=["driver_number", "stint_number", "lap_start"])
    df["driver_number"] = df["driver_number"].astype(int)
    df["stint_number"] = df["stint_number"].astype(int)
    df["lap_start"] = df["lap_start"].astype(int)
    df["tyre_age_at_start"] = df["tyre_age_at_start"].fillna(0).astype(int)
    df["compound"] = df["compound"].fillna("UNKNOWN").astype(str).str.upper()
    return df.sort_values(["driver_number", "stint_number"], kind="mergesort").reset_index(
        drop=True
    )


def parse_pits(records: Records) -> pd.DataFrame:
    """Parse ``/pit`` records.  ``pit_duration`` is NaN when unknown."""
    df = _to_frame(records, PIT_COLUMNS)
    if df.empty:
        return df
    df = _coerce_dates(df, "date")
    df = _coerce_numeric(df, ["driver_number", "lap_number", "pit_duration"])
    df = df.dropna(subset=["driver_number", "lap_number"])
    df["driver_number"] = df["driver_number"].astype(int)
    df["lap_number"] = df["lap_number"].astype(int)
    return df.sort_values(["driver_number", "lap_number"], kind="mergesort").reset_index(
        drop=True
    )


def parse_drivers(records: Records) -> pd.DataFrame:
    """Parse ``/drivers`` records, one row per driver number."""
    df = _to_frame(records, DRIVER_COLUMNS)
    if df.empty:
        return df
    df = _coerce_numeric(df, ["driver_number"])
    df = df.dropna(subset=["driver_number"])
    df["driver_number"] = df["driver_number"].astype(int)
    df = df.drop_duplicates(subset="driver_number", keep="first")
    return df.sort_values("driver_number", kind="mergesort").reset_index(drop=True)


def filter_valid_positions(df: pd.DataFrame) -> pd.DataFrame:
    """Drop the ``x == 0 and y == 0`` "no fix" sentinel rows."""
    if df.empty:
        return df.reset_index(drop=True)
    sentinel = (df["x"] == 0) & (df["y"] == 0)
    return df[~sentinel].reset_index(drop=True)


def downsample(df: pd.DataFrame, target_points: int = DEFAULT_TRACK_POINTS) -> pd.DataFrame:
    """Keep every Nth row so that roughly *target_points* rows remain.

    This is a uniform stride over the rows, not a smoothing filter.  The
    stride is ``max(1, len(df) // target_points)``, so frames already at or
    under the target are returned unchanged.
    """
    if target_points < 1:
        msg = f"target_points must be >= 1, got {target_points}"
        raise ValueError(msg)
    stride = max(1, len(df) // target_points)
    return df.iloc[::stride].reset_index(drop=True)
