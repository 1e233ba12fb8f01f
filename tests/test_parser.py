"""Tests for pitwall.parser."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from pitwall.parser import (
    CAR_DATA_COLUMNS,
    LAP_COLUMNS,
    LOCATION_COLUMNS,
    downsample,
    filter_valid_positions,
    parse_car_data,
    parse_drivers,
    parse_laps,
    parse_locations,
    parse_pits,
    parse_stints,
)
from tests.conftest import lap_record


class TestParseLocations:
    def test_sorted_by_date(self) -> None:
        records = [
            {"date": "2024-03-02T15:00:01.000+00:00", "driver_number": 1, "x": 2, "y": 2, "z": 0},
            {"date": "2024-03-02T15:00:00.000+00:00", "driver_number": 1, "x": 1, "y": 1, "z": 0},
        ]
        df = parse_locations(records)
        assert list(df["x"]) == [1.0, 2.0]
        assert str(df["date"].dt.tz) == "UTC"

    def test_extra_fields_dropped(self) -> None:
        records = [
            {
                "date": "2024-03-02T15:00:00+00:00",
                "driver_number": 1,
                "x": 1,
                "y": 1,
                "z": 0,
                "meeting_key": 1229,
                "session_key": 9472,
            }
        ]
        assert list(parse_locations(records).columns) == LOCATION_COLUMNS

    def test_sentinel_rows_kept(self) -> None:
        records = [{"date": "2024-03-02T15:00:00+00:00", "driver_number": 1, "x": 0, "y": 0}]
        assert len(parse_locations(records)) == 1

    def test_empty(self) -> None:
        df = parse_locations([])
        assert df.empty
        assert list(df.columns) == LOCATION_COLUMNS


class TestParseCarData:
    def test_renames_gear_and_clamps(self) -> None:
        records = [
            {
                "date": "2024-03-02T15:00:00+00:00",
                "driver_number": 1,
                "speed": -3,
                "throttle": 104,
                "brake": None,
                "n_gear": 3,
                "rpm": 11000,
                "drs": 0,
            }
        ]
        df = parse_car_data(records)
        assert list(df.columns) == CAR_DATA_COLUMNS
        row = df.iloc[0]
        assert row["speed"] == 0.0
        assert row["throttle"] == 100.0
        assert row["brake"] == 0.0
        assert row["gear"] == 3

    def test_rows_without_speed_dropped(self) -> None:
        records = [
            {"date": "2024-03-02T15:00:00+00:00", "speed": None, "throttle": 0, "brake": 0},
            {"date": "2024-03-02T15:00:01+00:00", "speed": 250, "throttle": 99, "brake": 0},
        ]
        df = parse_car_data(records)
        assert list(df["speed"]) == [250.0]

    def test_empty(self) -> None:
        assert list(parse_car_data([]).columns) == CAR_DATA_COLUMNS


class TestParseLaps:
    def test_null_duration_is_nan(self) -> None:
        df = parse_laps([lap_record(1, 1, None), lap_record(1, 2, 91.2)])
        assert np.isnan(df["lap_duration"].iloc[0])
        assert df["lap_duration"].iloc[1] == pytest.approx(91.2)

    def test_sorted_by_driver_then_lap(self) -> None:
        df = parse_laps([lap_record(44, 2, 90.0), lap_record(1, 1, 90.0), lap_record(44, 1, 90.0)])
        assert list(zip(df["driver_number"], df["lap_number"], strict=True)) == [
            (1, 1),
            (44, 1),
            (44, 2),
        ]

    def test_pit_out_flag_strict(self) -> None:
        records = [lap_record(1, 1, 90.0), lap_record(1, 2, 90.0, is_pit_out_lap=True)]
        records[0]["is_pit_out_lap"] = None
        df = parse_laps(records)
        assert list(df["is_pit_out_lap"]) == [False, True]

    def test_lap_zero_dropped(self) -> None:
        df = parse_laps([lap_record(1, 0, 90.0), lap_record(1, 1, 90.0)])
        assert list(df["lap_number"]) == [1]

    def test_empty(self) -> None:
        assert list(parse_laps([]).columns) == LAP_COLUMNS


class TestParseStints:
    def test_open_stint_and_compound(self) -> None:
        df = parse_stints(
            [
                {"driver_number": 1, "stint_number": 2, "compound": "hard", "lap_start": 20},
                {
                    "driver_number": 1,
                    "stint_number": 1,
                    "compound": None,
                    "lap_start": 1,
                    "lap_end": 19,
                    "tyre_age_at_start": 3,
                },
            ]
        )
        assert list(df["stint_number"]) == [1, 2]
        assert list(df["compound"]) == ["UNKNOWN", "HARD"]
        assert np.isnan(df["lap_end"].iloc[1])
        assert list(df["tyre_age_at_start"]) == [3, 0]


class TestParsePits:
    def test_unknown_duration(self) -> None:
        df = parse_pits(
            [{"date": "2024-03-02T15:30:00+00:00", "driver_number": 4, "lap_number": 12}]
        )
        assert df["lap_number"].iloc[0] == 12
        assert np.isnan(df["pit_duration"].iloc[0])


class TestParseDrivers:
    def test_deduplicated(self) -> None:
        df = parse_drivers(
            [
                {"driver_number": 44, "name_acronym": "HAM"},
                {"driver_number": 1, "name_acronym": "VER"},
                {"driver_number": 44, "name_acronym": "XXX"},
            ]
        )
        assert list(df["driver_number"]) == [1, 44]
        assert list(df["name_acronym"]) == ["VER", "HAM"]


class TestFilterValidPositions:
    def test_drops_origin_only(self) -> None:
        df = pd.DataFrame({"x": [0.0, 0.0, 5.0, 1.0], "y": [0.0, 3.0, 0.0, 1.0]})
        out = filter_valid_positions(df)
        assert list(zip(out["x"], out["y"], strict=True)) == [(0.0, 3.0), (5.0, 0.0), (1.0, 1.0)]
        assert list(out.index) == [0, 1, 2]

    def test_empty(self) -> None:
        assert filter_valid_positions(pd.DataFrame({"x": [], "y": []})).empty


class TestDownsample:
    def test_uniform_stride(self) -> None:
        df = pd.DataFrame({"i": np.arange(2000)})
        out = downsample(df, 500)
        assert len(out) == 500
        assert list(out["i"].iloc[:3]) == [0, 4, 8]

    def test_stride_floors(self) -> None:
        df = pd.DataFrame({"i": np.arange(1499)})
        out = downsample(df, 500)
        # stride 2 -> 750 rows, not a resample to exactly 500
        assert len(out) == 750

    def test_small_frame_unchanged(self) -> None:
        df = pd.DataFrame({"i": np.arange(120)})
        pd.testing.assert_frame_equal(downsample(df, 500), df)

    def test_invalid_target(self) -> None:
        with pytest.raises(ValueError, match="target_points"):
            downsample(pd.DataFrame({"i": [1]}), 0)
