"""Tests for serialization helpers."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from pitwall.corners import Corner
from pitwall.kinematics import DriverCornerMetrics

from backend.api.services.serializers import (
    dataclass_to_dict,
    dataframe_to_columnar,
    numpy_to_list,
)


def test_dataframe_to_columnar_basic() -> None:
    """Convert DataFrame columns to columnar dict."""
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0], "y": [4.0, 5.0, 6.0], "z": [0.0, 0.0, 0.0]})
    result = dataframe_to_columnar(df, ["x", "y"])
    assert result == {"x": [1.0, 2.0, 3.0], "y": [4.0, 5.0, 6.0]}


def test_dataframe_to_columnar_missing_column() -> None:
    """Missing columns are skipped silently."""
    df = pd.DataFrame({"x": [1.0]})
    result = dataframe_to_columnar(df, ["x", "nonexistent"])
    assert "x" in result
    assert "nonexistent" not in result


def test_dataframe_to_columnar_integer_column() -> None:
    df = pd.DataFrame({"x": np.array([-1200, 350], dtype=np.int64)})
    result = dataframe_to_columnar(df, ["x"])
    assert result["x"] == [-1200.0, 350.0]
    assert all(type(v) is float for v in result["x"])


def test_numpy_to_list() -> None:
    """Convert numpy array to Python list."""
    result = numpy_to_list(np.array([1.0, 2.5, 3.7]))
    assert result == [1.0, 2.5, 3.7]
    assert isinstance(result, list)


@dataclass
class Inner:
    x: int
    y: float


@dataclass
class Outer:
    """Nested dataclass mixing containers, arrays and a sample frame."""

    name: str
    inner: Inner
    items: list[Inner]
    mapping: dict[str, Inner]
    array: np.ndarray
    df: pd.DataFrame


def test_dataclass_to_dict_corner() -> None:
    corner = Corner(number=3, index=151, center_x=-812.5, center_y=2210.0, heading_change_rad=1.2)
    assert dataclass_to_dict(corner) == {
        "number": 3,
        "index": 151,
        "center_x": -812.5,
        "center_y": 2210.0,
        "heading_change_rad": 1.2,
    }


def test_dataclass_to_dict_nested() -> None:
    """Nested dataclasses and arrays are converted; DataFrames are dropped."""
    obj = Outer(
        name="test",
        inner=Inner(x=1, y=2.5),
        items=[Inner(x=2, y=3.5), Inner(x=3, y=4.5)],
        mapping={"a": Inner(x=4, y=5.5)},
        array=np.array([1.0, 2.0]),
        df=pd.DataFrame({"col": [1, 2, 3]}),
    )
    result = dataclass_to_dict(obj)
    assert result["name"] == "test"
    assert result["inner"] == {"x": 1, "y": 2.5}
    assert result["items"] == [{"x": 2, "y": 3.5}, {"x": 3, "y": 4.5}]
    assert result["mapping"] == {"a": {"x": 4, "y": 5.5}}
    assert result["array"] == [1.0, 2.0]
    assert "df" not in result


def test_dataclass_to_dict_exclude_and_numpy_scalars() -> None:
    metrics = DriverCornerMetrics(
        driver_number=44,
        entry_speed_kph=np.float64(250.0),
        min_speed_kph=np.float64(98.0),
        exit_speed_kph=np.float64(210.0),
        braking_distance_m=135.0,
        throttle_on_distance_m=54.0,
        apex_index=np.int64(12),
        braking_start_index=7,
        throttle_on_index=14,
        trace_distance_m=np.array([-27.0, 0.0, 27.0]),
        trace_speed_kph=np.array([150.0, 98.0, 140.0]),
    )
    result = dataclass_to_dict(metrics, exclude=frozenset({"trace_distance_m", "trace_speed_kph"}))
    assert "trace_speed_kph" not in result
    assert result["apex_index"] == 12
    assert type(result["apex_index"]) is int
    assert type(result["min_speed_kph"]) is float


def test_dataclass_to_dict_non_dataclass() -> None:
    """Non-dataclass objects get wrapped in a value dict."""
    assert dataclass_to_dict("hello") == {"value": "hello"}
