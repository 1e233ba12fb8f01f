"""Data serialization helpers: DataFrame to columns, numpy to list, dataclass to dict.

Bridges pitwall's internal data types (DataFrames, numpy arrays,
dataclasses) and the Pydantic API schemas.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any

import numpy as np
import pandas as pd


def dataframe_to_columnar(df: pd.DataFrame, columns: list[str]) -> dict[str, list[float]]:
    """Convert selected DataFrame columns to a columnar JSON-ready dict.

    Missing columns are left out.  Values are native Python floats.
    """
    result: dict[str, list[float]] = {}
    for col in columns:
        if col in df.columns:
            result[col] = df[col].astype(float).tolist()
    return result


def numpy_to_list(arr: np.ndarray) -> list[float]:
    """Convert a numpy array to a plain Python list of floats."""
    return arr.astype(float).tolist()  # type: ignore[no-any-return]


def _plain(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if hasattr(value, "__dataclass_fields__"):
        return dataclass_to_dict(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def dataclass_to_dict(obj: Any, exclude: frozenset[str] = frozenset()) -> dict[str, Any]:
    """Recursively convert a dataclass to a JSON-serializable dict.

    Handles nested dataclasses, numpy arrays and scalars.  DataFrame fields
    (sample windows) are never serialized; pass them through
    :func:`dataframe_to_columnar` explicitly.
    """
    if not hasattr(obj, "__dataclass_fields__"):
        return {"value": obj}

    result: dict[str, Any] = {}
    for f in fields(obj):
        if f.name in exclude:
            continue
        value = getattr(obj, f.name)
        if isinstance(value, pd.DataFrame):
            continue
        result[f.name] = _plain(value)

    return result
