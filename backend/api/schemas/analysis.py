"""Pydantic schemas for corner analysis endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class CornerSchema(BaseModel):
    """Single corner detected on the reference lap."""

    number: int
    index: int
    center_x: float
    center_y: float
    heading_change_rad: float


class TrackSchema(BaseModel):
    """Downsampled reference-lap outline, in columnar form."""

    x: list[float]
    y: list[float]


class CornerCatalogResponse(BaseModel):
    """Corners detected on the session's fastest lap."""

    session_key: int
    reference_driver: int
    reference_lap: int
    n_reference_samples: int
    corners: list[CornerSchema]
    track: TrackSchema


class SpeedTraceSchema(BaseModel):
    """Speed against distance from the apex (negative before it)."""

    distance_m: list[float]
    speed_kph: list[float]


class DriverCornerMetricsSchema(BaseModel):
    """One driver's kinematic profile through a corner."""

    driver_number: int
    entry_speed_kph: float
    min_speed_kph: float
    exit_speed_kph: float
    braking_distance_m: float
    throttle_on_distance_m: float
    apex_index: int
    braking_start_index: int
    throttle_on_index: int
    trace: SpeedTraceSchema


class FailedDriverSchema(BaseModel):
    """A driver dropped because its data could not be fetched."""

    driver_number: int
    detail: str


class CornerComparisonResponse(BaseModel):
    session_key: int
    corner: CornerSchema
    drivers: list[DriverCornerMetricsSchema]
    skipped_drivers: list[int] = []
    failed_drivers: list[FailedDriverSchema] = []


class DriverTraceSchema(BaseModel):
    """A driver's positions around a corner, aligned by lap progress."""

    driver_number: int
    start_index: int
    end_index: int
    x: list[float]
    y: list[float]


class CornerTracesResponse(BaseModel):
    session_key: int
    corner: CornerSchema
    drivers: list[DriverTraceSchema]
    skipped_drivers: list[int] = []
    failed_drivers: list[FailedDriverSchema] = []


class DriverSpeedTraceSchema(BaseModel):
    """Speed over a driver's fastest lap against lap percent (0-100)."""

    driver_number: int
    lap_number: int
    lap_pct: list[float]
    speed_kph: list[float]


class SpeedTraceResponse(BaseModel):
    session_key: int
    requested_drivers: list[int]
    drivers: list[DriverSpeedTraceSchema]
    skipped_drivers: list[int] = []
    failed_drivers: list[FailedDriverSchema] = []
