"""Pydantic schemas for session-level endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MeetingSummary(BaseModel):
    """A Grand Prix weekend, as listed by OpenF1."""

    model_config = ConfigDict(extra="ignore")

    meeting_key: int
    meeting_name: str | None = None
    year: int | None = None
    country_name: str | None = None
    circuit_short_name: str | None = None
    date_start: str | None = None


class SessionInfo(BaseModel):
    """One session of a meeting."""

    model_config = ConfigDict(extra="ignore")

    session_key: int
    meeting_key: int | None = None
    session_name: str | None = None
    session_type: str | None = None
    date_start: str | None = None
    date_end: str | None = None


class DriverInfo(BaseModel):
    driver_number: int
    name_acronym: str | None = None
    full_name: str | None = None
    team_name: str | None = None
    team_colour: str | None = None


class PositionPoint(BaseModel):
    lap_number: int
    position: int
    cumulative_time_s: float


class DriverPositionSeries(BaseModel):
    """Position after every lap for one driver."""

    driver_number: int
    laps: list[PositionPoint]


class PositionsResponse(BaseModel):
    session_key: int
    drivers: list[DriverPositionSeries]


class StandingSchema(BaseModel):
    """Cumulative session standing for one driver."""

    model_config = ConfigDict(from_attributes=True)

    position: int
    driver_number: int
    total_time_s: float
    best_lap_s: float | None = None
    laps_completed: int


class StandingsResponse(BaseModel):
    session_key: int
    standings: list[StandingSchema]
    fastest_lap_driver: int | None = None
    top_drivers: list[int]


class BestLapSchema(BaseModel):
    """A driver's fastest valid lap with sector splits."""

    model_config = ConfigDict(from_attributes=True)

    driver_number: int
    lap_number: int | None = None
    lap_time_s: float | None = None
    sector_1_s: float | None = None
    sector_2_s: float | None = None
    sector_3_s: float | None = None
    gap_to_leader_s: float | None = None


class SectorBestsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sector_1_s: float | None = None
    sector_2_s: float | None = None
    sector_3_s: float | None = None


class BestLapsResponse(BaseModel):
    session_key: int
    laps: list[BestLapSchema]
    fastest_sectors: SectorBestsSchema


class StintSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stint_number: int
    compound: str
    lap_start: int
    lap_end: int
    tyre_age_at_start: int
    laps: int


class DriverStrategySchema(BaseModel):
    driver_number: int
    total_laps: int
    stints: list[StintSchema]


class StrategyResponse(BaseModel):
    session_key: int
    drivers: list[DriverStrategySchema]


class PitStopSchema(BaseModel):
    """One stop with the compound fitted before and after it."""

    model_config = ConfigDict(from_attributes=True)

    lap_number: int
    duration_s: float | None = None
    compound_from: str | None = None
    compound_to: str | None = None


class DriverPitSummarySchema(BaseModel):
    driver_number: int
    total_pit_time_s: float
    pit_stops: list[PitStopSchema]


class PitStopsResponse(BaseModel):
    session_key: int
    drivers: list[DriverPitSummarySchema]
