"""Session endpoints: meetings, drivers, running order, standings, lap and tyre tables."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from pitwall.laps import fastest_lap_holder, top_drivers
from pitwall.positions import positions_by_driver

from backend.api.dependencies import OpenF1Dep
from backend.api.schemas.session import (
    BestLapSchema,
    BestLapsResponse,
    DriverInfo,
    DriverPitSummarySchema,
    DriverPositionSeries,
    DriverStrategySchema,
    MeetingSummary,
    PitStopSchema,
    PitStopsResponse,
    PositionPoint,
    PositionsResponse,
    SectorBestsSchema,
    SessionInfo,
    StandingSchema,
    StandingsResponse,
    StintSchema,
    StrategyResponse,
)
from backend.api.services.pipeline import (
    session_best_laps,
    session_pit_stops,
    session_positions,
    session_standings,
    session_strategies,
)
from backend.api.services.serializers import dataclass_to_dict

router = APIRouter()
meetings_router = APIRouter()


@meetings_router.get("", response_model=list[MeetingSummary])
async def list_meetings(
    client: OpenF1Dep,
    year: Annotated[int, Query(ge=1950)],
) -> list[MeetingSummary]:
    """Grand Prix weekends of a season."""
    meetings = await client.get_meetings(year)
    return [MeetingSummary.model_validate(m) for m in meetings]


@meetings_router.get("/{meeting_key}/sessions", response_model=list[SessionInfo])
async def list_sessions(meeting_key: int, client: OpenF1Dep) -> list[SessionInfo]:
    """Practice, qualifying and race sessions of a meeting."""
    sessions = await client.get_sessions(meeting_key)
    return [SessionInfo.model_validate(s) for s in sessions]


@router.get("/{session_key}/drivers", response_model=list[DriverInfo])
async def list_drivers(session_key: int, client: OpenF1Dep) -> list[DriverInfo]:
    drivers = await client.get_drivers(session_key)
    records = drivers.astype(object).where(drivers.notna(), None).to_dict("records")
    return [DriverInfo.model_validate(r) for r in records]


@router.get("/{session_key}/positions", response_model=PositionsResponse)
async def get_positions(session_key: int, client: OpenF1Dep) -> PositionsResponse:
    """Running order after every lap, as one series per driver."""
    entries = await session_positions(client, session_key)
    series = positions_by_driver(entries)
    return PositionsResponse(
        session_key=session_key,
        drivers=[
            DriverPositionSeries(
                driver_number=driver_number,
                laps=[
                    PositionPoint(
                        lap_number=e.lap_number,
                        position=e.position,
                        cumulative_time_s=e.cumulative_time_s,
                    )
                    for e in driver_entries
                ],
            )
            for driver_number, driver_entries in series.items()
        ],
    )


@router.get("/{session_key}/standings", response_model=StandingsResponse)
async def get_standings(session_key: int, client: OpenF1Dep) -> StandingsResponse:
    """Drivers ranked by total lap time, with the fastest-lap holder."""
    standings = await session_standings(client, session_key)
    holder = fastest_lap_holder(standings)
    return StandingsResponse(
        session_key=session_key,
        standings=[
            StandingSchema(position=i + 1, **dataclass_to_dict(s))
            for i, s in enumerate(standings)
        ],
        fastest_lap_driver=holder.driver_number if holder else None,
        top_drivers=top_drivers(standings),
    )


@router.get("/{session_key}/best-laps", response_model=BestLapsResponse)
async def get_best_laps(session_key: int, client: OpenF1Dep) -> BestLapsResponse:
    """Each driver's fastest lap with sectors and gap to the leader."""
    summary = await session_best_laps(client, session_key)
    return BestLapsResponse(
        session_key=session_key,
        laps=[BestLapSchema.model_validate(row) for row in summary.rows],
        fastest_sectors=SectorBestsSchema.model_validate(summary.sector_bests),
    )


@router.get("/{session_key}/strategy", response_model=StrategyResponse)
async def get_strategy(session_key: int, client: OpenF1Dep) -> StrategyResponse:
    """Tyre stints per driver."""
    strategies = await session_strategies(client, session_key)
    return StrategyResponse(
        session_key=session_key,
        drivers=[
            DriverStrategySchema(
                driver_number=s.driver_number,
                total_laps=s.total_laps,
                stints=[StintSchema.model_validate(span) for span in s.stints],
            )
            for s in strategies
        ],
    )


@router.get("/{session_key}/pit-stops", response_model=PitStopsResponse)
async def get_pit_stops(session_key: int, client: OpenF1Dep) -> PitStopsResponse:
    """Pit stops per driver, quickest total pit time first."""
    summaries = await session_pit_stops(client, session_key)
    return PitStopsResponse(
        session_key=session_key,
        drivers=[
            DriverPitSummarySchema(
                driver_number=s.driver_number,
                total_pit_time_s=s.total_pit_time_s,
                pit_stops=[PitStopSchema.model_validate(p) for p in s.pit_stops],
            )
            for s in summaries
        ],
    )
