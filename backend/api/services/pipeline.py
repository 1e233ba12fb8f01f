"""Pipeline service: wraps pitwall/ analysis functions around OpenF1 fetches.

Corner analysis for a session runs in three steps:
  laps -> fastest laps -> reference lap positions -> corner catalog
  catalog + corner -> per-driver fetch (concurrent) -> align -> metrics

Full-lap speed traces skip the catalog: each driver's fastest lap is fetched
and placed on a lap-percent axis.

Per-driver fetches run concurrently.  A driver whose fetch fails is
recorded as failed and the others are kept; a driver without enough data
is recorded as skipped.  All CPU-bound pitwall functions are run via
asyncio.to_thread().
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import TypeVar

import pandas as pd
from pitwall.alignment import AlignedSegment, align_to_corner
from pitwall.constants import POSITION_PADDING_S, TELEMETRY_PADDING_S
from pitwall.corners import Corner, detect_corners, find_corner
from pitwall.kinematics import DriverCornerMetrics, extract_corner_metrics
from pitwall.laps import (
    DriverStanding,
    LapWindow,
    driver_standings,
    fastest_laps,
    reference_lap,
    top_drivers,
)
from pitwall.openf1_client import OpenF1Client, OpenF1Error
from pitwall.parser import downsample, filter_valid_positions
from pitwall.positions import PositionEntry, reconstruct_positions
from pitwall.sectors import BestLapRow, SectorBests, best_lap_table, fastest_sectors
from pitwall.speed_trace import SpeedTrace, lap_speed_trace, select_trace_drivers
from pitwall.strategy import DriverPitSummary, DriverStrategy, driver_strategies, pit_stop_summary

from backend.api.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Drivers compared when the caller does not pick any
DEFAULT_FOCUS_DRIVERS = 3


@dataclass
class CornerCatalog:
    """Corners detected on the session's fastest lap."""

    session_key: int
    reference: LapWindow
    n_reference: int
    corners: list[Corner]
    track: pd.DataFrame  # downsampled reference positions for the track map
    fastest: dict[int, LapWindow]
    standings: list[DriverStanding]


@dataclass
class DriverOutcome:
    """Drivers left out of a corner view, and why."""

    skipped: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)


@dataclass
class CornerComparison:
    corner: Corner
    metrics: list[DriverCornerMetrics]
    outcome: DriverOutcome


@dataclass
class CornerTraces:
    corner: Corner
    segments: dict[int, AlignedSegment]
    outcome: DriverOutcome


@dataclass
class BestLapSummary:
    rows: list[BestLapRow]
    sector_bests: SectorBests

@dataclass
class SpeedTraceComparison:
    drivers: list[int]
    traces: list[SpeedTrace]
    outcome: DriverOutcome


def _build_catalog_sync(
    positions: pd.DataFrame,
    settings: Settings,
) -> tuple[pd.DataFrame, list[Corner], pd.DataFrame]:
    valid = filter_valid_positions(positions)
    corners = detect_corners(
        valid,
        settings.corner_threshold_rad,
        max_corners=settings.max_corners,
    )
    track = downsample(valid, settings.max_track_points)
    return valid, corners, track


async def build_corner_catalog(
    client: OpenF1Client,
    session_key: int,
    settings: Settings,
) -> CornerCatalog | None:
    """Detect corners on the session's fastest lap.

    Returns None when the session has no timed lap to use as reference.
    """
    laps = await client.get_laps(session_key)
    fastest = await asyncio.to_thread(fastest_laps, laps)
    reference = reference_lap(fastest)
    if reference is None:
        logger.info("Session %d has no timed lap to build a corner catalog from", session_key)
        return None

    start, end = reference.time_range(POSITION_PADDING_S)
    positions = await client.get_locations(session_key, reference.driver_number, start, end)
    valid, corners, track = await asyncio.to_thread(_build_catalog_sync, positions, settings)
    logger.info(
        "Session %d: %d corner(s) on lap %d of driver %d (%d samples)",
        session_key,
        len(corners),
        reference.lap_number,
        reference.driver_number,
        len(valid),
    )
    standings = await asyncio.to_thread(driver_standings, laps)
    return CornerCatalog(
        session_key=session_key,
        reference=reference,
        n_reference=len(valid),
        corners=corners,
        track=track,
        fastest=fastest,
        standings=standings,
    )


def resolve_drivers(catalog: CornerCatalog, drivers: Iterable[int] | None) -> list[int]:
    """Requested drivers in request order without repeats, else the top standings."""
    if drivers is None:
        return top_drivers(catalog.standings, DEFAULT_FOCUS_DRIVERS)
    return list(dict.fromkeys(drivers))


async def _per_driver(
    drivers: list[int],
    fetch: Callable[[int], Awaitable[T | None]],
) -> tuple[dict[int, T], DriverOutcome]:
    """Run *fetch* for every driver concurrently, sorting out failures."""
    outcome = DriverOutcome()
    results = await asyncio.gather(*(fetch(d) for d in drivers), return_exceptions=True)

    collected: dict[int, T] = {}
    for driver_number, result in zip(drivers, results, strict=True):
        if isinstance(result, OpenF1Error):
            logger.warning("Driver %d dropped: %s", driver_number, result)
            outcome.failed[driver_number] = str(result)
        elif isinstance(result, BaseException):
            raise result
        elif result is None:
            outcome.skipped.append(driver_number)
        else:
            collected[driver_number] = result
    return collected, outcome


async def compare_corner(
    client: OpenF1Client,
    catalog: CornerCatalog,
    corner_number: int,
    drivers: list[int],
    settings: Settings,
) -> CornerComparison:
    """Kinematic metrics for each driver through one corner.

    Each driver's telemetry comes from their own fastest lap.

    Raises
    ------
    ValueError
        If the catalog has no corner *corner_number*.
    """
    corner = find_corner(catalog.corners, corner_number)

    async def _fetch(driver_number: int) -> DriverCornerMetrics | None:
        lap = catalog.fastest.get(driver_number)
        if lap is None:
            logger.info(
                "Driver %d has no timed lap in session %d", driver_number, catalog.session_key
            )
            return None
        start, end = lap.time_range(TELEMETRY_PADDING_S)
        car = await client.get_car_data(catalog.session_key, driver_number, start, end)
        segment = align_to_corner(car, corner, catalog.n_reference)
        if segment is None:
            return None
        return await asyncio.to_thread(
            extract_corner_metrics, segment.samples, driver_number, settings.meters_per_sample
        )

    collected, outcome = await _per_driver(drivers, _fetch)
    metrics = [collected[d] for d in drivers if d in collected]
    return CornerComparison(corner=corner, metrics=metrics, outcome=outcome)


async def corner_traces(
    client: OpenF1Client,
    catalog: CornerCatalog,
    corner_number: int,
    drivers: list[int],
) -> CornerTraces:
    """Each driver's position window around one corner, for the corner map.

    Raises
    ------
    ValueError
        If the catalog has no corner *corner_number*.
    """
    corner = find_corner(catalog.corners, corner_number)

    async def _fetch(driver_number: int) -> AlignedSegment | None:
        lap = catalog.fastest.get(driver_number)
        if lap is None:
            return None
        start, end = lap.time_range(POSITION_PADDING_S)
        positions = await client.get_locations(catalog.session_key, driver_number, start, end)
        valid = filter_valid_positions(positions)
        return align_to_corner(valid, corner, catalog.n_reference)

    collected, outcome = await _per_driver(drivers, _fetch)
    segments = {d: collected[d] for d in drivers if d in collected}
    return CornerTraces(corner=corner, segments=segments, outcome=outcome)


async def session_positions(client: OpenF1Client, session_key: int) -> list[PositionEntry]:
    laps = await client.get_laps(session_key)
    return await asyncio.to_thread(reconstruct_positions, laps)


async def session_standings(client: OpenF1Client, session_key: int) -> list[DriverStanding]:
    laps = await client.get_laps(session_key)
    return await asyncio.to_thread(driver_standings, laps)


async def session_best_laps(client: OpenF1Client, session_key: int) -> BestLapSummary:
    laps = await client.get_laps(session_key)
    rows = await asyncio.to_thread(best_lap_table, laps)
    return BestLapSummary(rows=rows, sector_bests=fastest_sectors(rows))


async def session_strategies(client: OpenF1Client, session_key: int) -> list[DriverStrategy]:
    stints, laps = await asyncio.gather(
        client.get_stints(session_key), client.get_laps(session_key)
    )
    return await asyncio.to_thread(driver_strategies, stints, laps)


async def session_pit_stops(client: OpenF1Client, session_key: int) -> list[DriverPitSummary]:
    pits, stints, laps = await asyncio.gather(
        client.get_pits(session_key),
        client.get_stints(session_key),
        client.get_laps(session_key),
    )
    return await asyncio.to_thread(pit_stop_summary, pits, stints, laps)

async def session_speed_traces(
    client: OpenF1Client,
    session_key: int,
    drivers: Iterable[int] | None,
    settings: Settings,
) -> SpeedTraceComparison:
    """Each driver's fastest-lap speed on a shared lap-percent axis.

    Without a selection the top standings are traced.  At most
    ``MAX_TRACE_DRIVERS`` are kept, the most recently picked ones winning.
    """
    laps = await client.get_laps(session_key)
    fastest = await asyncio.to_thread(fastest_laps, laps)
    if drivers is None:
        standings = await asyncio.to_thread(driver_standings, laps)
        drivers = top_drivers(standings, DEFAULT_FOCUS_DRIVERS)
    selected = select_trace_drivers(drivers)

    async def _fetch(driver_number: int) -> SpeedTrace | None:
        lap = fastest.get(driver_number)
        if lap is None:
            logger.info("Driver %d has no timed lap in session %d", driver_number, session_key)
            return None
        start, end = lap.time_range(TELEMETRY_PADDING_S)
        car = await client.get_car_data(session_key, driver_number, start, end)
        return await asyncio.to_thread(
            lap_speed_trace, car, driver_number, lap.lap_number, settings.speed_trace_points
        )

    collected, outcome = await _per_driver(selected, _fetch)
    traces = [collected[d] for d in selected if d in collected]
    return SpeedTraceComparison(drivers=selected, traces=traces, outcome=outcome)
