"""Driver comparison endpoints: corner catalog and comparison, corner traces, lap speed."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Query
from fastapi.responses import Response
from pitwall.corners import Corner
from pitwall.kinematics import DriverCornerMetrics
from pitwall.openf1_client import OpenF1Client

from backend.api.config import Settings
from backend.api.dependencies import OpenF1Dep, SettingsDep, TrackerDep
from backend.api.schemas.analysis import (
    CornerCatalogResponse,
    CornerComparisonResponse,
    CornerSchema,
    CornerTracesResponse,
    DriverCornerMetricsSchema,
    DriverSpeedTraceSchema,
    DriverTraceSchema,
    FailedDriverSchema,
    SpeedTraceResponse,
    SpeedTraceSchema,
    TrackSchema,
)
from backend.api.services.pipeline import (
    CornerCatalog,
    DriverOutcome,
    build_corner_catalog,
    compare_corner,
    corner_traces,
    resolve_drivers,
    session_speed_traces,
)
from backend.api.services.requests import AnalysisKey, StaleRequestError
from backend.api.services.serializers import dataclass_to_dict, dataframe_to_columnar, numpy_to_list

router = APIRouter()

_TRACE_FIELDS = frozenset({"trace_distance_m", "trace_speed_kph"})

DriversQuery = Annotated[
    list[int] | None,
    Query(description="Driver numbers to compare; defaults to the top three by total time"),
]
ClientIdHeader = Annotated[
    str | None,
    Header(alias="X-Client-Id", description="Scope in which newer requests supersede older"),
]


def _corner_to_schema(corner: Corner) -> CornerSchema:
    """Convert a pitwall Corner dataclass to a CornerSchema."""
    return CornerSchema(**dataclass_to_dict(corner))


def _metrics_to_schema(metrics: DriverCornerMetrics) -> DriverCornerMetricsSchema:
    return DriverCornerMetricsSchema(
        **dataclass_to_dict(metrics, exclude=_TRACE_FIELDS),
        trace=SpeedTraceSchema(
            distance_m=numpy_to_list(metrics.trace_distance_m),
            speed_kph=numpy_to_list(metrics.trace_speed_kph),
        ),
    )


def _failed(outcome: DriverOutcome) -> list[FailedDriverSchema]:
    return [
        FailedDriverSchema(driver_number=d, detail=detail) for d, detail in outcome.failed.items()
    ]


async def _get_catalog_or_404(
    client: OpenF1Client, session_key: int, settings: Settings
) -> CornerCatalog:
    """Build the corner catalog or raise 404."""
    catalog = await build_corner_catalog(client, session_key, settings)
    if catalog is None:
        raise HTTPException(status_code=404, detail=f"No timed laps for session {session_key}")
    return catalog


@router.get("/{session_key}/corners", response_model=CornerCatalogResponse)
async def get_corners(
    session_key: int,
    client: OpenF1Dep,
    settings: SettingsDep,
) -> CornerCatalogResponse:
    """Return corners detected on the session's fastest lap."""
    catalog = await _get_catalog_or_404(client, session_key, settings)
    track = dataframe_to_columnar(catalog.track, ["x", "y"])
    return CornerCatalogResponse(
        session_key=session_key,
        reference_driver=catalog.reference.driver_number,
        reference_lap=catalog.reference.lap_number,
        n_reference_samples=catalog.n_reference,
        corners=[_corner_to_schema(c) for c in catalog.corners],
        track=TrackSchema(x=track.get("x", []), y=track.get("y", [])),
    )


@router.get(
    "/{session_key}/corners/{corner_number}/comparison",
    response_model=CornerComparisonResponse,
    responses={204: {"description": "Superseded by a newer request from the same client"}},
)
async def get_corner_comparison(
    session_key: int,
    corner_number: int,
    client: OpenF1Dep,
    settings: SettingsDep,
    tracker: TrackerDep,
    drivers: DriversQuery = None,
    client_id: ClientIdHeader = None,
) -> CornerComparisonResponse | Response:
    """Compare drivers' speed, braking and throttle through one corner."""
    key = AnalysisKey(session_key, tuple(drivers or ()), corner_number)

    async def _analyse() -> CornerComparisonResponse:
        catalog = await _get_catalog_or_404(client, session_key, settings)
        selected = resolve_drivers(catalog, drivers)
        try:
            comparison = await compare_corner(client, catalog, corner_number, selected, settings)
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return CornerComparisonResponse(
            session_key=session_key,
            corner=_corner_to_schema(comparison.corner),
            drivers=[_metrics_to_schema(m) for m in comparison.metrics],
            skipped_drivers=comparison.outcome.skipped,
            failed_drivers=_failed(comparison.outcome),
        )

    try:
        return await tracker.run(client_id, key, _analyse())
    except StaleRequestError:
        return Response(status_code=204)


@router.get(
    "/{session_key}/corners/{corner_number}/traces",
    response_model=CornerTracesResponse,
    responses={204: {"description": "Superseded by a newer request from the same client"}},
)
async def get_corner_traces(
    session_key: int,
    corner_number: int,
    client: OpenF1Dep,
    settings: SettingsDep,
    tracker: TrackerDep,
    drivers: DriversQuery = None,
    client_id: ClientIdHeader = None,
) -> CornerTracesResponse | Response:
    """Each driver's racing line around one corner."""
    key = AnalysisKey(session_key, tuple(drivers or ()), corner_number)

    async def _analyse() -> CornerTracesResponse:
        catalog = await _get_catalog_or_404(client, session_key, settings)
        selected = resolve_drivers(catalog, drivers)
        try:
            traces = await corner_traces(client, catalog, corner_number, selected)
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

        rows: list[DriverTraceSchema] = []
        for driver_number, segment in traces.segments.items():
            xy = dataframe_to_columnar(segment.samples, ["x", "y"])
            rows.append(
                DriverTraceSchema(
                    driver_number=driver_number,
                    start_index=segment.start_index,
                    end_index=segment.end_index,
                    x=xy["x"],
                    y=xy["y"],
                )
            )
        return CornerTracesResponse(
            session_key=session_key,
            corner=_corner_to_schema(traces.corner),
            drivers=rows,
            skipped_drivers=traces.outcome.skipped,
            failed_drivers=_failed(traces.outcome),
        )

    try:
        return await tracker.run(client_id, key, _analyse())
    except StaleRequestError:
        return Response(status_code=204)


@router.get(
    "/{session_key}/speed-trace",
    response_model=SpeedTraceResponse,
    responses={204: {"description": "Superseded by a newer request from the same client"}},
)
async def get_speed_trace(
    session_key: int,
    client: OpenF1Dep,
    settings: SettingsDep,
    tracker: TrackerDep,
    drivers: DriversQuery = None,
    client_id: ClientIdHeader = None,
) -> SpeedTraceResponse | Response:
    """Overlay drivers' fastest-lap speed traces, at most four at once."""
    key = AnalysisKey(session_key, tuple(drivers or ()))

    async def _analyse() -> SpeedTraceResponse:
        comparison = await session_speed_traces(client, session_key, drivers, settings)
        return SpeedTraceResponse(
            session_key=session_key,
            requested_drivers=comparison.drivers,
            drivers=[
                DriverSpeedTraceSchema(
                    driver_number=t.driver_number,
                    lap_number=t.lap_number,
                    lap_pct=numpy_to_list(t.lap_pct),
                    speed_kph=numpy_to_list(t.speed_kph),
                )
                for t in comparison.traces
            ],
            skipped_drivers=comparison.outcome.skipped,
            failed_drivers=_failed(comparison.outcome),
        )

    try:
        return await tracker.run(client_id, key, _analyse())
    except StaleRequestError:
        return Response(status_code=204)
