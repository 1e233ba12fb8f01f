"""Async client for the OpenF1 REST API.

Wraps the endpoints the analysis needs and hands back normalized
DataFrames from :mod:`pitwall.parser`.  The API is free and requires no key.

Position and car data are sampled at ~3.7 Hz, so location and car-data
queries are always bounded by driver and time window.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
import pandas as pd

from pitwall.parser import (
    parse_car_data,
    parse_drivers,
    parse_laps,
    parse_locations,
    parse_pits,
    parse_stints,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://api.openf1.org/v1"
REQUEST_TIMEOUT_S = 15.0


class OpenF1Error(Exception):
    """An OpenF1 query failed or timed out.

    Recoverable: callers drop the affected driver or view and keep the rest.
    """

    def __init__(self, message: str, *, endpoint: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


def _format_date(value: datetime) -> str:
    """ISO timestamp truncated to seconds, in UTC, as OpenF1 filters expect."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S")


def _time_window(start: datetime, end: datetime) -> dict[str, str]:
    return {"date>=": _format_date(start), "date<=": _format_date(end)}


class OpenF1Client:
    """Thin async wrapper over ``httpx.AsyncClient``.

    Use as an async context manager, or call :meth:`aclose` when done.
    A custom *transport* can be injected for testing.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout_s: float = REQUEST_TIMEOUT_S,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> OpenF1Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, endpoint: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """GET *endpoint* and return its JSON list.

        OpenF1 answers 404 when a query simply matches nothing; that is
        treated as an empty result rather than a failure.
        """
        query = {k: str(v) for k, v in params.items() if v is not None}
        try:
            response = await self._client.get(endpoint, params=query)
            if response.status_code == 404:
                logger.debug("OpenF1 %s returned no results for %s", endpoint, query)
                return []
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("OpenF1 %s returned status %d for %s", endpoint, status, query)
            msg = f"OpenF1 API error: {status} on {endpoint}"
            raise OpenF1Error(msg, endpoint=endpoint, status_code=status) from exc
        except (httpx.RequestError, ValueError) as exc:
            logger.warning("OpenF1 %s request failed for %s: %s", endpoint, query, exc)
            msg = f"OpenF1 request to {endpoint} failed: {exc}"
            raise OpenF1Error(msg, endpoint=endpoint) from exc

        if not isinstance(payload, list):
            msg = f"OpenF1 {endpoint} returned {type(payload).__name__}, expected a list"
            raise OpenF1Error(msg, endpoint=endpoint)
        return payload

    async def get_meetings(self, year: int) -> list[dict[str, Any]]:
        """Grand Prix weekends for a season."""
        return await self._get("/meetings", {"year": year})

    async def get_sessions(self, meeting_key: int) -> list[dict[str, Any]]:
        """Practice, qualifying and race sessions of a meeting."""
        return await self._get("/sessions", {"meeting_key": meeting_key})

    async def get_drivers(self, session_key: int) -> pd.DataFrame:
        return parse_drivers(await self._get("/drivers", {"session_key": session_key}))

    async def get_laps(self, session_key: int, driver_number: int | None = None) -> pd.DataFrame:
        params = {"session_key": session_key, "driver_number": driver_number}
        return parse_laps(await self._get("/laps", params))

    async def get_locations(
        self,
        session_key: int,
        driver_number: int,
        start: datetime,
        end: datetime,
    ) -> pd.DataFrame:
        """Position samples for one driver between *start* and *end*."""
        params = {"session_key": session_key, "driver_number": driver_number}
        params.update(_time_window(start, end))
        return parse_locations(await self._get("/location", params))

    async def get_car_data(
        self,
        session_key: int,
        driver_number: int,
        start: datetime,
        end: datetime,
    ) -> pd.DataFrame:
        """Telemetry samples for one driver between *start* and *end*."""
        params = {"session_key": session_key, "driver_number": driver_number}
        params.update(_time_window(start, end))
        return parse_car_data(await self._get("/car_data", params))

    async def get_stints(self, session_key: int) -> pd.DataFrame:
        return parse_stints(await self._get("/stints", {"session_key": session_key}))

    async def get_pits(self, session_key: int) -> pd.DataFrame:
        return parse_pits(await self._get("/pit", {"session_key": session_key}))
