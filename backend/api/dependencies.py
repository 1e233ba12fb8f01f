"""FastAPI dependency injection functions."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from pitwall.openf1_client import OpenF1Client

from backend.api.config import Settings
from backend.api.services.requests import RequestTracker


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings."""
    return Settings()


@lru_cache(maxsize=1)
def get_request_tracker() -> RequestTracker:
    """Return the process-wide request tracker."""
    return RequestTracker()


async def get_openf1_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[OpenF1Client, None]:
    """Yield an OpenF1 client for the duration of one request."""
    async with OpenF1Client(settings.openf1_base_url, settings.openf1_timeout_s) as client:
        yield client


SettingsDep = Annotated[Settings, Depends(get_settings)]
TrackerDep = Annotated[RequestTracker, Depends(get_request_tracker)]
OpenF1Dep = Annotated[OpenF1Client, Depends(get_openf1_client)]
