"""Application settings via pydantic-settings."""

from __future__ import annotations

import json

from pitwall.constants import METERS_PER_SAMPLE
from pitwall.corners import HEADING_CHANGE_THRESHOLD, MAX_CORNERS
from pitwall.openf1_client import BASE_URL, REQUEST_TIMEOUT_S
from pitwall.parser import DEFAULT_TRACK_POINTS
from pitwall.speed_trace import SPEED_TRACE_POINTS
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_cors_origins(raw: str) -> list[str]:
    """Parse a CORS origins string, tolerating non-JSON formats.

    Some deploy CLIs strip inner quotes, turning ``["https://a.com"]`` into
    ``[https://a.com]``.  Accepted forms:
    - JSON arrays: ``["https://a.com","https://b.com"]``
    - Bracketed non-JSON: ``[https://a.com,https://b.com]``
    - Comma-separated: ``https://a.com,https://b.com``
    """
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, list):
            return [str(x) for x in parsed]
    except ValueError:
        pass

    stripped = raw.strip("[] ")
    return [s.strip().strip('"').strip("'") for s in stripped.split(",") if s.strip()]


class Settings(BaseSettings):
    """Pitwall API configuration.

    Values are loaded from environment variables, falling back to a ``.env``
    file in the project root.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Data source
    openf1_base_url: str = BASE_URL
    openf1_timeout_s: float = REQUEST_TIMEOUT_S

    # Analysis heuristics
    meters_per_sample: float = METERS_PER_SAMPLE
    corner_threshold_rad: float = HEADING_CHANGE_THRESHOLD
    max_corners: int = MAX_CORNERS
    max_track_points: int = DEFAULT_TRACK_POINTS
    speed_trace_points: int = SPEED_TRACE_POINTS

    # CORS, kept as a raw string so pydantic-settings does not JSON-parse it
    cors_origins_raw: str = '["http://localhost:3000"]'

    debug: bool = False

    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from the raw string."""
        return _parse_cors_origins(self.cors_origins_raw)
