"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pitwall.openf1_client import OpenF1Error

from backend.api.config import Settings
from backend.api.routers import analysis, sessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup."""
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    logger.info("Using OpenF1 at %s", settings.openf1_base_url)
    yield


load_dotenv()  # Populate os.environ from .env before reading settings
settings = Settings()

app = FastAPI(
    title="Pitwall API",
    description="Corner-level driver comparison and race analysis from OpenF1 data",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)


# -- Exception handlers --------------------------------------------------------


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unhandled exceptions.

    Logs the full traceback server-side but returns a safe generic message
    to the client (no internal details leaked).
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Return 422 for ValueError (bad input data that passed validation)."""
    logger.warning("ValueError on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


@app.exception_handler(OpenF1Error)
async def upstream_error_handler(request: Request, exc: OpenF1Error) -> JSONResponse:
    """Return 502 when the data source fails for the whole request."""
    logger.warning("OpenF1 failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "endpoint": exc.endpoint},
    )


# -- Middleware (order matters: last added = first executed) ------------------

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- Routers -----------------------------------------------------------------

app.include_router(sessions.meetings_router, prefix="/api/meetings", tags=["meetings"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(analysis.router, prefix="/api/sessions", tags=["analysis"])


# -- Health ------------------------------------------------------------------


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    """Return a simple health-check response."""
    return {"status": "ok"}
