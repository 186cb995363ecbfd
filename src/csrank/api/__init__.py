"""
CSRank Bridge Web API

FastAPI application receiving MatchZy webhooks and brokering Steam login for
the CSRank app.

This package exposes:
- app: The FastAPI application (used by uvicorn, wsgi.py, server.py)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from csrank.api.shared import __version__
from csrank.core.config import configure_logging, get_config

configure_logging(get_config().logging)
logger = logging.getLogger(__name__)

# =============================================================================
# FastAPI App Creation
# =============================================================================

app = FastAPI(
    title="CSRank Bridge",
    description=(
        "MatchZy webhook ingestion, per-player career statistics and "
        "Steam OpenID login for the CSRank app"
    ),
    version=__version__,
)

# =============================================================================
# CORS Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Security Middleware
# =============================================================================


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next) -> Response:
    """Add security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if request.url.path.startswith(("/api/", "/auth/")):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
        response.headers["Pragma"] = "no-cache"

    return response


# =============================================================================
# Global Exception Handler
# =============================================================================


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to prevent information disclosure."""
    logger.exception(f"Unhandled exception for {request.method} {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


# =============================================================================
# Include Route Modules
# =============================================================================

from csrank.api.routes_misc import router as misc_router  # noqa: E402
from csrank.api.routes_steam import router as steam_router  # noqa: E402
from csrank.api.routes_webhook import router as webhook_router  # noqa: E402

app.include_router(misc_router)
app.include_router(steam_router)
app.include_router(webhook_router)
