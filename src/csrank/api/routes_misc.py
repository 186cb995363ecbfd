"""
Miscellaneous route handlers.

Endpoints:
- GET /health - health check
- GET /api/steam/profile/{steam_id} - Steam profile passthrough
- GET /api/players/{steam_id}/stats - stored aggregate of a registered player
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from csrank.api.shared import HealthResponse, __version__, get_document_store
from csrank.auth.steam import fetch_player_summary
from csrank.core.constants import COLLECTION_USERS
from csrank.exceptions import SteamAPIError
from csrank.infra.database import DocumentStore
from csrank.pipeline.aggregation import AGGREGATE_FIELD

logger = logging.getLogger(__name__)

router = APIRouter(tags=["misc"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC).isoformat(),
        version=__version__,
    )


@router.get("/api/steam/profile/{steam_id}", response_model=None)
async def steam_profile(steam_id: str) -> dict[str, Any] | JSONResponse:
    """Return the raw Steam Web API profile of a player."""
    try:
        return await fetch_player_summary(steam_id)
    except SteamAPIError as e:
        logger.error(f"Failed to fetch Steam profile {steam_id}: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch profile"})


@router.get("/api/players/{steam_id}/stats", response_model=None)
async def player_stats(
    steam_id: str,
    store: DocumentStore = Depends(get_document_store),
) -> dict[str, Any] | JSONResponse:
    """Return the stored career aggregate of a registered player."""
    profile = await asyncio.to_thread(store.get, COLLECTION_USERS, steam_id)
    if profile is None:
        return JSONResponse(status_code=404, content={"error": "User not found"})
    return {"steamId": steam_id, AGGREGATE_FIELD: profile.get(AGGREGATE_FIELD)}
