"""
Steam OpenID authentication routes for CSRank Bridge.

Endpoints:
    GET /auth/steam              - Redirect the user to the Steam login page
    GET /auth/steam/callback     - Verify Steam's redirect, upsert the user, hand a token to the app
    GET /auth/token/{steam_id}   - Issue a fresh token for a known user
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from csrank.api.shared import (
    TokenResponse,
    error_page,
    get_callback_url,
    get_document_store,
    get_identity_verifier,
)
from csrank.auth.jwt import create_access_token
from csrank.auth.steam import IdentityVerifier, fetch_player_summary
from csrank.auth.users import upsert_user_profile, user_exists
from csrank.core.config import get_config
from csrank.infra.database import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth-steam"])


@router.get("/auth/steam")
async def steam_login(
    request: Request,
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> RedirectResponse:
    """Redirect the user to Steam's OpenID login page."""
    callback_url = get_callback_url(request)
    logger.info(f"Starting Steam auth, callback: {callback_url}")
    return RedirectResponse(
        url=verifier.build_auth_url(callback_url),
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/auth/steam/callback")
async def steam_callback(
    request: Request,
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    store: DocumentStore = Depends(get_document_store),
) -> Response:
    """Handle Steam's OpenID callback.

    Flow:
    1. Verify the OpenID assertion and extract the Steam64 ID
    2. Fetch the Steam profile
    3. Create or refresh users/{steam_id}
    4. Issue an access token
    5. Redirect to the app's URL scheme with the token
    """
    steam_id = await verifier.verify(dict(request.query_params))
    if not steam_id:
        logger.warning("Steam OpenID validation failed")
        return error_page(401, "Login failed", "Authentication was cancelled or failed")

    logger.info(f"Steam login successful for {steam_id}")

    try:
        summary = await fetch_player_summary(steam_id)
        profile = await asyncio.to_thread(upsert_user_profile, store, steam_id, summary)
        persona_name = profile.get("personaName", "")
        token = create_access_token(steam_id, persona_name)
    except Exception as e:
        logger.exception(f"Error processing Steam login for {steam_id}")
        return error_page(500, "Server error", "Could not complete the login", str(e))

    redirect_params = urlencode(
        {
            "token": token,
            "steamId": steam_id,
            "personaName": persona_name,
            "avatarUrl": profile.get("avatarUrl", ""),
        }
    )
    logger.info("Redirecting to app...")
    return RedirectResponse(
        url=f"{get_config().steam.app_redirect_url}?{redirect_params}",
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/auth/token/{steam_id}", response_model=None)
async def get_token(
    steam_id: str,
    store: DocumentStore = Depends(get_document_store),
) -> TokenResponse | JSONResponse:
    """Issue a new access token for a user who has logged in before."""
    try:
        if not await asyncio.to_thread(user_exists, store, steam_id):
            return JSONResponse(status_code=404, content={"error": "User not found"})
        token = create_access_token(steam_id)
    except Exception:
        logger.exception(f"Error generating token for {steam_id}")
        return JSONResponse(status_code=500, content={"error": "Failed to generate token"})

    return TokenResponse(token=token)
