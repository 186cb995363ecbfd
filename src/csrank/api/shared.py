"""
Shared utilities for the CSRank API.

Contains the version string, FastAPI dependencies used across route modules,
and the HTML page shown in the login browser when something fails.
"""

import html
import logging

from fastapi import Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from csrank import __version__
from csrank.auth.steam import IdentityVerifier, SteamOpenIDVerifier
from csrank.infra.database import DocumentStore, get_store

logger = logging.getLogger(__name__)

__all__ = [
    "__version__",
    "error_page",
    "get_callback_url",
    "get_document_store",
    "get_identity_verifier",
    "HealthResponse",
    "TokenResponse",
    "WebhookResponse",
]


# =============================================================================
# Dependencies (overridden in tests via app.dependency_overrides)
# =============================================================================


def get_document_store() -> DocumentStore:
    """Document store used by all route handlers."""
    return get_store()


def get_identity_verifier() -> IdentityVerifier:
    """Identity verifier used by the login callback."""
    return SteamOpenIDVerifier()


# =============================================================================
# Request Helpers
# =============================================================================


def get_callback_url(request: Request) -> str:
    """Build the callback URL for Steam to redirect back to.

    Uses X-Forwarded-Proto and X-Forwarded-Host headers if behind a proxy
    (Render, nginx, Cloudflare).
    """
    proto = request.headers.get("x-forwarded-proto", request.url.scheme)
    host = request.headers.get("x-forwarded-host") or request.headers.get(
        "host", request.url.netloc
    )
    return f"{proto}://{host}/auth/steam/callback"


def error_page(status_code: int, title: str, message: str, detail: str = "") -> HTMLResponse:
    """Minimal HTML error page for the in-app login browser."""
    detail_html = (
        f'<p style="color:#aaa;font-size:12px;">{html.escape(detail)}</p>' if detail else ""
    )
    content = (
        "<html><body style=\"background:#1a1a2e;color:white;font-family:Arial;"
        "display:flex;justify-content:center;align-items:center;height:100vh;margin:0;\">"
        '<div style="text-align:center;">'
        f'<h1 style="color:#ff6b6b;">{html.escape(title)}</h1>'
        f"<p>{html.escape(message)}</p>{detail_html}"
        "</div></body></html>"
    )
    return HTMLResponse(content=content, status_code=status_code)


# =============================================================================
# Pydantic Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for /health."""

    status: str
    timestamp: str
    version: str


class TokenResponse(BaseModel):
    """Response model for /auth/token/{steam_id}."""

    token: str = Field(..., description="Signed access token for the app")


class WebhookResponse(BaseModel):
    """Response model for an accepted webhook."""

    success: bool = True
