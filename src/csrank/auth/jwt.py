"""JWT access token creation using python-jose."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt

from csrank.core.config import get_config


def _secret() -> str:
    secret = get_config().auth.jwt_secret
    if not secret:
        raise RuntimeError("JWT_SECRET environment variable not set")
    return secret


def create_access_token(steam_id: str, persona_name: str | None = None) -> str:
    """Create a signed access token whose subject is the player's Steam identity."""
    auth = get_config().auth
    payload: dict[str, Any] = {
        "sub": steam_id,
        "steamId": steam_id,
        "exp": datetime.now(UTC) + timedelta(hours=auth.expiry_hours),
    }
    if persona_name:
        payload["personaName"] = persona_name
    return jwt.encode(payload, _secret(), algorithm=auth.algorithm)

