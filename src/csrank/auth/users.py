"""Player profile documents, created and refreshed by the Steam login flow."""

from __future__ import annotations

import logging
from typing import Any

from csrank.core.constants import COLLECTION_USERS
from csrank.infra.database import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)


def profile_fields(steam_id: str, summary: dict[str, Any]) -> dict[str, Any]:
    """Map a raw Steam player summary onto profile document fields."""
    return {
        "steamId": steam_id,
        "personaName": summary.get("personaname") or f"Player_{steam_id[-4:]}",
        "avatarUrl": summary.get("avatarfull", ""),
        "avatarMedium": summary.get("avatarmedium", ""),
        "profileUrl": summary.get("profileurl", ""),
    }


def upsert_user_profile(
    store: DocumentStore, steam_id: str, summary: dict[str, Any]
) -> dict[str, Any]:
    """
    Create or refresh users/{steam_id} after a successful login.

    Existing fields such as aggregatedStats are kept. createdAt is only
    written the first time the profile is seen.

    Returns:
        The stored profile document
    """
    fields = profile_fields(steam_id, summary)
    fields["lastLogin"] = SERVER_TIMESTAMP
    fields["updatedAt"] = SERVER_TIMESTAMP
    store.set(COLLECTION_USERS, steam_id, fields, merge=True)

    profile = store.get(COLLECTION_USERS, steam_id) or {}
    if not profile.get("createdAt"):
        store.update(COLLECTION_USERS, steam_id, {"createdAt": SERVER_TIMESTAMP})
        profile = store.get(COLLECTION_USERS, steam_id) or profile
        logger.info(f"Created profile for Steam ID {steam_id}")

    return profile


def user_exists(store: DocumentStore, steam_id: str) -> bool:
    """Check whether a player has logged in at least once."""
    return store.exists(COLLECTION_USERS, steam_id)
