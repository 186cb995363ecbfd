"""
CSRank Core - Configuration and shared constants.

This module contains:
- config: Application configuration management
- constants: Collection names, webhook event names and stat field tables
"""

from csrank.core.constants import (
    COLLECTION_MATCHES,
    COLLECTION_MATCH_STATS,
    COLLECTION_USERS,
    INFO_EVENTS,
    TERMINAL_EVENTS,
    WebhookEvent,
)

__all__ = [
    "COLLECTION_MATCHES",
    "COLLECTION_MATCH_STATS",
    "COLLECTION_USERS",
    "INFO_EVENTS",
    "TERMINAL_EVENTS",
    "WebhookEvent",
]
