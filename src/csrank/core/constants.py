"""
Constants shared by the ingestion pipeline, aggregation engine and API.
"""

from enum import Enum

# =============================================================================
# Document Store Layout
# =============================================================================

COLLECTION_MATCHES = "matches"
COLLECTION_MATCH_STATS = "matchStats"
COLLECTION_USERS = "users"

# =============================================================================
# MatchZy Webhook Events
# =============================================================================


class WebhookEvent(str, Enum):
    """Event names sent by the MatchZy plugin that the bridge knows about."""

    MATCH_END = "match_end"
    SERIES_END = "series_end"
    MAP_RESULT = "map_result"
    ROUND_END = "round_end"


# Events that carry final scores and player stats
TERMINAL_EVENTS = frozenset(
    {WebhookEvent.MATCH_END.value, WebhookEvent.SERIES_END.value, WebhookEvent.MAP_RESULT.value}
)

# Events acknowledged without any writes
INFO_EVENTS = frozenset({WebhookEvent.ROUND_END.value})

# =============================================================================
# Player Stat Fields
# =============================================================================

# (record field, MatchZy key) for integer counting stats.
# Aggregates carry one "total" + capitalized record field per entry.
COUNTING_STATS: tuple[tuple[str, str], ...] = (
    ("kills", "kills"),
    ("deaths", "deaths"),
    ("assists", "assists"),
    ("headshotKills", "headshot_kills"),
    ("mvps", "mvps"),
    ("utilityDamage", "utility_damage"),
    ("enemiesFlashed", "enemies_flashed"),
    ("flashAssists", "flash_assists"),
    ("bombPlants", "bomb_plants"),
    ("bombDefuses", "bomb_defuses"),
    ("firstKills", "first_kills"),
    ("firstDeaths", "first_deaths"),
    ("clutchesWon", "clutches_won"),
    ("damage", "damage"),
)

# (record field, MatchZy key) for upstream-computed rate stats passed through
RATE_STATS: tuple[tuple[str, str], ...] = (
    ("adr", "adr"),
    ("kast", "kast"),
    ("rating", "rating"),
)

# Player identity keys, in priority order
PLAYER_ID_KEYS: tuple[str, ...] = ("steamid", "steam_id")

DEFAULT_MAP_NAME = "unknown"
DEFAULT_PLAYER_NAME = "Unknown"
