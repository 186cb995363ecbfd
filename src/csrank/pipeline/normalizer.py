"""
Match and player-stat normalization.

Turns a loosely-typed MatchZy terminal event into one MatchRecord and one
PlayerStatRecord per identified player. Pure functions only; persistence
lives in ingestion.py.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from csrank.core.constants import (
    COUNTING_STATS,
    DEFAULT_MAP_NAME,
    DEFAULT_PLAYER_NAME,
    PLAYER_ID_KEYS,
    RATE_STATS,
)
from csrank.core.utils import safe_float, safe_int, safe_str
from csrank.pipeline.extract import (
    MAP_PATHS,
    MATCH_ID_PATHS,
    PLAYER_NAME_PATHS,
    TEAM_NAME_PATHS,
    TEAM_PATHS,
    TEAM_SCORE_PATHS,
    first_mapping,
    first_present,
    first_truthy,
    stat_paths,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Records
# =============================================================================


@dataclass
class MatchRecord:
    """One completed match (or map)."""

    match_id: str
    map_name: str
    team1_name: str
    team2_name: str
    score_team1: int
    score_team2: int
    raw_payload: dict[str, Any] = field(default_factory=dict, repr=False)
    # (team index, raw player object) in processing order
    players: list[tuple[int, dict[str, Any]]] = field(default_factory=list, repr=False)

    @property
    def is_draw(self) -> bool:
        return self.score_team1 == self.score_team2

    @property
    def winner(self) -> int:
        """1 or 2 for the winning team, 0 for a draw."""
        if self.score_team1 > self.score_team2:
            return 1
        if self.score_team2 > self.score_team1:
            return 2
        return 0

    def team_name(self, team: int) -> str:
        return self.team1_name if team == 1 else self.team2_name

    def to_document(self) -> dict[str, Any]:
        """Document body without the creation timestamps."""
        return {
            "matchId": self.match_id,
            "map": self.map_name,
            "team1Name": self.team1_name,
            "team2Name": self.team2_name,
            "scoreTeam1": self.score_team1,
            "scoreTeam2": self.score_team2,
            "isDraw": self.is_draw,
            "winner": self.winner,
            "rawPayload": self.raw_payload,
        }


@dataclass
class PlayerStatRecord:
    """One player's line in one match."""

    match_id: str
    player_identity: str
    display_name: str
    team: int
    team_name: str
    # False on a drawn match
    is_winner: bool
    map_name: str
    counting: dict[str, int] = field(default_factory=dict)
    adr: float = 0.0
    kast: float = 0.0
    rating: float = 0.0

    @property
    def doc_id(self) -> str:
        return stats_doc_id(self.match_id, self.player_identity)

    @property
    def headshot_percent(self) -> int:
        return headshot_percent(
            self.counting.get("kills", 0), self.counting.get("headshotKills", 0)
        )

    def to_document(self) -> dict[str, Any]:
        """Document body without the date timestamp."""
        doc: dict[str, Any] = {
            "matchId": self.match_id,
            "playerIdentity": self.player_identity,
            "displayName": self.display_name,
            "team": self.team,
            "teamName": self.team_name,
            "isWinner": self.is_winner,
        }
        for record_field, _ in COUNTING_STATS:
            doc[record_field] = self.counting.get(record_field, 0)
        doc["adr"] = self.adr
        doc["kast"] = self.kast
        doc["rating"] = self.rating
        doc["headshotPercent"] = self.headshot_percent
        doc["map"] = self.map_name
        return doc


def stats_doc_id(match_id: str, player_identity: str) -> str:
    """Deterministic key of a PlayerStatRecord."""
    return f"{match_id}_{player_identity}"


# =============================================================================
# Derived Stats
# =============================================================================


def headshot_percent(kills: int, headshot_kills: int) -> int:
    """Headshot kills as a whole percentage of kills, rounded half-up. 0 without kills."""
    if kills <= 0:
        return 0
    return int(math.floor(headshot_kills * 100 / kills + 0.5))


# =============================================================================
# Match Normalization
# =============================================================================


def synthesize_match_id(strategy: str = "timestamp", now_ms: int | None = None) -> str:
    """
    Build a fallback match id for payloads that carry none.

    "timestamp" ids can collide for two deliveries in the same millisecond;
    "uuid" ids cannot but lose their ordering.
    """
    if strategy == "uuid":
        return f"match_{uuid.uuid4().hex}"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"match_{now_ms}"


def normalize_match(
    payload: dict[str, Any],
    match_id_fallback: str = "timestamp",
    now_ms: int | None = None,
) -> MatchRecord:
    """
    Normalize a terminal MatchZy event into a MatchRecord.

    Args:
        payload: Raw webhook body
        match_id_fallback: "timestamp" or "uuid", used when matchid is missing
        now_ms: Clock override for the timestamp fallback (tests)

    Returns:
        MatchRecord with its players flattened team 1 first, then team 2
    """
    match_id = first_present(payload, MATCH_ID_PATHS)
    if match_id is None:
        match_id = synthesize_match_id(match_id_fallback, now_ms)
        logger.info(f"Payload has no matchid, using {match_id}")

    team1 = first_mapping(payload, TEAM_PATHS[1])
    team2 = first_mapping(payload, TEAM_PATHS[2])

    players: list[tuple[int, dict[str, Any]]] = []
    for team_index, team in ((1, team1), (2, team2)):
        team_players = team.get("players") or []
        if not isinstance(team_players, list):
            logger.warning(f"team{team_index}.players is not a list, ignoring it")
            continue
        for player in team_players:
            if isinstance(player, dict):
                players.append((team_index, player))
            else:
                logger.warning(f"Ignoring non-object player entry in team{team_index}: {player!r}")

    return MatchRecord(
        match_id=safe_str(match_id),
        map_name=safe_str(first_present(payload, MAP_PATHS, DEFAULT_MAP_NAME)),
        team1_name=safe_str(first_present(team1, TEAM_NAME_PATHS, "Team 1")),
        team2_name=safe_str(first_present(team2, TEAM_NAME_PATHS, "Team 2")),
        score_team1=max(safe_int(first_truthy(team1, TEAM_SCORE_PATHS, 0)), 0),
        score_team2=max(safe_int(first_truthy(team2, TEAM_SCORE_PATHS, 0)), 0),
        raw_payload=payload,
        players=players,
    )


# =============================================================================
# Player Normalization
# =============================================================================


def resolve_player_identity(player: dict[str, Any]) -> str | None:
    """Return the player's Steam identity, or None when the player has none."""
    value = first_present(player, tuple((key,) for key in PLAYER_ID_KEYS))
    return safe_str(value) if value is not None else None


def normalize_player_stats(
    player: dict[str, Any],
    team: int,
    match: MatchRecord,
) -> PlayerStatRecord | None:
    """
    Normalize one raw player object into a PlayerStatRecord.

    Returns:
        The record, or None when the player carries no identity
    """
    identity = resolve_player_identity(player)
    if identity is None:
        return None

    counting = {
        record_field: max(safe_int(first_truthy(player, stat_paths(key), 0)), 0)
        for record_field, key in COUNTING_STATS
    }
    rates = {
        record_field: safe_float(first_truthy(player, stat_paths(key), 0.0))
        for record_field, key in RATE_STATS
    }

    return PlayerStatRecord(
        match_id=match.match_id,
        player_identity=identity,
        display_name=safe_str(first_present(player, PLAYER_NAME_PATHS, DEFAULT_PLAYER_NAME)),
        team=team,
        team_name=match.team_name(team),
        is_winner=match.winner == team,
        map_name=match.map_name,
        counting=counting,
        adr=rates["adr"],
        kast=rates["kast"],
        rating=rates["rating"],
    )
