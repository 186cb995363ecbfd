"""
MatchZy webhook ingestion.

Classifies webhook events and, for terminal match events, persists the
normalized match, one stat record per player, and refreshed aggregates for
players that already have a profile.

Players of one match are processed one after another. The aggregate write is a
read-modify-write on the player's profile, and nothing guards it against a
concurrent delivery of another match with the same player.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from csrank.core.constants import (
    COLLECTION_MATCHES,
    COLLECTION_MATCH_STATS,
    COLLECTION_USERS,
    INFO_EVENTS,
    TERMINAL_EVENTS,
)
from csrank.exceptions import MalformedEventError
from csrank.infra.database import SERVER_TIMESTAMP, DocumentStore
from csrank.pipeline.aggregation import update_player_aggregate
from csrank.pipeline.normalizer import (
    MatchRecord,
    PlayerStatRecord,
    normalize_match,
    normalize_player_stats,
)

logger = logging.getLogger(__name__)


def parse_event(body: bytes | str) -> dict[str, Any]:
    """
    Decode a raw webhook body.

    Raises:
        MalformedEventError: body is not JSON, not an object, or has no string event
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEventError(f"Webhook body is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedEventError("Webhook body must be a JSON object")
    event = data.get("event")
    if not isinstance(event, str) or not event:
        raise MalformedEventError("Webhook body has no 'event' field")
    return data


class MatchIngestor:
    """Runs webhook events through normalization, persistence and aggregation."""

    def __init__(self, store: DocumentStore, match_id_fallback: str | None = None):
        self.store = store
        if match_id_fallback is None:
            from csrank.core.config import get_config

            match_id_fallback = get_config().ingest.match_id_fallback
        self.match_id_fallback = match_id_fallback

    def handle_event(self, data: dict[str, Any]) -> str:
        """
        Dispatch a parsed webhook event.

        Returns:
            "match" when a match was ingested, "info" for informational
            events, "ignored" for unknown events
        """
        event = data.get("event")

        if event in TERMINAL_EVENTS:
            self.process_match_end(data)
            return "match"
        if event in INFO_EVENTS:
            logger.info(f"{event} received, waiting for match end")
            return "info"

        logger.info(f"Unknown event type: {event}")
        return "ignored"

    def process_match_end(self, data: dict[str, Any]) -> MatchRecord:
        """Persist a terminal event: the match, then each player in order."""
        match = normalize_match(data, match_id_fallback=self.match_id_fallback)
        logger.info(f"Processing {data.get('event')} for match {match.match_id}")

        self._upsert_match(match)

        saved = 0
        for team, player in match.players:
            if self.process_player_stats(match, team, player) is not None:
                saved += 1

        logger.info(f"Match {match.match_id} complete: {saved}/{len(match.players)} players saved")
        return match

    def _upsert_match(self, match: MatchRecord) -> None:
        doc = match.to_document()
        existing = self.store.get(COLLECTION_MATCHES, match.match_id)
        if existing is None or not existing.get("createdAt"):
            doc["createdAt"] = SERVER_TIMESTAMP
            doc["date"] = SERVER_TIMESTAMP
        self.store.set(COLLECTION_MATCHES, match.match_id, doc, merge=True)
        logger.info(f"Match saved: {match.match_id}")

    def process_player_stats(
        self,
        match: MatchRecord,
        team: int,
        player: dict[str, Any],
    ) -> PlayerStatRecord | None:
        """
        Persist one player's stat record and refresh their aggregate.

        Returns:
            The saved record, or None when the player was skipped
        """
        record = normalize_player_stats(player, team, match)
        if record is None:
            logger.info(f"Skipping player without steamid in match {match.match_id}: {player}")
            return None

        doc = record.to_document()
        doc["date"] = SERVER_TIMESTAMP
        self.store.set(COLLECTION_MATCH_STATS, record.doc_id, doc)
        logger.info(f"Stats saved for {record.display_name} ({record.player_identity})")

        try:
            if self.store.exists(COLLECTION_USERS, record.player_identity):
                update_player_aggregate(self.store, record.player_identity)
        except Exception:
            logger.exception(f"Error updating aggregated stats for {record.player_identity}")

        return record

    def replay_match(self, match_id: str) -> MatchRecord | None:
        """Re-run ingestion from a stored match's raw payload."""
        existing = self.store.get(COLLECTION_MATCHES, match_id)
        if existing is None:
            return None
        payload = dict(existing.get("rawPayload") or {})
        if not payload.get("matchid"):
            # Synthesized ids must survive the replay
            payload["matchid"] = match_id
        return self.process_match_end(payload)
