"""
Career aggregates for registered players.

Every call re-reads all of the player's matchStats documents and recomputes the
aggregate from scratch; nothing is updated incrementally. The cost is linear in
the player's match count.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from csrank.core.constants import COLLECTION_MATCH_STATS, COLLECTION_USERS, COUNTING_STATS
from csrank.core.utils import round_half_up, safe_float, safe_int
from csrank.exceptions import DocumentNotFoundError
from csrank.infra.database import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

AGGREGATE_FIELD = "aggregatedStats"


def total_field(record_field: str) -> str:
    """kills -> totalKills, headshotKills -> totalHeadshotKills."""
    return "total" + record_field[0].upper() + record_field[1:]


def _average(total: float, count: int, digits: int) -> float:
    return round_half_up(total / count, digits) if count > 0 else 0


def compute_aggregate(stat_records: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """
    Fold a player's per-match stat documents into a PlayerAggregate.

    isWinner true counts a win, false a loss, anything else (a missing field or
    a legacy null) a draw. The normalizer stores false for drawn matches.

    Args:
        stat_records: matchStats document bodies of a single player

    Returns:
        Aggregate dict without lastUpdated
    """
    totals = {record_field: 0 for record_field, _ in COUNTING_STATS}
    total_adr = total_rating = total_hs_percent = total_kast = 0.0
    wins = losses = draws = 0
    match_count = 0

    for record in stat_records:
        for record_field in totals:
            totals[record_field] += safe_int(record.get(record_field))
        total_adr += safe_float(record.get("adr"))
        total_rating += safe_float(record.get("rating"))
        total_hs_percent += safe_float(record.get("headshotPercent"))
        total_kast += safe_float(record.get("kast"))

        is_winner = record.get("isWinner")
        if is_winner is True:
            wins += 1
        elif is_winner is False:
            losses += 1
        else:
            draws += 1

        match_count += 1

    kills, deaths = totals["kills"], totals["deaths"]

    aggregate: dict[str, Any] = {"totalMatches": match_count}
    for record_field, value in totals.items():
        aggregate[total_field(record_field)] = value
    aggregate.update(
        {
            "kdRatio": round_half_up(kills / deaths, 2) if deaths > 0 else kills,
            "avgAdr": _average(total_adr, match_count, 1),
            "avgRating": _average(total_rating, match_count, 2),
            "avgHsPercent": _average(total_hs_percent, match_count, 1),
            "avgKast": _average(total_kast, match_count, 1),
            "wins": wins,
            "losses": losses,
            "draws": draws,
            "winRate": _average(wins * 100, match_count, 1),
        }
    )
    return aggregate


def update_player_aggregate(store: DocumentStore, steam_id: str) -> dict[str, Any] | None:
    """
    Recompute a player's aggregate and write it onto their profile.

    Never creates the profile. A profile that disappears between the caller's
    existence check and this write is logged and skipped.

    Returns:
        The written aggregate, or None when nothing was written
    """
    records = store.query(COLLECTION_MATCH_STATS, "playerIdentity", steam_id)
    if not records:
        logger.debug(f"No stat records for {steam_id}, aggregate unchanged")
        return None

    aggregate = compute_aggregate(records)
    aggregate["lastUpdated"] = SERVER_TIMESTAMP

    try:
        store.update(COLLECTION_USERS, steam_id, {AGGREGATE_FIELD: aggregate})
    except DocumentNotFoundError:
        logger.warning(f"Profile {steam_id} vanished before its aggregate could be written")
        return None

    logger.info(f"Aggregated stats updated for {steam_id} ({aggregate['totalMatches']} matches)")
    return aggregate
