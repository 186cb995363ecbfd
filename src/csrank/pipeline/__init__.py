"""
Match ingestion pipeline.

Webhook event → classify → normalize match → normalize players → persist
stat records → recompute aggregates for registered players.
"""

from csrank.pipeline.aggregation import compute_aggregate, update_player_aggregate
from csrank.pipeline.ingestion import MatchIngestor, parse_event
from csrank.pipeline.normalizer import (
    headshot_percent,
    normalize_match,
    normalize_player_stats,
)

__all__ = [
    "MatchIngestor",
    "compute_aggregate",
    "headshot_percent",
    "normalize_match",
    "normalize_player_stats",
    "parse_event",
    "update_player_aggregate",
]
