"""
CSRank Bridge - MatchZy webhook ingestion and Steam login bridge.

Receives match results from the MatchZy CS2 server plugin, stores per-match
and per-player statistics, keeps career aggregates for registered players,
and brokers Steam OpenID login for the CSRank mobile app.

Usage:
    from csrank import MatchIngestor, get_store

    ingestor = MatchIngestor(get_store())
    ingestor.handle_event({"event": "match_end", "matchid": "42", ...})
"""

__version__ = "2.0.0"
__author__ = "CSRank Contributors"


def __getattr__(name):
    """Lazy import for the pipeline and storage entry points."""
    if name == "MatchIngestor":
        from csrank.pipeline.ingestion import MatchIngestor
        return MatchIngestor
    elif name == "get_store":
        from csrank.infra.database import get_store
        return get_store
    elif name == "compute_aggregate":
        from csrank.pipeline.aggregation import compute_aggregate
        return compute_aggregate
    raise AttributeError(f"module 'csrank' has no attribute '{name}'")


__all__ = [
    "__version__",
    "MatchIngestor",
    "get_store",
    "compute_aggregate",
]
