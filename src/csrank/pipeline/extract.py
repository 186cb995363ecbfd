"""
Extraction rules for MatchZy webhook payloads.

MatchZy versions disagree on where they put things: teams may sit at the top
level or under ``params``, scores under ``score`` or ``series_score``, and
player stats inline or under a nested ``stats`` object. Each field is therefore
described by an ordered tuple of key paths; the first path holding a present
value wins.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

Path = tuple[str, ...]

MATCH_ID_PATHS: tuple[Path, ...] = (("matchid",),)
MAP_PATHS: tuple[Path, ...] = (("map_name",), ("map",))
TEAM_PATHS: dict[int, tuple[Path, ...]] = {
    1: (("team1",), ("params", "team1")),
    2: (("team2",), ("params", "team2")),
}
TEAM_SCORE_PATHS: tuple[Path, ...] = (("score",), ("series_score",))
TEAM_NAME_PATHS: tuple[Path, ...] = (("name",),)
PLAYER_NAME_PATHS: tuple[Path, ...] = (("name",),)


def stat_paths(key: str) -> tuple[Path, ...]:
    """A player stat is read inline first, then from the nested stats object."""
    return ((key,), ("stats", key))


def is_present(value: Any) -> bool:
    """None and the empty string count as absent; 0 and False are values."""
    return value is not None and value != ""


def get_path(payload: Any, path: Path) -> Any:
    """Walk nested mappings along path, returning None when any step is missing."""
    current = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def first_present(
    payload: Any,
    paths: tuple[Path, ...],
    default: Any = None,
    accept: Callable[[Any], bool] | None = None,
) -> Any:
    """
    Return the value at the first path that holds a present value.

    Args:
        payload: Raw webhook object (or a sub-object of it)
        paths: Candidate key paths in priority order
        default: Returned when no path matches
        accept: Optional extra check a candidate value must pass

    Returns:
        The first matching value, or default
    """
    for path in paths:
        value = get_path(payload, path)
        if is_present(value) and (accept is None or accept(value)):
            return value
    return default


def first_truthy(payload: Any, paths: tuple[Path, ...], default: Any = None) -> Any:
    """
    Like first_present, but 0 and False also fall through to the next path.

    Used for scores and player stats, so a 0 under the first key does not hide
    a number under the next one.
    """
    return first_present(payload, paths, default, accept=bool)


def first_mapping(payload: Any, paths: tuple[Path, ...]) -> dict[str, Any]:
    """Like first_present, but only accepts objects and defaults to an empty dict."""
    value = first_present(payload, paths, accept=lambda v: isinstance(v, Mapping))
    return dict(value) if value is not None else {}
