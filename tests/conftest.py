"""Shared fixtures: an isolated config, a throwaway document store, sample payloads."""

from __future__ import annotations

import copy

import pytest

from csrank.core.config import (
    AuthConfig,
    CSRankConfig,
    DatabaseConfig,
    SteamConfig,
    reset_config,
    set_config,
)
from csrank.infra.database import DocumentStore, set_store

PLAYER_A = "76561198000000001"
PLAYER_B = "76561198000000002"
PLAYER_C = "76561198000000003"
PLAYER_D = "76561198000000004"


@pytest.fixture(autouse=True)
def test_config(tmp_path):
    """Every test runs against its own config with a JWT secret and Steam key set."""
    config = CSRankConfig(
        database=DatabaseConfig(path=str(tmp_path / "config.db")),
        steam=SteamConfig(api_key="test-steam-key"),
        auth=AuthConfig(jwt_secret="test-secret-key-for-unit-tests"),
    )
    set_config(config)
    yield config
    reset_config()
    set_store(None)


@pytest.fixture
def store(tmp_path):
    """Empty SQLite-backed document store."""
    return DocumentStore(tmp_path / "store.db")


MATCH_END_PAYLOAD = {
    "event": "match_end",
    "matchid": "1001",
    "map_name": "de_mirage",
    "team1": {
        "name": "Alpha",
        "score": 16,
        "players": [
            {
                "steamid": PLAYER_A,
                "name": "alice",
                "kills": 20,
                "deaths": 10,
                "assists": 4,
                "headshot_kills": 10,
                "adr": 95.5,
                "kast": 80,
                "rating": 1.35,
                "mvps": 5,
            },
            {
                "steam_id": PLAYER_B,
                "name": "bob",
                "stats": {"kills": 3, "deaths": 15, "headshot_kills": 1, "damage": 800},
            },
        ],
    },
    "team2": {
        "name": "Bravo",
        "score": 10,
        "players": [
            {"steamid": PLAYER_C, "name": "carol", "kills": 12, "deaths": 17},
            {"name": "bot without id", "kills": 2},
        ],
    },
}


@pytest.fixture
def match_payload():
    """A fresh copy of a decided match_end payload (Alpha 16 - 10 Bravo)."""
    return copy.deepcopy(MATCH_END_PAYLOAD)


@pytest.fixture
def make_match():
    """Builder for small match_end payloads with all players on team 1."""

    def _make(match_id: str, players: list[dict], score1: int = 16, score2: int = 10) -> dict:
        return {
            "event": "match_end",
            "matchid": match_id,
            "map_name": "de_inferno",
            "team1": {"name": "Alpha", "score": score1, "players": players},
            "team2": {"name": "Bravo", "score": score2, "players": []},
        }

    return _make
