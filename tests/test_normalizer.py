"""Tests for match and player-stat normalization."""

from __future__ import annotations

import pytest

from csrank.pipeline.extract import first_present, first_truthy, get_path, stat_paths
from csrank.pipeline.normalizer import (
    headshot_percent,
    normalize_match,
    normalize_player_stats,
    synthesize_match_id,
)


class TestHeadshotPercent:
    """Headshot percentage rounding."""

    @pytest.mark.parametrize(
        "kills,headshots,expected",
        [
            (0, 0, 0),
            (0, 7, 0),
            (10, 5, 50),
            (3, 1, 33),
            (3, 2, 67),
            (8, 1, 13),  # 12.5 rounds up
            (200, 1, 1),  # 0.5 rounds up
        ],
    )
    def test_headshot_percent(self, kills, headshots, expected):
        assert headshot_percent(kills, headshots) == expected


class TestExtractionRules:
    """Ordered key-path lookups."""

    def test_get_path_walks_nested_objects(self):
        assert get_path({"params": {"team1": {"name": "A"}}}, ("params", "team1", "name")) == "A"

    def test_get_path_missing_step_returns_none(self):
        assert get_path({"params": "oops"}, ("params", "team1")) is None

    def test_first_present_respects_priority(self):
        payload = {"map_name": "de_nuke", "map": "de_dust2"}
        assert first_present(payload, (("map_name",), ("map",))) == "de_nuke"

    def test_empty_string_falls_through(self):
        payload = {"map_name": "", "map": "de_dust2"}
        assert first_present(payload, (("map_name",), ("map",))) == "de_dust2"

    def test_zero_is_present_for_plain_rules(self):
        player = {"kills": 0, "stats": {"kills": 9}}
        assert first_present(player, stat_paths("kills"), 0) == 0

    def test_zero_falls_through_for_numeric_rules(self):
        player = {"kills": 0, "stats": {"kills": 9}}
        assert first_truthy(player, stat_paths("kills"), 0) == 9

    def test_numeric_rule_default_when_all_zero(self):
        assert first_truthy({"score": 0, "series_score": 0}, (("score",), ("series_score",)), 0) == 0

    def test_default_when_nothing_matches(self):
        assert first_present({}, stat_paths("mvps"), 0) == 0


class TestNormalizeMatch:
    """MatchRecord resolution from loosely shaped payloads."""

    def test_decided_match(self, match_payload):
        match = normalize_match(match_payload)

        assert match.match_id == "1001"
        assert match.map_name == "de_mirage"
        assert match.team1_name == "Alpha"
        assert match.team2_name == "Bravo"
        assert match.score_team1 == 16
        assert match.score_team2 == 10
        assert match.winner == 1
        assert match.is_draw is False

    def test_team_two_wins(self):
        match = normalize_match({"team1": {"score": 9}, "team2": {"score": 13}})
        assert match.winner == 2
        assert match.is_draw is False

    def test_draw(self):
        match = normalize_match({"team1": {"score": 15}, "team2": {"score": 15}})
        assert match.winner == 0
        assert match.is_draw is True

    def test_empty_payload_defaults(self):
        match = normalize_match({"event": "match_end"}, now_ms=1700000000000)

        assert match.match_id == "match_1700000000000"
        assert match.map_name == "unknown"
        assert match.team1_name == "Team 1"
        assert match.team2_name == "Team 2"
        assert match.score_team1 == 0
        assert match.score_team2 == 0
        assert match.is_draw is True
        assert match.players == []

    def test_uuid_fallback(self):
        match_id = synthesize_match_id("uuid")
        assert match_id.startswith("match_")
        assert len(match_id) == len("match_") + 32

    def test_numeric_matchid_becomes_string(self):
        assert normalize_match({"matchid": 77}).match_id == "77"

    def test_empty_matchid_is_synthesized(self):
        match = normalize_match({"matchid": ""}, now_ms=5)
        assert match.match_id == "match_5"

    def test_map_fallback_key(self):
        assert normalize_match({"map": "de_ancient"}).map_name == "de_ancient"

    def test_teams_under_params(self):
        payload = {
            "params": {
                "team1": {"name": "P1", "series_score": 2},
                "team2": {"name": "P2", "series_score": 1},
            }
        }
        match = normalize_match(payload)
        assert match.team1_name == "P1"
        assert match.score_team1 == 2
        assert match.score_team2 == 1
        assert match.winner == 1

    def test_zero_score_falls_back_to_series_score(self):
        payload = {
            "team1": {"score": 0, "series_score": 2},
            "team2": {"score": 0, "series_score": 1},
        }
        match = normalize_match(payload)

        assert match.score_team1 == 2
        assert match.score_team2 == 1
        assert match.winner == 1
        assert match.is_draw is False

    def test_top_level_team_wins_over_params(self):
        payload = {"team1": {"name": "Top"}, "params": {"team1": {"name": "Nested"}}}
        assert normalize_match(payload).team1_name == "Top"

    def test_score_as_string(self):
        match = normalize_match({"team1": {"score": "13"}, "team2": {"score": "garbage"}})
        assert match.score_team1 == 13
        assert match.score_team2 == 0

    def test_players_flattened_in_team_order(self, match_payload):
        match = normalize_match(match_payload)
        assert [team for team, _ in match.players] == [1, 1, 2, 2]
        assert match.players[0][1]["name"] == "alice"
        assert match.players[2][1]["name"] == "carol"

    def test_non_list_players_ignored(self):
        match = normalize_match({"team1": {"players": "nope"}, "team2": {"players": [{"steamid": "1"}]}})
        assert match.players == [(2, {"steamid": "1"})]

    def test_document_fields(self, match_payload):
        doc = normalize_match(match_payload).to_document()
        assert doc["matchId"] == "1001"
        assert doc["isDraw"] is False
        assert doc["winner"] == 1
        assert doc["rawPayload"] == match_payload
        assert "createdAt" not in doc


class TestNormalizePlayerStats:
    """PlayerStatRecord resolution."""

    def test_inline_stats(self, match_payload):
        match = normalize_match(match_payload)
        team, player = match.players[0]
        record = normalize_player_stats(player, team, match)

        assert record is not None
        assert record.player_identity == "76561198000000001"
        assert record.doc_id == "1001_76561198000000001"
        assert record.display_name == "alice"
        assert record.team == 1
        assert record.team_name == "Alpha"
        assert record.is_winner is True
        assert record.counting["kills"] == 20
        assert record.counting["headshotKills"] == 10
        assert record.counting["mvps"] == 5
        assert record.adr == 95.5
        assert record.rating == 1.35
        assert record.headshot_percent == 50
        assert record.map_name == "de_mirage"

    def test_nested_stats_and_steam_id_key(self, match_payload):
        match = normalize_match(match_payload)
        team, player = match.players[1]
        record = normalize_player_stats(player, team, match)

        assert record.player_identity == "76561198000000002"
        assert record.counting["kills"] == 3
        assert record.counting["damage"] == 800
        assert record.headshot_percent == 33

    def test_losing_team(self, match_payload):
        match = normalize_match(match_payload)
        team, player = match.players[2]
        record = normalize_player_stats(player, team, match)
        assert record.is_winner is False
        assert record.team_name == "Bravo"

    def test_missing_identity_returns_none(self, match_payload):
        match = normalize_match(match_payload)
        team, player = match.players[3]
        assert normalize_player_stats(player, team, match) is None

    def test_draw_is_not_a_win(self):
        match = normalize_match({"team1": {"score": 8}, "team2": {"score": 8}})
        for team in (1, 2):
            record = normalize_player_stats({"steamid": "1"}, team, match)
            assert record.is_winner is False
            assert record.to_document()["isWinner"] is False

    def test_zero_inline_stat_uses_nested_value(self):
        match = normalize_match({"matchid": "m"})
        player = {"steamid": "1", "kills": 0, "headshot_kills": 0, "adr": 0,
                  "stats": {"kills": 9, "headshot_kills": 3, "adr": 71.5}}
        record = normalize_player_stats(player, 1, match)

        assert record.counting["kills"] == 9
        assert record.counting["headshotKills"] == 3
        assert record.adr == 71.5
        assert record.headshot_percent == 33

    def test_missing_stats_default_to_zero(self):
        match = normalize_match({"matchid": "m"})
        record = normalize_player_stats({"steamid": "1"}, 2, match)
        doc = record.to_document()

        assert doc["adr"] == 0
        assert doc["kast"] == 0
        assert doc["rating"] == 0
        assert doc["kills"] == 0
        assert doc["clutchesWon"] == 0
        assert doc["headshotPercent"] == 0
        assert doc["displayName"] == "Unknown"

    def test_document_contains_every_stat(self, match_payload):
        match = normalize_match(match_payload)
        team, player = match.players[0]
        doc = normalize_player_stats(player, team, match).to_document()

        for key in (
            "kills", "deaths", "assists", "headshotKills", "mvps", "utilityDamage",
            "enemiesFlashed", "flashAssists", "bombPlants", "bombDefuses", "firstKills",
            "firstDeaths", "clutchesWon", "damage", "adr", "kast", "rating",
            "headshotPercent", "map", "matchId", "playerIdentity", "isWinner",
        ):
            assert key in doc
