"""Tests for the auth package: access tokens, Steam OpenID, player profiles."""

from __future__ import annotations

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from jose import JWTError, jwt

from csrank.auth.jwt import create_access_token
from csrank.auth.steam import SteamOpenIDVerifier, fetch_player_summary, get_realm
from csrank.auth.users import profile_fields, upsert_user_profile, user_exists
from csrank.exceptions import SteamAPIError

STEAM_ID = "76561198000000001"
CLAIMED_ID = f"https://steamcommunity.com/openid/id/{STEAM_ID}"


def _claims(token, secret="test-secret-key-for-unit-tests"):
    return jwt.decode(token, secret, algorithms=["HS256"])


@pytest.fixture
def mock_http(monkeypatch):
    """Route every httpx.AsyncClient through a handler set by the test."""
    real_client = httpx.AsyncClient
    state = {"handler": None, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", factory)
    return state


def _callback_params(**overrides):
    params = {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.claimed_id": CLAIMED_ID,
        "openid.identity": CLAIMED_ID,
        "openid.sig": "abc",
    }
    params.update(overrides)
    return params


class TestJWT:
    """Test JWT token creation."""

    def test_create_access_token_returns_string(self):
        token = create_access_token(STEAM_ID, "alice")
        assert isinstance(token, str)
        # JWT has 3 parts separated by dots
        assert token.count(".") == 2

    def test_token_claims(self):
        claims = _claims(create_access_token(STEAM_ID, "alice"))
        assert claims["sub"] == STEAM_ID
        assert claims["steamId"] == STEAM_ID
        assert claims["personaName"] == "alice"
        assert "exp" in claims

    def test_persona_name_is_optional(self):
        claims = _claims(create_access_token(STEAM_ID))
        assert "personaName" not in claims

    def test_token_signed_with_configured_secret(self, test_config):
        test_config.auth.jwt_secret = "a-different-secret"
        token = create_access_token(STEAM_ID)
        assert _claims(token, "a-different-secret")["sub"] == STEAM_ID
        with pytest.raises(JWTError):
            _claims(token)

    def test_expiry_follows_config(self, test_config):
        test_config.auth.expiry_hours = 1
        short = _claims(create_access_token(STEAM_ID))["exp"]
        test_config.auth.expiry_hours = 48
        long = _claims(create_access_token(STEAM_ID))["exp"]
        assert long - short >= 47 * 3600

    def test_missing_secret_raises_runtime_error(self, test_config):
        test_config.auth.jwt_secret = ""
        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            create_access_token(STEAM_ID)


class TestSteamOpenIDVerifier:
    """Assertion checks and the check_authentication round-trip."""

    def test_auth_url(self):
        url = SteamOpenIDVerifier().build_auth_url("https://bridge.example/auth/steam/callback")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert parsed.netloc == "steamcommunity.com"
        assert query["openid.mode"] == ["checkid_setup"]
        assert query["openid.return_to"] == ["https://bridge.example/auth/steam/callback"]
        assert query["openid.realm"] == ["https://bridge.example"]

    def test_realm(self):
        assert get_realm("http://localhost:3000/auth/steam/callback") == "http://localhost:3000"

    def test_valid_assertion(self, mock_http):
        mock_http["handler"] = lambda request: httpx.Response(
            200, text="ns:http://specs.openid.net/auth/2.0\nis_valid:true\n"
        )

        steam_id = asyncio.run(SteamOpenIDVerifier().verify(_callback_params()))

        assert steam_id == STEAM_ID
        sent = parse_qs(mock_http["requests"][0].content.decode())
        assert sent["openid.mode"] == ["check_authentication"]
        assert sent["openid.sig"] == ["abc"]

    def test_rejected_assertion(self, mock_http):
        mock_http["handler"] = lambda request: httpx.Response(200, text="is_valid:false\n")
        assert asyncio.run(SteamOpenIDVerifier().verify(_callback_params())) is None

    def test_wrong_mode_skips_round_trip(self, mock_http):
        params = _callback_params(**{"openid.mode": "cancel"})
        assert asyncio.run(SteamOpenIDVerifier().verify(params)) is None
        assert mock_http["requests"] == []

    @pytest.mark.parametrize(
        "claimed_id",
        [
            "",
            "https://evil.example/openid/id/76561198000000001",
            "https://steamcommunity.com/openid/id/123",
            "https://steamcommunity.com/openid/id/76561198000000001/extra",
        ],
    )
    def test_bad_claimed_id(self, mock_http, claimed_id):
        params = _callback_params(**{"openid.claimed_id": claimed_id})
        assert asyncio.run(SteamOpenIDVerifier().verify(params)) is None
        assert mock_http["requests"] == []

    def test_http_error_is_not_valid(self, mock_http):
        mock_http["handler"] = lambda request: httpx.Response(503, text="is_valid:true")
        assert asyncio.run(SteamOpenIDVerifier().verify(_callback_params())) is None


class TestFetchPlayerSummary:
    """Steam Web API profile lookup."""

    def test_returns_first_player(self, mock_http):
        player = {"steamid": STEAM_ID, "personaname": "alice", "communityvisibilitystate": 3}
        mock_http["handler"] = lambda request: httpx.Response(
            200, json={"response": {"players": [player]}}
        )

        assert asyncio.run(fetch_player_summary(STEAM_ID)) == player
        request = mock_http["requests"][0]
        assert request.url.params["steamids"] == STEAM_ID
        assert request.url.params["key"] == "test-steam-key"

    def test_unknown_player(self, mock_http):
        mock_http["handler"] = lambda request: httpx.Response(200, json={"response": {"players": []}})
        with pytest.raises(SteamAPIError):
            asyncio.run(fetch_player_summary(STEAM_ID))

    def test_http_error(self, mock_http):
        mock_http["handler"] = lambda request: httpx.Response(403, text="Forbidden")
        with pytest.raises(SteamAPIError):
            asyncio.run(fetch_player_summary(STEAM_ID))

    def test_invalid_json(self, mock_http):
        mock_http["handler"] = lambda request: httpx.Response(200, text="<html>")
        with pytest.raises(SteamAPIError):
            asyncio.run(fetch_player_summary(STEAM_ID))

    def test_missing_api_key(self, mock_http, test_config):
        test_config.steam.api_key = ""
        with pytest.raises(SteamAPIError, match="STEAM_API_KEY"):
            asyncio.run(fetch_player_summary(STEAM_ID))
        assert mock_http["requests"] == []


class TestUserProfiles:
    """users/{steam_id} documents."""

    def test_profile_fields_fallback_name(self):
        fields = profile_fields(STEAM_ID, {})
        assert fields["personaName"] == "Player_0001"
        assert fields["avatarUrl"] == ""

    def test_first_login_creates_profile(self, store):
        profile = upsert_user_profile(store, STEAM_ID, {"personaname": "alice", "avatarfull": "a.jpg"})

        assert profile["steamId"] == STEAM_ID
        assert profile["personaName"] == "alice"
        assert profile["avatarUrl"] == "a.jpg"
        assert isinstance(profile["createdAt"], str)
        assert isinstance(profile["lastLogin"], str)
        assert user_exists(store, STEAM_ID)

    def test_second_login_keeps_created_at_and_aggregate(self, store):
        upsert_user_profile(store, STEAM_ID, {"personaname": "alice"})
        store.update(
            "users",
            STEAM_ID,
            {"createdAt": "2020-01-01T00:00:00+00:00", "aggregatedStats": {"totalMatches": 3}},
        )

        profile = upsert_user_profile(store, STEAM_ID, {"personaname": "alice2"})

        assert profile["personaName"] == "alice2"
        assert profile["createdAt"] == "2020-01-01T00:00:00+00:00"
        assert profile["aggregatedStats"] == {"totalMatches": 3}

    def test_unknown_user(self, store):
        assert user_exists(store, STEAM_ID) is False
