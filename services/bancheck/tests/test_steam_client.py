"""Tests for the Steam Web API client."""

import httpx
import pytest

from bancheck.services.steam_client import SteamWebApiClient, _parse_player_summaries

STEAM_ID = "76561198000000001"


def _payload(**player):
    return {"response": {"players": [player] if player else []}}


def _client(handler) -> SteamWebApiClient:
    return SteamWebApiClient(timeout=1, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_player_summary_parses_first_player():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=_payload(
                steamid=STEAM_ID,
                personaname="Gaben",
                profileurl="https://steamcommunity.com/id/gaben/",
                avatar="a.jpg",
                avatarmedium="am.jpg",
                avatarfull="af.jpg",
            ),
        )

    client = _client(handler)
    summary = await client.get_player_summary("secret", STEAM_ID)
    await client.close()

    assert summary is not None
    assert summary.steam_id == STEAM_ID
    assert summary.persona_name == "Gaben"
    assert summary.avatar_full == "af.jpg"
    assert seen[0].url.path == "/ISteamUser/GetPlayerSummaries/v2/"
    assert seen[0].url.params["key"] == "secret"
    assert seen[0].url.params["steamids"] == STEAM_ID


@pytest.mark.asyncio
async def test_non_success_status_returns_none():
    client = _client(lambda request: httpx.Response(403, text="forbidden"))

    assert await client.get_player_summary("bad-key", STEAM_ID) is None
    await client.close()


@pytest.mark.asyncio
async def test_blank_key_or_id_skips_request():
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("no request expected")

    client = _client(handler)
    assert await client.get_player_summary("", STEAM_ID) is None
    assert await client.get_player_summary("secret", "  ") is None
    await client.close()


@pytest.mark.asyncio
async def test_transport_errors_propagate():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = _client(handler)
    with pytest.raises(httpx.TimeoutException):
        await client.get_player_summary("secret", STEAM_ID)
    await client.close()


def test_parse_handles_missing_players():
    assert _parse_player_summaries(_payload()) is None
    assert _parse_player_summaries({"response": {}}) is None
    assert _parse_player_summaries([]) is None


def test_parse_defaults_missing_name():
    summary = _parse_player_summaries(_payload(steamid=STEAM_ID))
    assert summary is not None
    assert summary.persona_name == "Unknown"
    assert summary.profile_url is None
