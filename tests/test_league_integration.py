"""Tests for the League of Legends Live Client Data API poller."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import httpx
import pytest

from core.config import LeagueSettings
from integrations.games.league import LeagueOfLegendsIntegration, champion_display_name
from models.bookmark import BookmarkType
from models.integration import IntegrationState, TickStatus
from models.telemetry import LeaguePlayer, LiveClientData

SELF_ID = "Faker#KR1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _snapshot(
    kills: Optional[int] = 0,
    deaths: Optional[int] = 0,
    assists: Optional[int] = 0,
    started: bool = True,
    champion: str = "Ahri",
) -> Dict[str, Any]:
    scores = {"creepScore": 10, "wardScore": 0.0}
    for name, value in (("kills", kills), ("deaths", deaths), ("assists", assists)):
        if value is not None:
            scores[name] = value

    events = [{"EventID": 0, "EventName": "GameStart", "EventTime": 0.03}] if started else []
    return {
        "activePlayer": {"riotId": SELF_ID, "summonerName": "Faker", "level": 6},
        "allPlayers": [
            {"riotId": "Other#EUW", "championName": "Garen", "scores": {"kills": 9}},
            {"riotId": SELF_ID, "championName": champion, "team": "ORDER", "scores": scores},
        ],
        "events": {"Events": events},
        "gameData": {"gameMode": "CLASSIC"},
    }


class ScriptedApi:
    """Answers each request with the next scripted snapshot or error."""

    def __init__(self) -> None:
        self.replies: List[Union[Dict[str, Any], int, Exception, bytes]] = []
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, int):
            return httpx.Response(reply, json={"errorCode": "RESOURCE_NOT_FOUND"})
        if isinstance(reply, bytes):
            return httpx.Response(200, content=reply)
        return httpx.Response(200, json=reply)


@pytest.fixture
def api() -> ScriptedApi:
    return ScriptedApi()


@pytest.fixture
def league(recording, api) -> LeagueOfLegendsIntegration:
    client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return LeagueOfLegendsIntegration(recording, client=client)


def _types(recording) -> List[BookmarkType]:
    return [b.type for b in recording.snapshot().bookmarks]


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------


class TestPolling:
    @pytest.mark.asyncio
    async def test_requests_all_game_data(self, league, api):
        api.replies.append(_snapshot())
        await league.tick()
        assert str(api.requests[0].url) == "https://127.0.0.1:2999/liveclientdata/allgamedata"

    @pytest.mark.asyncio
    async def test_baseline_then_increments(self, league, api, recording):
        api.replies += [_snapshot(2, 1, 0), _snapshot(4, 1, 1)]

        first = await league.tick()
        assert first.status == TickStatus.SKIPPED
        assert first.reason == "baseline captured"
        assert recording.snapshot().bookmarks == []

        second = await league.tick()
        assert second.status == TickStatus.SUCCESS
        assert second.emitted == 3
        assert sorted(t.value for t in _types(recording)) == ["Assist", "Kill", "Kill"]

    @pytest.mark.asyncio
    async def test_unreachable_resets_baseline(self, league, api, recording):
        api.replies += [
            _snapshot(2, 0, 0),
            httpx.ConnectError("connection refused"),
            _snapshot(5, 0, 0),
            _snapshot(6, 0, 0),
        ]

        await league.tick()
        assert league.in_progress

        result = await league.tick()
        assert result.status == TickStatus.SKIPPED
        assert not league.in_progress
        assert not league.baseline_captured

        # New match: the first observation is a baseline again
        assert (await league.tick()).reason == "baseline captured"
        assert (await league.tick()).emitted == 1
        assert _types(recording) == [BookmarkType.KILL]

    @pytest.mark.asyncio
    async def test_error_status_ends_match(self, league, api):
        api.replies += [_snapshot(), 404]
        await league.tick()

        result = await league.tick()
        assert result.status == TickStatus.SKIPPED
        assert not league.in_progress

    @pytest.mark.asyncio
    async def test_malformed_json_keeps_match(self, league, api, recording):
        api.replies += [_snapshot(1, 0, 0), b"{truncated", _snapshot(2, 0, 0)]
        await league.tick()

        result = await league.tick()
        assert result.reason == "malformed payload"
        assert league.in_progress

        assert (await league.tick()).emitted == 1

    @pytest.mark.asyncio
    async def test_game_not_started(self, league, api):
        api.replies.append(_snapshot(started=False))
        result = await league.tick()

        assert result.status == TickStatus.SKIPPED
        assert not league.in_progress

    @pytest.mark.asyncio
    async def test_missing_scores_keep_stored_values(self, league, api, recording):
        api.replies += [_snapshot(2, 1, 0), _snapshot(3, None, None)]
        await league.tick()

        assert (await league.tick()).emitted == 1
        assert league.stats.deaths == 1
        assert _types(recording) == [BookmarkType.KILL]

    @pytest.mark.asyncio
    async def test_decrease_is_no_change(self, league, api, recording):
        api.replies += [_snapshot(3, 3, 3), _snapshot(1, 3, 3), _snapshot(4, 3, 3)]
        await league.tick()
        await league.tick()

        assert (await league.tick()).emitted == 1

    @pytest.mark.asyncio
    async def test_unknown_player_skipped(self, league, api):
        snapshot = _snapshot()
        snapshot["activePlayer"] = {"riotId": "Someone#Else"}
        api.replies.append(snapshot)

        result = await league.tick()
        assert result.status == TickStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_summoner_name_fallback(self, league, api):
        snapshot = _snapshot(1, 0, 0)
        snapshot["activePlayer"] = {"summonerName": "Faker"}
        snapshot["allPlayers"][1] = {"summonerName": "Faker", "championName": "Ahri", "scores": {"kills": 1}}
        api.replies.append(snapshot)

        assert (await league.tick()).reason == "baseline captured"
        assert league.stats.kills == 1

    @pytest.mark.asyncio
    async def test_start_and_shutdown_keep_injected_client(self, recording, api):
        api.replies += [_snapshot()] * 50
        client = httpx.AsyncClient(transport=httpx.MockTransport(api))
        integration = LeagueOfLegendsIntegration(
            recording,
            settings=LeagueSettings(interval=60),
            client=client,
        )

        assert await integration.start() is True
        await integration.shutdown()

        assert integration.state == IntegrationState.STOPPED
        assert not client.is_closed
        await client.aclose()


# ---------------------------------------------------------------------------
# Champion names
# ---------------------------------------------------------------------------


class TestChampionName:
    def test_display_name_preferred(self):
        player = LeaguePlayer.model_validate({"championName": "Wukong", "rawChampionName": "x"})
        assert champion_display_name(player) == "Wukong"

    def test_raw_name_prefix_stripped(self):
        player = LeaguePlayer.model_validate(
            {"rawChampionName": "game_character_displayname_MonkeyKing"}
        )
        assert champion_display_name(player) == "MonkeyKing"

    def test_fiddlesticks_normalized(self):
        player = LeaguePlayer.model_validate(
            {"rawChampionName": "game_character_displayname_FiddleSticks"}
        )
        assert champion_display_name(player) == "Fiddlesticks"

    def test_champion_refreshed_from_snapshot(self, sink):
        integration = LeagueOfLegendsIntegration(sink)
        integration.process_snapshot(LiveClientData.model_validate(_snapshot(champion="Lux")))
        assert integration.stats.champion == "Lux"
