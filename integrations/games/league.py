"""League of Legends game integration.

Polls the Live Client Data API that the game client serves on
``https://127.0.0.1:2999`` while a match is running. The API reports
absolute scores, so the integration keeps its own counters and emits a
bookmark for every increase.

Example:
    >>> from core.recording import RecordingState
    >>> from integrations.games.league import LeagueOfLegendsIntegration
    >>> integration = LeagueOfLegendsIntegration(RecordingState())
    >>> await integration.start()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from core.config import LeagueSettings
from core.recording import BookmarkSink
from integrations.base import PollingIntegration
from models.bookmark import BookmarkType
from models.integration import TelemetrySource, TickResult
from models.telemetry import LeaguePlayer, LiveClientData

# Configure logging
logger = logging.getLogger(__name__)

GAME_START_EVENT = "GameStart"
RAW_CHAMPION_PREFIX = "game_character_displayname_"

# Raw champion names whose display spelling differs
CHAMPION_NAME_FIXES = {"FiddleSticks": "Fiddlesticks"}


@dataclass
class PlayerStats:
    """Counters last seen for the local player.

    Attributes:
        kills: Kills at the last observation.
        deaths: Deaths at the last observation.
        assists: Assists at the last observation.
        champion: Display name of the played champion.
    """

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    champion: str = ""


def champion_display_name(player: LeaguePlayer) -> Optional[str]:
    """Resolve the champion display name of a roster entry.

    Prefers ``championName``; falls back to ``rawChampionName`` with its
    localization prefix stripped.
    """
    if player.champion_name:
        return player.champion_name

    if player.raw_champion_name:
        name = player.raw_champion_name.replace(RAW_CHAMPION_PREFIX, "")
        return CHAMPION_NAME_FIXES.get(name, name)

    return None


class LeagueOfLegendsIntegration(PollingIntegration):
    """Game integration for League of Legends.

    State machine per tick:
    - API unreachable: the match is over (or never started).
    - ``GameStart`` event present: a match is in progress.
    - First observation of a match: capture a baseline, emit nothing,
      so kills made before the integration attached are not credited.
    - Later observations: emit one bookmark per unit increase.

    Attributes:
        game_id: "lol"
        display_name: "League of Legends"
        process_names: ["League of Legends.exe"]
        in_progress: Whether a match is believed to be running.
        baseline_captured: Whether counters were captured for this match.
        stats: Counters last seen for the local player.
    """

    game_id = "lol"
    display_name = "League of Legends"
    process_names = ["League of Legends.exe"]
    source = TelemetrySource.POLL
    version = "1.0.0"
    description = "League of Legends Live Client Data API poller"

    def __init__(
        self,
        sink: BookmarkSink,
        settings: Optional[LeagueSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the League integration.

        Args:
            sink: Where detected events are sent.
            settings: API location and polling interval.
            client: HTTP client to use. When omitted one is created on
                start (accepting the API's self-signed certificate) and
                closed on shutdown.
        """
        self.settings = settings or LeagueSettings()
        super().__init__(sink, interval=self.settings.interval)
        self._client = client
        self._owns_client = client is None
        self.in_progress: bool = False
        self.baseline_captured: bool = False
        self.stats = PlayerStats()

    @property
    def all_game_data_url(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}/allgamedata"

    async def _prepare(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=False,
                timeout=self.settings.request_timeout,
            )
            self._owns_client = True
        logger.info(
            "Initializing League of Legends data integration.",
            extra={"component": "integration", "game_id": self.game_id},
        )

    async def _release(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        logger.info(
            "Stopping League of Legends data integration.",
            extra={"component": "integration", "game_id": self.game_id},
        )

    def _end_match(self) -> None:
        if self.in_progress:
            self.in_progress = False
            self.baseline_captured = False
            logger.info(
                "League of Legends game ended or client closed",
                extra={"component": "integration", "game_id": self.game_id},
            )

    async def tick(self) -> TickResult:
        if self._client is None:
            raise RuntimeError("League integration has no HTTP client, call start() first")

        try:
            response = await self._client.get(self.all_game_data_url)
        except httpx.TransportError:
            # Client not running or not in a match
            self._end_match()
            return TickResult.skipped("live client API unreachable")

        if response.status_code != 200:
            self._end_match()
            return TickResult.skipped(f"live client API answered {response.status_code}")

        try:
            data = LiveClientData.model_validate_json(response.content)
        except ValidationError as e:
            logger.info(
                f"Malformed Live Client Data payload: {e}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return TickResult.skipped("malformed payload")

        return self.process_snapshot(data)

    def process_snapshot(self, data: LiveClientData) -> TickResult:
        """Diff one decoded snapshot against the stored counters."""
        if not data.has_event(GAME_START_EVENT):
            return TickResult.skipped("game has not started")

        if not self.in_progress:
            logger.info(
                "League of Legends game detected and started",
                extra={"component": "integration", "game_id": self.game_id},
            )
            self.in_progress = True
            self.baseline_captured = False

        identity = data.active_player.identity if data.active_player else None
        if not identity:
            return TickResult.skipped("active player has no identity")

        player = next((p for p in data.all_players if p.matches(identity)), None)
        if player is None:
            return TickResult.skipped(f"active player {identity!r} not in roster")

        if player.scores is None:
            return TickResult.skipped("active player has no scores")

        scores = player.scores
        kills = scores.kills if scores.kills is not None else self.stats.kills
        deaths = scores.deaths if scores.deaths is not None else self.stats.deaths
        assists = scores.assists if scores.assists is not None else self.stats.assists

        champion = champion_display_name(player)
        if champion:
            self.stats.champion = champion

        if not self.baseline_captured:
            logger.info(
                f"Initial League stats captured: K:{kills} D:{deaths} A:{assists} "
                f"({self.stats.champion or 'unknown champion'})",
                extra={"component": "integration", "game_id": self.game_id},
            )
            self.stats.kills = kills
            self.stats.deaths = deaths
            self.stats.assists = assists
            self.baseline_captured = True
            return TickResult.skipped("baseline captured")

        emitted = 0
        if kills > self.stats.kills:
            logger.info(
                f"Player got a kill! Total: {kills}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            emitted += self.emit(BookmarkType.KILL, kills - self.stats.kills)
            self.stats.kills = kills

        if deaths > self.stats.deaths:
            logger.info(
                f"Player died! Total deaths: {deaths}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            emitted += self.emit(BookmarkType.DEATH, deaths - self.stats.deaths)
            self.stats.deaths = deaths

        if assists > self.stats.assists:
            logger.info(
                f"Player got an assist! Total: {assists}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            emitted += self.emit(BookmarkType.ASSIST, assists - self.stats.assists)
            self.stats.assists = assists

        return TickResult.success(emitted)
