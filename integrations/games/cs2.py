"""Counter-Strike 2 game integration.

CS2 pushes its game state to a local HTTP endpoint through Game State
Integration (GSI). Each snapshot carries the current values and, under
``previously``, the old values of whatever changed since the last push,
so kill and death deltas are computed from a single payload.

The GSI config must be placed in:
Steam/steamapps/common/Counter-Strike Global Offensive/game/csgo/cfg/

Example:
    >>> from core.recording import RecordingState
    >>> from integrations.games.cs2 import CounterStrike2Integration
    >>> integration = CounterStrike2Integration(RecordingState())
    >>> await integration.start()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from core.config import CS2Settings
from core.recording import BookmarkSink
from integrations.base import BaseIntegration, IntegrationStartError
from models.bookmark import BookmarkType
from models.integration import TelemetrySource, TickResult
from models.telemetry import CS2GameState

# Configure logging
logger = logging.getLogger(__name__)

# Map phases during which stat changes are real gameplay events
GAMEPLAY_PHASES = frozenset({"live", "gameover"})

TRACKED_STATS = (
    ("kills", BookmarkType.KILL),
    ("deaths", BookmarkType.DEATH),
)

Notifier = Callable[[str, str], None]


def _log_notice(title: str, message: str) -> None:
    logger.warning(
        f"{title}: {message}",
        extra={"component": "notice", "game_id": "cs2"},
    )


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves process signal handling to the host."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class CounterStrike2Integration(BaseIntegration):
    """Game integration for Counter-Strike 2.

    Listens for GSI snapshots on a loopback HTTP endpoint. Requests may
    arrive concurrently but are processed one at a time, in arrival
    order, so bookmarks are emitted chronologically.

    Attributes:
        game_id: "cs2"
        display_name: "Counter-Strike 2"
        process_names: ["cs2.exe"]
    """

    game_id = "cs2"
    display_name = "Counter-Strike 2"
    process_names = ["cs2.exe"]
    source = TelemetrySource.PUSH
    version = "1.0.0"
    description = "Counter-Strike 2 Game State Integration listener"

    def __init__(
        self,
        sink: BookmarkSink,
        settings: Optional[CS2Settings] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        """Initialize the CS2 integration.

        Args:
            sink: Where detected events are sent.
            settings: Listener and GSI config settings.
            notifier: Called with (title, message) when the user has to
                restart the game. Defaults to a log warning.
        """
        super().__init__(sink)
        self.settings = settings or CS2Settings()
        self._notify = notifier or _log_notice
        self._gate = asyncio.Lock()
        self._socket: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._server_task: Optional[asyncio.Task] = None
        self.app = self.create_app()

    # -- GSI config -----------------------------------------------------------

    def generate_cfg(self) -> str:
        """Render the GSI config telling CS2 where and how often to push."""
        s = self.settings
        return (
            f'"{s.cfg_name}" {{\n'
            f'    "uri" "http://localhost:{s.port}/"\n'
            f'    "timeout" "{s.timeout:.1f}"\n'
            f'    "buffer" "{s.buffer:.1f}"\n'
            f'    "throttle" "{s.throttle:.1f}"\n'
            f'    "heartbeat" "{s.heartbeat:.1f}"\n'
            '    "data" {\n'
            '        "player_id" "1"\n'
            '        "provider" "1"\n'
            '        "map" "1"\n'
            '        "player_match_stats" "1"\n'
            "    }\n"
            "}"
        )

    def find_cfg_dir(self) -> Optional[Path]:
        """Locate the CS2 ``cfg`` directory.

        Returns:
            The configured directory, the first one found under the
            Steam roots, or None if CS2 does not seem to be installed.
        """
        if self.settings.cfg_dir is not None:
            return self.settings.cfg_dir

        for steam_path in self.settings.steam_roots:
            game_dir = (
                steam_path
                / "steamapps/common/Counter-Strike Global Offensive/game/csgo"
            )
            if game_dir.is_dir():
                return game_dir / "cfg"

        return None

    @property
    def cfg_path(self) -> Optional[Path]:
        cfg_dir = self.find_cfg_dir()
        if cfg_dir is None:
            return None
        return cfg_dir / f"gamestate_integration_{self.settings.cfg_name.lower()}.cfg"

    def ensure_cfg_exists(self) -> bool:
        """Write the GSI config unless an identical one is already there.

        Returns:
            True if the file was (re)written and the user was notified.
        """
        cfg_path = self.cfg_path
        if cfg_path is None:
            logger.warning(
                "CS2 installation not found, skipping GSI config",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return False

        expected = self.generate_cfg()
        try:
            if cfg_path.is_file():
                with open(cfg_path, "r", encoding="utf-8", newline="") as f:
                    if f.read() == expected:
                        return False

            cfg_path.parent.mkdir(parents=True, exist_ok=True)
            with open(cfg_path, "w", encoding="utf-8", newline="") as f:
                f.write(expected)
        except OSError as e:
            logger.warning(
                f"Could not ensure CS2 cfg exists: {e}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return False

        logger.info(
            f"Created CS2 gamestate integration config at {cfg_path}",
            extra={"component": "integration", "game_id": self.game_id},
        )
        self._notify(
            "Game integration",
            "There has been an update to the CS2 integration. "
            "Please restart the game to apply the changes.",
        )
        return True

    # -- HTTP endpoint --------------------------------------------------------

    def create_app(self) -> FastAPI:
        """Build the ASGI app that receives GSI pushes."""
        app = FastAPI(
            title="CS2 Game State Integration listener",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        @app.post("/")
        async def receive_state(request: Request) -> Response:
            try:
                body = await request.body()
            except ClientDisconnect:
                logger.debug(
                    "CS2 client disconnected before sending a body",
                    extra={"component": "integration", "game_id": self.game_id},
                )
            else:
                await self.handle_payload(body)
            return Response(status_code=200, content=b"", headers={"Connection": "close"})

        return app

    @property
    def port(self) -> Optional[int]:
        """Port the listener is bound to, once started."""
        if self._socket is None:
            return None
        return self._socket.getsockname()[1]

    async def _on_start(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.ensure_cfg_exists)

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        if sys.platform != "win32":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.settings.host, self.settings.port))
        except OSError as e:
            sock.close()
            raise IntegrationStartError(
                f"cannot bind {self.settings.host}:{self.settings.port}: {e}"
            ) from e
        self._socket = sock

        config = uvicorn.Config(
            self.app,
            log_config=None,
            access_log=False,
            lifespan="off",
            timeout_graceful_shutdown=1,
        )
        self._server = _EmbeddedServer(config)
        self._server_task = asyncio.create_task(
            self._server.serve(sockets=[sock]),
            name="cs2-gsi-listener",
        )

        while not self._server.started:
            if self._server_task.done():
                error = None if self._server_task.cancelled() else self._server_task.exception()
                raise IntegrationStartError(f"listener exited during startup: {error}")
            await asyncio.sleep(0.05)

        logger.info(
            f"Counter Strike 2 integration listening on http://{self.settings.host}:{self.port}/",
            extra={"component": "integration", "game_id": self.game_id},
        )

    async def _on_shutdown(self) -> None:
        if self._server is not None:
            self._server.should_exit = True

        if self._server_task is not None:
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning(
                    f"CS2 listener exited with error: {e!r}",
                    extra={"component": "integration", "game_id": self.game_id},
                )
            else:
                logger.info(
                    "CS2 integration listener stopped",
                    extra={"component": "integration", "game_id": self.game_id},
                )

        if self._socket is not None:
            self._socket.close()

        self._server = None
        self._server_task = None
        self._socket = None

    # -- Snapshot processing --------------------------------------------------

    def decode_state(self, body: bytes) -> CS2GameState:
        """Decode a pushed body, falling back to an empty snapshot."""
        try:
            return CS2GameState.model_validate_json(body)
        except (ValidationError, ValueError) as e:
            logger.info(
                f"Failed to deserialize CS2 state: {e}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return CS2GameState()

    async def handle_payload(self, body: bytes) -> TickResult:
        """Decode and process one pushed snapshot.

        Never raises: unexpected errors are logged and returned as an
        error result so the HTTP response is unaffected.
        """
        async with self._gate:
            try:
                logger.debug(
                    f"CS2 integration received payload: {body[:2048]!r}",
                    extra={"component": "integration", "game_id": self.game_id},
                )
                return self.process_state(self.decode_state(body))
            except Exception as e:
                logger.warning(
                    f"Error handling CS2 request: {e}",
                    extra={"component": "integration", "game_id": self.game_id},
                )
                return TickResult.error(str(e))

    def validate_state(self, state: CS2GameState) -> Optional[str]:
        """Check that a snapshot describes the local player in a live match.

        Returns:
            None if the snapshot is usable, otherwise the reason it is not.
        """
        phase = state.map.phase if state.map else None
        if phase not in GAMEPLAY_PHASES:
            return f"map phase {phase!r} is not a gameplay phase"

        if state.player is None or state.player.match_stats is None:
            return "no player match stats"

        provider_id = state.provider.steamid if state.provider else None
        if provider_id is None or state.player.steamid != provider_id:
            return (
                f"player steamid {state.player.steamid!r} does not match "
                f"provider steamid {provider_id!r}"
            )

        previous_player = state.previously.player if state.previously else None
        if (
            previous_player is not None
            and previous_player.steamid is not None
            and previous_player.steamid != provider_id
        ):
            return (
                f"previous player steamid {previous_player.steamid!r} does not "
                f"match provider steamid {provider_id!r}"
            )

        return None

    def process_state(
        self,
        state: CS2GameState,
        now: Optional[datetime] = None,
    ) -> TickResult:
        """Emit bookmarks for the stat changes a snapshot reports.

        Args:
            state: Decoded snapshot.
            now: Processing time all bookmarks are placed at.

        Returns:
            Result with the number of bookmarks emitted.
        """
        reason = self.validate_state(state)
        if reason is not None:
            logger.debug(
                f"Skipping invalid state - {reason}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return TickResult.skipped(reason)

        previous_player = state.previously.player if state.previously else None
        if previous_player is None or previous_player.match_stats is None:
            return TickResult.success()

        current = state.player.match_stats
        previous = previous_player.match_stats
        now = now or datetime.now()
        emitted = 0

        for stat, bookmark_type in TRACKED_STATS:
            previous_value = getattr(previous, stat)
            current_value = getattr(current, stat)
            if previous_value is None or current_value is None:
                continue

            delta = current_value - previous_value
            if delta < 1:
                continue

            if delta > 1:
                logger.warning(
                    f"Unusual {stat} jump: {previous_value} -> {current_value} (+{delta})",
                    extra={"component": "integration", "game_id": self.game_id},
                )
            else:
                logger.info(
                    f"{stat.capitalize()} detected: {previous_value} -> {current_value}",
                    extra={"component": "integration", "game_id": self.game_id},
                )
            emitted += self.emit(bookmark_type, delta, at=now)

        return TickResult.success(emitted)
