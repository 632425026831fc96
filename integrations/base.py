"""Base classes for game integrations.

Every integration watches one game's telemetry channel and turns kills,
deaths and assists into bookmarks on the active recording. They share
only the lifecycle contract defined here: ``start()`` and
``shutdown()``.

Example:
    >>> from integrations.base import PollingIntegration
    >>> class MyGameIntegration(PollingIntegration):
    ...     game_id = "mygame"
    ...     display_name = "My Game"
    ...     process_names = ["mygame.exe"]
    ...
    ...     async def tick(self) -> TickResult:
    ...         return TickResult.skipped("nothing to do")
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from core.recording import BookmarkSink, EventTime
from models.bookmark import BookmarkSubtype, BookmarkType
from models.integration import (
    IntegrationInfo,
    IntegrationState,
    TelemetrySource,
    TickResult,
    TickStatus,
)

# Configure logging
logger = logging.getLogger(__name__)


class IntegrationError(Exception):
    """Base class for integration failures."""


class IntegrationStartError(IntegrationError):
    """Raised by ``_on_start`` when an integration cannot be started."""


class BaseIntegration(ABC):
    """Abstract base class for game integrations.

    Subclasses implement ``_on_start`` and ``_on_shutdown``; the public
    ``start``/``shutdown`` wrappers own the state machine and make sure
    no failure escapes to the caller.

    Attributes:
        game_id: Unique identifier for the game (e.g. "cs2").
        display_name: Human-readable game name.
        process_names: Executable names used to detect the game.
        source: How this integration receives telemetry.
        version: Integration version string.
        description: Brief description of the integration.
    """

    game_id: str = ""
    display_name: str = ""
    process_names: List[str] = []
    source: TelemetrySource = TelemetrySource.POLL
    version: str = "1.0.0"
    description: str = ""

    def __init__(self, sink: BookmarkSink) -> None:
        """Initialize the integration.

        Args:
            sink: Where detected events are sent.
        """
        self._sink = sink
        self._state = IntegrationState.STOPPED
        self._lifecycle_lock = asyncio.Lock()

    @property
    def state(self) -> IntegrationState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == IntegrationState.RUNNING

    @abstractmethod
    async def _on_start(self) -> None:
        """Acquire resources and launch background work.

        Raises:
            Exception: Any failure; ``start()`` logs it and stays stopped.
        """

    @abstractmethod
    async def _on_shutdown(self) -> None:
        """Stop background work and release resources.

        Must tolerate partially completed ``_on_start``.
        """

    async def start(self) -> bool:
        """Start the integration.

        Idempotent: starting a running integration does nothing.

        Returns:
            True if the integration is running, False if it failed to start.
        """
        async with self._lifecycle_lock:
            if self._state == IntegrationState.RUNNING:
                logger.warning(
                    f"{self.display_name} integration already running",
                    extra={"component": "integration", "game_id": self.game_id},
                )
                return True

            self._state = IntegrationState.STARTING
            try:
                await self._on_start()
            except Exception as e:
                logger.error(
                    f"Failed to start {self.display_name} integration: {e}",
                    extra={"component": "integration", "game_id": self.game_id},
                )
                try:
                    await self._on_shutdown()
                except Exception as cleanup_error:
                    logger.warning(
                        f"Cleanup after failed start raised: {cleanup_error}",
                        extra={"component": "integration", "game_id": self.game_id},
                    )
                self._state = IntegrationState.STOPPED
                return False

            self._state = IntegrationState.RUNNING
            logger.info(
                f"{self.display_name} integration started",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return True

    async def shutdown(self) -> None:
        """Stop the integration. Safe to call in any state."""
        async with self._lifecycle_lock:
            if self._state == IntegrationState.STOPPED:
                return

            self._state = IntegrationState.STOPPING
            try:
                await self._on_shutdown()
            except Exception as e:
                logger.warning(
                    f"Error shutting down {self.display_name} integration: {e}",
                    extra={"component": "integration", "game_id": self.game_id},
                )
            finally:
                self._state = IntegrationState.STOPPED

            logger.info(
                f"{self.display_name} integration stopped",
                extra={"component": "integration", "game_id": self.game_id},
            )

    def emit(
        self,
        bookmark_type: BookmarkType,
        count: int = 1,
        at: EventTime = None,
        subtype: Optional[BookmarkSubtype] = None,
    ) -> int:
        """Send ``count`` bookmarks of one type to the sink.

        Args:
            bookmark_type: What happened.
            count: How many times it happened.
            at: When it happened (see ``RecordingState.add_bookmark``).
            subtype: Optional refinement.

        Returns:
            Number of bookmarks the sink accepted.
        """
        if count <= 0:
            return 0

        if not self._sink.is_recording_active():
            logger.debug(
                f"No recording active, discarding {count} {bookmark_type.value} event(s)",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return 0

        if at is None:
            at = datetime.now()

        accepted = 0
        for _ in range(count):
            if self._sink.add_bookmark(bookmark_type, subtype, at) is not None:
                accepted += 1
        return accepted

    @classmethod
    def describe(cls, state: IntegrationState = IntegrationState.STOPPED) -> IntegrationInfo:
        """Build info for this integration class."""
        return IntegrationInfo(
            id=cls.game_id,
            name=cls.display_name,
            version=cls.version,
            source=cls.source,
            process_names=list(cls.process_names),
            description=cls.description or None,
            state=state,
        )

    def get_info(self) -> IntegrationInfo:
        """Get integration information including the current state."""
        return self.describe(self._state)


class PollingIntegration(BaseIntegration):
    """Integration driven by a fixed-interval cooperative loop.

    The loop awaits each ``tick()`` before sleeping, so ticks never
    overlap. Exceptions escaping a tick are logged and turned into an
    error result; the loop keeps going.

    Attributes:
        interval: Seconds to sleep between ticks.
        last_result: Result of the most recent tick.
    """

    interval: float = 1.0

    def __init__(self, sink: BookmarkSink, interval: Optional[float] = None) -> None:
        super().__init__(sink)
        if interval is not None:
            self.interval = interval
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_requested: bool = False
        self.last_result: Optional[TickResult] = None

    @abstractmethod
    async def tick(self) -> TickResult:
        """Run one unit of work."""

    async def _prepare(self) -> None:
        """Hook for subclasses to acquire resources before the loop starts."""

    async def _release(self) -> None:
        """Hook for subclasses to release resources after the loop stopped."""

    async def _on_start(self) -> None:
        await self._prepare()
        self._stop_requested = False
        self._loop_task = asyncio.create_task(
            self._run_loop(),
            name=f"{self.game_id}-integration",
        )
        logger.info(
            f"{self.display_name} polling started with {self.interval}s interval",
            extra={"component": "integration", "game_id": self.game_id},
        )

    async def _on_shutdown(self) -> None:
        self._stop_requested = True

        if self._loop_task and not self._loop_task.done():
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
        self._loop_task = None

        await self._release()

    async def run_tick(self) -> TickResult:
        """Run one tick, converting any exception into an error result."""
        try:
            result = await self.tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"{self.display_name} integration error: {e}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            result = TickResult.error(str(e))

        if result.status == TickStatus.SKIPPED:
            logger.debug(
                f"{self.display_name} tick skipped: {result.reason}",
                extra={"component": "integration", "game_id": self.game_id},
            )
        self.last_result = result
        return result

    async def _run_loop(self) -> None:
        while not self._stop_requested:
            await self.run_tick()
            await asyncio.sleep(self.interval)
