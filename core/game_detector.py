"""Game detection service for GameMarks.

This module detects running games by scanning processes against the
process names of registered integrations, and fires start/stop
callbacks so the integration service can follow the games the user
launches and closes.

Example:
    >>> from core.game_detector import GameDetector
    >>> detector = GameDetector(registry)
    >>> detector.on_game_start(service.start_integration)
    >>> await detector.start_monitoring()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

import psutil

from integrations.registry import IntegrationRegistry

# Configure logging
logger = logging.getLogger(__name__)

GameCallback = Callable[[str], Union[None, Awaitable[Any]]]


def running_process_names() -> Set[str]:
    """Lower-cased names of all running processes."""
    names: Set[str] = set()
    for proc in psutil.process_iter(["name"]):
        try:
            name = proc.info.get("name")
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        if name:
            names.add(name.lower())
    return names


class GameDetector:
    """Service for detecting running games.

    Callbacks may be plain functions or coroutine functions; coroutine
    results are awaited in registration order.

    Attributes:
        _registry: The integration registry to check against.
        _active_games: Set of currently detected game IDs.
        _callbacks: Dict of event name -> list of callback functions.
    """

    def __init__(
        self,
        registry: IntegrationRegistry,
        process_scanner: Callable[[], Set[str]] = running_process_names,
    ) -> None:
        """Initialize the game detector.

        Args:
            registry: The integration registry to use for detection.
            process_scanner: Returns the lower-cased running process names.
        """
        self._registry = registry
        self._scan_processes = process_scanner
        self._active_games: Set[str] = set()
        self._callbacks: Dict[str, List[GameCallback]] = {
            "game_start": [],
            "game_stop": [],
        }
        self._monitoring_task: Optional[asyncio.Task] = None
        self._shutdown: bool = False
        self._lock = asyncio.Lock()

    def on_game_start(self, callback: GameCallback) -> None:
        self._callbacks["game_start"].append(callback)

    def on_game_stop(self, callback: GameCallback) -> None:
        self._callbacks["game_stop"].append(callback)

    async def _emit(self, event: str, game_id: str) -> None:
        for callback in self._callbacks.get(event, []):
            try:
                result = callback(game_id)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Error in {event} callback: {e}",
                    extra={"component": "detector", "game_id": game_id},
                )

    async def detect_active_games(self) -> List[str]:
        """Detect all currently running games.

        The process scan runs in the default executor.

        Returns:
            List of game_ids for detected running games.
        """
        loop = asyncio.get_running_loop()
        names = await loop.run_in_executor(None, self._scan_processes)

        return [
            cls.game_id
            for cls in self._registry.get_all()
            if any(proc.lower() in names for proc in cls.process_names)
        ]

    async def check_and_update(self) -> Dict[str, List[str]]:
        """Check for game state changes and emit events.

        Returns:
            Dict with 'started' and 'stopped' lists of game_ids.
        """
        current_games = set(await self.detect_active_games())

        async with self._lock:
            started = sorted(current_games - self._active_games)
            stopped = sorted(self._active_games - current_games)
            self._active_games = current_games

            for game_id in started:
                logger.info(
                    f"Game started: {game_id}",
                    extra={"component": "detector", "game_id": game_id},
                )
                await self._emit("game_start", game_id)

            for game_id in stopped:
                logger.info(
                    f"Game stopped: {game_id}",
                    extra={"component": "detector", "game_id": game_id},
                )
                await self._emit("game_stop", game_id)

        return {"started": started, "stopped": stopped}

    async def start_monitoring(self, interval: float = 2.0) -> asyncio.Task:
        """Start background game detection.

        Args:
            interval: Polling interval in seconds.

        Returns:
            The monitoring asyncio task.
        """
        if self._monitoring_task and not self._monitoring_task.done():
            logger.warning(
                "Game monitoring already running",
                extra={"component": "detector"},
            )
            return self._monitoring_task

        self._shutdown = False
        self._monitoring_task = asyncio.create_task(
            self._monitoring_loop(interval),
            name="game-detector",
        )

        logger.info(
            f"Game monitoring started with {interval}s interval",
            extra={"component": "detector"},
        )
        return self._monitoring_task

    async def _monitoring_loop(self, interval: float) -> None:
        while not self._shutdown:
            try:
                await self.check_and_update()
            except Exception as e:
                logger.error(
                    f"Error in game monitoring: {e}",
                    extra={"component": "detector"},
                )
            await asyncio.sleep(interval)

    async def stop_monitoring(self) -> None:
        """Stop background game detection."""
        self._shutdown = True

        if self._monitoring_task and not self._monitoring_task.done():
            self._monitoring_task.cancel()
            try:
                await self._monitoring_task
            except asyncio.CancelledError:
                pass
        self._monitoring_task = None

        logger.info(
            "Game monitoring stopped",
            extra={"component": "detector"},
        )

    def get_active_game_ids(self) -> List[str]:
        return sorted(self._active_games)
