"""Integration service for GameMarks.

This module provides the supervisor that owns running game
integrations: at most one per game, each started and stopped
independently of the others.

Example:
    >>> from core.integration_service import IntegrationService
    >>> from core.recording import RecordingState
    >>> service = IntegrationService(RecordingState())
    >>> await service.initialize()
    >>> await service.start_integration("lol")
    True
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from core.config import Settings
from core.recording import BookmarkSink
from integrations.base import BaseIntegration
from integrations.registry import IntegrationRegistry
from models.integration import IntegrationInfo

# Configure logging
logger = logging.getLogger(__name__)


class IntegrationService:
    """Supervisor for game integrations.

    Starting a game that already has a running integration shuts the old
    one down first, so a game never has two integrations emitting at
    once.

    Attributes:
        _registry: Integration registry used to create integrations.
        _sink: Bookmark sink handed to every integration.
        _settings: Settings sections handed to integrations.
        _running: Running integrations by game_id.
        _lock: Serializes start/stop requests.
    """

    def __init__(
        self,
        sink: BookmarkSink,
        settings: Optional[Settings] = None,
        registry: Optional[IntegrationRegistry] = None,
    ) -> None:
        self._sink = sink
        self._settings = settings or Settings()
        self._registry = registry or IntegrationRegistry()
        self._running: Dict[str, BaseIntegration] = {}
        self._lock = asyncio.Lock()
        self._initialized = False

    @property
    def registry(self) -> IntegrationRegistry:
        return self._registry

    async def initialize(self) -> None:
        """Discover integrations unless the registry was pre-populated."""
        if self._initialized:
            logger.warning(
                "IntegrationService already initialized",
                extra={"component": "integration_service"},
            )
            return

        if self._registry.count() == 0:
            self._registry.discover()

        self._initialized = True
        logger.info(
            f"IntegrationService initialized with {self._registry.count()} integrations",
            extra={"component": "integration_service"},
        )

    async def start_integration(self, game_id: str) -> bool:
        """Start the integration for ``game_id``.

        Any integration already running for the game is shut down first.

        Returns:
            True if the new integration is running.
        """
        if self._registry.get(game_id) is None:
            logger.warning(
                f"No integration found for game: {game_id}",
                extra={"component": "integration_service", "game_id": game_id},
            )
            return False

        async with self._lock:
            existing = self._running.pop(game_id, None)
            if existing is not None:
                logger.info(
                    f"Replacing running {existing.display_name} integration",
                    extra={"component": "integration_service", "game_id": game_id},
                )
                await existing.shutdown()

            integration = self._registry.create(game_id, self._sink, self._settings)
            if not await integration.start():
                return False

            self._running[game_id] = integration
            return True

    async def start_integration_by_name(self, display_name: str) -> bool:
        """Start an integration by the game's display name."""
        cls = self._registry.find_by_name(display_name)
        if cls is None:
            logger.warning(
                f"No integration found for game: {display_name}",
                extra={"component": "integration_service"},
            )
            return False
        return await self.start_integration(cls.game_id)

    async def stop_integration(self, game_id: str) -> bool:
        """Shut down the integration for ``game_id``.

        Returns:
            True if an integration was running and has been stopped.
        """
        async with self._lock:
            integration = self._running.pop(game_id, None)
            if integration is None:
                return False
            await integration.shutdown()
            return True

    async def shutdown_all(self) -> None:
        """Shut down every running integration."""
        async with self._lock:
            running = list(self._running.values())
            self._running.clear()
            for integration in running:
                await integration.shutdown()

        logger.info(
            f"IntegrationService stopped {len(running)} integrations",
            extra={"component": "integration_service"},
        )

    def get(self, game_id: str) -> Optional[BaseIntegration]:
        """Get the running integration for ``game_id``, if any."""
        return self._running.get(game_id)

    def list_integrations(self) -> List[IntegrationInfo]:
        """Get info for every registered integration with its current state."""
        states = {game_id: integration.state for game_id, integration in self._running.items()}
        return self._registry.list_integrations(states)

    def running_game_ids(self) -> List[str]:
        return [game_id for game_id, integration in self._running.items() if integration.is_running]
