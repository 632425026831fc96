"""Integration registry for game integration discovery and lookup.

Holds integration classes rather than instances: an integration is
bound to a bookmark sink and settings, so instances are created on
demand by ``create()`` and owned by the integration service.

Example:
    >>> from integrations.registry import IntegrationRegistry
    >>> registry = IntegrationRegistry()
    >>> registry.discover()
    3
    >>> registry.get("cs2").display_name
    'Counter-Strike 2'
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Type

from core.config import Settings
from core.recording import BookmarkSink
from integrations.base import BaseIntegration
from models.integration import IntegrationInfo, IntegrationState

# Configure logging
logger = logging.getLogger(__name__)

GAMES_PACKAGE = "integrations.games"


class IntegrationRegistry:
    """Registry of the integration classes known to GameMarks.

    Attributes:
        _classes: Dictionary mapping game_id to integration classes.

    Example:
        >>> registry = IntegrationRegistry()
        >>> registry.discover()
        >>> cls = registry.find_by_process("TslGame.exe")
        >>> cls.game_id
        'pubg'
    """

    def __init__(self) -> None:
        """Initialize an empty integration registry."""
        self._classes: Dict[str, Type[BaseIntegration]] = {}

    def register(self, integration_class: Type[BaseIntegration]) -> bool:
        """Register an integration class.

        A class with the same game_id replaces the previous one.

        Args:
            integration_class: The integration class to register.

        Returns:
            True if registered, False if the class has no game_id.
        """
        game_id = integration_class.game_id
        if not game_id:
            logger.warning(
                f"Integration {integration_class.__name__} has no game_id, skipping",
                extra={"component": "registry"},
            )
            return False

        existing = self._classes.get(game_id)
        if existing is integration_class:
            return True
        if existing is not None:
            logger.warning(
                f"Integration for '{game_id}' already registered, replacing",
                extra={"component": "registry", "game_id": game_id},
            )

        self._classes[game_id] = integration_class
        logger.info(
            f"Registered integration: {integration_class.display_name} ({game_id})",
            extra={"component": "registry", "game_id": game_id},
        )
        return True

    def unregister(self, game_id: str) -> bool:
        """Unregister an integration by game_id.

        Returns:
            True if the integration was unregistered, False if not found.
        """
        if self._classes.pop(game_id, None) is None:
            return False
        logger.info(
            f"Unregistered integration: {game_id}",
            extra={"component": "registry", "game_id": game_id},
        )
        return True

    def get(self, game_id: str) -> Optional[Type[BaseIntegration]]:
        return self._classes.get(game_id)

    def get_all(self) -> List[Type[BaseIntegration]]:
        return list(self._classes.values())

    def list_game_ids(self) -> List[str]:
        return list(self._classes.keys())

    def count(self) -> int:
        return len(self._classes)

    def list_integrations(
        self,
        states: Optional[Mapping[str, IntegrationState]] = None,
    ) -> List[IntegrationInfo]:
        """Get info for all registered integrations.

        Args:
            states: Current lifecycle state per game_id. Games missing
                from the mapping are reported as stopped.

        Returns:
            List of IntegrationInfo for each registered integration.
        """
        states = states or {}
        return [
            cls.describe(states.get(game_id, IntegrationState.STOPPED))
            for game_id, cls in self._classes.items()
        ]

    def discover(self, package: str = GAMES_PACKAGE) -> int:
        """Auto-discover and register integrations from a package.

        Every module of the package not starting with an underscore is
        imported; each concrete ``BaseIntegration`` subclass with a
        game_id that it defines is registered.

        Args:
            package: Dotted name of the package to scan.

        Returns:
            Number of integrations discovered and registered.
        """
        discovered = 0

        try:
            games_package = importlib.import_module(package)
        except ImportError as e:
            logger.warning(
                f"Games package not found, no integrations discovered: {e}",
                extra={"component": "registry"},
            )
            return 0

        package_path = Path(games_package.__file__).parent
        for _, module_name, _ in pkgutil.iter_modules([str(package_path)]):
            if module_name.startswith("_"):
                continue

            try:
                module = importlib.import_module(f"{package}.{module_name}")
            except Exception as e:
                logger.warning(
                    f"Failed to load module {module_name}: {e}",
                    extra={"component": "registry"},
                )
                continue

            for attr in vars(module).values():
                if (
                    isinstance(attr, type)
                    and issubclass(attr, BaseIntegration)
                    and attr.__module__ == module.__name__
                    and attr.game_id
                ):
                    if self.register(attr):
                        discovered += 1

        logger.info(
            f"Discovered {discovered} integrations",
            extra={"component": "registry"},
        )
        return discovered

    def find_by_process(self, process_name: str) -> Optional[Type[BaseIntegration]]:
        """Find the integration whose game runs as ``process_name``.

        Args:
            process_name: The process name to match (case-insensitive).
        """
        process_lower = process_name.lower()
        for cls in self._classes.values():
            if any(proc.lower() == process_lower for proc in cls.process_names):
                return cls
        return None

    def find_by_name(self, display_name: str) -> Optional[Type[BaseIntegration]]:
        """Find an integration by the game's display name (case-insensitive)."""
        wanted = display_name.lower()
        for cls in self._classes.values():
            if cls.display_name.lower() == wanted:
                return cls
        return None

    def create(
        self,
        game_id: str,
        sink: BookmarkSink,
        settings: Optional[Settings] = None,
    ) -> BaseIntegration:
        """Instantiate the integration registered for ``game_id``.

        The integration receives the settings section named after its
        game_id (``settings.cs2`` for "cs2"), if there is one.

        Raises:
            KeyError: If no integration is registered for ``game_id``.
        """
        cls = self._classes.get(game_id)
        if cls is None:
            raise KeyError(f"No integration registered for '{game_id}'")

        section = getattr(settings, game_id, None) if settings is not None else None
        if section is None:
            return cls(sink)
        return cls(sink, settings=section)
