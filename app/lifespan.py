"""Application lifespan management for GameMarks.

This module provides the FastAPI lifespan context manager that wires
settings, the recording state, the integration service and the game
detector together on startup, and tears them down on shutdown.

Example:
    >>> from fastapi import FastAPI
    >>> from app.lifespan import lifespan
    >>>
    >>> app = FastAPI(lifespan=lifespan)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from app.logging_config import configure_logging
from core.config import load_settings
from core.game_detector import GameDetector
from core.integration_service import IntegrationService
from core.recording import RecordingState

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Async context manager for FastAPI application lifespan.

    Manages startup and shutdown of application services:
    - Startup: loads settings, creates the recording state, discovers
      integrations and starts process-based game detection
    - Shutdown: stops detection, then shuts every integration down

    Args:
        app: The FastAPI application instance.

    Yields:
        None - control returns to FastAPI during application runtime.
    """
    # === STARTUP ===
    configure_logging()
    logger.info(
        "GameMarks starting up...",
        extra={"component": "lifespan"},
    )

    settings = load_settings()
    recording = RecordingState()

    integration_service = IntegrationService(recording, settings)
    await integration_service.initialize()

    # Store in app state for dependency injection
    app.state.settings = settings
    app.state.recording = recording
    app.state.integration_service = integration_service

    detector = None
    if settings.detector.enabled:
        detector = GameDetector(integration_service.registry)
        detector.on_game_start(integration_service.start_integration)
        detector.on_game_stop(integration_service.stop_integration)
        await detector.start_monitoring(interval=settings.detector.interval)
    else:
        logger.info(
            "Game detection disabled, integrations start on request only",
            extra={"component": "lifespan"},
        )
    app.state.game_detector = detector

    logger.info(
        "GameMarks startup complete",
        extra={"component": "lifespan"},
    )

    try:
        yield
    finally:
        # === SHUTDOWN ===
        logger.info(
            "GameMarks shutting down...",
            extra={"component": "lifespan"},
        )

        if detector is not None:
            await detector.stop_monitoring()

        await integration_service.shutdown_all()

        logger.info(
            "GameMarks shutdown complete",
            extra={"component": "lifespan"},
        )
