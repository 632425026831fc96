"""Integration lifecycle and status models for GameMarks.

This module defines the game-agnostic models shared by all game
integrations: their lifecycle state, the outcome of a single unit of
work (one poll, one pushed request, one directory scan) and the
descriptive info exposed over the host API.

Example:
    >>> from models.integration import TickResult
    >>> result = TickResult.skipped("no match in progress")
    >>> result.status.value
    'skipped'
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TelemetrySource(str, Enum):
    """How an integration receives telemetry.

    Attributes:
        PUSH: The game sends snapshots to a local HTTP endpoint.
        POLL: The integration pulls a local read-only API.
        DIRECTORY: The integration diffs a folder the game writes to.
    """

    PUSH = "push"
    POLL = "poll"
    DIRECTORY = "directory"


class IntegrationState(str, Enum):
    """Lifecycle state of an integration."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class TickStatus(str, Enum):
    """Outcome category of one unit of integration work.

    Attributes:
        SUCCESS: Input was processed (zero or more bookmarks emitted).
        SKIPPED: Input was intentionally ignored (see reason).
        ERROR: An unexpected exception was caught and logged.
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


class TickResult(BaseModel):
    """Result of one poll, pushed request, or directory scan.

    Attributes:
        status: Outcome category.
        reason: Why the input was skipped or failed, if it was.
        emitted: Number of bookmarks added to the active recording.
    """

    status: TickStatus = Field(
        default=TickStatus.SUCCESS,
        description="Outcome category",
    )
    reason: Optional[str] = Field(
        default=None,
        description="Skip or failure reason",
    )
    emitted: int = Field(
        default=0,
        ge=0,
        description="Bookmarks added to the active recording",
    )

    @classmethod
    def success(cls, emitted: int = 0) -> TickResult:
        return cls(status=TickStatus.SUCCESS, emitted=emitted)

    @classmethod
    def skipped(cls, reason: str) -> TickResult:
        return cls(status=TickStatus.SKIPPED, reason=reason)

    @classmethod
    def error(cls, reason: str) -> TickResult:
        return cls(status=TickStatus.ERROR, reason=reason)


class IntegrationInfo(BaseModel):
    """Information about a registered game integration.

    Attributes:
        id: Unique integration identifier (the game id).
        name: Human-readable game name.
        version: Integration version string.
        source: How the integration receives telemetry.
        process_names: Executable names used to detect the game.
        description: Brief description of the integration.
        state: Current lifecycle state, if an instance exists.

    Example:
        >>> info = IntegrationInfo(
        ...     id="cs2",
        ...     name="Counter-Strike 2",
        ...     source=TelemetrySource.PUSH,
        ...     process_names=["cs2.exe"],
        ... )
    """

    id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique integration identifier",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Human-readable game name",
    )
    version: str = Field(
        default="1.0.0",
        description="Integration version string",
    )
    source: TelemetrySource = Field(
        ...,
        description="How the integration receives telemetry",
    )
    process_names: List[str] = Field(
        default_factory=list,
        description="Executable names to detect this game",
    )
    description: Optional[str] = Field(
        default=None,
        description="Brief description of the integration",
    )
    state: IntegrationState = Field(
        default=IntegrationState.STOPPED,
        description="Current lifecycle state",
    )

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "id": "cs2",
                "name": "Counter-Strike 2",
                "version": "1.0.0",
                "source": "push",
                "process_names": ["cs2.exe"],
                "description": "Game State Integration listener",
                "state": "running",
            }
        }
