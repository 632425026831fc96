"""GameMarks - Models Package.

This package contains Pydantic models for bookmarks, integrations and
the raw telemetry snapshots the games produce.
"""

from models.bookmark import (
    Bookmark,
    BookmarkSubtype,
    BookmarkType,
    Recording,
    RecordingResponse,
)
from models.integration import (
    IntegrationInfo,
    IntegrationState,
    TelemetrySource,
    TickResult,
    TickStatus,
)

__all__ = [
    # Bookmark models
    "Bookmark",
    "BookmarkSubtype",
    "BookmarkType",
    "Recording",
    "RecordingResponse",
    # Integration models
    "IntegrationInfo",
    "IntegrationState",
    "TelemetrySource",
    "TickResult",
    "TickStatus",
]
