"""GameMarks - Core Package.

This package contains settings, the recording state and the services
that supervise game integrations. Services are imported from their
modules (``core.integration_service``, ``core.game_detector``).
"""

from core.config import Settings, load_settings
from core.recording import BookmarkSink, RecordingState

__all__ = [
    "Settings",
    "load_settings",
    "BookmarkSink",
    "RecordingState",
]
