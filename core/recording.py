"""Recording state and the bookmark sink used by game integrations.

Integrations never reach into global state; they receive a
:class:`BookmarkSink` and ask it, at the moment they want to emit,
whether a recording is active and when it started. The capture engine
drives :class:`RecordingState` through ``start_recording`` and
``stop_recording``.

Example:
    >>> from core.recording import RecordingState
    >>> from models.bookmark import BookmarkType
    >>> state = RecordingState()
    >>> state.start_recording()
    >>> bookmark = state.add_bookmark(BookmarkType.KILL)
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional, Protocol, Union, runtime_checkable

from models.bookmark import Bookmark, BookmarkSubtype, BookmarkType, Recording

# Configure logging
logger = logging.getLogger(__name__)

EventTime = Union[datetime, timedelta, None]


@runtime_checkable
class BookmarkSink(Protocol):
    """What an integration may know about the active recording."""

    def is_recording_active(self) -> bool:
        ...

    def recording_start_time(self) -> Optional[datetime]:
        ...

    def add_bookmark(
        self,
        bookmark_type: BookmarkType,
        subtype: Optional[BookmarkSubtype] = None,
        at: EventTime = None,
    ) -> Optional[Bookmark]:
        ...


class RecordingState:
    """Thread-safe holder of the currently active recording.

    All integrations append through the same instance, from the event
    loop or from executor threads, so every access to the recording
    goes through ``_lock``.

    Attributes:
        _recording: The active recording, or None.
        _lock: Guards ``_recording`` and its bookmark list.
    """

    def __init__(self) -> None:
        self._recording: Optional[Recording] = None
        self._lock = threading.Lock()

    def start_recording(self, start_time: Optional[datetime] = None) -> Recording:
        """Mark a recording as active.

        Args:
            start_time: Local wall-clock start time. Defaults to now.

        Returns:
            A snapshot of the new recording.
        """
        with self._lock:
            if self._recording is not None:
                logger.warning(
                    "Recording already active, replacing it",
                    extra={"component": "recording"},
                )
            self._recording = Recording(start_time=start_time or datetime.now())
            snapshot = self._recording.model_copy(deep=True)

        logger.info(
            f"Recording started at {snapshot.start_time.isoformat()}",
            extra={"component": "recording"},
        )
        return snapshot

    def stop_recording(self) -> Optional[Recording]:
        """End the active recording.

        Returns:
            The finished recording, or None if none was active.
        """
        with self._lock:
            recording, self._recording = self._recording, None

        if recording is None:
            logger.debug(
                "Stop requested with no active recording",
                extra={"component": "recording"},
            )
            return None

        logger.info(
            f"Recording stopped with {len(recording.bookmarks)} bookmarks",
            extra={"component": "recording"},
        )
        return recording

    def is_recording_active(self) -> bool:
        with self._lock:
            return self._recording is not None

    def recording_start_time(self) -> Optional[datetime]:
        with self._lock:
            return self._recording.start_time if self._recording else None

    def snapshot(self) -> Optional[Recording]:
        """Get a consistent copy of the active recording."""
        with self._lock:
            if self._recording is None:
                return None
            return self._recording.model_copy(deep=True)

    def add_bookmark(
        self,
        bookmark_type: BookmarkType,
        subtype: Optional[BookmarkSubtype] = None,
        at: EventTime = None,
    ) -> Optional[Bookmark]:
        """Append a bookmark to the active recording.

        Args:
            bookmark_type: What happened.
            subtype: Optional refinement.
            at: When it happened. A ``timedelta`` is taken as already
                relative to the recording start, a ``datetime`` as local
                wall-clock time, and ``None`` as now.

        Returns:
            The appended bookmark, or None if it was discarded because no
            recording is active or the time falls before its start.
        """
        with self._lock:
            if self._recording is None:
                logger.debug(
                    f"No recording active, skipping {bookmark_type.value} bookmark",
                    extra={"component": "recording"},
                )
                return None

            if isinstance(at, timedelta):
                offset = at
            else:
                offset = (at or datetime.now()) - self._recording.start_time

            if offset < timedelta(0):
                logger.warning(
                    f"Discarding {bookmark_type.value} bookmark at negative offset {offset}",
                    extra={"component": "recording"},
                )
                return None

            bookmark = Bookmark(type=bookmark_type, subtype=subtype, time=offset)
            self._recording.bookmarks.append(bookmark)

        logger.info(
            f"Added {bookmark_type.value} bookmark at {offset}",
            extra={"component": "recording"},
        )
        return bookmark
