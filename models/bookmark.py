"""Bookmark and recording models for GameMarks.

A bookmark is a typed marker on the timeline of a recording. Game
integrations produce them; the UI and export layers consume them.

Example:
    >>> from datetime import timedelta
    >>> from models.bookmark import Bookmark, BookmarkType
    >>> mark = Bookmark(type=BookmarkType.KILL, time=timedelta(seconds=42))
    >>> mark.type.value
    'Kill'
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def _random_bookmark_id() -> int:
    return random.randint(1, 2**31 - 1)


class BookmarkType(str, Enum):
    """Kind of event a bookmark marks.

    Attributes:
        MANUAL: Created by the user through a hotkey.
        KILL: The local player killed (or downed) another player.
        ASSIST: The local player assisted a kill.
        DEATH: The local player died.
    """

    MANUAL = "Manual"
    KILL = "Kill"
    ASSIST = "Assist"
    DEATH = "Death"


class BookmarkSubtype(str, Enum):
    """Optional refinement of a bookmark type."""

    HEADSHOT = "Headshot"


class Bookmark(BaseModel):
    """An immutable marker on a recording's timeline.

    Attributes:
        id: Random identifier, unique enough for UI keys.
        type: What happened.
        subtype: Optional refinement (e.g. headshot).
        time: Offset from the start of the recording.
    """

    id: int = Field(
        default_factory=_random_bookmark_id,
        ge=1,
        description="Random bookmark identifier",
    )
    type: BookmarkType = Field(
        ...,
        description="Bookmark type (Manual, Kill, Assist, Death)",
    )
    subtype: Optional[BookmarkSubtype] = Field(
        default=None,
        description="Optional bookmark subtype",
    )
    time: timedelta = Field(
        ...,
        description="Offset from the start of the recording",
    )

    class Config:
        """Pydantic model configuration."""

        frozen = True
        json_schema_extra = {
            "example": {
                "id": 1804289383,
                "type": "Kill",
                "subtype": None,
                "time": "PT42.5S",
            }
        }


class Recording(BaseModel):
    """A recording session as seen by the integrations.

    The capture engine owns the real recording; this model only carries
    what the integrations need: when it started and the bookmarks
    appended so far (in insertion order).
    """

    start_time: datetime = Field(
        default_factory=datetime.now,
        description="Local wall-clock time the recording started",
    )
    bookmarks: List[Bookmark] = Field(
        default_factory=list,
        description="Bookmarks in insertion order",
    )

    def sorted_bookmarks(self) -> List[Bookmark]:
        """Return the bookmarks ordered by timeline position.

        Integrations may append out of wall-clock order (replay-based
        ones work after the fact), so consumers should use this view.
        """
        return sorted(self.bookmarks, key=lambda b: b.time)


class RecordingResponse(BaseModel):
    """Response model for the recording endpoints."""

    active: bool = Field(
        default=False,
        description="Whether a recording is currently active",
    )
    recording: Optional[Recording] = Field(
        default=None,
        description="The active (or just stopped) recording",
    )


class RecordingStartRequest(BaseModel):
    """Request body for starting a recording."""

    start_time: Optional[datetime] = Field(
        default=None,
        description="Local wall-clock start time, defaults to now",
    )


class BookmarkRequest(BaseModel):
    """Request body for adding a bookmark by hand."""

    type: BookmarkType = Field(
        default=BookmarkType.MANUAL,
        description="Bookmark type",
    )
    subtype: Optional[BookmarkSubtype] = Field(
        default=None,
        description="Optional bookmark subtype",
    )
