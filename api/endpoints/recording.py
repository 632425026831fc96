"""Recording API endpoints for GameMarks.

These endpoints are the seam through which the capture engine tells
GameMarks that a recording started or stopped. Game integrations only
add bookmarks while a recording is active.

Endpoints:
    GET  /api/v1/recording/ - Get the active recording and its bookmarks
    POST /api/v1/recording/start - Start a recording
    POST /api/v1/recording/stop - Stop the active recording
    POST /api/v1/recording/bookmarks - Add a bookmark to the active recording
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from core.recording import RecordingState
from models.bookmark import Bookmark, BookmarkRequest, RecordingResponse, RecordingStartRequest

router = APIRouter(
    prefix="/api/v1/recording",
    tags=["Recording"],
    responses={
        503: {"description": "Service unavailable - recording state not initialized"},
    },
)


async def get_recording_state(request: Request) -> RecordingState:
    """Dependency to get the RecordingState instance from app state.

    Raises:
        HTTPException: If the recording state is not initialized (503).
    """
    recording = getattr(request.app.state, "recording", None)
    if recording is None:
        raise HTTPException(
            status_code=503,
            detail="Recording state not initialized. Server may be starting up.",
        )
    return recording


# Type alias for dependency injection
RecordingStateDep = Annotated[RecordingState, Depends(get_recording_state)]


@router.get(
    "/",
    response_model=RecordingResponse,
    summary="Get Active Recording",
    description="Get the active recording with its bookmarks in timeline order.",
)
async def get_recording(recording: RecordingStateDep) -> RecordingResponse:
    """Get the active recording.

    Example Response:
        ```json
        {
            "active": true,
            "recording": {
                "start_time": "2024-05-01T20:15:00",
                "bookmarks": [
                    {"id": 1804289383, "type": "Kill", "subtype": null, "time": "PT42.5S"}
                ]
            }
        }
        ```
    """
    snapshot = recording.snapshot()
    if snapshot is None:
        return RecordingResponse(active=False)

    snapshot.bookmarks = snapshot.sorted_bookmarks()
    return RecordingResponse(active=True, recording=snapshot)


@router.post(
    "/start",
    response_model=RecordingResponse,
    summary="Start Recording",
    description="Mark a recording as active; an active one is replaced.",
)
async def start_recording(
    recording: RecordingStateDep,
    request: Annotated[Optional[RecordingStartRequest], Body()] = None,
) -> RecordingResponse:
    start_time = request.start_time if request else None
    return RecordingResponse(active=True, recording=recording.start_recording(start_time))


@router.post(
    "/stop",
    response_model=RecordingResponse,
    summary="Stop Recording",
    description="End the active recording and return it.",
)
async def stop_recording(recording: RecordingStateDep) -> RecordingResponse:
    """End the active recording.

    Returns:
        ``active: false`` with the finished recording, or without one if
        no recording was active.
    """
    finished = recording.stop_recording()
    if finished is not None:
        finished.bookmarks = finished.sorted_bookmarks()
    return RecordingResponse(active=False, recording=finished)


@router.post(
    "/bookmarks",
    response_model=Bookmark,
    status_code=201,
    summary="Add Bookmark",
    description="Add a bookmark at the current time to the active recording.",
    responses={
        409: {"description": "No recording active"},
    },
)
async def add_bookmark(
    recording: RecordingStateDep,
    request: Annotated[Optional[BookmarkRequest], Body()] = None,
) -> Bookmark:
    """Add a bookmark (a manual one by default) to the active recording.

    Raises:
        HTTPException: If no recording is active (409).
    """
    request = request or BookmarkRequest()
    bookmark = recording.add_bookmark(request.type, request.subtype)
    if bookmark is None:
        raise HTTPException(
            status_code=409,
            detail="No recording active",
        )
    return bookmark
