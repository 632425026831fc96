"""Shared fixtures for GameMarks tests."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Project root on the path, as main.py does
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.recording import RecordingState  # noqa: E402

RECORDING_START = datetime(2024, 5, 1, 20, 0, 0)


@pytest.fixture
def sink() -> RecordingState:
    """A recording state with no active recording."""
    return RecordingState()


@pytest.fixture
def recording(sink: RecordingState) -> RecordingState:
    """A recording state with a recording active since RECORDING_START."""
    sink.start_recording(RECORDING_START)
    return sink
