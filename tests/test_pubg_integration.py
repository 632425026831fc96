"""Tests for the PUBG replay directory watcher."""

from __future__ import annotations

import base64
import json
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Tuple

import pytest

from core.config import PubgSettings
from integrations.games.pubg import (
    PubgIntegration,
    collect_match_events,
    read_embedded_json,
)
from models.bookmark import BookmarkType
from models.integration import IntegrationState, TickStatus
from models.telemetry import EventPayload
from tests.conftest import RECORDING_START

ME = "ChickenHunter"
# Match starts one minute into the recording
MATCH_START_MS = int(RECORDING_START.timestamp() * 1000) + 60_000

Event = Tuple[str, int, str, str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _frame(payload: dict) -> bytes:
    """Wrap JSON in binary framing like the game does."""
    return b"\x03\x00\x00\x00\xff" + json.dumps(payload).encode("utf-8") + b"\x00\x00"


def _write_match(root: Path, name: str, events: Iterable[Event] = (), me: str = ME) -> Path:
    """Create a replay directory.

    Each event is (file name, ms since match start, actor, target).
    """
    match_dir = root / name
    events_dir = match_dir / "events"
    events_dir.mkdir(parents=True)

    info = {"Timestamp": MATCH_START_MS, "RecordUserNickName": me, "MapName": "Desert_Main"}
    (match_dir / "PUBG.replayinfo").write_bytes(_frame(info))

    for file_name, time_ms, actor, target in events:
        data = json.dumps(["ev-1", actor, 42, target, "WeapM416_C"]).encode("utf-8")
        envelope = {"time1": time_ms, "data": base64.b64encode(data).decode("ascii")}
        (events_dir / file_name).write_bytes(_frame(envelope))

    return match_dir


@pytest.fixture
def replay_dir(tmp_path) -> Path:
    path = tmp_path / "Demos"
    path.mkdir()
    return path


@pytest.fixture
def pubg(recording, replay_dir) -> PubgIntegration:
    settings = PubgSettings(replay_dir=replay_dir, settle_delay=0, interval=60)
    return PubgIntegration(recording, settings=settings)


# ---------------------------------------------------------------------------
# Replay parsing
# ---------------------------------------------------------------------------


class TestReplayParsing:
    def test_embedded_json_extracted(self, tmp_path):
        path = tmp_path / "file"
        path.write_bytes(b"\x00junk{\"a\": {\"b\": 1}}\x00trailer")
        assert json.loads(read_embedded_json(path)) == {"a": {"b": 1}}

    def test_no_json_rejected(self, tmp_path):
        path = tmp_path / "file"
        path.write_bytes(b"\x00\x01\x02")
        with pytest.raises(ValueError):
            read_embedded_json(path)

    def test_payload_positions(self):
        payload = EventPayload({"id": "x", "killer": "A", "n": 1, "victim": "B"})
        assert payload.actor == "A"
        assert payload.target == "B"
        assert EventPayload(["x"]).target is None

    def test_down_then_kill_credited_once(self, replay_dir):
        match_dir = _write_match(replay_dir, "match.1", [
            ("groggy0001", 5_000, ME, "Victim"),
            ("kill0001", 9_000, ME, "Victim"),
        ])

        events = collect_match_events(match_dir)
        assert [e.bookmark_type for e in events] == [BookmarkType.KILL]
        assert events[0].target == "Victim"

    def test_kill_without_down(self, replay_dir):
        match_dir = _write_match(replay_dir, "match.1", [("kill0001", 9_000, ME, "Victim")])
        assert [e.bookmark_type for e in collect_match_events(match_dir)] == [BookmarkType.KILL]

    def test_own_death(self, replay_dir):
        match_dir = _write_match(replay_dir, "match.1", [
            ("groggy0001", 1_000, "Enemy", ME),
            ("kill0001", 2_000, "Enemy", ME),
        ])
        assert [e.bookmark_type for e in collect_match_events(match_dir)] == [BookmarkType.DEATH]

    def test_own_death_by_own_hand(self, replay_dir):
        match_dir = _write_match(replay_dir, "match.1", [("kill0001", 2_000, ME, ME)])

        events = collect_match_events(match_dir)
        assert [e.bookmark_type for e in events] == [BookmarkType.DEATH]
        assert events[0].target == ME

    def test_other_players_ignored(self, replay_dir):
        match_dir = _write_match(replay_dir, "match.1", [
            ("groggy0001", 1_000, "A", "B"),
            ("kill0001", 2_000, "A", "B"),
        ])
        assert collect_match_events(match_dir) == []

    def test_malformed_event_file_skipped(self, replay_dir):
        match_dir = _write_match(replay_dir, "match.1", [("kill0002", 9_000, ME, "Victim")])
        (match_dir / "events" / "kill0001").write_bytes(b"{\"time1\": 1, \"data\": \"***\"}")

        assert len(collect_match_events(match_dir)) == 1

    def test_missing_match_info_raises(self, replay_dir):
        (replay_dir / "broken").mkdir()
        with pytest.raises(OSError):
            collect_match_events(replay_dir / "broken")


# ---------------------------------------------------------------------------
# Directory watching
# ---------------------------------------------------------------------------


class TestDirectoryWatching:
    @pytest.mark.asyncio
    async def test_existing_matches_never_processed(self, pubg, replay_dir, recording):
        _write_match(replay_dir, "old.match", [("kill0001", 1_000, ME, "Victim")])
        pubg.scan_existing()

        result = await pubg.tick()
        assert result.status == TickStatus.SKIPPED
        assert recording.snapshot().bookmarks == []

    @pytest.mark.asyncio
    async def test_new_match_emits_at_event_time(self, pubg, replay_dir, recording):
        pubg.scan_existing()
        _write_match(replay_dir, "new.match", [
            ("groggy0001", 5_000, ME, "Victim"),
            ("kill0001", 9_000, ME, "Victim"),
            ("kill0002", 20_000, ME, "Other"),
            ("kill0003", 30_000, "Enemy", ME),
        ])

        result = await pubg.tick()
        assert result.status == TickStatus.SUCCESS
        assert result.emitted == 3

        bookmarks = recording.snapshot().sorted_bookmarks()
        assert [(b.type, b.time) for b in bookmarks] == [
            (BookmarkType.KILL, timedelta(seconds=65)),
            (BookmarkType.KILL, timedelta(seconds=80)),
            (BookmarkType.DEATH, timedelta(seconds=90)),
        ]

    @pytest.mark.asyncio
    async def test_match_processed_once(self, pubg, replay_dir, recording):
        pubg.scan_existing()
        _write_match(replay_dir, "new.match", [("kill0001", 1_000, ME, "Victim")])

        await pubg.tick()
        await pubg.tick()
        assert len(recording.snapshot().bookmarks) == 1

    @pytest.mark.asyncio
    async def test_broken_match_does_not_stop_others(self, pubg, replay_dir, recording):
        pubg.scan_existing()
        (replay_dir / "a.broken").mkdir()
        _write_match(replay_dir, "b.match", [("kill0001", 1_000, ME, "Victim")])

        result = await pubg.tick()
        assert result.emitted == 1

    @pytest.mark.asyncio
    async def test_events_before_recording_discarded(self, sink, replay_dir):
        sink.start_recording(RECORDING_START + timedelta(hours=1))
        pubg = PubgIntegration(sink, PubgSettings(replay_dir=replay_dir, settle_delay=0))
        pubg.scan_existing()
        _write_match(replay_dir, "new.match", [("kill0001", 1_000, ME, "Victim")])

        result = await pubg.tick()
        assert result.emitted == 0
        assert sink.snapshot().bookmarks == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_creates_folder(self, recording, tmp_path):
        replay_dir = tmp_path / "TslGame" / "Saved" / "Demos"
        pubg = PubgIntegration(recording, PubgSettings(replay_dir=replay_dir, interval=60))

        assert await pubg.start() is True
        await pubg.shutdown()

        assert replay_dir.is_dir()
        assert pubg.state == IntegrationState.STOPPED

    @pytest.mark.asyncio
    async def test_start_fails_when_folder_cannot_be_created(self, recording, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        pubg = PubgIntegration(recording, PubgSettings(replay_dir=blocker / "Demos"))

        assert await pubg.start() is False
        assert pubg.state == IntegrationState.STOPPED
