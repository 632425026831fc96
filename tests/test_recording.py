"""Tests for the recording state that backs the bookmark sink."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta

from core.recording import BookmarkSink, RecordingState
from models.bookmark import BookmarkSubtype, BookmarkType
from tests.conftest import RECORDING_START


class TestRecordingLifecycle:
    def test_satisfies_sink_protocol(self, sink):
        assert isinstance(sink, BookmarkSink)

    def test_inactive_by_default(self, sink):
        assert not sink.is_recording_active()
        assert sink.recording_start_time() is None
        assert sink.snapshot() is None

    def test_start_and_stop(self, sink):
        sink.start_recording(RECORDING_START)
        assert sink.is_recording_active()
        assert sink.recording_start_time() == RECORDING_START

        sink.add_bookmark(BookmarkType.KILL, at=timedelta(seconds=5))
        finished = sink.stop_recording()

        assert not sink.is_recording_active()
        assert finished is not None
        assert len(finished.bookmarks) == 1

    def test_stop_without_recording(self, sink):
        assert sink.stop_recording() is None

    def test_snapshot_is_a_copy(self, recording):
        snapshot = recording.snapshot()
        recording.add_bookmark(BookmarkType.KILL, at=timedelta(seconds=1))

        assert snapshot.bookmarks == []
        assert len(recording.snapshot().bookmarks) == 1


class TestAddBookmark:
    def test_discarded_without_recording(self, sink):
        assert sink.add_bookmark(BookmarkType.KILL) is None

    def test_relative_time_used_as_is(self, recording):
        bookmark = recording.add_bookmark(BookmarkType.DEATH, at=timedelta(seconds=42))
        assert bookmark.time == timedelta(seconds=42)
        assert bookmark.type == BookmarkType.DEATH

    def test_absolute_time_relative_to_start(self, recording):
        at = RECORDING_START + timedelta(minutes=3, seconds=7)
        bookmark = recording.add_bookmark(BookmarkType.ASSIST, at=at)
        assert bookmark.time == timedelta(minutes=3, seconds=7)

    def test_default_time_is_now(self, sink):
        sink.start_recording(datetime.now() - timedelta(seconds=10))
        bookmark = sink.add_bookmark(BookmarkType.MANUAL)
        assert timedelta(seconds=10) <= bookmark.time < timedelta(seconds=60)

    def test_negative_time_discarded(self, recording):
        before_start = RECORDING_START - timedelta(seconds=1)
        assert recording.add_bookmark(BookmarkType.KILL, at=before_start) is None
        assert recording.snapshot().bookmarks == []

    def test_subtype_kept(self, recording):
        bookmark = recording.add_bookmark(
            BookmarkType.KILL,
            BookmarkSubtype.HEADSHOT,
            timedelta(seconds=1),
        )
        assert bookmark.subtype == BookmarkSubtype.HEADSHOT
        assert bookmark.id >= 1

    def test_sorted_by_time_not_insertion(self, recording):
        recording.add_bookmark(BookmarkType.KILL, at=timedelta(seconds=30))
        recording.add_bookmark(BookmarkType.DEATH, at=timedelta(seconds=10))

        ordered = recording.snapshot().sorted_bookmarks()
        assert [b.type for b in ordered] == [BookmarkType.DEATH, BookmarkType.KILL]

    def test_concurrent_appends_lose_nothing(self):
        state = RecordingState()
        state.start_recording(RECORDING_START)

        def worker() -> None:
            for i in range(200):
                state.add_bookmark(BookmarkType.KILL, at=timedelta(milliseconds=i))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(state.snapshot().bookmarks) == 8 * 200
