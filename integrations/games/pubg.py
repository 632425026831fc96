"""PUBG: BATTLEGROUNDS game integration.

PUBG writes one replay directory per finished match under
``%LOCALAPPDATA%/TslGame/Saved/Demos``. Each directory holds a
``PUBG.replayinfo`` descriptor and an ``events`` folder with one file per
down (``groggy*``) and kill (``kill*``). The integration notices new
directories and turns those files into bookmarks after the fact.

Example:
    >>> from core.recording import RecordingState
    >>> from integrations.games.pubg import PubgIntegration
    >>> integration = PubgIntegration(RecordingState())
    >>> await integration.start()
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set, Tuple

from core.config import PubgSettings
from core.recording import BookmarkSink
from integrations.base import PollingIntegration
from models.bookmark import BookmarkType
from models.integration import TelemetrySource, TickResult
from models.telemetry import EventPayload, PubgEventDetails, PubgMatchInfo

# Configure logging
logger = logging.getLogger(__name__)

MATCH_INFO_FILE = "PUBG.replayinfo"
EVENTS_DIR = "events"
DOWNED_PATTERN = "groggy*"
KILL_PATTERN = "kill*"


@dataclass(frozen=True)
class DetectedEvent:
    """A gameplay event recovered from a replay directory."""

    bookmark_type: BookmarkType
    time: datetime
    target: str


def read_embedded_json(path: Path) -> str:
    """Extract the JSON object embedded in a replay file.

    Replay files wrap their JSON in binary framing; the object spans
    from the first ``{`` to the last ``}``.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If no JSON object is found.
    """
    content = path.read_text(encoding="utf-8", errors="replace")
    start = content.find("{")
    end = content.rfind("}")
    if start < 0 or end < start:
        raise ValueError(f"No JSON object in {path}")
    return content[start:end + 1]


def match_time_to_local(match_start_ms: int, offset_ms: int) -> datetime:
    """Convert a match-relative event time to local wall-clock time."""
    return datetime.fromtimestamp((match_start_ms + offset_ms) / 1000)


def read_event_file(path: Path) -> Tuple[PubgEventDetails, EventPayload]:
    """Decode one event file: envelope, then base64, then JSON.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If any decoding step fails.
    """
    details = PubgEventDetails.model_validate_json(read_embedded_json(path))
    if details.data is None:
        raise ValueError(f"Event file {path.name} has no data")

    raw = base64.b64decode(details.data)
    return details, EventPayload(json.loads(raw.decode("utf-8")))


def _load_events(events_dir: Path, pattern: str) -> List[Tuple[PubgEventDetails, EventPayload]]:
    loaded = []
    for path in sorted(events_dir.glob(pattern)):
        if not path.is_file():
            continue
        try:
            loaded.append(read_event_file(path))
        except (OSError, ValueError) as e:
            logger.warning(
                f"Failed to parse event details from {path}: {e}",
                extra={"component": "integration", "game_id": "pubg"},
            )
    return loaded


def collect_match_events(match_dir: Path) -> List[DetectedEvent]:
    """Recover the local player's kills and deaths from a replay directory.

    A down followed by a kill of the same victim is credited once: downs
    mark their victim as credited, and kills only count victims that
    were not credited yet.

    Args:
        match_dir: One replay directory.

    Returns:
        Detected events in processing order (downs, kills, deaths).

    Raises:
        OSError: If the match descriptor cannot be read.
        ValueError: If the match descriptor cannot be decoded.
    """
    info = PubgMatchInfo.model_validate_json(read_embedded_json(match_dir / MATCH_INFO_FILE))
    me = info.record_user_nickname
    if not me:
        raise ValueError(f"{MATCH_INFO_FILE} in {match_dir} has no player name")

    events_dir = match_dir / EVENTS_DIR
    downs = _load_events(events_dir, DOWNED_PATTERN)
    kills = _load_events(events_dir, KILL_PATTERN)

    credited: Set[str] = set()
    detected: List[DetectedEvent] = []

    for details, payload in downs:
        victim = payload.target
        if payload.actor == me and victim is not None and victim != me:
            credited.add(victim)
            detected.append(DetectedEvent(
                BookmarkType.KILL,
                match_time_to_local(info.timestamp, details.time),
                victim,
            ))

    for details, payload in kills:
        victim = payload.target
        if payload.actor == me and victim is not None and victim != me:
            # Instant kill without a prior down
            if victim not in credited:
                credited.add(victim)
                detected.append(DetectedEvent(
                    BookmarkType.KILL,
                    match_time_to_local(info.timestamp, details.time),
                    victim,
                ))

    for details, payload in kills:
        if payload.target == me:
            detected.append(DetectedEvent(
                BookmarkType.DEATH,
                match_time_to_local(info.timestamp, details.time),
                me,
            ))

    return detected


class PubgIntegration(PollingIntegration):
    """Game integration for PUBG: BATTLEGROUNDS.

    Attributes:
        game_id: "pubg"
        display_name: "PUBG: BATTLEGROUNDS"
        process_names: ["TslGame.exe"]
        known_directories: Replay directories seen at the last scan.
    """

    game_id = "pubg"
    display_name = "PUBG: BATTLEGROUNDS"
    process_names = ["TslGame.exe"]
    source = TelemetrySource.DIRECTORY
    version = "1.0.0"
    description = "PUBG replay directory watcher"

    def __init__(self, sink: BookmarkSink, settings: Optional[PubgSettings] = None) -> None:
        self.settings = settings or PubgSettings()
        super().__init__(sink, interval=self.settings.interval)
        self.known_directories: Set[Path] = set()

    @property
    def replay_dir(self) -> Path:
        return self.settings.replay_dir

    def list_match_dirs(self) -> Set[Path]:
        return {path for path in self.replay_dir.iterdir() if path.is_dir()}

    def scan_existing(self) -> None:
        """Create the replay folder if needed and remember what is in it.

        Matches already on disk are never processed.

        Raises:
            OSError: If the folder cannot be created or listed.
        """
        self.replay_dir.mkdir(parents=True, exist_ok=True)
        self.known_directories = self.list_match_dirs()

    async def _prepare(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.scan_existing)
        logger.info(
            f"Initializing PUBG data integration on {self.replay_dir} "
            f"({len(self.known_directories)} existing replays)",
            extra={"component": "integration", "game_id": self.game_id},
        )

    async def tick(self) -> TickResult:
        loop = asyncio.get_running_loop()
        current = await loop.run_in_executor(None, self.list_match_dirs)
        new_dirs = sorted(current - self.known_directories)
        self.known_directories = current

        if not new_dirs:
            return TickResult.skipped("no new replays")

        emitted = 0
        for directory in new_dirs:
            logger.info(
                f"New PUBG replay: {directory}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            # TODO: re-check the directory until its file count is stable
            # instead of a single fixed pause.
            await asyncio.sleep(self.settings.settle_delay)
            emitted += await self.process_match_directory(directory)

        return TickResult.success(emitted)

    async def process_match_directory(self, directory: Path) -> int:
        """Emit bookmarks for one replay directory.

        Returns:
            Number of bookmarks the sink accepted.
        """
        loop = asyncio.get_running_loop()
        try:
            events = await loop.run_in_executor(None, collect_match_events, directory)
        except (OSError, ValueError) as e:
            logger.warning(
                f"Failed to parse match info from {directory / MATCH_INFO_FILE}: {e}",
                extra={"component": "integration", "game_id": self.game_id},
            )
            return 0

        emitted = 0
        for event in events:
            emitted += self.emit(event.bookmark_type, at=event.time)

        logger.info(
            f"Processed PUBG replay {directory.name}: {len(events)} events, {emitted} bookmarks",
            extra={"component": "integration", "game_id": self.game_id},
        )
        return emitted
