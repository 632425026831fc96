"""Settings for GameMarks and its game integrations.

Defaults mirror the values the games expect out of the box. Any field
can be overridden through a ``GAMEMARKS_*`` environment variable, e.g.
``GAMEMARKS_CS2_PORT=1341`` or ``GAMEMARKS_PUBG_REPLAY_DIR=D:/Demos``.

Example:
    >>> from core.config import load_settings
    >>> settings = load_settings({"GAMEMARKS_LOL_INTERVAL": "0.5"})
    >>> settings.lol.interval
    0.5
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

# Configure logging
logger = logging.getLogger(__name__)

ENV_PREFIX = "GAMEMARKS_"


def _default_steam_roots() -> List[Path]:
    """Common Steam installation roots on Windows."""
    return [
        Path(os.environ.get("PROGRAMFILES(X86)", "C:/Program Files (x86)")) / "Steam",
        Path(os.environ.get("PROGRAMFILES", "C:/Program Files")) / "Steam",
        Path("D:/Steam"),
        Path("E:/Steam"),
        Path("D:/SteamLibrary"),
    ]


def _default_pubg_replay_dir() -> Path:
    local_app_data = os.environ.get("LOCALAPPDATA", str(Path.home() / "AppData" / "Local"))
    return Path(local_app_data) / "TslGame" / "Saved" / "Demos"


class CS2Settings(BaseModel):
    """Counter-Strike 2 Game State Integration listener settings.

    Attributes:
        host: Loopback address the listener binds to.
        port: TCP port the listener binds to.
        cfg_dir: Explicit ``game/csgo/cfg`` directory. Located among the
            Steam roots when not set.
        cfg_name: Name used in the cfg file name and its root block.
        timeout/buffer/throttle/heartbeat: Push timing sent to the game.
    """

    host: str = Field(default="127.0.0.1", description="Listener bind address")
    port: int = Field(default=1340, ge=1, le=65535, description="Listener port")
    cfg_dir: Optional[Path] = Field(default=None, description="CS2 cfg directory")
    cfg_name: str = Field(default="GameMarks", min_length=1, description="Integration name")
    timeout: float = Field(default=5.0, gt=0)
    buffer: float = Field(default=0.1, ge=0)
    throttle: float = Field(default=0.2, ge=0)
    heartbeat: float = Field(default=2.0, gt=0)
    steam_roots: List[Path] = Field(default_factory=_default_steam_roots)


class LeagueSettings(BaseModel):
    """League of Legends Live Client Data API polling settings."""

    base_url: str = Field(
        default="https://127.0.0.1:2999/liveclientdata",
        description="Live Client Data API root",
    )
    interval: float = Field(default=0.25, gt=0, description="Polling interval in seconds")
    request_timeout: float = Field(default=1.0, gt=0, description="Per-request timeout")


class PubgSettings(BaseModel):
    """PUBG replay directory watcher settings."""

    replay_dir: Path = Field(default_factory=_default_pubg_replay_dir)
    interval: float = Field(default=2.5, gt=0, description="Scan interval in seconds")
    settle_delay: float = Field(
        default=0.5,
        ge=0,
        description="Pause before reading a new match directory",
    )


class DetectorSettings(BaseModel):
    """Process-based game detection settings."""

    enabled: bool = Field(default=True, description="Start integrations on game launch")
    interval: float = Field(default=2.0, gt=0, description="Process scan interval")


class Settings(BaseModel):
    """All GameMarks settings."""

    cs2: CS2Settings = Field(default_factory=CS2Settings)
    lol: LeagueSettings = Field(default_factory=LeagueSettings)
    pubg: PubgSettings = Field(default_factory=PubgSettings)
    detector: DetectorSettings = Field(default_factory=DetectorSettings)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from defaults and ``GAMEMARKS_*`` overrides.

    Variables are named ``GAMEMARKS_<SECTION>_<FIELD>``. Unknown
    variables are ignored; invalid values are logged and the section
    falls back to its defaults.

    Args:
        environ: Mapping to read overrides from. Defaults to ``os.environ``.

    Returns:
        The resolved Settings.
    """
    environ = os.environ if environ is None else environ
    sections: Dict[str, Dict[str, str]] = {name: {} for name in Settings.model_fields}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = key[len(ENV_PREFIX):].lower().split("_", 1)
        if len(parts) != 2 or parts[0] not in sections:
            continue
        section, field_name = parts
        section_model = Settings.model_fields[section].annotation
        if field_name in getattr(section_model, "model_fields", {}):
            sections[section][field_name] = value

    resolved = {}
    for section, overrides in sections.items():
        model = Settings.model_fields[section].annotation
        try:
            resolved[section] = model(**overrides)
        except ValidationError as e:
            logger.warning(
                f"Invalid {section} settings, using defaults: {e}",
                extra={"component": "config"},
            )
            resolved[section] = model()

    return Settings(**resolved)
