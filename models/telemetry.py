"""Raw telemetry snapshot models for the supported games.

These models describe the payloads as the games produce them. They are
decoded once per request, poll or event file and never stored. Unknown
fields are ignored so that game updates adding data do not break
decoding.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


# -- Counter-Strike 2 Game State Integration ---------------------------------


class CS2MatchStats(BaseModel):
    """Per-match counters of a CS2 player. ``None`` means "not sent"."""

    kills: Optional[int] = None
    deaths: Optional[int] = None
    assists: Optional[int] = None

    class Config:
        extra = "ignore"


class CS2Player(BaseModel):
    steamid: Optional[str] = None
    match_stats: Optional[CS2MatchStats] = None

    class Config:
        extra = "ignore"


class CS2Provider(BaseModel):
    """The game client that sent the snapshot (the local player)."""

    steamid: Optional[str] = None

    class Config:
        extra = "ignore"


class CS2Map(BaseModel):
    phase: Optional[str] = None
    name: Optional[str] = None

    class Config:
        extra = "ignore"


class CS2Previously(BaseModel):
    """Partial snapshot of the fields that changed since the last push.

    The presence of a field, not its value, signals that it changed.
    """

    player: Optional[CS2Player] = None

    class Config:
        extra = "ignore"


class CS2GameState(BaseModel):
    """A full snapshot pushed by the CS2 Game State Integration client.

    Example:
        >>> state = CS2GameState.model_validate({
        ...     "provider": {"steamid": "765"},
        ...     "map": {"phase": "live"},
        ...     "player": {"steamid": "765", "match_stats": {"kills": 3}},
        ...     "previously": {"player": {"match_stats": {"kills": 2}}},
        ... })
        >>> state.player.match_stats.kills
        3
    """

    player: Optional[CS2Player] = None
    provider: Optional[CS2Provider] = None
    map: Optional[CS2Map] = None
    previously: Optional[CS2Previously] = None

    class Config:
        extra = "ignore"


# -- League of Legends Live Client Data API ----------------------------------


class LeagueEvent(BaseModel):
    event_id: Optional[int] = Field(default=None, alias="EventID")
    event_name: Optional[str] = Field(default=None, alias="EventName")
    event_time: Optional[float] = Field(default=None, alias="EventTime")

    class Config:
        extra = "ignore"
        populate_by_name = True


class LeagueEventList(BaseModel):
    events: List[LeagueEvent] = Field(default_factory=list, alias="Events")

    class Config:
        extra = "ignore"
        populate_by_name = True


class LeagueActivePlayer(BaseModel):
    """The local player. Newer clients send ``riotId``, older ``summonerName``."""

    riot_id: Optional[str] = Field(default=None, alias="riotId")
    summoner_name: Optional[str] = Field(default=None, alias="summonerName")

    class Config:
        extra = "ignore"
        populate_by_name = True

    @property
    def identity(self) -> Optional[str]:
        return self.riot_id if self.riot_id is not None else self.summoner_name


class LeagueScores(BaseModel):
    kills: Optional[int] = None
    deaths: Optional[int] = None
    assists: Optional[int] = None

    class Config:
        extra = "ignore"


class LeaguePlayer(BaseModel):
    riot_id: Optional[str] = Field(default=None, alias="riotId")
    summoner_name: Optional[str] = Field(default=None, alias="summonerName")
    champion_name: Optional[str] = Field(default=None, alias="championName")
    raw_champion_name: Optional[str] = Field(default=None, alias="rawChampionName")
    team: Optional[str] = None
    scores: Optional[LeagueScores] = None

    class Config:
        extra = "ignore"
        populate_by_name = True

    def matches(self, identity: str) -> bool:
        """Check whether this roster entry is the player named ``identity``."""
        if self.riot_id is not None and self.riot_id == identity:
            return True
        return self.summoner_name is not None and self.summoner_name == identity


class LiveClientData(BaseModel):
    """Response of ``GET /liveclientdata/allgamedata``."""

    active_player: Optional[LeagueActivePlayer] = Field(default=None, alias="activePlayer")
    all_players: List[LeaguePlayer] = Field(default_factory=list, alias="allPlayers")
    events: Optional[LeagueEventList] = None

    class Config:
        extra = "ignore"
        populate_by_name = True

    def has_event(self, name: str) -> bool:
        if self.events is None:
            return False
        return any(event.event_name == name for event in self.events.events)


# -- PUBG replay files -------------------------------------------------------


class PubgMatchInfo(BaseModel):
    """Fields of ``PUBG.replayinfo`` the integration needs."""

    timestamp: int = Field(..., alias="Timestamp", description="Match start, ms since epoch")
    record_user_nickname: Optional[str] = Field(default=None, alias="RecordUserNickName")

    class Config:
        extra = "ignore"
        populate_by_name = True


class PubgEventDetails(BaseModel):
    """Envelope of one replay event file."""

    time: int = Field(..., alias="time1", description="Offset from match start in ms")
    data: Optional[str] = Field(default=None, description="Base64-encoded JSON payload")

    class Config:
        extra = "ignore"
        populate_by_name = True


class EventPayload:
    """Positional view over a decoded PUBG event payload.

    The replay format does not use stable field names, so values are
    read by ordinal position. Only this class knows the positions.
    """

    ACTOR_INDEX = 1
    TARGET_INDEX = 3

    def __init__(self, raw: Any) -> None:
        if isinstance(raw, dict):
            self._values: List[Any] = list(raw.values())
        elif isinstance(raw, list):
            self._values = list(raw)
        else:
            raise ValueError(f"Unsupported event payload type: {type(raw).__name__}")

    def _get(self, index: int) -> Optional[str]:
        if index >= len(self._values) or self._values[index] is None:
            return None
        return str(self._values[index])

    @property
    def actor(self) -> Optional[str]:
        """Who performed the action (instigator of a down, killer)."""
        return self._get(self.ACTOR_INDEX)

    @property
    def target(self) -> Optional[str]:
        """Who the action was performed on (downed player, victim)."""
        return self._get(self.TARGET_INDEX)

    def __repr__(self) -> str:
        return f"EventPayload(actor={self.actor!r}, target={self.target!r})"
