"""Data models for key rotation and the canonical gateway entities."""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

KEY_PREFIX_LENGTH = 8


@dataclass
class ApiKey:
    """A single FACEIT credential with its health counters."""

    id: str
    key: str
    failure_count: int = 0
    in_cooldown: bool = False
    last_used_at: float = 0.0

    def key_prefix(self) -> str:
        return f"{self.key[:KEY_PREFIX_LENGTH]}..."


@dataclass
class RotationState:
    """Ordered key ring plus the cursor used for the next selection."""

    keys: List[ApiKey] = field(default_factory=list)
    cursor: int = 0

    def get(self, key_id: str) -> Optional[ApiKey]:
        for key in self.keys:
            if key.id == key_id:
                return key
        return None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _serialize(value):
    if isinstance(value, CanonicalEntity):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    return value


class CanonicalEntity:
    """Mixin rendering dataclass fields as the camelCase JSON the handlers return."""

    def to_dict(self) -> Dict[str, object]:
        return {_camel(f.name): _serialize(getattr(self, f.name)) for f in fields(self)}


@dataclass
class PlayerSummary(CanonicalEntity):
    id: str
    nickname: str
    kd_ratio: float = 0
    win_rate_percent: float = 0
    matches_played: float = 0
    headshot_percent: float = 0
    avatar_url: str = ""
    country: str = ""
    level: int = 0


@dataclass
class PlayerProfile(PlayerSummary):
    kpr: float = 0
    kills: float = 0
    deaths: float = 0
    wins: float = 0
    losses: float = 0
    elo: float = 0
    highest_elo: float = 0
    lowest_elo: float = 0
    avg_elo: float = 0
    fa_rating: float = 0
    hltv: float = 0


@dataclass
class MatchSummary(CanonicalEntity):
    match_id: str
    game: str
    played_at: int
    region: str = ""
    team: str = ""
    map: Optional[str] = None


@dataclass
class MatchDetailedSummary(MatchSummary):
    # None means the result could not be determined
    win: Optional[bool] = None
    kills: float = 0
    deaths: float = 0
    headshots: float = 0
    kd: float = 0
    score_for: int = 0
    score_against: int = 0


@dataclass
class PlayerLine(CanonicalEntity):
    id: str
    nickname: str = ""
    kills: float = 0
    deaths: float = 0
    hs: float = 0
    kd: float = 0
    avatar_url: str = ""
    level: int = 0


@dataclass
class MatchScoreboard(CanonicalEntity):
    key: str
    name: str = ""
    score: int = 0
    players: List[PlayerLine] = field(default_factory=list)


@dataclass
class MatchDetail(CanonicalEntity):
    match_id: str
    game: str
    map: Optional[str]
    started_at: int
    finished_at: int
    region: str
    scoreboard: List[MatchScoreboard]
    winner: Optional[str] = None
    score_for: int = 0
    score_against: int = 0


@dataclass
class TeammateAggregate(CanonicalEntity):
    id: str
    nickname: str = ""
    matches_together: int = 0


@dataclass
class MapStats(CanonicalEntity):
    map: str
    win_rate_percent: float = 0
    kd_ratio: float = 0
    matches_played: float = 0
