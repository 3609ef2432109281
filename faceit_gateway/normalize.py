"""Turn raw FACEIT payloads into the canonical gateway entities.

Upstream mixes numbers, percent strings and missing keys freely across
endpoints, so every statistic goes through :func:`num` and every timestamp
through :func:`to_millis`. Nothing in here raises on malformed input.
"""

import math
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from faceit_gateway.models import (
    MapStats,
    MatchSummary,
    PlayerProfile,
    PlayerSummary,
)

SECONDS_CUTOFF = 10**12
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
FRACTION_RE = re.compile(r"\.(\d+)")

KD_KEYS = ("Average K/D Ratio", "Average K/D", "K/D Ratio")
KPR_KEYS = ("Average K/R Ratio", "Average K/R", "K/R Ratio")
HIGHEST_ELO_KEYS = ("Highest ELO", "Highest Elo")
LOWEST_ELO_KEYS = ("Lowest ELO", "Lowest Elo")
AVERAGE_ELO_KEYS = ("Average ELO", "Average Elo")
FA_RATING_KEYS = ("FA Rating", "Average FA Rating")
HLTV_KEYS = ("HLTV Rating", "Average HLTV Rating")


def num(value: Any, default: float = 0) -> float:
    """Coerce an upstream statistic to a finite number, or return ``default``.

    >>> num("55%")
    55.0
    >>> num("abc")
    0
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        result = value
    else:
        try:
            result = float(str(value).strip().rstrip("%"))
        except ValueError:
            return default
    if isinstance(result, float) and not math.isfinite(result):
        return default
    return result


def _now_ms() -> int:
    return int(time.time() * 1000)


def _parse_iso(raw: str) -> Optional[int]:
    # fromisoformat before 3.11 only takes exactly 3 or 6 fraction digits.
    cleaned = FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw.strip(), count=1)
    try:
        parsed = datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - EPOCH) // timedelta(milliseconds=1)


def to_millis(raw: Any) -> int:
    """Normalize seconds, milliseconds or ISO-8601 strings to epoch milliseconds.

    Numbers below 10**12 are read as seconds. Anything unparsable, including a
    missing value, becomes the current time.
    """
    if isinstance(raw, str):
        value = num(raw, default=math.nan)
        if math.isnan(value):
            parsed = _parse_iso(raw)
            return _now_ms() if parsed is None else parsed
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = num(raw, default=math.nan)
        if math.isnan(value):
            return _now_ms()
    else:
        return _now_ms()
    if value < SECONDS_CUTOFF:
        value *= 1000
    return int(value)


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def first_present(source: Mapping[str, Any], keys, default: Any = None) -> Any:
    """Return the value of the first key that is present and not None."""
    for key in keys:
        if source.get(key) is not None:
            return source[key]
    return default


def map_name(match: Mapping[str, Any]) -> Optional[str]:
    voting_map = as_dict(as_dict(match.get("voting")).get("map"))
    pick = voting_map.get("pick")
    if isinstance(pick, list):
        pick = pick[0] if pick else None
    if pick:
        return str(pick)
    if match.get("map"):
        return str(match["map"])
    maps = as_list(match.get("maps"))
    if maps and as_dict(maps[0]).get("name"):
        return str(maps[0]["name"])
    return None


def kd_ratio(kills: float, deaths: float) -> float:
    return round(kills / deaths, 2) if deaths > 0 else kills


def _game_entry(player: Mapping[str, Any], game: str) -> Dict[str, Any]:
    return as_dict(as_dict(player.get("games")).get(game))


def player_summary(
    hit: Mapping[str, Any],
    player: Mapping[str, Any],
    stats: Mapping[str, Any],
    game: str,
) -> PlayerSummary:
    """Build a search result from a search hit and its enrichment payloads."""
    lifetime = as_dict(stats.get("lifetime"))
    game_entry = _game_entry(player, game)
    return PlayerSummary(
        id=text(hit.get("player_id")),
        nickname=text(hit.get("nickname")),
        kd_ratio=num(lifetime.get("Average K/D Ratio")),
        win_rate_percent=num(lifetime.get("Win Rate %")),
        matches_played=num(lifetime.get("Matches")),
        headshot_percent=num(lifetime.get("Headshots %")),
        avatar_url=text(player.get("avatar") or player.get("avatarUrl")),
        country=text(player.get("country")),
        level=int(num(game_entry.get("level") or player.get("level"))),
    )


def bare_player_summary(hit: Mapping[str, Any]) -> PlayerSummary:
    return PlayerSummary(
        id=text(hit.get("player_id")),
        nickname=text(hit.get("nickname")),
    )


def player_profile(
    player: Mapping[str, Any], stats: Mapping[str, Any], game: str
) -> PlayerProfile:
    lifetime = as_dict(stats.get("lifetime"))
    game_entry = _game_entry(player, game)

    kills = lifetime.get("Kills")
    rounds = num(lifetime.get("Rounds"))
    kpr = first_present(lifetime, KPR_KEYS)
    if kpr is None and kills is not None and rounds:
        kpr = num(kills) / rounds

    return PlayerProfile(
        id=text(player.get("player_id")),
        nickname=text(player.get("nickname")),
        kd_ratio=num(first_present(lifetime, KD_KEYS)),
        win_rate_percent=num(lifetime.get("Win Rate %")),
        matches_played=num(lifetime.get("Matches")),
        headshot_percent=num(lifetime.get("Headshots %")),
        avatar_url=text(player.get("avatar")),
        country=text(player.get("country")),
        level=int(num(game_entry.get("skill_level"))),
        kpr=num(kpr),
        kills=num(kills),
        deaths=num(lifetime.get("Deaths")),
        wins=num(lifetime.get("Wins")),
        losses=num(lifetime.get("Losses")),
        elo=num(first_present(game_entry, ("faceit_elo",), player.get("faceit_elo"))),
        highest_elo=num(first_present(lifetime, HIGHEST_ELO_KEYS)),
        lowest_elo=num(first_present(lifetime, LOWEST_ELO_KEYS)),
        avg_elo=num(first_present(lifetime, AVERAGE_ELO_KEYS)),
        fa_rating=num(first_present(lifetime, FA_RATING_KEYS)),
        hltv=num(first_present(lifetime, HLTV_KEYS)),
    )


def match_summary(stub: Mapping[str, Any]) -> MatchSummary:
    """Normalize one entry of a player's match history."""
    return MatchSummary(
        match_id=text(stub.get("match_id")),
        game=text(stub.get("game_id") or stub.get("game")),
        played_at=to_millis(stub.get("played_at", stub.get("started_at"))),
        region=text(stub.get("region")),
        team=text(stub.get("team")),
        map=map_name(stub),
    )


def map_stats(stats: Mapping[str, Any]) -> List[MapStats]:
    items = []
    for segment in as_list(stats.get("segments")):
        segment = as_dict(segment)
        if segment.get("type") != "map":
            continue
        segment_stats = as_dict(segment.get("stats"))
        items.append(
            MapStats(
                map=text(segment.get("label") or segment.get("mode"), "Unknown"),
                win_rate_percent=num(segment_stats.get("Win Rate %")),
                kd_ratio=num(first_present(segment_stats, KD_KEYS)),
                matches_played=num(segment_stats.get("Matches")),
            )
        )
    return items
