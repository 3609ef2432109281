"""Score and per-player stat extraction from heterogeneous match payloads.

FACEIT reports the final score in different places depending on game, match
age and endpoint. Each strategy below looks in one place and either returns
a ``(faction1, faction2)`` pair or ``None``. :func:`extract_score` tries them
in order and keeps the first pair with a non-zero side.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from faceit_gateway.normalize import as_dict, as_list, num

FACTIONS = ("faction1", "faction2")

ScorePair = Tuple[int, int]
ScoreStrategy = Callable[[Mapping[str, Any], Mapping[str, Any]], Optional[ScorePair]]

TEAM_SCORE_KEYS = ("score", "final score", "rounds", "rounds won", "roundswon")
COMBINED_SCORE_KEYS = ("score", "result", "final score")

# "16-10", "16 / 10", "16:10"
COMBINED_SCORE_RE = re.compile(r"(\d+)\s*[-/:]\s*(\d+)")
DIGITS_RE = re.compile(r"\d+")

# detailed_results and results.score carry a 0/1 "who started" flag on some
# payloads; only values above this floor are trusted as scores.
SCORE_FLOOR = 1


@dataclass
class ScoreVerdict:
    strategy: Optional[str]
    faction1: int = 0
    faction2: int = 0

    @property
    def known(self) -> bool:
        return self.strategy is not None


def _pair(a: Any, b: Any) -> Optional[ScorePair]:
    first, second = int(num(a)), int(num(b))
    if first > 0 or second > 0:
        return first, second
    return None


def _lookup(source: Mapping[str, Any], keys: Sequence[str]) -> Any:
    lowered = {str(k).lower(): v for k, v in source.items()}
    for key in keys:
        if lowered.get(key) is not None:
            return lowered[key]
    return None


def _leading_int(raw: Any) -> int:
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else 0
    if isinstance(raw, str):
        found = DIGITS_RE.search(raw)
        if found:
            return int(found.group(0))
    return 0


def winner_faction(match: Mapping[str, Any]) -> Optional[str]:
    winner = as_dict(match.get("results")).get("winner")
    return winner if winner in FACTIONS else None


def _rounds(stats: Mapping[str, Any]) -> List[Any]:
    return as_list(stats.get("rounds"))


def _first_two_scores(score_map: Mapping[str, Any]) -> Tuple[Any, Any]:
    values = list(score_map.values())[:2] + [0, 0]
    return values[0], values[1]


def round_team_stats(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    rounds = _rounds(stats)
    if not rounds:
        return None
    by_faction = {faction: 0 for faction in FACTIONS}
    for team in as_list(as_dict(rounds[0]).get("teams")):
        team = as_dict(team)
        faction = team.get("team_id")
        if faction not in by_faction:
            continue
        parsed = _leading_int(_lookup(as_dict(team.get("team_stats")), TEAM_SCORE_KEYS))
        if parsed > 0:
            by_faction[faction] = parsed
    return _pair(by_faction["faction1"], by_faction["faction2"])


def combined_round_score(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    rounds = _rounds(stats)
    if not rounds:
        return None
    raw = _lookup(as_dict(as_dict(rounds[0]).get("round_stats")), COMBINED_SCORE_KEYS)
    if not isinstance(raw, str):
        return None
    found = COMBINED_SCORE_RE.search(raw)
    if not found:
        return None
    first, second = int(found.group(1)), int(found.group(2))
    winner = winner_faction(match)
    if winner == "faction1" and first < second:
        first, second = second, first
    elif winner == "faction2" and second < first:
        first, second = second, first
    return _pair(first, second)


def rounds_won(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    rounds = _rounds(stats)
    if len(rounds) <= 1:
        return None
    counts = {faction: 0 for faction in FACTIONS}
    for round_entry in rounds:
        round_entry = as_dict(round_entry)
        winner = round_entry.get("winner") or as_dict(round_entry.get("round_stats")).get("Winner")
        if winner in counts:
            counts[winner] += 1
    return _pair(counts["faction1"], counts["faction2"])


def detailed_results(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    for result in as_list(match.get("detailed_results")):
        factions = as_dict(as_dict(result).get("factions"))
        if len(factions) < 2:
            continue
        first, second = [as_dict(value).get("score") for value in list(factions.values())[:2]]
        if num(first) > SCORE_FLOOR or num(second) > SCORE_FLOOR:
            return _pair(first, second)
    return None


def results_score(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    score_map = as_dict(as_dict(match.get("results")).get("score"))
    if not any(num(value) > SCORE_FLOOR for value in score_map.values()):
        return None
    return _pair(*_first_two_scores(score_map))


def team_stats_score(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    teams = as_dict(match.get("teams"))
    scores = []
    for faction in FACTIONS:
        team_stats = as_dict(as_dict(teams.get(faction)).get("stats"))
        scores.append(team_stats.get("Score", team_stats.get("score")))
    return _pair(*scores)


def results_faction_score(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    results = as_dict(match.get("results"))
    scores = []
    for faction in FACTIONS:
        entry = as_dict(results.get(faction))
        scores.append(entry.get("score", entry.get("Score")))
    return _pair(*scores)


def results_score_any(match: Mapping[str, Any], stats: Mapping[str, Any]) -> Optional[ScorePair]:
    score_map = as_dict(as_dict(match.get("results")).get("score"))
    return _pair(*_first_two_scores(score_map))


SCORE_STRATEGIES: List[Tuple[str, ScoreStrategy]] = [
    ("round_team_stats", round_team_stats),
    ("combined_round_score", combined_round_score),
    ("rounds_won", rounds_won),
    ("detailed_results", detailed_results),
    ("results_score", results_score),
    ("team_stats_score", team_stats_score),
    ("results_faction_score", results_faction_score),
    ("results_score_any", results_score_any),
]


def extract_score(
    match: Mapping[str, Any],
    stats: Optional[Mapping[str, Any]] = None,
    strategies: Sequence[Tuple[str, ScoreStrategy]] = SCORE_STRATEGIES,
) -> ScoreVerdict:
    stats = as_dict(stats)
    for name, strategy in strategies:
        pair = strategy(match, stats)
        if pair is not None:
            return ScoreVerdict(strategy=name, faction1=pair[0], faction2=pair[1])
    return ScoreVerdict(strategy=None)


@dataclass
class LineStats:
    kills: float = 0
    deaths: float = 0
    headshots: float = 0

    @property
    def meaningful(self) -> bool:
        return self.kills > 0 or self.deaths > 0


def _line_from(source: Mapping[str, Any]) -> LineStats:
    return LineStats(
        kills=num(source.get("Kills") or source.get("kills")),
        deaths=num(source.get("Deaths") or source.get("deaths")),
        headshots=num(source.get("Headshots") or source.get("headshots")),
    )


LineTier = Callable[[str, Mapping[str, Any], Mapping[str, Any], Mapping[str, Any]], Optional[LineStats]]


def round_player_stats(
    player_id: str,
    match: Mapping[str, Any],
    stats: Mapping[str, Any],
    roster_entry: Mapping[str, Any],
) -> Optional[LineStats]:
    for round_entry in _rounds(stats):
        for team in as_list(as_dict(round_entry).get("teams")):
            found = next(
                (
                    as_dict(p)
                    for p in as_list(as_dict(team).get("players"))
                    if as_dict(p).get("player_id") == player_id
                ),
                None,
            )
            if found is not None and isinstance(found.get("player_stats"), dict):
                line = _line_from(found["player_stats"])
                if line.meaningful:
                    return line
                break
    return None


def roster_player_stats(
    player_id: str,
    match: Mapping[str, Any],
    stats: Mapping[str, Any],
    roster_entry: Mapping[str, Any],
) -> Optional[LineStats]:
    player_stats = roster_entry.get("player_stats")
    if not isinstance(player_stats, dict):
        return None
    return _line_from(player_stats)


def flat_player_stats(
    player_id: str,
    match: Mapping[str, Any],
    stats: Mapping[str, Any],
    roster_entry: Mapping[str, Any],
) -> Optional[LineStats]:
    for entry in as_list(match.get("players")):
        entry = as_dict(entry)
        if entry.get("player_id") == player_id:
            return _line_from(entry)
    return None


LINE_TIERS: List[LineTier] = [round_player_stats, roster_player_stats, flat_player_stats]


def extract_line(
    player_id: str,
    match: Mapping[str, Any],
    stats: Optional[Mapping[str, Any]] = None,
    roster_entry: Optional[Mapping[str, Any]] = None,
) -> LineStats:
    stats = as_dict(stats)
    roster_entry = as_dict(roster_entry)
    for tier in LINE_TIERS:
        line = tier(player_id, match, stats, roster_entry)
        if line is not None and line.meaningful:
            return line
    return LineStats()
