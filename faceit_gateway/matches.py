"""Match-level views assembled from a match document and its stats document."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from faceit_gateway.models import (
    MatchDetail,
    MatchDetailedSummary,
    MatchScoreboard,
    PlayerLine,
)
from faceit_gateway.normalize import as_dict, as_list, kd_ratio, map_name, num, text, to_millis
from faceit_gateway.scores import FACTIONS, ScoreVerdict, extract_line, extract_score, winner_faction


@dataclass
class RosterEntry:
    player_id: str
    nickname: str
    faction: str
    team_name: str
    raw: Dict[str, Any]


def roster(match: Mapping[str, Any]) -> List[RosterEntry]:
    teams = as_dict(match.get("teams"))
    entries = []
    for faction in FACTIONS:
        team = as_dict(teams.get(faction))
        for player in as_list(team.get("roster")):
            player = as_dict(player)
            entries.append(
                RosterEntry(
                    player_id=text(player.get("player_id")),
                    nickname=text(player.get("nickname")),
                    faction=faction,
                    team_name=text(team.get("name")),
                    raw=player,
                )
            )
    return entries


def find_player(match: Mapping[str, Any], player_id: str) -> Optional[RosterEntry]:
    for entry in roster(match):
        if entry.player_id == player_id:
            return entry
    return None


def _decided_winner(match: Mapping[str, Any], verdict: ScoreVerdict) -> Optional[str]:
    winner = winner_faction(match)
    if winner is None and verdict.faction1 != verdict.faction2:
        winner = "faction1" if verdict.faction1 > verdict.faction2 else "faction2"
    return winner


def _played_at(match: Mapping[str, Any]) -> int:
    for key in ("started_at", "date", "finished_at"):
        if match.get(key) is not None:
            return to_millis(match[key])
    return to_millis(None)


def detailed_summary(
    player_id: str,
    match: Mapping[str, Any],
    stats: Optional[Mapping[str, Any]] = None,
) -> Optional[MatchDetailedSummary]:
    """Summarize one match from ``player_id``'s point of view.

    Returns None when the player is not on either roster. An undetermined
    score leaves ``win`` as None rather than guessing from ``results.winner``.
    """
    me = find_player(match, player_id)
    if me is None:
        return None

    verdict = extract_score(match, stats)
    if me.faction == "faction1":
        score_for, score_against = verdict.faction1, verdict.faction2
    else:
        score_for, score_against = verdict.faction2, verdict.faction1

    win = None
    if verdict.known:
        winner = _decided_winner(match, verdict)
        if winner is not None:
            win = winner == me.faction

    line = extract_line(player_id, match, stats, me.raw)
    return MatchDetailedSummary(
        match_id=text(match.get("match_id")),
        game=text(match.get("game") or match.get("game_id")),
        played_at=_played_at(match),
        region=text(match.get("region"), "unknown"),
        team=me.team_name,
        map=map_name(match),
        win=win,
        kills=line.kills,
        deaths=line.deaths,
        headshots=line.headshots,
        kd=kd_ratio(line.kills, line.deaths),
        score_for=score_for,
        score_against=score_against,
    )


def match_detail(
    match: Mapping[str, Any], stats: Optional[Mapping[str, Any]] = None
) -> MatchDetail:
    verdict = extract_score(match, stats)
    teams = as_dict(match.get("teams"))
    entries = roster(match)

    scoreboard = []
    for faction in FACTIONS:
        players = []
        for entry in entries:
            if entry.faction != faction:
                continue
            line = extract_line(entry.player_id, match, stats, entry.raw)
            players.append(
                PlayerLine(
                    id=entry.player_id,
                    nickname=entry.nickname,
                    kills=line.kills,
                    deaths=line.deaths,
                    hs=line.headshots,
                    kd=kd_ratio(line.kills, line.deaths),
                    avatar_url=text(entry.raw.get("avatar")),
                    level=int(num(entry.raw.get("skill_level"))),
                )
            )
        scoreboard.append(
            MatchScoreboard(
                key=faction,
                name=text(as_dict(teams.get(faction)).get("name")),
                score=verdict.faction1 if faction == "faction1" else verdict.faction2,
                players=players,
            )
        )

    return MatchDetail(
        match_id=text(match.get("match_id")),
        game=text(match.get("game") or match.get("game_id")),
        map=map_name(match),
        started_at=to_millis(match.get("started_at")),
        finished_at=to_millis(match.get("finished_at")),
        region=text(match.get("region")),
        scoreboard=scoreboard,
        winner=_decided_winner(match, verdict),
        score_for=scoreboard[0].score,
        score_against=scoreboard[1].score,
    )


def teammates_in(match: Mapping[str, Any], player_id: str) -> List[RosterEntry]:
    """Players on ``player_id``'s side of the match, excluding the player."""
    me = find_player(match, player_id)
    if me is None:
        return []
    return [
        entry
        for entry in roster(match)
        if entry.faction == me.faction and entry.player_id != player_id
    ]
