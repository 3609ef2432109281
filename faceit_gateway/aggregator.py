"""Player and match resources assembled from FACEIT Data API calls."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

from faceit_gateway.errors import GatewayError, InvalidRequestError
from faceit_gateway.matches import detailed_summary, match_detail, roster, teammates_in
from faceit_gateway.models import (
    MapStats,
    MatchDetail,
    MatchDetailedSummary,
    MatchSummary,
    PlayerProfile,
    PlayerSummary,
    TeammateAggregate,
)
from faceit_gateway.normalize import (
    as_dict,
    as_list,
    bare_player_summary,
    map_stats,
    match_summary,
    player_profile,
    player_summary,
    text,
)
from faceit_gateway.scores import ScoreVerdict, extract_score, winner_faction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Fetcher(Protocol):
    async def fetch(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any: ...


def _require(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InvalidRequestError(f"{name} required")
    return value


class FaceitGateway:
    """Canonical FACEIT resources for the HTTP handlers.

    Match histories are expanded ``batch_size`` matches at a time: every
    fetch in a group settles before the next group starts, and a match whose
    fetch fails is left out instead of failing the whole listing.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        default_game: str = "cs2",
        batch_size: int = 5,
        search_limit: int = 5,
    ):
        self.fetcher = fetcher
        self.default_game = default_game
        self.batch_size = batch_size
        self.search_limit = search_limit

    async def search_players(self, query: str, game: Optional[str] = None) -> List[PlayerSummary]:
        query = _require(query, "q")
        game = game or self.default_game
        data = await self.fetcher.fetch(
            "/search/players",
            {"nickname": query, "game": game, "limit": self.search_limit, "offset": 0},
        )
        hits = [as_dict(hit) for hit in as_list(as_dict(data).get("items"))]

        async def enrich(hit: Dict[str, Any]) -> PlayerSummary:
            player_id = text(hit.get("player_id"))
            try:
                player, stats = await asyncio.gather(
                    self.fetcher.fetch(f"/players/{player_id}"),
                    self.fetcher.fetch(f"/players/{player_id}/stats/{game}"),
                )
            except GatewayError as exc:
                logger.warning("Could not enrich search hit %s: %s", player_id, exc)
                return bare_player_summary(hit)
            return player_summary(hit, as_dict(player), as_dict(stats), game)

        return list(await asyncio.gather(*(enrich(hit) for hit in hits)))

    async def get_player(self, player_id: str, game: Optional[str] = None) -> PlayerProfile:
        player_id = _require(player_id, "player id")
        game = game or self.default_game
        player, stats = await asyncio.gather(
            self.fetcher.fetch(f"/players/{player_id}"),
            self.fetcher.fetch(f"/players/{player_id}/stats/{game}"),
        )
        return player_profile(as_dict(player), as_dict(stats), game)

    async def get_match_history(
        self,
        player_id: str,
        game: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[MatchSummary], int]:
        stubs, total = await self._history(player_id, game, limit, offset)
        items = [match_summary(stub) for stub in stubs]
        return items, total or len(items)

    async def get_match_details(
        self,
        player_id: str,
        game: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[MatchDetailedSummary]:
        stubs, _ = await self._history(player_id, game, limit, offset)

        async def expand(stub: Dict[str, Any]) -> Optional[MatchDetailedSummary]:
            match_id = text(stub.get("match_id"))
            # One upstream call per worker at a time keeps the group within batch_size.
            match = await self.fetcher.fetch(f"/matches/{match_id}")
            stats = await self._fetch_optional(f"/matches/{match_id}/stats")
            return detailed_summary(player_id, as_dict(match), stats)

        detailed = await self._expand_batches(stubs, expand)
        detailed.sort(key=lambda item: item.played_at, reverse=True)
        return detailed

    async def get_teammates(
        self,
        player_id: str,
        game: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[TeammateAggregate]:
        stubs, _ = await self._history(player_id, game, limit, offset)

        async def expand(stub: Dict[str, Any]) -> Dict[str, Any]:
            return as_dict(await self.fetcher.fetch(f"/matches/{text(stub.get('match_id'))}"))

        teammates: Dict[str, TeammateAggregate] = {}
        for match in await self._expand_batches(stubs, expand):
            for entry in teammates_in(match, player_id):
                aggregate = teammates.get(entry.player_id)
                if aggregate is None:
                    aggregate = TeammateAggregate(id=entry.player_id, nickname=entry.nickname)
                    teammates[entry.player_id] = aggregate
                aggregate.matches_together += 1

        return sorted(teammates.values(), key=lambda item: item.matches_together, reverse=True)

    async def get_map_stats(self, player_id: str, game: Optional[str] = None) -> List[MapStats]:
        player_id = _require(player_id, "player id")
        game = game or self.default_game
        stats = await self.fetcher.fetch(f"/players/{player_id}/stats/{game}")
        return map_stats(as_dict(stats))

    async def get_match(self, match_id: str) -> MatchDetail:
        match, stats = await self._match_with_stats(match_id)
        return match_detail(match, stats)

    async def explain_score(self, match_id: str) -> Dict[str, object]:
        """Report which score source fired for a match."""
        match, stats = await self._match_with_stats(match_id)
        verdict: ScoreVerdict = extract_score(match, stats)
        entries = roster(match)
        return {
            "matchId": text(match.get("match_id"), match_id),
            "strategy": verdict.strategy,
            "faction1": verdict.faction1,
            "faction2": verdict.faction2,
            "resultsWinner": winner_faction(match),
            "statsAvailable": stats is not None,
            "statsRounds": len(as_list(stats.get("rounds"))) if stats else 0,
            "hasDetailedResults": bool(as_list(match.get("detailed_results"))),
            "faction1Roster": sum(1 for entry in entries if entry.faction == "faction1"),
            "faction2Roster": sum(1 for entry in entries if entry.faction == "faction2"),
        }

    async def _match_with_stats(self, match_id: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        match_id = _require(match_id, "match id")
        match, stats = await asyncio.gather(
            self.fetcher.fetch(f"/matches/{match_id}"),
            self._fetch_optional(f"/matches/{match_id}/stats"),
        )
        return as_dict(match), stats

    async def _history(
        self,
        player_id: str,
        game: Optional[str],
        limit: int,
        offset: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        player_id = _require(player_id, "player id")
        history = as_dict(
            await self.fetcher.fetch(
                f"/players/{player_id}/history",
                {"game": game or self.default_game, "limit": limit, "offset": offset},
            )
        )
        stubs = [as_dict(stub) for stub in as_list(history.get("items"))]
        total = history.get("total")
        return stubs, total if isinstance(total, int) else 0

    async def _fetch_optional(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            return as_dict(await self.fetcher.fetch(path))
        except GatewayError as exc:
            logger.info("Optional resource %s unavailable: %s", path, exc)
            return None

    async def _expand_batches(
        self,
        stubs: Sequence[Dict[str, Any]],
        worker: Callable[[Dict[str, Any]], Awaitable[Optional[T]]],
    ) -> List[T]:
        results: List[T] = []
        for start in range(0, len(stubs), self.batch_size):
            group = stubs[start : start + self.batch_size]
            settled = await asyncio.gather(*(self._settle(worker, stub) for stub in group))
            results.extend(item for item in settled if item is not None)
        return results

    async def _settle(
        self,
        worker: Callable[[Dict[str, Any]], Awaitable[Optional[T]]],
        stub: Dict[str, Any],
    ) -> Optional[T]:
        try:
            return await worker(stub)
        except GatewayError as exc:
            logger.warning("Dropping match %s from batch: %s", stub.get("match_id"), exc)
            return None
