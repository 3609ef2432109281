"""HTTP handlers exposing the canonical FACEIT resources."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Request

faceit_router = APIRouter(prefix="/api/faceit", tags=["faceit"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@faceit_router.get("/search")
async def search_players(
    request: Request, q: str = "", game: Optional[str] = None
) -> List[Dict[str, object]]:
    gateway = request.app.state.gateway
    players = await gateway.search_players(q, game)
    return [player.to_dict() for player in players]


@faceit_router.get("/players/{player_id}")
async def get_player(
    request: Request, player_id: str, game: Optional[str] = None
) -> Dict[str, object]:
    gateway = request.app.state.gateway
    profile = await gateway.get_player(player_id, game)
    return profile.to_dict()


@faceit_router.get("/players/{player_id}/matches")
async def get_match_history(
    request: Request,
    player_id: str,
    game: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Dict[str, object]:
    gateway = request.app.state.gateway
    items, total = await gateway.get_match_history(player_id, game, limit, offset)
    return {"items": [item.to_dict() for item in items], "total": total}


@faceit_router.get("/players/{player_id}/matches/details")
async def get_match_details(
    request: Request,
    player_id: str,
    game: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Dict[str, object]:
    gateway = request.app.state.gateway
    items = await gateway.get_match_details(player_id, game, limit, offset)
    return {"items": [item.to_dict() for item in items], "total": len(items)}


@faceit_router.get("/players/{player_id}/teammates")
async def get_teammates(
    request: Request,
    player_id: str,
    game: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Dict[str, object]:
    gateway = request.app.state.gateway
    items = await gateway.get_teammates(player_id, game, limit, offset)
    return {"items": [item.to_dict() for item in items]}


@faceit_router.get("/players/{player_id}/maps")
async def get_map_stats(
    request: Request, player_id: str, game: Optional[str] = None
) -> Dict[str, object]:
    gateway = request.app.state.gateway
    items = await gateway.get_map_stats(player_id, game)
    return {"items": [item.to_dict() for item in items]}


@faceit_router.get("/matches/{match_id}")
async def get_match(request: Request, match_id: str) -> Dict[str, object]:
    gateway = request.app.state.gateway
    detail = await gateway.get_match(match_id)
    return detail.to_dict()


@faceit_router.get("/debug/match-score/{match_id}")
async def explain_match_score(request: Request, match_id: str) -> Dict[str, object]:
    """Show which score source the cascade picked for a match."""
    gateway = request.app.state.gateway
    return await gateway.explain_score(match_id)


@admin_router.get("/keys")
async def get_key_status(request: Request) -> Dict[str, object]:
    """Health of every configured key, with secrets reduced to a prefix."""
    key_manager = request.app.state.key_manager
    return key_manager.get_status()
