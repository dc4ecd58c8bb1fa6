"""
Seven Degrees game endpoints.

The game lives on the client; `/move` advances a client-held state by one pick
and returns the next frontier.
"""
from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer

from api.deps import HttpSession, parse_int_param, raise_for_upstream_error
from wow_backend.games.seven_degrees import (
    NODE_KINDS,
    GameOverError,
    apply_move,
    expand_node,
    init_game,
)
from wow_backend.games.stats import SevenDegreesStats
from wow_backend.integrations.tmdb.client import TmdbClientError

router = APIRouter(prefix="/game/seven", tags=["games"])


# --- Pydantic models ---

class GameNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: Literal["title", "person"]
    id: int
    media_type: Literal["movie", "tv"] | None = None

    @model_serializer(mode="wrap")
    def _omit_person_media_type(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if self.kind == "person" and data.get("media_type") is None:
            data.pop("media_type", None)
        return data


class InitResponse(BaseModel):
    seed: int
    start: GameNode
    target: GameNode
    moves: int
    stats: dict[str, Any] | None = None


class ExpandResponse(BaseModel):
    nodes: list[GameNode]


class MoveRequest(BaseModel):
    target: GameNode
    moves_left: int = Field(ge=0)
    path: list[GameNode] = []
    status: Literal["playing", "won", "lost"] = "playing"
    node: GameNode
    stats: dict[str, Any] | None = None
    limit: int | None = None


class MoveResponse(BaseModel):
    status: Literal["playing", "won", "lost"]
    moves_left: int
    used_moves: int
    path: list[GameNode]
    frontier: list[GameNode]
    stats: dict[str, Any] | None = None


# --- Endpoints ---

@router.get("/init", response_model=InitResponse)
def init(
    session: HttpSession,
    seed: str | None = Query(default=None),
    target_kind: str | None = Query(default=None, alias="targetKind"),
    target_id: str | None = Query(default=None, alias="targetId"),
    target_media_type: Literal["movie", "tv"] | None = Query(default=None, alias="targetMediaType"),
    start_id: str | None = Query(default=None, alias="startId"),
    stats: str | None = Query(default=None, description="Stored seven_degrees_stats JSON; returned with `played` bumped."),
) -> dict:
    """Bootstrap a game: start movie, target (Kevin Bacon by default) and the number of moves."""
    try:
        payload = init_game(
            seed=parse_int_param(seed),
            target_kind=target_kind,
            target_id=parse_int_param(target_id),
            target_media_type=target_media_type,
            start_id=parse_int_param(start_id),
            session=session,
        )
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "initialising game")

    if stats is not None:
        record = SevenDegreesStats.from_storage(stats)
        record.record_played()
        payload["stats"] = record.to_storage()
    return payload


@router.get("/expand", response_model=ExpandResponse)
def expand(
    session: HttpSession,
    kind: str | None = Query(default=None),
    id: str | None = Query(default=None),
    media_type: Literal["movie", "tv"] = Query(default="movie", alias="type"),
    limit: int = Query(default=20),
) -> dict:
    """Frontier for a node: a title's cast or a person's titles."""
    node_id = parse_int_param(id)
    if not kind or node_id is None:
        raise HTTPException(status_code=400, detail="Invalid params")
    if kind not in NODE_KINDS:
        raise HTTPException(status_code=400, detail="Unknown kind")

    try:
        nodes = expand_node(kind, node_id, media_type=media_type, limit=limit, session=session)
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "expanding node")
    return {"nodes": nodes}


@router.post("/move", response_model=MoveResponse)
def move(session: HttpSession, payload: MoveRequest) -> dict:
    """Apply one pick to a client-held game."""
    state = {
        "target": payload.target.model_dump(),
        "moves_left": payload.moves_left,
        "path": [p.model_dump() for p in payload.path],
        "status": payload.status,
    }
    try:
        return apply_move(
            state,
            payload.node.model_dump(),
            stats=payload.stats,
            limit=payload.limit,
            session=session,
        )
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "applying move")
