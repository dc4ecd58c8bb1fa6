"""
Play Your Movies Right endpoints.
"""
from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from api.deps import HttpSession, RequestRegion, raise_for_upstream_error
from wow_backend.games.pymr import UnknownCategoryError, apply_guess, build_deck
from wow_backend.games.stats import PymrStats
from wow_backend.integrations.tmdb.client import TmdbClientError

router = APIRouter(prefix="/games/pymr", tags=["games"])


# --- Pydantic models ---

class Card(BaseModel):
    id: int | None = None
    title: str | None = None
    poster_path: str | None = None
    vote_average: float


class DeckResponse(BaseModel):
    deck: list[Card]
    stats: dict[str, Any] | None = None


class GuessRequest(BaseModel):
    current: Card
    next_card: Card = Field(alias="next")
    direction: Literal["higher", "lower"]
    streak: int = Field(default=0, ge=0)
    stats: dict[str, Any] | None = None


class GuessResponse(BaseModel):
    correct: bool
    streak: int
    game_over: bool
    stats: dict[str, Any] | None = None


# --- Endpoints ---

@router.get("/deck", response_model=DeckResponse)
def get_deck(
    session: HttpSession,
    region: RequestRegion,
    category: str | None = Query(default=None),
    stats: str | None = Query(default=None, description="Stored pymr_stats JSON; returned with `gamesPlayed` bumped."),
) -> dict:
    """Shuffled deck of up to 30 rated movies for a category."""
    try:
        deck = build_deck(category or "", region=region, session=session)
    except UnknownCategoryError as exc:
        raise HTTPException(status_code=400, detail="Unknown category") from exc
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "loading deck")

    updated_stats = None
    if stats is not None:
        record = PymrStats.from_storage(stats)
        record.record_played()
        updated_stats = record.to_storage()
    return {"deck": deck, "stats": updated_stats}


@router.post("/guess", response_model=GuessResponse)
def guess(payload: GuessRequest) -> dict:
    return apply_guess(
        payload.current.vote_average,
        payload.next_card.vote_average,
        payload.direction,
        streak=payload.streak,
        stats=payload.stats,
    )
