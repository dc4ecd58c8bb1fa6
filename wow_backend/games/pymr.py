"""
Play Your Movies Right: guess whether the next movie's TMDb rating is higher
or lower than the current one.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests

from wow_backend.games.stats import PymrStats
from wow_backend.integrations.tmdb.client import discover_movies

DECK_PAGES = (1, 2, 3)
DECK_SIZE = 30
DIRECTIONS = ("higher", "lower")


@dataclass(frozen=True)
class Category:
    with_genres: str
    extra: Mapping[str, Any] = field(default_factory=dict)


CATEGORIES: dict[str, Category] = {
    "comedy": Category(with_genres="35", extra={"vote_count.gte": 200}),
    "sci-fi": Category(with_genres="878", extra={"vote_count.gte": 200}),
    "rom-com": Category(with_genres="35,10749", extra={"vote_count.gte": 150}),
    "action": Category(with_genres="28", extra={"vote_count.gte": 200}),
    "family": Category(with_genres="10751", extra={"vote_count.gte": 100}),
}


class UnknownCategoryError(ValueError):
    pass


def _round_rating(value: float) -> float:
    # Half-up to one decimal place.
    return math.floor(value * 10 + 0.5) / 10


def _to_card(movie: Mapping[str, Any]) -> dict[str, Any] | None:
    rating = movie.get("vote_average")
    title = movie.get("title") or movie.get("name")
    if isinstance(rating, bool) or not isinstance(rating, (int, float)) or not title:
        return None
    return {
        "id": movie.get("id"),
        "title": title,
        "poster_path": movie.get("poster_path") or None,
        "vote_average": _round_rating(float(rating)),
    }


def build_deck(
    category: str,
    *,
    region: str = "US",
    session: requests.Session | None = None,
    rng: random.Random | None = None,
) -> list[dict[str, Any]]:
    definition = CATEGORIES.get((category or "").lower())
    if definition is None:
        raise UnknownCategoryError(f"Unknown category: {category!r}")

    params: dict[str, Any] = {
        "with_genres": definition.with_genres,
        "sort_by": "popularity.desc",
        "include_adult": "false",
        **definition.extra,
        "region": region.upper(),
    }

    session = session or requests.Session()
    cards: list[dict[str, Any]] = []
    for page in DECK_PAGES:
        payload = discover_movies(params, page=page, session=session)
        results = payload.get("results")
        if not isinstance(results, list):
            continue
        for movie in results:
            card = _to_card(movie) if isinstance(movie, Mapping) else None
            if card is not None:
                cards.append(card)

    (rng or random).shuffle(cards)
    return cards[:DECK_SIZE]


def is_correct_guess(current: float, nxt: float, direction: str) -> bool:
    """Ties count as correct in either direction."""
    if direction == "higher":
        return nxt >= current
    if direction == "lower":
        return nxt <= current
    raise ValueError(f"Unknown guess direction: {direction!r}")


def apply_guess(
    current: float,
    nxt: float,
    direction: str,
    *,
    streak: int = 0,
    stats: str | Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    correct = is_correct_guess(current, nxt, direction)
    if correct:
        streak += 1

    updated_stats = None
    if stats is not None:
        record = PymrStats.from_storage(stats)
        if not correct:
            record.record_streak(streak)
        updated_stats = record.to_storage()

    return {
        "correct": correct,
        "streak": streak,
        "game_over": not correct,
        "stats": updated_stats,
    }
