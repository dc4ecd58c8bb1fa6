"""
Seven Degrees: reach the target actor (or title) from a start movie by
alternating title -> cast -> title picks, within seven moves.

The server is stateless. `init_game` bootstraps a session, `expand_node`
builds the frontier for a picked node, and `apply_move` advances a
client-held game by one pick.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import requests

from wow_backend.games.stats import SevenDegreesStats
from wow_backend.integrations.tmdb.client import (
    TmdbClientError,
    fetch_credits,
    fetch_details,
    fetch_person,
    fetch_person_combined_credits,
    fetch_random_high_rated_movie,
)

logger = logging.getLogger(__name__)

DEFAULT_MOVES = 7
KEVIN_BACON_ID = 4724
MAX_START_ATTEMPTS = 5
DEFAULT_EXPAND_LIMIT = 20
MAX_EXPAND_LIMIT = 30
NODE_KINDS = ("title", "person")


class GameStatus(str, Enum):
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class GameOverError(RuntimeError):
    pass


def _person_node(person: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "kind": "person",
        "id": person.get("id"),
        "name": person.get("name"),
        "profile_path": person.get("profile_path") or None,
    }


def _movie_start(start_id: int, session: requests.Session) -> dict[str, Any]:
    details = fetch_details("movie", start_id, session=session)
    return {
        "id": details["id"],
        "media_type": "movie",
        "title": details["title"],
        "poster_path": details["poster_path"],
        "release_year": details["release_year"],
    }


def _resolve_target(
    target_kind: str | None,
    target_id: int | None,
    target_media_type: str | None,
    session: requests.Session,
) -> dict[str, Any]:
    if target_kind == "person" and target_id is not None:
        return _person_node(fetch_person(target_id, session=session))

    if target_kind == "title" and target_id is not None and target_media_type:
        details = fetch_details(target_media_type, target_id, session=session)
        return {
            "kind": "title",
            "id": details["id"],
            "media_type": target_media_type,
            "title": details["title"],
            "poster_path": details["poster_path"],
        }

    return _person_node(fetch_person(KEVIN_BACON_ID, session=session))


def _is_trivial_start(start: Mapping[str, Any], target: Mapping[str, Any], session: requests.Session) -> bool:
    if target["kind"] == "title":
        return start["id"] == target["id"]
    try:
        credits = fetch_credits("movie", start["id"], session=session)
    except TmdbClientError as exc:
        logger.warning(f"Could not check start movie {start['id']} cast: {exc}")
        return False
    return any(c.get("id") == target["id"] for c in credits["cast"])


def init_game(
    *,
    seed: int | None = None,
    target_kind: str | None = None,
    target_id: int | None = None,
    target_media_type: str | None = None,
    start_id: int | None = None,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """
    Pick the start movie and the target, avoiding starts where the target is
    one click away (up to five redraws; an explicit `start_id` is never redrawn).

    Without a `seed` one is drawn up front, so the reported seed replays the same start.
    """

    if seed is None:
        seed = random.randrange(10**9)
    session = session or requests.Session()
    if start_id is not None:
        start = _movie_start(start_id, session)
    else:
        start = fetch_random_high_rated_movie(seed, session=session)

    target = _resolve_target((target_kind or "").lower() or None, target_id, target_media_type, session)

    for attempt in range(MAX_START_ATTEMPTS):
        if not _is_trivial_start(start, target, session):
            break
        if start_id is not None:
            break
        start = fetch_random_high_rated_movie(seed + attempt + 1, session=session)

    return {
        "seed": seed,
        "start": {"kind": "title", **start},
        "target": target,
        "moves": DEFAULT_MOVES,
    }


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_EXPAND_LIMIT
    return max(1, min(MAX_EXPAND_LIMIT, int(limit)))


def expand_node(
    kind: str,
    node_id: int,
    *,
    media_type: str = "movie",
    limit: int | None = DEFAULT_EXPAND_LIMIT,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    Next selectable nodes: a title's cast, or a person's titles.

    Upstream failures give an empty frontier rather than an error.
    """

    if kind not in NODE_KINDS:
        raise ValueError(f"Unknown node kind: {kind!r}")
    limit = clamp_limit(limit)
    session = session or requests.Session()

    if kind == "title":
        try:
            credits = fetch_credits(media_type, node_id, session=session)
        except (TmdbClientError, ValueError) as exc:
            logger.warning(f"Expanding title {media_type}/{node_id} failed: {exc}")
            return []
        return [
            {
                "kind": "person",
                "id": c["id"],
                "name": c["name"],
                "profile_path": c["profile_path"],
                "character": c["character"],
            }
            for c in credits["cast"][:limit]
        ]

    try:
        titles = fetch_person_combined_credits(node_id, session=session)
    except TmdbClientError as exc:
        logger.warning(f"Expanding person {node_id} failed: {exc}")
        return []
    return [
        {
            "kind": "title",
            "id": t["id"],
            "media_type": t["media_type"],
            "title": t["title"],
            "poster_path": t["poster_path"],
            "release_year": t["release_year"],
        }
        for t in titles[:limit]
    ]


@dataclass
class SevenDegreesGame:
    target: Mapping[str, Any]
    moves_left: int = DEFAULT_MOVES
    path: list[dict[str, Any]] = field(default_factory=list)
    status: GameStatus = GameStatus.PLAYING

    @classmethod
    def from_init(cls, payload: Mapping[str, Any]) -> SevenDegreesGame:
        return cls(target=payload["target"], moves_left=payload["moves"], path=[dict(payload["start"])])

    @property
    def used_moves(self) -> int:
        return max(0, len(self.path) - 1)

    def is_target(self, node: Mapping[str, Any]) -> bool:
        return node.get("kind") == self.target.get("kind") and node.get("id") == self.target.get("id")

    def pick(self, node: Mapping[str, Any]) -> GameStatus:
        if self.status is not GameStatus.PLAYING:
            raise GameOverError(f"Game already {self.status.value}.")

        self.path.append(dict(node))
        if self.is_target(node):
            self.status = GameStatus.WON
            return self.status

        self.moves_left -= 1
        if self.moves_left <= 0:
            self.status = GameStatus.LOST
        return self.status


def apply_move(
    state: Mapping[str, Any],
    node: Mapping[str, Any],
    *,
    stats: str | Mapping[str, Any] | None = None,
    limit: int | None = DEFAULT_EXPAND_LIMIT,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    game = SevenDegreesGame(
        target=state["target"],
        moves_left=int(state["moves_left"]),
        path=[dict(p) for p in state.get("path") or []],
        status=GameStatus(state.get("status") or GameStatus.PLAYING.value),
    )
    status = game.pick(node)

    frontier: list[dict[str, Any]] = []
    if status is GameStatus.PLAYING:
        frontier = expand_node(
            node["kind"],
            node["id"],
            media_type=node.get("media_type") or "movie",
            limit=limit,
            session=session,
        )

    updated_stats = None
    if stats is not None:
        record = SevenDegreesStats.from_storage(stats)
        if status is not GameStatus.PLAYING:
            record.record_outcome(won=status is GameStatus.WON, used_moves=game.used_moves)
        updated_stats = record.to_storage()

    return {
        "status": status.value,
        "moves_left": game.moves_left,
        "used_moves": game.used_moves,
        "path": game.path,
        "frontier": frontier,
        "stats": updated_stats,
    }
