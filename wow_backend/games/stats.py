"""
Per-game stats kept in browser local storage.

The server never stores these; the stateless game endpoints accept the
client's current blob and hand back the updated one.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Mapping

SEVEN_DEGREES_STATS_KEY = "seven_degrees_stats"
PYMR_STATS_KEY = "pymr_stats"


def _load(raw: str | Mapping[str, Any] | None) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return data if isinstance(data, Mapping) else {}


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


@dataclass
class SevenDegreesStats:
    played: int = 0
    won: int = 0
    lost: int = 0
    quickest: int | None = None

    @classmethod
    def from_storage(cls, raw: str | Mapping[str, Any] | None) -> SevenDegreesStats:
        data = _load(raw)
        quickest = data.get("quickest")
        return cls(
            played=_count(data.get("played")),
            won=_count(data.get("won")),
            lost=_count(data.get("lost")),
            quickest=_count(quickest) if isinstance(quickest, (int, float)) and not isinstance(quickest, bool) else None,
        )

    def to_storage(self) -> dict[str, Any]:
        data = asdict(self)
        if self.quickest is None:
            data.pop("quickest")
        return data

    def record_played(self) -> None:
        self.played += 1

    def record_outcome(self, *, won: bool, used_moves: int) -> None:
        if won:
            self.won += 1
            self.quickest = used_moves if self.quickest is None else min(self.quickest, used_moves)
        else:
            self.lost += 1


@dataclass
class PymrStats:
    games_played: int = 0
    best_streak: int = 0

    @classmethod
    def from_storage(cls, raw: str | Mapping[str, Any] | None) -> PymrStats:
        data = _load(raw)
        return cls(
            games_played=_count(data.get("gamesPlayed")),
            best_streak=_count(data.get("bestStreak")),
        )

    def to_storage(self) -> dict[str, Any]:
        return {"gamesPlayed": self.games_played, "bestStreak": self.best_streak}

    def record_played(self) -> None:
        self.games_played += 1

    def record_streak(self, streak: int) -> None:
        self.best_streak = max(self.best_streak, streak)
