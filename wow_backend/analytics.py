from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_score(value: Any) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0
        if not math.isfinite(parsed):
            return 0
        return int(parsed) if parsed.is_integer() else parsed
    return 0


def build_game_play_entry(game: Any, score: Any, ip: str | None) -> dict[str, Any]:
    return {
        "timeUtc": _now_utc_iso(),
        "game": str(game) if game else "unknown",
        "ip": ip or "",
        "score": _as_score(score),
    }


def log_game_play(entry: dict[str, Any]) -> None:
    logger.info(f"[game-play] {json.dumps(entry)}")
