"""
Fire-and-forget game-play analytics. Entries go to the application log.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from wow_backend.analytics import build_game_play_entry, log_game_play

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _client_ip(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return request.headers.get("x-real-ip") or request.headers.get("x-forwarded-for") or ""


@router.post("/log")
async def log_play(request: Request) -> dict:
    try:
        body: Any = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    entry = build_game_play_entry(body.get("game"), body.get("score"), _client_ip(request))
    log_game_play(entry)
    return {"ok": True}
