"""
Explicit region selection; stores the choice in the `wow_region` cookie.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response

from wow_backend.region import REGION_COOKIE, REGION_COOKIE_MAX_AGE, normalize_region

router = APIRouter(prefix="/region", tags=["region"])


@router.post("")
async def set_region(request: Request, response: Response) -> dict:
    try:
        body: Any = await request.json()
    except ValueError:
        body = {}
    raw = body.get("region") if isinstance(body, dict) else None

    region = normalize_region(str(raw).strip()) if raw else None
    if region is None:
        raise HTTPException(status_code=400, detail="Invalid region")

    response.set_cookie(REGION_COOKIE, region, max_age=REGION_COOKIE_MAX_AGE, path="/")
    return {"ok": True, "region": region}
