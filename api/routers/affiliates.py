"""
Affiliate redirects: `/go/{provider}` sends the viewer to the provider's
landing page for their region.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from api.deps import RequestRegion, parse_int_param
from wow_backend.affiliates import resolve_affiliate_url_by_slug
from wow_backend.device import detect_platform

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/go", tags=["affiliates"])

# Providers whose landing page does not depend on a title.
TITLE_AGNOSTIC_PROVIDERS = {"prime"}


@router.get("/{provider}", response_class=RedirectResponse, status_code=302)
def go(
    request: Request,
    region: RequestRegion,
    provider: str,
    id: str | None = Query(default=None),
    imdb: str | None = Query(default=None),
    media_type: str = Query(default="movie", alias="type"),
) -> RedirectResponse:
    tmdb_id = parse_int_param(id)
    if tmdb_id is None and provider not in TITLE_AGNOSTIC_PROVIDERS:
        raise HTTPException(status_code=400, detail="Invalid params")

    platform = detect_platform(request.headers.get("user-agent"))
    url = resolve_affiliate_url_by_slug(
        provider,
        region=region,
        provider_name=provider,
        media_type=media_type,
        tmdb_id=tmdb_id or 0,
        imdb_id=imdb or None,
        platform=platform,
    )
    if not url:
        raise HTTPException(status_code=404, detail="No affiliate mapping for provider/region")

    logger.info(
        f"[affiliate-go] provider={provider} type={media_type} tmdb_id={tmdb_id} imdb={imdb} "
        f"region={region} platform={platform} url={url}"
    )
    return RedirectResponse(url, status_code=302)
