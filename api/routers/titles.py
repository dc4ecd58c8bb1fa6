"""
Title detail endpoint: TMDb details, credits, providers and external ids, enriched
with IMDb ratings and streaming offers when an IMDb id is known.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from api.deps import (
    HttpSession,
    RequestRegion,
    call_with_own_session,
    parse_int_param,
    raise_for_upstream_error,
)
from api.schemas import Availability, CreditsResponse, DetailResponse, ExternalIds, StreamingOffer
from wow_backend.integrations.omdb import fetch_imdb_summary
from wow_backend.integrations.streaming_availability import extract_offers, fetch_streaming_availability
from wow_backend.integrations.tmdb.client import (
    MEDIA_TYPES,
    TmdbClientError,
    fetch_credits,
    fetch_details,
    fetch_external_ids,
    fetch_watch_providers,
)
from wow_backend.offers import UserPrefs, normalize_provider_key, select_best_offer

router = APIRouter(prefix="/title", tags=["titles"])


class TitleResponse(BaseModel):
    details: DetailResponse
    credits: CreditsResponse
    providers: Availability | None = None
    external: ExternalIds
    imdbSummary: dict[str, Any] | None = None
    streamingAvailability: dict[str, Any] | None = None
    watchNow: StreamingOffer | None = None


def _watch_now(result: dict[str, Any] | None, region: str, preferred_provider: str | None) -> dict[str, Any] | None:
    prefs = UserPrefs(preferred_provider=normalize_provider_key(preferred_provider)) if preferred_provider else None
    best = select_best_offer(extract_offers(result, region), prefs)
    if not best or not best.get("link"):
        return None
    return dict(best)


@router.get("/{media_type}/{tmdb_id}", response_model=TitleResponse)
def get_title(
    session: HttpSession,
    region: RequestRegion,
    media_type: str,
    tmdb_id: str,
    preferred_provider: str | None = Query(default=None, alias="preferredProvider"),
) -> dict:
    numeric_id = parse_int_param(tmdb_id)
    if media_type not in MEDIA_TYPES or numeric_id is None:
        raise HTTPException(status_code=400, detail="Invalid type or id")

    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            details_future = pool.submit(call_with_own_session, fetch_details, media_type, numeric_id)
            credits_future = pool.submit(call_with_own_session, fetch_credits, media_type, numeric_id)
            providers_future = pool.submit(
                call_with_own_session, fetch_watch_providers, media_type, numeric_id, region=region
            )
            external_future = pool.submit(call_with_own_session, fetch_external_ids, media_type, numeric_id)
            details = details_future.result()
            credits = credits_future.result()
            providers = providers_future.result()
            external = external_future.result()
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "loading title details")

    imdb_summary = None
    streaming = None
    imdb_id = external.get("imdb_id")
    if imdb_id:
        imdb_summary = fetch_imdb_summary(imdb_id, session=session)
        streaming = fetch_streaming_availability(imdb_id, region, session=session)

    return {
        "details": details,
        "credits": credits,
        "providers": providers,
        "external": external,
        "imdbSummary": imdb_summary,
        "streamingAvailability": streaming,
        "watchNow": _watch_now(streaming, region, preferred_provider),
    }
