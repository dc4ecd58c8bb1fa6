"""
Debug endpoints for validating Streaming Availability responses.

Examples:
    /api/debug/streaming?imdbId=tt0133093&country=GB
    /api/debug/streaming?type=tv&id=12345&country=US   (imdbId resolved via TMDb)
    /api/debug/streaming/raw?imdbId=tt4477976&country=GB
"""
from __future__ import annotations

import logging
from typing import Literal

import requests
from fastapi import APIRouter, HTTPException, Query

from api.deps import HttpSession, get_default_region, parse_int_param, raise_for_upstream_error
from wow_backend.integrations.streaming_availability import (
    fetch_streaming_availability,
    fetch_streaming_availability_raw,
    summarize_services,
)
from wow_backend.integrations.tmdb.client import TmdbClientError, fetch_external_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/streaming")
def debug_streaming(
    session: HttpSession,
    imdb_id: str | None = Query(default=None, alias="imdbId"),
    media_type: Literal["movie", "tv"] | None = Query(default=None, alias="type"),
    id: str | None = Query(default=None),
    country: str | None = Query(default=None),
) -> dict:
    country_code = (country or get_default_region()).upper()

    resolved = imdb_id
    if not resolved:
        tmdb_id = parse_int_param(id)
        if not media_type or tmdb_id is None:
            raise HTTPException(status_code=400, detail="Provide imdbId, or type=movie|tv and id (TMDB id).")
        try:
            external = fetch_external_ids(media_type, tmdb_id, session=session)
        except (TmdbClientError, RuntimeError) as exc:
            raise_for_upstream_error(exc, "resolving imdb id")
        resolved = external.get("imdb_id")
        if not resolved:
            raise HTTPException(status_code=404, detail="No imdb_id found for given TMDB type/id.")

    result = fetch_streaming_availability(resolved, country_code, session=session)
    return {
        "ok": True,
        "country": country_code,
        "imdbId": resolved,
        "hasData": result is not None,
        "services": summarize_services(result, country_code),
        "raw": result,
    }


@router.get("/streaming/raw")
def debug_streaming_raw(
    session: HttpSession,
    imdb_id: str | None = Query(default=None, alias="imdbId"),
    country: str | None = Query(default=None),
    series_granularity: str = Query(default="show"),
    output_language: str = Query(default="en"),
) -> dict:
    if not imdb_id:
        raise HTTPException(status_code=400, detail="imdbId is required")

    try:
        return fetch_streaming_availability_raw(
            imdb_id,
            country=country or "",
            series_granularity=series_granularity,
            output_language=output_language,
            session=session,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except requests.RequestException as exc:
        logger.warning(f"Raw streaming availability fetch failed for {imdb_id}: {exc}")
        raise HTTPException(status_code=502, detail="fetch failed") from exc
