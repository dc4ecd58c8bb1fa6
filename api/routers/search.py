"""
Title and person search.
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from api.deps import HttpSession, RequestRegion, raise_for_upstream_error
from api.schemas import PersonSummary, TitleSummary
from wow_backend.integrations.tmdb.client import (
    TmdbClientError,
    search_multi,
    search_people,
    search_titles,
)

router = APIRouter(prefix="/search", tags=["search"])

SEARCH_SCOPES = ("person", "movie", "tv")


class SearchResponse(BaseModel):
    results: list[TitleSummary] | list[PersonSummary]


@router.get("", response_model=SearchResponse)
def search(
    session: HttpSession,
    region: RequestRegion,
    query: str | None = Query(default=None),
    only: str | None = Query(default=None),
) -> dict:
    """
    Search TMDb.

    Without `only`, returns movies and TV shows with their provider availability;
    `only=person` searches people, `only=movie|tv` a single media type.
    """
    q = (query or "").strip()
    if not q:
        raise HTTPException(status_code=400, detail="Missing query parameter")

    scope = (only or "").strip().lower() or None
    if scope is not None and scope not in SEARCH_SCOPES:
        raise HTTPException(status_code=400, detail=f"Invalid only parameter: {only}")

    try:
        if scope == "person":
            results = search_people(q, session=session)
        elif scope:
            results = search_titles(q, scope, region=region, session=session)
        else:
            results = search_multi(q, region=region, session=session)
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "searching")
    return {"results": results}
