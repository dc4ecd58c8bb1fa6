"""
Person page data: profile plus combined credits.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from api.deps import call_with_own_session, parse_int_param, raise_for_upstream_error
from api.schemas import PersonCredit, PersonDetails
from wow_backend.integrations.tmdb.client import (
    TmdbClientError,
    fetch_person,
    fetch_person_combined_credits,
)

router = APIRouter(prefix="/person", tags=["people"])


class PersonResponse(BaseModel):
    person: PersonDetails
    credits: list[PersonCredit]


@router.get("/{person_id}", response_model=PersonResponse)
def get_person(person_id: str) -> dict:
    tmdb_id = parse_int_param(person_id)
    if tmdb_id is None:
        raise HTTPException(status_code=400, detail="Invalid person id")

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            person_future = pool.submit(call_with_own_session, fetch_person, tmdb_id)
            credits_future = pool.submit(call_with_own_session, fetch_person_combined_credits, tmdb_id)
            person = person_future.result()
            credits = credits_future.result()
    except (TmdbClientError, RuntimeError) as exc:
        raise_for_upstream_error(exc, "loading person")
    return {"person": person, "credits": credits}
