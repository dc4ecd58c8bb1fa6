"""
IMDb rating/summary lookups.

Prefers OMDb (`OMDB_API_KEY`). Without it, falls back to a RapidAPI IMDb host
(`RAPIDAPI_IMDB_KEY`, optional `RAPIDAPI_IMDB_HOST`) and maps that payload onto
the OMDb field names. Every failure yields None: ratings are optional on the
title page.
"""
from __future__ import annotations

import logging
from typing import Any

import requests

from wow_backend.utils.env import env_str

logger = logging.getLogger(__name__)

OMDB_API_URL = "https://www.omdbapi.com/"
DEFAULT_RAPIDAPI_IMDB_HOST = "imdb8.p.rapidapi.com"
RAPIDAPI_CAST_LIMIT = 6


def _fetch_from_omdb(session: requests.Session, imdb_id: str, api_key: str) -> dict[str, Any] | None:
    try:
        resp = session.get(
            OMDB_API_URL,
            params={"apikey": api_key, "i": imdb_id, "plot": "short"},
            timeout=20.0,
        )
    except requests.RequestException as exc:
        logger.warning(f"OMDb request failed for {imdb_id}: {exc}")
        return None
    if resp.status_code != 200:
        return None
    try:
        data = resp.json()
    except ValueError:
        logger.warning(f"OMDb returned non-JSON response for {imdb_id}")
        return None
    if not isinstance(data, dict) or data.get("Response") == "False":
        return None
    return data


def map_rapidapi_overview(imdb_id: str, data: dict[str, Any]) -> dict[str, Any]:
    title = data.get("title") if isinstance(data.get("title"), dict) else {}
    ratings = data.get("ratings") if isinstance(data.get("ratings"), dict) else {}
    plot = data.get("plotSummary") if isinstance(data.get("plotSummary"), dict) else {}
    credits = data.get("credits") if isinstance(data.get("credits"), dict) else {}
    image = title.get("image") if isinstance(title.get("image"), dict) else {}

    actors = None
    cast = credits.get("cast")
    if isinstance(cast, list):
        names = [c.get("name") for c in cast[:RAPIDAPI_CAST_LIMIT] if isinstance(c, dict) and c.get("name")]
        actors = ", ".join(names)

    return {
        "imdbID": imdb_id,
        "Title": title.get("title"),
        "Year": str(title["year"]) if title.get("year") else None,
        "Plot": plot.get("text"),
        "Actors": actors,
        "Poster": image.get("url"),
        "imdbRating": str(ratings["rating"]) if ratings.get("rating") else None,
    }


def _fetch_from_rapidapi(session: requests.Session, imdb_id: str, api_key: str) -> dict[str, Any] | None:
    host = env_str("RAPIDAPI_IMDB_HOST", default=DEFAULT_RAPIDAPI_IMDB_HOST)
    try:
        resp = session.get(
            f"https://{host}/title/get-overview-details",
            params={"tconst": imdb_id, "currentCountry": "US"},
            headers={"X-RapidAPI-Key": api_key, "X-RapidAPI-Host": host},
            timeout=20.0,
        )
        if resp.status_code != 200:
            return None
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning(f"RapidAPI IMDb lookup failed for {imdb_id}: {exc}")
        return None
    if not isinstance(data, dict):
        return None
    return map_rapidapi_overview(imdb_id, data)


def fetch_imdb_summary(imdb_id: str, *, session: requests.Session | None = None) -> dict[str, Any] | None:
    session = session or requests.Session()

    omdb_key = env_str("OMDB_API_KEY")
    if omdb_key:
        return _fetch_from_omdb(session, imdb_id, omdb_key)

    rapid_key = env_str("RAPIDAPI_IMDB_KEY")
    if rapid_key:
        return _fetch_from_rapidapi(session, imdb_id, rapid_key)

    return None
