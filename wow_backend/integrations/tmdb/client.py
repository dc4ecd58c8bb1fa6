from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from wow_backend.utils.env import env_str

logger = logging.getLogger(__name__)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
MEDIA_TYPES = ("movie", "tv")
PROVIDER_GROUPS = ("flatrate", "buy", "rent")

# Parallel watch-provider lookups per search.
PROVIDER_LOOKUP_WORKERS = 8

# Discover pages sampled when picking a random start movie.
RANDOM_MOVIE_PAGES = 5


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


@dataclass(frozen=True)
class TmdbAuth:
    """Either a v4 bearer token or a v3 `api_key` query parameter."""

    token: str | None = None
    api_key: str | None = None


def resolve_auth() -> TmdbAuth:
    access_token = env_str("TMDB_ACCESS_TOKEN")
    if access_token:
        return TmdbAuth(token=access_token)

    key_or_token = env_str("TMDB_API_KEY")
    if not key_or_token:
        raise RuntimeError(
            "TMDB API key is missing. Set TMDB_API_KEY (v3) or TMDB_ACCESS_TOKEN (v4) in environment."
        )
    # JWT-like values are v4 read access tokens.
    if "." in key_or_token:
        return TmdbAuth(token=key_or_token)
    return TmdbAuth(api_key=key_or_token)


def _require_media_type(media_type: str) -> str:
    if media_type not in MEDIA_TYPES:
        raise ValueError(f"Unsupported TMDb media type: {media_type!r}")
    return media_type


def _request_json(
    session: requests.Session,
    path: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = 20.0,
) -> dict[str, Any]:
    auth = resolve_auth()
    headers = {"accept": "application/json"}
    query: dict[str, Any] = {"language": "en-US"}
    for key, value in (params or {}).items():
        if value is not None:
            query[key] = value
    if auth.token:
        headers["Authorization"] = f"Bearer {auth.token}"
    else:
        query["api_key"] = auth.api_key

    url = f"{TMDB_API_BASE_URL}{path}"
    try:
        resp = session.get(url, params=query, headers=headers, timeout=timeout_seconds)
    except requests.RequestException as exc:
        raise TmdbClientError(f"TMDb request failed: {exc}") from exc

    if resp.status_code != 200:
        raise TmdbClientError(
            f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            "TMDb returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise TmdbClientError("TMDb returned unexpected JSON shape (not an object).")
    return payload


def release_year(item: Mapping[str, Any]) -> int | None:
    raw = item.get("release_date") or item.get("first_air_date")
    if isinstance(raw, str) and raw[:4].isdigit():
        return int(raw[:4])
    return None


def to_title_summary(item: Mapping[str, Any], media_type: str) -> dict[str, Any]:
    return {
        "id": item.get("id"),
        "media_type": media_type,
        "title": item.get("title") or item.get("name"),
        "overview": item.get("overview") or "",
        "poster_path": item.get("poster_path") or None,
        "release_year": release_year(item),
    }


def _results(payload: Mapping[str, Any]) -> list[dict[str, Any]]:
    results = payload.get("results")
    if not isinstance(results, list):
        return []
    return [r for r in results if isinstance(r, dict)]


def _attach_providers(items: list[dict[str, Any]], *, region: str) -> list[dict[str, Any]]:
    """
    Attach watch providers to each search result.

    Lookups run in parallel, each worker on its own session; a failed lookup
    leaves that item without providers.
    """

    if not items:
        return items

    def run_one(item: dict[str, Any]) -> dict[str, Any]:
        try:
            with requests.Session() as worker_session:
                providers = fetch_watch_providers(
                    item["media_type"], item["id"], region=region, session=worker_session
                )
        except (TmdbClientError, ValueError) as exc:
            logger.warning(f"Provider lookup failed for {item['media_type']}/{item['id']}: {exc}")
            return item
        if providers is None:
            return item
        return {**item, "providers": providers}

    with ThreadPoolExecutor(max_workers=min(PROVIDER_LOOKUP_WORKERS, len(items))) as pool:
        return list(pool.map(run_one, items))


def search_multi(
    query: str,
    *,
    region: str = "US",
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    Search movies and TV shows in one call (`/search/multi`).

    People and other result kinds are dropped; each title carries its
    `providers` availability for `region` when TMDb has any.
    """

    session = session or requests.Session()
    payload = _request_json(session, "/search/multi", params={"query": query, "include_adult": "false", "page": 1})
    items = [
        to_title_summary(r, r["media_type"])
        for r in _results(payload)
        if r.get("media_type") in MEDIA_TYPES
    ]
    return _attach_providers(items, region=region)


def search_titles(
    query: str,
    media_type: str,
    *,
    region: str = "US",
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    media_type = _require_media_type(media_type)
    session = session or requests.Session()
    payload = _request_json(
        session,
        f"/search/{media_type}",
        params={"query": query, "include_adult": "false", "page": 1},
    )
    items = [to_title_summary(r, media_type) for r in _results(payload)]
    return _attach_providers(items, region=region)


def search_people(query: str, *, session: requests.Session | None = None) -> list[dict[str, Any]]:
    session = session or requests.Session()
    payload = _request_json(session, "/search/person", params={"query": query, "include_adult": "false", "page": 1})
    return [
        {
            "id": r.get("id"),
            "name": r.get("name"),
            "profile_path": r.get("profile_path") or None,
            "known_for_department": r.get("known_for_department"),
        }
        for r in _results(payload)
    ]


def fetch_details(media_type: str, tmdb_id: int, *, session: requests.Session | None = None) -> dict[str, Any]:
    media_type = _require_media_type(media_type)
    session = session or requests.Session()
    data = _request_json(session, f"/{media_type}/{int(tmdb_id)}")
    return {
        **to_title_summary(data, media_type),
        "genres": data.get("genres"),
        "runtime": data.get("runtime"),
        "episode_run_time": data.get("episode_run_time"),
        "first_air_date": data.get("first_air_date"),
        "release_date": data.get("release_date"),
    }


def fetch_credits(media_type: str, tmdb_id: int, *, session: requests.Session | None = None) -> dict[str, Any]:
    media_type = _require_media_type(media_type)
    session = session or requests.Session()
    data = _request_json(session, f"/{media_type}/{int(tmdb_id)}/credits")
    cast = data.get("cast") if isinstance(data.get("cast"), list) else []
    crew = data.get("crew") if isinstance(data.get("crew"), list) else []
    return {
        "cast": [
            {
                "id": c.get("id"),
                "name": c.get("name"),
                "character": c.get("character") or None,
                "profile_path": c.get("profile_path") or None,
            }
            for c in cast
            if isinstance(c, dict)
        ],
        "crew": [
            {
                "id": c.get("id"),
                "name": c.get("name"),
                "job": c.get("job"),
                "department": c.get("department"),
                "profile_path": c.get("profile_path") or None,
            }
            for c in crew
            if isinstance(c, dict)
        ],
    }


def fetch_external_ids(media_type: str, tmdb_id: int, *, session: requests.Session | None = None) -> dict[str, Any]:
    media_type = _require_media_type(media_type)
    session = session or requests.Session()
    return _request_json(session, f"/{media_type}/{int(tmdb_id)}/external_ids")


def fetch_watch_providers(
    media_type: str,
    tmdb_id: int,
    *,
    region: str = "US",
    session: requests.Session | None = None,
) -> dict[str, Any] | None:
    """
    Fetch provider availability for one region, falling back to US.

    Returns None when TMDb lists no flatrate/buy/rent providers there.
    """

    media_type = _require_media_type(media_type)
    session = session or requests.Session()
    payload = _request_json(session, f"/{media_type}/{int(tmdb_id)}/watch/providers")
    results = payload.get("results")
    if not isinstance(results, Mapping):
        return None
    region_data = results.get(region.upper()) or results.get("US")
    if not isinstance(region_data, Mapping):
        return None

    availability: dict[str, Any] = {}
    for group in PROVIDER_GROUPS:
        entries = region_data.get(group)
        if not isinstance(entries, list):
            continue
        providers = [
            {
                "provider_id": p.get("provider_id"),
                "provider_name": p.get("provider_name"),
                "logo_path": p.get("logo_path") or None,
            }
            for p in entries
            if isinstance(p, Mapping)
        ]
        if providers:
            availability[group] = providers
    return availability or None


def fetch_person(person_id: int, *, session: requests.Session | None = None) -> dict[str, Any]:
    session = session or requests.Session()
    data = _request_json(session, f"/person/{int(person_id)}")
    return {
        "id": data.get("id"),
        "name": data.get("name"),
        "profile_path": data.get("profile_path") or None,
        "biography": data.get("biography") or "",
        "known_for_department": data.get("known_for_department"),
    }


def fetch_person_combined_credits(
    person_id: int,
    *,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    Titles a person appeared in (cast only), most popular first.

    Duplicate appearances (e.g. multiple characters in one show) collapse to one entry.
    """

    session = session or requests.Session()
    data = _request_json(session, f"/person/{int(person_id)}/combined_credits")
    cast = data.get("cast") if isinstance(data.get("cast"), list) else []

    seen: set[tuple[str, int]] = set()
    entries: list[dict[str, Any]] = []
    for c in cast:
        if not isinstance(c, dict) or c.get("media_type") not in MEDIA_TYPES:
            continue
        key = (c["media_type"], c.get("id"))
        if key in seen:
            continue
        seen.add(key)
        entries.append(c)

    entries.sort(key=lambda c: float(c.get("popularity") or 0.0), reverse=True)
    return [
        {
            "id": c.get("id"),
            "media_type": c["media_type"],
            "title": c.get("title") or c.get("name"),
            "poster_path": c.get("poster_path") or None,
            "release_year": release_year(c),
            "character": c.get("character") or None,
        }
        for c in entries
    ]


def discover_movies(
    params: Mapping[str, Any],
    *,
    page: int = 1,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    session = session or requests.Session()
    return _request_json(session, "/discover/movie", params={**params, "page": int(page)})


def fetch_random_high_rated_movie(
    seed: int | None = None,
    *,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """
    Pick a well-rated, widely voted English-language US movie.

    The same `seed` always selects the same discover page and index.
    """

    session = session or requests.Session()
    rng = random.Random(seed)
    params = {
        "region": "US",
        "with_original_language": "en",
        "sort_by": "popularity.desc",
        "include_adult": "false",
        "vote_average.gte": 7.0,
        "vote_count.gte": 1000,
    }
    page = rng.randint(1, RANDOM_MOVIE_PAGES)
    candidates = [r for r in _results(discover_movies(params, page=page, session=session)) if r.get("id")]
    if not candidates and page != 1:
        candidates = [r for r in _results(discover_movies(params, page=1, session=session)) if r.get("id")]
    if not candidates:
        raise TmdbClientError("TMDb discover returned no candidate movies.")

    pick = to_title_summary(rng.choice(candidates), "movie")
    return {
        "id": pick["id"],
        "media_type": "movie",
        "title": pick["title"],
        "poster_path": pick["poster_path"],
        "release_year": pick["release_year"],
    }
