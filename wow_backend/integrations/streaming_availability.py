"""
Streaming Availability API (RapidAPI) client.

Uses `GET /shows/{id}`, where id can be an IMDb id (e.g. tt0068646).
The `streamingInfo` field comes in two shapes: keyed by country code when no
country is requested, or a flat offer list when one is.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping
from urllib.parse import quote

import requests

from wow_backend.utils.env import env_str

logger = logging.getLogger(__name__)

DEFAULT_HOST = "streaming-availability.p.rapidapi.com"
DEFAULT_TIMEOUT_SECONDS = 10.0
SAMPLE_SIZE = 5


def _credentials() -> tuple[str | None, str]:
    key = env_str("RAPIDAPI_STREAMINGAVAIL_KEY")
    host = env_str("RAPIDAPI_STREAMINGAVAIL_HOST", default=DEFAULT_HOST)
    return key, host


def _shows_url(host: str, imdb_id: str) -> str:
    return f"https://{host}/shows/{quote(imdb_id, safe='')}"


def fetch_streaming_availability(
    imdb_id: str,
    country: str = "US",
    *,
    series_granularity: str = "show",
    output_language: str = "en",
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> dict[str, Any] | None:
    key, host = _credentials()
    if not key:
        return None

    params: dict[str, str] = {
        "series_granularity": series_granularity or "show",
        "output_language": output_language or "en",
    }
    if country:
        params["country"] = country.upper()

    session = session or requests.Session()
    try:
        resp = session.get(
            _shows_url(host, imdb_id),
            params=params,
            headers={"X-RapidAPI-Key": key, "X-RapidAPI-Host": host},
            timeout=timeout_seconds,
        )
        if not resp.ok:
            return None
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning(f"Streaming availability lookup failed for {imdb_id}: {exc}")
        return None
    return data if isinstance(data, dict) else None


def info_type(body: Any) -> str:
    info = body.get("streamingInfo") if isinstance(body, Mapping) else None
    if isinstance(info, list):
        return "array"
    if isinstance(info, Mapping):
        return "object"
    return "null"


def fetch_streaming_availability_raw(
    imdb_id: str,
    *,
    country: str = "",
    series_granularity: str = "show",
    output_language: str = "en",
    session: requests.Session | None = None,
) -> dict[str, Any]:
    """
    Uncached pass-through for debugging the upstream response.

    Raises RuntimeError when the API key is missing and requests.RequestException
    on transport failure; non-2xx answers are reported in the result.
    """

    key, host = _credentials()
    if not key:
        raise RuntimeError("RAPIDAPI_STREAMINGAVAIL_KEY not set")

    country = (country or "").upper()
    params: dict[str, str] = {}
    if country:
        params["country"] = country
    if series_granularity:
        params["series_granularity"] = series_granularity
    if output_language:
        params["output_language"] = output_language

    session = session or requests.Session()
    url = _shows_url(host, imdb_id)
    started = time.monotonic()
    resp = session.get(
        url,
        params=params,
        headers={
            "X-RapidAPI-Key": key,
            "X-RapidAPI-Host": host,
            "Cache-Control": "no-store",
        },
        timeout=DEFAULT_TIMEOUT_SECONDS,
    )
    try:
        body: Any = resp.json()
    except ValueError:
        body = resp.text

    return {
        "ok": bool(resp.ok),
        "status": resp.status_code,
        "durationMs": int((time.monotonic() - started) * 1000),
        "request": {
            "url": url,
            "params": params,
            "country": country or None,
            "seriesGranularity": series_granularity,
            "outputLanguage": output_language,
        },
        "infoType": info_type(body),
        "body": body,
    }


def extract_offers(result: Mapping[str, Any] | None, country: str) -> list[dict[str, Any]]:
    """Offers for one country, whichever shape `streamingInfo` came back in."""
    if not result:
        return []
    info = result.get("streamingInfo")
    if isinstance(info, list):
        offers = info
    elif isinstance(info, Mapping):
        offers = info.get(country.upper()) or info.get(country.lower()) or []
    else:
        return []
    return [o for o in offers if isinstance(o, dict)]


def _service_row(country: str, offers: Any) -> dict[str, Any]:
    offers = [o for o in offers if isinstance(o, Mapping)] if isinstance(offers, list) else []
    return {
        "country": country,
        "count": len(offers),
        "sample": offers[:SAMPLE_SIZE],
        "services": sorted({str(o.get("service")) for o in offers if o.get("service")}),
    }


def summarize_services(result: Mapping[str, Any] | None, country: str) -> list[dict[str, Any]]:
    if not result:
        return []
    info = result.get("streamingInfo")
    if isinstance(info, list):
        return [_service_row(country, info)]
    if isinstance(info, Mapping):
        return [_service_row(cc, offers) for cc, offers in info.items()]
    return []
