"""
Viewer region detection (ISO 3166-1 alpha-2).

The chosen region is remembered in the `wow_region` cookie. Precedence for a
request: `?region=` override, existing cookie, then edge-provided country
headers on top of a fallback (`DEV_REGION` or GB).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

REGION_COOKIE = "wow_region"
REGION_COOKIE_MAX_AGE = 60 * 60 * 24 * 365
FALLBACK_REGION = "GB"

# Checked in order; first valid code wins.
EDGE_COUNTRY_HEADERS = (
    "x-vercel-ip-country",
    "cf-ipcountry",
    "x-country-code",
    "x-geo-country",
)

_REGION_RE = re.compile(r"[A-Za-z]{2}")


@dataclass(frozen=True)
class RegionDecision:
    region: str
    # True when the cookie needs (re)writing.
    set_cookie: bool


def is_region_code(value: str | None) -> bool:
    return bool(value) and bool(_REGION_RE.fullmatch(value))


def normalize_region(value: str | None) -> str | None:
    return value.upper() if is_region_code(value) else None


def region_from_headers(headers: Mapping[str, str]) -> str | None:
    for name in EDGE_COUNTRY_HEADERS:
        region = normalize_region(headers.get(name))
        if region:
            return region
    return None


def region_for_request(
    *,
    query_region: str | None,
    cookie_region: str | None,
    headers: Mapping[str, str],
    dev_region: str | None = None,
) -> RegionDecision:
    override = normalize_region(query_region)
    if override:
        return RegionDecision(region=override, set_cookie=True)

    existing = normalize_region(cookie_region)
    if existing:
        return RegionDecision(region=existing, set_cookie=False)

    code = normalize_region(dev_region) or FALLBACK_REGION
    code = region_from_headers(headers) or code
    return RegionDecision(region=code, set_cookie=True)


def resolve_request_region(query_region: str | None, cookie_region: str | None, default: str) -> str:
    """Region used for provider lookups: explicit query, then cookie, then the configured default."""
    return normalize_region(query_region) or normalize_region(cookie_region) or default.upper()
