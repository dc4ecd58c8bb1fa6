"""
Per-region affiliate landing URLs for streaming providers.

Tags and partner links come from the environment; providers without a
configured tag either fall back to their plain landing page or have no URL.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote

from wow_backend.utils.env import env_str

_NON_SLUG_CHARS_RE = re.compile(r"[^a-z0-9]+")

_SLUG_ALIASES = {
    "amazon prime video": "prime",
    "amazon": "prime",
    "prime video": "prime",
    "paramount+": "paramount",
    "apple tv": "appletv",
    "apple tv+": "appletv",
    "now": "now",
}


@dataclass(frozen=True)
class AffiliateRequest:
    provider_name: str
    provider_slug: str
    media_type: str = "movie"
    tmdb_id: int = 0
    imdb_id: str | None = None
    region: str = "US"
    platform: str = "desktop"


Resolver = Callable[[AffiliateRequest], str | None]


def provider_slug_from_name(name: str | None) -> str:
    key = (name or "").lower().strip()
    return _SLUG_ALIASES.get(key) or _NON_SLUG_CHARS_RE.sub("", key)


def _tagged(base: str, param: str, value: str | None) -> str | None:
    return f"{base}?{param}={quote(value, safe='')}" if value else None


def _us_prime(_: AffiliateRequest) -> str | None:
    return _tagged("https://www.amazon.com/gp/video/storefront", "tag", env_str("AMAZON_TAG_US"))


def _us_paramount(_: AffiliateRequest) -> str | None:
    return env_str("PARAMOUNT_URL_US", default="https://www.paramountplus.com/")


def _us_appletv(_: AffiliateRequest) -> str | None:
    return _tagged("https://tv.apple.com/", "at", env_str("APPLE_AT")) or "https://tv.apple.com/"


def _gb_prime(_: AffiliateRequest) -> str | None:
    return _tagged("https://www.amazon.co.uk/gp/video/storefront", "tag", env_str("AMAZON_TAG_GB"))


def _gb_now(_: AffiliateRequest) -> str | None:
    return env_str("NOW_AFFILIATE_GB", default="https://www.nowtv.com/")


def _gb_appletv(_: AffiliateRequest) -> str | None:
    return _tagged("https://tv.apple.com/gb", "at", env_str("APPLE_AT")) or "https://tv.apple.com/gb"


def _gb_paramount(_: AffiliateRequest) -> str | None:
    return env_str("PARAMOUNT_URL_GB", default="https://www.paramountplus.com/gb/")


AFFILIATE_RESOLVERS: dict[str, dict[str, Resolver]] = {
    "US": {
        "prime": _us_prime,
        "paramount": _us_paramount,
        "appletv": _us_appletv,
    },
    "GB": {
        "prime": _gb_prime,
        "now": _gb_now,
        "appletv": _gb_appletv,
        "paramount": _gb_paramount,
    },
}


def _resolvers_for(region: str | None) -> dict[str, Resolver]:
    return AFFILIATE_RESOLVERS.get((region or "US").upper()) or AFFILIATE_RESOLVERS["US"]


def has_affiliate(provider_name: str, region: str) -> bool:
    slug = provider_slug_from_name(provider_name)
    if not slug or slug == "netflix":
        return False
    return slug in _resolvers_for(region)


def resolve_affiliate_url_by_slug(
    slug: str,
    *,
    region: str = "US",
    provider_name: str | None = None,
    media_type: str = "movie",
    tmdb_id: int = 0,
    imdb_id: str | None = None,
    platform: str = "desktop",
) -> str | None:
    resolver = _resolvers_for(region).get(slug)
    if resolver is None:
        return None
    return resolver(
        AffiliateRequest(
            provider_name=provider_name or slug,
            provider_slug=slug,
            media_type=media_type,
            tmdb_id=tmdb_id,
            imdb_id=imdb_id,
            region=(region or "US").upper(),
            platform=platform,
        )
    )


def resolve_affiliate_url(
    provider_name: str,
    *,
    provider_slug: str | None = None,
    region: str = "US",
    media_type: str = "movie",
    tmdb_id: int = 0,
    imdb_id: str | None = None,
    platform: str = "desktop",
) -> str | None:
    slug = provider_slug or provider_slug_from_name(provider_name)
    if not slug:
        return None
    return resolve_affiliate_url_by_slug(
        slug,
        region=region,
        provider_name=provider_name,
        media_type=media_type,
        tmdb_id=tmdb_id,
        imdb_id=imdb_id,
        platform=platform,
    )
