"""
Dependency injection for the outbound HTTP session, request region and shared error handling.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated, Any, Callable, Iterator, NoReturn, TypeVar

import requests
from fastapi import Depends, HTTPException, Query, Request

from wow_backend.integrations.tmdb.client import TmdbClientError
from wow_backend.region import REGION_COOKIE, normalize_region, resolve_request_region
from wow_backend.utils.env import load_env

load_env()

logger = logging.getLogger(__name__)


@lru_cache
def get_default_region() -> str:
    """Region for provider lookups when the request carries none (DEFAULT_REGION, else US)."""
    return normalize_region(os.getenv("DEFAULT_REGION")) or "US"


@lru_cache
def get_dev_region() -> str | None:
    return normalize_region(os.getenv("DEV_REGION"))


def get_http_session() -> Iterator[requests.Session]:
    """
    A requests session scoped to one API request.

    Sequential upstream calls share it for connection reuse. Parallel fetches
    use `call_with_own_session` instead.
    """
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()


def get_request_region(
    request: Request,
    region: str | None = Query(default=None),
) -> str:
    return resolve_request_region(region, request.cookies.get(REGION_COOKIE), get_default_region())


T = TypeVar("T")


def call_with_own_session(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run an upstream fetch on a fresh session; used by handlers that fan out across threads."""
    with requests.Session() as session:
        return fn(*args, session=session, **kwargs)


# Type aliases for dependency injection
HttpSession = Annotated[requests.Session, Depends(get_http_session)]
RequestRegion = Annotated[str, Depends(get_request_region)]


def parse_int_param(value: str | None) -> int | None:
    """Lenient integer parsing for query/path values; None when missing or malformed."""
    if value is None:
        return None
    raw = str(value).strip()
    if raw.startswith("-"):
        return -int(raw[1:]) if raw[1:].isdigit() else None
    return int(raw) if raw.isdigit() else None


def raise_for_upstream_error(exc: Exception, context: str = "upstream request") -> NoReturn:
    """
    Translate an upstream/configuration failure into an HTTP error.

    Raises:
        HTTPException: 404 when TMDb reports not-found, 502 for other TMDb failures,
        500 for missing configuration.
    """
    if isinstance(exc, TmdbClientError):
        logger.error(f"TMDb error during {context}: {exc} (status={exc.status_code})")
        if exc.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Not found while {context}") from exc
        # Don't leak upstream error details to client
        raise HTTPException(status_code=502, detail=f"Upstream error during {context}") from exc

    logger.error(f"Configuration error during {context}: {exc}")
    raise HTTPException(status_code=500, detail=f"Server misconfigured for {context}") from exc
