"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wow_backend.integrations.tmdb.client import (
        TmdbClientError,
        fetch_credits,
        fetch_details,
        fetch_external_ids,
        fetch_person,
        fetch_person_combined_credits,
        fetch_watch_providers,
        search_multi,
    )

__all__ = [
    "TmdbClientError",
    "fetch_credits",
    "fetch_details",
    "fetch_external_ids",
    "fetch_person",
    "fetch_person_combined_credits",
    "fetch_watch_providers",
    "search_multi",
]


def __getattr__(name: str):
    if name in __all__:
        from wow_backend.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
