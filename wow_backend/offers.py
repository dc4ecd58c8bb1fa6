"""
"Watch now" offer selection.

Offers come from the Streaming Availability API; user preferences are held
client-side under `wow_prefs_v1` and sent along with the request.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

PREFS_STORAGE_KEY = "wow_prefs_v1"

_NON_KEY_CHARS_RE = re.compile(r"[^a-z0-9+]")

_PROVIDER_ALIASES = {
    "amazonprimevideo": "prime",
    "primevideo": "prime",
    "prime": "prime",
    "disney+": "disney",
    "disneyplus": "disney",
    "disney": "disney",
    "appletv+": "appletv",
    "appletvplus": "appletv",
    "appletv": "appletv",
    "netflix": "netflix",
}


@dataclass(frozen=True)
class UserPrefs:
    preferred_provider: str | None = None
    open_in_app: bool = False

    def to_storage(self) -> str:
        payload: dict[str, Any] = {"openInApp": self.open_in_app}
        if self.preferred_provider:
            payload["preferredProvider"] = self.preferred_provider
        return json.dumps(payload)


def parse_user_prefs(raw: str | Mapping[str, Any] | None) -> UserPrefs:
    """Best-effort parse of stored prefs; anything unreadable yields defaults."""
    data: Any = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            return UserPrefs()
    if not isinstance(data, Mapping):
        return UserPrefs()

    preferred = data.get("preferredProvider")
    return UserPrefs(
        preferred_provider=normalize_provider_key(preferred) if isinstance(preferred, str) and preferred else None,
        open_in_app=bool(data.get("openInApp")),
    )


def normalize_provider_key(name: str | None) -> str:
    key = _NON_KEY_CHARS_RE.sub("", (name or "").lower())
    return _PROVIDER_ALIASES.get(key, key)


def select_best_offer(
    offers: Sequence[Mapping[str, Any]] | None,
    prefs: UserPrefs | None = None,
) -> Mapping[str, Any] | None:
    """
    Pick the single offer behind the "Watch now" button.

    Order: the preferred provider (its subscription offer, else its first one),
    then any subscription with a link, then any offer with a link, then the first offer.
    """

    if not offers:
        return None

    by_key: dict[str, list[Mapping[str, Any]]] = {}
    for offer in offers:
        by_key.setdefault(normalize_provider_key(offer.get("service")), []).append(offer)

    if prefs and prefs.preferred_provider and prefs.preferred_provider in by_key:
        candidates = by_key[prefs.preferred_provider]
        preferred = next((o for o in candidates if o.get("streamingType") == "subscription"), candidates[0])
        if preferred.get("link"):
            return preferred

    subscription = next((o for o in offers if o.get("streamingType") == "subscription" and o.get("link")), None)
    if subscription is not None:
        return subscription

    return next((o for o in offers if o.get("link")), offers[0])
