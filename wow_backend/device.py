from __future__ import annotations

import re

_IOS_RE = re.compile(r"iphone|ipad|ipod")
_ANDROID_RE = re.compile(r"android")


def detect_platform(user_agent: str | None) -> str:
    """Classify a User-Agent as `ios`, `android` or `desktop`."""
    ua = (user_agent or "").lower()
    if _IOS_RE.search(ua):
        return "ios"
    if _ANDROID_RE.search(ua):
        return "android"
    return "desktop"
