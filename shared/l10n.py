"""
Human-readable retry estimates for throttled requests.

``localize_retry_after(713, "en-US")`` → ``"12 minutes"``. Thresholds follow
the usual relative-time rounding (45 s → a minute, 45 min → an hour, ...).
Only English strings ship today; every other ``Accept-Language`` falls back
to the default language.
"""

from __future__ import annotations

from typing import Optional

DEFAULT_LANGUAGE = "en"

_STRINGS = {
    "en": {
        "seconds": "a few seconds",
        "minute": "a minute",
        "minutes": "{} minutes",
        "hour": "an hour",
        "hours": "{} hours",
        "day": "a day",
        "days": "{} days",
    },
}


def negotiate_language(accept_language: Optional[str]) -> str:
    """Pick the best supported language from an ``Accept-Language`` header."""
    if not accept_language:
        return DEFAULT_LANGUAGE

    candidates: list[tuple[float, str]] = []
    for part in accept_language.split(","):
        piece = part.strip()
        if not piece:
            continue
        lang, _, params = piece.partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        candidates.append((quality, lang.strip().lower()))

    for _, lang in sorted(candidates, key=lambda c: c[0], reverse=True):
        base = lang.split("-")[0]
        if base in _STRINGS:
            return base
    return DEFAULT_LANGUAGE


def localize_retry_after(
    retry_after_seconds: int, accept_language: Optional[str] = None
) -> str:
    strings = _STRINGS[negotiate_language(accept_language)]
    seconds = max(int(retry_after_seconds), 0)
    minutes = round(seconds / 60)
    hours = round(seconds / 3600)
    days = round(seconds / 86400)

    if seconds < 45:
        return strings["seconds"]
    if seconds < 90:
        return strings["minute"]
    if minutes < 45:
        return strings["minutes"].format(minutes)
    if minutes < 90:
        return strings["hour"]
    if hours < 22:
        return strings["hours"].format(hours)
    if hours < 36:
        return strings["day"]
    return strings["days"].format(days)
