"""
Email and redirect validators. Framework-agnostic pure functions.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

import validators as _validators

HEX_STRING = re.compile(r"^(?:[a-fA-F0-9]{2})+$")


def normalize_email(email: str) -> str:
    """Lowercase and trim *email* for comparison and lookup."""
    return email.strip().lower()


def emails_match(first: str, second: str) -> bool:
    """True when both addresses refer to the same mailbox."""
    return normalize_email(first) == normalize_email(second)


def validate_email(email: str) -> bool:
    """Return True if *email* is a syntactically valid address."""
    return bool(_validators.email(email.strip()))


def validate_redirect_to(url: str, redirect_domain: str) -> bool:
    """Return True if *url* is an http(s) URL on *redirect_domain* or a subdomain.

    Used for ``redirectTo`` on the forgot-password flow so the recovery
    email never links off-site.
    """
    if not _validators.url(url):
        return False
    host = (urlparse(url).hostname or "").lower()
    domain = redirect_domain.lower().lstrip(".")
    return host == domain or host.endswith("." + domain)


def is_hex(value: str, length: int | None = None) -> bool:
    if length is not None and len(value) != length:
        return False
    return bool(HEX_STRING.match(value))
