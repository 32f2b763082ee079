"""
Client address resolution.

Every proxy in front of the service appends the address it received the
connection from to ``X-Forwarded-For``, so only the rightmost
``depth`` entries are trustworthy; anything left of them was written by the
client. The address ``depth`` entries from the right is what customs
rate-limits on and what the password-changed email reports.
"""

from __future__ import annotations

import ipaddress
from typing import Optional

from fastapi import Request


def _parse_ip(value: str) -> Optional[str]:
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def _peer(request: Request) -> str:
    return request.client.host if request.client else ""


def get_client_ip(
    request: Request, depth: int = 1, trust_x_real_ip: bool = False
) -> str:
    """Return the originating client address for *request*, or ``""``.

    Falls back to the socket peer when the forwarding chain is shorter than
    *depth* or the trusted entry is not an IP address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(",")]
        if len(hops) < depth:
            return _peer(request)
        return _parse_ip(hops[-depth]) or _peer(request)

    if trust_x_real_ip:
        real_ip = _parse_ip(request.headers.get("X-Real-IP", ""))
        if real_ip:
            return real_ip

    return _peer(request)
