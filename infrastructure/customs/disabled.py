"""CustomsGate used when CUSTOMS_URL=none: nothing is ever blocked."""

from __future__ import annotations

from typing import Optional

from services.context import RequestContext


class DisabledCustomsGate:
    async def check(self, context: RequestContext, email: str, action: str) -> None:
        return None

    async def check_authenticated(
        self, context: RequestContext, uid: str, action: str
    ) -> None:
        return None

    async def check_ip_only(self, context: RequestContext, action: str) -> None:
        return None

    async def flag(
        self, ip: str, email: Optional[str], errno: Optional[int] = None
    ) -> None:
        return None

    async def reset(self, email: str) -> None:
        return None

    async def aclose(self) -> None:
        return None
