"""CustomsGate protocol: services depend on this, not the concrete implementation."""

from typing import Optional, Protocol

from services.context import RequestContext


class CustomsGate(Protocol):
    async def check(self, context: RequestContext, email: str, action: str) -> None: ...

    async def check_authenticated(
        self, context: RequestContext, uid: str, action: str
    ) -> None: ...

    async def check_ip_only(self, context: RequestContext, action: str) -> None: ...

    async def flag(
        self, ip: str, email: Optional[str], errno: Optional[int] = None
    ) -> None: ...

    async def reset(self, email: str) -> None: ...

    async def aclose(self) -> None: ...
