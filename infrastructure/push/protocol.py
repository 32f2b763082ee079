"""PushNotifier protocol: services depend on this, not the concrete implementation."""

from typing import Protocol

from schemas.models.account import Device


class PushNotifier(Protocol):
    async def notify_password_changed(self, uid: str, devices: list[Device]) -> int: ...

    async def notify_password_reset(self, uid: str, devices: list[Device]) -> int: ...
