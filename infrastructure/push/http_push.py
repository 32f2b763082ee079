"""Device push over each device's registered push callback URL.

Devices without a callback are skipped. Returns how many devices accepted
the message; individual failures are logged and never raised.
"""

from __future__ import annotations

import asyncio

from infrastructure.http_client import HttpClient
from schemas.models.account import Device
from shared.logging import get_logger

log = get_logger(__name__)

PUSH_PAYLOAD_VERSION = 1
COMMAND_PASSWORD_CHANGED = "fxaccounts:password_changed"
COMMAND_PASSWORD_RESET = "fxaccounts:password_reset"


class HttpPushNotifier:
    def __init__(self, http_client: HttpClient, ttl_seconds: int = 3600) -> None:
        self._http = http_client
        self._ttl = ttl_seconds

    async def _push_one(self, device: Device, command: str) -> bool:
        try:
            response = await self._http.post(
                device.push_callback,
                json={"version": PUSH_PAYLOAD_VERSION, "command": command},
                headers={"TTL": str(self._ttl)},
            )
        except Exception as e:
            log.warning(
                "push_send_error",
                device_id=device.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        if response.status_code in (200, 201, 202):
            return True
        log.warning(
            "push_send_failed", device_id=device.id, status_code=response.status_code
        )
        return False

    async def _send(self, uid: str, devices: list[Device], command: str) -> int:
        targets = [d for d in devices if d.push_callback]
        if not targets:
            return 0
        results = await asyncio.gather(*(self._push_one(d, command) for d in targets))
        sent = sum(1 for ok in results if ok)
        log.info(
            "push_sent", uid=uid, command=command, devices=len(targets), delivered=sent
        )
        return sent

    async def notify_password_changed(self, uid: str, devices: list[Device]) -> int:
        return await self._send(uid, devices, COMMAND_PASSWORD_CHANGED)

    async def notify_password_reset(self, uid: str, devices: list[Device]) -> int:
        return await self._send(uid, devices, COMMAND_PASSWORD_RESET)
