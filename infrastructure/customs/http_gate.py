"""HTTP implementation of CustomsGate, backed by the customs rate-limit service."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from errors import ERRNO, BackendUnavailableError
from infrastructure.customs.result import (
    CustomsCheckResult,
    handle_customs_result,
    report_check,
)
from infrastructure.http_client import HttpClient
from services.context import RequestContext
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


class HttpCustomsGate:
    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    async def _check(
        self, path: str, action: str, body: dict, context: RequestContext
    ) -> None:
        raw = await self._http.post_json(path, body)
        try:
            result = CustomsCheckResult.model_validate(raw)
        except ValidationError as e:
            log.error("customs_invalid_response", path=path, error=str(e))
            raise BackendUnavailableError("customs", "Invalid response body") from e

        report_check(path.strip("/"), action, result)
        handle_customs_result(context, result)

    async def check(self, context: RequestContext, email: str, action: str) -> None:
        body = {
            "ip": context.client_address,
            "email": email,
            "action": action,
            "headers": context.headers,
            "query": context.query,
        }
        payload = context.sanitized_payload()
        if payload is not None:
            body["payload"] = payload
        await self._check("/check", action, body, context)

    async def check_authenticated(
        self, context: RequestContext, uid: str, action: str
    ) -> None:
        body = {"ip": context.client_address, "action": action, "uid": uid}
        await self._check("/checkAuthenticated", action, body, context)

    async def check_ip_only(self, context: RequestContext, action: str) -> None:
        body = {"ip": context.client_address, "action": action}
        await self._check("/checkIpOnly", action, body, context)

    async def flag(
        self, ip: str, email: Optional[str], errno: Optional[int] = None
    ) -> None:
        """Report a failed attempt. Nothing useful comes back; failures are logged."""
        try:
            await self._http.post_json(
                "/failedLoginAttempt",
                {
                    "ip": ip,
                    "email": email or "",
                    "errno": errno or ERRNO.UNEXPECTED_ERROR,
                },
            )
        except Exception as e:
            log.warning(
                "customs_flag_failed",
                ip_hash=hash_ip(ip),
                errno=errno,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def reset(self, email: str) -> None:
        """Clear rate-limit state for *email* after a successful password reset."""
        try:
            await self._http.post_json("/passwordReset", {"email": email})
        except Exception as e:
            log.warning(
                "customs_reset_failed", error=str(e), error_type=type(e).__name__
            )

    async def aclose(self) -> None:
        await self._http.aclose()
