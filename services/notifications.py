"""
Notification fan-out for password state transitions.

Every dispatch is attempted and awaited, but its outcome never reaches the
caller: by the time we notify, the state change has already committed, so
a mailer or push failure is logged and swallowed.
"""

from __future__ import annotations

from typing import Any, Awaitable, Optional

from infrastructure.email.protocol import Mailer
from infrastructure.push.protocol import PushNotifier
from schemas.models.account import AccountEmail, Device
from schemas.models.token import PasswordForgotToken
from shared.logging import get_logger

log = get_logger(__name__)


class NotificationFanout:
    def __init__(self, mailer: Mailer, push: PushNotifier) -> None:
        self._mailer = mailer
        self._push = push

    async def _attempt(self, name: str, call: Awaitable[Any], **context: Any) -> bool:
        try:
            result = await call
        except Exception as e:
            log.error(
                "notification_failed",
                notification=name,
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            return False
        if result is False:
            log.warning("notification_not_delivered", notification=name, **context)
            return False
        return True

    async def recovery_code(
        self,
        emails: list[AccountEmail],
        token: PasswordForgotToken,
        *,
        service: Optional[str] = None,
        redirect_to: Optional[str] = None,
        resume: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> bool:
        return await self._attempt(
            "recovery_email",
            self._mailer.send_recovery_email(
                emails,
                token=token.data or "",
                code=token.pass_code,
                email=token.email,
                service=service,
                redirect_to=redirect_to,
                resume=resume,
                accept_language=accept_language,
            ),
            uid=token.uid,
        )

    async def password_reset(
        self, uid: str, emails: list[AccountEmail], accept_language: Optional[str]
    ) -> bool:
        return await self._attempt(
            "password_reset_email",
            self._mailer.send_password_reset_email(
                emails, accept_language=accept_language
            ),
            uid=uid,
        )

    async def password_changed(
        self,
        uid: str,
        emails: list[AccountEmail],
        ip: Optional[str],
        accept_language: Optional[str],
    ) -> bool:
        return await self._attempt(
            "password_changed_email",
            self._mailer.send_password_changed_email(
                emails, ip=ip, accept_language=accept_language
            ),
            uid=uid,
        )

    async def devices_password_changed(self, uid: str, devices: list[Device]) -> bool:
        if not devices:
            return True
        return await self._attempt(
            "push_password_changed",
            self._push.notify_password_changed(uid, devices),
            uid=uid,
        )

    async def devices_password_reset(self, uid: str, devices: list[Device]) -> bool:
        if not devices:
            return True
        return await self._attempt(
            "push_password_reset",
            self._push.notify_password_reset(uid, devices),
            uid=uid,
        )
