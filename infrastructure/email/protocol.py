"""Mailer protocol: services depend on this, not the concrete implementation."""

from typing import Optional, Protocol

from schemas.models.account import AccountEmail


class Mailer(Protocol):
    async def send_recovery_email(
        self,
        emails: list[AccountEmail],
        *,
        token: str,
        code: str,
        email: str,
        service: Optional[str] = None,
        redirect_to: Optional[str] = None,
        resume: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> bool: ...

    async def send_password_reset_email(
        self,
        emails: list[AccountEmail],
        *,
        accept_language: Optional[str] = None,
    ) -> bool: ...

    async def send_password_changed_email(
        self,
        emails: list[AccountEmail],
        *,
        ip: Optional[str] = None,
        accept_language: Optional[str] = None,
    ) -> bool: ...
