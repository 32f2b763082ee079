"""TokenStore / AccountStore protocols: services depend on these, not on MongoDB."""

from __future__ import annotations

from typing import Protocol

from schemas.models.account import AccountEmail, AccountRecord, AuthMaterial, Device
from schemas.models.token import (
    AccountResetToken,
    KeyFetchToken,
    PasswordChangeToken,
    PasswordForgotToken,
    SessionToken,
)


class TokenStore(Protocol):
    async def create_password_forgot_token(
        self, account: AccountRecord
    ) -> PasswordForgotToken: ...

    async def password_forgot_token(self, token_id: str) -> PasswordForgotToken: ...

    async def update_password_forgot_token(self, token: PasswordForgotToken) -> None: ...

    async def delete_password_forgot_token(self, token: PasswordForgotToken) -> None: ...

    async def forgot_password_verified(
        self, token: PasswordForgotToken
    ) -> AccountResetToken: ...

    async def account_reset_token(self, token_id: str) -> AccountResetToken: ...

    async def delete_account_reset_token(self, token: AccountResetToken) -> None: ...

    async def create_password_change_token(self, uid: str) -> PasswordChangeToken: ...

    async def password_change_token(self, token_id: str) -> PasswordChangeToken: ...

    async def delete_password_change_token(self, token: PasswordChangeToken) -> None: ...

    async def create_key_fetch_token(
        self, uid: str, k_a: str, wrap_kb: str, email_verified: bool
    ) -> KeyFetchToken: ...

    async def create_session_token(self, **options) -> SessionToken: ...

    async def session_token(self, token_id: str) -> SessionToken: ...

    async def verify_tokens_with_method(self, token_id: str, method: str) -> None: ...


class AccountStore(Protocol):
    async def account_record(self, email: str) -> AccountRecord: ...

    async def account(self, uid: str) -> AccountRecord: ...

    async def account_emails(self, uid: str) -> list[AccountEmail]: ...

    async def has_totp_token(self, uid: str) -> bool: ...

    async def devices(self, uid: str) -> list[Device]: ...

    async def reset_account(
        self, uid: str, material: AuthMaterial
    ) -> AccountRecord: ...
