"""
Response DTOs for password and account-reset endpoints.

Serialized by alias (camelCase) with ``None`` fields dropped, so legacy
password-change clients receive ``{}``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PasswordForgotCodeResponse(_Response):
    """POST /password/forgot/send_code and /resend_code (200)."""

    password_forgot_token: str = Field(alias="passwordForgotToken")
    ttl: int
    code_length: int = Field(alias="codeLength")
    tries: int


class PasswordForgotVerifyCodeResponse(_Response):
    """POST /password/forgot/verify_code (200)."""

    account_reset_token: str = Field(alias="accountResetToken")


class PasswordForgotStatusResponse(_Response):
    """GET /password/forgot/status (200)."""

    tries: int
    ttl: int


class PasswordChangeStartResponse(_Response):
    """POST /password/change/start (200)."""

    key_fetch_token: str = Field(alias="keyFetchToken")
    password_change_token: str = Field(alias="passwordChangeToken")
    verified: bool


class SessionGrantResponse(_Response):
    """POST /password/change/finish and POST /account/reset (200)."""

    uid: Optional[str] = None
    session_token: Optional[str] = Field(default=None, alias="sessionToken")
    verified: Optional[bool] = None
    auth_at: Optional[int] = Field(default=None, alias="authAt")
    key_fetch_token: Optional[str] = Field(default=None, alias="keyFetchToken")


class SessionStatusResponse(_Response):
    """GET /session/status (200)."""

    state: str
    uid: str
