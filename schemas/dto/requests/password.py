"""
Request DTOs for password endpoints.

PasswordChangeStartRequest      POST /password/change/start
PasswordChangeFinishRequest     POST /password/change/finish
PasswordForgotSendCodeRequest   POST /password/forgot/send_code
PasswordForgotResendCodeRequest POST /password/forgot/resend_code
PasswordForgotVerifyCodeRequest POST /password/forgot/verify_code
AccountResetRequest             POST /account/reset

Wire names are camelCase (``authPW``, ``wrapKb``); attributes are snake_case.
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from schemas.models.metrics import MetricsContext
from shared.generators import PASS_CODE_LENGTH
from shared.validators import validate_email

Hex32Bytes = Annotated[
    str, StringConstraints(min_length=64, max_length=64, pattern=r"^[0-9a-fA-F]+$")
]
PassCode = Annotated[
    str,
    StringConstraints(
        min_length=PASS_CODE_LENGTH,
        max_length=PASS_CODE_LENGTH,
        pattern=r"^[0-9a-fA-F]+$",
    ),
]


class _EmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(max_length=255)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        if not validate_email(value):
            raise ValueError("invalid email address")
        return value.strip()


class PasswordChangeStartRequest(_EmailRequest):
    """Request body for POST /password/change/start."""

    old_auth_pw: Hex32Bytes = Field(alias="oldAuthPW")


class PasswordChangeFinishRequest(BaseModel):
    """Request body for POST /password/change/finish.

    ``sessionToken`` is the id of the session the change is made from. It is
    optional for legacy clients but required when the account has TOTP.
    """

    model_config = ConfigDict(populate_by_name=True)

    auth_pw: Hex32Bytes = Field(alias="authPW")
    wrap_kb: Hex32Bytes = Field(alias="wrapKb")
    session_token: Optional[Hex32Bytes] = Field(default=None, alias="sessionToken")


class _RecoveryLinkOptions(_EmailRequest):
    service: Optional[str] = Field(default=None, max_length=16, pattern=r"^[a-zA-Z0-9\-_]+$")
    redirect_to: Optional[str] = Field(default=None, alias="redirectTo", max_length=2048)
    resume: Optional[str] = Field(default=None, max_length=2048)


class PasswordForgotSendCodeRequest(_RecoveryLinkOptions):
    """Request body for POST /password/forgot/send_code."""

    metrics_context: Optional[MetricsContext] = Field(
        default=None, alias="metricsContext"
    )


class PasswordForgotResendCodeRequest(_RecoveryLinkOptions):
    """Request body for POST /password/forgot/resend_code."""


class PasswordForgotVerifyCodeRequest(BaseModel):
    """Request body for POST /password/forgot/verify_code.

    ``accountResetWithRecoveryKey`` defers the reset confirmation email to
    /account/reset, which sends it once the recovery key has been used.
    """

    model_config = ConfigDict(populate_by_name=True)

    code: PassCode
    account_reset_with_recovery_key: bool = Field(
        default=False, alias="accountResetWithRecoveryKey"
    )


class AccountResetRequest(BaseModel):
    """Request body for POST /account/reset.

    Without ``wrapKb`` the account's class-B keys are regenerated (data
    encrypted under the old keys becomes unreadable).
    """

    model_config = ConfigDict(populate_by_name=True)

    auth_pw: Hex32Bytes = Field(alias="authPW")
    wrap_kb: Optional[Hex32Bytes] = Field(default=None, alias="wrapKb")
    recovery_key_id: Optional[str] = Field(
        default=None, alias="recoveryKeyId", max_length=32, pattern=r"^[0-9a-fA-F]+$"
    )
    session_token: bool = Field(default=False, alias="sessionToken")
