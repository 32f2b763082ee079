"""
Token document models.

One collection per token kind (`password_forgot_tokens`,
`account_reset_tokens`, `password_change_tokens`, `session_tokens`,
`key_fetch_tokens`). ``_id`` is SHA-256(data) where ``data`` is the bearer
secret returned to the client exactly once, on creation; ``data`` itself is
never written to the database.

Password-forgot tokens carry the verification code in plaintext because
/password/forgot/resend_code re-sends the same code.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, as_aware_utc, utcnow

# Methods that prove a second factor
AAL2_METHODS = frozenset({"totp-2fa", "recovery-code"})


class BearerToken(MongoBaseModel):
    uid: str
    created_at: datetime = Field(default_factory=utcnow)
    # Bearer secret, only populated on the instance returned by create_*()
    data: Optional[str] = Field(default=None, exclude=True)


class ExpiringToken(BearerToken):
    ttl_seconds: int

    @property
    def expires_at(self) -> datetime:
        return as_aware_utc(self.created_at) + timedelta(seconds=self.ttl_seconds)

    def ttl(self, now: Optional[datetime] = None) -> int:
        """Whole seconds of validity left, rounded up, never below 0."""
        now = now or utcnow()
        remaining = (self.expires_at - now).total_seconds()
        return max(math.ceil(remaining), 0)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.ttl(now) <= 0

    def to_mongo(self) -> dict:
        doc = super().to_mongo()
        # Drives the TTL index; never read back
        doc["expires_at"] = self.expires_at
        return doc


class PasswordForgotToken(ExpiringToken):
    email: str
    pass_code: str
    tries: int = Field(ge=0)

    def fail_attempt(self) -> bool:
        """Consume one try. Returns True when no tries remain."""
        self.tries = max(self.tries - 1, 0)
        return self.tries <= 0


class AccountResetToken(ExpiringToken):
    pass


class PasswordChangeToken(BearerToken):
    pass


class KeyFetchToken(BearerToken):
    k_a: str
    wrap_kb: str
    email_verified: bool = False


class SessionToken(BearerToken):
    email: str
    email_verified: bool = False
    email_code: Optional[str] = None
    verifier_set_at: Optional[datetime] = None
    # None once the session is verified
    token_verification_id: Optional[str] = None
    verification_method: Optional[str] = None
    must_verify: bool = False
    device_id: Optional[str] = None
    last_auth_at: datetime = Field(default_factory=utcnow)
    user_agent: Optional[str] = None

    @property
    def token_verified(self) -> bool:
        return self.token_verification_id is None

    @property
    def authenticator_assurance_level(self) -> int:
        if self.token_verified and self.verification_method in AAL2_METHODS:
            return 2
        return 1

    def auth_at(self) -> int:
        """Last authentication time as Unix seconds."""
        return int(as_aware_utc(self.last_auth_at).timestamp())
