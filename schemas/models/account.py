"""
Account document models.

Maps to the `accounts` and `devices` MongoDB collections. An account owns
one primary email plus any number of secondary emails; the password-reset
flow is only ever started from the primary address.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from schemas.models.base import MongoBaseModel, utcnow


class AccountEmail(BaseModel):
    email: str
    normalized_email: str
    is_primary: bool = False
    is_verified: bool = False


class AccountRecord(MongoBaseModel):
    """Document model for the `accounts` collection. ``id`` is the uid."""

    email: str
    normalized_email: str
    emails: list[AccountEmail] = Field(default_factory=list)
    email_verified: bool = False
    email_code: Optional[str] = None
    auth_salt: str
    verify_hash: str
    wrap_wrap_kb: str
    k_a: str
    verifier_version: int = 1
    verifier_set_at: datetime = Field(default_factory=utcnow)
    totp_enabled: bool = False
    locale: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def uid(self) -> str:
        return self.id

    @property
    def primary_email(self) -> AccountEmail:
        for entry in self.emails:
            if entry.is_primary:
                return entry
        return AccountEmail(
            email=self.email,
            normalized_email=self.normalized_email,
            is_primary=True,
            is_verified=self.email_verified,
        )


class AuthMaterial(BaseModel):
    """Replacement credentials written by reset_account()."""

    auth_salt: str
    verify_hash: str
    wrap_wrap_kb: str
    verifier_version: int
    keys_have_changed: bool = False
    k_a: Optional[str] = None


class Device(MongoBaseModel):
    """Document model for the `devices` collection."""

    uid: str
    session_token_id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    push_callback: Optional[str] = None
    push_public_key: Optional[str] = None
    push_auth_key: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
