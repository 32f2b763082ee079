"""
MongoDB implementation of TokenStore.

Every mutation is a single-document operation, so concurrent requests that
carry the same bearer token are serialized by MongoDB itself:

- a wrong code consumes a try through ``$inc`` guarded by ``tries > 0``;
  two racing attempts each consume one, and whoever drives the count to 0
  deletes the document.
- single-use tokens are consumed with ``delete_one`` and the caller checks
  ``deleted_count``; only one of two racing consumers sees 1.
"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from config import TokenSettings
from errors import BackendUnavailableError, InvalidTokenError
from repositories import mongo_collections as names
from schemas.models.account import AccountRecord
from schemas.models.base import utcnow
from schemas.models.token import (
    AccountResetToken,
    KeyFetchToken,
    PasswordChangeToken,
    PasswordForgotToken,
    SessionToken,
)
from shared.crypto import hash_token
from shared.generators import generate_pass_code, generate_token_data
from shared.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def storage_call(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Translate driver failures into a retryable BackendUnavailableError."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await fn(*args, **kwargs)
        except PyMongoError as e:
            log.error(
                "token_store_error",
                operation=fn.__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise BackendUnavailableError("database") from e

    return wrapper


def _new_secret() -> tuple[str, str]:
    data = generate_token_data()
    return hash_token(data), data


class MongoTokenStore:
    def __init__(self, db: AsyncDatabase, settings: TokenSettings) -> None:
        self._db = db
        self._settings = settings

    async def _insert_one_per_uid(self, collection: str, doc: dict) -> None:
        """Replace whatever token of this kind the uid already holds."""
        coll = self._db[collection]
        for attempt in range(2):
            await coll.delete_many({"uid": doc["uid"]})
            try:
                await coll.insert_one(doc)
                return
            except DuplicateKeyError:
                # A concurrent request for the same uid won the insert
                if attempt:
                    raise

    async def _find(self, collection: str, token_id: str) -> dict:
        doc = await self._db[collection].find_one({"_id": token_id})
        if doc is None:
            raise InvalidTokenError()
        return doc

    async def _consume(self, collection: str, token_id: str) -> None:
        result = await self._db[collection].delete_one({"_id": token_id})
        if result.deleted_count == 0:
            raise InvalidTokenError()

    # ── password forgot ──────────────────────────────────────────────────────

    @storage_call
    async def create_password_forgot_token(
        self, account: AccountRecord
    ) -> PasswordForgotToken:
        token_id, data = _new_secret()
        # created_at is always "now": never inherit a timestamp from the account
        token = PasswordForgotToken(
            id=token_id,
            uid=account.uid,
            email=account.email,
            pass_code=generate_pass_code(),
            tries=self._settings.password_forgot_tries,
            created_at=utcnow(),
            ttl_seconds=self._settings.password_forgot_token_ttl_seconds,
            data=data,
        )
        await self._insert_one_per_uid(names.PASSWORD_FORGOT_TOKENS, token.to_mongo())
        log.info("password_forgot_token_created", uid=account.uid, token_id=token_id)
        return token

    @storage_call
    async def password_forgot_token(self, token_id: str) -> PasswordForgotToken:
        doc = await self._find(names.PASSWORD_FORGOT_TOKENS, token_id)
        return PasswordForgotToken.from_mongo(doc)

    @storage_call
    async def update_password_forgot_token(self, token: PasswordForgotToken) -> None:
        """Persist one consumed try and sync ``token.tries`` with the stored count."""
        coll = self._db[names.PASSWORD_FORGOT_TOKENS]
        doc = await coll.find_one_and_update(
            {"_id": token.id, "tries": {"$gt": 0}},
            {"$inc": {"tries": -1}},
            return_document=ReturnDocument.AFTER,
        )
        stored_tries = doc["tries"] if doc is not None else 0
        token.tries = max(stored_tries, 0)
        if token.tries == 0:
            await coll.delete_one({"_id": token.id})

    @storage_call
    async def delete_password_forgot_token(self, token: PasswordForgotToken) -> None:
        await self._db[names.PASSWORD_FORGOT_TOKENS].delete_one({"_id": token.id})

    @storage_call
    async def forgot_password_verified(
        self, token: PasswordForgotToken
    ) -> AccountResetToken:
        # Consume first: of two racing verifications only one gets past here
        await self._consume(names.PASSWORD_FORGOT_TOKENS, token.id)

        token_id, data = _new_secret()
        reset_token = AccountResetToken(
            id=token_id,
            uid=token.uid,
            created_at=utcnow(),
            ttl_seconds=self._settings.account_reset_token_ttl_seconds,
            data=data,
        )
        await self._insert_one_per_uid(
            names.ACCOUNT_RESET_TOKENS, reset_token.to_mongo()
        )
        log.info("account_reset_token_created", uid=token.uid, token_id=token_id)
        return reset_token

    # ── account reset ────────────────────────────────────────────────────────

    @storage_call
    async def account_reset_token(self, token_id: str) -> AccountResetToken:
        doc = await self._find(names.ACCOUNT_RESET_TOKENS, token_id)
        return AccountResetToken.from_mongo(doc)

    @storage_call
    async def delete_account_reset_token(self, token: AccountResetToken) -> None:
        await self._consume(names.ACCOUNT_RESET_TOKENS, token.id)

    # ── password change ──────────────────────────────────────────────────────

    @storage_call
    async def create_password_change_token(self, uid: str) -> PasswordChangeToken:
        token_id, data = _new_secret()
        token = PasswordChangeToken(id=token_id, uid=uid, data=data)
        await self._insert_one_per_uid(names.PASSWORD_CHANGE_TOKENS, token.to_mongo())
        return token

    @storage_call
    async def password_change_token(self, token_id: str) -> PasswordChangeToken:
        doc = await self._find(names.PASSWORD_CHANGE_TOKENS, token_id)
        return PasswordChangeToken.from_mongo(doc)

    @storage_call
    async def delete_password_change_token(self, token: PasswordChangeToken) -> None:
        await self._consume(names.PASSWORD_CHANGE_TOKENS, token.id)

    # ── sessions and keys ────────────────────────────────────────────────────

    @storage_call
    async def create_key_fetch_token(
        self, uid: str, k_a: str, wrap_kb: str, email_verified: bool
    ) -> KeyFetchToken:
        token_id, data = _new_secret()
        token = KeyFetchToken(
            id=token_id,
            uid=uid,
            k_a=k_a,
            wrap_kb=wrap_kb,
            email_verified=email_verified,
            data=data,
        )
        await self._db[names.KEY_FETCH_TOKENS].insert_one(token.to_mongo())
        return token

    @storage_call
    async def create_session_token(self, **options) -> SessionToken:
        token_id, data = _new_secret()
        token = SessionToken(id=token_id, data=data, **options)
        await self._db[names.SESSION_TOKENS].insert_one(token.to_mongo())
        log.info(
            "session_token_created",
            uid=token.uid,
            token_id=token_id,
            verified=token.token_verified,
        )
        return token

    @storage_call
    async def session_token(self, token_id: str) -> SessionToken:
        doc = await self._find(names.SESSION_TOKENS, token_id)
        return SessionToken.from_mongo(doc)

    @storage_call
    async def verify_tokens_with_method(self, token_id: str, method: str) -> None:
        result = await self._db[names.SESSION_TOKENS].update_one(
            {"_id": token_id},
            {"$set": {"token_verification_id": None, "verification_method": method}},
        )
        if result.matched_count == 0:
            raise InvalidTokenError()
