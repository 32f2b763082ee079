"""
MongoDB collection names and index bootstrap.

ensure_indexes() is called once from the app lifespan. The one-per-account
token kinds get a unique ``uid`` index; expiring kinds get a TTL index on
``expires_at`` so abandoned tokens are garbage-collected by MongoDB.
"""

from __future__ import annotations

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase

from shared.logging import get_logger

log = get_logger(__name__)

ACCOUNTS = "accounts"
DEVICES = "devices"
PASSWORD_FORGOT_TOKENS = "password_forgot_tokens"
ACCOUNT_RESET_TOKENS = "account_reset_tokens"
PASSWORD_CHANGE_TOKENS = "password_change_tokens"
SESSION_TOKENS = "session_tokens"
KEY_FETCH_TOKENS = "key_fetch_tokens"

# Everything reset_account() wipes for a uid
ACCOUNT_BOUND_TOKENS = (
    SESSION_TOKENS,
    KEY_FETCH_TOKENS,
    PASSWORD_CHANGE_TOKENS,
    PASSWORD_FORGOT_TOKENS,
    ACCOUNT_RESET_TOKENS,
)


async def ensure_indexes(db: AsyncDatabase) -> None:
    await db[ACCOUNTS].create_index([("normalized_email", ASCENDING)], unique=True)
    await db[ACCOUNTS].create_index([("emails.normalized_email", ASCENDING)])
    await db[DEVICES].create_index([("uid", ASCENDING)])

    for name in (PASSWORD_FORGOT_TOKENS, ACCOUNT_RESET_TOKENS, PASSWORD_CHANGE_TOKENS):
        await db[name].create_index([("uid", ASCENDING)], unique=True)
    for name in (PASSWORD_FORGOT_TOKENS, ACCOUNT_RESET_TOKENS):
        await db[name].create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)
    for name in (SESSION_TOKENS, KEY_FETCH_TOKENS):
        await db[name].create_index([("uid", ASCENDING)])

    log.info("mongo_indexes_ensured", db=db.name)
