"""MongoDB implementation of AccountStore."""

from __future__ import annotations

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from errors import UnknownAccountError
from repositories import mongo_collections as names
from repositories.token_store import storage_call
from schemas.models.account import AccountEmail, AccountRecord, AuthMaterial, Device
from schemas.models.base import utcnow
from shared.logging import get_logger
from shared.validators import normalize_email

log = get_logger(__name__)


class MongoAccountStore:
    def __init__(self, db: AsyncDatabase) -> None:
        self._db = db

    @storage_call
    async def account_record(self, email: str) -> AccountRecord:
        """Look an account up by any of its addresses, primary or secondary."""
        normalized = normalize_email(email)
        doc = await self._db[names.ACCOUNTS].find_one(
            {
                "$or": [
                    {"normalized_email": normalized},
                    {"emails.normalized_email": normalized},
                ]
            }
        )
        if doc is None:
            raise UnknownAccountError(email)
        return AccountRecord.from_mongo(doc)

    @storage_call
    async def account(self, uid: str) -> AccountRecord:
        doc = await self._db[names.ACCOUNTS].find_one({"_id": uid})
        if doc is None:
            raise UnknownAccountError()
        return AccountRecord.from_mongo(doc)

    async def account_emails(self, uid: str) -> list[AccountEmail]:
        account = await self.account(uid)
        if account.emails:
            return account.emails
        return [account.primary_email]

    async def has_totp_token(self, uid: str) -> bool:
        account = await self.account(uid)
        return account.totp_enabled

    @storage_call
    async def devices(self, uid: str) -> list[Device]:
        docs = await self._db[names.DEVICES].find({"uid": uid}).to_list(None)
        return [Device.from_mongo(doc) for doc in docs]

    @storage_call
    async def reset_account(
        self, uid: str, material: AuthMaterial
    ) -> AccountRecord:
        """Replace auth material and revoke every token and device of *uid*."""
        update: dict = {
            "auth_salt": material.auth_salt,
            "verify_hash": material.verify_hash,
            "wrap_wrap_kb": material.wrap_wrap_kb,
            "verifier_version": material.verifier_version,
            "verifier_set_at": utcnow(),
        }
        if material.keys_have_changed and material.k_a is not None:
            update["k_a"] = material.k_a

        # Revoke before the new password becomes usable
        for collection in names.ACCOUNT_BOUND_TOKENS:
            await self._db[collection].delete_many({"uid": uid})
        await self._db[names.DEVICES].delete_many({"uid": uid})

        doc = await self._db[names.ACCOUNTS].find_one_and_update(
            {"_id": uid},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise UnknownAccountError()
        log.info(
            "account_reset",
            uid=uid,
            keys_have_changed=material.keys_have_changed,
        )
        return AccountRecord.from_mongo(doc)
