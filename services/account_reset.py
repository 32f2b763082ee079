"""
Account reset, the terminal step of the password-forgot flow.

The bearer AccountResetToken is consumed before anything else, so a reset
token can set a new password at most once. Resetting the account revokes
every session, token and device of the uid.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from config import TokenSettings
from infrastructure.customs.protocol import CustomsGate
from repositories.protocol import AccountStore, TokenStore
from schemas.dto.responses.password import SessionGrantResponse
from schemas.models.account import AuthMaterial
from schemas.models.token import AccountResetToken
from services.context import RequestContext
from services.notifications import NotificationFanout
from shared.crypto import Password
from shared.generators import random_hex
from shared.logging import get_logger

log = get_logger(__name__)


class AccountResetService:
    def __init__(
        self,
        tokens: TokenStore,
        accounts: AccountStore,
        customs: CustomsGate,
        notifications: NotificationFanout,
        settings: TokenSettings,
    ) -> None:
        self._tokens = tokens
        self._accounts = accounts
        self._customs = customs
        self._notifications = notifications
        self._settings = settings

    async def reset(
        self,
        context: RequestContext,
        token: AccountResetToken,
        *,
        auth_pw: str,
        wrap_kb: Optional[str] = None,
        recovery_key_id: Optional[str] = None,
        wants_session: bool = False,
        wants_keys: bool = False,
    ) -> SessionGrantResponse:
        await self._customs.check_authenticated(context, token.uid, "accountReset")

        # Devices go away with the reset, fetch them first
        devices = await self._accounts.devices(token.uid)
        await self._tokens.delete_account_reset_token(token)

        keys_have_changed = wrap_kb is None
        if keys_have_changed:
            wrap_kb = random_hex(32)

        auth_salt = random_hex(32)
        password = Password(auth_pw, auth_salt, self._settings.verifier_version)
        verify_hash = await asyncio.to_thread(password.verify_hash)
        material = AuthMaterial(
            auth_salt=auth_salt,
            verify_hash=verify_hash,
            wrap_wrap_kb=password.wrap(wrap_kb),
            verifier_version=password.version,
            keys_have_changed=keys_have_changed,
            k_a=random_hex(32) if keys_have_changed else None,
        )
        account = await self._accounts.reset_account(token.uid, material)
        context.emit_metrics_event("account.reset", uid=account.uid)
        log.info(
            "account_password_reset",
            uid=account.uid,
            keys_have_changed=keys_have_changed,
            recovery_key=recovery_key_id is not None,
        )

        await self._customs.reset(account.email)

        # verify_code deferred this email for recovery-key resets
        if recovery_key_id:
            emails = await self._accounts.account_emails(account.uid)
            await self._notifications.password_reset(
                account.uid, emails, context.accept_language
            )
        await self._notifications.devices_password_reset(account.uid, devices)

        if not wants_session:
            return SessionGrantResponse()

        # Knowing the reset code proves control of the primary email
        session = await self._tokens.create_session_token(
            uid=account.uid,
            email=account.email,
            email_code=account.email_code,
            email_verified=True,
            verifier_set_at=account.verifier_set_at,
            must_verify=wants_keys,
            token_verification_id=None,
            user_agent=context.user_agent,
        )
        response = SessionGrantResponse(
            uid=account.uid,
            session_token=session.data,
            verified=session.token_verified,
            auth_at=session.auth_at(),
        )
        if wants_keys:
            key_fetch = await self._tokens.create_key_fetch_token(
                account.uid, account.k_a, wrap_kb, True
            )
            response.key_fetch_token = key_fetch.data
        return response
