"""
Password change flow.

start() proves knowledge of the current password and hands out a
password-change token plus a key-fetch token for the current keys.
finish() runs as a fixed sequence of phases over ChangePasswordState:

    check_totp → get_session_status → fetch_devices → change_password →
    notify → create_session → verify_session → create_key_fetch →
    build_response

change_password resets the account, which revokes every session, token and
device of the uid. Devices are therefore fetched before it runs.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from config import TokenSettings
from errors import (
    IncorrectPasswordError,
    InvalidTokenError,
    UnknownAccountError,
    UnverifiedSessionError,
)
from infrastructure.customs.protocol import CustomsGate
from repositories.protocol import AccountStore, TokenStore
from schemas.dto.responses.password import (
    PasswordChangeStartResponse,
    SessionGrantResponse,
)
from schemas.models.account import AccountRecord, AuthMaterial, Device
from schemas.models.token import KeyFetchToken, PasswordChangeToken, SessionToken
from services.context import RequestContext
from services.notifications import NotificationFanout
from shared.crypto import Password
from shared.generators import random_hex
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass
class ChangePasswordState:
    token: PasswordChangeToken
    auth_pw: str
    wrap_kb: str
    session_token_id: Optional[str]
    wants_keys: bool
    has_totp: bool = False
    previous_session: Optional[SessionToken] = None
    verified_status: bool = False
    originating_device_id: Optional[str] = None
    devices_to_notify: list[Device] = field(default_factory=list)
    account: Optional[AccountRecord] = None
    session: Optional[SessionToken] = None
    key_fetch: Optional[KeyFetchToken] = None

    @property
    def uid(self) -> str:
        return self.token.uid


class PasswordChangeService:
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

    # ── start ────────────────────────────────────────────────────────────────

    async def start(
        self, context: RequestContext, email: str, old_auth_pw: str
    ) -> PasswordChangeStartResponse:
        await self._customs.check(context, email, "passwordChange")

        try:
            account = await self._accounts.account_record(email)
        except UnknownAccountError as e:
            await self._customs.flag(context.client_address, email=email, errno=e.errno)
            raise

        password = Password(old_auth_pw, account.auth_salt, account.verifier_version)
        matches = await asyncio.to_thread(password.matches, account.verify_hash)
        if not matches:
            error = IncorrectPasswordError(account.email)
            await self._customs.flag(
                context.client_address, email=email, errno=error.errno
            )
            log.info("password_change_incorrect_password", uid=account.uid)
            raise error

        wrap_kb = password.unwrap(account.wrap_wrap_kb)
        key_fetch = await self._tokens.create_key_fetch_token(
            account.uid, account.k_a, wrap_kb, account.email_verified
        )
        change_token = await self._tokens.create_password_change_token(account.uid)

        log.info("password_change_started", uid=account.uid)
        return PasswordChangeStartResponse(
            key_fetch_token=key_fetch.data or "",
            password_change_token=change_token.data or "",
            verified=key_fetch.email_verified,
        )

    # ── finish ───────────────────────────────────────────────────────────────

    async def finish(
        self,
        context: RequestContext,
        token: PasswordChangeToken,
        *,
        auth_pw: str,
        wrap_kb: str,
        session_token_id: Optional[str] = None,
        wants_keys: bool = False,
    ) -> SessionGrantResponse:
        await self._customs.check_authenticated(
            context, token.uid, "passwordChangeFinish"
        )
        state = ChangePasswordState(
            token=token,
            auth_pw=auth_pw,
            wrap_kb=wrap_kb,
            session_token_id=session_token_id,
            wants_keys=wants_keys,
        )
        await self._check_totp(state)
        await self._get_session_status(state)
        await self._fetch_devices(state)
        await self._change_password(context, state)
        await self._notify(context, state)
        await self._create_session(context, state)
        await self._verify_session(state)
        await self._create_key_fetch(state)
        return self._build_response(state)

    async def _check_totp(self, state: ChangePasswordState) -> None:
        state.has_totp = await self._accounts.has_totp_token(state.uid)
        # A TOTP account may only change its password from a session
        # verified with the second factor
        if state.has_totp and not state.session_token_id:
            raise UnverifiedSessionError()

    async def _get_session_status(self, state: ChangePasswordState) -> None:
        if not state.session_token_id:
            state.verified_status = False
            return

        session = await self._tokens.session_token(state.session_token_id)
        if session.uid != state.uid:
            raise InvalidTokenError()
        state.previous_session = session
        state.verified_status = session.token_verified
        state.originating_device_id = session.device_id

        if state.has_totp and session.authenticator_assurance_level <= 1:
            raise UnverifiedSessionError()

    async def _fetch_devices(self, state: ChangePasswordState) -> None:
        devices = await self._accounts.devices(state.uid)
        # The originating device learns about the change from its own response
        if state.originating_device_id:
            devices = [d for d in devices if d.id != state.originating_device_id]
        state.devices_to_notify = devices

    async def _change_password(
        self, context: RequestContext, state: ChangePasswordState
    ) -> None:
        auth_salt = random_hex(32)
        password = Password(state.auth_pw, auth_salt, self._settings.verifier_version)

        await self._tokens.delete_password_change_token(state.token)

        verify_hash = await asyncio.to_thread(password.verify_hash)
        material = AuthMaterial(
            auth_salt=auth_salt,
            verify_hash=verify_hash,
            wrap_wrap_kb=password.wrap(state.wrap_kb),
            verifier_version=password.version,
            keys_have_changed=False,
        )
        state.account = await self._accounts.reset_account(state.uid, material)
        context.emit_metrics_event("account.changedPassword", uid=state.uid)
        log.info("password_changed", uid=state.uid)

    async def _notify(self, context: RequestContext, state: ChangePasswordState) -> None:
        await self._notifications.devices_password_changed(
            state.uid, state.devices_to_notify
        )
        emails = await self._accounts.account_emails(state.uid)
        await self._notifications.password_changed(
            state.uid, emails, context.client_address, context.accept_language
        )

    async def _create_session(
        self, context: RequestContext, state: ChangePasswordState
    ) -> None:
        account = state.account
        # The new session inherits the verification status of the old one,
        # unless customs marked the request suspect
        verified = state.verified_status and not context.is_suspicious
        verification_id = None if verified else random_hex(16)
        state.session = await self._tokens.create_session_token(
            uid=account.uid,
            email=account.email,
            email_code=account.email_code,
            email_verified=account.email_verified,
            verifier_set_at=account.verifier_set_at,
            must_verify=state.wants_keys,
            token_verification_id=verification_id,
            user_agent=context.user_agent,
        )

    async def _verify_session(self, state: ChangePasswordState) -> None:
        previous = state.previous_session
        if previous is None or not previous.verification_method:
            return
        await self._tokens.verify_tokens_with_method(
            state.session.id, previous.verification_method
        )
        state.session.verification_method = previous.verification_method

    async def _create_key_fetch(self, state: ChangePasswordState) -> None:
        if not state.wants_keys:
            return
        account = state.account
        # Verified on purpose: no email confirmation loop after a change
        state.key_fetch = await self._tokens.create_key_fetch_token(
            account.uid, account.k_a, state.wrap_kb, account.email_verified
        )

    @staticmethod
    def _build_response(state: ChangePasswordState) -> SessionGrantResponse:
        # Legacy clients do not send a session token and get an empty body
        if not state.session_token_id:
            return SessionGrantResponse()

        session = state.session
        response = SessionGrantResponse(
            uid=session.uid,
            session_token=session.data,
            verified=session.email_verified and session.token_verified,
            auth_at=session.auth_at(),
        )
        if state.wants_keys and state.key_fetch is not None:
            response.key_fetch_token = state.key_fetch.data
        return response
