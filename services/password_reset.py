"""
Password-forgot flow.

    NoToken ──send_code──▶ ForgotTokenActive ──verify_code──▶ VerifiedResetPending
                             │    ▲   │                        (AccountResetToken)
                   resend_code└────┘   └──N wrong codes / expired──▶ Exhausted
                                                                     (token deleted)

The forgot-token is the bearer credential for every step after send_code.
Customs is consulted before each transition; notification failures are
logged by NotificationFanout and never undo a committed transition.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from errors import (
    CannotResetPasswordWithSecondaryEmailError,
    InvalidRequestParameterError,
    InvalidVerificationCodeError,
    UnknownAccountError,
)
from infrastructure.cache.metrics_context import MetricsContextStore
from infrastructure.customs.protocol import CustomsGate
from repositories.protocol import AccountStore, TokenStore
from schemas.dto.responses.password import (
    PasswordForgotCodeResponse,
    PasswordForgotStatusResponse,
    PasswordForgotVerifyCodeResponse,
)
from schemas.models.account import AccountRecord
from schemas.models.metrics import MetricsContext
from schemas.models.token import PasswordForgotToken
from services.context import RequestContext
from services.notifications import NotificationFanout
from shared.crypto import buffers_are_equal
from shared.logging import get_logger
from shared.validators import emails_match, validate_redirect_to

log = get_logger(__name__)


class ResetConfirmation(str, Enum):
    """Who sends the "your password was reset" email after verify_code."""

    SEND_NOW = "send_now"
    # Account-recovery-key resets: /account/reset sends it once the key is used
    DEFERRED = "deferred"


class PasswordResetService:
    def __init__(
        self,
        tokens: TokenStore,
        accounts: AccountStore,
        customs: CustomsGate,
        notifications: NotificationFanout,
        metrics_contexts: MetricsContextStore,
        redirect_domain: Optional[str] = None,
    ) -> None:
        self._tokens = tokens
        self._accounts = accounts
        self._customs = customs
        self._notifications = notifications
        self._metrics_contexts = metrics_contexts
        self._redirect_domain = redirect_domain

    def _check_redirect(self, redirect_to: Optional[str]) -> None:
        if redirect_to is None or self._redirect_domain is None:
            return
        if not validate_redirect_to(redirect_to, self._redirect_domain):
            raise InvalidRequestParameterError(validation=["redirectTo"])

    async def _join_flow(self, context: RequestContext, token_id: str) -> None:
        context.metrics.use_context(await self._metrics_contexts.get(token_id))

    async def _lookup_account(self, context: RequestContext, email: str) -> AccountRecord:
        try:
            return await self._accounts.account_record(email)
        except UnknownAccountError as e:
            await self._customs.flag(context.client_address, email=email, errno=e.errno)
            raise

    @staticmethod
    def _code_response(token: PasswordForgotToken) -> PasswordForgotCodeResponse:
        return PasswordForgotCodeResponse(
            password_forgot_token=token.data or "",
            ttl=token.ttl(),
            code_length=len(token.pass_code),
            tries=token.tries,
        )

    async def send_code(
        self,
        context: RequestContext,
        email: str,
        *,
        service: Optional[str] = None,
        redirect_to: Optional[str] = None,
        resume: Optional[str] = None,
        metrics_context: Optional[MetricsContext] = None,
    ) -> PasswordForgotCodeResponse:
        self._check_redirect(redirect_to)
        context.metrics.use_context(metrics_context)
        context.emit_metrics_event("password.forgot.send_code.start")

        await self._customs.check(context, email, "passwordForgotSendCode")
        account = await self._lookup_account(context, email)
        if not emails_match(account.primary_email.normalized_email, email):
            raise CannotResetPasswordWithSecondaryEmailError()

        token = await self._tokens.create_password_forgot_token(account)
        await self._metrics_contexts.stash(token.id, context.metrics.context)

        await self._notifications.recovery_code(
            account.emails or [account.primary_email],
            token,
            service=service,
            redirect_to=redirect_to,
            resume=resume,
            accept_language=context.accept_language,
        )
        context.emit_metrics_event("password.forgot.send_code.completed", uid=token.uid)
        log.info("password_forgot_code_sent", uid=token.uid, token_id=token.id)
        return self._code_response(token)

    async def resend_code(
        self,
        context: RequestContext,
        token: PasswordForgotToken,
        *,
        service: Optional[str] = None,
        redirect_to: Optional[str] = None,
        resume: Optional[str] = None,
    ) -> PasswordForgotCodeResponse:
        """Send the same code again. Neither tries nor ttl change."""
        self._check_redirect(redirect_to)
        await self._join_flow(context, token.id)
        context.emit_metrics_event("password.forgot.resend_code.start")

        await self._customs.check(context, token.email, "passwordForgotResendCode")

        emails = await self._accounts.account_emails(token.uid)
        await self._notifications.recovery_code(
            emails,
            token,
            service=service,
            redirect_to=redirect_to,
            resume=resume,
            accept_language=context.accept_language,
        )
        context.emit_metrics_event("password.forgot.resend_code.completed", uid=token.uid)
        log.info("password_forgot_code_resent", uid=token.uid, token_id=token.id)
        return self._code_response(token)

    async def _fail_verify_attempt(self, token: PasswordForgotToken) -> None:
        exhausted = token.fail_attempt()
        if exhausted or token.is_expired():
            await self._tokens.delete_password_forgot_token(token)
            log.info(
                "password_forgot_token_exhausted",
                uid=token.uid,
                token_id=token.id,
                expired=token.is_expired(),
            )
        else:
            await self._tokens.update_password_forgot_token(token)

    async def verify_code(
        self,
        context: RequestContext,
        token: PasswordForgotToken,
        code: str,
        confirmation: ResetConfirmation = ResetConfirmation.SEND_NOW,
    ) -> PasswordForgotVerifyCodeResponse:
        await self._join_flow(context, token.id)
        context.emit_metrics_event("password.forgot.verify_code.start")

        await self._customs.check(context, token.email, "passwordForgotVerifyCode")

        code_matches = buffers_are_equal(token.pass_code, code.lower())
        if not (code_matches and token.ttl() > 0):
            await self._fail_verify_attempt(token)
            log.info(
                "password_forgot_code_rejected",
                uid=token.uid,
                tries=token.tries,
                ttl=token.ttl(),
            )
            raise InvalidVerificationCodeError(tries=token.tries, ttl=token.ttl())

        reset_token = await self._tokens.forgot_password_verified(token)
        await self._metrics_contexts.propagate(token.id, reset_token.id)

        if confirmation is ResetConfirmation.SEND_NOW:
            emails = await self._accounts.account_emails(token.uid)
            await self._notifications.password_reset(
                token.uid, emails, context.accept_language
            )

        context.emit_metrics_event("password.forgot.verify_code.completed", uid=token.uid)
        log.info(
            "password_forgot_code_verified",
            uid=token.uid,
            confirmation=confirmation.value,
        )
        return PasswordForgotVerifyCodeResponse(account_reset_token=reset_token.data or "")

    async def status(
        self, context: RequestContext, token: PasswordForgotToken
    ) -> PasswordForgotStatusResponse:
        await self._customs.check_ip_only(context, "passwordForgotStatus")
        return PasswordForgotStatusResponse(tries=token.tries, ttl=token.ttl())
