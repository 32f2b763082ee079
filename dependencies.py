"""
FastAPI dependency providers.

Services and stores are built once in the app lifespan and stored on
app.state; these providers only hand them out. Bearer-token providers
resolve ``Authorization: Bearer <token>`` to the stored token and raise
InvalidTokenError (401, errno 110) when the header is missing or the token
is unknown. Account-reset tokens past their ttl are rejected the same way.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import InvalidTokenError
from repositories.protocol import TokenStore
from schemas.models.token import (
    AccountResetToken,
    PasswordChangeToken,
    PasswordForgotToken,
    SessionToken,
)
from services.account_reset import AccountResetService
from services.context import RequestContext
from services.metrics import FlowMetrics
from services.password_change import PasswordChangeService
from services.password_reset import PasswordResetService
from shared.crypto import hash_token
from shared.ip_utils import get_client_ip
from shared.validators import is_hex


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_password_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.password_reset_service


def get_password_change_service(request: Request) -> PasswordChangeService:
    return request.app.state.password_change_service


def get_account_reset_service(request: Request) -> AccountResetService:
    return request.app.state.account_reset_service


async def get_request_context(
    request: Request, settings: AppSettings = Depends(get_settings)
) -> RequestContext:
    """Copy what services need from the request into a RequestContext."""
    payload: Optional[dict[str, Any]] = None
    if request.method in ("POST", "PUT", "PATCH"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            payload = body

    client_address = get_client_ip(
        request,
        depth=settings.client_address_depth,
        trust_x_real_ip=settings.trust_x_real_ip,
    )
    return RequestContext(
        client_address=client_address,
        headers={k.lower(): v for k, v in request.headers.items()},
        query=dict(request.query_params),
        payload=payload,
        metrics=FlowMetrics(client_address=client_address),
    )


def bearer_token_id(request: Request) -> str:
    """Return the stored id of the bearer token on the request."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    credentials = credentials.strip()
    if scheme.lower() != "bearer" or not is_hex(credentials, 64):
        raise InvalidTokenError()
    request.state.bearer_token = credentials.lower()
    return hash_token(request.state.bearer_token)


async def password_forgot_token(
    request: Request,
    token_id: str = Depends(bearer_token_id),
    tokens: TokenStore = Depends(get_token_store),
) -> PasswordForgotToken:
    token = await tokens.password_forgot_token(token_id)
    token.data = request.state.bearer_token
    return token


async def account_reset_token(
    token_id: str = Depends(bearer_token_id),
    tokens: TokenStore = Depends(get_token_store),
) -> AccountResetToken:
    token = await tokens.account_reset_token(token_id)
    # The TTL index sweeps lazily; an expired token must not reach a reset
    if token.is_expired():
        raise InvalidTokenError()
    return token


async def password_change_token(
    token_id: str = Depends(bearer_token_id),
    tokens: TokenStore = Depends(get_token_store),
) -> PasswordChangeToken:
    return await tokens.password_change_token(token_id)


async def session_token(
    token_id: str = Depends(bearer_token_id),
    tokens: TokenStore = Depends(get_token_store),
) -> SessionToken:
    return await tokens.session_token(token_id)
