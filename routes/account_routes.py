"""
Account reset and session status endpoints.

POST /account/reset?keys=   bearer AccountResetToken
GET  /session/status        bearer SessionToken
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from dependencies import (
    account_reset_token,
    get_account_reset_service,
    get_request_context,
    session_token,
)
from schemas.dto.requests.password import AccountResetRequest
from schemas.dto.responses.password import SessionGrantResponse, SessionStatusResponse
from schemas.models.token import AccountResetToken, SessionToken
from services.account_reset import AccountResetService
from services.context import RequestContext

router = APIRouter(tags=["account"])


@router.post(
    "/account/reset",
    response_model=SessionGrantResponse,
    response_model_exclude_none=True,
)
async def account_reset(
    body: AccountResetRequest,
    keys: bool = Query(False),
    token: AccountResetToken = Depends(account_reset_token),
    context: RequestContext = Depends(get_request_context),
    service: AccountResetService = Depends(get_account_reset_service),
) -> SessionGrantResponse:
    return await service.reset(
        context,
        token,
        auth_pw=body.auth_pw,
        wrap_kb=body.wrap_kb,
        recovery_key_id=body.recovery_key_id,
        wants_session=body.session_token or keys,
        wants_keys=keys,
    )


@router.get("/session/status", response_model=SessionStatusResponse)
async def session_status(
    token: SessionToken = Depends(session_token),
) -> SessionStatusResponse:
    # Sessions revoked by a password change or reset never get this far
    state = "verified" if token.token_verified else "unverified"
    return SessionStatusResponse(state=state, uid=token.uid)
