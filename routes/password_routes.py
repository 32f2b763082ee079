"""
Password change and password-forgot endpoints.

POST /password/change/start
POST /password/change/finish?keys=
POST /password/forgot/send_code?service=
POST /password/forgot/resend_code?service=
POST /password/forgot/verify_code
GET  /password/forgot/status

Handlers only translate between DTOs and service calls. Every business
rule lives in services/.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dependencies import (
    get_password_change_service,
    get_password_reset_service,
    get_request_context,
    password_change_token,
    password_forgot_token,
)
from schemas.dto.requests.password import (
    PasswordChangeFinishRequest,
    PasswordChangeStartRequest,
    PasswordForgotResendCodeRequest,
    PasswordForgotSendCodeRequest,
    PasswordForgotVerifyCodeRequest,
)
from schemas.dto.responses.password import (
    PasswordChangeStartResponse,
    PasswordForgotCodeResponse,
    PasswordForgotStatusResponse,
    PasswordForgotVerifyCodeResponse,
    SessionGrantResponse,
)
from schemas.models.token import PasswordChangeToken, PasswordForgotToken
from services.context import RequestContext
from services.password_change import PasswordChangeService
from services.password_reset import PasswordResetService, ResetConfirmation

router = APIRouter(prefix="/password", tags=["password"])


@router.post("/change/start", response_model=PasswordChangeStartResponse)
async def change_start(
    body: PasswordChangeStartRequest,
    context: RequestContext = Depends(get_request_context),
    service: PasswordChangeService = Depends(get_password_change_service),
) -> PasswordChangeStartResponse:
    return await service.start(context, body.email, body.old_auth_pw)


@router.post(
    "/change/finish",
    response_model=SessionGrantResponse,
    response_model_exclude_none=True,
)
async def change_finish(
    body: PasswordChangeFinishRequest,
    keys: bool = Query(False),
    token: PasswordChangeToken = Depends(password_change_token),
    context: RequestContext = Depends(get_request_context),
    service: PasswordChangeService = Depends(get_password_change_service),
) -> SessionGrantResponse:
    return await service.finish(
        context,
        token,
        auth_pw=body.auth_pw,
        wrap_kb=body.wrap_kb,
        session_token_id=body.session_token,
        wants_keys=keys,
    )


@router.post("/forgot/send_code", response_model=PasswordForgotCodeResponse)
async def forgot_send_code(
    body: PasswordForgotSendCodeRequest,
    service_query: Optional[str] = Query(None, alias="service"),
    context: RequestContext = Depends(get_request_context),
    service: PasswordResetService = Depends(get_password_reset_service),
) -> PasswordForgotCodeResponse:
    return await service.send_code(
        context,
        body.email,
        service=body.service or service_query,
        redirect_to=body.redirect_to,
        resume=body.resume,
        metrics_context=body.metrics_context,
    )


@router.post("/forgot/resend_code", response_model=PasswordForgotCodeResponse)
async def forgot_resend_code(
    body: PasswordForgotResendCodeRequest,
    service_query: Optional[str] = Query(None, alias="service"),
    token: PasswordForgotToken = Depends(password_forgot_token),
    context: RequestContext = Depends(get_request_context),
    service: PasswordResetService = Depends(get_password_reset_service),
) -> PasswordForgotCodeResponse:
    return await service.resend_code(
        context,
        token,
        service=body.service or service_query,
        redirect_to=body.redirect_to,
        resume=body.resume,
    )


@router.post("/forgot/verify_code", response_model=PasswordForgotVerifyCodeResponse)
async def forgot_verify_code(
    body: PasswordForgotVerifyCodeRequest,
    token: PasswordForgotToken = Depends(password_forgot_token),
    context: RequestContext = Depends(get_request_context),
    service: PasswordResetService = Depends(get_password_reset_service),
) -> PasswordForgotVerifyCodeResponse:
    confirmation = (
        ResetConfirmation.DEFERRED
        if body.account_reset_with_recovery_key
        else ResetConfirmation.SEND_NOW
    )
    return await service.verify_code(context, token, body.code, confirmation)


@router.get("/forgot/status", response_model=PasswordForgotStatusResponse)
async def forgot_status(
    token: PasswordForgotToken = Depends(password_forgot_token),
    context: RequestContext = Depends(get_request_context),
    service: PasswordResetService = Depends(get_password_reset_service),
) -> PasswordForgotStatusResponse:
    return await service.status(context, token)
