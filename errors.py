"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. Every error carries an HTTP status
and a stable numeric ``errno`` that clients branch and localise on. The global
exception handler converts AppError subclasses to the wire format:

    {"code": 400, "errno": 105, "error": "Bad Request",
     "message": "Invalid verification code", "tries": 2, "ttl": 3540}

Non-AppError exceptions become errno 999 (with Sentry reporting in production).
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class ERRNO:
    ACCOUNT_UNKNOWN = 102
    INCORRECT_PASSWORD = 103
    INVALID_VERIFICATION_CODE = 105
    INVALID_PARAMETER = 107
    INVALID_TOKEN = 110
    THROTTLED = 114
    REQUEST_BLOCKED = 125
    SESSION_UNVERIFIED = 138
    CANNOT_RESET_PASSWORD_WITH_SECONDARY_EMAIL = 145
    BACKEND_SERVICE_FAILURE = 203
    UNEXPECTED_ERROR = 999


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    errno: int = ERRNO.UNEXPECTED_ERROR
    default_message: str = "Unspecified error"

    def __init__(
        self,
        message: Optional[str] = None,
        **extra: Any,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.extra = {k: v for k, v in extra.items() if v is not None}

    def to_dict(self) -> dict:
        payload: dict = {
            "code": self.status_code,
            "errno": self.errno,
            "error": HTTPStatus(self.status_code).phrase,
            "message": self.message,
        }
        payload.update(self.extra)
        return payload


class UnknownAccountError(AppError):
    status_code = 400
    errno = ERRNO.ACCOUNT_UNKNOWN
    default_message = "Unknown account"

    def __init__(self, email: Optional[str] = None) -> None:
        super().__init__(email=email)


class IncorrectPasswordError(AppError):
    status_code = 400
    errno = ERRNO.INCORRECT_PASSWORD
    default_message = "Incorrect password"

    def __init__(self, email: Optional[str] = None) -> None:
        super().__init__(email=email)


class InvalidVerificationCodeError(AppError):
    status_code = 400
    errno = ERRNO.INVALID_VERIFICATION_CODE
    default_message = "Invalid verification code"

    def __init__(self, tries: int, ttl: int) -> None:
        super().__init__(tries=tries, ttl=ttl)
        self.tries = tries
        self.ttl = ttl


class InvalidRequestParameterError(AppError):
    status_code = 400
    errno = ERRNO.INVALID_PARAMETER
    default_message = "Invalid parameter in request body"

    def __init__(self, validation: Optional[Any] = None) -> None:
        super().__init__(validation=validation)


class InvalidTokenError(AppError):
    status_code = 401
    errno = ERRNO.INVALID_TOKEN
    default_message = "The authentication token could not be found"


class TooManyRequestsError(AppError):
    status_code = 429
    errno = ERRNO.THROTTLED
    default_message = "Client has sent too many requests"

    def __init__(
        self,
        retry_after: int,
        retry_after_localized: Optional[str] = None,
        can_unblock: bool = False,
    ) -> None:
        super().__init__(
            retryAfter=retry_after,
            retryAfterLocalized=retry_after_localized,
            verificationMethod="email-captcha" if can_unblock else None,
            verificationReason="login" if can_unblock else None,
        )
        self.retry_after = retry_after
        self.can_unblock = can_unblock


class RequestBlockedError(AppError):
    status_code = 400
    errno = ERRNO.REQUEST_BLOCKED
    default_message = "The request was blocked for security reasons"

    def __init__(self, can_unblock: bool = False) -> None:
        super().__init__(
            verificationMethod="email-captcha" if can_unblock else None,
            verificationReason="login" if can_unblock else None,
        )
        self.can_unblock = can_unblock


class UnverifiedSessionError(AppError):
    status_code = 400
    errno = ERRNO.SESSION_UNVERIFIED
    default_message = "Unconfirmed session"


class CannotResetPasswordWithSecondaryEmailError(AppError):
    status_code = 400
    errno = ERRNO.CANNOT_RESET_PASSWORD_WITH_SECONDARY_EMAIL
    default_message = "Can not reset password with secondary email"


class BackendUnavailableError(AppError):
    """A backend (customs, storage) timed out or failed. Retryable."""

    status_code = 503
    errno = ERRNO.BACKEND_SERVICE_FAILURE
    default_message = "A backend service request failed."

    def __init__(self, service: str, message: Optional[str] = None) -> None:
        super().__init__(message, service=service)
        self.service = service


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        headers = None
        if isinstance(exc, TooManyRequestsError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_dict(), headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        err = InvalidRequestParameterError(
            validation=[
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
                for e in exc.errors()
            ]
        )
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry, when initialised, captures the exception before this runs
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content=AppError("An internal server error occurred.").to_dict(),
        )
