"""Unit tests for request and response DTOs."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from schemas.dto.requests.password import (
    AccountResetRequest,
    PasswordChangeFinishRequest,
    PasswordChangeStartRequest,
    PasswordForgotSendCodeRequest,
    PasswordForgotVerifyCodeRequest,
)
from schemas.dto.responses.common import ErrorResponse, HealthResponse
from schemas.dto.responses.password import (
    PasswordForgotCodeResponse,
    SessionGrantResponse,
)

AUTH_PW = "aa" * 32


# ── Requests ──────────────────────────────────────────────────────────────────


class TestPasswordChangeStartRequest:
    def test_camel_case_input(self):
        body = PasswordChangeStartRequest.model_validate(
            {"email": " user@example.com ", "oldAuthPW": AUTH_PW}
        )
        assert body.email == "user@example.com"
        assert body.old_auth_pw == AUTH_PW

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "nope", "oldAuthPW": AUTH_PW},
            {"email": "user@example.com", "oldAuthPW": "aa"},
            {"email": "user@example.com", "oldAuthPW": "zz" * 32},
            {"email": "user@example.com"},
        ],
        ids=["bad_email", "short_auth_pw", "non_hex_auth_pw", "missing_auth_pw"],
    )
    def test_invalid(self, payload):
        with pytest.raises(ValidationError):
            PasswordChangeStartRequest.model_validate(payload)


class TestPasswordChangeFinishRequest:
    def test_session_token_optional(self):
        body = PasswordChangeFinishRequest.model_validate(
            {"authPW": AUTH_PW, "wrapKb": "bb" * 32}
        )
        assert body.session_token is None

    def test_session_token_must_be_64_hex(self):
        with pytest.raises(ValidationError):
            PasswordChangeFinishRequest.model_validate(
                {"authPW": AUTH_PW, "wrapKb": "bb" * 32, "sessionToken": "abc"}
            )


class TestPasswordForgotSendCodeRequest:
    def test_with_metrics_context(self):
        body = PasswordForgotSendCodeRequest.model_validate(
            {
                "email": "user@example.com",
                "redirectTo": "https://firefox.com/",
                "metricsContext": {"flowId": "f" * 64},
            }
        )
        assert body.redirect_to == "https://firefox.com/"
        assert body.metrics_context.flow_id == "f" * 64

    def test_service_charset(self):
        with pytest.raises(ValidationError):
            PasswordForgotSendCodeRequest.model_validate(
                {"email": "user@example.com", "service": "sync<script>"}
            )


class TestPasswordForgotVerifyCodeRequest:
    def test_recovery_key_flag_defaults_false(self):
        body = PasswordForgotVerifyCodeRequest.model_validate({"code": "ab" * 16})
        assert body.account_reset_with_recovery_key is False

    @pytest.mark.parametrize("code", ["ab" * 8, "ab" * 17, "zz" * 16], ids=["short", "long", "non_hex"])
    def test_code_shape(self, code):
        with pytest.raises(ValidationError):
            PasswordForgotVerifyCodeRequest.model_validate({"code": code})


def test_account_reset_request_defaults():
    body = AccountResetRequest.model_validate({"authPW": AUTH_PW})
    assert body.wrap_kb is None
    assert body.recovery_key_id is None
    assert body.session_token is False


# ── Responses ─────────────────────────────────────────────────────────────────


def test_code_response_serializes_camel_case():
    resp = PasswordForgotCodeResponse(
        password_forgot_token="ab" * 32, ttl=3600, code_length=32, tries=3
    )
    assert resp.model_dump(by_alias=True) == {
        "passwordForgotToken": "ab" * 32,
        "ttl": 3600,
        "codeLength": 32,
        "tries": 3,
    }


def test_empty_session_grant_is_legacy_body():
    assert SessionGrantResponse().model_dump(by_alias=True, exclude_none=True) == {}


def test_error_response_keeps_extras():
    resp = ErrorResponse.model_validate(
        {"code": 400, "errno": 105, "error": "Bad Request", "message": "x", "tries": 1}
    )
    assert resp.model_dump()["tries"] == 1


def test_health_response():
    assert HealthResponse(status="healthy", checks={"mongodb": "ok"}).status == "healthy"
