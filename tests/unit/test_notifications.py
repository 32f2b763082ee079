"""Unit tests for NotificationFanout, RequestContext and FlowMetrics."""

from unittest.mock import AsyncMock

from schemas.models.account import Device
from schemas.models.metrics import MetricsContext
from schemas.models.token import PasswordForgotToken
from schemas.models.base import utcnow
from services.context import RequestContext
from services.metrics import FlowMetrics
from services.notifications import NotificationFanout
from tests.fakes import RecordingMailer, RecordingPush, make_account

UID = "cd" * 16


def _devices(count=2):
    return [Device(_id=f"device-{i}", uid=UID) for i in range(count)]


# ── NotificationFanout ───────────────────────────────────────────────────────


class TestNotificationFanout:
    async def test_recovery_code_carries_bearer_and_code(self, notifications, mailer):
        account = make_account()
        token = PasswordForgotToken(
            _id="ab" * 32,
            uid=account.uid,
            email=account.email,
            pass_code="ef" * 16,
            tries=3,
            created_at=utcnow(),
            ttl_seconds=3600,
            data="12" * 32,
        )

        ok = await notifications.recovery_code(
            account.emails, token, service="sync", accept_language="en-US"
        )

        assert ok is True
        kind, details = mailer.sent[0]
        assert kind == "recovery"
        assert details["token"] == "12" * 32
        assert details["code"] == "ef" * 16
        assert details["service"] == "sync"

    async def test_mailer_exception_is_swallowed(self, push):
        fanout = NotificationFanout(RecordingMailer(fail=True), push)
        ok = await fanout.password_reset(UID, make_account().emails, "en")
        assert ok is False

    async def test_false_result_reported(self, push):
        mailer = RecordingMailer()
        mailer.send_password_changed_email = AsyncMock(return_value=False)
        fanout = NotificationFanout(mailer, push)

        ok = await fanout.password_changed(UID, [], "203.0.113.7", None)

        assert ok is False

    async def test_no_devices_skips_push(self, notifications, push):
        assert await notifications.devices_password_changed(UID, []) is True
        assert await notifications.devices_password_reset(UID, []) is True
        assert push.changed == [] and push.reset == []

    async def test_devices_pushed(self, notifications, push):
        devices = _devices()
        assert await notifications.devices_password_reset(UID, devices) is True
        assert push.reset == [(UID, devices)]

    async def test_push_exception_is_swallowed(self, mailer):
        push = RecordingPush()
        push.notify_password_changed = AsyncMock(side_effect=ConnectionError("down"))
        fanout = NotificationFanout(mailer, push)
        assert await fanout.devices_password_changed(UID, _devices(1)) is False


# ── RequestContext ───────────────────────────────────────────────────────────


class TestRequestContext:
    def test_sanitized_payload_drops_passwords(self):
        ctx = RequestContext(
            client_address="203.0.113.7",
            payload={"email": "user@example.com", "authPW": "x", "oldAuthPW": "y"},
        )
        assert ctx.sanitized_payload() == {"email": "user@example.com"}

    def test_sanitized_payload_none(self):
        assert RequestContext(client_address="").sanitized_payload() is None

    def test_header_shortcuts(self, context):
        assert context.accept_language == "en-US"
        assert context.user_agent == "pytest"

    def test_emit_metrics_event_records(self, context):
        context.emit_metrics_event("password.forgot.send_code.start")
        assert context.metrics.emitted == ["password.forgot.send_code.start"]


# ── FlowMetrics ──────────────────────────────────────────────────────────────


class TestFlowMetrics:
    def test_use_context_adopts_stashed(self):
        metrics = FlowMetrics()
        stashed = MetricsContext(flow_id="a" * 64)
        metrics.use_context(stashed)
        assert metrics.context is stashed

    def test_use_context_keeps_request_flow(self):
        own = MetricsContext(flow_id="b" * 64)
        metrics = FlowMetrics(context=own)
        metrics.use_context(MetricsContext(flow_id="a" * 64))
        assert metrics.context is own

    def test_use_context_replaces_context_without_flow_id(self):
        metrics = FlowMetrics(context=MetricsContext())
        stashed = MetricsContext(flow_id="a" * 64)
        metrics.use_context(stashed)
        assert metrics.context is stashed

    def test_emit_never_raises_without_context(self):
        metrics = FlowMetrics(client_address="203.0.113.7")
        metrics.emit("password.change.start", uid=UID)
        assert metrics.emitted == ["password.change.start"]
