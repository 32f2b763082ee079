import pytest

from config import TokenSettings
from infrastructure.cache.metrics_context import MetricsContextStore
from services.account_reset import AccountResetService
from services.context import RequestContext
from services.notifications import NotificationFanout
from services.password_change import PasswordChangeService
from services.password_reset import PasswordResetService
from tests.fakes import (
    FakeAccountStore,
    FakeTokenStore,
    RecordingCustoms,
    RecordingMailer,
    RecordingPush,
    make_account,
)


@pytest.fixture
def token_settings():
    # Version 0 skips argon2 so service tests stay fast
    return TokenSettings(verifier_version=0)


@pytest.fixture
def tokens():
    return FakeTokenStore(tries=3)


@pytest.fixture
def accounts(tokens):
    return FakeAccountStore(tokens)


@pytest.fixture
def account(accounts):
    return accounts.add(make_account("user@example.com", secondary=["alt@example.com"]))


@pytest.fixture
def customs():
    return RecordingCustoms()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def push():
    return RecordingPush()


@pytest.fixture
def notifications(mailer, push):
    return NotificationFanout(mailer, push)


@pytest.fixture
def context():
    return RequestContext(
        client_address="203.0.113.7",
        headers={"accept-language": "en-US", "user-agent": "pytest"},
    )


@pytest.fixture
def reset_service(tokens, accounts, customs, notifications):
    return PasswordResetService(
        tokens,
        accounts,
        customs,
        notifications,
        MetricsContextStore(redis_client=None),
        redirect_domain="example.com",
    )


@pytest.fixture
def change_service(tokens, accounts, customs, notifications, token_settings):
    return PasswordChangeService(tokens, accounts, customs, notifications, token_settings)


@pytest.fixture
def account_reset_service(tokens, accounts, customs, notifications, token_settings):
    return AccountResetService(tokens, accounts, customs, notifications, token_settings)
