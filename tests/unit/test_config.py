"""Unit tests for AppSettings and sub-configs."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import (
    AppSettings,
    CustomsSettings,
    DatabaseSettings,
    RedisSettings,
    TokenSettings,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def with_mongo(monkeypatch):
    """Set the required MONGODB_URI so AppSettings can be instantiated."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    return monkeypatch


# ---------------------------------------------------------------------------
# DatabaseSettings
# ---------------------------------------------------------------------------


class TestDatabaseSettings:
    def test_loads_mongodb_uri(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        assert DatabaseSettings().mongodb_uri == "mongodb://localhost:27017/"

    def test_default_db_name(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        monkeypatch.delenv("DB_NAME", raising=False)
        assert DatabaseSettings().db_name == "fxa-auth"

    def test_missing_mongodb_uri_raises(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()


# ---------------------------------------------------------------------------
# RedisSettings
# ---------------------------------------------------------------------------


class TestRedisSettings:
    def test_redis_uri_optional(self, monkeypatch):
        monkeypatch.delenv("REDIS_URI", raising=False)
        assert RedisSettings().redis_uri is None

    def test_metrics_context_ttl(self, monkeypatch):
        monkeypatch.setenv("METRICS_CONTEXT_TTL_SECONDS", "60")
        assert RedisSettings().metrics_context_ttl_seconds == 60


# ---------------------------------------------------------------------------
# CustomsSettings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "url, expected",
    [
        ("none", False),
        ("NONE", False),
        ("http://127.0.0.1:7000", True),
    ],
    ids=["none", "none_uppercase", "url"],
)
def test_customs_enabled(monkeypatch, url, expected):
    monkeypatch.setenv("CUSTOMS_URL", url)
    assert CustomsSettings().enabled is expected


def test_customs_disabled_by_default(monkeypatch):
    monkeypatch.delenv("CUSTOMS_URL", raising=False)
    assert CustomsSettings().enabled is False


# ---------------------------------------------------------------------------
# TokenSettings
# ---------------------------------------------------------------------------


class TestTokenSettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "PASSWORD_FORGOT_TOKEN_TTL_SECONDS",
            "PASSWORD_FORGOT_TRIES",
            "ACCOUNT_RESET_TOKEN_TTL_SECONDS",
            "VERIFIER_VERSION",
        ):
            monkeypatch.delenv(var, raising=False)
        s = TokenSettings()
        assert s.password_forgot_token_ttl_seconds == 3600
        assert s.password_forgot_tries == 3
        assert s.account_reset_token_ttl_seconds == 900
        assert s.verifier_version == 1

    def test_tries_from_env(self, monkeypatch):
        monkeypatch.setenv("PASSWORD_FORGOT_TRIES", "5")
        assert TokenSettings().password_forgot_tries == 5


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(with_mongo, env, expected):
    with_mongo.setenv("ENV", env)
    assert AppSettings().is_production is expected


class TestAppSettings:
    def test_sub_configs_populated(self, with_mongo):
        s = AppSettings()
        for sub in ("db", "redis", "customs", "tokens", "email", "push", "logging", "sentry"):
            assert getattr(s, sub) is not None

    def test_sub_configs_read_same_env(self, with_mongo):
        with_mongo.setenv("PASSWORD_FORGOT_TRIES", "4")
        with_mongo.setenv("CUSTOMS_URL", "http://customs.internal")
        s = AppSettings()
        assert s.tokens.password_forgot_tries == 4
        assert s.customs.enabled is True

    def test_explicit_sub_config_kept(self, with_mongo):
        tokens = TokenSettings(password_forgot_tries=1)
        assert AppSettings(tokens=tokens).tokens.password_forgot_tries == 1

    def test_client_address_defaults(self, with_mongo):
        s = AppSettings()
        assert s.client_address_depth == 1
        assert s.trust_x_real_ip is False

    def test_client_address_depth_from_env(self, with_mongo):
        with_mongo.setenv("CLIENT_ADDRESS_DEPTH", "2")
        assert AppSettings().client_address_depth == 2

    def test_client_address_depth_must_be_positive(self, with_mongo):
        with_mongo.setenv("CLIENT_ADDRESS_DEPTH", "0")
        with pytest.raises(PydanticValidationError):
            AppSettings()
