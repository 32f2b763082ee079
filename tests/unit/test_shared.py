"""
Unit tests for the shared/ utility modules.

Covers:
- shared.crypto      (hash_token, buffers_are_equal, hkdf, xor_hex, Password)
- shared.generators  (generate_pass_code, generate_token_data)
- shared.validators  (normalize_email, emails_match, validate_email,
                      validate_redirect_to, is_hex)
- shared.l10n        (negotiate_language, localize_retry_after)
- shared.ip_utils    (get_client_ip)
- shared.logging     (should_sample, hash_ip)
"""

from __future__ import annotations

import hashlib
import hmac
from unittest.mock import MagicMock

import pytest

from shared import logging_config
from shared.crypto import (
    KEY_NAMESPACE,
    Password,
    buffers_are_equal,
    hash_token,
    hkdf,
    xor_hex,
)
from shared.generators import (
    PASS_CODE_LENGTH,
    generate_pass_code,
    generate_token_data,
)
from shared.ip_utils import get_client_ip
from shared.l10n import localize_retry_after, negotiate_language
from shared.logging import hash_ip, should_sample
from shared.validators import (
    emails_match,
    is_hex,
    normalize_email,
    validate_email,
    validate_redirect_to,
)

AUTH_PW = "aa" * 32
SALT = "11" * 32


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request(headers: dict, client_host: str = "10.0.0.1") -> MagicMock:
    """Minimal mock of a FastAPI Request."""
    req = MagicMock()
    req.headers = headers
    req.client = MagicMock()
    req.client.host = client_host
    return req


# ---------------------------------------------------------------------------
# shared.crypto
# ---------------------------------------------------------------------------


def test_hash_token_known_value():
    assert hash_token("test") == hashlib.sha256(b"test").hexdigest()


def test_hash_token_distinct_inputs():
    assert hash_token("token_a") != hash_token("token_b")


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("abc", "abc", True),
        ("abc", "abd", False),
        ("abc", "abcd", False),
        (b"\x00\x01", b"\x00\x01", True),
    ],
    ids=["equal", "differs", "length_mismatch", "bytes"],
)
def test_buffers_are_equal(a, b, expected):
    assert buffers_are_equal(a, b) is expected


class TestHkdf:
    def test_length(self):
        assert len(hkdf(b"ikm", "verifyHash", b"salt", length=64)) == 64

    def test_info_separates_outputs(self):
        assert hkdf(b"ikm", "verifyHash") != hkdf(b"ikm", "wrapwrapKey")

    def test_deterministic(self):
        assert hkdf(b"ikm", "x", b"s") == hkdf(b"ikm", "x", b"s")

    def test_matches_rfc5869_with_namespaced_info(self):
        # Extract then a single expand block; empty salt means HashLen zeros
        prk = hmac.new(b"\x00" * 32, b"ikm", hashlib.sha256).digest()
        info = KEY_NAMESPACE + b"verifyHash"
        okm = hmac.new(prk, info + b"\x01", hashlib.sha256).digest()
        assert hkdf(b"ikm", "verifyHash") == okm


class TestXorHex:
    def test_self_inverse(self):
        key = "0f" * 32
        assert xor_hex(xor_hex("aa" * 32, key), key) == "aa" * 32

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            xor_hex("aa", "aabb")


class TestPassword:
    def test_matches_own_verify_hash(self):
        password = Password(AUTH_PW, SALT, 0)
        assert password.matches(password.verify_hash())

    def test_different_auth_pw_does_not_match(self):
        stored = Password(AUTH_PW, SALT, 0).verify_hash()
        assert not Password("bb" * 32, SALT, 0).matches(stored)

    def test_salt_changes_verify_hash(self):
        assert Password(AUTH_PW, SALT, 0).verify_hash() != Password(
            AUTH_PW, "22" * 32, 0
        ).verify_hash()

    def test_wrap_unwrap_round_trip(self):
        password = Password(AUTH_PW, SALT, 0)
        wrap_kb = "cd" * 32
        wrapped = password.wrap(wrap_kb)
        assert wrapped != wrap_kb
        assert password.unwrap(wrapped) == wrap_kb

    def test_version_one_stretches_with_argon2(self):
        v0 = Password(AUTH_PW, SALT, 0)
        v1 = Password(AUTH_PW, SALT, 1)
        assert v1.verify_hash() != v0.verify_hash()
        assert v1.matches(Password(AUTH_PW, SALT, 1).verify_hash())


# ---------------------------------------------------------------------------
# shared.generators
# ---------------------------------------------------------------------------


class TestGeneratePassCode:
    def test_length_and_alphabet(self):
        code = generate_pass_code()
        assert len(code) == PASS_CODE_LENGTH == 32
        assert is_hex(code)

    def test_unique(self):
        assert generate_pass_code() != generate_pass_code()


def test_generate_token_data_is_32_bytes_hex():
    data = generate_token_data()
    assert is_hex(data, 64)


# ---------------------------------------------------------------------------
# shared.validators
# ---------------------------------------------------------------------------


def test_normalize_email():
    assert normalize_email("  User@Example.COM ") == "user@example.com"


@pytest.mark.parametrize(
    "first, second, expected",
    [
        ("a@b.com", "A@B.com", True),
        ("a@b.com", "c@b.com", False),
    ],
    ids=["case_insensitive", "different"],
)
def test_emails_match(first, second, expected):
    assert emails_match(first, second) is expected


@pytest.mark.parametrize(
    "email, expected",
    [
        ("user@example.com", True),
        ("not-an-email", False),
        ("user@", False),
    ],
    ids=["valid", "no_at", "no_domain"],
)
def test_validate_email(email, expected):
    assert validate_email(email) is expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://firefox.com/settings", True),
        ("https://accounts.firefox.com/", True),
        ("https://firefox.com.evil.net/", False),
        ("https://evilfirefox.com/", False),
        ("javascript:alert(1)", False),
    ],
    ids=["apex", "subdomain", "suffix_attack", "lookalike", "not_http"],
)
def test_validate_redirect_to(url, expected):
    assert validate_redirect_to(url, "firefox.com") is expected


@pytest.mark.parametrize(
    "value, length, expected",
    [
        ("ab" * 32, 64, True),
        ("ab" * 32, 32, False),
        ("zz", None, False),
        ("abc", None, False),
    ],
    ids=["exact", "wrong_length", "not_hex", "odd_length"],
)
def test_is_hex(value, length, expected):
    assert is_hex(value, length) is expected


# ---------------------------------------------------------------------------
# shared.l10n
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, "en"),
        ("en-US,en;q=0.8", "en"),
        ("de-DE,de;q=0.9,en;q=0.5", "en"),
        ("xx", "en"),
    ],
    ids=["missing", "english", "english_fallback_in_list", "unsupported"],
)
def test_negotiate_language(header, expected):
    assert negotiate_language(header) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (10, "a few seconds"),
        (60, "a minute"),
        (713, "12 minutes"),
        (3600, "an hour"),
        (4 * 3600, "4 hours"),
        (86400, "a day"),
        (3 * 86400, "3 days"),
    ],
)
def test_localize_retry_after(seconds, expected):
    assert localize_retry_after(seconds, "en-US") == expected


# ---------------------------------------------------------------------------
# shared.ip_utils
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "headers, client_host, expected_ip",
    [
        ({"X-Forwarded-For": "11.22.33.44, 10.0.0.2"}, "10.0.0.1", "10.0.0.2"),
        ({"X-Forwarded-For": "2001:db8::1"}, "10.0.0.1", "2001:db8::1"),
        ({"X-Forwarded-For": "1.2.3.4, garbage"}, "10.0.0.1", "10.0.0.1"),
        ({"X-Real-IP": "55.66.77.88"}, "10.0.0.1", "10.0.0.1"),
        ({}, "192.168.1.50", "192.168.1.50"),
    ],
    ids=["rightmost_hop", "ipv6", "unparseable_falls_back", "real_ip_ignored", "fallback"],
)
def test_get_client_ip(headers, client_host, expected_ip):
    assert get_client_ip(_make_request(headers, client_host)) == expected_ip


def test_get_client_ip_ignores_client_written_entries():
    forged = [
        {"X-Forwarded-For": "1.1.1.1, 198.51.100.5"},
        {"X-Forwarded-For": "8.8.8.8, 9.9.9.9, 198.51.100.5"},
    ]
    assert {get_client_ip(_make_request(h)) for h in forged} == {"198.51.100.5"}


def test_get_client_ip_depth_counts_from_the_right():
    req = _make_request({"X-Forwarded-For": "1.1.1.1, 198.51.100.5, 10.0.0.2"})
    assert get_client_ip(req, depth=2) == "198.51.100.5"


def test_get_client_ip_short_chain_falls_back_to_peer():
    req = _make_request({"X-Forwarded-For": "198.51.100.5"}, client_host="10.0.0.9")
    assert get_client_ip(req, depth=2) == "10.0.0.9"


def test_get_client_ip_trusted_real_ip():
    req = _make_request({"X-Real-IP": "55.66.77.88"})
    assert get_client_ip(req, trust_x_real_ip=True) == "55.66.77.88"


def test_get_client_ip_forwarded_for_wins_over_real_ip():
    req = _make_request({"X-Forwarded-For": "198.51.100.5", "X-Real-IP": "5.6.7.8"})
    assert get_client_ip(req, trust_x_real_ip=True) == "198.51.100.5"


def test_get_client_ip_no_client_returns_empty():
    req = MagicMock()
    req.headers = {}
    req.client = None
    assert get_client_ip(req) == ""


# ---------------------------------------------------------------------------
# shared.logging
# ---------------------------------------------------------------------------


def test_should_sample_unknown_event_always():
    assert should_sample("something_else") is True


def test_should_sample_zero_rate(monkeypatch):
    monkeypatch.setitem(logging_config.SAMPLING_RATES, "customs_check", 0.0)
    assert should_sample("customs_check") is False


def test_hash_ip_in_production(monkeypatch):
    monkeypatch.setitem(logging_config._state, "production", True)
    hashed = hash_ip("203.0.113.7")
    assert hashed != "203.0.113.7"
    assert len(hashed) == 16


def test_hash_ip_passthrough_in_development(monkeypatch):
    monkeypatch.setitem(logging_config._state, "production", False)
    assert hash_ip("203.0.113.7") == "203.0.113.7"
    assert hash_ip(None) is None
