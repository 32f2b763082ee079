"""
Cryptographic helpers: token hashing, key derivation and password material.

Passwords arrive already client-stretched as ``authPW`` (32 bytes, hex). The
server stretches them once more with argon2id (via argon2-cffi's raw hash)
and derives two 32-byte values from the result with HKDF-SHA256:

- ``verifyHash``: stored, compared on sign-in / password change
- ``wrapwrapKey``: XORed with the client's ``wrapKb`` to produce the stored
  ``wrapWrapKb``; the server never learns ``wrapKb`` at rest.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Union

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

KEY_NAMESPACE = b"identity.mozilla.com/picl/v1/"

_HashInput = Union[str, bytes]


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Token ids are derived from the bearer secret handed to the client, so
    the plaintext secret is never persisted.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def buffers_are_equal(a: _HashInput, b: _HashInput) -> bool:
    """Constant-time equality for codes and hashes of possibly unequal length."""
    if isinstance(a, str):
        a = a.encode("utf-8")
    if isinstance(b, str):
        b = b.encode("utf-8")
    return hmac.compare_digest(a, b)


def hkdf(ikm: bytes, info: str, salt: bytes = b"", length: int = 32) -> bytes:
    """HKDF-SHA256 with the account key namespace prefixed to *info*."""
    return HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt or None,
        info=KEY_NAMESPACE + info.encode("utf-8"),
    ).derive(ikm)


def xor_hex(a: str, b: str) -> str:
    """XOR two equal-length hex strings."""
    left, right = bytes.fromhex(a), bytes.fromhex(b)
    if len(left) != len(right):
        raise ValueError("xor operands must be the same length")
    return bytes(x ^ y for x, y in zip(left, right)).hex()


class Password:
    """Server-side password material for one ``authPW``/``authSalt`` pair.

    ``verifier_version`` 0 skips the argon2 stretch; it exists for accounts
    migrated from the unstretched scheme and for fast test fixtures.
    """

    def __init__(self, auth_pw: str, auth_salt: str, verifier_version: int = 1):
        self.auth_pw = bytes.fromhex(auth_pw)
        self.auth_salt = bytes.fromhex(auth_salt)
        self.version = verifier_version
        self._stretched: bytes | None = None

    def stretched(self) -> bytes:
        if self._stretched is None:
            if self.version == 0:
                self._stretched = self.auth_pw
            else:
                self._stretched = hash_secret_raw(
                    secret=self.auth_pw,
                    salt=self.auth_salt,
                    time_cost=2,
                    memory_cost=19456,
                    parallelism=1,
                    hash_len=32,
                    type=Type.ID,
                )
        return self._stretched

    def verify_hash(self) -> str:
        return hkdf(self.stretched(), "verifyHash", self.auth_salt).hex()

    def matches(self, verify_hash: str) -> bool:
        return buffers_are_equal(self.verify_hash(), verify_hash)

    def wrap(self, wrap_kb: str) -> str:
        key = hkdf(self.stretched(), "wrapwrapKey", self.auth_salt).hex()
        return xor_hex(key, wrap_kb)

    # XOR is its own inverse
    unwrap = wrap
