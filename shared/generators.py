"""
Random code and token generators.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets

# Verification codes are 16 random bytes, sent hex-encoded (32 characters)
PASS_CODE_BYTES = 16
PASS_CODE_LENGTH = PASS_CODE_BYTES * 2

TOKEN_DATA_BYTES = 32


def random_hex(num_bytes: int) -> str:
    """Return *num_bytes* random bytes as lowercase hex."""
    return secrets.token_hex(num_bytes)


def generate_pass_code() -> str:
    """Generate the verification code mailed with a password-forgot token."""
    return random_hex(PASS_CODE_BYTES)


def generate_token_data() -> str:
    """Generate the bearer secret handed to the client for a new token.

    The stored token id is ``shared.crypto.hash_token(data)``.
    """
    return random_hex(TOKEN_DATA_BYTES)
