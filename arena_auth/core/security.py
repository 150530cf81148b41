"""Opaque game token utilities."""

import secrets

# 16 random bytes = 128 bits of entropy, hex encoded to 32 characters
TOKEN_BYTES = 16


def generate_token() -> str:
    """Generate a fresh opaque token with no separator characters."""
    return secrets.token_hex(TOKEN_BYTES)


def mask_token(token: str | None) -> str | None:
    """Shorten a token for log output."""
    if not token:
        return token
    return f"{token[:4]}...{token[-4:]}"
