"""Tests for game token generation and masking."""

from arena_auth.core.security import generate_token, mask_token


def test_generated_tokens_are_unpredictable_hex():
    tokens = {generate_token() for _ in range(100)}

    assert len(tokens) == 100
    for token in tokens:
        assert len(token) == 32
        int(token, 16)


def test_mask_token():
    assert mask_token("0123456789abcdef") == "0123...cdef"
    assert mask_token(None) is None
