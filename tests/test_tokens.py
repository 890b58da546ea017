"""Tests for random data, salts and API keys."""

from __future__ import annotations

import base64
import string

import pytest

from accesslog_libs.crypto import (
    ALPHANUMERIC,
    EntropyFailure,
    InvalidLength,
    constant_time_compare,
    generate_api_key,
    generate_salt,
    generate_salt_hex,
    hash_api_key,
    random_bytes,
    random_hex,
    random_string,
    secure_token,
    validate_api_key_format,
    verify_api_key,
)


def test_random_bytes_length():
    assert len(random_bytes(1)) == 1
    assert len(random_bytes(64)) == 64


@pytest.mark.parametrize("length", [0, -5])
def test_random_helpers_reject_non_positive_length(length):
    with pytest.raises(InvalidLength):
        random_bytes(length)
    with pytest.raises(InvalidLength):
        random_string(length)
    with pytest.raises(InvalidLength):
        random_hex(length)


def test_invalid_length_is_value_error():
    """Callers catching ValueError also see length errors."""
    with pytest.raises(ValueError):
        random_bytes(0)


def test_random_string_length_and_alphabet():
    """Strings have the requested length and use only alphabet symbols."""
    for length in (1, 9, 32, 100):
        value = random_string(length)
        assert len(value) == length
        assert set(value) <= set(ALPHANUMERIC)


def test_random_string_no_collisions():
    values = {random_string(32) for _ in range(100)}
    assert len(values) == 100


def test_random_string_custom_alphabet():
    value = random_string(200, alphabet="ab")
    assert set(value) <= {"a", "b"}


def test_random_string_covers_alphabet():
    """Every symbol shows up in a long sample."""
    value = random_string(5000, alphabet="0123456789")
    assert set(value) == set("0123456789")


def test_random_string_rejects_bad_alphabet():
    with pytest.raises(InvalidLength):
        random_string(8, alphabet="a")


@pytest.mark.parametrize("length", [1, 7, 16, 33])
def test_random_hex_exact_length(length):
    value = random_hex(length)
    assert len(value) == length
    assert set(value) <= set(string.hexdigits.lower())


def test_generate_salt_is_base64():
    assert len(base64.b64decode(generate_salt(16), validate=True)) == 16
    assert len(generate_salt_hex(24)) == 24


def test_secure_token():
    token = secure_token()
    assert len(token) == 64
    assert token != secure_token()


def test_generate_api_key():
    key = generate_api_key("alt")
    assert key.startswith("alt_")
    assert len(key) == len("alt_") + 32
    assert validate_api_key_format(key)
    assert len(generate_api_key(length=20)) == 20


@pytest.mark.parametrize(
    "candidate, valid",
    [
        ("abcdefghijklmnop", True),
        ("alt_key-with_dash12", True),
        ("short", False),
        ("", False),
        ("abcdefghijklmnop!", False),
        ("abcdefghijklmnop\n", False),
    ],
)
def test_validate_api_key_format(candidate, valid):
    assert validate_api_key_format(candidate) is valid


def test_api_key_hash_and_verify():
    key = generate_api_key("alt")
    stored = hash_api_key(key)
    assert len(stored) == 64
    assert verify_api_key(key, stored)
    assert verify_api_key(key, stored.upper())
    assert not verify_api_key(key + "x", stored)


def test_constant_time_compare():
    assert constant_time_compare("same", "same")
    assert not constant_time_compare("same", "diff")
    assert not constant_time_compare("same", "same-but-longer")
    assert constant_time_compare("héllo", "héllo")


@pytest.mark.parametrize("error", [OSError("getrandom failed"), NotImplementedError()])
def test_entropy_failure(monkeypatch, error):
    """An unavailable OS random source surfaces as EntropyFailure."""

    def unavailable(length):
        raise error

    monkeypatch.setattr("accesslog_libs.crypto.tokens.secrets.token_bytes", unavailable)
    with pytest.raises(EntropyFailure):
        random_bytes(16)
    with pytest.raises(EntropyFailure):
        random_string(16)
    with pytest.raises(EntropyFailure):
        generate_api_key()
