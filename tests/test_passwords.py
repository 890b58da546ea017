"""Tests for password hashing."""

from __future__ import annotations

import pytest

from accesslog_libs.crypto import (
    Argon2Options,
    Argon2PasswordHasher,
    BcryptOptions,
    BcryptPasswordHasher,
    HashingFailure,
    InvalidInput,
    PasswordAlgorithm,
    get_hasher,
    hash_password,
    needs_rehash,
    verify_password,
)

# Small Argon2 parameters keep the suite fast
ARGON2_TEST_OPTIONS = Argon2Options(time_cost=1, memory_cost=8192, parallelism=1)


@pytest.fixture
def bcrypt_hasher(fast_bcrypt):
    return BcryptPasswordHasher(fast_bcrypt)


@pytest.fixture
def argon2_hasher():
    return Argon2PasswordHasher(ARGON2_TEST_OPTIONS)


def test_hash_password_round_trip():
    """A hashed password verifies with itself and not with another."""
    stored = hash_password("secret123", rounds=4)
    assert stored.startswith("$2b$04$")
    assert verify_password("secret123", stored)
    assert not verify_password("wrong", stored)


def test_hashes_are_salted(bcrypt_hasher):
    assert bcrypt_hasher.hash("secret123") != bcrypt_hasher.hash("secret123")


def test_bcrypt_verify_malformed_record(bcrypt_hasher):
    assert not bcrypt_hasher.verify("secret123", "not-a-bcrypt-hash")


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_options_bounds(rounds):
    with pytest.raises(InvalidInput):
        BcryptOptions(rounds=rounds)


def test_bcrypt_option_presets():
    assert BcryptOptions.fast().rounds == 4
    assert BcryptOptions.high_security().rounds == 14
    assert BcryptOptions().rounds == 12


def test_bcrypt_needs_rehash(bcrypt_hasher):
    stored = bcrypt_hasher.hash("secret123")
    assert not bcrypt_hasher.needs_rehash(stored)
    assert BcryptPasswordHasher(BcryptOptions(rounds=5)).needs_rehash(stored)
    assert needs_rehash(stored, rounds=5)
    assert not needs_rehash(stored, rounds=4)
    assert needs_rehash("garbage")


def test_argon2_round_trip(argon2_hasher):
    stored = argon2_hasher.hash("secret123")
    assert stored.startswith("$argon2id$")
    assert argon2_hasher.verify("secret123", stored)
    assert not argon2_hasher.verify("wrong", stored)
    assert not argon2_hasher.verify("secret123", "$argon2id$garbage")


def test_verify_password_detects_argon2(argon2_hasher):
    stored = argon2_hasher.hash("secret123")
    assert verify_password("secret123", stored)
    assert not verify_password("wrong", stored)


def test_argon2_needs_rehash_on_parameter_change(argon2_hasher):
    stored = argon2_hasher.hash("secret123")
    assert not argon2_hasher.needs_rehash(stored)
    stronger = Argon2PasswordHasher(
        Argon2Options(time_cost=2, memory_cost=8192, parallelism=1)
    )
    assert stronger.needs_rehash(stored)


@pytest.mark.parametrize("record", ["", "plaintext", "$1$md5crypt$abc"])
def test_verify_password_unknown_records(record):
    assert not verify_password("secret123", record)


def test_get_hasher():
    assert isinstance(get_hasher(), BcryptPasswordHasher)
    assert get_hasher(rounds=4).options.rounds == 4
    hasher = get_hasher(PasswordAlgorithm.ARGON2ID)
    assert isinstance(hasher, Argon2PasswordHasher)
    assert hasher.algorithm is PasswordAlgorithm.ARGON2ID


def test_configured_rounds(config):
    stored = hash_password("secret123", rounds=config.BCRYPT_ROUNDS)
    assert stored.startswith("$2b$04$")
    assert not needs_rehash(stored, rounds=config.BCRYPT_ROUNDS)


def test_bcrypt_input_limit(bcrypt_hasher):
    """Inputs over 72 bytes are refused instead of silently truncated."""
    assert bcrypt_hasher.verify("a" * 72, bcrypt_hasher.hash("a" * 72))
    with pytest.raises(HashingFailure):
        bcrypt_hasher.hash("a" * 73)
    with pytest.raises(HashingFailure):
        bcrypt_hasher.hash("é" * 37)


def test_bcrypt_rounds_from_config(monkeypatch, config):
    """BCRYPT_ROUNDS drives the cost of config-built hashers."""
    hasher = BcryptPasswordHasher.from_config(config)
    assert hasher.options == BcryptOptions.from_config(config)
    assert hasher.hash("secret123").startswith("$2b$04$")

    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 5)
    stored = BcryptPasswordHasher.from_config(config).hash("secret123")
    assert stored.startswith("$2b$05$")
    assert not BcryptPasswordHasher.from_config(config).needs_rehash(stored)

    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 2)
    with pytest.raises(InvalidInput):
        BcryptOptions.from_config(config)
