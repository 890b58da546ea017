"""Tests for AES-256-GCM encryption."""

from __future__ import annotations

import base64

import pytest

from accesslog_libs.crypto import (
    KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AESKey,
    AuthenticationFailure,
    EntropyFailure,
    InvalidInput,
    InvalidKeyLength,
    decrypt,
    encrypt,
    generate_key,
    new_key,
)


def test_round_trip(aes_key):
    """decrypt(encrypt(p)) == p"""
    for plaintext in (b"", b"a", b"tracking payload" * 100):
        assert aes_key.decrypt(aes_key.encrypt(plaintext)) == plaintext


def test_ciphertext_layout(aes_key):
    sealed = aes_key.encrypt(b"hello")
    assert len(sealed) == NONCE_SIZE + len(b"hello") + TAG_SIZE


def test_nonce_is_fresh(aes_key):
    assert aes_key.encrypt(b"same") != aes_key.encrypt(b"same")


def test_every_bit_flip_fails_authentication(aes_key):
    """Flipping any single bit of nonce, body or tag is detected."""
    sealed = aes_key.encrypt(b"payload")
    for index in range(len(sealed)):
        for bit in range(8):
            tampered = bytearray(sealed)
            tampered[index] ^= 1 << bit
            with pytest.raises(AuthenticationFailure):
                aes_key.decrypt(bytes(tampered))


def test_truncated_input_fails(aes_key):
    with pytest.raises(AuthenticationFailure):
        aes_key.decrypt(b"\x00" * (NONCE_SIZE + TAG_SIZE - 1))


def test_wrong_key_fails(aes_key):
    sealed = aes_key.encrypt(b"payload")
    with pytest.raises(AuthenticationFailure):
        generate_key().decrypt(sealed)


def test_associated_data_must_match(aes_key):
    sealed = aes_key.encrypt(b"payload", associated_data=b"app:1")
    assert aes_key.decrypt(sealed, associated_data=b"app:1") == b"payload"
    with pytest.raises(AuthenticationFailure):
        aes_key.decrypt(sealed, associated_data=b"app:2")


@pytest.mark.parametrize("length", [0, 16, 24, 31, 33])
def test_key_length_enforced(length):
    with pytest.raises(InvalidKeyLength):
        AESKey.new(b"k" * length)


def test_32_byte_key_accepted():
    assert new_key(b"k" * KEY_SIZE) == AESKey(b"k" * KEY_SIZE)


def test_key_repr_is_redacted(aes_key):
    assert aes_key.hex() not in repr(aes_key)
    assert str(aes_key) == "AESKey(<redacted>)"


def test_from_hex(aes_key):
    assert AESKey.from_hex(aes_key.hex()) == aes_key
    with pytest.raises(InvalidInput):
        AESKey.from_hex("zz" * 32)
    with pytest.raises(InvalidKeyLength):
        AESKey.from_hex("00" * 16)


def test_from_password_is_deterministic(config):
    salt = b"0123456789abcdef"
    rounds = config.PBKDF2_ITERATIONS
    first = AESKey.from_password("hunter2", salt, iterations=rounds)
    assert first == AESKey.from_password("hunter2", salt, iterations=rounds)
    assert first != AESKey.from_password("hunter3", salt, iterations=rounds)
    assert first != AESKey.from_password("hunter2", b"another-salt-val", iterations=rounds)


def test_string_round_trip(aes_key):
    token = aes_key.encrypt_string("héllo wörld")
    base64.b64decode(token, validate=True)
    assert aes_key.decrypt_string(token) == "héllo wörld"


def test_decrypt_string_rejects_bad_base64(aes_key):
    with pytest.raises(InvalidInput):
        aes_key.decrypt_string("not base64!!")


def test_json_round_trip(aes_key):
    data = {"app_id": 1, "params": {"campaign": "spring"}}
    assert aes_key.decrypt_json(aes_key.encrypt_json(data)) == data


def test_module_helpers_accept_raw_key_bytes():
    raw = bytes(range(32))
    token = encrypt("secret data", raw)
    assert decrypt(token, raw) == b"secret data"
    assert decrypt(token, AESKey(raw)) == b"secret data"


def test_from_config(monkeypatch, config, aes_key):
    monkeypatch.setattr(config, "ENCRYPTION_KEY", aes_key.hex())
    assert AESKey.from_config(config) == aes_key
    monkeypatch.setattr(config, "ENCRYPTION_KEY", "")
    assert AESKey.from_config(config) != aes_key


def test_from_config_derives_with_configured_iterations(monkeypatch, config):
    salt = b"0123456789abcdef"
    derived = AESKey.from_config(config, password="hunter2", salt=salt)
    assert derived == AESKey.from_password("hunter2", salt, config.PBKDF2_ITERATIONS)

    monkeypatch.setattr(config, "PBKDF2_ITERATIONS", config.PBKDF2_ITERATIONS + 1)
    assert AESKey.from_config(config, password="hunter2", salt=salt) != derived


def test_from_config_password_requires_salt(config):
    with pytest.raises(InvalidInput):
        AESKey.from_config(config, password="hunter2")


def test_key_generation_entropy_failure(monkeypatch):
    def unavailable(length):
        raise OSError("getrandom failed")

    monkeypatch.setattr("accesslog_libs.crypto.tokens.secrets.token_bytes", unavailable)
    with pytest.raises(EntropyFailure):
        AESKey.generate()
    with pytest.raises(EntropyFailure):
        AESKey(bytes(32)).encrypt(b"payload")
