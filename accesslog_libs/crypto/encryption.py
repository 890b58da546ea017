"""
Encryption utilities using AES-256-GCM.

Provides authenticated encryption for:
- Sensitive tracking fields at rest
- API payloads
- Configuration secrets

Wire format of every ciphertext produced here::

    nonce (12 bytes) || ciphertext || authentication tag (16 bytes)

A fresh random nonce is generated for every call. Decryption fails closed:
a tag mismatch or truncated input raises AuthenticationFailure and no
plaintext is returned.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import TYPE_CHECKING, Any, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from accesslog_libs.crypto.exceptions import (
    AuthenticationFailure,
    InvalidInput,
    InvalidKeyLength,
)
from accesslog_libs.crypto.hashing import HashAlgorithm, pbkdf2
from accesslog_libs.crypto.tokens import random_bytes

if TYPE_CHECKING:
    from accesslog_libs.config import Config

# Constants
NONCE_SIZE = 12  # 96 bits for GCM
KEY_SIZE = 32  # 256 bits for AES-256
TAG_SIZE = 16  # 128 bits authentication tag
DEFAULT_PBKDF2_ITERATIONS = 600_000


class AESKey:
    """
    A 256-bit AES-GCM key.

    The key bytes are never included in ``repr``/``str`` output.

    Example:
        key = AESKey.generate()
        token = key.encrypt_string("secret data")
        assert key.decrypt_string(token) == "secret data"
    """

    __slots__ = ("_key", "_aesgcm")

    def __init__(self, key: bytes) -> None:
        """
        Args:
            key: 32-byte encryption key

        Raises:
            InvalidKeyLength: If key is not exactly 32 bytes
        """
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
            length = len(key) if isinstance(key, (bytes, bytearray)) else "non-bytes"
            raise InvalidKeyLength(f"AES key must be {KEY_SIZE} bytes, got {length}")
        self._key = bytes(key)
        self._aesgcm = AESGCM(self._key)

    @classmethod
    def new(cls, key: bytes) -> AESKey:
        """Wrap existing key bytes (same checks as the constructor)."""
        return cls(key)

    @classmethod
    def generate(cls) -> AESKey:
        """Create a key from the secure random source."""
        return cls(random_bytes(KEY_SIZE))

    @classmethod
    def from_hex(cls, key_hex: str) -> AESKey:
        """
        Load a key from its hex encoding.

        Raises:
            InvalidInput: If the text is not valid hex
            InvalidKeyLength: If it does not decode to 32 bytes
        """
        try:
            key = bytes.fromhex(key_hex)
        except ValueError as e:
            raise InvalidInput("AES key is not valid hex") from e
        return cls(key)

    @classmethod
    def from_password(
        cls,
        password: str,
        salt: bytes,
        iterations: int = DEFAULT_PBKDF2_ITERATIONS,
    ) -> AESKey:
        """
        Derive a key from a password with PBKDF2-HMAC-SHA256.

        Args:
            password: Password to derive from
            salt: Random salt, stored alongside the ciphertext by the caller
            iterations: PBKDF2 iterations
        """
        derived = pbkdf2(
            password.encode("utf-8"),
            salt,
            iterations,
            KEY_SIZE,
            HashAlgorithm.SHA256,
        )
        return cls(derived)

    @classmethod
    def from_config(
        cls,
        config: type[Config],
        password: Optional[str] = None,
        salt: Optional[bytes] = None,
    ) -> AESKey:
        """
        Build a key from a Config class.

        With a password, derive the key using ``PBKDF2_ITERATIONS``.
        Otherwise load ``ENCRYPTION_KEY``, generating a key when unset.

        Raises:
            InvalidInput: If a password is given without a salt
        """
        if password is not None:
            if not salt:
                raise InvalidInput("a salt is required to derive a key from a password")
            return cls.from_password(password, salt, config.PBKDF2_ITERATIONS)
        if not config.ENCRYPTION_KEY:
            return cls.generate()
        return cls.from_hex(config.ENCRYPTION_KEY)

    def __repr__(self) -> str:
        return "AESKey(<redacted>)"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AESKey):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash((AESKey, self._key))

    def hex(self) -> str:
        """Reveal the key as hex, for handing to a secret store."""
        return self._key.hex()

    def encrypt(
        self,
        plaintext: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """
        Encrypt data using AES-256-GCM.

        Args:
            plaintext: Data to encrypt
            associated_data: Additional authenticated data (not encrypted)

        Returns:
            ``nonce || ciphertext || tag``
        """
        nonce = random_bytes(NONCE_SIZE)
        return nonce + self._aesgcm.encrypt(nonce, plaintext, associated_data)

    def decrypt(
        self,
        data: bytes,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt data produced by :meth:`encrypt`.

        Args:
            data: ``nonce || ciphertext || tag``
            associated_data: Additional authenticated data (must match encryption)

        Returns:
            Decrypted plaintext

        Raises:
            AuthenticationFailure: If the input is truncated, tampered with,
                or was encrypted under another key
        """
        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise AuthenticationFailure("ciphertext too short")

        nonce, sealed = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            return self._aesgcm.decrypt(nonce, sealed, associated_data)
        except InvalidTag as e:
            raise AuthenticationFailure("authentication tag mismatch") from e

    def encrypt_string(
        self,
        plaintext: str,
        associated_data: Optional[bytes] = None,
    ) -> str:
        """
        Encrypt a string and return the standard base64 encoded result.

        Args:
            plaintext: String to encrypt
            associated_data: Optional additional authenticated data

        Returns:
            Base64 encoded ciphertext
        """
        sealed = self.encrypt(plaintext.encode("utf-8"), associated_data)
        return base64.b64encode(sealed).decode("ascii")

    def decrypt_string(
        self,
        encrypted: str,
        associated_data: Optional[bytes] = None,
    ) -> str:
        """
        Decrypt a base64 encoded string.

        Raises:
            InvalidInput: If the text is not valid base64
            AuthenticationFailure: If authentication fails
        """
        try:
            sealed = base64.b64decode(encrypted, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidInput("ciphertext is not valid base64") from e
        plaintext = self.decrypt(sealed, associated_data)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInput("plaintext is not valid UTF-8") from e

    def encrypt_json(
        self,
        data: Any,
        associated_data: Optional[bytes] = None,
    ) -> str:
        """Encrypt a JSON-serializable object."""
        json_str = json.dumps(data, separators=(",", ":"))
        return self.encrypt_string(json_str, associated_data)

    def decrypt_json(
        self,
        encrypted: str,
        associated_data: Optional[bytes] = None,
    ) -> Any:
        """Decrypt and parse JSON data."""
        return json.loads(self.decrypt_string(encrypted, associated_data))


def new_key(key: bytes) -> AESKey:
    """Wrap 32 key bytes, raising InvalidKeyLength otherwise."""
    return AESKey(key)


def generate_key() -> AESKey:
    """
    Generate a random 256-bit encryption key.

    Returns:
        New AESKey
    """
    return AESKey.generate()


def _as_key(key: Union[AESKey, bytes]) -> AESKey:
    return key if isinstance(key, AESKey) else AESKey(key)


def encrypt(plaintext: Union[str, bytes], key: Union[AESKey, bytes]) -> str:
    """
    Simple encryption function.

    Args:
        plaintext: Data to encrypt
        key: AESKey or 32 raw key bytes

    Returns:
        Base64 encoded ciphertext
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    sealed = _as_key(key).encrypt(plaintext)
    return base64.b64encode(sealed).decode("ascii")


def decrypt(encrypted: str, key: Union[AESKey, bytes]) -> bytes:
    """
    Simple decryption function.

    Args:
        encrypted: Base64 encoded ciphertext
        key: AESKey or 32 raw key bytes

    Returns:
        Decrypted bytes
    """
    try:
        sealed = base64.b64decode(encrypted, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("ciphertext is not valid base64") from e
    return _as_key(key).decrypt(sealed)
