"""
Hashing utilities.

Provides:
- Message digests (MD5, SHA1, SHA256, SHA512) as lowercase hex
- HMAC signing and constant-time verification
- PBKDF2-HMAC key derivation

MD5 and SHA1 are kept for compatibility checksums only. Do not use them
for anything security relevant.
"""

from __future__ import annotations

import hashlib
import hmac
from enum import Enum
from typing import Any, BinaryIO, Callable, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from accesslog_libs.crypto.exceptions import InvalidInput, UnsupportedAlgorithm

DEFAULT_CHUNK_SIZE = 64 * 1024


class HashAlgorithm(Enum):
    """Supported digest algorithms."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"

    @classmethod
    def parse(cls, value: Union[HashAlgorithm, str]) -> HashAlgorithm:
        """
        Resolve an algorithm from an enum member or its name.

        Args:
            value: HashAlgorithm or case-insensitive name ("sha256", "SHA-256")

        Returns:
            Matching HashAlgorithm

        Raises:
            UnsupportedAlgorithm: If the name is not recognised
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "").replace("_", "")
            for member in cls:
                if member.value == normalized:
                    return member
        raise UnsupportedAlgorithm(f"Unsupported hash algorithm: {value}")


AlgorithmLike = Union[HashAlgorithm, str]

_DIGESTS: dict[HashAlgorithm, Callable[..., Any]] = {
    HashAlgorithm.MD5: hashlib.md5,
    HashAlgorithm.SHA1: hashlib.sha1,
    HashAlgorithm.SHA256: hashlib.sha256,
    HashAlgorithm.SHA512: hashlib.sha512,
}

# Keyed constructions do not accept MD5
_HMAC_ALGORITHMS = frozenset({HashAlgorithm.SHA1, HashAlgorithm.SHA256, HashAlgorithm.SHA512})

_KDF_HASHES: dict[HashAlgorithm, Callable[[], hashes.HashAlgorithm]] = {
    HashAlgorithm.SHA1: hashes.SHA1,
    HashAlgorithm.SHA256: hashes.SHA256,
    HashAlgorithm.SHA512: hashes.SHA512,
}


def _digest_factory(algorithm: AlgorithmLike) -> Callable[..., Any]:
    return _DIGESTS[HashAlgorithm.parse(algorithm)]


def _keyed_algorithm(algorithm: AlgorithmLike, purpose: str) -> HashAlgorithm:
    resolved = HashAlgorithm.parse(algorithm)
    if resolved not in _HMAC_ALGORITHMS:
        raise UnsupportedAlgorithm(f"Unsupported {purpose} algorithm: {resolved.value}")
    return resolved


def hash_data(data: bytes, algorithm: AlgorithmLike = HashAlgorithm.SHA256) -> str:
    """
    Hash arbitrary data.

    Args:
        data: Bytes to hash
        algorithm: Digest algorithm (md5, sha1, sha256, sha512)

    Returns:
        Lowercase hexadecimal digest

    Raises:
        UnsupportedAlgorithm: If the algorithm is not supported

    Example:
        >>> hash_data(b"hello world")[:8]
        'b94d27b9'
    """
    return _digest_factory(algorithm)(data).hexdigest()


def hash_string(text: str, algorithm: AlgorithmLike = HashAlgorithm.SHA256) -> str:
    """Hash a UTF-8 encoded string."""
    return hash_data(text.encode("utf-8"), algorithm)


def hash_stream(
    reader: BinaryIO,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """
    Hash a binary file-like object without loading it into memory.

    Args:
        reader: Object with a ``read(size)`` method returning bytes
        algorithm: Digest algorithm
        chunk_size: Bytes read per iteration

    Returns:
        Lowercase hexadecimal digest
    """
    if chunk_size <= 0:
        raise InvalidInput("chunk_size must be positive")

    digest = _digest_factory(algorithm)()
    for chunk in iter(lambda: reader.read(chunk_size), b""):
        digest.update(chunk)
    return digest.hexdigest()


def verify_hash(
    data: bytes,
    expected: str,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> bool:
    """
    Check that data hashes to the expected hex digest.

    Args:
        data: Original data
        expected: Hex digest to compare against
        algorithm: Digest algorithm

    Returns:
        True if the digests match
    """
    actual = hash_data(data, algorithm)
    return hmac.compare_digest(actual.encode(), expected.lower().encode())


def verify_hash_string(
    text: str,
    expected: str,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> bool:
    """String variant of :func:`verify_hash`."""
    return verify_hash(text.encode("utf-8"), expected, algorithm)


def hmac_sign(
    data: bytes,
    key: bytes,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> str:
    """
    Create an HMAC signature for data.

    Args:
        data: Data to sign
        key: Secret key
        algorithm: sha1, sha256 or sha512

    Returns:
        Hexadecimal HMAC signature

    Raises:
        UnsupportedAlgorithm: For md5 or unknown names

    Example:
        >>> len(hmac_sign(b"message", b"secret_key"))
        64
    """
    resolved = _keyed_algorithm(algorithm, "HMAC")
    return hmac.new(key, data, _DIGESTS[resolved]).hexdigest()


def hmac_sign_string(
    data: str,
    key: str,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> str:
    """Sign a UTF-8 string with a UTF-8 string key."""
    return hmac_sign(data.encode("utf-8"), key.encode("utf-8"), algorithm)


def hmac_verify(
    data: bytes,
    key: bytes,
    signature: str,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> bool:
    """
    Verify an HMAC signature in constant time.

    Args:
        data: Original data
        key: Secret key
        signature: Hex signature to verify
        algorithm: Hash algorithm

    Returns:
        True if signature is valid
    """
    expected = hmac_sign(data, key, algorithm)
    return hmac.compare_digest(expected.encode(), signature.lower().encode())


def hmac_verify_string(
    data: str,
    key: str,
    signature: str,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> bool:
    """String variant of :func:`hmac_verify`."""
    return hmac_verify(data.encode("utf-8"), key.encode("utf-8"), signature, algorithm)


def pbkdf2(
    password: bytes,
    salt: bytes,
    iterations: int,
    key_length: int,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> bytes:
    """
    Derive a key with PBKDF2-HMAC.

    Args:
        password: Password bytes
        salt: Salt bytes (at least 8 bytes recommended)
        iterations: Iteration count, must be positive
        key_length: Length of the derived key in bytes
        algorithm: sha1, sha256 or sha512

    Returns:
        Derived key bytes
    """
    resolved = _keyed_algorithm(algorithm, "PBKDF2")
    if iterations <= 0:
        raise InvalidInput("iterations must be positive")
    if key_length <= 0:
        raise InvalidInput("key_length must be positive")

    kdf = PBKDF2HMAC(
        algorithm=_KDF_HASHES[resolved](),
        length=key_length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)


def pbkdf2_hex(
    password: str,
    salt: str,
    iterations: int,
    key_length: int,
    algorithm: AlgorithmLike = HashAlgorithm.SHA256,
) -> str:
    """Derive a key from string inputs and return it hex encoded."""
    derived = pbkdf2(
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
        key_length,
        algorithm,
    )
    return derived.hex()
