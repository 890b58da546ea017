"""
Secure random and token generation.

All randomness comes from the operating system CSPRNG via ``secrets``.
"""

from __future__ import annotations

import base64
import hmac
import re
import secrets
import string

from accesslog_libs.crypto.exceptions import EntropyFailure, InvalidLength
from accesslog_libs.crypto.hashing import HashAlgorithm, hash_string

ALPHANUMERIC = string.ascii_lowercase + string.ascii_uppercase + string.digits

API_KEY_MIN_LENGTH = 16
DEFAULT_API_KEY_LENGTH = 32
DEFAULT_TOKEN_BYTES = 32

_API_KEY_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of bytes, must be positive

    Returns:
        Random bytes

    Raises:
        InvalidLength: If length is zero or negative
        EntropyFailure: If the OS random source fails
    """
    if length <= 0:
        raise InvalidLength("length must be positive")
    try:
        return secrets.token_bytes(length)
    except (OSError, NotImplementedError) as e:
        raise EntropyFailure("secure random source unavailable") from e


def random_string(length: int, alphabet: str = ALPHANUMERIC) -> str:
    """
    Generate a random string drawn uniformly from an alphabet.

    Uses rejection sampling over random bytes, so there is no modulo bias
    toward the start of the alphabet.

    Args:
        length: Number of characters, must be positive
        alphabet: Symbols to draw from (2 to 256 unique characters)

    Returns:
        Random string of exactly ``length`` characters

    Example:
        >>> len(random_string(12))
        12
    """
    if length <= 0:
        raise InvalidLength("length must be positive")
    size = len(alphabet)
    if size < 2 or size > 256:
        raise InvalidLength("alphabet must contain between 2 and 256 symbols")

    limit = 256 - (256 % size)
    chars: list[str] = []
    while len(chars) < length:
        for byte in random_bytes(length - len(chars) + 8):
            if byte < limit:
                chars.append(alphabet[byte % size])
                if len(chars) == length:
                    break
    return "".join(chars)


def random_hex(length: int) -> str:
    """
    Generate a random hex string of exactly ``length`` characters.

    Args:
        length: Number of hex characters, must be positive

    Returns:
        Lowercase hex string
    """
    if length <= 0:
        raise InvalidLength("length must be positive")
    return random_bytes((length + 1) // 2).hex()[:length]


def generate_salt(length: int = 16) -> str:
    """
    Generate a random salt.

    Args:
        length: Number of random bytes

    Returns:
        Standard base64 encoded salt
    """
    return base64.b64encode(random_bytes(length)).decode("ascii")


def generate_salt_hex(length: int = 16) -> str:
    """Generate a hex salt of ``length`` characters."""
    return random_hex(length)


def secure_token(num_bytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """
    Generate a hex token from ``num_bytes`` random bytes.

    Example:
        >>> len(secure_token())
        64
    """
    return random_bytes(num_bytes).hex()


def generate_api_key(prefix: str = "", length: int = DEFAULT_API_KEY_LENGTH) -> str:
    """
    Generate an API key.

    Args:
        prefix: Optional identifying prefix, joined with an underscore
        length: Length of the random part

    Returns:
        API key such as ``alt_x8Kd...``
    """
    body = random_string(length)
    if prefix:
        return f"{prefix}_{body}"
    return body


def validate_api_key_format(api_key: str) -> bool:
    """
    Check that an API key is long enough and uses only safe characters.

    Args:
        api_key: Candidate key

    Returns:
        True if the key has at least 16 characters of ``[A-Za-z0-9_-]``
    """
    if not api_key or len(api_key) < API_KEY_MIN_LENGTH:
        return False
    return _API_KEY_PATTERN.fullmatch(api_key) is not None


def hash_api_key(api_key: str) -> str:
    """Hash an API key for storage (SHA-256 hex)."""
    return hash_string(api_key, HashAlgorithm.SHA256)


def verify_api_key(api_key: str, hashed: str) -> bool:
    """Verify an API key against its stored hash in constant time."""
    return constant_time_compare(hash_api_key(api_key), hashed.lower())


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time.

    Args:
        a: First string
        b: Second string

    Returns:
        True if strings are equal
    """
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
