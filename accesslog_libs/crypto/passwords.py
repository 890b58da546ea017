"""
Password hashing utilities.

Provides salted, adaptive password hashing with:
- bcrypt (default, cost-factored)
- Argon2id (memory-hard alternative)

Hash records are self-describing: the algorithm, cost and salt are all
embedded in the returned string, so nothing else needs to be stored.
Hashing is intentionally slow; tune it with the options classes.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

import argon2
import bcrypt
from argon2.exceptions import (
    HashingError,
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

from accesslog_libs.crypto.exceptions import HashingFailure, InvalidInput

if TYPE_CHECKING:
    from accesslog_libs.config import Config

BCRYPT_MIN_ROUNDS = 4
BCRYPT_MAX_ROUNDS = 31
BCRYPT_MAX_PASSWORD_BYTES = 72

_BCRYPT_PREFIX = re.compile(r"^\$2[aby]?\$(\d{2})\$")


class PasswordAlgorithm(Enum):
    """Supported password hashing algorithms."""

    BCRYPT = "bcrypt"
    ARGON2ID = "argon2id"


@dataclass(slots=True, frozen=True)
class BcryptOptions:
    """Configuration options for bcrypt hashing."""

    rounds: int = 12  # Cost factor (2^rounds iterations)

    def __post_init__(self) -> None:
        if not BCRYPT_MIN_ROUNDS <= self.rounds <= BCRYPT_MAX_ROUNDS:
            raise InvalidInput(
                f"bcrypt rounds must be between {BCRYPT_MIN_ROUNDS} and {BCRYPT_MAX_ROUNDS}"
            )

    @classmethod
    def from_config(cls, config: type[Config]) -> BcryptOptions:
        """Use ``BCRYPT_ROUNDS`` from a Config class."""
        return cls(rounds=config.BCRYPT_ROUNDS)

    @classmethod
    def fast(cls) -> BcryptOptions:
        """Faster settings for development/testing."""
        return cls(rounds=BCRYPT_MIN_ROUNDS)

    @classmethod
    def high_security(cls) -> BcryptOptions:
        """Higher security settings."""
        return cls(rounds=14)


@dataclass(slots=True, frozen=True)
class Argon2Options:
    """
    Configuration options for Argon2id hashing.

    Default values follow OWASP recommendations.
    """

    time_cost: int = 3  # Number of iterations
    memory_cost: int = 65536  # Memory in KiB (64MB)
    parallelism: int = 4
    hash_len: int = 32
    salt_len: int = 16

    @classmethod
    def low_memory(cls) -> Argon2Options:
        """Lower memory settings for constrained environments."""
        return cls(time_cost=4, memory_cost=32768, parallelism=2)


class PasswordHasher(ABC):
    """Abstract base class for password hashers."""

    algorithm: PasswordAlgorithm

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a password and return the encoded record."""
        ...

    @abstractmethod
    def verify(self, password: str, hash_str: str) -> bool:
        """Verify a password against a record. Never raises on mismatch."""
        ...

    @abstractmethod
    def needs_rehash(self, hash_str: str) -> bool:
        """Check if a record should be upgraded to the current parameters."""
        ...


class BcryptPasswordHasher(PasswordHasher):
    """
    bcrypt password hasher.

    Example:
        hasher = BcryptPasswordHasher(BcryptOptions(rounds=12))
        hash_str = hasher.hash("my_password")
        is_valid = hasher.verify("my_password", hash_str)
    """

    algorithm = PasswordAlgorithm.BCRYPT

    def __init__(self, options: Optional[BcryptOptions] = None) -> None:
        self.options = options or BcryptOptions()

    @classmethod
    def from_config(cls, config: type[Config]) -> BcryptPasswordHasher:
        return cls(BcryptOptions.from_config(config))

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password (at most 72 bytes once UTF-8 encoded)

        Returns:
            bcrypt record (``$2b$<rounds>$...``)

        Raises:
            HashingFailure: If bcrypt rejects the input or salt generation fails
        """
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            raise HashingFailure(
                f"bcrypt input is limited to {BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )
        try:
            salt = bcrypt.gensalt(rounds=self.options.rounds)
            return bcrypt.hashpw(encoded, salt).decode("utf-8")
        except (ValueError, TypeError, OSError) as e:
            raise HashingFailure(f"bcrypt hashing failed: {e}") from e

    def verify(self, password: str, hash_str: str) -> bool:
        """
        Verify a password against a bcrypt record.

        Args:
            password: Plain text password to verify
            hash_str: bcrypt record

        Returns:
            True if password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                hash_str.encode("utf-8"),
            )
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hash_str: str) -> bool:
        """
        Check if a record was created with fewer rounds than configured.

        Args:
            hash_str: bcrypt record

        Returns:
            True if the record should be upgraded
        """
        match = _BCRYPT_PREFIX.match(hash_str)
        if not match:
            return True
        return int(match.group(1)) < self.options.rounds


class Argon2PasswordHasher(PasswordHasher):
    """
    Argon2id password hasher.

    Argon2id is memory-hard, making it resistant to GPU and ASIC attacks.
    """

    algorithm = PasswordAlgorithm.ARGON2ID

    def __init__(self, options: Optional[Argon2Options] = None) -> None:
        self.options = options or Argon2Options()
        self._hasher = argon2.PasswordHasher(
            time_cost=self.options.time_cost,
            memory_cost=self.options.memory_cost,
            parallelism=self.options.parallelism,
            hash_len=self.options.hash_len,
            salt_len=self.options.salt_len,
            type=argon2.Type.ID,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Returns:
            Argon2id record in PHC format
        """
        try:
            return self._hasher.hash(password)
        except HashingError as e:
            raise HashingFailure(f"argon2 hashing failed: {e}") from e

    def verify(self, password: str, hash_str: str) -> bool:
        try:
            return self._hasher.verify(hash_str, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_str: str) -> bool:
        try:
            return self._hasher.check_needs_rehash(hash_str)
        except (InvalidHashError, ValueError):
            return True


def get_hasher(
    algorithm: Optional[PasswordAlgorithm] = None,
    rounds: Optional[int] = None,
) -> PasswordHasher:
    """
    Build a password hasher.

    Args:
        algorithm: Hashing algorithm (defaults to bcrypt)
        rounds: bcrypt work factor; ignored for Argon2id

    Returns:
        PasswordHasher instance
    """
    if algorithm == PasswordAlgorithm.ARGON2ID:
        return Argon2PasswordHasher()
    if rounds is None:
        return BcryptPasswordHasher()
    return BcryptPasswordHasher(BcryptOptions(rounds=rounds))


def _hasher_for_record(hash_str: str) -> Optional[PasswordHasher]:
    if hash_str.startswith("$argon2"):
        return Argon2PasswordHasher()
    if _BCRYPT_PREFIX.match(hash_str):
        return BcryptPasswordHasher()
    return None


def hash_password(
    password: str,
    algorithm: Optional[PasswordAlgorithm] = None,
    rounds: Optional[int] = None,
) -> str:
    """
    Hash a password for storage.

    Args:
        password: Plain text password
        algorithm: Hashing algorithm (defaults to bcrypt)
        rounds: bcrypt work factor (default 12)

    Returns:
        Encoded password record

    Raises:
        HashingFailure: If hashing could not be completed

    Example:
        >>> hash_str = hash_password("my_secure_password")
        >>> hash_str.startswith("$2b$")
        True
    """
    return get_hasher(algorithm, rounds).hash(password)


def verify_password(password: str, hash_str: str) -> bool:
    """
    Verify a password against a stored record.

    The algorithm is detected from the record. Mismatches, unknown formats
    and malformed records all return False.

    Example:
        >>> hash_str = hash_password("my_password")
        >>> verify_password("my_password", hash_str)
        True
        >>> verify_password("wrong_password", hash_str)
        False
    """
    if not hash_str:
        return False
    hasher = _hasher_for_record(hash_str)
    if hasher is None:
        return False
    return hasher.verify(password, hash_str)


def needs_rehash(hash_str: str, rounds: Optional[int] = None) -> bool:
    """
    Check if a password record needs to be upgraded.

    Args:
        hash_str: Stored record
        rounds: bcrypt work factor currently in force (default 12)

    Returns:
        True if the record should be re-hashed at next login
    """
    if hash_str.startswith("$argon2"):
        return Argon2PasswordHasher().needs_rehash(hash_str)
    return get_hasher(PasswordAlgorithm.BCRYPT, rounds).needs_rehash(hash_str)
