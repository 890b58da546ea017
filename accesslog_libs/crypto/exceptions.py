"""
Crypto error taxonomy.

Every failure raised by accesslog_libs.crypto is one of the classes below.
Messages describe what failed and never include key material, plaintexts
or tokens. Underlying library errors are attached as ``__cause__``.
"""

from __future__ import annotations


class CryptoError(Exception):
    """Base class for all crypto helper failures."""


class InvalidInput(CryptoError, ValueError):
    """Bad length, empty required field or undecodable input."""


class InvalidLength(InvalidInput):
    """A requested length was zero or negative."""


class InvalidKeyLength(InvalidInput):
    """Symmetric key is not exactly 32 bytes."""


class UnsupportedAlgorithm(CryptoError, ValueError):
    """Algorithm name is not one of the supported set."""


class AuthenticationFailure(CryptoError):
    """AEAD tag did not verify or the ciphertext is truncated."""


class InvalidToken(CryptoError):
    """Signed-claims token failed validation."""


class EntropyFailure(CryptoError):
    """The secure random source raised an error."""


class HashingFailure(CryptoError):
    """Password hashing could not be completed."""


class SigningFailure(CryptoError):
    """Signed-claims token could not be produced."""
