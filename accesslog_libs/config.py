"""
Access Log Tracker library configuration.

Values are read from environment variables when this module is imported.
Secret material is only ever read from the environment, never written back.
"""

from __future__ import annotations

import os
from datetime import timedelta


class Config:
    """Base configuration."""

    # Signed-claims tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-in-production")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "accesslog-tracker")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "24"))
    )
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(
        days=int(os.getenv("JWT_REFRESH_TOKEN_DAYS", "7"))
    )

    # Password hashing and key derivation
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
    PBKDF2_ITERATIONS = int(os.getenv("PBKDF2_ITERATIONS", "600000"))

    # Hex encoded 32-byte AES key; empty means "generate per process"
    ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "")

    # Beacon generation
    BEACON_ENDPOINT = os.getenv("BEACON_ENDPOINT", "http://localhost:8080/v1/track")
    BEACON_VERSION = os.getenv("BEACON_VERSION", "1.0.0")
    BEACON_SCRIPT_URL = os.getenv(
        "BEACON_SCRIPT_URL", "https://cdn.example.com/tracker.js"
    )

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")


class DevelopmentConfig(Config):
    """Development configuration."""

    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"


class ProductionConfig(Config):
    """Production configuration."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "json"

    # Required in production
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")

    @classmethod
    def validate(cls) -> None:
        """Validate production configuration."""
        if not cls.JWT_SECRET_KEY or "change" in cls.JWT_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY must be set in production")
        if len(cls.JWT_SECRET_KEY) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        if cls.BCRYPT_ROUNDS < 10:
            raise ValueError("BCRYPT_ROUNDS must be at least 10 in production")
        if cls.ENCRYPTION_KEY:
            try:
                key = bytes.fromhex(cls.ENCRYPTION_KEY)
            except ValueError:
                raise ValueError("ENCRYPTION_KEY must be hex encoded") from None
            if len(key) != 32:
                raise ValueError("ENCRYPTION_KEY must be 64 hex characters")


class TestingConfig(Config):
    """Testing configuration."""

    JWT_SECRET_KEY = "testing-secret-key-that-is-long-enough-for-hs256"
    JWT_ISSUER = "accesslog-tracker-test"
    JWT_ALGORITHM = "HS256"

    # Minimum cost keeps the suite fast
    BCRYPT_ROUNDS = 4
    PBKDF2_ITERATIONS = 1000

    BEACON_ENDPOINT = "https://collector.example.com/v1/track"
    BEACON_VERSION = "1.0.0-test"

    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "json"


def get_config() -> type[Config]:
    """Get configuration based on the ALT_ENV environment variable."""
    env = os.getenv("ALT_ENV", "development").lower()
    config_map = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }
    return config_map.get(env, DevelopmentConfig)
