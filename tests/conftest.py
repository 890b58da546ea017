"""Pytest configuration and fixtures for accesslog_libs tests."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

# Set testing environment
os.environ["ALT_ENV"] = "testing"

from accesslog_libs.config import TestingConfig  # noqa: E402
from accesslog_libs.crypto import AESKey, BcryptOptions, JWTManager  # noqa: E402


@pytest.fixture
def config():
    """Testing configuration class."""
    return TestingConfig


@pytest.fixture
def fast_bcrypt():
    """Minimum-cost bcrypt options."""
    return BcryptOptions.fast()


@pytest.fixture
def jwt_manager(config):
    """JWT manager built from the testing configuration."""
    return JWTManager.from_config(config)


@pytest.fixture
def clock_at():
    """Build a manager clock fixed at now + offset."""
    def _clock_at(offset: timedelta):
        fixed = datetime.now(timezone.utc) + offset
        return lambda: fixed
    return _clock_at


@pytest.fixture
def aes_key():
    """Deterministic AES key."""
    return AESKey(bytes(range(32)))
