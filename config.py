"""
Application configuration module.

This module defines configuration classes for different environments
(development, testing, production). Configuration values are loaded
from environment variables with sensible defaults, once, when the
application factory runs. Nothing below the factory reads the
environment directly: the service and the request timeout guard get
their settings handed to them at startup.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: bool = False) -> bool:
    """Interpret an environment variable as a boolean flag."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _timeout_seconds(default: float = 30.0) -> float:
    """
    Resolve the request timeout in seconds.

    ``REQUEST_TIMEOUT`` is expressed in milliseconds so existing deployment
    settings keep working; ``REQUEST_TIMEOUT_SECONDS`` wins when both are set.
    """
    seconds = _env_number("REQUEST_TIMEOUT_SECONDS")
    if seconds is not None:
        return seconds
    millis = _env_number("REQUEST_TIMEOUT")
    if millis is not None:
        return millis / 1000
    return default


def _env_number(name: str) -> float | None:
    """Read a non-negative number from the environment, or None when unset."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


class Config:
    """
    Base configuration with default settings.

    Attributes:
        SECRET_KEY: Flask session signing key.
        SQLALCHEMY_DATABASE_URI: Database connection string (default: local
            SQLite file).
        REQUEST_TIMEOUT_SECONDS: Upper bound for a single task request.
            ``0`` disables the guard.
        ENFORCE_STATUS_TRANSITIONS: Reject status changes that skip the
            PENDING -> IN_PROGRESS -> COMPLETED workflow.
        FRONTEND_URL: Origin allowed to call the API from a browser.
    """

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Default database location
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'tasks.db'}"
    )

    REQUEST_TIMEOUT_SECONDS: float = _timeout_seconds()
    ENFORCE_STATUS_TRANSITIONS: bool = _env_flag("ENFORCE_STATUS_TRANSITIONS")
    FRONTEND_URL: str = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "unknown")
    APP_VERSION: str = os.environ.get("APP_VERSION", "unknown")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    # Separate test database with check_same_thread=False: task requests run
    # on the timeout guard's worker threads.
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_tasks.db'}?check_same_thread=False"
    )

    # Drop stale pooled connections between tests
    SQLALCHEMY_ENGINE_OPTIONS: dict = {
        "pool_pre_ping": True,
    }

    REQUEST_TIMEOUT_SECONDS: float = 10.0


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
