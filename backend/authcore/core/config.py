"""Environment-driven Flask config classes and the frozen ``AuthSettings``."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# .env is optional
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Read a flag such as ``FLASK_DEBUG=yes``; ``default`` when the variable is unset."""
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_seconds(name: str, default: int) -> timedelta:
    """Parse a lifetime expressed in seconds into a :class:`timedelta`.

    :param name: Environment variable to inspect.
    :param default: Seconds used when the variable is unset or blank.
    :returns: Parsed lifetime.
    :raises ValueError: If the value is not a positive integer.
    """
    raw = os.getenv(name)
    seconds = default if raw is None or not raw.strip() else int(raw)
    if seconds <= 0:
        raise ValueError(f"{name} must be a positive number of seconds.")
    return timedelta(seconds=seconds)


class BaseConfig:
    """Settings common to every environment.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Mount point of the versioned API (``/api/v1/...``).
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Symmetric key used by ``flask-jwt-extended`` for HS* algorithms.
    JWT_PRIVATE_KEY / JWT_PUBLIC_KEY: str | None
        PEM keys used instead of ``JWT_SECRET_KEY`` for RS*/ES* algorithms.
    JWT_ALGORITHM: str
        Signing algorithm; decoding only accepts this algorithm.
    JWT_ACCESS_TOKEN_EXPIRES / JWT_REFRESH_TOKEN_EXPIRES: timedelta
        Token lifetimes (1 hour / 7 days by default). The blacklist TTL of each
        token class follows the same value.
    JWT_ENFORCE_LAST_AUTH_CHANGE: bool
        Reject refresh tokens minted before the user's last credential change.
    OTP_EXPIRES: timedelta
        One-time passcode lifetime (10 minutes by default).
    OTP_LENGTH / OTP_VERIFICATION_TOKEN_LENGTH: int
        Number of digits of the passcode and of its verification token.
    OTP_MAX_ATTEMPTS: int
        Wrong passcodes or verification tokens a record absorbs before it
        locks (5 by default).
    OTP_DEBUG_ECHO: bool
        Development only: log plaintext passcodes from the logging sender.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method used for passwords and one-time secrets.
    REDIS_URL: str | None
        Redis connection URL backing the token blacklist and the rate
        limiter. When unset both fall back to in-process state.
    RATELIMIT_ENABLED / RATELIMIT_WINDOW_SECONDS: bool / int
        Toggle and window of the limits on login and OTP endpoints.
    AUTH_LOGIN_RATE_LIMIT / AUTH_OTP_RATE_LIMIT: int
        Requests allowed per client address per window (5 and 3 by default).
    AUTH_OTP_VERIFY_RATE_LIMIT: int
        Passcode checks allowed per window, counted per client address and
        per ``otp_id`` (5 by default).
    SQLALCHEMY_DATABASE_URI: str
        SQLAlchemy URL (``DATABASE_URL``, SQLite file by default).
    LOG_LEVEL: str
        Level of the JSON root logger.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_PRIVATE_KEY = os.getenv("JWT_PRIVATE_KEY")
    JWT_PUBLIC_KEY = os.getenv("JWT_PUBLIC_KEY")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = env_seconds("JWT_ACCESS_TOKEN_EXPIRES", 60 * 60)
    JWT_REFRESH_TOKEN_EXPIRES = env_seconds("JWT_REFRESH_TOKEN_EXPIRES", 60 * 60 * 24 * 7)
    JWT_ENFORCE_LAST_AUTH_CHANGE = env_bool("JWT_ENFORCE_LAST_AUTH_CHANGE", True)

    # One-time passcodes
    OTP_EXPIRES = env_seconds("OTP_EXPIRES", 10 * 60)
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
    OTP_VERIFICATION_TOKEN_LENGTH = int(os.getenv("OTP_VERIFICATION_TOKEN_LENGTH", "6"))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
    OTP_DEBUG_ECHO = False

    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # Stores
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # Rate limits: requests per client IP per window (Redis-backed when REDIS_URL is set)
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_WINDOW_SECONDS = int(os.getenv("RATELIMIT_WINDOW_SECONDS", "60"))
    AUTH_LOGIN_RATE_LIMIT = int(os.getenv("AUTH_LOGIN_RATE_LIMIT", "5"))
    AUTH_OTP_RATE_LIMIT = int(os.getenv("AUTH_OTP_RATE_LIMIT", "3"))
    AUTH_OTP_VERIFY_RATE_LIMIT = int(os.getenv("AUTH_OTP_VERIFY_RATE_LIMIT", "5"))

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local runs: debug on, optional plaintext OTP echo (``OTP_DEBUG_ECHO``)."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    OTP_DEBUG_ECHO = env_bool("OTP_DEBUG_ECHO", False)


class TestingConfig(BaseConfig):
    """In-memory SQLite (or ``TEST_DATABASE_URL``), in-process blacklist, no rate limits.

    Password hashing drops to a cheap pbkdf2 round count so suites stay fast.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    REDIS_URL = None
    RATELIMIT_ENABLED = False
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    OTP_DEBUG_ECHO = False
    PROPAGATE_EXCEPTIONS = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Config class named by ``APP_ENV``; unknown or unset names mean development."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """
    Immutable snapshot of the authentication settings.

    Built once by the application factory and shared by reference with every
    service; never mutated afterwards.

    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param enforce_last_auth_change: Reject refresh tokens older than the last credential change.
    :param otp_expires: One-time passcode lifetime.
    :param otp_length: Digits in a passcode.
    :param verification_token_length: Digits in a verification token.
    :param otp_max_attempts: Wrong secrets a record absorbs before it locks.
    :param otp_debug_echo: Allow the logging sender to print plaintext codes.
    :param password_hash_method: Werkzeug hashing method.
    """

    access_expires: timedelta = timedelta(hours=1)
    refresh_expires: timedelta = timedelta(days=7)
    enforce_last_auth_change: bool = True
    otp_expires: timedelta = timedelta(minutes=10)
    otp_length: int = 6
    verification_token_length: int = 6
    otp_max_attempts: int = 5
    otp_debug_echo: bool = False
    password_hash_method: str = "scrypt"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthSettings:
        """Build settings from a Flask config mapping (missing keys keep defaults)."""
        defaults = cls()
        settings = cls(
            access_expires=config.get("JWT_ACCESS_TOKEN_EXPIRES", defaults.access_expires),
            refresh_expires=config.get("JWT_REFRESH_TOKEN_EXPIRES", defaults.refresh_expires),
            enforce_last_auth_change=bool(
                config.get("JWT_ENFORCE_LAST_AUTH_CHANGE", defaults.enforce_last_auth_change)
            ),
            otp_expires=config.get("OTP_EXPIRES", defaults.otp_expires),
            otp_length=int(config.get("OTP_LENGTH", defaults.otp_length)),
            verification_token_length=int(
                config.get("OTP_VERIFICATION_TOKEN_LENGTH", defaults.verification_token_length)
            ),
            otp_max_attempts=int(config.get("OTP_MAX_ATTEMPTS", defaults.otp_max_attempts)),
            otp_debug_echo=bool(config.get("OTP_DEBUG_ECHO", defaults.otp_debug_echo)),
            password_hash_method=str(
                config.get("PASSWORD_HASH_METHOD", defaults.password_hash_method)
            ),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Reject lifetimes and lengths that would make tokens unusable."""
        for name in ("access_expires", "refresh_expires", "otp_expires"):
            value = getattr(self, name)
            if not isinstance(value, timedelta) or value <= timedelta(0):
                raise ValueError(f"{name} must be a positive timedelta.")
        if self.otp_length < 4 or self.verification_token_length < 4:
            raise ValueError("One-time codes need at least 4 digits.")
        if self.otp_max_attempts < 1:
            raise ValueError("otp_max_attempts must be at least 1.")
