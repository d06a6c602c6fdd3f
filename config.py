"""Application configuration classes."""

from __future__ import annotations

import os

from sqlalchemy.engine import URL

SUPPORTED_ZERO_RATE_POLICIES = {"abort", "skip"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _database_uri() -> str:
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    url = URL.create(
        "postgresql+psycopg2",
        username=_get_env("POSTGRES_USER", "postgres"),
        password=_get_env("POSTGRES_PASSWORD", "postgres"),
        host=_get_env("DB_HOST", "localhost"),
        port=int(_get_env("DB_PORT", "5432")),
        database=_get_env("POSTGRES_DB", "valut"),
    )
    return url.render_as_string(hide_password=False)


def _split_codes(raw: str) -> list[str]:
    return [code.strip().upper() for code in raw.split(",") if code.strip()]


class BaseConfig:
    """Base configuration shared across environments."""

    SQLALCHEMY_DATABASE_URI = _database_uri()

    CBR_FEED_BASE_URL = _get_env("CBR_FEED_BASE_URL", "https://cbr.ru/scripts")
    REQUEST_TIMEOUT_SECONDS = float(_get_env("REQUEST_TIMEOUT_SECONDS", "10"))

    BASE_CURRENCY = _get_env("BASE_CURRENCY", "RUB").strip().upper()
    TRACKED_CURRENCIES = _split_codes(_get_env("TRACKED_CURRENCIES", "USD,EUR"))
    STRICT_PARSING = _get_env("STRICT_PARSING", "false").lower() == "true"
    ZERO_RATE_POLICY = _get_env("ZERO_RATE_POLICY", "abort").lower()

    SCHEDULER_ENABLED = _get_env("SCHEDULER_ENABLED", "true").lower() == "true"
    SCHEDULER_TICK_SECONDS = float(_get_env("SCHEDULER_TICK_SECONDS", "1"))
    REFRESH_INTERVAL_SECONDS = int(_get_env("REFRESH_INTERVAL_SECONDS", str(20 * 60)))
    RETRY_DELAY_SECONDS = int(_get_env("RETRY_DELAY_SECONDS", "5"))
    MAX_CONSECUTIVE_FAILURES = int(_get_env("MAX_CONSECUTIVE_FAILURES", "10"))
    WINDOW_DAYS_BACK = int(_get_env("WINDOW_DAYS_BACK", "6"))
    WINDOW_DAYS_AHEAD = int(_get_env("WINDOW_DAYS_AHEAD", "1"))

    HEALTH_HOST = _get_env("HEALTH_HOST", "0.0.0.0")
    HEALTH_PORT = int(_get_env("HEALTH_PORT", "8000"))

    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If the refresh settings are inconsistent.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    _validate_refresh_settings(config_cls)
    return config_cls


def _validate_refresh_settings(config_cls: type[BaseConfig]) -> None:
    policy = config_cls.ZERO_RATE_POLICY
    if policy not in SUPPORTED_ZERO_RATE_POLICIES:
        raise ValueError(
            f"Unsupported ZERO_RATE_POLICY '{policy}'. "
            f"Allowed values: {sorted(SUPPORTED_ZERO_RATE_POLICIES)}"
        )

    tracked = config_cls.TRACKED_CURRENCIES
    if not tracked:
        raise ValueError("TRACKED_CURRENCIES must name at least one currency")
    if config_cls.BASE_CURRENCY in tracked:
        raise ValueError(
            f"BASE_CURRENCY '{config_cls.BASE_CURRENCY}' cannot also be a tracked currency"
        )

    if config_cls.WINDOW_DAYS_BACK < 0 or config_cls.WINDOW_DAYS_AHEAD < 0:
        raise ValueError("WINDOW_DAYS_BACK and WINDOW_DAYS_AHEAD must not be negative")
