from __future__ import annotations

import pytest

import config
from config import BaseConfig, DevelopmentConfig, get_config


def test_get_config_defaults_to_development(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)

    assert get_config() is DevelopmentConfig


def test_get_config_rejects_unknown_environment():
    with pytest.raises(KeyError):
        get_config("staging")


def test_tracked_currencies_default_to_usd_and_eur():
    assert BaseConfig.TRACKED_CURRENCIES == ["USD", "EUR"]
    assert BaseConfig.BASE_CURRENCY == "RUB"


def test_split_codes_normalizes_and_keeps_order():
    assert config._split_codes(" cny, usd ,,EUR ") == ["CNY", "USD", "EUR"]


def test_database_uri_is_built_from_postgres_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("POSTGRES_USER", "valut")
    monkeypatch.setenv("POSTGRES_PASSWORD", "p@ss")
    monkeypatch.setenv("DB_HOST", "db")
    monkeypatch.setenv("DB_PORT", "6543")
    monkeypatch.setenv("POSTGRES_DB", "rates")

    assert config._database_uri() == "postgresql+psycopg2://valut:p%40ss@db:6543/rates"


def test_database_url_overrides_parts(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///local.db")

    assert config._database_uri() == "sqlite:///local.db"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"ZERO_RATE_POLICY": "ignore"}, "ZERO_RATE_POLICY"),
        ({"TRACKED_CURRENCIES": []}, "TRACKED_CURRENCIES"),
        ({"TRACKED_CURRENCIES": ["USD", "RUB"]}, "BASE_CURRENCY"),
        ({"WINDOW_DAYS_BACK": -1}, "WINDOW_DAYS_BACK"),
    ],
)
def test_invalid_refresh_settings_are_rejected(overrides, message):
    broken = type("BrokenConfig", (DevelopmentConfig,), overrides)

    with pytest.raises(ValueError, match=message):
        config._validate_refresh_settings(broken)
