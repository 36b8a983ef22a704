from __future__ import annotations

from datetime import date

import pytest

from equipdb.config import DEV_DATABASE_URL, Settings
from equipdb.middleware import RateLimiter
from equipdb.utils.timeutils import month_bounds


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://u:p@db:5432/equipdb")
    monkeypatch.setenv("CORS_ORIGIN", "https://a.example.com, https://b.example.com")
    monkeypatch.setenv("RATE_LIMIT_MAX", "7")
    monkeypatch.setenv("API_PREFIX", "/v1/")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    settings = Settings.from_env()

    assert settings.database_url.startswith("postgresql")
    assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
    assert settings.rate_limit_max == 7
    assert settings.api_prefix == "/v1"
    assert settings.is_production
    assert settings.log_level == "info"


def test_settings_development_falls_back_to_sqlite(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)

    settings = Settings.from_env()

    assert settings.database_url == DEV_DATABASE_URL
    assert settings.rate_limit_window_sec == 900
    assert settings.rate_limit_max == 100


def test_settings_production_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("APP_ENV", "production")

    with pytest.raises(RuntimeError):
        Settings.from_env()


def test_settings_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError):
        Settings.from_env()


def test_rate_limiter_counts_per_key():
    limiter = RateLimiter(window_sec=60, max_attempts=2)

    assert limiter.hit("1.1.1.1") is True
    assert limiter.hit("1.1.1.1") is True
    assert limiter.hit("1.1.1.1") is False
    assert limiter.hit("2.2.2.2") is True

    limiter.reset()
    assert limiter.hit("1.1.1.1") is True


def test_rate_limiter_window_slides(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr("equipdb.middleware.time.monotonic", lambda: clock["now"])
    limiter = RateLimiter(window_sec=10, max_attempts=1)

    assert limiter.hit("ip") is True
    assert limiter.hit("ip") is False
    clock["now"] += 11
    assert limiter.hit("ip") is True


@pytest.mark.parametrize(
    "day,offset,expected",
    [
        (date(2025, 6, 15), 0, (date(2025, 6, 1), date(2025, 6, 30))),
        (date(2025, 1, 31), -1, (date(2024, 12, 1), date(2024, 12, 31))),
        (date(2024, 1, 15), 1, (date(2024, 2, 1), date(2024, 2, 29))),
    ],
)
def test_month_bounds(day, offset, expected):
    assert month_bounds(day, offset) == expected
