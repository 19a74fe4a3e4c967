"""Unit tests that do not require a running API or external services."""
from app.config import Settings, settings


def test_settings_load():
    """Settings load from environment (tests run with ENVIRONMENT=test)."""
    assert settings.API_V1_PREFIX == "/api/v1"
    assert settings.APP_NAME == "Rental Billing Engine"
    assert settings.is_sqlite


def test_environment_flag():
    """Environment flags reflect ENVIRONMENT value."""
    assert settings.ENVIRONMENT.lower() in ("development", "test", "production")
    assert settings.is_development == (settings.ENVIRONMENT.lower() == "development")
    assert settings.is_production == (settings.ENVIRONMENT.lower() == "production")


def test_rate_keywords_are_parsed(monkeypatch):
    monkeypatch.setenv("WATER_RATE_KEYWORDS", " Water , ประปา,")
    parsed = Settings()
    assert parsed.WATER_RATE_KEYWORDS == ["water", "ประปา"]
