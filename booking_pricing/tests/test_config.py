"""
Tests unitaires pour config.py et settings.py
"""

from datetime import datetime

import pytz

from booking_pricing.config import (
    DEFAULT_TIME_SLOTS,
    get_default_pricing_config,
    get_pricing_config_from_settings,
    local_now,
    to_local_naive,
)
from booking_pricing.settings import Settings


def _settings(**overrides):
    return Settings(supabase_url="", supabase_key="", **overrides)


class TestPricingConfig:
    """Tests pour la configuration du moteur."""

    def test_defaults(self):
        config = get_default_pricing_config()

        assert config.base_deposit == 20.0
        assert config.rounding_increment == 5.0
        assert config.restaurant_capacity == 100
        assert config.forecast_time_slots == DEFAULT_TIME_SLOTS
        assert config.default_party_size == 2

    def test_time_slots_not_shared_between_instances(self):
        config = get_default_pricing_config()
        config.forecast_time_slots.append("10:00 PM")

        assert get_default_pricing_config().forecast_time_slots == DEFAULT_TIME_SLOTS

    def test_overrides_from_settings(self):
        config = get_pricing_config_from_settings(
            _settings(
                default_timezone="Europe/Paris",
                base_deposit=25.0,
                rounding_increment=1.0,
                restaurant_capacity=60,
            )
        )

        assert config.base_deposit == 25.0
        assert config.rounding_increment == 1.0
        assert config.restaurant_capacity == 60
        assert config.timezone == "Europe/Paris"

    def test_invalid_overrides_ignored(self):
        config = get_pricing_config_from_settings(
            _settings(base_deposit=-5.0, rounding_increment=0.0, restaurant_capacity=0)
        )

        assert config.base_deposit == 20.0
        assert config.rounding_increment == 5.0
        assert config.restaurant_capacity == 100


class TestSettings:
    """Tests pour Settings.from_env."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://mock.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service_key")
        monkeypatch.setenv("DEFAULT_TIMEZONE", "America/New_York")
        monkeypatch.setenv("PRICING_BASE_DEPOSIT", "30")
        monkeypatch.setenv("RESTAURANT_CAPACITY", "80")
        monkeypatch.setenv("PRICING_ROUNDING_INCREMENT", "not-a-number")

        settings = Settings.from_env()

        assert settings.supabase_url == "https://mock.supabase.co"
        assert settings.supabase_key == "service_key"
        assert settings.default_timezone == "America/New_York"
        assert settings.base_deposit == 30.0
        assert settings.restaurant_capacity == 80
        assert settings.rounding_increment is None

    def test_supabase_key_fallback(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        monkeypatch.setenv("SUPABASE_KEY", "anon_key")

        assert Settings.from_env().supabase_key == "anon_key"


class TestLocalClock:
    """Tests pour local_now et to_local_naive."""

    def test_local_now_is_naive(self):
        assert local_now("Europe/Paris").tzinfo is None

    def test_unknown_timezone_falls_back_to_utc(self):
        now = local_now("Mars/Olympus_Mons")
        utc_now = datetime.now(pytz.utc).replace(tzinfo=None)

        assert now.tzinfo is None
        assert abs((utc_now - now).total_seconds()) < 60

    def test_to_local_naive(self):
        aware = pytz.utc.localize(datetime(2026, 7, 1, 12, 0))

        assert to_local_naive(aware, "Europe/Paris") == datetime(2026, 7, 1, 14, 0)
        assert to_local_naive(datetime(2026, 7, 1, 12, 0), "Europe/Paris") == datetime(2026, 7, 1, 12, 0)
