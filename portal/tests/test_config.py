"""Tests for centralized configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestRedisSettings:
    """Test Redis configuration settings."""

    def test_redis_default_values(self):
        from portal.config import RedisSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = RedisSettings()
            assert settings.host == "redis"
            assert settings.port == 6379
            assert settings.password == ""
            assert settings.max_connections == 50

    def test_redis_from_environment(self):
        from portal.config import RedisSettings

        env = {"REDIS_HOST": "cache", "REDIS_PORT": "6380", "REDIS_POOL_TIMEOUT_SEC": "10"}
        with patch.dict(os.environ, env, clear=True):
            settings = RedisSettings()
            assert settings.host == "cache"
            assert settings.port == 6380
            assert settings.pool_timeout_sec == 10.0


class TestPostgresSettings:
    def test_postgres_dsn_generation(self):
        """POSTGRES_DB feeds the database name."""
        from portal.config import PostgresSettings

        env = {
            "POSTGRES_HOST": "dbhost",
            "POSTGRES_PORT": "5433",
            "POSTGRES_USER": "portal_app",
            "POSTGRES_PASSWORD": "pw",
            "POSTGRES_DB": "activities",
        }
        with patch.dict(os.environ, env, clear=True):
            dsn = PostgresSettings().get_dsn()
            assert "host=dbhost" in dsn
            assert "port=5433" in dsn
            assert "user=portal_app" in dsn
            assert "dbname=activities" in dsn

    def test_pool_defaults(self):
        from portal.config import PostgresSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = PostgresSettings()
            assert settings.pool_min_size == 1
            assert settings.pool_max_size == 10


class TestCorsSettings:
    def test_cors_default_values(self):
        from portal.config import CorsSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = CorsSettings()
            assert settings.origins == ["http://localhost:5173"]
            assert settings.allow_credentials is True

    def test_cors_wildcard_disables_credentials(self):
        from portal.config import CorsSettings

        with patch.dict(os.environ, {"CORS_ORIGINS": "*"}, clear=True):
            settings = CorsSettings()
            assert settings.origins == ["*"]
            assert settings.allow_credentials is False

    def test_cors_comma_separated(self):
        from portal.config import CorsSettings

        with patch.dict(os.environ, {"CORS_ORIGINS": "https://a.org, https://b.org ,"}, clear=True):
            assert CorsSettings().origins == ["https://a.org", "https://b.org"]


class TestFlags:
    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("YES", True), ("0", False), ("off", False)])
    def test_persistence_flag_parsing(self, raw, expected):
        from portal.config import FeatureSettings

        with patch.dict(os.environ, {"ENABLE_PERSISTENCE": raw}, clear=True):
            assert FeatureSettings().persistence is expected

    def test_feature_defaults(self):
        from portal.config import FeatureSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = FeatureSettings()
            assert settings.persistence is False
            assert settings.demo_catalog is True

    def test_debug_flags(self):
        from portal.config import DebugSettings

        with patch.dict(os.environ, {"REQUEST_DEBUG": "1"}, clear=True):
            settings = DebugSettings()
            assert settings.request is True
            assert settings.redis is False


class TestBookingSettings:
    def test_defaults(self):
        from portal.config import BookingSettings

        with patch.dict(os.environ, {}, clear=True):
            settings = BookingSettings()
            assert settings.weekly_cap == 3
            assert settings.participant_toast_sec == 3.0
            assert settings.volunteer_toast_sec == 2.5
            assert settings.utc_offset == "+08:00"
            assert settings.default_participant_capacity == 20

    def test_from_environment(self):
        from portal.config import BookingSettings

        with patch.dict(os.environ, {"BOOKING_WEEKLY_CAP": "5", "BOOKING_UTC_OFFSET": "-05:00"}, clear=True):
            settings = BookingSettings()
            assert settings.weekly_cap == 5
            assert settings.utc_offset == "-05:00"

    def test_bad_offset_rejected(self):
        from portal.config import BookingSettings

        with patch.dict(os.environ, {"BOOKING_UTC_OFFSET": "8"}, clear=True):
            with pytest.raises(ValidationError):
                BookingSettings()


class TestSettingsCache:
    def test_get_settings_is_cached(self):
        from portal.config import clear_settings_cache, get_settings

        clear_settings_cache()
        assert get_settings() is get_settings()

    def test_clear_settings_cache_reloads(self):
        from portal.config import clear_settings_cache, get_settings

        with patch.dict(os.environ, {"SESSION_TTL_SEC": "60"}, clear=True):
            clear_settings_cache()
            assert get_settings().session.ttl_sec == 60
        with patch.dict(os.environ, {"SESSION_TTL_SEC": "120"}, clear=True):
            assert get_settings().session.ttl_sec == 60
            clear_settings_cache()
            assert get_settings().session.ttl_sec == 120
        clear_settings_cache()
