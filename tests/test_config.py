"""
Unit tests for resolver settings in social.graze.avatars.config
"""

import pytest
from pydantic import ValidationError

from social.graze.avatars.config import Settings, load_settings, validate_settings
from social.graze.avatars.errors import ConfigurationError


class TestSettingsDefaults:
    def test_libravatar_defaults(self, monkeypatch):
        for name in (
            "USE_HTTPS",
            "FALLBACK_HOST",
            "SECURE_FALLBACK_HOST",
            "SERVICE_BASE",
            "SECURE_SERVICE_BASE",
            "CACHE_TTL",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings()

        assert settings.use_https is False
        assert settings.fallback_host == "cdn.libravatar.org"
        assert settings.secure_fallback_host == "seccdn.libravatar.org"
        assert settings.service_base == "avatars"
        assert settings.secure_service_base == "avatars-sec"
        assert settings.cache_ttl == 86400

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FALLBACK_HOST", "avatars.internal.example")
        monkeypatch.setenv("CACHE_TTL", "3600")
        monkeypatch.setenv("USE_HTTPS", "true")

        settings = load_settings()

        assert settings.fallback_host == "avatars.internal.example"
        assert settings.cache_ttl == 3600
        assert settings.use_https is True

    def test_hosts_are_normalized(self):
        settings = load_settings(fallback_host=" cdn.example.org. ")
        assert settings.fallback_host == "cdn.example.org"

    def test_frozen(self, settings):
        with pytest.raises(ValidationError):
            settings.cache_ttl = 10


class TestSettingsValidation:
    """Invalid settings are rejected at construction, not on first use."""

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_non_positive_ttl(self, ttl):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(cache_ttl=ttl)
        assert "cache_ttl" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, ValidationError)

    @pytest.mark.parametrize(
        "field", ["fallback_host", "secure_fallback_host", "service_base", "secure_service_base"]
    )
    def test_empty_hosts(self, field):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(**{field: "  "})
        assert field in exc_info.value.message

    def test_non_positive_dns_timeout(self):
        with pytest.raises(ConfigurationError):
            load_settings(dns_timeout=0)

    def test_unknown_metrics_backend(self):
        with pytest.raises(ConfigurationError):
            load_settings(metrics_backend="carrier-pigeon")

    def test_settings_class_raises_validation_error(self):
        with pytest.raises(ValidationError):
            Settings(cache_ttl=0)

    def test_validate_settings_rechecks_copies(self, settings):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(settings.model_copy(update={"cache_ttl": 0}))
        assert "cache_ttl" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_validate_settings_ignores_environment(self, settings, monkeypatch):
        monkeypatch.setenv("FALLBACK_HOST", "env.example")
        assert validate_settings(settings).fallback_host == "cdn.libravatar.org"
