"""Tests for clausesign/config.py — Settings defaults and logging setup."""

import structlog

from clausesign.config import Settings, configure_logging, get_settings, settings


class TestSettings:

    def test_get_settings_returns_instance(self):
        s = get_settings()
        assert isinstance(s, Settings)

    def test_get_settings_returns_singleton(self):
        s1 = get_settings()
        s2 = get_settings()
        assert s1 is s2

    def test_primary_llm_provider_default(self):
        assert settings.primary_llm_provider == "anthropic"

    def test_fallback_llm_provider_default(self):
        assert settings.fallback_llm_provider == "openai"

    def test_target_block_count_default(self):
        assert settings.target_block_count == 10

    def test_mail_disabled_by_default(self):
        assert settings.mail_enabled is False

    def test_signing_url_base(self):
        s = Settings(PUBLIC_BASE_URL="https://app.clausesign.test/")
        assert s.signing_url_base == "https://app.clausesign.test/contracts/sign"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "sql")
        monkeypatch.setenv("SMTP_PORT", "2525")
        s = Settings()
        assert s.storage_backend == "sql"
        assert s.smtp_port == 2525

    def test_populate_by_name(self):
        s = Settings(target_block_count=6)
        assert s.target_block_count == 6


class TestConfigureLogging:

    def test_accepts_level_name(self):
        configure_logging("debug")
        structlog.get_logger("test").debug("configured")

    def test_unknown_level_falls_back(self):
        configure_logging("not-a-level")
        configure_logging()
