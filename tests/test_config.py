"""Tests for configuration and logging helpers."""

import logging

import pytest

from mindful_trader import config
from mindful_trader.logging_utils import RedactSecretsFilter, install_log_safety, setup_logging


@pytest.fixture
def fresh_settings(tmp_path, monkeypatch):
    """Settings reloaded from a temporary config file."""

    def _make(yaml_text=None):
        if yaml_text is not None:
            path = tmp_path / "config.yaml"
            path.write_text(yaml_text)
            monkeypatch.setenv("MINDFUL_CONFIG", str(path))
        else:
            monkeypatch.setenv("MINDFUL_CONFIG", str(tmp_path / "absent.yaml"))
        settings = config.Settings()
        settings.reload()
        return settings

    yield _make
    monkeypatch.delenv("MINDFUL_CONFIG", raising=False)
    config.Settings().reload()


class TestSettings:
    def test_defaults_without_file(self, fresh_settings):
        settings = fresh_settings()
        assert settings.timezone == "America/New_York"
        assert settings.avoid_min_trades == 10
        assert settings.avoid_max_win_rate == 40.0
        assert settings.ranking_limit == 5
        assert list(settings.sector_keywords)[0] == "technology"

    def test_file_values(self, fresh_settings):
        settings = fresh_settings(
            "timezone: Europe/London\n"
            "analytics:\n"
            "  avoid_patterns:\n"
            "    min_trades: 20\n"
            "  sector_keywords:\n"
            "    Crypto: [Bitcoin]\n"
        )
        assert settings.timezone == "Europe/London"
        assert settings.avoid_min_trades == 20
        assert settings.ranking_min_trades == 5
        assert settings.sector_keywords == {"crypto": ["bitcoin"]}

    def test_environment_overrides(self, fresh_settings, monkeypatch):
        settings = fresh_settings("timezone: Europe/London\n")
        monkeypatch.setenv("TIMEZONE", "Asia/Tokyo")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert settings.timezone == "Asia/Tokyo"
        assert settings.log_level == "DEBUG"

    def test_dot_notation_get(self, fresh_settings):
        settings = fresh_settings()
        assert settings.get("analytics.best_worst_times.min_trades") == 5
        assert settings.get("analytics.missing.key", "fallback") == "fallback"

    def test_save_config(self, tmp_path, monkeypatch):
        path = tmp_path / "saved.yaml"
        monkeypatch.setenv("MINDFUL_CONFIG", str(path))
        config.save_config({"timezone": "UTC"})
        assert config.load_config() == {"timezone": "UTC"}


class TestRedaction:
    """Tests for secret redaction in log messages."""

    def _redact(self, msg, *args):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)
        RedactSecretsFilter().filter(record)
        return record.getMessage()

    def test_query_param(self):
        assert self._redact("GET /data?apikey=abc123&x=1") == "GET /data?apikey=REDACTED&x=1"

    def test_query_params_keep_their_separators(self):
        redacted = self._redact("GET /data?token=abc&apikey=def&x=1")
        assert redacted == "GET /data?token=REDACTED&apikey=REDACTED&x=1"

    def test_bearer_token(self):
        assert "abc.def" not in self._redact("Authorization: Bearer abc.def")

    def test_dsn_password(self):
        redacted = self._redact("connecting to %s", "postgresql://trader:hunter2@db:5432/journal")
        assert "hunter2" not in redacted
        assert "postgresql://trader:REDACTED@db" in redacted

    def test_plain_message_untouched(self):
        assert self._redact("Imported %d trades", 3) == "Imported 3 trades"

    def test_install_is_idempotent(self):
        install_log_safety()
        install_log_safety()
        root = logging.getLogger()
        assert len([f for f in root.filters if isinstance(f, RedactSecretsFilter)]) == 1

    def test_setup_logging_level(self):
        setup_logging("warning")
        assert logging.getLogger().level == logging.WARNING
        setup_logging("INFO")
