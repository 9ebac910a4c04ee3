"""
Tests for logging configuration.
"""
import logging

import pytest


class TestLoggingConfiguration:
    """Test logging setup and configuration."""

    def test_setup_logging_default_level(self, monkeypatch):
        """Test that setup_logging defaults to INFO level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        from coffee_bot.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("coffee_bot")
        assert logger.level == logging.INFO

    def test_setup_logging_respects_env_var(self, monkeypatch):
        """Test that LOG_LEVEL env var is respected."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")

        from coffee_bot.logging_config import setup_logging
        setup_logging()

        logger = logging.getLogger("coffee_bot")
        assert logger.level == logging.WARNING

    def test_setup_logging_explicit_level(self):
        from coffee_bot.logging_config import setup_logging
        setup_logging(level="error")

        assert logging.getLogger("coffee_bot").level == logging.ERROR

    def test_setup_logging_invalid_level_defaults_to_info(self):
        """Test that invalid level falls back to INFO."""
        from coffee_bot.logging_config import setup_logging
        setup_logging(level="INVALID_LEVEL")

        assert logging.getLogger("coffee_bot").level == logging.INFO

    def test_noisy_loggers_are_quieted(self):
        from coffee_bot.logging_config import NOISY_LOGGERS, setup_logging
        setup_logging(level="INFO")

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING


    def test_turn_loggers_follow_app_level_by_default(self, monkeypatch):
        monkeypatch.delenv("TURN_LOG_LEVEL", raising=False)
        from coffee_bot.logging_config import TURN_LOGGERS, setup_logging
        setup_logging(level="WARNING")

        for name in TURN_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_turn_log_level_env_var(self, monkeypatch):
        monkeypatch.setenv("TURN_LOG_LEVEL", "debug")
        from coffee_bot.logging_config import setup_logging
        setup_logging(level="WARNING")

        assert logging.getLogger("coffee_bot.engine").level == logging.DEBUG
        assert logging.getLogger("coffee_bot").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING

    def test_invalid_turn_level_falls_back_to_app_level(self):
        from coffee_bot.logging_config import setup_logging
        setup_logging(level="ERROR", turn_level="chatty")

        assert logging.getLogger("coffee_bot.engine").level == logging.ERROR

class TestNoSensitiveDataInLogs:
    """Test that secrets and raw oracle payloads stay out of INFO logs."""

    def test_oracle_init_does_not_log_key(self, caplog, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-secret-123")
        from coffee_bot.llm_client import OpenAIOracle

        with caplog.at_level(logging.INFO):
            OpenAIOracle()

        assert "sk-secret-123" not in caplog.text

    def test_raw_oracle_text_only_at_debug(self, caplog):
        from coffee_bot.errors import OracleResponseError
        from coffee_bot.llm_client import extract_json_object

        with caplog.at_level(logging.INFO):
            with pytest.raises(OracleResponseError):
                extract_json_object("customer card 4111 1111")

        assert "4111" not in caplog.text
