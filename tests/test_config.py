"""Tests for environment-driven configuration."""
import logging

import pytest

from listing_qa.config import Config, config, configure_logging


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ("LISTING_QA_LOG_LEVEL", "LISTING_QA_DEFAULT_MARKETPLACE", "LISTING_QA_MAX_BATCH"):
            monkeypatch.delenv(name, raising=False)
        cfg = Config()
        assert cfg.LOG_LEVEL == "WARNING"
        assert cfg.DEFAULT_MARKETPLACE == "amazon"
        assert cfg.MAX_BATCH == 500
        cfg.validate()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LISTING_QA_LOG_LEVEL", "debug")
        monkeypatch.setenv("LISTING_QA_DEFAULT_MARKETPLACE", "Shopify")
        monkeypatch.setenv("LISTING_QA_MAX_BATCH", "20")
        cfg = Config()
        assert cfg.LOG_LEVEL == "DEBUG"
        assert cfg.DEFAULT_MARKETPLACE == "shopify"
        assert cfg.MAX_BATCH == 20
        cfg.validate()

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LISTING_QA_LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError, match="LISTING_QA_LOG_LEVEL"):
            Config().validate()

    def test_non_positive_batch(self, monkeypatch):
        monkeypatch.setenv("LISTING_QA_MAX_BATCH", "0")
        with pytest.raises(ValueError, match="LISTING_QA_MAX_BATCH"):
            Config().validate()

    def test_unknown_default_marketplace(self, monkeypatch):
        monkeypatch.setenv("LISTING_QA_DEFAULT_MARKETPLACE", "etsy")
        with pytest.raises(ValueError, match="etsy"):
            Config().validate()


class TestConfigureLogging:
    def test_sets_package_level(self):
        logger = logging.getLogger("listing_qa")
        previous = logger.level
        try:
            configure_logging("debug")
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)

    def test_rejects_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging("chatty")

    def test_none_falls_back_to_configured_level(self, monkeypatch):
        monkeypatch.setattr(config, "LOG_LEVEL", "ERROR")
        logger = logging.getLogger("listing_qa")
        previous = logger.level
        try:
            configure_logging(None)
            assert logger.level == logging.ERROR
        finally:
            logger.setLevel(previous)
