"""
Unit tests for environment-driven configuration.
"""

import pytest

from src.indicator_qa import config
from src.indicator_qa.processors.qa_core import QAConfig


class TestEnvLimits:

    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("INDICATOR_QA_TEST_LIMIT", raising=False)

        assert config._env_limit("INDICATOR_QA_TEST_LIMIT", 100) == 100

    @pytest.mark.parametrize("raw", ["0", "none", "Unlimited"])
    def test_disabled_limit(self, monkeypatch, raw):
        monkeypatch.setenv("INDICATOR_QA_TEST_LIMIT", raw)

        assert config._env_limit("INDICATOR_QA_TEST_LIMIT", 100) is None

    def test_integer_limit(self, monkeypatch):
        monkeypatch.setenv("INDICATOR_QA_TEST_LIMIT", "250")

        assert config._env_limit("INDICATOR_QA_TEST_LIMIT", 100) == 250

    def test_invalid_limit_falls_back(self, monkeypatch):
        monkeypatch.setenv("INDICATOR_QA_TEST_LIMIT", "lots")

        assert config._env_limit("INDICATOR_QA_TEST_LIMIT", 100) == 100

    def test_float_setting(self, monkeypatch):
        monkeypatch.setenv("INDICATOR_QA_TEST_THRESHOLD", "3.5")

        assert config._env_float("INDICATOR_QA_TEST_THRESHOLD", 2.5) == 3.5


class TestQAConfigFromEnv:

    def test_uses_module_settings(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_SERIES_LENGTH", None)
        monkeypatch.setattr(config, "ZSCORE_THRESHOLD", 2.0)

        qa_config = QAConfig.from_env()

        assert qa_config.max_series_length is None
        assert qa_config.zscore_threshold == 2.0
