"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from errlens.config import Settings
from errlens.errors import ConfigurationError
from errlens.session.cache import LockPolicy


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.provider == "local"
        assert settings.lock_policy is LockPolicy.ITERATE
        assert settings.feedback_path == Path("./errlens_feedback.json")
        assert settings.temperature == 0.0
        assert settings.seed is None
        assert settings.log_level == "WARNING"

    def test_reads_values(self):
        settings = Settings.from_env({
            "LLM_PROVIDER": "GROQ",
            "GROQ_API_KEY": "gsk_test",
            "OLLAMA_HOST": "http://gpu-box:11434",
            "ERRLENS_FEEDBACK_PATH": "/tmp/fb.json",
            "ERRLENS_LOCK_POLICY": "freeze",
            "ERRLENS_TEMPERATURE": "0.2",
            "ERRLENS_SEED": "42",
            "ERRLENS_MAX_TOKENS": "400",
            "ERRLENS_TIMEOUT": "30",
            "ERRLENS_LOG_LEVEL": "debug",
        })
        assert settings.provider == "groq"
        assert settings.groq_api_key == "gsk_test"
        assert settings.ollama_host == "http://gpu-box:11434"
        assert settings.feedback_path == Path("/tmp/fb.json")
        assert settings.lock_policy is LockPolicy.FREEZE
        assert settings.timeout == 30.0
        assert settings.log_level == "DEBUG"

        options = settings.generation_options
        assert options.temperature == 0.2
        assert options.seed == 42
        assert options.max_tokens == 400

    def test_blank_optional_numbers_are_unset(self):
        settings = Settings.from_env({"ERRLENS_SEED": "  "})
        assert settings.seed is None

    @pytest.mark.parametrize("env", [
        {"LLM_PROVIDER": "openai"},
        {"ERRLENS_LOCK_POLICY": "sometimes"},
        {"ERRLENS_TEMPERATURE": "hot"},
        {"ERRLENS_TEMPERATURE": "-1"},
        {"ERRLENS_SEED": "1.5"},
        {"ERRLENS_MAX_TOKENS": "0"},
        {"ERRLENS_TIMEOUT": "-3"},
        {"ERRLENS_LOG_LEVEL": "LOUD"},
    ])
    def test_invalid_values(self, env):
        with pytest.raises(ConfigurationError):
            Settings.from_env(env)
