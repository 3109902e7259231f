"""
Tests for configuration module.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from codebase_agent.config import Settings
from codebase_agent.errors import ConfigurationError


def test_settings_default_values():
    """Test that settings have sensible defaults."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.provider == "anthropic"
        assert settings.max_tokens == 64_000
        assert settings.compaction_max_tokens == 5_000
        assert settings.compaction_timeout == 120.0
        assert settings.max_retries == 2
        assert settings.notes_filename == "AGENT_INFO.md"
        assert settings.anthropic_api_key == ""


def test_settings_from_env():
    """Test loading settings from environment variables."""
    env = {
        "ANTHROPIC_API_KEY": "test_anthropic_key",
        "MODEL": "claude-opus-4",
        "MAX_TURNS": "12",
        "PARALLEL_TOOLS": "false",
        "LOG_LEVEL": "debug",
    }

    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)

        assert settings.anthropic_api_key == "test_anthropic_key"
        assert settings.model == "claude-opus-4"
        assert settings.max_turns == 12
        assert settings.parallel_tools is False
        assert settings.log_level == "DEBUG"


def test_settings_from_env_file(tmp_path):
    """Test loading settings from a .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text("ANTHROPIC_API_KEY=from_file\nTOOL_TIMEOUT=30\n")

    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=str(env_file))

        assert settings.anthropic_api_key == "from_file"
        assert settings.tool_timeout == 30.0


def test_require_api_key():
    """Test that a missing credential fails startup."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            settings.require_api_key()

        assert Settings(_env_file=None, anthropic_api_key="key").require_api_key() == "key"


def test_compaction_trigger_tokens():
    settings = Settings(_env_file=None, context_token_budget=100_000, compaction_threshold=0.5)

    assert settings.compaction_trigger_tokens == 50_000


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, max_turns=0)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, compaction_threshold=1.5)
