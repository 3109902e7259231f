"""
Configuration management for codebase-agent

Uses pydantic-settings for environment variable parsing and validation.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    log_level: str = "INFO"

    # Remote service
    provider: Literal["anthropic"] = "anthropic"
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    base_url: str | None = Field(default=None, description="Override the API base URL")
    model: str = "claude-sonnet-4-5"
    max_tokens: int = 64_000
    compaction_max_tokens: int = 5_000
    compaction_timeout: float = Field(
        default=120.0, gt=0, description="Seconds allowed for one summarization request"
    )
    max_retries: int = Field(default=2, ge=0, description="Retries for transient API failures")
    request_timeout: float = Field(default=600.0, gt=0, description="Seconds per API request")

    # Loop budget
    max_turns: int = Field(default=200, ge=1, description="Max model turns per run")
    tool_timeout: float = Field(default=300.0, gt=0, description="Seconds per tool call")
    parallel_tools: bool = True

    # Compaction
    context_token_budget: int = Field(default=150_000, description="Estimated transcript budget")
    compaction_threshold: float = Field(default=0.8, gt=0, le=1)
    auto_compaction: bool = True

    # Workspace
    notes_filename: str = "AGENT_INFO.md"
    tree_depth: int = 2
    tree_max_lines: int = 30
    max_output_chars: int = 100_000

    # Instruction payloads (empty means built-in defaults)
    system_prompt: str = ""
    task_prompt: str = ""

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper() if v else "INFO"

    @property
    def compaction_trigger_tokens(self) -> int:
        """Estimated token count at which the transcript gets compacted."""
        return int(self.context_token_budget * self.compaction_threshold)

    def require_api_key(self) -> str:
        """Return the API key or fail startup."""
        if not self.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")
        return self.anthropic_api_key
