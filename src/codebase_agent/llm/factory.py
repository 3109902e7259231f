"""
LLM factory for creating provider instances.
"""

from ..config import Settings
from .anthropic import AnthropicLLM
from .base import BaseLLM


def create_llm(settings: Settings) -> BaseLLM:
    """Create an LLM instance from explicit settings.

    The API key is checked here, so a missing credential fails before any
    request is built.
    """
    if settings.provider == "anthropic":
        return AnthropicLLM(
            api_key=settings.require_api_key(),
            model=settings.model,
            base_url=settings.base_url,
            max_tokens=settings.max_tokens,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
    raise ValueError(f"Unknown LLM provider: {settings.provider}")
