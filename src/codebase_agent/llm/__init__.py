"""
LLM module for talking to the remote text-generation service.
"""

from .base import (
    BaseLLM,
    ContentPart,
    Message,
    TextPart,
    ToolDefinition,
    ToolInvocation,
    ToolResultPart,
    Turn,
)
from .anthropic import AnthropicLLM
from .factory import create_llm

__all__ = [
    "BaseLLM",
    "ContentPart",
    "Message",
    "TextPart",
    "ToolDefinition",
    "ToolInvocation",
    "ToolResultPart",
    "Turn",
    "AnthropicLLM",
    "create_llm",
]
