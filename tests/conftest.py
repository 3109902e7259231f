"""
Shared fixtures: a scripted LLM and test settings.
"""

from typing import Any

import pytest

from codebase_agent.config import Settings
from codebase_agent.llm.base import BaseLLM, Message, TextPart, ToolInvocation, Turn


class ScriptedLLM(BaseLLM):
    """Returns queued turns in order; queued exceptions are raised."""

    def __init__(self, *replies: Any):
        super().__init__(api_key="test-key", model="test-model")
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    async def generate(
        self,
        messages: list[Message],
        tools=None,
        system_prompt=None,
        max_tokens=None,
    ) -> Turn:
        self.calls.append({
            "messages": list(messages),
            "tools": tools,
            "system_prompt": system_prompt,
            "max_tokens": max_tokens,
        })
        if not self.replies:
            raise AssertionError("ScriptedLLM ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def text_turn(*texts: str) -> Turn:
    return Turn(parts=[TextPart(t) for t in texts], stop_reason="end_turn")


def tool_turn(*invocations: ToolInvocation, text: str = "") -> Turn:
    parts = [TextPart(text)] if text else []
    return Turn(parts=[*parts, *invocations], stop_reason="tool_use")


def invoke(id: str, name: str, **arguments: Any) -> ToolInvocation:
    return ToolInvocation(id=id, name=name, arguments=arguments)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        anthropic_api_key="test-key",
        parallel_tools=True,
        tool_timeout=10.0,
    )
