"""
Anthropic Claude LLM provider.
"""

import json
from typing import Any

import anthropic
import structlog

from ..errors import ServiceError
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

logger = structlog.get_logger()


def _encode_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=str)


class AnthropicLLM(BaseLLM):
    """Anthropic Claude LLM provider.

    Transient failures (connection errors, 408/409/429/5xx) are retried by
    the SDK up to ``max_retries`` times before surfacing as ServiceError.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5",
        base_url: str | None = None,
        max_tokens: int = 64_000,
        timeout: float = 600.0,
        max_retries: int = 2,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        super().__init__(api_key, model, base_url, max_tokens)
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def _convert_part(self, part: ContentPart) -> dict[str, Any]:
        if isinstance(part, TextPart):
            return {"type": "text", "text": part.text}
        if isinstance(part, ToolInvocation):
            return {
                "type": "tool_use",
                "id": part.id,
                "name": part.name,
                "input": part.arguments,
            }
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": part.invocation_id,
            "content": _encode_payload(part.payload),
        }
        if part.is_error:
            block["is_error"] = True
        return block

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert Messages to Anthropic format.

        Consecutive messages with the same role are merged into one.
        """
        converted: list[dict[str, Any]] = []

        for msg in messages:
            blocks = [self._convert_part(part) for part in msg.content]
            if converted and converted[-1]["role"] == msg.role:
                converted[-1]["content"].extend(blocks)
            else:
                converted.append({"role": msg.role, "content": blocks})

        return converted

    def _convert_tools(self, tools: list[ToolDefinition]) -> list[dict[str, Any]]:
        """Convert ToolDefinitions to Anthropic format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    def _parse_response(self, response: Any) -> Turn:
        parts: list[ContentPart] = []
        seen_ids: set[str] = set()

        for block in response.content:
            if block.type == "text":
                parts.append(TextPart(block.text))
            elif block.type == "tool_use":
                if block.id in seen_ids:
                    raise ServiceError(None, f"Duplicate tool_use id in reply: {block.id}")
                seen_ids.add(block.id)
                parts.append(ToolInvocation(
                    id=block.id,
                    name=block.name,
                    arguments=dict(block.input) if isinstance(block.input, dict) else {},
                ))

        usage = getattr(response, "usage", None)
        return Turn(
            parts=parts,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            model=getattr(response, "model", "") or "",
            stop_reason=getattr(response, "stop_reason", None),
        )

    async def generate(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
    ) -> Turn:
        """Generate a response from Claude."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "messages": self._convert_messages(messages),
        }

        if system_prompt:
            kwargs["system"] = system_prompt

        if tools:
            kwargs["tools"] = self._convert_tools(tools)

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIStatusError as e:
            logger.error("Anthropic API error", status=e.status_code, error=str(e))
            raise ServiceError(e.status_code, e.body if e.body is not None else e.message) from e
        except anthropic.APIConnectionError as e:
            logger.error("Anthropic connection error", error=str(e))
            raise ServiceError(None, str(e)) from e

        return self._parse_response(response)
