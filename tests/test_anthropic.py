"""
Tests for the Anthropic client wrapper.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from codebase_agent.errors import ServiceError
from codebase_agent.llm.anthropic import AnthropicLLM
from codebase_agent.llm.base import (
    Message,
    TextPart,
    ToolDefinition,
    ToolInvocation,
    ToolResultPart,
)

API_URL = "https://api.anthropic.com/v1/messages"


def make_llm(response=None, error=None) -> AnthropicLLM:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=error)
    return AnthropicLLM(api_key="test-key", model="test-model", client=client)


def make_response(*blocks) -> SimpleNamespace:
    return SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        model="test-model",
        stop_reason="tool_use",
    )


def test_convert_messages_merges_same_role():
    llm = make_llm()
    messages = [
        Message.user_text("seed"),
        Message.user_text("[Compacted conversation history]"),
        Message(role="assistant", content=(ToolInvocation("t1", "grep", {"pattern": "x"}),)),
        Message(role="user", content=(
            ToolResultPart("t1", {"error": "bad"}, is_error=True),
        )),
    ]

    converted = llm._convert_messages(messages)

    assert [m["role"] for m in converted] == ["user", "assistant", "user"]
    assert len(converted[0]["content"]) == 2
    assert converted[1]["content"][0] == {
        "type": "tool_use",
        "id": "t1",
        "name": "grep",
        "input": {"pattern": "x"},
    }
    assert converted[2]["content"][0] == {
        "type": "tool_result",
        "tool_use_id": "t1",
        "content": '{"error": "bad"}',
        "is_error": True,
    }


@pytest.mark.asyncio
async def test_generate_parses_reply():
    response = make_response(
        SimpleNamespace(type="text", text="Let me look."),
        SimpleNamespace(type="tool_use", id="t1", name="read_file", input={"path": "/a/b.txt"}),
    )
    llm = make_llm(response)
    tools = [ToolDefinition("read_file", "Read a file", {"type": "object", "properties": {}})]

    turn = await llm.generate([Message.user_text("hi")], tools=tools, system_prompt="sys")

    assert turn.parts == [
        TextPart("Let me look."),
        ToolInvocation("t1", "read_file", {"path": "/a/b.txt"}),
    ]
    assert turn.input_tokens == 10
    assert turn.stop_reason == "tool_use"

    kwargs = llm.client.messages.create.await_args.kwargs
    assert kwargs["system"] == "sys"
    assert kwargs["max_tokens"] == 64_000
    assert kwargs["tools"][0]["input_schema"] == {"type": "object", "properties": {}}


@pytest.mark.asyncio
async def test_generate_without_tools_omits_them():
    llm = make_llm(make_response(SimpleNamespace(type="text", text="summary")))

    turn = await llm.generate([Message.user_text("compress this")], max_tokens=5_000)

    assert turn.text == "summary"
    kwargs = llm.client.messages.create.await_args.kwargs
    assert "tools" not in kwargs
    assert "system" not in kwargs
    assert kwargs["max_tokens"] == 5_000


@pytest.mark.asyncio
async def test_status_error_becomes_service_error():
    error = anthropic.InternalServerError(
        message="Internal server error",
        response=httpx.Response(500, request=httpx.Request("POST", API_URL)),
        body={"type": "error", "error": {"type": "api_error"}},
    )
    llm = make_llm(error=error)

    with pytest.raises(ServiceError) as exc_info:
        await llm.generate([Message.user_text("hi")])

    assert exc_info.value.status == 500
    assert exc_info.value.body == {"type": "error", "error": {"type": "api_error"}}
    assert "status: 500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_error_becomes_service_error():
    llm = make_llm(error=anthropic.APIConnectionError(request=httpx.Request("POST", API_URL)))

    with pytest.raises(ServiceError) as exc_info:
        await llm.generate([Message.user_text("hi")])

    assert exc_info.value.status is None


@pytest.mark.asyncio
async def test_duplicate_tool_ids_rejected():
    block = SimpleNamespace(type="tool_use", id="t1", name="thinking", input={"thought": "x"})
    llm = make_llm(make_response(block, block))

    with pytest.raises(ServiceError, match="Duplicate"):
        await llm.generate([Message.user_text("hi")])
