"""
Tests for the tool registry.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from codebase_agent.errors import UnknownToolError
from codebase_agent.llm.base import ToolInvocation
from codebase_agent.tools.base import Tool, ToolErrorKind, ToolOutcome
from codebase_agent.tools.registry import ToolRegistry, _paths_overlap


class PathParams(BaseModel):
    path: str
    delay: float = 0.0


def recording_tool(name: str, events: list[str]) -> Tool:
    async def handler(path: str, delay: float) -> ToolOutcome:
        await asyncio.sleep(delay)
        events.append(f"{name}:{path}")
        return ToolOutcome.ok(path)

    return Tool(
        name=name,
        description=f"Records calls to {name}",
        params=PathParams,
        handler=handler,
        resource=lambda params: params.path,
    )


def test_duplicate_tool_names_rejected():
    events: list[str] = []
    with pytest.raises(ValueError):
        ToolRegistry([recording_tool("a", events), recording_tool("a", events)])


def test_definitions_use_parameter_schema():
    registry = ToolRegistry([recording_tool("touch", [])])

    [definition] = registry.get_definitions()

    assert definition.name == "touch"
    assert definition.parameters["type"] == "object"
    assert "path" in definition.parameters["properties"]
    assert definition.parameters["required"] == ["path"]


@pytest.mark.asyncio
async def test_dispatch_unknown_tool_raises():
    registry = ToolRegistry([recording_tool("touch", [])])

    with pytest.raises(UnknownToolError) as exc_info:
        await registry.dispatch("nope", {})

    assert exc_info.value.name == "nope"


@pytest.mark.asyncio
async def test_dispatch_invalid_arguments_returns_error_value():
    registry = ToolRegistry([recording_tool("touch", [])])

    outcome = await registry.dispatch("touch", {"delay": 0})

    assert outcome.success is False
    assert outcome.kind == ToolErrorKind.INVALID_ARGUMENTS
    assert "touch" in outcome.payload["error"]


@pytest.mark.asyncio
async def test_dispatch_captures_handler_exceptions():
    async def explode(path: str, delay: float) -> ToolOutcome:
        raise OSError("disk full")

    registry = ToolRegistry([Tool("boom", "fails", PathParams, explode)])

    outcome = await registry.dispatch("boom", {"path": "/tmp/x"})

    assert outcome.success is False
    assert outcome.kind == ToolErrorKind.GENERIC_IO
    assert outcome.payload == {"error": "disk full"}


@pytest.mark.asyncio
async def test_dispatch_times_out():
    registry = ToolRegistry([recording_tool("slow", [])], tool_timeout=0.05)

    outcome = await registry.dispatch("slow", {"path": "/tmp/x", "delay": 5})

    assert outcome.success is False
    assert outcome.kind == ToolErrorKind.TIMEOUT


@pytest.mark.asyncio
async def test_dispatch_many_checks_names_before_running():
    handler = AsyncMock(return_value=ToolOutcome.ok())
    registry = ToolRegistry([Tool("touch", "t", PathParams, handler)])
    invocations = [
        ToolInvocation("1", "touch", {"path": "/tmp/a"}),
        ToolInvocation("2", "missing", {}),
    ]

    with pytest.raises(UnknownToolError):
        await registry.dispatch_many(invocations)

    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_many_serializes_overlapping_paths():
    events: list[str] = []
    registry = ToolRegistry([recording_tool("write", events), recording_tool("read", events)])
    invocations = [
        ToolInvocation("1", "write", {"path": "/tmp/project/a.txt", "delay": 0.05}),
        ToolInvocation("2", "read", {"path": "/tmp/project/a.txt"}),
        ToolInvocation("3", "read", {"path": "/tmp/project"}),
    ]

    outcomes = await registry.dispatch_many(invocations)

    assert events == ["write:/tmp/project/a.txt", "read:/tmp/project/a.txt", "read:/tmp/project"]
    assert [o.payload for o in outcomes] == ["/tmp/project/a.txt", "/tmp/project/a.txt", "/tmp/project"]


@pytest.mark.asyncio
async def test_dispatch_many_runs_independent_paths_concurrently():
    events: list[str] = []
    registry = ToolRegistry([recording_tool("write", events)])
    invocations = [
        ToolInvocation("1", "write", {"path": "/tmp/one", "delay": 0.1}),
        ToolInvocation("2", "write", {"path": "/tmp/two"}),
    ]

    outcomes = await registry.dispatch_many(invocations)

    assert events == ["write:/tmp/two", "write:/tmp/one"]
    assert [o.payload for o in outcomes] == ["/tmp/one", "/tmp/two"]


@pytest.mark.asyncio
async def test_dispatch_many_sequential_mode():
    events: list[str] = []
    registry = ToolRegistry([recording_tool("write", events)])
    invocations = [
        ToolInvocation("1", "write", {"path": "/tmp/one", "delay": 0.05}),
        ToolInvocation("2", "write", {"path": "/tmp/two"}),
    ]

    await registry.dispatch_many(invocations, parallel=False)

    assert events == ["write:/tmp/one", "write:/tmp/two"]


def test_paths_overlap():
    assert _paths_overlap("/a/b", "/a/b")
    assert _paths_overlap("/a", "/a/b/c.txt")
    assert _paths_overlap("/a/b/c.txt", "/a/")
    assert not _paths_overlap("/a/b", "/a/bc")
    assert not _paths_overlap("/x/y", "/a/b")


@pytest.mark.asyncio
async def test_dispatch_classifies_os_errors():
    async def denied(path: str, delay: float) -> ToolOutcome:
        raise PermissionError(13, "Permission denied", path)

    registry = ToolRegistry([Tool("locked", "fails", PathParams, denied)])

    outcome = await registry.dispatch("locked", {"path": "/root/secret"})

    assert outcome.kind == ToolErrorKind.PERMISSION_DENIED


@pytest.mark.asyncio
async def test_self_timed_tool_skips_registry_timeout():
    tool = recording_tool("slow", [])
    tool.self_timed = True
    registry = ToolRegistry([tool], tool_timeout=0.01)

    outcome = await registry.dispatch("slow", {"path": "/tmp/x", "delay": 0.1})

    assert outcome.success is True
