"""
Tool registry: the closed table of tools a run can dispatch to.
"""

import asyncio
import os
from typing import Any, Iterable, Optional, Sequence

import structlog
from pydantic import ValidationError

from ..errors import UnknownToolError
from ..llm.base import ToolDefinition, ToolInvocation
from .base import Tool, ToolErrorKind, ToolOutcome, classify_os_error

logger = structlog.get_logger()


def _paths_overlap(a: str, b: str) -> bool:
    """True if a and b are the same path or one contains the other."""
    a = os.path.normpath(os.path.abspath(a))
    b = os.path.normpath(os.path.abspath(b))
    if a == b:
        return True
    return a.startswith(b.rstrip(os.sep) + os.sep) or b.startswith(a.rstrip(os.sep) + os.sep)


class ToolRegistry:
    """Fixed mapping from tool name to tool.

    The table is built once at construction. Handler failures become
    error outcomes; an unknown name raises UnknownToolError.
    """

    def __init__(self, tools: Iterable[Tool], tool_timeout: Optional[float] = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool
        self.tool_timeout = tool_timeout
        logger.debug("Tool registry built", tools=self.list_tools())

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        """Get all tool definitions for the LLM."""
        return [
            ToolDefinition(
                name=tool.name,
                description=tool.description,
                parameters=tool.get_parameters_schema(),
            )
            for tool in self._tools.values()
        ]

    def _require(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            logger.error("Unknown tool requested", tool_name=name)
            raise UnknownToolError(name)
        return tool

    async def dispatch(self, name: str, arguments: dict[str, Any]) -> ToolOutcome:
        """Execute a tool by name."""
        tool = self._require(name)

        try:
            params = tool.validate(arguments or {})
        except ValidationError as e:
            logger.warning("Invalid tool arguments", tool_name=name, error=str(e))
            return ToolOutcome.fail(
                ToolErrorKind.INVALID_ARGUMENTS, f"Invalid arguments for {name}: {e}"
            )

        try:
            if self.tool_timeout and not tool.self_timed:
                result = await asyncio.wait_for(tool.execute(params), timeout=self.tool_timeout)
            else:
                result = await tool.execute(params)
        except asyncio.TimeoutError:
            logger.error("Tool timed out", tool_name=name, timeout=self.tool_timeout)
            return ToolOutcome.fail(
                ToolErrorKind.TIMEOUT, f"Tool '{name}' timed out after {self.tool_timeout} seconds"
            )
        except OSError as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return ToolOutcome.fail(classify_os_error(e), str(e))
        except Exception as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return ToolOutcome.fail(ToolErrorKind.GENERIC_IO, str(e))

        logger.debug("Tool executed", tool_name=name, success=result.success)
        return result

    def _resource_of(self, invocation: ToolInvocation) -> Optional[str]:
        tool = self._tools[invocation.name]
        try:
            params = tool.validate(invocation.arguments or {})
        except ValidationError:
            return None
        return tool.resource_path(params)

    async def dispatch_many(
        self,
        invocations: Sequence[ToolInvocation],
        parallel: bool = True,
    ) -> list[ToolOutcome]:
        """Execute one turn's invocations, returning outcomes in the same order.

        Every name is checked before anything runs. In parallel mode an
        invocation waits for all earlier ones whose resource path overlaps
        its own.
        """
        for invocation in invocations:
            self._require(invocation.name)

        if not parallel:
            return [await self.dispatch(inv.name, inv.arguments) for inv in invocations]

        resources = [self._resource_of(inv) for inv in invocations]
        finished = [asyncio.Event() for _ in invocations]

        async def run(index: int) -> ToolOutcome:
            invocation = invocations[index]
            path = resources[index]
            try:
                if path is not None:
                    for earlier in range(index):
                        other = resources[earlier]
                        if other is not None and _paths_overlap(path, other):
                            await finished[earlier].wait()
                return await self.dispatch(invocation.name, invocation.arguments)
            finally:
                finished[index].set()

        return list(await asyncio.gather(*(run(i) for i in range(len(invocations)))))
