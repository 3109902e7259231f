"""
Fatal error types for codebase-agent.

Tool-level failures are not exceptions: handlers return them as
structured values (see ``tools.base.ToolErrorKind``) so the model can
react to them. Everything in this module aborts a run.
"""

from typing import Any


class AgentError(Exception):
    """Base class for fatal agent errors."""


class ConfigurationError(AgentError):
    """Startup configuration is missing or invalid."""


class UnknownToolError(AgentError):
    """The model asked for a tool the registry does not know."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ServiceError(AgentError):
    """The remote text-generation service returned an error."""

    def __init__(self, status: int | None, body: Any):
        self.status = status
        self.body = body
        if status is None:
            super().__init__(f"Service request failed: {body}")
        else:
            super().__init__(f"HTTP error! status: {status}, body: {body}")


class BudgetExceededError(AgentError):
    """The run used up its turn budget without terminating."""

    def __init__(self, max_turns: int):
        self.max_turns = max_turns
        super().__init__(f"Turn budget exhausted after {max_turns} turns")


class ConversationStateError(AgentError):
    """The transcript would violate an ordering invariant."""
