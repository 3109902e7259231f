"""
Base classes for the remote text-generation service.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Union


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool that the LLM can use."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class TextPart:
    """A text segment of a message."""

    text: str


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call made by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ToolResultPart:
    """The outcome of a tool call, sent back to the LLM."""

    invocation_id: str
    payload: Any
    is_error: bool = False


ContentPart = Union[TextPart, ToolInvocation, ToolResultPart]


@dataclass(frozen=True)
class Message:
    """A message in the conversation."""

    role: Literal["user", "assistant"]
    content: tuple[ContentPart, ...]

    @classmethod
    def user_text(cls, text: str) -> "Message":
        return cls(role="user", content=(TextPart(text),))

    @property
    def tool_invocations(self) -> list[ToolInvocation]:
        return [p for p in self.content if isinstance(p, ToolInvocation)]

    @property
    def tool_results(self) -> list[ToolResultPart]:
        return [p for p in self.content if isinstance(p, ToolResultPart)]


@dataclass
class Turn:
    """One reply from the LLM."""

    parts: list[ContentPart] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    stop_reason: str | None = None

    @property
    def text_parts(self) -> list[TextPart]:
        return [p for p in self.parts if isinstance(p, TextPart)]

    @property
    def tool_invocations(self) -> list[ToolInvocation]:
        return [p for p in self.parts if isinstance(p, ToolInvocation)]

    @property
    def text(self) -> str:
        """Concatenation of all text parts."""
        return "".join(p.text for p in self.text_parts)

    def to_message(self) -> Message:
        """The reply as an assistant message, parts in received order."""
        return Message(role="assistant", content=tuple(self.parts))


class BaseLLM(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
    ) -> Turn:
        """Send the full conversation and parse the reply.

        Raises:
            ServiceError: on any non-success response or transport failure.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
