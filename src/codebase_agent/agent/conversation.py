"""
Conversation state: the ordered, append-only transcript of one run.
"""

import json
from collections import Counter
from typing import Any, Iterator

import structlog

from ..errors import ConversationStateError
from ..llm.base import Message, TextPart, ToolInvocation, ToolResultPart, Turn

logger = structlog.get_logger()

# Approximate tokens per character (conservative estimate)
CHARS_PER_TOKEN = 4
MESSAGE_OVERHEAD_CHARS = 20


def _part_text(part: Any) -> str:
    if isinstance(part, TextPart):
        return part.text
    if isinstance(part, ToolInvocation):
        return f"[tool_use {part.name} id={part.id}] {json.dumps(part.arguments, default=str)}"
    payload = part.payload if isinstance(part.payload, str) else json.dumps(part.payload, default=str)
    marker = "tool_error" if part.is_error else "tool_result"
    return f"[{marker} id={part.invocation_id}] {payload}"


def estimate_tokens(messages: list[Message]) -> int:
    """Estimate token count for a list of messages."""
    total_chars = sum(len(_part_text(part)) for m in messages for part in m.content)
    return (total_chars + len(messages) * MESSAGE_OVERHEAD_CHARS) // CHARS_PER_TOKEN


class Conversation:
    """Append-only transcript.

    Every assistant message carrying tool invocations must be followed by
    a user message holding exactly one result per invocation id. The only
    way to shrink the transcript is ``replace_suffix``.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self.compaction_count = 0

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    @property
    def messages(self) -> list[Message]:
        """A copy of the transcript, safe to hand to the client."""
        return list(self._messages)

    @property
    def pending_invocations(self) -> list[ToolInvocation]:
        """Invocations of the last assistant message still awaiting results."""
        if self._messages and self._messages[-1].role == "assistant":
            return self._messages[-1].tool_invocations
        return []

    def append(self, message: Message) -> None:
        pending = self.pending_invocations
        results = message.tool_results

        if pending:
            expected = Counter(inv.id for inv in pending)
            received = Counter(r.invocation_id for r in results)
            if message.role != "user" or expected != received:
                raise ConversationStateError(
                    f"Expected one result for each of {sorted(expected)}, got {sorted(received.elements())}"
                )
        elif results:
            raise ConversationStateError("Tool results without a preceding tool invocation")

        ids = [inv.id for inv in message.tool_invocations]
        if len(ids) != len(set(ids)):
            raise ConversationStateError(f"Duplicate tool invocation ids: {ids}")

        self._messages.append(message)

    def append_user_text(self, text: str) -> Message:
        message = Message.user_text(text)
        self.append(message)
        return message

    def append_turn(self, turn: Turn) -> Message:
        """Append a model reply as an assistant message."""
        message = turn.to_message()
        self.append(message)
        return message

    def append_tool_results(self, results: list[ToolResultPart]) -> Message:
        message = Message(role="user", content=tuple(results))
        self.append(message)
        return message

    def render(self, start: int = 0) -> str:
        """Plain-text transcript from message ``start`` on."""
        lines = []
        for message in self._messages[start:]:
            body = "\n".join(_part_text(part) for part in message.content)
            lines.append(f"{message.role.upper()}: {body}")
        return "\n\n".join(lines)

    def estimated_tokens(self) -> int:
        return estimate_tokens(self._messages)

    def replace_suffix(self, start: int, text: str) -> None:
        """Replace messages[start:] with one user message holding ``text``."""
        if self.pending_invocations:
            raise ConversationStateError("Cannot compact while tool invocations are pending")
        if not 0 < start < len(self._messages):
            raise ConversationStateError(f"Invalid compaction boundary {start} for {len(self)} messages")

        removed = len(self._messages) - start
        before = self.estimated_tokens()
        self._messages = self._messages[:start] + [Message.user_text(text)]
        self.compaction_count += 1

        logger.info(
            "Conversation compacted",
            removed_messages=removed,
            tokens_before=before,
            tokens_after=self.estimated_tokens(),
            compaction_count=self.compaction_count,
        )
