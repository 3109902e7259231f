"""
Agent module - the orchestration loop and its state.

Includes:
- Agent: Tool-use loop over one project directory
- RunContext: Per-run configuration
- Conversation: Append-only transcript
- Compaction: Structured transcript summarization
"""

from .core import Agent, RunContext
from .conversation import Conversation, estimate_tokens
from .compaction import CompactionConfig, CompactionPolicy, CompactionService

__all__ = [
    "Agent",
    "RunContext",
    "Conversation",
    "estimate_tokens",
    "CompactionConfig",
    "CompactionPolicy",
    "CompactionService",
]
