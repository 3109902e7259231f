"""
Conversation Compaction - structured summarization of the transcript.

Two entry points share one summarizer:

- the ``summarize`` tool, which the model calls with text it wants
  compressed and gets the summary back as a tool result;
- ``CompactionPolicy``, which replaces everything after the seed message
  with a summary once the estimated transcript size crosses a threshold.

Compaction never fails a run: if the auxiliary request errors, the input
text comes back unchanged and the transcript is left alone.
"""

import asyncio
import re
from dataclasses import dataclass

import structlog

from ..llm.base import BaseLLM, Message
from .conversation import Conversation

logger = structlog.get_logger()

DEFAULT_SUMMARY_MAX_TOKENS = 5_000
DEFAULT_SUMMARY_TIMEOUT = 120.0

FILES_SECTION = "Files Analyzed"
REQUIRED_SECTIONS = (
    FILES_SECTION,
    "Codebase Understanding",
    "Feature Sets Identified",
    "Progress & Actions Taken",
    "Next Steps",
)

COMPACTED_HEADER = "[Compacted conversation history]"

# Absolute paths with at least two segments, not part of a URL
_PATH_RE = re.compile(r"(?<![\w.:/~-])/(?:[\w.@+-]+/)+[\w.@+-]+")
_PATH_CHARS = r"[\w.@+/-]"

COMPACTION_PROMPT = """You are compressing the working history of a codebase analysis agent. \
Produce a structured, information-dense summary that keeps every fact needed to continue the work.

PRESERVE VERBATIM:
- Every file path that was read, written, or analyzed
- Directory structures that were explored
- Findings about the architecture, dependencies, and relationships between files
- Feature groupings and the files belonging to each
- Decisions made about ordering
- Commands that were executed and their outcomes

FORMAT THE SUMMARY AS:
## Files Analyzed
[Every file path]

## Codebase Understanding
[Architecture, tech stack, dependencies]

## Feature Sets Identified
[Each feature with its files]

## Progress & Actions Taken
[Files written, commands run and their results]

## Next Steps
[What remains to be done]

Drop conversational filler only.

CONVERSATION TO SUMMARIZE:
{text}"""


def build_compaction_prompt(text: str) -> str:
    return COMPACTION_PROMPT.format(text=text)


def extract_paths(text: str) -> list[str]:
    """Absolute file paths mentioned in text, in first-seen order."""
    seen: dict[str, None] = {}
    for match in _PATH_RE.finditer(text):
        seen.setdefault(match.group(0).rstrip("."), None)
    return list(seen)


def _mentions_path(text: str, path: str) -> bool:
    """True if path occurs in text as a whole path, not as a prefix of a longer one."""
    pattern = rf"(?<!{_PATH_CHARS}){re.escape(path)}(?!{_PATH_CHARS})"
    return re.search(pattern, text) is not None


def ensure_paths_listed(summary: str, source_text: str) -> str:
    """Add any source path missing from the summary's Files Analyzed section."""
    header = re.search(rf"^##\s*{re.escape(FILES_SECTION)}\s*$", summary, re.MULTILINE)
    section = ""
    if header is not None:
        following = re.search(r"^##\s", summary[header.end():], re.MULTILINE)
        end = header.end() + following.start() if following else len(summary)
        section = summary[header.end():end]

    missing = [p for p in extract_paths(source_text) if not _mentions_path(section, p)]
    if not missing:
        return summary

    listing = "\n".join(f"- {path}" for path in missing)
    if header is None:
        return f"## {FILES_SECTION}\n{listing}\n\n{summary}"
    return f"{summary[:header.end()]}\n{listing}{summary[header.end():]}"


class CompactionService:
    """Compresses transcript text with one auxiliary LLM request."""

    def __init__(
        self,
        llm: BaseLLM,
        max_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS,
        timeout: float | None = DEFAULT_SUMMARY_TIMEOUT,
    ):
        self.llm = llm
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def compact(self, text: str) -> str:
        """Return a structured summary of text, or text itself on failure."""
        if not text.strip():
            return text

        logger.info("Compressing conversation history", chars=len(text))
        try:
            turn = await asyncio.wait_for(
                self.llm.generate(
                    messages=[Message.user_text(build_compaction_prompt(text))],
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
            summary = turn.text.strip()
            if not summary:
                raise ValueError("Summarization returned no text")
        except asyncio.TimeoutError:
            logger.error("Summarization timed out, keeping original text", timeout=self.timeout)
            return text
        except Exception as e:
            logger.error("Summarization failed, keeping original text", error=str(e))
            return text

        return ensure_paths_listed(summary, text)


@dataclass
class CompactionConfig:
    """Configuration for threshold-driven compaction."""

    trigger_tokens: int = 120_000
    enabled: bool = True


class CompactionPolicy:
    """Compacts the transcript when its estimated size reaches the trigger.

    The seed message (task instructions and initial context) is kept; all
    later messages are replaced by a single summary message.
    """

    def __init__(self, service: CompactionService, config: CompactionConfig | None = None):
        self.service = service
        self.config = config or CompactionConfig()

    def should_compact(self, conversation: Conversation) -> bool:
        if not self.config.enabled or len(conversation) < 2:
            return False
        if conversation.pending_invocations:
            return False
        return conversation.estimated_tokens() >= self.config.trigger_tokens

    async def maybe_compact(self, conversation: Conversation) -> bool:
        """Compact if needed. Returns True if the transcript was replaced."""
        if not self.should_compact(conversation):
            return False

        logger.info(
            "Context approaching limit, running compaction",
            estimated_tokens=conversation.estimated_tokens(),
            threshold=self.config.trigger_tokens,
        )
        text = conversation.render(start=1)
        summary = await self.service.compact(text)
        if summary == text:
            logger.warning("Compaction produced no summary, transcript left unchanged")
            return False

        conversation.replace_suffix(1, f"{COMPACTED_HEADER}\n\n{summary}")
        return True
