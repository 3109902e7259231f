"""
Core agent implementation: the orchestration loop.

This is the brain of the system. It:
1. Seeds the conversation with the task and a truncated directory tree
2. Sends the full transcript plus the tool schema to the LLM
3. Dispatches every tool call in a reply and feeds the results back
4. Compacts the transcript when it grows past its budget
5. Stops at the first reply without tool calls and returns its text
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from ..config import Settings
from ..errors import BudgetExceededError
from ..llm import BaseLLM, ToolInvocation, ToolResultPart, create_llm
from ..tools import (
    FileManager,
    ShellConfig,
    ShellExecutor,
    Tool,
    ToolOutcome,
    ToolRegistry,
    create_file_tools,
    create_search_tools,
    create_shell_tools,
    directory_tree,
)
from .compaction import CompactionConfig, CompactionPolicy, CompactionService
from .conversation import Conversation
from .prompts import DEFAULT_SYSTEM_PROMPT, DEFAULT_TASK_PROMPT, render_task_prompt

logger = structlog.get_logger()


@dataclass(frozen=True)
class RunContext:
    """Everything one run needs to know about its environment."""

    project_path: Path
    credential: str = field(repr=False)
    max_turns: int = 200
    token_budget: int = 150_000
    compaction_trigger_tokens: int = 120_000
    tool_timeout: float = 300.0
    parallel_tools: bool = True
    notes_filename: str = "AGENT_INFO.md"

    @classmethod
    def from_settings(cls, settings: Settings, project_path: str | Path) -> "RunContext":
        return cls(
            project_path=Path(project_path).expanduser().resolve(),
            credential=settings.require_api_key(),
            max_turns=settings.max_turns,
            token_budget=settings.context_token_budget,
            compaction_trigger_tokens=settings.compaction_trigger_tokens,
            tool_timeout=settings.tool_timeout,
            parallel_tools=settings.parallel_tools,
            notes_filename=settings.notes_filename,
        )

    @property
    def notes_path(self) -> Path:
        return self.project_path / self.notes_filename


class SummarizeParams(BaseModel):
    text: str = Field(description="The text or conversation history to summarize")


class ThinkingParams(BaseModel):
    thought: str = Field(description="Your thought or observation")


class Agent:
    """Runs the tool-use loop against one project directory.

    The agent never touches the filesystem itself; every side effect goes
    through a tool handler held by the registry.
    """

    def __init__(
        self,
        settings: Settings,
        project_path: str | Path,
        llm: BaseLLM | None = None,
        tool_registry: ToolRegistry | None = None,
    ):
        self.settings = settings
        self.context = RunContext.from_settings(settings, project_path)
        self.llm = llm or create_llm(settings)

        self.file_manager = FileManager(str(self.context.project_path))
        self.shell = ShellExecutor(ShellConfig(
            timeout_seconds=settings.tool_timeout,
            max_output_chars=settings.max_output_chars,
        ))

        self.compaction = CompactionService(
            self.llm,
            max_tokens=settings.compaction_max_tokens,
            timeout=settings.compaction_timeout,
        )
        self.compaction_policy = CompactionPolicy(
            self.compaction,
            CompactionConfig(
                trigger_tokens=self.context.compaction_trigger_tokens,
                enabled=settings.auto_compaction,
            ),
        )

        self.tool_registry = tool_registry or ToolRegistry(
            self._create_tools(),
            tool_timeout=self.context.tool_timeout,
        )
        self.system_prompt = settings.system_prompt or DEFAULT_SYSTEM_PROMPT

    def _create_tools(self) -> list[Tool]:
        return [
            *create_file_tools(self.file_manager),
            *create_shell_tools(self.shell, self.file_manager),
            *create_search_tools(self.shell, self.file_manager),
            *self._create_agent_tools(),
        ]

    def _create_agent_tools(self) -> list[Tool]:
        """Tools served by the agent itself rather than a collaborator."""

        async def summarize_tool(text: str) -> ToolOutcome:
            return ToolOutcome.ok(await self.compaction.compact(text))

        async def thinking_tool(thought: str) -> ToolOutcome:
            logger.info("[THINK]", thought=thought)
            return ToolOutcome.ok({"success": True})

        summarize = Tool(
            name="summarize",
            description=(
                "Compress and summarize lengthy text or conversation history. Use this when "
                "the conversation is getting very long to stay within token limits."
            ),
            params=SummarizeParams,
            handler=summarize_tool,
            self_timed=True,
        )

        thinking = Tool(
            name="thinking",
            description=(
                "Log your thought process and reasoning. "
                "Use this frequently to document your analysis."
            ),
            params=ThinkingParams,
            handler=thinking_tool,
        )

        return [summarize, thinking]

    async def _initial_prompt(self) -> str:
        project = str(self.context.project_path)
        tree = await directory_tree(
            self.shell,
            project,
            depth=self.settings.tree_depth,
            max_lines=self.settings.tree_max_lines,
        )
        return render_task_prompt(
            self.settings.task_prompt or DEFAULT_TASK_PROMPT,
            project_path=project,
            notes_path=str(self.context.notes_path),
            tree=tree,
        )

    async def _execute_tools(self, invocations: list[ToolInvocation]) -> list[ToolResultPart]:
        for invocation in invocations:
            logger.info(
                "[TOOL CALL]",
                tool=invocation.name,
                arguments=json.dumps(invocation.arguments, indent=2, default=str),
            )

        outcomes = await self.tool_registry.dispatch_many(
            invocations,
            parallel=self.context.parallel_tools,
        )

        return [
            ToolResultPart(
                invocation_id=invocation.id,
                payload=outcome.payload,
                is_error=not outcome.success,
            )
            for invocation, outcome in zip(invocations, outcomes)
        ]

    def _cleanup_notes(self) -> None:
        """Delete the notes file. Failures only warn."""
        notes_path = str(self.context.notes_path)
        try:
            if self.file_manager.delete_file(notes_path):
                logger.info("[CLEANUP] Deleted notes file", path=notes_path)
        except OSError as e:
            logger.warning("[CLEANUP] Could not delete notes file", path=notes_path, error=str(e))

    async def run(self, conversation: Conversation | None = None) -> str:
        """Drive the loop until the model replies without tool calls.

        Returns the text of that final reply.

        Raises:
            UnknownToolError: the model called a tool the registry lacks.
            ServiceError: the remote service failed.
            BudgetExceededError: max_turns replies all requested tools.
        """
        conversation = conversation if conversation is not None else Conversation()
        if not len(conversation):
            conversation.append_user_text(await self._initial_prompt())

        tools = self.tool_registry.get_definitions()
        turns = 0

        while True:
            if turns >= self.context.max_turns:
                logger.error("Turn budget exhausted", max_turns=self.context.max_turns)
                raise BudgetExceededError(self.context.max_turns)
            turns += 1

            await self.compaction_policy.maybe_compact(conversation)

            turn = await self.llm.generate(
                messages=conversation.messages,
                tools=tools,
                system_prompt=self.system_prompt,
            )
            logger.info(
                "Turn received",
                turn=turns,
                tool_calls=len(turn.tool_invocations),
                input_tokens=turn.input_tokens,
                output_tokens=turn.output_tokens,
            )

            if not turn.tool_invocations:
                conversation.append_turn(turn)
                break

            results = await self._execute_tools(turn.tool_invocations)
            conversation.append_turn(turn)
            conversation.append_tool_results(results)

        self._cleanup_notes()
        return turn.text
