"""
Shell Command Tool - Execution of shell commands.

Runs commands through asyncio subprocesses with a timeout and output
limits. A failing command is reported as a value, never raised.
"""

import asyncio
import logging
import shlex
from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from .base import Tool, ToolErrorKind, ToolOutcome
from .file_tool import FileManager

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n... (truncated)"


@dataclass
class ShellConfig:
    """Configuration for shell command execution."""

    timeout_seconds: float = 300.0
    max_output_chars: int = 100_000


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.returncode == 0 and self.error is None


class ShellExecutor:
    """Executes subprocesses with a timeout and truncated output."""

    def __init__(self, config: Optional[ShellConfig] = None):
        self.config = config or ShellConfig()

    async def execute(self, command: str, cwd: Optional[str] = None) -> CommandResult:
        """Execute a shell command line."""
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            return CommandResult(-1, "", "", error=str(e))
        return await self._communicate(process)

    async def execute_args(self, args: Sequence[str], cwd: Optional[str] = None) -> CommandResult:
        """Execute a program without a shell."""
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            return CommandResult(-1, "", "", error=str(e))
        return await self._communicate(process)

    async def _communicate(self, process: asyncio.subprocess.Process) -> CommandResult:
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return CommandResult(
                -1, "", "",
                error=f"Command timed out after {self.config.timeout_seconds} seconds",
            )
        except asyncio.CancelledError:
            process.kill()
            raise

        return CommandResult(
            process.returncode if process.returncode is not None else -1,
            self._truncate_output(stdout.decode("utf-8", errors="replace")),
            self._truncate_output(stderr.decode("utf-8", errors="replace")),
        )

    def _truncate_output(self, output: str) -> str:
        """Truncate output to configured limits."""
        if len(output) > self.config.max_output_chars:
            return output[:self.config.max_output_chars] + TRUNCATION_MARKER
        return output


async def directory_tree(
    executor: ShellExecutor,
    path: str,
    depth: int = 2,
    max_lines: int = 30,
) -> Optional[str]:
    """Render ``tree -L depth`` for a path, truncated to max_lines.

    Returns None when the tree command is unavailable or fails.
    """
    result = await executor.execute(f"tree -L {depth} {shlex.quote(path)}", cwd=path)
    if not result.success:
        logger.warning("Could not generate tree output: %s", result.error or result.stderr.strip())
        return None

    lines = result.stdout.split("\n")
    if len(lines) > max_lines:
        return "\n".join(lines[:max_lines]) + TRUNCATION_MARKER
    return result.stdout


class RunCommandParams(BaseModel):
    command: str = Field(description="The shell command to execute")
    cwd: str = Field(description="The working directory to execute the command in")


def create_shell_tools(executor: ShellExecutor, manager: FileManager) -> list[Tool]:
    """Create shell-related tools. Relative working directories resolve against the project."""

    async def run_command_handler(command: str, cwd: str) -> ToolOutcome:
        result = await executor.execute(command, str(manager.normalize_path(cwd)))
        payload = {
            "stdout": result.stdout,
            "stderr": result.stderr,
            "success": result.success,
            "exit_code": result.returncode,
        }
        if result.success:
            return ToolOutcome.ok(payload)

        error = result.error or f"Command failed with exit code {result.returncode}"
        return ToolOutcome(
            success=False,
            error={**payload, "error": error},
            kind=ToolErrorKind.GENERIC_IO,
        )

    run_command = Tool(
        name="run_command",
        description="Execute a shell command. Use for git operations and other system commands.",
        params=RunCommandParams,
        handler=run_command_handler,
        resource=lambda params: str(manager.normalize_path(params.cwd)),
    )

    return [run_command]
