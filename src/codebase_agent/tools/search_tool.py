"""
Pattern search over files using ripgrep.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from .base import Tool, ToolErrorKind, ToolOutcome
from .file_tool import FileManager
from .shell_tool import ShellExecutor

logger = logging.getLogger(__name__)

NO_MATCHES = "No matches found"


class GrepOptions(BaseModel):
    case_insensitive: bool = Field(default=False, description="Perform case-insensitive search")
    files_with_matches: bool = Field(default=False, description="Only show filenames with matches")
    line_numbers: bool = Field(default=True, description="Show line numbers (default true)")
    context: Optional[int] = Field(
        default=None, ge=0, description="Number of context lines to show around matches"
    )


class GrepParams(BaseModel):
    pattern: str = Field(description="The search pattern (regex supported)")
    path: str = Field(description="The directory or file path to search in")
    options: Optional[GrepOptions] = Field(default=None, description="Optional search options")


def build_rg_args(pattern: str, path: str, options: GrepOptions) -> list[str]:
    """Build the ripgrep argument vector."""
    args = ["rg"]
    if options.case_insensitive:
        args.append("-i")
    if options.files_with_matches:
        args.append("-l")
    if options.line_numbers:
        args.append("-n")
    if options.context:
        args.extend(["-C", str(options.context)])
    # -e keeps patterns starting with '-' from being read as flags
    args.extend(["-e", pattern, "--", path])
    return args


def create_search_tools(executor: ShellExecutor, manager: FileManager) -> list[Tool]:
    """Create the grep tool. Relative search paths resolve against the project."""

    async def grep_handler(pattern: str, path: str, options: Optional[dict] = None) -> ToolOutcome:
        target = str(manager.normalize_path(path))
        args = build_rg_args(pattern, target, GrepOptions.model_validate(options or {}))
        result = await executor.execute_args(args, cwd=str(manager.base_dir))

        if result.success:
            return ToolOutcome.ok({"success": True, "results": result.stdout})
        # rg exits 1 when nothing matched
        if result.error is None and result.returncode == 1:
            return ToolOutcome.ok({"success": True, "results": NO_MATCHES})

        error = result.error or f"rg exited with code {result.returncode}"
        logger.warning("grep failed: %s", error)
        return ToolOutcome.fail(
            ToolErrorKind.GENERIC_IO, error, success=False, stderr=result.stderr
        )

    grep = Tool(
        name="grep",
        description=(
            "Search for patterns in files using ripgrep. "
            "Fast and efficient for searching through codebases."
        ),
        params=GrepParams,
        handler=grep_handler,
        resource=lambda params: str(manager.normalize_path(params.path)),
    )

    return [grep]
