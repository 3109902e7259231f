"""
Tools module for agent capabilities.
"""

from .base import Tool, ToolErrorKind, ToolOutcome
from .file_tool import FileManager, create_file_tools
from .registry import ToolRegistry
from .search_tool import create_search_tools
from .shell_tool import ShellConfig, ShellExecutor, create_shell_tools, directory_tree

__all__ = [
    "Tool",
    "ToolErrorKind",
    "ToolOutcome",
    "FileManager",
    "create_file_tools",
    "ToolRegistry",
    "create_search_tools",
    "ShellConfig",
    "ShellExecutor",
    "create_shell_tools",
    "directory_tree",
]
