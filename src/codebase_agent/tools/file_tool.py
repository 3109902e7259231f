"""
File Operations Tool - Read, write, and list files on the system.

Operational failures come back as structured values so the model can
correct itself; only write failures raise, and the registry folds those
into an error outcome as well.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .base import Tool, ToolErrorKind, ToolOutcome

logger = logging.getLogger(__name__)


class FileManager:
    """Resolves paths against the project directory and performs file I/O."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or os.getcwd()).expanduser().resolve()

    def normalize_path(self, path: str) -> Path:
        """Normalize a path relative to the project directory."""
        p = Path(path).expanduser()

        if not p.is_absolute():
            p = self.base_dir / p

        return p

    def read_file(self, path: str) -> str:
        return self.normalize_path(path).read_text(encoding="utf-8")

    def write_file(self, path: str, content: str) -> int:
        """Write content, creating parent directories. Returns bytes written."""
        file_path = self.normalize_path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8")
        file_path.write_bytes(data)
        return len(data)

    def list_directory(self, path: str) -> list[dict]:
        dir_path = self.normalize_path(path)
        with os.scandir(dir_path) as it:
            entries = sorted(it, key=lambda e: e.name)
            return [
                {
                    "name": entry.name,
                    "isDirectory": entry.is_dir(),
                    "isFile": entry.is_file(),
                }
                for entry in entries
            ]

    def delete_file(self, path: str) -> bool:
        """Delete a file. Returns False if it did not exist."""
        try:
            self.normalize_path(path).unlink()
        except FileNotFoundError:
            return False
        return True


class ReadFileParams(BaseModel):
    path: str = Field(description="Absolute path to the file to read")


class WriteFileParams(BaseModel):
    path: str = Field(description="Absolute path to the file to write")
    content: str = Field(description="Content to write to the file")


class ListDirectoryParams(BaseModel):
    path: str = Field(description="Absolute path to the directory to list")


def create_file_tools(manager: FileManager) -> list[Tool]:
    """Create file operation tools bound to a FileManager."""

    async def read_file_handler(path: str) -> ToolOutcome:
        try:
            return ToolOutcome.ok(manager.read_file(path))
        except FileNotFoundError:
            return ToolOutcome.fail(ToolErrorKind.NOT_FOUND, "File not found", path=path, exists=False)
        except PermissionError:
            return ToolOutcome.fail(
                ToolErrorKind.PERMISSION_DENIED, "Permission denied", path=path, exists=True
            )
        except (OSError, UnicodeDecodeError) as e:
            return ToolOutcome.fail(ToolErrorKind.GENERIC_IO, str(e), path=path)

    async def write_file_handler(path: str, content: str) -> ToolOutcome:
        try:
            written = manager.write_file(path, content)
        except OSError as e:
            raise OSError(f"Failed to write file {path}: {e}") from e
        logger.info("Wrote %d bytes to %s", written, path)
        return ToolOutcome.ok({"success": True, "path": path, "bytes_written": written})

    async def list_directory_handler(path: str) -> ToolOutcome:
        try:
            return ToolOutcome.ok(manager.list_directory(path))
        except FileNotFoundError:
            return ToolOutcome.fail(
                ToolErrorKind.NOT_FOUND, "Directory not found", path=path, exists=False
            )
        except PermissionError:
            return ToolOutcome.fail(
                ToolErrorKind.PERMISSION_DENIED, "Permission denied", path=path, exists=True
            )
        except NotADirectoryError:
            return ToolOutcome.fail(
                ToolErrorKind.NOT_A_DIRECTORY, "Path is not a directory", path=path, exists=True
            )
        except OSError as e:
            return ToolOutcome.fail(ToolErrorKind.GENERIC_IO, str(e), path=path)

    def path_of(params: BaseModel) -> str:
        return str(manager.normalize_path(params.path))

    read_file = Tool(
        name="read_file",
        description="Read the contents of a file at the given absolute path",
        params=ReadFileParams,
        handler=read_file_handler,
        resource=path_of,
    )

    write_file = Tool(
        name="write_file",
        description=(
            "Write or create a file at the given absolute path. "
            "Creates parent directories if needed."
        ),
        params=WriteFileParams,
        handler=write_file_handler,
        resource=path_of,
    )

    list_directory = Tool(
        name="list_directory",
        description="List all files and directories in the given path",
        params=ListDirectoryParams,
        handler=list_directory_handler,
        resource=path_of,
    )

    return [read_file, write_file, list_directory]
