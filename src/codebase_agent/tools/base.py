"""
Base classes for tools.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel


class ToolErrorKind(str, Enum):
    """Kinds of tool failure reported back to the model."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    NOT_A_DIRECTORY = "not_a_directory"
    GENERIC_IO = "generic_io"
    INVALID_ARGUMENTS = "invalid_arguments"
    TIMEOUT = "timeout"


def classify_os_error(error: OSError) -> ToolErrorKind:
    """Map an OSError to a tool error kind."""
    if isinstance(error, FileNotFoundError):
        return ToolErrorKind.NOT_FOUND
    if isinstance(error, PermissionError):
        return ToolErrorKind.PERMISSION_DENIED
    if isinstance(error, NotADirectoryError):
        return ToolErrorKind.NOT_A_DIRECTORY
    return ToolErrorKind.GENERIC_IO


@dataclass
class ToolOutcome:
    """Result from a tool execution.

    ``payload`` is what the model sees: the data on success, the
    structured error value otherwise.
    """

    success: bool
    data: Any = None
    error: dict[str, Any] | None = None
    kind: ToolErrorKind | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ToolOutcome":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ToolErrorKind, message: str, **details: Any) -> "ToolOutcome":
        return cls(success=False, error={"error": message, **details}, kind=kind)

    @property
    def payload(self) -> Any:
        return self.data if self.success else self.error


@dataclass
class Tool:
    """
    A tool the model can call.

    ``params`` is a pydantic model; the handler receives its validated
    fields as keyword arguments. ``resource`` names the filesystem path a
    call touches so the registry can order calls on overlapping paths.
    A ``self_timed`` tool bounds its own work and is exempt from the
    registry timeout.
    """

    name: str
    description: str
    params: type[BaseModel]
    handler: Callable[..., Awaitable[ToolOutcome]]
    resource: Optional[Callable[[BaseModel], Optional[str]]] = field(default=None, repr=False)
    self_timed: bool = False

    def get_parameters_schema(self) -> dict[str, Any]:
        """Convert parameters to JSON Schema format."""
        schema = self.params.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("required", [])
        return schema

    def validate(self, arguments: dict[str, Any]) -> BaseModel:
        """Validate raw arguments from the model. Raises ValidationError."""
        return self.params.model_validate(arguments)

    def resource_path(self, params: BaseModel) -> Optional[str]:
        return self.resource(params) if self.resource else None

    async def execute(self, params: BaseModel) -> ToolOutcome:
        """Execute the tool handler."""
        return await self.handler(**params.model_dump())
