"""Tool infrastructure: the shared context and the BaseTool interface."""

import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Callable, Collection
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ..llm.models import ToolSpec
from ..project import ProjectAnalyzer, ProjectInfo
from .commander import run_command

CommandRunner = Callable[[str], str]

_JSON_TYPES = {str: "string", int: "integer", float: "number", bool: "boolean"}


class ToolContext:
    """State shared by all tools of one dispatcher.

    Holds the working directory that relative paths resolve against, the
    command runner (allowlist already applied) and the cached ProjectInfo
    used by the project tools.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        allowed_commands: Collection[str] = (),
        command_timeout: float | None = None,
        runner: CommandRunner | None = None,
        project_info: ProjectInfo | None = None,
    ):
        self.root = Path(root) if root is not None else Path.cwd()
        self.allowed_commands = frozenset(cmd.lower() for cmd in allowed_commands)
        self.command_timeout = command_timeout
        self.project_info = project_info
        self._runner = runner

    def resolve(self, path: str) -> Path:
        """Resolve a tool-supplied path against the root."""
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return candidate

    def run(self, command: str) -> str:
        """Run a command through the allow-listed runner.

        Raises:
            CommandNotAllowedError, CommandFailedError
        """
        if self._runner is not None:
            return self._runner(command)
        return run_command(
            command, self.allowed_commands, cwd=self.root, timeout=self.command_timeout
        )

    def analyze(self, path: str = ".") -> ProjectInfo:
        """Analyze a project and remember the result for later tools."""
        self.project_info = ProjectAnalyzer(self.resolve(path)).analyze()
        return self.project_info

    def ensure_project_info(self) -> ProjectInfo:
        """Cached ProjectInfo, analyzing the root on first use."""
        if self.project_info is None:
            return self.analyze(".")
        return self.project_info


def _json_type(annotation: Any) -> str:
    if isinstance(annotation, types.UnionType) or typing.get_origin(annotation) is typing.Union:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        annotation = args[0] if args else str
    return _JSON_TYPES.get(annotation, "string")


def schema_for(args_model: type[BaseModel]) -> dict[str, Any]:
    """Flat JSON schema for an argument model, in the subset every provider accepts."""
    properties = {}
    required = []
    for name, field in args_model.model_fields.items():
        prop = {"type": _json_type(field.annotation)}
        if field.description:
            prop["description"] = field.description
        properties[name] = prop
        if field.is_required():
            required.append(name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


class BaseTool(ABC):
    """Abstract base class for tools.

    Subclasses declare `args_model`; the dispatcher validates raw arguments
    against it before calling run(), so run() only ever sees well-typed
    input. run() is synchronous and reports failure by raising ToolError.
    """

    args_model: type[BaseModel]

    def __init__(self, context: ToolContext) -> None:
        self._context = context
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set debug callback for logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, component: str, message: str) -> None:
        """Send debug message if callback is set."""
        if self._debug_callback:
            self._debug_callback(level, component, message)

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description for the LLM."""

    @property
    def parameters_schema(self) -> dict[str, Any]:
        """Get the JSON schema for tool parameters."""
        return schema_for(self.args_model)

    @abstractmethod
    def run(self, args: BaseModel) -> str:
        """Execute the tool.

        Args:
            args: Validated instance of `args_model`

        Returns:
            Output string returned to the model unmodified

        Raises:
            ToolError: On any failure; `output` keeps partial output
        """

    def to_spec(self) -> ToolSpec:
        """Convert tool to the provider-neutral declaration."""
        return ToolSpec(name=self.name, description=self.description, parameters=self.parameters_schema)
