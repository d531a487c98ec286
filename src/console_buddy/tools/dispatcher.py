"""Tool dispatch: name lookup, argument validation and execution.

Hidden design decisions:
- The registry is a closed set of BaseTool classes built at construction
- Arguments are validated in full before a handler runs, so a rejected
  call has no side effects
- Every failure becomes a ToolCallResult; execute() never raises
"""

from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, ValidationError

from ..errors import ErrorKind, InvalidArgumentsError, ToolError, UnknownToolError
from ..llm.models import ToolSpec
from .base import BaseTool, ToolContext
from .files import CreateFileTool, DeleteFileTool, ListFilesTool, ReadFileTool, UpdateFileTool
from .models import ToolCallResult
from .project import (
    AnalyzeProjectTool,
    BuildProjectTool,
    GenerateCodeTool,
    InstallDependenciesTool,
    RunTestsTool,
)
from .shell import ExecuteShellCommandTool

DEFAULT_TOOLS: tuple[type[BaseTool], ...] = (
    ExecuteShellCommandTool,
    CreateFileTool,
    ReadFileTool,
    UpdateFileTool,
    DeleteFileTool,
    ListFilesTool,
    AnalyzeProjectTool,
    GenerateCodeTool,
    InstallDependenciesTool,
    RunTestsTool,
    BuildProjectTool,
)


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


class ToolDispatcher:
    """Validates and executes named tool calls."""

    def __init__(
        self,
        context: ToolContext,
        tools: Iterable[type[BaseTool]] = DEFAULT_TOOLS,
        debug_callback: Callable[[str, str, str], None] | None = None,
    ):
        self._context = context
        self._debug_callback = debug_callback
        self._tools: dict[str, BaseTool] = {}
        for tool_cls in tools:
            tool = tool_cls(context)
            if debug_callback:
                tool.set_debug_callback(debug_callback)
            self._tools[tool.name] = tool

    @property
    def context(self) -> ToolContext:
        return self._context

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def set_debug_callback(self, callback: Callable[[str, str, str], None] | None) -> None:
        """Set debug callback for the dispatcher and every tool."""
        self._debug_callback = callback
        for tool in self._tools.values():
            tool.set_debug_callback(callback)

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Dispatcher", message)

    def specs(self) -> list[ToolSpec]:
        """Tool declarations for the model."""
        return [tool.to_spec() for tool in self._tools.values()]

    def describe(self) -> str:
        """One markdown line per tool, for the system instruction."""
        return "\n".join(f"- **{tool.name}**: {tool.description}" for tool in self._tools.values())

    def _prepare(self, name: str, args: Any) -> tuple[BaseTool, BaseModel]:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(f"unknown tool: {name}")
        try:
            parsed = tool.args_model.model_validate(args if args is not None else {})
        except ValidationError as e:
            raise InvalidArgumentsError(
                f"invalid arguments for {name}: {_format_validation_error(e)}"
            ) from e
        return tool, parsed

    def execute(self, name: str, args: dict[str, Any] | None) -> ToolCallResult:
        """Execute one tool call.

        Args:
            name: Tool name as sent by the model
            args: Raw arguments as sent by the model

        Returns:
            ToolCallResult; `error` is UNKNOWN_TOOL or INVALID_ARGUMENTS when
            nothing ran, EXECUTION_ERROR when the handler failed
        """
        try:
            tool, parsed = self._prepare(name, args)
        except ToolError as e:
            self._debug("warning", str(e))
            return ToolCallResult(output=e.output, error=e.kind, detail=str(e))

        self._debug("info", f"Executing {name}")
        try:
            output = tool.run(parsed)
        except ToolError as e:
            self._debug("error", f"{name} failed: {e}")
            return ToolCallResult(output=e.output, error=e.kind, detail=str(e))
        except Exception as e:
            self._debug("error", f"{name} failed: {type(e).__name__}: {e}")
            return ToolCallResult(error=ErrorKind.EXECUTION_ERROR, detail=str(e) or type(e).__name__)

        self._debug("debug", f"{name} returned {len(output)} chars")
        return ToolCallResult(output=output)


def create_tool_dispatcher(
    root: str | None = None,
    allowed_commands: Iterable[str] = (),
    debug_callback: Callable[[str, str, str], None] | None = None,
    **context_kwargs: Any,
) -> ToolDispatcher:
    """Create a dispatcher with the default tool set.

    Args:
        root: Working directory for relative paths and commands (default: cwd)
        allowed_commands: Allowlist for execute_shell_command and project tools
        debug_callback: Optional Callable(level, component, message)
        **context_kwargs: Extra ToolContext arguments (runner, project_info, ...)

    Returns:
        ToolDispatcher instance
    """
    context = ToolContext(root=root, allowed_commands=allowed_commands, **context_kwargs)
    return ToolDispatcher(context, debug_callback=debug_callback)
