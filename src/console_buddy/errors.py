"""Error taxonomy shared by the conversation engine and the tool layer.

This module hides the decision of how failures are classified:
- Transport failures are fatal for a turn and cross the engine boundary
- Tool failures are recoverable and become tool output the model can read
- Truncation (deadline or stream-advance bound) is not an error at all
- Any other failure inside a turn ends it as an internal error
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failure, as reported in events and tool results."""

    TRANSPORT_ERROR = "transport_error"
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    EXECUTION_ERROR = "execution_error"
    INTERNAL_ERROR = "internal_error"


class ConsoleBuddyError(Exception):
    """Base class for all errors raised by console_buddy."""


class ConfigurationError(ConsoleBuddyError):
    """Raised when settings are missing or unusable (e.g. no API key)."""


class TransportError(ConsoleBuddyError):
    """The model stream failed. Aborts the turn without retry."""

    kind = ErrorKind.TRANSPORT_ERROR


class BridgeClosedError(ConsoleBuddyError):
    """Raised when sending on, or closing, an already closed bridge."""


class ToolError(ConsoleBuddyError):
    """Base class for failures inside the tool layer.

    The dispatcher converts every ToolError into a ToolCallResult, so these
    never reach the engine as exceptions.
    """

    kind = ErrorKind.EXECUTION_ERROR

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class UnknownToolError(ToolError):
    kind = ErrorKind.UNKNOWN_TOOL


class InvalidArgumentsError(ToolError):
    kind = ErrorKind.INVALID_ARGUMENTS


class ToolExecutionError(ToolError):
    """The tool ran (or tried to) and failed. `output` keeps partial output."""

    kind = ErrorKind.EXECUTION_ERROR


class CommandNotAllowedError(ToolExecutionError):
    """The command's first token is not in the allowlist."""


class CommandFailedError(ToolExecutionError):
    """The command exited with a non-zero status."""

    def __init__(self, message: str, output: str = "", returncode: int | None = None):
        super().__init__(message, output)
        self.returncode = returncode
