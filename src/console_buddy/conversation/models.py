"""Data models for conversation turns and stream events.

StreamEvent is a tagged union: each variant carries a literal `kind` so
consumers can match on it, and every event is frozen once emitted.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ErrorKind


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class TruncationReason(str, Enum):
    """Why a turn stopped before the model finished. Not an error."""

    TIMEOUT = "timeout"
    ITERATION_LIMIT = "iteration_limit"


class ConversationTurn(BaseModel):
    """One entry of the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    text: str


class TurnStats(BaseModel):
    """Bookkeeping for a finished turn.

    stream_advances counts pulls from the model stream, which is what the
    per-turn bound limits. tool_calls counts dispatches and is usually lower.
    """

    model_config = ConfigDict(frozen=True)

    stream_advances: int = 0
    tool_calls: int = 0
    elapsed_seconds: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    truncated: TruncationReason | None = None


class TextChunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text_chunk"] = "text_chunk"
    text: str


class ToolCallStarted(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_call_started"] = "tool_call_started"
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolCallFinished(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["tool_call_finished"] = "tool_call_finished"
    name: str
    output: str
    error: ErrorKind | None = None
    detail: str | None = Field(default=None, description="Handler message when error is set")


class TurnError(BaseModel):
    """Terminal event for an aborted turn.

    error_kind is transport_error for a failed model stream and
    internal_error for anything else that went wrong inside the engine.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["turn_error"] = "turn_error"
    error: str
    error_kind: ErrorKind = ErrorKind.TRANSPORT_ERROR


class TurnComplete(BaseModel):
    """Terminal event for a turn that produced a reply."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["turn_complete"] = "turn_complete"
    final_text: str
    stats: TurnStats = Field(default_factory=TurnStats)


StreamEvent = Annotated[
    TextChunk | ToolCallStarted | ToolCallFinished | TurnError | TurnComplete,
    Field(discriminator="kind"),
]
