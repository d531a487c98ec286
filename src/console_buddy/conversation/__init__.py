"""Conversation core: history, stream events, the event bridge and the engine."""

from .bridge import StreamingBridge
from .engine import FALLBACK_REPLY, ConversationEngine
from .history import commit_turn, from_strings, pair_history, to_chat_messages, to_strings
from .models import (
    ConversationTurn,
    Role,
    StreamEvent,
    TextChunk,
    ToolCallFinished,
    ToolCallStarted,
    TruncationReason,
    TurnComplete,
    TurnError,
    TurnStats,
)

__all__ = [
    "FALLBACK_REPLY",
    "ConversationEngine",
    "ConversationTurn",
    "Role",
    "StreamEvent",
    "StreamingBridge",
    "TextChunk",
    "ToolCallFinished",
    "ToolCallStarted",
    "TruncationReason",
    "TurnComplete",
    "TurnError",
    "TurnStats",
    "commit_turn",
    "from_strings",
    "pair_history",
    "to_chat_messages",
    "to_strings",
]
