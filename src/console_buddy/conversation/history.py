"""Conversion between stored history and model chat messages.

The history is a flat, alternating user/model list. It is replayed to the
model as (user, model) pairs taken at positions (2i, 2i+1). An odd-length
history is not rejected: its last user entry is paired with an empty model
reply.
"""

from collections.abc import Sequence

from ..llm.models import ChatMessage
from .models import ConversationTurn, Role


def pair_history(history: Sequence[ConversationTurn]) -> list[tuple[str, str]]:
    """Pair history entries as (user_text, model_text).

    Roles are not checked; position alone decides the pairing.

    Returns:
        ceil(len(history) / 2) pairs
    """
    pairs = []
    for i in range(0, len(history), 2):
        user_text = history[i].text
        model_text = history[i + 1].text if i + 1 < len(history) else ""
        pairs.append((user_text, model_text))
    return pairs


def to_chat_messages(history: Sequence[ConversationTurn]) -> list[ChatMessage]:
    """Flatten paired history into the provider-neutral message list."""
    messages = []
    for user_text, model_text in pair_history(history):
        messages.append(ChatMessage(role="user", content=user_text))
        messages.append(ChatMessage(role="model", content=model_text))
    return messages


def commit_turn(
    history: Sequence[ConversationTurn],
    user_input: str,
    reply: str,
) -> list[ConversationTurn]:
    """Return a new history with the completed (user, model) pair appended."""
    return [
        *history,
        ConversationTurn(role=Role.USER, text=user_input),
        ConversationTurn(role=Role.MODEL, text=reply),
    ]


def from_strings(entries: Sequence[str]) -> list[ConversationTurn]:
    """Build turns from a flat list of strings (user, model, user, ...)."""
    return [
        ConversationTurn(role=Role.USER if i % 2 == 0 else Role.MODEL, text=text)
        for i, text in enumerate(entries)
    ]


def to_strings(history: Sequence[ConversationTurn]) -> list[str]:
    return [turn.text for turn in history]
