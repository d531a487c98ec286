"""Abstract interfaces for language-model providers and chat sessions.

This module hides the design decision of which LLM provider to use.
Implementations must handle provider-specific details like:
- API client setup and authentication
- Request/response format conversion (history, tool declarations, tool results)
- Mapping streamed responses to text and tool-call fragments
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, StreamingResponse, ToolCallFragment, ToolSpec


class ChatSession(ABC):
    """A stateful exchange with the model.

    The session owns its message list. Streams are lazy: nothing is sent
    until the returned StreamingResponse is first iterated, and the model's
    output is recorded in the session when the stream ends. Tool responses
    sent for several calls of one model message are batched into the next
    request.
    """

    @abstractmethod
    def send_message_stream(self, message: str) -> StreamingResponse:
        """Send a user message and stream the model's response.

        Args:
            message: User text (may be empty)

        Returns:
            StreamingResponse yielding ModelChunks
        """

    @abstractmethod
    def send_tool_response(self, call: ToolCallFragment, response: dict[str, Any]) -> StreamingResponse:
        """Answer a tool call and stream the model's continuation.

        Args:
            call: The tool call being answered
            response: JSON-serializable payload, e.g. {"output": "..."}

        Returns:
            StreamingResponse yielding ModelChunks
        """


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            session = provider.start_chat(history, system_instruction, tools)
        # Automatically cleaned up
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the model name."""

    @abstractmethod
    def start_chat(
        self,
        history: list[ChatMessage],
        system_instruction: str | None = None,
        tools: list[ToolSpec] | None = None,
    ) -> ChatSession:
        """Start a chat session seeded with prior messages.

        Args:
            history: Prior messages (roles 'user' and 'model')
            system_instruction: Instruction for the whole session, or None
            tools: Tools the model may call

        Returns:
            A new ChatSession
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
