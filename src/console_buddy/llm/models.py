from collections.abc import AsyncIterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A prior conversation message used to seed a chat session."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user' or 'model'")
    content: str = Field(description="Content of the message")


class TextFragment(BaseModel):
    """A piece of model text."""

    model_config = ConfigDict(frozen=True)

    text: str


class ToolCallFragment(BaseModel):
    """A model request to invoke a local tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    call_id: str | None = Field(default=None, description="Provider call id, when the API uses one")


Fragment = TextFragment | ToolCallFragment


class ModelChunk(BaseModel):
    """One item pulled from a model stream: an ordered list of fragments."""

    model_config = ConfigDict(frozen=True)

    fragments: list[Fragment] = Field(default_factory=list)


class ToolSpec(BaseModel):
    """Provider-neutral tool declaration (JSON-schema parameters)."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class StreamingResponse:
    """Wrapper for streaming model responses that captures usage info.

    Acts as an async iterator of ModelChunks while storing token usage that
    becomes available at the end of the stream.

    Usage:
        stream = session.send_message_stream("hello")
        async for chunk in stream:
            for fragment in chunk.fragments:
                ...
        print(stream.usage)  # {"prompt_tokens": 100, "completion_tokens": 50, ...}
    """

    def __init__(self, async_iter: AsyncIterator[ModelChunk]):
        """Initialize with an async iterator of chunks.

        Args:
            async_iter: Async iterator (usually an async generator) of ModelChunks
        """
        self._iter = async_iter
        self._usage: dict[str, Any] | None = None

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by provider at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> ModelChunk:
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Release an abandoned stream (closes the underlying generator)."""
        aclose = getattr(self._iter, "aclose", None)
        if aclose is not None:
            await aclose()
