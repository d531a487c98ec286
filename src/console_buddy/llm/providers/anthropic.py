"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async streaming with tool use.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

import json
from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from ..base import ChatSession, LLMProvider
from ..models import (
    ChatMessage,
    ModelChunk,
    StreamingResponse,
    TextFragment,
    ToolCallFragment,
    ToolSpec,
)


class AnthropicChatSession(ChatSession):
    """Chat session over messages.stream.

    Hidden design decisions:
    - System instruction travels as the top-level `system` parameter
    - Text deltas are yielded as they arrive; tool_use blocks are read from
      the final message once the stream ends
    - Tool results go back as tool_result blocks in a single user message
    """

    def __init__(
        self,
        client: AsyncAnthropic,
        model: str,
        messages: list[dict[str, Any]],
        system_instruction: str | None,
        tools: list[dict[str, Any]] | None,
        max_tokens: int,
    ):
        self._client = client
        self._model = model
        self._messages = messages
        self._system = system_instruction
        self._tools = tools
        self._max_tokens = max_tokens
        self._pending: list[dict[str, Any]] = []
        self._current_stream_response: StreamingResponse | None = None

    def send_message_stream(self, message: str) -> StreamingResponse:
        return self._start([{"type": "text", "text": message}] if message else [])

    def send_tool_response(self, call: ToolCallFragment, response: dict[str, Any]) -> StreamingResponse:
        self._pending.append({
            "type": "tool_result",
            "tool_use_id": call.call_id or call.name,
            "content": json.dumps(response),
            "is_error": "error" in response,
        })
        return self._start([])

    def _start(self, blocks: list[dict[str, Any]]) -> StreamingResponse:
        response = StreamingResponse(self._stream_generator(blocks))
        self._current_stream_response = response
        return response

    async def _stream_generator(self, blocks: list[dict[str, Any]]) -> AsyncIterator[ModelChunk]:
        """Internal generator that yields text and captures usage from events."""
        content = [*self._pending, *blocks]
        self._pending = []
        if content:
            self._messages.append({"role": "user", "content": content})

        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": self._messages,
            "max_tokens": self._max_tokens,
        }
        if self._system:
            request_params["system"] = self._system
        if self._tools:
            request_params["tools"] = self._tools

        text_parts: list[str] = []
        final_content: list[dict[str, Any]] | None = None
        try:
            async with self._client.messages.stream(**request_params) as stream:
                async for event in stream:
                    if (
                        event.type == "content_block_delta"
                        and getattr(event.delta, "type", None) == "text_delta"
                    ):
                        text_parts.append(event.delta.text)
                        yield ModelChunk(fragments=[TextFragment(text=event.delta.text)])

                message = await stream.get_final_message()

            if self._current_stream_response is not None:
                self._current_stream_response.set_usage({
                    "prompt_tokens": message.usage.input_tokens,
                    "completion_tokens": message.usage.output_tokens,
                    "total_tokens": message.usage.input_tokens + message.usage.output_tokens,
                })
            final_content = [block.model_dump(exclude_none=True) for block in message.content]
            tool_calls = [
                ToolCallFragment(name=block.name, args=dict(block.input or {}), call_id=block.id)
                for block in message.content
                if block.type == "tool_use"
            ]
            if tool_calls:
                yield ModelChunk(fragments=tool_calls)
        finally:
            if final_content:
                self._messages.append({"role": "assistant", "content": final_content})
            elif text_parts:
                self._messages.append({"role": "assistant", "content": "".join(text_parts)})


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling)
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        max_tokens: int = 4096,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom API base URL
            max_tokens: Maximum tokens per response (Anthropic requires one)
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._max_tokens = max_tokens
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        return self._model

    def start_chat(
        self,
        history: list[ChatMessage],
        system_instruction: str | None = None,
        tools: list[ToolSpec] | None = None,
    ) -> AnthropicChatSession:
        # Empty texts (e.g. a missing model reply) are not accepted by the API
        messages = [
            {"role": "assistant" if msg.role in ("model", "assistant") else "user", "content": msg.content}
            for msg in history
            if msg.content
        ]
        anthropic_tools = [
            {
                "name": spec.name,
                "description": spec.description,
                "input_schema": spec.parameters or {"type": "object", "properties": {}},
            }
            for spec in tools or []
        ]
        return AnthropicChatSession(
            self._client,
            self._model,
            messages,
            system_instruction,
            anthropic_tools or None,
            self._max_tokens,
        )

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
