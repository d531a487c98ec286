import json
from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import ChatSession, LLMProvider
from ..models import (
    ChatMessage,
    ModelChunk,
    StreamingResponse,
    TextFragment,
    ToolCallFragment,
    ToolSpec,
)


def _to_openai_tools(tools: list[ToolSpec]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": spec.name,
                "description": spec.description,
                "parameters": spec.parameters or {"type": "object", "properties": {}},
            },
        }
        for spec in tools
    ]


def _parse_arguments(raw: str) -> dict[str, Any]:
    """Parse streamed tool-call arguments; malformed JSON yields no arguments."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAIChatSession(ChatSession):
    """Chat session over the Chat Completions streaming API.

    Hidden design decisions:
    - Text deltas are yielded as they arrive
    - Tool-call deltas are accumulated by index and yielded once the stream
      ends, because arguments arrive as JSON fragments
    - Tool results are sent back as role="tool" messages
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        temperature: float | None,
    ):
        self._client = client
        self._model = model
        self._messages = messages
        self._tools = tools
        self._temperature = temperature
        self._pending: list[dict[str, Any]] = []
        self._current_stream_response: StreamingResponse | None = None

    @property
    def messages(self) -> list[dict[str, Any]]:
        return list(self._messages)

    def send_message_stream(self, message: str) -> StreamingResponse:
        return self._start({"role": "user", "content": message})

    def send_tool_response(self, call: ToolCallFragment, response: dict[str, Any]) -> StreamingResponse:
        self._pending.append({
            "role": "tool",
            "tool_call_id": call.call_id or call.name,
            "content": json.dumps(response),
        })
        return self._start(None)

    def _start(self, user_message: dict[str, Any] | None) -> StreamingResponse:
        response = StreamingResponse(self._chat_stream_generator(user_message))
        self._current_stream_response = response
        return response

    async def _chat_stream_generator(self, user_message: dict[str, Any] | None) -> AsyncIterator[ModelChunk]:
        """Internal generator for Chat Completions streaming with usage capture."""
        self._messages.extend(self._pending)
        self._pending = []
        if user_message is not None:
            self._messages.append(user_message)

        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": self._messages,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if self._tools:
            request_params["tools"] = self._tools
        if self._temperature is not None:
            request_params["temperature"] = self._temperature

        text_parts: list[str] = []
        calls: dict[int, dict[str, str]] = {}
        finished = False
        try:
            stream = await self._client.chat.completions.create(**request_params)
            async for chunk in stream:
                if chunk.usage is not None and self._current_stream_response is not None:
                    self._current_stream_response.set_usage({
                        "prompt_tokens": chunk.usage.prompt_tokens,
                        "completion_tokens": chunk.usage.completion_tokens,
                        "total_tokens": chunk.usage.total_tokens,
                    })
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                for tool_delta in delta.tool_calls or []:
                    entry = calls.setdefault(tool_delta.index, {"id": "", "name": "", "arguments": ""})
                    if tool_delta.id:
                        entry["id"] = tool_delta.id
                    if tool_delta.function is not None:
                        entry["name"] += tool_delta.function.name or ""
                        entry["arguments"] += tool_delta.function.arguments or ""
                if delta.content:
                    text_parts.append(delta.content)
                    yield ModelChunk(fragments=[TextFragment(text=delta.content)])

            finished = True
            if calls:
                yield ModelChunk(fragments=[
                    ToolCallFragment(
                        name=entry["name"],
                        args=_parse_arguments(entry["arguments"]),
                        call_id=entry["id"] or None,
                    )
                    for _, entry in sorted(calls.items())
                ])
        finally:
            assistant: dict[str, Any] = {"role": "assistant", "content": "".join(text_parts) or None}
            if calls and finished:
                assistant["tool_calls"] = [
                    {
                        "id": entry["id"],
                        "type": "function",
                        "function": {"name": entry["name"], "arguments": entry["arguments"] or "{}"},
                    }
                    for _, entry in sorted(calls.items())
                ]
            if assistant["content"] or assistant.get("tool_calls"):
                self._messages.append(assistant)


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message and tool declaration format conversion
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        organization: str | None = None,
        temperature: float | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            temperature: Sampling temperature (None uses the model default)
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._temperature = temperature
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(
        self,
        history: list[ChatMessage],
        system_instruction: str | None,
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        for msg in history:
            role = "assistant" if msg.role in ("model", "assistant") else "user"
            messages.append({"role": role, "content": msg.content})
        return messages

    def start_chat(
        self,
        history: list[ChatMessage],
        system_instruction: str | None = None,
        tools: list[ToolSpec] | None = None,
    ) -> OpenAIChatSession:
        return OpenAIChatSession(
            self._client,
            self._model,
            self._convert_messages(history, system_instruction),
            _to_openai_tools(tools) if tools else None,
            self._temperature,
        )

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
