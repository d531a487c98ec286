"""Google Gemini LLM provider implementation.

Uses the official Google GenAI SDK for async streaming chat with function
calling.
Reference: https://github.com/googleapis/python-genai
"""

from collections.abc import AsyncIterator
from typing import Any

from google import genai
from google.genai import types

from ..base import ChatSession, LLMProvider
from ..models import (
    ChatMessage,
    ModelChunk,
    StreamingResponse,
    TextFragment,
    ToolCallFragment,
    ToolSpec,
)

# Default safety settings - relaxed to avoid blocking code-related content
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]


def _to_schema(schema: dict[str, Any]) -> types.Schema:
    """Convert a JSON-schema dict to a Gemini Schema (uppercase type names)."""
    kwargs: dict[str, Any] = {"type": str(schema.get("type", "string")).upper()}
    if "description" in schema:
        kwargs["description"] = schema["description"]
    if "enum" in schema:
        kwargs["enum"] = [str(v) for v in schema["enum"]]
    if "properties" in schema:
        kwargs["properties"] = {
            name: _to_schema(prop) for name, prop in schema["properties"].items()
        }
    if schema.get("required"):
        kwargs["required"] = list(schema["required"])
    if "items" in schema:
        kwargs["items"] = _to_schema(schema["items"])
    return types.Schema(**kwargs)


def _to_tool(tools: list[ToolSpec]) -> types.Tool:
    return types.Tool(function_declarations=[
        types.FunctionDeclaration(
            name=spec.name,
            description=spec.description,
            parameters=_to_schema(spec.parameters) if spec.parameters.get("properties") else None,
        )
        for spec in tools
    ])


class GeminiChatSession(ChatSession):
    """Chat session backed by generate_content_stream.

    Hidden design decisions:
    - History is a list of types.Content owned by the session
    - Model parts are kept as received so thought signatures survive replay
    - Function responses are buffered and sent together in the next request
    """

    def __init__(
        self,
        client: genai.Client,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ):
        self._client = client
        self._model = model
        self._contents = contents
        self._config = config
        self._pending_responses: list[types.Part] = []
        self._current_stream_response: StreamingResponse | None = None

    @property
    def contents(self) -> list[types.Content]:
        """Messages recorded so far (read-only view for inspection)."""
        return list(self._contents)

    def send_message_stream(self, message: str) -> StreamingResponse:
        return self._start([types.Part(text=message)])

    def send_tool_response(self, call: ToolCallFragment, response: dict[str, Any]) -> StreamingResponse:
        part = types.Part.from_function_response(name=call.name, response=response)
        if call.call_id and part.function_response is not None:
            part.function_response.id = call.call_id
        self._pending_responses.append(part)
        return self._start([])

    def _start(self, user_parts: list[types.Part]) -> StreamingResponse:
        response = StreamingResponse(self._stream_generator(user_parts))
        self._current_stream_response = response
        return response

    async def _stream_generator(self, user_parts: list[types.Part]) -> AsyncIterator[ModelChunk]:
        """Send the request on first pull and yield chunks as fragments."""
        parts = [*self._pending_responses, *user_parts]
        self._pending_responses = []
        if parts:
            self._contents.append(types.Content(role="user", parts=parts))

        model_parts: list[types.Part] = []
        usage = None
        try:
            stream = await self._client.aio.models.generate_content_stream(
                model=self._model, contents=self._contents, config=self._config
            )
            async for chunk in stream:
                if chunk.usage_metadata:
                    usage = {
                        "prompt_tokens": chunk.usage_metadata.prompt_token_count or 0,
                        "completion_tokens": chunk.usage_metadata.candidates_token_count or 0,
                        "total_tokens": chunk.usage_metadata.total_token_count or 0,
                    }

                fragments = []
                if chunk.candidates and chunk.candidates[0].content and chunk.candidates[0].content.parts:
                    for part in chunk.candidates[0].content.parts:
                        model_parts.append(part)
                        if part.function_call is not None:
                            fragments.append(ToolCallFragment(
                                name=part.function_call.name or "",
                                args=dict(part.function_call.args or {}),
                                call_id=part.function_call.id,
                            ))
                        elif part.text and not part.thought:
                            fragments.append(TextFragment(text=part.text))

                if fragments:
                    yield ModelChunk(fragments=fragments)
        finally:
            # Record whatever the model produced, even if the consumer stopped early
            if model_parts:
                self._contents.append(types.Content(role="model", parts=model_parts))
            if usage and self._current_stream_response is not None:
                self._current_stream_response.set_usage(usage)


class GeminiProvider(LLMProvider):
    """Google Gemini LLM provider implementation.

    Hidden design decisions:
    - Google GenAI client initialization
    - Message and tool declaration format conversion
    - Automatic function calling disabled (tools run locally, by the engine)
    - Relaxed safety settings to avoid blocking code content
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float | None = None,
        **client_kwargs: Any
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            model: Default model (gemini-2.5-flash, gemini-2.5-pro, ...)
            temperature: Sampling temperature (None uses the model default)
            **client_kwargs: Additional kwargs for Client
        """
        self._model = model
        self._temperature = temperature
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        return self._model

    def _convert_messages(self, messages: list[ChatMessage]) -> list[types.Content]:
        contents = []
        for msg in messages:
            role = "model" if msg.role in ("model", "assistant") else "user"
            contents.append(types.Content(role=role, parts=[types.Part(text=msg.content)]))
        return contents

    def start_chat(
        self,
        history: list[ChatMessage],
        system_instruction: str | None = None,
        tools: list[ToolSpec] | None = None,
    ) -> GeminiChatSession:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            safety_settings=DEFAULT_SAFETY_SETTINGS,
            temperature=self._temperature,
            tools=[_to_tool(tools)] if tools else None,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )
        return GeminiChatSession(
            self._client, self._model, self._convert_messages(history), config
        )

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
