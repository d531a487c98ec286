"""Scripted stand-ins for the language model used across the tests."""
from collections.abc import Sequence
from typing import Any

from console_buddy.conversation import StreamEvent
from console_buddy.llm import (
    ChatMessage,
    ChatSession,
    LLMProvider,
    ModelChunk,
    StreamingResponse,
    TextFragment,
    ToolCallFragment,
    ToolSpec,
)

# One scripted response: the items a single stream yields, in order.
# An exception instance is raised by the stream at that point.
Response = Sequence[ModelChunk | BaseException]


def text(*parts: str) -> ModelChunk:
    """A chunk made of text fragments."""
    return ModelChunk(fragments=[TextFragment(text=part) for part in parts])


def tool_call(name: str, call_id: str | None = None, **args: Any) -> ModelChunk:
    """A chunk holding a single tool call."""
    return ModelChunk(fragments=[ToolCallFragment(name=name, args=args, call_id=call_id)])


class FakeSession(ChatSession):
    """Chat session that replays scripted responses.

    Each stream (the first message and every tool response) consumes the next
    scripted response. Once the script is exhausted, `repeat` (if given) is
    replayed forever; otherwise streams end immediately.
    """

    def __init__(
        self,
        responses: list[Response],
        repeat: Response | None = None,
        usage: dict[str, int] | None = None,
    ):
        self._responses = list(responses)
        self._repeat = repeat
        self._usage = usage
        self.sent: list[tuple[str, Any]] = []
        self.opened_streams = 0
        self.closed_streams = 0

    def _next_response(self) -> Response:
        if self._responses:
            return self._responses.pop(0)
        return self._repeat or []

    def _stream(self) -> StreamingResponse:
        async def _generate():
            self.opened_streams += 1
            try:
                for item in self._next_response():
                    if isinstance(item, BaseException):
                        raise item
                    yield item
            finally:
                self.closed_streams += 1
                if self._usage is not None:
                    stream.set_usage(self._usage)

        stream = StreamingResponse(_generate())
        return stream

    def send_message_stream(self, message: str) -> StreamingResponse:
        self.sent.append(("message", message))
        return self._stream()

    def send_tool_response(self, call: ToolCallFragment, response: dict[str, Any]) -> StreamingResponse:
        self.sent.append(("tool_response", (call.name, response)))
        return self._stream()


class FakeProvider(LLMProvider):
    """LLM provider whose sessions each replay a fresh copy of the script."""

    def __init__(
        self,
        responses: list[Response] | None = None,
        repeat: Response | None = None,
        usage: dict[str, int] | None = None,
    ):
        self._responses = responses or []
        self._repeat = repeat
        self._usage = usage
        self.sessions: list[FakeSession] = []
        self.start_calls: list[dict[str, Any]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return "fake-model"

    def start_chat(
        self,
        history: list[ChatMessage],
        system_instruction: str | None = None,
        tools: list[ToolSpec] | None = None,
    ) -> FakeSession:
        self.start_calls.append({
            "history": list(history),
            "system_instruction": system_instruction,
            "tools": list(tools or []),
        })
        session = FakeSession(self._responses, repeat=self._repeat, usage=self._usage)
        self.sessions.append(session)
        return session

    async def close(self) -> None:
        self.closed = True


class RecordingEmitter:
    """Async emit callable that records every event."""

    def __init__(self):
        self.events: list[StreamEvent] = []

    async def __call__(self, event: StreamEvent) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> list[str]:
        return [event.kind for event in self.events]
