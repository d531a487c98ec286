"""Conversation engine: one user turn, end to end.

Hidden design decisions:
- How stored history is replayed to the model (see history.py)
- When the system instruction is attached (once, on the first turn of a
  session, then reused by every later chat on this engine)
- How tool calls are interleaved with streamed text
- How a turn is bounded: a wall-clock deadline over the whole turn plus a
  maximum number of stream-advance operations. Hitting either bound is a
  soft truncation; only a failing model stream is an error.
"""

import asyncio
import json
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ..errors import ErrorKind, TransportError
from ..llm import ChatSession, LLMProvider, StreamingResponse, TextFragment, ToolCallFragment
from ..tools import ToolDispatcher
from .bridge import StreamingBridge
from .history import to_chat_messages
from .models import (
    ConversationTurn,
    StreamEvent,
    TextChunk,
    ToolCallFinished,
    ToolCallStarted,
    TruncationReason,
    TurnComplete,
    TurnError,
    TurnStats,
)

DEFAULT_MAX_STREAM_ADVANCES = 15
DEFAULT_TURN_TIMEOUT = 120.0
FALLBACK_REPLY = "The model finished its work without providing a direct response."

Emit = Callable[[StreamEvent], Awaitable[None]]


def _truncate(text: str, max_len: int = 100) -> str:
    """Truncate text for log display."""
    return text if len(text) <= max_len else text[:max_len] + "..."


class _TurnState:
    """Mutable bookkeeping for one turn."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.last_text: str | None = None
        self.has_text = False
        self.stream: StreamingResponse | None = None
        self.stream_advances = 0
        self.tool_calls = 0
        self.input_tokens = 0
        self.output_tokens = 0
        self.truncated: TruncationReason | None = None
        self.stream_error: Exception | None = None
        self.started = time.monotonic()

    def add_usage(self, usage: dict[str, Any] | None) -> None:
        if usage:
            self.input_tokens += usage.get("prompt_tokens", 0) or 0
            self.output_tokens += usage.get("completion_tokens", 0) or 0

    def reply(self) -> str:
        return "".join(self.parts) if self.has_text else FALLBACK_REPLY

    def stats(self) -> TurnStats:
        return TurnStats(
            stream_advances=self.stream_advances,
            tool_calls=self.tool_calls,
            elapsed_seconds=time.monotonic() - self.started,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            truncated=self.truncated,
        )


class ConversationEngine:
    """Runs tool-augmented turns against a language model.

    Usage:
        engine = ConversationEngine(provider, dispatcher)
        bridge = engine.start_turn(history, "list files in .")
        async for event in bridge:
            ...
    """

    def __init__(
        self,
        provider: LLMProvider,
        dispatcher: ToolDispatcher,
        *,
        system_prompt: str | None = None,
        humor_level: int = 0,
        max_stream_advances: int = DEFAULT_MAX_STREAM_ADVANCES,
        turn_timeout: float = DEFAULT_TURN_TIMEOUT,
        debug_callback: Callable[[str, str, str], None] | None = None,
    ):
        """Initialize the engine.

        Args:
            provider: LLM provider used to open chat sessions
            dispatcher: Executes the model's tool calls
            system_prompt: Complete system instruction; None builds it from
                the packaged prompt, the tool catalogue and humor_level
            humor_level: 0-100, included in the built system instruction
            max_stream_advances: Maximum pulls from model streams per turn
                (stream chunks, not tool calls)
            turn_timeout: Wall-clock seconds for a whole turn, tool calls included
            debug_callback: Optional Callable(level, component, message)
        """
        if max_stream_advances < 1:
            raise ValueError("max_stream_advances must be at least 1")
        if turn_timeout <= 0:
            raise ValueError("turn_timeout must be positive")

        self._provider = provider
        self._dispatcher = dispatcher
        self._system_prompt = system_prompt
        self._humor_level = humor_level
        self._max_stream_advances = max_stream_advances
        self._turn_timeout = turn_timeout
        self._debug_callback = debug_callback
        self._system_instruction: str | None = None
        self._current_task: asyncio.Task | None = None

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def system_instruction(self) -> str | None:
        """The attached system instruction, or None before the first fresh session."""
        return self._system_instruction

    @property
    def current_task(self) -> asyncio.Task | None:
        """Background task of the most recent start_turn()."""
        return self._current_task

    def set_debug_callback(self, callback: Callable[[str, str, str], None] | None) -> None:
        """Set the debug callback for the engine and its dispatcher.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback
        self._dispatcher.set_debug_callback(callback)

    def _debug(self, level: str, component: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, component, message)

    def _build_system_instruction(self) -> str:
        if self._system_prompt is not None:
            return self._system_prompt
        from ..prompts import build_system_instruction
        return build_system_instruction(self._dispatcher.describe(), self._humor_level)

    def start_turn(self, history: Sequence[ConversationTurn], user_input: str) -> StreamingBridge:
        """Run a turn in a background task and return its event bridge.

        The bridge receives the turn's events followed by exactly one
        TurnComplete or TurnError, and is then closed.

        Args:
            history: Snapshot of the committed history (copied, never mutated)
            user_input: The user's message (may be empty)

        Returns:
            StreamingBridge to consume events from
        """
        bridge = StreamingBridge()
        snapshot = list(history)

        async def _produce() -> None:
            try:
                reply, stats = await self._run_turn(snapshot, user_input, bridge.send)
                await bridge.send(TurnComplete(final_text=reply, stats=stats))
            except TransportError:
                pass  # TurnError already delivered
            except Exception as e:
                self._debug("error", "Engine", f"Turn failed: {type(e).__name__}: {e}")
                await bridge.send(TurnError(error=f"internal error: {e}", error_kind=ErrorKind.INTERNAL_ERROR))
            finally:
                bridge.close()

        self._current_task = asyncio.create_task(_produce())
        return bridge

    async def run(self, history: Sequence[ConversationTurn], user_input: str, emit: Emit) -> str:
        """Run one turn, emitting events as they happen.

        Does not emit TurnComplete; the caller decides what completes a turn.

        Args:
            history: Committed history (alternating user/model turns)
            user_input: The user's message (may be empty)
            emit: Async callable receiving each StreamEvent

        Returns:
            The reply: accumulated model text, or a fixed fallback when the
            model produced none

        Raises:
            TransportError: The model stream failed (TurnError already emitted)
        """
        reply, _ = await self._run_turn(history, user_input, emit)
        return reply

    async def _run_turn(
        self,
        history: Sequence[ConversationTurn],
        user_input: str,
        emit: Emit,
    ) -> tuple[str, TurnStats]:
        messages = to_chat_messages(history)
        if not history and self._system_instruction is None:
            self._system_instruction = self._build_system_instruction()
            self._debug("debug", "Engine", f"System instruction attached ({len(self._system_instruction)} chars)")

        self._debug("info", "Engine", f"Turn start: {len(messages)} prior messages, input '{_truncate(user_input, 60)}'")
        session = self._provider.start_chat(messages, self._system_instruction, self._dispatcher.specs())
        state = _TurnState()

        try:
            async with asyncio.timeout(self._turn_timeout):
                state.stream = session.send_message_stream(user_input)
                await self._advance(session, state, emit)
        except TimeoutError:
            state.truncated = TruncationReason.TIMEOUT
            self._debug("warning", "Engine", f"Turn deadline of {self._turn_timeout}s reached, returning partial reply")
        finally:
            if state.stream is not None:
                await self._close_stream(state)

        if state.stream_error is not None:
            # Emitted outside the deadline scope: a stream failure is never a truncation
            message = f"stream error: {state.stream_error}"
            self._debug("error", "LLM", message)
            await emit(TurnError(error=message))
            raise TransportError(message) from state.stream_error

        stats = state.stats()
        self._debug(
            "info", "Engine",
            f"Turn end: {stats.stream_advances} stream advances, {stats.tool_calls} tool calls, "
            f"{stats.elapsed_seconds:.1f}s",
        )
        return state.reply(), stats

    async def _advance(self, session: ChatSession, state: _TurnState, emit: Emit) -> None:
        """Pull from the current stream until it ends or the advance bound is hit."""
        for _ in range(self._max_stream_advances):
            state.stream_advances += 1
            try:
                chunk = await anext(state.stream)
            except StopAsyncIteration:
                return
            except Exception as e:
                state.stream_error = e
                return

            for fragment in chunk.fragments:
                if isinstance(fragment, TextFragment):
                    await self._handle_text(fragment.text, state, emit)
                elif isinstance(fragment, ToolCallFragment):
                    await self._handle_tool_call(session, fragment, state, emit)
        else:
            state.truncated = TruncationReason.ITERATION_LIMIT
            self._debug(
                "warning", "Engine",
                f"Stream-advance limit ({self._max_stream_advances}) reached, returning partial reply",
            )

    async def _handle_text(self, text: str, state: _TurnState, emit: Emit) -> None:
        state.parts.append(text)
        state.has_text = True
        # Some providers resend an unchanged partial; show it once
        if text != state.last_text:
            state.last_text = text
            await emit(TextChunk(text=text))

    async def _handle_tool_call(
        self,
        session: ChatSession,
        call: ToolCallFragment,
        state: _TurnState,
        emit: Emit,
    ) -> None:
        state.tool_calls += 1
        self._debug("info", "Tool", f"Tool call: {call.name} {_truncate(json.dumps(call.args, default=str))}")
        await emit(ToolCallStarted(name=call.name, args=call.args))

        # Handlers block on files and subprocesses; keep the event loop free
        result = await asyncio.to_thread(self._dispatcher.execute, call.name, call.args)

        if result.ok:
            self._debug("info", "Tool", f"{call.name} succeeded ({len(result.output)} chars)")
        else:
            self._debug("warning", "Tool", f"{call.name} failed: {result.error.value}: {result.detail}")
        await emit(ToolCallFinished(
            name=call.name,
            output=result.output,
            error=result.error,
            detail=result.detail,
        ))

        await self._close_stream(state)
        state.stream = session.send_tool_response(call, result.to_response_payload())

    async def _close_stream(self, state: _TurnState) -> None:
        stream = state.stream
        state.stream = None
        if stream is None:
            return
        try:
            await stream.aclose()
        except RuntimeError as e:
            # A generator interrupted by the deadline may still be marked running
            self._debug("debug", "LLM", f"Stream close skipped: {e}")
        state.add_usage(stream.usage)
