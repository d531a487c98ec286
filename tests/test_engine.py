"""Unit tests for the ConversationEngine turn loop."""
import asyncio
import time

import pytest
from fakes import FakeProvider, text, tool_call

from console_buddy.conversation import (
    FALLBACK_REPLY,
    ConversationEngine,
    TruncationReason,
    TurnComplete,
    TurnError,
    from_strings,
)
from console_buddy.errors import ErrorKind, TransportError
from console_buddy.tools import create_tool_dispatcher


async def _collect(bridge):
    return [event async for event in bridge]


class TestEngineConstruction:
    """Tests for constructor validation."""

    def test_zero_stream_advances_rejected(self, dispatcher):
        with pytest.raises(ValueError):
            ConversationEngine(FakeProvider(), dispatcher, max_stream_advances=0)

    def test_non_positive_timeout_rejected(self, dispatcher):
        with pytest.raises(ValueError):
            ConversationEngine(FakeProvider(), dispatcher, turn_timeout=0)


class TestTurnFlow:
    """Tests for a full turn through start_turn()."""

    @pytest.mark.asyncio
    async def test_list_files_then_reply(self, dispatcher):
        """Test the tool round trip: call, result fed back, final text."""
        provider = FakeProvider([
            [tool_call("list_files", path=".")],
            [text("Done.")],
        ])
        engine = ConversationEngine(provider, dispatcher)

        events = await _collect(engine.start_turn([], "list files in ."))

        assert [e.kind for e in events] == [
            "tool_call_started",
            "tool_call_finished",
            "text_chunk",
            "turn_complete",
        ]
        started, finished, chunk, complete = events
        assert started.name == "list_files"
        assert started.args == {"path": "."}
        assert finished.error is None
        assert finished.output == "a.txt\nb.txt"
        assert chunk.text == "Done."
        assert complete.final_text == "Done."
        assert complete.stats.tool_calls == 1
        assert complete.stats.truncated is None

        session = provider.sessions[0]
        assert session.sent == [
            ("message", "list files in ."),
            ("tool_response", ("list_files", {"output": "a.txt\nb.txt"})),
        ]

    @pytest.mark.asyncio
    async def test_end_of_stream_pull_is_counted(self, dispatcher):
        provider = FakeProvider([[tool_call("list_files", path=".")], [text("Done.")]])
        engine = ConversationEngine(provider, dispatcher)

        events = await _collect(engine.start_turn([], "ls"))

        # tool call, text, then the pull that ends the stream
        assert events[-1].stats.stream_advances == 3

    @pytest.mark.asyncio
    async def test_exactly_one_terminal_event(self, dispatcher):
        provider = FakeProvider([[text("hi")]])
        engine = ConversationEngine(provider, dispatcher)
        bridge = engine.start_turn([], "hello")

        events = await _collect(bridge)
        await engine.current_task

        terminal = [e for e in events if isinstance(e, (TurnComplete, TurnError))]
        assert len(terminal) == 1
        assert bridge.closed

    @pytest.mark.asyncio
    async def test_history_is_not_mutated(self, dispatcher):
        history = from_strings(["q", "a"])
        engine = ConversationEngine(FakeProvider([[text("ok")]]), dispatcher)

        await _collect(engine.start_turn(history, "again"))

        assert len(history) == 2

    @pytest.mark.asyncio
    async def test_usage_is_summed_across_streams(self, dispatcher):
        provider = FakeProvider(
            [[tool_call("list_files", path=".")], [text("Done.")]],
            usage={"prompt_tokens": 10, "completion_tokens": 5},
        )
        engine = ConversationEngine(provider, dispatcher)

        events = await _collect(engine.start_turn([], "ls"))

        stats = events[-1].stats
        assert stats.input_tokens == 20
        assert stats.output_tokens == 10


class TestTextHandling:
    """Tests for text accumulation and chunk emission."""

    @pytest.mark.asyncio
    async def test_repeated_fragment_emitted_once_but_appended(self, dispatcher, emitter):
        provider = FakeProvider([[text("Hel"), text("Hel"), text("lo")]])
        engine = ConversationEngine(provider, dispatcher)

        reply = await engine.run([], "greet", emitter)

        assert [e.text for e in emitter.events] == ["Hel", "lo"]
        assert reply == "HelHello"

    @pytest.mark.asyncio
    async def test_no_text_gives_fallback_reply(self, dispatcher, emitter):
        engine = ConversationEngine(FakeProvider([[]]), dispatcher)

        reply = await engine.run([], "anything", emitter)

        assert reply == FALLBACK_REPLY
        assert emitter.events == []

    @pytest.mark.asyncio
    async def test_empty_input_is_sent(self, dispatcher, emitter):
        provider = FakeProvider([[text("You said nothing.")]])
        engine = ConversationEngine(provider, dispatcher)

        reply = await engine.run([], "", emitter)

        assert provider.sessions[0].sent == [("message", "")]
        assert reply == "You said nothing."


class TestBounds:
    """Tests for the stream-advance bound and the turn deadline."""

    @pytest.mark.asyncio
    async def test_advance_bound_with_endless_tool_calls(self, dispatcher):
        """Test that a model that only ever calls tools is cut off."""
        provider = FakeProvider(repeat=[tool_call("list_files", path=".")])
        engine = ConversationEngine(provider, dispatcher, max_stream_advances=5)

        events = await _collect(engine.start_turn([], "loop forever"))

        complete = events[-1]
        assert isinstance(complete, TurnComplete)
        assert complete.stats.stream_advances == 5
        assert complete.stats.tool_calls == 5
        assert complete.stats.truncated == TruncationReason.ITERATION_LIMIT
        assert complete.final_text == FALLBACK_REPLY
        assert provider.sessions[0].opened_streams == 5

    @pytest.mark.asyncio
    async def test_advance_bound_keeps_partial_text(self, dispatcher, emitter):
        provider = FakeProvider(repeat=[text("more "), tool_call("list_files", path=".")])
        engine = ConversationEngine(provider, dispatcher, max_stream_advances=3)

        reply = await engine.run([], "talk", emitter)

        # text, tool call, text: the third pull hits the bound
        assert reply == "more more "
        # Identical consecutive fragments are shown once
        assert [e.text for e in emitter.events if e.kind == "text_chunk"] == ["more "]

    @pytest.mark.asyncio
    async def test_deadline_during_slow_tool(self, workspace):
        """Test that a turn returns its partial text when the deadline passes."""
        def slow_runner(command: str) -> str:
            time.sleep(0.5)
            return "finished"

        dispatcher = create_tool_dispatcher(root=workspace, runner=slow_runner)
        provider = FakeProvider([
            [text("Working on it"), tool_call("execute_shell_command", command="sleep 10")],
            [text("never seen")],
        ])
        engine = ConversationEngine(provider, dispatcher, turn_timeout=0.1)

        started = time.monotonic()
        events = await _collect(engine.start_turn([], "run something slow"))
        elapsed = time.monotonic() - started

        assert [e.kind for e in events] == ["text_chunk", "tool_call_started", "turn_complete"]
        complete = events[-1]
        assert complete.final_text == "Working on it"
        assert complete.stats.truncated == TruncationReason.TIMEOUT
        assert elapsed < 0.45


class TestErrors:
    """Tests for tool failures and transport failures."""

    @pytest.mark.asyncio
    async def test_unknown_tool_is_reported_to_the_model(self, dispatcher):
        provider = FakeProvider([[tool_call("bogus_tool")], [text("Sorry, I can't do that.")]])
        engine = ConversationEngine(provider, dispatcher)

        events = await _collect(engine.start_turn([], "do magic"))

        finished = events[1]
        assert finished.error == ErrorKind.UNKNOWN_TOOL
        assert events[-1].final_text == "Sorry, I can't do that."
        _, (name, payload) = provider.sessions[0].sent[1]
        assert name == "bogus_tool"
        assert payload["error"].startswith("unknown_tool")

    @pytest.mark.asyncio
    async def test_stream_failure_emits_single_turn_error(self, dispatcher):
        provider = FakeProvider([[text("partial"), ConnectionError("connection reset")]])
        engine = ConversationEngine(provider, dispatcher)
        bridge = engine.start_turn([], "hello")

        events = await _collect(bridge)

        assert [e.kind for e in events] == ["text_chunk", "turn_error"]
        assert "connection reset" in events[-1].error
        assert events[-1].error_kind == ErrorKind.TRANSPORT_ERROR
        assert bridge.closed

    @pytest.mark.asyncio
    async def test_stream_failure_with_slow_consumer(self, dispatcher):
        """Test that a failure is still the only terminal event when the consumer lags past the deadline."""
        provider = FakeProvider([[ConnectionError("connection reset")]])
        engine = ConversationEngine(provider, dispatcher, turn_timeout=0.1)
        bridge = engine.start_turn([], "hello")

        await asyncio.sleep(0.3)
        events = await asyncio.wait_for(_collect(bridge), timeout=2)

        assert [e.kind for e in events] == ["turn_error"]
        assert events[0].error_kind == ErrorKind.TRANSPORT_ERROR
        assert bridge.closed

    @pytest.mark.asyncio
    async def test_internal_failure_is_not_transport_error(self, dispatcher):
        class BrokenProvider(FakeProvider):
            def start_chat(self, *args, **kwargs):
                raise RuntimeError("no session")

        engine = ConversationEngine(BrokenProvider(), dispatcher)
        bridge = engine.start_turn([], "hello")

        events = await _collect(bridge)

        assert [e.kind for e in events] == ["turn_error"]
        assert events[0].error_kind == ErrorKind.INTERNAL_ERROR
        assert "no session" in events[0].error
        assert bridge.closed

    @pytest.mark.asyncio
    async def test_run_raises_transport_error(self, dispatcher, emitter):
        provider = FakeProvider([[RuntimeError("boom")]])
        engine = ConversationEngine(provider, dispatcher)

        with pytest.raises(TransportError):
            await engine.run([], "hello", emitter)

        assert emitter.kinds == ["turn_error"]

    @pytest.mark.asyncio
    async def test_no_retry_after_stream_failure(self, dispatcher, emitter):
        provider = FakeProvider([[RuntimeError("boom")]])
        engine = ConversationEngine(provider, dispatcher)

        with pytest.raises(TransportError):
            await engine.run([], "hello", emitter)

        assert provider.sessions[0].opened_streams == 1


class TestSystemInstruction:
    """Tests for when the system instruction is attached."""

    @pytest.mark.asyncio
    async def test_attached_for_fresh_conversation(self, dispatcher, emitter):
        provider = FakeProvider([[text("hi")]])
        engine = ConversationEngine(provider, dispatcher, humor_level=40)

        await engine.run([], "hello", emitter)

        instruction = provider.start_calls[0]["system_instruction"]
        assert instruction.endswith("Humor Level: 40%")
        assert "- **list_files**:" in instruction
        assert engine.system_instruction == instruction

    @pytest.mark.asyncio
    async def test_not_attached_when_resuming_history(self, dispatcher, emitter):
        provider = FakeProvider([[text("hi")]])
        engine = ConversationEngine(provider, dispatcher, system_prompt="SYS")

        await engine.run(from_strings(["q", "a"]), "hello", emitter)

        assert provider.start_calls[0]["system_instruction"] is None
        assert engine.system_instruction is None

    @pytest.mark.asyncio
    async def test_reused_once_attached(self, dispatcher, emitter):
        provider = FakeProvider([[text("hi")]])
        engine = ConversationEngine(provider, dispatcher, system_prompt="SYS")

        await engine.run([], "first", emitter)
        await engine.run(from_strings(["first", "hi"]), "second", emitter)

        assert [c["system_instruction"] for c in provider.start_calls] == ["SYS", "SYS"]

    @pytest.mark.asyncio
    async def test_history_and_tools_passed_to_session(self, dispatcher, emitter):
        provider = FakeProvider([[text("ok")]])
        engine = ConversationEngine(provider, dispatcher)

        await engine.run(from_strings(["q1", "a1", "q2"]), "next", emitter)

        call = provider.start_calls[0]
        assert [(m.role, m.content) for m in call["history"]] == [
            ("user", "q1"), ("model", "a1"), ("user", "q2"), ("model", ""),
        ]
        assert "list_files" in {spec.name for spec in call["tools"]}


class TestConcurrency:
    """Tests for the engine running beside a consumer."""

    @pytest.mark.asyncio
    async def test_consumer_sees_text_before_turn_ends(self, dispatcher):
        provider = FakeProvider([[text("first"), text("second")]])
        engine = ConversationEngine(provider, dispatcher)
        bridge = engine.start_turn([], "go")

        first = await bridge.receive()
        await asyncio.sleep(0.01)

        assert first.text == "first"
        assert not engine.current_task.done()
        rest = await _collect(bridge)
        assert [e.kind for e in rest] == ["text_chunk", "turn_complete"]
