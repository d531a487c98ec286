"""Unit tests for the chat turn lifecycle."""
import asyncio

import pytest

from console_buddy.conversation import (
    ConversationEngine,
    StreamingBridge,
    TextChunk,
    ToolCallStarted,
    TurnComplete,
    from_strings,
    to_strings,
)
from console_buddy.memory.in_memory import InMemorySessionStore
from console_buddy.ui import ChatController

from fakes import FakeProvider, text, tool_call


class FakeView:
    """Records every call the controller makes."""

    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.loading_states: list[bool] = []

    def clear_input(self):
        self.calls.append(("clear_input", None))

    def show_user(self, text):
        self.calls.append(("show_user", text))

    def stream_text(self, text):
        self.calls.append(("stream_text", text))

    def show_tool_status(self, event):
        self.calls.append(("tool", event.kind))

    def show_error(self, message):
        self.calls.append(("error", message))

    def finish_reply(self, event):
        self.calls.append(("finish", event.final_text))

    def set_loading(self, loading):
        self.loading_states.append(loading)

    def names(self):
        return [name for name, _ in self.calls]


class ScriptedEngine:
    """Engine stand-in whose turns read from a bridge the test feeds."""

    def __init__(self, bridge):
        self.bridge = bridge
        self.inputs: list[str] = []

    def start_turn(self, history, user_input):
        self.inputs.append(user_input)
        return self.bridge


async def _until(condition):
    while not condition():
        await asyncio.sleep(0.01)


class FailingStore(InMemorySessionStore):
    async def _write(self, data):
        raise OSError("disk full")


def _controller(dispatcher, responses, store=None, history=None):
    engine = ConversationEngine(FakeProvider(responses), dispatcher)
    view = FakeView()
    controller = ChatController(engine, store, view, history=history)
    return controller, view


class TestSubmit:
    """Tests for starting turns."""

    @pytest.mark.asyncio
    async def test_submit_starts_turn(self, dispatcher):
        controller, view = _controller(dispatcher, [[text("hi")]])

        bridge = controller.submit("hello")

        assert bridge is not None
        assert controller.loading
        assert controller.pending_input == "hello"
        assert view.names() == ["clear_input", "show_user"]
        assert view.loading_states == [True]
        await controller.pump(bridge)

    @pytest.mark.asyncio
    async def test_submit_while_loading_is_ignored(self):
        """Test that a second submit mid-stream changes neither history nor streamed text."""
        bridge = StreamingBridge()
        engine = ScriptedEngine(bridge)
        view = FakeView()
        controller = ChatController(engine, None, view, history=from_strings(["q", "a"]))

        assert controller.submit("first") is bridge
        pump = asyncio.create_task(controller.pump(bridge))
        await bridge.send(TextChunk(text="Hel"))
        await asyncio.wait_for(_until(lambda: controller.accumulated_text == "Hel"), timeout=1)

        assert controller.submit("second") is None
        assert controller.accumulated_text == "Hel"
        assert to_strings(controller.history) == ["q", "a"]
        assert controller.pending_input == "first"
        assert engine.inputs == ["first"]
        assert view.calls.count(("show_user", "second")) == 0

        await bridge.send(TurnComplete(final_text="Hello"))
        bridge.close()
        await pump
        assert to_strings(controller.history) == ["q", "a", "first", "Hello"]

    @pytest.mark.asyncio
    async def test_empty_input_is_a_turn(self, dispatcher):
        controller, _ = _controller(dispatcher, [[text("?")]])

        await controller.pump(controller.submit(""))

        assert to_strings(controller.history) == ["", "?"]


class TestPump:
    """Tests for consuming a turn's events."""

    @pytest.mark.asyncio
    async def test_complete_commits_and_persists(self, dispatcher):
        store = InMemorySessionStore()
        controller, view = _controller(
            dispatcher,
            [[tool_call("list_files", path=".")], [text("Two ", "files")]],
            store=store,
            history=from_strings(["q", "a"]),
        )

        await controller.pump(controller.submit("list"))

        assert to_strings(controller.history) == ["q", "a", "list", "Two files"]
        assert controller.accumulated_text == "Two files"
        assert not controller.loading
        assert view.loading_states == [True, False]
        assert view.names() == [
            "clear_input", "show_user", "tool", "tool", "stream_text", "stream_text", "finish",
        ]
        assert view.calls[-1] == ("finish", "Two files")

        saved = await store.load()
        assert saved.conversations == ["q", "a", "list", "Two files"]

    @pytest.mark.asyncio
    async def test_turn_error_leaves_history(self, dispatcher):
        store = InMemorySessionStore()
        controller, view = _controller(
            dispatcher,
            [[text("partial"), ConnectionError("reset by peer")]],
            store=store,
            history=from_strings(["q", "a"]),
        )

        await controller.pump(controller.submit("boom"))

        assert to_strings(controller.history) == ["q", "a"]
        assert controller.pending_input is None
        assert not controller.loading
        assert view.names()[-1] == "error"
        assert "reset by peer" in view.calls[-1][1]
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_close_without_terminal_event(self, dispatcher):
        controller, view = _controller(dispatcher, [])
        controller.loading = True
        controller.pending_input = "typed"
        bridge = StreamingBridge()

        async def feed():
            await bridge.send(TextChunk(text="half "))
            await bridge.send(ToolCallStarted(name="read_file", args={"path": "a.txt"}))
            await bridge.send(TextChunk(text="done"))
            bridge.close()

        feeder = asyncio.create_task(feed())
        await controller.pump(bridge)
        await feeder

        assert to_strings(controller.history) == ["typed", "half done"]
        assert view.calls[-1] == ("finish", "half done")
        assert not controller.loading

    @pytest.mark.asyncio
    async def test_save_failure_still_completes(self, dispatcher):
        controller, view = _controller(dispatcher, [[text("ok")]], store=FailingStore())

        await controller.pump(controller.submit("hi"))

        assert to_strings(controller.history) == ["hi", "ok"]
        assert ("error", "Failed to save history: disk full") in view.calls
        assert view.calls[-1] == ("finish", "ok")
        assert not controller.loading

    @pytest.mark.asyncio
    async def test_explicit_complete_event(self, dispatcher):
        controller, view = _controller(dispatcher, [])
        controller.pending_input = "x"
        bridge = StreamingBridge()

        async def feed():
            await bridge.send(TurnComplete(final_text="final"))
            bridge.close()

        feeder = asyncio.create_task(feed())
        await controller.pump(bridge)
        await feeder

        assert to_strings(controller.history) == ["x", "final"]
