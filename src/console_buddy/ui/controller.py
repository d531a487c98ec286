"""Turn lifecycle for the interactive chat.

This module hides the design decisions about:
- The single-flight rule: at most one turn is in progress at a time
- How stream events map onto view updates
- When a turn is committed to history and persisted

The controller is independent of Textual. The app implements ChatView and
runs pump() inside a worker; tests drive it with a fake view.
"""

from collections.abc import Callable
from typing import Protocol

from ..conversation import (
    ConversationEngine,
    ConversationTurn,
    StreamingBridge,
    TextChunk,
    ToolCallFinished,
    ToolCallStarted,
    TurnComplete,
    TurnError,
    commit_turn,
)
from ..memory import SessionStore
from ..project import ProjectInfo


class ChatView(Protocol):
    """What the controller needs from whatever renders the chat."""

    def clear_input(self) -> None: ...

    def show_user(self, text: str) -> None: ...

    def stream_text(self, text: str) -> None: ...

    def show_tool_status(self, event: ToolCallStarted | ToolCallFinished) -> None: ...

    def show_error(self, message: str) -> None: ...

    def finish_reply(self, event: TurnComplete) -> None: ...

    def set_loading(self, loading: bool) -> None: ...


class ChatController:
    """Owns the chat state between the input box and the engine.

    State:
        loading: True while a turn is in progress
        accumulated_text: Text streamed so far for the current turn
        history: Committed conversation turns
        pending_input: The user message of the turn in progress
    """

    def __init__(
        self,
        engine: ConversationEngine,
        store: SessionStore | None,
        view: ChatView,
        *,
        history: list[ConversationTurn] | None = None,
        project_info: ProjectInfo | None = None,
        humor_level: int = 0,
        debug_callback: Callable[[str, str, str], None] | None = None,
    ) -> None:
        self._engine = engine
        self._store = store
        self._view = view
        self.project_info = project_info
        self.humor_level = humor_level
        self.history: list[ConversationTurn] = list(history or [])
        self.loading = False
        self.accumulated_text = ""
        self.pending_input: str | None = None
        self._debug_callback = debug_callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "UI", message)

    def _set_loading(self, loading: bool) -> None:
        self.loading = loading
        self._view.set_loading(loading)

    def submit(self, text: str) -> StreamingBridge | None:
        """Start a turn for `text` unless one is already running.

        Empty input is a valid message.

        Returns:
            The turn's bridge, or None when a turn is already in progress
        """
        if self.loading:
            self._debug("debug", "Submit ignored while a turn is in progress")
            return None

        self._set_loading(True)
        self.accumulated_text = ""
        self.pending_input = text
        self._view.clear_input()
        self._view.show_user(text)
        self._debug("info", f"Starting turn ({len(self.history)} turns of history)")
        return self._engine.start_turn(self.history, text)

    async def pump(self, bridge: StreamingBridge) -> None:
        """Consume events from `bridge` until the turn ends.

        A bridge that closes without a terminal event completes the turn
        with whatever text was accumulated.
        """
        while True:
            event = await bridge.receive()
            if event is None:
                self._debug("warning", "Bridge closed without a terminal event")
                await self._complete(TurnComplete(final_text=self.accumulated_text))
                return

            if isinstance(event, TextChunk):
                self.accumulated_text += event.text
                self._view.stream_text(event.text)
            elif isinstance(event, (ToolCallStarted, ToolCallFinished)):
                self._view.show_tool_status(event)
            elif isinstance(event, TurnError):
                self._fail(event)
                return
            elif isinstance(event, TurnComplete):
                await self._complete(event)
                return

    def _fail(self, event: TurnError) -> None:
        self._debug("error", f"Turn failed: {event.error}")
        self._view.show_error(event.error)
        self.pending_input = None
        self._set_loading(False)

    async def _complete(self, event: TurnComplete) -> None:
        user_input = self.pending_input or ""
        self.history = commit_turn(self.history, user_input, event.final_text)
        self.pending_input = None

        if self._store is not None:
            try:
                await self._store.save(self.history, self.project_info, self.humor_level)
                self._debug("debug", f"History saved ({len(self.history)} turns)")
            except Exception as e:
                self._debug("error", f"Failed to save history: {e}")
                self._view.show_error(f"Failed to save history: {e}")

        self._view.finish_reply(event)
        self._set_loading(False)
