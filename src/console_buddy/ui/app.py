"""Main Textual TUI application.

Orchestrates the UI components and implements the ChatView that the
ChatController drives. Each turn is pumped from its StreamingBridge inside
a Textual async worker, so the event loop never blocks on the model.
"""

import asyncio
import threading

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, Input

from ..conversation import (
    ConversationEngine,
    ConversationTurn,
    StreamingBridge,
    ToolCallFinished,
    ToolCallStarted,
    TurnComplete,
    pair_history,
)
from ..memory import SessionStore
from ..project import ProjectInfo
from .config import LogLevel
from .controller import ChatController
from .screens import HelpScreen
from .styles import APP_CSS
from .themes import CONSOLE_BUDDY
from .widgets import ChatHistoryWidget, DebugPanel, HistoryInput, StatusBar, ToolLog

# Number of stored exchanges replayed into the chat panel on start
REPLAY_EXCHANGES = 5


class ConsoleBuddyApp(App):
    """Textual TUI for Console Buddy."""

    CSS = APP_CSS
    TITLE = "Console Buddy"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("f1", "help", "Help"),
        Binding("ctrl+l", "clear_log", "Clear Log"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        engine: ConversationEngine,
        store: SessionStore | None = None,
        *,
        model_name: str = "unknown",
        history: list[ConversationTurn] | None = None,
        project_info: ProjectInfo | None = None,
        humor_level: int = 0,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._engine = engine
        self._model_name = model_name
        self._project_info = project_info
        self._log_level = log_level
        self.controller = ChatController(
            engine,
            store,
            self,
            history=history,
            project_info=project_info,
            humor_level=humor_level,
            debug_callback=self._route_debug,
        )

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ChatHistoryWidget(id="chat-history")
        with Vertical(id="right-panel"):
            yield ToolLog(id="tool-log")
            yield DebugPanel(id="debug-panel")
        with Vertical(id="bottom-bar"):
            yield StatusBar(
                id="status-bar",
                model=self._model_name,
                project=self._project_summary(),
            )
            yield HistoryInput(placeholder="Ask Console Buddy... (F1 for help)", id="chat-input")
        yield Footer()

    def _project_summary(self) -> str:
        return self._project_info.summary() if self._project_info is not None else ""

    def _route_debug(self, level: str, component: str, message: str) -> None:
        """Route debug messages from any component to the log panel.

        Tools run in worker threads, so calls from other threads are
        marshalled onto the app thread.
        """
        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._thread_id != threading.get_ident():
            self.call_from_thread(log_panel.route, level, component, message)
        else:
            log_panel.route(level, component, message)

    def on_mount(self) -> None:
        self.register_theme(CONSOLE_BUDDY)
        self.theme = "console-buddy"
        self.sub_title = self._model_name

        if self._log_level is not None:
            log_panel = self.query_one("#debug-panel", DebugPanel)
            log_panel.log_level = LogLevel.parse(self._log_level)
            log_panel.show()
            log_panel.info("UI", f"Log panel enabled with level: {self._log_level.upper()}")

        self._engine.set_debug_callback(self._route_debug)

        chat = self.query_one("#chat-history", ChatHistoryWidget)
        history = self.controller.history
        if history:
            for user_text, model_text in pair_history(history)[-REPLAY_EXCHANGES:]:
                chat.add_message("user", user_text)
                chat.add_message("assistant", model_text)

        welcome_lines = ["Welcome to Console Buddy!", ""]
        if self._project_info is not None:
            welcome_lines.append(f"Project: {self._project_info.summary()}")
        if history:
            welcome_lines.append(f"Loaded {len(history) // 2} previous exchange(s).")
        welcome_lines += ["", "Ask me to read, write, run, test or build things. F1 shows help."]
        chat.add_message("assistant", "\n".join(welcome_lines))

        self.query_one("#chat-input", HistoryInput).focus()

    def on_unmount(self) -> None:
        """Cancel a turn that is still running when the app exits."""
        task = self._engine.current_task
        if task is not None and not task.done():
            task.cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle Enter in the input box."""
        if event.input.id != "chat-input":
            return
        bridge = self.controller.submit(event.value)
        if bridge is None:
            self.notify("Still working on the last request", severity="warning", timeout=2)
            return
        self.query_one("#chat-input", HistoryInput).add_to_history(event.value)
        self._pump_turn(bridge)

    @work(group="turn")
    async def _pump_turn(self, bridge: StreamingBridge) -> None:
        """Consume one turn's events as a background async worker."""
        await self.controller.pump(bridge)

    # ChatView

    def clear_input(self) -> None:
        self.query_one("#chat-input", HistoryInput).value = ""

    def show_user(self, text: str) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).add_message("user", text)

    def stream_text(self, text: str) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).append_reply(text)

    def show_tool_status(self, event: ToolCallStarted | ToolCallFinished) -> None:
        self.query_one("#tool-log", ToolLog).show_event(event)
        if isinstance(event, ToolCallStarted):
            self.sub_title = f"{self._model_name} | running {event.name}"
        else:
            self.sub_title = self._model_name

    def show_error(self, message: str) -> None:
        chat = self.query_one("#chat-history", ChatHistoryWidget)
        chat.discard_reply()
        chat.add_message("error", message)
        self.notify(message[:80], severity="error", timeout=5)

    def finish_reply(self, event: TurnComplete) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).finish_reply(event.final_text)
        self.query_one("#status-bar", StatusBar).set_stats(event.stats)
        self.sub_title = self._model_name
        if event.stats.truncated is not None:
            self.notify(
                f"Reply truncated ({event.stats.truncated.value})",
                severity="warning",
                timeout=4,
            )

    def set_loading(self, loading: bool) -> None:
        self.query_one("#status-bar", StatusBar).set_loading(loading)

    # Actions

    def action_help(self) -> None:
        self.push_screen(HelpScreen())

    def action_clear_log(self) -> None:
        self.query_one("#tool-log", ToolLog).clear()
        self.notify("Log cleared", timeout=2)

    def action_clear_chat(self) -> None:
        """Clear the chat view. Committed history is kept."""
        self.query_one("#chat-history", ChatHistoryWidget).clear_history()
        self.notify("Chat cleared", timeout=2)

    def action_toggle_debug(self) -> None:
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)


async def run_tui(
    engine: ConversationEngine,
    store: SessionStore | None = None,
    *,
    model_name: str = "unknown",
    history: list[ConversationTurn] | None = None,
    project_info: ProjectInfo | None = None,
    humor_level: int = 0,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI until the user quits.

    Args:
        engine: Conversation engine that runs each turn
        store: Session store that receives the history after every reply
        model_name: Model name shown in the status bar
        history: Previously committed history to continue from
        project_info: Detected project, shown in the status bar
        humor_level: Humor level persisted alongside the history
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    app = ConsoleBuddyApp(
        engine,
        store,
        model_name=model_name,
        history=history,
        project_info=project_info,
        humor_level=humor_level,
        log_level=log_level,
    )
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
