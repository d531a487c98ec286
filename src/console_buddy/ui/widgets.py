"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Input history management
- Status bar formatting and the loading spinner
- Log rendering and level filtering
- Chat message rendering, including the reply being streamed
"""

from datetime import datetime

from rich.markdown import Markdown
from rich.text import Text
from textual.containers import Vertical, VerticalScroll
from textual.events import Click, Key, Paste
from textual.widgets import Input, RichLog, Static

from ..conversation import ToolCallFinished, ToolCallStarted, TurnStats
from .config import (
    INPUT_HISTORY_MAX_SIZE,
    MAX_TOOL_OUTPUT_PREVIEW,
    SPINNER_FRAMES,
    SPINNER_INTERVAL,
    LogLevel,
)
from .models import DisplayMessage


def _plain_lines(log: RichLog) -> str:
    """Get plain text content of a RichLog for copying."""
    lines_text = []
    for line in log.lines:
        if hasattr(line, "text"):
            lines_text.append(line.text)
        elif hasattr(line, "__iter__"):
            lines_text.append("".join(seg.text for seg in line if hasattr(seg, "text")))
    return "\n".join(lines_text)


class HistoryInput(Input):
    """Single-line input with command history support.

    Use Up/Down arrow keys to navigate through history.
    Multi-line pastes are converted to single line (newlines become spaces).
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1
        self._current_input: str = ""

    def _on_paste(self, event: Paste) -> None:
        if event.text:
            self.insert_text_at_cursor(" ".join(event.text.split()))
            event.prevent_default()
            event.stop()

    def _on_key(self, event: Key) -> None:
        if event.key == "up":
            if self._history:
                if self._history_index == -1:
                    self._current_input = self.value
                    self._history_index = len(self._history) - 1
                elif self._history_index > 0:
                    self._history_index -= 1
                self.value = self._history[self._history_index]
                self.cursor_position = len(self.value)
            event.prevent_default()
            event.stop()
        elif event.key == "down":
            if self._history_index != -1:
                if self._history_index < len(self._history) - 1:
                    self._history_index += 1
                    self.value = self._history[self._history_index]
                else:
                    self._history_index = -1
                    self.value = self._current_input
                self.cursor_position = len(self.value)
            event.prevent_default()
            event.stop()

    def add_to_history(self, command: str) -> None:
        """Add a command to history."""
        if command and (not self._history or self._history[-1] != command):
            self._history.append(command)
            del self._history[:-INPUT_HISTORY_MAX_SIZE]
        self._history_index = -1
        self._current_input = ""


class StatusBar(Static):
    """One-line status: spinner, model, project and last turn statistics."""

    def __init__(self, *args, model: str = "unknown", project: str = "", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._model = model
        self._project = project
        self._loading = False
        self._frame = 0
        self._stats: TurnStats | None = None
        self._timer = None

    def on_mount(self) -> None:
        self._timer = self.set_interval(SPINNER_INTERVAL, self._tick, pause=True)
        self._update_display()

    @property
    def loading(self) -> bool:
        return self._loading

    def set_loading(self, loading: bool) -> None:
        """Start or stop the spinner."""
        self._loading = loading
        if self._timer is not None:
            if loading:
                self._timer.resume()
            else:
                self._timer.pause()
        self._update_display()

    def set_project(self, project: str) -> None:
        self._project = project
        self._update_display()

    def set_stats(self, stats: TurnStats) -> None:
        self._stats = stats
        self._update_display()

    def _tick(self) -> None:
        self._frame = (self._frame + 1) % len(SPINNER_FRAMES)
        self._update_display()

    def _update_display(self) -> None:
        if self._loading:
            state = f"[bold yellow]{SPINNER_FRAMES[self._frame]} Thinking...[/]"
        else:
            state = "[bold green]Ready[/]"

        parts = [state, f"[bold cyan]Model:[/] {self._model}"]
        if self._project:
            parts.append(f"[bold magenta]Project:[/] {self._project}")
        if self._stats is not None:
            stats = self._stats
            tokens = stats.input_tokens + stats.output_tokens
            parts.append(
                f"[bold yellow]Last:[/] {stats.elapsed_seconds:.1f}s "
                f"[dim]({stats.tool_calls} tools, {tokens:,} tokens)[/]"
            )
            if stats.truncated is not None:
                parts.append(f"[bold red]Truncated:[/] {stats.truncated.value}")
        self.update("  ".join(parts))


class ToolLog(RichLog):
    """Activity log of tool calls made by the model."""

    BORDER_TITLE = "Tools"
    BORDER_SUBTITLE = "Tool activity"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=True,
            **kwargs
        )
        self._count = 0

    def show_event(self, event: ToolCallStarted | ToolCallFinished) -> None:
        """Render a tool call start or result line."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        if isinstance(event, ToolCallStarted):
            self._count += 1
            self.border_subtitle = f"{self._count} calls"
            self.write(f"[dim]{timestamp}[/] [bold cyan]>[/] [bold]{event.name}[/]")
            if event.args:
                self.write(Text(f"    {event.args}", style="dim"))
            return

        if event.error is None:
            self.write(f"[dim]{timestamp}[/] [green]ok[/] [bold]{event.name}[/]")
        else:
            self.write(
                f"[dim]{timestamp}[/] [red]{event.error.value}[/] [bold]{event.name}[/]"
            )
            if event.detail:
                self.write(Text(f"    {event.detail}", style="red"))
        output = event.output.strip()
        if output:
            if len(output) > MAX_TOOL_OUTPUT_PREVIEW:
                output = output[:MAX_TOOL_OUTPUT_PREVIEW] + "..."
            self.write(Text(output))

    def clear(self) -> "ToolLog":
        """Clear log and reset subtitle."""
        super().clear()
        self._count = 0
        self.border_subtitle = "Tool activity"
        return self

    def on_click(self, event: Click) -> None:
        """Copy log content to clipboard when clicked."""
        event.stop()
        text = _plain_lines(self)
        if not text.strip():
            self.app.notify("Tool log is empty", timeout=2)
            return
        self.app.copy_to_clipboard(text)
        self.app.notify("Tool log copied", timeout=2)


class DebugPanel(RichLog):
    """Log panel for real-time tracing with level filtering.

    Shows timestamped log messages from all components.
    Supports standard log levels: DEBUG < INFO < WARNING < ERROR.
    Hidden by default, shown with --log-level or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    COMPONENT_COLORS = {
        "UI": "cyan",
        "Engine": "green",
        "Tool": "bright_cyan",
        "Dispatcher": "yellow",
        "LLM": "magenta",
        "Memory": "bright_green",
        "Project": "bright_blue",
    }

    LEVEL_COLORS = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    def __init__(self, *args, log_level: LogLevel = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> LogLevel:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: LogLevel) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {self._log_level.name}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def log(self, component: str, message: str, level: LogLevel = LogLevel.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (UI, Engine, Tool, LLM, etc.)
            message: Log message
            level: Log level (LogLevel.DEBUG, INFO, WARNING, ERROR)
        """
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_color = self.LEVEL_COLORS.get(level, "white")
        comp_color = self.COMPONENT_COLORS.get(component, "white")

        line = Text.from_markup(
            f"[dim]{timestamp}[/] "
            f"[{level_color}]{level.name:<5}[/] "
            f"[{comp_color}]\\[{component}][/] "
        )
        line.append(message)
        self.write(line)

    def debug(self, component: str, message: str) -> None:
        self.log(component, message, LogLevel.DEBUG)

    def info(self, component: str, message: str) -> None:
        self.log(component, message, LogLevel.INFO)

    def warning(self, component: str, message: str) -> None:
        self.log(component, message, LogLevel.WARNING)

    def error(self, component: str, message: str) -> None:
        self.log(component, message, LogLevel.ERROR)

    def route(self, level: str, component: str, message: str) -> None:
        """Debug callback entry point: `level` is debug/info/warning/error."""
        self.log(component, message, LogLevel.parse(level))

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True

    def on_click(self, event: Click) -> None:
        """Copy log content to clipboard when clicked."""
        event.stop()
        text = _plain_lines(self)
        if not text.strip():
            self.app.notify("Debug log is empty", timeout=2)
            return
        self.app.copy_to_clipboard(text)
        self.app.notify("Debug log copied", timeout=2)


class ChatMessageBox(Vertical):
    """A chat message container that copies its content when clicked."""

    def __init__(self, *children, content: str, **kwargs) -> None:
        super().__init__(*children, **kwargs)
        self.content = content

    def on_click(self, event: Click) -> None:
        event.stop()
        self.app.copy_to_clipboard(self.content)
        self.app.notify("Copied to clipboard", timeout=2)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history that can grow the reply being streamed."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._messages: list[DisplayMessage] = []
        self._live: Static | None = None
        self._live_box: ChatMessageBox | None = None
        self._live_text = ""

    @property
    def messages(self) -> list[DisplayMessage]:
        return list(self._messages)

    def add_message(self, role: str, content: str) -> None:
        """Add a finished message to the chat history."""
        msg = DisplayMessage(role=role, content=content)
        self._messages.append(msg)
        body = Markdown(content) if role == "assistant" else Text(content)
        self._mount_message(msg, body)
        self.border_subtitle = f"{len(self._messages)} messages"
        self.scroll_end(animate=False)

    def append_reply(self, text: str) -> None:
        """Append streamed text to the live reply, creating it on first use."""
        self._live_text += text
        if self._live is None:
            self._live_box, self._live = self._mount_message(
                DisplayMessage(role="assistant", content=""), Text(self._live_text)
            )
        else:
            self._live.update(Text(self._live_text))
        self._live_box.content = self._live_text
        self.scroll_end(animate=False)

    def finish_reply(self, final_text: str) -> None:
        """Replace the live reply with the final rendered reply."""
        if self._live is None:
            self.add_message("assistant", final_text)
            return
        self._live.update(Markdown(final_text))
        self._live_box.content = final_text
        self._messages.append(DisplayMessage(role="assistant", content=final_text))
        self.border_subtitle = f"{len(self._messages)} messages"
        self._live = None
        self._live_box = None
        self._live_text = ""
        self.scroll_end(animate=False)

    def discard_reply(self) -> None:
        """Drop the live reply state after a failed turn (text stays visible)."""
        self._live = None
        self._live_box = None
        self._live_text = ""

    def get_last_response(self) -> str | None:
        for msg in reversed(self._messages):
            if msg.role == "assistant":
                return msg.content
        return None

    def clear_history(self) -> None:
        self._messages.clear()
        self.discard_reply()
        self.remove_children()
        self.border_subtitle = "Conversation history"

    def _mount_message(self, msg: DisplayMessage, renderable) -> tuple[ChatMessageBox, Static]:
        body = Static(renderable, classes="message-content")
        box = ChatMessageBox(
            Static(msg.header, classes="message-header", markup=False),
            body,
            content=msg.content,
            classes=f"chat-message {msg.css_class}",
        )
        self.mount(box)
        return box, body
