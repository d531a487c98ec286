"""Modal screens for the TUI.

This module hides how the help overlay is laid out and dismissed.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

HELP_TEXT = """\
[bold]Console Buddy[/bold] turns requests into actions on your project.

[bold]Try asking[/bold]
  list the files in this directory
  run the tests
  generate a python class called Invoice with fields id:int, total:float
  install requests
  build the project

[bold]Keys[/bold]
  [bold]Enter[/]      send the message
  [bold]Up/Down[/]    browse input history
  [bold]F1[/]         this help
  [bold]Ctrl+L[/]     clear the tool log
  [bold]Ctrl+K[/]     clear the chat view
  [bold]Ctrl+D[/]     toggle the debug log
  [bold]Ctrl+C[/]     quit

Conversations are saved after every reply.
"""


class HelpScreen(ModalScreen[None]):
    """Modal listing example requests and key bindings."""

    CSS = """
    HelpScreen {
        align: center middle;
        background: $background 70%;
    }

    #help-dialog {
        width: 72;
        height: auto;
        border: tall $primary;
        background: $surface;
        padding: 1 2;
    }

    #help-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        color: $primary;
        padding: 0 0 1 0;
        border-bottom: solid $border;
        margin-bottom: 1;
    }

    #help-hint {
        width: 100%;
        text-align: center;
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close", show=False),
        Binding("f1", "close", "Close", show=False),
        Binding("q", "close", "Close", show=False),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="help-dialog"):
            yield Static("Help", id="help-title")
            yield Static(HELP_TEXT, id="help-body")
            yield Static("Press Esc to close", id="help-hint")

    def action_close(self) -> None:
        self.dismiss(None)
