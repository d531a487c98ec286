"""Terminal UI module for console_buddy.

Provides a Textual-based TUI around the conversation engine.

Module structure (Parnas principle - each module hides a design decision):
- config.py: Log levels and UI constants
- models.py: Data structures (displayed message representation)
- controller.py: Turn lifecycle (single-flight, event handling, persistence)
- widgets.py: Custom widgets (input history, status bar, log rendering)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palette and theme configuration
- screens.py: Modal dialogs (help screen)
- app.py: Application orchestration (user interaction flow)
"""

from .app import ConsoleBuddyApp, run_tui
from .config import LogLevel
from .controller import ChatController, ChatView
from .widgets import ChatHistoryWidget, DebugPanel, HistoryInput, StatusBar, ToolLog

__all__ = [
    "ChatController",
    "ChatHistoryWidget",
    "ChatView",
    "ConsoleBuddyApp",
    "DebugPanel",
    "HistoryInput",
    "LogLevel",
    "StatusBar",
    "ToolLog",
    "run_tui",
]
