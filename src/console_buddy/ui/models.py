"""Data models for the TUI."""

from dataclasses import dataclass, field
from datetime import datetime

# role -> (header label, CSS class)
_ROLE_STYLES = {
    "user": ("> You", "user-message"),
    "assistant": ("< Buddy", "assistant-message"),
    "error": ("! Error", "error-message"),
}


@dataclass
class DisplayMessage:
    """A chat message as shown in the history panel.

    Unknown roles are shown like assistant messages.
    """

    role: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def header(self) -> str:
        label = _ROLE_STYLES.get(self.role, _ROLE_STYLES["assistant"])[0]
        return f"{label} [{self.timestamp:%H:%M:%S}]"

    @property
    def css_class(self) -> str:
        return _ROLE_STYLES.get(self.role, _ROLE_STYLES["assistant"])[1]
