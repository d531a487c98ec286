"""UI configuration constants for the chat screen."""

from enum import IntEnum


class LogLevel(IntEnum):
    """Debug panel levels. A panel shows messages at or above its level."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        """Level for a name such as "info". Unknown or empty names mean DEBUG."""
        if not value:
            return cls.DEBUG
        return cls.__members__.get(value.strip().upper(), cls.DEBUG)


# Input box
INPUT_HISTORY_MAX_SIZE = 100  # Maximum entries kept by the input box

# Tool activity log
MAX_TOOL_OUTPUT_PREVIEW = 300  # Characters of tool output shown in the log

# Status bar spinner
SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
SPINNER_INTERVAL = 0.1  # Seconds between spinner frames
