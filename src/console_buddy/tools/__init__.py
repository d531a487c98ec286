"""Local tools the model can call, and the dispatcher that runs them."""

from .base import BaseTool, ToolContext
from .dispatcher import DEFAULT_TOOLS, ToolDispatcher, create_tool_dispatcher
from .models import ToolCallResult

__all__ = [
    "BaseTool",
    "DEFAULT_TOOLS",
    "ToolCallResult",
    "ToolContext",
    "ToolDispatcher",
    "create_tool_dispatcher",
]
