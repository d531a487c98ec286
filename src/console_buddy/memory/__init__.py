"""Session persistence for console_buddy.

Stores conversation history, project info and preferences between runs.
"""

from .base import SessionStore
from .factory import create_session_store
from .models import SessionData

__all__ = [
    "SessionData",
    "SessionStore",
    "create_session_store",
]
