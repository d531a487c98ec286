"""Abstract base class for session stores.

This module defines the interface for persisting conversation history.
The abstraction hides:
- Storage format (JSON file, SQLite, etc.)
- Persistence mechanism (file, database, in-memory)
- Connection management
"""

from abc import ABC, abstractmethod

from ..conversation.models import ConversationTurn
from ..project.models import ProjectInfo
from .models import SessionData


class SessionStore(ABC):
    """Abstract session store backend.

    save() is called by the UI right after each completed turn is appended
    to the in-memory history, so a crash loses at most one turn.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the store backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the store backend gracefully."""

    @abstractmethod
    async def load(self) -> SessionData | None:
        """Load stored data, or None if nothing has been saved."""

    @abstractmethod
    async def _write(self, data: SessionData) -> None:
        """Persist a complete SessionData."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove all stored data."""

    async def save(
        self,
        history: list[ConversationTurn],
        project_info: ProjectInfo | None = None,
        humor_level: int = 0,
    ) -> SessionData:
        """Persist the history, merging with what is already stored.

        Args:
            history: Full committed history
            project_info: Latest project analysis (None keeps the stored one)
            humor_level: Current humor level (0 keeps the stored one)

        Returns:
            The SessionData that was written
        """
        existing = await self.load() or SessionData()
        data = existing.merged(history, project_info, humor_level)
        await self._write(data)
        return data

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
