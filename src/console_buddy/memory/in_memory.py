"""In-memory session store.

Data is lost when the application exits. Suitable for testing and for
running without touching the working directory.
"""

from .base import SessionStore
from .models import SessionData


class InMemorySessionStore(SessionStore):
    """In-memory session store (process lifetime only)."""

    def __init__(self, initial: SessionData | None = None):
        self._data = initial

    async def connect(self) -> None:
        """Initialize store (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close store (no-op for in-memory)."""
        pass

    async def load(self) -> SessionData | None:
        return self._data.model_copy(deep=True) if self._data is not None else None

    async def _write(self, data: SessionData) -> None:
        self._data = data.model_copy(deep=True)

    async def clear(self) -> None:
        self._data = None

    @property
    def backend_type(self) -> str:
        return "memory"
