"""Factory for creating session store backends."""

from typing import Any

from .base import SessionStore


def create_session_store(
    backend: str = "file",
    **kwargs: Any
) -> SessionStore:
    """Create a session store backend.

    Args:
        backend: Backend type ("file", "sqlite" or "memory")
        **kwargs: Backend-specific configuration (e.g. path)

    Returns:
        SessionStore instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "file":
        from .file import FileSessionStore
        return FileSessionStore(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteSessionStore
        return SQLiteSessionStore(**kwargs)

    elif backend == "memory":
        from .in_memory import InMemorySessionStore
        return InMemorySessionStore(**kwargs)

    raise ValueError(
        f"Unsupported session store backend: {backend}. "
        f"Supported backends: file, sqlite, memory"
    )
