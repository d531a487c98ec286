"""Factory functions for CLI.

Centralizes creation of the LLM provider, session store and conversation
engine from Settings. Hides configuration details from command
implementations.
"""

from collections.abc import Callable

from ..config import Settings
from ..conversation import ConversationEngine
from ..errors import ConfigurationError
from ..llm import LLMProvider, create_llm_provider
from ..memory import SessionStore, create_session_store
from ..memory.file import DEFAULT_HISTORY_FILE
from ..project import ProjectInfo
from ..tools import create_tool_dispatcher

_KEY_HINTS = {
    "gemini": "GEMINI_API_KEY (or GOOGLE_API_KEY)",
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def get_llm(settings: Settings) -> LLMProvider:
    """Create the LLM provider selected by the settings.

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    if settings.provider not in _KEY_HINTS:
        raise ConfigurationError(
            f"Unknown LLM provider: {settings.provider}. "
            f"Supported providers: {', '.join(_KEY_HINTS)}"
        )
    if not settings.api_key:
        raise ConfigurationError(
            f"{_KEY_HINTS[settings.provider]} not set in environment"
        )
    return create_llm_provider(
        settings.provider,
        api_key=settings.api_key,
        model=settings.resolved_model,
    )


def get_store(settings: Settings) -> SessionStore:
    """Create the session store selected by the settings.

    The sqlite backend keeps its own default database name unless a history
    path other than the default was configured.

    Raises:
        ConfigurationError: If the backend is unknown
    """
    backend = settings.history_backend
    try:
        if backend == "memory":
            return create_session_store("memory")
        if backend == "sqlite" and settings.history_path == DEFAULT_HISTORY_FILE:
            return create_session_store("sqlite")
        return create_session_store(backend, path=settings.history_path)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def get_engine(
    settings: Settings,
    llm: LLMProvider,
    *,
    project_info: ProjectInfo | None = None,
    humor_level: int | None = None,
    root: str | None = None,
    debug_callback: Callable[[str, str, str], None] | None = None,
) -> ConversationEngine:
    """Create a conversation engine with the default tool set.

    Args:
        settings: Resolved settings
        llm: LLM provider instance
        project_info: Project analysis shared with the project tools
        humor_level: Overrides settings.humor_level when given
        root: Working directory for tools (default: cwd)
        debug_callback: Optional Callable(level, component, message)

    Returns:
        ConversationEngine instance
    """
    dispatcher = create_tool_dispatcher(
        root=root,
        allowed_commands=settings.allowed_commands,
        project_info=project_info,
    )
    return ConversationEngine(
        llm,
        dispatcher,
        humor_level=settings.humor_level if humor_level is None else humor_level,
        max_stream_advances=settings.max_stream_advances,
        turn_timeout=settings.turn_timeout,
        debug_callback=debug_callback,
    )
