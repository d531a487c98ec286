"""Pytest configuration and shared fixtures."""
import os
from pathlib import Path

import pytest
from fakes import RecordingEmitter

from console_buddy.tools import ToolDispatcher, create_tool_dispatcher


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
        "deepseek": os.getenv("DEEPSEEK_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A working directory holding a.txt and b.txt."""
    (tmp_path / "a.txt").write_text("alpha\n")
    (tmp_path / "b.txt").write_text("beta\n")
    return tmp_path


@pytest.fixture
def dispatcher(workspace: Path) -> ToolDispatcher:
    """Default tool set rooted at the workspace."""
    return create_tool_dispatcher(root=workspace, allowed_commands=("echo", "ls"))


@pytest.fixture
def emitter() -> RecordingEmitter:
    """Records the events a turn emits."""
    return RecordingEmitter()
