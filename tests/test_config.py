"""Unit tests for settings, prompts and the CLI factories."""
import pytest
from pydantic import ValidationError

from console_buddy.cli.providers import get_engine, get_llm, get_store
from console_buddy.config import DEFAULT_MODELS, Settings, load_settings
from console_buddy.errors import ConfigurationError
from console_buddy.prompts import build_system_instruction, clear_cache, load_prompt
from console_buddy.ui.config import LogLevel

_ENV_VARS = [
    "LLM_PROVIDER", "GEMINI_API_KEY", "GOOGLE_API_KEY", "OPENAI_API_KEY",
    "DEEPSEEK_API_KEY", "ANTHROPIC_API_KEY", "CONSOLE_BUDDY_MODEL",
    "CONSOLE_BUDDY_HISTORY_PATH", "CONSOLE_BUDDY_HISTORY_BACKEND",
    "CONSOLE_BUDDY_HUMOR_LEVEL", "CONSOLE_BUDDY_LOG_LEVEL",
    "CONSOLE_BUDDY_AUTO_ANALYZE", "CONSOLE_BUDDY_ALLOWED_COMMANDS",
    "CONSOLE_BUDDY_MAX_STREAM_ADVANCES", "CONSOLE_BUDDY_TURN_TIMEOUT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable load_settings reads."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_defaults(self, clean_env):
        settings = load_settings()

        assert settings.provider == "gemini"
        assert settings.api_key is None
        assert settings.resolved_model == DEFAULT_MODELS["gemini"]
        assert settings.history_path == "CB.hist"
        assert settings.history_backend == "file"
        assert settings.humor_level == 0
        assert settings.auto_analyze is True
        assert settings.max_stream_advances == 15
        assert settings.turn_timeout == 120.0
        assert "go" in settings.allowed_commands

    def test_claude_alias(self, clean_env):
        clean_env.setenv("LLM_PROVIDER", "Claude")
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant")

        settings = load_settings()

        assert settings.provider == "anthropic"
        assert settings.api_key == "sk-ant"

    def test_google_key_wins(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "gemini-key")
        clean_env.setenv("GOOGLE_API_KEY", "google-key")

        assert load_settings().api_key == "google-key"

    def test_invalid_numbers_fall_back(self, clean_env):
        clean_env.setenv("CONSOLE_BUDDY_HUMOR_LEVEL", "lots")
        clean_env.setenv("CONSOLE_BUDDY_MAX_STREAM_ADVANCES", "-3")
        clean_env.setenv("CONSOLE_BUDDY_TURN_TIMEOUT", "0")
        clean_env.setenv("CONSOLE_BUDDY_AUTO_ANALYZE", "maybe")

        settings = load_settings()

        assert settings.humor_level == 0
        assert settings.max_stream_advances == 1
        assert settings.turn_timeout == 120.0
        assert settings.auto_analyze is True

    def test_humor_is_clamped(self, clean_env):
        clean_env.setenv("CONSOLE_BUDDY_HUMOR_LEVEL", "250")

        assert load_settings().humor_level == 100

    def test_allowed_commands_list(self, clean_env):
        clean_env.setenv("CONSOLE_BUDDY_ALLOWED_COMMANDS", "Go, make ,,git")

        assert load_settings().allowed_commands == ("go", "make", "git")

    def test_overrides_win_and_none_is_ignored(self, clean_env):
        clean_env.setenv("CONSOLE_BUDDY_MODEL", "from-env")

        settings = load_settings(model="from-cli", humor_level=None, history_backend="memory")

        assert settings.model == "from-cli"
        assert settings.humor_level == 0
        assert settings.history_backend == "memory"

    def test_settings_are_frozen(self):
        settings = Settings()

        with pytest.raises(ValidationError):
            settings.provider = "openai"


class TestPrompts:
    """Tests for the system prompt."""

    def test_system_instruction(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        clear_cache()

        instruction = build_system_instruction("- **read_file**: Read a file", humor_level=25)

        assert "- **read_file**: Read a file" in instruction
        assert "{tools_description}" not in instruction
        assert instruction.endswith("Humor Level: 25%")

    def test_local_override(self, tmp_path, monkeypatch):
        (tmp_path / "prompts").mkdir()
        (tmp_path / "prompts" / "system.txt").write_text("Custom.\n{tools_description}\n")
        monkeypatch.chdir(tmp_path)
        clear_cache()
        try:
            instruction = build_system_instruction("TOOLS")
        finally:
            clear_cache()

        assert instruction == "Custom.\nTOOLS\n\nHumor Level: 0%"

    def test_missing_prompt(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(FileNotFoundError):
            load_prompt("does-not-exist")


class TestFactories:
    """Tests for the CLI factory functions."""

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            get_llm(Settings(provider="openai"))

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
            get_llm(Settings(provider="llama", api_key="x"))

    def test_llm_uses_resolved_model(self):
        llm = get_llm(Settings(provider="openai", api_key="sk-test"))

        assert llm.model == DEFAULT_MODELS["openai"]

    def test_store_backends(self, tmp_path):
        assert get_store(Settings(history_backend="memory")).backend_type == "memory"
        assert get_store(Settings(history_backend="sqlite")).db_path.name == "console_buddy.db"

        custom = get_store(Settings(history_backend="sqlite", history_path=str(tmp_path / "h.db")))
        assert custom.db_path == tmp_path / "h.db"

        file_store = get_store(Settings(history_path=str(tmp_path / "CB.hist")))
        assert file_store.path == tmp_path / "CB.hist"

    def test_unknown_store_backend(self):
        with pytest.raises(ConfigurationError, match="Unsupported"):
            get_store(Settings(history_backend="redis"))

    def test_engine_settings(self, tmp_path):
        settings = Settings(humor_level=10, allowed_commands=("echo",))
        llm = get_llm(Settings(provider="openai", api_key="sk-test"))

        engine = get_engine(settings, llm, humor_level=60, root=str(tmp_path))

        assert engine.provider is llm
        assert "Humor Level: 60%" in engine._build_system_instruction()


class TestLogLevel:
    """Tests for debug panel level parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("debug", LogLevel.DEBUG),
        ("INFO", LogLevel.INFO),
        (" warning ", LogLevel.WARNING),
        ("error", LogLevel.ERROR),
        ("verbose", LogLevel.DEBUG),
        (None, LogLevel.DEBUG),
    ])
    def test_parse(self, value, expected):
        assert LogLevel.parse(value) is expected

    def test_ordering(self):
        assert LogLevel.DEBUG < LogLevel.INFO < LogLevel.WARNING < LogLevel.ERROR
