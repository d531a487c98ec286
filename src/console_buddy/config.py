"""Application settings.

Hides where configuration comes from: environment variables (optionally
loaded from a .env file by the CLI) with hardcoded defaults. Components never
read the environment themselves; they receive values from a Settings
instance at construction.
"""

import os

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o",
    "deepseek": "deepseek-chat",
    "anthropic": "claude-sonnet-4-20250514",
}

DEFAULT_ALLOWED_COMMANDS = (
    # Languages and runtimes
    "go", "gofmt", "goimports", "python", "python3", "py", "node", "java", "javac",
    "ruby", "perl", "php", "rustc", "cargo", "dotnet", "lua",
    # Package managers
    "npm", "npx", "yarn", "pnpm", "pip", "pip3", "gem", "composer", "bundle",
    "poetry", "pipenv", "uv", "maven", "mvn", "gradle", "nuget",
    # Version control
    "git", "svn", "hg",
    # Build tools and compilers
    "make", "cmake", "webpack", "vite", "rollup", "gcc", "g++", "clang", "clang++",
    "tsc", "babel",
    # Testing, linting, formatting
    "jest", "mocha", "pytest", "karma", "cypress", "eslint", "prettier", "pylint",
    "black", "flake8", "ruff", "mypy", "rubocop", "golint", "rustfmt", "stylelint",
    # Databases
    "mysql", "psql", "sqlite3", "mongosh", "redis-cli",
    # Containers
    "docker", "docker-compose", "kubectl", "podman",
    # Unix utilities
    "ls", "cat", "grep", "cp", "mv", "rm", "pwd", "touch", "chmod", "head", "tail",
    "wc", "sort", "uniq", "diff", "sed", "awk", "tar", "gzip", "gunzip", "zip",
    "unzip", "curl", "wget", "mkdir", "rmdir", "echo", "find", "tree",
    # System
    "env", "printenv", "which", "whoami", "hostname", "date",
    # Misc
    "jq", "base64", "openssl",
)

_API_KEY_VARS = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "deepseek": ("DEEPSEEK_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
}


class Settings(BaseModel):
    """Resolved application settings."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default="gemini", description="LLM provider name")
    model: str | None = Field(default=None, description="Model name (None uses provider default)")
    api_key: str | None = Field(default=None, description="API key for the selected provider")
    history_path: str = Field(default="CB.hist", description="Session history location")
    history_backend: str = Field(default="file", description="Session store: file, sqlite or memory")
    humor_level: int = Field(default=0, ge=0, le=100)
    log_level: str | None = Field(default=None, description="Debug panel level, None hides it")
    auto_analyze: bool = Field(default=True, description="Analyze the project on startup")
    allowed_commands: tuple[str, ...] = DEFAULT_ALLOWED_COMMANDS
    max_stream_advances: int = Field(default=15, gt=0)
    turn_timeout: float = Field(default=120.0, gt=0)

    @property
    def resolved_model(self) -> str:
        """The configured model, or the provider's default."""
        return self.model or DEFAULT_MODELS.get(self.provider, DEFAULT_MODELS["gemini"])


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    lowered = value.strip().lower()
    if lowered in ("1", "true", "t", "yes", "y", "on"):
        return True
    if lowered in ("0", "false", "f", "no", "n", "off"):
        return False
    return default


def _api_key_for(provider: str) -> str | None:
    # Later variables win, so GOOGLE_API_KEY overrides GEMINI_API_KEY
    key = None
    for var in _API_KEY_VARS.get(provider, ()):
        key = os.getenv(var) or key
    return key


def load_settings(**overrides) -> Settings:
    """Build Settings from environment variables.

    Environment variables:
        LLM_PROVIDER: gemini (default), openai, deepseek or anthropic
        GEMINI_API_KEY / GOOGLE_API_KEY, OPENAI_API_KEY, DEEPSEEK_API_KEY,
        ANTHROPIC_API_KEY: API key for the selected provider
        CONSOLE_BUDDY_MODEL: Model name
        CONSOLE_BUDDY_HISTORY_PATH: History location (default: CB.hist)
        CONSOLE_BUDDY_HISTORY_BACKEND: file, sqlite or memory (default: file)
        CONSOLE_BUDDY_HUMOR_LEVEL: 0-100 (default: 0)
        CONSOLE_BUDDY_LOG_LEVEL: debug, info, warning or error
        CONSOLE_BUDDY_AUTO_ANALYZE: Analyze project on startup (default: true)
        CONSOLE_BUDDY_ALLOWED_COMMANDS: Comma separated command allowlist
        CONSOLE_BUDDY_MAX_STREAM_ADVANCES: Stream pulls per turn (default: 15)
        CONSOLE_BUDDY_TURN_TIMEOUT: Seconds per turn (default: 120)

    Invalid numeric or boolean values fall back to the defaults.

    Args:
        **overrides: Values that take precedence over the environment
            (e.g. from CLI options). None values are ignored.

    Returns:
        Settings instance
    """
    provider = os.getenv("LLM_PROVIDER", "gemini").lower()
    if provider == "claude":
        provider = "anthropic"

    values = {
        "provider": provider,
        "model": os.getenv("CONSOLE_BUDDY_MODEL") or None,
        "api_key": _api_key_for(provider),
        "history_path": os.getenv("CONSOLE_BUDDY_HISTORY_PATH", "CB.hist"),
        "history_backend": os.getenv("CONSOLE_BUDDY_HISTORY_BACKEND", "file").lower(),
        "humor_level": min(max(_env_int("CONSOLE_BUDDY_HUMOR_LEVEL", 0), 0), 100),
        "log_level": os.getenv("CONSOLE_BUDDY_LOG_LEVEL") or None,
        "auto_analyze": _env_bool("CONSOLE_BUDDY_AUTO_ANALYZE", True),
        "max_stream_advances": max(_env_int("CONSOLE_BUDDY_MAX_STREAM_ADVANCES", 15), 1),
        "turn_timeout": _env_float("CONSOLE_BUDDY_TURN_TIMEOUT", 120.0),
    }
    if values["turn_timeout"] <= 0:
        values["turn_timeout"] = 120.0

    allowed = os.getenv("CONSOLE_BUDDY_ALLOWED_COMMANDS")
    if allowed:
        values["allowed_commands"] = tuple(
            cmd.strip().lower() for cmd in allowed.split(",") if cmd.strip()
        )

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
