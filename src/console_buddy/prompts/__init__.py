"""System prompt for the assistant.

The prompt text lives in system.txt beside this module. A project can
replace it by placing its own prompts/system.txt in the working directory.
The only placeholder is {tools_description}.
"""

from functools import lru_cache
from pathlib import Path

_PACKAGE_DIR = Path(__file__).parent


def _candidates(filename: str) -> list[Path]:
    return [Path.cwd() / "prompts" / filename, _PACKAGE_DIR / filename]


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Return the text of prompt `name`, preferring a working-directory copy.

    Raises:
        FileNotFoundError: If no candidate file exists
    """
    paths = _candidates(f"{name}.txt")
    for path in paths:
        if path.is_file():
            return path.read_text(encoding="utf-8")

    searched = "\n".join(f"  - {path}" for path in paths)
    raise FileNotFoundError(f"Prompt '{name}' not found. Searched:\n{searched}")


def get_system_prompt() -> str:
    """The system prompt template, before the tool catalogue is filled in."""
    return load_prompt("system")


def build_system_instruction(tools_description: str, humor_level: int = 0) -> str:
    """Render the system instruction sent once at the start of a session.

    Args:
        tools_description: One line per tool, as produced by the dispatcher
        humor_level: 0-100, appended so the model can adjust its tone

    Returns:
        Complete system instruction text
    """
    prompt = get_system_prompt().format(tools_description=tools_description)
    return f"{prompt.rstrip()}\n\nHumor Level: {humor_level}%"


def clear_cache() -> None:
    """Forget loaded prompts so edited files are picked up."""
    load_prompt.cache_clear()


__all__ = [
    "build_system_instruction",
    "clear_cache",
    "get_system_prompt",
    "load_prompt",
]
