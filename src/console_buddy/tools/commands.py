"""Mapping from project metadata to package-manager command lines."""

from ..errors import ToolExecutionError
from ..project.models import ProjectInfo

_NODE_LANGUAGES = ("JavaScript", "TypeScript")


def _join(*parts: str | None) -> str:
    return " ".join(part.strip() for part in parts if part and part.strip())


def install_command(info: ProjectInfo, packages: str | None = None) -> str:
    """Command that installs `packages`, or the project's declared dependencies.

    Raises:
        ToolExecutionError: If the package manager is unknown
    """
    manager = info.package_manager
    if manager == "npm":
        return _join("npm install", packages)
    if manager in ("yarn", "pnpm"):
        return _join(f"{manager} add", packages) if packages else f"{manager} install"
    if manager == "go":
        return _join("go get", packages) if packages else "go mod tidy"
    if manager == "pip":
        if packages:
            return _join("pip install", packages)
        if "requirements.txt" in info.files:
            return "pip install -r requirements.txt"
        return "pip install -e ."
    if manager == "cargo":
        return _join("cargo add", packages) if packages else "cargo build"
    raise ToolExecutionError(f"unknown package manager: {manager or 'none detected'}")


def test_command(info: ProjectInfo, pattern: str | None = None) -> str:
    """Command that runs the project's tests, optionally filtered by `pattern`.

    Raises:
        ToolExecutionError: If the language has no known test runner
    """
    language = info.language
    if language == "Go":
        return _join("go test", pattern) if pattern else "go test ./..."
    if language in _NODE_LANGUAGES:
        if info.test_framework == "Jest":
            return _join(f"{info.package_manager} test", pattern)
        return f"{info.package_manager} test"
    if language == "Python":
        if info.test_framework == "pytest":
            return _join("pytest", pattern)
        return "python -m unittest discover"
    if language == "Rust":
        return _join("cargo test", pattern)
    raise ToolExecutionError(f"testing not supported for language: {language}")


def build_command(info: ProjectInfo, target: str | None = None) -> str:
    """Command that builds the project, optionally a specific `target`.

    Raises:
        ToolExecutionError: If the project cannot be built this way
    """
    language = info.language
    if language == "Go":
        return f"go build -o {target.strip()} ." if target and target.strip() else "go build ."
    if language in _NODE_LANGUAGES:
        if "build" in info.scripts:
            return f"{info.package_manager} run build"
        raise ToolExecutionError("no build script found in package.json")
    if language == "Python":
        if info.build_tool == "poetry":
            return "poetry build"
        if info.build_tool == "build":
            return "python -m build"
        return "python setup.py build"
    if language == "Rust":
        return f"cargo build --bin {target.strip()}" if target and target.strip() else "cargo build"
    raise ToolExecutionError(f"building not supported for language: {language}")
