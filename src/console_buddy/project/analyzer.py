"""Project structure detection.

Hidden design decisions:
- Which marker files identify a language (first match wins: Go, Node,
  Python, Rust)
- How dependencies are read from each ecosystem's manifest
- Which files count as relevant and which directories are skipped
"""

import json
import os
import re
import tomllib
from pathlib import Path

from .models import ProjectInfo

SKIPPED_DIRS = {"node_modules", "vendor", "target", "__pycache__"}

RELEVANT_EXTENSIONS = {
    ".go", ".js", ".ts", ".jsx", ".tsx", ".py", ".rs", ".java", ".c", ".cpp", ".h", ".hpp",
    ".json", ".yaml", ".yml", ".toml", ".xml", ".md", ".txt", ".cfg", ".conf", ".ini",
}

RELEVANT_NAMES = ("readme", "license", "dockerfile", "makefile", "gitignore", "gitattributes")

NODE_FRAMEWORKS = (("react", "React"), ("vue", "Vue"), ("angular", "Angular"), ("express", "Express"))

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _requirement_name(line: str) -> str | None:
    """Package name from a requirements/PEP 508 line, or None for comments and options."""
    line = line.strip()
    if not line or line.startswith(("#", "-")):
        return None
    match = _REQUIREMENT_NAME.match(line)
    return match.group(1) if match else None


class ProjectAnalyzer:
    """Inspects a directory and produces a ProjectInfo."""

    def __init__(self, root_path: str | Path = "."):
        self._root = Path(root_path)

    def analyze(self) -> ProjectInfo:
        """Analyze the project rooted at the configured path.

        Returns:
            ProjectInfo (language "Unknown" when no marker file matches)

        Raises:
            FileNotFoundError: If the root does not exist or is not a directory
            ValueError: If a manifest file cannot be parsed
        """
        if not self._root.is_dir():
            raise FileNotFoundError(f"project path is not a directory: {self._root}")

        info = ProjectInfo(root_path=str(self._root), name=self._root.resolve().name)
        self._detect_language_and_tools(info)
        info.files = self._scan_files()
        return info

    def _exists(self, filename: str) -> bool:
        return (self._root / filename).exists()

    def _detect_language_and_tools(self, info: ProjectInfo) -> None:
        if self._exists("go.mod"):
            info.language = "Go"
            info.build_tool = "go"
            info.package_manager = "go"
            self._analyze_go(info)
        elif self._exists("package.json"):
            info.language = "JavaScript"
            info.package_manager = "npm"
            if self._exists("yarn.lock"):
                info.package_manager = "yarn"
            elif self._exists("pnpm-lock.yaml"):
                info.package_manager = "pnpm"
            self._analyze_node(info)
        elif self._exists("requirements.txt") or self._exists("pyproject.toml") or self._exists("setup.py"):
            info.language = "Python"
            info.package_manager = "pip"
            self._analyze_python(info)
        elif self._exists("Cargo.toml"):
            info.language = "Rust"
            info.build_tool = "cargo"
            info.package_manager = "cargo"
            self._analyze_rust(info)

    def _analyze_go(self, info: ProjectInfo) -> None:
        content = (self._root / "go.mod").read_text(encoding="utf-8")
        in_require_block = False
        for raw in content.splitlines():
            line = raw.strip()
            if line.startswith("require ("):
                in_require_block = True
                continue
            if in_require_block and line == ")":
                in_require_block = False
                continue
            if in_require_block or line.startswith("require "):
                parts = line.split()
                if len(parts) >= 2:
                    dep = parts[1] if parts[0] == "require" else parts[0]
                    if not dep.startswith("//"):
                        info.dependencies.append(dep)

        if self._go_sources_contain("github.com/stretchr/testify"):
            info.test_framework = "testify"

    def _go_sources_contain(self, needle: str) -> bool:
        for path in self._root.rglob("*.go"):
            try:
                if needle in path.read_text(encoding="utf-8", errors="ignore"):
                    return True
            except OSError:
                continue
        return False

    def _analyze_node(self, info: ProjectInfo) -> None:
        try:
            pkg = json.loads((self._root / "package.json").read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid package.json: {e}") from e
        if not isinstance(pkg, dict):
            raise ValueError("invalid package.json: top level is not an object")

        deps = pkg.get("dependencies") or {}
        dev_deps = pkg.get("devDependencies") or {}
        info.dependencies = [*deps, *dev_deps]
        info.scripts = {k: str(v) for k, v in (pkg.get("scripts") or {}).items()}

        if "typescript" in deps or "typescript" in dev_deps or self._exists("tsconfig.json"):
            info.language = "TypeScript"

        for dep, framework in NODE_FRAMEWORKS:
            if dep in deps:
                info.framework = framework
                break

        if "jest" in dev_deps:
            info.test_framework = "Jest"
        elif "mocha" in dev_deps:
            info.test_framework = "Mocha"

    def _analyze_python(self, info: ProjectInfo) -> None:
        if self._exists("requirements.txt"):
            for line in (self._root / "requirements.txt").read_text(encoding="utf-8").splitlines():
                name = _requirement_name(line)
                if name:
                    info.dependencies.append(name)

        if self._exists("pyproject.toml"):
            try:
                pyproject = tomllib.loads((self._root / "pyproject.toml").read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"invalid pyproject.toml: {e}") from e

            project = pyproject.get("project", {})
            requirements = list(project.get("dependencies", []))
            for extra in project.get("optional-dependencies", {}).values():
                requirements.extend(extra)
            for requirement in requirements:
                name = _requirement_name(requirement)
                if name and name not in info.dependencies:
                    info.dependencies.append(name)

            poetry = pyproject.get("tool", {}).get("poetry")
            if poetry is not None:
                info.build_tool = "poetry"
                for section in ("dependencies", "dev-dependencies"):
                    for name in poetry.get(section, {}):
                        if name != "python" and name not in info.dependencies:
                            info.dependencies.append(name)
            else:
                info.build_tool = "build"

        lowered = [dep.lower() for dep in info.dependencies]
        if any("pytest" in dep for dep in lowered):
            info.test_framework = "pytest"
        elif any("unittest" in dep for dep in lowered):
            info.test_framework = "unittest"

    def _analyze_rust(self, info: ProjectInfo) -> None:
        try:
            cargo = tomllib.loads((self._root / "Cargo.toml").read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"invalid Cargo.toml: {e}") from e
        info.dependencies = list(cargo.get("dependencies", {}))
        package_name = cargo.get("package", {}).get("name")
        if package_name:
            info.name = package_name

    def _scan_files(self) -> list[str]:
        files = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith(".") and d not in SKIPPED_DIRS
            )
            for filename in sorted(filenames):
                if is_relevant_file(filename):
                    rel = Path(dirpath, filename).relative_to(self._root)
                    files.append(rel.as_posix())
        return files


def is_relevant_file(filename: str) -> bool:
    """Source, config and documentation files are relevant."""
    lowered = filename.lower()
    if Path(lowered).suffix in RELEVANT_EXTENSIONS:
        return True
    return any(name in lowered for name in RELEVANT_NAMES)


def analyze_project(path: str | Path = ".") -> ProjectInfo:
    """Convenience wrapper: ProjectAnalyzer(path).analyze()."""
    return ProjectAnalyzer(path).analyze()
