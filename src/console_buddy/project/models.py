"""Data models describing a detected project."""

from pydantic import BaseModel, Field


class ProjectInfo(BaseModel):
    """What the analyzer learned about a project.

    Consumed by the project tools (install, test, build) to choose a
    command line, and by the code generator to choose templates.
    """

    root_path: str = Field(description="Directory that was analyzed")
    name: str = Field(default="", description="Project name (directory name by default)")
    language: str = Field(default="Unknown", description="Go, JavaScript, TypeScript, Python, Rust or Unknown")
    framework: str = ""
    package_manager: str = ""
    build_tool: str = ""
    test_framework: str = ""
    dependencies: list[str] = Field(default_factory=list)
    scripts: dict[str, str] = Field(default_factory=dict)
    files: list[str] = Field(default_factory=list, description="Relevant files, relative to root")

    def summary(self) -> str:
        """Short label for status lines, e.g. 'Python' or 'JavaScript (React)'."""
        if self.framework:
            return f"{self.language} ({self.framework})"
        return self.language
