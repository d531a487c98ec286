"""Typed argument models, one per tool.

Strict mode: values must already have the declared type (the model sends
JSON, so no coercion from numbers to strings and no silent None).
"""

from pydantic import BaseModel, ConfigDict, Field


class ToolArguments(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)


class CommandArgs(ToolArguments):
    command: str = Field(description="The command to execute.")


class PathArgs(ToolArguments):
    path: str = Field(description="The path of the file.")


class WriteFileArgs(ToolArguments):
    path: str = Field(description="The path of the file to write.")
    content: str = Field(description="The content to write to the file.")


class DirectoryArgs(ToolArguments):
    path: str = Field(description="The path of the directory. Use '.' for the current directory.")


class GenerateCodeArgs(ToolArguments):
    type: str = Field(description="Type of code to generate: 'function', 'class', 'struct', 'test' or 'config'.")
    name: str = Field(description="Name of the item to generate (for config: dockerfile, gitignore or makefile).")
    description: str = Field(description="Description of what the code should do.")
    spec: str | None = Field(
        default=None,
        description="JSON specification for the code (params/returns, fields, or config options).",
    )


class InstallArgs(ToolArguments):
    packages: str | None = Field(
        default=None, description="Space-separated list of packages to install (optional)."
    )


class RunTestsArgs(ToolArguments):
    pattern: str | None = Field(
        default=None, description="Test pattern or specific test file to run (optional)."
    )


class BuildArgs(ToolArguments):
    target: str | None = Field(default=None, description="Build target (optional).")
