"""Project-aware tools: analysis, code generation, install, test and build.

The install, test and build tools translate the cached ProjectInfo into a
command line (see commands.py) and run it through the same allow-listed
runner as execute_shell_command.
"""

from ..errors import ToolExecutionError
from ..project import CodeGenerator
from .arguments import BuildArgs, DirectoryArgs, GenerateCodeArgs, InstallArgs, RunTestsArgs
from .base import BaseTool
from .commands import build_command, install_command, test_command


class AnalyzeProjectTool(BaseTool):
    args_model = DirectoryArgs

    @property
    def name(self) -> str:
        return "analyze_project"

    @property
    def description(self) -> str:
        return (
            "Analyzes the project structure: detects programming language, framework, "
            "package manager, test framework, dependencies and relevant files."
        )

    def run(self, args: DirectoryArgs) -> str:
        try:
            info = self._context.analyze(args.path)
        except (FileNotFoundError, ValueError) as e:
            raise ToolExecutionError(f"project analysis failed: {e}") from e
        self._debug("info", "Project", f"Detected {info.summary()} ({len(info.files)} files)")
        return f"Project Analysis Results:\n{info.model_dump_json(indent=2)}"


class GenerateCodeTool(BaseTool):
    args_model = GenerateCodeArgs

    @property
    def name(self) -> str:
        return "generate_code"

    @property
    def description(self) -> str:
        return (
            "Generates code skeletons that match the project's language: functions, "
            "classes/structs, tests, and config files (dockerfile, gitignore, makefile)."
        )

    def run(self, args: GenerateCodeArgs) -> str:
        info = self._context.ensure_project_info()
        self._debug("info", "Generator", f"Generating {args.type} '{args.name}' for {info.language}")
        try:
            generated = CodeGenerator(info).generate(args.type, args.name, args.description, args.spec)
        except ValueError as e:
            raise ToolExecutionError(f"code generation failed: {e}") from e
        return (
            f"Generated {args.type} code for '{args.name}':\n\n"
            f"Suggested filename: {generated.suggested_filename}\n\n"
            f"Code:\n```\n{generated.code}\n```"
        )


class InstallDependenciesTool(BaseTool):
    args_model = InstallArgs

    @property
    def name(self) -> str:
        return "install_dependencies"

    @property
    def description(self) -> str:
        return "Installs project dependencies using the project's package manager."

    def run(self, args: InstallArgs) -> str:
        command = install_command(self._context.ensure_project_info(), args.packages)
        self._debug("info", "Project", f"Install: {command}")
        return self._context.run(command)


class RunTestsTool(BaseTool):
    args_model = RunTestsArgs

    @property
    def name(self) -> str:
        return "run_tests"

    @property
    def description(self) -> str:
        return "Runs the project's test suite using the detected test framework."

    def run(self, args: RunTestsArgs) -> str:
        command = test_command(self._context.ensure_project_info(), args.pattern)
        self._debug("info", "Project", f"Tests: {command}")
        return self._context.run(command)


class BuildProjectTool(BaseTool):
    args_model = BuildArgs

    @property
    def name(self) -> str:
        return "build_project"

    @property
    def description(self) -> str:
        return "Builds the project using the detected build tool."

    def run(self, args: BuildArgs) -> str:
        command = build_command(self._context.ensure_project_info(), args.target)
        self._debug("info", "Project", f"Build: {command}")
        return self._context.run(command)
