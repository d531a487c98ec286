from .arguments import CommandArgs
from .base import BaseTool


class ExecuteShellCommandTool(BaseTool):
    """Runs an allow-listed shell command and returns its combined output."""

    args_model = CommandArgs

    @property
    def name(self) -> str:
        return "execute_shell_command"

    @property
    def description(self) -> str:
        return (
            "Executes a shell command on the user's machine. Use this for general-purpose "
            "commands that are not related to file manipulation, for example 'go run main.go' "
            "or 'git status'. Only allow-listed programs can be run."
        )

    def run(self, args: CommandArgs) -> str:
        self._debug("info", "Shell", f"$ {args.command}")
        return self._context.run(args.command)
