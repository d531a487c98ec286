"""File system tools: create, read, update, delete and list."""

from ..errors import ToolExecutionError
from .arguments import DirectoryArgs, PathArgs, WriteFileArgs
from .base import BaseTool


class CreateFileTool(BaseTool):
    args_model = WriteFileArgs

    @property
    def name(self) -> str:
        return "create_file"

    @property
    def description(self) -> str:
        return (
            "Creates a new file with the given content, creating parent directories as needed. "
            "For example, create_file('main.py', 'print(\"Hello, World!\")')."
        )

    def run(self, args: WriteFileArgs) -> str:
        path = self._context.resolve(args.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(args.content, encoding="utf-8")
        self._debug("info", "Files", f"Created {path} ({len(args.content)} chars)")
        return f"File '{args.path}' was created successfully."


class ReadFileTool(BaseTool):
    args_model = PathArgs

    @property
    def name(self) -> str:
        return "read_file"

    @property
    def description(self) -> str:
        return "Reads the content of a file. For example, read_file('main.go')."

    def run(self, args: PathArgs) -> str:
        path = self._context.resolve(args.path)
        if not path.is_file():
            raise ToolExecutionError(f"file not found: {args.path}")
        return path.read_text(encoding="utf-8", errors="replace")


class UpdateFileTool(BaseTool):
    args_model = WriteFileArgs

    @property
    def name(self) -> str:
        return "update_file"

    @property
    def description(self) -> str:
        return "Updates the content of an existing file. This overwrites the entire file."

    def run(self, args: WriteFileArgs) -> str:
        path = self._context.resolve(args.path)
        if not path.is_file():
            raise ToolExecutionError(f"file not found: {args.path} (use create_file for new files)")
        path.write_text(args.content, encoding="utf-8")
        self._debug("info", "Files", f"Updated {path} ({len(args.content)} chars)")
        return f"File '{args.path}' was updated successfully."


class DeleteFileTool(BaseTool):
    args_model = PathArgs

    @property
    def name(self) -> str:
        return "delete_file"

    @property
    def description(self) -> str:
        return "Deletes a file. For example, delete_file('temp.txt')."

    def run(self, args: PathArgs) -> str:
        path = self._context.resolve(args.path)
        if path.is_dir():
            raise ToolExecutionError(f"not a file: {args.path}")
        path.unlink()
        self._debug("info", "Files", f"Deleted {path}")
        return "File deleted successfully."


class ListFilesTool(BaseTool):
    args_model = DirectoryArgs

    @property
    def name(self) -> str:
        return "list_files"

    @property
    def description(self) -> str:
        return "Lists all files and directories in a given path. Use '.' for the current directory."

    def run(self, args: DirectoryArgs) -> str:
        path = self._context.resolve(args.path)
        if not path.is_dir():
            raise ToolExecutionError(f"not a directory: {args.path}")
        return "\n".join(sorted(entry.name for entry in path.iterdir()))
