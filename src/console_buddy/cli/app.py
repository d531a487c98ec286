"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Settings, load_settings
from ..conversation import (
    StreamEvent,
    TextChunk,
    ToolCallFinished,
    ToolCallStarted,
    TurnError,
    commit_turn,
    pair_history,
)
from ..errors import ConfigurationError, TransportError
from ..memory import SessionData, SessionStore
from ..project import ProjectInfo, analyze_project
from .providers import get_engine, get_llm, get_store

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="console-buddy",
    help="Terminal chat agent that turns requests into actions on your project",
    add_completion=True,
)

# Console for rich output
console = Console()


def _settings_or_exit(**overrides) -> Settings:
    try:
        return load_settings(**overrides)
    except ValueError as e:
        console.print(f"[red]Error: invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)


async def _load_project(
    store: SessionStore, store_data: SessionData | None, settings: Settings
) -> ProjectInfo | None:
    """Return stored project info, analyzing the working directory if needed.

    A fresh analysis is saved right away so later runs skip it.
    """
    if store_data is not None and store_data.project_info is not None:
        return store_data.project_info
    if not settings.auto_analyze:
        return None
    try:
        info = await asyncio.to_thread(analyze_project, ".")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[yellow]Warning: project analysis failed: {e}[/yellow]")
        return None
    console.print(f"[dim]Detected project: {info.summary()}[/dim]")

    history = store_data.history if store_data is not None else []
    try:
        await store.save(history, info, settings.humor_level)
    except Exception as e:
        console.print(f"[yellow]Warning: could not save project info: {e}[/yellow]")
    return info


async def _open_store(settings: Settings) -> tuple[SessionStore, SessionData | None]:
    try:
        store = get_store(settings)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    await store.connect()
    return store, await store.load()


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    """Start the chat when no command is given."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(chat)


@app.command()
def chat(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show the log panel at this level (debug, info, warning, error)"
    ),
    humor: int | None = typer.Option(
        None,
        "--humor",
        min=0,
        max=100,
        help="Humor level from 0 to 100"
    ),
    history_backend: str | None = typer.Option(
        None,
        "--history-backend",
        help="Where history is kept: file, sqlite or memory"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model name (default depends on LLM_PROVIDER)"
    ),
):
    """Start the interactive chat TUI."""
    from ..ui import run_tui

    settings = _settings_or_exit(
        log_level=log_level,
        humor_level=humor,
        history_backend=history_backend,
        model=model,
    )

    async def _chat():
        try:
            llm = get_llm(settings)
        except ConfigurationError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        store, data = await _open_store(settings)
        try:
            project_info = await _load_project(store, data, settings)
            humor_level = settings.humor_level
            if humor is None and data is not None and data.humor_level:
                humor_level = data.humor_level

            engine = get_engine(
                settings, llm, project_info=project_info, humor_level=humor_level
            )
            await run_tui(
                engine,
                store,
                model_name=llm.model,
                history=data.history if data is not None else None,
                project_info=project_info,
                humor_level=humor_level,
                log_level=settings.log_level,
            )
        finally:
            await store.disconnect()
            await llm.close()

    asyncio.run(_chat())


@app.command()
def ask(
    message: str = typer.Argument(..., help="Message to send"),
    humor: int | None = typer.Option(
        None,
        "--humor",
        min=0,
        max=100,
        help="Humor level from 0 to 100"
    ),
    no_save: bool = typer.Option(
        False,
        "--no-save",
        help="Do not add the exchange to the stored history"
    ),
):
    """Run a single request without the TUI."""
    settings = _settings_or_exit(humor_level=humor)

    async def _emit(event: StreamEvent) -> None:
        if isinstance(event, TextChunk):
            console.print(event.text, end="", markup=False, highlight=False)
        elif isinstance(event, ToolCallStarted):
            console.print(f"\n[dim]> {event.name}[/dim]")
        elif isinstance(event, ToolCallFinished):
            if event.error is None:
                console.print(f"[dim]  {event.name}: ok[/dim]")
            else:
                console.print(f"[yellow]  {event.name}: {event.error.value}: {event.detail}[/yellow]")
        elif isinstance(event, TurnError):
            console.print(f"\n[red]Error: {event.error}[/red]")

    async def _ask():
        try:
            llm = get_llm(settings)
        except ConfigurationError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        store, data = await _open_store(settings)
        try:
            project_info = await _load_project(store, data, settings)
            history = data.history if data is not None else []
            engine = get_engine(settings, llm, project_info=project_info)

            try:
                reply = await engine.run(history, message, _emit)
            except TransportError:
                raise typer.Exit(code=1)
            console.print()

            if not no_save:
                await store.save(
                    commit_turn(history, message, reply),
                    project_info,
                    settings.humor_level,
                )
        finally:
            await store.disconnect()
            await llm.close()

    asyncio.run(_ask())


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Project directory"
    ),
    files: bool = typer.Option(
        False,
        "--files",
        "-f",
        help="Also list the relevant files"
    ),
):
    """Detect language, tooling and dependencies of a project."""
    try:
        info = analyze_project(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Project: {info.name}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Root", info.root_path)
    table.add_row("Language", info.language)
    table.add_row("Framework", info.framework or "[dim]-[/dim]")
    table.add_row("Package manager", info.package_manager or "[dim]-[/dim]")
    table.add_row("Build tool", info.build_tool or "[dim]-[/dim]")
    table.add_row("Test framework", info.test_framework or "[dim]-[/dim]")
    table.add_row("Dependencies", str(len(info.dependencies)))
    if info.scripts:
        table.add_row("Scripts", ", ".join(sorted(info.scripts)))
    table.add_row("Relevant files", str(len(info.files)))

    console.print(table)

    if files and info.files:
        console.print("\n[bold cyan]Files:[/bold cyan]")
        for name in info.files:
            console.print(f"  {name}", markup=False)


@app.command()
def history(
    clear: bool = typer.Option(
        False,
        "--clear",
        help="Delete the stored history (asks for confirmation)"
    ),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        min=1,
        help="Number of most recent exchanges to show"
    ),
):
    """Show or clear the stored conversation history."""
    settings = _settings_or_exit()

    async def _history():
        store, data = await _open_store(settings)
        try:
            if clear:
                if data is None:
                    console.print("[dim]No stored history.[/dim]")
                    return
                confirm = typer.confirm("Delete the stored history?")
                if not confirm:
                    console.print("[dim]Aborted.[/dim]")
                    return
                await store.clear()
                console.print("[green]History cleared.[/green]")
                return

            if data is None or not data.conversations:
                console.print("[dim]No stored history.[/dim]")
                return

            pairs = pair_history(data.history)
            console.print(
                f"[dim]{len(pairs)} exchange(s), {data.total_sessions} save(s), "
                f"last updated {data.last_updated:%Y-%m-%d %H:%M:%S} UTC[/dim]\n"
            )
            for user_text, model_text in pairs[-limit:]:
                console.print(Panel(user_text or "[dim](empty)[/dim]", title="You", border_style="green"))
                console.print(Panel(model_text or "[dim](no reply)[/dim]", title="Buddy", border_style="magenta"))
        finally:
            await store.disconnect()

    asyncio.run(_history())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
