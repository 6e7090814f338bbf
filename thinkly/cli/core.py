"""Shared CLI application context and setup helpers."""

from __future__ import annotations

import typer
from loguru import logger
from rich.console import Console

from thinkly import __logo__, __version__

app = typer.Typer(
    name="thinkly",
    help=f"{__logo__} thinkly - think a decision through, remember how you made it",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} thinkly v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show thinkly runtime logs"),
) -> None:
    """thinkly - think a decision through, remember how you made it."""
    if logs:
        logger.enable("thinkly")
    else:
        logger.disable("thinkly")


@app.command()
def onboard() -> None:
    """Initialize thinkly configuration and data directory."""
    from thinkly.config.loader import get_config_path, save_config
    from thinkly.config.schema import Config
    from thinkly.utils.helpers import ensure_dir

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    save_config(config)
    console.print(f"[green]✓[/green] Created config at {config_path}")

    data_dir = ensure_dir(config.storage_path)
    console.print(f"[green]✓[/green] Created data directory at {data_dir}")

    console.print(f"\n{__logo__} thinkly is ready!")
    console.print("\nNext steps:")
    console.print("  1. Start a local model: [cyan]ollama pull llama3.1:8b[/cyan]")
    console.print("  2. Check the setup: [cyan]thinkly status[/cyan]")
    console.print("  3. Think something through: [cyan]thinkly chat[/cyan]")


def make_routes(config):
    """Create per-task generation services from config. Exits on broken routing."""
    from thinkly.providers.factory import ProviderFactory

    try:
        return ProviderFactory(config).create_routes()
    except KeyError as e:
        console.print(f"[red]Model routing error:[/red] {e}")
        console.print("Fix the models section in ~/.thinkly/config.json")
        raise typer.Exit(1)


def make_store(config, routes=None):
    """Create the memory store backed by JSON files in the data directory."""
    from thinkly.memory.storage import JsonFileStorage
    from thinkly.memory.store import MemoryStore
    from thinkly.memory.summarizer import DecisionSummarizer

    summarizer = DecisionSummarizer(routes.summarize if routes is not None else None)
    return MemoryStore(
        JsonFileStorage(config.storage_path),
        summarizer=summarizer,
        memories_key=config.storage.memories_key,
        vectors_key=config.storage.vectors_key,
    )


def make_controller(config):
    """Wire routes, store and controller for an interactive session."""
    from thinkly.conversation.controller import ConversationController

    routes = make_routes(config)
    store = make_store(config, routes)
    return ConversationController(
        store=store,
        routes=routes,
        config=config.conversation,
        suggestions=config.suggestions,
    )
