"""CLI commands for thinkly."""

import asyncio

from thinkly import __logo__

from . import chat_commands, memory_commands  # noqa: F401
from .core import app, console, make_store

# ============================================================================
# Status Commands
# ============================================================================


@app.command()
def status():
    """Show thinkly status."""
    from thinkly.config.loader import get_config_path, load_config
    from thinkly.providers.health import probe_ollama

    config_path = get_config_path()
    config = load_config()
    data_dir = config.storage_path

    console.print(f"{__logo__} thinkly Status\n")

    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Data: {data_dir} {'[green]✓[/green]' if data_dir.exists() else '[red]✗[/red]'}")

    if data_dir.exists():
        memories = make_store(config).memories
        archived = sum(1 for m in memories if m.archived)
        console.print(f"Decisions: {len(memories) - archived} active, {archived} archived")

    for route in sorted(config.models.routes):
        try:
            profile_name, profile = config.models.resolve(route)
        except KeyError as e:
            console.print(f"{route}: [red]{e}[/red]")
            continue
        console.print(f"{route}: {profile.model} [dim]({profile_name})[/dim]")

    api_base = config.providers.ollama.api_base
    if api_base:
        models = asyncio.run(probe_ollama(api_base))
        if models is None:
            console.print(f"Ollama: [red]✗ unreachable at {api_base}[/red]")
        else:
            console.print(f"Ollama: [green]✓ {api_base}[/green] [dim]({len(models)} models)[/dim]")
    else:
        console.print("Ollama: [dim]not set[/dim]")

    for name in ("openai", "anthropic", "openrouter"):
        p = getattr(config.providers, name)
        console.print(f"{name}: {'[green]✓[/green]' if p.api_key else '[dim]not set[/dim]'}")


if __name__ == "__main__":
    app()
