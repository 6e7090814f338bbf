"""Interactive decision conversation command."""

from __future__ import annotations

import asyncio

from rich.table import Table

from thinkly import __logo__

from .core import app, console, make_controller
from .memory_commands import memory_table

_HELP = """[bold]Commands[/bold]
  /fields                 show the decision draft
  /set <field> <text>     change a draft field (while capturing or editing)
  /edit                   edit the draft fields
  /confirm                confirm the draft
  /ask                    ask for trade-offs, risks and a reflective question
  /save                   save the decision and start over
  /discard                drop the draft and start over
  /memories               list past decisions (selected and suggested first)
  /select <n> [n ...]     use past decisions as context (empty to clear)
  /toggle <n>             add or remove one past decision from the context
  /help                   show this help
  /quit                   leave"""

_STATE_HINTS = {
    "review": "Looks clear. [cyan]/confirm[/cyan], [cyan]/edit[/cyan], [cyan]/ask[/cyan] or [cyan]/save[/cyan].",
    "editing": "Editing. Use [cyan]/set <field> <text>[/cyan], then [cyan]/confirm[/cyan].",
    "confirm": "Confirmed. [cyan]/ask[/cyan] for a second look or [cyan]/save[/cyan] it.",
    "reflecting": "Reply to reflect further, or [cyan]/save[/cyan] when you are done.",
}


def _draft_table(controller) -> Table:
    from thinkly.memory.models import MEMORY_FIELDS, field_label

    table = Table(title=f"Draft ({controller.state})", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name in MEMORY_FIELDS:
        table.add_row(field_label(name), controller.draft.get(name) or "[dim]—[/dim]")
    return table


def _parse_numbers(args: list[str], count: int) -> list[int] | None:
    indices: list[int] = []
    for arg in args:
        if not arg.isdigit() or not 1 <= int(arg) <= count:
            console.print(f"[red]No past decision numbered '{arg}'[/red]")
            return None
        indices.append(int(arg) - 1)
    return indices


class _Transcript:
    """Print dialogue turns that have not been shown yet."""

    def __init__(self, controller) -> None:
        self._controller = controller
        self._epoch = controller.epoch
        self._shown = 0

    def flush(self) -> None:
        if self._controller.epoch != self._epoch:
            self._epoch = self._controller.epoch
            self._shown = 0
        turns = self._controller.turns
        for turn in turns[self._shown :]:
            if turn.speaker == "assistant" and not turn.placeholder:
                console.print(f"\n{__logo__} {turn.text}\n")
        self._shown = len(turns)


async def _handle_command(controller, line: str) -> bool:
    """Run one slash command. Returns False when the session should end."""
    parts = line[1:].split()
    if not parts:
        console.print(_HELP)
        return True
    name, args = parts[0].lower(), parts[1:]

    if name in ("quit", "exit"):
        return False
    if name == "help":
        console.print(_HELP)
    elif name == "fields":
        console.print(_draft_table(controller))
    elif name == "set":
        from thinkly.memory.models import MEMORY_FIELDS

        if len(args) < 1 or args[0] not in MEMORY_FIELDS:
            console.print(f"[red]Usage: /set <{'|'.join(MEMORY_FIELDS)}> <text>[/red]")
        elif not controller.update_field(args[0], " ".join(args[1:])):
            console.print(f"[yellow]Fields are read-only while {controller.state}.[/yellow]")
    elif name == "edit":
        if controller.edit():
            console.print(_draft_table(controller))
        else:
            console.print("[yellow]Nothing to edit yet.[/yellow]")
    elif name == "confirm":
        if controller.confirm():
            console.print(_draft_table(controller))
        else:
            console.print("[yellow]The draft can't be confirmed right now.[/yellow]")
    elif name == "ask":
        before = len(controller.turns)
        with console.status("[dim]Reflecting…[/dim]", spinner="dots"):
            ran = await controller.request_advisory()
        if not ran and len(controller.turns) == before:
            console.print("[yellow]Advice is available once the draft has something in it.[/yellow]")
    elif name == "save":
        memory = await controller.save()
        if memory is None:
            console.print("[yellow]Nothing to save yet.[/yellow]")
        else:
            console.print(f"[green]✓[/green] Saved: {memory.summary}")
    elif name == "discard":
        controller.discard()
        console.print("[dim]Draft discarded.[/dim]")
    elif name == "memories":
        memories = controller.store.memories
        order = controller.visible()
        if not order:
            console.print("No saved decisions.")
        else:
            console.print(
                memory_table(
                    memories,
                    order,
                    title="Past decisions",
                    selected=controller.selected,
                    suggested=controller.suggested,
                )
            )
    elif name in ("select", "toggle"):
        indices = _parse_numbers(args, len(controller.store.memories))
        if indices is None:
            return True
        if name == "select":
            controller.select(indices)
        elif len(indices) == 1:
            controller.toggle(indices[0])
        else:
            console.print("[red]Usage: /toggle <n>[/red]")
            return True
        with console.status("[dim]Recalling past decisions…[/dim]", spinner="dots"):
            await controller.drain()
    else:
        console.print(f"[red]Unknown command /{name}[/red] (try /help)")
    return True


@app.command()
def chat() -> None:
    """Think a decision through in an interactive conversation."""
    from thinkly.config.loader import load_config

    config = load_config()
    controller = make_controller(config)
    transcript = _Transcript(controller)

    console.print(f"{__logo__} Interactive mode (/help for commands, Ctrl+C to exit)\n")

    async def run_interactive() -> None:
        try:
            await converse()
        finally:
            await controller.aclose()

    async def converse() -> None:
        transcript.flush()
        last_state = controller.state
        while True:
            try:
                user_input = console.input("[bold blue]You:[/bold blue] ").strip()
            except (KeyboardInterrupt, EOFError):
                console.print("\nGoodbye!")
                break
            if not user_input:
                continue

            if user_input.startswith("/"):
                if not await _handle_command(controller, user_input):
                    console.print("Goodbye!")
                    break
            elif controller.state in ("review", "editing", "confirm"):
                console.print(f"[dim]{_STATE_HINTS[controller.state]}[/dim]")
            else:
                with console.status("[dim]Thinking…[/dim]", spinner="dots"):
                    await controller.submit(user_input)

            transcript.flush()
            if controller.state != last_state:
                last_state = controller.state
                if last_state == "review":
                    console.print(_draft_table(controller))
                hint = _STATE_HINTS.get(last_state)
                if hint:
                    console.print(f"[dim]{hint}[/dim]")

    asyncio.run(run_interactive())
