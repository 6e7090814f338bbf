"""Saved decision memory CLI commands."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import typer
from rich.table import Table

from .core import app, console, make_routes, make_store

memory_app = typer.Typer(help="Browse and manage saved decisions")
app.add_typer(memory_app, name="memory")

_VIEWS = ("active", "archived")
_RANGES = ("all", "week", "month", "year")


def format_timestamp(ms: int) -> str:
    return time.strftime("%Y-%m-%d %H:%M", time.localtime(ms / 1000))


def memory_table(
    memories: Sequence,
    indices: Sequence[int],
    *,
    title: str,
    selected: Sequence[int] = (),
    suggested: Sequence[int] = (),
) -> Table:
    """Render memories in the given order; numbers are 1-based store positions."""
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Decision")
    table.add_column("Summary")
    table.add_column("Saved")
    table.add_column("")

    for index in indices:
        memory = memories[index]
        if index in selected:
            mark = "[green]selected[/green]"
        elif index in suggested:
            mark = "[yellow]suggested[/yellow]"
        else:
            mark = ""
        table.add_row(
            str(index + 1),
            memory.id[:8],
            memory.decision or "[dim]—[/dim]",
            memory.summary,
            format_timestamp(memory.created_at),
            mark,
        )
    return table


def _load_store():
    from thinkly.config.loader import load_config

    return make_store(load_config())


def _resolve(store, ref: str):
    """Find a memory by full id, unique id prefix or 1-based list number."""
    memories = store.memories
    if ref.isdigit() and 1 <= int(ref) <= len(memories):
        return memories[int(ref) - 1]
    exact = store.get(ref)
    if exact is not None:
        return exact
    matches = [m for m in memories if m.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if matches:
        console.print(f"[red]Ambiguous id prefix '{ref}' ({len(matches)} matches)[/red]")
    else:
        console.print(f"[red]No memory matches '{ref}'[/red]")
    raise typer.Exit(1)


@memory_app.command("list")
def memory_list(
    search: str = typer.Option("", "--search", "-s", help="Filter by decision, reasoning or constraints"),
    view: str = typer.Option("active", "--view", help="active or archived"),
    date_range: str = typer.Option("all", "--range", "-r", help="all, week, month or year"),
) -> None:
    """List saved decisions, most recent first."""
    from thinkly.memory.suggest import visible_indices
    from thinkly.utils.helpers import now_ms

    if view not in _VIEWS:
        console.print(f"[red]Unknown view '{view}'. Use one of: {', '.join(_VIEWS)}[/red]")
        raise typer.Exit(1)
    if date_range not in _RANGES:
        console.print(f"[red]Unknown range '{date_range}'. Use one of: {', '.join(_RANGES)}[/red]")
        raise typer.Exit(1)

    store = _load_store()
    memories = store.memories
    indices = visible_indices(
        memories,
        range(len(memories)),
        now_ms=now_ms(),
        search=search,
        view=view,  # type: ignore[arg-type]
        date_range=date_range,  # type: ignore[arg-type]
    )
    if not indices:
        console.print("No saved decisions.")
        return
    console.print(memory_table(memories, indices, title=f"Decisions ({view})"))


@memory_app.command("show")
def memory_show(ref: str = typer.Argument(..., help="Memory id, id prefix or list number")) -> None:
    """Show every field of one saved decision."""
    from thinkly.memory.models import MEMORY_FIELDS, field_label

    memory = _resolve(_load_store(), ref)

    table = Table(title=memory.summary or "Decision", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", memory.id)
    table.add_row("Saved", format_timestamp(memory.created_at))
    table.add_row("Archived", "yes" if memory.archived else "no")
    for name in MEMORY_FIELDS:
        value = getattr(memory, name)
        table.add_row(field_label(name), value or "[dim]—[/dim]")
    console.print(table)


@memory_app.command("suggest")
def memory_suggest(
    decision: str = typer.Option("", "--decision", "-d"),
    intent: str = typer.Option("", "--intent", "-i"),
    constraints: str = typer.Option("", "--constraints", "-c"),
    reasoning: str = typer.Option("", "--reasoning", "-r"),
) -> None:
    """Show which past decisions relate to a described decision."""
    from thinkly.config.loader import load_config
    from thinkly.memory.models import DraftMemory
    from thinkly.memory.suggest import score_memories, suggest
    from thinkly.utils.helpers import now_ms

    config = load_config()
    store = make_store(config)
    draft = DraftMemory(decision=decision, intent=intent, constraints=constraints, reasoning=reasoning)
    if not draft.can_save:
        console.print("[red]Describe the decision with at least one option.[/red]")
        raise typer.Exit(1)

    settings = config.suggestions
    now = now_ms()
    memories = store.memories
    indices = suggest(
        draft,
        memories,
        store.vectors,
        now,
        threshold=settings.threshold,
        limit=settings.max_results,
        recency_days=settings.recency_days,
        recency_boost=settings.recency_boost,
    )
    if not indices:
        console.print("No related decisions.")
        return

    scores = {
        s.index: s
        for s in score_memories(
            draft,
            memories,
            store.vectors,
            now,
            recency_days=settings.recency_days,
            recency_boost=settings.recency_boost,
        )
    }
    table = Table(title="Related decisions")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Decision")
    table.add_column("Shared terms", justify="right")
    table.add_column("Score", justify="right")
    for index in indices:
        scored = scores[index]
        table.add_row(
            str(index + 1),
            memories[index].decision or memories[index].summary,
            str(scored.similarity),
            f"{scored.score:g}",
        )
    console.print(table)


@memory_app.command("delete")
def memory_delete(
    refs: list[str] = typer.Argument(..., help="Memory ids, id prefixes or list numbers"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete one or more saved decisions permanently."""
    store = _load_store()
    # Resolve everything first; list numbers refer to the order before deletion.
    doomed = {}
    for ref in refs:
        memory = _resolve(store, ref)
        doomed.setdefault(memory.id, memory)

    if not yes:
        if len(doomed) == 1:
            (memory,) = doomed.values()
            prompt = f"Delete '{memory.decision or memory.summary}'?"
        else:
            prompt = f"Delete {len(doomed)} decisions?"
        if not typer.confirm(prompt):
            raise typer.Exit()
    for memory_id in doomed:
        store.delete(memory_id)
        console.print(f"[green]✓[/green] Deleted {memory_id}")


def _set_archived(ref: str, archived: bool) -> None:
    store = _load_store()
    memory = _resolve(store, ref)
    store.archive(memory.id, archived)
    verb = "Archived" if archived else "Restored"
    console.print(f"[green]✓[/green] {verb} {memory.id}")


@memory_app.command("archive")
def memory_archive(ref: str = typer.Argument(..., help="Memory id, id prefix or list number")) -> None:
    """Move a decision to the archive."""
    _set_archived(ref, True)


@memory_app.command("unarchive")
def memory_unarchive(ref: str = typer.Argument(..., help="Memory id, id prefix or list number")) -> None:
    """Restore an archived decision."""
    _set_archived(ref, False)


@memory_app.command("summarize")
def memory_summarize(ref: str = typer.Argument(..., help="Memory id, id prefix or list number")) -> None:
    """Regenerate the one-sentence summary of a saved decision."""
    from thinkly.config.loader import load_config
    from thinkly.memory.models import MEMORY_FIELDS, DraftMemory
    from thinkly.memory.summarizer import DecisionSummarizer

    config = load_config()
    routes = make_routes(config)
    store = make_store(config, routes)
    memory = _resolve(store, ref)
    draft = DraftMemory(**{name: getattr(memory, name) for name in MEMORY_FIELDS})
    summary = asyncio.run(DecisionSummarizer(routes.summarize).summarize(draft))
    store.update(memory.id, summary=summary)
    console.print(f"[green]✓[/green] {summary}")
