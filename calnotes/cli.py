from __future__ import annotations
from contextlib import contextmanager
from datetime import date as Date
from pathlib import Path
from typing import Optional
import json
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ConfigStore
from .errors import CalnotesError
from .logging_setup import setup_logging
from .services import (
    choose_directory, needs_setup, create_note, get_note, edit_note,
    delete_note, month_notes, export_notes, import_notes,
)
from .storage import NoteRepository

app = typer.Typer(help="calnotes — calendar notes kept in a folder you choose")
console = Console()


@contextmanager
def _reported():
    try:
        yield
    except (CalnotesError, ValueError, OSError) as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


def _parse_day(value: Optional[str]) -> Date:
    if not value:
        return Date.today()
    try:
        return Date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _repo(ctx: typer.Context) -> NoteRepository:
    return ctx.obj


@app.callback()
def _boot(
    ctx: typer.Context,
    settings: Optional[Path] = typer.Option(
        None, "--settings", envvar="CALNOTES_SETTINGS_PATH", help="settings database file"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
):
    setup_logging(log_level)
    config = ConfigStore.open(settings)
    ctx.call_on_close(config.close)
    ctx.obj = NoteRepository(config)


@app.command()
def setup(ctx: typer.Context, directory: Path):
    """Choose the folder that holds notes.dat."""
    with _reported():
        d = choose_directory(_repo(ctx).config, directory)
    console.print(f"[green]Notes will be stored in[/] {escape(str(d))}")


@app.command()
def status(ctx: typer.Context):
    config = _repo(ctx).config
    directory = config.storage_directory()
    console.print(f"onboarded: {'yes' if config.is_onboarded() else 'no'}")
    if directory is None:
        console.print("storage: [yellow]not chosen[/]")
    elif not config.has_storage_directory():
        console.print(f"storage: [red]missing[/] {escape(str(directory))}")
    else:
        console.print(f"storage: {escape(str(directory))}")
    if needs_setup(config):
        console.print("[yellow]Run `calnotes setup DIR` first.[/]")


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t"),
    content: str = typer.Option("", "--content", "-c"),
    day: Optional[str] = typer.Option(None, "--date", "-d", help="YYYY-MM-DD, default today"),
):
    when = _parse_day(day)
    with _reported():
        n = create_note(_repo(ctx), when, title, content)
    console.print(f"[green]Created[/] {n.id} on {n.date.isoformat()}: {escape(n.title)}")


@app.command()
def day(ctx: typer.Context, when: Optional[str] = typer.Argument(None, help="YYYY-MM-DD")):
    """List the notes of one day."""
    target = _parse_day(when)
    with _reported():
        notes = _repo(ctx).get_notes_for_date(target)
    table = Table(title=target.isoformat())
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Created")
    for n in notes:
        table.add_row(n.id, escape(str(n)), n.created_at.isoformat(timespec="minutes"))
    console.print(table)


@app.command()
def month(ctx: typer.Context, when: Optional[str] = typer.Argument(None, help="YYYY-MM")):
    """Days of a month that have notes."""
    today = Date.today()
    year, mon = today.year, today.month
    if when:
        try:
            year, mon = (int(p) for p in when.split("-"))
            Date(year, mon, 1)
        except ValueError:
            raise typer.BadParameter(f"expected YYYY-MM, got {when!r}")
    with _reported():
        grouped = month_notes(_repo(ctx), year, mon)
    table = Table(title=f"{year:04d}-{mon:02d}")
    table.add_column("Day", style="cyan")
    table.add_column("Notes", justify="right")
    table.add_column("Titles")
    for d, notes in grouped.items():
        table.add_row(d.isoformat(), str(len(notes)), escape(", ".join(str(n) for n in notes)))
    console.print(table)


@app.command()
def show(ctx: typer.Context, note_id: str):
    with _reported():
        n = get_note(_repo(ctx), note_id)
    console.rule(f"{n.date.isoformat()} {escape(n.title)}")
    console.print(escape(n.content) if n.content else "[dim]<empty>[/]")
    console.print(f"[dim]id {n.id}, created {n.created_at.isoformat(timespec='seconds')}[/]")


@app.command()
def edit(
    ctx: typer.Context,
    note_id: str,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    content: Optional[str] = typer.Option(None, "--content", "-c"),
    day: Optional[str] = typer.Option(None, "--date", "-d"),
):
    when = _parse_day(day) if day else None
    with _reported():
        n = edit_note(_repo(ctx), note_id, title=title, content=content, day=when)
    console.print(f"[green]Updated[/] {n.id}: {escape(n.title)}")


@app.command()
def delete(ctx: typer.Context, note_id: str):
    with _reported():
        delete_note(_repo(ctx), note_id)
    console.print(f"[yellow]Deleted[/] {note_id}")


@app.command()
def export(ctx: typer.Context, to: Path = typer.Option(..., "--to")):
    with _reported():
        payload = export_notes(_repo(ctx))
        to.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[green]Exported[/] {len(payload)} notes → {escape(str(to))}")


@app.command("import")
def import_(ctx: typer.Context, from_: Path = typer.Option(..., "--from")):
    with _reported():
        data = json.loads(from_.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{from_} does not hold a list of notes")
        added = import_notes(_repo(ctx), data)
    console.print(f"[green]Imported[/] {added} of {len(data)} notes")


def main():
    app()


if __name__ == "__main__":
    main()
