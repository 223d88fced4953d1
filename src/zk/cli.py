"""CLI entrypoint for zk."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click
from rich.console import Console
from rich.table import Table

from zk import __version__
from zk.config import default_root, load_config
from zk.db import IndexDB
from zk.errors import AlreadyExists, ZkError
from zk.index import ZettelIndex, find_index_file, local_now
from zk.note import new_id, new_note
from zk.sync import sync as sync_index


@contextmanager
def _zk_errors() -> Iterator[None]:
    try:
        yield
    except ZkError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(__version__, prog_name="zk")
@click.option(
    "--root",
    "-r",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Collection root (defaults to $ZK_ROOT, then the current directory)",
)
@click.option("--verbose", "-v", count=True, help="-v for progress, -vv for debug output")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, verbose: int) -> None:
    """zk - keep an index of your zettels in sync with the files on disk."""
    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj["root"] = root if root is not None else default_root()
    ctx.obj.setdefault("clock", local_now)
    ctx.obj.setdefault("id_factory", new_id)


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Initialize a new index in the collection root."""
    root: Path = ctx.obj["root"]
    with _zk_errors():
        existing = find_index_file(root)
        if existing is not None:
            raise AlreadyExists(existing)
        index = ZettelIndex.create(load_config(root), clock=ctx.obj["clock"])
        index.commit()
    click.echo(f"initialized new zk index at {index.db_path}")


@cli.command()
@click.argument("title")
@click.option("--subdir", "-d", default=None, help="Create the zettel inside this subdirectory")
@click.pass_context
def new(ctx: click.Context, title: str, subdir: str | None) -> None:
    """Create a new zettel called TITLE."""
    root: Path = ctx.obj["root"]
    clock = ctx.obj["clock"]
    with _zk_errors():
        index = ZettelIndex.open(root, clock=clock)
        if index is None:
            if not click.confirm("Index does not exist. Create it?"):
                return
            index = ZettelIndex.create(load_config(root), clock=clock)

        note = new_note(title, clock(), subdir=subdir, id_factory=ctx.obj["id_factory"])
        index.add(note)
        try:
            index.commit()
        except Exception:
            # keep disk and index consistent: the file must not outlive a failed commit
            index.remove(note.meta)
            raise
    click.echo(f"created a new zettel at {note.meta.path}")


@cli.command()
@click.pass_context
def sync(ctx: click.Context) -> None:
    """Sync moved or retitled zettels into the index."""
    root: Path = ctx.obj["root"]
    with _zk_errors():
        index = ZettelIndex.open(root, clock=ctx.obj["clock"])
        if index is None:
            click.echo("no index file found", err=True)
            ctx.exit(1)
        report = sync_index(index)
        index.commit()
    for relink in report.relinked:
        click.echo(str(relink))
    if report.diagnostics:
        click.echo(f"skipped {len(report.diagnostics)} file(s)", err=True)


@cli.command("list")
@click.option("--title", "-t", default=None, help="Only zettels whose title contains this text")
@click.pass_context
def list_(ctx: click.Context, title: str | None) -> None:
    """List indexed zettels."""
    root: Path = ctx.obj["root"]
    with _zk_errors():
        index = ZettelIndex.open(root, clock=ctx.obj["clock"])
    if index is None:
        raise click.ClickException("no index file found")

    with IndexDB(index) as db:
        rows = db.table_view(title=title).to_dicts()

    console = Console()
    if not rows:
        console.print("[dim]no zettels[/dim]")
        return
    table = Table(title=f"{len(rows)} zettel(s)")
    table.add_column("id", no_wrap=True, style="cyan")
    table.add_column("title")
    table.add_column("date", no_wrap=True)
    table.add_column("path", no_wrap=True, style="green")
    for row in rows:
        table.add_row(row["id"], row["title"], str(row["day"]), row["path"])
    console.print(table)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
