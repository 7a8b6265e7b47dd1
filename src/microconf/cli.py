"""microconf CLI — read and write the per-user ~/.micro config file.

Commands:
    microconf get KEY          print a value (dotted key, e.g. db.password)
    microconf set KEY VALUE    write a value
    microconf del KEY          remove a value
    microconf errors           print diagnostics recorded while loading
    microconf path             print the config and lock file paths
    microconf status           summary table (paths, key count, lock state)
"""

from __future__ import annotations

import logging

import click

from microconf.errors import ConfigStoreError
from microconf.lock import FileLock
from microconf.settings import load_settings
from microconf.store import Store

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _split_key(key: str) -> tuple[str, ...]:
    """Dotted key -> path segments. Blank keys and empty segments are usage errors."""
    if not key.strip():
        raise click.UsageError("key cannot be blank")
    parts = tuple(key.split("."))
    if not all(parts):
        raise click.UsageError(f"invalid key {key!r}: empty segment")
    return parts


def _store(ctx: click.Context) -> Store:
    store = ctx.find_object(Store)
    if store is None:
        raise click.ClickException("config store not initialised")
    return store


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="microconf")
@click.option("-v", "--verbose", is_flag=True, help="Log store activity to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """microconf — per-user local config shared across processes."""
    try:
        settings = load_settings()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    logging.basicConfig(
        level=logging.INFO if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    if ctx.obj is None:
        ctx.obj = Store(settings)


# ---------------------------------------------------------------------------
# get / set / del
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("key")
@click.pass_context
def get(ctx: click.Context, key: str) -> None:
    """Print the value at KEY, or "not found"."""
    value = _store(ctx).get(*_split_key(key))
    if not value:
        click.echo("not found")
        ctx.exit(1)
    click.echo(value)


@cli.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_(ctx: click.Context, key: str, value: str) -> None:
    """Write VALUE at KEY."""
    try:
        _store(ctx).set(value, *_split_key(key))
    except ConfigStoreError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("del")
@click.argument("key")
@click.pass_context
def del_(ctx: click.Context, key: str) -> None:
    """Remove KEY (and everything below it)."""
    try:
        removed = _store(ctx).delete(*_split_key(key))
    except ConfigStoreError as exc:
        raise click.ClickException(str(exc)) from exc
    if not removed:
        click.echo("not found")
        ctx.exit(1)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def errors(ctx: click.Context) -> None:
    """Print non-fatal problems recorded by the store."""
    for message in _store(ctx).errors():
        click.echo(message)


@cli.command()
@click.pass_context
def path(ctx: click.Context) -> None:
    """Print the config file and lock file paths."""
    store = _store(ctx)
    click.echo(f"Config : {store.path if store.path is not None else '(none)'}")
    click.echo(f"Lock   : {store.lock_path}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show paths, key count and whether another process holds the lock."""
    from rich.console import Console
    from rich.table import Table

    store = _store(ctx)
    console = Console()

    table = Table(title="microconf", show_header=True, header_style="bold")
    table.add_column("Metric", style="dim", no_wrap=True)
    table.add_column("Value")

    table.add_row("Config", str(store.path) if store.path is not None else "[red]none[/red]")
    table.add_row("Lock file", str(store.lock_path))
    table.add_row("Top-level keys", str(len(store.as_dict())))

    probe = FileLock(store.lock_path)
    try:
        free = probe.try_acquire()
    except ConfigStoreError as exc:
        from rich.markup import escape

        table.add_row("Lock", f"[red]unavailable: {escape(str(exc))}[/red]")
    else:
        if free:
            probe.release()
            table.add_row("Lock", "[green]free[/green]")
        else:
            table.add_row("Lock", "[yellow]held by another process[/yellow]")

    diagnostics = store.errors()
    table.add_row("Diagnostics", f"[yellow]{len(diagnostics)}[/yellow]" if diagnostics else "0")
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
