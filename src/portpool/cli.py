"""Typer CLI for Portpool - Main entry point."""

from contextlib import contextmanager
from typing import Iterator

import click
import typer
from typer.core import TyperGroup

from . import __version__
from .commands import (
    check,
    cleanup,
    env,
    init,
    lease,
    list_cmd,
    pool_app,
    release,
)
from .errors import EXIT_INVALID_INPUT


@contextmanager
def usage_errors_as_invalid_input() -> Iterator[None]:
    """Report click usage errors with the invalid-input exit code.

    Click exits 2 on a bad or missing argument, which would collide with
    the pool-exhausted code.
    """
    try:
        yield
    except click.UsageError as e:
        e.exit_code = EXIT_INVALID_INPUT
        raise


class PortpoolGroup(TyperGroup):
    """Root command group; argument errors in any subcommand exit 4."""

    def make_context(self, info_name, args, parent=None, **extra):
        with usage_errors_as_invalid_input():
            return super().make_context(info_name, args, parent=parent, **extra)

    def invoke(self, ctx):
        with usage_errors_as_invalid_input():
            return super().invoke(ctx)


app = typer.Typer(
    name="portpool",
    help="Manage unique port leases across git worktrees",
    cls=PortpoolGroup,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"portpool version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Manage unique port leases across git worktrees."""
    pass

# Register all commands
app.command()(init)
app.command()(lease)
app.command()(release)
app.command(name="list")(list_cmd)
app.command(name="ls", hidden=True)(list_cmd)
app.command()(check)
app.command()(cleanup)
app.command()(env)
app.add_typer(pool_app, name="pool")


def main() -> None:
    """Main entry point."""
    app()
