"""Lease command - reserve a port from a pool."""

import typer

from .common import get_manager, handle_errors


def lease(
    pool: str = typer.Argument(..., help="Pool to lease from (e.g., frontend, backend)"),
    tag: str = typer.Argument("", help="Optional tag for multiple ports per pool"),
    identifier: str | None = typer.Option(
        None, "-i", "--identifier", "--id", help="Project identifier (default: git root)"
    ),
    worktree_path: str | None = typer.Option(
        None, "--worktree-path", "--path", help="Worktree path used for cleanup"
    ),
) -> None:
    """Lease a port from a pool for the current project.

    Leasing again with the same pool and tag returns the same port.

    Examples:
        portpool lease frontend
        portpool lease backend http
        PORT=$(portpool lease backend https)
    """
    manager = get_manager()

    with handle_errors():
        result = manager.lease(pool, tag, identifier, worktree_path)

    print(result.port)
