"""Init command - create a fresh registry."""

import typer

from .common import console, get_manager, handle_errors


def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing registry"),
) -> None:
    """Initialize a new registry with the default pools.

    Examples:
        portpool init
        portpool init --force
    """
    manager = get_manager()

    with handle_errors():
        registry = manager.init(force=force)

    location = getattr(manager.store, "path", None)
    console.print(f"[green]Initialized new registry[/green] at {location}")
    console.print("\n[bold]Default pools:[/bold]")
    for pool in registry.pools.values():
        console.print(f"  {pool.name + ':':<11} {pool.range_start}-{pool.range_end}")
    console.print("\n[dim]Tip: use 'portpool pool add' or 'portpool pool update' to customize ranges[/dim]")
