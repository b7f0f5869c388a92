"""List command - show port leases."""

import typer
from rich.table import Table

from .common import console, get_manager, handle_errors, warning


def list_cmd(
    pool: str | None = typer.Option(None, "-p", "--pool", help="Only show leases in this pool"),
    global_: bool = typer.Option(
        False, "-g", "--global", help="Show leases of all projects, not just current"
    ),
) -> None:
    """Show leases of the current project.

    Examples:
        portpool list
        portpool ls --pool backend
        portpool ls --global
    """
    manager = get_manager()

    with handle_errors():
        leases = manager.list_leases(pool=pool, global_=global_)

    if not leases:
        warning("No active leases")
        return

    table = Table(title="All Leases" if global_ else "Current Project Leases")
    table.add_column("Port", style="yellow")
    table.add_column("Pool", style="green")
    table.add_column("Tag", style="blue")
    table.add_column("Identifier", style="cyan")
    table.add_column("Leased At", style="dim")

    for lease in leases:
        table.add_row(
            str(lease.port),
            lease.pool,
            lease.tag or "-",
            lease.identifier,
            lease.leased_at or "-",
        )

    console.print(table)
