"""Pool commands - manage named port ranges."""

import typer
from rich.table import Table

from ..manager import PoolDetails
from .common import console, get_manager, handle_errors, success, warning

pool_app = typer.Typer(
    name="pool",
    help="Manage port pools",
    no_args_is_help=True,
)


def pool_list(
    name: str | None = typer.Argument(None, help="Show leases reserved in this pool"),
) -> None:
    """Show configured pools, or the leases in one pool.

    Examples:
        portpool pool list
        portpool pool ls frontend
    """
    manager = get_manager()

    with handle_errors():
        result = manager.pool_list(name)

    if isinstance(result, PoolDetails):
        _print_pool_details(result)
        return

    if not result:
        warning("No pools configured")
        return

    table = Table(title="Port Pools")
    table.add_column("Pool", style="green")
    table.add_column("Range Start", style="yellow")
    table.add_column("Range End", style="yellow")
    table.add_column("Total Ports", style="cyan")

    for pool in result:
        table.add_row(pool.name, str(pool.range_start), str(pool.range_end), str(pool.total_ports))

    console.print(table)


def _print_pool_details(details: PoolDetails) -> None:
    console.print(f"[bold]Pool:[/bold] {details.name}")
    console.print(
        f"  [dim]Range:[/dim]    {details.range_start}-{details.range_end} "
        f"({details.total_ports} total ports)"
    )
    console.print(f"  [dim]Reserved:[/dim] {details.reserved_count} port(s)")

    if not details.leases:
        warning("No ports currently reserved in this pool")
        return

    table = Table()
    table.add_column("Port", style="yellow")
    table.add_column("Tag", style="blue")
    table.add_column("Identifier", style="cyan")
    table.add_column("Leased At", style="dim")

    for lease in details.leases:
        table.add_row(str(lease.port), lease.tag or "-", lease.identifier, lease.leased_at or "-")

    console.print(table)


def pool_add(
    name: str = typer.Argument(..., help="Pool name"),
    range_start: int = typer.Argument(..., help="First port of the range"),
    range_end: int = typer.Argument(..., help="Last port of the range"),
) -> None:
    """Add a new pool.

    Examples:
        portpool pool add api 8000 8099
    """
    manager = get_manager()

    with handle_errors():
        manager.pool_add(name, range_start, range_end)

    success(f"Added pool '{name}' with range {range_start}-{range_end}")


def pool_update(
    name: str = typer.Argument(..., help="Pool name"),
    range_start: int = typer.Argument(..., help="New first port"),
    range_end: int = typer.Argument(..., help="New last port"),
) -> None:
    """Change the range of a pool.

    Fails if an existing lease would fall outside the new range.

    Examples:
        portpool pool update backend 5000 5999
    """
    manager = get_manager()

    with handle_errors():
        manager.pool_update(name, range_start, range_end)

    success(f"Updated pool '{name}' to range {range_start}-{range_end}")


def pool_delete(
    name: str = typer.Argument(..., help="Pool name"),
) -> None:
    """Delete a pool that has no leases.

    Examples:
        portpool pool delete api
    """
    manager = get_manager()

    with handle_errors():
        manager.pool_delete(name)

    success(f"Deleted pool '{name}'")


def pool_clear(
    name: str = typer.Argument(..., help="Pool name"),
) -> None:
    """Remove all leases in a pool.

    Examples:
        portpool pool clear frontend
    """
    manager = get_manager()

    with handle_errors():
        removed = manager.pool_clear(name)

    if removed == 0:
        warning(f"No leases found for pool '{name}'")
    else:
        success(f"Cleared {removed} lease(s) from pool '{name}'")


pool_app.command(name="list")(pool_list)
pool_app.command(name="ls", hidden=True)(pool_list)
pool_app.command(name="add")(pool_add)
pool_app.command(name="update")(pool_update)
pool_app.command(name="delete")(pool_delete)
pool_app.command(name="clear")(pool_clear)
