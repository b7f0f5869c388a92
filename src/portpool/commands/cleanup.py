"""Cleanup command - remove stale leases."""

import typer

from .common import console, get_manager, handle_errors, success


def cleanup(
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show what would be removed"),
) -> None:
    """Remove stale leases.

    A lease is stale when its worktree no longer exists, or when it is older
    than 7 days and its port is not in use.

    Examples:
        portpool cleanup --dry-run
        portpool cleanup
    """
    manager = get_manager()

    with handle_errors():
        result = manager.cleanup(dry_run=dry_run)

    if not result.stale_leases:
        success("No stale leases found")
        return

    console.print(f"[yellow]Found {len(result.stale_leases)} stale lease(s):[/yellow]")
    for item in result.stale_leases:
        console.print(
            f"  - Port {item.lease.port} ({item.lease.identifier}): {item.reason}",
            highlight=False,
        )

    if dry_run:
        console.print("\n[dim]Dry run - no changes made. Run without --dry-run to remove.[/dim]")
        return

    success(f"\nRemoved {result.removed_count} stale lease(s)")
