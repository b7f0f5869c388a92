"""Check command - show whether a port is free."""

import typer

from ..errors import EXIT_PORT_UNAVAILABLE
from .common import get_manager, handle_errors, success, warning


def check(
    port: int = typer.Argument(..., help="Port number to check"),
) -> None:
    """Check whether a port is leased, in use, or available.

    Exits with code 1 if the port is leased or in use.

    Examples:
        portpool check 3300
    """
    manager = get_manager()

    with handle_errors():
        status = manager.check(port)

    if status.leased:
        details = status.details
        warning(f"Port {port} is leased by '{details['identifier']}' (pool: {details['pool']})")
        raise typer.Exit(EXIT_PORT_UNAVAILABLE)

    if status.in_use:
        warning(f"Port {port} is in use by another process (not registered)")
        raise typer.Exit(EXIT_PORT_UNAVAILABLE)

    success(f"Port {port} is available")
