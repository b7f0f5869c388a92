"""Common utilities for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.markup import escape

from ..console import console, debug, error, error_console, info, success, warning
from ..errors import PortPoolError
from ..manager import PortManager

# Re-export console utilities
__all__ = [
    "console",
    "error_console",
    "debug",
    "info",
    "success",
    "warning",
    "error",
    "get_manager",
    "handle_errors",
]


def get_manager() -> PortManager:
    """Get manager bound to the per-user registry."""
    return PortManager()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report Portpool errors on stderr and exit with their code."""
    try:
        yield
    except PortPoolError as e:
        debug(f"{type(e).__name__}: exit code {e.exit_code}")
        error(escape(str(e)))
        raise typer.Exit(e.exit_code)
