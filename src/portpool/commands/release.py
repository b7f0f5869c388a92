"""Release command - free up leased ports."""

import typer

from ..registry import ALL_TAGS
from .common import get_manager, handle_errors, success


def release(
    tag: str | None = typer.Argument(
        None, help="Release only leases with this tag (default: release all)"
    ),
    identifier: str | None = typer.Option(
        None, "-i", "--identifier", "--id", help="Project identifier (default: git root)"
    ),
) -> None:
    """Release leased ports for the current project.

    Without a tag every lease of the project is released. Pass "" to release
    only the untagged leases.

    Examples:
        portpool release
        portpool release http
        portpool release ""
    """
    manager = get_manager()

    with handle_errors():
        result = manager.release(ALL_TAGS if tag is None else tag, identifier)

    success(f"Released {result.removed_count} lease(s)")
