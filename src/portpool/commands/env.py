"""Env command - output leased ports as environment variables."""

import json
import os
import sys

import typer

from .common import get_manager, handle_errors


def default_format() -> str:
    """Pick PowerShell syntax on Windows or under pwsh, POSIX otherwise."""
    shell = os.getenv("SHELL", "").lower()
    if sys.platform == "win32" or "powershell" in shell or "pwsh" in shell:
        return "powershell"
    return "shell"


def env(
    format: str | None = typer.Option(
        None, "--format", help="Output format: shell, powershell, json (default: detected)"
    ),
    identifier: str | None = typer.Option(
        None, "-i", "--identifier", "--id", help="Project identifier (default: git root)"
    ),
) -> None:
    """Export leased ports as environment variables.

    Variables are named POOL_PORT, or POOL_TAG_PORT for tagged leases.

    Examples:
        eval "$(portpool env)"
        Invoke-Expression (portpool env | Out-String)
        portpool env --format json
    """
    manager = get_manager()
    format = format or default_format()

    with handle_errors():
        env_vars = manager.env(identifier)

    if format == "json":
        print(json.dumps(env_vars, indent=2))
    elif format == "powershell":
        for name, port in env_vars.items():
            print(f"$env:{name} = {port}")
    else:  # shell
        for name, port in env_vars.items():
            print(f"export {name}={port}")
