"""Command modules for portpool CLI."""

from .check import check
from .cleanup import cleanup
from .env import env
from .init import init
from .lease import lease
from .list import list_cmd
from .pool import pool_app
from .release import release

__all__ = [
    "check",
    "cleanup",
    "env",
    "init",
    "lease",
    "list_cmd",
    "pool_app",
    "release",
]
