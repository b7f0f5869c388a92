"""Project context detection for Portpool."""

import subprocess
from pathlib import Path


def get_git_root(path: Path | None = None) -> str | None:
    """Get the top-level directory of the git worktree containing path.

    Args:
        path: Directory to start from. Defaults to current working directory.

    Returns:
        Worktree root path or None if not a git repo
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
    except (subprocess.SubprocessError, OSError):
        pass
    return None


def normalize_identifier(path: str) -> str:
    """Normalize a path into a lease identifier.

    Examples:
        C:\\Users\\dev\\repo -> C/Users/dev/repo
        /home/dev/repo -> /home/dev/repo
    """
    return path.replace("\\", "/").replace(":", "")
