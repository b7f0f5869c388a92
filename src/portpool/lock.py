"""Advisory cross-process lock for the Portpool registry.

The lock is a zero-byte marker file created with ``O_CREAT | O_EXCL``.
Its presence means the lock is held; its modification time is used to
detect holders that crashed without cleaning up. Stale-marker recovery is
a heuristic: a holder that stalls for longer than ``stale_after`` seconds
can lose the lock to another process. Callers only see ``acquire``,
``release``, ``exclusive`` and ``with_exclusive``, so the recovery scheme
can change without touching them.
"""

import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from .config import LOCK_POLL_SECONDS, LOCK_TIMEOUT_SECONDS, STALE_LOCK_SECONDS
from .console import debug
from .errors import LockTimeoutError

T = TypeVar("T")


class FileLock:
    """Exclusive lock backed by a marker file."""

    def __init__(
        self,
        path: Path,
        stale_after: float = STALE_LOCK_SECONDS,
        poll_interval: float = LOCK_POLL_SECONDS,
    ) -> None:
        """Initialize lock.

        Args:
            path: Location of the marker file
            stale_after: Marker age in seconds after which it is force-removed
            poll_interval: Sleep between attempts while the lock is busy
        """
        self.path = Path(path)
        self.stale_after = stale_after
        self.poll_interval = poll_interval

    def acquire(self, timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
        """Block until the lock is held or the timeout elapses.

        Args:
            timeout: Maximum time to wait, in seconds

        Raises:
            LockTimeoutError: If the lock could not be acquired in time
            OSError: On any filesystem error other than "already exists"
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        started = time.monotonic()

        while True:
            if self._try_create():
                debug(f"Acquired lock {self.path}")
                return

            if self._remove_if_stale():
                continue

            if time.monotonic() - started > timeout:
                raise LockTimeoutError(
                    f"Failed to acquire lock after {int(timeout * 1000)}ms ({self.path})"
                )

            time.sleep(self.poll_interval)

    def release(self) -> None:
        """Release the lock. Releasing an absent marker is not an error."""
        self.path.unlink(missing_ok=True)
        debug(f"Released lock {self.path}")

    @contextmanager
    def exclusive(self, timeout: float = LOCK_TIMEOUT_SECONDS) -> Iterator[None]:
        """Hold the lock for the duration of a ``with`` block."""
        self.acquire(timeout)
        try:
            yield
        finally:
            self.release()

    def with_exclusive(self, fn: Callable[[], T], timeout: float = LOCK_TIMEOUT_SECONDS) -> T:
        """Run ``fn`` while holding the lock and return its result.

        The lock is released whether ``fn`` returns or raises.
        """
        with self.exclusive(timeout):
            return fn()

    def is_locked(self) -> bool:
        """Check whether a marker currently exists."""
        return self.path.exists()

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            return False
        os.close(fd)
        return True

    def _remove_if_stale(self) -> bool:
        """Remove the marker if it is older than ``stale_after``.

        Returns:
            True if the caller should retry immediately (marker removed or
            already gone), False if the marker is held by a live owner
        """
        try:
            age = time.time() - self.path.stat().st_mtime
        except FileNotFoundError:
            return True

        if age <= self.stale_after:
            return False

        debug(f"Removing stale lock {self.path} (age {age:.1f}s)")
        self.path.unlink(missing_ok=True)
        return True
