"""Staleness detection for leases."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from .config import STALE_LEASE_DAYS
from .registry import Lease, Registry, utc_now
from .system import PortProbe, SystemScanner

REASON_MISSING_WORKTREE = "worktree path does not exist"


@dataclass
class StaleLease:
    """A lease flagged for removal and why."""

    lease: Lease
    reason: str


@dataclass
class CleanupResult:
    """Result of a cleanup operation."""

    stale_leases: list[StaleLease] = field(default_factory=list)
    removed_count: int = 0
    dry_run: bool = False


class Pruner:
    """Find leases that no longer back a live project."""

    def __init__(
        self,
        probe: PortProbe | None = None,
        stale_days: int = STALE_LEASE_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize pruner.

        Args:
            probe: Port liveness check. Defaults to SystemScanner.
            stale_days: Age after which an unused lease is stale
            clock: Returns the current time (timezone-aware)
        """
        self.probe = probe or SystemScanner().is_port_in_use
        self.stale_days = stale_days
        self.clock = clock

    def find_stale(self, registry: Registry) -> list[StaleLease]:
        """Collect stale leases in registry order.

        A lease is stale if:
        - its worktree_path is set but no longer exists, or
        - it is older than stale_days and its port is not in use

        The age check only runs when the path check did not match, and a
        lease whose port is live is never stale by age.

        Args:
            registry: Registry to inspect (not modified)

        Returns:
            List of StaleLease
        """
        now = self.clock()
        stale: list[StaleLease] = []

        for lease in registry.leases:
            reason = self._stale_reason(lease, now)
            if reason:
                stale.append(StaleLease(lease=lease, reason=reason))

        return stale

    def _stale_reason(self, lease: Lease, now: datetime) -> str | None:
        if lease.worktree_path and not Path(lease.worktree_path).exists():
            return REASON_MISSING_WORKTREE

        leased_at = lease.leased_at_datetime()
        if leased_at is None:
            return None

        if now - leased_at > timedelta(days=self.stale_days) and not self.probe(lease.port):
            return f"lease older than {self.stale_days} days and port not in use"

        return None
