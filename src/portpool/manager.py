"""Lease engine for Portpool.

Every mutating operation runs as: acquire lock, load a fresh registry,
mutate it in memory, save, release lock. Read-only operations load the
registry without taking the lock and may observe a slightly stale view.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .allocator import PortAllocator
from .config import MAX_PORT, MIN_PORT, get_lock_path, get_lock_timeout, get_registry_path
from .console import debug
from .context import get_git_root, normalize_identifier
from .errors import (
    InvalidInputError,
    NoGitRepositoryError,
    NoLeasesFoundError,
    NothingToReleaseError,
    RegistryExistsError,
    RegistryIntegrityError,
)
from .lock import FileLock
from .pruner import CleanupResult, Pruner
from .registry import ALL_TAGS, JsonRegistryStore, Lease, Pool, Registry, RegistryStore, TagSelector
from .system import PortProbe, SystemScanner


@dataclass
class LeaseResult:
    """Port handed out by a lease call."""

    port: int
    lease: Lease
    created: bool


@dataclass
class ReleaseResult:
    """Outcome of a release call."""

    removed_count: int
    leases: list[Lease]  # Leases remaining in the registry


@dataclass
class PortStatus:
    """Availability of a single port. Exactly one flag is set."""

    available: bool
    leased: bool
    in_use: bool
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class PoolDetails:
    """A pool with the leases it currently holds."""

    name: str
    range_start: int
    range_end: int
    total_ports: int
    reserved_count: int
    leases: list[Lease]


class PortManager:
    """Lease, release and reclaim ports from the shared registry."""

    def __init__(
        self,
        store: RegistryStore | None = None,
        lock: FileLock | None = None,
        probe: PortProbe | None = None,
        git_root: Callable[[], str | None] | None = None,
        lock_timeout: float | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            store: Registry storage. Defaults to the per-user registry file.
            lock: Registry lock. Defaults to the per-user lock marker.
            probe: Port liveness check. Defaults to SystemScanner.
            git_root: Returns the current git root or None
            lock_timeout: Seconds to wait for the lock
        """
        self.store = store if store is not None else JsonRegistryStore(get_registry_path())
        self.lock = lock if lock is not None else FileLock(get_lock_path())
        self.probe = probe or SystemScanner().is_port_in_use
        self.git_root = git_root or get_git_root
        self.lock_timeout = lock_timeout if lock_timeout is not None else get_lock_timeout()
        self.allocator = PortAllocator(self.probe)
        self.pruner = Pruner(self.probe)

    def get_auto_identifier(self) -> str | None:
        """Get the identifier derived from the current git root."""
        root = self.git_root()
        if not root:
            return None
        return normalize_identifier(root)

    def _require_identifier(self, identifier: str | None) -> str:
        if identifier:
            return identifier
        identifier = self.get_auto_identifier()
        if not identifier:
            raise NoGitRepositoryError()
        return identifier

    # Leases

    def lease(
        self,
        pool: str,
        tag: str = "",
        identifier: str | None = None,
        worktree_path: str | None = None,
    ) -> LeaseResult:
        """Lease a port from a pool.

        Leasing the same (identifier, pool, tag) again returns the existing
        port without touching the registry.

        Raises:
            InvalidInputError: If pool is empty or unknown
            NoGitRepositoryError: If no identifier is given or derivable
            PoolExhaustedError: If the pool has no free port
            LockTimeoutError: If the registry lock is busy
        """
        if not pool:
            raise InvalidInputError("Pool is required for lease action")

        tag = tag or ""
        identifier = self._require_identifier(identifier)
        if not worktree_path:
            worktree_path = self.git_root() or ""

        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            registry.get_pool(pool)

            existing = registry.get_lease(identifier, pool, tag)
            if existing:
                debug(f"Reusing lease {existing.port} for {identifier} ({pool}/{tag or '-'})")
                return LeaseResult(port=existing.port, lease=existing, created=False)

            port = self.allocator.allocate(registry, pool)
            lease = registry.add_lease(
                port=port,
                pool=pool,
                identifier=identifier,
                worktree_path=worktree_path,
                tag=tag,
            )
            self.store.save(registry)
            debug(f"Leased {port} from {pool} for {identifier}")
            return LeaseResult(port=port, lease=lease, created=True)

    def release(self, tag: TagSelector = ALL_TAGS, identifier: str | None = None) -> ReleaseResult:
        """Release leases for an identifier.

        Args:
            tag: ALL_TAGS to release every lease of the identifier, or a
                tag (including "") to release only leases with that tag
            identifier: Project identifier. Derived from git if omitted.

        Raises:
            NothingToReleaseError: If no lease matched
        """
        identifier = self._require_identifier(identifier)

        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            removed = registry.remove_leases(identifier, tag)

            if removed == 0:
                if tag is ALL_TAGS:
                    raise NothingToReleaseError("No leases found for current project")
                raise NothingToReleaseError(f"No lease found with tag '{tag}'")

            self.store.save(registry)
            return ReleaseResult(removed_count=removed, leases=registry.leases)

    def list_leases(
        self,
        pool: str | None = None,
        global_: bool = False,
        identifier: str | None = None,
    ) -> list[Lease]:
        """List leases for the current project, or for every project.

        Outside a git repository with no identifier, nothing is filtered.
        """
        registry = self.store.load()
        if not global_ and not identifier:
            identifier = self.get_auto_identifier()
        return registry.get_leases(pool=pool, identifier=identifier, global_=global_)

    def check(self, port: int) -> PortStatus:
        """Report whether a port is leased, in use or available.

        A leased port is reported without probing the system.
        """
        if not isinstance(port, int) or not MIN_PORT <= port <= MAX_PORT:
            raise InvalidInputError(f"Port must be an integer between {MIN_PORT} and {MAX_PORT}")

        registry = self.store.load()
        lease = registry.get_lease_by_port(port)
        if lease:
            return PortStatus(
                available=False,
                leased=True,
                in_use=False,
                details={"identifier": lease.identifier, "pool": lease.pool, "tag": lease.tag},
            )

        if self.probe(port):
            return PortStatus(available=False, leased=False, in_use=True)

        return PortStatus(available=True, leased=False, in_use=False)

    def cleanup(self, dry_run: bool = False) -> CleanupResult:
        """Find and remove stale leases.

        The lock is held even for a dry run so the report reflects one
        consistent snapshot.
        """
        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            stale = self.pruner.find_stale(registry)
            debug(f"Found {len(stale)} stale lease(s)")

            if not stale or dry_run:
                return CleanupResult(stale_leases=stale, removed_count=0, dry_run=dry_run)

            removed = registry.remove_ports(item.lease.port for item in stale)
            self.store.save(registry)
            return CleanupResult(stale_leases=stale, removed_count=removed, dry_run=False)

    def env(self, identifier: str | None = None) -> dict[str, int]:
        """Build environment variables for a project's leases.

        Names are POOL_PORT, or POOL_TAG_PORT for tagged leases.

        Raises:
            NoLeasesFoundError: If the project has no leases
        """
        identifier = self._require_identifier(identifier)
        registry = self.store.load()
        leases = registry.get_leases(identifier=identifier)

        if not leases:
            raise NoLeasesFoundError("No leases found for current project")

        env_vars: dict[str, int] = {}
        for lease in leases:
            env_vars[env_var_name(lease)] = lease.port
        return env_vars

    def init(self, force: bool = False) -> Registry:
        """Create a new registry with the default pools.

        Raises:
            RegistryExistsError: If a registry exists and force is False
        """
        with self.lock.exclusive(self.lock_timeout):
            if self.store.exists() and not force:
                raise RegistryExistsError(
                    f"Registry already exists at {_store_location(self.store)}. Use --force to overwrite"
                )
            return self.store.reset()

    # Pools

    def pool_list(self, name: str | None = None) -> list[Pool] | PoolDetails:
        """List all pools, or describe one pool and its leases."""
        registry = self.store.load()

        if not name:
            return list(registry.pools.values())

        if name not in registry.pools:
            available = ", ".join(registry.pools)
            raise InvalidInputError(f"Pool '{name}' does not exist. Available pools: {available}")

        pool = registry.pools[name]
        leases = registry.get_leases(pool=name, global_=True)
        return PoolDetails(
            name=name,
            range_start=pool.range_start,
            range_end=pool.range_end,
            total_ports=pool.total_ports,
            reserved_count=len(leases),
            leases=leases,
        )

    def pool_add(self, name: str, range_start: int, range_end: int) -> Pool:
        """Add a new pool."""
        _validate_pool_args(name, range_start, range_end)

        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            pool = registry.add_pool(name, range_start, range_end)
            self.store.save(registry)
            return pool

    def pool_update(self, name: str, range_start: int, range_end: int) -> Pool:
        """Change a pool's range.

        Leases in ``name`` and in ``name-https`` both count as belonging to
        the pool when checking that they fit the new range.

        Raises:
            RegistryIntegrityError: If a lease would fall outside the new range
        """
        _validate_pool_args(name, range_start, range_end)

        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            owners = {name, f"{name}-https"}
            new_range = Pool(name=name, range_start=range_start, range_end=range_end)
            affected = [
                lease
                for lease in registry.leases
                if lease.pool in owners and not new_range.contains(lease.port)
            ]

            if affected:
                raise RegistryIntegrityError(
                    f"{len(affected)} lease(s) would be outside the new range. "
                    "Please release these leases first or choose a different range."
                )

            pool = registry.update_pool(name, range_start, range_end)
            self.store.save(registry)
            return pool

    def pool_delete(self, name: str) -> None:
        """Delete a pool that holds no leases.

        Raises:
            RegistryIntegrityError: If the pool still has leases
        """
        if not name:
            raise InvalidInputError("Pool name is required")

        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            registry.get_pool(name)

            count = len(registry.get_leases(pool=name, global_=True))
            if count:
                raise RegistryIntegrityError(
                    f"Pool '{name}' has {count} active lease(s). "
                    "Please release or clear these leases first."
                )

            registry.delete_pool(name)
            self.store.save(registry)

    def pool_clear(self, name: str) -> int:
        """Remove every lease in a pool.

        Returns:
            Number of removed leases
        """
        if not name:
            raise InvalidInputError("Pool name is required")

        with self.lock.exclusive(self.lock_timeout):
            registry = self.store.load()
            registry.get_pool(name)

            removed = registry.clear_pool(name)
            if removed:
                self.store.save(registry)
            return removed


def env_var_name(lease: Lease) -> str:
    """Environment variable name for a lease, e.g. BACKEND_HTTPS_PORT."""
    if lease.tag:
        return f"{lease.pool.upper()}_{lease.tag.upper()}_PORT"
    return f"{lease.pool.upper()}_PORT"


def _validate_pool_args(name: str, range_start: int, range_end: int) -> None:
    if not name:
        raise InvalidInputError("Pool name, range start, and range end are required")
    if not MIN_PORT <= range_start <= MAX_PORT or not MIN_PORT <= range_end <= MAX_PORT:
        raise InvalidInputError(f"Ports must be between {MIN_PORT} and {MAX_PORT}")
    if range_start >= range_end:
        raise InvalidInputError("Range start must be less than range end")


def _store_location(store: RegistryStore) -> str:
    return str(getattr(store, "path", "memory"))
