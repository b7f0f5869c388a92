"""Registry layer for Portpool - JSON document of pools and leases."""

import copy
import json
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from .config import DEFAULT_POOLS, REGISTRY_VERSION
from .console import debug
from .errors import CorruptRegistryError, InvalidInputError


class _AllTags(Enum):
    ALL = "all"


# Tag selector meaning "no tag given": match leases regardless of tag.
# Any str, including "", matches that exact tag only.
ALL_TAGS = _AllTags.ALL

TagSelector = str | _AllTags


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with milliseconds and a Z suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Returns:
        Aware datetime, or None if value is empty or malformed
    """
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass
class Pool:
    """Named, inclusive port range."""

    name: str
    range_start: int
    range_end: int

    @property
    def total_ports(self) -> int:
        return self.range_end - self.range_start + 1

    def contains(self, port: int) -> bool:
        return self.range_start <= port <= self.range_end

    def to_dict(self) -> dict[str, int]:
        return {"rangeStart": self.range_start, "rangeEnd": self.range_end}


@dataclass
class Lease:
    """Claim on one port, identified by (identifier, pool, tag)."""

    port: int
    pool: str
    identifier: str
    worktree_path: str = ""
    tag: str = ""
    leased_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lease":
        return cls(
            port=int(data["port"]),
            pool=data["pool"],
            identifier=data.get("identifier") or "",
            worktree_path=data.get("worktreePath") or "",
            tag=data.get("tag") or "",
            leased_at=data.get("leasedAt") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "port": self.port,
            "pool": self.pool,
            "identifier": self.identifier,
            "worktreePath": self.worktree_path,
            "tag": self.tag,
            "leasedAt": self.leased_at,
        }

    def leased_at_datetime(self) -> datetime | None:
        return parse_timestamp(self.leased_at)


@dataclass
class Registry:
    """In-memory registry document.

    Query methods never mutate. Mutating methods are only called by the
    manager while the registry lock is held.
    """

    version: str = REGISTRY_VERSION
    pools: dict[str, Pool] = field(default_factory=dict)
    leases: list[Lease] = field(default_factory=list)
    last_modified: str = ""

    @classmethod
    def default(cls) -> "Registry":
        """Registry seeded with the default pools and no leases."""
        pools = {
            name: Pool(name=name, range_start=start, range_end=end)
            for name, (start, end) in DEFAULT_POOLS.items()
        }
        return cls(version=REGISTRY_VERSION, pools=pools, leases=[])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Registry":
        pools = {
            name: Pool(name=name, range_start=int(cfg["rangeStart"]), range_end=int(cfg["rangeEnd"]))
            for name, cfg in (data.get("pools") or {}).items()
        }
        leases = [Lease.from_dict(item) for item in data.get("leases") or []]
        return cls(
            version=str(data.get("version", REGISTRY_VERSION)),
            pools=pools,
            leases=leases,
            last_modified=data.get("lastModified") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "pools": {name: pool.to_dict() for name, pool in self.pools.items()},
            "leases": [lease.to_dict() for lease in self.leases],
            "lastModified": self.last_modified,
        }

    # Queries

    def get_pool(self, name: str) -> Pool:
        """Get a pool by name.

        Raises:
            InvalidInputError: If the pool does not exist
        """
        pool = self.pools.get(name)
        if pool is None:
            available = ", ".join(self.pools)
            raise InvalidInputError(f"Unknown pool: {name}. Available pools: {available}")
        return pool

    def get_lease(self, identifier: str, pool: str, tag: str = "") -> Lease | None:
        """Get the lease for an (identifier, pool, tag) triple."""
        for lease in self.leases:
            if lease.identifier == identifier and lease.pool == pool and lease.tag == tag:
                return lease
        return None

    def get_lease_by_port(self, port: int) -> Lease | None:
        """Get the first lease holding a port, in any pool."""
        for lease in self.leases:
            if lease.port == port:
                return lease
        return None

    def get_leased_ports(self, pool: str) -> set[int]:
        """Get the ports leased within a pool."""
        return {lease.port for lease in self.leases if lease.pool == pool}

    def get_leases(
        self,
        pool: str | None = None,
        identifier: str | None = None,
        global_: bool = False,
    ) -> list[Lease]:
        """Get leases filtered by pool and/or identifier.

        Args:
            pool: Only leases in this pool
            identifier: Only leases for this identifier
            global_: Ignore the identifier filter

        Returns:
            Matching leases in registry order
        """
        leases = self.leases
        if identifier and not global_:
            leases = [lease for lease in leases if lease.identifier == identifier]
        if pool:
            leases = [lease for lease in leases if lease.pool == pool]
        return list(leases)

    # Lease mutations

    def add_lease(
        self,
        port: int,
        pool: str,
        identifier: str,
        worktree_path: str = "",
        tag: str = "",
        leased_at: datetime | None = None,
    ) -> Lease:
        lease = Lease(
            port=port,
            pool=pool,
            identifier=identifier,
            worktree_path=worktree_path or "",
            tag=tag or "",
            leased_at=format_timestamp(leased_at or utc_now()),
        )
        self.leases.append(lease)
        return lease

    def remove_leases(self, identifier: str, tag: TagSelector = ALL_TAGS) -> int:
        """Remove an identifier's leases, all of them or those with one tag.

        Returns:
            Number of removed leases
        """

        def matches(lease: Lease) -> bool:
            if lease.identifier != identifier:
                return False
            return tag is ALL_TAGS or lease.tag == tag

        return self._remove_where(matches)

    def remove_ports(self, ports: Iterable[int]) -> int:
        """Remove every lease holding one of the given ports."""
        targets = set(ports)
        return self._remove_where(lambda lease: lease.port in targets)

    def _remove_where(self, predicate) -> int:
        before = len(self.leases)
        self.leases = [lease for lease in self.leases if not predicate(lease)]
        return before - len(self.leases)

    # Pool mutations

    def add_pool(self, name: str, range_start: int, range_end: int) -> Pool:
        if name in self.pools:
            raise InvalidInputError(f"Pool '{name}' already exists")
        pool = Pool(name=name, range_start=range_start, range_end=range_end)
        self.pools[name] = pool
        return pool

    def update_pool(self, name: str, range_start: int, range_end: int) -> Pool:
        """Replace a pool's range.

        Does not check that existing leases fit the new range; the manager
        does that before calling this.
        """
        if name not in self.pools:
            raise InvalidInputError(f"Pool '{name}' does not exist")
        pool = Pool(name=name, range_start=range_start, range_end=range_end)
        self.pools[name] = pool
        return pool

    def delete_pool(self, name: str) -> None:
        """Remove a pool definition.

        Leases in the pool are left alone. Callers must make sure the pool
        holds none, as the manager does.
        """
        if name not in self.pools:
            raise InvalidInputError(f"Pool '{name}' does not exist")
        del self.pools[name]

    def clear_pool(self, name: str) -> int:
        """Remove all leases in a pool.

        Returns:
            Number of removed leases
        """
        return self._remove_where(lambda lease: lease.pool == name)


class RegistryStore(Protocol):
    """Storage backend for the registry document."""

    def load(self) -> Registry: ...

    def save(self, registry: Registry) -> None: ...

    def exists(self) -> bool: ...

    def reset(self) -> Registry: ...


class JsonRegistryStore:
    """Registry persisted as a JSON file."""

    def __init__(self, path: Path) -> None:
        """Initialize store.

        Args:
            path: Path to the registry JSON file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Registry:
        """Read the registry, writing a default one on first use.

        Raises:
            CorruptRegistryError: If the file is not a valid registry
        """
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

        if not self.path.exists():
            debug(f"Creating default registry at {self.path}")
            return self.reset()

        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
            return Registry.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptRegistryError(f"Registry at {self.path} is not valid: {e}") from e

    def save(self, registry: Registry) -> None:
        """Stamp ``last_modified`` and replace the file atomically."""
        registry.last_modified = format_timestamp(utc_now())
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        content = json.dumps(registry.to_dict(), indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=".registry-", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        debug(f"Saved registry ({len(registry.leases)} lease(s)) to {self.path}")

    def reset(self) -> Registry:
        """Overwrite the registry with a fresh default document."""
        registry = Registry.default()
        self.save(registry)
        return registry


class MemoryRegistryStore:
    """Registry held in memory. Loads hand out copies, like re-reading a file."""

    def __init__(self, registry: Registry | None = None) -> None:
        self._registry = copy.deepcopy(registry) if registry is not None else None

    def exists(self) -> bool:
        return self._registry is not None

    def load(self) -> Registry:
        if self._registry is None:
            return self.reset()
        return copy.deepcopy(self._registry)

    def save(self, registry: Registry) -> None:
        registry.last_modified = format_timestamp(utc_now())
        self._registry = copy.deepcopy(registry)

    def reset(self) -> Registry:
        registry = Registry.default()
        self.save(registry)
        return copy.deepcopy(registry)
