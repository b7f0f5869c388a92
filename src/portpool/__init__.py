"""Portpool - Port leases for git worktrees."""

__version__ = "0.1.0"

from .allocator import PortAllocator
from .context import get_git_root, normalize_identifier
from .errors import (
    CorruptRegistryError,
    InvalidInputError,
    LockTimeoutError,
    NoGitRepositoryError,
    NoLeasesFoundError,
    NothingToReleaseError,
    PoolExhaustedError,
    PortPoolError,
    RegistryExistsError,
    RegistryIntegrityError,
)
from .lock import FileLock
from .manager import LeaseResult, PoolDetails, PortManager, PortStatus, ReleaseResult
from .pruner import CleanupResult, Pruner, StaleLease
from .registry import (
    ALL_TAGS,
    JsonRegistryStore,
    Lease,
    MemoryRegistryStore,
    Pool,
    Registry,
    RegistryStore,
)
from .system import SystemScanner

__all__ = [
    "__version__",
    "ALL_TAGS",
    "CleanupResult",
    "CorruptRegistryError",
    "FileLock",
    "InvalidInputError",
    "JsonRegistryStore",
    "Lease",
    "LeaseResult",
    "LockTimeoutError",
    "MemoryRegistryStore",
    "NoGitRepositoryError",
    "NoLeasesFoundError",
    "NothingToReleaseError",
    "Pool",
    "PoolDetails",
    "PoolExhaustedError",
    "PortAllocator",
    "PortManager",
    "PortPoolError",
    "PortStatus",
    "Pruner",
    "Registry",
    "RegistryExistsError",
    "RegistryIntegrityError",
    "RegistryStore",
    "ReleaseResult",
    "StaleLease",
    "SystemScanner",
    "get_git_root",
    "normalize_identifier",
]
