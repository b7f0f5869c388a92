"""Error types for Portpool.

Every error carries the process exit code the CLI reports for it.
"""

EXIT_PORT_UNAVAILABLE = 1
EXIT_POOL_EXHAUSTED = 2
EXIT_LOCK_TIMEOUT = 3
EXIT_INVALID_INPUT = 4


class PortPoolError(Exception):
    """Base class for all Portpool errors."""

    exit_code = EXIT_INVALID_INPUT


class InvalidInputError(PortPoolError):
    """Raised for a missing or malformed argument, unknown pool or bad range."""

    exit_code = EXIT_INVALID_INPUT


class NoGitRepositoryError(InvalidInputError):
    """Raised when no identifier was given and none could be derived from git."""

    def __init__(self, message: str = "Could not auto-detect project. Not in a git repository.") -> None:
        super().__init__(message)


class RegistryExistsError(InvalidInputError):
    """Raised when initializing over an existing registry without force."""


class CorruptRegistryError(PortPoolError):
    """Raised when the registry file cannot be parsed."""

    exit_code = EXIT_INVALID_INPUT


class RegistryIntegrityError(PortPoolError):
    """Raised when a pool change is blocked by existing leases."""

    exit_code = EXIT_INVALID_INPUT


class PoolExhaustedError(PortPoolError):
    """Raised when no free port is left in a pool's range."""

    exit_code = EXIT_POOL_EXHAUSTED

    def __init__(self, pool: str, range_start: int, range_end: int) -> None:
        self.pool = pool
        self.range_start = range_start
        self.range_end = range_end
        super().__init__(f"Pool '{pool}' exhausted (range: {range_start}-{range_end})")


class LockTimeoutError(PortPoolError):
    """Raised when the registry lock cannot be acquired in time."""

    exit_code = EXIT_LOCK_TIMEOUT


class NoLeasesFoundError(PortPoolError):
    """Raised when an operation finds no leases for the project."""

    exit_code = EXIT_PORT_UNAVAILABLE


class NothingToReleaseError(NoLeasesFoundError):
    """Raised when a release matches zero leases."""
