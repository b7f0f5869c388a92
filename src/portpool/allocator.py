"""Port allocation logic for Portpool."""

from .console import debug
from .errors import PoolExhaustedError
from .registry import Registry
from .system import PortProbe, SystemScanner


class PortAllocator:
    """Pick the lowest free port in a pool."""

    def __init__(self, probe: PortProbe | None = None) -> None:
        """Initialize allocator.

        Args:
            probe: Port liveness check. Defaults to SystemScanner.
        """
        self.probe = probe or SystemScanner().is_port_in_use

    def allocate(self, registry: Registry, pool_name: str) -> int:
        """Find a free port in a pool.

        Strategy:
        1. Walk the pool range from start to end, inclusive
        2. Skip ports already leased in this pool
        3. Skip ports the system reports as in use
        4. First remaining port wins

        Ports are probed one at a time so the outcome is deterministic.

        Args:
            registry: Registry loaded under the lock
            pool_name: Name of the pool to allocate from

        Returns:
            The allocated port number

        Raises:
            InvalidInputError: If the pool does not exist
            PoolExhaustedError: If no port is available
        """
        pool = registry.get_pool(pool_name)
        leased = registry.get_leased_ports(pool_name)

        for port in range(pool.range_start, pool.range_end + 1):
            if self._is_port_available(port, leased):
                return port

        raise PoolExhaustedError(pool_name, pool.range_start, pool.range_end)

    def _is_port_available(self, port: int, leased: set[int]) -> bool:
        """Check if a port is available.

        Args:
            port: Port number to check
            leased: Ports already leased in the pool

        Returns:
            True if port is available, False otherwise
        """
        if port in leased:
            return False
        if self.probe(port):
            debug(f"Port {port} is in use on this host, skipping")
            return False
        return True
