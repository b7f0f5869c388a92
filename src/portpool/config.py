"""Configuration management for Portpool."""

import os
from pathlib import Path

import platformdirs

REGISTRY_VERSION = "1.0"

# Seeded into every new registry, in this order
DEFAULT_POOLS: dict[str, tuple[int, int]] = {
    "frontend": (3300, 3499),
    "backend": (5300, 5499),
    "storybook": (6300, 6499),
}

LOCK_TIMEOUT_SECONDS = 30.0
STALE_LOCK_SECONDS = 60.0
LOCK_POLL_SECONDS = 0.1
STALE_LEASE_DAYS = 7

MIN_PORT = 1
MAX_PORT = 65535


def get_data_dir() -> Path:
    """Get the data directory for Portpool.

    ``PORTPOOL_HOME`` overrides the platform default.

    Returns:
        Path to data directory
    """
    override = os.getenv("PORTPOOL_HOME")
    if override:
        data_dir = Path(override).expanduser()
    else:
        data_dir = Path(platformdirs.user_data_dir("portpool", "portpool"))
    data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    return data_dir


def get_registry_path() -> Path:
    """Get the registry file path.

    Returns:
        Path to registry.json
    """
    return get_data_dir() / "registry.json"


def get_lock_path() -> Path:
    """Get the lock marker path, a sibling of the registry file.

    Returns:
        Path to registry.json.lock
    """
    return get_data_dir() / "registry.json.lock"


def get_lock_timeout() -> float:
    """Get the lock timeout in seconds, honouring ``PORTPOOL_LOCK_TIMEOUT``."""
    value = os.getenv("PORTPOOL_LOCK_TIMEOUT")
    if not value:
        return LOCK_TIMEOUT_SECONDS
    try:
        return float(value)
    except ValueError:
        return LOCK_TIMEOUT_SECONDS
