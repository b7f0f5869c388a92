"""Test fixtures and configuration."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from portpool.lock import FileLock
from portpool.manager import PortManager
from portpool.registry import JsonRegistryStore


class MockProbe:
    """Port probe that reports a fixed set of ports as in use."""

    def __init__(self, in_use=()):
        self.in_use = set(in_use)
        self.calls: list[int] = []

    def __call__(self, port: int) -> bool:
        self.calls.append(port)
        return port in self.in_use


@pytest.fixture
def temp_dir():
    """Temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_home(temp_dir, monkeypatch):
    """Keep every test away from the real per-user registry."""
    home = temp_dir / "home"
    monkeypatch.setenv("PORTPOOL_HOME", str(home))
    monkeypatch.delenv("PORTPOOL_DEBUG", raising=False)
    monkeypatch.delenv("PORTPOOL_LOCK_TIMEOUT", raising=False)
    return home


@pytest.fixture
def registry_path(temp_dir):
    return temp_dir / "ports" / "registry.json"


@pytest.fixture
def store(registry_path):
    """JSON registry store in a temporary directory."""
    return JsonRegistryStore(registry_path)


@pytest.fixture
def lock(registry_path):
    return FileLock(registry_path.with_name("registry.json.lock"))


@pytest.fixture
def probe():
    """Probe reporting every port as free."""
    return MockProbe()


@pytest.fixture
def make_probe():
    """Factory for probes reporting the given ports as in use."""
    return MockProbe


@pytest.fixture
def make_manager(store, lock, probe):
    """Factory for managers wired to the temporary registry."""

    def factory(probe=probe, git_root=None, store=store):
        return PortManager(
            store=store,
            lock=lock,
            probe=probe,
            git_root=git_root or (lambda: None),
            lock_timeout=1.0,
        )

    return factory


@pytest.fixture
def manager(make_manager):
    """Manager with every port free and no git repository."""
    return make_manager()


@pytest.fixture
def mock_git_repo(temp_dir):
    """Create a git repository for testing."""
    repo_dir = temp_dir / "repo"
    repo_dir.mkdir()

    subprocess.run(["git", "init"], cwd=repo_dir, capture_output=True, check=True)

    return repo_dir
