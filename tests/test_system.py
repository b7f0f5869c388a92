"""Tests for system module."""

import subprocess

from portpool import system
from portpool.system import SystemScanner, port_in_output

SS_OUTPUT = """\
Netid State  Recv-Q Send-Q Local Address:Port  Peer Address:Port
udp   UNCONN 0      0      127.0.0.53%lo:53         0.0.0.0:*
tcp   LISTEN 0      128          0.0.0.0:5432       0.0.0.0:*
tcp   LISTEN 0      511        127.0.0.1:3300       0.0.0.0:*
tcp   LISTEN 0      128             [::]:22            [::]:*
"""

MACOS_NETSTAT_OUTPUT = """\
Proto Recv-Q Send-Q  Local Address          Foreign Address        (state)
tcp4       0      0  127.0.0.1.3300         *.*                    LISTEN
tcp4       0      0  192.168.1.5.50312      17.57.144.1.5223       ESTABLISHED
"""


class FakeRun:
    """Replacement for subprocess.run keyed by executable name."""

    def __init__(self, outputs):
        self.outputs = outputs
        self.commands = []

    def __call__(self, command, **kwargs):
        self.commands.append(command)
        output = self.outputs.get(command[0])
        if output is None:
            raise FileNotFoundError(command[0])
        if isinstance(output, Exception):
            raise output
        return subprocess.CompletedProcess(command, 0, stdout=output, stderr="")


def test_port_in_output():
    """Test matching a port in ss output."""
    assert port_in_output(SS_OUTPUT, 5432)
    assert port_in_output(SS_OUTPUT, 3300)
    assert port_in_output(SS_OUTPUT, 22)
    assert not port_in_output(SS_OUTPUT, 543)
    assert not port_in_output(SS_OUTPUT, 3301)


def test_port_in_output_dotted_format():
    """Test matching the host.port format of BSD netstat."""
    assert port_in_output(MACOS_NETSTAT_OUTPUT, 3300)


def test_linux_uses_ss(monkeypatch):
    """Test the Linux probe path."""
    fake = FakeRun({"ss": SS_OUTPUT})
    monkeypatch.setattr(system.subprocess, "run", fake)
    scanner = SystemScanner(platform="linux")

    assert scanner.is_port_in_use(5432)
    assert not scanner.is_port_in_use(5433)
    assert fake.commands[0] == ["ss", "-tuln"]


def test_linux_falls_back_to_netstat(monkeypatch):
    """Test fallback when ss is not installed."""
    fake = FakeRun({"netstat": SS_OUTPUT})
    monkeypatch.setattr(system.subprocess, "run", fake)

    assert SystemScanner(platform="linux").is_port_in_use(3300)
    assert [cmd[0] for cmd in fake.commands] == ["ss", "netstat"]


def test_darwin_uses_lsof(monkeypatch):
    """Test the macOS probe path."""
    monkeypatch.setattr(system.subprocess, "run", FakeRun({"lsof": "4242\n"}))
    assert SystemScanner(platform="darwin").is_port_in_use(3300)

    monkeypatch.setattr(system.subprocess, "run", FakeRun({"lsof": ""}))
    assert not SystemScanner(platform="darwin").is_port_in_use(3300)


def test_darwin_falls_back_to_netstat(monkeypatch):
    """Test fallback when lsof is not available."""
    monkeypatch.setattr(system.subprocess, "run", FakeRun({"netstat": MACOS_NETSTAT_OUTPUT}))
    scanner = SystemScanner(platform="darwin")

    assert scanner.is_port_in_use(3300)
    # Established connections are not listeners
    assert not scanner.is_port_in_use(50312)


def test_windows_uses_netstat(monkeypatch):
    """Test the Windows probe path."""
    output = "  TCP    0.0.0.0:3300     0.0.0.0:0     LISTENING\n"
    monkeypatch.setattr(system.subprocess, "run", FakeRun({"netstat": output}))

    assert SystemScanner(platform="win32").is_port_in_use(3300)


def test_probe_failures_mean_not_in_use(monkeypatch):
    """Test that the probe never raises."""
    monkeypatch.setattr(system.subprocess, "run", FakeRun({}))
    assert not SystemScanner(platform="linux").is_port_in_use(3300)
    assert not SystemScanner(platform="darwin").is_port_in_use(3300)
    assert not SystemScanner(platform="win32").is_port_in_use(3300)

    timeout = subprocess.TimeoutExpired(["ss"], 10)
    monkeypatch.setattr(system.subprocess, "run", FakeRun({"ss": timeout, "netstat": timeout}))
    assert not SystemScanner(platform="linux").is_port_in_use(3300)
