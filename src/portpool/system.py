"""System port probe for Portpool."""

import re
import subprocess
import sys
from collections.abc import Callable

# Answers "is something listening on this port right now"
PortProbe = Callable[[int], bool]


class SystemScanner:
    """Check whether ports are in use on this host."""

    def __init__(self, platform: str | None = None) -> None:
        """Initialize scanner.

        Args:
            platform: Platform name as in ``sys.platform``. Defaults to the
                current platform.
        """
        self.platform = platform or sys.platform

    def is_port_in_use(self, port: int) -> bool:
        """Check if a port is currently in use.

        Tries the tools available on each platform in order:
        1. Windows: netstat -an
        2. macOS: lsof, then netstat
        3. Linux/other: ss, then netstat

        The answer is approximate. Any failure counts as "not in use".

        Args:
            port: Port number to check

        Returns:
            True if some process is listening on the port
        """
        if self.platform == "win32":
            return self._check_netstat_windows(port)
        if self.platform == "darwin":
            result = self._check_lsof(port)
            if result is None:
                result = self._check_netstat(port, ["netstat", "-an"], listen_only=True)
            return bool(result)

        result = self._check_ss(port)
        if result is None:
            result = self._check_netstat(port, ["netstat", "-tuln"])
        return bool(result)

    def _check_ss(self, port: int) -> bool | None:
        """Check port using ss (Linux).

        Returns:
            Whether the port is listed, or None if ss is unavailable
        """
        output = _run(["ss", "-tuln"])
        if output is None:
            return None
        return port_in_output(output, port)

    def _check_lsof(self, port: int) -> bool | None:
        """Check port using lsof (macOS).

        lsof exits non-zero when nothing matches, so only a missing binary
        counts as unavailable.
        """
        try:
            result = subprocess.run(
                ["lsof", f"-iTCP:{port}", "-sTCP:LISTEN", "-t"],
                capture_output=True,
                text=True,
                timeout=5,
            )
        except (subprocess.SubprocessError, OSError):
            return None
        return bool(result.stdout.strip())

    def _check_netstat(self, port: int, command: list[str], listen_only: bool = False) -> bool:
        output = _run(command)
        if output is None:
            return False
        if listen_only:
            output = "\n".join(line for line in output.splitlines() if "LISTEN" in line)
        return port_in_output(output, port)

    def _check_netstat_windows(self, port: int) -> bool:
        output = _run(["netstat", "-an"])
        if output is None:
            return False
        return port_in_output(output, port)


def port_in_output(output: str, port: int) -> bool:
    """Check whether ``:<port>`` followed by whitespace appears in tool output.

    Examples:
        tcp   LISTEN 0 128 127.0.0.1:5432 0.0.0.0:*   -> 5432
        tcp46      0 0  *.3000   *.*   LISTEN         -> 3000 (macOS netstat)
    """
    pattern = re.compile(rf"[:.]{port}\s")
    return any(pattern.search(line + " ") for line in output.splitlines())


def _run(command: list[str]) -> str | None:
    """Run a command and return its stdout, or None if it could not run."""
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.SubprocessError, OSError):
        return None
    return result.stdout
