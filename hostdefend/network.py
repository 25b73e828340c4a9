from __future__ import annotations
import logging
import socket
import subprocess
from typing import List, Optional, Protocol, Sequence

import psutil

from .models import ConfigError, ConnectionResult

logger = logging.getLogger(__name__)

ESTABLISHED_MARKER = "ESTAB"
SUID_DIRS = ("/bin", "/usr/bin")


class ExternalProbe(Protocol):
    def established_connections(self) -> ConnectionResult: ...
    def suid_binaries(self, dirs: Sequence[str] = SUID_DIRS) -> Optional[List[str]]: ...


def _capture(argv: List[str]) -> Optional[str]:
    try:
        proc = subprocess.run(argv, capture_output=True, text=True, errors="replace")
    except OSError as e:
        logger.debug("%s unavailable: %s", argv[0], e)
        return None
    return proc.stdout if proc.returncode == 0 or proc.stdout else None


def filter_established(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if ESTABLISHED_MARKER in line]


class SystemProbe:
    """Observes the host through `ss` and `find`."""

    def established_connections(self) -> ConnectionResult:
        out = _capture(["ss", "-tunap"])
        if out is None:
            return ConnectionResult(available=False)
        return ConnectionResult(available=True, connections=filter_established(out))

    def suid_binaries(self, dirs: Sequence[str] = SUID_DIRS) -> Optional[List[str]]:
        # find exits non-zero on unreadable subdirs but still lists what it saw
        out = _capture(["find", *dirs, "-perm", "-4000"])
        if out is None:
            return None
        return [line.strip() for line in out.splitlines() if line.strip()]


class PsutilProbe(SystemProbe):
    """Same as SystemProbe, but reads sessions from psutil instead of `ss`."""

    def established_connections(self) -> ConnectionResult:
        try:
            conns = psutil.net_connections(kind="inet")
        except (psutil.AccessDenied, OSError) as e:
            logger.debug("psutil.net_connections unavailable: %s", e)
            return ConnectionResult(available=False)
        lines = [
            format_connection(c) for c in conns
            if c.status == psutil.CONN_ESTABLISHED
        ]
        return ConnectionResult(available=True, connections=lines)


def format_connection(conn) -> str:
    proto = "tcp" if conn.type == socket.SOCK_STREAM else "udp"
    laddr = f"{conn.laddr.ip}:{conn.laddr.port}" if conn.laddr else "-"
    raddr = f"{conn.raddr.ip}:{conn.raddr.port}" if conn.raddr else "-"
    return f"{proto} {laddr} -> {raddr} pid={conn.pid if conn.pid is not None else '-'}"


def make_probe(name: str) -> ExternalProbe:
    if name == "psutil":
        return PsutilProbe()
    if name == "ss":
        return SystemProbe()
    raise ConfigError(f"Unknown probe {name!r} (expected 'ss' or 'psutil')")
