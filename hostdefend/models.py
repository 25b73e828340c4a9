from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import datetime as dt


class Category(str, Enum):
    NEW_PROCESS = "NewProcess"
    ESTABLISHED_CONNECTION = "EstablishedConnection"
    FILE_MODIFIED = "FileModified"
    CRON_ENTRY = "CronEntry"
    SYSTEMD_UNIT = "SystemdUnit"
    PRIVILEGED_USER = "PrivilegedUser"
    ROOT_AUTHORIZED_KEY = "RootAuthorizedKey"
    LD_PRELOAD = "LdPreload"
    SUID_BINARY = "SuidBinary"
    SUSPICIOUS_CONTENT = "SuspiciousContent"


class Severity(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    CRITICAL = "Critical"


# Categories with a narrow remedy; everything else is report-only.
REMEDIABLE = {
    Category.PRIVILEGED_USER,
    Category.ROOT_AUTHORIZED_KEY,
    Category.LD_PRELOAD,
    Category.SUSPICIOUS_CONTENT,
}

SIGNATURES = [
    "nc -e",
    "bash -i",
    "dev/tcp",
    "curl",
    "wget",
    "python -c",
    "systemctl stop",
    "iptables",
    "nft",
    "systemctl disable",
]


def now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


@dataclass
class ProcessRecord:
    pid: str
    command: str = ""


ProcessSet = Dict[str, ProcessRecord]


@dataclass
class ConnectionResult:
    available: bool
    connections: List[str] = field(default_factory=list)


@dataclass
class FileWatchEntry:
    path: str
    mtime: Optional[float] = None


@dataclass
class Finding:
    category: Category
    subject: str
    severity: Severity
    detail: str = ""
    signatures: List[str] = field(default_factory=list)
    ts: str = field(default_factory=now_iso)

    @property
    def remediable(self) -> bool:
        return self.category in REMEDIABLE


@dataclass
class Outcome:
    finding: Finding
    action: Optional[str] = None   # None -> report only
    ok: bool = True
    message: str = ""


@dataclass
class StepResult:
    target: str
    ok: bool
    message: str = ""


class ConfigError(ValueError):
    """Raised for configuration values the tool cannot run with."""
