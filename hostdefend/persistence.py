from __future__ import annotations
import fnmatch
import logging
import os
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from . import content
from .models import SIGNATURES, Category, Finding, Severity
from .network import SUID_DIRS, ExternalProbe, SystemProbe
from .utils import listdir, read_text, under_root
from .whitelist import Whitelist

logger = logging.getLogger(__name__)

CRON_DIRS = (
    "/var/spool/cron",
    "/etc/cron.d",
    "/etc/cron.daily",
    "/etc/cron.hourly",
    "/etc/cron.monthly",
    "/etc/cron.weekly",
)
CRONTAB = "/etc/crontab"
SYSTEMD_DIR = "/etc/systemd/system"
SYSTEMD_PATTERNS = ("*.service", "*.timer")
PASSWD = "/etc/passwd"
ROOT_AUTHORIZED_KEYS = "/root/.ssh/authorized_keys"
STARTUP_FILES = ("/root/.bashrc", "/root/.profile", "/etc/profile", "/etc/bashrc")
LD_PRELOAD = "/etc/ld.so.preload"


def parse_passwd_line(line: str) -> Optional[Tuple[str, str, str]]:
    """Return (user, uid, shell) for a passwd record, None if malformed."""
    parts = line.split(":")
    if len(parts) < 3:
        return None
    shell = parts[6] if len(parts) > 6 else ""
    return parts[0], parts[2], shell


def privileged_users(lines: Iterable[str], ignore: Whitelist) -> List[str]:
    users = []
    for line in lines:
        rec = parse_passwd_line(line)
        if rec and rec[1] == "0" and not ignore.is_allowed(rec[0]):
            users.append(rec[0])
    return users


class PersistenceScanner:
    """Walks the well-known persistence vectors of a Linux host.

    Each vector is independent: a missing or unreadable location is skipped
    for that vector only. Fixed paths are resolved below `root`, which lets an
    offline image be scanned as if it were `/`.
    """

    def __init__(
        self,
        signatures: Sequence[str] = SIGNATURES,
        ignore_users: Whitelist | None = None,
        probe: ExternalProbe | None = None,
        root: str = "/",
    ):
        self.signatures = list(signatures)
        self.ignore_users = ignore_users if ignore_users is not None else Whitelist()
        self.probe = probe or SystemProbe()
        self.root = root

    def _path(self, path: str) -> str:
        return under_root(self.root, path)

    def vectors(self) -> List[Tuple[str, Callable[[], List[Finding]]]]:
        return [
            ("Cron Jobs", self.check_cron),
            ("Systemd Units", self.check_systemd),
            ("Users", self.check_users),
            ("Startup Scripts", self.check_startup),
            ("LD_PRELOAD", self.check_preload),
            ("common SUID binaries", self.check_suid),
        ]

    def scan_all(self) -> List[Finding]:
        findings: List[Finding] = []
        for _, check in self.vectors():
            findings.extend(check())
        return findings

    def scan_file(self, path: str) -> List[Finding]:
        matched = content.scan(path, self.signatures)
        if not matched:
            return []
        return [Finding(
            Category.SUSPICIOUS_CONTENT,
            path,
            Severity.CRITICAL,
            signatures=content.ordered(matched, self.signatures),
        )]

    def check_cron(self) -> List[Finding]:
        findings: List[Finding] = []
        for d in CRON_DIRS:
            base = self._path(d)
            for name in listdir(base):
                path = os.path.join(base, name)
                if os.path.isdir(path):
                    continue
                findings.append(Finding(Category.CRON_ENTRY, path, Severity.INFO))
                findings.extend(self.scan_file(path))
        crontab = self._path(CRONTAB)
        if os.path.isfile(crontab):
            findings.append(Finding(Category.CRON_ENTRY, crontab, Severity.INFO))
            findings.extend(self.scan_file(crontab))
        return findings

    def check_systemd(self) -> List[Finding]:
        # reported only; auto-disabling local units is too likely to break the host
        findings = []
        for name in listdir(self._path(SYSTEMD_DIR)):
            if any(fnmatch.fnmatch(name, pat) for pat in SYSTEMD_PATTERNS):
                findings.append(Finding(
                    Category.SYSTEMD_UNIT,
                    os.path.join(self._path(SYSTEMD_DIR), name),
                    Severity.INFO,
                ))
        return findings

    def check_users(self) -> List[Finding]:
        findings: List[Finding] = []
        passwd = self._path(PASSWD)
        try:
            with open(passwd, "r", errors="ignore") as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.error("Could not read %s: %s", passwd, e)
            return findings
        for user in privileged_users(lines, self.ignore_users):
            findings.append(Finding(
                Category.PRIVILEGED_USER, user, Severity.CRITICAL,
                "non-whitelisted account with UID 0",
            ))

        keys = self._path(ROOT_AUTHORIZED_KEYS)
        try:
            has_keys = os.path.getsize(keys) > 0
        except OSError:
            has_keys = False
        if has_keys:
            findings.append(Finding(
                Category.ROOT_AUTHORIZED_KEY, keys, Severity.CRITICAL,
                "root has authorized_keys entries",
            ))
        return findings

    def check_startup(self) -> List[Finding]:
        findings: List[Finding] = []
        for path in STARTUP_FILES:
            findings.extend(self.scan_file(self._path(path)))
        return findings

    def check_preload(self) -> List[Finding]:
        path = self._path(LD_PRELOAD)
        if not os.path.lexists(path):
            return []
        return [Finding(Category.LD_PRELOAD, path, Severity.CRITICAL, read_text(path))]

    def check_suid(self) -> List[Finding]:
        dirs = [self._path(d) for d in SUID_DIRS]
        lines = self.probe.suid_binaries(dirs)
        if lines is None:
            logger.warning("SUID listing unavailable (find failed to run)")
            return []
        return [Finding(Category.SUID_BINARY, line, Severity.INFO) for line in lines]
