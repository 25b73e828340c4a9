from __future__ import annotations
import time
from typing import Dict, Iterable, List, Optional, Protocol

from .models import Category, ConfigError, FileWatchEntry, Finding, Severity
from .utils import mtime

CRITICAL_FILES = ["/etc/passwd", "/etc/shadow", "/etc/group", "/etc/hosts"]
MTIME_WINDOW = 10.0


class Watch(Protocol):
    def prime(self) -> None: ...
    def check(self) -> List[Finding]: ...


def check_critical_files(
    paths: Iterable[str],
    window: float = MTIME_WINDOW,
    now: Optional[float] = None,
) -> List[Finding]:
    """Flag files whose mtime falls inside the last `window` seconds.

    Missing files are skipped.
    """
    now = time.time() if now is None else now
    findings: List[Finding] = []
    for path in paths:
        m = mtime(path)
        if m is not None and now - m < window:
            findings.append(Finding(Category.FILE_MODIFIED, path, Severity.WARNING, "modified recently"))
    return findings


class FileWatch:
    """Compares each file's mtime with the value seen on the previous check."""

    def __init__(self, paths: Iterable[str]):
        self.entries: Dict[str, FileWatchEntry] = {p: FileWatchEntry(p) for p in paths}

    def prime(self) -> None:
        for entry in self.entries.values():
            entry.mtime = mtime(entry.path)

    def check(self) -> List[Finding]:
        findings: List[Finding] = []
        for entry in self.entries.values():
            current = mtime(entry.path)
            if current == entry.mtime:
                continue
            if current is None:
                findings.append(Finding(Category.FILE_MODIFIED, entry.path, Severity.CRITICAL, "removed"))
            elif entry.mtime is None:
                findings.append(Finding(Category.FILE_MODIFIED, entry.path, Severity.WARNING, "created"))
            else:
                findings.append(Finding(Category.FILE_MODIFIED, entry.path, Severity.WARNING, "modified"))
            entry.mtime = current
        return findings


class WindowWatch:
    """Legacy recency check behind the FileWatch interface."""

    def __init__(self, paths: Iterable[str], window: float = MTIME_WINDOW):
        self.paths = list(paths)
        self.window = window

    def prime(self) -> None:
        pass

    def check(self) -> List[Finding]:
        return check_critical_files(self.paths, self.window)


def make_watch(paths: Iterable[str], mode: str = "snapshot", window: float = MTIME_WINDOW) -> Watch:
    if mode == "snapshot":
        return FileWatch(paths)
    if mode == "window":
        return WindowWatch(paths, window)
    raise ConfigError(f"Unknown file_mode {mode!r} (expected 'snapshot' or 'window')")
