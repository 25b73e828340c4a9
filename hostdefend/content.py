from __future__ import annotations
import os
import shutil
from typing import Iterable, List, Set

from .utils import free_backup_path, read_text

BACKUP_SUFFIX = ".defend_bak"


def scan(path: str, signatures: Iterable[str]) -> Set[str]:
    """Return the signatures found anywhere in the file (empty if unreadable)."""
    if not os.path.isfile(path):
        return set()
    content = read_text(path)
    return {sig for sig in signatures if sig in content}


def ordered(matched: Set[str], signatures: Iterable[str]) -> List[str]:
    return [sig for sig in signatures if sig in matched]


def clean_lines(text: str, signatures: Iterable[str]) -> str:
    sigs = list(signatures)
    kept = [line for line in text.split("\n") if not any(sig in line for sig in sigs)]
    return "\n".join(kept)


def quarantine_and_clean(path: str, signatures: Iterable[str]) -> str:
    """Move `path` aside to `<path>.defend_bak` and rewrite it without any
    line that contains a signature.

    An existing `.defend_bak` from an earlier run is kept; the new backup then
    gets a timestamp suffix.

    The backup is left untouched. If the rewrite fails the original path stays
    missing and the OSError propagates; there is no rollback.
    """
    backup = free_backup_path(path, BACKUP_SUFFIX)
    os.rename(path, backup)
    with open(backup, "r", encoding="utf-8", errors="surrogateescape") as f:
        cleaned = clean_lines(f.read(), signatures)
    with open(path, "w", encoding="utf-8", errors="surrogateescape") as f:
        f.write(cleaned)
    shutil.copymode(backup, path)
    return backup
