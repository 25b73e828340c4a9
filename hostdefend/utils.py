import os
import time
from pathlib import Path
from typing import List, Optional, Union

PathLike = Union[str, Path]

class C:
    RESET = '\033[0m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    GRAY = '\033[90m'

def under_root(root: PathLike, path: str) -> str:
    """Resolve an absolute host path below an alternate filesystem root."""
    if not root or str(root) == "/":
        return path
    return os.path.join(str(root), path.lstrip("/"))

def read_text(path: PathLike, limit: Optional[int] = None) -> str:
    try:
        with open(path, "r", errors="ignore") as f:
            return f.read() if limit is None else f.read(limit)
    except (IOError, OSError):
        return ""

def read_lines(path: PathLike, limit_lines: int = 100000) -> List[str]:
    try:
        out = []
        with open(path, "r", errors="ignore") as f:
            for i, line in enumerate(f):
                if i >= limit_lines:
                    break
                out.append(line.rstrip("\n"))
        return out
    except (IOError, OSError):
        return []

def listdir(path: PathLike, max_items: int = 10000) -> List[str]:
    try:
        return sorted(os.listdir(path))[:max_items]
    except (IOError, OSError):
        return []

def mtime(path: PathLike) -> Optional[float]:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None

def free_backup_path(path: str, suffix: str) -> str:
    """`path + suffix`, or a timestamped variant if an earlier backup is already there."""
    candidate = path + suffix
    if not os.path.lexists(candidate):
        return candidate
    stamped = f"{candidate}.{time.strftime('%Y%m%d%H%M%S')}"
    candidate, n = stamped, 1
    while os.path.lexists(candidate):
        candidate = f"{stamped}.{n}"
        n += 1
    return candidate
