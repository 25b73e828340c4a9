from pathlib import Path
from typing import List, Optional

from .models import ProcessRecord, ProcessSet
from .utils import PathLike, listdir

PROC_ROOT = "/proc"

def get_proc_ids(proc_root: PathLike = PROC_ROOT) -> List[str]:
    return [p for p in listdir(Path(proc_root), max_items=1_000_000) if p.isdigit()]

def get_cmdline(pid: str, proc_root: PathLike = PROC_ROOT) -> Optional[List[str]]:
    # None means unreadable (exited, permission denied); [] is a kernel thread.
    try:
        raw = (Path(proc_root) / pid / "cmdline").read_bytes()
    except OSError:
        return None
    return raw.decode(errors="replace").split("\x00")

def current_processes(proc_root: PathLike = PROC_ROOT) -> ProcessSet:
    procs: ProcessSet = {}
    for pid in get_proc_ids(proc_root):
        argv = get_cmdline(pid, proc_root)
        if argv is None:
            continue
        procs[pid] = ProcessRecord(pid=pid, command=argv[0] if argv else "")
    return procs
