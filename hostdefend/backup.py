from __future__ import annotations
import datetime as dt
import os
from typing import Optional, Sequence

from .executor import CommandResult, Runner, run_command


def archive_name(dest: str, when: Optional[dt.datetime] = None) -> str:
    when = when or dt.datetime.now()
    return os.path.join(dest, f"mail_config_{when.strftime('%Y%m%d_%H%M%S')}.tar.gz")


def backup_configs(
    dest: str,
    targets: Sequence[str],
    runner: Runner = run_command,
    when: Optional[dt.datetime] = None,
) -> tuple[str, CommandResult]:
    """Tar up `targets` into a timestamped archive under `dest`."""
    os.makedirs(dest, exist_ok=True)
    tar_name = archive_name(dest, when)
    return tar_name, runner("tar", "-czf", tar_name, *targets)
