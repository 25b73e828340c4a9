from __future__ import annotations
from typing import Iterable, List

from .executor import Runner, run_command
from .models import StepResult
from .persistence import PASSWD, parse_passwd_line
from .utils import under_root
from .whitelist import Whitelist


DENY_FILES = ("/etc/cron.deny", "/etc/at.deny")
NOLOGIN = "/sbin/nologin"


def lockdown_cron_at(root: str = "/") -> List[StepResult]:
    """Deny cron and at to every user. Each file is attempted independently."""
    results = []
    for deny in DENY_FILES:
        path = under_root(root, deny)
        try:
            with open(path, "w") as f:
                f.write("ALL\n")
            results.append(StepResult(path, True, f"Wrote ALL to {path}"))
        except OSError as e:
            results.append(StepResult(path, False, f"Failed to write to {path}: {e}"))
    return results


def users_needing_nologin(lines: Iterable[str], shell_whitelist: Whitelist) -> List[str]:
    users = []
    for line in lines:
        rec = parse_passwd_line(line)
        if rec is None or not rec[2]:
            continue
        user, _, shell = rec
        if "nologin" in shell or "false" in shell:
            continue
        if shell_whitelist.is_allowed(user):
            continue
        users.append(user)
    return users


def enforce_nologin(
    shell_whitelist: Whitelist,
    runner: Runner = run_command,
    root: str = "/",
) -> List[StepResult]:
    """Switch every login shell outside the shell whitelist to nologin.

    Raises OSError if the user database cannot be opened.
    """
    with open(under_root(root, PASSWD), "r", errors="ignore") as f:
        lines = f.read().splitlines()
    results = []
    for user in users_needing_nologin(lines, shell_whitelist):
        res = runner("usermod", "-s", NOLOGIN, user)
        if res.ok:
            results.append(StepResult(user, True, f"Locked {user}"))
        else:
            results.append(StepResult(user, False, f"Failed to lock {user}: {res.error}"))
    return results
