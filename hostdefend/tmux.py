from __future__ import annotations
import shutil
import sys
from typing import Callable, List, Optional, Sequence

from .executor import Runner, run_command
from .models import StepResult

SESSION = "defense"
WINDOW = "Monitor"
# tried in order until one succeeds
INSTALLERS = (
    ("dnf", "install", "-y", "tmux"),
    ("apt-get", "install", "-y", "tmux"),
)


def monitor_command(extra_args: Sequence[str] = ()) -> List[str]:
    """argv that relaunches this tool's monitor (without --tmux)."""
    exe = shutil.which("hostdefend")
    base = [exe] if exe else [sys.executable, "-m", "hostdefend.cli"]
    return [*base, "monitor", *extra_args]


def ensure_tmux(
    runner: Runner = run_command,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> StepResult:
    if which("tmux"):
        return StepResult("tmux", True, "tmux is installed")
    for installer in INSTALLERS:
        if runner(*installer).ok:
            return StepResult("tmux", True, f"Installed tmux with {installer[0]}")
    return StepResult("tmux", False, "Failed to install tmux. Please install manually.")


def launch_monitor(
    command: Sequence[str],
    runner: Runner = run_command,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> List[StepResult]:
    """Start `command` in a new tmux window, or in a detached session if no
    tmux server is running."""
    steps = [ensure_tmux(runner, which)]
    if not steps[0].ok:
        return steps
    if runner("tmux", "new-window", "-n", WINDOW, *command).ok:
        steps.append(StepResult(WINDOW, True, "Launched monitor in new tmux window."))
        return steps
    res = runner("tmux", "new-session", "-d", "-s", SESSION, "-n", WINDOW, *command)
    if res.ok:
        steps.append(StepResult(SESSION, True,
                                f"Started new tmux session '{SESSION}' with monitor. "
                                f"Attach with: tmux attach -t {SESSION}"))
    else:
        steps.append(StepResult(SESSION, False, f"Failed to launch tmux: {res.error}"))
    return steps
