from __future__ import annotations
import time
from typing import Optional, TextIO

from .models import Category, Finding, Outcome, Severity
from .utils import C

SEVERITY_COLOR = {
    Severity.INFO: C.YELLOW,
    Severity.WARNING: C.RED,
    Severity.CRITICAL: C.RED,
}

LABELS = {
    Category.NEW_PROCESS: "NEW PROCESS",
    Category.ESTABLISHED_CONNECTION: "Active Connection",
    Category.FILE_MODIFIED: "FILE MODIFIED",
    Category.CRON_ENTRY: "Found cron file",
    Category.SYSTEMD_UNIT: "Found local systemd unit",
    Category.PRIVILEGED_USER: "ALERT: Non-ignored user with UID 0",
    Category.ROOT_AUTHORIZED_KEY: "Root has authorized_keys entries",
    Category.LD_PRELOAD: "ALERT: preload file exists",
    Category.SUID_BINARY: "SUID",
    Category.SUSPICIOUS_CONTENT: "Suspicious content",
}


def color(text: str, c: str) -> str:
    return f"{c}{text}{C.RESET}"


def format_finding(f: Finding) -> str:
    label = LABELS[f.category]
    if f.category is Category.NEW_PROCESS:
        body = f"{label}: {f.detail or '?'} (PID: {f.subject})"
    elif f.category is Category.ESTABLISHED_CONNECTION:
        return color(f"{label}: {f.subject}", C.MAGENTA)
    elif f.category is Category.FILE_MODIFIED:
        body = f"{label} ({f.detail}): {f.subject}"
    elif f.category is Category.SUSPICIOUS_CONTENT:
        sigs = ", ".join(f"'{s}'" for s in f.signatures)
        body = f"{label} {sigs} found in {f.subject}"
    else:
        body = f"{label}: {f.subject}"
    return color(body, SEVERITY_COLOR[f.severity])


def format_outcome(o: Outcome) -> str:
    if o.action is None:
        return format_finding(o.finding)
    status = color("OK", C.GREEN) if o.ok else color("FAILED", C.RED)
    return f"{format_finding(o.finding)}\n  {status} {o.message}"


def emit(o: Outcome, out: Optional[TextIO] = None) -> None:
    print(format_outcome(o), file=out)
    # preload content is shown whenever it is only being reported
    if o.finding.category is Category.LD_PRELOAD and o.action is None and o.finding.detail:
        print(o.finding.detail.rstrip("\n"), file=out)


def section(title: str, out: Optional[TextIO] = None) -> None:
    print(color(f"Checking {title}...", C.BLUE), file=out)


def banner(text: str, out: Optional[TextIO] = None) -> None:
    print(color(text, C.GREEN), file=out)


def tick_header(out: Optional[TextIO] = None) -> None:
    print(color(f"# Poll @ {time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime())}", C.GRAY), file=out)
