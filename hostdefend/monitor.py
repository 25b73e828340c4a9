from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import time
from typing import Callable, List, Optional

from .integrity import Watch
from .models import Category, ConnectionResult, Finding, ProcessSet, Severity
from .network import ExternalProbe
from .proc import current_processes

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0


class MonitorState(Enum):
    UNINITIALIZED = "uninitialized"
    BASELINED = "baselined"
    POLLING = "polling"


@dataclass
class TickResult:
    findings: List[Finding] = field(default_factory=list)
    connections_available: bool = True


class BaselineMonitor:
    """Snapshot-diff monitor for processes, sessions and critical files.

    The process baseline only grows: a new PID is reported once and then
    merged in, and exited processes are never pruned.
    """

    def __init__(
        self,
        probe: ExternalProbe,
        watch: Optional[Watch] = None,
        census: Callable[[], ProcessSet] = current_processes,
    ):
        self.probe = probe
        self.watch = watch
        self.census = census
        self.baseline: ProcessSet = {}
        self.state = MonitorState.UNINITIALIZED

    def take_baseline(self) -> int:
        self.baseline = dict(self.census())
        if self.watch is not None:
            self.watch.prime()
        self.state = MonitorState.BASELINED
        logger.debug("baseline taken: %d processes", len(self.baseline))
        return len(self.baseline)

    def diff_processes(self) -> List[Finding]:
        current = self.census()
        findings = []
        for pid in sorted(current.keys() - self.baseline.keys(), key=int):
            rec = current[pid]
            findings.append(Finding(Category.NEW_PROCESS, pid, Severity.WARNING, rec.command))
            self.baseline[pid] = rec
        return findings

    def check_connections(self) -> ConnectionResult:
        return self.probe.established_connections()

    def tick(self) -> TickResult:
        if self.state is MonitorState.UNINITIALIZED:
            self.take_baseline()
        self.state = MonitorState.POLLING

        result = TickResult(findings=self.diff_processes())
        conns = self.check_connections()
        result.connections_available = conns.available
        result.findings.extend(
            Finding(Category.ESTABLISHED_CONNECTION, line, Severity.INFO)
            for line in conns.connections
        )
        if self.watch is not None:
            result.findings.extend(self.watch.check())
        return result

    def run(
        self,
        on_tick: Callable[[TickResult], None],
        interval: float = DEFAULT_INTERVAL,
        max_ticks: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if self.state is MonitorState.UNINITIALIZED:
            self.take_baseline()
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            sleep(interval)
            on_tick(self.tick())
            ticks += 1
