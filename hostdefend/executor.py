from __future__ import annotations
from dataclasses import dataclass, field
import logging
import subprocess
import sys
import threading
from typing import Callable, List, TextIO

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    argv: List[str]
    returncode: int | None = None
    error: str = ""
    stdout: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.error


Runner = Callable[..., CommandResult]


def _pump(stream, sink: TextIO, collected: List[str] | None) -> None:
    for raw in iter(stream.readline, ""):
        line = raw.rstrip("\n")
        if collected is not None:
            collected.append(line)
        print(line, file=sink, flush=True)
    stream.close()


def run_command(executable: str, *args: str, stream: bool = True) -> CommandResult:
    """Run `executable args...`, echoing stdout/stderr line by line as it arrives.

    Output is pumped on two short-lived threads that are joined before this
    returns, so every line has been printed when the caller proceeds. A missing
    executable or a non-zero exit is reported through the result, never raised.
    """
    argv = [executable, *args]
    result = CommandResult(argv=argv)
    logger.debug("running %s", " ".join(argv))
    try:
        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as e:
        result.error = str(e)
        logger.debug("could not start %s: %s", executable, e)
        return result

    out_sink = sys.stdout if stream else _NullSink()
    err_sink = sys.stderr if stream else _NullSink()
    threads = [
        threading.Thread(target=_pump, args=(proc.stdout, out_sink, result.stdout), daemon=True),
        threading.Thread(target=_pump, args=(proc.stderr, err_sink, None), daemon=True),
    ]
    for t in threads:
        t.start()
    result.returncode = proc.wait()
    for t in threads:
        t.join()
    if result.returncode != 0:
        result.error = f"exit status {result.returncode}"
    return result


class _NullSink:
    def write(self, _s: str) -> int:
        return 0

    def flush(self) -> None:
        pass
