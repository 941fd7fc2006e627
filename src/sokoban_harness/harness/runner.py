"""Run the external solver on one puzzle instance."""

import os
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from time import monotonic

from sokoban_harness.corpus import PuzzleInstance
from sokoban_harness.harness.registry import ProcessRegistry, RegisteredProcess, kill_process

MAX_DETAIL_CHARS = 2000


class RunErrorKind(Enum):
    """Ways a solver invocation can fail to produce a usable answer."""

    TIMEOUT = "timeout"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class RunError(Exception):
    """Raised when a solver invocation does not produce output."""

    def __init__(self, kind: RunErrorKind, details: str = "") -> None:
        self.kind = kind
        self.details = details
        super().__init__(f"{kind.value}: {details}" if details else kind.value)


@dataclass(frozen=True)
class SolverOutput:
    """Output of a successful solver run."""

    output: str
    """Everything the solver wrote to stdout."""
    elapsed_ms: float
    """Wall-clock time from launch to exit, in milliseconds."""


def _clip(text: str) -> str:
    text = text.strip()
    if len(text) > MAX_DETAIL_CHARS:
        return text[:MAX_DETAIL_CHARS] + "..."
    return text


def run_solver(
    instance: PuzzleInstance,
    *,
    command: list[str],
    timeout: float,
    registry: ProcessRegistry,
    new_session: bool = True,
) -> SolverOutput:
    """Start the solver, feed it one puzzle, and wait for its answer.

    The process is registered in `registry` while it runs, so that it can be killed by
    `registry.cancel_all()`.  A timer kills it (and its process group, if `new_session` is
    set on POSIX) once `timeout` seconds have passed.

    Args:
        instance (PuzzleInstance): The puzzle to solve.
        command (list[str]): argv used to start the solver.
        timeout (float): Seconds the solver may run.
        registry (ProcessRegistry): Registry to record the running process in.
        new_session (bool): Start the solver in a new session (POSIX only).

    Returns:
        The solver's stdout and the elapsed time.

    Raises:
        RunError: With kind TIMEOUT if the deadline passed, CANCELLED if the registry was
            cancelled, and FAILURE if the process could not be started, exited with a
            non-zero status, wrote to stderr, or wrote nothing to stdout.
    """
    group = new_session and os.name == "posix"
    start = monotonic()
    try:
        process = subprocess.Popen(
            command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=group,
        )
    except OSError as e:
        raise RunError(RunErrorKind.FAILURE, f"could not start solver: {e}") from e

    entry = RegisteredProcess(process=process, timer=None, start_time=start, group=group)
    try:
        registry.register(entry)
        # The deadline counts from launch, not from when the timer is armed
        remaining = max(0.0, timeout - (monotonic() - start))
        entry.timer = threading.Timer(remaining, registry.expire, args=(process.pid,))
        entry.timer.daemon = True
        entry.timer.start()
        stdout, stderr = process.communicate(instance.solver_input())
        elapsed_ms = (monotonic() - start) * 1000
    finally:
        registry.deregister(process.pid)
        if entry.timer is not None:
            entry.timer.cancel()
        if process.poll() is None:
            kill_process(process, group=group)
            process.wait()

    if entry.killed_by == "timeout":
        raise RunError(RunErrorKind.TIMEOUT, f"no answer after {timeout:g} s")
    if entry.killed_by == "cancelled":
        raise RunError(RunErrorKind.CANCELLED)
    if elapsed_ms >= timeout * 1000:
        raise RunError(RunErrorKind.TIMEOUT, f"answered after {elapsed_ms:.0f} ms")
    if process.returncode != 0:
        details = f"exit status {process.returncode}"
        if stderr.strip():
            details += f"\n{_clip(stderr)}"
        raise RunError(RunErrorKind.FAILURE, details)
    if stderr:
        raise RunError(RunErrorKind.FAILURE, f"solver wrote to stderr:\n{_clip(stderr)}")
    if not stdout.strip():
        raise RunError(RunErrorKind.FAILURE, "solver produced no output")
    return SolverOutput(output=stdout, elapsed_ms=elapsed_ms)
