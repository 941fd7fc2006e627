"""Registry of running solver processes, used for bulk cancellation."""

import os
import signal
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Literal

KillReason = Literal["timeout", "cancelled"]


def kill_process(process: subprocess.Popen, *, group: bool) -> None:
    """Forcibly terminate a process, and its process group if `group` is set.

    A process that has already exited is left alone.
    """
    if process.poll() is not None:
        return
    try:
        if group and os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        # Exited between poll() and the kill
        pass


@dataclass(kw_only=True)
class RegisteredProcess:
    """A running solver process and the resources tied to it."""

    process: subprocess.Popen
    timer: threading.Timer | None
    start_time: float
    """Value of time.monotonic() when the process was started."""
    group: bool = False
    """Whether the process leads its own process group."""
    killed_by: KillReason | None = field(default=None)


class ProcessRegistry:
    """Thread-safe map of pid to running solver process.

    Owned by a Scheduler and handed to whatever needs to cancel a batch from outside
    (e.g. a signal handler).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[int, RegisteredProcess] = {}
        self._cancelled = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, pid: int) -> bool:
        with self._lock:
            return pid in self._entries

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def pids(self) -> list[int]:
        with self._lock:
            return list(self._entries)

    def register(self, entry: RegisteredProcess) -> None:
        """Add a running process.  If the registry was cancelled, the process is killed."""
        with self._lock:
            self._entries[entry.process.pid] = entry
            if not self._cancelled:
                return
        self._kill(entry, "cancelled")

    def deregister(self, pid: int) -> RegisteredProcess | None:
        """Remove a process and cancel its timer.  Returns the removed entry, if any."""
        with self._lock:
            entry = self._entries.pop(pid, None)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()
        return entry

    def expire(self, pid: int) -> None:
        """Timer callback: kill the process if it is still registered and running."""
        with self._lock:
            entry = self._entries.get(pid)
        if entry is not None:
            self._kill(entry, "timeout")

    def cancel_all(self) -> int:
        """Kill every registered process and refuse new ones.

        Returns:
            The number of processes that were registered when cancellation happened.
        """
        with self._lock:
            self._cancelled = True
            entries = list(self._entries.values())
        for entry in entries:
            if entry.timer is not None:
                entry.timer.cancel()
            self._kill(entry, "cancelled")
        return len(entries)

    @staticmethod
    def _kill(entry: RegisteredProcess, reason: KillReason) -> None:
        if entry.process.poll() is not None:
            return
        if entry.killed_by is None:
            entry.killed_by = reason
        kill_process(entry.process, group=entry.group)
