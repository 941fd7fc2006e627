"""Result records produced by the scheduler."""

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

from sortedcontainers import SortedKeyList


class FailureReason(Enum):
    """Why an instance did not pass."""

    PARSE = "parse"
    """The puzzle text could not be parsed; the solver was not started."""
    PROCESS_ERROR = "processError"
    """The solver crashed, wrote to stderr, or produced no output."""
    INVALID_SOLUTION = "invalidSolution"
    """The move string contained an impossible move or an unknown token."""
    UNSOLVED = "unsolved"
    """All moves were valid but some target is left uncovered."""
    VERIFIER_ERROR = "verifierError"
    """Replaying the solution raised an unexpected exception."""
    CANCELLED = "cancelled"
    """The batch was cancelled while the solver was running."""


@dataclass(frozen=True)
class Passed:
    identifier: int
    elapsed_ms: float


@dataclass(frozen=True)
class Failed:
    identifier: int
    reason: FailureReason
    details: str | None = None
    output: str | None = None
    """Raw solver output, when the failure happened while checking it."""


@dataclass(frozen=True)
class TimedOut:
    identifier: int


ExecutionOutcome: TypeAlias = Passed | Failed | TimedOut


def describe(outcome: ExecutionOutcome) -> str:
    """One-line description of an outcome, for logs."""
    if isinstance(outcome, Passed):
        return f"level {outcome.identifier}: passed in {outcome.elapsed_ms:.0f} ms"
    if isinstance(outcome, TimedOut):
        return f"level {outcome.identifier}: timed out"
    msg = f"level {outcome.identifier}: failed ({outcome.reason.value})"
    if outcome.details:
        msg += f" {outcome.details.splitlines()[0]}"
    return msg


class BatchResult:
    """All outcomes of a batch, kept in level order, plus counters.

    Appended to by the scheduler only.  Once frozen, no more outcomes can be recorded.
    """

    def __init__(self, total: int) -> None:
        self.total = total
        self.outcomes: SortedKeyList = SortedKeyList(key=lambda o: o.identifier)
        self.passed = 0
        self.failed = 0
        self.timed_out = 0
        self.elapsed_s = 0.0
        self.cancelled = False
        self._frozen = False

    @property
    def executed(self) -> int:
        return len(self.outcomes)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def record(self, outcome: ExecutionOutcome) -> None:
        if self._frozen:
            raise RuntimeError("Cannot record an outcome into a frozen BatchResult.")
        if isinstance(outcome, Passed):
            self.passed += 1
        elif isinstance(outcome, TimedOut):
            self.timed_out += 1
        else:
            self.failed += 1
        self.outcomes.add(outcome)

    def freeze(self, elapsed_s: float) -> None:
        self.elapsed_s = elapsed_s
        self._frozen = True

    def get(self, identifier: int) -> ExecutionOutcome | None:
        """Look up the outcome for a level."""
        idx = self.outcomes.bisect_key_left(identifier)
        if idx < len(self.outcomes) and self.outcomes[idx].identifier == identifier:
            return self.outcomes[idx]
        return None

    def summary(self) -> dict[str, object]:
        """Return a dictionary-based summary of the counters."""
        return {
            "total": self.total,
            "executed": self.executed,
            "passed": self.passed,
            "failed": self.failed,
            "timed_out": self.timed_out,
            "elapsed_s": round(self.elapsed_s, 3),
            "cancelled": self.cancelled,
        }
