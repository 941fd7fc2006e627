"""Bounded-concurrency scheduler: hand puzzles to solver processes and check the answers."""

import threading
import traceback
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from functools import partial
from pprint import pprint
from time import monotonic
from typing import TextIO, TypeAlias

from sokoban_harness.board import ParseError, parse_board
from sokoban_harness.corpus import PuzzleInstance
from sokoban_harness.harness.config import HarnessConfig
from sokoban_harness.harness.outcome import (
    BatchResult,
    ExecutionOutcome,
    Failed,
    FailureReason,
    Passed,
    TimedOut,
    describe,
)
from sokoban_harness.harness.registry import ProcessRegistry
from sokoban_harness.harness.runner import RunError, RunErrorKind, SolverOutput, run_solver
from sokoban_harness.replay import InvalidMove, go_by_string, is_solved

RunFn: TypeAlias = Callable[[PuzzleInstance], SolverOutput]
OutcomeCallback: TypeAlias = Callable[[ExecutionOutcome, BatchResult], None]
CompleteCallback: TypeAlias = Callable[[BatchResult], None]


class BatchState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class Scheduler:
    """Run a batch of puzzles through the solver with a fixed number of workers.

    Each worker takes the next puzzle from a shared FIFO queue, runs the solver on it,
    replays the answer, records the outcome and immediately takes the next puzzle.  Queue
    pops and the running/executed counters change together under one lock, so the number
    of jobs in flight is always `min(concurrency, total - executed)`.
    """

    def __init__(
        self,
        instances: Sequence[PuzzleInstance],
        *,
        config: HarnessConfig,
        registry: ProcessRegistry | None = None,
        runner: RunFn | None = None,
        on_outcome: OutcomeCallback | None = None,
        on_complete: CompleteCallback | None = None,
        logf: TextIO | None = None,
    ) -> None:
        """Set up a batch.

        Args:
            instances (Sequence[PuzzleInstance]): Puzzles to run, in dispatch order.
            config (HarnessConfig): Concurrency limit, timeout and solver command.
            registry (ProcessRegistry | None): Registry for running processes.  A new one is
                created if None.
            runner (RunFn | None): Function that runs the solver on one instance.  Defaults
                to `run_solver` with the command and timeout from `config`.
            on_outcome: Called with each outcome and the batch result, after recording.
            on_complete: Called once with the frozen batch result.
            logf: File object to log the batch to.
        """
        self.instances = list(instances)
        self.config = config
        self.registry = registry if registry is not None else ProcessRegistry()
        self.runner: RunFn = runner or partial(
            run_solver,
            command=config.solver_command,
            timeout=config.timeout,
            registry=self.registry,
            new_session=config.new_session,
        )
        self.on_outcome = on_outcome
        self.on_complete = on_complete
        self.logf = logf

        self.concurrency = min(config.effective_workers(), len(self.instances))
        self.result = BatchResult(len(self.instances))
        self.state = BatchState.IDLE

        self._lock = threading.Lock()
        self._queue: deque[PuzzleInstance] = deque(self.instances)
        self._running = 0
        self._cancelled = False

    @property
    def running(self) -> int:
        return self._running

    @property
    def executed(self) -> int:
        return self.result.executed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def snapshot(self) -> tuple[int, int]:
        """Return a consistent (running, executed) pair."""
        with self._lock:
            return self._running, self.result.executed

    def run(self) -> BatchResult:
        """Run the whole batch and return its (frozen) result.

        Raises:
            RuntimeError: If the scheduler has already been run.
        """
        with self._lock:
            if self.state is not BatchState.IDLE:
                raise RuntimeError(f"Scheduler already {self.state.value}.")
            self.state = BatchState.RUNNING
            # Prime one job per worker
            first = [self._take_next_locked() for _ in range(self.concurrency)]

        self._log(f"Running {len(self.instances)} levels with {self.concurrency} workers.")
        if self.logf is not None:
            pprint(self.config.model_dump(), stream=self.logf, width=120)

        start = monotonic()
        try:
            with ThreadPoolExecutor(
                max_workers=max(1, self.concurrency), thread_name_prefix="harness-worker"
            ) as executor:
                futures = [executor.submit(self._worker, instance) for instance in first]
                try:
                    for future in as_completed(futures):
                        future.result()
                except KeyboardInterrupt as e:
                    self._log("Batch interrupted, cancelling running solvers...")
                    self.cancel()
                    raise e
                except Exception as e:
                    self._log(f"Worker crashed: {e}\n{traceback.format_exc()}")
                    self.cancel()
                    raise e
        finally:
            self._finish(monotonic() - start)
        return self.result

    def cancel(self) -> None:
        """Stop dispatching new puzzles and kill every running solver."""
        with self._lock:
            self._cancelled = True
        killed = self.registry.cancel_all()
        self._log(f"Cancelled batch, killed {killed} running solver(s).")

    def _take_next_locked(self) -> PuzzleInstance | None:
        if self._cancelled or not self._queue:
            return None
        self._running += 1
        return self._queue.popleft()

    def _worker(self, instance: PuzzleInstance | None) -> None:
        while instance is not None:
            outcome = self._execute(instance)
            instance = self._complete(outcome)

    def _complete(self, outcome: ExecutionOutcome) -> PuzzleInstance | None:
        """Record an outcome and take the next puzzle, as one atomic step."""
        with self._lock:
            self._running -= 1
            self.result.record(outcome)
            self._log(describe(outcome))
            if self.on_outcome is not None:
                self.on_outcome(outcome, self.result)
            return self._take_next_locked()

    def _execute(self, instance: PuzzleInstance) -> ExecutionOutcome:
        """Run the solver on one puzzle and classify the result."""
        identifier = instance.identifier
        try:
            board = parse_board(instance.raw_text)
        except ParseError as e:
            return Failed(identifier, FailureReason.PARSE, str(e))

        if self._cancelled:
            return Failed(identifier, FailureReason.CANCELLED)

        try:
            solved = self.runner(instance)
        except RunError as e:
            if e.kind is RunErrorKind.TIMEOUT:
                return TimedOut(identifier)
            if e.kind is RunErrorKind.CANCELLED:
                return Failed(identifier, FailureReason.CANCELLED)
            return Failed(identifier, FailureReason.PROCESS_ERROR, e.details)

        try:
            final = go_by_string(board, solved.output)
            if not is_solved(final):
                return Failed(identifier, FailureReason.UNSOLVED, output=solved.output)
        except InvalidMove as e:
            return Failed(identifier, FailureReason.INVALID_SOLUTION, str(e), solved.output)
        except Exception as e:
            return Failed(
                identifier,
                FailureReason.VERIFIER_ERROR,
                f"{e}\n{traceback.format_exc()}",
                solved.output,
            )
        return Passed(identifier, solved.elapsed_ms)

    def _finish(self, elapsed_s: float) -> None:
        with self._lock:
            if self.state is BatchState.COMPLETED:
                return
            self.state = BatchState.COMPLETED
            self.result.cancelled = self._cancelled
            self.result.freeze(elapsed_s)
        self._log(f"Batch finished: {self.result.summary()}")
        if self.on_complete is not None:
            self.on_complete(self.result)

    def _log(self, msg: str) -> None:
        if self.logf is not None:
            print(msg, file=self.logf, flush=True)
