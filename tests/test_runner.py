import threading
import time

import pytest

from sokoban_harness.harness.registry import ProcessRegistry
from sokoban_harness.harness.runner import RunError, RunErrorKind, run_solver

from conftest import answering_solver, python_solver

ECHO = """
import sys
sys.stdout.write(sys.stdin.read())
"""


def run(instance, command, *, timeout=10.0, registry=None):
    return run_solver(
        instance,
        command=command,
        timeout=timeout,
        registry=registry if registry is not None else ProcessRegistry(),
    )


class SlowRegistry(ProcessRegistry):
    """Registry whose registration takes longer than the solver's time limit."""

    def register(self, entry):
        time.sleep(0.6)
        super().register(entry)


def test_success_returns_output_and_time(corridor):
    registry = ProcessRegistry()
    result = run(corridor, answering_solver("R"), registry=registry)
    assert result.output.strip() == "R"
    assert result.elapsed_ms > 0
    assert len(registry) == 0


def test_puzzle_is_written_with_terminator(corridor):
    result = run(corridor, python_solver(ECHO))
    assert result.output == "#####\n#@$.#\n#####\n;\n"


def test_non_zero_exit_is_failure(corridor):
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver("import sys; print('R'); sys.exit(3)"))
    assert exc.value.kind is RunErrorKind.FAILURE
    assert "exit status 3" in exc.value.details


def test_stderr_output_is_failure(corridor):
    code = "import sys; print('R'); sys.stderr.write('warning')"
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver(code))
    assert exc.value.kind is RunErrorKind.FAILURE
    assert "warning" in exc.value.details


def test_empty_output_is_failure(corridor):
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver("import sys; sys.stdin.read()"))
    assert exc.value.kind is RunErrorKind.FAILURE


def test_missing_command_is_failure(corridor, tmp_path):
    with pytest.raises(RunError) as exc:
        run(corridor, [str(tmp_path / "no-such-solver")])
    assert exc.value.kind is RunErrorKind.FAILURE


def test_timeout_kills_process_and_cleans_up(corridor):
    registry = ProcessRegistry()
    start = time.monotonic()
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver("import time; time.sleep(30)"), timeout=0.5, registry=registry)
    assert exc.value.kind is RunErrorKind.TIMEOUT
    assert time.monotonic() - start < 10
    assert len(registry) == 0


def test_output_before_deadline_still_times_out(corridor):
    code = """
    import time
    print('R', flush=True)
    time.sleep(30)
    """
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver(code), timeout=0.5)
    assert exc.value.kind is RunErrorKind.TIMEOUT


def test_answer_after_deadline_is_timeout_even_if_timer_armed_late(corridor):
    registry = SlowRegistry()
    with pytest.raises(RunError) as exc:
        run(corridor, answering_solver("R"), timeout=0.3, registry=registry)
    assert exc.value.kind is RunErrorKind.TIMEOUT
    assert len(registry) == 0


def test_timeout_kills_child_processes(corridor):
    code = """
    import subprocess, sys, time
    subprocess.Popen([sys.executable, "-c", "import time; time.sleep(30)"])
    time.sleep(30)
    """
    start = time.monotonic()
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver(code), timeout=1.0)
    assert exc.value.kind is RunErrorKind.TIMEOUT
    # The grandchild holds the pipes open; this returns only if it was killed too
    assert time.monotonic() - start < 10


def test_process_is_registered_while_running(corridor):
    registry = ProcessRegistry()
    seen = []

    def watch():
        deadline = time.monotonic() + 5
        while time.monotonic() < deadline and not seen:
            if len(registry):
                seen.extend(registry.pids())
            time.sleep(0.01)

    watcher = threading.Thread(target=watch)
    watcher.start()
    run(corridor, python_solver("import time; time.sleep(0.5); print('R')"), registry=registry)
    watcher.join()
    assert len(seen) == 1
    assert seen[0] not in registry


def test_cancel_all_kills_running_solver(corridor):
    registry = ProcessRegistry()
    errors = []

    def target():
        try:
            run(corridor, python_solver("import time; time.sleep(30)"), registry=registry)
        except RunError as e:
            errors.append(e)

    thread = threading.Thread(target=target)
    thread.start()
    deadline = time.monotonic() + 5
    while not len(registry) and time.monotonic() < deadline:
        time.sleep(0.01)
    assert registry.cancel_all() == 1
    thread.join(timeout=10)
    assert not thread.is_alive()
    assert [e.kind for e in errors] == [RunErrorKind.CANCELLED]
    assert len(registry) == 0


def test_cancelled_registry_kills_new_processes(corridor):
    registry = ProcessRegistry()
    registry.cancel_all()
    with pytest.raises(RunError) as exc:
        run(corridor, python_solver("import time; time.sleep(30)"), registry=registry)
    assert exc.value.kind is RunErrorKind.CANCELLED
