"""Run a whole corpus through the solver and report the results."""

import sys
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import TextIO

from setproctitle import setproctitle

from sokoban_harness.board import ParseError, parse_board
from sokoban_harness.corpus import PuzzleInstance, load_corpus
from sokoban_harness.harness.aggregate import DEFAULT_CATEGORIES, format_summary, summarize
from sokoban_harness.harness.config import HarnessConfig
from sokoban_harness.harness.outcome import BatchResult
from sokoban_harness.harness.scheduler import Scheduler
from sokoban_harness.harness.utils import TIMESTAMP_FMT, int_comma, time_str
from sokoban_harness.metrics import BoardMetrics, compute_metrics


def collect_metrics(instances: list[PuzzleInstance]) -> dict[int, BoardMetrics]:
    """Compute board metrics for every instance whose board parses."""
    ret: dict[int, BoardMetrics] = {}
    for instance in instances:
        try:
            ret[instance.identifier] = compute_metrics(parse_board(instance.raw_text))
        except ParseError:
            continue
    return ret


def print_result(result: BatchResult, *, out: TextIO | None = None) -> None:
    """Print the batch counters."""
    out = out or sys.stdout
    print(f"Total:     {int_comma(result.executed)}", file=out)
    print(f"Passed:    {int_comma(result.passed)}", file=out)
    print(f"Failed:    {int_comma(result.failed)}", file=out)
    print(f"Timed out: {int_comma(result.timed_out)}", file=out)
    print(f"Time:      {time_str(result.elapsed_s)}", file=out)
    if result.cancelled:
        print(f"Cancelled after {result.executed} of {result.total} levels.", file=out)


def run_batch(
    instances: list[PuzzleInstance], *, config: HarnessConfig, logf: TextIO
) -> BatchResult:
    """Run the instances through the solver and write a report to `logf`.

    Args:
        instances (list[PuzzleInstance]): Puzzles to run.
        config (HarnessConfig): Batch configuration.
        logf: File object to log the batch to.
    """
    scheduler = Scheduler(instances, config=config, logf=logf)
    print(f"{len(instances)} levels to be run by {scheduler.concurrency} workers.")
    result = scheduler.run()

    print("", file=logf, flush=True)
    print("#" * 80, file=logf, flush=True)
    print("", file=logf, flush=True)
    print_result(result, out=logf)

    summaries = summarize(result.outcomes, DEFAULT_CATEGORIES, collect_metrics(instances))
    if summaries:
        print("", file=logf, flush=True)
        print("Board metrics by category:", file=logf, flush=True)
        print(format_summary(summaries), file=logf, flush=True)

    print()
    print_result(result)
    return result


def run(config: HarnessConfig, *, corpus_path: PathLike | str | None = None) -> BatchResult:
    """Load the corpus and run it, logging to a per-run file under `config.log_dir`.

    Args:
        config (HarnessConfig): Batch configuration.
        corpus_path: Corpus file to use instead of `config.corpus_path`.

    Raises:
        FileNotFoundError: If the corpus file does not exist.
        CorpusError: If the corpus has no levels.
    """
    path = Path(corpus_path or config.corpus_path)
    instances = load_corpus(path, max_instances=config.max_instances)

    started = datetime.now().astimezone()
    logfile = Path(config.log_dir) / path.stem / f"{started.strftime('%Y%m%d-%H%M%S')}.log"
    print(f"Log file: {logfile}")
    logfile.parent.mkdir(parents=True, exist_ok=True)

    setproctitle(f"sokoban-harness: {path.name} [{len(instances)} levels]")

    with open(logfile, "w", encoding="utf-8") as logf:
        print(f"Corpus: {path.resolve()}", file=logf, flush=True)
        print(f"Start time: {started.strftime(TIMESTAMP_FMT)}", file=logf, flush=True)
        try:
            return run_batch(instances, config=config, logf=logf)
        except KeyboardInterrupt:
            print("Batch interrupted by user.", file=logf, flush=True)
            print("Batch interrupted by user.")
            sys.exit(1)
