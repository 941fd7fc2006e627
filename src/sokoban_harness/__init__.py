"""Sokoban Solver Conformance Harness.

Feeds each level of a corpus to an external Sokoban solver, kills solvers that exceed the
timeout, replays every returned move string against the puzzle rules, and reports
pass/fail/timeout counts together with board statistics per outcome category.
"""

from sys import argv, exit

from .harness import batch
from .harness.config import config


def main() -> None:
    """Main entry point for the Sokoban harness."""
    # Accept an optional argument: path to the corpus file
    if len(argv) > 2:
        print("Usage: python -m sokoban_harness [<path_to_corpus_file>]")
        exit(1)
    corpus_path = argv[1] if len(argv) == 2 else None
    result = batch.run(config, corpus_path=corpus_path)

    if result.passed != result.total:
        exit(1)
