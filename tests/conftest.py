import sys
import textwrap

import pytest

from sokoban_harness.corpus import PuzzleInstance

# Player, box and target in a corridor: "R" solves it.
CORRIDOR = "#####\n#@$.#\n#####"

# 3x3 level without walls, solved by "RD".
SMALL = "@  \n $ \n . "


def python_solver(code: str) -> list[str]:
    """argv running the given Python source as a fake solver."""
    return [sys.executable, "-c", textwrap.dedent(code)]


def answering_solver(answer: str) -> list[str]:
    """A fake solver that reads the puzzle and prints a fixed answer."""
    return python_solver(
        f"""
        import sys
        sys.stdin.read()
        print({answer!r})
        """
    )


@pytest.fixture
def corridor() -> PuzzleInstance:
    return PuzzleInstance(1, "\n" + CORRIDOR + "\n")
