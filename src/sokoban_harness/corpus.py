"""Loader for puzzle corpus files."""

import re
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

LEVEL_MARKER = re.compile(r";LEVEL (\d+)")


class CorpusError(ValueError):
    """Raised when a corpus cannot be used to start a batch."""


@dataclass(frozen=True)
class PuzzleInstance:
    """One puzzle to be handed to the solver."""

    identifier: int
    """The level number from the `;LEVEL <n>` marker, unique within a corpus."""

    raw_text: str
    """The puzzle board as text, carriage returns removed."""

    def solver_input(self) -> str:
        """The text written to the solver's stdin.

        The board ends with exactly one newline and is followed by the `;` terminator.
        """
        return self.raw_text.strip("\n") + "\n;\n"


def parse_corpus(text: str) -> list[PuzzleInstance]:
    """Split corpus text into puzzle instances.

    Each section starts at a `;LEVEL <n>` marker and runs up to the next marker or the end
    of the text.  Anything before the first marker is ignored.

    Raises:
        CorpusError: If two sections share a level number.
    """
    text = text.replace("\r", "")
    markers = list(LEVEL_MARKER.finditer(text))

    instances: list[PuzzleInstance] = []
    seen: set[int] = set()
    for i, marker in enumerate(markers):
        identifier = int(marker.group(1))
        if identifier in seen:
            raise CorpusError(f"Duplicate level number: {identifier}")
        seen.add(identifier)
        end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
        instances.append(PuzzleInstance(identifier, text[marker.end() : end]))
    return instances


def load_corpus(
    corpus_path: PathLike | str, *, max_instances: int | None = None
) -> list[PuzzleInstance]:
    """Load puzzle instances from the given corpus file.

    Args:
        corpus_path (PathLike): Path to the corpus file.
        max_instances (int | None): Keep only the first `max_instances` levels.  If None
            (default), keep all of them.

    Raises:
        FileNotFoundError: If the corpus file does not exist.
        CorpusError: If the corpus contains no levels.
    """
    path = Path(corpus_path)
    if not path.is_file():
        raise FileNotFoundError(f"Corpus file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        instances = parse_corpus(f.read())

    if not instances:
        raise CorpusError(f"No ';LEVEL <n>' sections found in {path}")
    if max_instances is not None:
        instances = instances[:max_instances]
    return instances
