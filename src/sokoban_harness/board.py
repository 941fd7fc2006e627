"""Classes and functions for representing the Sokoban board."""

from array import array
from enum import Enum, IntEnum
from typing import Iterable


class Cell(IntEnum):
    """Cell types, in the order used by the solver's own board encoding."""

    FLOOR = 0
    TARGET = 1
    WALL = 2
    PLAYER = 3
    PLAYER_ON_TARGET = 4
    BOX = 5
    BOX_ON_TARGET = 6

    @property
    def char(self) -> str:
        """The character used for this cell in puzzle text."""
        return CELL_CHARS[self]

    @property
    def has_target(self) -> bool:
        return self in (Cell.TARGET, Cell.PLAYER_ON_TARGET, Cell.BOX_ON_TARGET)

    @property
    def has_box(self) -> bool:
        return self in (Cell.BOX, Cell.BOX_ON_TARGET)

    @property
    def has_player(self) -> bool:
        return self in (Cell.PLAYER, Cell.PLAYER_ON_TARGET)


CELL_CHARS: dict[Cell, str] = {
    Cell.FLOOR: " ",
    Cell.TARGET: ".",
    Cell.WALL: "#",
    Cell.PLAYER: "@",
    Cell.PLAYER_ON_TARGET: "+",
    Cell.BOX: "$",
    Cell.BOX_ON_TARGET: "*",
}
CHAR_CELLS: dict[str, Cell] = {ch: cell for cell, ch in CELL_CHARS.items()}


class Direction(IntEnum):
    """Enumeration for player moves."""

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def offset(self) -> tuple[int, int]:
        """(row, col) delta of a single step in this direction."""
        return _OFFSETS[self]

    @property
    def token(self) -> str:
        return "URDL"[self]

    @classmethod
    def from_token(cls, token: str) -> "Direction":
        """Look up a direction by its move token (raises KeyError if unknown)."""
        return _TOKENS[token]


_OFFSETS = {
    Direction.UP: (-1, 0),
    Direction.RIGHT: (0, 1),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
}
_TOKENS = {d.token: d for d in Direction}


class ParseErrorKind(Enum):
    """Reasons a puzzle text cannot be turned into a Board."""

    NO_PLAYER = "no player"
    MULTIPLE_PLAYERS = "multiple players"
    MALFORMED_TEXT = "malformed text"


class ParseError(ValueError):
    """Raised when puzzle text cannot be parsed into a Board."""

    def __init__(self, kind: ParseErrorKind, details: str = "") -> None:
        self.kind = kind
        self.details = details
        super().__init__(f"{kind.value}: {details}" if details else kind.value)


class Board:
    """Store a 2D grid of cells as a 1D array, plus the player position.

    Cells are addressed by (row, col).  Boards are treated as values: the
    replay functions never modify a board in place, they build a new one.
    """

    def __init__(
        self, cells: Iterable[int], rows: int, cols: int, player: tuple[int, int]
    ) -> None:
        self.cells = array("b", cells)
        self.n_rows = rows
        self.n_cols = cols
        self.player = player
        if len(self.cells) != rows * cols:
            raise ValueError(f"Expected {rows * cols} cells, got {len(self.cells)}.")

    def copy(self) -> "Board":
        """Generate a copy of the board."""
        return Board(self.cells.__copy__(), self.n_rows, self.n_cols, self.player)

    def __str__(self) -> str:
        """Returns the board as puzzle text, one line per row."""
        return "\n".join(
            "".join(Cell(self.cells[row * self.n_cols + col]).char for col in range(self.n_cols))
            for row in range(self.n_rows)
        )

    def __repr__(self) -> str:
        return f"Board({self.n_rows}x{self.n_cols}, player={self.player})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self.n_rows == other.n_rows
            and self.n_cols == other.n_cols
            and self.player == other.player
            and self.cells == other.cells
        )

    def __hash__(self) -> int:
        return hash((self.n_rows, self.n_cols, self.player, self.cells.tobytes()))

    def __getitem__(self, idx: tuple[int, int]) -> Cell:
        """Get cell content by (row, col) index."""
        row, col = idx
        return Cell(self.cells[row * self.n_cols + col])

    def __setitem__(self, idx: tuple[int, int], value: Cell) -> None:
        """Set cell content by (row, col) index."""
        row, col = idx
        self.cells[row * self.n_cols + col] = value

    def on_board(self, row: int, col: int) -> bool:
        return 0 <= row < self.n_rows and 0 <= col < self.n_cols

    def count(self, *kinds: Cell) -> int:
        """Count the cells of any of the given types."""
        return sum(1 for c in self.cells if c in kinds)


def parse_board(raw_text: str) -> Board:
    """Parse puzzle text into a Board.

    Empty lines are dropped, as are whitespace-only lines before the first and after the
    last row.  Whitespace-only lines inside the board are kept as rows of floor.  Rows
    shorter than the widest row are padded with floor.

    Args:
        raw_text (str): The puzzle text, using the standard Sokoban characters.

    Raises:
        ParseError: If the text is empty, contains unknown characters, or does not have
            exactly one player.
    """
    lines = [line for line in raw_text.replace("\r", "").split("\n") if line]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise ParseError(ParseErrorKind.MALFORMED_TEXT, "empty board")

    n_rows = len(lines)
    n_cols = max(len(line) for line in lines)
    cells = [Cell.FLOOR] * (n_rows * n_cols)
    players: list[tuple[int, int]] = []

    for row, line in enumerate(lines):
        for col, ch in enumerate(line):
            cell = CHAR_CELLS.get(ch)
            if cell is None:
                raise ParseError(
                    ParseErrorKind.MALFORMED_TEXT,
                    f"unknown character {ch!r} at row {row}, column {col}",
                )
            if cell.has_player:
                players.append((row, col))
            cells[row * n_cols + col] = cell

    if not players:
        raise ParseError(ParseErrorKind.NO_PLAYER)
    if len(players) > 1:
        raise ParseError(
            ParseErrorKind.MULTIPLE_PLAYERS, ", ".join(f"{r},{c}" for r, c in players)
        )

    return Board(cells, n_rows, n_cols, players[0])
