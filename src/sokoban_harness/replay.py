"""Replay a proposed move string against the Sokoban rules.

All functions here are pure: they take a board and return a new one, so that
concurrent verifications never share mutable state.
"""

from enum import Enum

from sokoban_harness.board import Board, Cell, Direction


class InvalidMoveKind(Enum):
    """Reasons a move cannot be replayed."""

    BLOCKED_BY_WALL = "blocked by wall"
    BLOCKED_PUSH = "blocked push"
    UNKNOWN_TOKEN = "unknown token"


class InvalidMove(ValueError):
    """Raised when a move in a solution cannot be performed."""

    def __init__(self, kind: InvalidMoveKind, details: str = "", *, position: int | None = None):
        self.kind = kind
        self.details = details
        self.position = position
        msg = kind.value
        if position is not None:
            msg += f" at move {position}"
        if details:
            msg += f": {details}"
        super().__init__(msg)


def _vacated(cell: Cell) -> Cell:
    """What a cell becomes once the player or box standing on it leaves."""
    return Cell.TARGET if cell.has_target else Cell.FLOOR


def step(board: Board, direction: Direction) -> Board:
    """Perform a single move and return the resulting board.

    Args:
        board (Board): The board before the move (left unchanged).
        direction (Direction): Direction to move the player in.

    Raises:
        InvalidMove: If the player would walk into a wall (the grid edge counts as one),
            or push a box into a wall, another box, or off the grid.
    """
    d_row, d_col = direction.offset
    p_row, p_col = board.player
    t_row, t_col = p_row + d_row, p_col + d_col

    if not board.on_board(t_row, t_col) or board[t_row, t_col] == Cell.WALL:
        raise InvalidMove(InvalidMoveKind.BLOCKED_BY_WALL, f"moving {direction.name}")

    new_board = board.copy()
    target = board[t_row, t_col]

    if target.has_box:
        b_row, b_col = t_row + d_row, t_col + d_col
        if not board.on_board(b_row, b_col):
            raise InvalidMove(InvalidMoveKind.BLOCKED_PUSH, f"pushing {direction.name}")
        dest = board[b_row, b_col]
        if dest == Cell.FLOOR:
            new_board[b_row, b_col] = Cell.BOX
        elif dest == Cell.TARGET:
            new_board[b_row, b_col] = Cell.BOX_ON_TARGET
        else:
            raise InvalidMove(InvalidMoveKind.BLOCKED_PUSH, f"pushing {direction.name}")
        target = _vacated(target)

    # Target is now FLOOR or TARGET
    new_board[t_row, t_col] = Cell.PLAYER_ON_TARGET if target.has_target else Cell.PLAYER
    new_board[p_row, p_col] = _vacated(board[p_row, p_col])
    new_board.player = (t_row, t_col)
    return new_board


def is_solved(board: Board) -> bool:
    """Returns whether every target on the board is covered by a box.

    Scans the whole board on every call.
    """
    return not any(c in (Cell.TARGET, Cell.PLAYER_ON_TARGET) for c in board.cells)


def go_by_string(board: Board, moves: str) -> Board:
    """Apply a string of move tokens (U, D, L, R) left to right.

    Whitespace between tokens is ignored.  Replay stops at the first invalid move.

    Args:
        board (Board): The starting board (left unchanged).
        moves (str): The move string produced by a solver.

    Returns:
        The board after all moves were performed.

    Raises:
        InvalidMove: On the first move that cannot be performed, or on a character that is
            not a move token.
    """
    for position, token in enumerate(moves):
        if token.isspace():
            continue
        try:
            direction = Direction.from_token(token)
        except KeyError:
            raise InvalidMove(
                InvalidMoveKind.UNKNOWN_TOKEN, repr(token), position=position
            ) from None
        try:
            board = step(board, direction)
        except InvalidMove as e:
            raise InvalidMove(e.kind, e.details, position=position) from None
    return board


def verify(board: Board, moves: str) -> bool:
    """Replay the moves and return whether they solve the board."""
    return is_solved(go_by_string(board, moves))
