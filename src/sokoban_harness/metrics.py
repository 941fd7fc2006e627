"""Board features used to group harness results."""

from dataclasses import asdict, dataclass, fields

import numpy as np

from sokoban_harness.board import Board, Cell


@dataclass(frozen=True)
class BoardMetrics:
    """Numeric features of a puzzle board."""

    rows: int
    cols: int
    free: int
    """Number of non-wall cells reachable from the player."""
    walls: int
    boxes: int
    targets: int
    tunnels: int
    """Reachable cells with walls on both sides along one axis and open along the other."""
    dead_ends: int
    """Reachable cells with walls on three sides."""

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


METRIC_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(BoardMetrics))


def _grid(board: Board) -> np.ndarray:
    return np.array(board.cells, dtype=np.int8).reshape((board.n_rows, board.n_cols))


def reachable_mask(board: Board) -> np.ndarray:
    """Boolean mask of the cells the player can reach, ignoring boxes."""
    grid = _grid(board)
    dims = grid.shape
    visited = np.zeros(dims, dtype=bool)

    # Depth-First Search (DFS) from the player, walls block
    stack = [board.player]
    while stack:
        r, c = stack.pop()
        if visited[r, c]:
            continue
        visited[r, c] = True
        for delta_r, delta_c in [(-1, 0), (1, 0), (0, -1), (0, 1)]:
            r_new, c_new = r + delta_r, c + delta_c
            if 0 <= r_new < dims[0] and 0 <= c_new < dims[1]:
                if grid[r_new, c_new] != Cell.WALL and not visited[r_new, c_new]:
                    stack.append((r_new, c_new))
    return visited


def wall_neighbours(board: Board) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Masks telling whether the cell above, below, left and right of each cell is a wall.

    Cells outside the grid count as walls.
    """
    walls = np.pad(_grid(board) == Cell.WALL, 1, constant_values=True)
    return walls[:-2, 1:-1], walls[2:, 1:-1], walls[1:-1, :-2], walls[1:-1, 2:]


def compute_metrics(board: Board) -> BoardMetrics:
    """Compute the features of a board."""
    grid = _grid(board)
    free = reachable_mask(board)
    up, down, left, right = wall_neighbours(board)
    n_walls = up.astype(int) + down + left + right
    tunnel = (left & right & ~up & ~down) | (up & down & ~left & ~right)
    return BoardMetrics(
        rows=board.n_rows,
        cols=board.n_cols,
        free=int(free.sum()),
        walls=int(np.count_nonzero(grid == Cell.WALL)),
        boxes=int(np.count_nonzero(np.isin(grid, [Cell.BOX, Cell.BOX_ON_TARGET]))),
        targets=int(
            np.count_nonzero(
                np.isin(grid, [Cell.TARGET, Cell.PLAYER_ON_TARGET, Cell.BOX_ON_TARGET])
            )
        ),
        tunnels=int(np.count_nonzero(free & tunnel)),
        dead_ends=int(np.count_nonzero(free & (n_walls == 3))),
    )
