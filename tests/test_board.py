import pytest

from sokoban_harness.board import Board, Cell, Direction, ParseError, ParseErrorKind, parse_board

from conftest import CORRIDOR


def test_parse_corridor():
    board = parse_board(CORRIDOR)
    assert (board.n_rows, board.n_cols) == (3, 5)
    assert board.player == (1, 1)
    assert board[1, 1] == Cell.PLAYER
    assert board[1, 2] == Cell.BOX
    assert board[1, 3] == Cell.TARGET
    assert board[0, 0] == Cell.WALL


def test_blank_lines_and_carriage_returns_are_dropped():
    board = parse_board("\r\n\n#####\r\n#+$ #\r\n#####\n\n")
    assert board.n_rows == 3
    assert board.player == (1, 1)
    assert board[1, 1] == Cell.PLAYER_ON_TARGET


def test_whitespace_only_row_inside_board_is_kept():
    board = parse_board("  \n#@#\n   \n# #\n \n")
    assert (board.n_rows, board.n_cols) == (3, 3)
    assert str(board) == "#@#\n   \n# #"
    assert board[1, 1] == Cell.FLOOR


def test_short_rows_are_padded_with_floor():
    board = parse_board("####\n#@\n####")
    assert board.n_cols == 4
    assert board[1, 2] == Cell.FLOOR
    assert board[1, 3] == Cell.FLOOR


def test_str_renders_puzzle_text():
    assert str(parse_board(CORRIDOR)) == CORRIDOR


def test_no_player():
    with pytest.raises(ParseError) as exc:
        parse_board("#####\n# $.#\n#####")
    assert exc.value.kind is ParseErrorKind.NO_PLAYER


@pytest.mark.parametrize("text", ["#@ @#", "#@ +#", "#+\n#@"])
def test_multiple_players(text):
    with pytest.raises(ParseError) as exc:
        parse_board(text)
    assert exc.value.kind is ParseErrorKind.MULTIPLE_PLAYERS


@pytest.mark.parametrize("text", ["", "\n\n", "#@x#"])
def test_malformed_text(text):
    with pytest.raises(ParseError) as exc:
        parse_board(text)
    assert exc.value.kind is ParseErrorKind.MALFORMED_TEXT


def test_copy_is_independent():
    board = parse_board(CORRIDOR)
    other = board.copy()
    assert other == board
    other[1, 3] = Cell.BOX_ON_TARGET
    assert board[1, 3] == Cell.TARGET
    assert other != board


def test_board_rejects_wrong_cell_count():
    with pytest.raises(ValueError):
        Board([Cell.PLAYER, Cell.FLOOR], 2, 2, (0, 0))


def test_direction_tokens():
    assert [d.token for d in Direction] == ["U", "R", "D", "L"]
    assert Direction.from_token("L") is Direction.LEFT
    assert Direction.DOWN.offset == (1, 0)
    with pytest.raises(KeyError):
        Direction.from_token("u")
