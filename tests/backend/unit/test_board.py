import pytest

from mayhem.backend.board import Board, in_bounds
from mayhem.backend.errors import InvariantViolation


def test_cell_at_returns_none_for_empty_board() -> None:
    board = Board()

    assert board.cell_at(0, 0) is None
    assert board.cell_at(9, 9) is None
    assert list(board.occupied()) == []


@pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (10, 0), (0, 10)])
def test_cell_at_rejects_out_of_range_coordinates(x: int, y: int) -> None:
    board = Board()

    assert in_bounds(x, y) is False
    with pytest.raises(IndexError):
        board.cell_at(x, y)


def test_place_and_clear_cell() -> None:
    board = Board()

    board.place("m1", 3, 7)

    assert board.cell_at(3, 7) == "m1"
    assert board.rows()[7][3] == "m1"
    assert board.clear(3, 7) == "m1"
    assert board.cell_at(3, 7) is None


def test_place_into_occupied_cell_is_an_invariant_violation() -> None:
    board = Board()
    board.place("m1", 0, 0)

    with pytest.raises(InvariantViolation):
        board.place("m2", 0, 0)

    assert board.cell_at(0, 0) == "m1"


def test_move_vacates_origin_and_occupies_destination() -> None:
    board = Board()
    board.place("m1", 2, 2)

    board.move("m1", 2, 2, 4, 4)

    assert board.cell_at(2, 2) is None
    assert board.cell_at(4, 4) == "m1"
    assert list(board.occupied()) == [(4, 4, "m1")]


def test_move_requires_monster_at_origin_and_free_destination() -> None:
    board = Board()
    board.place("m1", 1, 1)
    board.place("m2", 1, 2)

    with pytest.raises(InvariantViolation):
        board.move("m1", 5, 5, 6, 6)
    with pytest.raises(InvariantViolation):
        board.move("m1", 1, 1, 1, 2)

    assert board.cell_at(1, 1) == "m1"
    assert board.cell_at(1, 2) == "m2"


def test_rows_returns_a_copy() -> None:
    board = Board()
    rows = board.rows()

    rows[0][0] = "tampered"

    assert board.cell_at(0, 0) is None
