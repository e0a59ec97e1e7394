"""Fixed-size grid holding monster ids."""

from __future__ import annotations

from collections.abc import Iterator

from .errors import InvariantViolation
from .models import BOARD_SIZE


def in_bounds(x: int, y: int) -> bool:
    return 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE


class Board:
    """10x10 grid of optional monster ids, indexed as ``cells[y][x]``.

    The board only enforces structural integrity: a cell holds at most one id.
    Whether a placement or move is allowed is decided by the game.
    """

    def __init__(self) -> None:
        self._cells: list[list[str | None]] = [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]

    def _check(self, x: int, y: int) -> None:
        if not in_bounds(x, y):
            raise IndexError(f"cell ({x}, {y}) is outside the board")

    def cell_at(self, x: int, y: int) -> str | None:
        self._check(x, y)
        return self._cells[y][x]

    def place(self, monster_id: str, x: int, y: int) -> None:
        self._check(x, y)
        occupant = self._cells[y][x]
        if occupant is not None:
            raise InvariantViolation(f"cell ({x}, {y}) already holds {occupant}")
        self._cells[y][x] = monster_id

    def clear(self, x: int, y: int) -> str | None:
        self._check(x, y)
        occupant = self._cells[y][x]
        self._cells[y][x] = None
        return occupant

    def move(self, monster_id: str, from_x: int, from_y: int, to_x: int, to_y: int) -> None:
        self._check(from_x, from_y)
        self._check(to_x, to_y)
        if self._cells[from_y][from_x] != monster_id:
            raise InvariantViolation(f"{monster_id} is not at ({from_x}, {from_y})")
        occupant = self._cells[to_y][to_x]
        if occupant is not None:
            raise InvariantViolation(f"cell ({to_x}, {to_y}) already holds {occupant}")
        self._cells[from_y][from_x] = None
        self._cells[to_y][to_x] = monster_id

    def occupied(self) -> Iterator[tuple[int, int, str]]:
        for y, row in enumerate(self._cells):
            for x, monster_id in enumerate(row):
                if monster_id is not None:
                    yield x, y, monster_id

    def rows(self) -> list[list[str | None]]:
        return [list(row) for row in self._cells]
