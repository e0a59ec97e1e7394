"""Movement legality: range, direction and path obstruction."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from .board import in_bounds
from .models import Monster

if TYPE_CHECKING:
    from .game import Game


MAX_DIAGONAL_STEP = 2


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def walk_path(from_x: int, from_y: int, to_x: int, to_y: int) -> Iterator[tuple[int, int]]:
    """Yield every square after the origin up to and including the destination.

    Each step advances every axis that has not yet reached its target, so
    diagonal steps move both coordinates together.
    """
    step_x = _sign(to_x - from_x)
    step_y = _sign(to_y - from_y)
    x, y = from_x, from_y
    while (x, y) != (to_x, to_y):
        if x != to_x:
            x += step_x
        if y != to_y:
            y += step_y
        yield x, y


def move_rejection(game: Game, player_id: str, monster: Monster, dest_x: int, dest_y: int) -> str | None:
    """Return why a move is illegal, or ``None`` when it is allowed."""
    actions = game.sequencer.actions_for(player_id)
    if actions.placed_monster_id == monster.id:
        return "You cannot move the monster you just placed this turn."
    if monster.id in actions.moved_monsters:
        return "This monster has already moved this turn."

    if not in_bounds(dest_x, dest_y):
        return "Destination is outside the board."

    dx = abs(dest_x - monster.x)
    dy = abs(dest_y - monster.y)
    if dx == 0 and dy == 0:
        return "The monster must move at least one square."
    if dx > 0 and dy > 0 and (dx > MAX_DIAGONAL_STEP or dy > MAX_DIAGONAL_STEP):
        return "Diagonal moves are limited to 2 squares."

    for x, y in walk_path(monster.x, monster.y, dest_x, dest_y):
        occupant = game.monster_at(x, y)
        if (x, y) == (dest_x, dest_y):
            if occupant is not None and occupant.owner == player_id:
                return "You cannot land on your own monster."
        elif occupant is not None and occupant.owner != player_id:
            return "The path is blocked by an opponent's monster."
    return None


def is_legal_move(game: Game, player_id: str, monster: Monster, dest_x: int, dest_y: int) -> bool:
    return move_rejection(game, player_id, monster, dest_x, dest_y) is None
