"""Dispatch of in-game player actions onto a game."""

from __future__ import annotations

from typing import Any

from .game import Game
from .logging_config import get_logger
from .models import ActionResult


logger = get_logger(__name__)

PLACE_MONSTER = "place_monster"
MOVE_MONSTER = "move_monster"
END_TURN = "end_turn"


def apply_game_action(game: Game, player_id: str, action: dict[str, Any]) -> ActionResult:
    """Validate the action payload and apply it to ``game`` for ``player_id``."""
    action_type = str(action.get("action", "")).lower()
    if action_type == PLACE_MONSTER:
        result = _apply_place_monster(game=game, player_id=player_id, action=action)
    elif action_type == MOVE_MONSTER:
        result = _apply_move_monster(game=game, player_id=player_id, action=action)
    elif action_type == END_TURN:
        result = game.end_turn(player_id)
    else:
        logger.warning("Unknown game action received", game_id=game.id, player_id=player_id, action=action_type)
        return ActionResult.rejected("Unknown action type.")

    if result.ok:
        logger.info("Action succeeded", game_id=game.id, player_id=player_id, action=action_type)
    else:
        logger.debug(
            "Action rejected",
            game_id=game.id,
            player_id=player_id,
            action=action_type,
            kind=result.kind,
            reason=result.reason,
        )
    return result


def _coordinate(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _apply_place_monster(game: Game, player_id: str, action: dict[str, Any]) -> ActionResult:
    monster_type = action.get("monsterType")
    x = _coordinate(action.get("x"))
    y = _coordinate(action.get("y"))
    if not isinstance(monster_type, str) or monster_type == "" or x is None or y is None:
        return ActionResult.rejected("Invalid placement data.")
    return game.place_monster(player_id, monster_type.lower(), x, y)


def _apply_move_monster(game: Game, player_id: str, action: dict[str, Any]) -> ActionResult:
    monster_id = action.get("monsterId")
    new_x = _coordinate(action.get("newX"))
    new_y = _coordinate(action.get("newY"))
    if not isinstance(monster_id, str) or monster_id == "" or new_x is None or new_y is None:
        return ActionResult.rejected("Invalid movement data.")
    return game.move_monster(player_id, monster_id, new_x, new_y)
