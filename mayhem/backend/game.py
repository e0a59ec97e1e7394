"""Per-session game state machine."""

from __future__ import annotations

import random
import threading
import uuid
from collections.abc import Callable
from typing import Any

from .board import Board, in_bounds
from .combat import resolve_collision
from .errors import InvariantViolation
from .logging_config import get_logger
from .models import (
    EDGE_ORDER,
    MAX_PLAYERS,
    MIN_PLAYERS_TO_START,
    ActionResult,
    Edge,
    GameStatus,
    Monster,
    MonsterType,
    Player,
    is_on_edge,
)
from .movement import move_rejection
from .state import build_snapshot
from .turns import TurnSequencer


logger = get_logger(__name__)


def _new_monster_id() -> str:
    return str(uuid.uuid4())


class Game:
    """One match: board, rosters and turn state behind a single lock.

    Every public method takes the lock for its whole duration and returns an
    ``ActionResult``; rule violations are reported, never raised. Internal
    inconsistencies surface as ``InvariantViolation`` inside the engine and are
    turned into an ``internal_error`` result at this boundary.
    """

    def __init__(
        self,
        game_id: str,
        creator_id: str,
        rng: random.Random | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.id = game_id
        self.creator_id = creator_id
        self.status = GameStatus.WAITING
        self.winner: str | None = None
        self.players: dict[str, Player] = {}
        self.board = Board()
        self.sequencer = TurnSequencer(rng)
        self.available_edges: list[Edge] = list(EDGE_ORDER)
        self._monsters: dict[str, Monster] = {}
        self._new_id = id_factory if id_factory is not None else _new_monster_id
        self._lock = threading.Lock()

        self._add_player(creator_id)

    @property
    def player_order(self) -> list[str]:
        return self.sequencer.player_order

    @property
    def round(self) -> int:
        return self.sequencer.round

    @property
    def current_player(self) -> str | None:
        if self.status is not GameStatus.ACTIVE:
            return None
        return self.sequencer.current_player

    # Read helpers, callers hold the lock.

    def monster_at(self, x: int, y: int) -> Monster | None:
        monster_id = self.board.cell_at(x, y)
        if monster_id is None:
            return None
        monster = self._monsters.get(monster_id)
        if monster is None:
            raise InvariantViolation(f"board cell ({x}, {y}) references unknown monster {monster_id}")
        return monster

    def monster_by_id(self, monster_id: str) -> Monster | None:
        return self._monsters.get(monster_id)

    def is_player_eliminated(self, player_id: str) -> bool:
        player = self.players.get(player_id)
        return player is None or player.is_eliminated

    def monster_count(self, player_id: str) -> int:
        player = self.players.get(player_id)
        return len(player.monsters) if player is not None else 0

    # Public operations

    def join(self, player_id: str) -> ActionResult:
        with self._lock:
            return self._add_player(player_id)

    def leave(self, player_id: str) -> ActionResult:
        with self._lock:
            return self._guarded("leave", player_id, lambda: self._remove_player(player_id))

    def start(self, player_id: str | None = None) -> ActionResult:
        with self._lock:
            if self.status is not GameStatus.WAITING:
                return ActionResult.rejected("The game has already started.")
            if player_id is not None and player_id != self.creator_id:
                return ActionResult.rejected("Only the creator can start the game.")
            if len(self.player_order) < MIN_PLAYERS_TO_START:
                return ActionResult.rejected("The game needs at least 2 players to start.")

            self.status = GameStatus.ACTIVE
            self.sequencer.start()
            logger.info("Game started", game_id=self.id, player_order=list(self.player_order))
            return ActionResult.success(build_snapshot(self))

    def place_monster(self, player_id: str, monster_type: str, x: int, y: int) -> ActionResult:
        with self._lock:
            return self._guarded("place_monster", player_id, lambda: self._place(player_id, monster_type, x, y))

    def move_monster(self, player_id: str, monster_id: str, new_x: int, new_y: int) -> ActionResult:
        with self._lock:
            return self._guarded("move_monster", player_id, lambda: self._move(player_id, monster_id, new_x, new_y))

    def end_turn(self, player_id: str) -> ActionResult:
        with self._lock:
            rejection = self._turn_rejection(player_id)
            if rejection is not None:
                return rejection
            if not self.sequencer.advance(self.monster_count, self.is_player_eliminated):
                self._end_game(self._check_winner())
            else:
                logger.info("Turn ended", game_id=self.id, next_player=self.sequencer.current_player)
            return ActionResult.success(build_snapshot(self))

    def check_winner(self) -> str | None:
        with self._lock:
            return self._check_winner()

    def end_game(self, winner_id: str | None = None) -> ActionResult:
        with self._lock:
            if winner_id is not None and winner_id not in self.players:
                return ActionResult.rejected("Winner is not in this game.")
            self._end_game(winner_id)
            return ActionResult.success(build_snapshot(self))

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return build_snapshot(self)

    def verify_integrity(self) -> None:
        with self._lock:
            self._verify_integrity()

    # Internals, called with the lock held.

    def _guarded(self, action: str, player_id: str, operation: Callable[[], ActionResult]) -> ActionResult:
        try:
            return operation()
        except InvariantViolation as exc:
            logger.error(
                "Invariant violation",
                game_id=self.id,
                action=action,
                player_id=player_id,
                error=str(exc),
            )
            return ActionResult.internal_error()

    def _turn_rejection(self, player_id: str) -> ActionResult | None:
        if player_id not in self.players:
            return ActionResult.rejected("You are not in this game.")
        if self.status is not GameStatus.ACTIVE:
            return ActionResult.rejected("Game is not active.")
        if self.current_player != player_id:
            return ActionResult.rejected("Not your turn.")
        return None

    def _add_player(self, player_id: str) -> ActionResult:
        if self.status is not GameStatus.WAITING:
            return ActionResult.rejected("Game already started or finished.")
        if len(self.player_order) >= MAX_PLAYERS:
            return ActionResult.rejected("Game is full.")
        if player_id in self.players:
            return ActionResult.rejected("Player already in game.")
        if not self.available_edges:
            logger.error("No available edges for new player", game_id=self.id, player_id=player_id)
            return ActionResult.internal_error("Internal error: No available edges.")

        edge = self.available_edges.pop(0)
        self.players[player_id] = Player(id=player_id, edge=edge)
        self.sequencer.add(player_id)
        self.sequencer.reset_actions(player_id)
        logger.info("Player joined", game_id=self.id, player_id=player_id, edge=edge.value)
        return ActionResult.success(build_snapshot(self))

    def _remove_player(self, player_id: str) -> ActionResult:
        player = self.players.get(player_id)
        if player is None:
            return ActionResult.not_found("Player not in this game.")

        self.available_edges.append(player.edge)
        self.available_edges.sort(key=EDGE_ORDER.index)

        for monster in player.monsters:
            if self.board.cell_at(monster.x, monster.y) == monster.id:
                self.board.clear(monster.x, monster.y)
            self._monsters.pop(monster.id, None)
        player.monsters.clear()

        was_current = self.sequencer.remove(player_id)
        del self.players[player_id]
        logger.info("Player removed", game_id=self.id, player_id=player_id)
        if player_id == self.creator_id and self.player_order:
            self.creator_id = self.player_order[0]
            logger.info("Host handed over", game_id=self.id, player_id=self.creator_id)

        if not self.player_order:
            self._end_game(None)
        elif self.status is GameStatus.ACTIVE:
            winner = self._check_winner()
            if winner is not None:
                self._end_game(winner)
            elif len(self.player_order) < MIN_PLAYERS_TO_START:
                self._end_game(None)
            elif was_current:
                if self.sequencer.skip_eliminated(self.is_player_eliminated):
                    self.sequencer.reset_actions(self.sequencer.current_player)
                else:
                    self._end_game(None)
        return ActionResult.success(build_snapshot(self))

    def _place(self, player_id: str, monster_type: str, x: int, y: int) -> ActionResult:
        rejection = self._turn_rejection(player_id)
        if rejection is not None:
            return rejection
        actions = self.sequencer.actions_for(player_id)
        if actions.placed_monster:
            return ActionResult.rejected("You have already placed a monster this turn.")
        try:
            kind = MonsterType(monster_type)
        except ValueError:
            return ActionResult.rejected("Invalid monster type.")
        if not self._is_valid_placement(player_id, x, y):
            return ActionResult.rejected("Invalid position to place monster (must be on your edge and empty).")

        monster = Monster(id=self._new_id(), type=kind, x=x, y=y, owner=player_id)
        self.board.place(monster.id, x, y)
        self._monsters[monster.id] = monster
        self.players[player_id].monsters.append(monster)
        actions.placed_monster = True
        actions.placed_monster_id = monster.id

        logger.info(
            "Monster placed",
            game_id=self.id,
            player_id=player_id,
            monster_id=monster.id,
            monster_type=kind.value,
            x=x,
            y=y,
        )
        return ActionResult.success(build_snapshot(self), reason=f"Monster {kind.value} placed at ({x}, {y}).")

    def _is_valid_placement(self, player_id: str, x: int, y: int) -> bool:
        player = self.players.get(player_id)
        if player is None or not in_bounds(x, y):
            return False
        if self.board.cell_at(x, y) is not None:
            return False
        return is_on_edge(player.edge, x, y)

    def _move(self, player_id: str, monster_id: str, new_x: int, new_y: int) -> ActionResult:
        rejection = self._turn_rejection(player_id)
        if rejection is not None:
            return rejection
        monster = self.players[player_id].find_monster(monster_id)
        if monster is None:
            return ActionResult.not_found("Monster not found.")
        reason = move_rejection(self, player_id, monster, new_x, new_y)
        if reason is not None:
            return ActionResult.rejected(reason)

        defender = self.monster_at(new_x, new_y)
        losers = resolve_collision(monster, defender) if defender is not None else []
        for loser in losers:
            self._check_removable(loser)
        if monster not in losers:
            self._check_on_board(monster)

        old_x, old_y = monster.x, monster.y
        self.sequencer.actions_for(player_id).moved_monsters.add(monster.id)
        if defender is not None:
            logger.info(
                "Combat",
                game_id=self.id,
                x=new_x,
                y=new_y,
                arriving=monster.type.value,
                arriving_owner=monster.owner,
                defending=defender.type.value,
                defending_owner=defender.owner,
            )
            if defender in losers:
                self._remove_monster(defender)
        if monster in losers:
            self._remove_monster(monster)
        else:
            self.board.move(monster.id, old_x, old_y, new_x, new_y)
            monster.x, monster.y = new_x, new_y
            logger.info(
                "Monster moved",
                game_id=self.id,
                player_id=player_id,
                monster_id=monster.id,
                from_x=old_x,
                from_y=old_y,
                to_x=new_x,
                to_y=new_y,
            )

        if losers:
            self._settle_after_combat()
        return ActionResult.success(build_snapshot(self), reason=f"Monster moved to ({new_x}, {new_y}).")

    def _check_on_board(self, monster: Monster) -> None:
        if self.board.cell_at(monster.x, monster.y) != monster.id:
            raise InvariantViolation(f"monster {monster.id} is not on the board at ({monster.x}, {monster.y})")

    def _check_removable(self, monster: Monster) -> Player:
        player = self.players.get(monster.owner)
        if player is None or player.find_monster(monster.id) is None:
            raise InvariantViolation(f"monster {monster.id} is missing from its owner's roster")
        self._check_on_board(monster)
        return player

    def _remove_monster(self, monster: Monster) -> None:
        player = self._check_removable(monster)

        self.board.clear(monster.x, monster.y)
        self._monsters.pop(monster.id, None)
        player.monsters.remove(monster)
        player.monsters_lost += 1
        logger.info(
            "Monster lost",
            game_id=self.id,
            player_id=player.id,
            monster_type=monster.type.value,
            monsters_lost=player.monsters_lost,
        )
        if player.is_eliminated:
            logger.info("Player eliminated", game_id=self.id, player_id=player.id)

    def _settle_after_combat(self) -> None:
        winner = self._check_winner()
        if winner is not None:
            self._end_game(winner)
            return
        if not any(not self.is_player_eliminated(pid) for pid in self.player_order):
            self._end_game(None)

    def _check_winner(self) -> str | None:
        remaining = [pid for pid in self.player_order if not self.is_player_eliminated(pid)]
        if len(remaining) == 1 and len(self.player_order) > 1:
            return remaining[0]
        return None

    def _end_game(self, winner_id: str | None) -> None:
        if self.status is GameStatus.FINISHED:
            return
        self.status = GameStatus.FINISHED
        self.winner = winner_id
        logger.info("Game finished", game_id=self.id, winner=winner_id)

    def _verify_integrity(self) -> None:
        seen: set[str] = set()
        for x, y, monster_id in self.board.occupied():
            monster = self._monsters.get(monster_id)
            if monster is None:
                raise InvariantViolation(f"cell ({x}, {y}) references unknown monster {monster_id}")
            if (monster.x, monster.y) != (x, y):
                raise InvariantViolation(f"monster {monster_id} stored at ({monster.x}, {monster.y}) but found at ({x}, {y})")
            owner = self.players.get(monster.owner)
            if owner is None or owner.find_monster(monster_id) is not monster:
                raise InvariantViolation(f"monster {monster_id} is missing from its owner's roster")
            seen.add(monster_id)
        for player in self.players.values():
            for monster in player.monsters:
                if monster.id not in seen:
                    raise InvariantViolation(f"monster {monster.id} of {player.id} is not on the board")
        if seen != set(self._monsters):
            raise InvariantViolation("monster index and board disagree")
