"""Registry of live games, connected players and their statistics."""

from __future__ import annotations

import random
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from .engine import apply_game_action
from .game import Game
from .logging_config import get_logger
from .models import MAX_PLAYERS, ActionResult, GameOverEvent, GameStatus, PlayerRecord
from .state import build_lobby_entry


logger = get_logger(__name__)


class GameStore(Protocol):
    def register_player(self, player_id: str) -> PlayerRecord:
        """Track a newly connected player."""

    def unregister_player(self, player_id: str) -> ActionResult | None:
        """Forget a disconnected player, leaving their game if they were in one."""

    def player_stats(self, player_id: str) -> dict[str, int] | None:
        """Return wins and losses for a connected player."""

    def global_stats(self) -> dict[str, int]:
        """Return games played and connected player counts."""

    def create_game(self, creator_id: str) -> ActionResult:
        """Create a waiting game with ``creator_id`` as its first player."""

    def join_game(self, game_id: str, player_id: str) -> ActionResult:
        """Add a player to a waiting game."""

    def start_game(self, player_id: str) -> ActionResult:
        """Start the caller's game."""

    def apply_action(self, player_id: str, action: dict[str, Any]) -> ActionResult:
        """Apply an in-game action for the caller's game."""

    def leave(self, player_id: str) -> ActionResult | None:
        """Remove the player from their game, if any."""

    def get_game(self, game_id: str) -> Game | None:
        """Return the game with the given id."""

    def game_of(self, player_id: str) -> Game | None:
        """Return the game the player currently belongs to."""

    def available_games(self) -> list[dict[str, Any]]:
        """Return waiting games that still have room."""

    def record_game_over(self, game_id: str) -> GameOverEvent | None:
        """Update statistics once for a finished game."""

    def evict_expired(self, now: float | None = None) -> list[str]:
        """Drop finished games whose grace period elapsed."""


@dataclass
class InMemoryGameStore:
    finished_grace_seconds: float = 10.0
    clock: Callable[[], float] = time.monotonic
    rng_factory: Callable[[], random.Random] | None = None

    def __post_init__(self) -> None:
        self._games: dict[str, Game] = {}
        self._players: dict[str, PlayerRecord] = {}
        self._finished_at: dict[str, float] = {}
        self._total_games_played = 0
        self._lock = threading.Lock()

    # Players

    def register_player(self, player_id: str) -> PlayerRecord:
        with self._lock:
            record = self._players.get(player_id)
            if record is None:
                record = PlayerRecord(id=player_id)
                self._players[player_id] = record
            logger.info("Player connected", player_id=player_id, connected=len(self._players))
            return record

    def unregister_player(self, player_id: str) -> ActionResult | None:
        result = self.leave(player_id)
        with self._lock:
            self._players.pop(player_id, None)
        logger.info("Player disconnected", player_id=player_id)
        return result

    def player_stats(self, player_id: str) -> dict[str, int] | None:
        with self._lock:
            record = self._players.get(player_id)
            if record is None:
                return None
            return {"wins": record.wins, "losses": record.losses}

    def global_stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "totalGamesPlayed": self._total_games_played,
                "totalPlayersConnected": len(self._players),
            }

    # Games

    def get_game(self, game_id: str) -> Game | None:
        with self._lock:
            return self._games.get(game_id)

    def game_of(self, player_id: str) -> Game | None:
        with self._lock:
            return self._current_game(player_id)

    def create_game(self, creator_id: str) -> ActionResult:
        with self._lock:
            record = self._record(creator_id)
            if self._current_game(creator_id) is not None:
                return ActionResult.rejected("You are already in a game.")
            game_id = str(uuid.uuid4())
            rng = self.rng_factory() if self.rng_factory is not None else None
            game = Game(game_id=game_id, creator_id=creator_id, rng=rng)
            self._games[game_id] = game
            record.game_id = game_id
            logger.info("Game created", game_id=game_id, player_id=creator_id)
            return ActionResult.success(game.snapshot())

    def join_game(self, game_id: str, player_id: str) -> ActionResult:
        with self._lock:
            record = self._record(player_id)
            if self._current_game(player_id) is not None:
                return ActionResult.rejected("You are already in a game.")
            game = self._games.get(game_id)
            if game is None:
                return ActionResult.not_found("Game not found.")
            result = game.join(player_id)
            if result.ok:
                record.game_id = game_id
            return result

    def start_game(self, player_id: str) -> ActionResult:
        game = self.game_of(player_id)
        if game is None:
            return ActionResult.not_found("You are not in a game.")
        return game.start(player_id)

    def apply_action(self, player_id: str, action: dict[str, Any]) -> ActionResult:
        game = self.game_of(player_id)
        if game is None:
            return ActionResult.not_found("You are not in a game.")
        return apply_game_action(game=game, player_id=player_id, action=action)

    def leave(self, player_id: str) -> ActionResult | None:
        with self._lock:
            record = self._players.get(player_id)
            if record is None or record.game_id is None:
                return None
            game = self._games.get(record.game_id)
            record.game_id = None
            if game is None:
                return None
            result = game.leave(player_id)
            if not game.player_order:
                self._drop_game(game.id)
                logger.info("Empty game removed", game_id=game.id)
            return result

    def available_games(self) -> list[dict[str, Any]]:
        with self._lock:
            games = list(self._games.values())
        return [
            build_lobby_entry(game, MAX_PLAYERS)
            for game in games
            if game.status is GameStatus.WAITING and len(game.player_order) < MAX_PLAYERS
        ]

    def record_game_over(self, game_id: str) -> GameOverEvent | None:
        with self._lock:
            game = self._games.get(game_id)
            if game is None or game.status is not GameStatus.FINISHED or game_id in self._finished_at:
                return None
            self._finished_at[game_id] = self.clock()
            self._total_games_played += 1

            final_state = game.snapshot()
            player_ids = list(final_state["players"])
            for player_id in player_ids:
                record = self._players.get(player_id)
                if record is None:
                    logger.info("No connected player to update stats for", game_id=game_id, player_id=player_id)
                    continue
                if player_id == game.winner:
                    record.wins += 1
                else:
                    record.losses += 1
            logger.info(
                "Game over recorded",
                game_id=game_id,
                winner=game.winner,
                total_games_played=self._total_games_played,
            )
            return GameOverEvent(
                game_id=game_id,
                winner_id=game.winner,
                player_ids=player_ids,
                final_state=final_state,
            )

    def evict_expired(self, now: float | None = None) -> list[str]:
        current = self.clock() if now is None else now
        with self._lock:
            expired = [
                game_id
                for game_id, finished_at in self._finished_at.items()
                if current - finished_at >= self.finished_grace_seconds
            ]
            for game_id in expired:
                for record in self._players.values():
                    if record.game_id == game_id:
                        record.game_id = None
                self._drop_game(game_id)
                logger.info("Finished game removed", game_id=game_id)
            return expired

    # Internals, called with the lock held.

    def _record(self, player_id: str) -> PlayerRecord:
        record = self._players.get(player_id)
        if record is None:
            record = PlayerRecord(id=player_id)
            self._players[player_id] = record
        return record

    def _current_game(self, player_id: str) -> Game | None:
        record = self._players.get(player_id)
        if record is None or record.game_id is None:
            return None
        game = self._games.get(record.game_id)
        if game is None or game.status is GameStatus.FINISHED:
            return None
        return game

    def _drop_game(self, game_id: str) -> None:
        self._games.pop(game_id, None)
        self._finished_at.pop(game_id, None)
