"""Turn order, round rollover and per-turn action bookkeeping."""

from __future__ import annotations

import random
from collections.abc import Callable

from .logging_config import get_logger
from .models import TurnActions


logger = get_logger(__name__)


class TurnSequencer:
    """Tracks whose turn it is and what they already did this turn.

    Randomness (initial shuffle and round tie-breaks) comes from ``rng`` so
    callers can supply a seeded generator.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.player_order: list[str] = []
        self.current_index = 0
        self.round = 1
        self._actions: dict[str, TurnActions] = {}

    @property
    def current_player(self) -> str | None:
        if not self.player_order:
            return None
        return self.player_order[self.current_index]

    def add(self, player_id: str) -> None:
        self.player_order.append(player_id)

    def actions_for(self, player_id: str) -> TurnActions:
        return self._actions.setdefault(player_id, TurnActions())

    def reset_actions(self, player_id: str | None = None) -> None:
        if player_id is not None:
            self._actions[player_id] = TurnActions()
            return
        for pid in self.player_order:
            self._actions[pid] = TurnActions()

    def start(self) -> None:
        self.rng.shuffle(self.player_order)
        self.current_index = 0
        self.round = 1
        self.reset_actions()

    def advance(self, monster_count: Callable[[str], int], is_eliminated: Callable[[str], bool]) -> bool:
        """Pass the turn on, handling round boundaries and eliminated players.

        Returns ``False`` when every player in the order had to be skipped.
        """
        if not self.player_order:
            return False
        self.current_index = (self.current_index + 1) % len(self.player_order)
        if self.current_index == 0:
            self._start_next_round(monster_count)

        if not self.skip_eliminated(is_eliminated):
            return False
        self.reset_actions(self.current_player)
        return True

    def skip_eliminated(self, is_eliminated: Callable[[str], bool]) -> bool:
        skipped = 0
        while is_eliminated(self.player_order[self.current_index]):
            logger.info("Skipping eliminated player", player_id=self.player_order[self.current_index])
            self.current_index = (self.current_index + 1) % len(self.player_order)
            skipped += 1
            if skipped >= len(self.player_order):
                return False
        return True

    def _start_next_round(self, monster_count: Callable[[str], int]) -> None:
        self.round += 1
        tie_breaks = {pid: self.rng.random() for pid in self.player_order}
        self.player_order.sort(key=lambda pid: (monster_count(pid), tie_breaks[pid]))
        self.current_index = 0
        self.reset_actions()
        logger.info("Starting round", round=self.round, player_order=list(self.player_order))

    def remove(self, player_id: str) -> bool:
        """Drop a player, keeping the next intended player current.

        Returns ``True`` when the removed player held the turn.
        """
        self._actions.pop(player_id, None)
        if player_id not in self.player_order:
            return False
        index = self.player_order.index(player_id)
        was_current = index == self.current_index
        self.player_order.pop(index)
        if index < self.current_index:
            self.current_index -= 1
        if self.player_order:
            self.current_index %= len(self.player_order)
        else:
            self.current_index = 0
        return was_current
