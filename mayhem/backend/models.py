"""Domain models for monsters, players and action results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import RESULT_INTERNAL_ERROR, RESULT_NOT_FOUND, RESULT_OK, RESULT_REJECTED


BOARD_SIZE = 10
MAX_PLAYERS = 4
MIN_PLAYERS_TO_START = 2
ELIMINATION_THRESHOLD = 10


class MonsterType(str, Enum):
    VAMPIRE = "vampire"
    WEREWOLF = "werewolf"
    GHOST = "ghost"


class Edge(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


EDGE_ORDER: tuple[Edge, ...] = (Edge.TOP, Edge.BOTTOM, Edge.LEFT, Edge.RIGHT)


class GameStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


def is_on_edge(edge: Edge, x: int, y: int) -> bool:
    if edge is Edge.TOP:
        return y == 0
    if edge is Edge.BOTTOM:
        return y == BOARD_SIZE - 1
    if edge is Edge.LEFT:
        return x == 0
    if edge is Edge.RIGHT:
        return x == BOARD_SIZE - 1
    return False


@dataclass
class Monster:
    id: str
    type: MonsterType
    x: int
    y: int
    owner: str


@dataclass
class Player:
    id: str
    edge: Edge
    monsters: list[Monster] = field(default_factory=list)
    monsters_lost: int = 0

    @property
    def is_eliminated(self) -> bool:
        return self.monsters_lost >= ELIMINATION_THRESHOLD

    def find_monster(self, monster_id: str) -> Monster | None:
        for monster in self.monsters:
            if monster.id == monster_id:
                return monster
        return None


@dataclass
class TurnActions:
    placed_monster: bool = False
    placed_monster_id: str | None = None
    moved_monsters: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    kind: str
    reason: str | None = None
    snapshot: dict[str, Any] | None = None

    @classmethod
    def success(cls, snapshot: dict[str, Any] | None = None, reason: str | None = None) -> ActionResult:
        return cls(ok=True, kind=RESULT_OK, reason=reason, snapshot=snapshot)

    @classmethod
    def rejected(cls, reason: str) -> ActionResult:
        return cls(ok=False, kind=RESULT_REJECTED, reason=reason)

    @classmethod
    def not_found(cls, reason: str) -> ActionResult:
        return cls(ok=False, kind=RESULT_NOT_FOUND, reason=reason)

    @classmethod
    def internal_error(cls, reason: str = "Internal error.") -> ActionResult:
        return cls(ok=False, kind=RESULT_INTERNAL_ERROR, reason=reason)


@dataclass
class PlayerRecord:
    id: str
    game_id: str | None = None
    wins: int = 0
    losses: int = 0


@dataclass(frozen=True)
class GameOverEvent:
    game_id: str
    winner_id: str | None
    player_ids: list[str]
    final_state: dict[str, Any]
