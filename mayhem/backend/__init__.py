"""Backend package for Monster Mayhem."""

from .board import Board
from .combat import CombatOutcome, resolve, resolve_collision
from .config import BackendSettings, load_settings
from .errors import InvariantViolation
from .game import Game
from .logging_config import configure_logging, get_logger
from .models import ActionResult, Edge, GameStatus, Monster, MonsterType, Player
from .movement import is_legal_move
from .state import build_snapshot
from .store import GameStore, InMemoryGameStore
from .turns import TurnSequencer

__all__ = [
    "ActionResult",
    "BackendSettings",
    "Board",
    "build_snapshot",
    "CombatOutcome",
    "configure_logging",
    "Edge",
    "Game",
    "GameStatus",
    "GameStore",
    "get_logger",
    "InMemoryGameStore",
    "InvariantViolation",
    "is_legal_move",
    "load_settings",
    "Monster",
    "MonsterType",
    "Player",
    "resolve",
    "resolve_collision",
    "TurnSequencer",
]
