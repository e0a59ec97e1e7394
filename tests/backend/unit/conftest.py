import itertools
import random
from collections.abc import Callable

import pytest

from mayhem.backend.game import Game
from mayhem.backend.models import Monster, MonsterType


class FixedRandom(random.Random):
    """Keeps the join order on shuffle and breaks every tie the same way."""

    values: list[float] | None = None

    def shuffle(self, x, *args, **kwargs) -> None:
        return None

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return 0.5


class ReversingRandom(FixedRandom):
    def shuffle(self, x, *args, **kwargs) -> None:
        x.reverse()


@pytest.fixture
def make_game() -> Callable[..., Game]:
    def _make(*player_ids: str, rng: random.Random | None = None, start: bool = True) -> Game:
        counter = itertools.count(1)
        game = Game(
            game_id="game-1",
            creator_id=player_ids[0],
            rng=rng if rng is not None else FixedRandom(),
            id_factory=lambda: f"m{next(counter)}",
        )
        for player_id in player_ids[1:]:
            assert game.join(player_id).ok
        if start:
            assert game.start().ok
        return game

    return _make


@pytest.fixture
def put_monster() -> Callable[..., Monster]:
    """Drop a monster straight onto the board, bypassing the edge rule."""
    counter = itertools.count(1)

    def _put(game: Game, owner: str, monster_type: str, x: int, y: int) -> Monster:
        monster = Monster(id=f"x{next(counter)}", type=MonsterType(monster_type), x=x, y=y, owner=owner)
        game.board.place(monster.id, x, y)
        game._monsters[monster.id] = monster
        game.players[owner].monsters.append(monster)
        return monster

    return _put
