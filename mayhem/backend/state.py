"""Public snapshots of a game for broadcast."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .game import Game


def _cell_view(game: Game, monster_id: str | None) -> dict[str, Any] | None:
    if monster_id is None:
        return None
    monster = game.monster_by_id(monster_id)
    if monster is None:
        return None
    return {
        "id": monster.id,
        "type": monster.type.value,
        "owner": monster.owner,
        "x": monster.x,
        "y": monster.y,
    }


def build_snapshot(game: Game) -> dict[str, Any]:
    """Return the read-only public view of ``game``; the caller holds its lock."""
    players = {
        player.id: {
            "id": player.id,
            "edge": player.edge.value,
            "monsterCount": len(player.monsters),
            "monstersLost": player.monsters_lost,
            "isEliminated": player.is_eliminated,
        }
        for player in game.players.values()
    }
    board = [[_cell_view(game, monster_id) for monster_id in row] for row in game.board.rows()]
    return {
        "id": game.id,
        "status": game.status.value,
        "round": game.round,
        "currentPlayerId": game.current_player,
        "winner": game.winner,
        "playerOrder": list(game.player_order),
        "board": board,
        "players": players,
    }


def build_lobby_entry(game: Game, max_players: int) -> dict[str, Any]:
    return {"id": game.id, "playerCount": len(game.player_order), "maxPlayers": max_players}
