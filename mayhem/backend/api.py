"""FastAPI endpoints for lobby queries and the websocket game channel."""

from __future__ import annotations

import json
import uuid
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import load_settings
from .logging_config import get_logger
from .models import ActionResult, GameStatus
from .store import GameStore, InMemoryGameStore


logger = get_logger(__name__)


class ClientMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(min_length=1)


class JoinGameMessage(BaseModel):
    gameId: str = Field(min_length=1)


class LobbyEntry(BaseModel):
    id: str
    playerCount: int
    maxPlayers: int


class LobbyResponse(BaseModel):
    games: list[LobbyEntry]


class GameStateResponse(BaseModel):
    state: dict[str, Any]


class StatsResponse(BaseModel):
    totalGamesPlayed: int
    totalPlayersConnected: int


class GameWebSocketHub:
    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}

    async def connect(self, player_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections[player_id] = websocket

    def disconnect(self, player_id: str) -> None:
        self._connections.pop(player_id, None)

    def connected(self) -> list[str]:
        return list(self._connections)

    async def send(self, player_id: str, message: dict[str, Any]) -> None:
        websocket = self._connections.get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except RuntimeError:
            self.disconnect(player_id)

    async def broadcast(self, player_ids: list[str], message: dict[str, Any]) -> None:
        for player_id in player_ids:
            await self.send(player_id, message)


def _members(state: dict[str, Any]) -> list[str]:
    return list(state.get("players", {}))


def _default_store() -> GameStore:
    settings = load_settings()
    return InMemoryGameStore(finished_grace_seconds=settings.finished_grace_seconds)


def create_app(store: GameStore | None = None) -> FastAPI:
    app = FastAPI(title="Monster Mayhem API", version="0.1.0")
    game_store = store if store is not None else _default_store()
    websocket_hub = GameWebSocketHub()
    app.state.websocket_hub = websocket_hub

    def get_store() -> GameStore:
        return game_store

    async def send_error(player_id: str, result: ActionResult) -> None:
        await websocket_hub.send(player_id, {"type": "error_message", "message": result.reason or "Action failed."})

    async def broadcast_lobby() -> None:
        game_store.evict_expired()
        games = game_store.available_games()
        for player_id in websocket_hub.connected():
            if game_store.game_of(player_id) is None:
                await websocket_hub.send(player_id, {"type": "available_games", "games": games})

    async def send_stats(player_id: str) -> None:
        await websocket_hub.send(
            player_id,
            {
                "type": "stats_update",
                "globalStats": game_store.global_stats(),
                "playerStats": game_store.player_stats(player_id),
            },
        )

    async def handle_game_over(game_id: str) -> None:
        event = game_store.record_game_over(game_id)
        if event is None:
            return
        for player_id in event.player_ids:
            await send_stats(player_id)
        await websocket_hub.broadcast(
            websocket_hub.connected(),
            {"type": "global_stats_update", "globalStats": game_store.global_stats()},
        )
        winner = event.winner_id
        await websocket_hub.broadcast(
            event.player_ids,
            {
                "type": "game_over",
                "message": f"Player {winner[:4]} won!" if winner else "Game ended (Draw/Aborted).",
                "winnerId": winner,
                "finalState": event.final_state,
            },
        )

    async def on_create_game(player_id: str, message: ClientMessage) -> None:
        result = game_store.create_game(player_id)
        if not result.ok:
            await send_error(player_id, result)
            return
        await websocket_hub.send(player_id, {"type": "game_joined", "state": result.snapshot})
        await broadcast_lobby()

    async def on_join_game(player_id: str, message: ClientMessage) -> None:
        payload = JoinGameMessage.model_validate(message.model_dump())
        result = game_store.join_game(payload.gameId, player_id)
        if not result.ok:
            await send_error(player_id, result)
            return
        state = result.snapshot or {}
        await websocket_hub.send(player_id, {"type": "game_joined", "state": state})
        others = [member for member in _members(state) if member != player_id]
        await websocket_hub.broadcast(others, {"type": "game_update", "state": state})
        await broadcast_lobby()

    async def on_start_game(player_id: str, message: ClientMessage) -> None:
        result = game_store.start_game(player_id)
        if not result.ok:
            await send_error(player_id, result)
            return
        state = result.snapshot or {}
        await websocket_hub.broadcast(_members(state), {"type": "game_started", "state": state})
        await broadcast_lobby()

    async def on_game_action(player_id: str, message: ClientMessage) -> None:
        result = game_store.apply_action(player_id, message.model_dump())
        if not result.ok:
            await send_error(player_id, result)
            return
        state = result.snapshot or {}
        await websocket_hub.broadcast(_members(state), {"type": "game_update", "state": state})
        if state.get("status") == GameStatus.FINISHED.value:
            await handle_game_over(state["id"])

    async def on_request_lobby_data(player_id: str, message: ClientMessage) -> None:
        if game_store.game_of(player_id) is not None:
            return
        game_store.evict_expired()
        await websocket_hub.send(player_id, {"type": "available_games", "games": game_store.available_games()})
        await send_stats(player_id)

    handlers = {
        "create_game": on_create_game,
        "join_game": on_join_game,
        "start_game": on_start_game,
        "game_action": on_game_action,
        "request_lobby_data": on_request_lobby_data,
    }

    async def handle_message(player_id: str, raw: str) -> None:
        try:
            message = ClientMessage.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            await websocket_hub.send(player_id, {"type": "error_message", "message": "Invalid message."})
            return
        handler = handlers.get(message.type)
        if handler is None:
            logger.warning("Unknown message type received", player_id=player_id, message_type=message.type)
            await websocket_hub.send(player_id, {"type": "error_message", "message": "Unknown message type."})
            return
        try:
            await handler(player_id, message)
        except ValidationError:
            await websocket_hub.send(player_id, {"type": "error_message", "message": "Invalid message."})
        except Exception:
            logger.exception("Error processing message", player_id=player_id, message_type=message.type)
            await websocket_hub.send(
                player_id,
                {"type": "error_message", "message": "Internal server error. Please try again."},
            )

    async def handle_disconnect(player_id: str) -> None:
        result = game_store.unregister_player(player_id)
        if result is not None and result.ok and result.snapshot is not None:
            state = result.snapshot
            await websocket_hub.broadcast(_members(state), {"type": "game_update", "state": state})
            if state.get("status") == GameStatus.FINISHED.value:
                await handle_game_over(state["id"])
        await broadcast_lobby()

    @app.get("/api/games", response_model=LobbyResponse)
    def list_games(local_store: GameStore = Depends(get_store)) -> LobbyResponse:
        local_store.evict_expired()
        return LobbyResponse(games=[LobbyEntry(**entry) for entry in local_store.available_games()])

    @app.get("/api/games/{game_id}", response_model=GameStateResponse)
    def get_game(game_id: str, local_store: GameStore = Depends(get_store)) -> GameStateResponse:
        game = local_store.get_game(game_id)
        if game is None:
            raise HTTPException(status_code=404, detail="Game not found")
        return GameStateResponse(state=game.snapshot())

    @app.get("/api/stats", response_model=StatsResponse)
    def get_stats(local_store: GameStore = Depends(get_store)) -> StatsResponse:
        return StatsResponse(**local_store.global_stats())

    @app.websocket("/ws")
    async def game_ws(websocket: WebSocket) -> None:
        player_id = str(uuid.uuid4())
        await websocket_hub.connect(player_id=player_id, websocket=websocket)
        game_store.register_player(player_id)
        await websocket_hub.send(
            player_id,
            {
                "type": "initial_data",
                "playerId": player_id,
                "globalStats": game_store.global_stats(),
                "playerStats": game_store.player_stats(player_id),
            },
        )
        await broadcast_lobby()

        try:
            while True:
                raw = await websocket.receive_text()
                await handle_message(player_id, raw)
        except WebSocketDisconnect:
            websocket_hub.disconnect(player_id)
            await handle_disconnect(player_id)

    return app


app = create_app()
