import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from conftest import FixedRandom

from mayhem.backend.api import create_app
from mayhem.backend.store import InMemoryGameStore


def _store() -> InMemoryGameStore:
    return InMemoryGameStore(rng_factory=FixedRandom)


def test_get_games_lists_waiting_games() -> None:
    store = _store()
    store.register_player("host")
    created = store.create_game("host").snapshot
    client = TestClient(create_app(store=store))

    response = client.get("/api/games")

    assert response.status_code == 200
    assert response.json() == {"games": [{"id": created["id"], "playerCount": 1, "maxPlayers": 4}]}


def test_get_game_returns_snapshot() -> None:
    store = _store()
    store.register_player("host")
    created = store.create_game("host").snapshot
    client = TestClient(create_app(store=store))

    response = client.get(f"/api/games/{created['id']}")

    assert response.status_code == 200
    state = response.json()["state"]
    assert state["id"] == created["id"]
    assert state["status"] == "waiting"
    assert state["playerOrder"] == ["host"]


def test_get_game_rejects_unknown_id() -> None:
    client = TestClient(create_app(store=_store()))

    response = client.get("/api/games/does-not-exist")

    assert response.status_code == 404


def test_get_stats_reports_global_counters() -> None:
    store = _store()
    store.register_player("a")
    store.register_player("b")
    client = TestClient(create_app(store=store))

    response = client.get("/api/stats")

    assert response.status_code == 200
    assert response.json() == {"totalGamesPlayed": 0, "totalPlayersConnected": 2}


def test_websocket_sends_initial_data_and_lobby() -> None:
    app = create_app(store=_store())

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as websocket:
            initial = websocket.receive_json()
            lobby = websocket.receive_json()

    assert initial["type"] == "initial_data"
    assert initial["playerId"]
    assert initial["globalStats"] == {"totalGamesPlayed": 0, "totalPlayersConnected": 1}
    assert initial["playerStats"] == {"wins": 0, "losses": 0}
    assert lobby == {"type": "available_games", "games": []}


def test_websocket_rejects_malformed_and_unknown_messages() -> None:
    app = create_app(store=_store())

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.receive_json()

            websocket.send_text("not json")
            malformed = websocket.receive_json()
            websocket.send_json({"type": "dance"})
            unknown = websocket.receive_json()
            websocket.send_json({"type": "join_game"})
            missing_id = websocket.receive_json()
            websocket.send_json({"type": "start_game"})
            not_in_game = websocket.receive_json()

    assert malformed == {"type": "error_message", "message": "Invalid message."}
    assert unknown == {"type": "error_message", "message": "Unknown message type."}
    assert missing_id == {"type": "error_message", "message": "Invalid message."}
    assert not_in_game == {"type": "error_message", "message": "You are not in a game."}


def test_websocket_game_flow_between_two_clients() -> None:
    store = _store()
    app = create_app(store=store)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as host:
            host_id = host.receive_json()["playerId"]
            host.receive_json()

            with client.websocket_connect("/ws") as guest:
                guest_id = guest.receive_json()["playerId"]
                assert guest.receive_json()["type"] == "available_games"
                assert host.receive_json()["type"] == "available_games"

                host.send_json({"type": "create_game"})
                joined = host.receive_json()
                game_id = joined["state"]["id"]
                assert joined["type"] == "game_joined"
                assert guest.receive_json() == {
                    "type": "available_games",
                    "games": [{"id": game_id, "playerCount": 1, "maxPlayers": 4}],
                }

                guest.send_json({"type": "join_game", "gameId": game_id})
                assert guest.receive_json()["type"] == "game_joined"
                update = host.receive_json()
                assert update["type"] == "game_update"
                assert update["state"]["playerOrder"] == [host_id, guest_id]

                guest.send_json({"type": "start_game"})
                assert guest.receive_json() == {
                    "type": "error_message",
                    "message": "Only the creator can start the game.",
                }

                host.send_json({"type": "start_game"})
                started = host.receive_json()
                assert started["type"] == "game_started"
                assert started["state"]["currentPlayerId"] == host_id
                assert guest.receive_json()["type"] == "game_started"

                host.send_json(
                    {"type": "game_action", "action": "place_monster", "monsterType": "vampire", "x": 4, "y": 0}
                )
                placed = host.receive_json()
                assert placed["state"]["board"][0][4]["owner"] == host_id
                guest.receive_json()

                guest.send_json({"type": "game_action", "action": "end_turn"})
                assert guest.receive_json() == {"type": "error_message", "message": "Not your turn."}

                host.send_json({"type": "game_action", "action": "end_turn"})
                assert host.receive_json()["state"]["currentPlayerId"] == guest_id
                guest.receive_json()

                host.send_json({"type": "game_action", "action": "end_turn"})
                assert host.receive_json() == {"type": "error_message", "message": "Not your turn."}


def test_websocket_final_combat_reports_game_over(put_monster) -> None:
    store = _store()
    app = create_app(store=store)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as host:
            host_id = host.receive_json()["playerId"]
            host.receive_json()

            with client.websocket_connect("/ws") as guest:
                guest_id = guest.receive_json()["playerId"]
                guest.receive_json()
                host.receive_json()

                host.send_json({"type": "create_game"})
                game_id = host.receive_json()["state"]["id"]
                guest.receive_json()
                guest.send_json({"type": "join_game", "gameId": game_id})
                guest.receive_json()
                host.receive_json()
                host.send_json({"type": "start_game"})
                host.receive_json()
                guest.receive_json()

                game = store.get_game(game_id)
                attacker = put_monster(game, host_id, "vampire", 4, 4)
                put_monster(game, guest_id, "werewolf", 4, 5)
                game.players[guest_id].monsters_lost = 9

                host.send_json(
                    {"type": "game_action", "action": "move_monster", "monsterId": attacker.id, "newX": 4, "newY": 5}
                )
                host_messages = [host.receive_json() for _ in range(4)]
                guest_messages = [guest.receive_json() for _ in range(4)]

                host.send_json({"type": "request_lobby_data"})
                lobby = host.receive_json()

    final_update, stats, global_stats, game_over = host_messages
    assert final_update["type"] == "game_update"
    assert final_update["state"]["status"] == "finished"
    assert final_update["state"]["winner"] == host_id
    assert stats["type"] == "stats_update"
    assert stats["playerStats"] == {"wins": 1, "losses": 0}
    assert global_stats == {
        "type": "global_stats_update",
        "globalStats": {"totalGamesPlayed": 1, "totalPlayersConnected": 2},
    }
    assert game_over["type"] == "game_over"
    assert game_over["winnerId"] == host_id
    assert game_over["message"] == f"Player {host_id[:4]} won!"
    assert [message["type"] for message in guest_messages] == [
        "game_update",
        "stats_update",
        "global_stats_update",
        "game_over",
    ]
    assert guest_messages[1]["playerStats"] == {"wins": 0, "losses": 1}
    assert lobby == {"type": "available_games", "games": []}
