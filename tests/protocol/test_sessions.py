from __future__ import annotations

from typing import Any, Dict

from fastapi.testclient import TestClient

from src.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def _new_game(client: TestClient) -> str:
    r = client.post("/api/games")
    assert r.status_code == 200
    return r.json()["game_id"]


def _move(frm: tuple, to: tuple) -> Dict[str, Any]:
    return {"from": {"row": frm[0], "col": frm[1]}, "to": {"row": to[0], "col": to[1]}}


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert "game_id" in body and isinstance(body["game_id"], str) and body["game_id"]
    game_id = body["game_id"]
    assert body["diagram"].splitlines()[0] == "rnbqkbnr"

    # Fetch state
    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    state = r2.json()
    assert state["game_id"] == game_id
    assert state["turn"] == "white"
    assert state["status"] == "active"
    assert state["winner"] is None
    assert state["board"][7][4] == {"type": "king", "color": "white"}
    assert state["castling_rights"]["black"]["queenside"] is True
    assert state["en_passant_target"] is None
    assert state["check"]["check_type"] == "none"
    assert len(state["legal_moves"]) == 20
    assert state["move_history"] == []
    assert state["last_move"] is None


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    assert body["error"]["code"] == "not_found"


def test_move_success_updates_state() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.post(f"/api/games/{game_id}/move", json=_move((6, 4), (4, 4)))
    assert r.status_code == 200
    state = r.json()
    assert state["turn"] == "black"
    assert state["last_move"] == "e2e4"
    assert state["en_passant_target"] == {"row": 5, "col": 4}
    assert state["board"][4][4] == {"type": "pawn", "color": "white"}

    r2 = client.post(f"/api/games/{game_id}/move", json={"uci": "c7c5"})
    assert r2.status_code == 200
    assert r2.json()["move_history"] == ["e2e4", "c7c5"]
    assert r2.json()["fullmove_number"] == 2


def test_illegal_move_returns_rule_details() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.post(f"/api/games/{game_id}/move", json=_move((6, 4), (3, 4)))
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "invalid_movement"
    assert err["type"] == "client_error"
    assert err["category"] == "movement"
    assert err["suggestions"]
    assert err["request_id"]

    # Rejected moves leave the game as it was
    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["move_history"] == []
    assert state["turn"] == "white"


def test_malformed_moves_are_client_errors() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.post(f"/api/games/{game_id}/move", json="e2e4")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "malformed_move"

    bad_row = {"from": {"row": "6", "col": 4}, "to": {"row": 4, "col": 4}}
    r = client.post(f"/api/games/{game_id}/move", json=bad_row)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_format"

    r = client.post(f"/api/games/{game_id}/move", json={"uci": "z9z9"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_format"

    r = client.post(f"/api/games/{game_id}/move", json=_move((6, 4), (8, 4)))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_coordinates"


def test_wrong_turn_and_finished_game_conflict() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.post(f"/api/games/{game_id}/move", json={"uci": "e7e5"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "wrong_turn"

    for uci in ("f2f3", "e7e5", "g2g4", "d8h4"):
        r = client.post(f"/api/games/{game_id}/move", json={"uci": uci})
        assert r.status_code == 200, uci
    state = r.json()
    assert state["status"] == "checkmate"
    assert state["winner"] == "black"
    assert state["in_check"] is True
    assert state["legal_moves"] == []

    r = client.post(f"/api/games/{game_id}/move", json={"uci": "a2a3"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "game_not_active"


def test_legal_moves_and_check_endpoints() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.get(f"/api/games/{game_id}/legal-moves")
    assert r.status_code == 200
    body = r.json()
    assert body["color"] == "white"
    assert "g1f3" in body["moves"]

    r = client.get(f"/api/games/{game_id}/legal-moves", params={"color": "black"})
    assert r.json()["color"] == "black"
    assert "g8f6" in r.json()["moves"]

    r = client.get(f"/api/games/{game_id}/check", params={"color": "black"})
    assert r.status_code == 200
    info = r.json()
    assert info["color"] == "black"
    assert info["king_square"] == "e8"
    assert info["in_check"] is False
    assert info["attackers"] == []


def test_delete_game() -> None:
    client = _client()
    game_id = _new_game(client)
    assert client.delete(f"/api/games/{game_id}").status_code == 204
    assert client.get(f"/api/games/{game_id}/state").status_code == 404
    r = client.delete(f"/api/games/{game_id}")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_unknown_game_wins_over_bad_move_body() -> None:
    client = _client()
    r = client.post("/api/games/does-not-exist/move", json={"uci": "zz"})
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"
