from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import Body, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel

from .error import (
    MoveRejected,
    exception_handler,
    http_exception_handler,
    move_rejected_handler,
    request_validation_exception_handler,
    system_fault_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from ...engine.board import Color
from ...engine.errors import ErrorKind, SystemFault, ValidationError
from ...engine.game import Game
from ...engine.move import Move, parse_uci
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    diagram: str


class CheckInfoModel(BaseModel):
    color: str
    king_square: str
    in_check: bool
    is_double_check: bool
    check_type: str
    attackers: List[Dict[str, Any]]


class LegalMovesResponse(BaseModel):
    game_id: str
    color: str
    moves: List[str]


class GameStateResponse(BaseModel):
    game_id: str
    diagram: str
    board: List[List[Optional[Dict[str, str]]]]
    turn: str
    status: str
    winner: Optional[str]
    castling_rights: Dict[str, Dict[str, bool]]
    en_passant_target: Optional[Dict[str, int]]
    halfmove_clock: int
    fullmove_number: int
    in_check: bool
    check: CheckInfoModel
    legal_moves: List[str]
    last_move: Optional[str]
    move_history: List[str]


def _state_response(game_id: str, game: Game) -> GameStateResponse:
    snap = game.snapshot()
    view = snap.to_dict()
    history = game.move_history_uci()
    return GameStateResponse(
        game_id=game_id,
        diagram=snap.to_diagram(),
        board=view["board"],
        turn=view["turn"],
        status=view["status"],
        winner=view["winner"],
        castling_rights=view["castling_rights"],
        en_passant_target=view["en_passant_target"],
        halfmove_clock=view["halfmove_clock"],
        fullmove_number=view["fullmove_number"],
        in_check=view["in_check"],
        check=CheckInfoModel(**game.check_info().to_dict()),
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        last_move=history[-1] if history else None,
        move_history=history,
    )


def _move_from_body(body: Any) -> Union[Move, Any]:
    """Accept ``{"uci": "e2e4"}`` as shorthand for the from/to mapping."""
    if isinstance(body, dict) and "uci" in body and "from" not in body:
        uci = body["uci"]
        if not isinstance(uci, str):
            error = ValidationError.of(ErrorKind.INVALID_FORMAT, "'uci' must be a string.")
            raise MoveRejected(error)
        try:
            return parse_uci(uci)
        except ValueError as e:
            raise MoveRejected(ValidationError.of(ErrorKind.INVALID_FORMAT, str(e))) from e
    return body


def create_app(log_level: Union[int, str] = logging.INFO) -> FastAPI:
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(MoveRejected, move_rejected_handler)
    app.add_exception_handler(SystemFault, system_fault_handler)
    app.add_exception_handler(Exception, exception_handler)

    # In-memory store of games in progress
    store = InMemorySessionStore()
    app.state.store = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create(Game.new())
        game = _require_game(store, game_id)
        logger.info("Game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, diagram=game.snapshot().to_diagram())

    @app.get("/api/games/{game_id}/state", response_model=GameStateResponse)
    async def get_state(game_id: str) -> GameStateResponse:
        with store.locked(game_id) as game:
            game = _found(game)
            return _state_response(game_id, game)

    @app.post("/api/games/{game_id}/move", response_model=GameStateResponse)
    async def make_move(game_id: str, body: Any = Body(...)) -> GameStateResponse:
        with store.locked(game_id) as game:
            game = _found(game)
            move = _move_from_body(body)
            result = game.submit(move)
            if result.error is not None:
                raise MoveRejected(result.error)
            return _state_response(game_id, game)

    @app.get("/api/games/{game_id}/legal-moves", response_model=LegalMovesResponse)
    async def legal_moves(game_id: str, color: Optional[Color] = None) -> LegalMovesResponse:
        with store.locked(game_id) as game:
            game = _found(game)
            side = color or game.state.turn
            return LegalMovesResponse(
                game_id=game_id,
                color=side.value,
                moves=[m.to_uci() for m in game.legal_moves(side)],
            )

    @app.get("/api/games/{game_id}/check", response_model=CheckInfoModel)
    async def check_info(game_id: str, color: Optional[Color] = None) -> CheckInfoModel:
        with store.locked(game_id) as game:
            game = _found(game)
            return CheckInfoModel(**game.check_info(color).to_dict())

    @app.delete("/api/games/{game_id}", status_code=204)
    async def delete_game(game_id: str) -> None:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        logger.info("Game deleted", extra={"game_id": game_id})

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    return _found(store.get(game_id))


def _found(game: Optional[Game]) -> Game:
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


# Default app for non-factory servers
app = create_app()
