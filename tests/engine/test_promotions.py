from __future__ import annotations

from src.engine.board import Color, Piece, PieceType
from src.engine.errors import ErrorKind
from src.engine.game import submit_move
from src.engine.move import parse_uci
from src.engine.move import str_to_square as sq
from src.engine.state import GameState
from src.engine.termination import get_legal_moves
from src.engine.validation import validate_move


def _uci_set(moves):
    return set(m.to_uci() for m in moves)


def test_white_pawn_push_promotions() -> None:
    s = GameState.from_diagram(
        [
            "k.......",
            "....P...",
            "........",
            "........",
            "........",
            "........",
            "........",
            "....K...",
        ]
    )
    assert _uci_set(get_legal_moves(s)) >= {"e7e8q", "e7e8r", "e7e8b", "e7e8n"}
    assert "e7e8" not in _uci_set(get_legal_moves(s))


def test_black_capture_promotion() -> None:
    s = GameState.from_diagram(
        [
            "....k...",
            "........",
            "........",
            "........",
            "........",
            "........",
            "...p....",
            "..R...K.",
        ],
        turn=Color.BLACK,
    )
    assert _uci_set(get_legal_moves(s)) >= {"d2c1q", "d2c1r", "d2c1b", "d2c1n"}


def test_promotion_defaults_to_queen() -> None:
    s = GameState.from_diagram(
        [
            "k.......",
            "....P...",
            "........",
            "........",
            "........",
            "........",
            "........",
            "....K...",
        ]
    )
    result = submit_move(s, {"from": {"row": 1, "col": 4}, "to": {"row": 0, "col": 4}})
    assert result.ok
    assert s.board[sq("e8")] == Piece(PieceType.QUEEN, Color.WHITE)
    assert result.outcome is not None and result.outcome.record.promotion is PieceType.QUEEN


def test_underpromotion_by_name_or_letter() -> None:
    s = GameState.from_diagram(
        [
            "k.......",
            "....P...",
            "........",
            "........",
            "........",
            "........",
            "........",
            "....K...",
        ]
    )
    move = {"from": {"row": 1, "col": 4}, "to": {"row": 0, "col": 4}, "promotion": "knight"}
    assert submit_move(s, move).ok
    assert s.board[sq("e8")] == Piece(PieceType.KNIGHT, Color.WHITE)
    assert s.halfmove_clock == 0

    s2 = GameState.from_diagram(
        [
            "k.......",
            "....P...",
            "........",
            "........",
            "........",
            "........",
            "........",
            "....K...",
        ]
    )
    assert submit_move(s2, parse_uci("e7e8r")).ok
    assert s2.board[sq("e8")] == Piece(PieceType.ROOK, Color.WHITE)


def test_promotion_on_non_promoting_move_is_rejected() -> None:
    s = GameState.new()
    move = {"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}, "promotion": "queen"}
    err = validate_move(s, move)
    assert err is not None and err.kind is ErrorKind.INVALID_PROMOTION


def test_unknown_promotion_piece_is_a_format_error() -> None:
    s = GameState.new()
    for promo in ("king", "pawn", "", "x", 5):
        move = {"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}, "promotion": promo}
        err = validate_move(s, move)
        assert err is not None and err.kind is ErrorKind.INVALID_FORMAT, promo
