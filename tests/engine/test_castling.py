from __future__ import annotations

from src.engine.board import Color, Piece, PieceType
from src.engine.errors import ErrorKind
from src.engine.game import submit_move
from src.engine.move import parse_uci
from src.engine.move import str_to_square as sq
from src.engine.state import CastlingRights, CastlingSide, GameState
from src.engine.termination import get_legal_moves
from src.engine.validation import validate_move


OPEN = [
    "r...k..r",
    "........",
    "........",
    "........",
    "........",
    "........",
    "........",
    "R...K..R",
]


def moves_set(s: GameState) -> set[str]:
    return {m.to_uci() for m in get_legal_moves(s)}


def test_kingside_castle_moves_king_and_rook_and_clears_rights() -> None:
    s = GameState.from_diagram(
        [
            "k.......",
            "........",
            "........",
            "........",
            "........",
            "........",
            "........",
            "....K..R",
        ],
        castling_rights=CastlingRights(True, True, False, False),
    )
    result = submit_move(s, parse_uci("e1g1"))
    assert result.ok
    assert s.board[sq("g1")] == Piece(PieceType.KING, Color.WHITE)
    assert s.board[sq("f1")] == Piece(PieceType.ROOK, Color.WHITE)
    assert s.board[sq("e1")] is None and s.board[sq("h1")] is None
    assert not s.castling_rights.has(Color.WHITE, CastlingSide.KINGSIDE)
    assert not s.castling_rights.has(Color.WHITE, CastlingSide.QUEENSIDE)
    assert result.outcome is not None
    assert result.outcome.record.castling is CastlingSide.KINGSIDE


def test_queenside_castle_for_black() -> None:
    s = GameState.from_diagram(OPEN, turn=Color.BLACK)
    assert submit_move(s, parse_uci("e8c8")).ok
    assert s.board[sq("c8")] == Piece(PieceType.KING, Color.BLACK)
    assert s.board[sq("d8")] == Piece(PieceType.ROOK, Color.BLACK)
    assert s.board[sq("a8")] is None
    assert not s.castling_rights.any(Color.BLACK)
    assert s.castling_rights.any(Color.WHITE)


def test_castling_available_when_clear_and_not_in_check() -> None:
    ms = moves_set(GameState.from_diagram(OPEN))
    assert {"e1g1", "e1c1"} <= ms


def test_castling_blocked_when_in_check() -> None:
    s = GameState.from_diagram(
        [
            "r...r..k",
            "........",
            "........",
            "........",
            "........",
            "........",
            "........",
            "R...K..R",
        ]
    )
    ms = moves_set(s)
    assert "e1g1" not in ms and "e1c1" not in ms
    err = validate_move(s, parse_uci("e1g1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING


def test_castling_through_attacked_square_is_rejected() -> None:
    # Black rook on f8 covers f1, the square the king passes over.
    s = GameState.from_diagram(
        [
            "k....r..",
            "........",
            "........",
            "........",
            "........",
            "........",
            "........",
            "R...K..R",
        ]
    )
    err = validate_move(s, parse_uci("e1g1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING
    assert "f1" in err.message
    # Queenside is unaffected.
    assert validate_move(s, parse_uci("e1c1")) is None


def test_castling_into_attacked_square_is_rejected() -> None:
    s = GameState.from_diagram(
        [
            "k.....r.",
            "........",
            "........",
            "........",
            "........",
            "........",
            "........",
            "R...K..R",
        ]
    )
    err = validate_move(s, parse_uci("e1g1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING


def test_castling_rejected_without_right_rook_or_clear_path() -> None:
    no_right = GameState.from_diagram(OPEN, castling_rights=CastlingRights.none())
    err = validate_move(no_right, parse_uci("e1g1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING

    # Right still recorded but the rook is gone.
    no_rook = GameState.from_diagram(
        [
            "r...k..r",
            "........",
            "........",
            "........",
            "........",
            "........",
            "........",
            "R...K...",
        ],
        castling_rights=CastlingRights.all(),
    )
    err = validate_move(no_rook, parse_uci("e1g1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING

    # b1 is occupied: queenside needs every square between king and rook empty.
    blocked = GameState.from_diagram(
        [
            "r...k..r",
            "........",
            "........",
            "........",
            "........",
            "........",
            "........",
            "RN..K..R",
        ]
    )
    err = validate_move(blocked, parse_uci("e1c1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING


def test_rights_lost_on_rook_move_and_rook_capture() -> None:
    s = GameState.from_diagram(OPEN)
    assert submit_move(s, parse_uci("h1h2")).ok
    assert not s.castling_rights.has(Color.WHITE, CastlingSide.KINGSIDE)
    assert s.castling_rights.has(Color.WHITE, CastlingSide.QUEENSIDE)

    # Black rook takes a1: black loses queenside (rook left a8), white loses queenside.
    assert submit_move(s, parse_uci("a8a1")).ok
    assert not s.castling_rights.has(Color.BLACK, CastlingSide.QUEENSIDE)
    assert not s.castling_rights.has(Color.WHITE, CastlingSide.QUEENSIDE)
    assert s.castling_rights.has(Color.BLACK, CastlingSide.KINGSIDE)


def test_rights_never_return_when_rook_comes_back() -> None:
    s = GameState.from_diagram(OPEN)
    for uci in ("h1h2", "a8b8", "h2h1", "b8a8"):
        assert submit_move(s, parse_uci(uci)).ok
    assert not s.castling_rights.has(Color.WHITE, CastlingSide.KINGSIDE)
    assert not s.castling_rights.has(Color.BLACK, CastlingSide.QUEENSIDE)
    err = validate_move(s, parse_uci("e1g1"))
    assert err is not None and err.kind is ErrorKind.INVALID_CASTLING
