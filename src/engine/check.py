from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .attacks import Attacker, find_attackers, first_piece_on_ray, is_square_attacked, ray_sliders
from .board import Board, Color, Piece, PieceType, Square
from .errors import SystemFault
from .geometry import (
    are_aligned,
    castling_rook_squares,
    castling_side,
    en_passant_capture_square,
    is_castling_attempt,
    is_en_passant_capture,
    is_promotion_move,
    squares_between,
    step_toward,
)
from .move import Move
from .state import GameState


@dataclass(frozen=True)
class CheckInfo:
    """Check status of one color's king.

    Attributes:
        color (Color): Side whose king was inspected.
        king_square (Square): Where that king stands.
        attackers (Tuple[Attacker, ...]): Enemy pieces attacking the king.
    """

    color: Color
    king_square: Square
    attackers: Tuple[Attacker, ...] = ()

    @property
    def in_check(self) -> bool:
        return bool(self.attackers)

    @property
    def is_double_check(self) -> bool:
        return len(self.attackers) >= 2

    @property
    def check_type(self) -> str:
        if not self.attackers:
            return "none"
        if self.is_double_check:
            return "double_check"
        return f"{self.attackers[0].piece.type.value}_check"

    def to_dict(self) -> Dict[str, object]:
        return {
            "color": self.color.value,
            "king_square": str(self.king_square),
            "in_check": self.in_check,
            "is_double_check": self.is_double_check,
            "check_type": self.check_type,
            "attackers": [
                {
                    "piece": a.piece.type.value,
                    "color": a.piece.color.value,
                    "square": {"row": a.square.row, "col": a.square.col},
                    "attack_type": a.attack_type.value,
                }
                for a in self.attackers
            ],
        }


def _king_square(board: Board, color: Color) -> Square:
    ksq = board.find_king(color)
    if ksq is None:
        raise SystemFault(f"no {color.value} king on the board", color=color.value)
    return ksq


def compute_check_info(board: Board, color: Color) -> CheckInfo:
    ksq = _king_square(board, color)
    return CheckInfo(color, ksq, tuple(find_attackers(board, ksq, color.opponent)))


def get_check_info(state: GameState, color: Optional[Color] = None) -> CheckInfo:
    """Return check details for ``color`` (default: side to move).

    The result is memoised on the state until the board next changes.

    Raises:
        SystemFault: If ``color`` has no king on the board.
    """
    color = color or state.turn
    cached = state.cached_check(color)
    if cached is not None:
        return cached
    info = compute_check_info(state.board, color)
    state.cache_check(color, info)
    return info


def is_in_check(state: GameState, color: Optional[Color] = None) -> bool:
    return get_check_info(state, color).in_check


# --- Pins ---


@dataclass(frozen=True)
class Pin:
    """A piece pinned to its king by an enemy slider.

    ``line`` holds every square the pinned piece may still occupy: the
    squares between king and pinner (other than its own) and the pinner's
    square itself.
    """

    square: Square
    pinner_square: Square
    pinner: Piece
    king_square: Square
    line: Tuple[Square, ...]

    def allows(self, to_sq: Square) -> bool:
        return to_sq in self.line


def find_pin(board: Board, square: Square, color: Optional[Color] = None) -> Optional[Pin]:
    """Return the pin holding the piece on ``square``, if any.

    Args:
        board (Board): Position to inspect.
        square (Square): Square of the possibly pinned piece.
        color (Optional[Color]): Owner of that piece; read from the board when
            omitted.

    Returns:
        Optional[Pin]: Pin details, or None if the piece may leave its line.
    """
    piece = board.get(square)
    if piece is None or piece.type is PieceType.KING:
        return None
    color = color or piece.color
    ksq = board.find_king(color)
    if ksq is None or not are_aligned(ksq, square):
        return None
    if any(not board.is_empty(sq) for sq in squares_between(ksq, square)):
        return None
    d_row, d_col = step_toward(ksq, square)
    beyond = first_piece_on_ray(board, square, d_row, d_col)
    if beyond is None:
        return None
    pinner_sq, pinner = beyond
    if pinner.color is color or pinner.type not in ray_sliders(d_row, d_col):
        return None
    line = tuple(sq for sq in squares_between(ksq, pinner_sq) if sq != square) + (pinner_sq,)
    return Pin(square, pinner_sq, pinner, ksq, line)


def is_piece_pinned(board: Board, square: Square, color: Optional[Color] = None) -> bool:
    return find_pin(board, square, color) is not None


# --- Simulation ---


@contextmanager
def simulated_move(state: GameState, move: Move) -> Iterator[Board]:
    """Temporarily play ``move`` on the live board.

    Mirrors the board effects of execution (en passant removal, castling rook
    relocation, promotion) and clears the en passant target. Everything
    touched, including the board version and the check memo, is restored on
    exit, whether the body returns or raises.
    """
    board = state.board
    piece = board[move.from_sq]
    if piece is None:
        raise SystemFault("cannot simulate a move from an empty square", square=str(move.from_sq))

    saved_squares: Dict[Square, Optional[Piece]] = {}
    saved_version = board.version
    saved_ep = state.en_passant_target
    saved_cache = state.save_caches()

    def put(sq: Square, value: Optional[Piece]) -> None:
        if sq not in saved_squares:
            saved_squares[sq] = board[sq]
        board[sq] = value

    try:
        if is_en_passant_capture(board, piece, move.from_sq, move.to_sq, saved_ep):
            put(en_passant_capture_square(move.from_sq, move.to_sq), None)
        if is_castling_attempt(piece, move.from_sq, move.to_sq):
            rook_from, rook_to = castling_rook_squares(
                piece.color, castling_side(move.from_sq, move.to_sq)
            )
            rook = board.get(rook_from)
            if rook is not None:
                put(rook_from, None)
                put(rook_to, rook)
        landed = piece
        if is_promotion_move(piece, move.to_sq):
            landed = Piece(move.promotion or PieceType.QUEEN, piece.color)
        put(move.from_sq, None)
        put(move.to_sq, landed)
        state.en_passant_target = None
        state.invalidate_caches()
        yield board
    finally:
        for sq, original in saved_squares.items():
            board.grid[sq.row][sq.col] = original
        board.version = saved_version
        state.en_passant_target = saved_ep
        state.restore_caches(saved_cache)


def would_be_in_check(state: GameState, move: Move, color: Optional[Color] = None) -> bool:
    """Return True if ``color``'s king would be attacked after ``move``.

    ``color`` defaults to the owner of the moving piece. The state is left
    exactly as it was found.
    """
    if color is None:
        piece = state.board[move.from_sq]
        if piece is None:
            raise SystemFault("cannot simulate a move from an empty square", square=str(move.from_sq))
        color = piece.color
    with simulated_move(state, move) as board:
        return is_square_attacked(board, _king_square(board, color), color.opponent)
