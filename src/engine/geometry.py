"""Board-shape rules: per-piece move geometry, paths and special-move layouts."""

from __future__ import annotations

from typing import Callable, Dict, Iterator, Optional, Tuple

from .board import Board, Color, Piece, PieceType, Square
from .state import KING_HOME_COL, CastlingSide


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


def delta(from_sq: Square, to_sq: Square) -> Tuple[int, int]:
    return to_sq.row - from_sq.row, to_sq.col - from_sq.col


def step_toward(from_sq: Square, to_sq: Square) -> Tuple[int, int]:
    """Unit (row, col) step from ``from_sq`` in the direction of ``to_sq``."""
    dr, dc = delta(from_sq, to_sq)
    return _sign(dr), _sign(dc)


def is_orthogonal(from_sq: Square, to_sq: Square) -> bool:
    dr, dc = delta(from_sq, to_sq)
    return (dr == 0) != (dc == 0)


def is_diagonal(from_sq: Square, to_sq: Square) -> bool:
    dr, dc = delta(from_sq, to_sq)
    return dr != 0 and abs(dr) == abs(dc)


def are_aligned(a: Square, b: Square) -> bool:
    """True when ``a`` and ``b`` share a rank, file or diagonal."""
    return is_orthogonal(a, b) or is_diagonal(a, b)


def squares_between(from_sq: Square, to_sq: Square) -> Iterator[Square]:
    """Yield the squares strictly between two aligned squares."""
    if not are_aligned(from_sq, to_sq):
        return
    dr, dc = step_toward(from_sq, to_sq)
    sq = from_sq.offset(dr, dc)
    while sq != to_sq:
        yield sq
        sq = sq.offset(dr, dc)


# --- Shape predicates (occupancy-free except for pawns) ---


def is_knight_shape(from_sq: Square, to_sq: Square) -> bool:
    dr, dc = delta(from_sq, to_sq)
    return {abs(dr), abs(dc)} == {1, 2}


def is_bishop_shape(from_sq: Square, to_sq: Square) -> bool:
    return is_diagonal(from_sq, to_sq)


def is_rook_shape(from_sq: Square, to_sq: Square) -> bool:
    return is_orthogonal(from_sq, to_sq)


def is_queen_shape(from_sq: Square, to_sq: Square) -> bool:
    return is_rook_shape(from_sq, to_sq) or is_bishop_shape(from_sq, to_sq)


def is_castling_shape(from_sq: Square, to_sq: Square) -> bool:
    dr, dc = delta(from_sq, to_sq)
    return dr == 0 and abs(dc) == 2


def is_king_shape(from_sq: Square, to_sq: Square) -> bool:
    """One step in any direction, or a two-column castling attempt."""
    dr, dc = delta(from_sq, to_sq)
    if (dr, dc) == (0, 0):
        return False
    return (abs(dr) <= 1 and abs(dc) <= 1) or is_castling_shape(from_sq, to_sq)


def is_pawn_shape(
    board: Board,
    from_sq: Square,
    to_sq: Square,
    color: Color,
    en_passant_target: Optional[Square] = None,
) -> bool:
    dr, dc = delta(from_sq, to_sq)
    forward = color.forward
    if dc == 0:
        if dr == forward:
            return board.is_empty(to_sq)
        if dr == 2 * forward and from_sq.row == color.pawn_row:
            return board.is_empty(from_sq.offset(forward, 0)) and board.is_empty(to_sq)
        return False
    if abs(dc) == 1 and dr == forward:
        target = board[to_sq]
        if target is not None:
            return target.color is not color
        return en_passant_target is not None and to_sq == en_passant_target
    return False


_SHAPES: Dict[PieceType, Callable[[Square, Square], bool]] = {
    PieceType.KNIGHT: is_knight_shape,
    PieceType.BISHOP: is_bishop_shape,
    PieceType.ROOK: is_rook_shape,
    PieceType.QUEEN: is_queen_shape,
    PieceType.KING: is_king_shape,
}

_unhandled = set(PieceType) - set(_SHAPES) - {PieceType.PAWN}
if _unhandled:
    raise RuntimeError(f"no geometry rule for piece types: {sorted(t.value for t in _unhandled)}")


def follows_geometry(
    board: Board,
    piece: Piece,
    from_sq: Square,
    to_sq: Square,
    en_passant_target: Optional[Square] = None,
) -> bool:
    """Return True if ``piece`` moving ``from_sq`` -> ``to_sq`` has a legal shape."""
    if piece.type is PieceType.PAWN:
        return is_pawn_shape(board, from_sq, to_sq, piece.color, en_passant_target)
    return _SHAPES[piece.type](from_sq, to_sq)


def is_castling_attempt(piece: Piece, from_sq: Square, to_sq: Square) -> bool:
    return piece.type is PieceType.KING and is_castling_shape(from_sq, to_sq)


# --- Path and occupancy ---


def is_path_clear(board: Board, from_sq: Square, to_sq: Square) -> bool:
    """Return True if every square strictly between the two is empty."""
    return all(board.is_empty(sq) for sq in squares_between(from_sq, to_sq))


def captures_own_piece(board: Board, piece: Piece, to_sq: Square) -> bool:
    target = board[to_sq]
    return target is not None and target.color is piece.color


# --- Special-move layouts ---

# side -> (king destination col, rook origin col, rook destination col)
CASTLING_COLUMNS: Dict[CastlingSide, Tuple[int, int, int]] = {
    CastlingSide.KINGSIDE: (6, 7, 5),
    CastlingSide.QUEENSIDE: (2, 0, 3),
}


def castling_side(from_sq: Square, to_sq: Square) -> CastlingSide:
    return CastlingSide.KINGSIDE if to_sq.col > from_sq.col else CastlingSide.QUEENSIDE


def castling_rook_squares(color: Color, side: CastlingSide) -> Tuple[Square, Square]:
    """Return ``(rook_from, rook_to)`` for a castle of ``color`` on ``side``."""
    _, rook_from, rook_to = CASTLING_COLUMNS[side]
    row = color.home_row
    return Square(row, rook_from), Square(row, rook_to)


def king_home_square(color: Color) -> Square:
    return Square(color.home_row, KING_HOME_COL)


def en_passant_capture_square(from_sq: Square, to_sq: Square) -> Square:
    """Square of the pawn removed by an en passant capture.

    It is not the destination: it sits beside the capturing pawn, on the
    capturing pawn's original row and the destination's column.
    """
    return Square(from_sq.row, to_sq.col)


def is_en_passant_capture(
    board: Board, piece: Piece, from_sq: Square, to_sq: Square, en_passant_target: Optional[Square]
) -> bool:
    return (
        piece.type is PieceType.PAWN
        and en_passant_target is not None
        and to_sq == en_passant_target
        and from_sq.col != to_sq.col
        and board.get(to_sq) is None
    )


def is_promotion_move(piece: Piece, to_sq: Square) -> bool:
    return piece.type is PieceType.PAWN and to_sq.row == piece.color.promotion_row
