"""Attack detection by probing outward from the target square."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Tuple

from .board import Board, Color, Piece, PieceType, Square


class AttackType(str, Enum):
    KNIGHT = "knight_attack"
    DIAGONAL = "diagonal_attack"
    HORIZONTAL = "horizontal_attack"
    VERTICAL = "vertical_attack"
    ADJACENT = "adjacent_attack"


@dataclass(frozen=True)
class Attacker:
    piece: Piece
    square: Square
    attack_type: AttackType

    @property
    def is_slider(self) -> bool:
        return self.piece.type in SLIDERS


KNIGHT_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1),
)
KING_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1),
)
ORTHOGONAL_DIRS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
DIAGONAL_DIRS: Tuple[Tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))

SLIDERS: FrozenSet[PieceType] = frozenset({PieceType.BISHOP, PieceType.ROOK, PieceType.QUEEN})
ORTHOGONAL_SLIDERS: FrozenSet[PieceType] = frozenset({PieceType.ROOK, PieceType.QUEEN})
DIAGONAL_SLIDERS: FrozenSet[PieceType] = frozenset({PieceType.BISHOP, PieceType.QUEEN})


def ray_sliders(d_row: int, d_col: int) -> FrozenSet[PieceType]:
    """Slider types that move along the given direction."""
    return DIAGONAL_SLIDERS if d_row and d_col else ORTHOGONAL_SLIDERS


def first_piece_on_ray(board: Board, origin: Square, d_row: int, d_col: int):
    """Return ``(square, piece)`` of the first occupied square along a ray, or None."""
    sq = origin.offset(d_row, d_col)
    while sq.in_bounds:
        p = board[sq]
        if p is not None:
            return sq, p
        sq = sq.offset(d_row, d_col)
    return None


def find_attackers(
    board: Board, target: Square, by_color: Color, *, first_only: bool = False
) -> List[Attacker]:
    """Return every ``by_color`` piece attacking ``target``.

    Probes pawn diagonals, knight hops, adjacent squares and the eight slider
    rays from ``target`` itself, so the cost is bounded by the probe count
    rather than by the number of pieces on the board.

    Args:
        board (Board): Position to inspect.
        target (Square): Square whose attackers are wanted.
        by_color (Color): Attacking side.
        first_only (bool): Stop after the first attacker found.

    Returns:
        List[Attacker]: Attackers in probe order.
    """
    found: List[Attacker] = []

    def hit(piece: Piece, sq: Square, kind: AttackType) -> bool:
        found.append(Attacker(piece, sq, kind))
        return first_only

    # Pawns: an attacking pawn stands one row behind the target from its own
    # point of view.
    pawn = Piece(PieceType.PAWN, by_color)
    for d_col in (-1, 1):
        sq = target.offset(-by_color.forward, d_col)
        if board.get(sq) == pawn and hit(pawn, sq, AttackType.DIAGONAL):
            return found

    knight = Piece(PieceType.KNIGHT, by_color)
    for d_row, d_col in KNIGHT_OFFSETS:
        sq = target.offset(d_row, d_col)
        if board.get(sq) == knight and hit(knight, sq, AttackType.KNIGHT):
            return found

    king = Piece(PieceType.KING, by_color)
    for d_row, d_col in KING_OFFSETS:
        sq = target.offset(d_row, d_col)
        if board.get(sq) == king and hit(king, sq, AttackType.ADJACENT):
            return found

    for d_row, d_col in ORTHOGONAL_DIRS + DIAGONAL_DIRS:
        blocker = first_piece_on_ray(board, target, d_row, d_col)
        if blocker is None:
            continue
        sq, p = blocker
        if p.color is not by_color or p.type not in ray_sliders(d_row, d_col):
            continue
        if d_row and d_col:
            kind = AttackType.DIAGONAL
        elif d_row:
            kind = AttackType.VERTICAL
        else:
            kind = AttackType.HORIZONTAL
        if hit(p, sq, kind):
            return found

    return found


def is_square_attacked(board: Board, target: Square, by_color: Color) -> bool:
    """Return True if any ``by_color`` piece attacks ``target``."""
    return bool(find_attackers(board, target, by_color, first_only=True))
