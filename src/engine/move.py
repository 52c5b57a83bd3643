from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .board import BOARD_SIZE, PROMOTION_TYPES, PieceType, Square


PROMOTION_PIECES = {
    "q": PieceType.QUEEN,
    "r": PieceType.ROOK,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
}
_PROMOTION_LETTERS = {v: k for k, v in PROMOTION_PIECES.items()}


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        promotion (Optional[PieceType]): Piece a pawn promotes to, if any.
    """

    from_sq: Square
    to_sq: Square
    promotion: Optional[PieceType] = None

    def to_uci(self) -> str:
        """Serialize the move into coordinate notation.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = _PROMOTION_LETTERS.get(self.promotion, "") if self.promotion else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo

    def to_dict(self) -> dict:
        return {
            "from": {"row": self.from_sq.row, "col": self.from_sq.col},
            "to": {"row": self.to_sq.row, "col": self.to_sq.col},
            "promotion": self.promotion.value if self.promotion else None,
        }


def parse_uci(uci: str) -> Move:
    """Parse a coordinate-notation move string.

    Args:
        uci (str): Move such as ``"e2e4"`` or ``"a7a8n"``.

    Returns:
        Move: Parsed move.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[PieceType] = None
    if len(uci) == 5:
        letter = uci[4].lower()
        if letter not in PROMOTION_PIECES:
            raise ValueError(f"invalid promotion piece: {letter!r}")
        promo = PROMOTION_PIECES[letter]
    return Move(from_sq, to_sq, promo)


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a board square.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: Square with row 0 at rank 8.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    rank = int(s[1])
    return Square(BOARD_SIZE - rank, col)


def square_to_str(sq: Square) -> str:
    """Convert a board square into algebraic notation.

    Raises:
        ValueError: If ``sq`` lies outside the board.
    """
    if not sq.in_bounds:
        raise ValueError(f"invalid square: {sq}")
    return str(sq)


def promotion_from_value(value: Any) -> Optional[PieceType]:
    """Resolve a promotion given as a PieceType, name or letter.

    Returns None when ``value`` does not name a piece a pawn may become.
    """
    if isinstance(value, PieceType):
        return value if value in PROMOTION_TYPES else None
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key in PROMOTION_PIECES:
        return PROMOTION_PIECES[key]
    for ptype in PROMOTION_TYPES:
        if ptype.value == key:
            return ptype
    return None


# --- Wire-shaped move payloads (dicts submitted by UI / relay callers) ---


class SquarePayload(BaseModel):
    # Accepts {"row": r, "col": c} mappings and Square values alike.
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    row: StrictInt
    col: StrictInt


class MovePayload(BaseModel):
    """Loose mapping form of a move: ``{"from": {...}, "to": {...}, "promotion": ...}``.

    Coordinates are only type-checked here; range checks belong to the
    validation pipeline so that they surface as coordinate errors.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_sq: SquarePayload = Field(..., alias="from")
    to_sq: SquarePayload = Field(..., alias="to")
    promotion: Optional[str] = None

    def squares(self) -> tuple[Square, Square]:
        return (
            Square(self.from_sq.row, self.from_sq.col),
            Square(self.to_sq.row, self.to_sq.col),
        )
