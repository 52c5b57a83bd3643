from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, Union


BOARD_SIZE = 8

INITIAL_DIAGRAM = (
    "rnbqkbnr",
    "pppppppp",
    "........",
    "........",
    "........",
    "........",
    "PPPPPPPP",
    "RNBQKBNR",
)


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Row delta of a pawn advance; white moves toward row 0."""
        return -1 if self is Color.WHITE else 1

    @property
    def home_row(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def pawn_row(self) -> int:
        return 6 if self is Color.WHITE else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceType(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


PROMOTION_TYPES = (PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT)

TYPE_TO_CHAR = {
    PieceType.PAWN: "p",
    PieceType.KNIGHT: "n",
    PieceType.BISHOP: "b",
    PieceType.ROOK: "r",
    PieceType.QUEEN: "q",
    PieceType.KING: "k",
}
CHAR_TO_TYPE = {v: k for k, v in TYPE_TO_CHAR.items()}


@dataclass(frozen=True)
class Square:
    """A (row, col) coordinate.

    Row 0 is black's back rank (rank 8) and row 7 is white's (rank 1);
    col 0 is the a-file. Out-of-range values are representable so that
    callers can report them instead of failing on construction.
    """

    row: int
    col: int

    @property
    def in_bounds(self) -> bool:
        return 0 <= self.row < BOARD_SIZE and 0 <= self.col < BOARD_SIZE

    def offset(self, d_row: int, d_col: int) -> "Square":
        return Square(self.row + d_row, self.col + d_col)

    def __str__(self) -> str:
        if not self.in_bounds:
            return f"({self.row},{self.col})"
        return chr(ord("a") + self.col) + str(BOARD_SIZE - self.row)


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @property
    def char(self) -> str:
        """Diagram character: uppercase for white, lowercase for black."""
        ch = TYPE_TO_CHAR[self.type]
        return ch.upper() if self.color is Color.WHITE else ch

    @classmethod
    def from_char(cls, ch: str) -> "Piece":
        try:
            ptype = CHAR_TO_TYPE[ch.lower()]
        except KeyError:
            raise ValueError(f"invalid piece character: {ch!r}") from None
        return cls(ptype, Color.WHITE if ch.isupper() else Color.BLACK)

    def __str__(self) -> str:
        return f"{self.color.value} {self.type.value}"


Grid = List[List[Optional[Piece]]]


def _empty_grid() -> Grid:
    return [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]


@dataclass
class Board:
    """8x8 grid of optional pieces.

    Notes:
    - Every write bumps ``version``; derived data (check info) is keyed on it.
    - The board does not police piece counts; engine-produced positions keep
      exactly one king per color.
    """

    grid: Grid = field(default_factory=_empty_grid)
    version: int = field(default=0, compare=False)

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def initial(cls) -> "Board":
        """Create a board with the standard starting placement."""
        return cls.from_diagram(INITIAL_DIAGRAM)

    @classmethod
    def from_diagram(cls, diagram: Union[str, Sequence[str]]) -> "Board":
        """Build a board from an ASCII diagram.

        Args:
            diagram (Union[str, Sequence[str]]): Eight rows, row 0 first, each
                holding eight characters. ``.`` marks an empty square, piece
                letters follow ``KQRBNP`` (white) / ``kqrbnp`` (black). Spaces
                inside a row are ignored; a multi-line string is split on
                newlines and blank lines are dropped.

        Returns:
            Board: Board with the described placement.

        Raises:
            ValueError: If the diagram does not describe exactly 8x8 squares or
                contains an unknown character.
        """
        if isinstance(diagram, str):
            rows = [line for line in diagram.splitlines() if line.strip()]
        else:
            rows = list(diagram)
        if len(rows) != BOARD_SIZE:
            raise ValueError("diagram must have 8 rows")
        board = cls()
        for r, line in enumerate(rows):
            cells = line.replace(" ", "").strip()
            if len(cells) != BOARD_SIZE:
                raise ValueError(f"diagram row {r} must have 8 squares")
            for c, ch in enumerate(cells):
                if ch == ".":
                    continue
                board.grid[r][c] = Piece.from_char(ch)
        return board

    def to_diagram(self) -> str:
        return "\n".join(
            "".join(p.char if isinstance(p, Piece) else "." for p in row) for row in self.grid
        )

    # --- Element access ---
    def __getitem__(self, sq: Square) -> Optional[Piece]:
        if not sq.in_bounds:
            raise IndexError(f"square out of bounds: {sq}")
        return self.grid[sq.row][sq.col]

    def __setitem__(self, sq: Square, piece: Optional[Piece]) -> None:
        if not sq.in_bounds:
            raise IndexError(f"square out of bounds: {sq}")
        self.grid[sq.row][sq.col] = piece
        self.version += 1

    def get(self, sq: Square) -> Optional[Piece]:
        """Like ``board[sq]`` but returns None for off-board squares."""
        if not sq.in_bounds:
            return None
        return self.grid[sq.row][sq.col]

    def is_empty(self, sq: Square) -> bool:
        return self[sq] is None

    # --- Queries ---
    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` pairs in row-major order."""
        for r in range(BOARD_SIZE):
            for c in range(BOARD_SIZE):
                p = self.grid[r][c]
                if p is None:
                    continue
                if color is not None and getattr(p, "color", None) is not color:
                    continue
                yield Square(r, c), p

    def find_king(self, color: Color) -> Optional[Square]:
        for sq, p in self.pieces(color):
            if p.type is PieceType.KING:
                return sq
        return None

    def count(self, color: Color, ptype: PieceType) -> int:
        return sum(1 for _, p in self.pieces(color) if p.type is ptype)

    def rows(self) -> Tuple[Tuple[Optional[Piece], ...], ...]:
        """Immutable copy of the grid; pieces are frozen values."""
        return tuple(tuple(row) for row in self.grid)

    def copy(self) -> "Board":
        return Board(grid=[list(row) for row in self.grid], version=self.version)

    def __str__(self) -> str:
        return self.to_diagram()
