from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .board import Board, Color, Piece, PieceType, Square
from .move import Move


class GameStatus(str, Enum):
    ACTIVE = "active"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


PLAYABLE_STATUSES = frozenset({GameStatus.ACTIVE, GameStatus.CHECK})
TERMINAL_STATUSES = frozenset({GameStatus.CHECKMATE, GameStatus.STALEMATE})


class CastlingSide(str, Enum):
    KINGSIDE = "kingside"
    QUEENSIDE = "queenside"


@dataclass(frozen=True)
class CastlingRights:
    """Per-color, per-side castling permissions.

    Rights only ever go from True to False; updates return a new value.
    """

    white_kingside: bool = True
    white_queenside: bool = True
    black_kingside: bool = True
    black_queenside: bool = True

    @classmethod
    def all(cls) -> "CastlingRights":
        return cls()

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    @staticmethod
    def _field(color: Color, side: CastlingSide) -> str:
        return f"{color.value}_{side.value}"

    def has(self, color: Color, side: CastlingSide) -> bool:
        return bool(getattr(self, self._field(color, side)))

    def any(self, color: Color) -> bool:
        return self.has(color, CastlingSide.KINGSIDE) or self.has(color, CastlingSide.QUEENSIDE)

    def without(self, color: Color, side: Optional[CastlingSide] = None) -> "CastlingRights":
        """Return rights with ``side`` (or both sides) cleared for ``color``."""
        sides = (side,) if side is not None else (CastlingSide.KINGSIDE, CastlingSide.QUEENSIDE)
        return replace(self, **{self._field(color, s): False for s in sides})

    def to_dict(self) -> Dict[str, Dict[str, bool]]:
        return {
            c.value: {s.value: self.has(c, s) for s in CastlingSide} for c in (Color.WHITE, Color.BLACK)
        }

    def __str__(self) -> str:
        flags = "".join(
            ch
            for ch, on in (
                ("K", self.white_kingside),
                ("Q", self.white_queenside),
                ("k", self.black_kingside),
                ("q", self.black_queenside),
            )
            if on
        )
        return flags or "-"


# Rook corners per (color, side); the king starts on column 4 of its home row.
ROOK_CORNERS: Dict[Tuple[Color, CastlingSide], Square] = {
    (Color.WHITE, CastlingSide.KINGSIDE): Square(7, 7),
    (Color.WHITE, CastlingSide.QUEENSIDE): Square(7, 0),
    (Color.BLACK, CastlingSide.KINGSIDE): Square(0, 7),
    (Color.BLACK, CastlingSide.QUEENSIDE): Square(0, 0),
}
KING_HOME_COL = 4


def infer_castling_rights(board: Board) -> CastlingRights:
    """Grant each right whose king and rook still stand on their home squares."""
    rights = CastlingRights.all()
    for (color, side), corner in ROOK_CORNERS.items():
        king_home = board.get(Square(color.home_row, KING_HOME_COL))
        rook = board.get(corner)
        if king_home != Piece(PieceType.KING, color) or rook != Piece(PieceType.ROOK, color):
            rights = rights.without(color, side)
    return rights


@dataclass(frozen=True)
class PositionCounters:
    """Position-relevant bookkeeping captured just before a move."""

    halfmove_clock: int
    fullmove_number: int
    castling_rights: CastlingRights
    en_passant_target: Optional[Square]


@dataclass(frozen=True)
class MoveRecord:
    from_sq: Square
    to_sq: Square
    piece: Piece
    captured: Optional[Piece] = None
    promotion: Optional[PieceType] = None
    castling: Optional[CastlingSide] = None
    en_passant: bool = False
    counters: Optional[PositionCounters] = None

    @property
    def color(self) -> Color:
        return self.piece.color

    def to_uci(self) -> str:
        return Move(self.from_sq, self.to_sq, self.promotion).to_uci()


@dataclass
class GameState:
    """The single mutable object describing a game in progress.

    Only move execution mutates it; validation and analysis read it, apart
    from the always-reverted simulation used for self-check tests.
    """

    board: Board = field(default_factory=Board.initial)
    turn: Color = Color.WHITE
    castling_rights: CastlingRights = field(default_factory=CastlingRights.all)
    en_passant_target: Optional[Square] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    status: GameStatus = GameStatus.ACTIVE
    winner: Optional[Color] = None
    history: List[MoveRecord] = field(default_factory=list)
    # Turn the game started with; history parity is measured from it.
    initial_turn: Optional[Color] = None
    # color -> (board version, CheckInfo)
    _check_cache: Dict[Color, Tuple[int, Any]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.initial_turn is None:
            self.initial_turn = self.turn

    @classmethod
    def new(cls) -> "GameState":
        return cls()

    @classmethod
    def from_diagram(
        cls,
        diagram: Union[str, Sequence[str]],
        *,
        turn: Color = Color.WHITE,
        castling_rights: Optional[CastlingRights] = None,
        en_passant_target: Optional[Square] = None,
        halfmove_clock: int = 0,
        fullmove_number: int = 1,
    ) -> "GameState":
        """Set up an arbitrary position.

        When ``castling_rights`` is omitted, a right is granted wherever the
        king and the matching rook stand on their original squares. The
        returned state has ``active`` status; callers that need the status of
        the set-up position run termination detection on it.
        """
        board = Board.from_diagram(diagram)
        rights = castling_rights if castling_rights is not None else infer_castling_rights(board)
        return cls(
            board=board,
            turn=turn,
            castling_rights=rights,
            en_passant_target=en_passant_target,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )

    def counters(self) -> PositionCounters:
        return PositionCounters(
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            castling_rights=self.castling_rights,
            en_passant_target=self.en_passant_target,
        )

    def cached_check(self, color: Color) -> Optional[Any]:
        """Memoised check info for ``color`` if the board has not changed since."""
        entry = self._check_cache.get(color)
        if entry is None or entry[0] != self.board.version:
            return None
        return entry[1]

    def cache_check(self, color: Color, info: Any) -> None:
        self._check_cache[color] = (self.board.version, info)

    def save_caches(self) -> Dict[Color, Tuple[int, Any]]:
        return dict(self._check_cache)

    def restore_caches(self, saved: Dict[Color, Tuple[int, Any]]) -> None:
        self._check_cache.clear()
        self._check_cache.update(saved)

    def invalidate_caches(self) -> None:
        self._check_cache.clear()

    @property
    def is_over(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def restore(self, saved: "GameState") -> None:
        """Put back every field from ``saved``, typically a ``copy()`` taken earlier."""
        self.board = saved.board
        self.turn = saved.turn
        self.castling_rights = saved.castling_rights
        self.en_passant_target = saved.en_passant_target
        self.halfmove_clock = saved.halfmove_clock
        self.fullmove_number = saved.fullmove_number
        self.status = saved.status
        self.winner = saved.winner
        self.history = saved.history
        self.initial_turn = saved.initial_turn
        self.invalidate_caches()

    def copy(self) -> "GameState":
        """Independent copy; pieces, squares and records are shared immutables."""
        return GameState(
            board=self.board.copy(),
            turn=self.turn,
            castling_rights=self.castling_rights,
            en_passant_target=self.en_passant_target,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            status=self.status,
            winner=self.winner,
            history=list(self.history),
            initial_turn=self.initial_turn,
        )
