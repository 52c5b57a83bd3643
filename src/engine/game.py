from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .board import Color, Piece, Square
from .check import CheckInfo, get_check_info, is_in_check
from .consistency import king_errors, validate_consistency
from .errors import IllegalMoveError, SystemFault, ValidationError
from .execution import execute_move
from .move import Move
from .state import CastlingRights, GameState, GameStatus, MoveRecord
from .termination import get_legal_moves, is_checkmate, is_stalemate, update_status
from .validation import RawMove, parse_move, validate_move


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveOutcome:
    """What a successful move produced.

    Attributes:
        record (MoveRecord): The history entry appended for the move.
        status (GameStatus): Status for the side now to move.
        winner (Optional[Color]): Set only on checkmate.
        check_info (CheckInfo): Check details for the side now to move.
    """

    record: MoveRecord
    status: GameStatus
    winner: Optional[Color]
    check_info: CheckInfo


@dataclass(frozen=True)
class MoveResult:
    outcome: Optional[MoveOutcome] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def submit_move(state: GameState, move: RawMove) -> MoveResult:
    """Validate, execute and evaluate one move.

    A rejected move leaves ``state`` untouched and is reported through
    ``MoveResult.error``.

    Raises:
        SystemFault: If an engine invariant breaks while applying a move that
            passed validation. The state is rolled back to how it was before
            the move.
    """
    parsed = parse_move(move)
    if isinstance(parsed, ValidationError):
        return MoveResult(error=parsed)
    error = validate_move(state, parsed)
    if error is not None:
        return MoveResult(error=error)
    before = state.copy()
    try:
        faults = king_errors(state.board)
        if faults:
            raise SystemFault("position cannot be played", errors=faults)
        record = execute_move(state, parsed)
        status = update_status(state)
        info = get_check_info(state, state.turn)
    except SystemFault:
        logger.exception("Engine fault while applying %s", parsed.to_uci())
        state.restore(before)
        raise
    return MoveResult(outcome=MoveOutcome(record, status, state.winner, info))


# --- Read-only projection ---


@dataclass(frozen=True)
class BoardView:
    """Immutable snapshot of a game, safe to hand to renderers and relays."""

    squares: Tuple[Tuple[Optional[Piece], ...], ...]
    turn: Color
    castling_rights: CastlingRights
    en_passant_target: Optional[Square]
    halfmove_clock: int
    fullmove_number: int
    status: GameStatus
    winner: Optional[Color]
    history: Tuple[MoveRecord, ...]
    in_check: bool

    def piece_at(self, sq: Square) -> Optional[Piece]:
        if not sq.in_bounds:
            return None
        return self.squares[sq.row][sq.col]

    def to_diagram(self) -> str:
        return "\n".join("".join(p.char if p else "." for p in row) for row in self.squares)

    def to_dict(self) -> Dict[str, Any]:
        ep = self.en_passant_target
        return {
            "board": [
                [{"type": p.type.value, "color": p.color.value} if p else None for p in row]
                for row in self.squares
            ],
            "turn": self.turn.value,
            "castling_rights": self.castling_rights.to_dict(),
            "en_passant_target": {"row": ep.row, "col": ep.col} if ep else None,
            "halfmove_clock": self.halfmove_clock,
            "fullmove_number": self.fullmove_number,
            "status": self.status.value,
            "winner": self.winner.value if self.winner else None,
            "in_check": self.in_check,
            "history": [r.to_uci() for r in self.history],
        }


def _side_to_move_in_check(state: GameState) -> bool:
    # Externally supplied positions may lack a king; a snapshot still renders them.
    if state.board.find_king(state.turn) is None:
        return False
    return is_in_check(state, state.turn)


def snapshot(state: GameState) -> BoardView:
    return BoardView(
        squares=state.board.rows(),
        turn=state.turn,
        castling_rights=state.castling_rights,
        en_passant_target=state.en_passant_target,
        halfmove_clock=state.halfmove_clock,
        fullmove_number=state.fullmove_number,
        status=state.status,
        winner=state.winner,
        history=tuple(state.history),
        in_check=_side_to_move_in_check(state),
    )


@dataclass
class Game:
    """Game wrapper around a ``GameState`` with helper operations.

    Responsibility: own the state, expose legal moves, apply moves.
    """

    state: GameState = field(default_factory=GameState.new)

    @classmethod
    def new(cls) -> "Game":
        return cls()

    @classmethod
    def from_diagram(cls, diagram: Union[str, Sequence[str]], **kwargs: Any) -> "Game":
        """Start a game from a set-up position.

        Raises:
            ValueError: If the position fails the consistency checks.
        """
        state = GameState.from_diagram(diagram, **kwargs)
        report = validate_consistency(state)
        if not report.ok:
            raise ValueError("inconsistent position: " + "; ".join(report.errors))
        for warning in report.warnings:
            logger.warning("Position set-up: %s", warning)
        update_status(state)
        return cls(state=state)

    def legal_moves(self, color: Optional[Color] = None) -> List[Move]:
        return get_legal_moves(self.state, color)

    def validate(self, move: RawMove) -> Optional[ValidationError]:
        return validate_move(self.state, move)

    def submit(self, move: RawMove) -> MoveResult:
        return submit_move(self.state, move)

    def apply_move(self, move: RawMove) -> MoveOutcome:
        """Apply ``move`` or raise ``IllegalMoveError`` if it is rejected."""
        result = submit_move(self.state, move)
        if result.error is not None:
            raise IllegalMoveError(result.error)
        assert result.outcome is not None
        return result.outcome

    # --- State flags for adapters ---
    def in_check(self, color: Optional[Color] = None) -> bool:
        return is_in_check(self.state, color)

    def check_info(self, color: Optional[Color] = None) -> CheckInfo:
        return get_check_info(self.state, color)

    def checkmate(self) -> bool:
        return is_checkmate(self.state)

    def stalemate(self) -> bool:
        return is_stalemate(self.state)

    @property
    def status(self) -> GameStatus:
        return self.state.status

    def snapshot(self) -> BoardView:
        return snapshot(self.state)

    def move_history_uci(self) -> List[str]:
        return [r.to_uci() for r in self.state.history]
