"""Sanity checks over a whole ``GameState``.

Run on positions set up from outside the engine, and before each move is
executed (king count only).
None of these checks mutate the state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .board import Board, Color, PieceType
from .geometry import castling_rook_squares
from .state import (
    PLAYABLE_STATUSES,
    TERMINAL_STATUSES,
    CastlingSide,
    GameState,
    GameStatus,
    infer_castling_rights,
)


@dataclass
class ConsistencyReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def expected_turn(state: GameState) -> Color:
    """Side to move implied by the starting turn and the number of moves."""
    start = state.initial_turn or Color.WHITE
    return start if len(state.history) % 2 == 0 else start.opponent


def king_errors(board: Board) -> List[str]:
    """Describe every color that does not have exactly one king."""
    errors = []
    for color in (Color.WHITE, Color.BLACK):
        n = board.count(color, PieceType.KING)
        if n != 1:
            errors.append(f"{color.value} has {n} kings; expected exactly 1")
    return errors


def _check_kings(state: GameState, report: ConsistencyReport) -> None:
    report.errors.extend(king_errors(state.board))


def _check_turn(state: GameState, report: ConsistencyReport) -> None:
    expected = expected_turn(state)
    if state.turn is not expected:
        report.errors.append(
            f"turn is {state.turn.value} but {len(state.history)} moves imply {expected.value}"
        )
    if state.history and state.history[-1].color is state.turn:
        report.errors.append(f"{state.turn.value} made the last move and is also to move")


def _check_counters(state: GameState, report: ConsistencyReport) -> None:
    if state.halfmove_clock < 0:
        report.errors.append(f"halfmove clock is negative ({state.halfmove_clock})")
    if state.fullmove_number < 1:
        report.errors.append(f"fullmove number must be at least 1 ({state.fullmove_number})")


def _check_status(state: GameState, report: ConsistencyReport) -> None:
    if state.status is GameStatus.CHECKMATE:
        if state.winner is None:
            report.errors.append("checkmate without a winner")
        elif state.winner is state.turn:
            report.errors.append("the side to move cannot be the checkmate winner")
    elif state.winner is not None:
        report.errors.append(f"winner set while status is {state.status.value}")


def _check_en_passant(state: GameState, report: ConsistencyReport) -> None:
    target = state.en_passant_target
    if target is None:
        return
    if not target.in_bounds:
        report.errors.append(f"en passant target {target} is off the board")
        return
    # The pawn that just advanced two squares stands one row past the target.
    mover = state.turn.opponent
    if target.row != mover.pawn_row + mover.forward:
        report.errors.append(f"en passant target {target} is on the wrong rank")
    if not state.history:
        return
    last = state.history[-1]
    if last.piece.type is not PieceType.PAWN or abs(last.to_sq.row - last.from_sq.row) != 2:
        report.errors.append("en passant target set but the last move was not a two-square pawn advance")
    elif last.from_sq.offset(last.color.forward, 0) != target:
        report.errors.append(f"en passant target {target} does not match the last move")


def _check_castling(state: GameState, report: ConsistencyReport) -> None:
    placed = infer_castling_rights(state.board)
    for color in (Color.WHITE, Color.BLACK):
        for side in CastlingSide:
            if state.castling_rights.has(color, side) and not placed.has(color, side):
                rook_sq, _ = castling_rook_squares(color, side)
                report.warnings.append(
                    f"{color.value} may castle {side.value} but king or rook ({rook_sq}) has left home"
                )


def validate_consistency(state: GameState) -> ConsistencyReport:
    """Cross-check board, turn, counters, status and special-move state."""
    report = ConsistencyReport()
    _check_kings(state, report)
    _check_turn(state, report)
    _check_counters(state, report)
    _check_status(state, report)
    _check_en_passant(state, report)
    _check_castling(state, report)
    return report


def validate_status_transition(old: GameStatus, new: GameStatus) -> Optional[str]:
    """Return why ``old`` -> ``new`` is not allowed, or None if it is.

    Playable statuses may move to any status; terminal statuses are final.
    """
    if old in PLAYABLE_STATUSES:
        return None
    if old in TERMINAL_STATUSES and new is not old:
        return f"game already ended in {old.value}; cannot become {new.value}"
    return None
