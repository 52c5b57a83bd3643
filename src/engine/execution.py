from __future__ import annotations

import logging
from typing import Optional

from .board import Color, Piece, PieceType
from .errors import SystemFault
from .geometry import (
    castling_rook_squares,
    castling_side,
    en_passant_capture_square,
    is_castling_attempt,
    is_en_passant_capture,
    is_promotion_move,
)
from .move import Move
from .state import ROOK_CORNERS, CastlingRights, GameState, MoveRecord


logger = logging.getLogger(__name__)


def _rights_after(
    rights: CastlingRights, piece: Piece, move: Move, captured: Optional[Piece]
) -> CastlingRights:
    """Clear every castling right the move forfeits; rights never come back."""
    if piece.type is PieceType.KING:
        rights = rights.without(piece.color)
    for (color, side), corner in ROOK_CORNERS.items():
        if piece.type is PieceType.ROOK and color is piece.color and move.from_sq == corner:
            rights = rights.without(color, side)
        if (
            captured is not None
            and captured.type is PieceType.ROOK
            and captured.color is color
            and move.to_sq == corner
        ):
            rights = rights.without(color, side)
    return rights


def execute_move(state: GameState, move: Move) -> MoveRecord:
    """Apply an already validated move to ``state`` in place.

    Handles en passant removal, castling rook relocation and promotion
    (queen unless another piece is given), appends the ``MoveRecord`` and
    updates the en passant target, castling rights, clocks and turn. Status
    is left to termination detection.

    Args:
        state (GameState): Game to mutate.
        move (Move): Legal move for the side to move.

    Returns:
        MoveRecord: The record appended to ``state.history``.

    Raises:
        SystemFault: If the move does not fit the board (empty origin square,
            missing castling rook); validation should have rejected it.
    """
    board = state.board
    piece = board.get(move.from_sq)
    if piece is None:
        raise SystemFault("no piece to move", square=str(move.from_sq))

    counters = state.counters()
    captured = board.get(move.to_sq)
    en_passant = is_en_passant_capture(board, piece, move.from_sq, move.to_sq, state.en_passant_target)
    castling = None

    if en_passant:
        victim_sq = en_passant_capture_square(move.from_sq, move.to_sq)
        captured = board[victim_sq]
        board[victim_sq] = None

    if is_castling_attempt(piece, move.from_sq, move.to_sq):
        castling = castling_side(move.from_sq, move.to_sq)
        rook_from, rook_to = castling_rook_squares(piece.color, castling)
        rook = board.get(rook_from)
        if rook is None:
            raise SystemFault("castling rook missing", square=str(rook_from))
        board[rook_from] = None
        board[rook_to] = rook

    promotion = None
    landed = piece
    if is_promotion_move(piece, move.to_sq):
        promotion = move.promotion or PieceType.QUEEN
        landed = Piece(promotion, piece.color)

    board[move.from_sq] = None
    board[move.to_sq] = landed

    record = MoveRecord(
        from_sq=move.from_sq,
        to_sq=move.to_sq,
        piece=piece,
        captured=captured,
        promotion=promotion,
        castling=castling,
        en_passant=en_passant,
        counters=counters,
    )
    state.history.append(record)

    if piece.type is PieceType.PAWN and abs(move.to_sq.row - move.from_sq.row) == 2:
        state.en_passant_target = move.from_sq.offset(piece.color.forward, 0)
    else:
        state.en_passant_target = None

    state.castling_rights = _rights_after(state.castling_rights, piece, move, captured)

    if piece.type is PieceType.PAWN or captured is not None:
        state.halfmove_clock = 0
    else:
        state.halfmove_clock += 1
    if piece.color is Color.BLACK:
        state.fullmove_number += 1
    state.turn = piece.color.opponent
    state.invalidate_caches()

    logger.info(
        "Move executed",
        extra={
            "move": move.to_uci(),
            "piece": piece.type.value,
            "color": piece.color.value,
            "captured": captured.type.value if captured else None,
            "castling": castling.value if castling else None,
            "en_passant": en_passant,
            "promotion": promotion.value if promotion else None,
        },
    )
    return record
