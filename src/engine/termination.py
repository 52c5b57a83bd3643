from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from .attacks import DIAGONAL_DIRS, KING_OFFSETS, KNIGHT_OFFSETS, ORTHOGONAL_DIRS
from .board import PROMOTION_TYPES, Board, Color, Piece, PieceType, Square
from .check import is_in_check
from .consistency import validate_status_transition
from .move import Move
from .state import GameState, GameStatus
from .validation import validate_move


logger = logging.getLogger(__name__)

_SLIDER_DIRS = {
    PieceType.BISHOP: DIAGONAL_DIRS,
    PieceType.ROOK: ORTHOGONAL_DIRS,
    PieceType.QUEEN: ORTHOGONAL_DIRS + DIAGONAL_DIRS,
}


def _pawn_targets(sq: Square, piece: Piece) -> Iterator[Square]:
    forward = piece.color.forward
    yield sq.offset(forward, 0)
    if sq.row == piece.color.pawn_row:
        yield sq.offset(2 * forward, 0)
    yield sq.offset(forward, -1)
    yield sq.offset(forward, 1)


def _ray_targets(board: Board, sq: Square, directions) -> Iterator[Square]:
    for d_row, d_col in directions:
        target = sq.offset(d_row, d_col)
        while target.in_bounds:
            yield target
            if board[target] is not None:
                break
            target = target.offset(d_row, d_col)


def _targets(board: Board, sq: Square, piece: Piece) -> Iterator[Square]:
    if piece.type is PieceType.PAWN:
        yield from _pawn_targets(sq, piece)
    elif piece.type is PieceType.KNIGHT:
        yield from (sq.offset(dr, dc) for dr, dc in KNIGHT_OFFSETS)
    elif piece.type is PieceType.KING:
        yield from (sq.offset(dr, dc) for dr, dc in KING_OFFSETS)
        yield sq.offset(0, 2)
        yield sq.offset(0, -2)
    else:
        yield from _ray_targets(board, sq, _SLIDER_DIRS[piece.type])


def generate_candidates(board: Board, color: Color) -> Iterator[Move]:
    """Yield pseudo-legal candidate moves for ``color``.

    Candidates only need the right shape; the validation pipeline decides
    which of them are legal. Pawn moves onto the last rank are yielded once
    per promotion piece.
    """
    for sq, piece in board.pieces(color):
        for target in _targets(board, sq, piece):
            if not target.in_bounds:
                continue
            if piece.type is PieceType.PAWN and target.row == color.promotion_row:
                for promo in PROMOTION_TYPES:
                    yield Move(sq, target, promo)
            else:
                yield Move(sq, target)


def get_legal_moves(state: GameState, color: Optional[Color] = None) -> List[Move]:
    """Return every legal move for ``color`` (default: side to move).

    Each candidate goes through ``validate_move``, the same pipeline used
    for submitted moves. A fresh list is built on every call.
    """
    color = color or state.turn
    return [
        m
        for m in generate_candidates(state.board, color)
        if validate_move(state, m, as_color=color) is None
    ]


def has_legal_moves(state: GameState, color: Optional[Color] = None) -> bool:
    color = color or state.turn
    return any(
        validate_move(state, m, as_color=color) is None
        for m in generate_candidates(state.board, color)
    )


def is_checkmate(state: GameState, color: Optional[Color] = None) -> bool:
    color = color or state.turn
    return is_in_check(state, color) and not has_legal_moves(state, color)


def is_stalemate(state: GameState, color: Optional[Color] = None) -> bool:
    color = color or state.turn
    return not is_in_check(state, color) and not has_legal_moves(state, color)


def update_status(state: GameState) -> GameStatus:
    """Recompute ``status`` and ``winner`` for the side to move.

    Terminal statuses are final: a transition out of one is refused and the
    current status is returned unchanged.
    """
    color = state.turn
    in_check = is_in_check(state, color)
    can_move = has_legal_moves(state, color)
    winner = None
    if in_check and not can_move:
        status = GameStatus.CHECKMATE
        winner = color.opponent
    elif in_check:
        status = GameStatus.CHECK
    elif not can_move:
        status = GameStatus.STALEMATE
    else:
        status = GameStatus.ACTIVE
    refused = validate_status_transition(state.status, status)
    if refused is not None:
        logger.debug("Status change refused", extra={"reason": refused})
        return state.status
    if state.is_over:
        # Same terminal status again; nothing new to record.
        return state.status
    state.status = status
    state.winner = winner
    if state.is_over:
        logger.info(
            "Game over",
            extra={
                "status": state.status.value,
                "winner": state.winner.value if state.winner else None,
                "moves": len(state.history),
            },
        )
    return state.status
