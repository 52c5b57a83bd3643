"""Ordered move validation.

Stages run in a fixed priority order and stop at the first failure:

1. format             6. geometry
2. game state         7. path (not knights, not castling)
3. coordinates        8. capture (not castling)
4. piece presence     9. special moves (castling, promotion, en passant)
5. turn              10. check safety

Validation never mutates the game. The only writes happen inside
``simulated_move``, which always restores the position before returning.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import ValidationError as PayloadError

from .attacks import is_square_attacked
from .board import Color, Piece, PieceType, Square
from .check import find_pin, get_check_info, is_in_check, would_be_in_check
from .errors import ErrorKind, ValidationError
from .geometry import (
    captures_own_piece,
    castling_rook_squares,
    castling_side,
    en_passant_capture_square,
    follows_geometry,
    is_castling_attempt,
    is_en_passant_capture,
    is_path_clear,
    is_promotion_move,
    king_home_square,
    squares_between,
)
from .move import Move, MovePayload, promotion_from_value
from .state import PLAYABLE_STATUSES, GameState


logger = logging.getLogger(__name__)

RawMove = Union[Move, Mapping, Any]


def _reject(
    kind: ErrorKind,
    move: Optional[Move] = None,
    message: Optional[str] = None,
    **details: Any,
) -> ValidationError:
    error = ValidationError.of(kind, message, **details)
    logger.debug(
        "Move rejected",
        extra={
            "kind": kind.value,
            "from_sq": str(move.from_sq) if move is not None else None,
            "to_sq": str(move.to_sq) if move is not None else None,
        },
    )
    return error


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_square(value: Any) -> bool:
    return isinstance(value, Square) and _is_int(value.row) and _is_int(value.col)


def parse_move(raw: RawMove) -> Union[Move, ValidationError]:
    """Stage 1: turn a submitted move into a ``Move`` or a format error.

    Accepts a ``Move`` or a mapping shaped like
    ``{"from": {"row": r, "col": c}, "to": {...}, "promotion": "queen"}``;
    the squares may also be given as ``Square`` values.
    The promotion may be a piece name or its letter.
    """
    if isinstance(raw, Move):
        if not (_is_square(raw.from_sq) and _is_square(raw.to_sq)):
            return _reject(ErrorKind.INVALID_FORMAT, message="Move coordinates must be integers.")
        if raw.promotion is None:
            return raw
        promo = promotion_from_value(raw.promotion)
        if promo is None:
            return _reject(ErrorKind.INVALID_FORMAT, message=f"Invalid promotion piece: {raw.promotion!r}.")
        return Move(raw.from_sq, raw.to_sq, promo)

    if not isinstance(raw, Mapping):
        return _reject(ErrorKind.MALFORMED_MOVE)
    missing = [key for key in ("from", "to") if raw.get(key) is None]
    if missing:
        return _reject(
            ErrorKind.MALFORMED_MOVE,
            message=f"Move is missing {' and '.join(repr(k) for k in missing)}.",
            missing=missing,
        )
    try:
        payload = MovePayload.model_validate(raw)
    except PayloadError as exc:
        fields = [".".join(str(p) for p in e.get("loc", ())) for e in exc.errors()]
        if all(f.startswith("promotion") for f in fields):
            message = f"Invalid promotion piece: {raw.get('promotion')!r}."
        else:
            message = "Move coordinates must be integers."
        return _reject(ErrorKind.INVALID_FORMAT, message=message, fields=fields)
    promo: Optional[PieceType] = None
    if payload.promotion is not None:
        promo = promotion_from_value(payload.promotion)
        if promo is None:
            return _reject(
                ErrorKind.INVALID_FORMAT, message=f"Invalid promotion piece: {payload.promotion!r}."
            )
    from_sq, to_sq = payload.squares()
    return Move(from_sq, to_sq, promo)


def _castling_error(state: GameState, piece: Piece, move: Move) -> Optional[str]:
    """Return the first reason the castle is illegal, or None."""
    color = piece.color
    board = state.board
    if move.from_sq != king_home_square(color):
        return "King is not on its original square."
    side = castling_side(move.from_sq, move.to_sq)
    if not state.castling_rights.has(color, side):
        return f"{color.value.capitalize()} has lost the right to castle {side.value}."
    rook_from, _ = castling_rook_squares(color, side)
    if board.get(rook_from) != Piece(PieceType.ROOK, color):
        return "The castling rook is not on its original square."
    if not is_path_clear(board, move.from_sq, rook_from):
        return "Squares between king and rook are not empty."
    if is_in_check(state, color):
        return "Cannot castle out of check."
    step = 1 if move.to_sq.col > move.from_sq.col else -1
    for sq in (move.from_sq.offset(0, step), move.to_sq):
        if is_square_attacked(board, sq, color.opponent):
            return f"King would pass through or land on an attacked square ({sq})."
    return None


def _special_move_error(state: GameState, piece: Piece, move: Move) -> Optional[ValidationError]:
    if is_castling_attempt(piece, move.from_sq, move.to_sq):
        reason = _castling_error(state, piece, move)
        if reason is not None:
            return _reject(ErrorKind.INVALID_CASTLING, move, reason)
        return None

    if move.promotion is not None:
        if not is_promotion_move(piece, move.to_sq):
            return _reject(
                ErrorKind.INVALID_PROMOTION, move, "Only a pawn reaching the last rank can promote."
            )

    if is_en_passant_capture(state.board, piece, move.from_sq, move.to_sq, state.en_passant_target):
        victim_sq = en_passant_capture_square(move.from_sq, move.to_sq)
        if state.board.get(victim_sq) != Piece(PieceType.PAWN, piece.color.opponent):
            return _reject(ErrorKind.INVALID_EN_PASSANT, move, "No enemy pawn to capture en passant.")
    return None


def _check_safety_error(state: GameState, piece: Piece, move: Move) -> Optional[ValidationError]:
    info = get_check_info(state, piece.color)
    is_king = piece.type is PieceType.KING

    if info.in_check:
        if not is_king:
            if info.is_double_check:
                return _reject(ErrorKind.DOUBLE_CHECK_KING_ONLY, move)
            attacker = info.attackers[0]
            captured_sq = move.to_sq
            if is_en_passant_capture(state.board, piece, move.from_sq, move.to_sq, state.en_passant_target):
                captured_sq = en_passant_capture_square(move.from_sq, move.to_sq)
            captures = captured_sq == attacker.square
            blocks = attacker.is_slider and move.to_sq in set(
                squares_between(info.king_square, attacker.square)
            )
            if not (captures or blocks):
                return _reject(ErrorKind.CHECK_NOT_RESOLVED, move)
            pin = find_pin(state.board, move.from_sq, piece.color)
            if pin is not None and not pin.allows(move.to_sq):
                return _reject(ErrorKind.PINNED_PIECE_INVALID_MOVE, move)
        if would_be_in_check(state, move, piece.color):
            return _reject(ErrorKind.CHECK_NOT_RESOLVED, move)
        return None

    if not is_king:
        pin = find_pin(state.board, move.from_sq, piece.color)
        if pin is not None and not pin.allows(move.to_sq):
            return _reject(
                ErrorKind.PINNED_PIECE_INVALID_MOVE,
                move,
                f"The {piece.type.value} on {move.from_sq} is pinned by the "
                f"{pin.pinner.type.value} on {pin.pinner_square}.",
            )
    if would_be_in_check(state, move, piece.color):
        return _reject(ErrorKind.KING_IN_CHECK, move)
    return None


def validate_move(
    state: GameState, move: RawMove, *, as_color: Optional[Color] = None
) -> Optional[ValidationError]:
    """Run every validation stage for ``move``.

    Args:
        state (GameState): Game to validate against. Left unmodified.
        move (RawMove): A ``Move`` or a move mapping.
        as_color (Optional[Color]): Validate as if this color were to move.
            Defaults to ``state.turn``; used to enumerate the other side's
            replies.

    Returns:
        Optional[ValidationError]: None if the move is legal, else the first
        failure.
    """
    parsed = parse_move(move)
    if isinstance(parsed, ValidationError):
        return parsed
    move = parsed

    if state.status not in PLAYABLE_STATUSES:
        return _reject(ErrorKind.GAME_NOT_ACTIVE, move, f"Game is over ({state.status.value}).")

    if not (move.from_sq.in_bounds and move.to_sq.in_bounds):
        return _reject(ErrorKind.INVALID_COORDINATES, move, "Coordinates must be between 0 and 7.")
    if move.from_sq == move.to_sq:
        return _reject(ErrorKind.INVALID_COORDINATES, move, "Source and destination squares are the same.")

    board = state.board
    piece = board[move.from_sq]
    if piece is None:
        return _reject(ErrorKind.NO_PIECE, move, f"No piece on {move.from_sq}.")
    if not (
        isinstance(piece, Piece)
        and isinstance(piece.type, PieceType)
        and isinstance(piece.color, Color)
    ):
        return _reject(ErrorKind.INVALID_PIECE, move)

    mover = as_color or state.turn
    if piece.color is not mover:
        return _reject(ErrorKind.WRONG_TURN, move, f"It is {mover.value}'s turn.")

    if not follows_geometry(board, piece, move.from_sq, move.to_sq, state.en_passant_target):
        return _reject(
            ErrorKind.INVALID_MOVEMENT,
            move,
            f"A {piece.type.value} cannot move from {move.from_sq} to {move.to_sq}.",
        )

    castling = is_castling_attempt(piece, move.from_sq, move.to_sq)
    if not castling and piece.type is not PieceType.KNIGHT:
        if not is_path_clear(board, move.from_sq, move.to_sq):
            return _reject(ErrorKind.PATH_BLOCKED, move)
    if not castling and captures_own_piece(board, piece, move.to_sq):
        return _reject(ErrorKind.CAPTURE_OWN_PIECE, move)

    error = _special_move_error(state, piece, move)
    if error is not None:
        return error

    return _check_safety_error(state, piece, move)


def is_legal(state: GameState, move: RawMove, *, as_color: Optional[Color] = None) -> bool:
    return validate_move(state, move, as_color=as_color) is None
