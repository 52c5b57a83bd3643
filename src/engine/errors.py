"""Move-rejection taxonomy.

Rejections are values, not exceptions: the validation pipeline returns a
``ValidationError`` and leaves the game untouched. Only internal faults that
point at a bug are raised, as ``SystemFault``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorCategory(str, Enum):
    FORMAT = "format"
    COORDINATE = "coordinate"
    PIECE = "piece"
    MOVEMENT = "movement"
    PATH = "path"
    RULE = "rule"
    CHECK = "check"
    STATE = "state"
    SYSTEM = "system"


class Severity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class _KindInfo:
    category: ErrorCategory
    severity: Severity
    message: str
    suggestions: Tuple[str, ...]
    recoverable: bool = False


class ErrorKind(str, Enum):
    MALFORMED_MOVE = "MALFORMED_MOVE"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_COORDINATES = "INVALID_COORDINATES"
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    NO_PIECE = "NO_PIECE"
    INVALID_PIECE = "INVALID_PIECE"
    WRONG_TURN = "WRONG_TURN"
    INVALID_MOVEMENT = "INVALID_MOVEMENT"
    PATH_BLOCKED = "PATH_BLOCKED"
    CAPTURE_OWN_PIECE = "CAPTURE_OWN_PIECE"
    INVALID_CASTLING = "INVALID_CASTLING"
    INVALID_PROMOTION = "INVALID_PROMOTION"
    INVALID_EN_PASSANT = "INVALID_EN_PASSANT"
    PINNED_PIECE_INVALID_MOVE = "PINNED_PIECE_INVALID_MOVE"
    KING_IN_CHECK = "KING_IN_CHECK"
    CHECK_NOT_RESOLVED = "CHECK_NOT_RESOLVED"
    DOUBLE_CHECK_KING_ONLY = "DOUBLE_CHECK_KING_ONLY"
    SYSTEM_ERROR = "SYSTEM_ERROR"

    @property
    def info(self) -> _KindInfo:
        return _KIND_INFO[self]

    @property
    def category(self) -> ErrorCategory:
        return self.info.category

    @property
    def severity(self) -> Severity:
        return self.info.severity

    @property
    def recoverable(self) -> bool:
        return self.info.recoverable

    @property
    def default_message(self) -> str:
        return self.info.message

    @property
    def suggestions(self) -> Tuple[str, ...]:
        return self.info.suggestions


_C = ErrorCategory
_S = Severity

_KIND_INFO: Dict[ErrorKind, _KindInfo] = {
    ErrorKind.MALFORMED_MOVE: _KindInfo(
        _C.FORMAT, _S.HIGH, "Move must be an object with 'from' and 'to' squares.",
        ("Ensure the move has 'from' and 'to' entries with row/col coordinates",),
    ),
    ErrorKind.INVALID_FORMAT: _KindInfo(
        _C.FORMAT, _S.HIGH, "Move format is incorrect.",
        ("Check that coordinates are integers", "Verify the promotion piece is valid"),
    ),
    ErrorKind.INVALID_COORDINATES: _KindInfo(
        _C.COORDINATE, _S.HIGH, "Invalid coordinates.",
        ("Use coordinates between 0 and 7", "Choose a destination different from the origin"),
    ),
    ErrorKind.GAME_NOT_ACTIVE: _KindInfo(
        _C.STATE, _S.HIGH, "Game is not active.",
        ("Start a new game to continue playing",),
    ),
    ErrorKind.NO_PIECE: _KindInfo(
        _C.PIECE, _S.HIGH, "No piece at the source square.",
        ("Select a square that contains one of your pieces",),
    ),
    ErrorKind.INVALID_PIECE: _KindInfo(
        _C.PIECE, _S.HIGH, "Invalid piece data detected.",
        ("Reload the game if piece data seems corrupted",),
        recoverable=True,
    ),
    ErrorKind.WRONG_TURN: _KindInfo(
        _C.PIECE, _S.MEDIUM, "Not your turn.",
        ("Wait for your turn", "Check whose turn it is"),
    ),
    ErrorKind.INVALID_MOVEMENT: _KindInfo(
        _C.MOVEMENT, _S.MEDIUM, "This piece cannot move in that pattern.",
        ("Review how this piece can move", "Choose a valid destination"),
    ),
    ErrorKind.PATH_BLOCKED: _KindInfo(
        _C.PATH, _S.MEDIUM, "The path is blocked by other pieces.",
        ("Clear the path by moving blocking pieces first",),
    ),
    ErrorKind.CAPTURE_OWN_PIECE: _KindInfo(
        _C.RULE, _S.MEDIUM, "You cannot capture your own pieces.",
        ("Target an opponent's piece or an empty square",),
    ),
    ErrorKind.INVALID_CASTLING: _KindInfo(
        _C.RULE, _S.MEDIUM, "Castling is not allowed in this position.",
        (
            "Ensure king and rook have not moved",
            "Check that the path is clear",
            "Make sure the king is not in or passing through check",
        ),
    ),
    ErrorKind.INVALID_PROMOTION: _KindInfo(
        _C.RULE, _S.MEDIUM, "Invalid pawn promotion.",
        ("Choose queen, rook, bishop or knight when a pawn reaches the last rank",),
        recoverable=True,
    ),
    ErrorKind.INVALID_EN_PASSANT: _KindInfo(
        _C.RULE, _S.MEDIUM, "En passant capture is not valid here.",
        ("En passant must be played immediately after the opponent's two-square pawn move",),
    ),
    ErrorKind.PINNED_PIECE_INVALID_MOVE: _KindInfo(
        _C.CHECK, _S.HIGH, "This piece is pinned and cannot move there.",
        ("Move along the pin line", "Capture the pinning piece"),
    ),
    ErrorKind.KING_IN_CHECK: _KindInfo(
        _C.CHECK, _S.HIGH, "This move would put your king in check.",
        ("Move the king to safety", "Block the attack", "Capture the attacking piece"),
    ),
    ErrorKind.CHECK_NOT_RESOLVED: _KindInfo(
        _C.CHECK, _S.HIGH, "This move does not resolve the check.",
        ("Block the check", "Capture the attacking piece", "Move the king"),
    ),
    ErrorKind.DOUBLE_CHECK_KING_ONLY: _KindInfo(
        _C.CHECK, _S.HIGH, "In double check, only the king can move.",
        ("Move the king out of both attacks",),
    ),
    ErrorKind.SYSTEM_ERROR: _KindInfo(
        _C.SYSTEM, _S.CRITICAL, "An internal error occurred.",
        ("Try the move again", "Report persistent issues"),
        recoverable=True,
    ),
}

_missing = set(ErrorKind) - set(_KIND_INFO)
if _missing:
    raise RuntimeError(f"error kinds without metadata: {sorted(k.value for k in _missing)}")


@dataclass(frozen=True)
class ValidationError:
    """A rejected move: the kind, a message and optional diagnostic details."""

    kind: ErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def of(cls, kind: ErrorKind, message: Optional[str] = None, **details: Any) -> "ValidationError":
        return cls(kind, message or kind.default_message, dict(details))

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    @property
    def suggestions(self) -> Tuple[str, ...]:
        return self.kind.suggestions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "category": self.category.value,
            "severity": self.kind.severity.value,
            "suggestions": list(self.suggestions),
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SystemFault(RuntimeError):
    """An engine invariant was broken; this is a bug, not an illegal move."""

    kind = ErrorKind.SYSTEM_ERROR

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.details = details


class IllegalMoveError(ValueError):
    """Raised by exception-style adapters when a move is rejected."""

    def __init__(self, error: ValidationError) -> None:
        super().__init__(str(error))
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind
