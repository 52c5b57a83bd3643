from __future__ import annotations

import pytest

from src.engine.board import Color
from src.engine.consistency import expected_turn, validate_consistency, validate_status_transition
from src.engine.game import submit_move
from src.engine.move import parse_uci
from src.engine.move import str_to_square as sq
from src.engine.state import CastlingRights, GameState, GameStatus


KINGS_ONLY = [
    "....k...",
    "........",
    "........",
    "........",
    "........",
    "........",
    "........",
    "....K...",
]


def test_played_games_stay_consistent() -> None:
    s = GameState.new()
    assert validate_consistency(s).ok
    for uci in ("e2e4", "d7d5", "e4d5", "g8f6", "f1b5", "c7c6", "d5c6", "d8d2"):
        assert submit_move(s, parse_uci(uci)).ok, uci
        report = validate_consistency(s)
        assert report.ok, (uci, report.errors)
    assert s.status is GameStatus.CHECK
    assert expected_turn(s) is Color.WHITE


def test_missing_king_is_an_error() -> None:
    s = GameState.from_diagram(KINGS_ONLY)
    s.board[sq("e8")] = None
    report = validate_consistency(s)
    assert not report.ok
    assert any("black has 0 kings" in e for e in report.errors)


def test_turn_must_match_history() -> None:
    s = GameState.new()
    submit_move(s, parse_uci("e2e4"))
    s.turn = Color.WHITE
    report = validate_consistency(s)
    assert len(report.errors) >= 2


def test_black_to_move_start_counts_from_initial_turn() -> None:
    s = GameState.from_diagram(KINGS_ONLY, turn=Color.BLACK)
    assert expected_turn(s) is Color.BLACK
    submit_move(s, parse_uci("e8d8"))
    assert expected_turn(s) is Color.WHITE
    assert validate_consistency(s).ok


def test_en_passant_target_checks() -> None:
    s = GameState.from_diagram(KINGS_ONLY, turn=Color.BLACK, en_passant_target=sq("e4"))
    report = validate_consistency(s)
    assert any("wrong rank" in e for e in report.errors)

    s = GameState.new()
    submit_move(s, parse_uci("g1f3"))
    s.en_passant_target = sq("e3")
    report = validate_consistency(s)
    assert any("two-square pawn advance" in e for e in report.errors)


def test_counters_and_winner() -> None:
    s = GameState.from_diagram(KINGS_ONLY, halfmove_clock=-1, fullmove_number=0)
    s.winner = Color.WHITE
    errors = validate_consistency(s).errors
    assert any("halfmove" in e for e in errors)
    assert any("fullmove" in e for e in errors)
    assert any("winner set" in e for e in errors)


def test_stale_castling_rights_only_warn() -> None:
    s = GameState.from_diagram(KINGS_ONLY, castling_rights=CastlingRights.all())
    report = validate_consistency(s)
    assert report.ok
    assert len(report.warnings) == 4


@pytest.mark.parametrize(
    ("old", "new", "allowed"),
    [
        (GameStatus.ACTIVE, GameStatus.CHECK, True),
        (GameStatus.CHECK, GameStatus.ACTIVE, True),
        (GameStatus.CHECK, GameStatus.CHECKMATE, True),
        (GameStatus.ACTIVE, GameStatus.STALEMATE, True),
        (GameStatus.CHECKMATE, GameStatus.CHECKMATE, True),
        (GameStatus.CHECKMATE, GameStatus.ACTIVE, False),
        (GameStatus.STALEMATE, GameStatus.CHECK, False),
    ],
)
def test_status_transitions(old: GameStatus, new: GameStatus, allowed: bool) -> None:
    assert (validate_status_transition(old, new) is None) is allowed
