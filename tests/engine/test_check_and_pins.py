from __future__ import annotations

import pytest

from src.engine.board import Color, PieceType
from src.engine.check import (
    find_pin,
    get_check_info,
    is_in_check,
    is_piece_pinned,
    simulated_move,
    would_be_in_check,
)
from src.engine.errors import SystemFault
from src.engine.move import Move, parse_uci
from src.engine.move import str_to_square as sq
from src.engine.state import GameState


def test_single_check_details() -> None:
    s = GameState.from_diagram(
        [
            "....k...",
            "........",
            "........",
            "........",
            ".b......",
            "........",
            "........",
            "....K...",
        ]
    )
    info = get_check_info(s, Color.WHITE)
    assert info.in_check and not info.is_double_check
    assert info.check_type == "bishop_check"
    assert info.king_square == sq("e1")
    assert [a.square for a in info.attackers] == [sq("b4")]
    assert not is_in_check(s, Color.BLACK)


def test_double_check_is_reported() -> None:
    s = GameState.from_diagram(
        [
            "....k...",
            "........",
            "........",
            "....r...",
            "........",
            "...n....",
            "........",
            "....K...",
        ]
    )
    info = get_check_info(s)
    assert info.is_double_check
    assert info.check_type == "double_check"
    assert {a.piece.type for a in info.attackers} == {PieceType.ROOK, PieceType.KNIGHT}


def test_check_info_is_memoised_until_board_changes() -> None:
    s = GameState.new()
    first = get_check_info(s, Color.WHITE)
    assert get_check_info(s, Color.WHITE) is first
    s.board[sq("e2")] = None
    assert get_check_info(s, Color.WHITE) is not first


def test_check_memo_accessors_follow_board_version() -> None:
    s = GameState.new()
    assert s.cached_check(Color.WHITE) is None
    info = get_check_info(s, Color.WHITE)
    assert s.cached_check(Color.WHITE) is info
    saved = s.save_caches()
    s.board[sq("e2")] = None
    assert s.cached_check(Color.WHITE) is None
    s.invalidate_caches()
    s.restore_caches(saved)
    assert Color.WHITE in saved
    assert s.cached_check(Color.BLACK) is None


def test_missing_king_is_a_system_fault() -> None:
    s = GameState.from_diagram(["....k..."] + ["........"] * 7)
    with pytest.raises(SystemFault):
        get_check_info(s, Color.WHITE)


def test_pin_along_file_limits_destinations() -> None:
    s = GameState.from_diagram(
        [
            "k...r...",
            "........",
            "........",
            "........",
            "........",
            "........",
            "....R...",
            "....K...",
        ]
    )
    pin = find_pin(s.board, sq("e2"))
    assert pin is not None
    assert pin.pinner_square == sq("e8")
    assert pin.king_square == sq("e1")
    assert set(pin.line) == {sq("e3"), sq("e4"), sq("e5"), sq("e6"), sq("e7"), sq("e8")}
    assert pin.allows(sq("e8")) and not pin.allows(sq("d2"))


def test_no_pin_when_another_piece_shields_or_slider_does_not_match() -> None:
    s = GameState.from_diagram(
        [
            "k...r...",
            "........",
            "....p...",
            "........",
            "........",
            "........",
            "....R...",
            "b..RK...",
        ]
    )
    # The black pawn on e6 shields the e2 rook.
    assert not is_piece_pinned(s.board, sq("e2"))
    # A bishop cannot pin along a rank.
    assert not is_piece_pinned(s.board, sq("d1"))
    s2 = GameState.from_diagram(
        [
            "k.......",
            "........",
            "........",
            "........",
            "b.......",
            "........",
            "..N.....",
            "...K....",
        ]
    )
    pin = find_pin(s2.board, sq("c2"))
    assert pin is not None and pin.pinner_square == sq("a4")


def test_would_be_in_check_restores_everything() -> None:
    s = GameState.from_diagram(
        [
            "k...r...",
            "........",
            "........",
            "...pP...",
            "........",
            "........",
            "........",
            "R...K..R",
        ],
        en_passant_target=sq("d6"),
    )
    before = s.copy()
    version = s.board.version
    cached = get_check_info(s, Color.WHITE)

    # Capturing en passant takes the e5 pawn off the file and exposes the king.
    assert would_be_in_check(s, parse_uci("e5d6"))
    assert not would_be_in_check(s, parse_uci("e5e6"))
    assert not would_be_in_check(s, parse_uci("e1d1"))
    assert not would_be_in_check(s, parse_uci("e1g1"))
    assert not would_be_in_check(s, parse_uci("e1c1"))

    assert s == before
    assert s.board.version == version
    assert s.en_passant_target == sq("d6")
    assert get_check_info(s, Color.WHITE) is cached


def test_simulation_restores_on_exception() -> None:
    s = GameState.new()
    before = s.copy()
    with pytest.raises(RuntimeError):
        with simulated_move(s, Move(sq("e2"), sq("e4"))):
            assert s.board[sq("e4")] is not None
            raise RuntimeError("boom")
    assert s == before
