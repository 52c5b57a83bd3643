from __future__ import annotations

from typing import Dict

from .execution import execute_move
from .state import GameState
from .termination import get_legal_moves, update_status


def perft(state: GameState, depth: int) -> int:
    """Compute perft node count for ``state`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Children are played on copies, so ``state`` is never modified. Leaves are
    counted in bulk from the legal-move list at depth 1.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    moves = get_legal_moves(state)
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        child = state.copy()
        execute_move(child, m)
        update_status(child)
        nodes += perft(child, depth - 1)
    return nodes


def divide(state: GameState, depth: int) -> Dict[str, int]:
    """Per-root-move perft counts, keyed by coordinate notation."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    counts: Dict[str, int] = {}
    for m in get_legal_moves(state):
        child = state.copy()
        execute_move(child, m)
        update_status(child)
        counts[m.to_uci()] = perft(child, depth - 1)
    return counts
