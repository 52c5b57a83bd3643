#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import logging
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo root (which contains `src/`) to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.engine.board import Color
from src.engine.perft import divide, perft
from src.engine.state import GameState


KIWIPETE = (
    "r...k..r",
    "p.ppqpb.",
    "bn..pnp.",
    "...PN...",
    ".p..P...",
    "..N..Q.p",
    "PPPBBPPP",
    "R...K..R",
)

POSITIONS = {
    "start": None,
    "kiwipete": KIWIPETE,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Count legal move-tree leaves (perft)")
    parser.add_argument(
        "--position", choices=sorted(POSITIONS), default="start", help="Named position (default: start)"
    )
    parser.add_argument("--diagram", type=str, help="Eight '/'-separated diagram rows, row 0 first")
    parser.add_argument("--turn", choices=[c.value for c in Color], default="white")
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument("--divide", action="store_true", help="Print per-move counts")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    if args.diagram:
        state = GameState.from_diagram(args.diagram.split("/"), turn=Color(args.turn))
    elif POSITIONS[args.position] is None:
        state = GameState.new()
    else:
        state = GameState.from_diagram(POSITIONS[args.position], turn=Color(args.turn))

    start = time.perf_counter()
    if args.divide:
        counts = divide(state, args.depth)
        for uci in sorted(counts):
            print(f"{uci}: {counts[uci]}")
        nodes = sum(counts.values())
    else:
        nodes = perft(state, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
