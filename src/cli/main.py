from __future__ import annotations

import argparse
from functools import partial
from typing import List, Optional

import uvicorn

from src.protocol.http.app import create_app


LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the chess rules engine over HTTP")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVELS,
        default="info",
        help="Log level for the app and uvicorn (default: info)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    factory = partial(create_app, log_level=args.log_level.upper())
    uvicorn.run(factory, factory=True, host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
