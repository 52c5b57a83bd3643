import logging
import os
import sys

import pytest


# Ensure the repository root is on sys.path for `from src...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.engine.state import GameState  # noqa: E402


@pytest.fixture
def start_state() -> GameState:
    return GameState.new()


@pytest.fixture(autouse=True)
def _engine_debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    # Rejections are logged at DEBUG; capture them so tests can assert on them.
    caplog.set_level(logging.DEBUG, logger="src.engine")
