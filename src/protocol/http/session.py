from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from ...engine.game import Game


class InMemorySessionStore:
    """Thread-safe in-memory store of games in progress.

    Responsibilities:
    - Create new games with unique `game_id`s
    - Retrieve and delete games by `game_id`
    - Serialize moves per game: the engine does no locking of its own, so
      anything that mutates a game goes through `locked()`
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}
        self._game_locks: Dict[str, threading.RLock] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            self._games[gid] = game
            self._game_locks[gid] = threading.RLock()
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    @contextmanager
    def locked(self, game_id: str) -> Iterator[Optional[Game]]:
        """Yield the game (or None) while holding its per-game lock."""
        with self._lock:
            game = self._games.get(game_id)
            game_lock = self._game_locks.get(game_id)
        if game is None or game_lock is None:
            yield None
            return
        with game_lock:
            yield game

    def delete(self, game_id: str) -> bool:
        with self._lock:
            self._game_locks.pop(game_id, None)
            return self._games.pop(game_id, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._games)

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
