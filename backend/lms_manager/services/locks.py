"""Process-local serialization of state-mutating operations per game.

Each game id gets its own re-entrant lock, so resolution, auto-assignment and
pick submission on one game never interleave while different games proceed
concurrently. This only covers a single process; across processes the
`SELECT ... FOR UPDATE` on the game row (PostgreSQL) does the job.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock, RLock
from typing import Dict, Iterator

_REGISTRY_LOCK = Lock()
_GAME_LOCKS: Dict[int, RLock] = {}


def _lock_for(game_id: int) -> RLock:
    with _REGISTRY_LOCK:
        lock = _GAME_LOCKS.get(game_id)
        if lock is None:
            lock = RLock()
            _GAME_LOCKS[game_id] = lock
        return lock


@contextmanager
def game_lock(game_id: int, *, timeout_s: float | None = None) -> Iterator[None]:
    """Hold the lock of `game_id` for the duration of the block.

    Raises:
        TimeoutError: the lock was not acquired within `timeout_s` seconds.
    """
    lock = _lock_for(int(game_id))
    if timeout_s is None:
        lock.acquire()
    elif not lock.acquire(timeout=max(0.0, float(timeout_s))):
        raise TimeoutError(f"game_lock timeout (game_id={game_id}, timeout_s={timeout_s})")
    try:
        yield
    finally:
        lock.release()


def forget_game_lock(game_id: int) -> None:
    """Drop the lock of a deleted game."""
    with _REGISTRY_LOCK:
        _GAME_LOCKS.pop(int(game_id), None)
