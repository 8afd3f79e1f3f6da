"""
Per-handle mutable state shared by the engine's workers.

One EngineState is created with each MediaArtProcess and lives as long as
it does. Memo entries are never evicted.
"""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Set, Tuple

from .models import MediaArtType

MemoKey = Tuple[str, str, str, str]


def memo_key(art_type: MediaArtType, artist: Optional[str], title: Optional[str],
             directory: Optional[Path]) -> MemoKey:
    return (art_type.value, artist or "", title or "", str(directory) if directory else "")


class EngineState:
    """Memo of attempted directory heuristics, download switch and key locks"""

    def __init__(self):
        self._lock = threading.Lock()
        self._attempted: Set[MemoKey] = set()
        self._key_locks: Dict[str, threading.Lock] = {}
        self._downloads_disabled = False

    def record(self, key: MemoKey) -> None:
        with self._lock:
            self._attempted.add(key)

    def was_attempted(self, key: MemoKey) -> bool:
        with self._lock:
            return key in self._attempted

    @property
    def memo_size(self) -> int:
        with self._lock:
            return len(self._attempted)

    @property
    def downloads_disabled(self) -> bool:
        return self._downloads_disabled

    def disable_downloads(self) -> None:
        self._downloads_disabled = True

    @contextmanager
    def serialized(self, cache_path: Path) -> Iterator[None]:
        """Hold the lock for one cache artifact for the duration of the block"""
        with self._lock:
            lock = self._key_locks.setdefault(str(cache_path), threading.Lock())
        with lock:
            yield
