"""In-memory asset cache shared by the font and image resolvers."""

import threading
from typing import Any, Dict, Generic, Hashable, Optional, TypeVar

V = TypeVar('V')


class AssetCache(Generic[V]):
    """Process-wide binary cache with write-once entries.

    Entries live until clear() is called. put() is an atomic insert: when two
    concurrent resolutions race on one key the first stored value is kept and
    returned to both, so callers always observe a single value per key.
    """

    def __init__(self, name: str = 'assets'):
        self.name = name
        self._entries: Dict[Hashable, V] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[V]:
        return self._entries.get(key)

    def put(self, key: Hashable, value: V) -> V:
        with self._lock:
            return self._entries.setdefault(key, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Any) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AssetCache({self.name!r}, entries={len(self._entries)})"


# Shared by resolvers constructed without an explicit cache
FONT_CACHE: AssetCache = AssetCache('fonts')
IMAGE_CACHE: AssetCache = AssetCache('images')
