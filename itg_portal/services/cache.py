from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import FrozenSet, Iterable, Optional, Tuple

from .group_matcher import normalize_group_name
from .permission import Permission


class PermissionCache:
    """Thread-safe LRU cache of resolved permissions per user and group set."""

    def __init__(self, max_entries: int = 256) -> None:
        self.max_entries = max_entries
        self._store: OrderedDict[Tuple[str, FrozenSet[str]], Permission] = OrderedDict()
        self._lock = Lock()

    def _make_key(self, username: str, group_names: Iterable[str]) -> Tuple[str, FrozenSet[str]]:
        return (
            username.strip().lower(),
            frozenset(normalize_group_name(name) for name in group_names),
        )

    def get(self, username: str, group_names: Iterable[str]) -> Optional[Permission]:
        key = self._make_key(username, group_names)
        with self._lock:
            if key not in self._store:
                return None
            self._store.move_to_end(key)
            return self._store[key]

    def set(self, username: str, group_names: Iterable[str], permission: Permission) -> None:
        key = self._make_key(username, group_names)
        with self._lock:
            self._store[key] = permission
            self._store.move_to_end(key)
            if len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def invalidate(self, username: str) -> int:
        """Drop every entry for a user, e.g. after their memberships changed."""
        normalized = username.strip().lower()
        with self._lock:
            stale = [key for key in self._store if key[0] == normalized]
            for key in stale:
                del self._store[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._store)
