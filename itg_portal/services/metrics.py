from __future__ import annotations

from collections import defaultdict
from threading import Lock
from typing import Dict


class MetricsTracker:
    """Thread-safe tracker of permission resolutions per user and category."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._per_user: Dict[str, Dict[str, int]] = defaultdict(lambda: {"total": 0})
        self._per_category: Dict[str, int] = defaultdict(int)
        self._grand_total = 0

    def record(self, username: str, category: str, cache_hit: bool = False) -> None:
        normalized_user = username.strip().lower()
        normalized_category = category.strip().lower()
        with self._lock:
            user_entry = self._per_user[normalized_user]
            user_entry["total"] = user_entry.get("total", 0) + 1
            if cache_hit:
                user_entry["cache_hits"] = user_entry.get("cache_hits", 0) + 1
            self._per_category[normalized_category] += 1
            self._grand_total += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            per_user_copy = {
                user: dict(counts)
                for user, counts in self._per_user.items()
            }
            return {
                "grand_total": self._grand_total,
                "per_user": per_user_copy,
                "per_category": dict(self._per_category),
            }

    def reset(self) -> None:
        with self._lock:
            self._per_user.clear()
            self._per_category.clear()
            self._grand_total = 0
