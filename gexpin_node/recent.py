from __future__ import annotations

import threading
from typing import Dict, List

from .models import PackageRecord


class RecentPins:
    """
    Most recently pinned package per source URL.

    Ephemeral: lives for the process lifetime and is not rebuilt from the
    pin log. Guarded by its own lock, separate from the log's, so a slow
    log write never blocks /recent.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_url: Dict[str, PackageRecord] = {}

    def record(self, rec: PackageRecord) -> None:
        with self._lock:
            self._by_url[rec.Url] = rec

    def get(self, url: str):
        with self._lock:
            return self._by_url.get(url)

    def snapshot(self) -> List[PackageRecord]:
        # copy under the lock, serialize outside it
        with self._lock:
            return list(self._by_url.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_url)
