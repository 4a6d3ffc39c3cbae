"""
Append-only pin log.

One line per successful pin:

    <url> <hash> <version>

The file is opened once at startup and every write goes through a single
lock so concurrent pin runs never interleave partial lines. There is no
read API; the log is the durable record and nothing here rewrites it.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import IO, Optional

from .errors import PersistenceError, StartupError
from .models import PackageRecord

log = logging.getLogger(__name__)


class PinLog:
    def __init__(self, path: str) -> None:
        self.path = path
        self._fh: Optional[IO[str]] = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._fh is not None and not self._fh.closed

    def open(self) -> None:
        created = not os.path.exists(self.path)
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._fh = open(self.path, "a", encoding="utf-8", buffering=1)
        except OSError as e:
            raise StartupError(f"opening pin log {self.path}: {e}") from e
        log.info("%s pin log at %s", "Created" if created else "Appending to", self.path)

    def append(self, record: PackageRecord) -> None:
        line = record.log_line()
        with self._lock:
            if not self.is_open:
                raise PersistenceError("writing log file: pin log is not open")
            try:
                self._fh.write(line)
                self._fh.flush()
            except (OSError, ValueError) as e:
                raise PersistenceError(f"writing log file: {e}") from e

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
