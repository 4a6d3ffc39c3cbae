"""
gexpin_node/orchestrator.py
--------------------------------------------------
The pin workflow behind POST /pin_package.

    validate -> resolve -> preamble -> refs (streamed) -> pin -> log -> cache -> footer

`prepare()` runs the first two steps before any response byte is written,
so its errors keep their own status (403 / 400). Everything after the
preamble is a PinRun: a worker thread that produces HTML chunks into a
queue which the HTTP response drains. The worker never looks at the
client, so a disconnect does not stop an in-flight pin.

Side effects are ordered pin -> log -> cache and nothing is undone: if the
log write fails the content stays pinned on the node.
"""

from __future__ import annotations

import html
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Iterator, Optional

from .errors import GatewayError, MethodNotAllowedError
from .models import PackageRecord
from .resolver import normalize_github_url

log = logging.getLogger(__name__)

_DONE = object()


@dataclass(frozen=True)
class PinJob:
    path: str
    version: str
    cid: str

    def record(self) -> PackageRecord:
        return PackageRecord(Url=self.path, Hash=self.cid, Version=self.version)


class PinRun:
    """A pin workflow running on its own thread, readable as a chunk iterator."""

    def __init__(self, job: PinJob, chunks: Iterator[str]) -> None:
        self.job = job
        self.error: Optional[BaseException] = None
        self._chunks = chunks
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._done = threading.Event()
        self._thread = threading.Thread(
            target=self._work, name=f"pin-{job.path}", daemon=True
        )

    def start(self) -> "PinRun":
        self._thread.start()
        return self

    def _work(self) -> None:
        try:
            for chunk in self._chunks:
                self._queue.put(chunk)
        except GatewayError as e:
            self.error = e
            log.error(
                "Pin of %s failed (%s, HTTP %d): %s",
                self.job.path, type(e).__name__, e.status_code, e,
            )
            self._queue.put(f"<p>error: {html.escape(str(e))}</p>\n")
        except Exception as e:  # noqa: BLE001
            self.error = e
            log.exception("Pin of %s crashed", self.job.path)
            self._queue.put(f"<p>error: {html.escape(str(e))}</p>\n")
        finally:
            self._queue.put(_DONE)
            self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    @property
    def ok(self) -> bool:
        return self._done.is_set() and self.error is None

    def __iter__(self) -> Iterator[str]:
        while True:
            item = self._queue.get()
            if item is _DONE:
                return
            yield item  # type: ignore[misc]


class PinOrchestrator:
    def __init__(self, service) -> None:
        self.service = service

    # -------------------------------
    # Before the response starts
    # -------------------------------
    def validate(self, method: str, ghurl: str) -> str:
        if method.upper() != "POST":
            raise MethodNotAllowedError("pin_package only accepts POST")
        return normalize_github_url(ghurl)

    def prepare(self, method: str, ghurl: str) -> PinJob:
        """Validate and resolve. Raises InputError / ResolutionError."""
        path = self.validate(method, ghurl)
        try:
            version, cid = self.service.resolver.resolve(path)
        except GatewayError as e:
            log.warning("Could not resolve %s: %s", path, e)
            raise
        return PinJob(path=path, version=version, cid=cid)

    # -------------------------------
    # Streamed part
    # -------------------------------
    def steps(self, job: PinJob) -> Iterator[str]:
        ipfs = self.service.ipfs
        esc = html.escape

        yield "<!DOCTYPE html>\n"
        yield f"<p>pinning github.com/{esc(job.path)} version {esc(job.version)}: {esc(job.cid)}</p><br>"

        yield "<ul>\n"
        count = 0
        for ref in ipfs.refs(job.cid, recursive=True):
            count += 1
            yield f"<li>{esc(ref)}</li>"
        yield "</ul>\n"
        log.info("Fetched %d refs for %s (%s)", count, job.path, job.cid)

        yield "<p>fetched all deps!<br>calling pin now...</p>\n"
        ipfs.pin(job.cid, recursive=True)
        log.info("Pinned %s %s (%s)", job.path, job.cid, job.version)

        record = job.record()
        self.service.pinlog.append(record)
        self.service.recent.record(record)

        yield "<p>success!</p>\n"
        yield "<a href='/'>back</a>\n"

    def start(self, job: PinJob) -> PinRun:
        log.info("Starting pin of %s version %s: %s", job.path, job.version, job.cid)
        return PinRun(job, self.steps(job)).start()
