"""
IPFS client for the gexpin node.
- Talks to Kubo's /api/v0 RPC over plain HTTP (every call is a POST)
- Provides: is_up(), id(), refs(cid, recursive), pin(cid)
- refs() streams: each ref is yielded as soon as Kubo writes its line
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, Optional

import requests

from ..errors import NodeUnavailableError, StorageError

log = logging.getLogger(__name__)


def normalize_api_addr(api_addr: str) -> str:
    """Accept a multiaddr, raw host:port or a full URL; return an http base URL."""
    if api_addr.startswith("/ip4/") or api_addr.startswith("/dns"):
        # /ip4/127.0.0.1/tcp/5001 -> http://127.0.0.1:5001
        parts = api_addr.split("/")
        host = parts[2]
        port = parts[4]
        api_addr = f"http://{host}:{port}"
    elif not api_addr.startswith("http://") and not api_addr.startswith("https://"):
        api_addr = f"http://{api_addr}"
    return api_addr.rstrip("/")


def _error_text(r: requests.Response) -> str:
    # Kubo errors come back as {"Message": "...", "Code": 0, "Type": "error"}
    try:
        data = r.json()
        if isinstance(data, dict) and data.get("Message"):
            return str(data["Message"])
    except ValueError:
        pass
    return f"{r.status_code} {r.reason}".strip()


class IPFSClient:
    def __init__(
        self,
        api_addr: str = "http://127.0.0.1:5001",
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 30.0,
        pin_timeout: Optional[float] = None,
    ) -> None:
        self.base = normalize_api_addr(api_addr)
        self.session = session or requests.Session()
        self.timeout = timeout
        self.pin_timeout = pin_timeout

    # --- HTTP helpers ---
    def _post(self, path: str, timeout: Optional[float], stream: bool = False, **params) -> requests.Response:
        r = self.session.post(self.base + path, params=params, timeout=timeout, stream=stream)
        if r.status_code >= 400:
            msg = _error_text(r)
            r.close()
            raise StorageError(msg)
        return r

    # --- Operations ---
    def is_up(self) -> bool:
        try:
            self._post("/api/v0/version", self.timeout)
            return True
        except (requests.RequestException, StorageError) as e:
            log.debug("IPFS liveness probe failed: %s", e)
            return False

    def id(self) -> Dict[str, Any]:
        try:
            r = self._post("/api/v0/id", self.timeout)
            data = r.json()
        except (requests.RequestException, StorageError, ValueError) as e:
            raise NodeUnavailableError(str(e)) from e
        if not isinstance(data, dict) or not data.get("ID"):
            raise NodeUnavailableError("ipfs id returned no peer ID")
        return data

    def peer_id(self) -> str:
        return str(self.id()["ID"])

    def refs(self, cid: str, recursive: bool = True) -> Iterator[str]:
        """
        Yield every ref reachable from `cid`, in the order Kubo reports them.

        Raises StorageError on the first failure, including failures that
        arrive mid-stream as an `Err` line.
        """
        try:
            r = self._post(
                "/api/v0/refs",
                self.timeout,
                stream=True,
                arg=cid,
                recursive=str(recursive).lower(),
            )
        except requests.RequestException as e:
            raise StorageError(str(e)) from e

        with r:
            try:
                for raw in r.iter_lines(decode_unicode=True):
                    if not raw:
                        continue
                    try:
                        entry = json.loads(raw)
                    except ValueError as e:
                        raise StorageError(f"bad refs output: {raw!r}") from e
                    if entry.get("Err"):
                        raise StorageError(str(entry["Err"]))
                    ref = entry.get("Ref")
                    if ref:
                        yield ref
            except requests.RequestException as e:
                raise StorageError(str(e)) from e

    def pin(self, cid: str, recursive: bool = True) -> Dict[str, Any]:
        try:
            r = self._post(
                "/api/v0/pin/add",
                self.pin_timeout,
                arg=cid,
                recursive=str(recursive).lower(),
            )
            return r.json()
        except requests.RequestException as e:
            raise StorageError(str(e)) from e
        except ValueError as e:
            raise StorageError(f"bad pin/add output: {e}") from e

    def close(self) -> None:
        self.session.close()
