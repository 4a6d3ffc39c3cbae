from __future__ import annotations

import logging
from typing import Optional

import requests

from .errors import StartupError

log = logging.getLogger(__name__)


def get_external_ip(
    url: str = "https://api.ipify.org",
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = 30.0,
) -> str:
    """Ask a plain-text IP echo service for this host's public address."""
    http = session or requests
    try:
        r = http.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise StartupError(f"error getting external ip: {e}") from e
    ip = r.text.strip()
    if not ip:
        raise StartupError("error getting external ip: empty response")
    return ip


def node_multiaddr(ip: str, peer_id: str, swarm_port: int = 4001) -> str:
    return f"/ip4/{ip}/tcp/{swarm_port}/ipfs/{peer_id}"
