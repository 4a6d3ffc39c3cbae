"""
gexpin_node/service.py
--------------------------------------------------
Process-scoped state for the gateway.

One GatewayService is built at startup and handed to the app; routers read
it from `request.app.state.service`. It owns:

- the IPFS client
- the lastpubver resolver
- the pin log (opened in start(), closed in close())
- the recent-pins cache
- the external IP discovered at startup
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from . import config as cfgmod
from .ipfs.client import IPFSClient
from .netinfo import get_external_ip
from .pinlog import PinLog
from .recent import RecentPins
from .resolver import VersionResolver

log = logging.getLogger(__name__)


class GatewayService:
    def __init__(
        self,
        cfg: Optional[Dict[str, Any]] = None,
        *,
        ipfs: Optional[IPFSClient] = None,
        resolver: Optional[VersionResolver] = None,
        pinlog: Optional[PinLog] = None,
        recent: Optional[RecentPins] = None,
        ip_lookup: Optional[Callable[[], str]] = None,
    ) -> None:
        self.cfg = cfg if cfg is not None else cfgmod.load_config()
        fetch_timeout = cfgmod.get_fetch_timeout(self.cfg)

        self.ipfs = ipfs or IPFSClient(
            cfgmod.get_ipfs_api_url(self.cfg),
            timeout=fetch_timeout,
            pin_timeout=cfgmod.get_pin_timeout(self.cfg),
        )
        self.resolver = resolver or VersionResolver(
            url_template=cfgmod.get_lastpubver_url(self.cfg),
            timeout=fetch_timeout,
        )
        self.pinlog = pinlog or PinLog(cfgmod.get_pinlog_path(self.cfg))
        self.recent = recent or RecentPins()
        self.swarm_port = cfgmod.get_swarm_port(self.cfg)

        self._ip_lookup = ip_lookup or (
            lambda: get_external_ip(cfgmod.get_ip_lookup_url(self.cfg), timeout=fetch_timeout)
        )
        self.external_ip: Optional[str] = None
        self.started = False

    def start(self) -> None:
        """Discover our public IP and open the pin log. Raises StartupError."""
        if self.started:
            return
        self.external_ip = self._ip_lookup()
        log.info("External IP is %s", self.external_ip)
        if not self.pinlog.is_open:
            self.pinlog.open()
        self.started = True

    def close(self) -> None:
        self.pinlog.close()
        self.ipfs.close()
        self.started = False
