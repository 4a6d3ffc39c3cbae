# gexpin_node/__main__.py
"""
Entry point for running the gexpin node as a module:
    python -m gexpin_node [--host 0.0.0.0] [--port 9444] [--pinlog ./pinlogs]
                          [--static-dir .] [--ipfs-api http://127.0.0.1:5001]
Env toggles (see gexpin_node/config.py for the full list):
  GEXPIN_FETCH_TIMEOUT_SEC=30  -> bound lastpubver / refs / id calls
  GEXPIN_PIN_TIMEOUT_SEC=600   -> bound the pin call (unset = wait forever)
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from . import config as cfgmod
from .app import create_app
from .errors import StartupError
from .logging_setup import setup_logging
from .service import GatewayService

log = logging.getLogger("gexpin_node")


def parse_args(argv=None, cfg=None):
    cfg = cfg or cfgmod.load_config()
    p = argparse.ArgumentParser(
        prog="gexpin-node",
        description="Pin the last published version of GitHub-hosted gx packages to a local IPFS node",
    )
    p.add_argument(
        "--host",
        default=cfgmod.get_bind_host(cfg),
        help="Bind address (default: 0.0.0.0)",
    )
    p.add_argument(
        "--port",
        type=int,
        default=cfgmod.get_bind_port(cfg),
        help="HTTP port (default: 9444)",
    )
    p.add_argument(
        "--pinlog",
        default=cfgmod.get_pinlog_path(cfg),
        help="Append-only pin log (default: ./pinlogs)",
    )
    p.add_argument(
        "--static-dir",
        default=cfgmod.get_static_dir(cfg),
        help="Directory served for non-API paths (default: .)",
    )
    p.add_argument(
        "--ipfs-api",
        default=cfgmod.get_ipfs_api_url(cfg),
        help="Kubo RPC address (default: http://127.0.0.1:5001)",
    )
    return p.parse_args(argv)


def main(argv=None):
    cfg = cfgmod.load_config()
    args = parse_args(argv, cfg)

    cfg["server"].update(host=args.host, port=args.port, static_dir=args.static_dir)
    cfg["pinlog"]["path"] = args.pinlog
    cfg["ipfs"]["api_url"] = args.ipfs_api
    setup_logging(cfgmod.get_log_level(cfg))

    service = GatewayService(cfg)
    try:
        service.start()
    except StartupError as e:
        log.error("%s", e)
        return 1

    app = create_app(service)
    log.info("Listening on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
