"""
gexpin_node/api/status.py
--------------------------------------------------
Node status endpoints.

- GET /status     -> is the IPFS daemon answering?
- GET /node_addr  -> multiaddr other peers can dial to reach our daemon
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from ..netinfo import node_multiaddr

router = APIRouter(tags=["status"])

ONLINE_MSG = "gexpin ipfs daemon is online!"
OFFLINE_MSG = "gexpin ipfs daemon appears to be down. poke @whyrusleeping"


@router.get("/status", response_class=PlainTextResponse)
def status(request: Request) -> str:
    ipfs = request.app.state.service.ipfs
    return ONLINE_MSG if ipfs.is_up() else OFFLINE_MSG


@router.get("/node_addr", response_class=PlainTextResponse)
def node_addr(request: Request) -> str:
    """
    Our public IP (looked up once at startup) combined with the daemon's
    peer ID. A failed `ipfs id` surfaces as 503.
    """
    service = request.app.state.service
    peer_id = service.ipfs.peer_id()
    return node_multiaddr(service.external_ip, peer_id, service.swarm_port)
