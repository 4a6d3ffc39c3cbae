#!/usr/bin/env python3
"""
Pinning API
---------------------------------------------------------
POST /pin_package with form field `ghurl`.

Resolves the repo's lastpubver, then streams an HTML progress page while
the node fetches every ref and pins the root hash.

Status codes: 403 for any method but POST, 400 for a bad URL or an
unresolvable lastpubver. Once the preamble is flushed the status is 200;
a refs, pin or log failure after that point ends the page with
`<p>error: ...</p>` and no success marker.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from ..errors import GatewayError
from ..orchestrator import PinOrchestrator

router = APIRouter(tags=["pinning"])
logger = logging.getLogger(__name__)


# -------------------------------
# Helpers
# -------------------------------
async def _ghurl(request: Request) -> str:
    if request.method == "POST":
        form = await request.form()
        value = form.get("ghurl")
        if isinstance(value, str) and value:
            return value
    return request.query_params.get("ghurl", "")


# -------------------------------
# Routes
# -------------------------------
async def pin_package(request: Request):
    """Pin the last published version of a GitHub repo."""
    orchestrator = PinOrchestrator(request.app.state.service)
    ghurl = await _ghurl(request)

    # blocking: the lastpubver fetch happens here
    try:
        job = await run_in_threadpool(orchestrator.prepare, request.method, ghurl)
    except GatewayError as e:
        logger.warning("Rejected %s /pin_package ghurl=%r: %s", request.method, ghurl, e)
        raise

    run = orchestrator.start(job)
    return StreamingResponse(
        iter(run),
        media_type="text/html; charset=utf-8",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# no method list: every verb reaches the handler, which answers 403 unless POST
router.add_route("/pin_package", pin_package)
