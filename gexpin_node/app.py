from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from . import config as cfgmod
from .api import pin, recent, status
from .errors import GatewayError
from .service import GatewayService

log = logging.getLogger(__name__)


def create_app(service: Optional[GatewayService] = None) -> FastAPI:
    service = service or GatewayService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.start()
        try:
            yield
        finally:
            service.close()

    app = FastAPI(title="gexpin node", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError):
        if exc.status_code >= 500:
            log.error("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc)
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    # Routers
    app.include_router(pin.router)
    app.include_router(status.router)
    app.include_router(recent.router)

    # Everything else is the UI
    app.mount(
        "/",
        StaticFiles(directory=cfgmod.get_static_dir(service.cfg), html=True),
        name="static",
    )
    return app
