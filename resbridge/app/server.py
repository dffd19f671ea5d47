from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import BridgeConfig
from ..transport import SerialLink
from .diagnostics import emit_startup_banner
from .handlers import BridgeResponse, BridgeService

logger = logging.getLogger(__name__)


def _to_json(response: BridgeResponse) -> JSONResponse:
    return JSONResponse(status_code=response.status_code, content=response.body)


def build_service(config: BridgeConfig) -> BridgeService:
    link = SerialLink(
        config.serial_port,
        baud_rate=config.baud_rate,
        reconnect_delay=config.reconnect_delay,
    )
    return BridgeService(link, tag=config.tag)


def create_app(
    service: BridgeService,
    config: Optional[BridgeConfig] = None,
    manage_link: bool = True,
) -> FastAPI:
    """Build the HTTP surface around a BridgeService.

    With ``manage_link`` the app opens the serial link on startup and closes
    it (cancelling any pending reconnect) on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if config is not None:
            emit_startup_banner(config)
        if manage_link:
            await service.link.start()
        try:
            yield
        finally:
            if manage_link:
                logger.info("Shutting down server...")
                await service.link.close()
                logger.info("Server stopped")

    app = FastAPI(title="Arduino bridge", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/update")
    async def update(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"success": False, "error": "Invalid JSON body"})
        return _to_json(await service.handle_update(body))

    @app.get("/status")
    async def status() -> JSONResponse:
        return _to_json(service.handle_status())

    @app.get("/test/{resistance}")
    async def test(resistance: str) -> JSONResponse:
        return _to_json(await service.handle_test(resistance))

    @app.get("/ping")
    async def ping() -> JSONResponse:
        return _to_json(await service.handle_ping())

    @app.get("/ports")
    async def ports() -> JSONResponse:
        return _to_json(await service.handle_list_ports())

    return app
