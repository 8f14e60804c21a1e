from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from tortoise.contrib.fastapi import RegisterTortoise

from .config import AppConfig, load_config
from .routers import rooms as rooms_router
from .routers import websockets as ws_router
from .state import Services, build_services

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None, services: Optional[Services] = None) -> FastAPI:
    if config is None:
        config = services.config if services is not None else load_config()
    if services is None:
        services = build_services(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with AsyncExitStack() as stack:
            if config.storage.backend == "sqlite":
                await stack.enter_async_context(
                    RegisterTortoise(
                        app,
                        db_url=config.storage.db_url,
                        modules={"models": ["poki_oni.models"]},
                        generate_schemas=True,
                    )
                )
            await services.rooms.restore()
            yield

    # -----------------------------
    # FastAPI app instance
    # -----------------------------

    app = FastAPI(title="Poki Oni Room Server", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers before the catch-all static mount.
    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)

    # -----------------------------
    # Static file mounting
    # -----------------------------

    static_dir = Path(config.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="public")
    else:
        logger.info("Static directory %s not found; serving API only", static_dir)

    return app


__all__ = ["create_app"]
