from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket

from ..dispatch import handle_close, handle_frame, handle_open
from ..state import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])


# The browser client connects to ``ws://ip:port`` with no path.
@router.websocket("/")
@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    services: Services = ws.app.state.services
    await ws.accept()
    session = services.registry.register(ws)
    try:
        await handle_open(services, session)
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await handle_frame(services, session, raw)
    finally:
        await handle_close(services, session)
