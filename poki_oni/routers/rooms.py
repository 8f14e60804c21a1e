from __future__ import annotations

from typing import List

from fastapi import APIRouter, Request

from ..lobby import collect_room_summaries
from ..schemas import ClientConfig, ClientServerConfig, CreateRoomResponse, RoomSummary
from ..state import Services

router = APIRouter(prefix="", tags=["rooms"])


def _services(request: Request) -> Services:
    return request.app.state.services


@router.post("/create-room")
async def create_room(request: Request):
    room_id = await _services(request).rooms.create()
    return CreateRoomResponse(room_id=room_id).to_wire()


@router.get("/rooms")
async def list_rooms(request: Request) -> List[dict]:
    summaries: List[RoomSummary] = collect_room_summaries(_services(request).rooms)
    return [s.to_wire() for s in summaries]


@router.get("/config.json", response_model=ClientConfig)
async def client_config(request: Request):
    server = _services(request).config.server
    return ClientConfig(server=ClientServerConfig(ip=server.ip, port=server.port))


@router.get("/health")
def health():
    return {"ok": True}
