"""REST endpoints. Thin: parse the request, call the RoomService, return its response."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status

from variant_chess.api.dependencies import get_room_service
from variant_chess.api.models import (
    CreateRoomRequest,
    DeleteRoomRequest,
    GetRoomRequest,
    JoinRoomBody,
    JoinRoomRequest,
    LeaveRoomRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveBody,
    MoveRequest,
    RoomResponse,
    VariantResponse,
)
from variant_chess.api.relay import RoomConnections
from variant_chess.services.room_service import RoomService

router = APIRouter()

Service = Annotated[RoomService, Depends(get_room_service)]


@router.get("/variants", response_model=list[VariantResponse])
def list_variants() -> list[VariantResponse]:
    return RoomService.list_variants()


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(request: CreateRoomRequest, service: Service) -> RoomResponse:
    return service.create_room(request)


@router.get("/rooms", response_model=list[RoomResponse])
def list_rooms(service: Service) -> list[RoomResponse]:
    return service.list_rooms()


@router.get("/rooms/{room_id}", response_model=RoomResponse)
def get_room(room_id: UUID, service: Service) -> RoomResponse:
    return service.get_room(GetRoomRequest(room_id=room_id))


@router.post("/rooms/{room_id}/join", response_model=RoomResponse)
async def join_room(room_id: UUID, body: JoinRoomBody, service: Service, request: Request) -> RoomResponse:
    connections: RoomConnections = request.app.state.connections
    async with connections.locked(room_id):
        room = service.join_room(JoinRoomRequest(room_id=room_id, **body.model_dump()))
        # players already connected over websocket see the new opponent arrive
        await connections.broadcast_room(room)
    return room


@router.get("/rooms/{room_id}/legal-moves", response_model=LegalMovesResponse)
def legal_moves(
    room_id: UUID, player_id: str, service: Service, from_square: Optional[str] = None
) -> LegalMovesResponse:
    return service.legal_moves(
        LegalMovesRequest(room_id=room_id, player_id=player_id, from_square=from_square)
    )


@router.post("/rooms/{room_id}/moves", response_model=RoomResponse)
async def make_move(room_id: UUID, body: MoveBody, service: Service, request: Request) -> RoomResponse:
    connections: RoomConnections = request.app.state.connections
    # same lock as the websocket relay: moves are validated + broadcast one at a time, in order
    async with connections.locked(room_id):
        room = service.make_move(MoveRequest(room_id=room_id, **body.model_dump()))
        await connections.broadcast_room(room)
    return room


@router.delete("/rooms/{room_id}/players/{player_id}", response_model=Optional[RoomResponse])
async def leave_room(room_id: UUID, player_id: str, service: Service, request: Request) -> Optional[RoomResponse]:
    connections: RoomConnections = request.app.state.connections
    async with connections.locked(room_id):
        room = service.leave_room(LeaveRoomRequest(room_id=room_id, player_id=player_id))
        if room is not None:
            await connections.broadcast(room_id, {"type": "player_left", "payload": {"player_id": player_id}})
    if room is None:
        connections.forget(room_id)
    return room


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(room_id: UUID, service: Service, request: Request) -> Response:
    service.delete_room(DeleteRoomRequest(room_id=room_id))
    request.app.state.connections.forget(room_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
