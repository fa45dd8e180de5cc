"""
WebSocket relay: one channel per room.

Players submit moves over the socket, the server validates them with the RoomService and
broadcasts the authoritative room to everybody in that room, in the order the moves got accepted.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from variant_chess.api.dependencies import service_scope
from variant_chess.api.models import (
    GameStatusResponse,
    GetRoomRequest,
    LeaveRoomRequest,
    MoveMessage,
    MoveRequest,
    RoomResponse,
)
from variant_chess.core.exceptions import GameError, RepositoryError
from variant_chess.core.shared_types import GameState, Status

logger = logging.getLogger(__name__)

router = APIRouter()


class RoomConnections:
    """
    Open sockets per room, keyed by player id (a reconnecting player replaces their old socket).
    ----

    Every room also gets a lock, held while one of its moves is validated + broadcast. The lock lives as long as
    the room: `forget` drops it together with the sockets once the room has been deleted.
    """

    def __init__(self) -> None:
        self.rooms: dict[UUID, dict[str, WebSocket]] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}

    def lock(self, room_id: UUID) -> asyncio.Lock:
        """Held while a message of the room is handled, so broadcasts go out in acceptance order."""
        return self._locks.setdefault(room_id, asyncio.Lock())

    @asynccontextmanager
    async def locked(self, room_id: UUID) -> AsyncIterator[None]:
        """`lock` for a room that may not exist: a request for an unknown room leaves no lock behind."""
        async with self.lock(room_id):
            try:
                yield
            except RepositoryError:
                self.forget(room_id)
                raise

    async def connect(self, room_id: UUID, player_id: str, ws: WebSocket) -> None:
        await ws.accept()
        self.rooms.setdefault(room_id, {})[player_id] = ws
        logger.info("%s connected to room %s", player_id, room_id)

    def disconnect(self, room_id: UUID, player_id: str, ws: WebSocket) -> None:
        """Drop `ws`, unless the player already reconnected with another socket."""
        sockets = self.rooms.get(room_id, {})
        if sockets.get(player_id) is ws:
            del sockets[player_id]
        if not sockets:
            self.rooms.pop(room_id, None)
        logger.info("%s disconnected from room %s", player_id, room_id)

    def is_connected(self, room_id: UUID, player_id: str) -> bool:
        return player_id in self.rooms.get(room_id, {})

    def forget(self, room_id: UUID) -> None:
        """The room is gone: release its lock and whatever sockets are still registered."""
        self.rooms.pop(room_id, None)
        self._locks.pop(room_id, None)

    async def send_to(self, room_id: UUID, player_id: str, message: dict[str, Any]) -> None:
        ws = self.rooms.get(room_id, {}).get(player_id)
        if ws is not None:
            await ws.send_text(json.dumps(message))

    async def broadcast(self, room_id: UUID, message: dict[str, Any]) -> None:
        payload = json.dumps(message)
        dead: list[tuple[str, WebSocket]] = []
        for player_id, ws in list(self.rooms.get(room_id, {}).items()):
            try:
                await ws.send_text(payload)
            except (WebSocketDisconnect, RuntimeError):
                dead.append((player_id, ws))
        for player_id, ws in dead:
            self.disconnect(room_id, player_id, ws)

    # --- MESSAGES SENT BY THE SERVER ---
    async def broadcast_room(self, room: RoomResponse) -> None:
        """`state` to everybody. Followed by `status` once the game is over."""
        await self.broadcast(room.room_id, state_message(room))
        if room.status == Status.FINISHED and room.winner is not None:
            await self.broadcast(room.room_id, status_message(room))


def state_message(room: RoomResponse) -> dict[str, Any]:
    return {"type": "state", "payload": room.model_dump(mode="json")}


def status_message(room: RoomResponse) -> dict[str, Any]:
    status = GameStatusResponse(status=GameState.FINISHED, winner=room.winner, reason=room.reason)
    return {"type": "status", "payload": status.model_dump(mode="json")}


def error_message(exc: Exception) -> dict[str, Any]:
    return {"type": "error", "payload": {"error": type(exc).__name__, "detail": str(exc)}}


@router.websocket("/ws/{room_id}")
async def room_socket(ws: WebSocket, room_id: UUID, player_id: str = Query(...)) -> None:
    connections: RoomConnections = ws.app.state.connections

    # only seated players get a channel
    try:
        with service_scope(ws.app) as service:
            room = service.get_room(GetRoomRequest(room_id=room_id))
    except RepositoryError as exc:
        await ws.accept()
        await ws.send_text(json.dumps(error_message(exc)))
        await ws.close(code=4404)
        return
    if player_id not in {seat.player_id for seat in room.players}:
        await ws.accept()
        await ws.send_text(
            json.dumps(error_message(GameError(f"{player_id} is not seated in room {room_id}")))
        )
        await ws.close(code=4403)
        return

    await connections.connect(room_id, player_id, ws)
    await connections.send_to(room_id, player_id, state_message(room))

    try:
        while True:
            text = await ws.receive_text()
            async with connections.lock(room_id):
                await _handle_message(ws, connections, room_id, player_id, text)
    except WebSocketDisconnect:
        connections.disconnect(room_id, player_id, ws)
        if connections.is_connected(room_id, player_id):
            # replaced by a newer socket of the same player, who keeps the seat
            return
        async with connections.lock(room_id):
            await _handle_disconnect(ws, connections, room_id, player_id)


async def _handle_disconnect(ws: WebSocket, connections: RoomConnections, room_id: UUID, player_id: str) -> None:
    """
    A player whose socket closed gives up their seat, the same way as leaving over HTTP.
    ----

    The last player out takes the room along. Otherwise the others hear about it and get the reopened room.
    NOTE: the seat is updated before anything is sent, a closing connection may not get to finish its sends.
    """
    try:
        with service_scope(ws.app) as service:
            room = service.leave_room(LeaveRoomRequest(room_id=room_id, player_id=player_id))
    except RepositoryError:
        # deleted while the socket was still open
        connections.forget(room_id)
        return
    except GameError as exc:
        # left over HTTP before the socket closed
        logger.info("%s disconnected from room %s without a seat: %s", player_id, room_id, exc)
        return

    if room is None:
        logger.info("Room %s abandoned by its last player, removed", room_id)
        connections.forget(room_id)
        return
    await connections.broadcast(room_id, {"type": "player_disconnected", "payload": {"player_id": player_id}})
    await connections.broadcast_room(room)


async def _handle_message(
    ws: WebSocket, connections: RoomConnections, room_id: UUID, player_id: str, text: str
) -> None:
    """Validate and apply one client message. Problems are reported to the sender only."""
    try:
        message = MoveMessage.model_validate(json.loads(text))
        request = MoveRequest(
            room_id=room_id,
            player_id=player_id,
            from_square=message.from_square,
            to_square=message.to_square,
            promote_to=message.promote_to,
        )
        with service_scope(ws.app) as service:
            room = service.make_move(request)
    except (json.JSONDecodeError, ValidationError, GameError) as exc:
        logger.info("Rejected message from %s in room %s: %s", player_id, room_id, exc)
        await ws.send_text(json.dumps(error_message(exc)))
        return

    await connections.broadcast_room(room)
