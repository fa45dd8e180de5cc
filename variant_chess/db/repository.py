"""Protocol repository + the default store keeping rooms in process memory."""

import logging
from copy import deepcopy
from threading import Lock
from typing import Protocol
from uuid import UUID, uuid4

from variant_chess.core.models import RoomModel

logger = logging.getLogger(__name__)


class RoomRepository(Protocol):
    """Persistence layer orchestration"""

    def get_room(self, room_id: UUID) -> RoomModel | None:
        """Get room by ID, if record exists."""
        ...

    def create_room(self, room: RoomModel) -> tuple[RoomModel, UUID]:
        """Store new room and return the stored data + newly created room ID."""
        ...

    def update_room(self, room_id: UUID, room: RoomModel) -> RoomModel | None:
        """Add new info to existing record."""
        ...

    def delete_room(self, room_id: UUID) -> RoomModel | None:
        """Remove a room's record."""
        ...

    def list_rooms(self) -> list[tuple[UUID, RoomModel]]:
        """All rooms currently stored."""
        ...


class InMemoryRoomStore:
    """
    Rooms kept in a dict, owned by this object (one instance per application).

    Copies go in and out, so callers can never mutate the stored record behind the store's back.
    """

    def __init__(self) -> None:
        self._rooms: dict[UUID, RoomModel] = {}
        self._lock = Lock()

    def get_room(self, room_id: UUID) -> RoomModel | None:
        with self._lock:
            room = self._rooms.get(room_id)
            return deepcopy(room) if room else None

    def create_room(self, room: RoomModel) -> tuple[RoomModel, UUID]:
        new_id = uuid4()
        with self._lock:
            self._rooms[new_id] = deepcopy(room)
        logger.info("Room %s created (%s)", new_id, room.variant)
        return deepcopy(room), new_id

    def update_room(self, room_id: UUID, room: RoomModel) -> RoomModel | None:
        with self._lock:
            if room_id not in self._rooms:
                return None
            self._rooms[room_id] = deepcopy(room)
        return deepcopy(room)

    def delete_room(self, room_id: UUID) -> RoomModel | None:
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room is not None:
            logger.info("Room %s deleted", room_id)
        return room

    def list_rooms(self) -> list[tuple[UUID, RoomModel]]:
        with self._lock:
            return [(room_id, deepcopy(room)) for room_id, room in self._rooms.items()]
