"""Implementation of (Room)Repository using SQLAlchemy"""

import logging
from dataclasses import asdict
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from variant_chess.core.models import PlayerSeat, RoomModel
from variant_chess.db.schema import DBRoom

logger = logging.getLogger(__name__)


class SQLRoomRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_room(self, room_id: UUID) -> RoomModel | None:
        """Get room by ID, if record exists."""
        room_db = self._fetch_room(room_id)
        if room_db:
            return self._to_model(room_db)
        return None

    def create_room(self, room: RoomModel) -> tuple[RoomModel, UUID]:
        """Store new room and return the stored data + newly created room ID."""

        new_id = uuid4()
        room_db = DBRoom(id=new_id)
        self._copy_onto(room_db, room)
        self.db.add(room_db)
        self.db.commit()
        self.db.refresh(room_db)
        logger.info("Room %s created (%s)", new_id, room.variant)
        return self._to_model(room_db), new_id

    def update_room(self, room_id: UUID, room: RoomModel) -> RoomModel | None:
        """Add new info to existing record."""
        room_db = self._fetch_room(room_id)
        if not room_db:
            return None
        self._copy_onto(room_db, room)
        self.db.commit()
        self.db.refresh(room_db)
        return self._to_model(room_db)

    def delete_room(self, room_id: UUID) -> RoomModel | None:
        """Remove a room's record."""
        room_db = self._fetch_room(room_id)
        if not room_db:
            return None
        room_model = self._to_model(room_db)
        self.db.delete(room_db)
        self.db.commit()
        logger.info("Room %s deleted", room_id)
        return room_model

    def list_rooms(self) -> list[tuple[UUID, RoomModel]]:
        query = select(DBRoom).order_by(DBRoom.created_at)
        return [(room_db.id, self._to_model(room_db)) for room_db in self.db.scalars(query)]

    def _fetch_room(self, room_id: UUID) -> DBRoom | None:
        query = select(DBRoom).where(DBRoom.id == room_id)
        return self.db.scalar(query)

    @staticmethod
    def _copy_onto(room_db: DBRoom, room: RoomModel) -> None:
        # JSON columns only notice re-assignment, hence the fresh lists / dicts
        room_db.variant = room.variant
        room_db.rows = room.rows
        room_db.cols = room.cols
        room_db.current_fen = room.current_fen
        room_db.history_fen = list(room.history_fen)
        room_db.moves_uci = list(room.moves_uci)
        room_db.players = [asdict(seat) for seat in room.players]
        room_db.status = room.status
        room_db.winner = room.winner
        room_db.reason = room.reason
        room_db.has_moved = dict(room.has_moved)
        room_db.threefold_declared = room.threefold_declared
        room_db.fifty_move_declared = room.fifty_move_declared

    def _to_model(self, room_db: DBRoom) -> RoomModel:
        """Convert SQLAlchemy model to data transfer model."""
        return RoomModel(
            variant=room_db.variant,
            rows=room_db.rows,
            cols=room_db.cols,
            current_fen=room_db.current_fen,
            history_fen=list(room_db.history_fen),
            moves_uci=list(room_db.moves_uci),
            players=[PlayerSeat(**seat) for seat in room_db.players],
            status=room_db.status,
            winner=room_db.winner,
            reason=room_db.reason,
            has_moved=dict(room_db.has_moved),
            threefold_declared=room_db.threefold_declared,
            fifty_move_declared=room_db.fifty_move_declared,
        )
