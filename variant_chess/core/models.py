"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make RoomModel easier to read
PieceColor = str
PlayerId = str


@dataclass
class PlayerSeat:
    """One of the (at most two) occupants of a room."""

    player_id: PlayerId
    display_name: str
    color: PieceColor


@dataclass
class RoomModel:
    """Transport-safe representation of a room (and the game played in it) used between API, Service, DB, and Game layers."""

    variant: str
    rows: int
    cols: int
    current_fen: str
    history_fen: list[str]
    moves_uci: list[str]
    players: list[PlayerSeat]
    status: str
    winner: Optional[str] = None
    reason: Optional[str] = None
    has_moved: dict[PlayerId, bool] = field(default_factory=dict)
    threefold_declared: bool = False
    fifty_move_declared: bool = False

    def seat_of(self, player_id: PlayerId) -> Optional[PlayerSeat]:
        return next((seat for seat in self.players if seat.player_id == player_id), None)
