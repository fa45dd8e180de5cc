"""Requests and Response models"""

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from variant_chess.core.exceptions import InvalidRequestError
from variant_chess.core.shared_types import Color, GameState, PieceType, Reason, Status, Winner
from variant_chess.engine.variants import GameVariant

PlayerId = str


def _is_square_name(value: str) -> bool:
    """file letter + rank number. Whether the square exists depends on the board, the engine checks that."""
    if not 2 <= len(value) <= 3:
        return False
    return value[0].isalpha() and value[0].islower() and value[1:].isdigit()


# --- REQUEST MODELS ---
class CreateRoomRequest(BaseModel):
    player_id: PlayerId
    display_name: Optional[str] = None
    color: Color = Color.WHITE
    variant: GameVariant = GameVariant.CLASSIC
    starting_fen: Optional[str] = None

    @field_validator("player_id")
    @classmethod
    def validate_player_id(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("player_id cannot be empty.")
        return value

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        parts = value.strip().split(" ")
        if len(parts) != 6:
            raise InvalidRequestError(
                "FEN string must contain 6 space-separated parts."
            )
        return value


class JoinRoomRequest(BaseModel):
    room_id: UUID
    player_id: PlayerId
    display_name: Optional[str] = None

    @field_validator("player_id")
    @classmethod
    def validate_player_id(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("player_id cannot be empty.")
        return value


class LegalMovesRequest(BaseModel):
    room_id: UUID
    player_id: PlayerId
    from_square: Optional[str] = None

    @field_validator("from_square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _is_square_name(value):
            raise InvalidRequestError(
                f"Cannot interpret from_square: {value!r} as a valid square name."
            )
        return value


class MoveRequest(BaseModel):
    room_id: UUID
    player_id: PlayerId
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not _is_square_name(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value


class GetRoomRequest(BaseModel):
    room_id: UUID


class LeaveRoomRequest(BaseModel):
    room_id: UUID
    player_id: PlayerId


class DeleteRoomRequest(BaseModel):
    room_id: UUID


# --- REQUEST BODIES (room id comes from the path) ---
class JoinRoomBody(BaseModel):
    player_id: PlayerId
    display_name: Optional[str] = None


class MoveBody(BaseModel):
    player_id: PlayerId
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None


# --- WEBSOCKET MESSAGES (client -> server) ---
class MoveMessage(BaseModel):
    type: Literal["move"]
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None


# --- RESPONSE MODELS ---
class SeatResponse(BaseModel):
    player_id: PlayerId
    display_name: str
    color: Color


class GameStatusResponse(BaseModel):
    status: GameState
    winner: Optional[Winner] = None
    reason: Optional[Reason] = None


class RoomResponse(BaseModel):
    room_id: UUID
    variant: GameVariant
    rows: int
    cols: int
    players: list[SeatResponse]
    status: Status
    fen_state: str
    starting_state: str
    move_history: list[str]
    color_to_move: Color
    winner: Optional[Winner] = None
    reason: Optional[Reason] = None
    threefold_declared: bool = False
    fifty_move_declared: bool = False


class LegalMovesResponse(BaseModel):
    room_id: UUID
    player_id: PlayerId
    color: Color
    legal_moves: list[str]


class VariantResponse(BaseModel):
    variant: GameVariant
    title: str
    rows: int
    cols: int
    starting_placement: str
