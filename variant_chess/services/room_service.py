"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction).

The server is the authority: peers only submit moves, the resulting position comes from the engine running here.
"""

import logging
from typing import Optional
from uuid import UUID

from variant_chess.api.models import (
    CreateRoomRequest,
    DeleteRoomRequest,
    GetRoomRequest,
    JoinRoomRequest,
    LeaveRoomRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRequest,
    RoomResponse,
    SeatResponse,
    VariantResponse,
)
from variant_chess.core.exceptions import AlreadyMovedError, GameStateError, RepositoryError
from variant_chess.core.models import RoomModel
from variant_chess.core.shared_types import Color, Reason, Status
from variant_chess.db.repository import RoomRepository
from variant_chess.engine.game import Game, build_uci
from variant_chess.engine.variants import VARIANT_RULES

logger = logging.getLogger(__name__)


class RoomService:
    """Orchestration of layers for variant chess rooms."""

    def __init__(self, repository: RoomRepository) -> None:
        self.repo = repository

    # -- API routes logic ---
    def create_room(self, request: CreateRoomRequest) -> RoomResponse:
        """First player requested to open a room."""

        # Use info in CreateRoomRequest to create a new Game, and convert into RoomModel
        new_game = Game.new_game(
            player=request.player_id,
            color=request.color,
            variant=request.variant,
            display_name=request.display_name,
            starting_fen=request.starting_fen,
        )
        created_room = new_game.to_model()
        created_room.has_moved = {request.player_id: False}

        # Store the RoomModel in the repository
        stored_room, room_id = self.repo.create_room(created_room)
        logger.info("%s opened room %s (%s)", request.player_id, room_id, request.variant)

        return self._create_room_response(room_id, stored_room)

    def join_room(self, request: JoinRoomRequest) -> RoomResponse:
        """Second player requested to join a room. Raises RoomFullError when both seats are taken."""

        stored_room = self._fetch_room(request.room_id)
        game = Game.from_model(stored_room)
        color = game.register_player(request.player_id, request.display_name)

        with_player_registered = self._carry_over(stored_room, game.to_model())
        with_player_registered.has_moved[request.player_id] = False

        self.repo.update_room(request.room_id, with_player_registered)
        logger.info("%s joined room %s as %s", request.player_id, request.room_id, color)

        return self._create_room_response(request.room_id, with_player_registered)

    def get_room(self, request: GetRoomRequest) -> RoomResponse:
        """
        Retrieve current room state.
        ----
        Used in "polling" loop by clients without a websocket connection.
        """
        room = self._fetch_room(request.room_id)
        return self._create_room_response(request.room_id, room)

    def list_rooms(self) -> list[RoomResponse]:
        """Show all recorded rooms."""
        return [self._create_room_response(room_id, room) for room_id, room in self.repo.list_rooms()]

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """retrieve set of legal moves (optionally only those of the piece on from_square)."""

        stored_room = self._fetch_room(request.room_id)
        game = Game.from_model(stored_room)

        legal_moves = game.legal_moves(request.player_id, request.from_square)
        seat = stored_room.seat_of(request.player_id)
        assert seat is not None  # Game.legal_moves rejects strangers
        return LegalMovesResponse(
            room_id=request.room_id,
            player_id=request.player_id,
            color=Color(seat.color),
            legal_moves=legal_moves,
        )

    def make_move(self, request: MoveRequest) -> RoomResponse:
        """
        Make a move attempt.
        ----

        1. a player moves at most once per ply
        2. the game checks turn order and legality
        3. the resulting (authoritative) room is stored and returned
        """
        stored_room = self._fetch_room(request.room_id)
        if stored_room.seat_of(request.player_id) is None:
            raise GameStateError(f"Player {request.player_id} is not playing in this room.")
        if stored_room.has_moved.get(request.player_id, False):
            raise AlreadyMovedError(
                f"{request.player_id} already moved, waiting for the opponent's reply."
            )

        # Parse data in MoveRequest to UCI notation
        move_uci = build_uci(
            from_square_alg=request.from_square,
            to_square_alg=request.to_square,
            promotion=request.promote_to,
        )

        game = Game.from_model(stored_room)
        outcome = game.make_move(move_uci, request.player_id)

        after_move = self._carry_over(stored_room, game.to_model())
        after_move.has_moved = {
            seat.player_id: seat.player_id == request.player_id for seat in after_move.players
        }
        if outcome.reason == Reason.THREEFOLD_REPETITION:
            after_move.threefold_declared = True
        if outcome.reason == Reason.FIFTY_MOVE_RULE:
            after_move.fifty_move_declared = True

        self.repo.update_room(request.room_id, after_move)
        if outcome.is_finished:
            logger.info(
                "Room %s finished: %s (winner=%s reason=%s)",
                request.room_id,
                outcome.winner,
                game.winner,
                outcome.reason,
            )

        return self._create_room_response(request.room_id, after_move)

    def leave_room(self, request: LeaveRoomRequest) -> Optional[RoomResponse]:
        """
        A player leaves (or got disconnected).
        ----

        The last one out deletes the room (None is returned). Otherwise an unfinished game waits for a new opponent,
        who takes over the vacant color.
        """
        stored_room = self._fetch_room(request.room_id)
        if stored_room.seat_of(request.player_id) is None:
            raise GameStateError(f"Player {request.player_id} is not in this room.")

        stored_room.players = [seat for seat in stored_room.players if seat.player_id != request.player_id]
        stored_room.has_moved.pop(request.player_id, None)
        logger.info("%s left room %s", request.player_id, request.room_id)

        if not stored_room.players:
            self.repo.delete_room(request.room_id)
            return None

        if stored_room.status == Status.IN_PROGRESS:
            stored_room.status = Status.WAITING_FOR_PLAYERS.value
        self.repo.update_room(request.room_id, stored_room)
        return self._create_room_response(request.room_id, stored_room)

    def delete_room(self, request: DeleteRoomRequest) -> None:
        """Handle a request to delete a room record."""
        if self.repo.delete_room(request.room_id) is None:
            raise RepositoryError(f"Room with room_id={request.room_id} not found.")

    @staticmethod
    def list_variants() -> list[VariantResponse]:
        return [
            VariantResponse(
                variant=rules.variant,
                title=rules.title,
                rows=rules.rows,
                cols=rules.cols,
                starting_placement=rules.layout,
            )
            for rules in VARIANT_RULES.values()
        ]

    # -- Internal helpers --
    def _create_room_response(self, room_id: UUID, model: RoomModel) -> RoomResponse:
        """Convert info in RoomModel to a RoomResponse (for room with given ID.)"""

        # The first recorded FEN is the starting position
        starting_fen = model.history_fen[0] if model.history_fen else model.current_fen
        active_color = model.current_fen.split(" ")[1]
        return RoomResponse(
            room_id=room_id,
            variant=model.variant,
            rows=model.rows,
            cols=model.cols,
            players=[
                SeatResponse(player_id=seat.player_id, display_name=seat.display_name, color=seat.color)
                for seat in model.players
            ],
            status=model.status,
            fen_state=model.current_fen,
            starting_state=starting_fen,
            move_history=model.moves_uci,
            color_to_move=Color.WHITE if active_color == "w" else Color.BLACK,
            winner=model.winner,
            reason=model.reason,
            threefold_declared=model.threefold_declared,
            fifty_move_declared=model.fifty_move_declared,
        )

    @staticmethod
    def _carry_over(stored: RoomModel, updated: RoomModel) -> RoomModel:
        """The Game knows nothing about room bookkeeping: copy it over from the stored record."""
        updated.has_moved = dict(stored.has_moved)
        updated.threefold_declared = stored.threefold_declared
        updated.fifty_move_declared = stored.fifty_move_declared
        return updated

    def _fetch_room(self, room_id: UUID) -> RoomModel:
        """Attempt to find the room in the repository and raise error if it fails."""
        room = self.repo.get_room(room_id)
        if room is None:
            raise RepositoryError(f"Room with {room_id=} not found.")
        return room
