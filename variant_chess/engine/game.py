"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn of a variant game -->
passes this information to the service layer, which can then pass it onwards to the API layer.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Self

from variant_chess.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    NotYourTurnError,
    RoomFullError,
)
from variant_chess.core.models import PlayerSeat, RoomModel
from variant_chess.core.shared_types import Color, GameState, PieceType, Reason, Status, Winner
from variant_chess.engine.apply import (
    PROMOTION_OPTIONS,
    apply_move,
    is_capture,
    is_pawn_move,
    is_promotion,
    next_en_passant_square,
    promoted_type,
)
from variant_chess.engine.board import Board
from variant_chess.engine.castling import rights_matching_board, updated_castling_rights
from variant_chess.engine.fen import PositionState
from variant_chess.engine.history import HistoryEntry
from variant_chess.engine.legality import all_legal_moves, legal_moves as legal_destinations
from variant_chess.engine.moves import Move, en_passant_matching_board
from variant_chess.engine.pieces import PIECE_TO_FEN
from variant_chess.engine.square import Coordinate, is_valid_label
from variant_chess.engine.status import GameStatus, evaluate_status
from variant_chess.engine.variants import GameVariant, PromotionRule, VariantRules, rules_for

logger = logging.getLogger(__name__)


def build_uci(
    from_square_alg: str, to_square_alg: str, promotion: Optional[PieceType] = None
) -> str:
    """Glue the parts of a move request together into UCI notation"""
    piece_char = PIECE_TO_FEN[promotion] if promotion else ""
    return f"{from_square_alg}{to_square_alg}{piece_char}"


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    variant: GameVariant
    board: Board
    moves: list[Move]
    history: list[str]  # FEN of every position reached, the current one included
    state: PositionState
    players: dict[Color, PlayerSeat]
    status: Status
    outcome: GameStatus

    @classmethod
    def from_model(cls, model: RoomModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        try:
            status = Status(model.status)
        except ValueError as exc:
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(Status)}"
            ) from exc
        rules = rules_for(model.variant)
        if (model.rows, model.cols) != rules.dimensions:
            raise GameStateError(
                f"Room claims a {model.rows}x{model.cols} board, {rules.variant} is played on {rules.rows}x{rules.cols}"
            )

        # create the Game
        state = PositionState.from_fen(model.current_fen, rules.dimensions)
        board = Board.from_fen(state.position)
        moves = [Move.from_uci(uci, rules.rows) for uci in model.moves_uci]
        players = {Color(seat.color): seat for seat in model.players}
        outcome = (
            GameStatus(
                GameState.FINISHED,
                Winner(model.winner),
                Reason(model.reason) if model.reason else None,
            )
            if status == Status.FINISHED and model.winner
            else GameStatus.playing()
        )

        return cls(rules.variant, board, moves, list(model.history_fen), state, players, status, outcome)

    def to_model(self) -> RoomModel:
        """Encode back into a format the Service layer uses"""

        return RoomModel(
            variant=self.variant.value,
            rows=self.board.rows,
            cols=self.board.cols,
            current_fen=self.state.to_fen(),
            history_fen=list(self.history),
            moves_uci=[move.to_uci(self.board.rows) for move in self.moves],
            players=[self.players[color] for color in Color if color in self.players],
            status=self.status.value,
            winner=self.outcome.winner.value if self.outcome.winner else None,
            reason=self.outcome.reason.value if self.outcome.reason else None,
        )

    @classmethod
    def new_game(
        cls,
        player: str,
        color: str,
        variant: GameVariant | str = GameVariant.CLASSIC,
        display_name: Optional[str] = None,
        starting_fen: Optional[str] = None,
    ) -> Self:
        """To start a new game of `variant` with the player using the pieces with the indicated color."""
        rules = rules_for(variant)
        if color.lower() not in {c.value for c in Color}:
            raise GameStateError(
                f"Cannot create new game. Color {color} not in {','.join(Color)}."
            )
        player_color = Color(color.lower())

        if starting_fen:
            state = PositionState.from_fen(starting_fen, rules.dimensions)
            board = Board.from_fen(state.position)
            # rights claimed by the FEN but without king + rook at home are dropped, same for an en passant
            # square without a pawn that could just have passed it
            state.castling_rights = rights_matching_board(state.castling_rights, board, rules)
            state.en_passant_square = en_passant_matching_board(
                state.en_passant_square, board, state.color_to_move
            )
        else:
            state = PositionState.starting_position(rules.variant)
        seat = PlayerSeat(player_id=player, display_name=display_name or player, color=player_color.value)
        logger.debug("New %s game, %s plays %s", rules.variant, player, player_color)
        return cls(
            variant=rules.variant,
            board=Board.from_fen(state.position),
            moves=[],
            history=[state.to_fen()],
            state=state,
            players={player_color: seat},
            status=Status.WAITING_FOR_PLAYERS,
            outcome=GameStatus.playing(),
        )

    @property
    def rules(self) -> VariantRules:
        return rules_for(self.variant)

    @property
    def winner(self) -> Optional[str]:
        """Player id of the winner. None while playing, or when the game ended in a draw."""
        if self.outcome.winner is None or self.outcome.winner == Winner.DRAW:
            return None
        seat = self.players.get(Color(self.outcome.winner.value))
        return seat.player_id if seat else None

    def register_player(self, player: str, display_name: Optional[str] = None) -> Color:
        """Registering the 2nd player to an open game. Returns the color assigned to them."""
        if len(self.players) >= 2:
            raise RoomFullError("Cannot join this game. Both seats are taken.")
        if self.status != Status.WAITING_FOR_PLAYERS:
            raise GameStateError(
                f"Cannot join this game. Game is not accepting new players. status: {self.status}"
            )
        if self._seat_of(player) is not None:
            raise GameStateError(f"Player {player} already joined this game.")

        opponent_color = next(iter(self.players))
        player_color = opponent_color.opponent
        self.players[player_color] = PlayerSeat(
            player_id=player, display_name=display_name or player, color=player_color.value
        )
        self._change_status(Status.IN_PROGRESS)
        logger.debug("%s joined as %s", player, player_color)
        return player_color

    def legal_moves(self, player: str, from_square: Optional[str] = None) -> list[str]:
        """
        Service will request the set of legal moves.
        ----

        These can be used to display to the user (the whole set, or only those of the piece on `from_square`).

        ----
        1. Check if it is your turn
        2. Yes? Generate legal moves and return a list of moves in UCI notation.
        """
        self._assert_in_progress()
        self._assert_your_turn(player)

        player_color = self._get_player_color(player)
        origin = None if from_square is None else self._parse_square(from_square)
        return [move.to_uci(self.board.rows) for move in self._generate_legal_moves(player_color, origin)]

    def make_move(self, move_uci: str, player: str) -> GameStatus:
        """
        Attempt to make a move
        -----

        1. the game must be in progress and it must be your turn
        2. the from-square must hold one of your pieces and the move must be legal
        3. update the board (castling, en passant and promotion are handled by the engine)
        4. update castling rights, en passant square, move counters and side to move
        5. update the (history of) moves and the FEN history
        6. update game status (if needed)

        Nothing is changed when the move gets rejected.
        """
        self._assert_in_progress()
        self._assert_your_turn(player)

        player_color = self._get_player_color(player)
        move = self._parse_move(move_uci)

        piece = self.board.piece(move.from_square)
        if piece is None or piece.color != player_color:
            raise IllegalMoveError(
                f"No piece of yours on {move.from_square.to_algebraic(self.board.rows)}: {move_uci}"
            )

        if move.to_square not in self._legal_destinations(move.from_square):
            raise IllegalMoveError(f"Move not allowed: {move_uci}")

        self._play(move)
        logger.debug("%s played %s in %s game", player, move_uci, self.variant)

        return self._update_game_status()

    def apply_remote_position(
        self,
        placement: str,
        color_to_move: Color,
        en_passant: Optional[str] = None,
        half_move_clock: int = 0,
    ) -> GameStatus:
        """
        Take over a position computed by a (trusted) peer instead of a move.
        ----

        The board is only checked for being readable and having the variant's dimensions.
        The position is added to the history and the status gets recomputed.
        """
        self._assert_in_progress()

        board = Board.from_fen(placement)
        if board.dimensions != self.rules.dimensions:
            raise InvalidFENError(
                f"Board is {board.rows}x{board.cols}, {self.variant} is played on {self.rules.rows}x{self.rules.cols}"
            )
        en_passant_square = None
        if en_passant and en_passant != "-":
            if not is_valid_label(en_passant, board.dimensions):
                raise InvalidFENError(f"Invalid en passant square {en_passant!r}")
            en_passant_square = Coordinate.from_algebraic(en_passant, board.rows)

        previous_color = self.state.color_to_move
        self.board = board
        self.state.position = board.to_fen()
        self.state.castling_rights = rights_matching_board(self.state.castling_rights, board, self.rules)
        self.state.en_passant_square = en_passant_matching_board(en_passant_square, board, color_to_move)
        self.state.half_move_clock = half_move_clock
        if previous_color == Color.BLACK and color_to_move == Color.WHITE:
            self.state.increment_full_move_counter()
        self.state.color_to_move = color_to_move
        self._update_fen_history()
        logger.debug("Applied remote position %s", self.state.to_fen())

        return self._update_game_status()

    # -- PRIVATE HELPERS ---
    def _seat_of(self, player: str) -> Optional[PlayerSeat]:
        return next((seat for seat in self.players.values() if seat.player_id == player), None)

    def _get_player_color(self, player: str) -> Color:
        seat = self._seat_of(player)
        if seat is None:
            raise GameStateError(f"Player {player} is not playing in this game.")
        return Color(seat.color)

    def _assert_in_progress(self) -> None:
        # make sure the game is (still) in progress
        if self.status != Status.IN_PROGRESS:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _assert_your_turn(self, player: str) -> None:
        """You must wait for your turn before calculating legal moves / making a move."""
        player_color = self._get_player_color(player)
        if player_color != self.state.color_to_move:
            player_to_move = self.players[self.state.color_to_move].player_id
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {player_to_move} to make a move first."
            )

    def _parse_square(self, label: str) -> Coordinate:
        if not is_valid_label(label, self.board.dimensions):
            raise IllegalMoveError(f"{label!r} is not a square on this board.")
        return Coordinate.from_algebraic(label, self.board.rows)

    def _parse_move(self, move_uci: str) -> Move:
        move = Move.from_uci(move_uci, self.board.rows)
        for square in (move.from_square, move.to_square):
            if not self.board.contains(square):
                raise IllegalMoveError(f"Move leaves the board: {move_uci}")
        return move

    def _legal_destinations(self, from_square: Coordinate) -> set[Coordinate]:
        return legal_destinations(
            self.board,
            from_square,
            self.state.en_passant_square,
            self.variant,
            self.state.castling_rights,
        )

    def _generate_legal_moves(self, color: Color, from_square: Optional[Coordinate] = None) -> list[Move]:
        """
        List of legal moves for `color`, or only for its piece on `from_square`
        ----

        Where the player picks the promotion piece, a pawn move to the far row is expanded into one move
        for every choice of piece type to promote into.
        """
        if from_square is None:
            candidates = all_legal_moves(
                self.board,
                color,
                self.state.en_passant_square,
                self.variant,
                self.state.castling_rights,
            )
        else:
            piece = self.board.piece(from_square)
            if piece is None or piece.color != color:
                return []
            destinations = sorted(self._legal_destinations(from_square))
            candidates = [Move(from_square, to_square) for to_square in destinations]

        if self.rules.promotion != PromotionRule.MANUAL:
            return candidates
        legal: list[Move] = []
        for move in candidates:
            if is_promotion(self.board, move.from_square, move.to_square):
                legal.extend(Move(move.from_square, move.to_square, option) for option in PROMOTION_OPTIONS)
            else:
                legal.append(move)
        return legal

    def _play(self, move: Move) -> None:
        """Update board, FEN state, moves and history. The move has been validated already."""
        rules = self.rules
        ep_square = self.state.en_passant_square

        # NOTE: determine these on the board BEFORE the move is made
        resets_clock = is_pawn_move(self.board, move.from_square) or is_capture(
            self.board, move.from_square, move.to_square, ep_square
        )
        next_ep_square = next_en_passant_square(self.board, move.from_square, move.to_square)
        promotion = (
            promoted_type(rules, move.promote_to)
            if is_promotion(self.board, move.from_square, move.to_square)
            else None
        )

        self.board = apply_move(
            self.board, move.from_square, move.to_square, move.promote_to, ep_square, self.variant
        )

        player_color = self.state.color_to_move
        self.state.position = self.board.to_fen()
        self.state.castling_rights = updated_castling_rights(
            self.state.castling_rights, move.from_square, move.to_square, rules
        )
        self.state.en_passant_square = next_ep_square
        if resets_clock:
            self.state.reset_half_move_counter()
        else:
            self.state.increment_half_move_counter()
        if player_color == Color.BLACK:
            self.state.increment_full_move_counter()

        # NOTE update color to move AFTER doing checks that depend on the last move made
        self.state.color_to_move = player_color.opponent

        # record the piece the pawn actually promoted into
        self.moves.append(Move(move.from_square, move.to_square, promotion))
        self._update_fen_history()

    def _update_fen_history(self) -> None:
        self.history.append(self.state.to_fen())

    def _history_entries(self) -> list[HistoryEntry]:
        entries = []
        for fen in self.history:
            state = PositionState.from_fen(fen)
            entries.append(
                HistoryEntry(Board.from_fen(state.position), state.color_to_move, state.en_passant_square)
            )
        return entries

    def _update_game_status(self) -> GameStatus:
        """Performs checks to see if game has ended and changes status accordingly.

        NOTE the FEN state has already been updated. At this point the turn player is the opponent of the player that moved.
        """
        self.outcome = evaluate_status(
            self.board,
            self.state.color_to_move,
            self._history_entries(),
            self.state.en_passant_square,
            self.variant,
            self.state.half_move_clock,
            self.state.castling_rights,
        )
        if self.outcome.is_finished:
            self._change_status(Status.FINISHED)
            logger.debug("Game over: %s (%s)", self.outcome.winner, self.outcome.reason)
        return self.outcome

    def _change_status(self, new_status: Status) -> None:
        self.status = new_status
