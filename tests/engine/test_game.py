"""Unit tests for variant_chess/engine/game.py"""

from unittest.mock import patch

import pytest

from variant_chess.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidFENError,
    NotYourTurnError,
    RoomFullError,
)
from variant_chess.core.models import RoomModel
from variant_chess.core.shared_types import Color, PieceType, Reason, Status
from variant_chess.engine.game import Game, build_uci
from variant_chess.engine.moves import Move
from variant_chess.engine.pieces import Piece
from variant_chess.engine.square import Coordinate
from variant_chess.engine.status import GameStatus
from variant_chess.engine.variants import GameVariant

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
WHITE = "white player"
BLACK = "black player"


def start(
    variant: GameVariant = GameVariant.CLASSIC, starting_fen: str | None = None
) -> Game:
    """A game with both players registered."""
    game = Game.new_game(WHITE, "white", variant, starting_fen=starting_fen)
    game.register_player(BLACK)
    return game


def play(game: Game, *moves: str) -> GameStatus:
    """Alternate the moves between the players, starting with whoever is to move."""
    status = GameStatus.playing()
    for move in moves:
        player = WHITE if game.state.color_to_move == Color.WHITE else BLACK
        status = game.make_move(move, player)
    return status


def sq(label: str, rows: int = 8) -> Coordinate:
    return Coordinate.from_algebraic(label, rows)


# --- SETTING UP ---
def test_new_game_waits_for_an_opponent() -> None:
    game = Game.new_game(WHITE, "white")
    assert game.status == Status.WAITING_FOR_PLAYERS
    assert game.state.to_fen() == STARTING_FEN
    assert game.history == [STARTING_FEN]
    assert list(game.players) == [Color.WHITE]


def test_new_game_with_unknown_color() -> None:
    with pytest.raises(GameStateError):
        Game.new_game(WHITE, "purple")


def test_new_game_with_a_board_of_the_wrong_size() -> None:
    with pytest.raises(InvalidFENError):
        Game.new_game(WHITE, "white", GameVariant.MICRO_CHESS, starting_fen=STARTING_FEN)


def test_starting_fen_cannot_claim_castling_without_rooks() -> None:
    game = Game.new_game(WHITE, "white", starting_fen="4k3/8/8/8/8/8/8/4K2R w KQkq - 0 1")
    assert game.state.to_fen() == "4k3/8/8/8/8/8/8/4K2R w K - 0 1"


def test_starting_fen_cannot_claim_en_passant_without_a_pawn() -> None:
    game = start(starting_fen="4k3/8/8/3PN3/8/8/8/4K3 w - e6 0 1")
    assert game.state.en_passant_square is None
    assert game.legal_moves(WHITE, "d5") == ["d5d6"]
    with pytest.raises(IllegalMoveError):
        game.make_move("d5e6", WHITE)
    assert game.board.piece(sq("e5")) == Piece(PieceType.KNIGHT, Color.WHITE)


def test_second_player_gets_the_other_color() -> None:
    game = Game.new_game(BLACK, "black")
    assert game.register_player(WHITE) == Color.WHITE
    assert game.status == Status.IN_PROGRESS
    assert game.players[Color.WHITE].player_id == WHITE


def test_third_player_is_refused() -> None:
    game = start()
    with pytest.raises(RoomFullError):
        game.register_player("latecomer")


def test_joining_twice() -> None:
    game = Game.new_game(WHITE, "white")
    with pytest.raises(GameStateError):
        game.register_player(WHITE)


# --- LEGAL MOVES ---
def test_legal_moves_in_the_starting_position() -> None:
    game = start()
    assert len(game.legal_moves(WHITE)) == 20
    assert game.legal_moves(WHITE, "g1") == ["g1f3", "g1h3"]
    assert game.legal_moves(WHITE, "e4") == []
    # opponent's piece
    assert game.legal_moves(WHITE, "e7") == []


def test_legal_moves_outside_of_the_board() -> None:
    game = start()
    with pytest.raises(IllegalMoveError):
        game.legal_moves(WHITE, "i9")


def test_legal_moves_before_the_opponent_joined() -> None:
    game = Game.new_game(WHITE, "white")
    with pytest.raises(GameStateError):
        game.legal_moves(WHITE)


def test_legal_moves_when_it_is_not_your_turn() -> None:
    game = start()
    with pytest.raises(NotYourTurnError):
        game.legal_moves(BLACK)


def test_promotion_choices_are_listed() -> None:
    game = start(starting_fen="7r/4P2k/8/8/8/8/8/K7 w - - 0 1")
    assert game.legal_moves(WHITE, "e7") == ["e7e8n", "e7e8b", "e7e8r", "e7e8q"]


def test_micro_chess_opening_moves() -> None:
    game = start(GameVariant.MICRO_CHESS)
    assert game.legal_moves(WHITE) == ["a2a3", "b2b3", "c2c3", "d2d3"]


# --- MAKING MOVES ---
def test_state_after_moves() -> None:
    game = start()
    play(game, "e2e4")
    assert game.state.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"

    play(game, "e7e5")
    assert game.state.to_fen() == "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq e6 0 2"

    status = play(game, "g1f3")
    assert game.state.to_fen() == "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2"
    assert status == GameStatus.playing()
    assert [move.to_uci() for move in game.moves] == ["e2e4", "e7e5", "g1f3"]
    assert len(game.history) == 4


def test_half_move_clock_resets_on_captures() -> None:
    game = start()
    play(game, "g1f3", "b8c6", "f3e5", "c6e5")
    assert game.state.half_move_clock == 0
    play(game, "b1c3")
    assert game.state.half_move_clock == 1


@pytest.mark.parametrize(
    "move, player",
    [
        ("e2e5", WHITE),  # not how pawns move
        ("e7e5", WHITE),  # opponent's pawn
        ("e4e5", WHITE),  # empty square
        ("e2i9", WHITE),  # off the board
        ("castle", WHITE),  # not UCI
    ],
)
def test_rejected_move_changes_nothing(move: str, player: str) -> None:
    game = start()
    with pytest.raises(IllegalMoveError):
        game.make_move(move, player)
    assert game.state.to_fen() == STARTING_FEN
    assert game.moves == []
    assert game.history == [STARTING_FEN]


def test_moving_out_of_turn() -> None:
    game = start()
    with pytest.raises(NotYourTurnError):
        game.make_move("e7e5", BLACK)


def test_stranger_cannot_move() -> None:
    game = start()
    with pytest.raises(GameStateError):
        game.make_move("e2e4", "stranger")


def test_castling() -> None:
    game = start(starting_fen="4k3/8/8/8/8/8/8/4K2R w K - 0 1")
    play(game, "e1g1")
    assert game.board.piece(sq("g1")) == Piece(PieceType.KING, Color.WHITE)
    assert game.board.piece(sq("f1")) == Piece(PieceType.ROOK, Color.WHITE)
    assert game.board.is_empty(sq("h1"))
    assert game.state.to_fen() == "4k3/8/8/8/8/8/8/5RK1 b - - 1 1"


def test_castling_needs_the_right() -> None:
    game = start(starting_fen="4k3/8/8/8/8/8/8/4K2R w - - 0 1")
    with pytest.raises(IllegalMoveError):
        game.make_move("e1g1", WHITE)


def test_moving_the_rook_revokes_castling() -> None:
    game = start(starting_fen="4k3/8/8/8/8/8/8/4K2R w K - 0 1")
    play(game, "h1h2", "e8d8", "h2h1", "d8e8")
    with pytest.raises(IllegalMoveError):
        game.make_move("e1g1", WHITE)


def test_en_passant_capture_and_expiry() -> None:
    game = start()
    play(game, "e2e4", "a7a6", "e4e5", "d7d5")
    assert game.state.en_passant_square == sq("d6")
    assert "e5d6" in game.legal_moves(WHITE, "e5")

    # expires after one ply
    play(game, "h2h3", "a6a5")
    assert game.state.en_passant_square is None
    assert game.legal_moves(WHITE, "e5") == ["e5e6"]


def test_en_passant_removes_the_pawn() -> None:
    game = start()
    play(game, "e2e4", "a7a6", "e4e5", "d7d5", "e5d6")
    assert game.board.is_empty(sq("d5"))
    assert game.board.piece(sq("d6")) == Piece(PieceType.PAWN, Color.WHITE)
    assert game.state.half_move_clock == 0


def test_promotion_choice() -> None:
    game = start(starting_fen="7r/4P2k/8/8/8/8/8/K7 w - - 0 1")
    play(game, "e7e8n")
    assert game.board.piece(sq("e8")) == Piece(PieceType.KNIGHT, Color.WHITE)
    assert game.to_model().moves_uci == ["e7e8n"]


def test_promotion_defaults_to_queen() -> None:
    game = start(starting_fen="7r/4P2k/8/8/8/8/8/K7 w - - 0 1")
    play(game, "e7e8")
    assert game.board.piece(sq("e8")) == Piece(PieceType.QUEEN, Color.WHITE)
    assert game.to_model().moves_uci == ["e7e8q"]


# --- ENDING THE GAME ---
def test_fools_mate() -> None:
    game = start()
    status = play(game, "f2f3", "e7e5", "g2g4", "d8h4")
    assert status == GameStatus.won_by(Color.BLACK, Reason.CHECKMATE)
    assert game.status == Status.FINISHED
    assert game.winner == BLACK
    with pytest.raises(GameStateError):
        game.make_move("a2a3", WHITE)


def test_threefold_repetition_on_the_third_occurrence() -> None:
    game = start()
    shuffle = ("g1f3", "g8f6", "f3g1", "f6g8")

    assert play(game, *shuffle) == GameStatus.playing()
    assert play(game, *shuffle[:3]) == GameStatus.playing()
    assert play(game, shuffle[3]) == GameStatus.draw(Reason.THREEFOLD_REPETITION)
    assert game.winner is None


def test_fifty_move_rule() -> None:
    game = start(starting_fen="4k3/8/8/8/8/8/8/R3K3 w - - 99 60")
    assert play(game, "a1a2") == GameStatus.draw(Reason.FIFTY_MOVE_RULE)


def test_rook_captured() -> None:
    game = start(GameVariant.ROOK_VS_PAWNS, starting_fen="8/8/8/8/8/3p4/4R3/8 b - - 0 1")
    assert play(game, "d3e2") == GameStatus.won_by(Color.BLACK, Reason.ROOK_CAPTURED)
    assert game.winner == BLACK


def test_pawn_war_blocked_pawn() -> None:
    game = start(GameVariant.PAWN_WAR, starting_fen="8/8/8/4p3/8/4P3/8/8 w - - 0 1")
    assert play(game, "e3e4") == GameStatus.won_by(Color.WHITE, Reason.NO_MOVE)


def test_pawn_war_arrival() -> None:
    game = start(GameVariant.PAWN_WAR, starting_fen="8/4P3/8/8/8/8/p7/8 w - - 0 1")
    assert play(game, "e7e8") == GameStatus.won_by(Color.WHITE, Reason.PAWN_PROMOTED)
    assert game.board.piece(sq("e8")) == Piece(PieceType.PAWN, Color.WHITE)


# --- REMOTE POSITIONS ---
def test_apply_remote_position() -> None:
    game = start()
    status = game.apply_remote_position(
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR", Color.BLACK, "e3", 0
    )
    assert status == GameStatus.playing()
    assert game.state.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
    assert len(game.history) == 2


def test_remote_position_drops_castling_rights_of_moved_pieces() -> None:
    game = start()
    game.apply_remote_position("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBR1", Color.BLACK)
    assert game.state.to_fen().split(" ")[2] == "Qkq"


def test_remote_position_drops_an_impossible_en_passant_square() -> None:
    game = start()
    game.apply_remote_position("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR", Color.BLACK, "d3")
    assert game.state.en_passant_square is None
    assert game.state.to_fen().split(" ")[3] == "-"


def test_remote_position_of_the_wrong_size() -> None:
    game = start()
    with pytest.raises(InvalidFENError):
        game.apply_remote_position("rqkr/pppp/4/PPPP/RQKR", Color.BLACK)


# --- TRANSPORT ---
def test_model_conversion() -> None:
    game = start(GameVariant.FARAWAY_CHESS)
    play(game, "e2e4", "e8e6")
    model = game.to_model()
    assert isinstance(model, RoomModel)
    assert (model.variant, model.rows, model.cols) == ("faraway_chess", 9, 8)
    assert model.moves_uci == ["e2e4", "e8e6"]
    assert [seat.player_id for seat in model.players] == [WHITE, BLACK]
    assert model.status == Status.IN_PROGRESS
    assert Game.from_model(model).to_model() == model


def test_model_with_unknown_status() -> None:
    model = start().to_model()
    model.status = "paused"
    with pytest.raises(GameStateError):
        Game.from_model(model)


def test_build_uci() -> None:
    assert build_uci("e7", "e8", PieceType.QUEEN) == "e7e8q"
    assert build_uci("e2", "e4") == "e2e4"


# --- ORCHESTRATION ---
def test_legal_moves_are_written_in_uci() -> None:
    game = start()
    mock_move = Move(sq("e2"), sq("e4"))
    with patch.object(game, attribute="_generate_legal_moves", return_value=[mock_move]):
        assert game.legal_moves(WHITE) == ["e2e4"]


def test_status_is_evaluated_for_the_opponent() -> None:
    game = start()
    with patch(
        "variant_chess.engine.game.evaluate_status", return_value=GameStatus.playing()
    ) as mock_evaluate:
        game.make_move("e2e4", WHITE)

    mock_evaluate.assert_called_once()
    board, color_to_move, history = mock_evaluate.call_args.args[:3]
    assert board == game.board
    assert color_to_move == Color.BLACK
    assert len(history) == 2


def test_rejected_move_is_never_applied() -> None:
    game = start()
    with patch("variant_chess.engine.game.apply_move") as mock_apply:
        with pytest.raises(IllegalMoveError):
            game.make_move("e2e5", WHITE)
    mock_apply.assert_not_called()
