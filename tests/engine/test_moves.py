"""Unit tests for variant_chess/engine/moves.py"""

import pytest

from variant_chess.core.exceptions import IllegalMoveError
from variant_chess.core.shared_types import Color, PieceType
from variant_chess.engine.board import Board
from variant_chess.engine.castling import CastlingDirection, all_castling_rights
from variant_chess.engine.moves import (
    Move,
    candidate_knight_moves,
    en_passant_matching_board,
    is_square_attacked,
    raw_moves,
)
from variant_chess.engine.square import Coordinate
from variant_chess.engine.variants import GameVariant

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_FEN = "/".join(["8"] * 8)


def sq(label: str, rows: int = 8) -> Coordinate:
    return Coordinate.from_algebraic(label, rows)


def squares(*labels: str, rows: int = 8) -> set[Coordinate]:
    return {sq(label, rows) for label in labels}


# -- MOVE CREATION, ENCODING/DECODING UCI NOTATION ---
@pytest.mark.parametrize(
    "uci_move, from_label, to_label, promote_to",
    [
        ("e2e4", "e2", "e4", None),
        ("a1a5", "a1", "a5", None),
        ("e7e8q", "e7", "e8", PieceType.QUEEN),
        ("b2a1n", "b2", "a1", PieceType.KNIGHT),
    ],
)
def test_creating_move_from_uci(
    uci_move: str, from_label: str, to_label: str, promote_to: PieceType | None
) -> None:
    move = Move.from_uci(uci_move)
    assert move == Move(sq(from_label), sq(to_label), promote_to)
    assert move.to_uci() == uci_move


def test_uci_on_a_nine_row_board() -> None:
    move = Move.from_uci("a9a8", rows=9)
    assert move.from_square == Coordinate(0, 0)
    assert move.to_square == Coordinate(1, 0)
    assert move.to_uci(rows=9) == "a9a8"


@pytest.mark.parametrize("uci_move", ["", "e2", "e2e4k", "E2E4", "e2-e4", "0-0"])
def test_uninterpretable_uci(uci_move: str) -> None:
    with pytest.raises(IllegalMoveError):
        Move.from_uci(uci_move)


# -- PSEUDO-LEGAL DESTINATIONS ---
def test_empty_square_has_no_moves() -> None:
    board = Board.from_fen(STARTING_POSITION)
    assert raw_moves(board, sq("e4")) == set()


def test_sliding_pieces_stop_at_the_first_occupied_square() -> None:
    """Own piece blocks (exclusive), enemy piece blocks (inclusive: it can be captured)."""
    board = Board.from_fen("8/8/8/8/8/P7/8/R1n5")
    assert raw_moves(board, sq("a1")) == squares("a2", "b1", "c1")


def test_queen_combines_rook_and_bishop_lines() -> None:
    board = Board.from_fen("8/8/8/8/3Q4/8/8/8")
    moves = raw_moves(board, sq("d4"))
    assert len(moves) == 27
    assert sq("a7") in moves and sq("h8") in moves and sq("d1") in moves


def test_knights_jump() -> None:
    board = Board.from_fen(STARTING_POSITION)
    assert raw_moves(board, sq("b1")) == squares("a3", "c3")
    assert raw_moves(board, sq("g8")) == squares("f6", "h6")


def test_knight_moves_are_cut_off_by_the_board_edge() -> None:
    board = Board.from_fen("7N/8/8/8/8/8/8/8")
    assert set(candidate_knight_moves(sq("h8"), board)) == squares("f7", "g6")


@pytest.mark.parametrize(
    "placement, rows, from_label, expected",
    [
        (STARTING_POSITION, 8, "e2", ("e3", "e4")),
        (STARTING_POSITION, 8, "e7", ("e6", "e5")),
        ("rnbqkbnr/pppppppp/8/8/8/8/8/PPPPPPPP/RNBQKBNR", 9, "e2", ("e3", "e4")),
        ("rnbqkbnr/pppppppp/8/8/8/8/8/PPPPPPPP/RNBQKBNR", 9, "d8", ("d7", "d6")),
        ("8/8/8/8/4p3/4P3/8/8", 8, "e3", ()),
        ("8/8/8/8/8/4p3/4P3/8", 8, "e2", ()),
        ("8/8/8/8/4p3/8/4P3/8", 8, "e2", ("e3",)),
        ("8/8/8/3p1p2/4P3/8/8/8", 8, "e4", ("e5", "d5", "f5")),
    ],
)
def test_pawn_moves(placement: str, rows: int, from_label: str, expected: tuple[str, ...]) -> None:
    """Direction and double step depend on the color and the number of rows. Pushes need empty squares."""
    board = Board.from_fen(placement)
    assert raw_moves(board, sq(from_label, rows)) == squares(*expected, rows=rows)


def test_pawns_cannot_capture_straight_ahead() -> None:
    board = Board.from_fen("8/8/8/8/4p3/4P3/8/8")
    assert raw_moves(board, sq("e3")) == set()


# -- EN PASSANT ---
def test_en_passant_destination() -> None:
    """Black just played d7d5: the white pawn on e5 may take on d6."""
    board = Board.from_fen("8/8/8/3pP3/8/8/8/8")
    assert raw_moves(board, sq("e5"), en_passant_square=sq("d6")) == squares("e6", "d6")


def test_en_passant_only_for_adjacent_pawns() -> None:
    board = Board.from_fen("8/8/8/3p2P1/8/8/8/8")
    assert raw_moves(board, sq("g5"), en_passant_square=sq("d6")) == squares("g6")


def test_no_en_passant_without_target() -> None:
    board = Board.from_fen("8/8/8/3pP3/8/8/8/8")
    assert raw_moves(board, sq("e5")) == squares("e6")


def test_no_en_passant_without_an_enemy_pawn_behind_the_target() -> None:
    """Only a pawn that just double-stepped past the target square can be taken en passant."""
    for placement in ("8/8/8/3PN3/8/8/8/8", "8/8/8/3Pn3/8/8/8/8", "8/8/8/3P4/8/8/8/8"):
        board = Board.from_fen(placement)
        assert raw_moves(board, sq("d5"), en_passant_square=sq("e6")) == squares("d6")


def test_en_passant_matching_board() -> None:
    board = Board.from_fen("8/8/8/3pP3/8/8/8/8")
    assert en_passant_matching_board(sq("d6"), board, Color.WHITE) == sq("d6")
    assert en_passant_matching_board(sq("d6"), board, Color.BLACK) is None
    assert en_passant_matching_board(sq("e6"), board, Color.WHITE) is None
    assert en_passant_matching_board(None, board, Color.WHITE) is None


# -- CASTLING DESTINATIONS ---
CASTLING_BOARD = "r3k2r/8/8/8/8/8/8/R3K2R"


def test_castling_destinations_with_all_rights() -> None:
    board = Board.from_fen(CASTLING_BOARD)
    white = raw_moves(board, sq("e1"), castling_rights=all_castling_rights())
    black = raw_moves(board, sq("e8"), castling_rights=all_castling_rights())
    assert {sq("g1"), sq("c1")} <= white
    assert {sq("g8"), sq("c8")} <= black


def test_revoked_castling_right() -> None:
    board = Board.from_fen(CASTLING_BOARD)
    rights = all_castling_rights()
    rights[CastlingDirection.WHITE_KING_SIDE] = False
    moves = raw_moves(board, sq("e1"), castling_rights=rights)
    assert sq("g1") not in moves
    assert sq("c1") in moves


def test_castling_needs_an_empty_path() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/RN2K1NR")
    moves = raw_moves(board, sq("e1"))
    assert sq("g1") not in moves
    assert sq("c1") not in moves


def test_no_castling_in_variants_without_it() -> None:
    board = Board.from_fen("rqkr/pppp/4/4/R1K1")
    assert raw_moves(board, sq("c1", 5), variant=GameVariant.MICRO_CHESS) == squares(
        "b1", "d1", "b2", "c2", "d2", rows=5
    )


def test_castling_on_a_nine_file_board() -> None:
    board = Board.from_fen("4k4/9/9/9/9/9/9/R3K3R")
    moves = raw_moves(board, sq("e1"), variant=GameVariant.ACTIVE_CHESS)
    assert {sq("g1"), sq("c1")} <= moves


# -- ATTACKS ---
@pytest.mark.parametrize(
    "placement, target, by_color, attacked",
    [
        ("8/8/8/8/4P3/8/8/8", "d5", Color.WHITE, True),
        ("8/8/8/8/4P3/8/8/8", "f5", Color.WHITE, True),
        ("8/8/8/8/4P3/8/8/8", "e5", Color.WHITE, False),
        ("8/8/8/4p3/8/8/8/8", "d4", Color.BLACK, True),
        ("8/8/8/4p3/8/8/8/8", "d6", Color.BLACK, False),
        ("8/8/8/8/8/8/8/R6k", "h1", Color.WHITE, True),
        ("8/8/8/8/8/8/8/R2n3k", "h1", Color.WHITE, False),
        ("8/8/8/8/8/8/8/B7", "h8", Color.WHITE, True),
        ("8/8/8/8/8/8/8/N7", "b3", Color.WHITE, True),
        ("8/8/8/8/8/8/8/N7", "b2", Color.WHITE, False),
        ("8/8/8/8/8/8/8/K7", "b2", Color.WHITE, True),
        ("8/8/8/8/8/8/8/K7", "b2", Color.BLACK, False),
    ],
)
def test_square_attacked(placement: str, target: str, by_color: Color, attacked: bool) -> None:
    board = Board.from_fen(placement)
    assert is_square_attacked(board, sq(target), by_color) is attacked
