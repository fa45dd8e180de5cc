"""Unit tests for variant_chess/engine/apply.py"""

import pytest

from variant_chess.core.exceptions import IllegalMoveError
from variant_chess.core.shared_types import Color, PieceType
from variant_chess.engine.apply import (
    apply_move,
    is_capture,
    is_en_passant,
    next_en_passant_square,
)
from variant_chess.engine.board import Board
from variant_chess.engine.pieces import Piece
from variant_chess.engine.square import Coordinate
from variant_chess.engine.variants import GameVariant

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


def sq(label: str, rows: int = 8) -> Coordinate:
    return Coordinate.from_algebraic(label, rows)


def test_plain_move() -> None:
    board = Board.from_fen(STARTING_POSITION)
    after = apply_move(board, sq("g1"), sq("f3"))
    assert after.to_fen() == "rnbqkbnr/pppppppp/8/8/8/5N2/PPPPPPPP/RNBQKB1R"
    # input board is never touched
    assert board.to_fen() == STARTING_POSITION


def test_capture_replaces_the_captured_piece() -> None:
    board = Board.from_fen("8/8/8/3p4/4P3/8/8/8")
    after = apply_move(board, sq("e4"), sq("d5"))
    assert after.piece(sq("d5")) == Piece(PieceType.PAWN, Color.WHITE)
    assert after.is_empty(sq("e4"))
    assert len(list(after.pieces())) == 1


def test_king_side_castling_moves_the_rook() -> None:
    """K e1, R h1, k e8: e1-g1 puts the king on g1, the rook on f1 and leaves h1 empty."""
    board = Board.from_fen("4k3/8/8/8/8/8/8/4K2R")
    after = apply_move(board, sq("e1"), sq("g1"))
    assert after.piece(sq("g1")) == Piece(PieceType.KING, Color.WHITE)
    assert after.piece(sq("f1")) == Piece(PieceType.ROOK, Color.WHITE)
    assert after.is_empty(sq("h1"))
    assert after.is_empty(sq("e1"))


def test_queen_side_castling_moves_the_rook() -> None:
    board = Board.from_fen("r3k3/8/8/8/8/8/8/4K3")
    after = apply_move(board, sq("e8"), sq("c8"))
    assert after.to_fen() == "2kr4/8/8/8/8/8/8/4K3"


def test_castling_on_a_nine_file_board() -> None:
    board = Board.from_fen("4k4/9/9/9/9/9/9/R3K3R")
    after = apply_move(board, sq("e1"), sq("g1"), variant=GameVariant.ACTIVE_CHESS)
    assert after.to_fen() == "4k4/9/9/9/9/9/9/R4RK2"


def test_en_passant_removes_the_double_stepped_pawn() -> None:
    board = Board.from_fen("8/8/8/3pP3/8/8/8/8")
    assert is_en_passant(board, sq("e5"), sq("d6"), sq("d6"))
    assert is_capture(board, sq("e5"), sq("d6"), sq("d6"))

    after = apply_move(board, sq("e5"), sq("d6"), en_passant_square=sq("d6"))
    assert after.to_fen() == "8/8/3P4/8/8/8/8/8"


def test_en_passant_never_takes_your_own_piece() -> None:
    board = Board.from_fen("8/8/8/3PN3/8/8/8/8")
    assert not is_en_passant(board, sq("d5"), sq("e6"), sq("e6"))
    assert not is_capture(board, sq("d5"), sq("e6"), sq("e6"))

    after = apply_move(board, sq("d5"), sq("e6"), en_passant_square=sq("e6"))
    assert after.to_fen() == "8/8/4P3/4N3/8/8/8/8"


def test_diagonal_pawn_move_without_en_passant_square_removes_nothing_else() -> None:
    board = Board.from_fen("8/8/3p4/3pP3/8/8/8/8")
    after = apply_move(board, sq("e5"), sq("d6"))
    assert after.to_fen() == "8/8/3P4/3p4/8/8/8/8"


@pytest.mark.parametrize(
    "variant, requested, expected",
    [
        (GameVariant.CLASSIC, PieceType.KNIGHT, PieceType.KNIGHT),
        (GameVariant.CLASSIC, PieceType.ROOK, PieceType.ROOK),
        (GameVariant.CLASSIC, None, PieceType.QUEEN),
        (GameVariant.CLASSIC, PieceType.KING, PieceType.QUEEN),
        (GameVariant.KING_HUNT, PieceType.KNIGHT, PieceType.QUEEN),
        (GameVariant.PAWN_WAR, PieceType.QUEEN, PieceType.PAWN),
    ],
)
def test_promotion_follows_the_variant(
    variant: GameVariant, requested: PieceType | None, expected: PieceType
) -> None:
    board = Board.from_fen("8/4P3/8/8/8/8/8/8")
    after = apply_move(board, sq("e7"), sq("e8"), promote_to=requested, variant=variant)
    assert after.piece(sq("e8")) == Piece(expected, Color.WHITE)


def test_black_promotes_on_the_last_row_of_a_small_board() -> None:
    board = Board.from_fen("4/4/4/p3/4")
    after = apply_move(board, sq("a2", 5), sq("a1", 5), variant=GameVariant.MICRO_CHESS)
    assert after.piece(sq("a1", 5)) == Piece(PieceType.QUEEN, Color.BLACK)


def test_moving_from_an_empty_square() -> None:
    board = Board.from_fen(STARTING_POSITION)
    with pytest.raises(IllegalMoveError):
        apply_move(board, sq("e4"), sq("e5"))


def test_moving_onto_your_own_piece() -> None:
    board = Board.from_fen(STARTING_POSITION)
    with pytest.raises(IllegalMoveError):
        apply_move(board, sq("a1"), sq("a2"))


@pytest.mark.parametrize(
    "placement, rows, from_label, to_label, expected",
    [
        (STARTING_POSITION, 8, "e2", "e4", "e3"),
        (STARTING_POSITION, 8, "d7", "d5", "d6"),
        (STARTING_POSITION, 8, "e2", "e3", None),
        (STARTING_POSITION, 8, "g1", "f3", None),
        ("rnbqkbnr/pppppppp/8/8/8/8/8/PPPPPPPP/RNBQKBNR", 9, "e2", "e4", "e3"),
    ],
)
def test_next_en_passant_square(
    placement: str, rows: int, from_label: str, to_label: str, expected: str | None
) -> None:
    board = Board.from_fen(placement)
    ep_square = next_en_passant_square(board, sq(from_label, rows), sq(to_label, rows))
    assert ep_square == (sq(expected, rows) if expected else None)
