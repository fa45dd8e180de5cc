"""
Move application: turn a (validated) move into the successor board.

Shared by every variant. Castling, en passant and promotion are recognised from the board contents,
the Move itself carries no flags.
"""

from typing import Optional

from variant_chess.core.exceptions import IllegalMoveError
from variant_chess.core.shared_types import PieceType
from variant_chess.engine.board import Board
from variant_chess.engine.castling import castling_direction_of, castling_squares
from variant_chess.engine.moves import (
    en_passant_victim,
    forward,
    is_en_passant_target,
    promotion_row,
)
from variant_chess.engine.pieces import Piece
from variant_chess.engine.square import Coordinate
from variant_chess.engine.variants import GameVariant, PromotionRule, VariantRules, rules_for

PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
]


def apply_move(
    board: Board,
    from_square: Coordinate,
    to_square: Coordinate,
    promote_to: Optional[PieceType] = None,
    en_passant_square: Optional[Coordinate] = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
) -> Board:
    """
    Successor board after moving the piece on `from_square` to `to_square`. The input board is left untouched.

    1. relocate the piece (capturing whatever stood on the target square)
    2. en passant: remove the pawn that double-stepped past the target square
    3. castling: bring the rook along to the square the king passed over
    4. promotion: replace a pawn reaching the far row, following the variant's promotion rule
    """
    rules = rules_for(variant)
    piece = board.piece(from_square)
    if piece is None:
        raise IllegalMoveError(f"There is no piece on {from_square.to_algebraic(board.rows)}")

    target = board.piece(to_square)
    if target is not None and target.color == piece.color:
        raise IllegalMoveError(
            f"Cannot move onto your own piece on {to_square.to_algebraic(board.rows)}"
        )

    new_board = board.with_piece_moved(from_square, to_square)

    if is_en_passant(board, from_square, to_square, en_passant_square):
        # the pawn taken stands right behind the target square, next to where the mover started
        new_board.remove_piece(en_passant_victim(to_square, piece.color))

    direction = castling_direction_of(board, from_square, to_square, rules)
    if direction is not None:
        squares = castling_squares(direction, rules)
        if board.piece(squares.rook_from) == Piece(PieceType.ROOK, piece.color):
            new_board.place_piece(board.piece(squares.rook_from), squares.rook_to)
            new_board.remove_piece(squares.rook_from)

    if is_promotion(board, from_square, to_square):
        promoted = promoted_type(rules, promote_to)
        if promoted is not None:
            new_board.place_piece(piece.promoted_to(promoted), to_square)

    return new_board


def promoted_type(rules: VariantRules, requested: Optional[PieceType]) -> Optional[PieceType]:
    """The piece type a pawn turns into (None: it stays a pawn)."""
    if rules.promotion == PromotionRule.NONE:
        return None
    if rules.promotion == PromotionRule.MANUAL and requested in PROMOTION_OPTIONS:
        return requested
    return PieceType.QUEEN


def is_en_passant(
    board: Board,
    from_square: Coordinate,
    to_square: Coordinate,
    en_passant_square: Optional[Coordinate],
) -> bool:
    piece = board.piece(from_square)
    return (
        piece is not None
        and piece.type == PieceType.PAWN
        and en_passant_square is not None
        and to_square == en_passant_square
        and from_square.col != to_square.col
        and is_en_passant_target(board, en_passant_square, piece.color)
    )


def is_promotion(board: Board, from_square: Coordinate, to_square: Coordinate) -> bool:
    """check if the move is a pawn move that reaches the far row"""
    piece = board.piece(from_square)
    return (
        piece is not None
        and piece.type == PieceType.PAWN
        and to_square.row == promotion_row(piece.color, board.rows)
    )


def is_capture(
    board: Board,
    from_square: Coordinate,
    to_square: Coordinate,
    en_passant_square: Optional[Coordinate] = None,
) -> bool:
    return board.piece(to_square) is not None or is_en_passant(
        board, from_square, to_square, en_passant_square
    )


def is_pawn_move(board: Board, from_square: Coordinate) -> bool:
    piece = board.piece(from_square)
    return piece is not None and piece.type == PieceType.PAWN


def next_en_passant_square(
    board: Board, from_square: Coordinate, to_square: Coordinate
) -> Optional[Coordinate]:
    """The possible en passant square for the next turn: the square a pawn skipped with its double step."""
    piece = board.piece(from_square)
    if piece is None or piece.type != PieceType.PAWN:
        return None
    if to_square.row - from_square.row != 2 * forward(piece.color):
        return None
    return Coordinate(from_square.row + forward(piece.color), from_square.col)
