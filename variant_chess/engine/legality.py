"""
Legality filter: pseudo-legal destinations -> legal destinations.

Variants declare which regime they use (`VariantRules.king_safety`):
* king-safety filtered: simulate every candidate and drop those that leave (or put) your own king in check
* unfiltered: every pseudo-legal destination is legal, optionally without backward moves (pawn races)
"""

from typing import Optional

from variant_chess.core.shared_types import Color
from variant_chess.engine.apply import apply_move
from variant_chess.engine.board import Board
from variant_chess.engine.castling import CastlingRights, castling_direction_of, castling_squares
from variant_chess.engine.moves import Move, forward, is_square_attacked, raw_moves
from variant_chess.engine.square import Coordinate
from variant_chess.engine.variants import GameVariant, rules_for


def is_in_check(board: Board, color: Color) -> bool:
    """Is the king of `color` attacked? A side without a king is never in check."""
    king_square = board.find_king(color)
    if king_square is None:
        return False
    return is_square_attacked(board, king_square, color.opponent)


def legal_moves(
    board: Board,
    from_square: Coordinate,
    en_passant_square: Optional[Coordinate] = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    castling_rights: Optional[CastlingRights] = None,
) -> set[Coordinate]:
    """Legal destinations for the piece on `from_square` under the rules of `variant`."""
    rules = rules_for(variant)
    piece = board.piece(from_square)
    if piece is None:
        return set()

    candidates = raw_moves(board, from_square, en_passant_square, variant, castling_rights)

    if not rules.king_safety:
        if rules.forward_only:
            direction = forward(piece.color)
            return {
                square
                for square in candidates
                if (square.row - from_square.row) * direction > 0
            }
        return candidates

    legal: set[Coordinate] = set()
    for to_square in candidates:
        if not _castling_path_is_safe(board, from_square, to_square, variant):
            continue
        after = apply_move(board, from_square, to_square, None, en_passant_square, variant)
        if not is_in_check(after, piece.color):
            legal.add(to_square)
    return legal


def _castling_path_is_safe(
    board: Board, from_square: Coordinate, to_square: Coordinate, variant: GameVariant | str
) -> bool:
    """You cannot castle out of check, nor through an attacked square. (Landing in check is caught by the simulation.)"""
    rules = rules_for(variant)
    direction = castling_direction_of(board, from_square, to_square, rules)
    if direction is None:
        return True

    color = direction.color
    if is_in_check(board, color):
        return False
    transit = castling_squares(direction, rules).transit()
    return not is_square_attacked(board, transit, color.opponent)


def all_legal_moves(
    board: Board,
    color: Color,
    en_passant_square: Optional[Coordinate] = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    castling_rights: Optional[CastlingRights] = None,
) -> list[Move]:
    """
    Every legal move for the player with the 'color' pieces.

    NOTE: promotion choices are not expanded. A move reaching the far row is listed once.
    """
    moves: list[Move] = []
    for from_square in board.locate_color(color):
        destinations = legal_moves(board, from_square, en_passant_square, variant, castling_rights)
        moves.extend(Move(from_square, to_square) for to_square in sorted(destinations))
    return moves


def has_legal_move(
    board: Board,
    color: Color,
    en_passant_square: Optional[Coordinate] = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    castling_rights: Optional[CastlingRights] = None,
) -> bool:
    """Stops at the first piece that can move."""
    return any(
        legal_moves(board, from_square, en_passant_square, variant, castling_rights)
        for from_square in board.locate_color(color)
    )
