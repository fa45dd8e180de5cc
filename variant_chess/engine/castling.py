"""
Helpers for implementing Castling rules. Need to be imported by multiple sources

Castling eligibility is tracked with explicit rights (revoked once the king or a rook has moved, or a rook got captured at home),
never guessed from the pieces that currently happen to stand on the home squares.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from variant_chess.core.shared_types import Color, PieceType
from variant_chess.engine.board import Board
from variant_chess.engine.square import Coordinate
from variant_chess.engine.variants import VariantRules


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK

    @property
    def is_king_side(self) -> bool:
        return self.value.lower() == "k"


CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)

CastlingRights = dict[CastlingDirection, bool]


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    The king moves two files towards the rook, the rook lands on the square the king passed over.
    """

    king_from: Coordinate
    king_to: Coordinate
    rook_from: Coordinate
    rook_to: Coordinate

    @property
    def step(self) -> int:
        return 1 if self.rook_from.col > self.king_from.col else -1

    def between(self) -> list[Coordinate]:
        """Squares strictly between king and rook: these must all be empty."""
        row = self.king_from.row
        return [
            Coordinate(row, col)
            for col in range(self.king_from.col + self.step, self.rook_from.col, self.step)
        ]

    def transit(self) -> Coordinate:
        """Square the king passes over (may not be under attack)."""
        return self.king_from.offset(0, self.step)


def back_row(color: Color, rows: int) -> int:
    return rows - 1 if color == Color.WHITE else 0


def castling_squares(direction: CastlingDirection, rules: VariantRules) -> CastlingSquares:
    """Castling geometry for the variant's board: king on its home file, rooks in the corners."""
    assert rules.castling_king_col is not None
    row = back_row(direction.color, rules.rows)
    king_col = rules.castling_king_col
    step = 1 if direction.is_king_side else -1
    rook_col = rules.cols - 1 if direction.is_king_side else 0
    return CastlingSquares(
        king_from=Coordinate(row, king_col),
        king_to=Coordinate(row, king_col + 2 * step),
        rook_from=Coordinate(row, rook_col),
        rook_to=Coordinate(row, king_col + step),
    )


def castling_options(color: Color) -> list[CastlingDirection]:
    return [direction for direction in CASTLING_ORDER if direction.color == color]


def castling_from_fen(castle_fen: str) -> CastlingRights:
    """parse the part of the FEN string that encodes castling rights"""
    return {direction: (direction.value in castle_fen) for direction in CastlingDirection}


def castling_to_fen(castling_rights: CastlingRights) -> str:
    """create the part of the FEN string that encodes castling rights"""
    castling_chars = "".join(
        [direction.value for direction in CASTLING_ORDER if castling_rights.get(direction)]
    )
    return castling_chars or "-"


def all_castling_rights() -> CastlingRights:
    return {direction: True for direction in CastlingDirection}


def no_castling_rights() -> CastlingRights:
    return {direction: False for direction in CastlingDirection}


def starting_castling_rights(rules: VariantRules) -> CastlingRights:
    """Rights at the start of a game: only where the variant castles and king + rook actually stand at home."""
    if not rules.can_castle:
        return no_castling_rights()
    return rights_matching_board(all_castling_rights(), rules.starting_board(), rules)


def rights_matching_board(rights: CastlingRights, board: Board, rules: VariantRules) -> CastlingRights:
    """Keep a right only while its king and rook still stand on their home squares (rights never come back)."""
    if not rules.can_castle:
        return no_castling_rights()

    kept = no_castling_rights()
    for direction in CastlingDirection:
        squares = castling_squares(direction, rules)
        king = board.piece(squares.king_from)
        rook = board.piece(squares.rook_from)
        kept[direction] = (
            bool(rights.get(direction))
            and king is not None
            and rook is not None
            and king.color == rook.color == direction.color
            and king.type == PieceType.KING
            and rook.type == PieceType.ROOK
        )
    return kept


def castling_direction_of(
    board: Board, from_square: Coordinate, to_square: Coordinate, rules: VariantRules
) -> Optional[CastlingDirection]:
    """Which castling (if any) moving the piece on from_square to to_square would be."""
    if not rules.can_castle:
        return None
    piece = board.piece(from_square)
    if piece is None or piece.type != PieceType.KING:
        return None
    for direction in castling_options(piece.color):
        squares = castling_squares(direction, rules)
        if (from_square, to_square) == (squares.king_from, squares.king_to):
            return direction
    return None


def updated_castling_rights(
    rights: CastlingRights,
    from_square: Coordinate,
    to_square: Coordinate,
    rules: VariantRules,
) -> CastlingRights:
    """
    Revoke rights after a move:
    * a king leaving its home square revokes both of its directions (castling included)
    * a rook leaving its home square revokes the direction of that rook
    * anything landing on a rook's home square (a capture) revokes the direction of that rook
    """
    if not rules.can_castle:
        return no_castling_rights()

    updated = dict(rights)
    for direction, available in rights.items():
        if not available:
            continue
        squares = castling_squares(direction, rules)
        touched = {from_square, to_square}
        if squares.king_from in touched or squares.rook_from in touched:
            updated[direction] = False
    return updated
