"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define pseudo-legal destination sets for each piece type.
The same rules serve every variant; only the board dimensions differ.

Legality (not leaving your own king in check) is checked later, see legality.py
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Self

from variant_chess.core.exceptions import IllegalMoveError
from variant_chess.core.shared_types import Color, PieceType
from variant_chess.engine.board import Board
from variant_chess.engine.castling import (
    CastlingRights,
    all_castling_rights,
    castling_options,
    castling_squares,
)
from variant_chess.engine.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Piece
from variant_chess.engine.square import BOARD_DIMENSIONS, Coordinate
from variant_chess.engine.variants import GameVariant, rules_for

Vector = tuple[int, int]

UCI_PATTERN = re.compile(r"^([a-z])(\d+)([a-z])(\d+)([nbrq]?)$")


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made. Captures / castling / en passant are derived from the board."""

    from_square: Coordinate
    to_square: Coordinate
    promote_to: Optional[PieceType] = None

    @classmethod
    def from_uci(cls, uci: str, rows: int = BOARD_DIMENSIONS[0]) -> Self:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side

        Labels depend on the number of rows of the board the move is played on.
        """
        match = UCI_PATTERN.match(uci)
        if match is None:
            raise IllegalMoveError(f"Cannot interpret {uci!r} as a move.")
        from_file, from_rank, to_file, to_rank, promotion = match.groups()
        from_sq = Coordinate.from_algebraic(f"{from_file}{from_rank}", rows)
        to_sq = Coordinate.from_algebraic(f"{to_file}{to_rank}", rows)
        promote_to = FEN_TO_PIECE[promotion] if promotion else None
        return cls(from_sq, to_sq, promote_to)

    def to_uci(self, rows: int = BOARD_DIMENSIONS[0]) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic(rows)}{self.to_square.to_algebraic(rows)}{piece_char}"


# --- PAWN GEOMETRY ---
def forward(color: Color) -> int:
    """White moves UP the board (towards row 0), black moves DOWN"""
    return -1 if color == Color.WHITE else 1


def pawn_start_row(color: Color, rows: int) -> int:
    return rows - 2 if color == Color.WHITE else 1


def promotion_row(color: Color, rows: int) -> int:
    return 0 if color == Color.WHITE else rows - 1


# --- MOVEMENT RULES ---
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS


def raycasting_move(square: Coordinate, board: Board, directions: list[Vector]) -> list[Coordinate]:
    """
    Raycasting algorithm
    -----

    The main trick we use to check the 'line of sight of a piece'.
    We define move directions and move along them until we hit another piece or
    the edge of the board. The first occupied square is only included if it can be captured.
    """
    piece = board.piece(square)
    assert piece is not None

    moves: list[Coordinate] = []
    for d_row, d_col in directions:
        target_square = square.offset(d_row, d_col)
        while board.contains(target_square):
            occupant = board.piece(target_square)
            if occupant is not None:
                if piece.is_enemy_of(occupant):
                    moves.append(target_square)
                break
            moves.append(target_square)
            target_square = target_square.offset(d_row, d_col)
    return moves


def single_step_move(square: Coordinate, board: Board, deltas: list[Vector]) -> list[Coordinate]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just can move a single step along a direction"""
    piece = board.piece(square)
    assert piece is not None

    moves: list[Coordinate] = []
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if not board.contains(target_square):
            continue
        occupant = board.piece(target_square)
        if occupant is None or piece.is_enemy_of(occupant):
            moves.append(target_square)
    return moves


def candidate_pawn_moves(square: Coordinate, board: Board) -> list[Coordinate]:
    """
    A pawn:
    - moves by a single square forward (only onto an empty square).
    - It can move by two from its starting row, if both squares are empty
    - takes diagonally

    NOTE: Direction and starting row follow from the color and the number of rows, not from fixed ranks.
    NOTE: En passant depends on the previous move, so gets added in raw_moves()
    """
    pawn = board.piece(square)
    assert pawn is not None
    direction = forward(pawn.color)

    moves: list[Coordinate] = []
    one_step = square.offset(direction, 0)
    if board.contains(one_step) and board.is_empty(one_step):
        moves.append(one_step)
        two_steps = square.offset(2 * direction, 0)
        on_start_row = square.row == pawn_start_row(pawn.color, board.rows)
        if on_start_row and board.contains(two_steps) and board.is_empty(two_steps):
            moves.append(two_steps)

    for d_col in (-1, 1):
        target_square = square.offset(direction, d_col)
        if board.contains(target_square) and pawn.is_enemy_of(board.piece(target_square)):
            moves.append(target_square)
    return moves


def candidate_knight_moves(square: Coordinate, board: Board) -> list[Coordinate]:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Coordinate, board: Board) -> list[Coordinate]:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Coordinate, board: Board) -> list[Coordinate]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Coordinate, board: Board) -> list[Coordinate]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return candidate_rook_moves(square, board) + candidate_bishop_moves(square, board)


def candidate_king_moves(square: Coordinate, board: Board) -> list[Coordinate]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled separately).
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Coordinate, Board], list[Coordinate]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# -- EN PASSANT MOVES ---
def en_passant_victim(en_passant_square: Coordinate, by_color: Color) -> Coordinate:
    """The square of the pawn that double-stepped past `en_passant_square` (seen from the capturing side)."""
    return en_passant_square.offset(-forward(by_color), 0)


def is_en_passant_target(board: Board, en_passant_square: Coordinate, by_color: Color) -> bool:
    """An empty square with an enemy pawn right behind it. Anything else is not a square `by_color` can take on."""
    victim = en_passant_victim(en_passant_square, by_color)
    return (
        board.contains(en_passant_square)
        and board.contains(victim)
        and board.is_empty(en_passant_square)
        and board.piece(victim) == Piece(PieceType.PAWN, by_color.opponent)
    )


def en_passant_matching_board(
    en_passant_square: Optional[Coordinate], board: Board, color_to_move: Color
) -> Optional[Coordinate]:
    """Drop an en passant square that does not sit behind a pawn of the side that just moved."""
    if en_passant_square is None or not is_en_passant_target(board, en_passant_square, color_to_move):
        return None
    return en_passant_square


def en_passant_move(
    square: Coordinate, board: Board, en_passant_square: Optional[Coordinate]
) -> Optional[Coordinate]:
    """The pawn on `square` may take on the en passant square if it is diagonally in front of it."""
    pawn = board.piece(square)
    if en_passant_square is None or pawn is None or pawn.type != PieceType.PAWN:
        return None
    is_in_front = en_passant_square.row == square.row + forward(pawn.color)
    is_adjacent_file = abs(en_passant_square.col - square.col) == 1
    if is_in_front and is_adjacent_file and is_en_passant_target(board, en_passant_square, pawn.color):
        return en_passant_square
    return None


# -- CASTLING MOVES ---
def castling_moves(
    square: Coordinate,
    board: Board,
    variant: GameVariant | str,
    castling_rights: Optional[CastlingRights] = None,
) -> list[Coordinate]:
    """
    King destinations for castling, ignoring whether the king is (or would pass through) check.

    Castling requires the right to still be available, the king on its home square, the same
    colored rook on its corner and nothing in between. Without explicit rights all are assumed available.
    """
    rules = rules_for(variant)
    king = board.piece(square)
    if not rules.can_castle or king is None or king.type != PieceType.KING:
        return []

    rights = castling_rights if castling_rights is not None else all_castling_rights()
    own_rook = Piece(PieceType.ROOK, king.color)
    moves: list[Coordinate] = []
    for direction in castling_options(king.color):
        if not rights.get(direction):
            continue
        squares = castling_squares(direction, rules)
        if square != squares.king_from or board.piece(squares.rook_from) != own_rook:
            continue
        if all(board.is_empty(between) for between in squares.between()):
            moves.append(squares.king_to)
    return moves


def raw_moves(
    board: Board,
    from_square: Coordinate,
    en_passant_square: Optional[Coordinate] = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    castling_rights: Optional[CastlingRights] = None,
) -> set[Coordinate]:
    """
    Every pseudo-legal destination for the piece standing on `from_square`.

    An empty square has no moves.
    """
    piece = board.piece(from_square)
    if piece is None:
        return set()

    movement_rule: CandidateMovesFn = MOVEMENT_RULES[piece.type]
    destinations = set(movement_rule(from_square, board))

    if piece.type == PieceType.PAWN:
        en_passant = en_passant_move(from_square, board, en_passant_square)
        if en_passant is not None:
            destinations.add(en_passant)

    if piece.type == PieceType.KING:
        destinations.update(castling_moves(from_square, board, variant, castling_rights))

    return destinations


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attack(
    square: Coordinate,
    by_color: Color,
    by_piece_types: frozenset[PieceType],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---
    Similar to raycasting moves.
    However, where `raycasting_move()` determines
    _"What is the line-of-sight of the piece standing on the specified square?"_

    This function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified color and that
    is allowed to move along the given direction?"_
    """
    for d_row, d_col in directions:
        target_square = square.offset(d_row, d_col)
        while board.contains(target_square):
            piece_found = board.piece(target_square)
            if piece_found is not None:
                # only the first piece in sight matters
                if piece_found.color == by_color and piece_found.type in by_piece_types:
                    return True
                break
            target_square = target_square.offset(d_row, d_col)
    return False


def single_step_attack(
    square: Coordinate,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """
    Raycasting is for sliding pieces. This is the equivalent for pawns, kings, and knights.

    ---
    Returns TRUE if a piece of the given color and type is found one step away.
    """
    attacker = Piece(by_piece_type, by_color)
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if board.contains(target_square) and board.piece(target_square) == attacker:
            return True
    return False


def is_attacked_by_pawn(square: Coordinate, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally
    ----

    NOTE: Pawn moves are not symmetric, so to check IF a white pawn could take on your square -->
    Must look one row DOWN the board (white pawns move up).
    """
    behind = -forward(by_color)
    return single_step_attack(square, by_color, PieceType.PAWN, board, [(behind, 1), (behind, -1)])


def is_attacked_by_knight(square: Coordinate, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_by_king(square: Coordinate, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KING, board, KING_DELTAS)


def is_attacked_on_diagonal(square: Coordinate, by_color: Color, board: Board) -> bool:
    """Bishops and queens"""
    return raycasting_attack(
        square, by_color, frozenset({PieceType.BISHOP, PieceType.QUEEN}), board, DIAGONALS
    )


def is_attacked_on_straight(square: Coordinate, by_color: Color, board: Board) -> bool:
    """Rooks and queens"""
    return raycasting_attack(
        square, by_color, frozenset({PieceType.ROOK, PieceType.QUEEN}), board, STRAIGHTS
    )


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Coordinate, Color, Board], bool]
ATTACK_RULES: list[IsAttackedFn] = [
    is_attacked_by_pawn,
    is_attacked_by_knight,
    is_attacked_by_king,
    is_attacked_on_diagonal,
    is_attacked_on_straight,
]


def is_square_attacked(board: Board, square: Coordinate, by_color: Color) -> bool:
    """
    Could a piece of `by_color` take on `square` with its next move?

    En passant and castling never attack anything, so they play no role here.
    """
    return any(rule(square, by_color, board) for rule in ATTACK_RULES)
