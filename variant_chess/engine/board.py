"""The Board holds the `position` (in chess: the configuration of pieces on the board)

Successor positions are always built on a copy: the engine never changes a board it was handed.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Self

from variant_chess.core.exceptions import InvalidFENError
from variant_chess.core.shared_types import Color, PieceType
from variant_chess.engine.pieces import FEN_TO_PIECE, Piece
from variant_chess.engine.square import Coordinate, Dimensions

Grid = list[list[Optional[Piece]]]


@dataclass
class Board:
    grid: Grid

    @classmethod
    def empty(cls, rows: int = 8, cols: int = 8) -> Self:
        return cls([[None] * cols for _ in range(rows)])

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the top rank (row 0), starting with rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces.

        The number of ranks / files is taken from the string itself, so variant boards (9x8, 5x4, ...) work the same way.
        """
        grid: Grid = []
        for fen_one_rank in fen_str.split("/"):
            row: list[Optional[Piece]] = []
            for character in fen_one_rank:
                if character.isdigit():
                    # A number denotes the amount of empty squares after each other
                    row.extend([None] * int(character))
                elif character.lower() in FEN_TO_PIECE:
                    row.append(Piece.from_fen(character))
                else:
                    raise InvalidFENError(
                        f"Unknown character {character!r} in placement {fen_str!r}"
                    )
            grid.append(row)

        widths = {len(row) for row in grid}
        if len(widths) != 1 or 0 in widths:
            raise InvalidFENError(f"Ranks of unequal length in placement {fen_str!r}")
        return cls(grid)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(self._rank_to_fen(row) for row in self.grid)

    @staticmethod
    def _rank_to_fen(row: list[Optional[Piece]]) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for piece in row:
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    @property
    def rows(self) -> int:
        return len(self.grid)

    @property
    def cols(self) -> int:
        return len(self.grid[0])

    @property
    def dimensions(self) -> Dimensions:
        return self.rows, self.cols

    def contains(self, square: Coordinate) -> bool:
        return square.is_within_bounds(self.dimensions)

    def piece(self, square: Coordinate) -> Optional[Piece]:
        if not self.contains(square):
            raise IndexError(f"{square} lies outside of a {self.rows}x{self.cols} board")
        return self.grid[square.row][square.col]

    def is_empty(self, square: Coordinate) -> bool:
        return self.piece(square) is None

    def clone(self) -> "Board":
        # Pieces are immutable, copying the rows is enough to avoid any aliasing
        return Board([list(row) for row in self.grid])

    def place_piece(self, piece: Optional[Piece], square: Coordinate) -> None:
        """Only used while building a fresh board (layouts, tests, move application on a clone)."""
        if not self.contains(square):
            raise IndexError(f"{square} lies outside of a {self.rows}x{self.cols} board")
        self.grid[square.row][square.col] = piece

    def remove_piece(self, square: Coordinate) -> None:
        self.place_piece(None, square)

    def with_piece_moved(self, from_square: Coordinate, to_square: Coordinate) -> "Board":
        """Successor board with the piece on `from_square` relocated (capturing whatever stood on `to_square`)."""
        board = self.clone()
        board.place_piece(self.piece(from_square), to_square)
        board.remove_piece(from_square)
        return board

    def squares(self) -> Iterator[Coordinate]:
        for row in range(self.rows):
            for col in range(self.cols):
                yield Coordinate(row, col)

    def pieces(self) -> Iterator[tuple[Coordinate, Piece]]:
        for square in self.squares():
            piece = self.grid[square.row][square.col]
            if piece is not None:
                yield square, piece

    def locate_color(self, color: Color) -> list[Coordinate]:
        return [square for square, piece in self.pieces() if piece.color == color]

    def locate_pieces(self, piece_type: PieceType, color: Optional[Color] = None) -> list[Coordinate]:
        return [
            square
            for square, piece in self.pieces()
            if piece.type == piece_type and (color is None or piece.color == color)
        ]

    def count(self, piece_type: PieceType, color: Color) -> int:
        return len(self.locate_pieces(piece_type, color))

    def find_king(self, color: Color) -> Optional[Coordinate]:
        kings = self.locate_pieces(PieceType.KING, color)
        return kings[0] if kings else None
