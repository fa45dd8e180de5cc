"""
Representation of the full state of a position. The part that can be encoded in a FEN string.

Generalised to the variant boards: the number of ranks and files is read from the placement itself.
"""

from dataclasses import dataclass
from typing import Optional, Self

from variant_chess.core.exceptions import InvalidFENError
from variant_chess.core.shared_types import Color
from variant_chess.engine.board import Board
from variant_chess.engine.castling import (
    CastlingRights,
    castling_from_fen,
    castling_to_fen,
    starting_castling_rights,
)
from variant_chess.engine.square import Coordinate, Dimensions, is_valid_label
from variant_chess.engine.variants import GameVariant, rules_for

VALID_CASTLING_CHARACTERS = "KQkq"


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. (in that order) or a '-' if all rights have been revoked."""
    if castling == "-":
        return True
    if not castling or any(char not in VALID_CASTLING_CHARACTERS for char in castling):
        return False
    ordered = "".join(char for char in VALID_CASTLING_CHARACTERS if char in castling)
    return castling == ordered


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_en_passant(en_passant: str, dimensions: Dimensions) -> bool:
    """Valid en passant square encoding should be a square that exists on the board or a '-'"""
    return (en_passant == "-") or is_valid_label(en_passant, dimensions)


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


@dataclass
class PositionState:
    """
    Data that can be constructed from a FEN string.
    ----

    FEN, or Forsyth-Edwards Notation, is a standard notation for describing a particular board position of a chess game.

    <board position string><active color><castling rights><en passant square><# half move clock><number turns played>

    * The string to describe the board position is described in the Board class
    * The active color is either "w" or "b"
    * Castling rights: "K"/"Q" for white king-/queen-side, "k"/"q" for black. "-" when none are left.
    * The en passant square indicates the square a pawn can take on. If not available a "-" is used.
    * The half move clock counts the number of half-moves since the last pawn move or capture (fifty-move rule)
    * The number of turns starts at 1 and increments after every move black makes.

    ex) The standard starting position has a FEN
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    position: str
    color_to_move: Color
    castling_rights: CastlingRights
    en_passant_square: Optional[Coordinate]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str, dimensions: Optional[Dimensions] = None) -> Self:
        """Parse the FEN into data. When dimensions are given, the placement must match them."""
        parts = fen.strip().split(" ")
        if len(parts) != 6:
            raise InvalidFENError(f"FEN must contain 6 space-separated parts: {fen!r}")

        (
            position,
            active_color,
            castling_str,
            en_passant_algebraic,
            half_move_clock,
            num_turns,
        ) = parts

        board = Board.from_fen(position)
        if dimensions is not None and board.dimensions != dimensions:
            raise InvalidFENError(
                f"Placement is {board.rows}x{board.cols}, expected {dimensions[0]}x{dimensions[1]}: {fen!r}"
            )

        if not is_valid_color_code(active_color):
            raise InvalidFENError(f"Invalid active color {active_color!r} in {fen!r}")
        if not is_valid_castling_rights(castling_str):
            raise InvalidFENError(f"Invalid castling rights {castling_str!r} in {fen!r}")
        if not is_valid_en_passant(en_passant_algebraic, board.dimensions):
            raise InvalidFENError(f"Invalid en passant square {en_passant_algebraic!r} in {fen!r}")
        if not (is_valid_move_counter(half_move_clock) and is_valid_move_counter(num_turns)):
            raise InvalidFENError(f"Invalid move counters in {fen!r}")

        en_passant_square = (
            Coordinate.from_algebraic(en_passant_algebraic, board.rows)
            if en_passant_algebraic != "-"
            else None
        )
        return cls(
            position=position,
            color_to_move=Color.WHITE if active_color == "w" else Color.BLACK,
            castling_rights=castling_from_fen(castling_str),
            en_passant_square=en_passant_square,
            half_move_clock=int(half_move_clock),
            num_turns=int(num_turns),
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        castling_str = castling_to_fen(self.castling_rights)
        en_passant_algebraic = (
            self.en_passant_square.to_algebraic(self.rows)
            if self.en_passant_square is not None
            else "-"
        )
        return f"{self.position} {active_color} {castling_str} {en_passant_algebraic} {self.half_move_clock} {self.num_turns}"

    @property
    def rows(self) -> int:
        return self.position.count("/") + 1

    @classmethod
    def starting_position(cls, variant: GameVariant | str = GameVariant.CLASSIC) -> Self:
        rules = rules_for(variant)
        return cls(
            position=rules.layout,
            color_to_move=Color.WHITE,
            castling_rights=starting_castling_rights(rules),
            en_passant_square=None,
            half_move_clock=0,
            num_turns=1,
        )

    # --- COUNTERS ---
    def increment_half_move_counter(self) -> None:
        self.half_move_clock += 1

    def reset_half_move_counter(self) -> None:
        self.half_move_clock = 0

    def increment_full_move_counter(self) -> None:
        self.num_turns += 1
