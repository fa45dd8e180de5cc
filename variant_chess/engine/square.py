"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Coordinates are (row, col), 0-based. Row 0 is the top rank as seen from White (Black's back rank),
so the rank number of a row depends on how many rows the board has.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import ascii_lowercase

# Classical chess is 8x8. Variants may use other dimensions: (rows, cols)
BOARD_DIMENSIONS = (8, 8)

Dimensions = tuple[int, int]


@dataclass(frozen=True, order=True)
class Coordinate:
    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str, rows: int = BOARD_DIMENSIONS[0]) -> Coordinate:
        """Algebraic notation: on an 8-row board 'a8' -> (0, 0) and 'h1' -> (7, 7)"""
        col = ord(sq[0]) - ord("a")
        rank = int(sq[1:])
        return cls(rows - rank, col)

    def to_algebraic(self, rows: int = BOARD_DIMENSIONS[0]) -> str:
        return f"{ascii_lowercase[self.col]}{rows - self.row}"

    def is_within_bounds(self, dimensions: Dimensions = BOARD_DIMENSIONS) -> bool:
        rows, cols = dimensions
        return (0 <= self.row < rows) and (0 <= self.col < cols)

    def offset(self, d_row: int, d_col: int) -> Coordinate:
        return Coordinate(self.row + d_row, self.col + d_col)


def is_valid_label(label: str, dimensions: Dimensions = BOARD_DIMENSIONS) -> bool:
    """Valid square label: a file letter that exists on the board + a rank number within the board"""
    rows, cols = dimensions
    if len(label) < 2:
        return False

    # NOTE: works as long as we do not go beyond 26 files.
    file_char, rank_chars = label[0], label[1:]
    if file_char not in ascii_lowercase[:cols]:
        return False

    if not rank_chars.isdigit():
        return False

    return 1 <= int(rank_chars) <= rows
