"""History of positions, used for counting repetitions. Append-only: there is no undo."""

from dataclasses import dataclass
from typing import Optional

from variant_chess.core.shared_types import Color
from variant_chess.engine.board import Board
from variant_chess.engine.square import Coordinate


@dataclass(frozen=True)
class HistoryEntry:
    board: Board
    color_to_move: Color
    en_passant_square: Optional[Coordinate] = None

    def key(self) -> str:
        return position_key(self.board, self.color_to_move, self.en_passant_square)


def position_key(board: Board, color_to_move: Color, en_passant_square: Optional[Coordinate]) -> str:
    """Canonical text for a position: layout + side to move + en passant square."""
    en_passant = (
        en_passant_square.to_algebraic(board.rows) if en_passant_square is not None else "-"
    )
    side = "w" if color_to_move == Color.WHITE else "b"
    return f"{board.to_fen()}_{side}_{en_passant}"


def repetition_count(
    history: list[HistoryEntry],
    board: Board,
    color_to_move: Color,
    en_passant_square: Optional[Coordinate],
) -> int:
    """
    How often the given position has occurred, the current occurrence included.

    The caller usually appended the current position to the history already. If not, it is counted on top.
    """
    current = position_key(board, color_to_move, en_passant_square)
    count = sum(1 for entry in history if entry.key() == current)
    if not history or history[-1].key() != current:
        count += 1
    return count
