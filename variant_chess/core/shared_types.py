"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    """Lifecycle of a room's game."""

    WAITING_FOR_PLAYERS = "waiting for players"
    IN_PROGRESS = "in progress"
    FINISHED = "finished"


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class GameState(StrEnum):
    """Result of evaluating a position: the game either goes on or it is over."""

    PLAYING = "playing"
    FINISHED = "finished"


class Winner(StrEnum):
    WHITE = "white"
    BLACK = "black"
    DRAW = "draw"

    @classmethod
    def from_color(cls, color: Color) -> "Winner":
        return cls(color.value)


class Reason(StrEnum):
    """Machine readable reason codes attached to a finished game."""

    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient-material"
    THREEFOLD_REPETITION = "threefold-repetition"
    FIFTY_MOVE_RULE = "fifty-move-rule"
    KING_CAPTURED = "king-captured"
    ALL_PAWNS_CAPTURED = "all-pawns-captured"
    PAWN_PROMOTED = "pawn-promoted"
    SAFE_PAWN_PROMOTED = "safe-pawn-promoted"
    QUEEN_CAPTURED = "queen-captured"
    ROOK_CAPTURED = "rook-captured"
    BISHOP_CAPTURED = "bishop-captured"
    KNIGHTS_CAPTURED = "knights-captured"
    KNIGHT_CAPTURED = "knight-captured"
    NO_MOVE = "no-move"
