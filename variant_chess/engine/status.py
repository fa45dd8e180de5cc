"""
Game-status evaluator.

Pure functions of (board, side to move, history, en passant square, half-move clock): no clocks, no hidden counters.
Every variant names one of the policies below (strategy pattern, keyed by `StatusPolicy`), so both peers
(and the server) always derive the same result from the same position.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Self

from variant_chess.core.shared_types import Color, GameState, PieceType, Reason, Winner
from variant_chess.engine.board import Board
from variant_chess.engine.castling import CastlingRights
from variant_chess.engine.history import HistoryEntry, repetition_count
from variant_chess.engine.legality import has_legal_move, is_in_check
from variant_chess.engine.moves import KING_DELTAS, is_square_attacked, promotion_row
from variant_chess.engine.pieces import MINOR_PIECES
from variant_chess.engine.square import Coordinate
from variant_chess.engine.variants import (
    GameVariant,
    LonePiece,
    StatusPolicy,
    VariantRules,
    rules_for,
)

# 50 moves by each player without a pawn move or capture
FIFTY_MOVE_HALF_MOVES = 100
REPETITIONS_FOR_DRAW = 3


@dataclass(frozen=True)
class GameStatus:
    state: GameState
    winner: Optional[Winner] = None
    reason: Optional[Reason] = None

    def __post_init__(self) -> None:
        if self.state == GameState.FINISHED and self.winner is None:
            raise ValueError("A finished game needs a winner (or a draw)")

    @classmethod
    def playing(cls) -> Self:
        return cls(GameState.PLAYING)

    @classmethod
    def won_by(cls, color: Color, reason: Reason) -> Self:
        return cls(GameState.FINISHED, Winner.from_color(color), reason)

    @classmethod
    def draw(cls, reason: Reason) -> Self:
        return cls(GameState.FINISHED, Winner.DRAW, reason)

    @property
    def is_finished(self) -> bool:
        return self.state == GameState.FINISHED


@dataclass(frozen=True)
class Snapshot:
    """Everything a policy may look at."""

    board: Board
    color_to_move: Color
    rules: VariantRules
    history: list[HistoryEntry] = field(default_factory=list)
    en_passant_square: Optional[Coordinate] = None
    half_move_clock: int = 0
    castling_rights: Optional[CastlingRights] = None

    def side_to_move_can_move(self) -> bool:
        return has_legal_move(
            self.board,
            self.color_to_move,
            self.en_passant_square,
            self.rules.variant,
            self.castling_rights,
        )


# --- DRAW DETECTION (shared) ---
def is_insufficient_material(board: Board) -> bool:
    """
    Nobody can force mate with:
    * bare kings
    * king + a single minor piece vs bare king
    * king + two knights vs bare king
    """
    non_kings = [piece for _, piece in board.pieces() if piece.type != PieceType.KING]
    if not non_kings:
        return True
    if len(non_kings) == 1:
        return non_kings[0].type in MINOR_PIECES
    if len(non_kings) == 2:
        first, second = non_kings
        return first.type == second.type == PieceType.KNIGHT and first.color == second.color
    return False


def is_threefold_repetition(snapshot: Snapshot) -> bool:
    count = repetition_count(
        snapshot.history, snapshot.board, snapshot.color_to_move, snapshot.en_passant_square
    )
    return count >= REPETITIONS_FOR_DRAW


def is_fifty_move_draw(snapshot: Snapshot) -> bool:
    return snapshot.half_move_clock >= FIFTY_MOVE_HALF_MOVES


# --- POLICIES ---
def classic_status(snapshot: Snapshot) -> GameStatus:
    """
    Classic chess (on whatever board size the variant declares)

    1. a missing king (only possible with externally supplied boards) loses
    2. draws: insufficient material, threefold repetition, fifty-move rule
    3. no legal move: checkmate when in check, stalemate otherwise
    """
    board = snapshot.board
    for color in Color:
        if board.find_king(color) is None:
            return GameStatus.won_by(color.opponent, Reason.KING_CAPTURED)

    if is_insufficient_material(board):
        return GameStatus.draw(Reason.INSUFFICIENT_MATERIAL)

    if is_threefold_repetition(snapshot):
        return GameStatus.draw(Reason.THREEFOLD_REPETITION)

    if is_fifty_move_draw(snapshot):
        return GameStatus.draw(Reason.FIFTY_MOVE_RULE)

    if not snapshot.side_to_move_can_move():
        if is_in_check(board, snapshot.color_to_move):
            return GameStatus.won_by(snapshot.color_to_move.opponent, Reason.CHECKMATE)
        return GameStatus.draw(Reason.STALEMATE)

    return GameStatus.playing()


def _reached_far_row(board: Board, color: Color) -> list[Coordinate]:
    """Pieces of `color` standing on the row their pawns promote on."""
    far_row = promotion_row(color, board.rows)
    return [square for square in board.locate_color(color) if square.row == far_row]


def pawn_race_status(snapshot: Snapshot) -> GameStatus:
    """
    Pawns only. A side wins as soon as one of its pawns reaches the opponent's back rank,
    or when the opponent has no pawns left. Being unable to move loses.
    """
    board = snapshot.board
    for color in (Color.WHITE, Color.BLACK):
        if _reached_far_row(board, color):
            return GameStatus.won_by(color, Reason.PAWN_PROMOTED)
        if board.count(PieceType.PAWN, color.opponent) == 0:
            return GameStatus.won_by(color, Reason.ALL_PAWNS_CAPTURED)

    if not snapshot.side_to_move_can_move():
        return GameStatus.won_by(snapshot.color_to_move.opponent, Reason.NO_MOVE)

    return GameStatus.playing()


def piece_vs_pawns_status(snapshot: Snapshot) -> GameStatus:
    """
    One side plays a single kind of piece, the other side pawns (and whatever those promoted into).

    * all of the lone pieces captured: pawn side wins
    * all pawns captured: piece side wins
    * a pawn arrives on its promotion row: pawn side wins. With `safe_landing` only if the piece side cannot take it right away.
      Arriving by a capture counts the same as arriving by a push.
    * side to move cannot move: it loses
    """
    board = snapshot.board
    lone: LonePiece = snapshot.rules.lone_pieces[0]
    piece_color = lone.color
    pawn_color = piece_color.opponent

    if board.count(lone.type, piece_color) == 0:
        return GameStatus.won_by(pawn_color, lone.captured_reason)

    if not board.locate_color(pawn_color):
        return GameStatus.won_by(piece_color, Reason.ALL_PAWNS_CAPTURED)

    for square in _reached_far_row(board, pawn_color):
        if not lone.safe_landing:
            return GameStatus.won_by(pawn_color, Reason.PAWN_PROMOTED)
        if not is_square_attacked(board, square, piece_color):
            return GameStatus.won_by(pawn_color, Reason.SAFE_PAWN_PROMOTED)

    if not snapshot.side_to_move_can_move():
        return GameStatus.won_by(snapshot.color_to_move.opponent, Reason.NO_MOVE)

    return GameStatus.playing()


def duel_status(snapshot: Snapshot) -> GameStatus:
    """Each side has a single piece: whoever loses theirs, loses the game."""
    for lone in snapshot.rules.lone_pieces:
        if snapshot.board.count(lone.type, lone.color) == 0:
            return GameStatus.won_by(lone.color.opponent, lone.captured_reason)
    return GameStatus.playing()


def king_hunt_status(snapshot: Snapshot) -> GameStatus:
    """
    White (full army) hunts the lone black king.

    Only looks at the king: can it step onto a neighbouring square that is not attacked?
    No? Checkmate when it is attacked right now, stalemate (a draw, Black's goal) otherwise.
    """
    board = snapshot.board
    hunter, hunted = Color.WHITE, Color.BLACK
    king_square = board.find_king(hunted)
    if king_square is None:
        return GameStatus.won_by(hunter, Reason.KING_CAPTURED)

    if _has_safe_king_step(board, king_square, hunter):
        return GameStatus.playing()

    if is_square_attacked(board, king_square, hunter):
        return GameStatus.won_by(hunter, Reason.CHECKMATE)
    return GameStatus.draw(Reason.STALEMATE)


def _has_safe_king_step(board: Board, king_square: Coordinate, by_color: Color) -> bool:
    king = board.piece(king_square)
    assert king is not None
    for d_row, d_col in KING_DELTAS:
        target = king_square.offset(d_row, d_col)
        if not board.contains(target):
            continue
        occupant = board.piece(target)
        if occupant is not None and occupant.color == king.color:
            continue
        relocated = board.with_piece_moved(king_square, target)
        if not is_square_attacked(relocated, target, by_color):
            return True
    return False


# -- STRATEGY PATTERN: STATUS POLICIES ---
StatusFn = Callable[[Snapshot], GameStatus]
STATUS_POLICIES: dict[StatusPolicy, StatusFn] = {
    StatusPolicy.CLASSIC: classic_status,
    StatusPolicy.PAWN_RACE: pawn_race_status,
    StatusPolicy.PIECE_VS_PAWNS: piece_vs_pawns_status,
    StatusPolicy.DUEL: duel_status,
    StatusPolicy.KING_HUNT: king_hunt_status,
}


def evaluate_status(
    board: Board,
    color_to_move: Color,
    history: Optional[list[HistoryEntry]] = None,
    en_passant_square: Optional[Coordinate] = None,
    variant: GameVariant | str = GameVariant.CLASSIC,
    half_move_clock: int = 0,
    castling_rights: Optional[CastlingRights] = None,
) -> GameStatus:
    """Status of the position, for the player who is about to move."""
    rules = rules_for(variant)
    snapshot = Snapshot(
        board=board,
        color_to_move=color_to_move,
        rules=rules,
        history=history or [],
        en_passant_square=en_passant_square,
        half_move_clock=half_move_clock,
        castling_rights=castling_rights,
    )
    return STATUS_POLICIES[rules.policy](snapshot)
