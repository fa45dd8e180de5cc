"""
Variant descriptors.

Key idea: every ruleset is a row in a table instead of an if/else chain in every rule function.
A descriptor bundles the board dimensions, the starting layout, the legality regime and the
terminal-condition policy. Adding a variant means adding a row here.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from variant_chess.core.exceptions import GameStateError
from variant_chess.core.shared_types import Color, PieceType, Reason
from variant_chess.engine.board import Board
from variant_chess.engine.square import Dimensions


class GameVariant(StrEnum):
    CLASSIC = "classic"
    PAWN_WAR = "pawn_war"
    QUEEN_VS_PAWNS = "queen_vs_pawns"
    ROOK_VS_PAWNS = "rook_vs_pawns"
    BISHOP_VS_PAWNS = "bishop_vs_pawns"
    KNIGHTS_VS_PAWNS = "knights_vs_pawns"
    QUEEN_VS_KNIGHT = "queen_vs_knight"
    KING_HUNT = "king_hunt"
    ACTIVE_CHESS = "active_chess"
    FARAWAY_CHESS = "faraway_chess"
    MICRO_CHESS = "micro_chess"


class StatusPolicy(StrEnum):
    """The closed set of terminal-condition policies a variant can pick from."""

    CLASSIC = "classic"
    PAWN_RACE = "pawn-race"
    PIECE_VS_PAWNS = "piece-vs-pawns"
    DUEL = "duel"
    KING_HUNT = "king-hunt"


class PromotionRule(StrEnum):
    MANUAL = "manual"  # player picks, queen if nothing was picked
    AUTO_QUEEN = "auto-queen"
    NONE = "none"  # pawn stays a pawn (the race is over anyway)


@dataclass(frozen=True)
class LonePiece:
    """The single (kind of) piece one side plays with in the asymmetric variants."""

    color: Color
    type: PieceType
    captured_reason: Reason
    # Pawn side only wins by promoting on a square this piece cannot take on right away
    safe_landing: bool = False


@dataclass(frozen=True)
class VariantRules:
    variant: GameVariant
    title: str
    rows: int
    cols: int
    layout: str
    policy: StatusPolicy
    king_safety: bool = True
    forward_only: bool = False
    promotion: PromotionRule = PromotionRule.AUTO_QUEEN
    # file of the king's home square, None when the variant does not castle
    castling_king_col: Optional[int] = None
    lone_pieces: tuple[LonePiece, ...] = ()

    def __post_init__(self) -> None:
        # A typo in the table should blow up at import time, not halfway through a game
        board = Board.from_fen(self.layout)
        if board.dimensions != (self.rows, self.cols):
            raise ValueError(
                f"Layout of {self.variant} is {board.rows}x{board.cols}, expected {self.rows}x{self.cols}"
            )

    @property
    def dimensions(self) -> Dimensions:
        return self.rows, self.cols

    @property
    def can_castle(self) -> bool:
        return self.castling_king_col is not None

    def starting_board(self) -> Board:
        return Board.from_fen(self.layout)


CLASSIC_LAYOUT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"

VARIANT_RULES: dict[GameVariant, VariantRules] = {
    rules.variant: rules
    for rules in (
        VariantRules(
            variant=GameVariant.CLASSIC,
            title="Default Chess",
            rows=8,
            cols=8,
            layout=CLASSIC_LAYOUT,
            policy=StatusPolicy.CLASSIC,
            promotion=PromotionRule.MANUAL,
            castling_king_col=4,
        ),
        VariantRules(
            variant=GameVariant.PAWN_WAR,
            title="Classic Pawn War",
            rows=8,
            cols=8,
            layout="8/pppppppp/8/8/8/8/PPPPPPPP/8",
            policy=StatusPolicy.PAWN_RACE,
            king_safety=False,
            forward_only=True,
            promotion=PromotionRule.NONE,
        ),
        VariantRules(
            variant=GameVariant.QUEEN_VS_PAWNS,
            title="Queen vs 8 Pawns",
            rows=8,
            cols=8,
            layout="8/pppppppp/8/8/8/8/8/3Q4",
            policy=StatusPolicy.PIECE_VS_PAWNS,
            king_safety=False,
            lone_pieces=(LonePiece(Color.WHITE, PieceType.QUEEN, Reason.QUEEN_CAPTURED),),
        ),
        VariantRules(
            variant=GameVariant.ROOK_VS_PAWNS,
            title="Rook vs 5 Pawns",
            rows=8,
            cols=8,
            layout="8/ppppp3/8/8/8/8/8/7R",
            policy=StatusPolicy.PIECE_VS_PAWNS,
            king_safety=False,
            lone_pieces=(
                LonePiece(Color.WHITE, PieceType.ROOK, Reason.ROOK_CAPTURED, safe_landing=True),
            ),
        ),
        VariantRules(
            variant=GameVariant.BISHOP_VS_PAWNS,
            title="Bishop vs 3 Pawns",
            rows=8,
            cols=8,
            layout="8/ppp5/8/8/8/8/8/5B2",
            policy=StatusPolicy.PIECE_VS_PAWNS,
            king_safety=False,
            lone_pieces=(
                LonePiece(Color.WHITE, PieceType.BISHOP, Reason.BISHOP_CAPTURED, safe_landing=True),
            ),
        ),
        VariantRules(
            variant=GameVariant.KNIGHTS_VS_PAWNS,
            title="2 Knights vs 3 Pawns",
            rows=8,
            cols=8,
            layout="8/8/3n4/2n5/8/8/2PPP3/8",
            policy=StatusPolicy.PIECE_VS_PAWNS,
            king_safety=False,
            lone_pieces=(
                LonePiece(Color.BLACK, PieceType.KNIGHT, Reason.KNIGHTS_CAPTURED, safe_landing=True),
            ),
        ),
        VariantRules(
            variant=GameVariant.QUEEN_VS_KNIGHT,
            title="Queen vs Knight",
            rows=8,
            cols=8,
            layout="3q4/8/8/8/8/8/8/6N1",
            policy=StatusPolicy.DUEL,
            king_safety=False,
            # order matters: a lost queen is reported first
            lone_pieces=(
                LonePiece(Color.BLACK, PieceType.QUEEN, Reason.QUEEN_CAPTURED),
                LonePiece(Color.WHITE, PieceType.KNIGHT, Reason.KNIGHT_CAPTURED),
            ),
        ),
        VariantRules(
            variant=GameVariant.KING_HUNT,
            title="King Hunt",
            rows=8,
            cols=8,
            layout="4k3/8/8/8/8/8/PPPPPPPP/RNBQKBNR",
            policy=StatusPolicy.KING_HUNT,
            castling_king_col=4,
        ),
        VariantRules(
            variant=GameVariant.ACTIVE_CHESS,
            title="Active Chess",
            rows=8,
            cols=9,
            layout="rnbqkqbnr/ppppppppp/9/9/9/9/PPPPPPPPP/RNBQKQBNR",
            policy=StatusPolicy.CLASSIC,
            promotion=PromotionRule.MANUAL,
            castling_king_col=4,
        ),
        VariantRules(
            variant=GameVariant.FARAWAY_CHESS,
            title="Faraway Chess",
            rows=9,
            cols=8,
            layout="rnbqkbnr/pppppppp/8/8/8/8/8/PPPPPPPP/RNBQKBNR",
            policy=StatusPolicy.CLASSIC,
            promotion=PromotionRule.MANUAL,
            castling_king_col=4,
        ),
        VariantRules(
            variant=GameVariant.MICRO_CHESS,
            title="Micro Chess",
            rows=5,
            cols=4,
            layout="rqkr/pppp/4/PPPP/RQKR",
            policy=StatusPolicy.CLASSIC,
            promotion=PromotionRule.MANUAL,
        ),
    )
}


def rules_for(variant: GameVariant | str) -> VariantRules:
    """Look up the descriptor of a variant (accepts the plain string id as sent over the wire)."""
    try:
        return VARIANT_RULES[GameVariant(variant)]
    except ValueError as exc:
        raise GameStateError(
            f"Unknown variant {variant!r}. Pick one from {', '.join(GameVariant)}"
        ) from exc


def starting_board(variant: GameVariant | str) -> Board:
    return rules_for(variant).starting_board()
