"""
Custom exceptions.

Every layer raises (a subclass of) GameError, so the API layer can translate them into responses in one place.
"""


class GameError(Exception):
    """Top-level exception for anything going wrong while playing / managing a game."""


class IllegalMoveError(GameError):
    """The requested move is not allowed under the rules of the active variant."""


class NotYourTurnError(GameError):
    """A player attempted to move (or ask for moves) while it is the opponent's turn."""


class AlreadyMovedError(NotYourTurnError):
    """A player attempted to move twice within the same ply."""


class GameStateError(GameError):
    """The game is not in a state that allows the requested action."""


class InvalidFENError(GameError):
    """String could not be interpreted as a (variant sized) FEN."""


class InvalidRequestError(GameError):
    """Request data failed validation.

    NOTE: not a ValueError on purpose, pydantic lets it propagate as-is instead of wrapping it in a ValidationError.
    """


class RepositoryError(GameError):
    """Record could not be found / stored."""


class RoomFullError(GameError):
    """Both seats of a room are already taken."""
