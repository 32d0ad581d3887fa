"""Typed domain exceptions.

Two families:

GameRuleError covers actions a client is not allowed to take right now
(out of turn, unknown room, full room, bad tile). They never mutate state
and are reported only to the acting connection.

InvariantViolationError covers broken programming contracts (a 13-tile
hand handed to the win evaluator, tiles appearing or vanishing). They are
logged with a traceback and end the affected room's game.
"""

from majiang.logic.enums import GameErrorCode


class GameRuleError(Exception):
    """Base exception for rejected player actions."""

    code: GameErrorCode = GameErrorCode.INVALID_ACTION


class RoomNotFoundError(GameRuleError):
    code = GameErrorCode.ROOM_NOT_FOUND


class RoomFullError(GameRuleError):
    """A new identity tried to sit down at a table that already has four players."""

    code = GameErrorCode.ROOM_FULL

    def __init__(self, room_id: str, seated: int) -> None:
        self.room_id = room_id
        self.seated = seated
        super().__init__(f"room {room_id} is full ({seated}/4)")


class RegistryFullError(GameRuleError):
    code = GameErrorCode.SERVER_AT_CAPACITY


class NotSeatedError(GameRuleError):
    code = GameErrorCode.NOT_SEATED


class NotYourTurnError(GameRuleError):
    code = GameErrorCode.NOT_YOUR_TURN


class InvalidDiscardError(GameRuleError):
    """Tile or hand slot does not match the player's hand."""

    code = GameErrorCode.INVALID_DISCARD


class GameNotInProgressError(GameRuleError):
    code = GameErrorCode.GAME_NOT_IN_PROGRESS


class GameInProgressError(GameRuleError):
    code = GameErrorCode.GAME_IN_PROGRESS


class NotEnoughPlayersError(GameRuleError):
    code = GameErrorCode.NOT_ENOUGH_PLAYERS


class InvariantViolationError(Exception):
    """Base exception for broken internal contracts."""


class HandSizeError(InvariantViolationError):
    """Win evaluation requested on a hand that does not hold exactly 14 tiles."""


class InvalidTileError(InvariantViolationError):
    """Value outside the 34 tile identities."""


class InvalidWallError(InvariantViolationError):
    """Explicit wall is not a permutation of the full tile set."""


class TileAccountingError(InvariantViolationError):
    """Hands, wall and discards no longer add up to the full tile set."""
