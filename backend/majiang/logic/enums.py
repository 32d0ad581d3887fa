"""
String enum definitions for game concepts.
"""

from enum import StrEnum


class GamePhase(StrEnum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"


class GameOutcome(StrEnum):
    """How a game left the IN_PROGRESS phase."""

    SELF_DRAWN_WIN = "self_drawn_win"
    DISCARD_WIN = "discard_win"
    FIRST_TURN_WIN = "first_turn_win"
    EXHAUSTIVE_DRAW = "exhaustive_draw"
    ABANDONED = "abandoned"  # a seated player left mid-game
    ABORTED = "aborted"  # internal error, see server log


class GameErrorCode(StrEnum):
    """Error codes sent to clients for rejected actions."""

    ROOM_NOT_FOUND = "room_not_found"
    ROOM_FULL = "room_full"
    SERVER_AT_CAPACITY = "server_at_capacity"
    NOT_SEATED = "not_seated"
    NOT_YOUR_TURN = "not_your_turn"
    INVALID_DISCARD = "invalid_discard"
    GAME_NOT_IN_PROGRESS = "game_not_in_progress"
    GAME_IN_PROGRESS = "game_in_progress"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    INVALID_ACTION = "invalid_action"
