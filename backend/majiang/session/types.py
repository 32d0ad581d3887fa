"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel

from majiang.logic.enums import GameOutcome, GamePhase


class RoomInfo(BaseModel):
    """Room information for the /rooms listing."""

    room_id: str
    seated: int
    capacity: int
    phase: GamePhase
    games_started: int
    last_outcome: GameOutcome | None
    players: list[str]
