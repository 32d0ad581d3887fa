"""
Pydantic models for state views sent to clients.
"""

from pydantic import BaseModel, ConfigDict

from majiang.logic.enums import GamePhase


class SeatInfo(BaseModel):
    """Public information about one seat."""

    model_config = ConfigDict(frozen=True)

    seat: int
    name: str
    hand_size: int


class DiscardView(BaseModel):
    model_config = ConfigDict(frozen=True)

    seat: int
    player_id: str
    tile: int


class PlayerView(BaseModel):
    """
    Everything one seat is allowed to see.

    Only the viewer's own hand is included; other seats are visible only
    through their public SeatInfo.
    """

    model_config = ConfigDict(frozen=True)

    room_id: str
    seat: int
    hand: list[int]
    is_my_turn: bool
    wall_remaining: int
    current_seat: int | None
    discards: list[DiscardView]
    phase: GamePhase
    players: list[SeatInfo]
