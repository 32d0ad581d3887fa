"""Domain event models and the service event transport container.

Room operations return domain events wrapped in ServiceEvent containers.
The container carries a typed routing target:
- BroadcastTarget: every seated player of the room
- SeatTarget: only the player at that seat
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from majiang.logic.enums import GameOutcome
from majiang.logic.types import PlayerView, SeatInfo

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event should be sent to all seated players of the room."""


@dataclass(frozen=True)
class SeatTarget:
    """Event should be sent to a specific seat."""

    seat: int


EventTarget = BroadcastTarget | SeatTarget


class EventType(StrEnum):
    OCCUPANCY = "occupancy"
    GAME_STARTED = "game_started"
    DISCARD = "discard"
    DRAW = "draw"
    GAME_END = "game_end"
    STATE = "state"


# ---------------------------------------------------------------------------
# Domain event models
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EventType


class OccupancyEvent(GameEvent):
    """Seat count after a join or leave."""

    type: Literal[EventType.OCCUPANCY] = EventType.OCCUPANCY
    seated: int
    capacity: int
    players: list[SeatInfo]


class GameStartedEvent(GameEvent):
    type: Literal[EventType.GAME_STARTED] = EventType.GAME_STARTED
    game_number: int
    dealer_seat: int


class DiscardEvent(GameEvent):
    type: Literal[EventType.DISCARD] = EventType.DISCARD
    seat: int
    tile: int


class DrawEvent(GameEvent):
    """Public notice that a seat drew. The tile itself is only in that seat's state."""

    type: Literal[EventType.DRAW] = EventType.DRAW
    seat: int
    wall_remaining: int


class GameEndEvent(GameEvent):
    """
    Game left IN_PROGRESS.

    winner_seat/winning_tile/winning_hand are set for wins; discarder_seat
    only for discard wins.
    """

    type: Literal[EventType.GAME_END] = EventType.GAME_END
    outcome: GameOutcome
    winner_seat: int | None = None
    discarder_seat: int | None = None
    winning_tile: int | None = None
    winning_hand: list[int] | None = None


class StateEvent(GameEvent):
    """Per-seat snapshot."""

    type: Literal[EventType.STATE] = EventType.STATE
    view: PlayerView


class ServiceEvent(BaseModel):
    """Event transport container with a typed routing target."""

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        if self.event != self.data.type:
            raise ValueError(f"ServiceEvent.event '{self.event}' does not match data.type '{self.data.type}'")
        return self


def broadcast(data: GameEvent) -> ServiceEvent:
    return ServiceEvent(event=data.type, data=data, target=BroadcastTarget())


def to_seat(seat: int, data: GameEvent) -> ServiceEvent:
    return ServiceEvent(event=data.type, data=data, target=SeatTarget(seat=seat))
