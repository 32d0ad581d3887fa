"""Room registry: owns every room of the process and its exclusive lock."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from majiang.logic.exceptions import RegistryFullError, RoomNotFoundError
from majiang.logic.room import NUM_SEATS, Room
from majiang.session.types import RoomInfo

if TYPE_CHECKING:
    from collections.abc import Sequence

    from majiang.logic.events import ServiceEvent
    from majiang.logic.types import PlayerView

logger = structlog.get_logger()


class RoomRegistry:
    """
    Map room ids to Room state machines.

    Rooms are created the first time a player joins an unknown id and are
    kept for the life of the process. Every room gets its own asyncio.Lock;
    callers hold it around an operation and the delivery of its events so
    actions on one room are applied strictly one after another.
    """

    def __init__(self, *, max_rooms: int = 100) -> None:
        self._max_rooms = max_rooms
        self._rooms: dict[str, Room] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def games_in_progress(self) -> int:
        return sum(1 for room in self._rooms.values() if room.in_progress)

    def get(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError(f"room {room_id} does not exist")
        return room

    def find(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is not None:
            return room
        if len(self._rooms) >= self._max_rooms:
            raise RegistryFullError(f"server already hosts {self._max_rooms} rooms")
        room = Room(room_id)
        self._rooms[room_id] = room
        self._locks[room_id] = asyncio.Lock()
        logger.info("room created", room_id=room_id)
        return room

    def lock(self, room_id: str) -> asyncio.Lock:
        """Lock of an existing room. Raises RoomNotFoundError for unknown ids."""
        lock = self._locks.get(room_id)
        if lock is None:
            raise RoomNotFoundError(f"room {room_id} does not exist")
        return lock

    def rooms_seating(self, player_id: str) -> list[Room]:
        """Every room where this identity currently holds a seat."""
        return [room for room in self._rooms.values() if room.seat_of(player_id) is not None]

    def rooms_info(self) -> list[RoomInfo]:
        return [
            RoomInfo(
                room_id=room.room_id,
                seated=room.seated,
                capacity=NUM_SEATS,
                phase=room.phase,
                games_started=room.games_started,
                last_outcome=room.last_outcome,
                players=room.player_names,
            )
            for room in self._rooms.values()
        ]

    # --- Routing by room id ---

    def join(self, room_id: str, player_id: str, name: str, connection_id: str) -> list[ServiceEvent]:
        return self.get_or_create(room_id).join(player_id, name, connection_id)

    def start_game(self, room_id: str, tiles: Sequence[int] | None = None) -> list[ServiceEvent]:
        return self.get(room_id).start_game(tiles)

    def play_tile(self, room_id: str, player_id: str, tile: int, slot: int) -> list[ServiceEvent]:
        return self.get(room_id).play_tile(player_id, tile, slot)

    def leave(self, player_id: str, connection_id: str | None = None) -> dict[str, list[ServiceEvent]]:
        """
        Remove the identity from every room seating it.

        Returns the events per room id. Callers that need serialization
        should use Room.leave under each room's lock instead.
        """
        return {room.room_id: room.leave(player_id, connection_id) for room in self.rooms_seating(player_id)}

    def snapshot(self, room_id: str) -> list[PlayerView]:
        return self.get(room_id).snapshot()
