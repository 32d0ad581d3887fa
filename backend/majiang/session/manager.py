from __future__ import annotations

import contextlib
from functools import partial
from typing import TYPE_CHECKING

import structlog

from majiang.logic.events import BroadcastTarget, SeatTarget, broadcast
from majiang.logic.exceptions import (
    GameRuleError,
    InvariantViolationError,
    NotSeatedError,
    RegistryFullError,
    RoomFullError,
)
from majiang.messaging.event_payload import service_event_payload
from majiang.messaging.types import ErrorMessage, PongMessage, SessionErrorCode

if TYPE_CHECKING:
    from collections.abc import Callable

    from majiang.logic.enums import GameErrorCode
    from majiang.logic.events import ServiceEvent
    from majiang.logic.room import Room
    from majiang.messaging.protocol import ConnectionProtocol
    from majiang.session.registry import RoomRegistry

logger = structlog.get_logger()


class SessionManager:
    """
    Bind transport connections to seated identities and deliver room events.

    A connection belongs to the room named in its /ws/{room_id} path and, once
    it has joined, to one stable player_id. Every room operation runs under the
    room's lock together with the delivery of the events it produced.
    """

    def __init__(self, registry: RoomRegistry) -> None:
        self._registry = registry
        self._connections: dict[str, ConnectionProtocol] = {}
        self._bindings: dict[str, str] = {}  # connection_id -> player_id

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._bindings.pop(connection.connection_id, None)

    def player_id_for(self, connection_id: str) -> str | None:
        return self._bindings.get(connection_id)

    async def _send_error(
        self,
        connection: ConnectionProtocol,
        code: SessionErrorCode | GameErrorCode,
        message: str,
    ) -> None:
        logger.warning("session error sent to client", error_code=code.value, error_message=message)
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump())

    async def _send_rule_error(self, connection: ConnectionProtocol, error: GameRuleError) -> None:
        await self._send_error(connection, error.code, str(error))

    def _apply(self, room_id: str, operation: Callable[[], list[ServiceEvent]]) -> list[ServiceEvent]:
        """Run a room operation, aborting the room's game if it breaks an invariant."""
        try:
            return operation()
        except InvariantViolationError:
            logger.exception("invariant violated, aborting game", room_id=room_id)
            room = self._registry.find(room_id)
            return room.abort() if room is not None else []

    # --- Actions ---

    async def join_room(self, connection: ConnectionProtocol, player_id: str, player_name: str) -> None:
        connection_id = connection.connection_id
        room_id = connection.room_id
        bound = self._bindings.get(connection_id)
        if bound is not None and bound != player_id:
            await self._send_error(
                connection,
                SessionErrorCode.ALREADY_JOINED,
                f"connection already joined as {bound}",
            )
            return

        structlog.contextvars.bind_contextvars(room_id=room_id, player_id=player_id)
        try:
            room = self._registry.get_or_create(room_id)
        except RegistryFullError as e:
            await self._send_rule_error(connection, e)
            return
        async with self._registry.lock(room_id):
            previous = self._current_endpoint(room, player_id)
            try:
                events = self._apply(
                    room_id,
                    partial(self._registry.join, room_id, player_id, player_name, connection_id),
                )
            except RoomFullError as e:
                await self._send_rule_error(connection, e)
                await self._deliver(room_id, [broadcast(self._registry.get(room_id).occupancy())])
                return
            except GameRuleError as e:
                await self._send_rule_error(connection, e)
                return

            if room.seat_of(player_id) is not None:
                self._bindings[connection_id] = player_id
                if previous is not None and previous != connection_id:
                    # the old endpoint stays open but no longer acts for this seat
                    self._bindings.pop(previous, None)
                    logger.info("player endpoint replaced", previous_connection_id=previous)
            await self._deliver(room_id, events)

    async def play_tile(self, connection: ConnectionProtocol, tile: int, slot: int) -> None:
        player_id = await self._require_joined(connection)
        if player_id is None:
            return
        room_id = connection.room_id
        structlog.contextvars.bind_contextvars(room_id=room_id, player_id=player_id)
        async with self._registry.lock(room_id):
            try:
                self._require_seated(room_id, player_id, connection.connection_id)
                events = self._apply(room_id, partial(self._registry.play_tile, room_id, player_id, tile, slot))
            except GameRuleError as e:
                await self._send_rule_error(connection, e)
                return
            await self._deliver(room_id, events)

    async def start_game(self, connection: ConnectionProtocol) -> None:
        player_id = await self._require_joined(connection)
        if player_id is None:
            return
        room_id = connection.room_id
        structlog.contextvars.bind_contextvars(room_id=room_id, player_id=player_id)
        async with self._registry.lock(room_id):
            try:
                self._require_seated(room_id, player_id, connection.connection_id)
                events = self._apply(room_id, partial(self._registry.start_game, room_id))
            except GameRuleError as e:
                await self._send_rule_error(connection, e)
                return
            await self._deliver(room_id, events)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump())

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Free every seat still bound to this connection, then forget it."""
        connection_id = connection.connection_id
        player_id = self._bindings.pop(connection_id, None)
        if player_id is not None:
            structlog.contextvars.bind_contextvars(player_id=player_id)
            for room in self._registry.rooms_seating(player_id):
                async with self._registry.lock(room.room_id):
                    events = self._apply(room.room_id, partial(room.leave, player_id, connection_id))
                    await self._deliver(room.room_id, events)
        self.unregister_connection(connection)

    async def abort_room(self, connection: ConnectionProtocol) -> None:
        """End the game of the connection's room after an unexpected failure."""
        room_id = connection.room_id
        room = self._registry.find(room_id)
        if room is None:
            return
        async with self._registry.lock(room_id):
            await self._deliver(room_id, room.abort())

    # --- Helpers ---

    async def _require_joined(self, connection: ConnectionProtocol) -> str | None:
        player_id = self._bindings.get(connection.connection_id)
        if player_id is None:
            await self._send_error(connection, SessionErrorCode.NOT_JOINED, "You must join the room first")
        return player_id

    def _require_seated(self, room_id: str, player_id: str, connection_id: str) -> None:
        room = self._registry.get(room_id)
        if self._current_endpoint(room, player_id) != connection_id:
            raise NotSeatedError(f"player {player_id} is not seated in room {room_id} on this connection")

    @staticmethod
    def _current_endpoint(room: Room, player_id: str) -> str | None:
        seat = room.seat_of(player_id)
        return room.players[seat].connection_id if seat is not None else None

    async def _deliver(self, room_id: str, events: list[ServiceEvent]) -> None:
        """Send events to seated players using their typed targets."""
        room = self._registry.find(room_id)
        if room is None:
            return
        for event in events:
            message = service_event_payload(event)
            if isinstance(event.target, BroadcastTarget):
                recipients = [player.connection_id for player in room.players]
            elif isinstance(event.target, SeatTarget) and event.target.seat < room.seated:
                recipients = [room.players[event.target.seat].connection_id]
            else:
                recipients = []
            for connection_id in recipients:
                connection = self._connections.get(connection_id)
                if connection is None:
                    continue
                with contextlib.suppress(RuntimeError, OSError):
                    await connection.send_message(message)
