from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from majiang.messaging.types import (
    ErrorMessage,
    JoinRoomMessage,
    PingMessage,
    PlayTileMessage,
    SessionErrorCode,
    StartGameMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from majiang.messaging.protocol import ConnectionProtocol
    from majiang.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming messages to appropriate handlers.

    This class contains pure business logic and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
            )
            return

        try:
            if isinstance(message, JoinRoomMessage):
                await self._session_manager.join_room(
                    connection,
                    player_id=message.player_id,
                    player_name=message.player_name,
                )
            elif isinstance(message, PlayTileMessage):
                await self._session_manager.play_tile(connection, tile=message.tile, slot=message.slot)
            elif isinstance(message, StartGameMessage):
                await self._session_manager.start_game(connection)
            elif isinstance(message, PingMessage):
                await self._session_manager.handle_ping(connection)
        except ConnectionError:
            raise
        except Exception:
            logger.exception("fatal error handling %s for %s", message.type, connection.connection_id)
            await self._session_manager.abort_room(connection)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)
