from __future__ import annotations

import contextlib
import re
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from majiang.messaging.encoder import DecodeError, decode
from majiang.messaging.protocol import ConnectionProtocol
from majiang.messaging.types import ErrorMessage, SessionErrorCode

logger = structlog.get_logger()

if TYPE_CHECKING:
    from majiang.messaging.router import MessageRouter

ROOM_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
MAX_ROOM_ID_LENGTH = 50

INVALID_ROOM_ID_CLOSE_CODE = 4000
DECODE_ERRORS_CLOSE_CODE = 4004

# Disconnect after this many consecutive decode errors
MAX_DECODE_ERRORS = 5


def is_valid_room_id(room_id: str) -> bool:
    return len(room_id) <= MAX_ROOM_ID_LENGTH and ROOM_ID_PATTERN.match(room_id) is not None


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, room_id: str, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._room_id = room_id
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def room_id(self) -> str:
        return self._room_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    room_id = websocket.path_params["room_id"]
    if not is_valid_room_id(room_id):
        await websocket.close(code=INVALID_ROOM_ID_CLOSE_CODE, reason="invalid_room_id")
        return

    await websocket.accept()

    connection = WebSocketConnection(websocket, room_id=room_id)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id, room_id=room_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    decode_errors = 0

    try:
        while True:
            raw = await connection.receive_bytes()

            try:
                data = decode(raw)
            except DecodeError as e:
                decode_errors += 1
                logger.warning("decode error", error=str(e), strikes=decode_errors)
                await connection.send_message(
                    ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
                )
                if decode_errors >= MAX_DECODE_ERRORS:
                    logger.info("too many decode errors, disconnecting")
                    await connection.close(code=DECODE_ERRORS_CLOSE_CODE, reason="too_many_decode_errors")
                    return
                continue

            decode_errors = 0
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
