"""Abstract client connection speaking MessagePack frames."""

from abc import ABC, abstractmethod
from typing import Any

from majiang.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    Transport endpoint of one client.

    Message handling is written against this interface so it can be tested
    without real WebSocket connections.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @property
    @abstractmethod
    def room_id(self) -> str:
        """Room the connection was opened for (the /ws/{room_id} path)."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        return decode(await self.receive_bytes())
