from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from majiang.logic.enums import GameErrorCode
from majiang.logic.tiles import NUM_TILE_TYPES
from majiang.logic.win import WINNING_HAND_SIZE

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F


class ClientMessageType(StrEnum):
    JOIN_ROOM = "join_room"
    PLAY_TILE = "play_tile"
    START_GAME = "start_game"
    PING = "ping"


class SessionMessageType(StrEnum):
    ERROR = "session_error"
    PONG = "pong"


class SessionErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    NOT_JOINED = "not_joined"
    ALREADY_JOINED = "already_joined"


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    player_id: str = Field(min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9_.:-]+$")
    player_name: str = Field(min_length=1, max_length=50)

    @field_validator("player_name")
    @classmethod
    def _validate_player_name(cls, v: str) -> str:
        if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in v):
            raise ValueError("player_name must not contain control characters")
        return v


class PlayTileMessage(BaseModel):
    type: Literal[ClientMessageType.PLAY_TILE] = ClientMessageType.PLAY_TILE
    tile: int = Field(ge=0, lt=NUM_TILE_TYPES)
    slot: int = Field(ge=0, lt=WINNING_HAND_SIZE)


class StartGameMessage(BaseModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = Annotated[
    JoinRoomMessage | PlayTileMessage | StartGameMessage | PingMessage,
    Field(discriminator="type"),
]


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode | GameErrorCode
    message: str


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


_client_adapter = TypeAdapter(ClientMessage)


def parse_client_message(data: dict[str, Any]) -> JoinRoomMessage | PlayTileMessage | StartGameMessage | PingMessage:
    """Parse a raw dict into a typed client message (raises pydantic ValidationError)."""
    return _client_adapter.validate_python(data)
