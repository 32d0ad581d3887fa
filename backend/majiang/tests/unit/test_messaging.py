import msgpack
import pytest
from pydantic import ValidationError

from majiang.logic.enums import GameErrorCode, GameOutcome
from majiang.logic.events import (
    DiscardEvent,
    EventType,
    GameEndEvent,
    OccupancyEvent,
    ServiceEvent,
    broadcast,
    to_seat,
)
from majiang.logic.types import SeatInfo
from majiang.messaging.encoder import MAX_FRAME_LEN, DecodeError, decode, encode
from majiang.messaging.event_payload import service_event_payload
from majiang.messaging.types import (
    ClientMessageType,
    ErrorMessage,
    JoinRoomMessage,
    PingMessage,
    PlayTileMessage,
    SessionErrorCode,
    StartGameMessage,
    parse_client_message,
)


class TestParseClientMessage:
    def test_join_room(self):
        message = parse_client_message({"type": "join_room", "player_id": "user-1", "player_name": "Alice"})
        assert message == JoinRoomMessage(player_id="user-1", player_name="Alice")

    def test_play_tile(self):
        message = parse_client_message({"type": "play_tile", "tile": 33, "slot": 13})
        assert isinstance(message, PlayTileMessage)
        assert (message.tile, message.slot) == (33, 13)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [({"type": "start_game"}, StartGameMessage), ({"type": "ping"}, PingMessage)],
    )
    def test_no_payload_messages(self, raw, expected):
        assert isinstance(parse_client_message(raw), expected)

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"type": "chat", "text": "hi"},
            {"type": "play_tile", "tile": 34, "slot": 0},
            {"type": "play_tile", "tile": -1, "slot": 0},
            {"type": "play_tile", "tile": 0, "slot": 14},
            {"type": "play_tile", "tile": 0},
            {"type": "join_room", "player_id": "", "player_name": "Alice"},
            {"type": "join_room", "player_id": "has space", "player_name": "Alice"},
            {"type": "join_room", "player_id": "u1", "player_name": ""},
            {"type": "join_room", "player_id": "u1", "player_name": "x" * 51},
            {"type": "join_room", "player_id": "u1", "player_name": "bad\nname"},
            {"type": "join_room", "player_id": "u1", "player_name": "bad\x7fname"},
        ],
    )
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_client_message(raw)

    def test_message_types(self):
        assert {t.value for t in ClientMessageType} == {"join_room", "play_tile", "start_game", "ping"}


class TestEncoder:
    def test_round_trip_with_enums(self):
        message = ErrorMessage(code=GameErrorCode.ROOM_FULL, message="full").model_dump()
        assert decode(encode(message)) == {"type": "session_error", "code": "room_full", "message": "full"}

    def test_int_keys_become_strings(self):
        assert decode(encode({"scores": {0: 1}})) == {"scores": {"0": 1}}

    def test_rejects_non_map(self):
        with pytest.raises(DecodeError, match="expected a map"):
            decode(msgpack.packb([1, 2]))

    def test_rejects_garbage(self):
        with pytest.raises(DecodeError):
            decode(b"\xc1")

    def test_rejects_truncated_frame(self):
        with pytest.raises(DecodeError):
            decode(encode({"type": "ping"})[:-2])

    def test_rejects_oversized_frame(self):
        with pytest.raises(DecodeError, match="too large"):
            decode(b"\x00" * (MAX_FRAME_LEN + 1))

    def test_rejects_long_strings(self):
        with pytest.raises(DecodeError):
            decode(msgpack.packb({"type": "x" * 2000}))


class TestEventPayload:
    def test_payload_is_flat_event_without_target(self):
        event = to_seat(2, DiscardEvent(seat=1, tile=5))
        assert service_event_payload(event) == {"type": "discard", "seat": 1, "tile": 5}

    def test_nested_models_are_plain_data(self):
        occupancy = OccupancyEvent(seated=1, capacity=4, players=[SeatInfo(seat=0, name="Alice", hand_size=0)])
        payload = service_event_payload(broadcast(occupancy))
        assert payload == {
            "type": "occupancy",
            "seated": 1,
            "capacity": 4,
            "players": [{"seat": 0, "name": "Alice", "hand_size": 0}],
        }

    def test_game_end_payload(self):
        payload = service_event_payload(broadcast(GameEndEvent(outcome=GameOutcome.EXHAUSTIVE_DRAW)))
        assert payload["outcome"] == "exhaustive_draw"
        assert payload["winner_seat"] is None

    def test_service_event_rejects_mismatched_type(self):
        with pytest.raises(ValidationError, match="does not match"):
            ServiceEvent(event=EventType.DRAW, data=DiscardEvent(seat=0, tile=0))

    def test_error_codes_do_not_collide(self):
        assert not {c.value for c in SessionErrorCode} & {c.value for c in GameErrorCode}
