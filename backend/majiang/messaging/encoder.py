"""
MessagePack framing for WebSocket messages.

Every frame is a single MessagePack map. Decoding is bounded so a client
cannot make the server allocate large buffers.
"""

from enum import Enum
from typing import Any

import msgpack

# Client frames are tiny (the largest is join_room); these limits are generous.
MAX_FRAME_LEN = 16 * 1024
MAX_STR_LEN = 1024
MAX_BIN_LEN = 1024
MAX_ARRAY_LEN = 256
MAX_MAP_LEN = 32
MAX_EXT_LEN = 0


class DecodeError(Exception):
    """Frame is not a bounded MessagePack map."""


def _to_wire(obj: object) -> object:
    """Coerce enum members to plain values and int keys to strings."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k) if isinstance(k, int) else _to_wire(k): _to_wire(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_wire(item) for item in obj]
    return obj


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(_to_wire(data))


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode one frame.

    Raises DecodeError if the frame is oversized, malformed, or not a map.
    """
    if len(data) > MAX_FRAME_LEN:
        raise DecodeError(f"frame too large: {len(data)} bytes (max {MAX_FRAME_LEN})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"invalid MessagePack frame: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected a map, got {type(result).__name__}")
    return result
