"""Tile and room builders shared by the game tests."""

from collections import Counter
from collections.abc import Sequence

from mahjong.tile import TilesConverter

from majiang.logic.room import HAND_SIZE, NUM_SEATS, Room
from majiang.logic.tiles import TOTAL_TILES
from majiang.logic.wall import stack_wall
from majiang.messaging.encoder import decode, encode


def tiles(*, man: str = "", pin: str = "", sou: str = "", honors: str = "") -> list[int]:
    """
    Tile identities from mahjong-library strings, sorted.

    Honors are numbered 1-7: East, South, West, North, White, Green, Red.
    """
    converted = TilesConverter.string_to_136_array(man=man, pin=pin, sou=sou, honors=honors)
    return sorted(tile // 4 for tile in converted)


def one(**kwargs: str) -> int:
    [tile] = tiles(**kwargs)
    return tile


def deal_wall(hands: Sequence[Sequence[int]], dealer_draw: int, draws: Sequence[int] = ()) -> list[int]:
    """Full wall that deals hands[seat] to each seat, dealer_draw as the dealer's 14th, then draws."""
    pop_order: list[int] = []
    for seat, hand in enumerate(hands):
        if len(hand) != HAND_SIZE:
            raise ValueError(f"hand for seat {seat} has {len(hand)} tiles, expected {HAND_SIZE}")
        pop_order.extend(hand)
    pop_order.append(dealer_draw)
    pop_order.extend(draws)
    return stack_wall(pop_order)


def seated_room(room_id: str = "room1", count: int = NUM_SEATS, *, seed: str | None = None) -> Room:
    """Room with players p0..p{count-1} bound to connections c0..c{count-1}.

    Seating the fourth player starts a game with a shuffled wall.
    """
    room = Room(room_id, seed=seed)
    for seat in range(count):
        room.join(f"p{seat}", f"Player{seat}", f"c{seat}")
    return room


def restart_with_wall(room: Room, wall: Sequence[int]) -> None:
    """Replace the running game with one dealt from an explicit wall."""
    room.abort()
    room.start_game(wall)


def tiles_in_play(room: Room) -> int:
    return sum(len(p.hand) for p in room.players) + len(room.wall) + len(room.discards)


def all_tiles(room: Room) -> Counter[int]:
    """Multiset of every tile in hands, wall and discards."""
    counter: Counter[int] = Counter()
    for player in room.players:
        counter.update(player.hand.tiles)
    counter.update(room.wall.tiles())
    counter.update(d.tile for d in room.discards)
    return counter


def assert_conserved(room: Room) -> None:
    assert tiles_in_play(room) == TOTAL_TILES
    assert all(count == 4 for count in all_tiles(room).values())
    assert len(all_tiles(room)) == TOTAL_TILES // 4
    assert sum(1 for p in room.players if len(p.hand) == 14) <= 1


# Thirteen isolated tiles: no single extra tile completes any of these hands.
SCATTERED_HANDS = (
    tiles(man="147", pin="258", sou="369", honors="1234"),
    tiles(man="147", pin="258", sou="369", honors="1234"),
    tiles(man="258", pin="369", sou="147", honors="5671"),
    tiles(man="369", pin="147", sou="258", honors="5672"),
)


def send_ws(ws, data: dict) -> None:
    """Send a MessagePack-encoded message over a test WebSocket."""
    ws.send_bytes(encode(data))


def recv_ws(ws) -> dict:
    """Receive and decode a MessagePack message from a test WebSocket."""
    return decode(ws.receive_bytes())


def recv_until(ws, message_type: str) -> dict:
    """Drain messages until one of the given type arrives and return it."""
    while True:
        message = recv_ws(ws)
        if message.get("type") == message_type:
            return message
