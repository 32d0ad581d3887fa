"""Mutable per-room game state: hands, seated players, discard records."""

from dataclasses import dataclass, field

from majiang.logic.exceptions import InvalidDiscardError
from majiang.logic.tiles import NUM_TILE_TYPES, hand_to_34_array, validate_tile


class Hand:
    """
    Multiset of tiles held by one player.

    Stored as a 34-array of counts. Clients address tiles by their slot in
    the sorted tile list, which is what `tiles` returns.
    """

    def __init__(self, tiles: list[int] | None = None) -> None:
        self._counts = hand_to_34_array(tiles or [])

    def __len__(self) -> int:
        return sum(self._counts)

    @property
    def tiles(self) -> list[int]:
        return [tile for tile in range(NUM_TILE_TYPES) for _ in range(self._counts[tile])]

    def add(self, tile: int) -> None:
        validate_tile(tile)
        self._counts[tile] += 1

    def remove_at(self, slot: int, tile: int) -> None:
        """
        Remove the tile at a sorted-hand slot.

        The slot must be in range and hold `tile`, otherwise the hand is left
        untouched.
        """
        tiles = self.tiles
        if not 0 <= slot < len(tiles):
            raise InvalidDiscardError(f"hand slot {slot} out of range (hand has {len(tiles)} tiles)")
        if tiles[slot] != tile:
            raise InvalidDiscardError(f"hand slot {slot} holds tile {tiles[slot]}, not {tile}")
        self._counts[tile] -= 1

    def with_tile(self, tile: int) -> list[int]:
        """Tile list of this hand plus one extra tile, without mutating the hand."""
        return [*self.tiles, tile]

    def clear(self) -> None:
        self._counts = [0] * NUM_TILE_TYPES


@dataclass
class Player:
    """
    A seated player.

    player_id is the stable identity chosen by the client; connection_id is
    the transport endpoint currently bound to it and changes only when the
    same identity joins again.
    """

    player_id: str
    name: str
    connection_id: str
    hand: Hand = field(default_factory=Hand)

    def rebind(self, connection_id: str) -> None:
        self.connection_id = connection_id


@dataclass(frozen=True)
class DiscardRecord:
    seat: int
    player_id: str
    tile: int
