"""
Tile representation utilities.

Tiles are identified in 34-format: one int per distinct tile identity.
A full set holds four copies of each identity (136 physical tiles).
"""

from collections.abc import Iterable

from majiang.logic.exceptions import InvalidTileError

# man (characters): 0-8, pin (circles): 9-17, sou (bamboo): 18-26
HONOR_START = 27
HONOR_END = 33

NUM_TILE_TYPES = 34
COPIES_PER_TILE = 4
TOTAL_TILES = NUM_TILE_TYPES * COPIES_PER_TILE  # 136
RANKS_PER_SUIT = 9

# honor tile indices
EAST = 27
SOUTH = 28
WEST = 29
NORTH = 30
WHITE = 31
GREEN = 32
RED = 33

SUIT_LETTERS = ("m", "p", "s")
HONOR_NAMES = ("E", "S", "W", "N", "Wh", "G", "R")


def validate_tile(tile: int) -> None:
    if not isinstance(tile, int) or isinstance(tile, bool) or not 0 <= tile < NUM_TILE_TYPES:
        raise InvalidTileError(f"tile must be an int in [0, {NUM_TILE_TYPES - 1}], got {tile!r}")


def is_honor(tile: int) -> bool:
    return HONOR_START <= tile <= HONOR_END


def suit_of(tile: int) -> int | None:
    """
    Return the suit index (0=man, 1=pin, 2=sou), or None for honors.
    """
    if is_honor(tile):
        return None
    return tile // RANKS_PER_SUIT


def rank_of(tile: int) -> int | None:
    """
    Return the 1-based rank of a suited tile, or None for honors.
    """
    if is_honor(tile):
        return None
    return tile % RANKS_PER_SUIT + 1


def tile_name(tile: int) -> str:
    """Short human readable name: "1m", "9s", "E", "Wh"."""
    validate_tile(tile)
    if is_honor(tile):
        return HONOR_NAMES[tile - HONOR_START]
    return f"{rank_of(tile)}{SUIT_LETTERS[tile // RANKS_PER_SUIT]}"


def canonical_tile_set() -> list[int]:
    """Return the full 136-tile multiset in identity order."""
    return [tile for tile in range(NUM_TILE_TYPES) for _ in range(COPIES_PER_TILE)]


def sort_tiles(tiles: Iterable[int]) -> list[int]:
    return sorted(tiles)


def hand_to_34_array(tiles: Iterable[int]) -> list[int]:
    """
    Convert a list of tile identities to a 34-array of counts.

    Each index represents a tile identity and the value is how many
    copies of it the hand holds.
    """
    counts = [0] * NUM_TILE_TYPES
    for tile in tiles:
        validate_tile(tile)
        counts[tile] += 1
    return counts
