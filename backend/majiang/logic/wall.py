"""
Wall construction and drawing.

The wall is the shuffled sequence of undealt tiles. Tiles are only ever
taken from its tail, and it never grows after the shuffle.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from majiang.logic.exceptions import InvalidWallError
from majiang.logic.rng import derive_game_rng, fisher_yates_shuffle, generate_seed
from majiang.logic.tiles import TOTAL_TILES, canonical_tile_set

_CANONICAL_COUNTS = Counter(canonical_tile_set())


def build_shuffled_wall(seed: str | None = None, game_number: int = 0) -> list[int]:
    """
    Return the full 136-tile set in a uniformly random order.

    The same (seed, game_number) always yields the same wall. Without a
    seed a fresh cryptographic one is used.
    """
    rng = derive_game_rng(seed if seed is not None else generate_seed(), game_number)
    return fisher_yates_shuffle(canonical_tile_set(), rng)


def validate_wall_tiles(tiles: Sequence[int]) -> None:
    """Raise InvalidWallError unless tiles is exactly the full tile multiset."""
    if len(tiles) != TOTAL_TILES:
        raise InvalidWallError(f"expected {TOTAL_TILES} tiles, got {len(tiles)}")
    if Counter(tiles) != _CANONICAL_COUNTS:
        raise InvalidWallError("wall is not a permutation of the full tile set")


def stack_wall(pop_order: Sequence[int]) -> list[int]:
    """
    Build a full wall whose tail yields pop_order first.

    The remaining tiles sit below in identity order. Used to replay a known
    deal and by tests that need specific hands.
    """
    remaining = Counter(_CANONICAL_COUNTS)
    remaining.subtract(pop_order)
    if any(count < 0 for count in remaining.values()):
        raise InvalidWallError("pop order uses a tile more than four times")
    rest = sorted(remaining.elements())
    return rest + list(reversed(pop_order))


class Wall:
    """Live wall for one game."""

    def __init__(self, tiles: Sequence[int]) -> None:
        self._tiles = list(tiles)

    @classmethod
    def shuffled(cls, seed: str | None = None, game_number: int = 0) -> Wall:
        return cls(build_shuffled_wall(seed, game_number))

    @classmethod
    def from_tiles(cls, tiles: Sequence[int]) -> Wall:
        """Create a wall from an explicit order (replays, tests)."""
        validate_wall_tiles(tiles)
        return cls(tiles)

    def __len__(self) -> int:
        return len(self._tiles)

    @property
    def is_empty(self) -> bool:
        return not self._tiles

    def draw(self) -> int:
        """Remove and return the tail tile. Raises IndexError on an empty wall."""
        return self._tiles.pop()

    def tiles(self) -> list[int]:
        return list(self._tiles)
