"""
Win detection.

A winning hand is exactly 14 tiles that split into one pair and four
melds. A meld is either a triplet of one identity or a run of three
consecutive ranks in one suit. Honors never form runs.
"""

from collections.abc import Iterable

from majiang.logic.exceptions import HandSizeError
from majiang.logic.tiles import HONOR_START, NUM_TILE_TYPES, RANKS_PER_SUIT, hand_to_34_array

WINNING_HAND_SIZE = 14
_MAX_RUN_START_RANK = 7  # 7-8-9 is the highest run


def is_winning_hand(tiles: Iterable[int]) -> bool:
    """
    Check whether 14 tiles form four melds and a pair.

    Every identity with at least two copies is tried as the pair, since a
    greedy pair choice can miss a valid split: in 111 222 33m taking the
    lowest pair 11m leaves nothing that melds, only 33m works.
    """
    counts = hand_to_34_array(tiles)
    total = sum(counts)
    if total != WINNING_HAND_SIZE:
        raise HandSizeError(f"win evaluation needs {WINNING_HAND_SIZE} tiles, got {total}")

    for pair in range(NUM_TILE_TYPES):
        if counts[pair] < 2:
            continue
        counts[pair] -= 2
        found = _decompose(counts, 0)
        counts[pair] += 2
        if found:
            return True
    return False


def _can_start_run(counts: list[int], tile: int) -> bool:
    if tile >= HONOR_START or tile % RANKS_PER_SUIT + 1 > _MAX_RUN_START_RANK:
        return False
    return counts[tile + 1] > 0 and counts[tile + 2] > 0


def _decompose(counts: list[int], start: int) -> bool:
    """
    Backtracking split of counts into melds.

    The lowest remaining identity must be part of a meld it starts: either
    a triplet of itself or a run beginning at it. Counts are mutated in place
    and restored before returning.
    """
    tile = start
    while tile < NUM_TILE_TYPES and counts[tile] == 0:
        tile += 1
    if tile == NUM_TILE_TYPES:
        return True

    if counts[tile] >= 3:
        counts[tile] -= 3
        found = _decompose(counts, tile)
        counts[tile] += 3
        if found:
            return True

    if _can_start_run(counts, tile):
        counts[tile] -= 1
        counts[tile + 1] -= 1
        counts[tile + 2] -= 1
        found = _decompose(counts, tile)
        counts[tile] += 1
        counts[tile + 1] += 1
        counts[tile + 2] += 1
        if found:
            return True

    return False
