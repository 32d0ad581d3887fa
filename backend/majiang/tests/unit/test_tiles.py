import pytest

from majiang.logic.exceptions import InvalidTileError
from majiang.logic.tiles import (
    COPIES_PER_TILE,
    EAST,
    GREEN,
    NORTH,
    NUM_TILE_TYPES,
    RED,
    SOUTH,
    TOTAL_TILES,
    WEST,
    WHITE,
    canonical_tile_set,
    hand_to_34_array,
    is_honor,
    rank_of,
    sort_tiles,
    suit_of,
    tile_name,
    validate_tile,
)
from majiang.tests.helpers import tiles


class TestCanonicalTileSet:
    def test_has_four_copies_of_each_identity(self):
        tile_set = canonical_tile_set()
        assert len(tile_set) == TOTAL_TILES == 136
        assert all(tile_set.count(tile) == COPIES_PER_TILE for tile in range(NUM_TILE_TYPES))

    def test_is_in_identity_order(self):
        tile_set = canonical_tile_set()
        assert tile_set == sorted(tile_set)


class TestTileClassification:
    @pytest.mark.parametrize(
        ("tile", "suit", "rank"),
        [(0, 0, 1), (8, 0, 9), (9, 1, 1), (17, 1, 9), (18, 2, 1), (26, 2, 9)],
    )
    def test_suited_tiles(self, tile, suit, rank):
        assert not is_honor(tile)
        assert suit_of(tile) == suit
        assert rank_of(tile) == rank

    @pytest.mark.parametrize("tile", range(EAST, RED + 1))
    def test_honors_have_no_suit_or_rank(self, tile):
        assert is_honor(tile)
        assert suit_of(tile) is None
        assert rank_of(tile) is None

    @pytest.mark.parametrize(
        ("tile", "name"),
        [
            (0, "1m"),
            (4, "5m"),
            (13, "5p"),
            (26, "9s"),
            (EAST, "E"),
            (SOUTH, "S"),
            (WEST, "W"),
            (NORTH, "N"),
            (WHITE, "Wh"),
            (GREEN, "G"),
            (RED, "R"),
        ],
    )
    def test_tile_name(self, tile, name):
        assert tile_name(tile) == name


class TestValidateTile:
    @pytest.mark.parametrize("tile", [-1, NUM_TILE_TYPES, 135, True, "3", 1.0])
    def test_rejects_values_outside_identities(self, tile):
        with pytest.raises(InvalidTileError):
            validate_tile(tile)

    def test_hand_to_34_array_validates(self):
        with pytest.raises(InvalidTileError):
            hand_to_34_array([0, 1, 34])


class TestConversions:
    def test_hand_to_34_array_counts(self):
        counts = hand_to_34_array(tiles(man="1119", honors="77"))
        assert counts[0] == 3
        assert counts[8] == 1
        assert counts[RED] == 2
        assert sum(counts) == 6

    def test_sort_tiles(self):
        assert sort_tiles([RED, 0, 9, 0]) == [0, 0, 9, RED]

    def test_mahjong_string_helper_matches_34_format(self):
        assert tiles(man="1", pin="1", sou="1", honors="1") == [0, 9, 18, EAST]
