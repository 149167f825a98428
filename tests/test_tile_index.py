import numpy as np
import pytest

from gettile.tile_index import CLIENT_LEVEL_SHIFT, TileIndex


def test_interval_bounds():
    idx = TileIndex(9, 3)
    assert idx.duration == 512.0
    assert idx.start_time == 1536.0
    assert idx.end_time == 2048.0


def test_negative_level_has_fractional_duration():
    idx = TileIndex(-2, 5)
    assert idx.duration == 0.25
    assert idx.start_time == 1.25
    assert idx.end_time == 1.5


def test_contains_time_is_half_open():
    idx = TileIndex(9, 0)
    assert idx.contains_time(0.0)
    assert idx.contains_time(511.999)
    assert not idx.contains_time(512.0)
    assert not idx.contains_time(-0.001)
    mask = idx.contains_time(np.array([-1.0, 0.0, 256.0, 512.0]))
    np.testing.assert_array_equal(mask, [False, True, True, False])


def test_position_in_unit_interval_and_monotonic():
    idx = TileIndex(4, 7)
    t = np.linspace(idx.start_time, idx.end_time, 200, endpoint=False)
    pos = idx.position(t)
    assert pos.min() >= 0.0
    assert pos.max() < 1.0
    assert np.all(np.diff(pos) >= 0)
    assert idx.position(idx.start_time + idx.duration / 4) == pytest.approx(0.25)


def test_bin_index_clips_right_edge():
    idx = TileIndex(9, 0)
    assert idx.bin_index(0.0) == 0
    assert idx.bin_index(1.5) == 1
    assert idx.bin_index(np.nextafter(512.0, 0.0)) == 511
    bins = idx.bin_index(np.array([0.0, 255.9, 511.99]))
    np.testing.assert_array_equal(bins, [0, 255, 511])


def test_bin_centers_are_midpoints():
    idx = TileIndex(9, 1)
    centers = idx.bin_centers(512)
    assert centers.size == 512
    assert centers[0] == pytest.approx(512.5)
    assert centers[-1] == pytest.approx(1023.5)


def test_parent_contains_child():
    idx = TileIndex(3, 13)
    parent = idx.parent()
    assert parent == TileIndex(4, 6)
    assert parent.start_time <= idx.start_time
    assert parent.end_time >= idx.end_time


@pytest.mark.parametrize("offset", [0, 1, 37, 1023, -1, -37, 2**40 + 5])
@pytest.mark.parametrize("generations", [0, 1, 5, 9])
def test_ancestor_matches_repeated_parent(offset, generations):
    idx = TileIndex(2, offset)
    stepped = idx
    for _ in range(generations):
        stepped = stepped.parent()
    assert idx.ancestor(generations) == stepped
    assert stepped.is_ancestor_of(idx)


def test_ancestor_rejects_negative_generations():
    with pytest.raises(ValueError):
        TileIndex(0, 0).ancestor(-1)


def test_from_client_shifts_level():
    idx = TileIndex.from_client(0, 2)
    assert idx == TileIndex(CLIENT_LEVEL_SHIFT, 2)
    assert idx.start_time == 1024.0
    assert idx.duration == 512.0


def test_containing_inverts_start_time():
    for level in (-3, 0, 9, 14):
        idx = TileIndex(level, 41)
        assert TileIndex.containing(level, idx.start_time) == idx
        assert TileIndex.containing(level, idx.start_time + idx.duration / 2) == idx
    assert TileIndex.containing(9, -1.0) == TileIndex(9, -1)


def test_parse_and_str_round_trip():
    idx = TileIndex(-4, -17)
    assert str(idx) == "-4.-17"
    assert TileIndex.parse(str(idx)) == idx
    with pytest.raises(ValueError):
        TileIndex.parse("14")
