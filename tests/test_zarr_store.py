from __future__ import annotations

import numpy as np
import pytest
import zarr

from gettile.exceptions import StoreReadError
from gettile.samples import Samples, Tile
from gettile.store import ChannelRef, ZarrTileStore
from gettile.tile_index import TileIndex

CHANNEL = ChannelRef("device.temp", uid=7)


def _tile(n: int = 3, comments: tuple[str, ...] = ()) -> Tile:
    t = np.arange(n, dtype=float)
    numeric = Samples.from_arrays(t, t * 2.0, stddev=np.full(n, 0.5), weight=np.full(n, 2.0))
    text = Samples.from_arrays(
        np.arange(len(comments), dtype=float) + 0.25,
        list(comments),
        kind="text",
    )
    return Tile(numeric, text)


@pytest.fixture
def store() -> ZarrTileStore:
    return ZarrTileStore(zarr.storage.MemoryStore(), mode="a")


def test_channel_ref_full_name():
    assert CHANNEL.full_name == "7.device.temp"
    assert ChannelRef("7.device.temp").full_name == "7.device.temp"
    assert CHANNEL.with_suffix("._comment").full_name == "7.device.temp._comment"
    with pytest.raises(ValueError):
        ChannelRef(" ")


def test_exact_tile_round_trip(store):
    index = TileIndex(14, 0)
    store.write_tile(CHANNEL, index, _tile(comments=("a", "b")))
    lookup = store.read_tile_or_closest_ancestor(CHANNEL, index)
    assert lookup.found
    assert lookup.index == index
    np.testing.assert_array_equal(lookup.tile.numeric.values, [0.0, 2.0, 4.0])
    np.testing.assert_array_equal(lookup.tile.numeric.stddev, [0.5, 0.5, 0.5])
    np.testing.assert_array_equal(lookup.tile.numeric.weight, [2.0, 2.0, 2.0])
    assert [s.value for s in lookup.tile.text] == ["a", "b"]
    np.testing.assert_array_equal(lookup.tile.text.time, [0.25, 1.25])


def test_falls_back_to_closest_ancestor(store):
    store.write_tile(CHANNEL, TileIndex(20, 0), _tile(1))
    store.write_tile(CHANNEL, TileIndex(16, 0), _tile(2))
    lookup = store.read_tile_or_closest_ancestor(CHANNEL, TileIndex(12, 3))
    assert lookup.found
    assert lookup.index == TileIndex(16, 0)
    assert lookup.tile.numeric.size == 2


def test_unrelated_tiles_are_not_ancestors(store):
    store.write_tile(CHANNEL, TileIndex(16, 5), _tile(1))
    lookup = store.read_tile_or_closest_ancestor(CHANNEL, TileIndex(12, 3))
    assert not lookup.found
    assert lookup.tile.is_empty


def test_missing_channel_is_not_found(store):
    lookup = store.read_tile_or_closest_ancestor(ChannelRef("nope.nothing"), TileIndex(0, 0))
    assert lookup.found is False
    assert lookup.index is None


def test_empty_payload_round_trip(store):
    store.write_tile(CHANNEL, TileIndex(3, 1), Tile.empty())
    lookup = store.read_tile_or_closest_ancestor(CHANNEL, TileIndex(3, 1))
    assert lookup.found
    assert lookup.tile.is_empty


def test_tile_indices_sorted(store):
    for index in (TileIndex(16, 1), TileIndex(14, 0), TileIndex(16, 0)):
        store.write_tile(CHANNEL, index, _tile(1))
    assert store.tile_indices(CHANNEL) == [TileIndex(14, 0), TileIndex(16, 0), TileIndex(16, 1)]


def test_corrupt_tile_raises_store_read_error(store):
    index = TileIndex(5, 0)
    store.write_tile(CHANNEL, index, _tile(2, comments=("only",)))
    store._root["channels"][CHANNEL.full_name][str(index)].attrs["comments"] = []
    with pytest.raises(StoreReadError):
        store.read_tile_or_closest_ancestor(CHANNEL, index)


def test_read_only_store_rejects_writes(tmp_path):
    path = tmp_path / "tiles.zarr"
    ZarrTileStore(path, mode="w").write_tile(CHANNEL, TileIndex(0, 0), _tile(1))
    ro = ZarrTileStore(path)
    assert ro.read_tile_or_closest_ancestor(CHANNEL, TileIndex(0, 0)).found
    with pytest.raises(ValueError):
        ro.write_tile(CHANNEL, TileIndex(0, 0), _tile(1))


def test_missing_store_path_raises(tmp_path):
    with pytest.raises(StoreReadError):
        ZarrTileStore(tmp_path / "absent.zarr")
