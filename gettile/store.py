from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import zarr

from gettile.exceptions import StoreReadError
from gettile.samples import NUMERIC_DTYPE, TEXT_DTYPE, Samples, Tile
from gettile.tile_index import TileIndex

LOG = logging.getLogger(__name__)

CHANNELS_GROUP = "channels"

# zarr raises a mix of these for unreadable or corrupt members
_READ_ERRORS = (OSError, ValueError, KeyError, TypeError)


@dataclass(frozen=True)
class ChannelRef:
    """Channel identity: owner uid plus "device.channel", or a fully qualified name."""

    name: str
    uid: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("channel name must be a non-empty string")

    @property
    def full_name(self) -> str:
        if self.uid is None:
            return self.name
        return f"{self.uid}.{self.name}"

    def with_suffix(self, suffix: str) -> "ChannelRef":
        return ChannelRef(self.name + suffix, self.uid)


@dataclass(frozen=True)
class TileLookup:
    found: bool
    index: TileIndex | None
    tile: Tile

    @staticmethod
    def missing() -> "TileLookup":
        return TileLookup(False, None, Tile.empty())


class TileStore(Protocol):
    def read_tile_or_closest_ancestor(self, channel: ChannelRef, index: TileIndex) -> TileLookup:
        """Tile at ``index`` or its most specific stored ancestor.

        ``found`` is False only when neither exists. IO failures raise
        StoreReadError.
        """
        ...


class ZarrTileStore:
    """Tile store kept in a zarr hierarchy.

    Layout::

        channels/<full channel name>/<level>.<offset>/
            time, value, stddev, weight           numeric payload (float64)
            text_time, text_stddev, text_weight   text payload (float64)
            .attrs["comments"]                    text values

    Arrays are only written for non-empty payloads; a missing array reads as
    an empty series.
    """

    def __init__(self, store: str | Path | Any, *, mode: str = "r"):
        target = str(store) if isinstance(store, (str, Path)) else store
        try:
            self._root = zarr.open_group(store=target, mode=mode)
        except _READ_ERRORS as exc:
            raise StoreReadError(f"cannot open tile store {store!r}: {exc}") from exc
        self.mode = mode

    # ------------------------------------------------------------------

    def read_tile_or_closest_ancestor(self, channel: ChannelRef, index: TileIndex) -> TileLookup:
        ch_group = self._channel_group(channel)
        if ch_group is None:
            return TileLookup.missing()
        stored = self._stored_indices(ch_group)
        if not stored:
            return TileLookup.missing()
        top_level = max(idx.level for idx in stored)
        for level in range(index.level, top_level + 1):
            candidate = index.ancestor(level - index.level)
            if candidate in stored:
                return TileLookup(True, candidate, self._read_tile(ch_group, candidate))
        return TileLookup.missing()

    def tile_indices(self, channel: ChannelRef) -> list[TileIndex]:
        ch_group = self._channel_group(channel)
        if ch_group is None:
            return []
        return sorted(self._stored_indices(ch_group))

    def write_tile(self, channel: ChannelRef, index: TileIndex, tile: Tile) -> None:
        if self.mode == "r":
            raise ValueError("tile store was opened read-only")
        ch_group = self._root.require_group(CHANNELS_GROUP).require_group(channel.full_name)
        group = ch_group.create_group(str(index), overwrite=True)
        numeric = tile.numeric
        text = tile.text
        self._write_array(group, "time", numeric.time)
        self._write_array(group, "value", numeric.values.astype(np.float64))
        self._write_array(group, "stddev", numeric.stddev)
        self._write_array(group, "weight", numeric.weight)
        self._write_array(group, "text_time", text.time)
        self._write_array(group, "text_stddev", text.stddev)
        self._write_array(group, "text_weight", text.weight)
        group.attrs["comments"] = [str(v) for v in text.values]

    # ------------------------------------------------------------------

    def _channel_group(self, channel: ChannelRef) -> zarr.Group | None:
        try:
            if CHANNELS_GROUP not in self._root:
                return None
            channels = self._root[CHANNELS_GROUP]
            if channel.full_name not in channels:
                return None
            return channels[channel.full_name]
        except _READ_ERRORS as exc:
            raise StoreReadError(f"cannot read channel {channel.full_name}: {exc}") from exc

    @staticmethod
    def _stored_indices(ch_group: zarr.Group) -> set[TileIndex]:
        indices: set[TileIndex] = set()
        for name in ch_group.group_keys():
            try:
                indices.add(TileIndex.parse(name))
            except ValueError:
                continue
        return indices

    def _read_tile(self, ch_group: zarr.Group, index: TileIndex) -> Tile:
        try:
            group = ch_group[str(index)]
            names = set(group.array_keys())
            numeric_t = self._read_array(group, names, "time")
            numeric = np.zeros(numeric_t.size, dtype=NUMERIC_DTYPE)
            numeric["time"] = numeric_t
            numeric["value"] = self._read_array(group, names, "value", numeric_t.size)
            numeric["stddev"] = self._read_array(group, names, "stddev", numeric_t.size)
            numeric["weight"] = self._read_array(group, names, "weight", numeric_t.size)

            text_t = self._read_array(group, names, "text_time")
            comments = list(group.attrs.get("comments", []))
            if len(comments) != text_t.size:
                raise ValueError(
                    f"tile {index} has {text_t.size} text times but {len(comments)} comments"
                )
            text = np.zeros(text_t.size, dtype=TEXT_DTYPE)
            text["time"] = text_t
            text["value"] = [str(c) for c in comments]
            text["stddev"] = self._read_array(group, names, "text_stddev", text_t.size)
            text["weight"] = self._read_array(group, names, "text_weight", text_t.size)
        except _READ_ERRORS as exc:
            raise StoreReadError(f"cannot read tile {index}: {exc}") from exc
        return Tile(Samples(numeric), Samples(text))

    @staticmethod
    def _read_array(group: zarr.Group, names: set[str], name: str, expected: int | None = None) -> np.ndarray:
        if name not in names:
            data = np.zeros(0, dtype=np.float64)
        else:
            data = np.asarray(group[name][:], dtype=np.float64)
        if expected is not None and data.size != expected:
            raise ValueError(f"array {name!r} has {data.size} entries, expected {expected}")
        return data

    @staticmethod
    def _write_array(group: zarr.Group, name: str, data: np.ndarray) -> None:
        if data.size == 0:
            return
        array = group.create_dataset(
            name,
            shape=data.shape,
            dtype="float64",
            overwrite=True,
        )
        array[:] = data


__all__ = ["ChannelRef", "TileLookup", "TileStore", "ZarrTileStore"]
