"""Assembly of chart tiles from the tile store."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from gettile.exceptions import GridAlignmentError
from gettile.gaps import insert_line_breaks, line_break_threshold
from gettile.merge import GraphPoint, combine_comment_streams, merge_series
from gettile.reducer import ReducedSeries, reduce_samples
from gettile.samples import Tile
from gettile.store import ChannelRef, TileStore
from gettile.tile_index import TILE_BINS, TileIndex

__all__ = [
    "FETCH_ANCESTOR_DEPTH",
    "LEGACY_COMMENT_SUFFIX",
    "BASE_FIELDS",
    "ChannelWindow",
    "TileAssembler",
]

LOG = logging.getLogger(__name__)

# The store is read five levels above the client window so enough raw data
# sits underneath it even when the exact fine tile was never written.
FETCH_ANCESTOR_DEPTH = 5
LEGACY_COMMENT_SUFFIX = "._comment"
BASE_FIELDS = ("time", "mean", "stddev", "count")


@dataclass(frozen=True)
class ChannelWindow:
    """A channel's data restricted to one client window."""

    window: TileIndex
    numeric: ReducedSeries
    tile: Tile


class TileAssembler:
    def __init__(
        self,
        store: TileStore,
        *,
        uid: int | None = None,
        legacy_comments: bool = True,
        comment_suffix: str = LEGACY_COMMENT_SUFFIX,
        bin_count: int = TILE_BINS,
    ):
        if bin_count <= 0:
            raise ValueError("bin_count must be positive")
        self.store = store
        self.uid = uid
        self.legacy_comments = legacy_comments
        self.comment_suffix = comment_suffix
        self.bin_count = int(bin_count)

    # ------------------------------------------------------------------

    def read_window(
        self,
        channel: ChannelRef,
        window: TileIndex,
        *,
        force_regular_binning: bool = False,
    ) -> ChannelWindow:
        requested = window.ancestor(FETCH_ANCESTOR_DEPTH)
        tile = self._read_filtered(channel, requested, window)
        numeric = reduce_samples(
            tile.numeric,
            window,
            bin_count=self.bin_count,
            force_regular_binning=force_regular_binning,
        )
        return ChannelWindow(window, numeric, tile)

    def tile(self, channel: str | ChannelRef, level: int, offset: int) -> dict[str, Any]:
        """Single-channel chart tile for client address (level, offset); ``{}`` when empty."""
        ref = self._channel_ref(channel)
        window = TileIndex.from_client(level, offset)
        data = self.read_window(ref, window)

        text = data.tile.text
        if self.legacy_comments:
            requested = window.ancestor(FETCH_ANCESTOR_DEPTH)
            comments = self._read_filtered(ref.with_suffix(self.comment_suffix), requested, window)
            text = combine_comment_streams(text, comments.text)
        else:
            text = combine_comment_streams(text)

        merged = merge_series(data.numeric.samples, text)
        if not merged.points:
            LOG.info("gettile: no samples")
            return {}

        threshold = line_break_threshold(
            window,
            data.numeric.samples,
            binned=data.numeric.binned,
            bin_count=self.bin_count,
        )
        points = insert_line_breaks(merged.points, window, threshold)
        LOG.info("gettile: outputting %d samples", len(merged.points))

        fields = list(BASE_FIELDS)
        if merged.has_comments:
            fields.append("comment")
        out: dict[str, Any] = {
            "level": int(level),
            # float keeps 64-bit offsets intact for JSON readers
            "offset": float(offset),
            "fields": fields,
            "data": [_point_row(p, merged.has_comments) for p in points],
        }
        if data.numeric.binned:
            out["sample_width"] = window.duration / float(self.bin_count)
        return out

    def multi_tile(self, channels: Sequence[str | ChannelRef], level: int, offset: int) -> dict[str, Any]:
        """Channels binned onto one shared grid; rows with no data in any channel are dropped."""
        refs = [self._channel_ref(ch) for ch in channels]
        if not refs:
            raise ValueError("at least one channel is required")
        window = TileIndex.from_client(level, offset)

        series = []
        for ref in refs:
            reduced = self.read_window(ref, window, force_regular_binning=True).numeric.samples
            if reduced.size != self.bin_count:
                raise GridAlignmentError(
                    f"{ref.full_name}: expected {self.bin_count} bins, got {reduced.size}"
                )
            series.append(reduced)

        grid = series[0].time
        for ref, reduced in zip(refs, series):
            if not np.array_equal(reduced.time, grid):
                raise GridAlignmentError(f"{ref.full_name}: bin times differ from the shared grid")

        rows: list[list[float | None]] = []
        for i in range(self.bin_count):
            row: list[float | None] = [float(grid[i])]
            has_value = False
            for reduced in series:
                if reduced.weight[i] > 0:
                    row.append(float(reduced.values[i]))
                    has_value = True
                else:
                    row.append(None)
            if has_value:
                rows.append(row)

        return {
            "full_channel_names": [_display_name(ch) for ch in channels],
            "data": rows,
        }

    # ------------------------------------------------------------------

    def _channel_ref(self, channel: str | ChannelRef) -> ChannelRef:
        if isinstance(channel, ChannelRef):
            return channel
        return ChannelRef(channel, self.uid)

    def _read_filtered(self, channel: ChannelRef, requested: TileIndex, window: TileIndex) -> Tile:
        lookup = self.store.read_tile_or_closest_ancestor(channel, requested)
        if not lookup.found:
            LOG.info("gettile: no tile found for %s (%s)", requested, channel.full_name)
            return Tile.empty()
        LOG.info("gettile: requested %s: found %s (%s)", requested, lookup.index, channel.full_name)
        return lookup.tile.within(window)


def _display_name(channel: str | ChannelRef) -> str:
    return channel.name if isinstance(channel, ChannelRef) else channel


def _point_row(point: GraphPoint, with_comment: bool) -> list[Any]:
    stddev = 0.0 if math.isnan(point.stddev) else point.stddev
    row: list[Any] = [
        point.time,
        point.value if point.has_value else 0.0,
        stddev,
        point.weight,
    ]
    if with_comment:
        row.append(point.comment if point.has_comment else None)
    return row
