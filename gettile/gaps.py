"""Line-break placement so renderers do not connect points across gaps."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from gettile.merge import GraphPoint
from gettile.samples import Samples
from gettile.tile_index import TILE_BINS, TileIndex

__all__ = [
    "LINE_BREAK_VALUE",
    "LINE_BREAK_MULTIPLE",
    "line_break_point",
    "line_break_threshold",
    "insert_line_breaks",
]

# Reserved "do not connect" value understood by the chart client.
LINE_BREAK_VALUE = -1e308
LINE_BREAK_MULTIPLE = 4.0


def line_break_point(t: float) -> GraphPoint:
    return GraphPoint(t, True, LINE_BREAK_VALUE, 0.0, 0.0)


def line_break_threshold(
    window: TileIndex,
    numeric: Samples,
    *,
    binned: bool,
    bin_count: int = TILE_BINS,
) -> float:
    """Largest gap between neighbouring points that is still drawn as a line.

    Four bin widths, raised to four times the median raw spacing when the
    numeric series was passed through unbinned.
    """
    threshold = LINE_BREAK_MULTIPLE * window.duration / float(bin_count)
    if not binned and numeric.size > 1:
        spacing = np.sort(np.diff(numeric.time))
        median_spacing = float(spacing[spacing.size // 2])
        threshold = max(threshold, LINE_BREAK_MULTIPLE * median_spacing)
    return threshold


def insert_line_breaks(
    points: Sequence[GraphPoint],
    window: TileIndex,
    threshold: float,
) -> list[GraphPoint]:
    """Return ``points`` with break markers interleaved.

    A break goes halfway between two neighbours (the window edges count as
    neighbours of the first and last point) when they are more than
    ``threshold`` apart or either one has no numeric value.
    """
    if not points:
        return []
    out: list[GraphPoint] = []
    previous_time = window.start_time
    previous_had_value = True
    for point in points:
        if (
            point.time - previous_time > threshold
            or not point.has_value
            or not previous_had_value
        ):
            out.append(line_break_point(0.5 * (point.time + previous_time)))
        out.append(point)
        previous_time = point.time
        previous_had_value = point.has_value
    if window.end_time - previous_time > threshold or not previous_had_value:
        out.append(line_break_point(0.5 * (previous_time + window.end_time)))
    return out
