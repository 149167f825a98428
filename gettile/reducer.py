"""Adaptive binning of raw samples into a bounded, chart-ready series."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from gettile.accumulator import BinAccumulator
from gettile.samples import Samples
from gettile.tile_index import TILE_BINS, TileIndex

__all__ = ["ReducedSeries", "reduce_samples"]


@dataclass(frozen=True)
class ReducedSeries:
    samples: Samples
    binned: bool


def reduce_samples(
    samples: Samples,
    window: TileIndex,
    *,
    bin_count: int = TILE_BINS,
    force_regular_binning: bool = False,
) -> ReducedSeries:
    """Reduce ``samples`` to at most ``bin_count`` points over ``window``.

    Parameters
    ----------
    samples : Samples
        Numeric samples, all inside ``window``.
    window : TileIndex
        Interval the bins are laid over.
    bin_count : int
        Number of equal-width bins.
    force_regular_binning : bool
        Always bin, and emit every bin (empty bins as ``weight == 0``
        placeholders) stamped at its exact midpoint, so series reduced over
        the same window share one time grid.

    Returns
    -------
    ReducedSeries
        ``binned`` is False when the input was small enough to pass through
        unchanged.
    """
    if bin_count <= 0:
        raise ValueError("bin_count must be positive")
    if samples.kind != "numeric":
        raise ValueError("only numeric samples can be reduced")
    if samples.size <= bin_count and not force_regular_binning:
        return ReducedSeries(samples, binned=False)

    t = samples.time
    if t.size and not np.all(window.contains_time(t)):
        raise ValueError(f"samples fall outside window {window}")

    acc = BinAccumulator(bin_count)
    acc.add(window.bin_index(t, bin_count), samples)
    if force_regular_binning:
        reduced = acc.finalize(pad=True, times=window.bin_centers(bin_count))
    else:
        reduced = acc.finalize()
    return ReducedSeries(reduced, binned=True)
