"""Weighted per-bin accumulation of numeric samples."""
from __future__ import annotations

import numpy as np

from gettile.samples import NUMERIC_DTYPE, Samples

__all__ = ["BinAccumulator"]


class BinAccumulator:
    """Running weighted moments for a fixed number of bins.

    Each bin keeps the total weight together with weighted sums of time,
    value and second moment (``value**2 + stddev**2``).  Adding samples and
    merging two accumulators only ever sums these columns, so the result does
    not depend on the order samples arrive in.
    """

    def __init__(self, n_bins: int) -> None:
        if n_bins <= 0:
            raise ValueError("n_bins must be positive")
        self.n_bins = int(n_bins)
        self.weight = np.zeros(self.n_bins, dtype=np.float64)
        self.time_sum = np.zeros(self.n_bins, dtype=np.float64)
        self.value_sum = np.zeros(self.n_bins, dtype=np.float64)
        self.moment_sum = np.zeros(self.n_bins, dtype=np.float64)

    def add(self, bins: np.ndarray, samples: Samples) -> None:
        """Fold ``samples`` into the bins given per sample by ``bins``."""
        if samples.kind != "numeric":
            raise ValueError("only numeric samples can be accumulated")
        bins = np.asarray(bins, dtype=np.int64)
        if bins.shape != samples.time.shape:
            raise ValueError("bins and samples must have the same length")
        if samples.size == 0:
            return
        if bins.min() < 0 or bins.max() >= self.n_bins:
            raise ValueError("bin index out of range")
        w = samples.weight
        v = samples.values.astype(np.float64)
        s = samples.stddev
        n = self.n_bins
        self.weight += np.bincount(bins, weights=w, minlength=n)
        self.time_sum += np.bincount(bins, weights=samples.time * w, minlength=n)
        self.value_sum += np.bincount(bins, weights=v * w, minlength=n)
        self.moment_sum += np.bincount(bins, weights=(v * v + s * s) * w, minlength=n)

    def merge(self, other: "BinAccumulator") -> "BinAccumulator":
        if other.n_bins != self.n_bins:
            raise ValueError("cannot merge accumulators with different bin counts")
        out = BinAccumulator(self.n_bins)
        out.weight = self.weight + other.weight
        out.time_sum = self.time_sum + other.time_sum
        out.value_sum = self.value_sum + other.value_sum
        out.moment_sum = self.moment_sum + other.moment_sum
        return out

    __add__ = merge

    @property
    def filled(self) -> np.ndarray:
        return self.weight > 0

    def finalize(self, *, pad: bool = False, times: np.ndarray | None = None) -> Samples:
        """Turn the bins into summarised samples, ordered by bin.

        Empty bins are skipped unless ``pad`` is set, in which case they come
        out as ``weight == 0`` placeholders.  ``times`` replaces the weighted
        mean time of every emitted bin (one entry per bin).
        """
        if times is not None:
            times = np.asarray(times, dtype=np.float64)
            if times.shape != (self.n_bins,):
                raise ValueError("times must provide one entry per bin")

        filled = self.filled
        keep = np.ones(self.n_bins, dtype=bool) if pad else filled

        safe_w = np.where(filled, self.weight, 1.0)
        mean_t = np.where(filled, self.time_sum / safe_w, 0.0)
        mean_v = np.where(filled, self.value_sum / safe_w, 0.0)
        var = np.where(filled, self.moment_sum / safe_w - mean_v * mean_v, 0.0)
        # cancellation can leave tiny negative variances
        var = np.maximum(var, 0.0)

        out = np.zeros(int(keep.sum()), dtype=NUMERIC_DTYPE)
        out["time"] = (times if times is not None else mean_t)[keep]
        out["value"] = mean_v[keep]
        out["stddev"] = np.sqrt(var)[keep]
        out["weight"] = self.weight[keep]
        return Samples(out)
