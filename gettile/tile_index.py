# gettile/tile_index.py
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

# Client tiles: level 0 is 512 samples in 512 seconds.
# Store tiles: level 0 is 65536 samples in 1 second.
# Client level 0 therefore lives at store level 9.
CLIENT_LEVEL_SHIFT = 9
TILE_BINS = 512


@dataclass(frozen=True, order=True)
class TileIndex:
    """
    Address of one tile in the power-of-two time hierarchy.
    - A level-L tile spans 2**L seconds.
    - offset counts tiles of that width from t=0.0.
    - Accepts scalar or numpy time arguments where it makes sense.
    """
    level: int
    offset: int

    @classmethod
    def from_client(cls, level: int, offset: int) -> "TileIndex":
        """
        Map a client view address to the store address covering the same window.
        """
        return cls(int(level) + CLIENT_LEVEL_SHIFT, int(offset))

    @classmethod
    def containing(cls, level: int, t: float) -> "TileIndex":
        """
        Return the level-`level` tile whose interval holds time t.
        """
        return cls(int(level), int(math.floor(t / math.ldexp(1.0, level))))

    @classmethod
    def parse(cls, text: str) -> "TileIndex":
        level, sep, offset = str(text).partition(".")
        if not sep:
            raise ValueError(f"tile index must look like LEVEL.OFFSET, got {text!r}")
        return cls(int(level), int(offset))

    def __str__(self) -> str:
        return f"{self.level}.{self.offset}"

    # ----- interval -----

    @property
    def duration(self) -> float:
        return math.ldexp(1.0, self.level)

    @property
    def start_time(self) -> float:
        return self.offset * self.duration

    @property
    def end_time(self) -> float:
        return (self.offset + 1) * self.duration

    def contains_time(self, t: float | np.ndarray) -> bool | np.ndarray:
        """
        Half-open membership test: start <= t < end.
        """
        if isinstance(t, np.ndarray):
            return (t >= self.start_time) & (t < self.end_time)
        return self.start_time <= t < self.end_time

    def position(self, t: float | np.ndarray) -> float | np.ndarray:
        """
        Fractional offset of t inside the interval, in [0, 1) for contained times.
        """
        if isinstance(t, np.ndarray):
            return (t.astype(np.float64) - self.start_time) / self.duration
        return (float(t) - self.start_time) / self.duration

    def bin_index(self, t: float | np.ndarray, bins: int = TILE_BINS) -> int | np.ndarray:
        """
        Bin holding t when the interval is split into `bins` equal slots.
        """
        if bins <= 0:
            raise ValueError("bins must be positive")
        if isinstance(t, np.ndarray):
            idx = np.floor(self.position(t) * bins).astype(np.int64)
            # a time just below end_time can round up to position 1.0
            return np.minimum(idx, bins - 1)
        return min(int(math.floor(self.position(t) * bins)), bins - 1)

    def bin_centers(self, bins: int = TILE_BINS) -> np.ndarray:
        if bins <= 0:
            raise ValueError("bins must be positive")
        return self.start_time + self.duration * (np.arange(bins, dtype=np.float64) + 0.5) / float(bins)

    # ----- hierarchy -----

    def parent(self) -> "TileIndex":
        return TileIndex(self.level + 1, self.offset >> 1)

    def ancestor(self, generations: int) -> "TileIndex":
        """
        Closed form of `parent()` applied `generations` times.
        """
        if generations < 0:
            raise ValueError("generations must be non-negative")
        return TileIndex(self.level + generations, self.offset >> generations)

    def is_ancestor_of(self, other: "TileIndex") -> bool:
        if self.level < other.level:
            return False
        return other.ancestor(self.level - other.level) == self


__all__ = ["TileIndex", "CLIENT_LEVEL_SHIFT", "TILE_BINS"]
