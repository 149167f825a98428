"""Chart tile assembly over a hierarchical time-series tile store."""

# Re-export commonly used modules for convenience.
from . import accumulator, assembler, exceptions, gaps, merge, reducer, samples, store, tile_index

__all__ = [
    "accumulator",
    "assembler",
    "exceptions",
    "gaps",
    "merge",
    "reducer",
    "samples",
    "store",
    "tile_index",
]
