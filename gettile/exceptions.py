# gettile/exceptions.py
from __future__ import annotations


class GettileError(Exception):
    """Base error for all tile-serving failures."""


# ---- Storage ----
class StoreReadError(GettileError, OSError):
    """Raised when the tile store cannot be read (IO fault, corrupt tile).

    Distinct from a tile that is confirmed absent, which is a normal outcome.
    """


# ---- Invariants ----
class GridAlignmentError(GettileError):
    """Raised when synchronised channels do not share one bin grid."""
