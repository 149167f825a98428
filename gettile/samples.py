# gettile/samples.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal, Sequence

import numpy as np

from gettile.tile_index import TileIndex

NUMERIC_DTYPE = np.dtype([
    ("time",   "f8"),
    ("value",  "f8"),
    ("stddev", "f8"),
    ("weight", "f8"),
])

TEXT_DTYPE = np.dtype([
    ("time",   "f8"),
    ("value",  "O"),    # python str
    ("stddev", "f8"),
    ("weight", "f8"),
])

SampleKind = Literal["numeric", "text"]

_DTYPES: dict[str, np.dtype] = {"numeric": NUMERIC_DTYPE, "text": TEXT_DTYPE}


@dataclass(frozen=True)
class Sample:
    time: float
    value: float | str
    stddev: float = 0.0
    weight: float = 1.0


@dataclass(frozen=True)
class Samples:
    """
    Time-stamped samples of one payload kind.
    The structured dtype of `data` is the variant tag: NUMERIC_DTYPE or TEXT_DTYPE.
    """
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.data.dtype not in (NUMERIC_DTYPE, TEXT_DTYPE):
            raise ValueError(f"unsupported sample dtype {self.data.dtype}")
        if self.data.ndim != 1:
            raise ValueError("samples must be one-dimensional")

    @staticmethod
    def empty(kind: SampleKind = "numeric") -> "Samples":
        return Samples(np.zeros(0, dtype=_DTYPES[kind]))

    @staticmethod
    def from_arrays(
        time: Sequence[float] | np.ndarray,
        value: Sequence[float | str] | np.ndarray,
        stddev: Sequence[float] | np.ndarray | None = None,
        weight: Sequence[float] | np.ndarray | None = None,
        *,
        kind: SampleKind | None = None,
    ) -> "Samples":
        """
        Build a series from parallel columns.
        The kind is inferred from the value column unless given:
        string/object values make a text series, anything else numeric.
        """
        t = np.asarray(time, dtype=np.float64)
        v = np.asarray(value)
        if t.ndim != 1 or v.ndim != 1 or t.size != v.size:
            raise ValueError("time and value must be 1D with equal length")
        if kind is None:
            kind = "text" if v.dtype.kind in "OUS" else "numeric"
        arr = np.zeros(t.size, dtype=_DTYPES[kind])
        arr["time"] = t
        if kind == "text":
            arr["value"] = [str(item) for item in v]
        else:
            arr["value"] = v.astype(np.float64)
        arr["stddev"] = 0.0 if stddev is None else np.asarray(stddev, dtype=np.float64)
        arr["weight"] = 1.0 if weight is None else np.asarray(weight, dtype=np.float64)
        return Samples(arr)

    @staticmethod
    def from_samples(samples: Sequence[Sample], kind: SampleKind = "numeric") -> "Samples":
        return Samples.from_arrays(
            [s.time for s in samples],
            [s.value for s in samples],
            [s.stddev for s in samples],
            [s.weight for s in samples],
            kind=kind,
        )

    # ----- accessors -----

    @property
    def kind(self) -> SampleKind:
        return "text" if self.data.dtype == TEXT_DTYPE else "numeric"

    @property
    def size(self) -> int:
        return int(self.data.size)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Sample]:
        for row in self.data:
            value = row["value"]
            yield Sample(
                float(row["time"]),
                str(value) if self.kind == "text" else float(value),
                float(row["stddev"]),
                float(row["weight"]),
            )

    def __getitem__(self, idx: int) -> Sample:
        row = self.data[idx]
        value = row["value"]
        return Sample(
            float(row["time"]),
            str(value) if self.kind == "text" else float(value),
            float(row["stddev"]),
            float(row["weight"]),
        )

    @property
    def time(self) -> np.ndarray:
        return self.data["time"]

    @property
    def values(self) -> np.ndarray:
        return self.data["value"]

    @property
    def stddev(self) -> np.ndarray:
        return self.data["stddev"]

    @property
    def weight(self) -> np.ndarray:
        return self.data["weight"]

    # ----- operations -----

    def within(self, index: TileIndex) -> "Samples":
        """
        Keep samples whose time falls inside the tile interval.
        """
        if self.size == 0:
            return self
        return Samples(self.data[index.contains_time(self.data["time"])])

    def concat(self, *others: "Samples") -> "Samples":
        for other in others:
            if other.kind != self.kind:
                raise ValueError("cannot concatenate numeric and text samples")
        return Samples(np.concatenate([self.data, *(o.data for o in others)]))

    def sorted(self) -> "Samples":
        # mergesort keeps equal timestamps in arrival order
        order = np.argsort(self.data["time"], kind="mergesort")
        return Samples(self.data[order])


@dataclass(frozen=True)
class Tile:
    """Payload of one stored tile: a numeric and a text series over the same span."""

    numeric: Samples
    text: Samples

    def __post_init__(self) -> None:
        if self.numeric.kind != "numeric" or self.text.kind != "text":
            raise ValueError("Tile expects a numeric and a text series")

    @staticmethod
    def empty() -> "Tile":
        return Tile(Samples.empty("numeric"), Samples.empty("text"))

    @property
    def is_empty(self) -> bool:
        return self.numeric.size == 0 and self.text.size == 0

    def within(self, index: TileIndex) -> "Tile":
        return Tile(self.numeric.within(index), self.text.within(index))


__all__ = [
    "NUMERIC_DTYPE",
    "TEXT_DTYPE",
    "Sample",
    "Samples",
    "SampleKind",
    "Tile",
]
