"""Merging of a channel's numeric series with its comment series."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from gettile.samples import Sample, Samples

__all__ = ["GraphPoint", "MergedSeries", "combine_comment_streams", "merge_series"]

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphPoint:
    """One chart point: a numeric value, a comment, or both."""

    time: float
    has_value: bool
    value: float
    stddev: float
    weight: float
    has_comment: bool = False
    comment: str | None = None

    @classmethod
    def from_numeric(cls, sample: Sample, comment: str | None = None) -> "GraphPoint":
        return cls(
            sample.time,
            True,
            float(sample.value),
            sample.stddev,
            sample.weight,
            has_comment=comment is not None,
            comment=comment,
        )

    @classmethod
    def from_text(cls, sample: Sample) -> "GraphPoint":
        return cls(
            sample.time,
            False,
            0.0,
            sample.stddev,
            sample.weight,
            has_comment=True,
            comment=str(sample.value),
        )


@dataclass(frozen=True)
class MergedSeries:
    points: list[GraphPoint]
    has_comments: bool

    def __len__(self) -> int:
        return len(self.points)


def combine_comment_streams(*streams: Samples) -> Samples:
    """Concatenate text series and order them by time, keeping ties in input order."""
    if not streams:
        return Samples.empty("text")
    return streams[0].concat(*streams[1:]).sorted()


def merge_series(numeric: Samples, text: Samples) -> MergedSeries:
    """Interleave ``numeric`` and ``text`` samples into time-ordered graph points.

    A comment landing exactly on a numeric timestamp picks up that value;
    numeric samples not covered by a comment become value-only points.
    """
    if numeric.kind != "numeric" or text.kind != "text":
        raise ValueError("merge_series expects a numeric and a text series")

    by_time: dict[float, Sample] = {}
    for sample in numeric:
        if sample.time in by_time:
            # only the last sample at a timestamp can carry a comment
            LOG.debug("duplicate numeric timestamp %.9f; keeping the later sample", sample.time)
        by_time[sample.time] = sample

    commented_times: set[float] = set()
    points: list[GraphPoint] = []
    for sample in text:
        commented_times.add(sample.time)
        match = by_time.get(sample.time)
        if match is not None:
            points.append(GraphPoint.from_numeric(match, comment=str(sample.value)))
        else:
            points.append(GraphPoint.from_text(sample))

    for sample in numeric:
        if sample.time not in commented_times:
            points.append(GraphPoint.from_numeric(sample))

    points.sort(key=lambda p: p.time)
    return MergedSeries(points, has_comments=text.size > 0)
