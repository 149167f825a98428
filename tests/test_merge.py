import logging

from gettile.merge import GraphPoint, combine_comment_streams, merge_series
from gettile.samples import Samples


def test_numeric_only_points_have_no_comment():
    merged = merge_series(Samples.from_arrays([2.0, 1.0], [20.0, 10.0]), Samples.empty("text"))
    assert merged.has_comments is False
    assert [p.time for p in merged.points] == [1.0, 2.0]
    assert all(p.has_value and not p.has_comment for p in merged.points)


def test_comment_on_numeric_timestamp_carries_value():
    numeric = Samples.from_arrays([1.0, 2.0, 3.0], [10.0, 20.0, 30.0])
    text = Samples.from_arrays([2.0], ["spike"])
    merged = merge_series(numeric, text)
    assert merged.has_comments is True
    assert len(merged) == 3
    point = merged.points[1]
    assert point == GraphPoint(2.0, True, 20.0, 0.0, 1.0, has_comment=True, comment="spike")


def test_comment_without_numeric_is_comment_only():
    numeric = Samples.from_arrays([1.0, 3.0], [10.0, 30.0])
    text = Samples.from_arrays([2.0], ["lunch"])
    merged = merge_series(numeric, text)
    middle = merged.points[1]
    assert middle.time == 2.0
    assert middle.has_value is False
    assert middle.has_comment is True
    assert middle.comment == "lunch"


def test_duplicate_numeric_timestamp_last_write_wins(caplog):
    numeric = Samples.from_arrays([1.0, 1.0], [10.0, 11.0])
    text = Samples.from_arrays([1.0], ["dup"])
    with caplog.at_level(logging.DEBUG, logger="gettile.merge"):
        merged = merge_series(numeric, text)
    assert len(merged) == 1
    assert merged.points[0].value == 11.0
    assert "duplicate numeric timestamp" in caplog.text


def test_uncovered_duplicate_numeric_samples_are_all_kept():
    numeric = Samples.from_arrays([1.0, 1.0], [10.0, 11.0])
    merged = merge_series(numeric, Samples.empty("text"))
    assert [p.value for p in merged.points] == [10.0, 11.0]


def test_combine_comment_streams_sorts_by_time():
    own = Samples.from_arrays([5.0, 1.0], ["late", "early"])
    legacy = Samples.from_arrays([3.0], ["middle"])
    combined = combine_comment_streams(own, legacy)
    assert [s.value for s in combined] == ["early", "middle", "late"]
    assert combine_comment_streams().size == 0
