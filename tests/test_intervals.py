import numpy as np
import pandas as pd
import pytest

from loopflow.errors import InvalidInterval, UnknownSequence
from loopflow.genomics import (Interval, IntervalSet,
                               filter_standard_chromosomes,
                               is_standard_chromosome)


class TestInterval:
    def test_closed_coordinates(self):
        assert Interval("chr1", 5, 5).width == 1
        assert Interval("chr1", 100, 200).overlaps(Interval("chr1", 200, 300))
        assert not Interval("chr1", 100, 200).overlaps(Interval("chr1", 201, 300))

    def test_different_chromosomes_never_overlap(self):
        assert not Interval("chr1", 100, 200).overlaps(Interval("chr2", 100, 200))

    def test_start_after_end_is_invalid(self):
        with pytest.raises(InvalidInterval):
            Interval("chr1", 10, 5)

    def test_missing_chromosome_is_invalid(self):
        with pytest.raises(InvalidInterval):
            Interval("", 1, 5)

    def test_immutable(self):
        interval = Interval("chr1", 1, 5)
        with pytest.raises(AttributeError):
            interval.start = 3

    def test_str(self):
        assert str(Interval("chr3", 1, 5)) == "chr3:1-5"


class TestIntervalSet:
    def test_round_trip_through_records(self):
        records = [("chr1", 1, 10), ("chr2", 5, 5)]
        intervals = IntervalSet.from_tuples(records)
        assert len(intervals) == 2
        assert list(intervals) == [Interval(*r) for r in records]

    def test_invalid_record_reports_index(self):
        with pytest.raises(InvalidInterval) as excinfo:
            IntervalSet.from_tuples([("chr1", 1, 10), ("chr1", 50, 40)])
        assert excinfo.value.index == 1
        assert "record 1" in str(excinfo.value)

    def test_missing_chromosome_reports_index(self):
        df = pd.DataFrame({"chrom": ["chr1", None], "start": [1, 2], "end": [3, 4]})
        with pytest.raises(InvalidInterval) as excinfo:
            IntervalSet.from_dataframe(df)
        assert excinfo.value.index == 1

    def test_missing_coordinate_reports_index(self):
        df = pd.DataFrame({"chrom": ["chr1", "chr1"], "start": [1, None], "end": [3, 4]})
        with pytest.raises(InvalidInterval) as excinfo:
            IntervalSet.from_dataframe(df)
        assert excinfo.value.index == 1

    def test_unknown_sequence(self):
        with pytest.raises(UnknownSequence) as excinfo:
            IntervalSet.from_tuples(
                [("chr1", 1, 10), ("chrUn_gl000220", 1, 10)], sequences=["chr1", "chr2"]
            )
        assert excinfo.value.chrom == "chrUn_gl000220"
        assert excinfo.value.index == 1

    def test_columns_are_read_only(self):
        intervals = IntervalSet.from_tuples([("chr1", 1, 10)])
        with pytest.raises(ValueError):
            intervals.starts[0] = 5

    def test_by_chromosome_keeps_record_order(self):
        intervals = IntervalSet.from_tuples(
            [("chr2", 1, 2), ("chr1", 1, 2), ("chr2", 5, 6)]
        )
        groups = intervals.by_chromosome()
        np.testing.assert_array_equal(groups["chr2"], [0, 2])
        np.testing.assert_array_equal(groups["chr1"], [1])

    def test_empty(self):
        intervals = IntervalSet.empty()
        assert len(intervals) == 0
        assert intervals.to_dataframe().empty

    def test_standard_chromosome_filter(self):
        intervals = IntervalSet.from_tuples(
            [("chr1", 1, 2), ("chrM", 1, 2), ("X", 1, 2), ("chr7_random", 1, 2)]
        )
        kept = filter_standard_chromosomes(intervals)
        assert list(kept.chroms) == ["chr1", "X"]
        assert is_standard_chromosome("chrY")
        assert not is_standard_chromosome("chrUn")
