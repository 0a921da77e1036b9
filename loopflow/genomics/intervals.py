"""
Genomic interval containers

Coordinates are closed: an interval ``[start, end]`` covers both ``start``
and ``end``, so ``start == end`` is a single position. Two intervals overlap
iff they lie on the same chromosome and ``a.start <= b.end and b.start <= a.end``.
"""

from dataclasses import dataclass
from typing import (Dict, Iterable, Iterator, List, Optional, Sequence, Set,
                    Tuple, Union)

import numpy as np
import pandas as pd

from ..errors import InvalidInterval, UnknownSequence

STANDARD_CHROMOSOMES = frozenset(
    [str(i) for i in range(1, 23)] + ["X", "Y"]
)


@dataclass(frozen=True, order=True)
class Interval:
    """A single genomic interval"""

    chrom: str
    start: int
    end: int

    def __post_init__(self):
        if not isinstance(self.chrom, str) or not self.chrom:
            raise InvalidInterval(f"missing chromosome name in {self.chrom!r}")
        if self.start < 0:
            raise InvalidInterval(f"negative start {self.start} on {self.chrom}")
        if self.start > self.end:
            raise InvalidInterval(
                f"start {self.start} > end {self.end} on {self.chrom}"
            )

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, other: "Interval") -> bool:
        return (
            self.chrom == other.chrom
            and self.start <= other.end
            and other.start <= self.end
        )

    def __str__(self) -> str:
        return f"{self.chrom}:{self.start}-{self.end}"


def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def is_standard_chromosome(chrom: str) -> bool:
    """True for chr1..chr22, chrX and chrY, with or without the ``chr`` prefix"""
    name = chrom[3:] if chrom.startswith("chr") else chrom
    return name in STANDARD_CHROMOSOMES


class IntervalSet:
    """
    Immutable, columnar collection of intervals

    The position of an interval in the set is its record index; errors raised
    while building the set report that index.
    """

    __slots__ = ("_chroms", "_starts", "_ends")

    def __init__(
        self,
        chroms: Sequence,
        starts: Sequence,
        ends: Sequence,
        sequences: Optional[Iterable[str]] = None,
    ):
        chroms = np.asarray(chroms, dtype=object)
        if not (len(chroms) == len(starts) == len(ends)):
            raise InvalidInterval(
                f"column lengths differ: {len(chroms)} chromosomes, "
                f"{len(starts)} starts, {len(ends)} ends"
            )

        starts = _coerce_coordinates(starts, "start")
        ends = _coerce_coordinates(ends, "end")

        for index, chrom in enumerate(chroms):
            if not isinstance(chrom, str) or not chrom:
                raise InvalidInterval(f"missing chromosome name ({chrom!r})", index)

        bad = np.flatnonzero(starts < 0)
        if len(bad):
            index = int(bad[0])
            raise InvalidInterval(f"negative start {starts[index]}", index)

        bad = np.flatnonzero(starts > ends)
        if len(bad):
            index = int(bad[0])
            raise InvalidInterval(f"start {starts[index]} > end {ends[index]}", index)

        if sequences is not None:
            known = set(sequences)
            for index, chrom in enumerate(chroms):
                if chrom not in known:
                    raise UnknownSequence(chrom, index)

        self._chroms = _readonly(chroms)
        self._starts = _readonly(starts)
        self._ends = _readonly(ends)

    @classmethod
    def from_intervals(
        cls, intervals: Iterable[Interval], sequences: Optional[Iterable[str]] = None
    ) -> "IntervalSet":
        intervals = list(intervals)
        return cls(
            [i.chrom for i in intervals],
            [i.start for i in intervals],
            [i.end for i in intervals],
            sequences=sequences,
        )

    @classmethod
    def from_tuples(
        cls,
        records: Iterable[Tuple[str, int, int]],
        sequences: Optional[Iterable[str]] = None,
    ) -> "IntervalSet":
        records = list(records)
        return cls(
            [r[0] for r in records],
            [r[1] for r in records],
            [r[2] for r in records],
            sequences=sequences,
        )

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        chrom_col: str = "chrom",
        start_col: str = "start",
        end_col: str = "end",
        sequences: Optional[Iterable[str]] = None,
    ) -> "IntervalSet":
        missing_cols = [c for c in (chrom_col, start_col, end_col) if c not in df.columns]
        if missing_cols:
            raise ValueError(f"Missing required columns: {missing_cols}")

        chroms = [None if pd.isna(c) else str(c) for c in df[chrom_col]]
        return cls(chroms, df[start_col], df[end_col], sequences=sequences)

    @classmethod
    def empty(cls) -> "IntervalSet":
        return cls([], [], [])

    @property
    def chroms(self) -> np.ndarray:
        return self._chroms

    @property
    def starts(self) -> np.ndarray:
        return self._starts

    @property
    def ends(self) -> np.ndarray:
        return self._ends

    def __len__(self) -> int:
        return len(self._starts)

    def __getitem__(self, index: int) -> Interval:
        return Interval(
            self._chroms[index], int(self._starts[index]), int(self._ends[index])
        )

    def __iter__(self) -> Iterator[Interval]:
        for index in range(len(self)):
            yield self[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, IntervalSet):
            return NotImplemented
        return (
            len(self) == len(other)
            and np.array_equal(self._chroms, other._chroms)
            and np.array_equal(self._starts, other._starts)
            and np.array_equal(self._ends, other._ends)
        )

    def __repr__(self) -> str:
        return f"IntervalSet({len(self)} intervals on {len(self.chromosome_names())} chromosomes)"

    def chromosome_names(self) -> List[str]:
        return sorted(set(self._chroms))

    def by_chromosome(self) -> Dict[str, np.ndarray]:
        """Map each chromosome to the record indices on it, in record order"""
        groups: Dict[str, List[int]] = {}
        for index, chrom in enumerate(self._chroms):
            groups.setdefault(chrom, []).append(index)
        return {chrom: np.asarray(idx, dtype=np.int64) for chrom, idx in groups.items()}

    def subset(self, mask_or_indices: Union[np.ndarray, Sequence[int]]) -> "IntervalSet":
        selector = np.asarray(mask_or_indices)
        if selector.dtype != bool:
            selector = selector.astype(np.int64)
        return IntervalSet(
            self._chroms[selector], self._starts[selector], self._ends[selector]
        )

    def check_sequences(self, sequences: Iterable[str]) -> None:
        """Raise UnknownSequence for the first interval outside ``sequences``"""
        known: Set[str] = set(sequences)
        for index, chrom in enumerate(self._chroms):
            if chrom not in known:
                raise UnknownSequence(chrom, index)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "chrom": self._chroms.astype(str),
                "start": self._starts,
                "end": self._ends,
            }
        )


def _coerce_coordinates(values: Sequence, name: str) -> np.ndarray:
    raw = pd.Series(list(values), dtype=object)
    numeric = pd.to_numeric(raw, errors="coerce")
    missing = np.flatnonzero(numeric.isna().to_numpy())
    if len(missing):
        index = int(missing[0])
        raise InvalidInterval(
            f"missing or non-numeric {name} ({raw.iloc[index]!r})", index
        )

    coords = numeric.to_numpy(dtype=np.float64)
    fractional = np.flatnonzero(coords != np.floor(coords))
    if len(fractional):
        index = int(fractional[0])
        raise InvalidInterval(f"non-integer {name} {coords[index]}", index)

    return coords.astype(np.int64)


def filter_standard_chromosomes(intervals: IntervalSet) -> IntervalSet:
    """Keep only intervals on chr1..chr22, chrX and chrY"""
    mask = np.array(
        [is_standard_chromosome(c) for c in intervals.chroms], dtype=bool
    )
    return intervals.subset(mask)
