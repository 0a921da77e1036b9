"""
Sorted-sweep overlap queries between interval sets

Every query runs per chromosome on start-sorted numpy arrays, so the cost is
O((n + m) log(n + m)) plus the number of reported pairs, never n * m.
"""

from typing import Dict, Iterable, Optional, Tuple

import numpy as np
from tqdm import tqdm

from ..utils import get_logger
from .intervals import IntervalSet

logger = get_logger(__name__)


def _expand_ranges(lo: np.ndarray, hi: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Flatten the half-open ranges ``[lo[i], hi[i])``

    Returns:
        ``(owner, position)`` where ``owner[k]`` is the range a position came from
    """
    counts = np.maximum(hi - lo, 0)
    total = int(counts.sum())
    if total == 0:
        empty = np.empty(0, dtype=np.int64)
        return empty, empty

    owner = np.repeat(np.arange(len(lo), dtype=np.int64), counts)
    range_starts = np.cumsum(counts) - counts
    offsets = np.arange(total, dtype=np.int64) - np.repeat(range_starts, counts)
    position = np.repeat(lo, counts) + offsets
    return owner, position


class _ChromosomeBlock:
    """Start-sorted view of the intervals of one chromosome"""

    __slots__ = ("indices", "starts", "ends", "max_ends")

    def __init__(self, intervals: IntervalSet, indices: np.ndarray):
        order = np.argsort(intervals.starts[indices], kind="stable")
        self.indices = indices[order]
        self.starts = intervals.starts[self.indices]
        self.ends = intervals.ends[self.indices]
        # running maximum of ends over the start-sorted intervals
        self.max_ends = np.maximum.accumulate(self.ends)


class OverlapIndex:
    """
    Per-chromosome index over a reference IntervalSet

    Args:
        reference: Intervals to query against
        progress: Show a tqdm progress bar over chromosomes for pair queries
    """

    def __init__(self, reference: IntervalSet, progress: bool = False):
        self.reference = reference
        self.progress = progress
        self._blocks: Dict[str, _ChromosomeBlock] = {
            chrom: _ChromosomeBlock(reference, indices)
            for chrom, indices in reference.by_chromosome().items()
        }

    def __len__(self) -> int:
        return len(self.reference)

    @property
    def chromosomes(self) -> Iterable[str]:
        return self._blocks.keys()

    def overlaps_any(self, query: IntervalSet) -> np.ndarray:
        """One boolean per query interval: does it overlap any reference interval?"""
        result = np.zeros(len(query), dtype=bool)

        for chrom, q_indices in query.by_chromosome().items():
            block = self._blocks.get(chrom)
            if block is None:
                continue

            q_starts = query.starts[q_indices]
            q_ends = query.ends[q_indices]

            # candidates are the reference intervals starting at or before the query end
            n_candidates = np.searchsorted(block.starts, q_ends, side="right")
            has_candidates = n_candidates > 0
            reach = np.full(len(q_indices), -1, dtype=np.int64)
            reach[has_candidates] = block.max_ends[n_candidates[has_candidates] - 1]

            result[q_indices] = reach >= q_starts

        return result

    def find_overlaps(self, query: IntervalSet) -> Tuple[np.ndarray, np.ndarray]:
        """
        Enumerate every overlapping (query, reference) pair

        A closed pair overlaps iff either the reference starts inside the query
        (``q.start <= r.start <= q.end``) or the query starts strictly inside the
        reference (``r.start < q.start <= r.end``). The two cases are disjoint
        and each is a range lookup on a start-sorted array.

        Returns:
            ``(query_indices, reference_indices)`` as parallel int64 arrays
        """
        query_hits = []
        reference_hits = []

        query_groups = query.by_chromosome()
        shared = sorted(set(query_groups) & set(self._blocks))

        for chrom in tqdm(shared, desc="overlaps", unit="chrom", disable=not self.progress):
            ref = self._blocks[chrom]
            qry = _ChromosomeBlock(query, query_groups[chrom])

            # reference start inside the query
            lo = np.searchsorted(ref.starts, qry.starts, side="left")
            hi = np.searchsorted(ref.starts, qry.ends, side="right")
            owner, position = _expand_ranges(lo, hi)
            query_hits.append(qry.indices[owner])
            reference_hits.append(ref.indices[position])

            # query start strictly inside the reference
            lo = np.searchsorted(qry.starts, ref.starts, side="right")
            hi = np.searchsorted(qry.starts, ref.ends, side="right")
            owner, position = _expand_ranges(lo, hi)
            query_hits.append(qry.indices[position])
            reference_hits.append(ref.indices[owner])

            logger.debug(f"{chrom}: {sum(len(h) for h in query_hits[-2:])} overlapping pairs")

        if not query_hits:
            empty = np.empty(0, dtype=np.int64)
            return empty, empty

        return np.concatenate(query_hits), np.concatenate(reference_hits)


def overlaps_any(query: IntervalSet, reference: IntervalSet) -> np.ndarray:
    """Boolean mask of query intervals overlapping at least one reference interval"""
    return OverlapIndex(reference).overlaps_any(query)


def find_overlaps(
    query: IntervalSet, reference: IntervalSet, progress: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """All overlapping (query index, reference index) pairs"""
    return OverlapIndex(reference, progress=progress).find_overlaps(query)


def count_overlaps(query: IntervalSet, reference: IntervalSet) -> np.ndarray:
    """Number of reference intervals overlapping each query interval"""
    query_idx, _ = find_overlaps(query, reference)
    return np.bincount(query_idx, minlength=len(query)).astype(np.int64)


def exclude_overlapping(
    intervals: IntervalSet, other: IntervalSet, index: Optional[OverlapIndex] = None
) -> IntervalSet:
    """Keep the intervals that overlap nothing in ``other``"""
    if index is None:
        index = OverlapIndex(other)
    return intervals.subset(~index.overlaps_any(intervals))
