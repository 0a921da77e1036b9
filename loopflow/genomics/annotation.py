"""
Anchor annotation against reference interval sets

Tags are computed once from finalized reference sets and returned as new
read-only values; the anchor intervals themselves are never modified.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from ..utils import get_logger
from .intervals import Interval, IntervalSet
from .loops import LoopSet
from .overlap import OverlapIndex, exclude_overlapping

logger = get_logger(__name__)


@dataclass(frozen=True)
class Anchor:
    """An anchor interval together with the names of the tags it carries"""

    interval: Interval
    tags: FrozenSet[str]

    def has(self, tag: str) -> bool:
        return tag in self.tags


class AnnotatedAnchors:
    """An IntervalSet with one read-only boolean vector per tag"""

    __slots__ = ("_intervals", "_tags")

    def __init__(self, intervals: IntervalSet, tags: Mapping[str, np.ndarray]):
        frozen = {}
        for name, values in tags.items():
            values = np.array(values, dtype=bool)
            if len(values) != len(intervals):
                raise ValueError(
                    f"tag '{name}' has {len(values)} values for {len(intervals)} intervals"
                )
            values.flags.writeable = False
            frozen[name] = values
        self._intervals = intervals
        self._tags = MappingProxyType(frozen)

    @property
    def intervals(self) -> IntervalSet:
        return self._intervals

    @property
    def tags(self) -> Mapping[str, np.ndarray]:
        return self._tags

    @property
    def tag_names(self):
        return list(self._tags)

    def __len__(self) -> int:
        return len(self._intervals)

    def tag(self, name: str) -> np.ndarray:
        try:
            return self._tags[name]
        except KeyError:
            raise KeyError(
                f"Unknown tag '{name}', available: {list(self._tags)}"
            ) from None

    def __getitem__(self, index: int) -> Anchor:
        return Anchor(
            self._intervals[index],
            frozenset(name for name, values in self._tags.items() if values[index]),
        )

    def to_dataframe(self) -> pd.DataFrame:
        df = self._intervals.to_dataframe()
        for name, values in self._tags.items():
            df[name] = values
        return df


@dataclass(frozen=True)
class LoopAnnotations:
    """Annotations of both anchors of every loop, aligned by loop index"""

    anchor1: AnnotatedAnchors
    anchor2: AnnotatedAnchors

    def __post_init__(self):
        if len(self.anchor1) != len(self.anchor2):
            raise ValueError("anchor1 and anchor2 annotations differ in length")

    def __len__(self) -> int:
        return len(self.anchor1)

    def tag_counts(self, tag: str) -> np.ndarray:
        """Per loop, the number of its anchors (0, 1 or 2) carrying ``tag``"""
        return self.anchor1.tag(tag).astype(np.int64) + self.anchor2.tag(tag).astype(np.int64)

    def to_dataframe(self) -> pd.DataFrame:
        a1 = self.anchor1.to_dataframe().add_suffix("1")
        a2 = self.anchor2.to_dataframe().add_suffix("2")
        df = pd.concat([a1, a2], axis=1)
        df.insert(0, "loop", np.arange(len(df)))
        return df


def annotate_anchors(
    anchors: IntervalSet,
    references: Mapping[str, IntervalSet],
    sequences: Optional[Iterable[str]] = None,
) -> AnnotatedAnchors:
    """
    Tag anchors by overlap with each named reference set

    Args:
        anchors: Anchor intervals to tag
        references: Tag name -> reference intervals (e.g. promoters, enhancers)
        sequences: Optional chromosome list every anchor must belong to

    Returns:
        AnnotatedAnchors with one boolean vector per reference set

    Raises:
        UnknownSequence: if ``sequences`` is given and an anchor lies elsewhere
    """
    if sequences is not None:
        anchors.check_sequences(sequences)

    tags: Dict[str, np.ndarray] = {}
    for name, reference in references.items():
        tags[name] = OverlapIndex(reference).overlaps_any(anchors)
        logger.debug(f"{int(tags[name].sum())}/{len(anchors)} anchors overlap {name}")

    return AnnotatedAnchors(anchors, tags)


def annotate_loops(
    loops: LoopSet,
    references: Mapping[str, IntervalSet],
    sequences: Optional[Iterable[str]] = None,
) -> LoopAnnotations:
    """Tag both anchor sets of ``loops`` against the same reference sets"""
    if sequences is not None:
        sequences = list(sequences)

    indexes = {name: OverlapIndex(reference) for name, reference in references.items()}

    annotated = []
    for anchors in (loops.anchor1, loops.anchor2):
        if sequences is not None:
            anchors.check_sequences(sequences)
        annotated.append(
            AnnotatedAnchors(
                anchors,
                {name: index.overlaps_any(anchors) for name, index in indexes.items()},
            )
        )

    annotations = LoopAnnotations(*annotated)
    for name in references:
        n_loops = int((annotations.tag_counts(name) > 0).sum())
        logger.info(f"{n_loops}/{len(loops)} loops have an anchor overlapping {name}")

    return annotations


def promoters_from_genes(
    genes: pd.DataFrame,
    upstream: int = 2000,
    downstream: int = 200,
) -> IntervalSet:
    """
    Promoter windows around each gene's transcription start site

    The window spans ``upstream`` positions before and ``downstream - 1``
    positions after the TSS, measured along the gene's strand, in closed
    coordinates (``upstream + downstream`` positions in total). Windows are
    clipped at position 1.

    Args:
        genes: Table with ``chrom``, ``start``, ``end`` and ``strand`` columns
        upstream: Positions before the TSS
        downstream: Positions from the TSS onwards

    Returns:
        IntervalSet with one promoter per gene, in table order
    """
    if upstream < 0 or downstream < 0:
        raise ValueError("upstream and downstream must be non-negative")

    missing_cols = [c for c in ("chrom", "start", "end", "strand") if c not in genes.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    genes_iv = IntervalSet.from_dataframe(genes)
    minus = (genes["strand"].astype(str) == "-").to_numpy()

    starts = np.where(
        minus,
        genes_iv.ends - downstream + 1,
        genes_iv.starts - upstream,
    )
    ends = np.where(
        minus,
        genes_iv.ends + upstream,
        genes_iv.starts + downstream - 1,
    )
    starts = np.maximum(starts, 1)
    # a zero-width window collapses onto the TSS
    ends = np.maximum(ends, starts)

    return IntervalSet(genes_iv.chroms, starts, ends)


def prepare_reference_sets(
    promoters: IntervalSet,
    enhancers: IntervalSet,
    promoter_tag: str = "promoter",
    enhancer_tag: str = "enhancer",
    exclude_promoter_enhancers: bool = True,
) -> Dict[str, IntervalSet]:
    """Reference sets keyed by tag name; enhancers touching promoters are dropped by default"""
    if exclude_promoter_enhancers:
        distal = exclude_overlapping(enhancers, promoters)
        logger.info(
            f"Kept {len(distal)}/{len(enhancers)} enhancers not overlapping promoters"
        )
        enhancers = distal

    return {promoter_tag: promoters, enhancer_tag: enhancers}
