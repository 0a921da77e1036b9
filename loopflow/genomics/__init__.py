"""
Genomics module for loopflow

This module provides:
- Immutable genomic interval containers (closed coordinates)
- Sorted-sweep overlap queries between interval sets
- Loop tables with parallel anchor1 / anchor2 intervals and a status per loop
- Promoter / enhancer tagging of loop anchors
"""

from .annotation import (Anchor, AnnotatedAnchors, LoopAnnotations,
                         annotate_anchors, annotate_loops, prepare_reference_sets,
                         promoters_from_genes)
from .intervals import (Interval, IntervalSet, filter_standard_chromosomes,
                        is_standard_chromosome)
from .loops import (LoopSet, load_genes, load_intervals, load_loops,
                    summarize_loops)
from .overlap import (OverlapIndex, count_overlaps, exclude_overlapping,
                      find_overlaps, overlaps_any)

__all__ = [
    "Interval",
    "IntervalSet",
    "filter_standard_chromosomes",
    "is_standard_chromosome",
    "LoopSet",
    "load_loops",
    "load_intervals",
    "load_genes",
    "summarize_loops",
    "OverlapIndex",
    "overlaps_any",
    "find_overlaps",
    "count_overlaps",
    "exclude_overlapping",
    "Anchor",
    "AnnotatedAnchors",
    "LoopAnnotations",
    "annotate_anchors",
    "annotate_loops",
    "promoters_from_genes",
    "prepare_reference_sets",
]
