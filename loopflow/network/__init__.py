"""
Network analysis module for loopflow

This module provides functionality for:
- Building the anchor overlap graph over loop indices
- Extracting connected components (communities) of overlapping loops
- Aggregating loop status and anchor annotations per community
"""

from .aggregation import (SUMMARY_COLUMNS, enhancer_promoter_ratio,
                          loop_table, mean_ratio, summarize_communities)
from .communities import (CommunityPartition, UnionFind, connected_components,
                          extract_communities)
from .graph import OverlapGraph, build_overlap_graph, canonical_edges

__all__ = [
    "OverlapGraph",
    "build_overlap_graph",
    "canonical_edges",
    "UnionFind",
    "CommunityPartition",
    "connected_components",
    "extract_communities",
    "SUMMARY_COLUMNS",
    "summarize_communities",
    "enhancer_promoter_ratio",
    "mean_ratio",
    "loop_table",
]
