"""
Loop overlap graph

Nodes are loop indices. Two loops are joined when any anchor of one overlaps
any anchor of the other (anchor1-anchor1, anchor2-anchor2 or anchor1-anchor2).
"""

from dataclasses import dataclass
from typing import Iterator, List, Tuple

import networkx as nx
import numpy as np
import pandas as pd

from ..errors import InconsistentAnchorPairing
from ..genomics import LoopSet, OverlapIndex
from ..utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class OverlapGraph:
    """
    Deduplicated undirected edges over loop indices

    ``edges`` is an ``(E, 2)`` int64 array, each row ``(i, j)`` with ``i < j``,
    rows sorted lexicographically.
    """

    n_loops: int
    edges: np.ndarray

    def __post_init__(self):
        edges = np.array(self.edges, dtype=np.int64).reshape(-1, 2)
        if len(edges):
            if edges.min() < 0 or edges.max() >= self.n_loops:
                raise InconsistentAnchorPairing(
                    f"edge references a loop outside 0..{self.n_loops - 1}"
                )
            if np.any(edges[:, 0] >= edges[:, 1]):
                raise ValueError("edges must be canonical (i < j) with no self-edges")
            if len(np.unique(edges, axis=0)) != len(edges):
                raise ValueError("edges must not repeat an unordered loop pair")
        edges.flags.writeable = False
        object.__setattr__(self, "edges", edges)

    @property
    def n_edges(self) -> int:
        return len(self.edges)

    @property
    def is_empty(self) -> bool:
        return self.n_edges == 0

    @property
    def nodes(self) -> np.ndarray:
        """Sorted loop indices that take part in at least one edge"""
        return np.unique(self.edges)

    @property
    def isolated(self) -> np.ndarray:
        """Sorted loop indices without any edge"""
        return np.setdiff1d(np.arange(self.n_loops), self.nodes)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for i, j in self.edges:
            yield int(i), int(j)

    def edge_set(self) -> set:
        return set(self)

    def degree(self) -> np.ndarray:
        """Number of neighbours of every loop (0 for isolated loops)"""
        return np.bincount(self.edges.ravel(), minlength=self.n_loops)

    def to_networkx(self, include_isolated: bool = False) -> nx.Graph:
        graph = nx.Graph()
        if include_isolated:
            graph.add_nodes_from(range(self.n_loops))
        graph.add_edges_from(self)
        return graph

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.edges, columns=["loop1", "loop2"])


def canonical_edges(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    """
    Turn parallel loop index arrays into sorted, unique ``i < j`` rows

    Self pairs are dropped and ``(j, i)`` folds onto ``(i, j)``.
    """
    left = np.asarray(left, dtype=np.int64)
    right = np.asarray(right, dtype=np.int64)

    keep = left != right
    pairs = np.column_stack(
        [np.minimum(left[keep], right[keep]), np.maximum(left[keep], right[keep])]
    )
    if len(pairs) == 0:
        return np.empty((0, 2), dtype=np.int64)
    return np.unique(pairs, axis=0)


def build_overlap_graph(loops: LoopSet, progress: bool = False) -> OverlapGraph:
    """
    Build the anchor overlap graph of ``loops``

    Args:
        loops: Loops whose anchors are compared
        progress: Show per-chromosome progress bars

    Returns:
        OverlapGraph with no self-edges and no duplicate unordered pairs
    """
    index1 = OverlapIndex(loops.anchor1, progress=progress)
    index2 = OverlapIndex(loops.anchor2, progress=progress)

    relations = {
        "anchor1-anchor1": index1.find_overlaps(loops.anchor1),
        "anchor2-anchor2": index2.find_overlaps(loops.anchor2),
        # covers anchor2-anchor1 once folded to i < j
        "anchor1-anchor2": index2.find_overlaps(loops.anchor1),
    }

    lefts: List[np.ndarray] = []
    rights: List[np.ndarray] = []
    for name, (query_idx, reference_idx) in relations.items():
        logger.debug(f"{name}: {len(query_idx)} overlapping anchor pairs")
        lefts.append(query_idx)
        rights.append(reference_idx)

    edges = canonical_edges(np.concatenate(lefts), np.concatenate(rights))
    graph = OverlapGraph(n_loops=len(loops), edges=edges)

    logger.info(
        f"Overlap graph: {graph.n_edges} edges between {len(graph.nodes)} of "
        f"{len(loops)} loops"
    )
    if graph.is_empty:
        logger.warning("No anchor overlaps found between loops; no communities to report")

    return graph
