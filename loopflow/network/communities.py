"""Connected components ("communities") of the loop overlap graph."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

import numpy as np
import pandas as pd

from ..utils import get_logger
from .graph import OverlapGraph

logger = get_logger(__name__)


class UnionFind:
    """Union-Find over integer loop indices (path compression, union by rank)."""

    def __init__(self) -> None:
        self.parent: Dict[int, int] = {}
        self.rank: Dict[int, int] = {}

    def add(self, x: int) -> None:
        """Register x as its own singleton set if unseen."""
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0

    def find(self, x: int) -> int:
        """Find the root of the set containing x."""
        self.add(x)
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        # compress iteratively, large components would exhaust recursion
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> None:
        """Merge the sets containing a and b."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if self.rank[ra] < self.rank[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        if self.rank[ra] == self.rank[rb]:
            self.rank[ra] += 1

    def get_all_nodes(self) -> Set[int]:
        return set(self.parent)

    def get_components(self) -> Dict[int, List[int]]:
        """Return all connected components as a dict of root -> members."""
        by_root: Dict[int, List[int]] = defaultdict(list)
        for node in self.parent:
            by_root[self.find(node)].append(node)
        return dict(by_root)


@dataclass(frozen=True, eq=False)
class CommunityPartition:
    """
    Disjoint communities of loop indices.

    ``membership[i]`` is the position of loop ``i``'s community in
    ``communities``, or -1 when the loop belongs to none. Community order is
    not meaningful; compare partitions with ``as_sets``.
    """

    n_loops: int
    communities: Tuple[FrozenSet[int], ...]

    @property
    def membership(self) -> np.ndarray:
        membership = np.full(self.n_loops, -1, dtype=np.int64)
        for community_id, members in enumerate(self.communities):
            membership[list(members)] = community_id
        return membership

    @property
    def nodes(self) -> Set[int]:
        return set().union(*self.communities) if self.communities else set()

    @property
    def sizes(self) -> np.ndarray:
        return np.array([len(c) for c in self.communities], dtype=np.int64)

    def __len__(self) -> int:
        return len(self.communities)

    def __iter__(self):
        return iter(self.communities)

    def as_sets(self) -> FrozenSet[FrozenSet[int]]:
        return frozenset(self.communities)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per (community, loop)."""
        rows = [
            (community_id, loop)
            for community_id, members in enumerate(self.communities)
            for loop in sorted(members)
        ]
        return pd.DataFrame(rows, columns=["community_id", "loop"])


def connected_components(edges: Iterable[Tuple[int, int]]) -> List[List[int]]:
    """Components of the graph spanned by ``edges``; nodes without edges are left out."""
    uf = UnionFind()
    for a, b in edges:
        uf.union(int(a), int(b))
    components = [sorted(members) for members in uf.get_components().values()]
    components.sort(key=lambda members: members[0])
    return components


def extract_communities(
    graph: OverlapGraph, include_singletons: bool = False
) -> CommunityPartition:
    """
    Partition the loops of ``graph`` into connected components

    Args:
        graph: Loop overlap graph
        include_singletons: Report loops without any overlap as one-loop
            communities instead of leaving them out

    Returns:
        CommunityPartition covering exactly the graph's nodes, plus every
        isolated loop when ``include_singletons`` is set
    """
    components = connected_components(graph)

    if include_singletons:
        components.extend([int(loop)] for loop in graph.isolated)
        components.sort(key=lambda members: members[0])

    partition = CommunityPartition(
        n_loops=graph.n_loops,
        communities=tuple(frozenset(members) for members in components),
    )

    if len(partition):
        logger.info(
            f"Found {len(partition)} communities covering {len(partition.nodes)} loops "
            f"(largest: {int(partition.sizes.max())})"
        )
    else:
        logger.info("Found no communities")

    return partition
