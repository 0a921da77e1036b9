import itertools

import numpy as np
import pytest

from conftest import make_loops, random_intervals
from loopflow.errors import InconsistentAnchorPairing
from loopflow.genomics import LoopSet
from loopflow.network import OverlapGraph, build_overlap_graph, canonical_edges


def random_loops(rng, n):
    return LoopSet(
        random_intervals(rng, n, span=30_000, max_width=600),
        random_intervals(rng, n, span=30_000, max_width=600),
    )


def brute_force_edges(loops):
    edges = set()
    for i, j in itertools.combinations(range(len(loops)), 2):
        a1, a2, _ = loops.loop(i)
        b1, b2, _ = loops.loop(j)
        if any(x.overlaps(y) for x in (a1, a2) for y in (b1, b2)):
            edges.add((i, j))
    return edges


def test_chain_of_overlaps(chain_loops):
    graph = build_overlap_graph(chain_loops)
    assert graph.edge_set() == {(0, 1), (1, 2)}
    np.testing.assert_array_equal(graph.degree(), [1, 2, 1])


def test_disjoint_loops_give_empty_graph(disjoint_loops):
    graph = build_overlap_graph(disjoint_loops)
    assert graph.is_empty
    assert graph.n_loops == 2
    np.testing.assert_array_equal(graph.isolated, [0, 1])


def test_anchor2_anchor1_overlap_links_loops():
    loops = make_loops(
        [
            ("chr1", 1, 10, "chr1", 500, 600, "static"),
            ("chr1", 600, 700, "chr1", 2_000, 2_100, "gained"),
        ]
    )
    assert build_overlap_graph(loops).edge_set() == {(0, 1)}


def test_loop_overlapping_itself_has_no_self_edge():
    loops = make_loops([("chr1", 1, 100, "chr1", 50, 150, "static")])
    graph = build_overlap_graph(loops)
    assert graph.is_empty


def test_identical_loops_give_one_edge():
    record = ("chr1", 1, 100, "chr1", 50, 150, "static")
    graph = build_overlap_graph(make_loops([record, record]))
    assert graph.edges.tolist() == [[0, 1]]


def test_matches_brute_force(rng):
    loops = random_loops(rng, 120)
    graph = build_overlap_graph(loops)

    edges = graph.edges.tolist()
    assert all(i < j for i, j in edges)
    assert len(edges) == len({tuple(e) for e in edges})
    assert graph.edge_set() == brute_force_edges(loops)


def test_empty_loop_set():
    graph = build_overlap_graph(make_loops([]))
    assert graph.n_loops == 0
    assert graph.is_empty


def test_canonical_edges():
    edges = canonical_edges([3, 1, 2, 2, 0], [1, 3, 2, 0, 2])
    assert edges.tolist() == [[0, 2], [1, 3]]


def test_edges_are_validated():
    with pytest.raises(InconsistentAnchorPairing):
        OverlapGraph(n_loops=2, edges=np.array([[0, 5]]))
    with pytest.raises(ValueError):
        OverlapGraph(n_loops=3, edges=np.array([[2, 1]]))


def test_repeated_edges_are_rejected():
    with pytest.raises(ValueError, match="repeat"):
        OverlapGraph(n_loops=3, edges=np.array([[0, 1], [1, 2], [0, 1]]))


def test_edges_are_read_only(chain_loops):
    graph = build_overlap_graph(chain_loops)
    with pytest.raises(ValueError):
        graph.edges[0, 0] = 2


def test_to_networkx(chain_loops, disjoint_loops):
    graph = build_overlap_graph(chain_loops).to_networkx()
    assert sorted(graph.edges()) == [(0, 1), (1, 2)]

    isolated = build_overlap_graph(disjoint_loops)
    assert isolated.to_networkx().number_of_nodes() == 0
    assert isolated.to_networkx(include_isolated=True).number_of_nodes() == 2


def test_to_dataframe(chain_loops):
    df = build_overlap_graph(chain_loops).to_dataframe()
    assert list(df.columns) == ["loop1", "loop2"]
    assert df.values.tolist() == [[0, 1], [1, 2]]
