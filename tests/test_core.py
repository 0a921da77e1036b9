import pandas as pd
import pytest

from conftest import make_loops
from loopflow import Config, LoopCommunityAnalysis
from loopflow.genomics import IntervalSet, load_intervals


def test_run_from_files(loops_file, promoters_file, enhancers_file, tmp_path):
    analysis = LoopCommunityAnalysis()
    result = analysis.run_from_files(
        loops_file, promoters_file, enhancers_file, tmp_path / "results"
    )

    assert len(result.loops) == 4
    assert result.graph.edge_set() == {(0, 1), (1, 2)}
    assert result.partition.as_sets() == {frozenset({0, 1, 2})}

    row = result.summary.iloc[0]
    assert bool(row["has_distinguished_status"])
    assert row["enhancer_count"] == 3
    assert row["promoter_count"] == 3
    assert result.mean_enhancer_to_promoter_ratio == pytest.approx(1.0)
    assert {"annotation", "overlap_graph", "communities", "total"} <= set(
        result.execution_times
    )

    for name in ("loop_annotations", "edges", "communities", "community_summary", "comparisons"):
        assert (tmp_path / "results" / f"{name}.tsv").exists()

    loop_annotations = pd.read_csv(tmp_path / "results" / "loop_annotations.tsv", sep="\t")
    assert loop_annotations["community_id"].tolist() == [0, 0, 0, -1]


def test_singletons_from_config(loops_file, promoters_file, enhancers_file):
    analysis = LoopCommunityAnalysis({"communities": {"include_singletons": True}})
    result = analysis.run_from_files(loops_file, promoters_file, enhancers_file)

    assert result.partition.as_sets() == {frozenset({0, 1, 2}), frozenset({3})}
    singleton = result.summary[result.summary["size"] == 1].iloc[0]
    assert singleton["promoter_count"] == 0
    assert pd.isna(singleton["enhancer_to_promoter_ratio"])


def test_missing_ratio_written_as_na(loops_file, promoters_file, enhancers_file, tmp_path):
    analysis = LoopCommunityAnalysis(Config(communities={"include_singletons": True}))
    analysis.run_from_files(loops_file, promoters_file, enhancers_file, tmp_path)
    text = (tmp_path / "community_summary.tsv").read_text()
    assert text.rstrip("\n").endswith("NA")


def test_run_with_reference_sets(chain_loops, references):
    result = LoopCommunityAnalysis().run(chain_loops, references)
    assert len(result.summary) == 1
    assert len(result.comparisons) == 2
    # a single community leaves one comparison group empty
    assert result.comparisons["p_value"].isna().all()


def test_missing_reference_set(chain_loops, references):
    with pytest.raises(KeyError):
        LoopCommunityAnalysis().run(chain_loops, {"promoter": references["promoter"]})


def test_standard_chromosome_filter(references):
    loops = make_loops(
        [
            ("chr1", 100, 200, "chr1", 10_000, 10_100, "gained"),
            ("chr1_random", 150, 250, "chr1", 5_000, 5_100, "static"),
        ]
    )
    analysis = LoopCommunityAnalysis({"loops": {"standard_chromosomes_only": True}})
    result = analysis.run(loops, references)
    assert len(result.loops) == 1
    assert result.graph.is_empty


def test_invalid_config():
    with pytest.raises(ValueError):
        LoopCommunityAnalysis({"communities": {"count_mode": "per_community"}})
    with pytest.raises(ValueError):
        LoopCommunityAnalysis(42)


def test_config_file(tmp_path, loops_file, promoters_file, enhancers_file):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"output_dir: {tmp_path / 'out'}\ncommunities:\n  count_mode: per_anchor\n"
    )
    analysis = LoopCommunityAnalysis(config_path)
    analysis.run_from_files(loops_file, promoters_file, enhancers_file)
    assert (tmp_path / "out" / "community_summary.tsv").exists()


def test_reference_set_preparation(promoters_file, enhancers_file):
    analysis = LoopCommunityAnalysis()
    references = analysis.prepare_references(
        load_intervals(promoters_file), load_intervals(enhancers_file)
    )
    assert isinstance(references["enhancer"], IntervalSet)
    assert len(references["enhancer"]) == 2


def test_promoters_from_gene_file(loops_file, genes_file, enhancers_file):
    result = LoopCommunityAnalysis().run_from_files(
        loops_file, None, enhancers_file, genes_file=genes_file
    )
    row = result.summary.iloc[0]
    assert row["promoter_count"] == 3
    # e3 sits inside the g1 promoter and is dropped
    assert row["enhancer_count"] == 3


def test_gene_promoter_window_from_config(loops_file, genes_file, enhancers_file):
    analysis = LoopCommunityAnalysis({"annotation": {"promoter_upstream": 10}})
    result = analysis.run_from_files(loops_file, None, enhancers_file, genes_file=genes_file)
    row = result.summary.iloc[0]
    assert row["promoter_count"] == 1
    assert row["enhancer_count"] == 5


def test_promoter_source_must_be_unique(loops_file, promoters_file, genes_file, enhancers_file):
    analysis = LoopCommunityAnalysis()
    with pytest.raises(ValueError):
        analysis.run_from_files(loops_file, promoters_file, enhancers_file, genes_file=genes_file)
    with pytest.raises(ValueError):
        analysis.run_from_files(loops_file, None, enhancers_file)
