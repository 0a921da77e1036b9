"""
Core loopflow analysis orchestrator
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import pandas as pd

from .config import Config, load_config, validate_config
from .genomics import (IntervalSet, LoopAnnotations, LoopSet, annotate_loops,
                       filter_standard_chromosomes, load_genes, load_intervals,
                       load_loops, prepare_reference_sets, promoters_from_genes)
from .network import (CommunityPartition, OverlapGraph, build_overlap_graph,
                      extract_communities, loop_table, mean_ratio,
                      summarize_communities)
from .stats import compare_all
from .utils import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class CommunityAnalysisResult:
    """Everything derived by one analysis run"""

    loops: LoopSet
    annotations: LoopAnnotations
    graph: OverlapGraph
    partition: CommunityPartition
    summary: pd.DataFrame
    comparisons: pd.DataFrame
    execution_times: Dict[str, float] = field(default_factory=dict)

    @property
    def mean_enhancer_to_promoter_ratio(self) -> Optional[float]:
        return mean_ratio(self.summary)

    def loop_table(self) -> pd.DataFrame:
        return loop_table(self.loops, self.annotations, self.partition)

    def save(self, output_dir: Union[str, Path]) -> Dict[str, Path]:
        """Write all result tables as TSV files into ``output_dir``"""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        tables = {
            "loop_annotations": self.loop_table(),
            "edges": self.graph.to_dataframe(),
            "communities": self.partition.to_dataframe(),
            "community_summary": self.summary,
            "comparisons": self.comparisons,
        }

        written = {}
        for name, table in tables.items():
            path = output_path / f"{name}.tsv"
            table.to_csv(path, sep="\t", index=False, na_rep="NA")
            written[name] = path
            logger.debug(f"Wrote {len(table)} rows to {path}")

        logger.info(f"Results saved to {output_path}")
        return written


class LoopCommunityAnalysis:
    """
    Orchestrates annotation, overlap graph, communities and statistics

    Args:
        config: Configuration file path, Config object, or config dict
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        configure_logging: Install loopflow's console/file handlers
    """

    def __init__(
        self,
        config: Union[str, Path, Config, Dict[str, Any], None] = None,
        log_level: str = "INFO",
        log_file: Optional[Union[str, Path]] = None,
        configure_logging: bool = False,
    ):
        if configure_logging:
            setup_logging(level=log_level, log_file=log_file)

        if config is None:
            self.config = Config()
        elif isinstance(config, (str, Path)):
            self.config = load_config(config)
        elif isinstance(config, dict):
            self.config = Config(**config)
        elif isinstance(config, Config):
            self.config = config
        else:
            raise ValueError(
                "Invalid config type. Expected str, Path, dict, or Config object"
            )

        issues = validate_config(self.config)
        if issues:
            for issue in issues:
                logger.error(f"  - {issue}")
            raise ValueError(f"Invalid configuration: {'; '.join(issues)}")

        self.execution_times: Dict[str, float] = {}

    def _timed(self, step: str, func, *args, **kwargs):
        start = time.time()
        result = func(*args, **kwargs)
        self.execution_times[step] = time.time() - start
        logger.info(f"Step {step} completed in {self.execution_times[step]:.2f} seconds")
        return result

    def prepare_references(
        self, promoters: IntervalSet, enhancers: IntervalSet
    ) -> Dict[str, IntervalSet]:
        params = self.config.annotation
        return prepare_reference_sets(
            promoters,
            enhancers,
            promoter_tag=params["promoter_tag"],
            enhancer_tag=params["enhancer_tag"],
            exclude_promoter_enhancers=params["exclude_promoter_enhancers"],
        )

    def promoters_from_gene_file(self, genes_file: Union[str, Path]) -> IntervalSet:
        """Promoter windows around the TSS of every gene, sized by the annotation config"""
        params = self.config.annotation
        promoters = promoters_from_genes(
            load_genes(genes_file),
            upstream=params["promoter_upstream"],
            downstream=params["promoter_downstream"],
        )
        logger.info(
            f"Built {len(promoters)} promoters ({params['promoter_upstream']} bp upstream, "
            f"{params['promoter_downstream']} bp downstream of the TSS)"
        )
        return promoters

    def run(
        self,
        loops: LoopSet,
        references: Mapping[str, IntervalSet],
    ) -> CommunityAnalysisResult:
        """
        Run tagging, graph building, community extraction and aggregation

        Args:
            loops: Loops to analyse
            references: Tag name -> finalized reference intervals

        Returns:
            CommunityAnalysisResult
        """
        self.execution_times = {}
        start_time = time.time()

        loops_params = self.config.loops
        annotation_params = self.config.annotation
        community_params = self.config.communities
        stats_params = self.config.statistics

        for tag in (annotation_params["promoter_tag"], annotation_params["enhancer_tag"]):
            if tag not in references:
                raise KeyError(f"Missing reference interval set for tag '{tag}'")

        if loops_params["standard_chromosomes_only"]:
            loops = loops.standard_chromosomes_only()
            references = {
                name: filter_standard_chromosomes(ref) for name, ref in references.items()
            }

        logger.info(f"Analysing {len(loops)} loops: {dict(loops.status_counts())}")

        annotations = self._timed("annotation", annotate_loops, loops, references)
        graph = self._timed("overlap_graph", build_overlap_graph, loops)
        partition = self._timed(
            "communities",
            extract_communities,
            graph,
            include_singletons=community_params["include_singletons"],
        )
        summary = self._timed(
            "aggregation",
            summarize_communities,
            partition,
            loops,
            annotations,
            distinguished_status=community_params["distinguished_status"],
            enhancer_tag=annotation_params["enhancer_tag"],
            promoter_tag=annotation_params["promoter_tag"],
            count_mode=community_params["count_mode"],
        )
        comparisons = self._timed(
            "comparisons",
            compare_all,
            summary,
            stats_params["compare_columns"],
            method=stats_params["multiple_testing_correction"],
            alpha=stats_params["alpha"],
        )

        self.execution_times["total"] = time.time() - start_time

        return CommunityAnalysisResult(
            loops=loops,
            annotations=annotations,
            graph=graph,
            partition=partition,
            summary=summary,
            comparisons=comparisons,
            execution_times=dict(self.execution_times),
        )

    def run_from_files(
        self,
        loops_file: Union[str, Path],
        promoters_file: Optional[Union[str, Path]],
        enhancers_file: Union[str, Path],
        output_dir: Optional[Union[str, Path]] = None,
        genes_file: Optional[Union[str, Path]] = None,
    ) -> CommunityAnalysisResult:
        """
        Load the inputs, run the analysis and save the tables if an output directory is known

        Promoters come either from a BED file or, when ``promoters_file`` is
        None, from the genes in ``genes_file``.
        """
        if (promoters_file is None) == (genes_file is None):
            raise ValueError("Give exactly one of promoters_file and genes_file")

        loops = load_loops(loops_file, status_column=self.config.loops["status_column"])
        if promoters_file is not None:
            promoters = load_intervals(promoters_file)
        else:
            promoters = self.promoters_from_gene_file(genes_file)
        references = self.prepare_references(promoters, load_intervals(enhancers_file))

        result = self.run(loops, references)

        output_dir = output_dir or self.config.output_dir
        if output_dir:
            result.save(output_dir)

        return result
