"""
Per-community aggregation of loop status and anchor annotations

This module turns a community partition into a table with one row per
community: its size, whether any loop carries the distinguished status, the
number of enhancer- and promoter-tagged anchors, and their ratio. A ratio
without promoters is ``pd.NA`` (nullable ``Float64``), so pandas reductions
such as ``mean`` skip it instead of treating it as zero.
"""

from typing import Optional

import numpy as np
import pandas as pd

from ..config import COUNT_MODES
from ..errors import InconsistentAnchorPairing
from ..genomics import LoopAnnotations, LoopSet
from ..utils import get_logger
from .communities import CommunityPartition

logger = get_logger(__name__)

SUMMARY_COLUMNS = [
    "community_id",
    "size",
    "n_distinguished",
    "has_distinguished_status",
    "enhancer_count",
    "promoter_count",
    "enhancer_to_promoter_ratio",
]


def _check_alignment(
    partition: CommunityPartition, loops: LoopSet, annotations: LoopAnnotations
) -> None:
    if not (partition.n_loops == len(loops) == len(annotations)):
        raise InconsistentAnchorPairing(
            f"partition covers {partition.n_loops} loops, loop set has {len(loops)}, "
            f"annotations have {len(annotations)}"
        )


def _per_loop_counts(
    membership: np.ndarray, per_loop: np.ndarray, n_communities: int
) -> np.ndarray:
    assigned = membership >= 0
    return np.bincount(
        membership[assigned], weights=per_loop[assigned], minlength=n_communities
    ).astype(np.int64)


def _per_anchor_counts(
    membership: np.ndarray,
    annotations: LoopAnnotations,
    tag: str,
    n_communities: int,
) -> np.ndarray:
    """Count each distinct anchor interval of a community once"""
    frames = []
    for anchors in (annotations.anchor1, annotations.anchor2):
        frames.append(
            pd.DataFrame(
                {
                    "community_id": membership,
                    "chrom": anchors.intervals.chroms,
                    "start": anchors.intervals.starts,
                    "end": anchors.intervals.ends,
                    "tagged": anchors.tag(tag),
                }
            )
        )
    anchors_df = pd.concat(frames, ignore_index=True)
    anchors_df = anchors_df[anchors_df["community_id"] >= 0]
    distinct = anchors_df.drop_duplicates(subset=["community_id", "chrom", "start", "end"])

    counts = distinct.groupby("community_id")["tagged"].sum()
    return (
        counts.reindex(range(n_communities), fill_value=0).to_numpy().astype(np.int64)
    )


def enhancer_promoter_ratio(
    enhancer_count: pd.Series, promoter_count: pd.Series
) -> pd.Series:
    """``enhancer / promoter`` as nullable Float64, missing wherever promoter is 0"""
    enhancers = enhancer_count.astype("Float64")
    promoters = promoter_count.astype("Float64")
    return (enhancers / promoters).mask(promoters == 0, pd.NA)


def summarize_communities(
    partition: CommunityPartition,
    loops: LoopSet,
    annotations: LoopAnnotations,
    distinguished_status: str = "gained",
    enhancer_tag: str = "enhancer",
    promoter_tag: str = "promoter",
    count_mode: str = "per_loop",
) -> pd.DataFrame:
    """
    Aggregate loop status and anchor tags per community

    Args:
        partition: Communities of loop indices
        loops: Loops the partition was computed from
        annotations: Promoter / enhancer tags of both anchors of every loop
        distinguished_status: Loop status that marks a community of interest
        enhancer_tag: Tag name of enhancer overlaps
        promoter_tag: Tag name of promoter overlaps
        count_mode: ``"per_loop"`` sums ``anchor1 + anchor2`` tags over the
            community's loops, so an anchor shared by several loops is counted
            once per loop; ``"per_anchor"`` counts each distinct anchor once

    Returns:
        DataFrame with one row per community (see ``SUMMARY_COLUMNS``)

    Raises:
        InconsistentAnchorPairing: if partition, loops and annotations disagree
            on the number of loops
    """
    if count_mode not in COUNT_MODES:
        raise ValueError(f"count_mode must be one of {list(COUNT_MODES)}, got {count_mode!r}")

    _check_alignment(partition, loops, annotations)

    n_communities = len(partition)
    membership = partition.membership

    distinguished = (loops.status == distinguished_status).astype(np.int64)
    n_distinguished = _per_loop_counts(membership, distinguished, n_communities)

    if count_mode == "per_loop":
        enhancer_count = _per_loop_counts(
            membership, annotations.tag_counts(enhancer_tag), n_communities
        )
        promoter_count = _per_loop_counts(
            membership, annotations.tag_counts(promoter_tag), n_communities
        )
    else:
        enhancer_count = _per_anchor_counts(
            membership, annotations, enhancer_tag, n_communities
        )
        promoter_count = _per_anchor_counts(
            membership, annotations, promoter_tag, n_communities
        )

    summary = pd.DataFrame(
        {
            "community_id": np.arange(n_communities, dtype=np.int64),
            "size": partition.sizes,
            "n_distinguished": n_distinguished,
            "has_distinguished_status": n_distinguished > 0,
            "enhancer_count": enhancer_count,
            "promoter_count": promoter_count,
        }
    )
    summary["enhancer_to_promoter_ratio"] = enhancer_promoter_ratio(
        summary["enhancer_count"], summary["promoter_count"]
    )

    logger.info(
        f"Summarised {n_communities} communities ({count_mode}); "
        f"{int(summary['has_distinguished_status'].sum())} contain "
        f"'{distinguished_status}' loops, "
        f"{int(summary['enhancer_to_promoter_ratio'].isna().sum())} have no promoter anchor"
    )

    return summary[SUMMARY_COLUMNS]


def mean_ratio(
    summary: pd.DataFrame, column: str = "enhancer_to_promoter_ratio"
) -> Optional[float]:
    """Mean of ``column`` over communities that have a value; None if none do"""
    values = summary[column].dropna()
    if values.empty:
        return None
    return float(values.astype(float).mean())


def loop_table(
    loops: LoopSet,
    annotations: LoopAnnotations,
    partition: CommunityPartition,
) -> pd.DataFrame:
    """Per-loop view: coordinates, status, anchor tags and community id (-1 if none)"""
    _check_alignment(partition, loops, annotations)

    table = loops.to_dataframe()
    for anchor_no, anchors in ((1, annotations.anchor1), (2, annotations.anchor2)):
        for name, values in anchors.tags.items():
            table[f"{name}{anchor_no}"] = values
    table["community_id"] = partition.membership
    return table
