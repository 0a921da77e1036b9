"""
Descriptive comparison of communities with and without the distinguished status
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import mannwhitneyu

from ..utils import get_logger
from .multiple_testing import adjust_pvalues

logger = get_logger(__name__)


def compare_communities(
    summary: pd.DataFrame,
    column: str,
    by: str = "has_distinguished_status",
) -> Dict[str, Any]:
    """
    Two-sided Mann-Whitney U test of ``column`` between the groups of ``by``

    Communities where ``column`` is missing are dropped first.

    Returns:
        Record with group sizes, means, medians, the U statistic and p-value
        (NaN when a group is empty)
    """
    if column not in summary.columns:
        raise KeyError(f"Unknown summary column: {column}")

    values = summary[[by, column]].dropna(subset=[column])
    group1 = values.loc[values[by].astype(bool), column].astype(float).to_numpy()
    group2 = values.loc[~values[by].astype(bool), column].astype(float).to_numpy()

    result = {
        "column": column,
        "group_by": by,
        "n1": len(group1),
        "n2": len(group2),
        "mean1": np.mean(group1) if len(group1) else np.nan,
        "mean2": np.mean(group2) if len(group2) else np.nan,
        "median1": np.median(group1) if len(group1) else np.nan,
        "median2": np.median(group2) if len(group2) else np.nan,
        "u_statistic": np.nan,
        "p_value": np.nan,
    }

    if len(group1) and len(group2):
        u_stat, p_val = mannwhitneyu(group1, group2, alternative="two-sided")
        result["u_statistic"] = float(u_stat)
        result["p_value"] = float(p_val)
    else:
        logger.warning(f"Cannot compare {column}: one of the '{by}' groups is empty")

    return result


def compare_all(
    summary: pd.DataFrame,
    columns: Sequence[str],
    by: str = "has_distinguished_status",
    method: str = "fdr_bh",
    alpha: float = 0.05,
) -> pd.DataFrame:
    """Run ``compare_communities`` for each column and correct the p-values together"""
    records: List[Dict[str, Any]] = [
        compare_communities(summary, column, by) for column in columns
    ]
    results = pd.DataFrame(records)
    if results.empty:
        return results

    reject, adjusted = adjust_pvalues(results["p_value"].to_numpy(), method, alpha)
    results["p_adjusted"] = adjusted
    results["significant"] = reject

    for record in results.itertuples():
        logger.info(
            f"{record.column} by {by}: n={record.n1}/{record.n2}, "
            f"median {record.median1:.3g} vs {record.median2:.3g}, "
            f"p = {record.p_value:.4g}, p_adj = {record.p_adjusted:.4g}"
        )

    return results


def describe_communities(
    summary: pd.DataFrame,
    by: str = "has_distinguished_status",
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Count, mean and median of each column per group; missing values are skipped"""
    if columns is None:
        columns = ["size", "enhancer_count", "promoter_count", "enhancer_to_promoter_ratio"]

    numeric = summary[list(columns)].astype(float)
    numeric[by] = summary[by]
    return numeric.groupby(by).agg(["count", "mean", "median"])
