"""
Statistics module for loopflow

- Multiple-testing correction (Bonferroni, Benjamini-Hochberg, ...)
- Quantile normalization
- Community group comparisons
"""

from .comparison import compare_all, compare_communities, describe_communities
from .multiple_testing import (METHOD_ALIASES, adjust_pvalues,
                               count_discoveries, resolve_method)
from .normalization import quantile_normalize

__all__ = [
    "adjust_pvalues",
    "count_discoveries",
    "resolve_method",
    "METHOD_ALIASES",
    "quantile_normalize",
    "compare_communities",
    "compare_all",
    "describe_communities",
]
