"""
Multiple-hypothesis-testing correction
"""

from typing import Sequence, Tuple

import numpy as np
from statsmodels.stats.multitest import multipletests

from ..utils import get_logger

logger = get_logger(__name__)

# R's p.adjust names -> statsmodels method names
METHOD_ALIASES = {
    "BH": "fdr_bh",
    "fdr": "fdr_bh",
    "BY": "fdr_by",
    "hochberg": "simes-hochberg",
    "bonferroni": "bonferroni",
    "holm": "holm",
    "hommel": "hommel",
}


def resolve_method(method: str) -> str:
    return METHOD_ALIASES.get(method, method)


def _bonferroni(pvalues: np.ndarray) -> np.ndarray:
    return np.minimum(pvalues * len(pvalues), 1.0)


def _benjamini_hochberg(pvalues: np.ndarray) -> np.ndarray:
    """Step-up adjustment: running minimum of ``p * m / rank`` from the largest p down"""
    m = len(pvalues)
    order = np.argsort(pvalues, kind="mergesort")
    scaled = pvalues[order] * m / np.arange(1, m + 1)
    scaled = np.minimum.accumulate(scaled[::-1])[::-1]

    adjusted = np.empty(m)
    adjusted[order] = np.minimum(scaled, 1.0)
    return adjusted


# closed-form corrections computed here; everything else goes to statsmodels
NATIVE_METHODS = {
    "bonferroni": _bonferroni,
    "fdr_bh": _benjamini_hochberg,
}


def adjust_pvalues(
    pvalues: Sequence[float], method: str = "fdr_bh", alpha: float = 0.05
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Adjust p-values for multiple testing

    Missing p-values are left out of the correction (they do not count towards
    the number of tests) and come back as NaN / not rejected.

    Args:
        pvalues: Raw p-values
        method: statsmodels method name (``"bonferroni"``, ``"fdr_bh"``, ...)
            or an R ``p.adjust`` name (``"BH"``, ``"BY"``, ``"holm"``, ...)
        alpha: Family-wise error rate / false discovery rate

    Returns:
        ``(reject, adjusted)`` arrays aligned with ``pvalues``
    """
    pvalues = np.asarray(pvalues, dtype=float)
    if np.any((pvalues < 0) | (pvalues > 1)):
        raise ValueError("p-values must lie in [0, 1]")

    adjusted = np.full(pvalues.shape, np.nan)
    reject = np.zeros(pvalues.shape, dtype=bool)

    present = ~np.isnan(pvalues)
    if not present.any():
        return reject, adjusted

    resolved = resolve_method(method)
    if resolved in NATIVE_METHODS:
        adjusted_present = NATIVE_METHODS[resolved](pvalues[present])
        reject_present = adjusted_present <= alpha
    else:
        reject_present, adjusted_present, _, _ = multipletests(
            pvalues[present], alpha=alpha, method=resolved
        )
    adjusted[present] = adjusted_present
    reject[present] = reject_present

    logger.debug(
        f"{resolved}: {int(reject.sum())}/{int(present.sum())} tests "
        f"significant at alpha={alpha}"
    )
    return reject, adjusted


def count_discoveries(
    pvalues: Sequence[float], alpha: float = 0.05, method: str = "fdr_bh"
) -> int:
    """Number of hypotheses rejected after correction"""
    reject, _ = adjust_pvalues(pvalues, method=method, alpha=alpha)
    return int(reject.sum())
