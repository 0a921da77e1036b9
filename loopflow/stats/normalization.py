"""
Quantile normalization of sample columns
"""

import numpy as np
import pandas as pd


def quantile_normalize(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Give every column the same distribution

    The reference distribution is the row-wise mean of the column-sorted
    values. Each value is replaced by the reference value at its rank; tied
    values share the reference interpolated at their average rank.

    Args:
        frame: Features x samples table without missing values

    Returns:
        DataFrame with the same index and columns
    """
    if frame.isna().to_numpy().any():
        raise ValueError("quantile_normalize does not accept missing values")

    if frame.empty:
        return frame.astype(float)

    reference = np.sort(frame.to_numpy(dtype=float), axis=0).mean(axis=1)
    positions = np.arange(1, len(reference) + 1)

    ranks = frame.rank(method="average")
    normalized = {
        column: np.interp(ranks[column].to_numpy(), positions, reference)
        for column in frame.columns
    }
    return pd.DataFrame(normalized, index=frame.index, columns=frame.columns)
