"""Column-wise z-scoring with sample statistics."""
import logging
from typing import NamedTuple

import numpy as np
import pandas as pd

from pcalab.constants import DEFAULT_TOL
from pcalab.errors import DataFormatError, DegenerateColumnError, EmptyDatasetError

logger = logging.getLogger(__name__)


class Standardized(NamedTuple):
    data: pd.DataFrame
    mean: pd.Series
    std: pd.Series


def standardize(matrix, tol=DEFAULT_TOL):
    """Center each column on its mean and divide by its sample standard deviation.

    Returns the scaled frame together with the (mean, std) used, so the
    transform can be undone. The input frame is left untouched.

    A column is degenerate when all its values are equal, or when its standard
    deviation is at most ``tol`` times the magnitude of its mean (the rounding
    residue of a constant that is not exact in binary, such as 0.1).
    """
    matrix = pd.DataFrame(matrix)
    if len(matrix) < 2:
        raise EmptyDatasetError(
            f"Standardizing needs at least 2 rows, got {len(matrix)}",
            n_rows=len(matrix), n_columns=matrix.shape[1],
        )
    missing = matrix.isna().sum()
    if missing.any():
        col = missing[missing > 0].index[0]
        raise DataFormatError(
            f"Column {col!r} has {int(missing[col])} missing value(s); "
            "drop or impute them before standardizing",
            column=col,
        )
    mean = matrix.mean()
    std = matrix.std(ddof=1)
    for col, s in std.items():
        if not np.isfinite(s) or matrix[col].nunique() <= 1 or s <= tol * abs(mean[col]):
            raise DegenerateColumnError(col, s)
    data = (matrix - mean) / std
    logger.debug("Standardized %d x %d matrix", *data.shape)
    return Standardized(data, mean, std)


def destandardize(data, standardized):
    """Map standardized values back into the original units."""
    std = standardized.std[data.columns]
    mean = standardized.mean[data.columns]
    return data * std + mean
