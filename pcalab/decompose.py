"""Principal components of a standardized matrix via the SVD.

The decomposition works on the data matrix directly rather than on an
explicitly formed covariance matrix: ``Z = U S V^T`` gives the principal
directions as the columns of ``V`` and the component variances as
``s_i^2 / (m - 1)``, without squaring the condition number of ``Z``.

Each direction is only defined up to sign. ``svd_flip`` fixes the sign so the
largest-magnitude loading of every component is positive, which makes the
output reproducible, but any column of the basis may be negated (together with
the matching score column) without changing a single variance.
"""
import logging
import warnings
from typing import NamedTuple

import numpy as np
import pandas as pd
from scipy import linalg
from sklearn.utils.extmath import svd_flip

from pcalab.constants import DEFAULT_TOL
from pcalab.errors import RankDeficiencyWarning

logger = logging.getLogger(__name__)


class Decomposition(NamedTuple):
    components: pd.DataFrame           # (n_variables, n_variables), columns PC1..PCn
    explained_variance: pd.Series      # eigenvalues, descending
    explained_variance_ratio: pd.Series
    singular_values: np.ndarray
    rank: int


def component_labels(n):
    return [f"PC{i + 1}" for i in range(n)]


def decompose(standardized, tol=DEFAULT_TOL):
    """Compute the ranked orthonormal component basis of a standardized matrix.

    Args:
        standardized: ``Standardized`` tuple (or an already centered frame).
        tol: singular values at or below ``tol * s_max`` count as zero when
            estimating rank.

    Returns:
        Decomposition whose ``components`` is a full n x n orthonormal frame
        (index = variable names). Directions the data does not span are
        completed from the null space and carry zero variance.

    Warns:
        RankDeficiencyWarning: rank is below the number of variables.
    """
    data = getattr(standardized, "data", standardized)
    Z = np.asarray(data, dtype=float)
    m, n = Z.shape

    U, S, Vt = linalg.svd(Z, full_matrices=False, lapack_driver="gesdd")
    U, Vt = svd_flip(U, Vt, u_based_decision=False)

    if Vt.shape[0] < n:
        # Fewer rows than variables: complete the basis.
        complement = linalg.null_space(Vt)
        Vt = np.vstack([Vt, complement.T])
        S = np.concatenate([S, np.zeros(n - len(S))])

    rank = int(np.sum(S > tol * S[0])) if S[0] > 0 else 0
    ss = S ** 2
    eigenvalues = ss / max(m - 1, 1)
    total = ss.sum()
    ratios = ss / total if total > 0 else np.zeros_like(ss)

    labels = component_labels(n)
    components = pd.DataFrame(Vt.T, index=list(data.columns) if hasattr(data, "columns") else None,
                              columns=labels)
    if rank < n:
        logger.warning("Rank %d below %d variables", rank, n)
        warnings.warn(RankDeficiencyWarning(rank, n), stacklevel=2)
    logger.info("Decomposed %d x %d matrix, rank %d, PC1 explains %.1f%%",
                m, n, rank, 100 * ratios[0])

    return Decomposition(
        components=components,
        explained_variance=pd.Series(eigenvalues, index=labels, name="explained_variance"),
        explained_variance_ratio=pd.Series(ratios, index=labels, name="explained_variance_ratio"),
        singular_values=S,
        rank=rank,
    )
