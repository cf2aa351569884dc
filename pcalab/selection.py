"""Choosing how many components to keep, and projecting onto them."""
import logging
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from pcalab.constants import DEFAULT_TOL, KAISER_CUTOFF, KAISER_TOL, SELECTION_POLICIES
from pcalab.decompose import decompose
from pcalab.errors import InvalidThresholdError, NoComponentsSelectedError
from pcalab.standardize import destandardize, standardize
from pcalab.stats_helpers import correlation_matrix

logger = logging.getLogger(__name__)

# Cumulative sums of ratios can land a hair under an exact threshold.
_CUMULATIVE_SLACK = 1e-12


class Selection(NamedTuple):
    n_components: int
    policy: str
    threshold: Optional[float]
    components: pd.DataFrame   # (n_variables, k)
    scores: pd.DataFrame       # (n_observations, k)
    cumulative_ratio: float


def _check_threshold(threshold):
    if threshold is None:
        raise InvalidThresholdError("The cumulative policy needs a threshold", threshold=threshold)
    if not (0 < threshold <= 1):
        raise InvalidThresholdError(
            f"Threshold must lie in (0, 1], got {threshold!r}", threshold=threshold
        )


def n_components_for_threshold(ratios, threshold):
    """Smallest k whose leading explained-variance ratios sum to ``threshold``."""
    _check_threshold(threshold)
    cumulative = np.cumsum(np.asarray(ratios, dtype=float))
    reached = np.nonzero(cumulative >= threshold - _CUMULATIVE_SLACK)[0]
    if len(reached) == 0:
        raise NoComponentsSelectedError(
            f"Cumulative explained variance peaks at {cumulative[-1]:.4f}, "
            f"below threshold {threshold}",
            policy="cumulative",
        )
    return int(reached[0]) + 1


def n_components_kaiser(eigenvalues, cutoff=KAISER_CUTOFF, tol=KAISER_TOL):
    """Number of leading eigenvalues above ``cutoff`` (Kaiser-Guttman).

    An eigenvalue must clear ``cutoff`` by more than ``tol`` to count. A lone
    standardized variable has an eigenvalue of 1 up to rounding, and it is
    never kept.
    """
    eigenvalues = np.asarray(eigenvalues, dtype=float)
    below = np.nonzero(eigenvalues <= cutoff + tol)[0]
    return int(below[0]) if len(below) else len(eigenvalues)


def project(standardized, components):
    """Scores of each observation on the given component columns."""
    data = standardized.data
    scores = data.values @ components.loc[data.columns].values
    return pd.DataFrame(scores, index=data.index, columns=components.columns)


def select_components(decomposition, standardized, policy, threshold=None):
    """Keep a leading prefix of components and project the data onto it.

    ``policy`` is required and must be one of:

    * ``"cumulative"`` -- smallest k whose cumulative explained-variance
      ratio reaches ``threshold`` (in (0, 1]).
    * ``"kaiser"`` -- every component whose eigenvalue exceeds 1.0;
      ``threshold`` is ignored.
    """
    if policy == "cumulative":
        k = n_components_for_threshold(decomposition.explained_variance_ratio, threshold)
    elif policy == "kaiser":
        k = n_components_kaiser(decomposition.explained_variance)
        threshold = None
    else:
        raise InvalidThresholdError(
            f"Unknown selection policy {policy!r}; expected one of {SELECTION_POLICIES}",
            threshold=threshold,
        )
    if k == 0:
        raise NoComponentsSelectedError(
            f"Policy {policy!r} selected no components "
            f"(largest eigenvalue {decomposition.explained_variance.iloc[0]:.4f})",
            policy=policy,
        )

    components = decomposition.components.iloc[:, :k].copy()
    cumulative = float(decomposition.explained_variance_ratio.iloc[:k].sum())
    logger.info("Selected %d of %d components (%s), %.1f%% of variance",
                k, decomposition.components.shape[1], policy, 100 * cumulative)
    return Selection(
        n_components=k,
        policy=policy,
        threshold=threshold,
        components=components,
        scores=project(standardized, components),
        cumulative_ratio=cumulative,
    )


def reconstruct(selection, standardized, original_units=False):
    """Approximate the data from the kept components (scores times loadings)."""
    approx = selection.scores.values @ selection.components.values.T
    frame = pd.DataFrame(approx, index=selection.scores.index, columns=selection.components.index)
    if original_units:
        return destandardize(frame, standardized)
    return frame


def reconstruction_error(selection, standardized):
    """Mean squared round-trip error, in standardized units."""
    approx = reconstruct(selection, standardized)
    diff = standardized.data.values - approx[standardized.data.columns].values
    return float(np.mean(diff ** 2))


def reproject(selection, tol=DEFAULT_TOL):
    """Run the kept scores back through standardize and decompose.

    A sanity check rather than a pipeline step: scores from PCA should be
    uncorrelated, so their correlation matrix should be close to the identity
    and the second decomposition should find k components of equal variance.
    """
    restandardized = standardize(selection.scores)
    second = decompose(restandardized, tol=tol)
    corr = correlation_matrix(selection.scores)
    off_diag = corr.values[~np.eye(len(corr), dtype=bool)]
    return {
        "correlation": corr,
        "max_abs_correlation": float(np.abs(off_diag).max()) if off_diag.size else 0.0,
        "decomposition": second,
    }
