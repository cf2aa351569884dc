"""
Tests for component selection, projection and reconstruction.
"""

import numpy as np
import pandas as pd
import pytest

from pcalab.decompose import Decomposition, decompose
from pcalab.errors import InvalidThresholdError, NoComponentsSelectedError
from pcalab.selection import (
    n_components_for_threshold, n_components_kaiser, reconstruct,
    reconstruction_error, reproject, select_components,
)
from pcalab.standardize import standardize


def _fixed_decomposition(eigenvalues):
    """Decomposition with an identity basis and the given eigenvalues."""
    n = len(eigenvalues)
    labels = [f"PC{i + 1}" for i in range(n)]
    ev = pd.Series(eigenvalues, index=labels, dtype=float)
    return Decomposition(
        components=pd.DataFrame(np.eye(n), index=list("abcd")[:n], columns=labels),
        explained_variance=ev,
        explained_variance_ratio=ev / ev.sum(),
        singular_values=np.sqrt(ev.values),
        rank=n,
    )


@pytest.fixture
def four_column_standardized():
    rng = np.random.RandomState(11)
    return standardize(pd.DataFrame(rng.normal(size=(20, 4)), columns=list("abcd")))


class TestThresholdRule:
    """Cumulative explained-variance threshold."""

    def test_picks_first_prefix_reaching_threshold(self):
        """0.45 + 0.30 = 0.75 >= 0.70, so exactly two components."""
        assert n_components_for_threshold([0.45, 0.30, 0.15, 0.10], 0.70) == 2

    def test_exact_boundaries(self):
        ratios = [0.45, 0.30, 0.15, 0.10]

        assert n_components_for_threshold(ratios, 0.45) == 1
        assert n_components_for_threshold(ratios, 0.90) == 3
        assert n_components_for_threshold(ratios, 1.0) == 4

    @pytest.mark.parametrize("threshold", [0, -0.2, 1.01, 5, None])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(InvalidThresholdError) as info:
            n_components_for_threshold([0.5, 0.5], threshold)
        assert info.value.threshold == threshold

    def test_threshold_never_reached(self):
        """Ratios that do not add up to the threshold select nothing."""
        with pytest.raises(NoComponentsSelectedError) as info:
            n_components_for_threshold([0.2, 0.3], 0.9)
        assert info.value.policy == "cumulative"

    def test_select_with_threshold(self, four_column_standardized):
        dec = _fixed_decomposition([1.8, 1.2, 0.6, 0.4])
        sel = select_components(dec, four_column_standardized, "cumulative", 0.70)

        assert sel.n_components == 2
        assert sel.cumulative_ratio == pytest.approx(0.75)
        assert list(sel.scores.columns) == ["PC1", "PC2"]
        assert sel.scores.shape == (20, 2)
        assert sel.threshold == 0.70


class TestKaiserRule:
    """Eigenvalue-above-one rule."""

    def test_counts_eigenvalues_above_one(self):
        assert n_components_kaiser([2.5, 1.2, 0.9, 0.4]) == 2

    def test_exactly_one_is_not_kept(self):
        assert n_components_kaiser([1.5, 1.0, 0.5]) == 1

    def test_rounding_noise_above_one_is_not_kept(self):
        assert n_components_kaiser([1.0 + 1e-13, 0.5]) == 0
        assert n_components_kaiser([1.0 + 1e-6, 0.5]) == 1

    def test_uncorrelated_columns_keep_nothing(self):
        """Standardized uncorrelated columns all have eigenvalue 1."""
        df = pd.DataFrame({"x": [1.0, -1.0, 0.0, 0.0], "y": [0.0, 0.0, 1.0, -1.0]})
        z = standardize(df)

        with pytest.raises(NoComponentsSelectedError):
            select_components(decompose(z), z, "kaiser")

    def test_select_with_kaiser(self, four_column_standardized):
        dec = _fixed_decomposition([2.5, 1.2, 0.2, 0.1])
        sel = select_components(dec, four_column_standardized, "kaiser", threshold=0.99)

        assert sel.n_components == 2
        assert sel.policy == "kaiser"
        assert sel.threshold is None

    def test_nothing_above_one_raises(self, four_column_standardized):
        dec = _fixed_decomposition([0.9, 0.8, 0.7, 0.6])

        with pytest.raises(NoComponentsSelectedError) as info:
            select_components(dec, four_column_standardized, "kaiser")
        assert info.value.policy == "kaiser"

    def test_unknown_policy(self, four_column_standardized):
        dec = _fixed_decomposition([2.0, 1.0, 0.5, 0.5])

        with pytest.raises(InvalidThresholdError):
            select_components(dec, four_column_standardized, "elbow", 0.9)


class TestProjection:
    """Scores, reconstruction, and the reprojection check."""

    def test_scores_keyed_by_identifier(self, random_matrix):
        z = standardize(random_matrix)
        sel = select_components(decompose(z), z, "cumulative", 0.8)

        assert sel.scores.index.equals(random_matrix.index)
        np.testing.assert_allclose(
            sel.scores.values, z.data.values @ sel.components.values, atol=1e-12
        )

    def test_error_shrinks_with_more_components(self, random_matrix):
        z = standardize(random_matrix)
        dec = decompose(z)
        errors = [
            reconstruction_error(select_components(dec, z, "cumulative", t), z)
            for t in (0.3, 0.6, 0.9)
        ]

        assert errors[0] >= errors[1] >= errors[2]

    def test_full_selection_reconstructs_original_units(self, random_matrix):
        z = standardize(random_matrix)
        sel = select_components(decompose(z), z, "cumulative", 1.0)

        assert sel.n_components == 5
        back = reconstruct(sel, z, original_units=True)
        np.testing.assert_allclose(back.values, random_matrix.values, rtol=1e-9, atol=1e-9)
        assert reconstruction_error(sel, z) == pytest.approx(0.0, abs=1e-20)

    def test_reprojected_scores_are_uncorrelated(self, random_matrix):
        z = standardize(random_matrix)
        sel = select_components(decompose(z), z, "cumulative", 0.9)

        check = reproject(sel)
        assert check["max_abs_correlation"] < 1e-8
        np.testing.assert_allclose(
            check["decomposition"].explained_variance.values, 1.0, atol=1e-8
        )

    def test_does_not_mutate_decomposition(self, random_matrix):
        z = standardize(random_matrix)
        dec = decompose(z)
        before = dec.components.copy()
        sel = select_components(dec, z, "cumulative", 0.5)
        sel.components.iloc[0, 0] = 99.0

        pd.testing.assert_frame_equal(dec.components, before)
