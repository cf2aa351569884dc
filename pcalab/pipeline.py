"""End-to-end PCA run: clean -> standardize -> decompose -> select."""
import logging
from typing import NamedTuple

import pandas as pd

from pcalab.constants import DATASETS, DEFAULT_TOL
from pcalab.data_loader import Cleaned, clean, load_dataset
from pcalab.decompose import Decomposition, decompose
from pcalab.selection import Selection, select_components
from pcalab.standardize import Standardized, standardize
from pcalab.stats_helpers import descriptive_stats

logger = logging.getLogger(__name__)


class PipelineResult(NamedTuple):
    cleaned: Cleaned
    standardized: Standardized
    decomposition: Decomposition
    selection: Selection


def run_pipeline(df, id_column, policy, threshold=None, exclude_suffixes=(),
                 exclude_columns=(), label_columns=(), tol=DEFAULT_TOL):
    """Run every stage on one raw table and return all intermediate artifacts."""
    cleaned = clean(
        df, id_column,
        exclude_suffixes=exclude_suffixes,
        exclude_columns=exclude_columns,
        label_columns=label_columns,
    )
    standardized = standardize(cleaned.matrix)
    decomposition = decompose(standardized, tol=tol)
    selection = select_components(decomposition, standardized, policy, threshold)
    return PipelineResult(cleaned, standardized, decomposition, selection)


def run_dataset(name, policy, threshold=None, source=None, tol=DEFAULT_TOL):
    """Load one of the configured datasets and run the pipeline on it."""
    df = load_dataset(name, source)
    config = DATASETS[name]
    logger.info("Running PCA on %s (%d rows, %d columns)", name, *df.shape)
    return run_pipeline(
        df, config["id_column"], policy, threshold,
        exclude_suffixes=config["exclude_suffixes"],
        exclude_columns=config["exclude_columns"],
        label_columns=config["label_columns"],
        tol=tol,
    )


def summarize(result):
    """One row per component: eigenvalue, share of variance, and whether kept."""
    dec = result.decomposition
    summary = pd.DataFrame({
        "eigenvalue": dec.explained_variance,
        "explained_variance_ratio": dec.explained_variance_ratio,
        "cumulative": dec.explained_variance_ratio.cumsum(),
    })
    summary["selected"] = [i < result.selection.n_components for i in range(len(summary))]
    return summary


def describe_variables(result):
    """Per-variable summary in original units, with the kept component it loads on most."""
    matrix = result.cleaned.matrix
    table = pd.DataFrame({col: descriptive_stats(matrix[col]) for col in matrix.columns}).T
    loadings = result.selection.components.loc[matrix.columns]
    table["top_component"] = loadings.abs().idxmax(axis=1)
    table["top_loading"] = [loadings.at[col, pc] for col, pc in table["top_component"].items()]
    return table
