"""Cached data loading and cleaning utilities."""
import io
import logging
import os
import pickle
from typing import Dict, List, NamedTuple

import numpy as np
import pandas as pd
import requests
import streamlit as st

from pcalab.constants import CIFAR_CLASSES, DATA_DIR, DATASETS
from pcalab.errors import DataFormatError, EmptyDatasetError

logger = logging.getLogger(__name__)


class Cleaned(NamedTuple):
    """Numeric matrix keyed by row identifier, plus pass-through labels."""
    matrix: pd.DataFrame
    labels: pd.DataFrame
    dropped: Dict[str, object]


@st.cache_data(show_spinner=False)
def read_source(source):
    """Read a CSV table from a local path or an http(s) URL."""
    if str(source).startswith(("http://", "https://")):
        logger.info("Fetching %s", source)
        resp = requests.get(source, timeout=120)
        resp.raise_for_status()
        buffer = io.StringIO(resp.text)
    else:
        if not os.path.exists(source):
            raise FileNotFoundError(f"No data file at {source}")
        buffer = source
    try:
        return pd.read_csv(buffer)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise DataFormatError(f"Could not parse {source} as CSV: {exc}") from exc


def load_dataset(name, source=None):
    """Read a configured dataset; ``source`` overrides its default location."""
    if name not in DATASETS:
        raise KeyError(f"Unknown dataset {name!r}; expected one of {sorted(DATASETS)}")
    if source is None:
        source = os.path.join(DATA_DIR, DATASETS[name]["file"])
    return read_source(str(source))


def clean(df, id_column, exclude_suffixes=(), exclude_columns=(), label_columns=()):
    """Reduce a raw table to a complete numeric matrix indexed by ``id_column``.

    Columns ending in any of ``exclude_suffixes`` and those named in
    ``exclude_columns`` are removed, as is every non-numeric column other than
    the identifier and ``label_columns``. Label columns are handed back
    untouched in ``labels`` so they can be used for grouping downstream.
    Records with a missing value in any retained numeric column are dropped.

    Raises:
        DataFormatError: identifier or label column absent, or identifier
            not unique.
        EmptyDatasetError: no numeric column, or fewer than two complete
            records, survive cleaning.
    """
    if id_column not in df.columns:
        raise DataFormatError(f"Identifier column {id_column!r} not found", column=id_column)
    ids = df[id_column]
    if ids.isna().any():
        raise DataFormatError(
            f"Identifier column {id_column!r} has {int(ids.isna().sum())} missing value(s)",
            column=id_column,
        )
    if not ids.is_unique:
        dupes = ids[ids.duplicated()].unique().tolist()
        raise DataFormatError(
            f"Identifier column {id_column!r} is not unique; duplicated: {dupes[:10]}",
            column=id_column,
        )
    label_columns = list(label_columns)
    if isinstance(exclude_suffixes, str):
        exclude_suffixes = (exclude_suffixes,)
    exclude_suffixes = tuple(exclude_suffixes)
    if isinstance(exclude_columns, str):
        exclude_columns = (exclude_columns,)
    exclude_columns = set(exclude_columns)
    for col in label_columns:
        if col not in df.columns:
            raise DataFormatError(f"Label column {col!r} not found", column=col)

    reserved = {id_column, *label_columns}
    dropped: Dict[str, object] = {"excluded": [], "non_numeric": [], "all_missing": []}
    keep: List[str] = []
    for col in df.columns:
        if col in reserved:
            continue
        if col in exclude_columns or str(col).endswith(exclude_suffixes):
            dropped["excluded"].append(col)
        elif not pd.api.types.is_numeric_dtype(df[col]) or pd.api.types.is_bool_dtype(df[col]):
            dropped["non_numeric"].append(col)
        elif df[col].isna().all():
            dropped["all_missing"].append(col)
        else:
            keep.append(col)

    if not keep:
        raise EmptyDatasetError(
            f"No numeric columns remain out of {len(df.columns)} after cleaning",
            n_rows=len(df), n_columns=0,
        )

    matrix = df[keep].astype(float)
    matrix.index = pd.Index(ids, name=id_column)
    complete = matrix.notna().all(axis=1)
    dropped["incomplete_rows"] = int((~complete).sum())
    matrix = matrix[complete]
    if len(matrix) < 2:
        raise EmptyDatasetError(
            f"Only {len(matrix)} complete record(s) across {len(keep)} numeric columns; "
            "at least 2 are needed",
            n_rows=len(matrix), n_columns=len(keep),
        )

    labels = df[label_columns].copy()
    labels.index = pd.Index(ids, name=id_column)
    labels = labels.loc[matrix.index]

    if dropped["excluded"] or dropped["non_numeric"] or dropped["all_missing"]:
        logger.info(
            "Dropped %d excluded, %d non-numeric, %d empty column(s)",
            len(dropped["excluded"]), len(dropped["non_numeric"]), len(dropped["all_missing"]),
        )
    if dropped["incomplete_rows"]:
        logger.warning("Dropped %d record(s) with missing values", dropped["incomplete_rows"])
    return Cleaned(matrix, labels, dropped)


def images_to_frame(images, labels=None, ids=None, id_column="image_id",
                    label_column="label", prefix="px"):
    """Flatten an (N, ...) image array into one float column per pixel value."""
    images = np.asarray(images)
    flat = images.reshape(len(images), -1).astype(float)
    width = len(str(flat.shape[1] - 1))
    columns = [f"{prefix}{i:0{width}d}" for i in range(flat.shape[1])]
    frame = pd.DataFrame(flat, columns=columns)
    if labels is not None:
        frame.insert(0, label_column, list(labels))
    frame.insert(0, id_column, list(ids) if ids is not None else np.arange(len(flat)))
    return frame


def load_cifar_batch(path):
    """Read one CIFAR-10 python pickle batch into a tabular frame."""
    with open(path, "rb") as fh:
        batch = pickle.load(fh, encoding="bytes")
    try:
        data = np.asarray(batch[b"data"])
        codes = batch[b"labels"]
    except KeyError as exc:
        raise DataFormatError(f"{path} is not a CIFAR-10 batch: missing {exc}") from exc
    names = [CIFAR_CLASSES[c] for c in codes]
    return images_to_frame(data, labels=names)
