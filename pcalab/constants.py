"""Shared constants: dataset definitions, labels, numeric defaults."""
import os

DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")

# Relative singular-value cutoff used for rank detection.
DEFAULT_TOL = 1e-10

SELECTION_POLICIES = ("cumulative", "kaiser")

KAISER_CUTOFF = 1.0

# Eigenvalues within this distance of the cutoff are treated as equal to it.
KAISER_TOL = 1e-9

DATASETS = {
    "nutrition": {
        "file": "nndb_flat.csv",
        "url": None,
        "id_column": "ID",
        # *_USRDA columns restate the absolute nutrient amounts as a share of
        # the recommended daily allowance.
        "exclude_suffixes": ("_USRDA",),
        "exclude_columns": (),
        "label_columns": ("FoodGroup",),
    },
    "health": {
        "file": "county_health.csv",
        "url": None,
        "id_column": "FIPS",
        "exclude_suffixes": ("_Rank", "_CI_Low", "_CI_High"),
        "exclude_columns": ("Population",),
        "label_columns": ("State",),
    },
    "cifar10": {
        "file": "cifar10_batch1.csv",
        "url": "https://www.cs.toronto.edu/~kriz/cifar-10-python.tar.gz",
        "id_column": "image_id",
        "exclude_suffixes": (),
        "exclude_columns": (),
        "label_columns": ("label",),
    },
}

CIFAR_CLASSES = [
    "airplane", "automobile", "bird", "cat", "deer",
    "dog", "frog", "horse", "ship", "truck",
]
