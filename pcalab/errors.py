"""Exceptions and warnings raised by the PCA pipeline."""


class PipelineError(ValueError):
    """Base class for every fatal pipeline error."""


class DataFormatError(PipelineError):
    """Raised when the source table is malformed or lacks a required column."""

    def __init__(self, message, column=None):
        self.column = column
        super().__init__(message)


class EmptyDatasetError(PipelineError):
    """Raised when too little numeric data survives cleaning."""

    def __init__(self, message, n_rows=None, n_columns=None):
        self.n_rows = n_rows
        self.n_columns = n_columns
        super().__init__(message)


class DegenerateColumnError(PipelineError):
    """Raised when a column has zero variance and cannot be scaled."""

    def __init__(self, column, std=0.0):
        self.column = column
        self.std = std
        super().__init__(
            f"Column {column!r} has standard deviation {std!r}; "
            "constant columns cannot be standardized"
        )


class InvalidThresholdError(PipelineError):
    """Raised for a selection threshold outside (0, 1] or an unknown policy."""

    def __init__(self, message, threshold=None):
        self.threshold = threshold
        super().__init__(message)


class NoComponentsSelectedError(PipelineError):
    """Raised when a selection policy would keep zero components."""

    def __init__(self, message, policy=None):
        self.policy = policy
        super().__init__(message)


class RankDeficiencyWarning(UserWarning):
    """Emitted when the data spans fewer directions than it has variables."""

    def __init__(self, rank, n_variables):
        self.rank = rank
        self.n_variables = n_variables
        super().__init__(
            f"Data has rank {rank} but {n_variables} variables; "
            f"{n_variables - rank} component(s) carry (near-)zero variance"
        )
