"""Error taxonomy for the analysis pipeline.

Every stage raises eagerly and lets the error propagate to the caller;
nothing here is retried or recovered.
"""

from typing import Optional


class AnalysisError(ValueError):
    """Base class for all pipeline errors."""

    kind = "AnalysisError"


class ParseError(AnalysisError):
    """Malformed row or uncoercible value in the input table."""

    kind = "ParseError"

    def __init__(self, message: str, row: Optional[int] = None,
                 column: Optional[str] = None):
        self.row = row
        self.column = column
        location = []
        if row is not None:
            location.append(f"row {row}")
        if column is not None:
            location.append(f"column '{column}'")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class EncodingError(AnalysisError):
    """A categorical column cannot be encoded into a usable factor."""

    kind = "EncodingError"

    def __init__(self, message: str, column: Optional[str] = None):
        self.column = column
        super().__init__(message)


class DegenerateVarianceError(AnalysisError):
    """A quantitative column has zero variance and cannot be standardized."""

    kind = "DegenerateVarianceError"

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Column '{column}' has zero variance and cannot be standardized")


class InsufficientVariablesError(AnalysisError):
    kind = "InsufficientVariablesError"


class InvalidClusterCountError(AnalysisError):
    kind = "InvalidClusterCountError"

    def __init__(self, n_clusters, n_observations: int):
        self.n_clusters = n_clusters
        self.n_observations = n_observations
        super().__init__(
            f"Invalid cluster count {n_clusters!r}: must be an integer "
            f"between 1 and {n_observations} (number of observations)"
        )


class ConfigError(AnalysisError):
    """Inconsistent or out-of-range configuration."""

    kind = "ConfigError"


class CategoryWarning(UserWarning):
    """Data-quality notice raised instead of EncodingError in non-strict mode."""
