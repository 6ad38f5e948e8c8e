"""Feature selection, categorical encoding and scaling."""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from utils.errors import ConfigError, DegenerateVarianceError, EncodingError, CategoryWarning

logger = logging.getLogger(__name__)


@dataclass
class CategoricalVariable:
    """A supplementary variable encoded as an explicit factor."""
    name: str
    values: pd.Series
    levels: List[str]

    @property
    def cardinality(self) -> int:
        return len(self.levels)

    @property
    def counts(self) -> pd.Series:
        """Members per level, zero-count levels included."""
        return self.values.value_counts(sort=False).reindex(self.levels, fill_value=0)


@dataclass
class FeatureSet:
    """Active quantitative matrix plus supplementary categorical variables."""
    quantitative: pd.DataFrame
    supplementary: Dict[str, CategoricalVariable] = field(default_factory=dict)

    @property
    def feature_names(self) -> List[str]:
        return list(self.quantitative.columns)

    @property
    def n_observations(self) -> int:
        return len(self.quantitative)


def _level_label(value) -> str:
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def encode_categorical(df: pd.DataFrame, columns: Sequence[str],
                       labels: Optional[Mapping[str, Mapping]] = None,
                       strict: bool = True) -> Dict[str, CategoricalVariable]:
    """
    Encode columns as factors with stable, enumerable level labels.

    Raw values are turned into string labels ('8.0' -> '8') and optionally
    renamed through ``labels[column]``. Levels are ordered by raw value; any
    label declared in ``labels`` but absent from the data is kept as a
    zero-member level.

    Args:
        df: Observation table
        columns: Columns to encode
        labels: Optional {column: {raw value: display label}}
        strict: Raise EncodingError for a column with a single distinct
            value; otherwise only warn

    Returns:
        Dict of CategoricalVariable keyed by column name
    """
    labels = labels or {}
    encoded = {}

    for col in columns:
        raw = df[col]
        mapping = {_level_label(k): str(v) for k, v in labels.get(col, {}).items()}

        observed = sorted(raw.dropna().unique())
        if len(observed) < 2:
            message = (f"Categorical column '{col}' has {len(observed)} distinct "
                       f"value(s); at least two are needed")
            if strict:
                raise EncodingError(message, column=col)
            warnings.warn(message, CategoryWarning)

        raw_labels = [_level_label(v) for v in observed]
        levels = [mapping.get(l, l) for l in raw_labels]
        for declared in mapping.values():
            if declared not in levels:
                levels.append(declared)

        values = raw.map(lambda v: mapping.get(_level_label(v), _level_label(v))
                         if pd.notnull(v) else np.nan)
        values = pd.Series(pd.Categorical(values, categories=levels),
                           index=df.index, name=col)

        variable = CategoricalVariable(name=col, values=values, levels=levels)
        singletons = [lvl for lvl, n in variable.counts.items() if n == 1]
        if singletons:
            warnings.warn(
                f"Categorical column '{col}' has single-member levels: {singletons}",
                CategoryWarning
            )

        logger.debug("Encoded '%s' with %d levels", col, variable.cardinality)
        encoded[col] = variable

    return encoded


def scale_features(X):
    """
    Standardize features to zero mean and unit (population) variance.

    Args:
        X: DataFrame with numeric columns

    Returns:
        tuple: (scaled_array, scaler) - numpy array and fitted scaler

    Raises:
        DegenerateVarianceError: a column has zero variance
    """
    values = np.asarray(X, dtype=float)
    names = list(X.columns) if hasattr(X, 'columns') else [str(i) for i in range(values.shape[1])]

    # Zero up to rounding, relative to the column magnitude
    stds = values.std(axis=0)
    means = values.mean(axis=0)
    eps = np.finfo(float).eps
    for name, std, mean in zip(names, stds, means):
        if std <= eps * max(1.0, abs(mean)):
            raise DegenerateVarianceError(name)

    scaler = StandardScaler()
    scaled = scaler.fit_transform(values)
    return scaled, scaler


def select_features(df: pd.DataFrame, quantitative: Sequence[str],
                    categorical: Sequence[str] = (),
                    labels: Optional[Mapping[str, Mapping]] = None,
                    strict: bool = True) -> FeatureSet:
    """
    Split the table into the active quantitative matrix and the
    supplementary categorical variables.

    Column order of the quantitative matrix follows ``quantitative``.
    """
    missing = [c for c in list(quantitative) + list(categorical) if c not in df.columns]
    if missing:
        raise ConfigError(f"Columns not found in table: {missing}")

    overlap = set(quantitative).intersection(categorical)
    if overlap:
        raise ConfigError(f"Columns cannot be both quantitative and categorical: {sorted(overlap)}")

    X = df[list(quantitative)].copy()
    for col in X.columns:
        if not pd.api.types.is_numeric_dtype(X[col]):
            raise ConfigError(f"Quantitative column '{col}' is not numeric")
        if X[col].isnull().any():
            raise ConfigError(
                f"Quantitative column '{col}' has {int(X[col].isnull().sum())} missing values"
            )
    X = X.astype(float)

    supplementary = encode_categorical(df, categorical, labels=labels, strict=strict)
    return FeatureSet(quantitative=X, supplementary=supplementary)
