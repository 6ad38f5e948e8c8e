"""
Principal component analysis on the correlation matrix.

Active variables are standardized (population standard deviation), the
correlation matrix is eigendecomposed and individuals, variables and
supplementary categorical variables are described in the component space.

Conventions:
- Eigenvalues are sorted descending. Eigenvalues equal within ``TIE_TOL``
  are ordered by the magnitude of their dominant loading (descending), then
  by the position of that loading.
- Each eigenvector is signed so that its largest-magnitude loading is
  positive.
- Individual scores are ``Z @ V``, so the (population) variance of the
  scores on component k is the k-th eigenvalue.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from utils.errors import ConfigError, InsufficientVariablesError
from utils.preprocessing import CategoricalVariable, FeatureSet, scale_features

logger = logging.getLogger(__name__)

TIE_TOL = 1e-10


def component_names(k: int) -> List[str]:
    return [f"Dim.{i + 1}" for i in range(k)]


@dataclass(frozen=True)
class SupplementaryProjection:
    """A categorical variable projected onto the components."""
    name: str
    coordinates: pd.DataFrame   # levels x components, mean score per level
    counts: pd.Series           # members per projected level
    v_test: pd.DataFrame        # levels x components
    eta2: pd.Series             # correlation ratio per component
    p_value: pd.Series          # one-way ANOVA p-value per component
    omitted_levels: List[str] = field(default_factory=list)

    def summary(self) -> pd.DataFrame:
        """Correlation ratio and p-value per component."""
        return pd.DataFrame({'eta2': self.eta2, 'p_value': self.p_value})


@dataclass(frozen=True)
class PCAResult:
    """Everything the analysis hands off to a reporting layer."""
    eigenvalues: pd.Series
    eigenvectors: pd.DataFrame
    correlation: pd.DataFrame
    means: pd.Series
    stds: pd.Series
    scores: pd.DataFrame
    individual_cos2: pd.DataFrame
    individual_contrib: pd.DataFrame
    variable_coord: pd.DataFrame
    variable_cos2: pd.DataFrame
    variable_contrib: pd.DataFrame
    supplementary: Dict[str, SupplementaryProjection] = field(default_factory=dict)

    @property
    def n_components(self) -> int:
        return self.scores.shape[1]

    @property
    def explained_variance(self) -> pd.DataFrame:
        """Eigenvalue, percentage of variance and cumulative percentage."""
        pct = 100 * self.eigenvalues / self.eigenvalues.sum()
        return pd.DataFrame({
            'eigenvalue': self.eigenvalues,
            'percentage': pct,
            'cumulative': pct.cumsum()
        })

    def leading_scores(self, n_components: int) -> pd.DataFrame:
        """Scores restricted to the first ``n_components`` components."""
        if n_components < 1 or n_components > self.n_components:
            raise ConfigError(
                f"Cannot take {n_components} components; "
                f"{self.n_components} are retained"
            )
        return self.scores.iloc[:, :n_components]


def order_components(eigenvalues: np.ndarray, eigenvectors: np.ndarray,
                     tol: float = TIE_TOL):
    """
    Sort eigenpairs descending with a deterministic tie-break and sign rule.

    Returns:
        tuple: (eigenvalues, eigenvectors) with eigenvectors as columns
    """
    eigenvalues = np.clip(eigenvalues, 0.0, None)
    magnitude = np.abs(eigenvectors)
    dominant = magnitude.max(axis=0)
    dominant_pos = magnitude.argmax(axis=0)

    order = list(np.argsort(-eigenvalues, kind='stable'))

    # Re-sort runs of numerically equal eigenvalues on the secondary keys
    ordered = []
    i = 0
    while i < len(order):
        j = i + 1
        while j < len(order) and abs(eigenvalues[order[i]] - eigenvalues[order[j]]) <= tol:
            j += 1
        run = sorted(order[i:j], key=lambda c: (-round(dominant[c], 12), dominant_pos[c]))
        ordered.extend(run)
        i = j

    eigenvalues = eigenvalues[ordered]
    eigenvectors = eigenvectors[:, ordered].copy()

    for c in range(eigenvectors.shape[1]):
        pos = np.abs(eigenvectors[:, c]).argmax()
        if eigenvectors[pos, c] < 0:
            eigenvectors[:, c] = -eigenvectors[:, c]

    return eigenvalues, eigenvectors


def project_categorical(scores: np.ndarray, eigenvalues: np.ndarray,
                        variable: CategoricalVariable,
                        dims: List[str]) -> SupplementaryProjection:
    """
    Project one categorical variable onto the component space.

    Each level is placed at the mean score of its members. The association
    with each component is the correlation ratio (eta squared) with the
    p-value of the matching one-way ANOVA F-test. Levels without members are
    skipped and reported in ``omitted_levels``.
    """
    values = variable.values.to_numpy()
    valid = pd.notnull(values)
    F = scores[valid]
    labels = values[valid]
    n = F.shape[0]

    coords, counts, v_tests, omitted = [], [], [], []
    kept = []
    for level in variable.levels:
        mask = labels == level
        n_l = int(mask.sum())
        if n_l == 0:
            omitted.append(level)
            continue
        coord = F[mask].mean(axis=0)
        with np.errstate(divide='ignore', invalid='ignore'):
            scale = np.sqrt(n_l * (n - 1) / (n - n_l)) if n_l < n else np.nan
            v = np.where(eigenvalues > 0, coord / np.sqrt(eigenvalues) * scale, np.nan)
        kept.append(level)
        coords.append(coord)
        counts.append(n_l)
        v_tests.append(v)

    if omitted:
        logger.info("'%s': levels without members omitted from projection: %s",
                    variable.name, omitted)

    coords = np.array(coords).reshape(len(kept), len(dims))
    counts_arr = np.array(counts, dtype=float)

    grand = F.mean(axis=0)
    ss_total = ((F - grand) ** 2).sum(axis=0)
    ss_between = (counts_arr[:, None] * (coords - grand) ** 2).sum(axis=0)
    with np.errstate(divide='ignore', invalid='ignore'):
        eta2 = np.where(ss_total > 0, ss_between / ss_total, np.nan)

    g = len(kept)
    if g > 1 and n > g:
        df_between, df_within = g - 1, n - g
        with np.errstate(divide='ignore', invalid='ignore'):
            f_stat = (eta2 / df_between) / ((1 - eta2) / df_within)
        p_value = stats.f.sf(f_stat, df_between, df_within)
    else:
        p_value = np.full(len(dims), np.nan)

    return SupplementaryProjection(
        name=variable.name,
        coordinates=pd.DataFrame(coords, index=kept, columns=dims),
        counts=pd.Series(counts, index=kept, name='count', dtype=int),
        v_test=pd.DataFrame(np.array(v_tests).reshape(g, len(dims)), index=kept, columns=dims),
        eta2=pd.Series(eta2, index=dims, name='eta2'),
        p_value=pd.Series(p_value, index=dims, name='p_value'),
        omitted_levels=omitted
    )


class PCAModel:
    """
    Normalized PCA with supplementary categorical variables.

    Active quantitative variables define the components; supplementary
    variables are projected afterwards and never enter the
    eigendecomposition.
    """

    name = "PCA"
    description = "Principal component analysis on the correlation matrix"

    def __init__(self, n_components: Optional[int] = None):
        self.params = {'n_components': n_components}
        self.result_: Optional[PCAResult] = None

    def set_params(self, **kwargs) -> None:
        for key, value in kwargs.items():
            if key in self.params:
                self.params[key] = value

    def get_params(self) -> Dict[str, Any]:
        return self.params.copy()

    def fit(self, features: FeatureSet) -> PCAResult:
        """
        Run the PCA on a FeatureSet.

        Raises:
            InsufficientVariablesError: fewer than two active variables
            DegenerateVarianceError: an active variable has zero variance
            ConfigError: n_components outside 1..p
        """
        X = features.quantitative
        names = list(X.columns)
        p = len(names)
        if p < 2:
            raise InsufficientVariablesError(
                f"PCA needs at least 2 quantitative variables, got {p}"
            )

        k = p if self.params['n_components'] is None else self.params['n_components']
        if k < 1 or k > p:
            raise ConfigError(f"n_components must be between 1 and {p}, got {k}")

        Z, scaler = scale_features(X)
        n = Z.shape[0]

        R = Z.T @ Z / n
        R = (R + R.T) / 2
        eigenvalues, eigenvectors = np.linalg.eigh(R)
        eigenvalues, eigenvectors = order_components(eigenvalues, eigenvectors)
        logger.info("Eigenvalues: %s", np.round(eigenvalues, 4).tolist())

        all_dims = component_names(p)
        dims = all_dims[:k]
        lam = eigenvalues[:k]
        V = eigenvectors[:, :k]

        F = Z @ V
        coord = V * np.sqrt(lam)

        sq = F ** 2
        dist2 = sq.sum(axis=1, keepdims=True)
        cos2 = np.divide(sq, dist2, out=np.zeros_like(sq), where=dist2 > 0)
        denom = np.broadcast_to(n * lam, sq.shape)
        ind_contrib = 100 * np.divide(sq, denom, out=np.zeros_like(sq), where=denom > 0)

        supplementary = {
            name: project_categorical(F, lam, variable, dims)
            for name, variable in features.supplementary.items()
        }

        self.scaler_ = scaler
        self.result_ = PCAResult(
            eigenvalues=pd.Series(eigenvalues, index=all_dims, name='eigenvalue'),
            eigenvectors=pd.DataFrame(eigenvectors, index=names, columns=all_dims),
            correlation=pd.DataFrame(R, index=names, columns=names),
            means=pd.Series(scaler.mean_, index=names, name='mean'),
            stds=pd.Series(scaler.scale_, index=names, name='std'),
            scores=pd.DataFrame(F, index=X.index, columns=dims),
            individual_cos2=pd.DataFrame(cos2, index=X.index, columns=dims),
            individual_contrib=pd.DataFrame(ind_contrib, index=X.index, columns=dims),
            variable_coord=pd.DataFrame(coord, index=names, columns=dims),
            variable_cos2=pd.DataFrame(coord ** 2, index=names, columns=dims),
            variable_contrib=pd.DataFrame(100 * V ** 2, index=names, columns=dims),
            supplementary=supplementary
        )
        return self.result_

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        """Project new individuals with the fitted means, stds and axes."""
        if self.result_ is None:
            raise RuntimeError("PCA not fitted yet.")
        result = self.result_
        names = list(result.means.index)
        Z = (X[names].to_numpy(dtype=float) - result.means.to_numpy()) / result.stds.to_numpy()
        V = result.eigenvectors.iloc[:, :result.n_components].to_numpy()
        return pd.DataFrame(Z @ V, index=X.index, columns=result.scores.columns)
