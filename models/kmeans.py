"""K-Means clustering of individuals in PCA space."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans

from utils.errors import ConfigError, InvalidClusterCountError
from utils.metrics import calculate_cluster_metrics

logger = logging.getLogger(__name__)


def validate_cluster_count(n_clusters, n_observations: int) -> int:
    """Reject k <= 0, k > n and non-integer k before any numeric work."""
    if isinstance(n_clusters, bool) or not isinstance(n_clusters, (int, np.integer)):
        raise InvalidClusterCountError(n_clusters, n_observations)
    if n_clusters <= 0 or n_clusters > n_observations:
        raise InvalidClusterCountError(n_clusters, n_observations)
    return int(n_clusters)


def relabel_by_first_appearance(labels: np.ndarray) -> np.ndarray:
    """Map raw labels to 1..k in the order clusters first appear."""
    mapping: Dict[int, int] = {}
    for label in labels:
        if label not in mapping:
            mapping[label] = len(mapping) + 1
    return np.array([mapping[label] for label in labels], dtype=int)


class KMeansModel:
    """
    K-Means clustering algorithm.

    Partitions individuals into k clusters by minimizing within-cluster
    variance. Each fit runs ``n_init`` restarts and keeps the lowest
    inertia; a restart iterates until assignments stop changing or
    ``max_iter`` is reached, so the result is the best partition found,
    not a guaranteed optimum. With ``random_state=None`` the partition
    can differ between runs.
    """

    name = "K-Means"
    description = "Partition-based clustering that minimizes within-cluster variance"

    def __init__(self):
        self.model = None
        self.labels_ = None
        self.params = {
            'n_clusters': 3,
            'init': 'k-means++',
            'n_init': 10,
            'max_iter': 300,
            'tol': 1e-4,
            'random_state': 42
        }

    def set_params(self, **kwargs) -> None:
        for key, value in kwargs.items():
            if key in self.params:
                self.params[key] = value

    def get_params(self) -> Dict[str, Any]:
        """Get current parameters."""
        return self.params.copy()

    def get_params_string(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.params.items())

    def fit_predict(self, X: np.ndarray) -> np.ndarray:
        """
        Fit model and return cluster labels 1..k.

        Raises:
            InvalidClusterCountError: k <= 0 or k > number of rows
        """
        X = np.asarray(X, dtype=float)
        k = validate_cluster_count(self.params['n_clusters'], X.shape[0])

        self.model = KMeans(
            n_clusters=k,
            init=self.params['init'],
            n_init=self.params['n_init'],
            max_iter=self.params['max_iter'],
            tol=self.params['tol'],
            random_state=self.params['random_state']
        )
        raw = self.model.fit_predict(X)
        self.labels_ = relabel_by_first_appearance(raw)
        return self.labels_

    def get_metrics(self, X: np.ndarray, labels: Optional[np.ndarray] = None) -> Dict:
        if labels is None:
            labels = self.labels_
        return calculate_cluster_metrics(X, labels)

    def get_inertia(self) -> float:
        """Get within-cluster sum of squares (inertia)."""
        if self.model is not None:
            return float(self.model.inertia_)
        return 0.0

    def get_cluster_centers(self) -> np.ndarray:
        """Get cluster centroids, row i belonging to label i + 1."""
        if self.model is None:
            return np.array([])
        raw = self.model.labels_
        order = []
        for label in raw:
            if label not in order:
                order.append(label)
        return self.model.cluster_centers_[order]


@dataclass
class ClusterResult:
    """Cluster assignment of every individual."""
    labels: pd.Series
    centers: pd.DataFrame
    inertia: float
    n_iter: int
    metrics: Dict[str, Any]
    params: Dict[str, Any]

    @property
    def sizes(self) -> pd.Series:
        return self.labels.value_counts().sort_index()


def cluster_scores(scores: pd.DataFrame, n_components: int, n_clusters: int,
                   random_state: Optional[int] = None, n_init: int = 10,
                   max_iter: int = 300) -> ClusterResult:
    """
    Run k-means on the leading ``n_components`` PCA score columns.

    Args:
        scores: Individual scores (rows = individuals, columns = components)
        n_components: Number of leading components to cluster on
        n_clusters: Target cluster count k
        random_state: Seed; None leaves initialization non-deterministic
        n_init: Restarts, the lowest-inertia one is kept
        max_iter: Iteration bound per restart

    Returns:
        ClusterResult with labels 1..k indexed like ``scores``
    """
    validate_cluster_count(n_clusters, len(scores))
    if n_components < 1 or n_components > scores.shape[1]:
        raise ConfigError(
            f"num_components_for_clustering must be between 1 and {scores.shape[1]}, "
            f"got {n_components}"
        )

    X = scores.iloc[:, :n_components]
    model = KMeansModel()
    model.set_params(n_clusters=n_clusters, n_init=n_init, max_iter=max_iter,
                     random_state=random_state)
    labels = model.fit_predict(X.to_numpy())

    logger.info("K-Means k=%d on %d components: inertia %.4f",
                n_clusters, n_components, model.get_inertia())

    centers = model.get_cluster_centers()
    return ClusterResult(
        labels=pd.Series(labels, index=scores.index, name='cluster'),
        centers=pd.DataFrame(centers,
                             index=pd.RangeIndex(1, len(centers) + 1, name='cluster'),
                             columns=X.columns),
        inertia=model.get_inertia(),
        n_iter=int(model.model.n_iter_),
        metrics=model.get_metrics(X.to_numpy()),
        params=model.get_params()
    )


def k_range_sweep(scores: pd.DataFrame, n_components: int,
                  k_values: Iterable[int] = range(2, 9),
                  random_state: Optional[int] = 42) -> pd.DataFrame:
    """
    Inertia and validity indices for a range of k (elbow table).

    k values above the number of individuals are skipped.
    """
    rows: List[Dict[str, Any]] = []
    for k in k_values:
        if k > len(scores):
            continue
        result = cluster_scores(scores, n_components, k, random_state=random_state)
        rows.append({
            'k': k,
            'inertia': result.inertia,
            'silhouette': result.metrics['silhouette'],
            'davies_bouldin': result.metrics['davies_bouldin'],
            'calinski_harabasz': result.metrics['calinski_harabasz']
        })
    return pd.DataFrame(rows).set_index('k') if rows else pd.DataFrame()
