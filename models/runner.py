"""Pipeline runner: load, select, PCA, k-means, profile."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd

from models.kmeans import ClusterResult, cluster_scores
from models.pca import PCAModel, PCAResult
from utils.cluster_profiling import generate_cluster_profiles
from utils.config import AnalysisConfig
from utils.data_loader import describe_quantitative, load_table
from utils.errors import ConfigError
from utils.preprocessing import FeatureSet, select_features

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Container for one pipeline run."""
    table: pd.DataFrame
    features: FeatureSet
    pca: PCAResult
    clusters: ClusterResult
    profiles: Dict[str, Any]
    descriptives: pd.DataFrame
    runtimes: Dict[str, float] = field(default_factory=dict)

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """Named tables for a downstream reporting layer."""
        frames = {
            'descriptives': self.descriptives,
            'correlation': self.pca.correlation,
            'eigenvalues': self.pca.explained_variance,
            'variable_coord': self.pca.variable_coord,
            'variable_contrib': self.pca.variable_contrib,
            'individual_scores': self.pca.scores,
            'individual_cos2': self.pca.individual_cos2,
            'cluster_labels': self.clusters.labels.to_frame(),
            'cluster_centers': self.clusters.centers,
            'cluster_means': self.profiles['means'],
        }
        for name, projection in self.pca.supplementary.items():
            frames[f'supplementary_{name}'] = projection.coordinates
            frames[f'supplementary_{name}_eta2'] = projection.summary()
        for name, assoc in self.profiles['associations'].items():
            frames[f'crosstab_{name}'] = assoc['crosstab_pct']
        return frames


class AnalysisRunner:
    """
    Run the whole analysis for one configuration.

    Each stage consumes the previous stage's output; any error propagates
    unchanged to the caller.
    """

    def __init__(self, config: AnalysisConfig):
        self.config = config.validate()
        self.runtimes: Dict[str, float] = {}

    def _timed(self, stage: str, func, *args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        self.runtimes[stage] = time.time() - start_time
        logger.debug("Stage '%s' took %.3fs", stage, self.runtimes[stage])
        return result

    def load(self, path: Optional[str] = None) -> pd.DataFrame:
        cfg = self.config
        path = path or cfg.data_path
        if not path:
            raise ConfigError("No data_path configured")
        return self._timed(
            'load', load_table, path, cfg.column_names,
            numeric_columns=cfg.numeric_columns,
            id_columns=cfg.id_columns,
            missing_values=cfg.missing_values,
            drop_missing=cfg.drop_missing
        )

    def select(self, table: pd.DataFrame) -> FeatureSet:
        cfg = self.config
        return self._timed(
            'select', select_features, table,
            cfg.quantitative_columns, cfg.categorical_columns,
            labels=cfg.category_labels, strict=cfg.strict_categories
        )

    def fit_pca(self, features: FeatureSet) -> PCAResult:
        model = PCAModel(n_components=self.config.n_components)
        return self._timed('pca', model.fit, features)

    def cluster(self, pca: PCAResult) -> ClusterResult:
        cfg = self.config
        return self._timed(
            'kmeans', cluster_scores, pca.scores,
            cfg.num_components_for_clustering, cfg.cluster_count,
            random_state=cfg.random_seed, n_init=cfg.n_init, max_iter=cfg.max_iter
        )

    def run(self, table: Optional[pd.DataFrame] = None) -> AnalysisResult:
        """
        Run every stage.

        Args:
            table: Already loaded observation table; read from
                ``config.data_path`` when omitted

        Returns:
            AnalysisResult
        """
        self.runtimes = {}
        if table is None:
            table = self.load()

        features = self.select(table)
        descriptives = describe_quantitative(table, features.feature_names)
        pca = self.fit_pca(features)
        clusters = self.cluster(pca)
        profiles = self._timed(
            'profile', generate_cluster_profiles, table, clusters.labels,
            features.feature_names, features.supplementary
        )

        logger.info(
            "Analysis done: %d individuals, %d components, %d clusters",
            features.n_observations, pca.n_components, len(clusters.sizes)
        )

        return AnalysisResult(
            table=table,
            features=features,
            pca=pca,
            clusters=clusters,
            profiles=profiles,
            descriptives=descriptives,
            runtimes=dict(self.runtimes)
        )
