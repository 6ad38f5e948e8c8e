"""
Analysis models for the Auto-MPG study.

PCA on the correlation matrix, k-means on the leading scores and the
runner chaining them with loading and profiling.
"""

from models.pca import PCAModel, PCAResult, SupplementaryProjection
from models.kmeans import KMeansModel, ClusterResult, cluster_scores, k_range_sweep
from models.runner import AnalysisRunner, AnalysisResult

__all__ = [
    'PCAModel',
    'PCAResult',
    'SupplementaryProjection',
    'KMeansModel',
    'ClusterResult',
    'cluster_scores',
    'k_range_sweep',
    'AnalysisRunner',
    'AnalysisResult'
]
