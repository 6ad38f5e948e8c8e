"""Clustering evaluation metrics."""

import numpy as np
from sklearn.metrics import (
    silhouette_score,
    davies_bouldin_score,
    calinski_harabasz_score
)


def calculate_cluster_metrics(X, labels):
    """
    Calculate clustering evaluation metrics on the clustered coordinates.

    Args:
        X: Coordinates the clustering was run on (PCA scores)
        labels: Cluster labels

    Returns:
        dict with metrics:
            - silhouette: Silhouette Score (-1 to 1, higher is better)
            - davies_bouldin: Davies-Bouldin Index (lower is better)
            - calinski_harabasz: Calinski-Harabasz Index (higher is better)
            - n_clusters: Number of distinct labels
            - valid: False when the scores are undefined
    """
    X = np.asarray(X, dtype=float)
    labels = np.asarray(labels)
    n_clusters = len(np.unique(labels))

    # Scores are only defined for 2 <= k <= n - 1
    if n_clusters < 2 or n_clusters >= len(labels):
        return {
            'silhouette': np.nan,
            'davies_bouldin': np.nan,
            'calinski_harabasz': np.nan,
            'n_clusters': n_clusters,
            'valid': False
        }

    return {
        'silhouette': round(float(silhouette_score(X, labels)), 4),
        'davies_bouldin': round(float(davies_bouldin_score(X, labels)), 4),
        'calinski_harabasz': round(float(calinski_harabasz_score(X, labels)), 4),
        'n_clusters': n_clusters,
        'valid': True
    }


def format_metrics_for_display(metrics):
    """
    Format metrics dictionary for printing.

    Args:
        metrics: dict from calculate_cluster_metrics

    Returns:
        dict with formatted strings
    """
    return {
        'Silhouette Score': f"{metrics['silhouette']:.4f}",
        'Davies-Bouldin Index': f"{metrics['davies_bouldin']:.4f}",
        'Calinski-Harabasz Index': f"{metrics['calinski_harabasz']:.2f}",
        'Clusters Found': metrics['n_clusters']
    }
