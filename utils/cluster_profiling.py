"""
Cluster profiling against supplementary variables.

Used to read k-means groupings in terms of cylinder count and origin:
- Row-normalized crosstabs of clusters vs a categorical variable
- Chi-square / Cramer's V / NMI association
- Per-cluster means of the raw quantitative variables
"""

from typing import Dict, Sequence

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import normalized_mutual_info_score


def compare_clusters_with_external(labels: pd.Series, external_var: pd.Series,
                                   external_name: str = 'External') -> pd.DataFrame:
    """
    Cross-tabulate clusters with an external variable.

    Args:
        labels: Cluster labels
        external_var: Categorical variable aligned with labels
        external_name: Name for the external variable

    Returns:
        DataFrame crosstab with row percentages
    """
    external = np.asarray(external_var, dtype=object)
    mask = pd.notnull(external)
    cluster_series = pd.Series(np.asarray(labels)[mask], name='Cluster')
    external_series = pd.Series(external[mask], name=external_name)

    ct = pd.crosstab(cluster_series, external_series, normalize='index') * 100
    return ct.round(2)


def external_validation(labels: pd.Series, external_var: pd.Series,
                        var_name: str = 'External') -> Dict:
    """
    Measure the association between clusters and a known variable.

    Returns:
        Dict with:
            - 'crosstab': Cross-tabulation of clusters vs external variable
            - 'crosstab_pct': Cross-tab as row percentages
            - 'chi_square': Chi-square statistic
            - 'p_value': P-value for chi-square test
            - 'cramers_v': Cramer's V (effect size)
            - 'nmi': Normalized Mutual Information
            - 'degrees_of_freedom'
    """
    # Individuals without a value for the external variable are left out
    external = np.asarray(external_var, dtype=object)
    mask = pd.notnull(external)
    labels_clean = np.asarray(labels)[mask]
    external_clean = external[mask].astype(str)

    ct = pd.crosstab(
        pd.Series(labels_clean, name='Cluster'),
        pd.Series(external_clean, name=var_name)
    )

    chi2, p_value, dof, _ = stats.chi2_contingency(ct)

    n = ct.values.sum()
    min_dim = min(ct.shape[0] - 1, ct.shape[1] - 1)
    cramers_v = np.sqrt(chi2 / (n * min_dim)) if min_dim > 0 else 0.0

    nmi = normalized_mutual_info_score(labels_clean, external_clean)

    return {
        'crosstab': ct,
        'crosstab_pct': compare_clusters_with_external(labels_clean, external_clean, var_name),
        'chi_square': float(chi2),
        'p_value': float(p_value),
        'cramers_v': float(cramers_v),
        'nmi': float(nmi),
        'degrees_of_freedom': int(dof)
    }


def cluster_means(table: pd.DataFrame, labels: pd.Series,
                  columns: Sequence[str]) -> pd.DataFrame:
    """Mean of each raw quantitative variable per cluster, plus cluster size."""
    grouped = table[list(columns)].groupby(np.asarray(labels))
    means = grouped.mean()
    means['size'] = grouped.size()
    means.index.name = 'Cluster'
    return means


def generate_cluster_profiles(table: pd.DataFrame, labels: pd.Series,
                              quantitative: Sequence[str],
                              supplementary: Dict) -> Dict:
    """
    Profile clusters on the quantitative and supplementary variables.

    Args:
        table: Observation table
        labels: Cluster labels aligned with table rows
        quantitative: Raw quantitative columns to average per cluster
        supplementary: Dict of CategoricalVariable keyed by name

    Returns:
        Dict with 'means' and one external_validation dict per
        supplementary variable under 'associations'
    """
    associations = {
        name: external_validation(labels, variable.values, var_name=name)
        for name, variable in supplementary.items()
    }
    return {
        'means': cluster_means(table, labels, quantitative),
        'associations': associations
    }
