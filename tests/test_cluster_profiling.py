"""
Tests for cluster profiling against supplementary variables.
"""

import numpy as np
import pandas as pd
import pytest

from utils.cluster_profiling import (
    cluster_means, compare_clusters_with_external, external_validation,
    generate_cluster_profiles
)


@pytest.fixture
def labelled():
    labels = pd.Series([1, 1, 1, 2, 2, 3, 3, 3], name='cluster')
    origin = pd.Series(['American'] * 3 + ['European'] * 2 + ['Japanese'] * 3)
    return labels, origin


class TestCrosstabs:
    """Tests for crosstab-based association."""

    def test_row_percentages(self, labelled):
        labels, origin = labelled
        ct = compare_clusters_with_external(labels, origin, 'origin')

        assert np.allclose(ct.sum(axis=1), 100.0)
        assert ct.loc[1, 'American'] == 100.0
        assert ct.columns.name == 'origin'

    def test_perfect_association(self, labelled):
        labels, origin = labelled
        result = external_validation(labels, origin, 'origin')

        assert np.isclose(result['cramers_v'], 1.0)
        assert np.isclose(result['nmi'], 1.0)
        assert result['degrees_of_freedom'] == 4
        assert result['crosstab'].values.sum() == 8

    def test_no_association(self):
        labels = pd.Series([1, 2] * 20)
        origin = pd.Series(['a'] * 20 + ['b'] * 20)
        result = external_validation(labels, origin)

        assert result['cramers_v'] < 0.1
        assert result['p_value'] > 0.5

    def test_missing_external_values_are_left_out(self):
        """Missing values do not form a level of their own."""
        labels = pd.Series([1, 1, 2, 2, 1, 2])
        cylinders = pd.Series(['4', '4', '8', np.nan, '8', '4'])
        result = external_validation(labels, cylinders, 'cylinders')

        assert list(result['crosstab'].columns) == ['4', '8']
        assert result['crosstab'].values.sum() == 5
        assert list(result['crosstab_pct'].columns) == ['4', '8']
        assert np.allclose(result['crosstab_pct'].sum(axis=1), 100.0)

        ct = compare_clusters_with_external(labels, cylinders, 'cylinders')
        assert list(ct.columns) == ['4', '8']


class TestClusterMeans:
    """Tests for cluster_means and generate_cluster_profiles."""

    def test_means_and_sizes(self):
        table = pd.DataFrame({'mpg': [10.0, 20.0, 30.0, 40.0],
                              'weight': [4000.0, 3000.0, 2000.0, 1000.0]})
        labels = pd.Series([1, 1, 2, 2])
        means = cluster_means(table, labels, ['mpg', 'weight'])

        assert means.loc[1, 'mpg'] == 15.0
        assert means.loc[2, 'weight'] == 1500.0
        assert means['size'].tolist() == [2, 2]

    def test_profiles(self, cars_table, cars_features):
        labels = pd.Series(np.where(cars_table['weight'] > 3000, 1, 2), index=cars_table.index)
        profiles = generate_cluster_profiles(
            cars_table, labels, cars_features.feature_names, cars_features.supplementary
        )

        assert set(profiles['associations']) == {'cylinders', 'origin'}
        assert profiles['associations']['cylinders']['cramers_v'] > 0.5
        assert list(profiles['means'].index) == [1, 2]
