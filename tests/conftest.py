"""Shared fixtures for the analysis tests."""

import os
import sys

import numpy as np
import pandas as pd
import pytest

# Add the parent directory to the path to import the packages
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, ROOT)

from utils.preprocessing import select_features  # noqa: E402

SAMPLE_DATA = os.path.join(ROOT, 'data', 'auto-mpg-sample.data')
SAMPLE_CONFIG = os.path.join(ROOT, 'config', 'auto_mpg.yaml')


@pytest.fixture
def write_table(tmp_path):
    """Write lines to a data file and return its path."""
    def _write(lines, name='table.data'):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding='utf-8')
        return str(path)
    return _write


@pytest.fixture
def sample_path():
    return SAMPLE_DATA


@pytest.fixture
def cars_table():
    """Small car-like table with correlated size variables and two factors."""
    rng = np.random.RandomState(0)
    n = 60
    size = rng.normal(0, 1, n)
    df = pd.DataFrame({
        'mpg': 25 - 5 * size + rng.normal(0, 1, n),
        'displacement': 200 + 80 * size + rng.normal(0, 10, n),
        'horsepower': 100 + 30 * size + rng.normal(0, 8, n),
        'weight': 3000 + 600 * size + rng.normal(0, 100, n),
        'acceleration': 15 - 1.5 * size + rng.normal(0, 1.5, n),
        'cylinders': np.where(size > 0.5, 8.0, np.where(size > -0.5, 6.0, 4.0)),
        'origin': np.tile([1.0, 2.0, 3.0], n // 3),
    })
    df.index = [f"car {i}" for i in range(n)]
    return df


@pytest.fixture
def cars_features(cars_table):
    return select_features(
        cars_table,
        ['mpg', 'displacement', 'horsepower', 'weight', 'acceleration'],
        ['cylinders', 'origin'],
        labels={'origin': {1: 'American', 2: 'European', 3: 'Japanese'}}
    )
