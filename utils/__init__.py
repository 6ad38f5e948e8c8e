"""Utility modules for the Auto-MPG analysis."""

from .data_loader import load_table, get_variable_metadata, describe_quantitative
from .preprocessing import select_features, encode_categorical, scale_features
from .metrics import calculate_cluster_metrics
from .config import AnalysisConfig, load_config

__all__ = [
    'load_table',
    'get_variable_metadata',
    'describe_quantitative',
    'select_features',
    'encode_categorical',
    'scale_features',
    'calculate_cluster_metrics',
    'AnalysisConfig',
    'load_config',
]
