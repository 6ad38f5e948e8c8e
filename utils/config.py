"""
Configuration for the analysis pipeline.

The input file carries no header, so column names and roles are supplied
here. Defaults describe the Auto-MPG data set.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from utils.errors import ConfigError

logger = logging.getLogger(__name__)

AUTO_MPG_COLUMNS = [
    'mpg', 'cylinders', 'displacement', 'horsepower',
    'weight', 'acceleration', 'year', 'origin', 'name'
]


@dataclass
class AnalysisConfig:
    """Every knob of a pipeline run, passed explicitly to each stage."""

    data_path: Optional[str] = None
    column_names: List[str] = field(default_factory=lambda: list(AUTO_MPG_COLUMNS))
    numeric_columns: List[str] = field(default_factory=lambda: [
        'mpg', 'cylinders', 'displacement', 'horsepower',
        'weight', 'acceleration', 'year', 'origin'
    ])
    id_columns: List[str] = field(default_factory=lambda: ['name', 'year'])
    quantitative_columns: List[str] = field(default_factory=lambda: [
        'mpg', 'displacement', 'horsepower', 'weight', 'acceleration'
    ])
    categorical_columns: List[str] = field(default_factory=lambda: ['cylinders', 'origin'])
    category_labels: Dict[str, Dict[Any, str]] = field(default_factory=lambda: {
        'origin': {1: 'American', 2: 'European', 3: 'Japanese'}
    })
    missing_values: List[str] = field(default_factory=lambda: ['?'])
    drop_missing: bool = True
    strict_categories: bool = True
    n_components: Optional[int] = None
    num_components_for_clustering: int = 2
    cluster_count: int = 3
    random_seed: Optional[int] = 42
    n_init: int = 10
    max_iter: int = 300

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data).difference(known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> 'AnalysisConfig':
        """Check column roles and integer ranges; returns self."""
        columns = set(self.column_names)
        if len(columns) != len(self.column_names):
            raise ConfigError("Duplicate names in column_names")

        for key in ('numeric_columns', 'id_columns', 'quantitative_columns',
                    'categorical_columns'):
            unknown = [c for c in getattr(self, key) if c not in columns]
            if unknown:
                raise ConfigError(f"{key} references unknown columns: {unknown}")

        non_numeric = [c for c in self.quantitative_columns if c not in self.numeric_columns]
        if non_numeric:
            raise ConfigError(f"Quantitative columns must be numeric: {non_numeric}")

        unknown_labels = [c for c in self.category_labels if c not in self.categorical_columns]
        if unknown_labels:
            raise ConfigError(f"category_labels given for non-categorical columns: {unknown_labels}")

        if self.n_components is not None and self.n_components < 1:
            raise ConfigError("n_components must be at least 1")
        if self.num_components_for_clustering < 1:
            raise ConfigError("num_components_for_clustering must be at least 1")
        if self.n_init < 1 or self.max_iter < 1:
            raise ConfigError("n_init and max_iter must be at least 1")

        return self


def load_config(filepath: str) -> AnalysisConfig:
    """
    Load configuration from a YAML or JSON file.

    Keys absent from the file keep their defaults.
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            data = json.load(f)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'r') as f:
            data = yaml.safe_load(f)
    else:
        raise ConfigError(f"Unsupported configuration file format: {filepath}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must hold a mapping: {filepath}")

    logger.info("Loaded configuration from %s", filepath)
    return AnalysisConfig.from_dict(data)
