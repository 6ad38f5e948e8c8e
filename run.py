"""
Auto-MPG exploratory analysis - command line entry point.

Loads the car table, runs the PCA with cylinders and origin as
supplementary variables, clusters the individuals on the leading
components and prints the result tables.
"""

import argparse
import logging
import sys

import pandas as pd

from models import AnalysisRunner, k_range_sweep
from utils import AnalysisConfig, load_config, get_variable_metadata
from utils.errors import AnalysisError
from utils.metrics import format_metrics_for_display

logger = logging.getLogger(__name__)


def setup_logging(level: str = 'INFO') -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Auto-MPG PCA and clustering analysis')
    parser.add_argument('--config', help='YAML or JSON configuration file')
    parser.add_argument('--data', help='Whitespace-delimited data file (overrides config)')
    parser.add_argument('--clusters', type=int, help='Number of k-means clusters')
    parser.add_argument('--cluster-components', type=int,
                        help='Number of leading components used for clustering')
    parser.add_argument('--seed', type=int, help='Random seed for k-means')
    parser.add_argument('--k-sweep', type=int, metavar='K_MAX',
                        help='Also print the inertia/silhouette table for k = 2..K_MAX')
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level'
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    config = load_config(args.config) if args.config else AnalysisConfig()
    if args.data:
        config.data_path = args.data
    if args.clusters is not None:
        config.cluster_count = args.clusters
    if args.cluster_components is not None:
        config.num_components_for_clustering = args.cluster_components
    if args.seed is not None:
        config.random_seed = args.seed
    return config


def section(title: str) -> None:
    print()
    print("=" * 78)
    print(title)
    print("=" * 78)


def print_report(result, k_sweep=None) -> None:
    pd.set_option('display.width', 120)
    pd.set_option('display.precision', 3)

    # =========================================================================
    # DATA
    # =========================================================================
    section(f"Variable View ({len(result.table)} rows)")
    print(get_variable_metadata(result.table).to_string(index=False))

    section("Descriptive Statistics")
    print(result.descriptives)

    section("Correlation Matrix")
    print(result.pca.correlation)

    # =========================================================================
    # PCA
    # =========================================================================
    section("Eigenvalues")
    print(result.pca.explained_variance)

    section("Variables - coordinates (correlation circle)")
    print(result.pca.variable_coord)

    section("Variables - contributions (%)")
    print(result.pca.variable_contrib)

    for name, projection in result.pca.supplementary.items():
        section(f"Supplementary variable: {name}")
        print(projection.coordinates.assign(n=projection.counts))
        print()
        print(projection.summary())
        if projection.omitted_levels:
            print(f"Omitted levels (no members): {projection.omitted_levels}")

    # =========================================================================
    # CLUSTERING
    # =========================================================================
    clusters = result.clusters
    section("K-Means (" + ", ".join(f"{k}={v}" for k, v in clusters.params.items()) + ")")
    print(f"Inertia: {clusters.inertia:.4f} after {clusters.n_iter} iterations")
    if clusters.metrics['valid']:
        for label, value in format_metrics_for_display(clusters.metrics).items():
            print(f"{label}: {value}")
    print()
    print(result.profiles['means'])

    for name, assoc in result.profiles['associations'].items():
        section(f"Clusters vs {name} (row %)")
        print(assoc['crosstab_pct'])
        print(f"chi2={assoc['chi_square']:.3f}  p={assoc['p_value']:.4g}  "
              f"Cramer's V={assoc['cramers_v']:.3f}  NMI={assoc['nmi']:.3f}")

    if k_sweep is not None:
        section("K sweep")
        print(k_sweep)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = build_config(args)
        runner = AnalysisRunner(config)
        result = runner.run()
        sweep = None
        if args.k_sweep:
            sweep = k_range_sweep(
                result.pca.scores, config.num_components_for_clustering,
                range(2, args.k_sweep + 1), random_state=config.random_seed
            )
    except AnalysisError as e:
        logger.error("%s: %s", e.kind, e)
        return 1

    print_report(result, sweep)
    return 0


if __name__ == '__main__':
    sys.exit(main())
