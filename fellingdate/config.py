"""
Configuration settings for Felling Date Estimation
===================================================

This module contains the defaults, thresholds and plotting parameters used
throughout the package. Every function that depends on one of these values
also accepts it as a keyword argument, so this module only sets defaults.

Project: fellingdate - Sapwood-based felling date estimation
"""

import os
from pathlib import Path

# ============================================================================
# SAPWOOD MODEL DEFAULTS
# ============================================================================

# Dataset used when none (or an unknown one) is requested
DEFAULT_SW_DATA = "Hollstein_1980_approx"

# Density family fitted to the sapwood counts
DEFAULT_DENSFUN = "lognormal"

# Probability mass inside the highest density interval
DEFAULT_CRED_MASS = 0.954

# Supported density families (see density.DensityFamily)
DENSITY_FAMILIES = ("lognormal", "normal", "weibull", "gamma")

# ============================================================================
# NUMERICAL PARAMETERS
# ============================================================================

# Ring-count lattice: n_sapwood, n_sapwood + 1, ..., n_sapwood + 100
N_LATTICE = 101

# Densities at or below this value are dropped before renormalisation.
# Absolute constant, not scaled by lattice length.
P_THRESHOLD = 1e-7

# Critical agreement index (%) for combined models
A_CRITICAL = 60.0

# ============================================================================
# TABULAR INPUT
# ============================================================================

# Field separators accepted for user-supplied sapwood data (.csv)
CSV_SEPARATORS = (",", ";")

# Default column names for tables of series
# (series identifier, last ring, observed sapwood rings, waney edge)
SERIES_COLS = {
    'series': 'series',
    'last': 'last',
    'n_sapwood': 'n_sapwood',
    'waneyedge': 'waneyedge',
}

# Values read as "waney edge present" in tabular input
WANEYEDGE_TRUE = ('true', 't', 'yes', 'y', '1', 'wk', 'wke', 'waldkante')

# ============================================================================
# OUTPUT AND VISUALIZATION
# ============================================================================

OUTPUT_DIR = os.environ.get("FELLINGDATE_OUTPUT_DIR", "outputs")

PLOT_STYLE = 'seaborn-v0_8-whitegrid'

PLOT_PARAMS = {
    'font.size': 11,
    'axes.labelsize': 12,
    'axes.titlesize': 13,
    'legend.fontsize': 10,
    'figure.dpi': 100,
    'savefig.dpi': 300,
    'savefig.bbox': 'tight',
    'figure.figsize': (9, 5),
}

COLORS = {
    'density': 'steelblue',
    'hdi': 'tomato',
    'histogram': 'lightgray',
    'combined': 'darkred',
    'spd': 'darkgreen',
    'exact': 'black',
}


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def ensure_output_dir():
    """Create output directory if it doesn't exist."""
    Path(OUTPUT_DIR).mkdir(parents=True, exist_ok=True)
    return OUTPUT_DIR


def print_config_summary():
    """Print summary of current configuration."""
    print("=" * 60)
    print("FELLING DATE ESTIMATION - Configuration Summary")
    print("=" * 60)
    print(f"\nSapwood model:")
    print(f"  Default dataset: {DEFAULT_SW_DATA}")
    print(f"  Default density function: {DEFAULT_DENSFUN}")
    print(f"  Default credible mass: {DEFAULT_CRED_MASS}")
    print(f"\nNumerics:")
    print(f"  Lattice length: {N_LATTICE}")
    print(f"  Truncation threshold: {P_THRESHOLD:g}")
    print(f"  Critical agreement index: {A_CRITICAL:.0f}%")
    print(f"\nOutput Directory: {OUTPUT_DIR}")
    print("=" * 60)


if __name__ == "__main__":
    print_config_summary()
