"""
Felling Date Estimation Package
===============================

Estimates the felling date of timber from the number of sapwood rings
preserved on a sample and the calendar year of its last measured ring.

Modules:
    config        - Default settings and thresholds
    exceptions    - Errors, warnings and diagnostic flags
    catalog       - Sapwood datasets (bundled and user-supplied)
    density       - Density fitting and highest density intervals
    interval      - Felling date PMF / HDI of one series
    series        - Series records and tables
    combine       - Common felling date of several series
    spd           - Summed probability density of independent series
    reporting     - Tabular and text reports
    heidelberg    - Heidelberg (.fh) file reader
    visualization - Plots
    main          - Command-line entry point

Quick Start:
    >>> from fellingdate import sw_interval, sw_combine, SeriesRecord
    >>> sw_interval(10, last=1234, hdi=True, sw_data="Wazny_1990_approx")
    >>> sw_combine([SeriesRecord("a", 1000, 5), SeriesRecord("b", 1005, 12)])
"""

__version__ = '0.1.0'

from .config import (
    DEFAULT_SW_DATA, DEFAULT_DENSFUN, DEFAULT_CRED_MASS, A_CRITICAL,
    ensure_output_dir, print_config_summary
)

from .exceptions import (
    FellingDateError,
    InvalidInputError,
    UnsupportedFamilyError,
    UnknownDatasetError,
    InputConflictError,
    FellingDateWarning,
    Diagnostic
)

from .catalog import (
    SapwoodDataset,
    SapwoodCatalog,
    Fallback,
    Reject,
    default_catalog,
    load_sapwood_csv,
    sw_data_overview
)

from .density import (
    DensityFamily,
    FittedDistribution,
    HDIInterval,
    fit_sapwood_model,
    density,
    hdi,
    sw_model
)

from .interval import FellingDatePMF, sw_interval

from .series import SeriesRecord, series_from_table, read_series_csv

from .combine import CombinedModel, sw_combine

from .spd import SummedPMF, sw_sum

from .reporting import fd_report, combine_report, format_combine_summary

from .heidelberg import read_fh, fh_series_table

from .visualization import (
    plot_sapwood_model,
    plot_interval,
    plot_combine,
    plot_sum,
    setup_plot_style
)
