"""
Main Analysis Script for Felling Date Estimation
================================================

Command-line entry point and small orchestration functions.

Usage:
    python -m fellingdate.main datasets
    python -m fellingdate.main interval --n-sapwood 10 --last 1234 --sw-data Wazny_1990_approx
    python -m fellingdate.main combine series.csv
    python -m fellingdate.main sum site.fh --plot

Tables of series are read from .csv files (columns series, last, n_sapwood,
waneyedge) or from Heidelberg .fh files (KeyCode, DateEnd, SapWoodRings,
WaldKante).
"""

import sys
import argparse
from pathlib import Path

import pandas as pd

from .config import (
    DEFAULT_SW_DATA, DEFAULT_DENSFUN, DEFAULT_CRED_MASS, A_CRITICAL,
    DENSITY_FAMILIES
)
from .catalog import default_catalog
from .combine import sw_combine
from .density import sw_model
from .exceptions import FellingDateError
from .heidelberg import read_fh, fh_series_table
from .interval import sw_interval
from .reporting import fd_report, format_combine_summary
from .series import series_from_table
from .spd import sw_sum


# ============================================================================
# INPUT
# ============================================================================

def load_series_table(path, sep=","):
    """Series table from a .csv or Heidelberg (.fh) file."""
    path = Path(path)
    if path.suffix.lower() == '.fh':
        return fh_series_table(read_fh(path, header=True))
    return pd.read_csv(path, sep=sep)


# ============================================================================
# ANALYSES
# ============================================================================

def show_datasets(catalog=None):
    """Print the available sapwood datasets."""
    if catalog is None:
        catalog = default_catalog()
    overview = catalog.overview()
    print("\n" + "=" * 60)
    print("SAPWOOD DATASETS")
    print("=" * 60)
    print(overview[['name', 'region', 'n', 'min', 'max', 'median']].to_string(index=False))
    return overview


def analyze_interval(n_sapwood, last=0, cred_mass=DEFAULT_CRED_MASS,
                     sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
                     plot=False, save_path=None):
    """Felling date range of one series, printed (and optionally plotted)."""
    pmf = sw_interval(n_sapwood, last=last, cred_mass=cred_mass,
                      sw_data=sw_data, densfun=densfun)
    if pmf is None:
        print("No estimate: no sapwood rings recorded.")
        return None

    interval = pmf.hdi
    print("\n" + "=" * 60)
    print(f"FELLING DATE ({pmf.sw_data}, {pmf.densfun})")
    print("=" * 60)
    print(f"Sapwood rings observed: {pmf.n_sapwood}")
    print(f"Last ring: {pmf.last if not pmf.is_relative else '- (relative)'}")
    if interval.upper is None:
        print(f"Felled after {interval.lower} (no upper limit)")
    else:
        print(f"HDI ({cred_mass:.1%}): {interval.lower} - {interval.upper} "
              f"(p = {interval.p:.3f})")
        print(f"Most probable: {pmf.mode}")
    print("=" * 60)

    if plot:
        from .visualization import plot_interval, get_figure_path
        fig_path = save_path or get_figure_path(f"interval_{pmf.n_sapwood}_{pmf.last}.png")
        plot_interval(pmf, save_path=fig_path)
    return pmf


def analyze_combine(path, sep=",", sw_data=DEFAULT_SW_DATA,
                    densfun=DEFAULT_DENSFUN, cred_mass=DEFAULT_CRED_MASS,
                    a_critical=A_CRITICAL, plot=False, save_path=None):
    """Combined felling date of the series in a file."""
    table = load_series_table(path, sep=sep)
    model = sw_combine(series_from_table(table), sw_data=sw_data,
                       densfun=densfun, cred_mass=cred_mass,
                       a_critical=a_critical)
    print()
    print(format_combine_summary(model))

    if plot:
        from .visualization import plot_combine, get_figure_path
        fig_path = save_path or get_figure_path(f"combine_{Path(path).stem}.png")
        plot_combine(model, save_path=fig_path)
    return model


def analyze_sum(path, sep=",", sw_data=DEFAULT_SW_DATA,
                densfun=DEFAULT_DENSFUN, cred_mass=DEFAULT_CRED_MASS,
                plot=False, save_path=None):
    """Per-series report and summed probability density of a file."""
    table = load_series_table(path, sep=sep)
    records = series_from_table(table)
    fd_report(records, sw_data=sw_data, densfun=densfun,
              cred_mass=cred_mass, verbose=True)
    spd = sw_sum(records, sw_data=sw_data, densfun=densfun, verbose=True)

    if plot:
        from .visualization import plot_sum, get_figure_path
        fig_path = save_path or get_figure_path(f"spd_{Path(path).stem}.png")
        plot_sum(spd, save_path=fig_path)
    return spd


def analyze_model(sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
                  cred_mass=DEFAULT_CRED_MASS, plot=False, save_path=None):
    """Fitted sapwood model of one dataset."""
    model = sw_model(sw_data, densfun, cred_mass=cred_mass)
    interval = model['hdi']
    lo, hi, n = model['range']
    print("\n" + "=" * 60)
    print(f"SAPWOOD MODEL: {model['sapwood_data']} ({model['densfun']})")
    print("=" * 60)
    print(f"Observations: n = {n}, range {lo} - {hi}")
    for name, value in model['fit_parameters'].items():
        print(f"  {name}: {value:.4f}")
    print(f"HDI ({cred_mass:.1%}): {interval.lower} - {interval.upper} sapwood rings")
    print("=" * 60)

    if plot:
        from .visualization import plot_sapwood_model, get_figure_path
        fig_path = save_path or get_figure_path(
            f"model_{model['sapwood_data']}_{model['densfun']}.png")
        plot_sapwood_model(model, save_path=fig_path)
    return model


# ============================================================================
# COMMAND LINE
# ============================================================================

def _add_model_args(parser):
    parser.add_argument('--sw-data', default=DEFAULT_SW_DATA,
                        help=f'Sapwood dataset name or .csv file (default: {DEFAULT_SW_DATA})')
    parser.add_argument('--densfun', choices=DENSITY_FAMILIES, default=DEFAULT_DENSFUN,
                        help=f'Density function (default: {DEFAULT_DENSFUN})')
    parser.add_argument('--cred-mass', type=float, default=DEFAULT_CRED_MASS,
                        help=f'Credible mass of the HDI (default: {DEFAULT_CRED_MASS})')
    parser.add_argument('--plot', action='store_true',
                        help='Save a figure to the output directory')
    parser.add_argument('--save-path', default=None,
                        help='Explicit path for the figure')


def build_parser():
    parser = argparse.ArgumentParser(
        description='Sapwood-based felling date estimation')
    sub = parser.add_subparsers(dest='command')

    sub.add_parser('datasets', help='List the available sapwood datasets')

    p = sub.add_parser('model', help='Fit a density function to a sapwood dataset')
    _add_model_args(p)

    p = sub.add_parser('interval', help='Felling date range of one series')
    p.add_argument('--n-sapwood', type=int, required=True,
                   help='Number of observed sapwood rings')
    p.add_argument('--last', type=int, default=0,
                   help='Year of the last measured ring (default: 0, relative)')
    p.add_argument('--hdi', action='store_true',
                   help='Print only the HDI limits')
    _add_model_args(p)

    p = sub.add_parser('combine', help='Combine series felled at the same time')
    p.add_argument('path', help='Series table (.csv) or Heidelberg file (.fh)')
    p.add_argument('--sep', default=',', help='CSV separator (default: ,)')
    p.add_argument('--a-critical', type=float, default=A_CRITICAL,
                   help=f'Critical agreement index in %% (default: {A_CRITICAL:.0f})')
    _add_model_args(p)

    p = sub.add_parser('sum', help='Summed probability density of independent series')
    p.add_argument('path', help='Series table (.csv) or Heidelberg file (.fh)')
    p.add_argument('--sep', default=',', help='CSV separator (default: ,)')
    _add_model_args(p)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == 'datasets':
            show_datasets()
        elif args.command == 'model':
            analyze_model(args.sw_data, args.densfun, cred_mass=args.cred_mass,
                          plot=args.plot, save_path=args.save_path)
        elif args.command == 'interval':
            if args.hdi:
                interval = sw_interval(args.n_sapwood, last=args.last, hdi=True,
                                       cred_mass=args.cred_mass,
                                       sw_data=args.sw_data, densfun=args.densfun)
                print(f"lower: {interval.lower}")
                print(f"upper: {'NA' if interval.upper is None else interval.upper}")
                print(f"p: {interval.p:.4f}")
            else:
                analyze_interval(args.n_sapwood, last=args.last,
                                 cred_mass=args.cred_mass, sw_data=args.sw_data,
                                 densfun=args.densfun, plot=args.plot,
                                 save_path=args.save_path)
        elif args.command == 'combine':
            analyze_combine(args.path, sep=args.sep, sw_data=args.sw_data,
                            densfun=args.densfun, cred_mass=args.cred_mass,
                            a_critical=args.a_critical, plot=args.plot,
                            save_path=args.save_path)
        elif args.command == 'sum':
            analyze_sum(args.path, sep=args.sep, sw_data=args.sw_data,
                        densfun=args.densfun, cred_mass=args.cred_mass,
                        plot=args.plot, save_path=args.save_path)
    except (FellingDateError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
