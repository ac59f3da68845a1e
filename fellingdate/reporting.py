"""
Reporting Module
================

Tabular summaries of felling date estimates:

- fd_report()              one row per series (range / terminus post quem / exact)
- combine_report()         per-series agreement plus the combined estimate
- format_combine_summary() plain-text report of a combined model
"""

import warnings

import numpy as np
import pandas as pd

from .config import DEFAULT_SW_DATA, DEFAULT_DENSFUN, DEFAULT_CRED_MASS
from .density import check_cred_mass
from .exceptions import Diagnostic, FellingDateWarning
from .interval import sw_interval
from .series import EXACT, TPQ, as_records

INTERPRETATION = {
    'range': 'dated range',
    'tpq': 'terminus post quem',
    'exact': 'exact year',
}


def _felling_date_text(kind, lower, upper):
    if kind == EXACT:
        return f"in {lower}"
    if upper is None:
        return f"after {lower}"
    if lower == upper:
        return f"in {lower}"
    return f"between {lower} and {upper}"


def fd_report(series, sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
              cred_mass=DEFAULT_CRED_MASS, catalog=None, on_unknown=None,
              cols=None, sep=";", verbose=False):
    """
    Felling date (range) of every series in a table.

    Parameters
    ----------
    series : DataFrame or list of SeriesRecord
    sw_data, densfun, cred_mass, catalog, on_unknown, sep
        Sapwood model, as in ``sw_interval``
    cols : dict, optional
        Column mapping for DataFrame input
    verbose : bool
        Print the report

    Returns
    -------
    DataFrame
        series, last, n_sapwood, waneyedge, kind, interpretation, lower,
        upper, p, felling_date, flags
    """
    cred_mass = check_cred_mass(cred_mass)
    records = as_records(series, cols=cols)

    rows = []
    for rec in records:
        kind = rec.kind
        flags = frozenset()
        if kind == EXACT:
            lower = upper = rec.exact_year
            p = 1.0
        elif kind == TPQ:
            lower, upper, p = rec.last, None, np.nan
            flags = frozenset({Diagnostic.TERMINUS_POST_QUEM})
        else:
            with warnings.catch_warnings():
                # diagnostics are reported in the flags column
                warnings.simplefilter('ignore', FellingDateWarning)
                interval = sw_interval(rec.n_sapwood, last=rec.last, hdi=True,
                                       cred_mass=cred_mass, sw_data=sw_data,
                                       densfun=densfun, sep=sep,
                                       catalog=catalog, on_unknown=on_unknown)
            lower, upper, p = interval.lower, interval.upper, interval.p
            flags = interval.flags
        rows.append({
            'series': rec.series,
            'last': rec.last,
            'n_sapwood': rec.n_sapwood,
            'waneyedge': rec.waneyedge,
            'kind': kind,
            'interpretation': INTERPRETATION[kind],
            'lower': lower,
            'upper': upper,
            'p': p,
            'felling_date': _felling_date_text(kind, lower, upper),
            'flags': ', '.join(sorted(f.value for f in flags)),
        })

    report = pd.DataFrame(rows, columns=[
        'series', 'last', 'n_sapwood', 'waneyedge', 'kind', 'interpretation',
        'lower', 'upper', 'p', 'felling_date', 'flags'
    ])

    if verbose:
        print("\n" + "=" * 70)
        print(f"FELLING DATE REPORT ({sw_data}, {densfun}, credMass = {cred_mass})")
        print("=" * 70)
        for _, row in report.iterrows():
            print(f"  {row['series']:<20} felled {row['felling_date']:<28} "
                  f"[{row['interpretation']}]")
        print("=" * 70)

    return report


def combine_report(model):
    """
    Per-series table of a CombinedModel, followed by one row for the model.

    Returns
    -------
    DataFrame
        series, last, n_sapwood, waneyedge, kind, A_i, lower, upper, p
    """
    table = model.summary.copy()
    table['lower'] = np.nan
    table['upper'] = np.nan
    table['p'] = np.nan
    model_row = pd.DataFrame([{
        'series': 'model',
        'last': np.nan,
        'n_sapwood': np.nan,
        'waneyedge': np.nan,
        'kind': 'combined',
        'A_i': model.a_comb,
        'lower': model.hdi.lower,
        'upper': model.hdi.upper,
        'p': model.hdi.p,
    }])
    return pd.concat([table, model_row], ignore_index=True)


def format_combine_summary(model):
    """Plain-text report of a combined felling date."""
    interval = model.hdi
    lines = [
        "COMBINED FELLING DATE REPORT",
        "=" * 50,
        "",
        f"Series: {len(model.summary)}",
        f"Sapwood model: {model.sw_data or '-'} ({model.densfun or '-'})",
        "",
        "AGREEMENT:",
    ]
    for _, row in model.summary.iterrows():
        lines.append(f"  {row['series']:<20} A_i = {row['A_i']:6.1f}%  "
                     f"({INTERPRETATION.get(row['kind'], row['kind'])})")
    lines.append(f"  A_comb = {model.a_comb:.1f}% "
                 f"(critical threshold {model.a_critical:.0f}%)")
    lines.append("")
    lines.append("FELLING DATE:")
    if Diagnostic.NO_OVERLAP in model.flags:
        lines.append("  No common felling date could be computed.")
    elif interval.upper is None:
        lines.append(f"  after {interval.lower} (terminus post quem)")
    else:
        lines.append(f"  {_felling_date_text(None, interval.lower, interval.upper)}"
                     f" (p = {interval.p:.3f}, credMass = {interval.cred_mass})")
    lines.append("")
    lines.append("INTERPRETATION:")
    if model.is_sound:
        lines.append("  The series are compatible with a single felling date.")
    else:
        lines.append("  The combined model is not statistically sound.")
        if model.outliers:
            lines.append(f"  Re-examine or exclude: {', '.join(model.outliers)}")
    return "\n".join(lines)
