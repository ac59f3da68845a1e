"""
Summed Probability Density Module
=================================

Aggregates the felling dates of independent series (e.g. all timbers from
a site, felled at different times) into a summed probability density.

Unlike ``sw_combine`` the individual distributions are added, not
multiplied: every series is a separate felling event. The resulting curve
is not rescaled, so its total equals the number of contributing series.

Contributions:

- partial sapwood          : the felling date PMF (sums to 1)
- waney edge / known year  : probability 1 at that year
- interval bounds (HDIInterval) : uniform mass over lower..upper
- no sapwood (terminus post quem), no upper limit: excluded, the PMF
  would be unbounded
"""

from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .config import DEFAULT_SW_DATA, DEFAULT_DENSFUN, N_LATTICE, P_THRESHOLD
from .density import HDIInterval, fit_sapwood_model
from .exceptions import (
    Diagnostic, ExcludedSeriesWarning, HighSapwoodCountWarning, InvalidInputError,
    NoUpperLimitWarning, emit
)
from .interval import FellingDatePMF, felling_date_table
from .series import EXACT, RANGE, SeriesRecord, as_records

# Tolerance on the mass of each contributing PMF
_UNIT_TOL = 1e-6


@dataclass(frozen=True, eq=False)
class SummedPMF:
    """
    Summed probability density of several felling dates.

    Attributes
    ----------
    table : DataFrame
        ``year``, one column per contributing series and ``spd``
    series : list of str
        Labels of the contributing series
    excluded : list of str
        Series left out (no sapwood, or no computable distribution)
    flags : frozenset of Diagnostic
    """

    table: pd.DataFrame
    series: list
    excluded: list = field(default_factory=list)
    sw_data: str = None
    densfun: str = None
    flags: frozenset = field(default_factory=frozenset)

    @property
    def years(self):
        return self.table['year'].to_numpy()

    @property
    def spd(self):
        return self.table['spd'].to_numpy()

    @property
    def total_mass(self):
        return float(self.table['spd'].sum()) if not self.table.empty else 0.0

    @property
    def n_series(self):
        return len(self.series)


def _unique(label, used):
    candidate, n = label, 1
    while candidate in used:
        n += 1
        candidate = f"{label}_{n}"
    used.add(candidate)
    return candidate


def _no_upper_limit(label, excluded, flags):
    emit(f"{label}: no upper limit for the felling date could be computed.",
         NoUpperLimitWarning)
    flags.add(Diagnostic.NO_UPPER_LIMIT)
    excluded.append(label)


def sw_sum(series, sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
           catalog=None, on_unknown=None, p_threshold=P_THRESHOLD,
           n_lattice=N_LATTICE, cols=None, sep=";", verbose=False):
    """
    Summed probability density of independent felling dates.

    Parameters
    ----------
    series : list or DataFrame
        SeriesRecord, FellingDatePMF or HDIInterval objects (they can be
        mixed). An HDIInterval contributes a unit mass spread evenly over
        ``lower..upper``.
    sw_data, densfun, catalog, on_unknown, sep
        Sapwood model used for SeriesRecords with partial sapwood
    p_threshold, n_lattice
        As in ``sw_interval``
    cols : dict, optional
        Column mapping for DataFrame input
    verbose : bool

    Returns
    -------
    SummedPMF
    """
    if isinstance(series, pd.DataFrame):
        items = as_records(series, cols=cols)
    else:
        items = list(series)

    flags = set()
    used = set()
    contributions = []  # (label, years, p)
    excluded = []
    fitted = None

    for k, item in enumerate(items):
        if isinstance(item, FellingDatePMF):
            if len(item.table) <= 1:
                _no_upper_limit(f"series_{k + 1}", excluded, flags)
                continue
            label = _unique(f"series_{k + 1}", used)
            years, p = item.years, item.p
        elif isinstance(item, HDIInterval):
            if item.lower is None or item.upper is None:
                excluded.append(f"series_{k + 1}")
                continue
            label = _unique(f"series_{k + 1}", used)
            years = np.arange(int(item.lower), int(item.upper) + 1)
            p = np.full(len(years), 1.0 / len(years))
        elif isinstance(item, SeriesRecord):
            kind = item.kind
            if kind == EXACT:
                years, p = np.array([item.exact_year]), np.array([1.0])
            elif kind == RANGE:
                if fitted is None:
                    fitted = fit_sapwood_model(sw_data, densfun, catalog=catalog,
                                               on_unknown=on_unknown, sep=sep)
                    flags.update(fitted.flags)
                if item.n_sapwood > fitted.sample_range[1]:
                    emit(f"{item.series}: {item.n_sapwood} is a very high no. "
                         "of sapwood rings. Is this correct?",
                         HighSapwoodCountWarning)
                    flags.add(Diagnostic.HIGH_SAPWOOD_COUNT)
                table = felling_date_table(fitted, item.n_sapwood, item.last,
                                           p_threshold=p_threshold,
                                           n_lattice=n_lattice)
                if len(table) <= 1:
                    _no_upper_limit(item.series, excluded, flags)
                    continue
                years, p = table['year'].to_numpy(), table['p'].to_numpy()
            else:
                excluded.append(item.series)
                continue
            label = _unique(item.series, used)
        else:
            raise InvalidInputError(
                " --> sw_sum expects SeriesRecord, FellingDatePMF or "
                "HDIInterval objects, "
                f"got {type(item).__name__}"
            )

        if abs(np.sum(p) - 1.0) > _UNIT_TOL:
            raise InvalidInputError(
                f" --> the probabilities of {label} do not sum to 1"
            )
        contributions.append((label, np.asarray(years, dtype=int),
                              np.asarray(p, dtype=float)))

    if excluded:
        emit(f"{len(excluded)} series without a bounded felling date "
             f"excluded from the sum: {', '.join(excluded)}",
             ExcludedSeriesWarning)
        flags.add(Diagnostic.EXCLUDED_SERIES)

    if contributions:
        lo = min(years.min() for _, years, _ in contributions)
        hi = max(years.max() for _, years, _ in contributions)
        axis = np.arange(lo, hi + 1)
    else:
        axis = np.array([], dtype=int)

    table = pd.DataFrame({'year': axis})
    for label, years, p in contributions:
        column = np.zeros(len(axis))
        column[years - axis[0]] = p
        table[label] = column
    table['spd'] = table[[label for label, _, _ in contributions]].sum(axis=1) \
        if contributions else 0.0

    result = SummedPMF(
        table=table,
        series=[label for label, _, _ in contributions],
        excluded=excluded,
        sw_data=fitted.sw_data if fitted is not None else None,
        densfun=fitted.densfun if fitted is not None else None,
        flags=frozenset(flags),
    )

    if verbose:
        print("\n" + "=" * 60)
        print("SUMMED PROBABILITY DENSITY")
        print("=" * 60)
        print(f"Series included: {result.n_series}")
        print(f"Series excluded: {len(excluded)}")
        if contributions:
            peak = int(axis[np.argmax(result.spd)])
            print(f"Year range: {axis[0]} - {axis[-1]}")
            print(f"Peak year: {peak} (spd = {result.spd.max():.3f})")
        print(f"Total mass: {result.total_mass:.3f}")
        print("=" * 60)

    return result
