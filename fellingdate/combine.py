"""
Combine Felling Dates Module
============================

Estimates a single felling date for a group of timbers that are believed to
have been felled at the same time (e.g. the beams of one roof).

Each series contributes a probability distribution on a shared calendar
year axis:

- waney edge / known felling year : 1 at that year, 0 elsewhere
- no sapwood (terminus post quem)  : 1 from `last` onwards, 0 before
- partial sapwood                  : felling date PMF (see interval.py)

The distributions are multiplied year by year and rescaled to sum to 1.

Agreement index
---------------
How well each series fits the combined estimate, in percent:

    A_i = 100 * sum(p_comb) / sum(p_comb^2 / p_i)

with both sums over the years where p_i > 0. For a terminus post quem the
agreement is the share (in %) of the other series' joint probability that
lies at or after `last`. The overall index A_comb is the mean of the A_i.
Values below the critical threshold (default 60%) indicate that the
series are unlikely to share one felling date; the series with the lowest
A_i are the first candidates for exclusion.

When the series have no year in common at all, A_comb is 0 and each A_i
is computed against the group that still overlaps once the series
sharing years with the fewest others are set aside. The series set aside
stand out with A_i = 0.
"""

from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_SW_DATA, DEFAULT_DENSFUN, DEFAULT_CRED_MASS, A_CRITICAL,
    N_LATTICE, P_THRESHOLD
)
from .density import HDIInterval, check_cred_mass, fit_sapwood_model, hdi
from .exceptions import (
    Diagnostic, HighSapwoodCountWarning, InputConflictError, InvalidInputError,
    LowAgreementWarning, NoOverlapWarning, NoUpperLimitWarning, emit
)
from .interval import felling_date_table
from .series import EXACT, RANGE, TPQ, as_records


@dataclass(frozen=True, eq=False)
class CombinedModel:
    """
    Combined felling date of several series.

    Attributes
    ----------
    table : DataFrame
        ``year``, one column per series with its individual (normalised)
        probabilities, and ``p_comb`` with the combined probabilities
    hdi : HDIInterval
    a_comb : float
        Overall agreement index (%)
    a_i : Series
        Agreement index (%) per series, indexed by series label
    a_critical : float
    summary : DataFrame
        One row per series: series, last, n_sapwood, waneyedge, kind, A_i
    flags : frozenset of Diagnostic
    """

    table: pd.DataFrame
    hdi: HDIInterval
    a_comb: float
    a_i: pd.Series
    a_critical: float
    summary: pd.DataFrame
    sw_data: str = None
    densfun: str = None
    flags: frozenset = field(default_factory=frozenset)

    @property
    def is_sound(self):
        return (Diagnostic.NO_OVERLAP not in self.flags
                and self.a_comb >= self.a_critical)

    @property
    def years(self):
        return self.table['year'].to_numpy()

    @property
    def p(self):
        return self.table['p_comb'].to_numpy()

    @property
    def outliers(self):
        """Series whose agreement index is below the critical value."""
        return list(self.a_i[self.a_i < self.a_critical].index)


def _sort_key(rec):
    return (rec.series, rec.last,
            -1 if rec.n_sapwood is None else rec.n_sapwood,
            rec.waneyedge,
            -1 if rec.felling_year is None else rec.felling_year)


def _canonical(records):
    """Input positions sorted by record content, independent of input order."""
    return sorted(range(len(records)), key=lambda i: (_sort_key(records[i]), i))


def _labels(records):
    seen = {}
    labels = [None] * len(records)
    for i in _canonical(records):
        rec = records[i]
        n = seen.get(rec.series, 0) + 1
        seen[rec.series] = n
        labels[i] = rec.series if n == 1 else f"{rec.series}_{n}"
    return labels


def _agreement(p_comb, p_i):
    mask = p_i > 0
    den = np.sum(p_comb[mask] ** 2 / p_i[mask])
    if den <= 0:
        return 0.0
    return float(100 * np.sum(p_comb[mask]) / den)


def _tpq_agreement(others, axis, last):
    joint = np.prod(others, axis=0) if len(others) else np.ones_like(axis, dtype=float)
    total = joint.sum()
    if total <= 0:
        return 0.0
    return float(100 * joint[axis >= last].sum() / total)


def _core_agreement(matrix, kinds, records, axis):
    """
    Agreement per series when the group has no felling year in common.

    Series that overlap with the fewest others are set aside (A_i = 0)
    until the remaining core has a joint distribution. The core series are
    then scored against that joint distribution. When every remaining
    series is tied there is no core and all A_i are 0.
    """
    present = matrix > 0
    overlap = (present.astype(float) @ present.T.astype(float)) > 0
    core = _canonical(records)
    while len(core) > 1 and np.prod(matrix[core], axis=0).sum() <= 0:
        counts = {i: sum(overlap[i, j] for j in core if j != i) for i in core}
        fewest = min(counts.values())
        if all(c == fewest for c in counts.values()):
            core = []
            break
        core = [i for i in core if counts[i] > fewest]

    a_values = np.zeros(len(records))
    if not core:
        return a_values
    joint = np.prod(matrix[core], axis=0)
    p_core = joint / joint.sum()
    for i in core:
        if kinds[i] == TPQ:
            others = matrix[[j for j in core if j != i]]
            a_values[i] = _tpq_agreement(others, axis, records[i].last)
        else:
            a_values[i] = _agreement(p_core, matrix[i])
    return a_values


def sw_combine(series, sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
               cred_mass=DEFAULT_CRED_MASS, catalog=None, on_unknown=None,
               a_critical=A_CRITICAL, p_threshold=P_THRESHOLD,
               n_lattice=N_LATTICE, cols=None, sep=";", verbose=False):
    """
    Combine the felling dates of series felled at the same time.

    Parameters
    ----------
    series : list of SeriesRecord or DataFrame
        A DataFrame is read with ``series_from_table(series, cols)``
    sw_data, densfun, catalog, on_unknown, sep
        Sapwood model, as in ``sw_interval``
    cred_mass : float
        Mass of the combined HDI
    a_critical : float
        Critical agreement index (%)
    p_threshold, n_lattice
        As in ``sw_interval``
    cols : dict, optional
        Column mapping for DataFrame input
    verbose : bool
        Print a summary

    Returns
    -------
    CombinedModel

    Raises
    ------
    InputConflictError
        Series with a known felling year disagree on that year.
    InvalidInputError
        No series, or relative (last = 0) and calendar-dated series mixed.
    """
    records = as_records(series, cols=cols)
    if not records:
        raise InvalidInputError(" --> no series to combine")
    cred_mass = check_cred_mass(cred_mass)
    labels = _labels(records)
    kinds = [rec.kind for rec in records]
    flags = set()

    exact_years = sorted({rec.exact_year for rec in records if rec.kind == EXACT})
    if len(exact_years) > 1:
        raise InputConflictError(
            " --> series with waney edge / known felling year disagree "
            f"({', '.join(str(y) for y in exact_years)}); they cannot have "
            "been felled together"
        )

    relative = {rec.last == 0 and rec.felling_year is None for rec in records}
    if len(relative) > 1:
        raise InvalidInputError(
            " --> series with last = 0 (relative ring counts) cannot be "
            "combined with calendar-dated series"
        )

    fitted = None
    tables = {}
    if RANGE in kinds:
        fitted = fit_sapwood_model(sw_data, densfun, catalog=catalog,
                                   on_unknown=on_unknown, sep=sep)
        flags.update(fitted.flags)
        for i, rec in enumerate(records):
            if kinds[i] != RANGE:
                continue
            if rec.n_sapwood > fitted.sample_range[1]:
                emit(f"{rec.series}: {rec.n_sapwood} is a very high no. of "
                     "sapwood rings. Is this correct?", HighSapwoodCountWarning)
                flags.add(Diagnostic.HIGH_SAPWOOD_COUNT)
            table = felling_date_table(fitted, rec.n_sapwood, rec.last,
                                       p_threshold=p_threshold,
                                       n_lattice=n_lattice)
            if len(table) <= 1:
                emit(f"{rec.series}: no upper limit for the felling date could "
                     "be computed; treated as terminus post quem.",
                     NoUpperLimitWarning)
                flags.add(Diagnostic.NO_UPPER_LIMIT)
                kinds[i] = TPQ
                continue
            tables[i] = table

    sw_name = fitted.sw_data if fitted is not None else None
    densfun_name = fitted.densfun if fitted is not None else densfun

    if all(k == TPQ for k in kinds):
        return _terminus_post_quem(records, labels, kinds, cred_mass,
                                   a_critical, n_lattice, sw_name,
                                   densfun_name, flags, verbose)

    # shared calendar axis
    bounds = []
    for i, rec in enumerate(records):
        if kinds[i] == RANGE:
            bounds.extend([tables[i]['year'].min(), tables[i]['year'].max()])
        elif kinds[i] == EXACT:
            bounds.append(rec.exact_year)
        else:
            bounds.append(rec.last)
    axis = np.arange(int(min(bounds)), int(max(bounds)) + 1)

    matrix = np.zeros((len(records), len(axis)))
    for i, rec in enumerate(records):
        if kinds[i] == RANGE:
            idx = tables[i]['year'].to_numpy() - axis[0]
            matrix[i, idx] = tables[i]['p'].to_numpy()
        elif kinds[i] == EXACT:
            matrix[i, rec.exact_year - axis[0]] = 1.0
        else:
            matrix[i, axis >= rec.last] = 1.0

    canonical = _canonical(records)
    joint = np.prod(matrix[canonical], axis=0)
    total = joint.sum()

    individual = matrix / matrix.sum(axis=1, keepdims=True)
    table = pd.DataFrame({'year': axis})
    for i, label in enumerate(labels):
        table[label] = individual[i]

    if not np.isfinite(total) or total <= 0:
        emit("the series have no felling year in common; "
             "combination is not possible.", NoOverlapWarning)
        emit("agreement index 0% is below the critical threshold "
             f"({a_critical:.0f}%).", LowAgreementWarning)
        flags.update({Diagnostic.NO_OVERLAP, Diagnostic.LOW_AGREEMENT})
        table['p_comb'] = 0.0
        a_i = pd.Series(_core_agreement(matrix, kinds, records, axis),
                        index=labels, name='A_i')
        interval = HDIInterval(lower=None, upper=None, p=np.nan,
                               cred_mass=cred_mass, sw_data=sw_name,
                               densfun=densfun_name, flags=frozenset(flags))
        return _build(table, interval, 0.0, a_i, a_critical, records, labels,
                      kinds, sw_name, densfun_name, flags, verbose)

    p_comb = joint / total
    table['p_comb'] = p_comb

    a_values = []
    for i in range(len(records)):
        if kinds[i] == TPQ:
            others = np.delete(matrix, i, axis=0)
            a_values.append(_tpq_agreement(others, axis, records[i].last))
        else:
            a_values.append(_agreement(p_comb, matrix[i]))
    a_i = pd.Series(a_values, index=labels, name='A_i')
    a_comb = float(np.mean(a_values))

    if a_comb < a_critical:
        emit(f"agreement index {a_comb:.1f}% is below the critical threshold "
             f"({a_critical:.0f}%): the combined model is not statistically "
             "sound.", LowAgreementWarning)
        flags.add(Diagnostic.LOW_AGREEMENT)

    interval = hdi(axis, p_comb, cred_mass=cred_mass, sw_data=sw_name,
                   densfun=densfun_name)
    interval = HDIInterval(
        lower=interval.lower, upper=interval.upper, p=interval.p,
        cred_mass=cred_mass, sw_data=sw_name, densfun=densfun_name,
        flags=frozenset(flags),
    )
    return _build(table, interval, a_comb, a_i, a_critical, records, labels,
                  kinds, sw_name, densfun_name, flags, verbose)


def _terminus_post_quem(records, labels, kinds, cred_mass, a_critical,
                        n_lattice, sw_name, densfun_name, flags, verbose):
    """Only one-sided constraints: felled in or after the latest `last`."""
    flags.add(Diagnostic.TERMINUS_POST_QUEM)
    tpq = max(rec.last for rec in records)
    axis = np.arange(tpq, tpq + n_lattice)
    table = pd.DataFrame({'year': axis})
    for label in labels:
        table[label] = 1.0 / len(axis)
    table['p_comb'] = 1.0 / len(axis)
    interval = HDIInterval(lower=tpq, upper=None, p=np.nan,
                           cred_mass=cred_mass, sw_data=sw_name,
                           densfun=densfun_name, flags=frozenset(flags))
    a_i = pd.Series(100.0, index=labels, name='A_i')
    return _build(table, interval, 100.0, a_i, a_critical, records, labels,
                  kinds, sw_name, densfun_name, flags, verbose)


def _build(table, interval, a_comb, a_i, a_critical, records, labels, kinds,
           sw_name, densfun_name, flags, verbose):
    summary = pd.DataFrame({
        'series': labels,
        'last': [rec.last for rec in records],
        'n_sapwood': [rec.n_sapwood for rec in records],
        'waneyedge': [rec.waneyedge for rec in records],
        'kind': kinds,
        'A_i': a_i.to_numpy(),
    })
    model = CombinedModel(
        table=table,
        hdi=interval,
        a_comb=a_comb,
        a_i=a_i,
        a_critical=a_critical,
        summary=summary,
        sw_data=sw_name,
        densfun=densfun_name,
        flags=frozenset(flags),
    )
    if verbose:
        print_combine_summary(model)
    return model


def print_combine_summary(model):
    """Print the per-series agreement and the combined estimate."""
    print("\n" + "=" * 60)
    print("COMBINED FELLING DATE")
    print("=" * 60)
    if model.sw_data:
        print(f"Sapwood model: {model.sw_data} ({model.densfun})")
    print(f"\n{'Series':<20} {'Last':>6} {'SWR':>5} {'WK':>4} {'A_i (%)':>9}")
    print("-" * 60)
    for _, row in model.summary.iterrows():
        swr = '-' if row['n_sapwood'] is None or pd.isna(row['n_sapwood']) \
            else int(row['n_sapwood'])
        print(f"{row['series']:<20} {row['last']:>6} {swr:>5} "
              f"{'yes' if row['waneyedge'] else 'no':>4} {row['A_i']:>9.1f}")
    print("-" * 60)

    interval = model.hdi
    if Diagnostic.NO_OVERLAP in model.flags:
        print("No common felling date: the series do not overlap.")
    elif interval.upper is None:
        print(f"Felled after {interval.lower} (terminus post quem)")
    elif interval.lower == interval.upper:
        print(f"Felled in {interval.lower}")
    else:
        print(f"Felled between {interval.lower} and {interval.upper} "
              f"(p = {interval.p:.3f}, credMass = {interval.cred_mass})")
    status = "OK" if model.is_sound else "BELOW CRITICAL THRESHOLD"
    print(f"A_comb = {model.a_comb:.1f}% (A_c = {model.a_critical:.0f}%) -> {status}")
    if model.outliers:
        print(f"Series with A_i below A_c: {', '.join(model.outliers)}")
    print("=" * 60)
