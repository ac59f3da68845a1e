"""
Felling Date Interval Module
============================

Probability distribution and highest density interval of the felling date
of a single timber, given:

- the number of sapwood rings observed on the sample (n_sapwood)
- the calendar year of the outermost measured ring (last)
- a sapwood model (dataset + density function)

Method:
    1. Fit the density function to the sapwood dataset
    2. Evaluate it on the ring counts n_sapwood, n_sapwood + 1, ...,
       n_sapwood + 100 (the sapwood that may have been lost)
    3. Shift ring counts to calendar years:
           year = last - n_sapwood + ring_count      (last != 0)
       With last = 0 the ring counts themselves are reported
    4. Drop negligible densities (<= 1e-7) and rescale to sum to 1
    5. Compute the HDI over the resulting table
"""

import numbers
from dataclasses import dataclass, field, replace

import numpy as np
import pandas as pd

from .config import (
    DEFAULT_SW_DATA, DEFAULT_DENSFUN, DEFAULT_CRED_MASS, N_LATTICE, P_THRESHOLD
)
from .density import HDIInterval, check_cred_mass, fit_sapwood_model, hdi as compute_hdi
from .exceptions import (
    Diagnostic, HighSapwoodCountWarning, InvalidInputError, MissingSapwoodWarning,
    NoUpperLimitWarning, emit
)


@dataclass(frozen=True, eq=False)
class FellingDatePMF:
    """
    Probability mass function of the felling date of one series.

    Attributes
    ----------
    table : DataFrame
        Columns ``year``, ``n_sapwood`` and ``p``; years increase by one,
        p sums to 1 (empty when every density fell below the threshold)
    n_sapwood : int
        Observed sapwood rings
    last : int
        Year of the last measured ring (0 for relative dating)
    hdi : HDIInterval
    flags : frozenset of Diagnostic
    """

    table: pd.DataFrame
    n_sapwood: int
    last: int
    sw_data: str
    densfun: str
    cred_mass: float
    hdi: HDIInterval
    flags: frozenset = field(default_factory=frozenset)

    @property
    def years(self):
        return self.table['year'].to_numpy()

    @property
    def p(self):
        return self.table['p'].to_numpy()

    @property
    def is_relative(self):
        return self.last == 0

    @property
    def mode(self):
        """Most probable felling year (None for an empty table)."""
        if self.table.empty:
            return None
        return int(self.table['year'].iloc[int(np.argmax(self.p))])

    def __len__(self):
        return len(self.table)


# ============================================================================
# INPUT CHECKS
# ============================================================================

def is_missing(value):
    """True for None, NaN and pandas NA."""
    if value is None or value is pd.NA:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def check_n_sapwood(n_sapwood):
    """
    Validate an observed sapwood count.

    Returns the count as int, or None when it is missing.
    """
    if is_missing(n_sapwood):
        return None
    if isinstance(n_sapwood, bool) or not isinstance(n_sapwood, numbers.Real):
        raise InvalidInputError(" --> n_sapwood must be a numeric value")
    if n_sapwood < 0:
        raise InvalidInputError(" --> n_sapwood must be a positive number")
    if n_sapwood % 1 != 0:
        raise InvalidInputError(
            " --> n_sapwood must be an integer (no decimals allowed!)"
        )
    return int(n_sapwood)


def check_last(last):
    """Validate the year of the last ring; missing means relative (0)."""
    if is_missing(last):
        return 0
    if isinstance(last, bool) or not isinstance(last, numbers.Real) or last % 1 != 0:
        raise InvalidInputError(" --> last must be an integer year")
    return int(last)


# ============================================================================
# PROBABILITY TABLE
# ============================================================================

def felling_date_table(fitted, n_sapwood, last=0, p_threshold=P_THRESHOLD,
                       n_lattice=N_LATTICE):
    """
    Scaled felling date probabilities for one series.

    Parameters
    ----------
    fitted : FittedDistribution
    n_sapwood : int
    last : int
    p_threshold : float
        Densities at or below this value are dropped
    n_lattice : int
        Number of ring counts evaluated, starting at n_sapwood

    Returns
    -------
    DataFrame
        Columns year, n_sapwood, p (p sums to 1 unless empty)
    """
    swr_n = np.arange(n_sapwood, n_sapwood + n_lattice)
    p = fitted.pdf(swr_n)
    year = swr_n - n_sapwood + last if last != 0 else swr_n

    table = pd.DataFrame({'year': year, 'n_sapwood': swr_n, 'p': p})

    # filter extreme low p values (e.g. when a very high no. of swr is observed)
    table = table[table['p'] > p_threshold].reset_index(drop=True)
    if not table.empty:
        table['p'] = table['p'] / table['p'].sum()
    return table


def sw_interval(n_sapwood=None, last=0, hdi=False,
                cred_mass=DEFAULT_CRED_MASS, sw_data=DEFAULT_SW_DATA,
                densfun=DEFAULT_DENSFUN, sep=";", catalog=None,
                on_unknown=None, p_threshold=P_THRESHOLD, n_lattice=N_LATTICE):
    """
    Felling date range of a single series.

    Parameters
    ----------
    n_sapwood : int
        Number of sapwood rings observed/measured. None or NaN means no
        sapwood was recorded; no estimate is possible and None is returned
        (with a MissingSapwoodWarning).
    last : int
        Calendar year of the outermost sapwood ring (default 0: the result
        is expressed in ring counts instead of years)
    hdi : bool
        If True return only the HDIInterval, else the full FellingDatePMF
    cred_mass : float
        Mass within the credible interval, strictly between 0 and 1
    sw_data : str, Path or SapwoodDataset
        Sapwood dataset name (see ``sw_data_overview()``), path to a .csv
        file or dataset object
    densfun : str
        'lognormal' (default), 'normal', 'weibull' or 'gamma'
    sep : str
        Separator of a user-supplied .csv file ("," or ";")
    catalog : SapwoodCatalog, optional
    on_unknown : Fallback or Reject, optional
    p_threshold : float
    n_lattice : int

    Returns
    -------
    FellingDatePMF, HDIInterval or None

    Examples
    --------
    >>> interval = sw_interval(10, last=1234, hdi=True, sw_data="Wazny_1990_approx")
    >>> print(f"felled between {interval.lower} and {interval.upper}")
    """
    n_sapwood = check_n_sapwood(n_sapwood)
    if n_sapwood is None:
        emit("no pdf/hdi can be returned when n_sapwood = NA",
             MissingSapwoodWarning)
        return None
    last = check_last(last)
    cred_mass = check_cred_mass(cred_mass)

    fitted = fit_sapwood_model(sw_data, densfun, catalog=catalog,
                               on_unknown=on_unknown, sep=sep)
    flags = set(fitted.flags)

    if n_sapwood > fitted.sample_range[1]:
        emit(f"{n_sapwood} is a very high no. of sapwood rings. "
             "Is this correct?", HighSapwoodCountWarning)
        flags.add(Diagnostic.HIGH_SAPWOOD_COUNT)

    table = felling_date_table(fitted, n_sapwood, last,
                               p_threshold=p_threshold, n_lattice=n_lattice)

    if len(table) <= 1:
        # a very high number of sapwood rings leaves (almost) nothing
        emit("No upper limit for the hdi could be computed.",
             NoUpperLimitWarning)
        flags.add(Diagnostic.NO_UPPER_LIMIT)
        interval = HDIInterval(
            lower=last if last != 0 else n_sapwood,
            upper=None,
            p=np.nan,
            cred_mass=cred_mass,
            sw_data=fitted.sw_data,
            densfun=fitted.densfun,
        )
    else:
        interval = compute_hdi(table['year'], table['p'], cred_mass=cred_mass,
                               sw_data=fitted.sw_data, densfun=fitted.densfun)
    interval = replace(interval, flags=frozenset(flags))

    if hdi:
        return interval

    return FellingDatePMF(
        table=table,
        n_sapwood=n_sapwood,
        last=last,
        sw_data=fitted.sw_data,
        densfun=fitted.densfun,
        cred_mass=cred_mass,
        hdi=interval,
        flags=frozenset(flags),
    )
