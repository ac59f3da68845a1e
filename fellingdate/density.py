"""
Density Model Module
====================

Fits a parametric density function to an empirical sapwood dataset and
computes highest density intervals (HDI) over discrete probability tables.

Supported density functions (each with two parameters):

- lognormal : meanlog, sdlog
- normal    : mean, sd
- weibull   : shape, scale
- gamma     : shape, rate

Parameters are maximum likelihood estimates. Lognormal and normal use the
closed-form estimators; Weibull and gamma are fitted numerically with
``scipy.stats`` with the location fixed at zero.

HDI:
    The discrete HDI is the shortest contiguous run of table rows whose
    probabilities add up to at least ``cred_mass``. Among windows of equal
    span the one starting earliest wins.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

import numpy as np
import pandas as pd
from scipy import stats

from .config import DEFAULT_SW_DATA, DEFAULT_DENSFUN, DEFAULT_CRED_MASS, N_LATTICE
from .catalog import resolve_dataset
from .exceptions import InvalidInputError, UnsupportedFamilyError

# Slack for floating point round-off in cumulative sums
_MASS_TOL = 1e-10


# ============================================================================
# DENSITY FAMILIES
# ============================================================================

class DensityFamily(Enum):
    LOGNORMAL = 'lognormal'
    NORMAL = 'normal'
    WEIBULL = 'weibull'
    GAMMA = 'gamma'

    @classmethod
    def parse(cls, densfun):
        """Return the family for a name (case-insensitive) or a family."""
        if isinstance(densfun, cls):
            return densfun
        try:
            return cls(str(densfun).strip().lower())
        except ValueError:
            raise UnsupportedFamilyError(
                f" --> '{densfun}' is not a supported distribution; "
                f"use one of {[f.value for f in cls]}"
            ) from None


PARAM_NAMES = {
    DensityFamily.LOGNORMAL: ('meanlog', 'sdlog'),
    DensityFamily.NORMAL: ('mean', 'sd'),
    DensityFamily.WEIBULL: ('shape', 'scale'),
    DensityFamily.GAMMA: ('shape', 'rate'),
}


def _frozen(family, param1, param2):
    """scipy frozen distribution for a family and its two parameters."""
    if family is DensityFamily.LOGNORMAL:
        return stats.lognorm(s=param2, scale=np.exp(param1))
    if family is DensityFamily.NORMAL:
        return stats.norm(loc=param1, scale=param2)
    if family is DensityFamily.WEIBULL:
        return stats.weibull_min(c=param1, scale=param2)
    if family is DensityFamily.GAMMA:
        return stats.gamma(a=param1, scale=1.0 / param2)
    raise UnsupportedFamilyError(f" --> no density for {family!r}")


@dataclass(frozen=True)
class FittedDistribution:
    """
    A density function fitted to a sapwood dataset.

    Attributes
    ----------
    family : DensityFamily
    param1, param2 : float
        Parameters in the order given by ``PARAM_NAMES[family]``
    sample_range : tuple
        (min, max, n) of the observed ring counts the fit is based on
    sw_data : str
        Name of the dataset
    flags : frozenset
        Diagnostics raised while resolving the dataset
    """

    family: DensityFamily
    param1: float
    param2: float
    sample_range: tuple = (0, 0, 0)
    sw_data: str = ''
    flags: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        if not (np.isfinite(self.param1) and np.isfinite(self.param2)):
            raise InvalidInputError(" --> density parameters must be finite")
        positive = (self.param2,) if self.family in (
            DensityFamily.LOGNORMAL, DensityFamily.NORMAL
        ) else (self.param1, self.param2)
        if any(v <= 0 for v in positive):
            raise InvalidInputError(
                f" --> invalid {self.family.value} parameters "
                f"({self.param1:g}, {self.param2:g})"
            )

    @property
    def param_names(self):
        return PARAM_NAMES[self.family]

    @property
    def densfun(self):
        return self.family.value

    def frozen(self):
        return _frozen(self.family, self.param1, self.param2)

    def pdf(self, x):
        return self.frozen().pdf(np.asarray(x, dtype=float))

    def as_dict(self):
        names = self.param_names
        lo, hi, n = self.sample_range
        return {
            'sapwood_data': self.sw_data,
            'densfun': self.densfun,
            names[0]: self.param1,
            names[1]: self.param2,
            'min': lo,
            'max': hi,
            'n': n,
        }


# ============================================================================
# FITTING
# ============================================================================

def fit_distribution(observations, densfun=DEFAULT_DENSFUN):
    """
    Maximum likelihood fit of a density family to observed ring counts.

    Parameters
    ----------
    observations : array-like
        Expanded sample of sapwood ring counts
    densfun : str or DensityFamily

    Returns
    -------
    tuple
        (param1, param2)
    """
    family = DensityFamily.parse(densfun)
    x = np.asarray(observations, dtype=float)
    x = x[np.isfinite(x)]
    if family is not DensityFamily.NORMAL:
        # zero counts lie outside the support of the positive families
        x = x[x > 0]
    if len(x) < 2 or np.unique(x).size < 2:
        raise InvalidInputError(
            " --> at least two distinct sapwood counts are needed to fit "
            f"a {family.value} distribution"
        )

    if family is DensityFamily.LOGNORMAL:
        logx = np.log(x)
        return float(np.mean(logx)), float(np.std(logx))
    if family is DensityFamily.NORMAL:
        return float(np.mean(x)), float(np.std(x))
    if family is DensityFamily.WEIBULL:
        shape, _, scale = stats.weibull_min.fit(x, floc=0)
        return float(shape), float(scale)
    if family is DensityFamily.GAMMA:
        shape, _, scale = stats.gamma.fit(x, floc=0)
        return float(shape), float(1.0 / scale)
    raise UnsupportedFamilyError(f" --> no estimator for {family!r}")


def fit_sapwood_model(sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
                      catalog=None, on_unknown=None, sep=";"):
    """
    Fit a density function to a sapwood dataset.

    Parameters
    ----------
    sw_data : str, Path or SapwoodDataset
        Catalog name, path of a .csv file or dataset object
    densfun : str
        'lognormal', 'normal', 'weibull' or 'gamma'
    catalog : SapwoodCatalog, optional
        Registry to look names up in (default: bundled datasets)
    on_unknown : Fallback or Reject, optional
        Policy for unknown dataset names (default: Fallback())
    sep : str
        Separator for .csv input

    Returns
    -------
    FittedDistribution
        ``flags`` holds ``Diagnostic.DATASET_FALLBACK`` when an unknown
        name was replaced by the default dataset.
    """
    family = DensityFamily.parse(densfun)
    dataset, flags = resolve_dataset(sw_data, catalog=catalog,
                                     on_unknown=on_unknown, sep=sep)
    return replace(fit_dataset(dataset, family), flags=flags)


def fit_dataset(dataset, densfun=DEFAULT_DENSFUN):
    """Fit a density function to a SapwoodDataset."""
    family = DensityFamily.parse(densfun)
    param1, param2 = fit_distribution(dataset.observations, family)
    return FittedDistribution(
        family=family,
        param1=param1,
        param2=param2,
        sample_range=dataset.sample_range,
        sw_data=dataset.name,
    )


def density(distribution, x):
    """Density of a fitted distribution at ring count(s) x."""
    return distribution.pdf(x)


# ============================================================================
# HIGHEST DENSITY INTERVAL
# ============================================================================

@dataclass(frozen=True)
class HDIInterval:
    """
    Highest density interval.

    ``upper`` is None when no upper limit can be computed. ``p`` is the
    probability mass actually enclosed, which can exceed ``cred_mass``
    because the table is discrete.
    """

    lower: object
    upper: object
    p: float
    cred_mass: float
    sw_data: str = None
    densfun: str = None
    flags: frozenset = field(default_factory=frozenset)

    @property
    def has_upper(self):
        return self.upper is not None

    def as_dict(self):
        return {
            'lower': self.lower,
            'upper': self.upper,
            'p': self.p,
            'cred_mass': self.cred_mass,
            'sapwood_data': self.sw_data,
            'model': self.densfun,
        }


def check_cred_mass(cred_mass):
    try:
        valid = 0 < float(cred_mass) < 1
    except (TypeError, ValueError):
        valid = False
    if not valid:
        raise InvalidInputError(" --> credMass must be between 0 and 1")
    return float(cred_mass)


def _as_number(value):
    value = value.item() if hasattr(value, 'item') else value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _table_from(x, p):
    if isinstance(x, FittedDistribution):
        lo, hi, _ = x.sample_range
        values = np.arange(0, hi + N_LATTICE)
        return values, x.pdf(values)
    if isinstance(x, pd.DataFrame):
        if x.shape[1] < 2:
            raise InvalidInputError(" --> hdi needs a table with values and p")
        pcol = 'p' if 'p' in x.columns else x.columns[1]
        xcol = [c for c in x.columns if c != pcol][0]
        return x[xcol].to_numpy(), x[pcol].to_numpy(dtype=float)
    if p is None:
        raise InvalidInputError(" --> hdi needs probabilities p")
    return np.asarray(x), np.asarray(p, dtype=float)


def hdi(x, p=None, cred_mass=DEFAULT_CRED_MASS, sw_data=None, densfun=None):
    """
    Highest density interval of a discrete probability table.

    Parameters
    ----------
    x : array-like, DataFrame or FittedDistribution
        Ordered values (ring counts or years). A DataFrame supplies the
        values (first column other than 'p') and the probabilities ('p',
        or the second column). A FittedDistribution is evaluated on its
        integer support.
    p : array-like, optional
        Probabilities matching x
    cred_mass : float
        Required mass, strictly between 0 and 1

    Returns
    -------
    HDIInterval

    Examples
    --------
    >>> interval = hdi([1, 2, 3, 4], [0.1, 0.4, 0.4, 0.1], cred_mass=0.8)
    >>> interval.lower, interval.upper
    (2, 3)
    """
    cred_mass = check_cred_mass(cred_mass)
    if isinstance(x, FittedDistribution):
        sw_data = sw_data or x.sw_data
        densfun = densfun or x.densfun
    values, probs = _table_from(x, p)

    if len(values) != len(probs):
        raise InvalidInputError(" --> values and probabilities differ in length")
    if len(values) == 0:
        raise InvalidInputError(" --> hdi of an empty table")
    if np.any(~np.isfinite(probs)) or np.any(probs < 0):
        raise InvalidInputError(" --> probabilities must be finite and >= 0")
    total = probs.sum()
    if total <= 0:
        raise InvalidInputError(" --> probabilities sum to zero")

    order = np.argsort(values, kind='stable')
    values = values[order]
    probs = probs[order] / total

    cum = np.concatenate([[0.0], np.cumsum(probs)])
    n = len(values)
    # ends[i]: first k with cum[k] - cum[i] >= cred_mass (window i..k-1)
    ends = np.searchsorted(cum, cum[:-1] + cred_mass - _MASS_TOL, side='left')
    starts = np.nonzero(ends <= n)[0]
    stops = ends[starts] - 1
    spans = values[stops] - values[starts]
    best = int(np.argmin(spans))
    i, j = starts[best], stops[best]

    return HDIInterval(
        lower=_as_number(values[i]),
        upper=_as_number(values[j]),
        p=float(min(cum[j + 1] - cum[i], 1.0)),
        cred_mass=cred_mass,
        sw_data=sw_data,
        densfun=densfun,
    )


# ============================================================================
# MODEL SUMMARY
# ============================================================================

def sw_model(sw_data=DEFAULT_SW_DATA, densfun=DEFAULT_DENSFUN,
             cred_mass=DEFAULT_CRED_MASS, catalog=None, on_unknown=None,
             sep=";"):
    """
    Fit a sapwood model and summarise it against the empirical data.

    Returns
    -------
    dict
        'sapwood_data' : name of the dataset used
        'densfun'      : density function name
        'fit'          : FittedDistribution
        'fit_parameters' : dict of named parameters
        'range'        : (min, max, n) of the observations
        'table'        : DataFrame with n_sapwood, count, p_observed, density
        'hdi'          : HDIInterval of the fitted model (in ring counts)
        'flags'        : diagnostics raised while resolving the dataset
    """
    family = DensityFamily.parse(densfun)
    dataset, flags = resolve_dataset(sw_data, catalog=catalog,
                                     on_unknown=on_unknown, sep=sep)
    fitted = replace(fit_dataset(dataset, family), flags=flags)

    table = dataset.counts.copy()
    table['p_observed'] = table['count'] / table['count'].sum()
    table['density'] = fitted.pdf(table['n_sapwood'])

    names = fitted.param_names
    return {
        'sapwood_data': fitted.sw_data,
        'densfun': fitted.densfun,
        'fit': fitted,
        'fit_parameters': {names[0]: fitted.param1, names[1]: fitted.param2},
        'range': fitted.sample_range,
        'table': table,
        'hdi': hdi(fitted, cred_mass=cred_mass),
        'flags': flags,
    }

