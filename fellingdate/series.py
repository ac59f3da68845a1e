"""
Series records and tables
=========================

A series record is the input unit for combining and summing felling dates:

    series     identifier (keycode)
    last       year of the last measured ring (0 = undated / relative)
    n_sapwood  observed sapwood rings (None = no sapwood observed)
    waneyedge  True when measured up to the waney edge / bark
    felling_year  optional known felling year

Depending on these fields a series is one of three kinds:

    'exact'  felling year known (waney edge, or felling_year given)
    'tpq'    no sapwood observed: felled no earlier than `last`
    'range'  partial sapwood: felling date range from a sapwood model
"""

from dataclasses import dataclass

import pandas as pd

from .config import SERIES_COLS, WANEYEDGE_TRUE
from .exceptions import InvalidInputError
from .interval import check_last, check_n_sapwood, is_missing

EXACT = 'exact'
TPQ = 'tpq'
RANGE = 'range'


@dataclass(frozen=True)
class SeriesRecord:
    series: str
    last: int = 0
    n_sapwood: int = None
    waneyedge: bool = False
    felling_year: int = None

    def __post_init__(self):
        object.__setattr__(self, 'series', str(self.series))
        object.__setattr__(self, 'last', check_last(self.last))
        object.__setattr__(self, 'n_sapwood', check_n_sapwood(self.n_sapwood))
        object.__setattr__(self, 'waneyedge', parse_waneyedge(self.waneyedge))
        if is_missing(self.felling_year):
            object.__setattr__(self, 'felling_year', None)
        else:
            object.__setattr__(self, 'felling_year', check_last(self.felling_year))

    @property
    def kind(self):
        if self.felling_year is not None or self.waneyedge:
            return EXACT
        if self.n_sapwood is None:
            return TPQ
        return RANGE

    @property
    def exact_year(self):
        """Known felling year, or None."""
        if self.felling_year is not None:
            return self.felling_year
        if self.waneyedge:
            return self.last
        return None


def parse_waneyedge(value):
    if is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in WANEYEDGE_TRUE
    return bool(value)


def series_from_table(table, cols=None):
    """
    Convert a table of series into SeriesRecords.

    Parameters
    ----------
    table : DataFrame
    cols : dict, optional
        Maps the keys 'series', 'last', 'n_sapwood', 'waneyedge' (and
        optionally 'felling_year') to column names in ``table``. Missing keys
        take the defaults from ``config.SERIES_COLS``; the waney edge and
        felling year columns are optional.

    Returns
    -------
    list of SeriesRecord
    """
    cols = {**SERIES_COLS, **(cols or {})}
    for key in ('series', 'last', 'n_sapwood'):
        if cols[key] not in table.columns:
            raise InvalidInputError(
                f" --> column {cols[key]!r} ({key}) not found in table; "
                f"available: {list(table.columns)}"
            )

    records = []
    for _, row in table.iterrows():
        records.append(SeriesRecord(
            series=row[cols['series']],
            last=_numeric(row[cols['last']]),
            n_sapwood=_numeric(row[cols['n_sapwood']]),
            waneyedge=row[cols['waneyedge']] if cols['waneyedge'] in table.columns else False,
            felling_year=_numeric(row[cols['felling_year']])
            if cols.get('felling_year') in table.columns else None,
        ))
    return records


def _numeric(value):
    # pandas upcasts integer columns with gaps to float
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def as_records(series, cols=None):
    """Accept a DataFrame or an iterable of SeriesRecords."""
    if isinstance(series, pd.DataFrame):
        return series_from_table(series, cols=cols)
    records = list(series)
    for rec in records:
        if not isinstance(rec, SeriesRecord):
            raise InvalidInputError(
                f" --> expected SeriesRecord objects, got {type(rec).__name__}"
            )
    return records


def read_series_csv(path, sep=",", cols=None):
    """Read a delimited table of series and return SeriesRecords."""
    table = pd.read_csv(path, sep=sep)
    return series_from_table(table, cols=cols)


def records_to_frame(records):
    return pd.DataFrame([{
        'series': r.series,
        'last': r.last,
        'n_sapwood': r.n_sapwood,
        'waneyedge': r.waneyedge,
        'kind': r.kind,
    } for r in records])
