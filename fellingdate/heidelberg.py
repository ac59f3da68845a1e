"""
Heidelberg Format Reader
========================

Reads tree-ring series from Heidelberg (.fh) files, the format written by
TSAP-Win and other measuring software.

A file holds one or more series, each made of a header block with
``Key=Value`` lines and a data block:

    HEADER:
    KeyCode=ABC01
    DateEnd=1456
    Length=120
    SapWoodRings=12
    WaldKante=WKE
    DATA:Tree
       123   145   167 ...

Field names are matched case-insensitively. Supported data formats:

- Tree / Single : ring widths only
- HalfChrono    : (ring width, sample depth) pairs
- Chrono        : (ring width, sample depth, increasing, decreasing) quadruples

Ring widths are converted to mm using the ``Unit`` field (default 1/100 mm).
Undated series (no DateBegin / DateEnd) are numbered from year 1.
"""

import re
from pathlib import Path

import numpy as np
import pandas as pd

from .config import SERIES_COLS
from .exceptions import InvalidInputError
from .series import parse_waneyedge

# canonical spelling of the header fields used downstream
HEADER_FIELDS = {
    'keycode': 'KeyCode',
    'project': 'Project',
    'location': 'Location',
    'species': 'Species',
    'datebegin': 'DateBegin',
    'dateend': 'DateEnd',
    'length': 'Length',
    'dataformat': 'DataFormat',
    'unit': 'Unit',
    'sapwoodrings': 'SapWoodRings',
    'waldkante': 'WaldKante',
    'pith': 'Pith',
    'bark': 'Bark',
    'dated': 'Dated',
}

# values per ring for each data format
VALUES_PER_RING = {
    'tree': 1,
    'single': 1,
    'halfchrono': 2,
    'chrono': 4,
}

UNIT_DIVISOR = {
    '1/100 mm': 100.0,
    '1/100mm': 100.0,
    '1/1000 mm': 1000.0,
    '1/1000mm': 1000.0,
    'mm': 1.0,
}

_INT_FIELDS = ('DateBegin', 'DateEnd', 'Length', 'SapWoodRings')


def _parse_blocks(lines):
    """Split a file into [(header dict, data tokens, data format)]."""
    blocks = []
    header, tokens, fmt, in_data = None, [], None, False

    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        upper = line.upper()
        if upper.startswith('HEADER:'):
            if header is not None:
                blocks.append((header, tokens, fmt))
            header, tokens, fmt, in_data = {}, [], None, False
            continue
        if upper.startswith('DATA:'):
            if header is None:
                header = {}
            fmt = line.split(':', 1)[1].strip() or None
            in_data = True
            continue
        if header is None:
            continue
        if in_data:
            tokens.extend(line.split())
        elif '=' in line:
            key, value = line.split('=', 1)
            key = key.strip()
            header[HEADER_FIELDS.get(key.lower(), key)] = value.strip()

    if header is not None:
        blocks.append((header, tokens, fmt))
    return blocks


def _to_int(value):
    if value is None:
        return None
    match = re.match(r'^\s*(-?\d+)', str(value))
    return int(match.group(1)) if match else None


def _series_values(header, tokens, fmt, path):
    fmt = (fmt or header.get('DataFormat') or 'Tree').strip()
    step = VALUES_PER_RING.get(fmt.lower())
    if step is None:
        raise InvalidInputError(
            f" --> {path.name}: unsupported data format {fmt!r} "
            f"(use one of {sorted(VALUES_PER_RING)})"
        )
    try:
        values = np.array([float(t) for t in tokens])
    except ValueError:
        raise InvalidInputError(
            f" --> {path.name}: non-numeric ring width in series "
            f"{header.get('KeyCode', '?')}"
        ) from None
    widths = values[::step]

    length = _to_int(header.get('Length'))
    if length is not None:
        if length > len(widths):
            raise InvalidInputError(
                f" --> {path.name}: series {header.get('KeyCode', '?')} has "
                f"Length={length} but only {len(widths)} values"
            )
        widths = widths[:length]

    unit = str(header.get('Unit', '1/100 mm')).strip().lower()
    return widths / UNIT_DIVISOR.get(unit, 100.0)


def _years(header, n):
    end = _to_int(header.get('DateEnd'))
    begin = _to_int(header.get('DateBegin'))
    if end is not None:
        return np.arange(end - n + 1, end + 1)
    if begin is not None:
        return np.arange(begin, begin + n)
    return np.arange(1, n + 1)


def read_fh(path, header=False, verbose=False):
    """
    Read a Heidelberg format file.

    Parameters
    ----------
    path : str or Path
    header : bool
        If True return the header fields of each series instead of the
        ring widths
    verbose : bool

    Returns
    -------
    DataFrame
        header=False: ring widths (mm) indexed by year, one column per
        series (KeyCode). header=True: one row per series with the header
        fields, plus ``n_rings``, ``DateBegin`` and ``DateEnd`` filled in
        from the data when missing.
    """
    path = Path(path)
    with open(path, encoding='latin-1') as f:
        blocks = _parse_blocks(f.readlines())
    if not blocks:
        raise InvalidInputError(f" --> {path.name}: no HEADER: block found")

    used = set()
    series = {}
    headers = []
    for k, (fields, tokens, fmt) in enumerate(blocks, start=1):
        key = fields.get('KeyCode') or f"series_{k}"
        name, n = key, 1
        while name in used:
            n += 1
            name = f"{key}_{n}"
        used.add(name)

        widths = _series_values(fields, tokens, fmt, path)
        years = _years(fields, len(widths))
        series[name] = pd.Series(widths, index=years)

        meta = dict(fields)
        meta['KeyCode'] = name
        meta['n_rings'] = len(widths)
        if len(years):
            meta['DateBegin'] = int(years[0])
            meta['DateEnd'] = int(years[-1])
        for col in _INT_FIELDS:
            if col in meta and not isinstance(meta[col], int):
                meta[col] = _to_int(meta[col])
        headers.append(meta)

    if verbose:
        print(f"Read {len(series)} series from {path.name}")
        for meta in headers:
            print(f"  {meta['KeyCode']:<20} {meta.get('DateBegin')} - "
                  f"{meta.get('DateEnd')} ({meta['n_rings']} rings)")

    if header:
        table = pd.DataFrame(headers)
        first = ['KeyCode', 'DateBegin', 'DateEnd', 'n_rings']
        return table[first + [c for c in table.columns if c not in first]]

    rwl = pd.DataFrame(series).sort_index()
    rwl.index.name = 'year'
    return rwl


def fh_series_table(header_table):
    """
    Series table (for sw_combine, sw_sum, fd_report) from ``read_fh(...,
    header=True)`` output.

    Uses KeyCode as identifier, DateEnd as the last ring, SapWoodRings as
    the observed sapwood and WaldKante for the waney edge.
    """
    if 'KeyCode' not in header_table.columns:
        raise InvalidInputError(" --> header table has no KeyCode column")

    def column(name, default):
        if name in header_table.columns:
            return header_table[name]
        return pd.Series(default, index=header_table.index)

    return pd.DataFrame({
        SERIES_COLS['series']: header_table['KeyCode'],
        SERIES_COLS['last']: column('DateEnd', 0),
        SERIES_COLS['n_sapwood']: pd.to_numeric(column('SapWoodRings', np.nan),
                                                errors='coerce'),
        SERIES_COLS['waneyedge']: column('WaldKante', False).map(parse_waneyedge),
    })
