"""
Shared fixtures for the fellingdate test suite.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pandas as pd
import pytest

from fellingdate.catalog import SapwoodCatalog, SapwoodDataset


FH_CONTENT = """HEADER:
KeyCode=ABC01
DateEnd=1456
Length=5
SapWoodRings=12
WaldKante=WKE
Unit=1/100 mm
DATA:Tree
   123   145   167   110    98
HEADER:
keycode=ABC02
Length=3
SapWoodRings=
DATA:HalfChrono
   200     1   250     2   300     3
"""


@pytest.fixture
def synthetic_dataset():
    return SapwoodDataset.from_mapping(
        'Synthetic',
        {10: 1, 11: 3, 12: 6, 13: 8, 14: 6, 15: 3, 16: 1},
        region='nowhere',
        species='Quercus testii',
    )


@pytest.fixture
def synthetic_catalog(synthetic_dataset):
    wide = SapwoodDataset.from_mapping(
        'Wide',
        {5: 2, 10: 5, 15: 9, 20: 12, 25: 9, 30: 5, 35: 2},
    )
    return SapwoodCatalog.from_datasets([synthetic_dataset, wide])


@pytest.fixture
def fh_file(tmp_path):
    path = tmp_path / 'site.fh'
    path.write_text(FH_CONTENT, encoding='latin-1')
    return path


@pytest.fixture
def series_table():
    return pd.DataFrame({
        'series': ['beam1', 'beam2', 'beam3', 'post1'],
        'last': [1000, 1002, 1004, 990],
        'n_sapwood': [5, 7, 9, None],
        'waneyedge': ['FALSE', 'no', 'FALSE', 'FALSE'],
    })


@pytest.fixture
def series_csv(tmp_path, series_table):
    path = tmp_path / 'series.csv'
    series_table.to_csv(path, index=False)
    return path


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')
