"""
Tests for the felling date interval of a single series.
"""

import numpy as np
import pandas as pd
import pytest

from fellingdate.catalog import Reject
from fellingdate.density import HDIInterval
from fellingdate.exceptions import (
    Diagnostic, HighSapwoodCountWarning, InvalidInputError,
    MissingSapwoodWarning, NoUpperLimitWarning, UnknownDatasetError,
    UnknownDatasetWarning, UnsupportedFamilyError
)
from fellingdate.interval import FellingDatePMF, felling_date_table, sw_interval
from fellingdate.density import fit_sapwood_model


def test_pmf_sums_to_one_on_contiguous_years():
    for n_sapwood, last in [(0, 1500), (10, 1234), (25, 1600), (5, 0)]:
        pmf = sw_interval(n_sapwood, last=last)
        assert isinstance(pmf, FellingDatePMF)
        assert pmf.p.sum() == pytest.approx(1.0)
        assert (np.diff(pmf.years) == 1).all()
        assert (pmf.p > 0).all()


def test_wazny_example():
    interval = sw_interval(10, last=1234, hdi=True, cred_mass=0.95,
                           sw_data='Wazny_1990_approx', densfun='lognormal')
    assert isinstance(interval, HDIInterval)
    assert interval.lower == 1234
    assert 1240 < interval.upper < 1270
    assert interval.p >= 0.95
    assert interval.sw_data == 'Wazny_1990_approx'
    assert interval.densfun == 'lognormal'


def test_calendar_shift():
    relative = sw_interval(10, last=0, sw_data='Wazny_1990_approx')
    dated = sw_interval(10, last=1234, sw_data='Wazny_1990_approx')
    assert relative.is_relative
    assert relative.years[0] == 10
    assert dated.years[0] == 1234
    np.testing.assert_allclose(relative.p, dated.p)
    assert (dated.years - relative.years == 1224).all()


def test_idempotent():
    first = sw_interval(14, last=1400, sw_data='Hillam_1987_approx')
    second = sw_interval(14, last=1400, sw_data='Hillam_1987_approx')
    pd.testing.assert_frame_equal(first.table, second.table)
    assert first.hdi == second.hdi


def test_mode_moves_earlier_with_more_sapwood_at_fixed_last():
    modes = [sw_interval(n, last=1500).mode for n in range(1, 36)]
    assert all(a >= b for a, b in zip(modes, modes[1:]))
    assert modes[0] > modes[-1]


def test_mode_moves_later_with_more_sapwood_at_fixed_heartwood_boundary():
    modes = [sw_interval(n, last=1400 + n).mode for n in range(1, 36)]
    assert all(a <= b for a, b in zip(modes, modes[1:]))
    assert modes[0] < modes[-1]


@pytest.mark.parametrize('value', [None, np.nan, pd.NA])
def test_missing_sapwood_returns_none(value):
    with pytest.warns(MissingSapwoodWarning):
        assert sw_interval(value, last=1234) is None


@pytest.mark.parametrize('value, message', [
    ('ten', 'numeric'),
    (-3, 'positive'),
    (10.5, 'integer'),
    (True, 'numeric'),
])
def test_invalid_sapwood_counts(value, message):
    with pytest.raises(InvalidInputError, match=message):
        sw_interval(value, last=1234)


@pytest.mark.parametrize('cred_mass', [0, 1])
def test_cred_mass_bounds_are_fatal(cred_mass):
    with pytest.raises(InvalidInputError):
        sw_interval(10, last=1234, cred_mass=cred_mass)


def test_unsupported_family():
    with pytest.raises(UnsupportedFamilyError):
        sw_interval(10, last=1234, densfun='cauchy')


def test_float_counts_are_accepted():
    pmf = sw_interval(12.0, last=1300.0)
    assert pmf.n_sapwood == 12
    assert pmf.last == 1300


def test_high_sapwood_count_warns():
    with pytest.warns(HighSapwoodCountWarning, match="very high"):
        pmf = sw_interval(40, last=1500, sw_data='Hollstein_1980_approx')
    assert Diagnostic.HIGH_SAPWOOD_COUNT in pmf.flags


def test_no_upper_limit_for_extreme_count():
    with pytest.warns(NoUpperLimitWarning):
        interval = sw_interval(300, last=1500, hdi=True)
    assert interval.lower == 1500
    assert interval.upper is None
    assert not interval.has_upper
    assert np.isnan(interval.p)
    assert Diagnostic.NO_UPPER_LIMIT in interval.flags
    assert Diagnostic.HIGH_SAPWOOD_COUNT in interval.flags


def test_no_upper_limit_relative():
    with pytest.warns(NoUpperLimitWarning):
        interval = sw_interval(300, hdi=True)
    assert interval.lower == 300


def test_unknown_dataset_falls_back():
    with pytest.warns(UnknownDatasetWarning):
        pmf = sw_interval(10, last=1234, sw_data='Nowhere_2000')
    assert pmf.sw_data == 'Hollstein_1980_approx'
    assert Diagnostic.DATASET_FALLBACK in pmf.flags
    assert Diagnostic.DATASET_FALLBACK in pmf.hdi.flags


def test_unknown_dataset_rejected():
    with pytest.raises(UnknownDatasetError):
        sw_interval(10, last=1234, sw_data='Nowhere_2000', on_unknown=Reject())


def test_synthetic_catalog(synthetic_catalog):
    interval = sw_interval(12, last=1100, hdi=True, sw_data='Synthetic',
                           densfun='normal', catalog=synthetic_catalog)
    assert interval.sw_data == 'Synthetic'
    assert 1100 <= interval.lower <= interval.upper < 1110


def test_user_csv_dataset(tmp_path):
    path = tmp_path / 'local.csv'
    path.write_text("n,count\n8,2\n9,6\n10,9\n11,7\n12,3\n13,1\n")
    pmf = sw_interval(9, last=1700, sw_data=str(path), sep=',')
    assert pmf.sw_data == 'local.csv'
    assert pmf.years[0] == 1700


def test_threshold_is_configurable():
    fitted = fit_sapwood_model('Hollstein_1980_approx')
    coarse = felling_date_table(fitted, 10, 1500, p_threshold=1e-3)
    fine = felling_date_table(fitted, 10, 1500)
    assert len(coarse) < len(fine)
    assert coarse['p'].sum() == pytest.approx(1.0)


def test_lattice_length():
    fitted = fit_sapwood_model('Hollstein_1980_approx')
    table = felling_date_table(fitted, 10, 1500, p_threshold=0.0, n_lattice=20)
    assert len(table) == 20
    assert table['year'].tolist() == list(range(1500, 1520))
    assert table['n_sapwood'].tolist() == list(range(10, 30))
