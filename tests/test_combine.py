"""
Tests for combining series felled at the same time.
"""

import numpy as np
import pytest

from fellingdate.combine import sw_combine
from fellingdate.exceptions import (
    Diagnostic, FellingDateWarning, InputConflictError, InvalidInputError,
    LowAgreementWarning, NoOverlapWarning, NoUpperLimitWarning
)
from fellingdate.series import SeriesRecord, TPQ


CONSISTENT = [
    SeriesRecord('beam1', 1000, 5),
    SeriesRecord('beam2', 1002, 7),
    SeriesRecord('beam3', 1004, 9),
]


def test_identical_waney_edge_series_give_point_mass():
    series = [SeriesRecord(f'wk{i}', 1456, 20 + i, waneyedge=True) for i in range(5)]
    model = sw_combine(series)
    assert model.years.tolist() == [1456]
    assert model.p.tolist() == [1.0]
    assert model.a_comb == pytest.approx(100.0)
    assert model.a_i.tolist() == pytest.approx([100.0] * 5)
    assert model.hdi.lower == model.hdi.upper == 1456
    assert model.is_sound
    # no sapwood model is needed for exact dates
    assert model.sw_data is None


def test_conflicting_exact_years():
    series = [SeriesRecord('a', 1456, 20, waneyedge=True),
              SeriesRecord('b', 1460, 20, waneyedge=True)]
    with pytest.raises(InputConflictError):
        sw_combine(series)


def test_consistent_series_are_sound():
    model = sw_combine(CONSISTENT)
    assert model.p.sum() == pytest.approx(1.0)
    assert model.is_sound
    assert model.a_comb >= 60
    assert model.outliers == []
    assert model.hdi.lower >= 1004
    assert model.hdi.upper is not None
    assert list(model.summary['series']) == ['beam1', 'beam2', 'beam3']


def test_order_invariance():
    forward = sw_combine(CONSISTENT + [SeriesRecord('post', 1001)])
    backward = sw_combine(list(reversed(CONSISTENT + [SeriesRecord('post', 1001)])))
    np.testing.assert_array_equal(forward.years, backward.years)
    np.testing.assert_array_equal(forward.p, backward.p)
    assert forward.a_comb == pytest.approx(backward.a_comb)
    for label in forward.a_i.index:
        assert forward.a_i[label] == pytest.approx(backward.a_i[label])
    assert (forward.hdi.lower, forward.hdi.upper) == (backward.hdi.lower, backward.hdi.upper)


def test_single_series_agrees_with_itself():
    model = sw_combine([SeriesRecord('solo', 1300, 12)])
    assert model.a_comb == pytest.approx(100.0)
    single = model.table['solo'].to_numpy()
    np.testing.assert_allclose(model.p, single)


def test_identical_copies_agree():
    copies = [SeriesRecord('copy', 1300, 12)] * 3
    model = sw_combine(copies)
    assert list(model.a_i.index) == ['copy', 'copy_2', 'copy_3']
    assert model.a_comb > 60
    assert model.a_comb < 100
    assert model.a_i.nunique() == 1


def test_disjoint_series_are_flagged():
    series = [SeriesRecord('early', 1000, 10), SeriesRecord('late', 1300, 10)]
    with pytest.warns(FellingDateWarning) as record:
        model = sw_combine(series)
    categories = {w.category for w in record}
    assert NoOverlapWarning in categories
    assert LowAgreementWarning in categories
    assert Diagnostic.NO_OVERLAP in model.flags
    assert Diagnostic.LOW_AGREEMENT in model.flags
    assert model.a_comb == 0
    assert not model.is_sound
    assert model.outliers == ['early', 'late']
    assert model.hdi.lower is None and model.hdi.upper is None


def test_outlier_lowers_agreement():
    series = CONSISTENT + [SeriesRecord('intruder', 1045, 10)]
    with pytest.warns(LowAgreementWarning):
        model = sw_combine(series)
    assert model.a_comb < 60
    assert not model.is_sound
    assert Diagnostic.LOW_AGREEMENT in model.flags
    assert len(model.outliers) > 0
    # without the intruder the group is consistent again
    assert sw_combine(CONSISTENT).is_sound


def test_exact_with_range():
    series = [SeriesRecord('wk', 1020, 25, waneyedge=True),
              SeriesRecord('beam', 1000, 15)]
    model = sw_combine(series)
    assert model.hdi.lower == model.hdi.upper == 1020
    assert model.a_i['wk'] == pytest.approx(100.0)
    assert 0 < model.a_i['beam'] < 100


def test_terminus_post_quem_only():
    series = [SeriesRecord('a', 1100), SeriesRecord('b', 1120)]
    model = sw_combine(series)
    assert Diagnostic.TERMINUS_POST_QUEM in model.flags
    assert model.hdi.lower == 1120
    assert model.hdi.upper is None
    assert model.a_comb == 100
    assert model.years[0] == 1120


def test_terminus_post_quem_truncates_range():
    series = [SeriesRecord('beam', 1000, 15), SeriesRecord('post', 1012)]
    model = sw_combine(series)
    assert model.years[model.p > 0].min() >= 1012
    assert model.hdi.lower >= 1012
    # share of the beam's distribution after 1012
    beam = model.table['beam'].to_numpy()
    expected = 100 * beam[model.years >= 1012].sum()
    assert model.a_i['post'] == pytest.approx(expected)


def test_degenerate_range_becomes_terminus_post_quem():
    series = [SeriesRecord('odd', 1000, 300), SeriesRecord('beam', 1000, 15)]
    with pytest.warns(NoUpperLimitWarning):
        model = sw_combine(series)
    kinds = dict(zip(model.summary['series'], model.summary['kind']))
    assert kinds['odd'] == TPQ
    assert Diagnostic.NO_UPPER_LIMIT in model.flags


def test_dataframe_input(series_table):
    model = sw_combine(series_table)
    assert len(model.summary) == 4
    assert model.a_i['post1'] == pytest.approx(100.0)


def test_synthetic_catalog(synthetic_catalog):
    model = sw_combine([SeriesRecord('a', 1000, 12), SeriesRecord('b', 1001, 13)],
                       sw_data='Synthetic', densfun='normal',
                       catalog=synthetic_catalog)
    assert model.sw_data == 'Synthetic'
    assert model.densfun == 'normal'


def test_empty_input():
    with pytest.raises(InvalidInputError):
        sw_combine([])


def test_verbose_prints_summary(capsys):
    sw_combine(CONSISTENT, verbose=True)
    out = capsys.readouterr().out
    assert 'COMBINED FELLING DATE' in out
    assert 'beam2' in out


def test_disjoint_intruder_is_singled_out():
    series = [SeriesRecord('beam1', 1000, 5), SeriesRecord('beam2', 1002, 7),
              SeriesRecord('intruder', 1300, 10)]
    with pytest.warns(NoOverlapWarning):
        model = sw_combine(series)
    assert Diagnostic.NO_OVERLAP in model.flags
    assert model.a_comb == 0
    assert not model.is_sound
    assert model.a_i['intruder'] == 0
    assert model.a_i['beam1'] > 60
    assert model.a_i['beam2'] > 60
    assert model.outliers == ['intruder']


def test_duplicate_ids_are_labelled_by_content():
    first = SeriesRecord('x', 1000, 5)
    second = SeriesRecord('x', 1002, 7)
    forward = sw_combine([first, second])
    backward = sw_combine([second, first])
    assert forward.a_i.index.tolist() == ['x', 'x_2']
    assert backward.a_i.index.tolist() == ['x_2', 'x']
    for label in ('x', 'x_2'):
        assert forward.a_i[label] == pytest.approx(backward.a_i[label])
        np.testing.assert_allclose(forward.table[label], backward.table[label])


def test_relative_and_dated_series_not_mixed():
    with pytest.raises(InvalidInputError):
        sw_combine([SeriesRecord('rel', 0, 10), SeriesRecord('dated', 1200, 10)])
