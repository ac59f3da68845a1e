"""
Tests for the sapwood catalog and dataset loading.
"""

import pandas as pd
import pytest

from fellingdate.catalog import (
    Fallback, Reject, SapwoodCatalog, SapwoodDataset, default_catalog,
    load_sapwood_csv, resolve_dataset, sw_data_overview
)
from fellingdate.exceptions import (
    Diagnostic, InvalidInputError, UnknownDatasetError, UnknownDatasetWarning
)


BUNDLED = ['Hollstein_1980_approx', 'Wazny_1990_approx', 'Hillam_1987_approx',
           'Sohar_2012_ELL_c_approx', 'Brathen_1982_approx', 'Haneca_2009_approx']


def test_default_catalog_has_bundled_datasets():
    catalog = default_catalog()
    for name in BUNDLED:
        assert name in catalog
    assert sw_data_overview() == catalog.names()
    assert default_catalog() is catalog


def test_bundled_dataset_ranges():
    catalog = default_catalog()
    hollstein, flags = catalog.get('Hollstein_1980_approx')
    assert flags == frozenset()
    lo, hi, n = hollstein.sample_range
    assert (lo, hi) == (9, 36)
    assert n == hollstein.n_samples == len(hollstein.observations)


def test_from_mapping_cleans_counts():
    ds = SapwoodDataset.from_mapping('x', {12: 2, 10: 1, 11: 0, 13: 4})
    assert ds.counts['n_sapwood'].tolist() == [10, 12, 13]
    assert ds.counts['count'].tolist() == [1, 2, 4]
    assert ds.sample_range == (10, 13, 7)


def test_negative_counts_rejected():
    with pytest.raises(InvalidInputError):
        SapwoodDataset.from_mapping('x', {10: -1, 11: 3})


def test_empty_dataset_rejected():
    with pytest.raises(InvalidInputError):
        SapwoodDataset.from_mapping('x', {10: 0})


def test_overview_and_info(synthetic_catalog):
    overview = synthetic_catalog.overview()
    assert isinstance(overview, pd.DataFrame)
    assert len(overview) == len(synthetic_catalog) == 2
    info = synthetic_catalog.info('Synthetic')
    assert info['min'] == 10
    assert info['max'] == 16
    assert info['n'] == 28
    assert info['median'] == 13
    with pytest.raises(UnknownDatasetError):
        synthetic_catalog.info('missing')


def test_reject_policy_raises(synthetic_catalog):
    with pytest.raises(UnknownDatasetError):
        synthetic_catalog.get('missing', on_unknown=Reject())


def test_fallback_policy_warns_and_flags(synthetic_catalog):
    with pytest.warns(UnknownDatasetWarning, match="defaults to 'Synthetic'"):
        ds, flags = synthetic_catalog.get('missing',
                                          on_unknown=Fallback('Synthetic'))
    assert ds.name == 'Synthetic'
    assert Diagnostic.DATASET_FALLBACK in flags


def test_fallback_target_must_exist(synthetic_catalog):
    # the default fallback (Hollstein_1980_approx) is not in this catalog
    with pytest.raises(UnknownDatasetError):
        synthetic_catalog.get('missing')


def test_empty_catalog_is_used_when_given():
    empty = SapwoodCatalog()
    assert len(empty) == 0
    with pytest.raises(UnknownDatasetError):
        resolve_dataset('Hollstein_1980_approx', catalog=empty)


def test_load_csv_semicolon_with_header(tmp_path):
    path = tmp_path / 'my_sapwood.csv'
    path.write_text("n_sapwood;count\n12;3\n10;1\n11;0\n12;2\n")
    ds = load_sapwood_csv(path)
    assert ds.name == 'my_sapwood.csv'
    assert ds.counts['n_sapwood'].tolist() == [10, 12]
    assert ds.counts['count'].tolist() == [1, 5]


def test_load_csv_comma_without_header(tmp_path):
    path = tmp_path / 'sw.csv'
    path.write_text("8,2\n9,5\n10,3\n")
    ds = load_sapwood_csv(path, sep=",", name='local')
    assert ds.name == 'local'
    assert ds.sample_range == (8, 10, 10)


def test_load_csv_bad_separator(tmp_path):
    path = tmp_path / 'sw.csv'
    path.write_text("8\t2\n")
    with pytest.raises(InvalidInputError):
        load_sapwood_csv(path, sep="\t")


def test_load_csv_wrong_separator_gives_one_column(tmp_path):
    path = tmp_path / 'sw.csv'
    path.write_text("8,2\n9,5\n")
    with pytest.raises(InvalidInputError, match="two columns"):
        load_sapwood_csv(path, sep=";")


def test_load_csv_non_numeric(tmp_path):
    path = tmp_path / 'sw.csv'
    path.write_text("n;count\n8;2\n9;many\n")
    with pytest.raises(InvalidInputError, match="non-numeric"):
        load_sapwood_csv(path)


def test_resolve_dataset_accepts_path_and_object(tmp_path, synthetic_dataset):
    path = tmp_path / 'sw.csv'
    path.write_text("8;2\n9;5\n10;3\n")
    ds, flags = resolve_dataset(str(path))
    assert ds.sample_range == (8, 10, 10)
    assert flags == frozenset()

    ds, flags = resolve_dataset(synthetic_dataset)
    assert ds is synthetic_dataset


def test_bundled_datasets_are_labelled_synthetic():
    catalog = default_catalog()
    for name in BUNDLED:
        dataset, _ = catalog.get(name)
        assert name.endswith('_approx')
        assert dataset.citation.startswith('Synthetic')
        assert 'synthetic' in dataset.notes
