"""
Tests for the Heidelberg (.fh) reader.
"""

import numpy as np
import pytest

from fellingdate.exceptions import InvalidInputError
from fellingdate.heidelberg import fh_series_table, read_fh
from fellingdate.series import series_from_table, EXACT, TPQ


def test_read_widths(fh_file):
    rwl = read_fh(fh_file)
    assert list(rwl.columns) == ['ABC01', 'ABC02']
    assert rwl.index.name == 'year'
    abc01 = rwl['ABC01'].dropna()
    assert abc01.index.tolist() == [1452, 1453, 1454, 1455, 1456]
    np.testing.assert_allclose(abc01.to_numpy(), [1.23, 1.45, 1.67, 1.10, 0.98])


def test_half_chrono_keeps_widths_only(fh_file):
    abc02 = read_fh(fh_file)['ABC02'].dropna()
    # undated series are numbered from 1
    assert abc02.index.tolist() == [1, 2, 3]
    np.testing.assert_allclose(abc02.to_numpy(), [2.0, 2.5, 3.0])


def test_read_header(fh_file):
    header = read_fh(fh_file, header=True)
    assert list(header.columns[:4]) == ['KeyCode', 'DateBegin', 'DateEnd', 'n_rings']
    first = header.iloc[0]
    assert first['KeyCode'] == 'ABC01'
    assert first['DateBegin'] == 1452
    assert first['SapWoodRings'] == 12
    assert first['WaldKante'] == 'WKE'
    # lower-case keys are mapped to the usual spelling
    assert header.iloc[1]['KeyCode'] == 'ABC02'
    assert header.iloc[1]['n_rings'] == 3


def test_series_table(fh_file):
    table = fh_series_table(read_fh(fh_file, header=True))
    assert table.columns.tolist() == ['series', 'last', 'n_sapwood', 'waneyedge']
    assert table['last'].tolist() == [1456, 3]
    assert table['waneyedge'].tolist() == [True, False]
    records = series_from_table(table)
    assert records[0].kind == EXACT
    assert records[0].exact_year == 1456
    assert records[1].kind == TPQ


def test_verbose(fh_file, capsys):
    read_fh(fh_file, verbose=True)
    out = capsys.readouterr().out
    assert 'Read 2 series' in out


def test_unit_conversion(tmp_path):
    path = tmp_path / 'thousandths.fh'
    path.write_text("HEADER:\nKeyCode=X\nDateEnd=1800\nUnit=1/1000 mm\n"
                    "DATA:Tree\n1500 2500\n")
    rwl = read_fh(path)
    np.testing.assert_allclose(rwl['X'].to_numpy(), [1.5, 2.5])
    assert rwl.index.tolist() == [1799, 1800]


def test_duplicate_keycodes(tmp_path):
    path = tmp_path / 'dup.fh'
    path.write_text("HEADER:\nKeyCode=X\nDATA:Tree\n100\n"
                    "HEADER:\nKeyCode=X\nDATA:Tree\n200\n")
    assert read_fh(path).columns.tolist() == ['X', 'X_2']


def test_unsupported_format(tmp_path):
    path = tmp_path / 'bad.fh'
    path.write_text("HEADER:\nKeyCode=X\nDATA:Spiral\n100 200\n")
    with pytest.raises(InvalidInputError, match='unsupported data format'):
        read_fh(path)


def test_length_longer_than_data(tmp_path):
    path = tmp_path / 'short.fh'
    path.write_text("HEADER:\nKeyCode=X\nLength=10\nDATA:Tree\n100 200\n")
    with pytest.raises(InvalidInputError, match='Length=10'):
        read_fh(path)


def test_no_header_block(tmp_path):
    path = tmp_path / 'empty.fh'
    path.write_text("just some text\n")
    with pytest.raises(InvalidInputError):
        read_fh(path)
