"""
Sapwood Catalog Module
======================

Read-only registry of empirical sapwood datasets (frequency tables of the
number of sapwood rings observed on samples with bark or waney edge).

The registry is an ordinary object: estimation functions take it as the
``catalog`` argument and fall back to :func:`default_catalog` (the bundled
datasets) when none is given, so tests can run against synthetic catalogs.

What happens when a requested name is not registered is controlled by an
explicit policy object:

- ``Fallback(default_name)``: substitute the default dataset and warn
- ``Reject()``: raise ``UnknownDatasetError``
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import numpy as np
import pandas as pd

from .config import DEFAULT_SW_DATA, CSV_SEPARATORS
from .exceptions import (
    Diagnostic, InvalidInputError, UnknownDatasetError, UnknownDatasetWarning,
    emit
)
from .sapwood_data import SAPWOOD_DATASETS, DATASET_NOTES


# ============================================================================
# DATASETS
# ============================================================================

@dataclass(frozen=True, eq=False)
class SapwoodDataset:
    """
    Empirical distribution of sapwood-ring counts.

    Attributes
    ----------
    name : str
        Identifier used for lookup and reported with every estimate.
    counts : DataFrame
        Columns ``n_sapwood`` (ring count) and ``count`` (frequency),
        sorted by ring count, frequencies > 0.
    region, species, citation, notes : str
        Provenance metadata.
    """

    name: str
    counts: pd.DataFrame
    region: str = ''
    species: str = ''
    citation: str = ''
    notes: str = ''

    @classmethod
    def from_mapping(cls, name, counts, **metadata):
        """Build a dataset from a ``{ring_count: frequency}`` mapping."""
        table = pd.DataFrame(
            sorted(counts.items()), columns=['n_sapwood', 'count']
        )
        return cls(name=name, counts=_clean_counts(table), **metadata)

    @property
    def n_samples(self):
        return int(self.counts['count'].sum())

    @property
    def sample_range(self):
        """(min, max, n) of the observed ring counts."""
        x = self.counts['n_sapwood']
        return int(x.min()), int(x.max()), self.n_samples

    @property
    def observations(self):
        """Expanded sample: each ring count repeated by its frequency."""
        return np.repeat(
            self.counts['n_sapwood'].to_numpy(dtype=float),
            self.counts['count'].to_numpy(dtype=int)
        )

    def summary(self):
        obs = self.observations
        lo, hi, n = self.sample_range
        return {
            'name': self.name,
            'region': self.region,
            'species': self.species,
            'n': n,
            'min': lo,
            'max': hi,
            'mean': float(np.mean(obs)),
            'median': float(np.median(obs)),
            'citation': self.citation,
        }


def _clean_counts(table):
    table = table.dropna()
    if (table % 1 != 0).any().any():
        raise InvalidInputError(
            " --> sapwood counts and frequencies must be integers"
        )
    table = table.astype({'n_sapwood': int, 'count': int})
    if (table['n_sapwood'] < 0).any() or (table['count'] < 0).any():
        raise InvalidInputError(
            " --> sapwood counts and frequencies must be non-negative"
        )
    table = table[table['count'] > 0]
    table = table.groupby('n_sapwood', as_index=False)['count'].sum()
    if table.empty:
        raise InvalidInputError(" --> sapwood dataset contains no observations")
    return table.sort_values('n_sapwood').reset_index(drop=True)


def load_sapwood_csv(path, sep=";", name=None):
    """
    Load a user-defined sapwood dataset from a delimited text file.

    The file holds two columns: the number of sapwood rings and the number
    of samples observed with that count. A header row is optional.

    Parameters
    ----------
    path : str or Path
    sep : str
        Field separator, "," or ";"
    name : str, optional
        Dataset name (defaults to the file name)

    Returns
    -------
    SapwoodDataset
    """
    if sep not in CSV_SEPARATORS:
        raise InvalidInputError(
            f" --> sep should be one of {CSV_SEPARATORS}, got {sep!r}"
        )
    path = Path(path)
    raw = pd.read_csv(path, sep=sep, header=None, dtype=str,
                      skipinitialspace=True)
    if raw.shape[1] < 2:
        raise InvalidInputError(
            f" --> {path.name} must have two columns (n_sapwood, count); "
            f"check the separator ({sep!r})"
        )
    raw = raw.iloc[:, :2]
    raw.columns = ['n_sapwood', 'count']
    table = raw.apply(pd.to_numeric, errors='coerce')
    # drop a header row if present
    if table.iloc[0].isna().any():
        table = table.iloc[1:]
    if table.isna().any().any():
        raise InvalidInputError(
            f" --> {path.name} contains non-numeric values"
        )
    return SapwoodDataset(
        name=name or path.name,
        counts=_clean_counts(table),
        notes=f"user-defined dataset loaded from {path}",
    )


# ============================================================================
# UNKNOWN-NAME POLICIES
# ============================================================================

@dataclass(frozen=True)
class Fallback:
    """Substitute ``default_name`` for unknown datasets (with a warning)."""

    default_name: str = DEFAULT_SW_DATA


@dataclass(frozen=True)
class Reject:
    """Raise ``UnknownDatasetError`` for unknown datasets."""


# ============================================================================
# REGISTRY
# ============================================================================

@dataclass(frozen=True)
class SapwoodCatalog:
    """Immutable name -> SapwoodDataset registry."""

    datasets: dict = field(default_factory=dict)

    @classmethod
    def from_datasets(cls, datasets):
        return cls({ds.name: ds for ds in datasets})

    def names(self):
        return list(self.datasets)

    def __contains__(self, name):
        return name in self.datasets

    def __len__(self):
        return len(self.datasets)

    def __iter__(self):
        return iter(self.datasets.values())

    def get(self, name, on_unknown=None):
        """
        Look up a dataset by name.

        Parameters
        ----------
        name : str
        on_unknown : Fallback or Reject, optional
            Policy for names that are not registered (default: Fallback()).

        Returns
        -------
        tuple
            (SapwoodDataset, flags) where flags is a frozenset that holds
            ``Diagnostic.DATASET_FALLBACK`` when the default was substituted.
        """
        if name in self.datasets:
            return self.datasets[name], frozenset()

        if on_unknown is None:
            on_unknown = Fallback()
        if isinstance(on_unknown, Reject):
            raise UnknownDatasetError(
                f" --> sapwood dataset {name!r} not found; "
                f"available: {self.names()}"
            )
        if on_unknown.default_name not in self.datasets:
            raise UnknownDatasetError(
                f" --> neither {name!r} nor the fallback dataset "
                f"{on_unknown.default_name!r} is in the catalog"
            )
        emit(f"sapwood dataset {name!r} not available, defaults to "
             f"{on_unknown.default_name!r}.", UnknownDatasetWarning)
        return (self.datasets[on_unknown.default_name],
                frozenset({Diagnostic.DATASET_FALLBACK}))

    def overview(self):
        """One row per dataset with provenance and sample statistics."""
        return pd.DataFrame([ds.summary() for ds in self.datasets.values()])

    def info(self, name):
        if name not in self.datasets:
            raise UnknownDatasetError(f" --> sapwood dataset {name!r} not found")
        return self.datasets[name].summary()


@lru_cache(maxsize=1)
def default_catalog():
    """Catalog of the bundled datasets (built once per process)."""
    datasets = []
    for name, entry in SAPWOOD_DATASETS.items():
        datasets.append(SapwoodDataset.from_mapping(
            name, entry['counts'],
            region=entry['region'],
            species=entry['species'],
            citation=entry['citation'],
            notes=DATASET_NOTES,
        ))
    return SapwoodCatalog.from_datasets(datasets)


def sw_data_overview(catalog=None):
    """Names of the available sapwood datasets."""
    if catalog is None:
        catalog = default_catalog()
    return catalog.names()


def resolve_dataset(sw_data, catalog=None, on_unknown=None, sep=";"):
    """
    Turn the ``sw_data`` argument of the estimation functions into a dataset.

    ``sw_data`` may be a SapwoodDataset, the path of an existing .csv file
    or a catalog name.

    Returns
    -------
    tuple
        (SapwoodDataset, flags)
    """
    if isinstance(sw_data, SapwoodDataset):
        return sw_data, frozenset()
    if isinstance(sw_data, (str, Path)) and str(sw_data).lower().endswith('.csv') \
            and Path(sw_data).is_file():
        return load_sapwood_csv(sw_data, sep=sep), frozenset()
    if catalog is None:
        catalog = default_catalog()
    return catalog.get(str(sw_data), on_unknown=on_unknown)
