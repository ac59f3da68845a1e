"""
Errors, warnings and diagnostic flags
=====================================

Fatal input problems raise a ``FellingDateError`` subclass. Degraded but
usable results carry a ``Diagnostic`` flag and are announced with a
``FellingDateWarning`` subclass through :mod:`warnings`, so callers can
either filter the warnings or inspect ``result.flags``.
"""

import warnings
from enum import Enum


class FellingDateError(Exception):
    """Base class for all fatal errors raised by this package."""


class InvalidInputError(FellingDateError, ValueError):
    """An argument violates a precondition (type, sign, range)."""


class UnsupportedFamilyError(FellingDateError, ValueError):
    """The requested density function is not supported."""


class UnknownDatasetError(FellingDateError, LookupError):
    """The requested sapwood dataset is not in the catalog."""


class InputConflictError(FellingDateError, ValueError):
    """Series with known felling years disagree on that year."""


class FellingDateWarning(UserWarning):
    """Base class for non-fatal diagnostics."""


class UnknownDatasetWarning(FellingDateWarning):
    pass


class MissingSapwoodWarning(FellingDateWarning):
    pass


class HighSapwoodCountWarning(FellingDateWarning):
    pass


class NoUpperLimitWarning(FellingDateWarning):
    pass


class LowAgreementWarning(FellingDateWarning):
    pass


class NoOverlapWarning(FellingDateWarning):
    pass


class ExcludedSeriesWarning(FellingDateWarning):
    pass


class Diagnostic(str, Enum):
    """Flags attached to results computed under degraded conditions."""

    DATASET_FALLBACK = "dataset_fallback"
    HIGH_SAPWOOD_COUNT = "high_sapwood_count"
    NO_UPPER_LIMIT = "no_upper_limit"
    TERMINUS_POST_QUEM = "terminus_post_quem"
    LOW_AGREEMENT = "low_agreement"
    NO_OVERLAP = "no_overlap"
    EXCLUDED_SERIES = "excluded_series"


def emit(message, category, stacklevel=3):
    """Issue a package warning pointing at the caller of the public function."""
    warnings.warn(f" --> {message}", category, stacklevel=stacklevel)
