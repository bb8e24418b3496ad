"""Cramér's V and the chi-squared quantities it is built from.

The computation works on a dense contingency table of integer counts:

* expected counts are the outer product of row and column totals divided by
  the grand total,
* chi-squared sums ``(observed - expected) ** 2 / expected`` over every cell,
* Cramér's V is ``sqrt(chi2 / (n * k))`` with ``k = min(rows, columns) - 1``.

Degenerate tables (one category on the smaller axis, or a zero expected cell)
make the formula divide by zero. Those inputs return NaN and log a warning
unless ``strict=True`` is passed, in which case :class:`DegenerateTableError`
is raised instead.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Hashable, Sequence

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when label sequences are empty or differ in length."""


class DegenerateTableError(ValueError):
    """Raised in strict mode when Cramér's V is undefined for a table."""

    def __init__(self, message: str, *, shape: tuple[int, ...]) -> None:
        super().__init__(message)
        self.shape = shape


@dataclass(frozen=True, slots=True)
class ContingencyTable:
    """Cross-tabulated counts of co-occurring label pairs."""

    rows: list[Hashable]
    columns: list[Hashable]
    counts: np.ndarray

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    def to_frame(self) -> pd.DataFrame:
        """Return the table as a labelled DataFrame."""

        return pd.DataFrame(self.counts, index=self.rows, columns=self.columns)


def contingency_table(x: Sequence[Any], y: Sequence[Any]) -> ContingencyTable:
    """Count co-occurrences of ``(x[i], y[i])`` into a dense table."""

    x_values, y_values = validate_labels(x, y)
    row_codes, rows = _factorize(x_values)
    col_codes, columns = _factorize(y_values)

    n_rows, n_cols = len(rows), len(columns)
    flat = np.bincount(row_codes * n_cols + col_codes, minlength=n_rows * n_cols)
    return ContingencyTable(rows=rows, columns=columns, counts=flat.reshape(n_rows, n_cols))


def expected_counts(counts: Any) -> np.ndarray:
    """Expected cell counts under independence, given the observed marginals."""

    observed = np.asarray(counts, dtype=float)
    total = math.fsum(observed.ravel())
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.outer(observed.sum(axis=1), observed.sum(axis=0)) / total


def chi_squared(counts: Any) -> float:
    """Pearson's chi-squared statistic for a contingency table (no continuity correction).

    Cell terms are summed with ``math.fsum`` so the result does not depend on
    cell order; a transposed table gives a bit-identical statistic.
    """

    observed = np.asarray(counts, dtype=float)
    expected = expected_counts(observed)
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = (observed - expected) ** 2 / expected
    return math.fsum(terms.ravel())


def cramer_v_from_table(counts: Any, *, strict: bool = False) -> float:
    """Compute Cramér's V for an already tabulated 2-D count array."""

    observed = np.asarray(counts, dtype=float)
    if observed.ndim != 2 or observed.size == 0:
        raise InvalidInputError("contingency table must be a non-empty 2-D array")

    total = np.float64(math.fsum(observed.ravel()))
    k = min(observed.shape) - 1
    chi2 = np.float64(chi_squared(observed))

    if k <= 0 or not np.isfinite(chi2):
        message = (
            f"Cramér's V is undefined for a {observed.shape[0]}x{observed.shape[1]} table "
            f"(k={k}, chi2={float(chi2)})"
        )
        if strict:
            raise DegenerateTableError(message, shape=observed.shape)
        logger.warning("%s; returning NaN", message)

    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.sqrt(chi2 / (total * k)))


def cramer_v(x: Sequence[Any], y: Sequence[Any], *, strict: bool = False) -> float:
    """Cramér's V association strength between two categorical label sequences.

    Both sequences must be non-empty and of equal length; labels may be any
    hashable values. The result lies in [0, 1] for well-formed inputs and is
    symmetric in its arguments. Inputs with a single category on the smaller
    axis yield NaN (or raise :class:`DegenerateTableError` when ``strict``).
    """

    table = contingency_table(x, y)
    return cramer_v_from_table(table.counts, strict=strict)


def validate_labels(x: Sequence[Any], y: Sequence[Any]) -> tuple[pd.Series, pd.Series]:
    """Check two label sequences are non-empty and aligned; return them as object Series."""

    x_values = _as_series(x)
    y_values = _as_series(y)
    if x_values.empty or y_values.empty:
        raise InvalidInputError("label sequences must not be empty")
    if len(x_values) != len(y_values):
        raise InvalidInputError(
            f"label sequences differ in length ({len(x_values)} != {len(y_values)})"
        )
    return x_values, y_values


def _as_series(values: Any) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.astype(object).reset_index(drop=True)
    if not hasattr(values, "__len__"):
        values = list(values)
    return pd.Series(list(values), dtype=object)


def _factorize(values: pd.Series) -> tuple[np.ndarray, list[Hashable]]:
    # Mixed label types may not be orderable; fall back to first-seen order.
    try:
        codes, uniques = pd.factorize(values, sort=True, use_na_sentinel=False)
    except TypeError:
        codes, uniques = pd.factorize(values, sort=False, use_na_sentinel=False)
    return np.asarray(codes, dtype=np.intp), list(uniques)
