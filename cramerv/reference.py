"""Slower Cramér's V implementations used as correctness oracles and benchmark peers."""

from __future__ import annotations

from typing import Any, Callable, Sequence

import numpy as np
import pandas as pd
from scipy.stats import chi2_contingency

from .stats import validate_labels

Implementation = Callable[[Sequence[Any], Sequence[Any]], float]


def cramer_v_scipy(x: Sequence[Any], y: Sequence[Any]) -> float:
    """Cramér's V via ``pandas.crosstab`` and ``scipy.stats.chi2_contingency``."""

    x_values, y_values = validate_labels(x, y)
    table = pd.crosstab(x_values, y_values)
    chi2, _, _, _ = chi2_contingency(table, correction=False)
    n = np.float64(table.values.sum())
    r, c = table.shape
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.sqrt(np.float64(chi2) / (n * (min(r, c) - 1))))


def cramer_v_crosstab(x: Sequence[Any], y: Sequence[Any]) -> float:
    """Cramér's V from a ``pandas.crosstab`` with the chi-squared sum done in pandas."""

    x_values, y_values = validate_labels(x, y)
    table = pd.crosstab(x_values, y_values)
    n = np.float64(table.values.sum())
    expected = np.outer(table.sum(axis=1), table.sum(axis=0)) / n
    observed = table.to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        chi2 = ((observed - expected) ** 2 / expected).sum()
        return float(np.sqrt(chi2 / (n * (min(table.shape) - 1))))


def is_ok(
    candidate: Implementation,
    x: Sequence[Any],
    y: Sequence[Any],
    *,
    reference: Implementation = cramer_v_scipy,
    tolerance: float = 1e-9,
) -> bool:
    """Return True when ``candidate`` reproduces ``reference`` on the given labels.

    Two NaN results count as agreement, since both implementations then agree
    that the statistic is undefined for the input.
    """

    expected = reference(x, y)
    actual = candidate(x, y)
    if np.isnan(expected) or np.isnan(actual):
        return bool(np.isnan(expected) and np.isnan(actual))
    return abs(actual - expected) <= tolerance
