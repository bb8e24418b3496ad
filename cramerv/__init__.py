"""Cramér's V association statistic with reference implementations and a benchmark."""

from .stats import (
    ContingencyTable,
    DegenerateTableError,
    InvalidInputError,
    chi_squared,
    contingency_table,
    cramer_v,
    cramer_v_from_table,
    expected_counts,
)

__all__ = [
    "ContingencyTable",
    "DegenerateTableError",
    "InvalidInputError",
    "chi_squared",
    "contingency_table",
    "cramer_v",
    "cramer_v_from_table",
    "expected_counts",
    "bench",
    "cli",
    "config",
    "correlations",
    "io",
    "reference",
    "registry",
    "report",
    "stats",
    "utils",
]
