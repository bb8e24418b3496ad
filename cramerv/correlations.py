"""Pairwise Cramér's V across the categorical columns of a record sample."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import pandas as pd

from .stats import contingency_table, cramer_v_from_table


def compute_associations(
    records: Iterable[dict[str, Any]], columns: Optional[Sequence[str]] = None
) -> dict[str, dict[str, float]]:
    """Compute a symmetric Cramér's V matrix for categorical columns of ``records``.

    ``columns`` restricts (and orders) the columns considered; by default every
    object, category or bool column is used. Pairs where either column has a
    single distinct value report ``0.0`` rather than NaN.
    """

    frame = pd.DataFrame(list(records))
    associations: dict[str, dict[str, float]] = {}
    if frame.empty:
        return associations

    if columns is None:
        categorical_cols = list(frame.select_dtypes(include=["object", "category", "bool"]).columns)
    else:
        missing = [column for column in columns if column not in frame.columns]
        if missing:
            raise KeyError(f"columns not found: {', '.join(missing)}")
        categorical_cols = list(columns)

    if len(categorical_cols) < 2:
        return associations

    prepared = frame[categorical_cols].copy()
    prepared = prepared.fillna("<NA>").astype(str)
    for idx, col_a in enumerate(categorical_cols):
        for col_b in categorical_cols[idx + 1 :]:
            table = contingency_table(prepared[col_a], prepared[col_b])
            if min(table.counts.shape) <= 1:
                value = 0.0
            else:
                value = cramer_v_from_table(table.counts)
            associations.setdefault(col_a, {})[col_b] = round(value, 4)
            associations.setdefault(col_b, {})[col_a] = round(value, 4)

    return associations
