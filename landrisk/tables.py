"""
Table views (column metadata -> pandas DataFrame)
================================================

Column configurations (`key`, `header`, `format`) describe how a dataset is
shown. `to_frame` renders any sequence of rows with any column set, so record
tables and zone tables share one code path.
"""

from __future__ import annotations
from typing import Any, Sequence

import pandas as pd

from .models import ColumnConfig


def cell_value(row: Any, key: str) -> Any:
    """Field lookup for enriched rows (`value`) and plain dataclasses (attributes)."""
    getter = getattr(row, "value", None)
    if callable(getter):
        return getter(key)
    if not hasattr(row, key):
        raise KeyError(f"Unknown field: {key}")
    return getattr(row, key)


def to_frame(rows: Sequence[Any], columns: Sequence[ColumnConfig], formatted: bool = True) -> pd.DataFrame:
    """One DataFrame column per ColumnConfig, headed by its header text."""
    headers = [c.header for c in columns]
    data = []
    for row in rows:
        out = []
        for c in columns:
            v = cell_value(row, c.key)
            out.append(c.format(v, row) if formatted and c.format else v)
        data.append(out)
    return pd.DataFrame(data, columns=headers)

