"""
In-memory tabular data for tabular_recipes.

This package contains:

- Dataset: an immutable, pandas-backed table of uniquely named columns.
- ColumnCatalog: the per-column kind (numeric / categorical) and role
  (outcome / predictor / other) a recipe resolves its selectors against.

Loading data from files or databases is left to the caller; anything that
ends up as a pandas DataFrame can be wrapped with Dataset.from_frame.
"""

from __future__ import annotations

from .catalog import ColumnCatalog, ColumnInfo, ColumnRole
from .dataset import ColumnKind, Dataset, infer_kind

__all__: list[str] = [
    "ColumnCatalog",
    "ColumnInfo",
    "ColumnKind",
    "ColumnRole",
    "Dataset",
    "infer_kind",
]
