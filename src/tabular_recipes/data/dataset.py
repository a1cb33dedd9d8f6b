from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Sequence

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from tabular_recipes.exceptions import ColumnMissingError, SchemaError

_LOCATION_PREFIX = __name__

# infer_dtype labels for object columns that hold nothing but numbers.
_NUMERIC_INFERRED = {"integer", "floating", "mixed-integer-float", "decimal"}


class ColumnKind(str, Enum):
    """Data kind of a column."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


def infer_kind(series: pd.Series) -> ColumnKind:
    """Infer the kind of a column from its values.

    Numeric (non-boolean) dtypes are NUMERIC, as are object columns whose
    non-missing values are all numbers. Strings, booleans and pandas
    categoricals are CATEGORICAL.
    """
    if ptypes.is_bool_dtype(series.dtype) or isinstance(series.dtype, pd.CategoricalDtype):
        return ColumnKind.CATEGORICAL
    if ptypes.is_numeric_dtype(series.dtype):
        return ColumnKind.NUMERIC
    if series.dtype == object:
        inferred = ptypes.infer_dtype(series, skipna=True)
        if inferred in _NUMERIC_INFERRED and series.notna().any():
            return ColumnKind.NUMERIC
    return ColumnKind.CATEGORICAL


def _normalize_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Validate names and return a RangeIndex copy with numeric objects cast to float."""
    columns = list(frame.columns)

    non_string = [c for c in columns if not isinstance(c, str)]
    if non_string:
        raise SchemaError(
            "Column names must be strings.",
            code="schema_non_string_column_names",
            context={"columns": [repr(c) for c in non_string]},
            location=f"{_LOCATION_PREFIX}.Dataset.from_frame",
        )

    duplicated = sorted({c for c in columns if columns.count(c) > 1})
    if duplicated:
        raise SchemaError(
            "Column names must be unique.",
            code="schema_duplicate_columns",
            context={"duplicates": duplicated},
            location=f"{_LOCATION_PREFIX}.Dataset.from_frame",
        )

    result = frame.reset_index(drop=True).copy()
    for name in columns:
        series = result[name]
        if series.dtype == object and infer_kind(series) is ColumnKind.NUMERIC:
            result[name] = pd.to_numeric(series).astype("float64")
    return result


class Dataset:
    """Immutable in-memory table: ordered, uniquely named, equal-length columns.

    A Dataset wraps a pandas DataFrame that is never exposed directly;
    ``to_frame`` and ``column`` hand out copies, and every transforming
    operation returns a new Dataset. Columns may be shared between datasets
    produced from one another, which is safe because none of them is ever
    written to after construction.
    """

    __slots__ = ("_frame",)

    def __init__(self, frame: pd.DataFrame, *, _validated: bool = False) -> None:
        if not isinstance(frame, pd.DataFrame):
            raise TypeError(f"Dataset expects a pandas DataFrame, got {type(frame).__name__}")
        self._frame = frame if _validated else _normalize_frame(frame)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> Dataset:
        return cls(frame)

    @classmethod
    def from_columns(cls, columns: Mapping[str, Iterable[Any]]) -> Dataset:
        """Build a Dataset from a mapping of column name to values."""
        materialized = {name: list(values) for name, values in columns.items()}
        lengths = {name: len(values) for name, values in materialized.items()}
        if len(set(lengths.values())) > 1:
            raise SchemaError(
                "All columns must have the same number of rows.",
                code="schema_row_count_mismatch",
                context={"lengths": lengths},
                location=f"{_LOCATION_PREFIX}.Dataset.from_columns",
            )
        return cls(pd.DataFrame(materialized))

    @classmethod
    def coerce(cls, data: Dataset | pd.DataFrame) -> Dataset:
        """Return ``data`` as a Dataset, wrapping DataFrames."""
        if isinstance(data, Dataset):
            return data
        if isinstance(data, pd.DataFrame):
            return cls(data)
        raise TypeError(
            f"Expected a Dataset or pandas DataFrame, got {type(data).__name__}"
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self._frame.columns)

    @property
    def n_rows(self) -> int:
        return int(self._frame.shape[0])

    @property
    def kinds(self) -> dict[str, ColumnKind]:
        return {name: infer_kind(self._frame[name]) for name in self._frame.columns}

    def kind(self, name: str) -> ColumnKind:
        return infer_kind(self._series(name))

    def column(self, name: str) -> pd.Series:
        """Return a copy of one column."""
        return self._series(name).copy()

    def values(self, name: str) -> np.ndarray:
        """Return a column as a float64 array (missing values become NaN)."""
        return self._series(name).to_numpy(dtype="float64", na_value=np.nan)

    def to_frame(self) -> pd.DataFrame:
        return self._frame.copy()

    def require(self, names: Sequence[str], *, location: str | None = None) -> None:
        """Raise ColumnMissingError if any of ``names`` is absent."""
        missing = [name for name in names if name not in self._frame.columns]
        if missing:
            raise ColumnMissingError(
                f"Dataset is missing required column(s): {', '.join(missing)}",
                context={
                    "column": missing[0],
                    "missing": missing,
                    "columns": list(self._frame.columns),
                },
                location=location,
            )

    def _series(self, name: str) -> pd.Series:
        if name not in self._frame.columns:
            self.require([name])
        return self._frame[name]

    # ------------------------------------------------------------------
    # Transformations (all return new datasets)
    # ------------------------------------------------------------------

    def with_columns(self, columns: Mapping[str, Any]) -> Dataset:
        """Return a new Dataset with columns replaced in place or appended."""
        frame = self._frame.copy(deep=False)
        for name, values in columns.items():
            array = np.asarray(values)
            if array.shape != (self.n_rows,):
                raise SchemaError(
                    "Replacement column has the wrong number of rows.",
                    code="schema_row_count_mismatch",
                    context={"column": name, "expected": self.n_rows, "got": len(array)},
                    location=f"{_LOCATION_PREFIX}.Dataset.with_columns",
                )
            frame[name] = pd.Series(array, index=frame.index)
        return Dataset(frame, _validated=True)

    def drop(self, names: Iterable[str]) -> Dataset:
        names = list(names)
        if not names:
            return self
        self.require(names, location=f"{_LOCATION_PREFIX}.Dataset.drop")
        return Dataset(self._frame.drop(columns=names), _validated=True)

    def select(self, names: Iterable[str]) -> Dataset:
        names = list(names)
        self.require(names, location=f"{_LOCATION_PREFIX}.Dataset.select")
        return Dataset(self._frame.loc[:, names], _validated=True)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def equals(self, other: Dataset) -> bool:
        return isinstance(other, Dataset) and self._frame.equals(other._frame)

    def __contains__(self, name: object) -> bool:
        return name in self._frame.columns

    def __iter__(self) -> Iterator[str]:
        return iter(self.column_names)

    def __len__(self) -> int:
        return self.n_rows

    def __repr__(self) -> str:
        return f"Dataset(n_rows={self.n_rows}, columns={list(self.column_names)!r})"
