from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from tabular_recipes.data.dataset import ColumnKind, Dataset, infer_kind
from tabular_recipes.exceptions import ColumnMissingError, SchemaError


# ---------------------------------------------------------------------------
# Construction and validation
# ---------------------------------------------------------------------------


def test_from_frame_preserves_column_order_and_rows(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    assert ds.column_names == ("id", "x", "z", "color", "target")
    assert ds.n_rows == 6
    assert len(ds) == 6
    assert "color" in ds
    assert "missing" not in ds


def test_from_frame_resets_index() -> None:
    df = pd.DataFrame({"a": [1.0, 2.0]}, index=[10, 20])

    ds = Dataset.from_frame(df)

    assert list(ds.to_frame().index) == [0, 1]


def test_duplicate_column_names_are_rejected() -> None:
    df = pd.DataFrame([[1, 2], [3, 4]], columns=["a", "a"])

    with pytest.raises(SchemaError) as excinfo:
        Dataset.from_frame(df)

    assert excinfo.value.code == "schema_duplicate_columns"
    assert excinfo.value.context["duplicates"] == ["a"]


def test_non_string_column_names_are_rejected() -> None:
    with pytest.raises(SchemaError):
        Dataset.from_frame(pd.DataFrame([[1, 2]]))


def test_from_columns_rejects_mismatched_lengths() -> None:
    with pytest.raises(SchemaError) as excinfo:
        Dataset.from_columns({"a": [1, 2, 3], "b": [1, 2]})

    assert excinfo.value.code == "schema_row_count_mismatch"


def test_coerce_rejects_other_types() -> None:
    with pytest.raises(TypeError):
        Dataset.coerce([[1, 2]])  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Kind inference
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "values, expected",
    [
        ([1, 2, 3], ColumnKind.NUMERIC),
        ([1.5, np.nan, 2.0], ColumnKind.NUMERIC),
        (["a", "b", None], ColumnKind.CATEGORICAL),
        ([True, False, True], ColumnKind.CATEGORICAL),
        (pd.Categorical(["x", "y", "x"]), ColumnKind.CATEGORICAL),
    ],
)
def test_infer_kind(values, expected: ColumnKind) -> None:
    assert infer_kind(pd.Series(values)) is expected


def test_object_column_of_numbers_becomes_numeric_float() -> None:
    df = pd.DataFrame({"n": pd.Series([1, 2.5, None], dtype=object)})

    ds = Dataset.from_frame(df)

    assert ds.kind("n") is ColumnKind.NUMERIC
    assert ds.to_frame()["n"].dtype == np.float64
    assert np.isnan(ds.values("n")[2])


# ---------------------------------------------------------------------------
# Immutability and transformations
# ---------------------------------------------------------------------------


def test_to_frame_and_column_return_copies(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    frame = ds.to_frame()
    frame.loc[0, "x"] = 999.0
    column = ds.column("x")
    column.iloc[0] = -1.0

    assert ds.values("x")[0] == 1.0


def test_source_frame_mutation_does_not_leak(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    mixed_df.loc[0, "x"] = 999.0

    assert ds.values("x")[0] == 1.0


def test_with_columns_replaces_in_place_and_appends(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    updated = ds.with_columns({"x": np.zeros(6), "new": np.ones(6)})

    assert updated.column_names == ("id", "x", "z", "color", "target", "new")
    assert updated.values("x").tolist() == [0.0] * 6
    # Original untouched
    assert ds.values("x").tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    assert "new" not in ds


def test_with_columns_rejects_wrong_length(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    with pytest.raises(SchemaError):
        ds.with_columns({"x": np.zeros(3)})


def test_drop_and_select(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    assert ds.drop(["id", "color"]).column_names == ("x", "z", "target")
    assert ds.select(["target", "x"]).column_names == ("target", "x")
    assert ds.drop([]) is ds


def test_missing_columns_raise_column_missing_error(mixed_df: pd.DataFrame) -> None:
    ds = Dataset.from_frame(mixed_df)

    with pytest.raises(ColumnMissingError) as excinfo:
        ds.drop(["nope"])

    assert excinfo.value.column == "nope"

    with pytest.raises(ColumnMissingError):
        ds.column("nope")


def test_equals_compares_contents(mixed_df: pd.DataFrame) -> None:
    a = Dataset.from_frame(mixed_df)
    b = Dataset.from_frame(mixed_df.copy())

    assert a.equals(b)
    assert not a.equals(a.drop(["id"]))
