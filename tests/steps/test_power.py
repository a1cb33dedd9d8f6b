from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest
from sklearn.preprocessing import PowerTransformer

from tabular_recipes.data.dataset import Dataset
from tabular_recipes.exceptions import InsufficientDataError, PipelineError, SchemaError
from tabular_recipes.steps import YeoJohnson, yeo_johnson
from tabular_recipes.steps.power import estimate_lambda


# ---------------------------------------------------------------------------
# The transform itself
# ---------------------------------------------------------------------------


def test_lambda_one_is_identity() -> None:
    values = np.array([-3.0, -0.5, 0.0, 0.5, 3.0])

    np.testing.assert_allclose(yeo_johnson(values, 1.0), values)


def test_lambda_zero_is_log1p_for_non_negative_values() -> None:
    values = np.array([0.0, 1.0, 9.0])

    np.testing.assert_allclose(yeo_johnson(values, 0.0), np.log1p(values))


def test_lambda_two_is_negative_log1p_for_negative_values() -> None:
    values = np.array([-1.0, -4.0])

    np.testing.assert_allclose(yeo_johnson(values, 2.0), -np.log1p(-values))


def test_transform_keeps_missing_values_missing() -> None:
    out = yeo_johnson(np.array([1.0, np.nan, -1.0]), 0.5)

    assert np.isnan(out[1])
    assert np.isfinite(out[[0, 2]]).all()


def test_matches_sklearn_for_a_fixed_lambda() -> None:
    values = np.array([-2.0, -1.0, 0.0, 1.5, 4.0, 10.0])
    transformer = PowerTransformer(method="yeo-johnson", standardize=False)
    transformer.fit(values.reshape(-1, 1))

    expected = transformer.transform(values.reshape(-1, 1)).ravel()

    np.testing.assert_allclose(yeo_johnson(values, transformer.lambdas_[0]), expected)


# ---------------------------------------------------------------------------
# Fitting
# ---------------------------------------------------------------------------


def test_fit_reduces_skew(skewed_df: pd.DataFrame) -> None:
    data = Dataset.from_frame(skewed_df)

    state = YeoJohnson("income").fit(["income"], data)
    out = state.apply(data)

    assert state.lambdas[0] is not None
    assert state.lambdas[0] < 1.0
    assert abs(out.column("income").skew()) < abs(skewed_df["income"].skew())


def test_fitted_lambda_is_the_clipped_mle(skewed_df: pd.DataFrame) -> None:
    values = skewed_df["income"].to_numpy()
    transformer = PowerTransformer(method="yeo-johnson", standardize=False)
    transformer.fit(values.reshape(-1, 1))
    mle = float(transformer.lambdas_[0])

    assert estimate_lambda(values, (-5.0, 5.0)) == pytest.approx(mle)
    assert estimate_lambda(values, (2.0, 3.0)) == 2.0


def test_fit_ignores_missing_values(skewed_df: pd.DataFrame) -> None:
    with_gaps = skewed_df.copy()
    with_gaps.loc[[0, 5, 9], "income"] = np.nan
    data = Dataset.from_frame(with_gaps)

    out = YeoJohnson("income").fit(["income"], data).apply(data)

    assert np.isnan(out.values("income")[[0, 5, 9]]).all()
    assert np.isfinite(np.delete(out.values("income"), [0, 5, 9])).all()


def test_handles_negative_values(skewed_df: pd.DataFrame) -> None:
    data = Dataset.from_frame(skewed_df)

    out = YeoJohnson("change").fit(["change"], data).apply(data)

    assert np.isfinite(out.values("change")).all()


def test_few_distinct_values_are_left_unchanged(
    caplog: pytest.LogCaptureFixture,
    propagate_package_logs: None,
) -> None:
    data = Dataset.from_frame(pd.DataFrame({"flag": [0.0, 1.0, 1.0, 0.0, 2.0, 1.0]}))

    with caplog.at_level(logging.WARNING, logger="tabular_recipes"):
        state = YeoJohnson("flag").fit(["flag"], data)

    assert state.lambdas == (None,)
    assert state.apply(data).equals(data)
    assert any("distinct values" in record.getMessage() for record in caplog.records)


def test_all_missing_column_is_insufficient() -> None:
    data = Dataset.from_frame(pd.DataFrame({"a": [np.nan, np.nan, np.nan]}))

    with pytest.raises(InsufficientDataError):
        YeoJohnson("a").fit(["a"], data)


def test_infinite_training_values_are_insufficient() -> None:
    data = Dataset.from_frame(pd.DataFrame({"x": [1.0, 2.0, 3.0, 4.0, 5.0, np.inf]}))

    with pytest.raises(InsufficientDataError) as excinfo:
        YeoJohnson("x").fit(["x"], data)

    assert excinfo.value.code == "insufficient_data_non_finite"
    assert excinfo.value.column == "x"


def test_apply_to_a_record_with_only_missing_values(skewed_df: pd.DataFrame) -> None:
    state = YeoJohnson("income").fit(["income"], Dataset.from_frame(skewed_df))
    record = Dataset.from_frame(pd.DataFrame({"income": [None]}))

    out = state.apply(record)

    assert np.isnan(out.values("income")).all()


def test_categorical_column_is_rejected() -> None:
    data = Dataset.from_frame(pd.DataFrame({"a": ["x", "y", "z"]}))

    with pytest.raises(SchemaError):
        YeoJohnson("a").fit(["a"], data)


def test_limits_must_be_increasing() -> None:
    with pytest.raises(PipelineError):
        YeoJohnson("a", limits=(1.0, -1.0))


def test_describe_lists_parameters() -> None:
    described = YeoJohnson("a", limits=(-2, 2), num_unique=3).describe()

    assert described["kind"] == "yeo_johnson"
    assert described["limits"] == [-2.0, 2.0]
    assert described["num_unique"] == 3
