"""
Behavioural guarantees of the prepare/bake lifecycle.

These tests pin down the contract users rely on: baking the training cache
never refits, step order matters, learned statistics only ever come from
the training data, and encoding behaves the same way on every dataset.
"""

from __future__ import annotations

import copy

import numpy as np
import pandas as pd
import pytest

from tabular_recipes import (
    TRAINING,
    CategoricalEncode,
    Normalize,
    Recipe,
    YeoJohnson,
    all_nominal_predictors,
    all_numeric_predictors,
    bake,
    prepare,
)
from tabular_recipes.steps import normalization


def _salary_recipe(salary_df: pd.DataFrame, one_hot: bool = False) -> Recipe:
    return (
        Recipe.from_dataset(salary_df, outcome="bonus")
        .add_step(Normalize("salary"))
        .add_step(CategoricalEncode("dept", one_hot=one_hot))
    )


# ---------------------------------------------------------------------------
# Baking the training cache
# ---------------------------------------------------------------------------


def test_bake_training_is_cached_and_never_refits(
    salary_df: pd.DataFrame,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls = {"fit": 0}
    original_fit = normalization.Normalize.fit

    def counting_fit(self, columns, data):
        calls["fit"] += 1
        return original_fit(self, columns, data)

    monkeypatch.setattr(normalization.Normalize, "fit", counting_fit)

    prepared = prepare(_salary_recipe(salary_df), salary_df)
    assert calls["fit"] == 1

    first = bake(prepared, TRAINING)
    second = bake(prepared, TRAINING)
    bake(prepared, salary_df)

    assert calls["fit"] == 1
    assert first.equals(second)
    assert first.to_frame().equals(second.to_frame())


# ---------------------------------------------------------------------------
# Order sensitivity
# ---------------------------------------------------------------------------


def test_step_order_changes_indicator_values(salary_df: pd.DataFrame) -> None:
    base = Recipe.from_dataset(salary_df, outcome="bonus")
    normalize_then_encode = base.add_step(Normalize(all_numeric_predictors())).add_step(
        CategoricalEncode(all_nominal_predictors())
    )
    encode_then_normalize = base.add_step(CategoricalEncode(all_nominal_predictors())).add_step(
        Normalize(all_numeric_predictors())
    )

    first = bake(prepare(normalize_then_encode, salary_df), TRAINING)
    second = bake(prepare(encode_then_normalize, salary_df), TRAINING)

    assert set(np.unique(first.values("dept_B"))) == {0.0, 1.0}
    assert not set(np.unique(second.values("dept_B"))) <= {0.0, 1.0}
    np.testing.assert_allclose(first.values("salary"), second.values("salary"))


# ---------------------------------------------------------------------------
# No leakage from non-training data
# ---------------------------------------------------------------------------


def test_baking_out_of_range_data_leaves_learned_parameters_unchanged(
    skewed_df: pd.DataFrame,
) -> None:
    recipe = (
        Recipe.from_dataset(skewed_df, outcome="target")
        .add_step(YeoJohnson(all_numeric_predictors()))
        .add_step(Normalize(all_numeric_predictors()))
    )
    prepared = prepare(recipe, skewed_df)
    states_before = copy.deepcopy(prepared.states)
    cached_before = bake(prepared, TRAINING).to_frame()

    far_away = pd.DataFrame(
        {
            "income": np.linspace(1e6, 2e6, 20),
            "change": np.linspace(-500.0, -400.0, 20),
            "target": np.zeros(20),
        }
    )
    bake(prepared, far_away)

    assert prepared.states == states_before
    pd.testing.assert_frame_equal(bake(prepared, TRAINING).to_frame(), cached_before)


def test_learned_parameters_depend_only_on_training_rows(salary_df: pd.DataFrame) -> None:
    prepared = prepare(_salary_recipe(salary_df), salary_df)
    normalize_state = prepared.states[0]

    assert normalize_state.means == pytest.approx((salary_df["salary"].mean(),))
    assert normalize_state.sds == pytest.approx((salary_df["salary"].std(ddof=1),))


# ---------------------------------------------------------------------------
# Encoding cardinality and unseen levels
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("k", [2, 3, 5])
@pytest.mark.parametrize("one_hot", [False, True])
def test_encoding_cardinality(k: int, one_hot: bool) -> None:
    levels = [f"L{i}" for i in range(k)]
    train = pd.DataFrame({"g": levels * 2, "y": np.arange(2 * k, dtype=float)})
    recipe = Recipe.from_dataset(train, outcome="y").add_step(
        CategoricalEncode(all_nominal_predictors(), one_hot=one_hot)
    )

    baked = bake(prepare(recipe, train), TRAINING)

    indicators = [name for name in baked.column_names if name.startswith("g_")]
    assert len(indicators) == (k if one_hot else k - 1)
    assert "g" not in baked


def test_unseen_category_row_is_all_zero(salary_df: pd.DataFrame) -> None:
    prepared = prepare(_salary_recipe(salary_df, one_hot=True), salary_df)
    new = pd.DataFrame({"salary": [60000.0, 60000.0], "dept": ["C", "B"], "bonus": [0.0, 0.0]})

    baked = bake(prepared, new)

    assert baked.column("dept_A").tolist() == [0, 0]
    assert baked.column("dept_B").tolist() == [0, 1]


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_salary_and_department_scenario(salary_df: pd.DataFrame) -> None:
    baked = bake(prepare(_salary_recipe(salary_df), salary_df), TRAINING)

    salary = baked.values("salary")
    assert abs(salary.mean()) < 1e-9
    assert abs(salary.std(ddof=1) - 1.0) < 1e-9

    assert "dept" not in baked
    assert [name for name in baked.column_names if name.startswith("dept")] == ["dept_B"]
    expected = (salary_df["dept"] == "B").astype("int64").tolist()
    assert baked.column("dept_B").tolist() == expected
    assert sum(expected) == 3
