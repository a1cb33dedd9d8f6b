"""
Recipes: declarative preprocessing plans with a fit-once, apply-many lifecycle.

    recipe = (
        Recipe.from_dataset(train, outcome="price")
        .add_step(YeoJohnson(all_numeric_predictors()))
        .add_step(Normalize(all_numeric_predictors()))
        .add_step(CategoricalEncode(all_nominal_predictors()))
    )
    prepared = prepare(recipe, train)

    train_baked = bake(prepared, TRAINING)   # cached, nothing is recomputed
    test_baked = bake(prepared, test)        # frozen training statistics

A Recipe never touches data beyond reading the schema it was built from.
``prepare`` fits each step left to right, feeding every step the output of
the previous one, and returns an immutable PreparedRecipe. ``bake`` only
ever runs the fitted states; it never fits again and never mutates the
PreparedRecipe, so one PreparedRecipe can be baked from several threads.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Literal, Union

import pandas as pd

from tabular_recipes.data.catalog import ColumnCatalog
from tabular_recipes.data.dataset import Dataset
from tabular_recipes.exceptions import AppError, PipelineError, SchemaError, SelectorEmptyResultWarning
from tabular_recipes.logging_config import get_logger
from tabular_recipes.steps import STEP_TYPES, Step, StepState

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__


class BakeSource(Enum):
    """Tagged alternative to a dataset argument of ``bake``."""

    TRAINING = "training"


#: Pass to ``bake`` to get the cached, already transformed training data.
TRAINING = BakeSource.TRAINING

BakeInput = Union[Dataset, pd.DataFrame, Literal[BakeSource.TRAINING]]


@dataclass(frozen=True)
class Recipe:
    """An ordered, unfitted sequence of steps bound to a column catalog."""

    catalog: ColumnCatalog
    steps: tuple[Step, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        for step in self.steps:
            _check_step(step)

    @classmethod
    def from_dataset(
        cls,
        data: Dataset | pd.DataFrame,
        outcome: str,
        *,
        other: Iterable[str] = (),
        steps: Iterable[Step] = (),
    ) -> Recipe:
        """Build a recipe whose roles come from ``data``'s schema.

        ``outcome`` is the outcome column, columns in ``other`` get the OTHER
        role (identifiers and the like), everything else is a predictor.
        """
        catalog = ColumnCatalog.build(data, outcome, other=other)
        return cls(catalog=catalog, steps=tuple(steps))

    def add_step(self, step: Step) -> Recipe:
        """Return a new Recipe with ``step`` appended; this recipe is unchanged."""
        _check_step(step)
        return replace(self, steps=self.steps + (step,))

    def prepare(self, training: Dataset | pd.DataFrame) -> PreparedRecipe:
        return prepare(self, training)

    def describe(self) -> list[dict[str, Any]]:
        return [step.describe() for step in self.steps]

    def __len__(self) -> int:
        return len(self.steps)


@dataclass(frozen=True, eq=False)
class PreparedRecipe:
    """Immutable result of fitting a Recipe on one training dataset.

    ``states`` holds one fitted state per recipe step, in recipe order.
    ``catalog`` is the catalog of the fully transformed training data.
    """

    recipe: Recipe
    states: tuple[StepState, ...]
    catalog: ColumnCatalog
    _baked_training: Dataset = field(repr=False)

    def bake(self, new_data: BakeInput) -> Dataset:
        return bake(self, new_data)

    def to_dict(self) -> list[dict[str, Any]]:
        """Learned parameters of every step, for reporting."""
        return [
            {"step_index": index, "columns": list(state.columns), **state.to_dict()}
            for index, state in enumerate(self.states)
        ]

    def __len__(self) -> int:
        return len(self.states)


def _check_step(step: Any) -> None:
    if not isinstance(step, tuple(STEP_TYPES.values())):
        raise PipelineError(
            f"Unsupported step type: {type(step).__name__}",
            code="pipeline_unknown_step",
            context={"known_kinds": sorted(STEP_TYPES)},
            location=f"{_LOCATION_PREFIX}.Recipe",
        )


def prepare(recipe: Recipe, training: Dataset | pd.DataFrame) -> PreparedRecipe:
    """Fit every step of ``recipe`` on ``training``, left to right.

    Each step's selector is resolved against the catalog of the data as it
    stands when the step is reached, so later steps see columns created or
    removed by earlier ones. The first failing step aborts the whole call;
    the raised error carries ``step_index`` and ``step_kind`` in its context.
    """
    data = Dataset.coerce(training)

    missing = [name for name in recipe.catalog.names if name not in data]
    if missing:
        raise SchemaError(
            "Training data is missing columns the recipe was built with.",
            code="schema_training_columns_missing",
            context={"column": missing[0], "missing": missing},
            location=f"{_LOCATION_PREFIX}.prepare",
        )
    extra = [name for name in data.column_names if name not in recipe.catalog]
    if extra:
        logger.debug("Ignoring training columns not in the recipe catalog: %s", extra)
        data = data.select(recipe.catalog.names)

    catalog = recipe.catalog.derive(data)
    states: list[StepState] = []

    logger.info(
        "Preparing recipe with %d step(s) on %d rows x %d columns",
        len(recipe.steps),
        data.n_rows,
        len(data.column_names),
    )

    for index, step in enumerate(recipe.steps):
        try:
            columns = step.selector.resolve(catalog)
            if not columns:
                message = (
                    f"Step {index} ({step.kind}) selector {step.selector.describe()} "
                    "matched no columns; the step does nothing."
                )
                logger.warning(message)
                warnings.warn(message, SelectorEmptyResultWarning, stacklevel=2)
            state = step.fit(columns, data)
            data = state.apply(data)
        except AppError as exc:
            exc.add_context(step_index=index, step_kind=step.kind)
            logger.error("Preparing step %d (%s) failed: %s", index, step.kind, exc.message)
            raise
        except Exception as exc:
            logger.exception("Preparing step %d (%s) failed unexpectedly", index, step.kind)
            raise PipelineError.from_exception(
                exc,
                message=f"Step {index} ({step.kind}) failed while fitting: {exc}",
                code="pipeline_step_failed",
                context={"step_index": index, "step_kind": step.kind},
                location=f"{_LOCATION_PREFIX}.prepare",
            ) from exc

        catalog = catalog.derive(data, state.origins())
        states.append(state)
        logger.info("Prepared step %d (%s) on columns %s", index, step.kind, list(columns))
        logger.debug("Step %d learned %s", index, state.to_dict())

    return PreparedRecipe(
        recipe=recipe,
        states=tuple(states),
        catalog=catalog,
        _baked_training=data,
    )


def bake(prepared: PreparedRecipe, new_data: BakeInput) -> Dataset:
    """Apply a prepared recipe.

    ``bake(prepared, TRAINING)`` returns the cached transformed training data
    without running any step. Any other dataset is passed through every
    fitted state in order using only what was learned in ``prepare``.

    Columns of ``new_data`` that are not in the recipe's catalog (identifiers
    added after the recipe was built, say) are carried through unchanged.
    ``prepare`` drops such columns from the training data, so baking the
    training frame with extra columns returns those extras on top of what
    ``bake(prepared, TRAINING)`` returns.
    """
    if new_data is BakeSource.TRAINING:
        return prepared._baked_training
    if new_data is None:
        raise TypeError(
            "bake() needs a dataset; pass tabular_recipes.TRAINING for the "
            "cached training data."
        )

    data = Dataset.coerce(new_data)
    logger.debug(
        "Baking %d rows through %d fitted step(s)", data.n_rows, len(prepared.states)
    )
    for index, state in enumerate(prepared.states):
        try:
            data = state.apply(data)
        except AppError as exc:
            exc.add_context(step_index=index, step_kind=state.kind)
            logger.error("Baking step %d (%s) failed: %s", index, state.kind, exc.message)
            raise
        except Exception as exc:
            logger.exception("Baking step %d (%s) failed unexpectedly", index, state.kind)
            raise PipelineError.from_exception(
                exc,
                message=f"Step {index} ({state.kind}) failed while baking: {exc}",
                code="pipeline_step_failed",
                context={"step_index": index, "step_kind": state.kind},
                location=f"{_LOCATION_PREFIX}.bake",
            ) from exc
    return data
