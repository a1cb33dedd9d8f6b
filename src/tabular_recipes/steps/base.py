from __future__ import annotations

from typing import Any, ClassVar, Mapping, Protocol, Sequence

import numpy as np

from tabular_recipes.data.dataset import ColumnKind, Dataset
from tabular_recipes.exceptions import InsufficientDataError, PipelineError, SchemaError
from tabular_recipes.selectors import Selector, as_selector

_LOCATION_PREFIX = __name__


class FittedStepState(Protocol):
    """What every fitted step exposes to ``prepare`` and ``bake``."""

    kind: ClassVar[str]
    columns: tuple[str, ...]

    def apply(self, data: Dataset) -> Dataset: ...

    def origins(self) -> Mapping[str, str]: ...

    def to_dict(self) -> dict[str, Any]: ...


class StepSpec(Protocol):
    """What every unfitted step exposes to a Recipe."""

    kind: ClassVar[str]
    selector: Selector

    def fit(self, columns: Sequence[str], data: Dataset) -> FittedStepState: ...

    def describe(self) -> dict[str, Any]: ...


def coerce_selector(step: Any) -> None:
    """Normalize ``step.selector`` in a frozen dataclass's ``__post_init__``."""
    try:
        selector = as_selector(step.selector)
    except TypeError as exc:
        raise PipelineError(
            f"Invalid column selection for {step.kind} step: {step.selector!r}",
            code="pipeline_invalid_selector",
            cause=exc,
            context={"step_kind": step.kind},
            location=f"{_LOCATION_PREFIX}.coerce_selector",
        ) from exc
    object.__setattr__(step, "selector", selector)


def check_kinds(
    data: Dataset,
    columns: Sequence[str],
    expected: ColumnKind,
    *,
    step_kind: str,
    allow_all_missing: bool = False,
) -> None:
    """Raise SchemaError if any selected column is not of the ``expected`` kind.

    With ``allow_all_missing`` a column holding only missing values passes
    whatever its dtype; fitted states use this when applied to new records.
    """
    data.require(columns, location=f"{_LOCATION_PREFIX}.check_kinds")
    for name in columns:
        actual = data.kind(name)
        if actual is not expected:
            if allow_all_missing and data.column(name).isna().all():
                continue
            raise SchemaError(
                f"The {step_kind} step needs {expected.value} columns, "
                f"but '{name}' is {actual.value}.",
                code="schema_wrong_column_kind",
                context={"column": name, "expected": expected.value, "actual": actual.value},
                location=f"{_LOCATION_PREFIX}.check_kinds",
            )


def column_mean(values: np.ndarray, *, column: str, step_kind: str) -> float:
    observed = values[~np.isnan(values)]
    if observed.size == 0:
        raise InsufficientDataError(
            f"The {step_kind} step cannot compute the mean of '{column}': "
            "it has no non-missing values.",
            code="insufficient_data_mean",
            context={"column": column, "n_observed": 0},
            location=f"{_LOCATION_PREFIX}.column_mean",
        )
    return float(observed.mean())


def column_sd(values: np.ndarray, *, column: str, step_kind: str) -> float:
    """Sample standard deviation (ddof=1); must be defined and non-zero."""
    observed = values[~np.isnan(values)]
    if observed.size < 2:
        raise InsufficientDataError(
            f"Cannot compute the standard deviation of '{column}': "
            f"{observed.size} non-missing value(s), need at least 2.",
            code="insufficient_data_sd",
            context={"column": column, "n_observed": int(observed.size)},
            location=f"{_LOCATION_PREFIX}.column_sd",
        )
    sd = float(observed.std(ddof=1))
    if not np.isfinite(sd) or sd == 0.0:
        raise InsufficientDataError(
            f"Column '{column}' has zero variance in the training data; "
            f"the {step_kind} step would divide by zero.",
            code="insufficient_data_zero_variance",
            context={"column": column, "sd": sd},
            location=f"{_LOCATION_PREFIX}.column_sd",
        )
    return sd
