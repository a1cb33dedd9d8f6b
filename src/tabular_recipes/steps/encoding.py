from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Hashable, Mapping, Sequence

import numpy as np
import pandas as pd

from tabular_recipes.data.dataset import ColumnKind, Dataset
from tabular_recipes.exceptions import InsufficientDataError, SchemaError
from tabular_recipes.logging_config import get_logger
from tabular_recipes.selectors import Selector
from tabular_recipes.steps.base import check_kinds, coerce_selector

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__


def indicator_name(column: str, level: Hashable) -> str:
    return f"{column}_{level}"


def observed_levels(series: pd.Series) -> tuple[Hashable, ...]:
    """Distinct non-missing values in first-seen order."""
    return tuple(pd.unique(series.dropna()))


@dataclass(frozen=True)
class CategoricalEncodeState:
    kind: ClassVar[str] = "categorical_encode"

    columns: tuple[str, ...]
    # Per column: every training level in first-seen order.
    levels: tuple[tuple[Hashable, ...], ...]
    one_hot: bool = False

    def encoded_levels(self, column: str) -> tuple[Hashable, ...]:
        """Levels that get an indicator column (all but the first unless one-hot)."""
        levels = self.levels[self.columns.index(column)]
        return levels if self.one_hot else levels[1:]

    def indicator_columns(self) -> dict[str, tuple[str, ...]]:
        return {
            column: tuple(indicator_name(column, level) for level in self.encoded_levels(column))
            for column in self.columns
        }

    def apply(self, data: Dataset) -> Dataset:
        data.require(self.columns, location=f"{_LOCATION_PREFIX}.CategoricalEncodeState.apply")

        new_columns: dict[str, np.ndarray] = {}
        for column in self.columns:
            series = data.column(column)
            missing = series.isna().to_numpy()
            for level in self.encoded_levels(column):
                name = indicator_name(column, level)
                if (name in data and name not in self.columns) or name in new_columns:
                    raise SchemaError(
                        f"Indicator column '{name}' would overwrite an existing column.",
                        code="schema_indicator_name_collision",
                        context={"column": column, "indicator": name},
                        location=f"{_LOCATION_PREFIX}.CategoricalEncodeState.apply",
                    )
                indicator = (series == level).to_numpy(dtype="int64", na_value=0)
                if missing.any():
                    indicator = indicator.astype("float64")
                    indicator[missing] = np.nan
                new_columns[name] = indicator

        return data.drop(self.columns).with_columns(new_columns)

    def origins(self) -> Mapping[str, str]:
        return {
            indicator: column
            for column, indicators in self.indicator_columns().items()
            for indicator in indicators
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "one_hot": self.one_hot,
            "levels": {column: list(levels) for column, levels in zip(self.columns, self.levels)},
            "indicators": {k: list(v) for k, v in self.indicator_columns().items()},
        }


@dataclass(frozen=True)
class CategoricalEncode:
    """Replace categorical columns with 0/1 indicator columns.

    With ``one_hot=False`` (dummy encoding) the first level seen in the
    training data gets no indicator, so k levels give k-1 columns. With
    ``one_hot=True`` every level gets one. Values not seen during training
    produce all-zero indicators; missing values produce missing indicators.
    Indicator columns are named ``<column>_<level>`` and appended at the end.
    """

    kind: ClassVar[str] = "categorical_encode"

    selector: Selector
    one_hot: bool = False

    def __post_init__(self) -> None:
        coerce_selector(self)

    def fit(self, columns: Sequence[str], data: Dataset) -> CategoricalEncodeState:
        check_kinds(data, columns, ColumnKind.CATEGORICAL, step_kind=self.kind)
        levels = []
        for name in columns:
            column_levels = observed_levels(data.column(name))
            if not column_levels:
                raise InsufficientDataError(
                    f"Column '{name}' has no non-missing values to encode.",
                    code="insufficient_data_levels",
                    context={"column": name},
                    location=f"{_LOCATION_PREFIX}.CategoricalEncode.fit",
                )
            if len(column_levels) == 1 and not self.one_hot:
                logger.warning(
                    "Column '%s' has a single level %r; dummy encoding produces no columns.",
                    name,
                    column_levels[0],
                )
            levels.append(column_levels)
        return CategoricalEncodeState(
            columns=tuple(columns), levels=tuple(levels), one_hot=self.one_hot
        )

    def describe(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "selector": self.selector.describe(),
            "one_hot": self.one_hot,
        }
