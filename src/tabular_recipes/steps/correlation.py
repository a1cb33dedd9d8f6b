from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Sequence

import numpy as np
import pandas as pd

from tabular_recipes.data.dataset import ColumnKind, Dataset
from tabular_recipes.exceptions import PipelineError
from tabular_recipes.logging_config import get_logger
from tabular_recipes.selectors import Selector
from tabular_recipes.steps.base import check_kinds, coerce_selector

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__


def find_correlated(corr: pd.DataFrame, threshold: float) -> list[str]:
    """Return the columns to drop so no remaining pair reaches ``threshold``.

    Repeatedly takes the pair with the largest absolute correlation among the
    remaining columns. While that value is at least ``threshold``, the column of
    the pair with the larger mean absolute correlation against the other
    remaining columns is dropped (the later column on a tie).

    ``corr`` must be a square correlation matrix labelled by column name.
    Columns are returned in the order they were dropped.
    """
    abs_corr = corr.abs().to_numpy(dtype="float64", copy=True)
    np.fill_diagonal(abs_corr, np.nan)
    names = list(corr.columns)
    remaining = list(range(len(names)))
    dropped: list[str] = []

    while len(remaining) > 1:
        sub = abs_corr[np.ix_(remaining, remaining)]
        rows, cols = np.triu_indices(len(remaining), k=1)
        pair_values = sub[rows, cols]
        if np.all(np.isnan(pair_values)):
            break
        best = int(np.nanargmax(pair_values))
        if not pair_values[best] >= threshold:
            break

        i, j = rows[best], cols[best]
        mean_i = float(np.nanmean(sub[i]))
        mean_j = float(np.nanmean(sub[j]))
        victim = i if mean_i > mean_j else j

        logger.debug(
            "Correlated pair (%s, %s) |r|=%.4f; mean |r| %.4f vs %.4f; dropping %s",
            names[remaining[i]],
            names[remaining[j]],
            pair_values[best],
            mean_i,
            mean_j,
            names[remaining[victim]],
        )
        dropped.append(names[remaining[victim]])
        del remaining[victim]

    return dropped


@dataclass(frozen=True)
class CorrelationFilterState:
    kind: ClassVar[str] = "correlation_filter"

    # Columns the filter looked at; all of them must be present at apply time.
    columns: tuple[str, ...]
    removed: tuple[str, ...]

    def apply(self, data: Dataset) -> Dataset:
        data.require(self.columns, location=f"{_LOCATION_PREFIX}.CorrelationFilterState.apply")
        return data.drop(self.removed)

    def origins(self) -> Mapping[str, str]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "considered": list(self.columns), "removed": list(self.removed)}


@dataclass(frozen=True)
class CorrelationFilter:
    """Drop numeric columns that are highly correlated with another column.

    The correlation matrix is computed once on the training data (Pearson,
    pairwise-complete observations). Applying the fitted filter only drops
    the learned columns; it never looks at correlations in the new data.
    """

    kind: ClassVar[str] = "correlation_filter"

    selector: Selector
    threshold: float = 0.9

    def __post_init__(self) -> None:
        coerce_selector(self)
        if not 0.0 < self.threshold <= 1.0:
            raise PipelineError(
                f"Correlation threshold must be in (0, 1], got {self.threshold!r}",
                code="pipeline_invalid_threshold",
                context={"step_kind": self.kind},
                location=f"{_LOCATION_PREFIX}.CorrelationFilter",
            )

    def fit(self, columns: Sequence[str], data: Dataset) -> CorrelationFilterState:
        check_kinds(data, columns, ColumnKind.NUMERIC, step_kind=self.kind)
        columns = tuple(columns)
        if len(columns) < 2:
            return CorrelationFilterState(columns=columns, removed=())

        frame = pd.DataFrame({name: data.values(name) for name in columns})
        corr = frame.corr(method="pearson")

        # Columns with no defined correlation (e.g. constant) cannot take part.
        undefined = [name for name in columns if corr[name].drop(name).isna().all()]
        if undefined:
            logger.warning(
                "Correlation is undefined for %d column(s) %s; they are excluded from the filter.",
                len(undefined),
                undefined,
            )
            keep = [name for name in columns if name not in undefined]
            corr = corr.loc[keep, keep]

        removed = find_correlated(corr, self.threshold) if len(corr.columns) > 1 else []
        return CorrelationFilterState(columns=columns, removed=tuple(removed))

    def describe(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "selector": self.selector.describe(),
            "threshold": self.threshold,
        }
