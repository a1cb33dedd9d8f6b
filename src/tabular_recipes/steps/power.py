from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional, Sequence

import numpy as np
from sklearn.preprocessing import PowerTransformer

from tabular_recipes.data.dataset import ColumnKind, Dataset
from tabular_recipes.exceptions import InsufficientDataError, PipelineError
from tabular_recipes.logging_config import get_logger
from tabular_recipes.selectors import Selector
from tabular_recipes.steps.base import check_kinds, coerce_selector

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__

# Lambdas closer to 0 (or 2) than this use the logarithmic branch.
_LAMBDA_EPS = np.spacing(1.0)


def yeo_johnson(values: np.ndarray, lmbda: float) -> np.ndarray:
    """Apply the Yeo-Johnson transform with parameter ``lmbda``.

    Defined for every real value; NaN stays NaN.
    """
    values = np.asarray(values, dtype="float64")
    out = np.full_like(values, np.nan)
    pos = values >= 0
    neg = values < 0

    with np.errstate(over="ignore", invalid="ignore"):
        if abs(lmbda) < _LAMBDA_EPS:
            out[pos] = np.log1p(values[pos])
        else:
            out[pos] = (np.power(values[pos] + 1.0, lmbda) - 1.0) / lmbda

        if abs(lmbda - 2.0) < _LAMBDA_EPS:
            out[neg] = -np.log1p(-values[neg])
        else:
            out[neg] = -(np.power(-values[neg] + 1.0, 2.0 - lmbda) - 1.0) / (2.0 - lmbda)

    return out


def estimate_lambda(values: np.ndarray, limits: tuple[float, float]) -> float:
    """Maximum-likelihood Yeo-Johnson lambda for ``values``, clipped to ``limits``."""
    observed = values[~np.isnan(values)].reshape(-1, 1)
    transformer = PowerTransformer(method="yeo-johnson", standardize=False)
    transformer.fit(observed)
    lmbda = float(transformer.lambdas_[0])
    return float(np.clip(lmbda, limits[0], limits[1]))


@dataclass(frozen=True)
class YeoJohnsonState:
    kind: ClassVar[str] = "yeo_johnson"

    columns: tuple[str, ...]
    # None marks a column that was left untransformed (too few distinct values).
    lambdas: tuple[Optional[float], ...]

    def apply(self, data: Dataset) -> Dataset:
        check_kinds(
            data, self.columns, ColumnKind.NUMERIC, step_kind=self.kind, allow_all_missing=True
        )
        updated = {
            name: yeo_johnson(data.values(name), lmbda)
            for name, lmbda in zip(self.columns, self.lambdas)
            if lmbda is not None
        }
        return data.with_columns(updated)

    def origins(self) -> Mapping[str, str]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "lambdas": dict(zip(self.columns, self.lambdas))}


@dataclass(frozen=True)
class YeoJohnson:
    """Yeo-Johnson power transform to reduce skew.

    One lambda per column is chosen by maximum likelihood on the training
    values and bounded to ``limits``. Columns with fewer than ``num_unique``
    distinct training values are left as they are.
    """

    kind: ClassVar[str] = "yeo_johnson"

    selector: Selector
    limits: tuple[float, float] = (-5.0, 5.0)
    num_unique: int = 5

    def __post_init__(self) -> None:
        coerce_selector(self)
        low, high = self.limits
        if not low < high:
            raise PipelineError(
                f"Yeo-Johnson limits must be increasing, got {self.limits!r}",
                code="pipeline_invalid_limits",
                context={"step_kind": self.kind},
                location=f"{_LOCATION_PREFIX}.YeoJohnson",
            )
        object.__setattr__(self, "limits", (float(low), float(high)))

    def fit(self, columns: Sequence[str], data: Dataset) -> YeoJohnsonState:
        check_kinds(data, columns, ColumnKind.NUMERIC, step_kind=self.kind)
        lambdas: list[Optional[float]] = []
        for name in columns:
            values = data.values(name)
            observed = values[~np.isnan(values)]
            if observed.size == 0:
                raise InsufficientDataError(
                    f"Cannot estimate a Yeo-Johnson lambda for '{name}': no non-missing values.",
                    code="insufficient_data_lambda",
                    context={"column": name, "n_observed": 0},
                    location=f"{_LOCATION_PREFIX}.YeoJohnson.fit",
                )
            if not np.isfinite(observed).all():
                raise InsufficientDataError(
                    f"Cannot estimate a Yeo-Johnson lambda for '{name}': "
                    "it contains infinite values.",
                    code="insufficient_data_non_finite",
                    context={"column": name, "n_infinite": int(np.isinf(observed).sum())},
                    location=f"{_LOCATION_PREFIX}.YeoJohnson.fit",
                )
            n_unique = int(np.unique(observed).size)
            if n_unique < self.num_unique:
                logger.warning(
                    "Column '%s' has %d distinct values (< %d); Yeo-Johnson leaves it unchanged.",
                    name,
                    n_unique,
                    self.num_unique,
                )
                lambdas.append(None)
                continue
            lambdas.append(estimate_lambda(values, self.limits))
        return YeoJohnsonState(columns=tuple(columns), lambdas=tuple(lambdas))

    def describe(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "selector": self.selector.describe(),
            "limits": list(self.limits),
            "num_unique": self.num_unique,
        }
