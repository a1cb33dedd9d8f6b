"""
Centering and scaling steps.

Each step learns per-column statistics from the training data only; the
fitted state then applies exactly those statistics to any dataset.

- Center:    value - mean
- Scale:     value / sd
- Normalize: (value - mean) / sd

Standard deviations are sample standard deviations (ddof=1). Missing values
are ignored when learning and stay missing when applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Sequence

from tabular_recipes.data.dataset import ColumnKind, Dataset
from tabular_recipes.selectors import Selector
from tabular_recipes.steps.base import check_kinds, coerce_selector, column_mean, column_sd


def _apply_affine(
    data: Dataset,
    columns: tuple[str, ...],
    shifts: tuple[float, ...] | None,
    divisors: tuple[float, ...] | None,
    *,
    step_kind: str,
) -> Dataset:
    check_kinds(data, columns, ColumnKind.NUMERIC, step_kind=step_kind, allow_all_missing=True)
    updated = {}
    for i, name in enumerate(columns):
        values = data.values(name)
        if shifts is not None:
            values = values - shifts[i]
        if divisors is not None:
            values = values / divisors[i]
        updated[name] = values
    return data.with_columns(updated)


# ---------------------------------------------------------------------------
# Center
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CenterState:
    kind: ClassVar[str] = "center"

    columns: tuple[str, ...]
    means: tuple[float, ...]

    def apply(self, data: Dataset) -> Dataset:
        return _apply_affine(data, self.columns, self.means, None, step_kind=self.kind)

    def origins(self) -> Mapping[str, str]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "means": dict(zip(self.columns, self.means))}


@dataclass(frozen=True)
class Center:
    """Subtract the training mean from each selected numeric column."""

    kind: ClassVar[str] = "center"

    selector: Selector

    def __post_init__(self) -> None:
        coerce_selector(self)

    def fit(self, columns: Sequence[str], data: Dataset) -> CenterState:
        check_kinds(data, columns, ColumnKind.NUMERIC, step_kind=self.kind)
        means = tuple(
            column_mean(data.values(name), column=name, step_kind=self.kind) for name in columns
        )
        return CenterState(columns=tuple(columns), means=means)

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "selector": self.selector.describe()}


# ---------------------------------------------------------------------------
# Scale
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScaleState:
    kind: ClassVar[str] = "scale"

    columns: tuple[str, ...]
    sds: tuple[float, ...]

    def apply(self, data: Dataset) -> Dataset:
        return _apply_affine(data, self.columns, None, self.sds, step_kind=self.kind)

    def origins(self) -> Mapping[str, str]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "sds": dict(zip(self.columns, self.sds))}


@dataclass(frozen=True)
class Scale:
    """Divide each selected numeric column by its training standard deviation."""

    kind: ClassVar[str] = "scale"

    selector: Selector

    def __post_init__(self) -> None:
        coerce_selector(self)

    def fit(self, columns: Sequence[str], data: Dataset) -> ScaleState:
        check_kinds(data, columns, ColumnKind.NUMERIC, step_kind=self.kind)
        sds = tuple(
            column_sd(data.values(name), column=name, step_kind=self.kind) for name in columns
        )
        return ScaleState(columns=tuple(columns), sds=sds)

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "selector": self.selector.describe()}


# ---------------------------------------------------------------------------
# Normalize
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NormalizeState:
    kind: ClassVar[str] = "normalize"

    columns: tuple[str, ...]
    means: tuple[float, ...]
    sds: tuple[float, ...]

    def apply(self, data: Dataset) -> Dataset:
        return _apply_affine(data, self.columns, self.means, self.sds, step_kind=self.kind)

    def origins(self) -> Mapping[str, str]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "means": dict(zip(self.columns, self.means)),
            "sds": dict(zip(self.columns, self.sds)),
        }


@dataclass(frozen=True)
class Normalize:
    """Center and scale in one step: (value - mean) / sd."""

    kind: ClassVar[str] = "normalize"

    selector: Selector

    def __post_init__(self) -> None:
        coerce_selector(self)

    def fit(self, columns: Sequence[str], data: Dataset) -> NormalizeState:
        check_kinds(data, columns, ColumnKind.NUMERIC, step_kind=self.kind)
        means = []
        sds = []
        for name in columns:
            values = data.values(name)
            means.append(column_mean(values, column=name, step_kind=self.kind))
            sds.append(column_sd(values, column=name, step_kind=self.kind))
        return NormalizeState(columns=tuple(columns), means=tuple(means), sds=tuple(sds))

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "selector": self.selector.describe()}
