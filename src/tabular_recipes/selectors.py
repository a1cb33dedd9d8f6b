"""
Column selectors: predicates over a ColumnCatalog that resolve to column names.

Selectors are small immutable values. They are resolved lazily, every time a
step is fitted, against the catalog of the data the step is being fitted on:

    from tabular_recipes.selectors import all_numeric, all_outcomes

    numeric_predictors = all_numeric() - all_outcomes()
    numeric_predictors.resolve(catalog)   # -> ("age", "salary")

Resolution always yields names in catalog column order. A selector matching
no columns resolves to an empty tuple; it is not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Union

from tabular_recipes.data.catalog import ColumnCatalog, ColumnRole
from tabular_recipes.data.dataset import ColumnKind
from tabular_recipes.exceptions import SchemaError

_LOCATION_PREFIX = __name__


class _Composable:
    """Operator sugar shared by every selector type."""

    def __sub__(self, other: Selector) -> Selector:
        return Difference(self, other)  # type: ignore[arg-type]

    def __or__(self, other: Selector) -> Selector:
        return Combined(self, other)  # type: ignore[arg-type]

    def __and__(self, other: Selector) -> Selector:
        return Intersection(self, other)  # type: ignore[arg-type]


@dataclass(frozen=True)
class ByRole(_Composable):
    role: ColumnRole

    def resolve(self, catalog: ColumnCatalog) -> tuple[str, ...]:
        return catalog.names_where(role=self.role)

    def describe(self) -> str:
        return f"all_{self.role.value}s()"


@dataclass(frozen=True)
class ByKind(_Composable):
    kind: ColumnKind

    def resolve(self, catalog: ColumnCatalog) -> tuple[str, ...]:
        return catalog.names_where(kind=self.kind)

    def describe(self) -> str:
        return "all_numeric()" if self.kind is ColumnKind.NUMERIC else "all_nominal()"


@dataclass(frozen=True)
class ByName(_Composable):
    names: tuple[str, ...]

    def resolve(self, catalog: ColumnCatalog) -> tuple[str, ...]:
        unknown = [name for name in self.names if name not in catalog]
        if unknown:
            raise SchemaError(
                f"Selected column(s) not present in the data: {', '.join(unknown)}",
                code="schema_unknown_selected_columns",
                context={"column": unknown[0], "missing": unknown},
                location=f"{_LOCATION_PREFIX}.ByName.resolve",
            )
        wanted = set(self.names)
        return tuple(name for name in catalog.names if name in wanted)

    def describe(self) -> str:
        return f"by_name({', '.join(repr(n) for n in self.names)})"


@dataclass(frozen=True)
class Difference(_Composable):
    left: Selector
    right: Selector

    def resolve(self, catalog: ColumnCatalog) -> tuple[str, ...]:
        excluded = set(self.right.resolve(catalog))
        return tuple(name for name in self.left.resolve(catalog) if name not in excluded)

    def describe(self) -> str:
        return f"({self.left.describe()} - {self.right.describe()})"


@dataclass(frozen=True)
class Combined(_Composable):
    left: Selector
    right: Selector

    def resolve(self, catalog: ColumnCatalog) -> tuple[str, ...]:
        selected = set(self.left.resolve(catalog)) | set(self.right.resolve(catalog))
        return tuple(name for name in catalog.names if name in selected)

    def describe(self) -> str:
        return f"({self.left.describe()} | {self.right.describe()})"


@dataclass(frozen=True)
class Intersection(_Composable):
    left: Selector
    right: Selector

    def resolve(self, catalog: ColumnCatalog) -> tuple[str, ...]:
        selected = set(self.left.resolve(catalog)) & set(self.right.resolve(catalog))
        return tuple(name for name in catalog.names if name in selected)

    def describe(self) -> str:
        return f"({self.left.describe()} & {self.right.describe()})"


Selector = Union[ByRole, ByKind, ByName, Difference, Combined, Intersection]

SelectorLike = Union[Selector, str, Sequence[str]]


# ---------------------------------------------------------------------------
# Public constructors
# ---------------------------------------------------------------------------


def all_predictors() -> Selector:
    return ByRole(ColumnRole.PREDICTOR)


def all_outcomes() -> Selector:
    return ByRole(ColumnRole.OUTCOME)


def all_numeric() -> Selector:
    return ByKind(ColumnKind.NUMERIC)


def all_nominal() -> Selector:
    return ByKind(ColumnKind.CATEGORICAL)


def all_numeric_predictors() -> Selector:
    return Intersection(all_numeric(), all_predictors())


def all_nominal_predictors() -> Selector:
    return Intersection(all_nominal(), all_predictors())


def by_name(*names: str) -> Selector:
    if not names:
        raise SchemaError(
            "by_name() requires at least one column name.",
            code="schema_empty_name_selector",
            location=f"{_LOCATION_PREFIX}.by_name",
        )
    return ByName(tuple(names))


def minus(left: Selector, right: Selector) -> Selector:
    """Columns selected by ``left`` but not by ``right``."""
    return Difference(left, right)


def union(*selectors: Selector) -> Selector:
    result = selectors[0]
    for selector in selectors[1:]:
        result = Combined(result, selector)
    return result


def intersection(*selectors: Selector) -> Selector:
    result = selectors[0]
    for selector in selectors[1:]:
        result = Intersection(result, selector)
    return result


def resolve(selector: Selector, catalog: ColumnCatalog) -> tuple[str, ...]:
    return selector.resolve(catalog)


# Named selectors available from configuration files.
NAMED_SELECTORS = {
    "all_predictors": all_predictors,
    "all_outcomes": all_outcomes,
    "all_numeric": all_numeric,
    "all_nominal": all_nominal,
    "all_numeric_predictors": all_numeric_predictors,
    "all_nominal_predictors": all_nominal_predictors,
}


def as_selector(value: SelectorLike | Iterable[str]) -> Selector:
    """Coerce a selector, a single column name or a list of names to a Selector."""
    if isinstance(value, (ByRole, ByKind, ByName, Difference, Combined, Intersection)):
        return value
    if isinstance(value, str):
        return by_name(value)
    names = tuple(value)
    if not all(isinstance(name, str) for name in names):
        raise TypeError(f"Column names must be strings, got {names!r}")
    return by_name(*names)
