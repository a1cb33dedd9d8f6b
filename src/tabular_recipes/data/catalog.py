from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Mapping

import pandas as pd

from tabular_recipes.data.dataset import ColumnKind, Dataset
from tabular_recipes.exceptions import SchemaError
from tabular_recipes.logging_config import get_logger

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__


class ColumnRole(str, Enum):
    """Semantic role of a column in a recipe."""

    OUTCOME = "outcome"
    PREDICTOR = "predictor"
    OTHER = "other"


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    kind: ColumnKind
    role: ColumnRole


class ColumnCatalog:
    """Immutable, ordered mapping of column name to (kind, role).

    Built once from a dataset and an outcome designation. Every column that
    is not the outcome and not listed in ``other`` is a predictor.
    """

    __slots__ = ("_entries", "_index")

    def __init__(self, entries: Iterable[ColumnInfo]) -> None:
        self._entries: tuple[ColumnInfo, ...] = tuple(entries)
        self._index: dict[str, ColumnInfo] = {info.name: info for info in self._entries}
        if len(self._index) != len(self._entries):
            raise SchemaError(
                "Column catalog entries must have unique names.",
                code="schema_duplicate_columns",
                location=f"{_LOCATION_PREFIX}.ColumnCatalog",
            )

    @classmethod
    def build(
        cls,
        dataset: Dataset | pd.DataFrame,
        outcome: str,
        *,
        other: Iterable[str] = (),
    ) -> ColumnCatalog:
        """Derive a catalog from ``dataset`` with ``outcome`` as the outcome column.

        Raises
        ------
        SchemaError
            If the outcome or any ``other`` column is not in the dataset, or if
            a column is declared both outcome and other.
        """
        dataset = Dataset.coerce(dataset)
        other = list(other)

        if outcome not in dataset:
            raise SchemaError(
                f"Outcome column '{outcome}' is not present in the dataset.",
                code="schema_outcome_missing",
                context={"column": outcome, "columns": list(dataset.column_names)},
                location=f"{_LOCATION_PREFIX}.ColumnCatalog.build",
            )

        unknown_other = [name for name in other if name not in dataset]
        if unknown_other:
            raise SchemaError(
                "Columns given the 'other' role are not present in the dataset.",
                code="schema_other_missing",
                context={"column": unknown_other[0], "missing": unknown_other},
                location=f"{_LOCATION_PREFIX}.ColumnCatalog.build",
            )

        if outcome in other:
            raise SchemaError(
                f"Column '{outcome}' cannot be both the outcome and an 'other' column.",
                code="schema_conflicting_roles",
                context={"column": outcome},
                location=f"{_LOCATION_PREFIX}.ColumnCatalog.build",
            )

        kinds = dataset.kinds
        entries = []
        for name in dataset.column_names:
            if name == outcome:
                role = ColumnRole.OUTCOME
            elif name in other:
                role = ColumnRole.OTHER
            else:
                role = ColumnRole.PREDICTOR
            entries.append(ColumnInfo(name=name, kind=kinds[name], role=role))

        catalog = cls(entries)
        logger.debug("Built column catalog: %s", catalog.describe())
        return catalog

    def derive(self, dataset: Dataset, origins: Mapping[str, str] | None = None) -> ColumnCatalog:
        """Return the catalog of a dataset produced from this catalog's dataset.

        Columns already known keep their role; kinds are re-read from the data
        since a step may have changed them. A new column takes the role of the
        column named in ``origins`` (the column it was derived from), or
        PREDICTOR when it has no recorded origin.
        """
        origins = origins or {}
        kinds = dataset.kinds
        entries = []
        for name in dataset.column_names:
            if name in self._index:
                role = self._index[name].role
            elif origins.get(name) in self._index:
                role = self._index[origins[name]].role
            else:
                role = ColumnRole.PREDICTOR
            entries.append(ColumnInfo(name=name, kind=kinds[name], role=role))
        return ColumnCatalog(entries)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(info.name for info in self._entries)

    def info(self, name: str) -> ColumnInfo:
        try:
            return self._index[name]
        except KeyError:
            raise SchemaError(
                f"Column '{name}' is not in the catalog.",
                code="schema_unknown_column",
                context={"column": name},
                location=f"{_LOCATION_PREFIX}.ColumnCatalog.info",
            ) from None

    def role(self, name: str) -> ColumnRole:
        return self.info(name).role

    def kind(self, name: str) -> ColumnKind:
        return self.info(name).kind

    def names_where(
        self,
        *,
        role: ColumnRole | None = None,
        kind: ColumnKind | None = None,
    ) -> tuple[str, ...]:
        """Names matching the given role and/or kind, in catalog order."""
        return tuple(
            info.name
            for info in self._entries
            if (role is None or info.role is role) and (kind is None or info.kind is kind)
        )

    def to_frame(self) -> pd.DataFrame:
        """Role table for reporting: one row per column (name, kind, role)."""
        return pd.DataFrame(
            {
                "name": [info.name for info in self._entries],
                "kind": [info.kind.value for info in self._entries],
                "role": [info.role.value for info in self._entries],
            }
        )

    def describe(self) -> dict[str, str]:
        return {info.name: f"{info.kind.value}/{info.role.value}" for info in self._entries}

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[ColumnInfo]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnCatalog):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"ColumnCatalog({self.describe()!r})"
