"""
tabular_recipes: fit-once, apply-many preprocessing recipes for tabular data.

This package exposes a small, stable public API:

    from tabular_recipes import (
        Recipe,
        prepare,
        bake,
        TRAINING,
        Normalize,
        CategoricalEncode,
        all_numeric_predictors,
        all_nominal_predictors,
    )

    recipe = (
        Recipe.from_dataset(train_df, outcome="salary_band")
        .add_step(Normalize(all_numeric_predictors()))
        .add_step(CategoricalEncode(all_nominal_predictors()))
    )
    prepared = prepare(recipe, train_df)
    test_baked = bake(prepared, test_df).to_frame()

and not worry about the internal file layout.
"""

from __future__ import annotations

from importlib import metadata as _metadata

# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

try:
    __version__ = _metadata.version("tabular-recipes")
except _metadata.PackageNotFoundError:
    # Running from a source checkout without installation
    __version__ = "0.0.0"

# ---------------------------------------------------------------------------
# Public API re-exports
# ---------------------------------------------------------------------------

from .config import AppConfig, RecipeConfig, StepDefaults, get_config, load_config  # noqa: E402,F401
from .data import ColumnCatalog, ColumnInfo, ColumnKind, ColumnRole, Dataset  # noqa: E402,F401
from .exceptions import (  # noqa: E402,F401
    AppError,
    ColumnMissingError,
    ConfigError,
    DataError,
    InsufficientDataError,
    PipelineError,
    SchemaError,
    SelectorEmptyResultWarning,
)
from .logging_config import get_logger  # noqa: E402,F401
from .recipe import TRAINING, BakeSource, PreparedRecipe, Recipe, bake, prepare  # noqa: E402,F401
from .selectors import (  # noqa: E402,F401
    Selector,
    all_nominal,
    all_nominal_predictors,
    all_numeric,
    all_numeric_predictors,
    all_outcomes,
    all_predictors,
    by_name,
    intersection,
    minus,
    union,
)
from .steps import (  # noqa: E402,F401
    CategoricalEncode,
    CategoricalEncodeState,
    Center,
    CenterState,
    CorrelationFilter,
    CorrelationFilterState,
    Normalize,
    NormalizeState,
    Scale,
    ScaleState,
    Step,
    StepState,
    YeoJohnson,
    YeoJohnsonState,
)

# The transform family is Yeo-Johnson; keep the generic name available too.
PowerTransform = YeoJohnson

__all__ = [
    "__version__",
    # Config
    "AppConfig",
    "RecipeConfig",
    "StepDefaults",
    "get_config",
    "load_config",
    # Logging
    "get_logger",
    # Exceptions
    "AppError",
    "ConfigError",
    "DataError",
    "SchemaError",
    "InsufficientDataError",
    "ColumnMissingError",
    "PipelineError",
    "SelectorEmptyResultWarning",
    # Data
    "Dataset",
    "ColumnCatalog",
    "ColumnInfo",
    "ColumnKind",
    "ColumnRole",
    # Selectors
    "Selector",
    "all_predictors",
    "all_outcomes",
    "all_numeric",
    "all_nominal",
    "all_numeric_predictors",
    "all_nominal_predictors",
    "by_name",
    "minus",
    "union",
    "intersection",
    # Steps
    "Step",
    "StepState",
    "Center",
    "CenterState",
    "Scale",
    "ScaleState",
    "Normalize",
    "NormalizeState",
    "YeoJohnson",
    "YeoJohnsonState",
    "PowerTransform",
    "CorrelationFilter",
    "CorrelationFilterState",
    "CategoricalEncode",
    "CategoricalEncodeState",
    # Recipes
    "Recipe",
    "PreparedRecipe",
    "prepare",
    "bake",
    "TRAINING",
    "BakeSource",
]
