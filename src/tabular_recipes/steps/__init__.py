"""
Recipe steps for tabular_recipes.

A step is a small frozen dataclass naming a column selection and its
parameters. Fitting a step on training data returns a frozen state that holds
the resolved column names and everything learned from that data; the state's
``apply`` is the only thing used when new data is baked.

The set of step kinds is closed:

- Center, Scale, Normalize      (normalization)
- YeoJohnson                    (power)
- CorrelationFilter             (correlation)
- CategoricalEncode             (encoding)

Adding a kind means adding one step class and one state class with the same
``fit`` / ``apply`` shape, and listing it in STEP_TYPES below.
"""

from __future__ import annotations

from typing import Union

from .base import FittedStepState, StepSpec
from .correlation import CorrelationFilter, CorrelationFilterState, find_correlated
from .encoding import CategoricalEncode, CategoricalEncodeState
from .normalization import Center, CenterState, Normalize, NormalizeState, Scale, ScaleState
from .power import YeoJohnson, YeoJohnsonState, yeo_johnson

Step = Union[Center, Scale, Normalize, YeoJohnson, CorrelationFilter, CategoricalEncode]

StepState = Union[
    CenterState,
    ScaleState,
    NormalizeState,
    YeoJohnsonState,
    CorrelationFilterState,
    CategoricalEncodeState,
]

STEP_TYPES: dict[str, type] = {
    Center.kind: Center,
    Scale.kind: Scale,
    Normalize.kind: Normalize,
    YeoJohnson.kind: YeoJohnson,
    CorrelationFilter.kind: CorrelationFilter,
    CategoricalEncode.kind: CategoricalEncode,
}

# Alternative names accepted in configuration files.
STEP_ALIASES: dict[str, str] = {
    "power_transform": YeoJohnson.kind,
    "corr": CorrelationFilter.kind,
    "dummy": CategoricalEncode.kind,
}

__all__: list[str] = [
    "Step",
    "StepState",
    "StepSpec",
    "FittedStepState",
    "STEP_TYPES",
    "STEP_ALIASES",
    "Center",
    "CenterState",
    "Scale",
    "ScaleState",
    "Normalize",
    "NormalizeState",
    "YeoJohnson",
    "YeoJohnsonState",
    "CorrelationFilter",
    "CorrelationFilterState",
    "CategoricalEncode",
    "CategoricalEncodeState",
    "find_correlated",
    "yeo_johnson",
]
