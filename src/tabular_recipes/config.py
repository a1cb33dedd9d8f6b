from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Union

import pandas as pd
import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tabular_recipes.data.dataset import Dataset
from tabular_recipes.exceptions import AppError, ConfigError
from tabular_recipes.recipe import Recipe
from tabular_recipes.selectors import NAMED_SELECTORS, Selector, by_name, minus, union
from tabular_recipes.steps import STEP_ALIASES, STEP_TYPES, Step

# ----------------------------------------------------------------------
# Environment + discovery defaults
# ----------------------------------------------------------------------

# Example: TABULAR_RECIPES_ENV, TABULAR_RECIPES_DEFAULTS__CORRELATION_THRESHOLD.
ENV_PREFIX = "TABULAR_RECIPES_"
ENV_ENV_NAME = f"{ENV_PREFIX}ENV"
ENV_CONFIG_PATH = f"{ENV_PREFIX}CONFIG_PATH"

DEFAULT_ENV = os.getenv(ENV_ENV_NAME, "dev").lower()
DEFAULT_CONFIG_FILENAMES = ("recipe.yaml", "recipe.yml")


# ----------------------------------------------------------------------
# Section models
# ----------------------------------------------------------------------


class StepDefaults(BaseModel):
    """Parameter defaults for steps that do not set them explicitly."""

    model_config = ConfigDict(frozen=True)

    correlation_threshold: float = Field(
        0.9,
        gt=0.0,
        le=1.0,
        description="Absolute Pearson correlation above which a pair is filtered.",
    )
    one_hot: bool = Field(
        False,
        description="If True, categorical encoding keeps an indicator for every level.",
    )
    yeo_johnson_limits: tuple[float, float] = Field(
        (-5.0, 5.0),
        description="Bounds for the estimated Yeo-Johnson lambda.",
    )
    yeo_johnson_num_unique: int = Field(
        5,
        ge=2,
        description="Columns with fewer distinct training values are not power-transformed.",
    )

    @field_validator("yeo_johnson_limits")
    @classmethod
    def _increasing_limits(cls, value: tuple[float, float]) -> tuple[float, float]:
        if not value[0] < value[1]:
            raise ValueError("yeo_johnson_limits must be (low, high) with low < high")
        return value


class SelectorConfig(BaseModel):
    """Selector written as include / exclude lists.

    Each item is either a named selector ("all_numeric_predictors", ...) or
    a mapping ``{names: [col, ...]}``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include: list[Union[str, dict[str, list[str]]]] = Field(..., min_length=1)
    exclude: list[Union[str, dict[str, list[str]]]] = Field(default_factory=list)

    def build(self) -> Selector:
        included = union(*(_selector_term(term) for term in self.include))
        if not self.exclude:
            return included
        return minus(included, union(*(_selector_term(term) for term in self.exclude)))


def _selector_term(term: Union[str, Mapping[str, Any]]) -> Selector:
    if isinstance(term, str):
        factory = NAMED_SELECTORS.get(term)
        if factory is None:
            raise ConfigError(
                f"Unknown selector name: {term!r}",
                code="config_unknown_selector",
                context={"selector": term, "known": sorted(NAMED_SELECTORS)},
                location="tabular_recipes.config._selector_term",
            )
        return factory()
    if set(term) == {"names"} and term["names"]:
        return by_name(*term["names"])
    raise ConfigError(
        f"Selector terms must be a selector name or {{names: [...]}}, got {term!r}",
        code="config_invalid_selector",
        context={"selector": dict(term)},
        location="tabular_recipes.config._selector_term",
    )


class StepConfig(BaseModel):
    """One recipe step as written in YAML."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str
    columns: Optional[list[str]] = None
    selector: Optional[Union[str, SelectorConfig]] = None

    threshold: Optional[float] = Field(None, gt=0.0, le=1.0)
    one_hot: Optional[bool] = None
    limits: Optional[tuple[float, float]] = None
    num_unique: Optional[int] = Field(None, ge=2)

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, value: str) -> str:
        kind = STEP_ALIASES.get(value.lower(), value.lower())
        if kind not in STEP_TYPES:
            known = sorted(set(STEP_TYPES) | set(STEP_ALIASES))
            raise ValueError(f"unknown step kind {value!r}; expected one of {known}")
        return kind

    @model_validator(mode="after")
    def _one_column_source(self) -> StepConfig:
        if (self.columns is None) == (self.selector is None):
            raise ValueError("a step needs exactly one of 'columns' or 'selector'")
        if self.columns is not None and not self.columns:
            raise ValueError("'columns' must not be empty")
        return self

    def build_selector(self) -> Selector:
        if self.columns is not None:
            return by_name(*self.columns)
        if isinstance(self.selector, SelectorConfig):
            return self.selector.build()
        return _selector_term(self.selector)  # type: ignore[arg-type]

    def to_step(self, defaults: StepDefaults) -> Step:
        selector = self.build_selector()
        if self.kind == "correlation_filter":
            threshold = self.threshold if self.threshold is not None else defaults.correlation_threshold
            return STEP_TYPES[self.kind](selector, threshold=threshold)
        if self.kind == "categorical_encode":
            one_hot = self.one_hot if self.one_hot is not None else defaults.one_hot
            return STEP_TYPES[self.kind](selector, one_hot=one_hot)
        if self.kind == "yeo_johnson":
            return STEP_TYPES[self.kind](
                selector,
                limits=self.limits if self.limits is not None else defaults.yeo_johnson_limits,
                num_unique=(
                    self.num_unique
                    if self.num_unique is not None
                    else defaults.yeo_johnson_num_unique
                ),
            )
        return STEP_TYPES[self.kind](selector)


class RecipeConfig(BaseModel):
    """Declarative recipe: outcome column, extra role assignments and steps."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    outcome: str
    other_columns: list[str] = Field(default_factory=list)
    steps: list[StepConfig] = Field(default_factory=list)

    def to_steps(self, defaults: StepDefaults | None = None) -> list[Step]:
        defaults = defaults or StepDefaults()
        steps = []
        for index, step_config in enumerate(self.steps):
            try:
                steps.append(step_config.to_step(defaults))
            except ConfigError as exc:
                raise exc.add_context(step_index=index, step_kind=step_config.kind)
            except AppError as exc:
                raise ConfigError.from_exception(
                    exc,
                    code="config_invalid_step",
                    context={"step_index": index, "step_kind": step_config.kind},
                    location="tabular_recipes.config.RecipeConfig.to_steps",
                ) from exc
        return steps

    def build(
        self,
        data: Dataset | pd.DataFrame,
        defaults: StepDefaults | None = None,
    ) -> Recipe:
        """Build the Recipe for ``data``'s schema."""
        return Recipe.from_dataset(
            data,
            self.outcome,
            other=self.other_columns,
            steps=self.to_steps(defaults),
        )


# ----------------------------------------------------------------------
# Top-level settings
# ----------------------------------------------------------------------


class AppConfig(BaseSettings):
    """Top-level configuration.

    This reads values from (in order of precedence):

    1. Keyword arguments passed to the constructor (e.g. from a YAML file).
    2. Environment variables (prefixed with TABULAR_RECIPES_).
    3. A .env file (if present).
    4. Default values declared in the model fields.

    Nested fields can be overridden via environment variables using the
    `env_nested_delimiter`:

        TABULAR_RECIPES_DEFAULTS__CORRELATION_THRESHOLD=0.8
        TABULAR_RECIPES_DEFAULTS__ONE_HOT=true

    A YAML config file can be flat:

        env: "dev"
        log_level: "INFO"
        defaults:
          correlation_threshold: 0.85
        recipe:
          outcome: "price"
          other_columns: ["id"]
          steps:
            - kind: yeo_johnson
              selector: all_numeric_predictors
            - kind: correlation_filter
              selector:
                include: [all_numeric]
                exclude: [all_outcomes]
            - kind: normalize
              selector: all_numeric_predictors
            - kind: dummy
              columns: ["dept"]

    or hold environment-specific profiles (``dev:``, ``prod:``, ...), in which
    case TABULAR_RECIPES_ENV (or the ``env`` argument) picks the profile.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    _source_path: Path | None = PrivateAttr(default=None)
    _loaded_env: str | None = PrivateAttr(default=None)

    env: str = Field(
        "dev",
        description="Environment name, e.g. 'dev', 'prod', 'test'.",
    )
    log_level: str = Field(
        "INFO",
        description="Log level for the tabular_recipes loggers.",
    )
    log_dir: Path = Field(
        Path("logs"),
        description="Directory for the rotating log file (prod only).",
    )
    log_format: Literal["text", "json"] = Field(
        "text",
        description="'json' requires the optional python-json-logger dependency.",
    )

    defaults: StepDefaults = StepDefaults()
    recipe: Optional[RecipeConfig] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> AppConfig:
        if self.env.lower() in {"prod", "production"} and self.log_level.upper() == "DEBUG":
            raise ValueError(
                "In production environment, log_level should not be DEBUG. "
                "Use INFO or higher."
            )
        return self

    def build_recipe(self, data: Dataset | pd.DataFrame) -> Recipe:
        """Build the configured recipe for ``data``'s schema."""
        if self.recipe is None:
            raise ConfigError(
                "No 'recipe' section in the configuration.",
                code="config_missing_recipe",
                context={"config_path": str(self._source_path) if self._source_path else None},
                location="tabular_recipes.config.AppConfig.build_recipe",
            )
        return self.recipe.build(data, self.defaults)

    def to_dict(self, *, include_private: bool = False) -> dict[str, Any]:
        """Return a plain dict representation of the effective configuration."""
        data = self.model_dump(mode="json")
        if include_private:
            data["_source_path"] = str(self._source_path) if self._source_path else None
            data["_loaded_env"] = self._loaded_env
        return data

    def to_yaml(self, path: Path | str, *, include_private: bool = False) -> None:
        """Write the effective configuration to a YAML file."""
        target = Path(path)
        target.write_text(
            yaml.safe_dump(self.to_dict(include_private=include_private), sort_keys=False),
            encoding="utf-8",
        )


# ----------------------------------------------------------------------
# Loading + caching
# ----------------------------------------------------------------------

_config_cache: AppConfig | None = None


def _discover_default_config_path() -> Path | None:
    """Return a default config path if one can be discovered.

    Priority:
    1. TABULAR_RECIPES_CONFIG_PATH environment variable (if set).
    2. ./recipe.yaml or ./recipe.yml in the current working directory.
    3. None, if nothing is found (env + defaults will be used).
    """
    env_path = os.getenv(ENV_CONFIG_PATH)
    if env_path:
        # A missing explicit path is reported by load_config.
        return Path(env_path)

    cwd = Path.cwd()
    for name in DEFAULT_CONFIG_FILENAMES:
        candidate = cwd / name
        if candidate.exists():
            return candidate

    return None


def _select_profile_from_yaml(
    loaded: Mapping[str, Any],
    effective_env: str,
) -> Mapping[str, Any]:
    """Use the ``effective_env`` subtree if there is one, else the whole mapping."""
    section = loaded.get(effective_env)
    if isinstance(section, Mapping):
        return section
    return loaded


def load_config(
    config_path: str | Path | None = None,
    *,
    env: str | None = None,
) -> AppConfig:
    """Load and validate configuration.

    Parameters
    ----------
    config_path:
        Optional path to a YAML config file. If omitted, attempts to discover
        one via TABULAR_RECIPES_CONFIG_PATH or ./recipe.yaml / ./recipe.yml.
    env:
        Optional environment name used to select a YAML profile.

    Raises
    ------
    ConfigError
        If the config file does not exist, cannot be parsed, or fails validation.
    """
    effective_env = (env or DEFAULT_ENV).lower()
    config_data: dict[str, Any] = {}

    path: Path | None
    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_default_config_path()

    if path is not None:
        if not path.exists():
            raise ConfigError(
                f"Config file not found: {path}",
                code="config_file_not_found",
                context={"config_path": str(path), "env": effective_env},
                location="tabular_recipes.config.load_config",
            )

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                f"Failed to read config file: {path}",
                code="config_read_error",
                cause=exc,
                context={"config_path": str(path), "env": effective_env},
                location="tabular_recipes.config.load_config",
            ) from exc

        try:
            loaded = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(
                f"Failed to parse YAML config file: {path}",
                code="config_parse_error",
                cause=exc,
                context={"config_path": str(path), "env": effective_env},
                location="tabular_recipes.config.load_config",
            ) from exc

        if not isinstance(loaded, Mapping):
            raise ConfigError(
                f"Top-level config in {path} must be a mapping/object, got {type(loaded)}",
                code="config_structure_error",
                context={"config_path": str(path), "env": effective_env},
                location="tabular_recipes.config.load_config",
            )

        config_data.update(dict(_select_profile_from_yaml(loaded, effective_env)))

    try:
        cfg = AppConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(
            "Configuration validation failed",
            code="config_validation_error",
            cause=exc,
            context={
                "config_path": str(path) if path is not None else None,
                "env": effective_env,
                "errors": exc.errors(include_url=False),
            },
            location="tabular_recipes.config.load_config",
        ) from exc

    cfg._source_path = path
    cfg._loaded_env = effective_env

    return cfg


def get_config(
    config_path: str | Path | None = None,
    *,
    env: str | None = None,
    force_reload: bool = False,
) -> AppConfig:
    """Return the cached AppConfig instance, loading it if necessary.

        from tabular_recipes.config import get_config

        cfg = get_config("recipe.yaml")
        recipe = cfg.build_recipe(train_df)
    """
    global _config_cache

    if _config_cache is None or force_reload:
        _config_cache = load_config(config_path=config_path, env=env)

    return _config_cache
