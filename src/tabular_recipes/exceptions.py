from __future__ import annotations

from typing import Any, Mapping


class AppError(Exception):
    """Base class for all tabular_recipes exceptions.

    Attributes
    ----------
    message:
        Human-readable error message.
    code:
        Stable, machine-friendly identifier for this error type
        (e.g. "schema_error", "column_missing").
    cause:
        Optional underlying exception that triggered this error.
    context:
        Lightweight dictionary with extra debugging information. Errors raised
        while a recipe is prepared or baked carry ``step_index`` and
        ``step_kind`` here, and ``column`` when a single column is at fault.
    location:
        Optional string describing where the error occurred
        (e.g. "tabular_recipes.recipe.prepare").
    """

    # Subclasses override this to give themselves a stable default code.
    default_code: str = "app_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        cause: BaseException | None = None,
        context: Mapping[str, Any] | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code: str = code or self.default_code
        self.cause = cause
        self.context: dict[str, Any] = dict(context or {})
        self.location = location

        if cause is not None:
            self.__cause__ = cause  # type: ignore[assignment]

    def __str__(self) -> str:
        parts: list[str] = [f"[{self.code}] {self.message}"]

        if "step_index" in self.context:
            parts.append(
                f"(step {self.context['step_index']}: {self.context.get('step_kind')})"
            )

        if self.location:
            parts.append(f"(at {self.location})")

        if self.cause is not None:
            parts.append(f"(cause: {self.cause!r})")

        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"code={self.code!r}, "
            f"message={self.message!r}, "
            f"location={self.location!r}"
            ")"
        )

    @property
    def step_index(self) -> int | None:
        """Ordinal (0-based) of the recipe step that failed, if known."""
        return self.context.get("step_index")

    @property
    def step_kind(self) -> str | None:
        return self.context.get("step_kind")

    @property
    def column(self) -> str | None:
        return self.context.get("column")

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation of the error."""
        data: dict[str, Any] = {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }

        if self.location:
            data["location"] = self.location

        if self.context:
            data["context"] = dict(self.context)

        if self.cause is not None:
            data["cause"] = {
                "type": type(self.cause).__name__,
                "repr": repr(self.cause),
            }

        return data

    def add_context(self, **extra: Any) -> AppError:
        """Add or update context fields on this error and return self.

        ``prepare`` and ``bake`` use this to stamp the failing step's position
        and kind onto errors raised from inside a step.
        """
        self.context.update(extra)
        return self

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        message: str | None = None,
        code: str | None = None,
        context: Mapping[str, Any] | None = None,
        location: str | None = None,
    ) -> AppError:
        """Construct an AppError (or subclass) from an existing exception.

        Examples
        --------
        >>> try:
        ...     yaml.safe_load(text)
        ... except yaml.YAMLError as exc:
        ...     raise ConfigError.from_exception(
        ...         exc,
        ...         message="Failed to parse YAML config",
        ...         code="config_parse_error",
        ...         location="tabular_recipes.config.load_config",
        ...     ) from exc
        """
        base_message = message or str(exc) or cls.__name__
        return cls(
            base_message,
            code=code,
            cause=exc,
            context=context,
            location=location,
        )


class ConfigError(AppError):
    """Configuration-related errors (bad YAML, unknown step kinds, invalid values)."""

    default_code = "config_error"


class DataError(AppError):
    """Base class for problems with the data a recipe is fitted on or applied to."""

    default_code = "data_error"


class SchemaError(DataError):
    """The shape or typing of a dataset does not fit what was asked of it.

    Raised for duplicate or non-string column names, mismatched column
    lengths, an outcome column that does not exist, a selected column of the
    wrong kind for a step, and indicator name collisions.
    """

    default_code = "schema_error"


class InsufficientDataError(DataError):
    """A step could not compute a statistic it needs from the training data."""

    default_code = "insufficient_data"


class ColumnMissingError(DataError):
    """A fitted step was applied to a dataset lacking one of its columns."""

    default_code = "column_missing"


class PipelineError(AppError):
    """Recipe wiring errors (unknown step types, invalid step parameters)."""

    default_code = "pipeline_error"


class SelectorEmptyResultWarning(UserWarning):
    """A step's selector matched no columns; the step does nothing for this fit."""
