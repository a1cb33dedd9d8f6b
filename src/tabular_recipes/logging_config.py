from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Mapping

# ----------------------------------------------------------------------
# Environment-driven defaults
# ----------------------------------------------------------------------

# Prefer project-specific env vars; fall back to generic ones where sensible.
DEFAULT_LOG_LEVEL = (
    os.getenv("TABULAR_RECIPES_LOG_LEVEL")
    or os.getenv("LOG_LEVEL", "INFO")
).upper()

DEFAULT_LOG_DIR = Path(
    os.getenv("TABULAR_RECIPES_LOG_DIR") or os.getenv("LOG_DIR", "logs")
)

# Environment name decides handler behaviour (console-only vs file+console).
APP_ENV = (
    os.getenv("TABULAR_RECIPES_ENV")
    or os.getenv("ENV")
    or "dev"
).lower()

# Set to 0/false/no when the host application owns logging configuration.
AUTO_CONFIG = os.getenv("TABULAR_RECIPES_CONFIGURE_LOGGING", "1").lower() not in {
    "0",
    "false",
    "no",
}

# Log format: "text" (default) or "json".
LOG_FORMAT = os.getenv("TABULAR_RECIPES_LOG_FORMAT", "text").lower()

_LOG_CONFIGURED = False


def _supports_json_logging() -> bool:
    """Return True if a JSON formatter is available."""
    try:
        import pythonjsonlogger  # type: ignore[unused-import]  # noqa: F401
    except ImportError:
        return False
    return True


def _build_formatters(fmt: str) -> dict[str, Any]:
    """Build formatter configuration based on the requested format."""
    if fmt == "json" and _supports_json_logging():
        # pip install tabular-recipes[json]
        return {
            "json": {
                "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
            "json_verbose": {
                "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": (
                    "%(asctime)s %(levelname)s %(name)s "
                    "%(filename)s %(lineno)d %(message)s"
                ),
            },
        }

    return {
        "standard": {
            "format": "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        },
        "verbose": {
            "format": (
                "[%(asctime)s] [%(levelname)s] %(name)s "
                "(%(filename)s:%(lineno)d) - %(message)s"
            ),
        },
    }


def _build_logging_config(
    env: str,
    log_dir: Path,
    level: str,
    fmt: str,
) -> dict[str, Any]:
    """Return a dictConfig-style logging configuration.

    A console handler is always installed. In 'prod' a rotating file handler
    under ``log_dir`` is added as well; other environments never touch the
    filesystem.
    """
    formatters = _build_formatters(fmt)

    if "json" in formatters:
        console_formatter = "json"
        file_formatter = "json_verbose"
    else:
        console_formatter = "standard"
        file_formatter = "verbose"

    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": console_formatter,
            "stream": "ext://sys.stdout",
        },
    }

    if env.lower() in {"prod", "production"}:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": file_formatter,
            "filename": str(log_dir / "tabular_recipes.log"),
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 5,
            "encoding": "utf-8",
        }

    active_handlers = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        # Package logger only; the host application's root logger is left alone.
        "loggers": {
            "tabular_recipes": {
                "level": level,
                "handlers": active_handlers,
                "propagate": False,
            },
        },
    }


def configure_logging(
    *,
    level: str | None = None,
    log_dir: Path | str | None = None,
    env: str | None = None,
    fmt: str | None = None,
    extra_config: Mapping[str, Any] | None = None,
    force: bool = False,
) -> None:
    """Configure logging for the ``tabular_recipes`` logger hierarchy.

    Parameters
    ----------
    level:
        Log level ("DEBUG", "INFO", "WARNING", etc.). Defaults to env or "INFO".
    log_dir:
        Directory where log files are written in prod. Defaults to env or "logs".
    env:
        Application environment ("dev", "prod", "test"). Defaults to
        TABULAR_RECIPES_ENV/ENV.
    fmt:
        Log format: "text" (default) or "json".
    extra_config:
        Optional dictConfig-style overrides merged (shallowly) into the base config.
    force:
        If True, re-configure logging even if it was already configured.
    """
    global _LOG_CONFIGURED

    if _LOG_CONFIGURED and not force:
        return

    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    effective_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    effective_env = (env or APP_ENV).lower()
    effective_fmt = (fmt or LOG_FORMAT).lower()

    if effective_fmt == "json" and not _supports_json_logging():
        logging.getLogger(__name__).warning(
            "JSON logging requested but python-json-logger is not installed; "
            "falling back to text format."
        )
        effective_fmt = "text"

    config = _build_logging_config(
        env=effective_env,
        log_dir=effective_dir,
        level=effective_level,
        fmt=effective_fmt,
    )

    if extra_config:
        for key, value in extra_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key].update(value)
            else:
                config[key] = value

    logging.config.dictConfig(config)
    _LOG_CONFIGURED = True


def configure_logging_from_app_config(
    app_config: Any,
    *,
    fmt: str | None = None,
    extra_config: Mapping[str, Any] | None = None,
    force: bool = False,
) -> None:
    """Configure logging from a ``tabular_recipes.config.AppConfig``.

    Typed as `Any` to avoid an import cycle with the config module.

        from tabular_recipes.config import get_config
        from tabular_recipes.logging_config import configure_logging_from_app_config

        configure_logging_from_app_config(get_config())
    """
    env = getattr(app_config, "env", "dev")
    level = getattr(app_config, "log_level", "INFO")
    log_dir = getattr(app_config, "log_dir", None) or DEFAULT_LOG_DIR

    configure_logging(
        level=str(level),
        log_dir=log_dir,
        env=str(env),
        fmt=fmt,
        extra_config=extra_config,
        force=force,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger, ensuring that logging is configured.

    If TABULAR_RECIPES_CONFIGURE_LOGGING=0/false/no, this will *not*
    auto-configure logging and simply returns `logging.getLogger(name)`.

        from tabular_recipes.logging_config import get_logger

        logger = get_logger(__name__)
        logger.info("Hello from module")
    """
    if not _LOG_CONFIGURED and AUTO_CONFIG:
        configure_logging()

    return logging.getLogger(name)
