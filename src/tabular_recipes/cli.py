"""
Command-line interface for tabular_recipes.

The CLI only inspects configuration; fitting and baking happen in Python
code that has the data in memory.

    tabular-recipes version
    tabular-recipes steps
    tabular-recipes show --config recipe.yaml --env prod

The console script entry point is declared in pyproject.toml:

    [project.scripts]
    tabular-recipes = "tabular_recipes.cli:app"
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import load_config
from .exceptions import ConfigError
from .logging_config import configure_logging_from_app_config, get_logger
from .steps import STEP_ALIASES, STEP_TYPES

app = typer.Typer(
    help="Inspect tabular_recipes preprocessing recipes.",
    no_args_is_help=True,
)

logger = get_logger(__name__)


@app.command("version")
def version() -> None:
    """Print the installed tabular_recipes version."""
    typer.echo(f"tabular_recipes version: {__version__}")


@app.command("steps")
def steps() -> None:
    """List the available step kinds and the aliases accepted in YAML."""
    for kind, step_type in STEP_TYPES.items():
        aliases = sorted(alias for alias, target in STEP_ALIASES.items() if target == kind)
        suffix = f" (aliases: {', '.join(aliases)})" if aliases else ""
        summary = (step_type.__doc__ or "").strip().splitlines()[0]
        typer.echo(f"{kind}{suffix}: {summary}")


@app.command("show")
def show(
    config: Path = typer.Option(
        Path("recipe.yaml"),
        "--config",
        "-c",
        dir_okay=False,
        help="Path to the YAML config holding a 'recipe' section.",
    ),
    env: Optional[str] = typer.Option(
        None,
        "--env",
        help="Config environment/profile name (e.g. 'dev', 'prod').",
    ),
) -> None:
    """Validate a recipe config and print its plan without touching any data."""
    try:
        cfg = load_config(config, env=env)
        configure_logging_from_app_config(cfg, fmt=cfg.log_format, force=True)
        if cfg.recipe is None:
            raise ConfigError(
                f"No 'recipe' section in {config}",
                code="config_missing_recipe",
                context={"config_path": str(config)},
                location="tabular_recipes.cli.show",
            )
        built_steps = cfg.recipe.to_steps(cfg.defaults)
    except ConfigError as exc:
        logger.error("Invalid recipe config: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"outcome: {cfg.recipe.outcome}")
    if cfg.recipe.other_columns:
        typer.echo(f"other: {', '.join(cfg.recipe.other_columns)}")
    for index, step in enumerate(built_steps):
        params = {k: v for k, v in step.describe().items() if k not in {"kind", "selector"}}
        rendered = "".join(f" {k}={v}" for k, v in params.items())
        typer.echo(f"{index}: {step.kind} {step.selector.describe()}{rendered}")


if __name__ == "__main__":
    app()
