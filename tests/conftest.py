from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Generator

import numpy as np
import pandas as pd
import pytest
import yaml


# ---------------------------------------------------------------------------
# Global test seed
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _set_test_seed() -> Generator[None, None, None]:
    """Set a deterministic random seed for every test."""
    seed = 1234
    random.seed(seed)
    np.random.seed(seed)
    yield


@pytest.fixture
def propagate_package_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Let caplog (attached to the root logger) see tabular_recipes records."""
    monkeypatch.setattr(logging.getLogger("tabular_recipes"), "propagate", True)


# ---------------------------------------------------------------------------
# In-memory DataFrames
# ---------------------------------------------------------------------------


@pytest.fixture
def salary_df() -> pd.DataFrame:
    """10 employees: numeric salary, department A (7 rows) / B (3 rows), numeric bonus outcome."""
    return pd.DataFrame(
        {
            "salary": [40000.0, 48000.0, 55000.0, 62000.0, 70000.0,
                       78000.0, 85000.0, 95000.0, 105000.0, 120000.0],
            "dept": ["A", "A", "B", "A", "A", "B", "A", "A", "B", "A"],
            "bonus": [1.0, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0, 6.0, 7.0],
        }
    )


@pytest.fixture
def mixed_df() -> pd.DataFrame:
    """Small frame with two numeric predictors, one categorical predictor, one id and an outcome."""
    return pd.DataFrame(
        {
            "id": ["r1", "r2", "r3", "r4", "r5", "r6"],
            "x": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
            "z": [10.0, 8.0, 9.0, 4.0, 6.0, 1.0],
            "color": ["red", "blue", "red", "green", "blue", "red"],
            "target": [0.5, 1.5, 1.0, 3.0, 2.5, 4.0],
        }
    )


@pytest.fixture
def skewed_df() -> pd.DataFrame:
    """Right-skewed positive column plus a column with negatives and zeros."""
    rng = np.random.default_rng(7)
    return pd.DataFrame(
        {
            "income": rng.lognormal(mean=3.0, sigma=1.0, size=200),
            "change": rng.normal(loc=0.0, scale=2.0, size=200).round(1),
            "target": rng.normal(size=200),
        }
    )


# ---------------------------------------------------------------------------
# Temporary YAML configs
# ---------------------------------------------------------------------------


@pytest.fixture
def recipe_config_path(tmp_path: Path) -> Path:
    """Write a realistic recipe config with dev/prod profiles under tmp_path."""
    recipe = {
        "outcome": "bonus",
        "steps": [
            {"kind": "normalize", "columns": ["salary"]},
            {"kind": "dummy", "columns": ["dept"]},
        ],
    }
    config = {
        "dev": {
            "env": "dev",
            "log_level": "INFO",
            "defaults": {"correlation_threshold": 0.8},
            "recipe": recipe,
        },
        "prod": {
            "env": "prod",
            "log_level": "WARNING",
            "log_dir": str(tmp_path / "logs"),
            "defaults": {"one_hot": True},
            "recipe": recipe,
        },
    }

    config_path = tmp_path / "recipe.yaml"
    config_path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return config_path
