"""
Test suite for the tabular_recipes package.

This package is organized by concern:

- data/       – Dataset and ColumnCatalog
- steps/      – fit/apply behaviour of each step kind
- cli/        – tests for the Typer-based command-line interface
- test_recipe.py / test_recipe_properties.py – prepare/bake lifecycle
- conftest.py – shared fixtures and test configuration
"""

__all__: list[str] = []
