"""Pytest fixtures shared across the catalog and rule registration tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping

import pytest
import yaml

from pf2remaster.catalog import Catalog, build_catalog, load_legacy_catalog
from pf2remaster.registry import RuleRegistry
from pf2remaster.rules import choice_rules
from pf2remaster.ruleset import Pathfinder2ERemaster


@pytest.fixture(scope="session")
def legacy() -> Catalog:
    """Return the packaged legacy catalog."""

    return load_legacy_catalog()


@pytest.fixture(scope="session")
def remaster(legacy: Catalog) -> Catalog:
    """Return the Remaster catalog built from the packaged data."""

    return build_catalog(legacy)


@pytest.fixture(scope="session")
def ruleset(remaster: Catalog) -> RuleRegistry:
    """Return the full rule set registered from the packaged catalog."""

    return Pathfinder2ERemaster(catalog=remaster)


@pytest.fixture
def rules() -> RuleRegistry:
    """Return an empty registry wired to choice_rules."""

    registry = RuleRegistry()
    registry.choice_rules = choice_rules
    return registry


@pytest.fixture
def write_tables(tmp_path: Path) -> Callable[..., tuple[Path, Path]]:
    """Return a helper that writes legacy and remaster YAML tables under tmp_path."""

    def write(legacy: Mapping[str, object], remaster: Mapping[str, object]) -> tuple[Path, Path]:
        legacy_dir = tmp_path / "legacy"
        remaster_dir = tmp_path / "remaster"
        legacy_dir.mkdir(exist_ok=True)
        remaster_dir.mkdir(exist_ok=True)
        for name, table in legacy.items():
            (legacy_dir / f"{name}.yaml").write_text(yaml.safe_dump(table, sort_keys=False), encoding="utf-8")
        for name, table in remaster.items():
            (remaster_dir / f"{name}.yaml").write_text(yaml.safe_dump(table, sort_keys=False), encoding="utf-8")
        return legacy_dir, remaster_dir

    return write
