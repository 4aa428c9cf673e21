"""Pathfinder 2E Remaster content catalog and rule registration."""
from .catalog import Catalog, ContentTable, build_catalog, default_catalog, load_legacy_catalog
from .config import VERSION
from .registry import RuleRegistry
from .rules import choice_rules
from .ruleset import Pathfinder2ERemaster

__version__ = VERSION

__all__ = [
    'Catalog',
    'ContentTable',
    'Pathfinder2ERemaster',
    'RuleRegistry',
    'VERSION',
    'build_catalog',
    'choice_rules',
    'default_catalog',
    'load_legacy_catalog',
]
