"""Shared helpers for the rule constructors.

Provides:
- camel(name)
- dict_lit(mapping)
- normalize_attribute(name)
- bulk_value(bulk)
"""
import json
from typing import Any, Mapping, Optional

ATTRIBUTES = ('Charisma', 'Constitution', 'Dexterity', 'Intelligence', 'Strength', 'Wisdom')
TRADITIONS = ('Arcane', 'Divine', 'Occult', 'Primal')
RANKS = {'Untrained': 0, 'Trained': 1, 'Expert': 2, 'Master': 3, 'Legendary': 4}


def camel(name: str) -> str:
    """'Rock Runner' -> 'rockRunner', the prefix used for rule and note names."""
    return name[:1].lower() + name[1:].replace(' ', '')


def dict_lit(mapping: Mapping[str, Any]) -> str:
    """Render a lookup table as an object literal for a rule formula."""
    return json.dumps(mapping, ensure_ascii=False, separators=(',', ':'))


def normalize_attribute(name: Any) -> Optional[str]:
    """Return the lower-case attribute name, or None if it isn't one."""
    if not isinstance(name, str) or name.capitalize() not in ATTRIBUTES:
        return None
    return name.lower()


def bulk_value(bulk: Any) -> Optional[float]:
    # L (light) and the legacy .1 both mean a tenth of a Bulk
    if bulk in ('L', '.1'):
        return 0.1
    if bulk is None or bulk == '-':
        return 0
    if isinstance(bulk, int):
        return bulk
    return None
