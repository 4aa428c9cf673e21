"""Consistency checks over a built catalog.

Provides:
- feature_references(catalog)
- validate_catalog(catalog)
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .attrs import check_attr_table, get_attr_value_array
from .catalog import Catalog
from .records import ContentKind

logger = logging.getLogger(__name__)

FEATURE_NAME_RE = re.compile(r'^(?:.*?\?\s*)?\d+:([^:]+)(?::.+)?$')


@dataclass
class ValidationResult:
    grammar: List[Tuple[str, str, str]] = field(default_factory=list)
    missing_features: List[Tuple[str, str, str]] = field(default_factory=list)
    missing_feats: List[Tuple[str, str]] = field(default_factory=list)
    build: List[str] = field(default_factory=list)
    references: int = 0

    @property
    def ok(self) -> bool:
        return not (self.grammar or self.missing_features or self.missing_feats or self.build)

    def problems(self) -> List[str]:
        lines = [f'{table}.{name}: {problem}' for table, name, problem in self.grammar]
        lines += [f'{table}.{name}: feature "{feature}" is not defined' for table, name, feature in self.missing_features]
        lines += [f'backgrounds.{name}: feat "{feat}" is not defined' for name, feat in self.missing_feats]
        return lines + self.build


def feature_references(catalog: Catalog) -> List[Tuple[str, str, str]]:
    """(table, entry, feature) for every feature an ancestry, class or heritage grants."""
    refs = []
    for table in ('ancestries', 'classes', 'heritages'):
        for name, attrs in catalog.get(table).items():
            for key in ('Features', 'Selectables'):
                for item in get_attr_value_array(attrs, key):
                    m = FEATURE_NAME_RE.match(str(item))
                    if m:
                        refs.append((table, name, m.group(1)))
    return refs


def validate_catalog(catalog: Catalog) -> ValidationResult:
    result = ValidationResult(build=catalog.report.problems())
    for table_name, table in catalog.tables.items():
        kind = ContentKind.from_table(table_name)
        for name, problem in check_attr_table(table, kind.record_type.FIELDS):
            result.grammar.append((table_name, name, problem))

    features = catalog.get('features')
    refs = feature_references(catalog)
    result.references = len(refs)
    for table, name, feature in refs:
        if feature not in features:
            result.missing_features.append((table, name, feature))

    feats = catalog.get('feats')
    for name, attrs in catalog.get('backgrounds').items():
        for feat in get_attr_value_array(attrs, 'Feat'):
            if feat not in feats:
                result.missing_feats.append((name, feat))

    for problem in result.problems():
        logger.debug('%s', problem)
    return result


def table_counts(catalog: Catalog) -> Dict[str, int]:
    return {name: len(table) for name, table in sorted(catalog.tables.items())}
