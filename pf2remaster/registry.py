"""A recording rule registry.

RuleRegistry stands in for the Quilvyn rule engine: it stores choices,
rules, prerequisites, sheet elements and goodies exactly as they are
registered. Formulas are opaque strings here; nothing is evaluated.
"""
import copy
import logging
from collections import namedtuple
from typing import Any, Dict, Iterable, List, Optional

from . import config

logger = logging.getLogger(__name__)

# Operators understood by the rule engine
OPERATORS = ('=', '+', '+=', '-', '*', '?', '^', '^=', 'v', 'v=')

RuleTerm = namedtuple('RuleTerm', ['source', 'operator', 'formula'])
Prerequisite = namedtuple('Prerequisite', ['section', 'note', 'level_attr', 'tests'])
SheetElement = namedtuple('SheetElement', ['name', 'within', 'format', 'separator'])
Goody = namedtuple('Goody', ['name', 'pattern', 'effect', 'value', 'attributes', 'sections', 'notes'])


def _flatten(items: Iterable[Any]) -> List[Any]:
    result = []
    for item in items:
        if isinstance(item, (list, tuple)):
            result.extend(item)
        else:
            result.append(item)
    return result


class RuleRegistry:
    """Rule set under construction."""

    def __init__(self, name: str = config.RULESET_NAME, version: str = config.VERSION):
        self.name = name
        self.version = version
        self.choices: Dict[str, Dict[str, str]] = {}
        self.rules: Dict[str, Dict[str, RuleTerm]] = {}
        self.prerequisites: Dict[str, Prerequisite] = {}
        self.sheet_elements: Dict[str, SheetElement] = {}
        self.goodies: Dict[str, Goody] = {}
        self.stats: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.choice_rules = None
        self.rule_notes = None

    def __repr__(self):
        return f'RuleRegistry({self.name!r}, {len(self.choices)} choice lists, {len(self.rules)} rule targets)'

    def add_choice(self, choice_type: str, name: str, attrs: str = '') -> None:
        self.choices.setdefault(choice_type, {})[name] = attrs

    def define_choice(self, choice_type: str, *items: Any) -> None:
        """Add items to a choice list; "name:value" items carry a value."""
        choices = self.choices.setdefault(choice_type, {})
        for item in _flatten(items):
            name, _, value = str(item).partition(':')
            choices[name] = value

    def get_choices(self, choice_type: str) -> Dict[str, str]:
        return self.choices.get(choice_type, {})

    def define_rule(self, target: str, *terms: Any) -> None:
        """Define target from (source, operator, formula) triples.

        A later definition with the same target and source replaces the
        earlier one.
        """
        if not target:
            raise ValueError('Rule target must not be empty')
        if len(terms) % 3 != 0:
            raise ValueError(f'Rule for {target} needs (source, operator, formula) triples, got {len(terms)} values')
        for source, operator, formula in zip(*[iter(terms)] * 3):
            if operator not in OPERATORS:
                raise ValueError(f'Bad operator "{operator}" in rule for {target}')
            self.rules.setdefault(target, {})[source] = RuleTerm(source, operator, formula)

    def get_rules(self, target: str) -> List[RuleTerm]:
        return list(self.rules.get(target, {}).values())

    def get_rule(self, target: str, source: str) -> Optional[RuleTerm]:
        return self.rules.get(target, {}).get(source)

    def define_prerequisites(self, section: str, note: str, level_attr: Optional[str], tests: Iterable[str]) -> None:
        self.prerequisites[f'{section}Notes.{note}'] = Prerequisite(section, note, level_attr, tuple(tests))

    def define_sheet_element(self, name: str, within: Optional[str] = None, format: Optional[str] = None,
                             separator: Optional[str] = None) -> None:
        self.sheet_elements[name] = SheetElement(name, within, format, separator)

    def define_goody(self, name: str, pattern: str, effect: str, value: Any, attributes: Iterable[str],
                     sections: Iterable[str], notes: Iterable[str]) -> None:
        self.goodies[name] = Goody(name, pattern, effect, value, tuple(attributes), tuple(sections), tuple(notes))

    def stat(self, group: str, field: str) -> Dict[str, Any]:
        """Per-kind lookup table, e.g. stat('armor', 'ac')['Leather']."""
        return self.stats.setdefault(group, {}).setdefault(field, {})

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({
            'choices': self.choices,
            'rules': self.rules,
            'prerequisites': self.prerequisites,
            'sheet_elements': self.sheet_elements,
            'goodies': self.goodies,
            'stats': self.stats,
        })
