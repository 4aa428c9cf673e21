"""The Pathfinder 2E Remaster rule set.

Pathfinder2ERemaster() builds a RuleRegistry from a catalog (by default the
packaged one) by handing every entry to choice_rules, grouped the way the
character sheet uses them.
"""
import logging
from typing import Mapping, Optional

from . import config
from .attrs import check_attr_table
from .catalog import Catalog, default_catalog
from .helpers import ATTRIBUTES, camel
from .records import ContentKind
from .registry import RuleRegistry
from .rules import attribute_rules, choice_rules

logger = logging.getLogger(__name__)

CHOICES = [kind.value for kind in ContentKind]


def _fields(kind: ContentKind):
    return kind.record_type.FIELDS


def _register(rules, kind: ContentKind, table: Mapping[str, str]) -> None:
    check_attr_table(table, _fields(kind))
    for name, attrs in table.items():
        rules.choice_rules(rules, kind.value, name, attrs)


def combat_rules(rules, armors, shields, weapons) -> None:
    _register(rules, ContentKind.ARMOR, armors)
    _register(rules, ContentKind.SHIELD, shields)
    check_attr_table(weapons, _fields(ContentKind.WEAPON))
    for weapon, attrs in weapons.items():
        pattern = r'\s+'.join(weapon.split())
        prefix = camel(weapon)
        # A trailing value needs no preceding word (or parentheses), so
        # "punching dagger +2" does not also improve the dagger
        rules.choice_rules(rules, 'Goody', weapon,
            f'Pattern="([-+]\\d)\\s+{pattern}|(?:^\\W*|\\(){pattern}\\s+([-+]\\d)" '
            'Effect=add '
            f'Attribute={prefix}AttackModifier,{prefix}DamageModifier '
            'Value="$1 || $2" '
            'Section=combat Note="%V Attack and damage"'
        )
        rules.choice_rules(rules, 'Weapon', weapon, attrs)


def identity_rules(rules, ancestries, backgrounds, classes, deities, heritages) -> None:
    _register(rules, ContentKind.ANCESTRY, ancestries)
    _register(rules, ContentKind.BACKGROUND, backgrounds)
    _register(rules, ContentKind.CLASS, classes)
    _register(rules, ContentKind.DEITY, deities)
    _register(rules, ContentKind.HERITAGE, heritages)


def magic_rules(rules, spells) -> None:
    _register(rules, ContentKind.SPELL, spells)


def talent_rules(rules, feats, features, goodies, languages, skills) -> None:
    _register(rules, ContentKind.FEAT, feats)
    _register(rules, ContentKind.FEATURE, features)
    _register(rules, ContentKind.GOODY, goodies)
    _register(rules, ContentKind.LANGUAGE, languages)
    check_attr_table(skills, _fields(ContentKind.SKILL))
    for skill, attrs in skills.items():
        rules.choice_rules(rules, 'Skill', skill, attrs)
        pattern = r'\s+'.join(skill.split())
        rules.choice_rules(rules, 'Goody', skill,
            f'Pattern="([-+]\\d).*\\s+{pattern}\\s+Skill|{pattern}\\s+skill\\s+([-+]\\d)" '
            'Effect=add '
            'Value="$1 || $2" '
            f'Attribute="skills.{skill}" '
            f'Section=skill Note="%V {skill}"'
        )
        rules.choice_rules(rules, 'Goody', skill + ' Proficiency',
            f'Pattern="{pattern}\\s+proficiency" '
            'Effect=set '
            f'Attribute="rank.{skill}" '
            f'Section=skill Note="Proficiency in {skill}"'
        )


def Pathfinder2ERemaster(edition: Optional[str] = None, catalog: Optional[Catalog] = None) -> RuleRegistry:
    """Build the rule set. ``edition`` only changes the registry name."""
    catalog = catalog or default_catalog()
    name = config.RULESET_NAME if not edition else f'{config.RULESET_NAME} ({edition})'
    rules = RuleRegistry(name, config.VERSION)

    rules.define_choice('choices', CHOICES)
    rules.choice_rules = choice_rules
    rules.rule_notes = rule_notes
    rules.define_choice('extras',
        'feats', 'featCount', 'sanityNotes', 'selectableFeatureCount', 'validationNotes'
    )
    rules.define_choice('preset', 'ancestry', 'background', 'level', 'levels')

    attribute_rules(rules, ATTRIBUTES)
    combat_rules(rules, catalog.get('armors'), catalog.get('shields'), catalog.get('weapons'))
    # Classes must be known before spells and feats can be associated with them
    identity_rules(rules, catalog.get('ancestries'), catalog.get('backgrounds'), catalog.get('classes'),
                   catalog.get('deities'), catalog.get('heritages'))
    magic_rules(rules, catalog.get('spells'))
    talent_rules(rules, catalog.get('feats'), catalog.get('features'), catalog.get('goodies'),
                 catalog.get('languages'), catalog.get('skills'))

    logger.info('Registered %s with %d choice lists', rules.name, len(rules.choices))
    return rules


def rule_notes() -> str:
    return (
        '<h2>Pathfinder 2E Remaster Quilvyn Module Notes</h2>\n'
        f'Pathfinder 2E Remaster Quilvyn Module Version {config.VERSION}\n'
        '\n'
        '<h3>Usage Notes</h3>\n'
        '<p>\n'
        '<ul>\n'
        '  <li>\n'
        '  Entries derived from the legacy rules are rebuilt from the legacy\n'
        '  tables each time the catalog is loaded, so corrections to the\n'
        '  legacy text carry over.\n'
        '  </li><li>\n'
        '  Spells appear once per tradition, e.g. "Fireball (A3)" and\n'
        '  "Fireball (P3)".\n'
        '  </li>\n'
        '</ul>\n'
        '</p>\n'
        '\n'
        '<h3>Limitations</h3>\n'
        '<p>\n'
        '<ul>\n'
        '  <li>\n'
        '  Alignment and magic schools are not part of the Remaster rules.\n'
        '  </li>\n'
        '</ul>\n'
        '</p>\n'
        '\n'
        '<h3>Known Bugs</h3>\n'
        '<p>\n'
        '<ul>\n'
        '</ul>\n'
        '</p>\n'
    )
