"""Registration of catalog entries into a rule registry.

choice_rules() is the single entry point: it resolves the choice type to a
ContentKind, parses the attribute string into the kind's typed record and
hands the record to the matching *_rules constructor. The constructors
validate their arguments, log and return on bad input, and otherwise only
record rules; every formula they write is an opaque string for the rule
engine to evaluate later.
"""
import logging
import re
from typing import Any, Callable, Dict, Sequence

from .errors import AttrSyntaxError, UnknownChoiceTypeError
from .extras import ancestry_rules_extra, class_rules_extra, feat_rules_extra
from .helpers import RANKS, TRADITIONS, bulk_value, camel, dict_lit, normalize_attribute
from .records import ContentKind, Record

logger = logging.getLogger(__name__)

NOTE_SECTIONS = ('attribute', 'combat', 'companion', 'feature', 'magic', 'save', 'skill')
GOODY_EFFECTS = {'add': '+', 'lower': 'v', 'raise': '^', 'set': '='}
ARMOR_CATEGORIES = ('Unarmored', 'Light', 'Medium', 'Heavy')
WEAPON_CATEGORIES = ('Unarmed', 'Simple', 'Martial', 'Advanced')
TRADITION_INITIALS = {tradition: tradition[0] for tradition in TRADITIONS}

FEATURE_ITEM_RE = re.compile(r'^(?:(.*?)\s*\?\s*)?(\d+):([^:]+)(?::(.+))?$')
PROFICIENCY_RE = re.compile(r'([A-Z]\w*)\sProficiency\s\((.*)\)$')
RANK_NOTE_RE = re.compile(r'^(Attack|Defense|Perception|Save|Skill|Spell) (Trained|Expert|Master|Legendary)(?: \((.*)\))?$')
NUMERIC_NOTE_RE = re.compile(r'^([-+]\d+)\s+(.+)$')
SPELL_SLOT_RE = re.compile(r'^([A-Z]+)(\d+):((?:\d+=\d+;)*\d+=\d+)$')
DAMAGE_RE = re.compile(r'^(\d*d\d+|\d+)(?:\s+([A-Za-z]+))?$')

# Note targets the rule engine can adjust from a "+N <target>" note
NOTE_TARGETS = {
    'Armor Class': 'armorClass',
    'Hit Points': 'hitPoints',
    'Initiative': 'initiative',
    'Perception': 'perception',
    'Speed': 'speed',
    'Fortitude': 'save.Fortitude',
    'Reflex': 'save.Reflex',
    'Will': 'save.Will',
}


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _check_lists(kind: str, name: str, **lists: Any) -> bool:
    for label, value in lists.items():
        if not _is_list(value):
            logger.warning('Bad %s list "%s" for %s %s', label, value, kind, name)
            return False
    return True


def attribute_rules(rules, attributes: Sequence[str]) -> None:
    """Attributes are modifiers: boosts add one, flaws subtract one."""
    for attribute in attributes:
        lower = attribute.lower()
        rules.define_choice('notes', f'{lower}:%V')
        rules.define_rule(lower,
            '', '=', '0',
            f'attributeBoosts.{attribute}', '+', None,
            f'attributeFlaws.{attribute}', '+', '-source'
        )
        rules.define_rule(f'{lower}Modifier', lower, '=', None)
    rules.define_rule('speed', '', '=', '25')
    rules.define_rule('hitPoints', 'constitutionModifier', '+', 'source * level')


def feature_list_rules(rules, features: Sequence[str], set_name: str, level_attr: str, selectable: bool) -> None:
    """Grant each "[test ?] level:Feature[:Category]" item once level_attr reaches its level."""
    set_prefix = camel(set_name) + 'Features'
    for item in features:
        m = FEATURE_ITEM_RE.match(str(item))
        if not m:
            logger.warning('Bad feature "%s" for %s', item, set_name)
            continue
        condition, level, feature, category = m.groups()
        note = f'{set_prefix}.{feature}'
        formula = f'source >= {level} ? 1 : null'
        if condition:
            formula = f'{condition} ? ({formula}) : null'
        if selectable:
            group = f'{set_name} {category}' if category else set_name
            rules.define_choice('selectableFeatures', f'{feature}:{group}')
            rules.define_rule(note, f'selectableFeatures.{set_name} - {feature}', '+=', None)
        else:
            rules.define_rule(note, level_attr, '=', formula)
        rules.define_rule('features.' + feature, note, '+=', None)
        m = PROFICIENCY_RE.search(feature)
        if not m:
            continue
        group = m.group(1).lower()
        for element in m.group(2).split('/'):
            choose = re.match(r'^Choose\s+(\d+)\s+from', element, re.IGNORECASE)
            if choose:
                rules.define_rule(f'{group}ChoiceCount', note, '+=', choose.group(1))
            else:
                rules.define_rule(f'{group}Proficiency.{element}', note, '=', '1')


def ancestry_rules(rules, name, requires, features, selectables, traits, hit_points, size, speed, boosts, flaws,
                   languages) -> None:
    if not name:
        logger.warning('Empty ancestry name')
        return
    if not _check_lists('ancestry', name, requires=requires, features=features, selectables=selectables,
                        traits=traits, boosts=boosts, flaws=flaws, languages=languages):
        return
    if not isinstance(hit_points, int):
        logger.warning('Bad hit points "%s" for ancestry %s', hit_points, name)
        return
    if speed is not None and not isinstance(speed, int):
        logger.warning('Bad speed "%s" for ancestry %s', speed, name)
        return
    for attribute in list(boosts) + list(flaws):
        if attribute != 'any' and normalize_attribute(attribute) is None:
            logger.warning('Bad attribute "%s" for ancestry %s', attribute, name)
            return

    prefix = camel(name)
    ancestry_level = prefix + 'Level'

    rules.define_rule(ancestry_level,
        'ancestry', '?', f'source == "{name}"',
        'level', '=', None
    )
    if requires:
        rules.define_prerequisites('validation', prefix + 'Ancestry', ancestry_level, requires)

    feature_list_rules(rules, features, name, ancestry_level, False)
    feature_list_rules(rules, selectables, name, ancestry_level, True)
    rules.define_sheet_element(name + ' Features', 'Feats+', None, '; ')
    rules.define_choice('extras', prefix + 'Features')

    rules.define_rule('hitPoints', ancestry_level, '+', str(hit_points))
    if speed:
        rules.define_rule('speed', ancestry_level, '=', str(speed))
    if size:
        rules.stat('ancestry', 'size')[name] = size
    rules.stat('ancestry', 'traits')[name] = '/'.join(traits)

    free_boosts = 0
    for attribute in boosts:
        if attribute == 'any':
            free_boosts += 1
        else:
            rules.define_rule(f'attributeBoosts.{attribute.capitalize()}', ancestry_level, '+=', '1')
    if free_boosts:
        rules.define_rule('attributeBoostCount', ancestry_level, '+=', str(free_boosts))
    for attribute in flaws:
        rules.define_rule(f'attributeFlaws.{attribute.capitalize()}', ancestry_level, '+=', '1')

    if languages:
        rules.define_rule('languageCount', ancestry_level, '=', str(len(languages)))
        for language in languages:
            if language != 'any':
                rules.define_rule('languages.' + language, ancestry_level, '=', '1')


def armor_rules(rules, name, category, price, ac, dex, check, speed, strength, bulk, group, traits) -> None:
    if not name:
        logger.warning('Empty armor name')
        return
    if not isinstance(ac, int):
        logger.warning('Bad ac "%s" for armor %s', ac, name)
        return
    bulk_amount = bulk_value(bulk)
    if bulk_amount is None:
        logger.warning('Bad bulk "%s" for armor %s', bulk, name)
        bulk_amount = 0
    if not isinstance(dex, int):
        logger.warning('Bad max dex "%s" for armor %s', dex, name)
        return
    if check is not None and not isinstance(check, int):
        logger.warning('Bad check penalty "%s" for armor %s', check, name)
        return
    if speed is not None and not isinstance(speed, int):
        logger.warning('Bad speed penalty "%s" for armor %s', speed, name)
        return
    if strength is not None and not isinstance(strength, int):
        logger.warning('Bad strength requirement "%s" for armor %s', strength, name)
        return
    if isinstance(category, int) and 0 <= category < len(ARMOR_CATEGORIES):
        category = ARMOR_CATEGORIES[category]
    elif isinstance(category, str) and category.capitalize() in ARMOR_CATEGORIES + ('None',):
        category = 'Unarmored' if category.capitalize() == 'None' else category.capitalize()
    else:
        logger.warning('Bad category "%s" for armor %s', category, name)
        return
    if not _check_lists('armor', name, traits=traits):
        return

    rules.stat('armor', 'ac')[name] = ac
    rules.stat('armor', 'bulk')[name] = bulk_amount
    rules.stat('armor', 'category')[name] = category
    rules.stat('armor', 'check')[name] = check or 0
    rules.stat('armor', 'dex')[name] = dex
    rules.stat('armor', 'speed')[name] = speed or 0
    rules.stat('armor', 'str')[name] = strength or 0
    if price is not None:
        rules.stat('armor', 'price')[name] = price
    if group:
        rules.stat('armor', 'group')[name] = group

    rules.define_rule('armorClass',
        '', '=', '10',
        'armor', '+', dict_lit(rules.stat('armor', 'ac')) + '[source]'
    )
    rules.define_rule('armorCategory',
        'armor', '=', dict_lit(rules.stat('armor', 'category')) + '[source]'
    )
    rules.define_rule('armorStrRequirement',
        'armor', '=', dict_lit(rules.stat('armor', 'str')) + '[source]'
    )
    rules.define_rule('armorCheckPenalty',
        'armor', '=', dict_lit(rules.stat('armor', 'check')) + '[source]'
    )
    rules.define_rule('armorSpeedPenalty',
        'armor', '=', dict_lit(rules.stat('armor', 'speed')) + '[source]'
    )
    rules.define_rule('bulk',
        'armor', '+=', dict_lit(rules.stat('armor', 'bulk')) + '[source]'
    )
    rules.define_rule('combatNotes.dexterityArmorClassAdjustment',
        'armor', 'v', dict_lit(rules.stat('armor', 'dex')) + '[source]'
    )
    rules.define_rule('speed', 'armorSpeedPenalty', '+', '-source')


def background_rules(rules, name, attributes, skills, feats, traits) -> None:
    if not name:
        logger.warning('Empty background name')
        return
    if not _check_lists('background', name, attributes=attributes, skills=skills, feats=feats, traits=traits):
        return
    for attribute in attributes:
        if normalize_attribute(attribute) is None:
            logger.warning('Bad attribute "%s" for background %s', attribute, name)
            return

    prefix = camel(name)
    background_level = prefix + 'Level'

    rules.define_rule(background_level,
        'background', '?', f'source == "{name}"',
        'level', '=', None
    )
    rules.stat('background', 'attributes')[name] = '/'.join(a.capitalize() for a in attributes)
    rules.define_rule('backgroundAttributes',
        'background', '=', dict_lit(rules.stat('background', 'attributes')) + '[source]'
    )
    # One boost from the listed pair plus one free boost
    rules.define_rule('attributeBoostCount', background_level, '+=', '2')
    for skill in skills:
        rules.define_rule('rank.' + skill, background_level, '^=', '1')
    for feat in feats:
        rules.define_rule('features.' + feat, background_level, '=', '1')


def spell_slot_rules(rules, caster_attr: str, spell_slots: Sequence[str]) -> None:
    """Define spellSlots.<type><level> from "A1:1=2;2=3" style items."""
    for slot in spell_slots:
        m = SPELL_SLOT_RE.match(str(slot))
        if not m:
            logger.warning('Bad spell slot "%s" for %s', slot, caster_attr)
            continue
        pairs = sorted(tuple(int(n) for n in pair.split('=')) for pair in m.group(3).split(';'))
        formula = 'null'
        for level, count in pairs:
            formula = f'source >= {level} ? {count} : {formula}'
        rules.define_rule(f'spellSlots.{m.group(1)}{m.group(2)}', caster_attr, '+=', formula)


def class_rules(rules, name, requires, attributes, hit_points, features, selectables, languages,
                spell_slots) -> None:
    if not name:
        logger.warning('Empty class name')
        return
    if not _check_lists('class', name, requires=requires, attributes=attributes, features=features,
                        selectables=selectables, languages=languages, spellSlots=spell_slots):
        return
    if not isinstance(hit_points, int):
        logger.warning('Bad hitPoints "%s" for class %s', hit_points, name)
        return
    for attribute in attributes:
        if normalize_attribute(attribute) is None:
            logger.warning('Bad attribute "%s" for class %s', attribute, name)
            return

    class_level = 'levels.' + name
    prefix = camel(name)

    if requires:
        rules.define_prerequisites('validation', prefix + 'Class', class_level, requires)

    feature_list_rules(rules, features, name, class_level, False)
    feature_list_rules(rules, selectables, name, class_level, True)
    rules.define_sheet_element(name + ' Features', 'Feats+', None, '; ')
    rules.define_choice('extras', prefix + 'Features')

    if languages:
        rules.define_rule('languageCount', class_level, '+', str(len(languages)))
        for language in languages:
            if language != 'any':
                rules.define_rule('languages.' + language, class_level, '=', '1')

    rules.stat('class', 'attributes')[name] = '/'.join(a.capitalize() for a in attributes)
    rules.define_rule('classAttribute.' + name,
        class_level, '=', dict_lit(rules.stat('class', 'attributes')) + f'["{name}"]'
    )
    rules.define_rule('hitPoints', class_level, '+=', f'source * {hit_points}')
    rules.define_rule('featCount.Ancestry', class_level, '+=', 'Math.floor((source + 3) / 4)')
    rules.define_rule('featCount.Class', class_level, '+=', 'Math.floor(source / 2)')
    rules.define_rule('featCount.General', class_level, '+=', 'source >= 3 ? Math.floor((source + 1) / 4) : null')
    rules.define_rule('featCount.Skill', class_level, '+=', 'Math.floor(source / 2)')
    rules.define_rule('skillIncreases', class_level, '+=', 'source >= 3 ? Math.floor((source - 1) / 2) : null')

    if spell_slots:
        spell_attribute = attributes[0].lower() if attributes else 'charisma'
        rules.define_rule('casterLevels.' + name, class_level, '=', None)
        spell_slot_rules(rules, 'casterLevels.' + name, spell_slots)
        for slot in spell_slots:
            spell_type = re.sub(r'\d.*', '', str(slot))
            tradition_spell_rules(rules, name, spell_type, spell_attribute)


def tradition_spell_rules(rules, caster: str, spell_type: str, spell_attribute: str) -> None:
    """Spell attack and DC for spells of type spell_type cast by caster."""
    tradition = next((t for t in TRADITIONS if t[0] == spell_type), spell_type)
    if spell_type != caster:
        rules.define_rule('casterLevels.' + spell_type, 'casterLevels.' + caster, '^=', None)
    rules.define_rule('spellAttackModifier.' + spell_type,
        'casterLevels.' + spell_type, '?', None,
        spell_attribute + 'Modifier', '=', None,
        'proficiencyBonus.' + tradition, '+', None
    )
    rules.define_rule('spellDifficultyClass.' + spell_type,
        'casterLevels.' + spell_type, '?', None,
        'spellAttackModifier.' + spell_type, '=', '10 + source'
    )


def deity_rules(rules, name, font, sanctification, domains, alternate_domains, weapons, skills, spells,
                attributes) -> None:
    if not name:
        logger.warning('Empty deity name')
        return
    if not _check_lists('deity', name, font=font, sanctification=sanctification, domains=domains,
                        alternateDomains=alternate_domains, weapons=weapons, skills=skills, spells=spells,
                        attributes=attributes):
        return
    for f in font:
        if f not in ('Harm', 'Heal'):
            logger.warning('Bad font "%s" for deity %s', f, name)
            return
    for s in sanctification:
        if s not in ('Holy', 'Unholy'):
            logger.warning('Bad sanctification "%s" for deity %s', s, name)
            return
    for spell in spells:
        if not re.match(r'^\d+:.+', str(spell)):
            logger.warning('Bad spell "%s" for deity %s', spell, name)
            return
    for attribute in attributes:
        if normalize_attribute(attribute) is None:
            logger.warning('Bad attribute "%s" for deity %s', attribute, name)
            return

    stats = {
        'font': '/'.join(font),
        'sanctification': '/'.join(sanctification),
        'domains': '/'.join(domains),
        'alternateDomains': '/'.join(alternate_domains),
        'weapon': '/'.join(weapons),
        'skill': '/'.join(skills),
        'spells': '/'.join(str(s) for s in spells),
        'attribute': '/'.join(a.capitalize() for a in attributes),
    }
    for field, value in stats.items():
        rules.stat('deity', field)[name] = value
        rules.define_rule('deity' + field[0].upper() + field[1:],
            'deity', '=', dict_lit(rules.stat('deity', field)) + '[source]'
        )


def feat_rules(rules, name, requires, implies, traits) -> None:
    if not name:
        logger.warning('Empty feat name')
        return
    if not _check_lists('feat', name, requires=requires, implies=implies, traits=traits):
        return

    prefix = camel(name)
    if requires:
        rules.define_prerequisites('validation', prefix + 'Feat', 'feats.' + name, requires)
    if implies:
        rules.define_prerequisites('sanity', prefix + 'Feat', 'feats.' + name, implies)
    rules.define_rule('features.' + name, 'feats.' + name, '=', None)
    for trait in traits:
        if trait != 'General':
            rules.define_rule(f'sum{trait.replace(" ", "")}Feats', 'feats.' + name, '+=', None)


def classify_feat(rules, traits: Sequence[str]) -> str:
    """Name the feat list a feat with these traits belongs to.

    Archetype and class traits win over ancestry and heritage traits.
    """
    classes = rules.get_choices('levels')
    if 'Archetype' in traits or any(trait in classes for trait in traits):
        return 'classFeats'
    ancestries = rules.get_choices('ancestries')
    heritages = rules.get_choices('heritages')
    if any(trait in ancestries or trait in heritages for trait in traits):
        return 'ancestryFeats'
    return 'generalFeats'


def _rank_note_rules(rules, note_name: str, note: str) -> None:
    m = RANK_NOTE_RE.match(note)
    if m:
        group, rank, items = m.groups()
        for item in (items or group).split(';'):
            item = item.strip()
            choose = re.match(r'^Choose\s+(\d+)\s+from', item, re.IGNORECASE)
            if choose:
                rules.define_rule(f'{group.lower()}ChoiceCount', note_name, '+=', choose.group(1))
            else:
                rules.define_rule('rank.' + item, note_name, '^=', str(RANKS[rank]))
        return
    m = PROFICIENCY_RE.match(note)
    if m:
        group = m.group(1).lower()
        for element in m.group(2).split('/'):
            choose = re.match(r'^Choose\s+(\d+)', element)
            if choose:
                rules.define_rule(f'{group}ChoiceCount', note_name, '+=', choose.group(1))
            else:
                rules.define_rule(f'{group}Proficiency.{element}', note_name, '=', '1')


def feature_rules(rules, name, sections, notes, action=None) -> None:
    if not name:
        logger.warning('Empty feature name')
        return
    if not _check_lists('feature', name, sections=sections, notes=notes):
        return
    if len(sections) != len(notes):
        logger.warning('%d sections, %d notes for feature %s', len(sections), len(notes), name)
        return
    for section in sections:
        if section not in NOTE_SECTIONS:
            logger.warning('Bad section "%s" for feature %s', section, name)
            return

    prefix = camel(name)
    if action is not None:
        rules.stat('feature', 'action')[name] = action
    for section, note in zip(sections, notes):
        note_name = f'{section}Notes.{prefix}'
        rules.define_choice('notes', f'{note_name}:{note}')
        rules.define_rule(note_name, 'features.' + name, '=', None)
        _rank_note_rules(rules, note_name, str(note))
        for part in str(note).split('/'):
            m = NUMERIC_NOTE_RE.match(part.strip())
            if m and m.group(2) in NOTE_TARGETS:
                rules.define_rule(NOTE_TARGETS[m.group(2)], note_name, '+', str(int(m.group(1))))


def goody_rules(rules, name, pattern, effect, value, attributes, sections, notes) -> None:
    """Let a starred note line matching pattern adjust attributes."""
    if not name:
        logger.warning('Empty goody name')
        return
    try:
        re.compile(pattern or '')
    except re.error as e:
        logger.warning('Bad pattern "%s" for goody %s: %s', pattern, name, e)
        return
    if not pattern:
        logger.warning('Empty pattern for goody %s', name)
        return
    if effect not in GOODY_EFFECTS:
        logger.warning('Bad effect "%s" for goody %s', effect, name)
        return
    if not _check_lists('goody', name, attributes=attributes, sections=sections, notes=notes):
        return
    if len(sections) != len(notes):
        logger.warning('%d sections, %d notes for goody %s', len(sections), len(notes), name)
        return

    if value is None:
        value = 1
    rules.define_goody(name, pattern, effect, value, attributes, sections, notes)
    goody_attr = 'goodies.' + camel(name)
    for section, note in zip(sections, notes):
        note_name = f'{section}Notes.goodies{name.replace(" ", "")}Adjustment'
        rules.define_choice('notes', f'{note_name}:{note}')
        rules.define_rule(note_name, goody_attr, '=', None)
    for attribute in attributes:
        rules.define_rule(attribute, goody_attr, GOODY_EFFECTS[effect], None)


def heritage_rules(rules, name, traits, features, selectables, requires) -> None:
    """A versatile heritage, available to every ancestry."""
    if not name:
        logger.warning('Empty heritage name')
        return
    if not _check_lists('heritage', name, traits=traits, features=features, selectables=selectables,
                        requires=requires):
        return

    prefix = camel(name)
    heritage_level = prefix + 'Level'

    rules.define_choice('selectableFeatures', f'{name}:Versatile Heritage')
    rules.define_rule(heritage_level,
        'features.' + name, '?', None,
        'level', '=', None
    )
    if requires:
        rules.define_prerequisites('validation', prefix + 'Heritage', heritage_level, requires)
    feature_list_rules(rules, features, name, heritage_level, False)
    feature_list_rules(rules, selectables, name, heritage_level, True)
    rules.stat('heritage', 'traits')[name] = '/'.join(traits)


def language_rules(rules, name, traits=()) -> None:
    if not name:
        logger.warning('Empty language name')
        return
    if traits:
        rules.stat('language', 'traits')[name] = '/'.join(traits)


def shield_rules(rules, name, price, ac, speed, bulk, hardness, hp) -> None:
    if not name:
        logger.warning('Empty shield name')
        return
    if not isinstance(ac, int):
        logger.warning('Bad ac "%s" for shield %s', ac, name)
        return
    for label, value in (('speed', speed), ('hardness', hardness), ('hp', hp)):
        if value is not None and not isinstance(value, int):
            logger.warning('Bad %s "%s" for shield %s', label, value, name)
            return
    bulk_amount = bulk_value(bulk)
    if bulk_amount is None:
        logger.warning('Bad bulk "%s" for shield %s', bulk, name)
        bulk_amount = 0

    rules.stat('shield', 'ac')[name] = ac
    rules.stat('shield', 'bulk')[name] = bulk_amount
    rules.stat('shield', 'hardness')[name] = hardness or 0
    rules.stat('shield', 'hp')[name] = hp or 0
    rules.stat('shield', 'speed')[name] = speed or 0
    if price is not None:
        rules.stat('shield', 'price')[name] = price

    rules.define_rule('armorClass',
        'shield', '+', dict_lit(rules.stat('shield', 'ac')) + '[source]'
    )
    rules.define_rule('shieldHardness',
        'shield', '=', dict_lit(rules.stat('shield', 'hardness')) + '[source]'
    )
    rules.define_rule('shieldHitPoints',
        'shield', '=', dict_lit(rules.stat('shield', 'hp')) + '[source]'
    )
    rules.define_rule('speed',
        'shield', '+', '-' + dict_lit(rules.stat('shield', 'speed')) + '[source]'
    )


def skill_rules(rules, name, attribute, subcategory=None) -> None:
    if not name:
        logger.warning('Empty skill name')
        return
    lower = normalize_attribute(attribute)
    if lower is None:
        logger.warning('Bad attribute "%s" for skill %s', attribute, name)
        return

    if subcategory:
        rules.stat('skill', 'subcategory')[name] = subcategory
    rules.define_choice('notes', f'skills.{name}:({lower[:3].capitalize()}) %V')
    rules.define_rule('proficiencyBonus.' + name,
        'rank.' + name, '=', '2 * source',
        'level', '+', None
    )
    rules.define_rule('skills.' + name,
        lower + 'Modifier', '=', None,
        'proficiencyBonus.' + name, '+', None,
        f'skillNotes.goodies{name.replace(" ", "")}Adjustment', '+', None
    )
    rules.define_rule('rank.' + name, 'skillsChosen.' + name, '^=', 'source ? 1 : null')


def spell_rules(rules, name, tradition, level, traits, cast, description) -> None:
    """One tradition's variant of a spell, e.g. "Fireball (A3)"."""
    if not name:
        logger.warning('Empty spell name')
        return
    if tradition not in TRADITIONS:
        logger.warning('Bad tradition "%s" for spell %s', tradition, name)
        return
    if not isinstance(level, int) or not 1 <= level <= 10:
        logger.warning('Bad level "%s" for spell %s', level, name)
        return
    if not _check_lists('spell', name, traits=traits):
        return

    spell_type = TRADITION_INITIALS[tradition]
    rules.stat('spell', 'level')[name] = level
    rules.stat('spell', 'tradition')[name] = tradition
    if cast is not None:
        rules.stat('spell', 'cast')[name] = cast
    rules.define_choice('notes', f'spells.{name}:{description or ""}')
    rules.define_rule('spells.' + name, f'spellDifficultyClass.{spell_type}', '=', None)


def weapon_rules(rules, name, category, price, damage, bulk, hands, group, traits, range_) -> None:
    if not name:
        logger.warning('Bad name for weapon "%s"', name)
        return
    if isinstance(category, int) and 0 <= category < len(WEAPON_CATEGORIES):
        category = WEAPON_CATEGORIES[category]
    elif not (isinstance(category, str) and category.capitalize() in WEAPON_CATEGORIES):
        logger.warning('Bad category "%s" for weapon %s', category, name)
        return
    category = category.capitalize()
    m = DAMAGE_RE.match(str(damage))
    if not m:
        logger.warning('Bad damage "%s" for weapon %s', damage, name)
        return
    if hands is not None and str(hands) not in ('1', '1+', '2'):
        logger.warning('Bad hands "%s" for weapon %s', hands, name)
        return
    if not _check_lists('weapon', name, traits=traits):
        return
    if range_ is not None and not isinstance(range_, int):
        logger.warning('Bad range "%s" for weapon %s', range_, name)
        range_ = None

    dice = m.group(1)
    if dice.startswith('d'):
        dice = '1' + dice
    damage = dice + (' ' + m.group(2) if m.group(2) else '')
    is_finesse = 'Finesse' in traits
    is_thrown = any(trait.startswith('Thrown') for trait in traits)
    is_ranged = bool(range_) and not is_thrown
    weapon_name = 'weapons.' + name
    rank_attr = 'rank.Unarmed Attacks' if category == 'Unarmed' else f'rank.{category} Weapons'
    fmt = '%V (%1 %2%3' + (" R%4'" if range_ else '') + ')'

    rules.stat('weapon', 'category')[name] = category
    rules.stat('weapon', 'bulk')[name] = bulk_value(bulk) or 0
    if group:
        rules.stat('weapon', 'group')[name] = group
    if hands is not None:
        rules.stat('weapon', 'hands')[name] = str(hands)
    if price is not None:
        rules.stat('weapon', 'price')[name] = price

    rules.define_choice('notes', f'{weapon_name}:{fmt}')
    rules.define_rule('weaponRank.' + name,
        weapon_name, '?', None,
        rank_attr, '=', None,
        'rank.' + name, '^', None
    )
    rules.define_rule('weaponProficiencyBonus.' + name,
        'weaponRank.' + name, '=', 'source > 0 ? 2 * source : null',
        'level', '+', None
    )
    rules.define_rule('attackBonus.' + name,
        weapon_name, '=', '0',
        'betterAttackAdjustment' if is_finesse else
            'combatNotes.dexterityAttackAdjustment' if is_ranged else
            'combatNotes.strengthAttackAdjustment', '+', None,
        'weaponProficiencyBonus.' + name, '+', None,
        'weaponAttackAdjustment.' + name, '+', None
    )
    if is_ranged and 'Propulsive' not in traits:
        rules.define_rule('damageBonus.' + name,
            weapon_name, '=', '0',
            'weaponDamageAdjustment.' + name, '+', None
        )
    else:
        rules.define_rule('damageBonus.' + name,
            weapon_name, '=', '0',
            'combatNotes.propulsiveDamageAdjustment' if is_ranged else
                'combatNotes.strengthDamageAdjustment', '+', None,
            'weaponDamageAdjustment.' + name, '+', None
        )
    rules.define_rule(weapon_name + '.1',
        'attackBonus.' + name, '=', 'source >= 0 ? "+" + source : source'
    )
    rules.define_rule(weapon_name + '.2', weapon_name, '=', f'"{damage}"')
    rules.define_rule(weapon_name + '.3',
        'damageBonus.' + name, '=', 'source > 0 ? "+" + source : source == 0 ? "" : source'
    )
    if range_:
        rules.define_rule('range.' + name,
            weapon_name, '=', str(range_),
            'weaponRangeAdjustment.' + name, '+', None
        )
        rules.define_rule(weapon_name + '.4', 'range.' + name, '=', None)
    rules.define_rule('rank.' + name, 'weaponsChosen.' + name, '^=', 'source ? 1 : null')


def _register_ancestry(rules, record, attrs):
    ancestry_rules(rules, record.name, record.requires, record.features, record.selectables, record.traits,
                   record.hit_points, record.size, record.speed, record.boosts, record.flaws, record.languages)
    ancestry_rules_extra(rules, record.name)


def _register_armor(rules, record, attrs):
    armor_rules(rules, record.name, record.category, record.price, record.ac, record.dex, record.check,
                record.speed, record.strength, record.bulk, record.group, record.traits)


def _register_background(rules, record, attrs):
    background_rules(rules, record.name, record.attributes, record.skills, record.feats, record.traits)


def _register_class(rules, record, attrs):
    class_rules(rules, record.name, record.requires, record.attributes, record.hit_points, record.features,
                record.selectables, record.languages, record.spell_slots)
    class_rules_extra(rules, record.name)


def _register_deity(rules, record, attrs):
    deity_rules(rules, record.name, record.font, record.sanctification, record.domains,
                record.alternate_domains, record.weapons, record.skills, record.spells, record.attributes)


def _register_feat(rules, record, attrs):
    feat_rules(rules, record.name, record.requires, record.implies, record.traits)
    feat_rules_extra(rules, record.name)
    rules.add_choice(classify_feat(rules, record.traits), record.name, attrs)
    if 'Skill' in record.traits:
        rules.add_choice('skillFeats', record.name, attrs)


def _register_feature(rules, record, attrs):
    feature_rules(rules, record.name, record.sections, record.notes, record.action)


def _register_goody(rules, record, attrs):
    goody_rules(rules, record.name, record.pattern, record.effect, record.value, record.attributes,
                record.sections, record.notes)


def _register_heritage(rules, record, attrs):
    heritage_rules(rules, record.name, record.traits, record.features, record.selectables, record.requires)


def _register_language(rules, record, attrs):
    language_rules(rules, record.name, record.traits)


def _register_shield(rules, record, attrs):
    shield_rules(rules, record.name, record.price, record.ac, record.speed, record.bulk, record.hardness,
                 record.hp)


def _register_skill(rules, record, attrs):
    skill_rules(rules, record.name, record.attribute, record.subcategory)


def _register_spell(rules, record, attrs):
    """Register one variant per tradition.

    Focus spells join focusSpells (and focusSpells.<Class> for class traits)
    instead of the global spells list; focus cantrips join both.
    """
    if not record.traditions:
        logger.warning('No traditions for spell %s', record.name)
        return
    classes = [trait for trait in record.traits if trait in rules.get_choices('levels')]
    for tradition in record.traditions:
        initial = TRADITION_INITIALS.get(tradition)
        if initial is None:
            logger.warning('Bad tradition "%s" for spell %s', tradition, record.name)
            continue
        variant = f'{record.name} ({initial}{record.level})'
        variant_attrs = f'{attrs} Tradition={tradition}'.strip()
        spell_rules(rules, variant, tradition, record.level, record.traits, record.cast, record.description)
        if record.is_focus:
            rules.add_choice('focusSpells', variant, variant_attrs)
            for clas in classes:
                rules.add_choice('focusSpells.' + clas, variant, variant_attrs)
        if not record.is_focus or record.is_cantrip:
            rules.add_choice('spells', variant, variant_attrs)


def _register_weapon(rules, record, attrs):
    weapon_rules(rules, record.name, record.category, record.price, record.damage, record.bulk, record.hands,
                 record.group, record.traits, record.range)
    if record.category in ('Advanced', 3):
        rules.add_choice('advancedWeapons', record.name, attrs)


REGISTRARS: Dict[ContentKind, Callable[[Any, Record, str], None]] = {
    ContentKind.ANCESTRY: _register_ancestry,
    ContentKind.ARMOR: _register_armor,
    ContentKind.BACKGROUND: _register_background,
    ContentKind.CLASS: _register_class,
    ContentKind.DEITY: _register_deity,
    ContentKind.FEAT: _register_feat,
    ContentKind.FEATURE: _register_feature,
    ContentKind.GOODY: _register_goody,
    ContentKind.HERITAGE: _register_heritage,
    ContentKind.LANGUAGE: _register_language,
    ContentKind.SHIELD: _register_shield,
    ContentKind.SKILL: _register_skill,
    ContentKind.SPELL: _register_spell,
    ContentKind.WEAPON: _register_weapon,
}


def choice_rules(rules, choice_type: str, name: str, attrs: str) -> None:
    """Add name as a choice of choice_type and register the rules in attrs.

    An unknown choice type or an unparseable attribute string is logged and
    the registry is left untouched.
    """
    try:
        kind = ContentKind.parse(choice_type)
    except UnknownChoiceTypeError as e:
        logger.warning('%s', e)
        return
    try:
        record = kind.record_type.from_attrs(name, attrs)
    except AttrSyntaxError as e:
        logger.warning('Bad attributes for %s %s: %s', choice_type, name, e)
        return
    REGISTRARS[kind](rules, record, attrs)
    if kind.choice_list:
        rules.add_choice(kind.choice_list, name, attrs)
