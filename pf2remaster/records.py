"""Content kinds and the typed records parsed from their attribute strings."""
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from .attrs import fields_dict
from .errors import UnknownChoiceTypeError


class ContentKind(Enum):
    ANCESTRY = 'Ancestry'
    ARMOR = 'Armor'
    BACKGROUND = 'Background'
    CLASS = 'Class'
    DEITY = 'Deity'
    FEAT = 'Feat'
    FEATURE = 'Feature'
    GOODY = 'Goody'
    HERITAGE = 'Heritage'
    LANGUAGE = 'Language'
    SHIELD = 'Shield'
    SKILL = 'Skill'
    SPELL = 'Spell'
    WEAPON = 'Weapon'

    @classmethod
    def parse(cls, type_name: str) -> 'ContentKind':
        """Resolve a choice type; any "<X> Feature" is a Feature."""
        if not isinstance(type_name, str):
            raise UnknownChoiceTypeError(f'Unknown choice type {type_name!r}')
        if type_name.endswith(' Feature'):
            return cls.FEATURE
        try:
            return cls(type_name)
        except ValueError:
            raise UnknownChoiceTypeError(f'Unknown choice type "{type_name}"') from None

    @classmethod
    def from_table(cls, table: str) -> 'ContentKind':
        for kind in cls:
            if kind.table == table:
                return kind
        raise UnknownChoiceTypeError(f'No content kind uses table "{table}"')

    @property
    def table(self) -> str:
        """Plural name of the catalog table (and of the choice list)."""
        if self is ContentKind.ANCESTRY:
            return 'ancestries'
        if self is ContentKind.CLASS:
            return 'classes'
        if self is ContentKind.DEITY:
            return 'deities'
        if self is ContentKind.GOODY:
            return 'goodies'
        return self.value.lower() + 's'

    @property
    def choice_list(self) -> Optional[str]:
        """Choice list an entry joins after registration, if any."""
        if self in (ContentKind.FEATURE, ContentKind.SPELL):
            return None
        if self is ContentKind.CLASS:
            return 'levels'
        return self.table

    @property
    def record_type(self):
        return RECORD_TYPES[self]


@dataclass(frozen=True)
class Record:
    """Base for typed records.

    FIELDS maps attribute keys to (record field, is list). LEGACY_FIELDS
    names keys legacy strings carry before a sweep renames or drops them.
    List items are names and stay strings even when they look numeric, as
    do scalars declared ``Optional[str]``.
    """
    name: str

    FIELDS: ClassVar[Dict[str, Tuple[str, bool]]] = {}
    LEGACY_FIELDS: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def from_attrs(cls, name: str, attrs: str) -> 'Record':
        parsed = fields_dict(attrs)
        values: Dict[str, Any] = {}
        for key, (attr, is_list) in cls.FIELDS.items():
            items = parsed.get(key)
            if is_list:
                values[attr] = tuple(str(item) for item in items or ())
            elif not items:
                values[attr] = None
            elif cls.__dataclass_fields__[attr].type == Optional[str]:
                values[attr] = str(items[0])
            else:
                values[attr] = items[0]
        return cls(name=name, **values)

    @classmethod
    def known_fields(cls) -> Tuple[str, ...]:
        return tuple(cls.FIELDS) + cls.LEGACY_FIELDS

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class AncestryRecord(Record):
    requires: Tuple[str, ...] = ()
    features: Tuple[str, ...] = ()
    selectables: Tuple[str, ...] = ()
    traits: Tuple[str, ...] = ()
    hit_points: Any = None
    size: Optional[str] = None
    speed: Any = None
    boosts: Tuple[str, ...] = ()
    flaws: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()

    FIELDS = {
        'Require': ('requires', True),
        'Features': ('features', True),
        'Selectables': ('selectables', True),
        'Traits': ('traits', True),
        'HitPoints': ('hit_points', False),
        'Size': ('size', False),
        'Speed': ('speed', False),
        'Boost': ('boosts', True),
        'Flaw': ('flaws', True),
        'Languages': ('languages', True),
    }


@dataclass(frozen=True)
class ArmorRecord(Record):
    category: Any = None
    price: Any = None
    ac: Any = None
    dex: Any = None
    check: Any = None
    speed: Any = None
    strength: Any = None
    bulk: Any = None
    group: Optional[str] = None
    traits: Tuple[str, ...] = ()

    FIELDS = {
        'Category': ('category', False),
        'Price': ('price', False),
        'AC': ('ac', False),
        'Dex': ('dex', False),
        'Check': ('check', False),
        'Speed': ('speed', False),
        'Str': ('strength', False),
        'Bulk': ('bulk', False),
        'Group': ('group', False),
        'Traits': ('traits', True),
    }
    LEGACY_FIELDS = ('Weight', 'Skill')


@dataclass(frozen=True)
class BackgroundRecord(Record):
    attributes: Tuple[str, ...] = ()
    skills: Tuple[str, ...] = ()
    feats: Tuple[str, ...] = ()
    traits: Tuple[str, ...] = ()

    FIELDS = {
        'Attribute': ('attributes', True),
        'Skill': ('skills', True),
        'Feat': ('feats', True),
        'Traits': ('traits', True),
    }
    LEGACY_FIELDS = ('Ability',)


@dataclass(frozen=True)
class ClassRecord(Record):
    requires: Tuple[str, ...] = ()
    attributes: Tuple[str, ...] = ()
    hit_points: Any = None
    features: Tuple[str, ...] = ()
    selectables: Tuple[str, ...] = ()
    languages: Tuple[str, ...] = ()
    spell_slots: Tuple[str, ...] = ()

    FIELDS = {
        'Require': ('requires', True),
        'Attribute': ('attributes', True),
        'HitPoints': ('hit_points', False),
        'Features': ('features', True),
        'Selectables': ('selectables', True),
        'Languages': ('languages', True),
        'SpellSlots': ('spell_slots', True),
    }
    LEGACY_FIELDS = ('Ability',)


@dataclass(frozen=True)
class DeityRecord(Record):
    font: Tuple[str, ...] = ()
    sanctification: Tuple[str, ...] = ()
    domains: Tuple[str, ...] = ()
    alternate_domains: Tuple[str, ...] = ()
    weapons: Tuple[str, ...] = ()
    skills: Tuple[str, ...] = ()
    spells: Tuple[str, ...] = ()
    attributes: Tuple[str, ...] = ()

    FIELDS = {
        'Font': ('font', True),
        'Sanctification': ('sanctification', True),
        'Domain': ('domains', True),
        'AlternateDomain': ('alternate_domains', True),
        'Weapon': ('weapons', True),
        'Skill': ('skills', True),
        'Spells': ('spells', True),
        'Attribute': ('attributes', True),
    }
    LEGACY_FIELDS = ('Alignment',)


@dataclass(frozen=True)
class FeatRecord(Record):
    traits: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()
    implies: Tuple[str, ...] = ()

    FIELDS = {
        'Traits': ('traits', True),
        'Require': ('requires', True),
        'Imply': ('implies', True),
    }
    LEGACY_FIELDS = ('Type',)


@dataclass(frozen=True)
class FeatureRecord(Record):
    sections: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()
    action: Any = None

    FIELDS = {
        'Section': ('sections', True),
        'Note': ('notes', True),
        'Action': ('action', False),
    }


@dataclass(frozen=True)
class GoodyRecord(Record):
    pattern: Optional[str] = None
    effect: Optional[str] = None
    value: Any = None
    attributes: Tuple[str, ...] = ()
    sections: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()

    FIELDS = {
        'Pattern': ('pattern', False),
        'Effect': ('effect', False),
        'Value': ('value', False),
        'Attribute': ('attributes', True),
        'Section': ('sections', True),
        'Note': ('notes', True),
    }


@dataclass(frozen=True)
class HeritageRecord(Record):
    traits: Tuple[str, ...] = ()
    features: Tuple[str, ...] = ()
    selectables: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()

    FIELDS = {
        'Traits': ('traits', True),
        'Features': ('features', True),
        'Selectables': ('selectables', True),
        'Require': ('requires', True),
    }


@dataclass(frozen=True)
class LanguageRecord(Record):
    traits: Tuple[str, ...] = ()

    FIELDS = {
        'Traits': ('traits', True),
    }


@dataclass(frozen=True)
class ShieldRecord(Record):
    price: Any = None
    ac: Any = None
    speed: Any = None
    bulk: Any = None
    hardness: Any = None
    hp: Any = None

    FIELDS = {
        'Price': ('price', False),
        'AC': ('ac', False),
        'Speed': ('speed', False),
        'Bulk': ('bulk', False),
        'Hardness': ('hardness', False),
        'HP': ('hp', False),
    }


@dataclass(frozen=True)
class SkillRecord(Record):
    attribute: Optional[str] = None
    subcategory: Optional[str] = None

    FIELDS = {
        'Attribute': ('attribute', False),
        'Subcategory': ('subcategory', False),
    }
    LEGACY_FIELDS = ('Ability',)


@dataclass(frozen=True)
class SpellRecord(Record):
    level: Any = None
    traits: Tuple[str, ...] = ()
    traditions: Tuple[str, ...] = ()
    cast: Any = None
    description: Optional[str] = None

    FIELDS = {
        'Level': ('level', False),
        'Traits': ('traits', True),
        'Traditions': ('traditions', True),
        'Cast': ('cast', False),
        'Description': ('description', False),
    }

    @property
    def is_focus(self) -> bool:
        return 'Focus' in self.traits

    @property
    def is_cantrip(self) -> bool:
        return 'Cantrip' in self.traits


@dataclass(frozen=True)
class WeaponRecord(Record):
    category: Any = None
    price: Any = None
    damage: Any = None
    bulk: Any = None
    hands: Any = None
    group: Optional[str] = None
    traits: Tuple[str, ...] = ()
    range: Any = None

    FIELDS = {
        'Category': ('category', False),
        'Price': ('price', False),
        'Damage': ('damage', False),
        'Bulk': ('bulk', False),
        'Hands': ('hands', False),
        'Group': ('group', False),
        'Traits': ('traits', True),
        'Range': ('range', False),
    }
    LEGACY_FIELDS = ('Crit',)


RECORD_TYPES = {
    ContentKind.ANCESTRY: AncestryRecord,
    ContentKind.ARMOR: ArmorRecord,
    ContentKind.BACKGROUND: BackgroundRecord,
    ContentKind.CLASS: ClassRecord,
    ContentKind.DEITY: DeityRecord,
    ContentKind.FEAT: FeatRecord,
    ContentKind.FEATURE: FeatureRecord,
    ContentKind.GOODY: GoodyRecord,
    ContentKind.HERITAGE: HeritageRecord,
    ContentKind.LANGUAGE: LanguageRecord,
    ContentKind.SHIELD: ShieldRecord,
    ContentKind.SKILL: SkillRecord,
    ContentKind.SPELL: SpellRecord,
    ContentKind.WEAPON: WeaponRecord,
}
