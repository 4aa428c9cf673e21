"""Integration tests registering the packaged catalog as a full rule set."""

from __future__ import annotations

import logging

import pytest

from pf2remaster.catalog import Catalog, build_catalog, load_legacy_catalog
from pf2remaster.config import RULESET_NAME, VERSION
from pf2remaster.registry import RuleRegistry
from pf2remaster.ruleset import Pathfinder2ERemaster

pytestmark = pytest.mark.integration


def test_fresh_build_logs_no_warnings(caplog: pytest.LogCaptureFixture) -> None:
    """The packaged data builds and registers without a single warning."""

    caplog.set_level(logging.WARNING, logger="pf2remaster")

    Pathfinder2ERemaster(catalog=build_catalog(load_legacy_catalog()))

    assert [r.getMessage() for r in caplog.records if r.levelno >= logging.WARNING] == []


def test_registry_identity(ruleset: RuleRegistry, remaster: Catalog) -> None:
    """The registry carries the edition name, version and rule notes."""

    assert ruleset.name == RULESET_NAME
    assert ruleset.version == VERSION
    assert VERSION in ruleset.rule_notes()
    assert Pathfinder2ERemaster("Playtest", catalog=remaster).name == f"{RULESET_NAME} (Playtest)"


def test_choice_lists(ruleset: RuleRegistry) -> None:
    """Every catalog table becomes a choice list."""

    assert {"Elf", "Leshy", "Orc", "Kholo"} <= set(ruleset.get_choices("ancestries"))
    assert "Witch" in ruleset.get_choices("levels")
    assert "Alchemist" not in ruleset.get_choices("levels")
    assert "Calistria" in ruleset.get_choices("deities")
    assert "Aiuvarin" in ruleset.get_choices("heritages")
    assert "Fey" in ruleset.get_choices("languages")
    assert "Sylvan" not in ruleset.get_choices("languages")
    assert "alignments" not in ruleset.choices
    assert "Feat" in ruleset.get_choices("choices")


def test_selectable_heritages(ruleset: RuleRegistry) -> None:
    """Ancestry heritages and versatile heritages are both selectable."""

    selectable = ruleset.get_choices("selectableFeatures")
    assert selectable["Ancient Elf"] == "Elf Heritage"
    assert selectable["Changeling"] == "Versatile Heritage"
    assert selectable["School Of Ars Grammatica"] == "Wizard Arcane School"


def test_spell_variants(ruleset: RuleRegistry) -> None:
    """Spells are listed per tradition; focus spells per class."""

    spells = ruleset.get_choices("spells")
    assert {"Fireball (A3)", "Fireball (P3)", "Heal (D1)", "Heal (P1)"} <= set(spells)
    assert "Force Bolt (A1)" not in spells
    assert "Courageous Anthem (O1)" in ruleset.get_choices("focusSpells.Bard")
    assert "Courageous Anthem (O1)" in spells
    assert "Force Bolt (A1)" in ruleset.get_choices("focusSpells.Wizard")
    assert "Phase Bolt (A1)" in ruleset.get_choices("focusSpells.Witch")


@pytest.mark.parametrize(
    ("feat", "bucket"),
    [
        ("Power Attack", "classFeats"),
        ("Rock Runner", "ancestryFeats"),
        ("Elf Atavism", "ancestryFeats"),
        ("Toughness", "generalFeats"),
    ],
)
def test_feat_buckets(ruleset: RuleRegistry, feat: str, bucket: str) -> None:
    """Feats land in the list their traits select."""

    assert feat in ruleset.get_choices(bucket)
    assert feat in ruleset.get_choices("feats")


def test_combat_statistics(ruleset: RuleRegistry) -> None:
    """Armor, shields and weapons carry their Remaster statistics."""

    assert ruleset.stat("armor", "str")["Full Plate"] == 4
    assert ruleset.stat("armor", "category")["Full Plate"] == "Heavy"
    assert ruleset.stat("shield", "hardness")["Steel Shield"] > 0
    assert ruleset.stat("weapon", "category")["Dwarven Waraxe"] == "Advanced"
    assert "Dwarven Waraxe" in ruleset.get_choices("advancedWeapons")
    assert ruleset.get_rule("weapons.Longsword.2", "weapons.Longsword").formula == '"1d8 S"'


def test_goodies(ruleset: RuleRegistry) -> None:
    """Packaged, weapon and skill goodies are all defined."""

    assert ruleset.goodies["Perception"].attributes == ("perception",)
    assert ruleset.goodies["Longsword"].attributes == ("longswordAttackModifier", "longswordDamageModifier")
    assert ruleset.goodies["Arcana Proficiency"].effect == "set"
    assert ruleset.get_rule("skills.Arcana", "skillNotes.goodiesArcanaAdjustment") is not None


def test_remaster_skills(ruleset: RuleRegistry) -> None:
    """Nature and Religion use Wisdom; dropped skills are gone."""

    notes = ruleset.get_choices("notes")
    assert notes["skills.Nature"] == "(Wis) %V"
    assert notes["skills.Religion"] == "(Wis) %V"
    assert "Perception" not in ruleset.get_choices("skills")


def test_class_extras_are_registered(ruleset: RuleRegistry) -> None:
    """Class and feat extras run during registration."""

    assert ruleset.get_rule("sorcererTradition", "features.Draconic Bloodline").formula == '"Arcane"'
    assert ruleset.get_rule("combatNotes.sneakAttack", "levels.Rogue") is not None
    assert ruleset.get_rule("rank.Will", "features.Canny Acumen (Will)") is not None
    assert ruleset.get_rule("featCount.Class", "featureNotes.ancientElf") is not None
