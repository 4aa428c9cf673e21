"""Tests for catalog loading, sweeps and the Remaster build."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest
import yaml

from pf2remaster import config
from pf2remaster.attrs import get_attr_value, get_attr_value_array, is_well_formed
from pf2remaster.catalog import (
    Catalog,
    ContentTable,
    build_catalog,
    default_catalog,
    load_legacy_catalog,
    regex_sweep,
    rename_field_sweep,
    replace_all_sweep,
    strength_modifier_sweep,
    strength_to_modifier,
    sweep_from_spec,
)
from pf2remaster.errors import CatalogError, MissingSourceError, NoOpPatchError, PatchError, SweepError
from pf2remaster.patches import TEXT_OPERATIONS, apply_patches, patches_from_specs

LEGACY = {
    "ancestries": {
        "Elf": 'Features=Fast Selectables="1:Arctic Elf","1:Cavern Elf" HitPoints=6',
        "Human": "Boost=any,any HitPoints=8",
    },
    "armors": {
        "Leather": "Weight=1 AC=1 Dex=4 Skill=1 Speed=0 Str=10 Bulk=1",
        "Full Plate": "Weight=3 AC=6 Dex=0 Skill=3 Speed=10 Str=18 Bulk=4",
    },
}


@pytest.mark.unit
@pytest.mark.parametrize(
    ("attrs", "expected"),
    [
        ("AC=6 Str=18 Bulk=4", "AC=6 Str=4 Bulk=4"),
        ("Str=16", "Str=3"),
        ("Str=12", "Str=1"),
        ("Str=10", "Str=0"),
        ("Str=0", "Str=0"),
        ("Str=9", "Str=0"),
        ("AC=1", "AC=1"),
    ],
)
def test_strength_to_modifier(attrs: str, expected: str) -> None:
    """Scores become modifiers; below 10 means no requirement."""

    assert strength_to_modifier(attrs) == expected


@pytest.mark.unit
def test_strength_to_modifier_rejects_non_scores() -> None:
    """A requirement that is not a score cannot be converted."""

    with pytest.raises(CatalogError):
        strength_to_modifier("Str=heavy")


@pytest.mark.unit
def test_strength_modifier_sweep_cannot_run_twice() -> None:
    """Re-applying a non-idempotent sweep is an error, not a silent rewrite."""

    table = ContentTable("armors", {"Full Plate": "AC=6 Str=18"})

    swept = table.sweep(strength_modifier_sweep())

    assert swept["Full Plate"] == "AC=6 Str=4"
    assert swept.sweeps == ("strength_modifier",)
    with pytest.raises(SweepError):
        swept.sweep(strength_modifier_sweep())
    assert table["Full Plate"] == "AC=6 Str=18"


@pytest.mark.unit
def test_idempotent_sweeps_may_repeat() -> None:
    """Repeating an idempotent sweep leaves the text as the first pass did."""

    table = ContentTable("skills", {"Arcana": "Ability=intelligence"})
    sweep = replace_all_sweep("Ability", "Attribute")

    once = table.sweep(sweep)
    twice = once.sweep(sweep)

    assert once["Arcana"] == twice["Arcana"] == "Attribute=intelligence"
    assert len(twice.sweeps) == 2


@pytest.mark.unit
def test_replace_all_sweep_idempotence_depends_on_the_text() -> None:
    """A replacement that contains its own search text is not idempotent."""

    assert replace_all_sweep("Ability", "Attribute").idempotent
    assert not replace_all_sweep("Str", "Strength").idempotent


@pytest.mark.unit
def test_regex_and_rename_sweeps() -> None:
    """Regex sweeps substitute; rename sweeps change field keys."""

    assert regex_sweep(r" Crit=\S+", "").apply("Damage=d8 Crit=+d10 Bulk=2") == "Damage=d8 Bulk=2"
    assert rename_field_sweep("Type", "Traits").apply('Type=Elf Require="x"') == 'Traits=Elf Require="x"'


@pytest.mark.unit
@pytest.mark.parametrize(
    ("spec", "before", "after"),
    [
        ("strength_modifier", "Str=14", "Str=2"),
        ({"replace_all": ["Bulk=.1", "Bulk=L"]}, "Bulk=.1", "Bulk=L"),
        ({"regex": {"pattern": "Alignment=\\S+ ?", "replacement": ""}}, "Alignment=LN Font=Heal", "Font=Heal"),
        ({"rename_field": ["Weight", "Category"]}, "Weight=2 AC=4", "Category=2 AC=4"),
    ],
)
def test_sweep_from_spec(spec: object, before: str, after: str) -> None:
    """Sweeps are declared by name with list or mapping arguments."""

    assert sweep_from_spec(spec).apply(before) == after


@pytest.mark.unit
@pytest.mark.parametrize("spec", ["shuffle", {"replace_all": ["only"]}, {"a": 1, "b": 2}, 7])
def test_bad_sweep_specs(spec: object) -> None:
    """Unknown sweeps and wrong arguments are catalog errors."""

    with pytest.raises(CatalogError):
        sweep_from_spec(spec)


@pytest.mark.unit
def test_content_table_is_read_only() -> None:
    """Tables cannot be changed after construction."""

    table = ContentTable("feats", {"Toughness": "Traits=General"})

    with pytest.raises(TypeError):
        table["Toughness"] = "Traits=Skill"  # type: ignore[index]
    assert dict(table) == {"Toughness": "Traits=General"}
    assert table.to_dict() == {"Toughness": "Traits=General"}


@pytest.mark.unit
def test_catalog_table_access() -> None:
    """Tables are reachable by key, by attribute and through get()."""

    feats = ContentTable("feats", {"Toughness": "Traits=General"})
    catalog = Catalog({"feats": feats})

    assert catalog["feats"] is feats
    assert catalog.feats is feats
    assert "feats" in catalog
    assert len(catalog.get("spells")) == 0
    with pytest.raises(AttributeError):
        catalog.spells  # noqa: B018


@pytest.mark.integration
def test_build_catalog_inherits_derives_and_sweeps(write_tables: Callable[..., tuple[Path, Path]]) -> None:
    """A table file can inherit, derive, declare literals and sweep."""

    legacy_dir, remaster_dir = write_tables(LEGACY, {
        "ancestries": {
            "inherit": {"exclude": ["Human"]},
            "entries": {
                "Elf": {
                    "from": "Elf",
                    "patches": [
                        {"replace": ["Selectables=", 'Selectables="1:Ancient Elf:Heritage",']},
                        {"set": ["Speed", 30]},
                    ],
                },
                "Orc": "HitPoints=10 Boost=any,any",
            },
        },
        "armors": {
            "inherit": True,
            "sweeps": [
                {"rename_field": ["Weight", "Category"]},
                {"rename_field": ["Skill", "Check"]},
                "strength_modifier",
            ],
        },
    })
    legacy = load_legacy_catalog(legacy_dir)
    before = legacy.to_dict()

    catalog = build_catalog(legacy, remaster_dir)

    assert legacy.to_dict() == before
    assert catalog.report.ok
    assert sorted(catalog.ancestries) == ["Elf", "Orc"]
    elf = catalog.ancestries["Elf"]
    assert get_attr_value_array(elf, "Selectables") == ["1:Ancient Elf:Heritage", "1:Arctic Elf", "1:Cavern Elf"]
    assert get_attr_value(elf, "Speed") == 30
    assert catalog.armors["Full Plate"] == "Category=3 AC=6 Dex=0 Check=3 Speed=10 Str=4 Bulk=4"
    assert catalog.armors.sweeps[-1] == "strength_modifier"


@pytest.mark.integration
def test_drift_and_missing_sources_are_reported(
    write_tables: Callable[..., tuple[Path, Path]], caplog: pytest.LogCaptureFixture
) -> None:
    """Outside strict mode problems are logged and collected in the report."""

    caplog.set_level(logging.WARNING, logger="pf2remaster")
    legacy_dir, remaster_dir = write_tables(LEGACY, {
        "ancestries": {
            "inherit": {"exclude": ["Gnome"]},
            "entries": {
                "Elf": {"from": "Elf", "patches": [{"replace": ["HitPoints=8", "HitPoints=6"]}]},
                "Kobold": {"from": "Kobold"},
            },
        },
    })

    catalog = build_catalog(load_legacy_catalog(legacy_dir), remaster_dir)

    assert not catalog.report.ok
    assert len(catalog.report.drifts) == 1
    assert {m.source for m in catalog.report.missing} == {"Gnome", "Kobold"}
    assert "Kobold" not in catalog.ancestries
    assert catalog.ancestries["Elf"] == LEGACY["ancestries"]["Elf"]
    problems = catalog.report.problems()
    assert any("changed nothing" in p for p in problems)
    assert any('legacy entry "Kobold" does not exist' in p for p in problems)
    assert "Kobold" in caplog.text


@pytest.mark.integration
def test_strict_build_raises(write_tables: Callable[..., tuple[Path, Path]]) -> None:
    """Strict mode turns drift and missing sources into errors."""

    legacy_dir, remaster_dir = write_tables(LEGACY, {
        "ancestries": {"entries": {"Kobold": {"from": "Kobold"}}},
    })
    with pytest.raises(MissingSourceError, match="Kobold"):
        build_catalog(load_legacy_catalog(legacy_dir), remaster_dir, strict=True)

    legacy_dir, remaster_dir = write_tables(LEGACY, {
        "ancestries": {"entries": {"Elf": {"patches": [{"replace": ["Dwarf", "Elf"]}]}}},
    })
    with pytest.raises(NoOpPatchError):
        build_catalog(load_legacy_catalog(legacy_dir), remaster_dir, strict=True)


@pytest.mark.unit
def test_entries_without_attributes_are_reported(
    write_tables: Callable[..., tuple[Path, Path]], caplog: pytest.LogCaptureFixture
) -> None:
    """A name left without a value is logged and fails the report."""

    caplog.set_level(logging.WARNING, logger="pf2remaster")
    legacy_dir, remaster_dir = write_tables(LEGACY, {
        "feats": {"entries": {"Forgotten": None, "Toughness": "Traits=General", "Blank": ""}},
    })

    catalog = build_catalog(load_legacy_catalog(legacy_dir), remaster_dir)

    assert catalog.feats["Forgotten"] == ""
    assert catalog.feats["Blank"] == ""
    assert [(u.table, u.entry) for u in catalog.report.undefined] == [("feats", "Forgotten")]
    assert not catalog.report.ok
    assert "feats.Forgotten: entry has no attributes" in catalog.report.problems()
    assert "feats.Forgotten" in caplog.text
    assert "feats.Blank" not in caplog.text


@pytest.mark.unit
def test_legacy_entries_without_attributes_are_carried_into_the_build(
    write_tables: Callable[..., tuple[Path, Path]]
) -> None:
    """Undefined legacy entries stay on the built catalog's report."""

    legacy_dir, remaster_dir = write_tables(
        {"ancestries": {"Elf": "HitPoints=6", "Kobold": None}},
        {"ancestries": {"inherit": True}},
    )

    legacy = load_legacy_catalog(legacy_dir)
    catalog = build_catalog(legacy, remaster_dir)

    assert [u.entry for u in legacy.report.undefined] == ["Kobold"]
    assert [u.entry for u in catalog.report.undefined] == ["Kobold"]
    assert catalog.ancestries["Kobold"] == ""


@pytest.mark.integration
def test_packaged_catalog_has_no_undefined_entries(legacy: Catalog, remaster: Catalog) -> None:
    """Every packaged entry carries a value, even when it is empty."""

    assert legacy.report.undefined == ()
    assert remaster.report.undefined == ()


@pytest.mark.integration
@pytest.mark.parametrize(
    ("name", "table"),
    [
        ("widgets", {"entries": {}}),
        ("ancestries", {"entries": {}, "extras": []}),
        ("ancestries", {"inherit": "yes"}),
        ("ancestries", {"entries": {"Elf": {"from": "Elf", "to": "Orc"}}}),
        ("ancestries", ["Elf"]),
    ],
)
def test_malformed_table_files(write_tables: Callable[..., tuple[Path, Path]], name: str, table: object) -> None:
    """Table files with unknown names or sections are rejected."""

    legacy_dir, remaster_dir = write_tables(LEGACY, {name: table})

    with pytest.raises(CatalogError):
        build_catalog(load_legacy_catalog(legacy_dir), remaster_dir)


@pytest.mark.integration
def test_patches_must_target_known_fields(write_tables: Callable[..., tuple[Path, Path]]) -> None:
    """A field patch naming a field the record lacks fails the build."""

    legacy_dir, remaster_dir = write_tables(LEGACY, {
        "ancestries": {"entries": {"Elf": {"patches": [{"set": ["Wingspan", 30]}]}}},
    })

    with pytest.raises(PatchError, match="Wingspan"):
        build_catalog(load_legacy_catalog(legacy_dir), remaster_dir)


@pytest.mark.integration
def test_missing_directories(tmp_path: Path) -> None:
    """Missing data directories are catalog errors."""

    with pytest.raises(CatalogError):
        load_legacy_catalog(tmp_path / "nowhere")
    with pytest.raises(CatalogError):
        build_catalog(Catalog({}), tmp_path / "nowhere")


@pytest.mark.integration
def test_packaged_catalog_builds_cleanly(remaster: Catalog) -> None:
    """The packaged Remaster data has no drift and no missing sources."""

    assert remaster.report.ok, remaster.report.problems()
    assert set(remaster.tables) == {
        "ancestries", "armors", "backgrounds", "classes", "deities", "feats", "features",
        "goodies", "heritages", "languages", "shields", "skills", "spells", "weapons",
    }


@pytest.mark.integration
def test_every_packaged_entry_is_well_formed(remaster: Catalog) -> None:
    """Every entry of every table parses."""

    bad = [(table, name) for table, entries in remaster.tables.items()
           for name, attrs in entries.items() if not is_well_formed(attrs)]
    assert bad == []


@pytest.mark.integration
def test_packaged_elf_gains_ancient_elf(legacy: Catalog, remaster: Catalog) -> None:
    """Ancient Elf leads the Elf heritages, followed by every legacy heritage."""

    selectables = get_attr_value_array(remaster.ancestries["Elf"], "Selectables")
    legacy_heritages = get_attr_value_array(legacy.ancestries["Elf"], "Selectables")

    assert selectables[0] == "1:Ancient Elf:Heritage"
    assert selectables[1:] == [item + ":Heritage" for item in legacy_heritages]


@pytest.mark.integration
def test_packaged_legacy_fields_are_gone(remaster: Catalog) -> None:
    """Sweeps leave no legacy-only keys behind."""

    for table, key in [
        ("armors", "Weight"), ("armors", "Skill"), ("backgrounds", "Ability"), ("classes", "Ability"),
        ("deities", "Alignment"), ("feats", "Type"), ("skills", "Ability"), ("weapons", "Crit"),
    ]:
        assert all(get_attr_value(attrs, key) is None for attrs in remaster[table].values()), (table, key)


@pytest.mark.integration
def test_packaged_armor_strength_is_a_modifier(remaster: Catalog) -> None:
    """Full plate asks for Strength +4 rather than a score of 18."""

    assert get_attr_value(remaster.armors["Full Plate"], "Str") == 4
    assert get_attr_value(remaster.armors["Padded"], "Str") == 0
    assert remaster.armors.sweeps.count("strength_modifier") == 1


@pytest.mark.integration
def test_packaged_corrections(remaster: Catalog) -> None:
    """Legacy misspellings are fixed by patches."""

    assert get_attr_value_array(remaster.backgrounds["Laborer"], "Skill")[0] == "Athletics"
    assert get_attr_value_array(remaster.backgrounds["Acolyte"], "Feat") == ["Student Of The Canon"]
    assert "Calistria" in remaster.deities and "Calistra" not in remaster.deities
    assert "3:Enthrall" in get_attr_value_array(remaster.deities["Calistria"], "Spells")
    assert get_attr_value(remaster.deities["Gozreh"], "Weapon") == "Trident"


@pytest.mark.integration
def test_default_catalog_is_built_once() -> None:
    """The packaged catalog is cached per process."""

    catalog = default_catalog()

    assert default_catalog() is catalog
    assert catalog.report.ok


def _declared_chains() -> list:
    """Every derived entry whose text patches never search for their own output."""

    chains = []
    for path in sorted(config.remaster_dir().glob("*.yaml")):
        spec = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        for name, value in (spec.get("entries") or {}).items():
            if not isinstance(value, dict):
                continue
            patches = patches_from_specs(value.get("patches"))
            if any(p.op in TEXT_OPERATIONS and p.old in p.new for p in patches):
                continue
            chains.append(pytest.param(path.stem, str(value.get("from", name)), patches, id=f"{path.stem}.{name}"))
    return chains


@pytest.mark.integration
@pytest.mark.parametrize(("table", "source", "patches"), _declared_chains())
def test_patch_chains_are_idempotent(legacy: Catalog, table: str, source: str, patches: list) -> None:
    """Running a derived entry's patches over their own output changes nothing."""

    derived, _ = apply_patches(legacy[table][source], patches)
    again, _ = apply_patches(derived, patches)

    assert again == derived
