"""Legacy and Remaster content catalogs.

The legacy catalog is read as-is from ``data/legacy``. The Remaster
catalog is built from ``data/remaster`` by a pure function of the legacy
catalog: each table file may inherit legacy entries, declare literal or
derived entries, and list sweeps applied to the whole table afterwards.

Provides:
- ContentTable, Sweep and the sweep factories
- Catalog, BuildReport, UndefinedEntry
- load_legacy_catalog(directory)
- build_catalog(legacy, source, strict)
- default_catalog()
"""
import functools
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

import yaml

from . import config
from .attrs import join_fields, parse_fields, split_items
from .errors import CatalogError, MissingSourceError, SweepError, UnknownChoiceTypeError
from .patches import Drift, Patch, apply_patches, patches_from_specs
from .records import ContentKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sweep:
    """A rewrite applied to every entry of a table."""
    name: str
    func: Callable[[str], str]
    idempotent: bool = True

    def apply(self, attrs: str) -> str:
        return self.func(attrs)


def replace_all_sweep(old: str, new: str) -> Sweep:
    # Replacing "Ability" with "Attribute" is stable; "Str" with "Strength" is not
    return Sweep(f'replace_all {old!r} -> {new!r}', lambda attrs: attrs.replace(old, new),
                 idempotent=old not in new)


def regex_sweep(pattern: str, replacement: str, idempotent: bool = True) -> Sweep:
    compiled = re.compile(pattern)
    return Sweep(f'regex {pattern!r} -> {replacement!r}', lambda attrs: compiled.sub(replacement, attrs),
                 idempotent=idempotent)


def rename_field_sweep(old: str, new: str) -> Sweep:
    patch = Patch('rename', field=old, new=new)
    return Sweep(f'rename_field {old} -> {new}', patch.apply)


def strength_to_modifier(attrs: str) -> str:
    """Rewrite an armor's Str=<score> requirement as Str=<modifier>.

    Scores below 10 mean no requirement and become 0.
    """
    fields = parse_fields(attrs)
    changed = False
    for i, (key, raw) in enumerate(fields):
        if key != 'Str':
            continue
        items = split_items(raw)
        if not items or not re.fullmatch(r'\d+', items[0]):
            raise CatalogError(f'Armor strength requirement must be a score, got {raw!r}')
        score = int(items[0])
        fields[i] = (key, str((score - 10) // 2 if score >= 10 else 0))
        changed = True
    return join_fields(fields) if changed else attrs


def strength_modifier_sweep() -> Sweep:
    return Sweep('strength_modifier', strength_to_modifier, idempotent=False)


SWEEP_FACTORIES = {
    'replace_all': replace_all_sweep,
    'regex': regex_sweep,
    'rename_field': rename_field_sweep,
    'strength_modifier': strength_modifier_sweep,
}


def sweep_from_spec(spec: Any) -> Sweep:
    """Build a sweep from its YAML form, e.g. ``{replace_all: [Ability, Attribute]}``."""
    if isinstance(spec, str):
        name, args = spec, []
    elif isinstance(spec, dict) and len(spec) == 1:
        name, args = next(iter(spec.items()))
    else:
        raise CatalogError(f'Bad sweep declaration {spec!r}')
    factory = SWEEP_FACTORIES.get(name)
    if factory is None:
        raise CatalogError(f'Unknown sweep "{name}"')
    if args is None:
        args = []
    try:
        if isinstance(args, dict):
            return factory(**args)
        return factory(*args)
    except TypeError as e:
        raise CatalogError(f'Bad arguments for sweep "{name}": {e}') from e


class ContentTable(Mapping):
    """Read-only mapping of entry name to attribute string."""

    def __init__(self, kind: str, entries: Mapping[str, str], sweeps: Tuple[str, ...] = ()):
        self.kind = kind
        self._entries = MappingProxyType(dict(entries))
        self.sweeps = tuple(sweeps)

    def __getitem__(self, name: str) -> str:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f'ContentTable({self.kind!r}, {len(self)} entries, sweeps={list(self.sweeps)!r})'

    def sweep(self, sweep: Sweep) -> 'ContentTable':
        """Return a new table with the sweep applied to every entry."""
        if not sweep.idempotent and sweep.name in self.sweeps:
            raise SweepError(f'{sweep.name} has already been applied to {self.kind}')
        entries = {name: sweep.apply(attrs) for name, attrs in self._entries.items()}
        return ContentTable(self.kind, entries, self.sweeps + (sweep.name,))

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)


@dataclass(frozen=True)
class MissingSource:
    table: str
    entry: str
    source: str

    def __str__(self):
        return f'{self.table}.{self.entry}: legacy entry "{self.source}" does not exist'


@dataclass(frozen=True)
class UndefinedEntry:
    table: str
    entry: str

    def __str__(self):
        return f'{self.table}.{self.entry}: entry has no attributes'


@dataclass(frozen=True)
class BuildReport:
    drifts: Tuple[Drift, ...] = ()
    missing: Tuple[MissingSource, ...] = ()
    undefined: Tuple[UndefinedEntry, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.drifts and not self.missing and not self.undefined

    def problems(self) -> List[str]:
        return ([str(d) for d in self.drifts] + [str(m) for m in self.missing]
                + [str(u) for u in self.undefined])


@dataclass(frozen=True)
class Catalog:
    """A set of content tables keyed by table name."""
    tables: Mapping[str, ContentTable]
    report: BuildReport = field(default_factory=BuildReport)

    def __getitem__(self, table: str) -> ContentTable:
        return self.tables[table]

    def __getattr__(self, name: str) -> ContentTable:
        tables = self.__dict__.get('tables')
        if tables is not None and name in tables:
            return tables[name]
        raise AttributeError(name)

    def __contains__(self, table: str) -> bool:
        return table in self.tables

    def get(self, table: str) -> ContentTable:
        """Return a table, or an empty one for a kind the catalog lacks."""
        return self.tables.get(table) or ContentTable(table, {})

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {name: table.to_dict() for name, table in self.tables.items()}


def _load_yaml(path: Path) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(f'{path}: {e}') from e


def _undefined(table: str, name: str, undefined: List[UndefinedEntry]) -> str:
    entry = UndefinedEntry(table, name)
    logger.warning('%s', entry)
    undefined.append(entry)
    return ''


def _entries_from(path: Path, data: Any, undefined: List[UndefinedEntry]) -> Dict[str, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CatalogError(f'{path}: expected a mapping of entry name to attributes')
    entries = {}
    for name, attrs in data.items():
        if isinstance(attrs, (dict, list)):
            raise CatalogError(f'{path}: entry {name!r} is not an attribute string')
        name = str(name)
        entries[name] = _undefined(path.stem, name, undefined) if attrs is None else str(attrs)
    return entries


def load_legacy_catalog(directory: Optional[Path] = None) -> Catalog:
    """Read every ``<table>.yaml`` under the legacy data directory.

    Entries left without a value load as empty strings and are listed in
    the catalog's report.
    """
    directory = Path(directory or config.legacy_dir())
    if not directory.is_dir():
        raise CatalogError(f'Legacy data directory {directory} not found')
    tables = {}
    undefined: List[UndefinedEntry] = []
    for path in sorted(directory.glob('*.yaml')):
        tables[path.stem] = ContentTable(path.stem, _entries_from(path, _load_yaml(path), undefined))
        logger.debug('Loaded %d legacy %s', len(tables[path.stem]), path.stem)
    return Catalog(tables, BuildReport(undefined=tuple(undefined)))


def _inherited(path: Path, spec: Any, legacy: ContentTable, missing: List[MissingSource]) -> Dict[str, str]:
    if not spec:
        return {}
    exclude = []
    if isinstance(spec, dict):
        exclude = spec.get('exclude') or []
    elif spec is not True:
        raise CatalogError(f'{path}: "inherit" must be true or a mapping')
    for name in exclude:
        if name not in legacy:
            logger.warning('%s: excluded legacy entry "%s" does not exist', path.stem, name)
            missing.append(MissingSource(path.stem, name, name))
    return {name: attrs for name, attrs in legacy.items() if name not in exclude}


def _build_table(path: Path, legacy: ContentTable, strict: bool,
                 undefined: List[UndefinedEntry]) -> Tuple[ContentTable, List[Drift], List[MissingSource]]:
    table_name = path.stem
    try:
        record_type = ContentKind.from_table(table_name).record_type
    except UnknownChoiceTypeError as e:
        raise CatalogError(f'{path}: {e}') from e
    spec = _load_yaml(path) or {}
    if not isinstance(spec, dict):
        raise CatalogError(f'{path}: expected inherit/entries/sweeps sections')
    unknown = set(spec) - {'inherit', 'entries', 'sweeps'}
    if unknown:
        raise CatalogError(f'{path}: unknown sections {sorted(unknown)}')

    drifts: List[Drift] = []
    missing: List[MissingSource] = []
    entries = _inherited(path, spec.get('inherit'), legacy, missing)
    for name, value in (spec.get('entries') or {}).items():
        name = str(name)
        if value is None:
            entries[name] = _undefined(table_name, name, undefined)
            continue
        if isinstance(value, (str, int)):
            entries[name] = str(value)
            continue
        if not isinstance(value, dict) or set(value) - {'from', 'patches'}:
            raise CatalogError(f'{path}: entry {name!r} must be a string or from/patches')
        source = str(value.get('from', name))
        if source not in legacy:
            gap = MissingSource(table_name, name, source)
            if strict:
                raise MissingSourceError(str(gap))
            logger.error('%s', gap)
            missing.append(gap)
            continue
        patches = patches_from_specs(value.get('patches'))
        for patch in patches:
            patch.validate(record_type.known_fields())
        entries[name], entry_drifts = apply_patches(
            legacy[source], patches, name=f'{table_name}.{name}', strict=strict)
        drifts.extend(entry_drifts)

    table = ContentTable(table_name, entries)
    for sweep_spec in spec.get('sweeps') or []:
        table = table.sweep(sweep_from_spec(sweep_spec))
    return table, drifts, missing


def build_catalog(legacy: Catalog, source: Optional[Path] = None, strict: bool = False) -> Catalog:
    """Build the Remaster catalog from the legacy one.

    Never mutates ``legacy``. Patch drift and missing legacy sources are
    collected in the returned catalog's report (or raised when strict), as
    are entries left without a value here or in the legacy catalog.
    """
    source = Path(source or config.remaster_dir())
    if not source.is_dir():
        raise CatalogError(f'Remaster data directory {source} not found')
    tables = {}
    drifts: List[Drift] = []
    missing: List[MissingSource] = []
    undefined = list(legacy.report.undefined)
    for path in sorted(source.glob('*.yaml')):
        table, table_drifts, table_missing = _build_table(path, legacy.get(path.stem), strict, undefined)
        tables[path.stem] = table
        drifts.extend(table_drifts)
        missing.extend(table_missing)
        logger.debug('Built %d remaster %s', len(table), path.stem)
    return Catalog(tables, BuildReport(tuple(drifts), tuple(missing), tuple(undefined)))


@functools.lru_cache(maxsize=None)
def default_catalog(strict: bool = False) -> Catalog:
    """The packaged Remaster catalog, built once per process."""
    return build_catalog(load_legacy_catalog(), strict=strict)
