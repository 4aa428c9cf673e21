"""Typed patches that derive Remaster entries from legacy attribute strings.

A patch is declared in YAML as a one-key mapping, for example::

    - replace: ['Selectables=', 'Selectables="1:Ancient Elf:Heritage",']
    - set: [Traits, [Elf, Humanoid]]
    - remove: [Languages, Gnoll]
    - delete: Alignment
    - rename: [Ability, Attribute]

``replace`` rewrites the first occurrence of a substring and
``replace_all`` every occurrence. The other operations work on parsed
fields, so they cannot corrupt the grammar of the string.
"""
import logging
from dataclasses import dataclass
from typing import Any, Collection, List, Optional, Sequence, Tuple

from .attrs import format_items, join_fields, parse_fields, split_items
from .errors import NoOpPatchError, PatchError

logger = logging.getLogger(__name__)

TEXT_OPERATIONS = ('replace', 'replace_all')
FIELD_OPERATIONS = ('set', 'append', 'remove', 'delete', 'rename')
OPERATIONS = TEXT_OPERATIONS + FIELD_OPERATIONS


def _as_items(value: Any) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


def _pair(op: str, args: Any) -> Tuple[Any, Any]:
    if not isinstance(args, (list, tuple)) or len(args) != 2:
        raise PatchError(f'"{op}" takes a two-element list, got {args!r}')
    return args[0], args[1]


@dataclass(frozen=True)
class Patch:
    """One rewrite step; ``op`` is one of OPERATIONS."""
    op: str
    field: Optional[str] = None
    old: Optional[str] = None
    new: Optional[str] = None
    value: Tuple[str, ...] = ()

    @classmethod
    def from_spec(cls, spec: Any) -> 'Patch':
        if not isinstance(spec, dict) or len(spec) != 1:
            raise PatchError(f'A patch is a single-key mapping, got {spec!r}')
        op, args = next(iter(spec.items()))
        if op in TEXT_OPERATIONS:
            old, new = _pair(op, args)
            if not old:
                raise PatchError(f'"{op}" needs a non-empty search string')
            return cls(op, old=str(old), new=str(new))
        if op in ('set', 'append', 'remove'):
            field, value = _pair(op, args)
            items = _as_items(value)
            if not items:
                raise PatchError(f'"{op}" on {field} needs at least one item')
            return cls(op, field=str(field), value=items)
        if op == 'delete':
            if not isinstance(args, str):
                raise PatchError(f'"delete" takes a field name, got {args!r}')
            return cls(op, field=args)
        if op == 'rename':
            old, new = _pair(op, args)
            return cls(op, field=str(old), new=str(new))
        raise PatchError(f'Unknown patch operation "{op}"')

    def describe(self) -> str:
        if self.op in TEXT_OPERATIONS:
            return f'{self.op} {self.old!r} -> {self.new!r}'
        if self.op == 'delete':
            return f'delete {self.field}'
        if self.op == 'rename':
            return f'rename {self.field} -> {self.new}'
        return f'{self.op} {self.field} {format_items(self.value)}'

    def target_field(self) -> Optional[str]:
        """Name of the field this patch leaves behind, if it is field level."""
        if self.op == 'rename':
            return self.new
        if self.op in ('set', 'append', 'remove'):
            return self.field
        return None

    def validate(self, known_fields: Collection[str]) -> None:
        target = self.target_field()
        if target is not None and target not in known_fields:
            raise PatchError(f'{self.describe()}: unknown field "{target}"')

    def apply(self, attrs: str) -> str:
        if self.op == 'replace':
            return attrs.replace(self.old, self.new, 1)
        if self.op == 'replace_all':
            return attrs.replace(self.old, self.new)
        fields = parse_fields(attrs)
        patched = getattr(self, '_' + self.op)(fields)
        if patched == fields:
            return attrs
        return join_fields(patched)

    def _set(self, fields):
        raw = format_items(self.value)
        result = []
        done = False
        for key, old in fields:
            if key == self.field:
                if done:
                    continue
                old = raw
                done = True
            result.append((key, old))
        if not done:
            result.append((self.field, raw))
        return result

    def _append(self, fields):
        for i, (key, raw) in enumerate(fields):
            if key == self.field:
                present = split_items(raw)
                added = [item for item in self.value if item not in present]
                if not added:
                    return fields
                result = list(fields)
                result[i] = (key, raw + ',' + format_items(added))
                return result
        return fields + [(self.field, format_items(self.value))]

    def _remove(self, fields):
        result = []
        for key, raw in fields:
            if key == self.field:
                items = [item for item in split_items(raw) if item not in self.value]
                if not items:
                    continue
                if len(items) != len(split_items(raw)):
                    raw = format_items(items)
            result.append((key, raw))
        return result

    def _delete(self, fields):
        return [(key, raw) for key, raw in fields if key != self.field]

    def _rename(self, fields):
        return [(self.new if key == self.field else key, raw) for key, raw in fields]


@dataclass(frozen=True)
class Drift:
    """A patch that no longer changes the entry it was written for."""
    entry: str
    index: int
    patch: Patch

    def __str__(self):
        return f'{self.entry}: patch {self.index} ({self.patch.describe()}) changed nothing'


def apply_patches(source: str, patches: Sequence[Patch], name: str = '', strict: bool = False) -> Tuple[str, List[Drift]]:
    """Apply patches left to right to a legacy attribute string.

    Returns the derived string and the drifts found on the way. With
    ``strict`` the first drift raises NoOpPatchError instead.
    """
    result = source
    drifts = []
    for index, patch in enumerate(patches):
        patched = patch.apply(result)
        if patched == result:
            drift = Drift(name, index, patch)
            if strict:
                raise NoOpPatchError(drift)
            logger.warning('%s', drift)
            drifts.append(drift)
        result = patched
    return result, drifts


def patches_from_specs(specs: Optional[Sequence[Any]]) -> List[Patch]:
    return [Patch.from_spec(spec) for spec in specs or []]
