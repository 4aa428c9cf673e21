"""Reading and writing Quilvyn attribute strings.

An attribute string is a whitespace-separated list of fields such as
``Features="1:Ancestry Feat",Vision Traits=Elf,Humanoid HitPoints=6``.
Each field value is a comma-separated list of items; an item is either
double-quoted (and may then hold spaces, commas, semicolons and colons)
or a bare token.

Provides:
- parse_fields(attrs)
- split_items(raw)
- get_attr_value(attrs, name) / get_attr_value_array(attrs, name)
- quote_item(item) / format_items(items) / join_fields(fields)
- is_well_formed(attrs) / check_attr_table(table, valid_keys)
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import AttrSyntaxError

logger = logging.getLogger(__name__)

KEY_RE = re.compile(r'([A-Za-z][A-Za-z0-9_.]*)=')
BARE_RE = re.compile(r'[^\s,"]+')
INT_RE = re.compile(r'[-+]?\d+')
NEEDS_QUOTES_RE = re.compile(r'[\s,;"=]')


def _scan_quoted(attrs: str, pos: int) -> int:
    """Return the index just past the quoted item starting at attrs[pos]."""
    i = pos + 1
    while i < len(attrs):
        if attrs[i] == '\\':
            i += 2
            continue
        if attrs[i] == '"':
            return i + 1
        i += 1
    raise AttrSyntaxError(f'Unmatched quote at offset {pos} in {attrs!r}')


def _scan_value(attrs: str, pos: int) -> int:
    """Return the index just past the value (an item list) starting at pos."""
    while True:
        if pos < len(attrs) and attrs[pos] == '"':
            pos = _scan_quoted(attrs, pos)
        else:
            m = BARE_RE.match(attrs, pos)
            if not m:
                raise AttrSyntaxError(f'Empty item at offset {pos} in {attrs!r}')
            if '=' in m.group(0):
                raise AttrSyntaxError(f'Unquoted "=" in item {m.group(0)!r} of {attrs!r}')
            pos = m.end()
        if pos < len(attrs) and attrs[pos] == ',':
            pos += 1
            continue
        if pos < len(attrs) and not attrs[pos].isspace():
            raise AttrSyntaxError(f'Unexpected {attrs[pos]!r} at offset {pos} in {attrs!r}')
        return pos


def parse_fields(attrs: str) -> List[Tuple[str, str]]:
    """Split an attribute string into ordered (key, raw value) pairs.

    The raw value keeps its quotes, so a field can be written back unchanged.
    """
    fields = []
    pos = 0
    while True:
        while pos < len(attrs) and attrs[pos].isspace():
            pos += 1
        if pos >= len(attrs):
            return fields
        m = KEY_RE.match(attrs, pos)
        if not m:
            raise AttrSyntaxError(f'Expected Key= at offset {pos} in {attrs!r}')
        start = m.end()
        pos = _scan_value(attrs, start)
        fields.append((m.group(1), attrs[start:pos]))


def split_items(raw: str) -> List[str]:
    """Split a raw field value into its items, removing quotes."""
    items = []
    pos = 0
    while pos < len(raw):
        if raw[pos] == '"':
            end = _scan_quoted(raw, pos)
            items.append(raw[pos + 1:end - 1].replace('\\"', '"'))
        else:
            end = raw.find(',', pos)
            if end < 0:
                end = len(raw)
            items.append(raw[pos:end])
        pos = end + 1
    return items


def _convert(item: str) -> Any:
    if INT_RE.fullmatch(item):
        return int(item)
    return item


def _find(attrs: str, name: str) -> Optional[str]:
    for key, raw in parse_fields(attrs):
        if key == name:
            return raw
    return None


def get_attr_value(attrs: str, name: str) -> Any:
    """Return the first item of field ``name``, or None when absent."""
    raw = _find(attrs, name)
    if raw is None:
        return None
    items = split_items(raw)
    return _convert(items[0]) if items else None


def get_attr_value_array(attrs: str, name: str) -> List[Any]:
    """Return every item of field ``name``; an absent field is an empty list."""
    raw = _find(attrs, name)
    if raw is None:
        return []
    return [_convert(item) for item in split_items(raw)]


def quote_item(item: Any) -> str:
    item = str(item)
    if item == '' or NEEDS_QUOTES_RE.search(item):
        return '"' + item.replace('"', '\\"') + '"'
    return item


def format_items(items: Iterable[Any]) -> str:
    return ','.join(quote_item(item) for item in items)


def join_fields(fields: Iterable[Tuple[str, str]]) -> str:
    return ' '.join(f'{key}={raw}' for key, raw in fields)


def is_well_formed(attrs: str) -> bool:
    try:
        parse_fields(attrs)
    except AttrSyntaxError:
        return False
    return True


def check_attr_table(table: Mapping[str, str], valid_keys: Optional[Iterable[str]] = None) -> List[Tuple[str, str]]:
    """Check every entry of a table, returning (name, problem) pairs.

    Each problem is also logged as a warning.
    """
    valid = set(valid_keys) if valid_keys is not None else None
    problems = []
    for name, attrs in table.items():
        try:
            fields = parse_fields(attrs)
        except AttrSyntaxError as e:
            problems.append((name, str(e)))
            continue
        if valid is None:
            continue
        for key, _ in fields:
            if key not in valid:
                problems.append((name, f'Unknown attribute "{key}"'))
    for name, problem in problems:
        logger.warning('%s: %s', name, problem)
    return problems


def fields_dict(attrs: str) -> Dict[str, List[Any]]:
    """Map each key to its converted items; a repeated key keeps the first."""
    result = {}
    for key, raw in parse_fields(attrs):
        if key not in result:
            result[key] = [_convert(item) for item in split_items(raw)]
    return result
