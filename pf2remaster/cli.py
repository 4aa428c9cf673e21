"""Command line tool for the Remaster catalog.

    pf2remaster export [--out DIR] [--format json|yaml]
    pf2remaster validate [--strict]
    pf2remaster register
    pf2remaster name [--ancestry A] [--count N] [--seed S]
"""
import argparse
import json
import logging
import random
import sys
from pathlib import Path

import yaml

from . import config
from .catalog import build_catalog, load_legacy_catalog
from .errors import RemasterError
from .names import random_name
from .ruleset import Pathfinder2ERemaster
from .validate import table_counts, validate_catalog


def _catalog(args):
    data_dir = Path(args.data_dir) if args.data_dir else config.data_dir()
    legacy = load_legacy_catalog(data_dir / 'legacy')
    return build_catalog(legacy, data_dir / 'remaster', strict=getattr(args, 'strict', False))


def cmd_export(args) -> int:
    catalog = _catalog(args)
    out_dir = Path(args.out) if args.out else config.output_dir()
    out_dir.mkdir(parents=True, exist_ok=True)
    print(f"Exporting {len(catalog.tables)} tables to {out_dir}...")
    for name, table in sorted(catalog.tables.items()):
        out_path = out_dir / f'{name}.{args.format}'
        with open(out_path, 'w', encoding='utf-8') as f:
            if args.format == 'json':
                json.dump(table.to_dict(), f, indent=2, ensure_ascii=False)
            else:
                yaml.safe_dump(table.to_dict(), f, allow_unicode=True, sort_keys=False, width=1000)
        print(f"  {name:12} {len(table):4} entries -> {out_path.name}")
    print("Done!")
    return 0


def cmd_validate(args) -> int:
    catalog = _catalog(args)
    result = validate_catalog(catalog)
    print("Validating the Remaster catalog...\n")
    for name, count in table_counts(catalog).items():
        print(f"  {name:12} {count:4} entries")
    print(f"\nFeature references: {result.references}")
    print(f"Missing features: {len(result.missing_features)}")
    print(f"Missing background feats: {len(result.missing_feats)}")
    print(f"Malformed or unknown attributes: {len(result.grammar)}")
    print(f"Patch drift and missing legacy entries: {len(catalog.report.drifts) + len(catalog.report.missing)}")
    print(f"Entries without attributes: {len(catalog.report.undefined)}")
    if result.ok:
        print("\n✓ Catalog validated!")
        return 0
    problems = result.problems()
    print(f"\nProblems ({len(problems)}):")
    for problem in problems[:20]:
        print(f"  {problem}")
    if len(problems) > 20:
        print(f"  ... and {len(problems) - 20} more")
    return 1


def cmd_register(args) -> int:
    rules = Pathfinder2ERemaster(catalog=_catalog(args))
    print(f"{rules.name} {rules.version}")
    for choice_type in sorted(rules.choices):
        print(f"  {choice_type:24} {len(rules.choices[choice_type]):5}")
    print(f"  {'rules':24} {len(rules.rules):5}")
    return 0


def cmd_name(args) -> int:
    rng = random.Random(args.seed)
    for _ in range(args.count):
        print(random_name(args.ancestry, rng))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='pf2remaster', description='Pathfinder 2E Remaster content catalog')
    parser.add_argument('--data-dir', help='directory holding legacy/ and remaster/ tables')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug messages')
    subparsers = parser.add_subparsers(dest='command', required=True)

    export = subparsers.add_parser('export', help='write one file per catalog table')
    export.add_argument('--out', help='output directory (default: ./data)')
    export.add_argument('--format', choices=('json', 'yaml'), default='json')
    export.set_defaults(func=cmd_export)

    validate = subparsers.add_parser('validate', help='check grammar, cross references and patch drift')
    validate.add_argument('--strict', action='store_true', default=config.strict_default(),
                          help='fail on the first patch that changes nothing')
    validate.set_defaults(func=cmd_validate)

    register = subparsers.add_parser('register', help='build the rule set and summarize it')
    register.set_defaults(func=cmd_register)

    name = subparsers.add_parser('name', help='generate random character names')
    name.add_argument('--ancestry')
    name.add_argument('--count', type=int, default=1)
    name.add_argument('--seed', type=int)
    name.set_defaults(func=cmd_name)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    try:
        return args.func(args)
    except RemasterError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
