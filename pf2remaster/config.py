"""Paths and defaults shared by the library and the command line tool.

Directories are resolved when asked for, so PF2REMASTER_DATA_DIR and the
working directory are read at call time.
"""

import os
from pathlib import Path

VERSION = '2.4.0.0'
RULESET_NAME = 'Pathfinder 2E Remaster'

PACKAGE_DIR = Path(__file__).parent


def data_dir() -> Path:
    return Path(os.environ.get('PF2REMASTER_DATA_DIR') or PACKAGE_DIR / 'data')


def legacy_dir() -> Path:
    return data_dir() / 'legacy'


def remaster_dir() -> Path:
    return data_dir() / 'remaster'


def output_dir() -> Path:
    """Exports land next to the working directory, like the parsers' data/ folder."""
    return Path.cwd() / 'data'


def strict_default() -> bool:
    """Return True when PF2REMASTER_STRICT asks for no-op patches to fail."""
    return os.environ.get('PF2REMASTER_STRICT', '').lower() in ('1', 'true', 'yes', 'on')
