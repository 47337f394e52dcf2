from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath

SDCARD_PREFIX = '/sdcard/'
EMULATED_PREFIX = '/storage/emulated/0/'

THUMB_PREFIX = 'thumb_'
THUMB_SUFFIX = '.jpg'


class PathMatch(str, Enum):
    EXACT = 'exact'
    # Either path is a tail of the other; content queries may return partial paths.
    SUFFIX = 'suffix'


def quote_remote_path(path: str) -> str:
    """Single-quote a path for the device shell.

    "/sdcard/It's Me" -> "'/sdcard/It'\\''s Me'"
    """
    return "'" + path.replace("'", "'\\''") + "'"


def quote_sql_value(value: str) -> str:
    return value.replace("'", "''")


def normalize_remote_path(path: str) -> str:
    """Collapse the shared-storage aliases into one root-relative form.

    /sdcard/DCIM/a.jpg and /storage/emulated/0/DCIM/a.jpg both become DCIM/a.jpg.
    """
    text = path.replace(EMULATED_PREFIX, '/').replace(SDCARD_PREFIX, '/')
    return text.lstrip('/')


def match_remote_paths(first: str, second: str) -> PathMatch | None:
    a = normalize_remote_path(first)
    b = normalize_remote_path(second)
    if a == b:
        return PathMatch.EXACT
    if a and b and (a.endswith(b) or b.endswith(a)):
        return PathMatch.SUFFIX
    return None


def same_remote_file(first: str, second: str) -> bool:
    return match_remote_paths(first, second) is not None


def storage_path_variants(path: str) -> list[str]:
    if path.startswith(SDCARD_PREFIX):
        return [path, EMULATED_PREFIX + path[len(SDCARD_PREFIX):]]
    return [path]


def join_remote_path(base: str, name: str) -> str:
    if base.endswith('/'):
        return f'{base}{name}'
    return f'{base}/{name}'


def remote_basename(path: str) -> str | None:
    name = PurePosixPath(path).name
    if not name or name in ('.', '..'):
        return None
    return name


def sanitize_cache_name(name: str) -> str:
    return ''.join(c if c.isalnum() or c in '.-_' else '_' for c in name)


def thumbnail_cache_name(file_name: str) -> str:
    return f'{THUMB_PREFIX}{sanitize_cache_name(file_name)}{THUMB_SUFFIX}'
