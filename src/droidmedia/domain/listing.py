"""Parser for the text printed by ``ls -la`` on the device.

Toybox prints one entry per line::

    drwxrwx--x 3 root sdcard_rw 3488 2024-01-30 10:30 DCIM
    -rw-rw---- 1 u0_a123 u0_a123 12345 2024-01-30 10:30 My Photo.jpg

The output carries no quoting for names, so everything after the time column
is the name. Any listing format that adds or removes a column before the name
breaks this parser.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterator

NAME_COLUMN = 7
MIN_FILE_TOKENS = 7
MIN_FOLDER_TOKENS = 8

JUNK_MARKERS = ('No such file or directory', 'Permission denied')
DATE_FORMATS = ('%Y-%m-%d %H:%M', '%Y-%m-%d %H:%M:%S')


class EntryKind(str, Enum):
    FOLDER = 'd'
    FILE = '-'


@dataclass(frozen=True)
class ListingEntry:
    permissions: str
    name: str
    size_bytes: int = 0
    date: str = ''
    time: str = ''

    @property
    def modified(self) -> datetime | None:
        return parse_timestamp(self.date, self.time)


def parse_timestamp(date: str, time: str) -> datetime | None:
    if not date or not time:
        return None
    text = f'{date} {time}'
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_size(token: str) -> int:
    try:
        return int(token)
    except ValueError:
        return 0


def _is_junk(line: str) -> bool:
    if not line or line.startswith('total'):
        return True
    return any(marker in line for marker in JUNK_MARKERS)


def parse_listing(text: str, kind: EntryKind) -> Iterator[ListingEntry]:
    for raw in text.splitlines():
        line = raw.strip()
        if _is_junk(line):
            continue
        parts = line.split()
        minimum = MIN_FOLDER_TOKENS if kind is EntryKind.FOLDER else MIN_FILE_TOKENS
        if len(parts) < minimum:
            continue
        permissions = parts[0]
        if not permissions.startswith(kind.value):
            continue
        name = ' '.join(parts[NAME_COLUMN:])
        if not name:
            continue

        if kind is EntryKind.FOLDER:
            if name.startswith('.'):
                continue
            yield ListingEntry(permissions=permissions, name=name)
            continue

        yield ListingEntry(
            permissions=permissions,
            name=name,
            size_bytes=_parse_size(parts[4]),
            date=parts[5],
            time=parts[6],
        )


def parse_folders(text: str) -> list[ListingEntry]:
    return list(parse_listing(text, EntryKind.FOLDER))


def parse_files(text: str) -> list[ListingEntry]:
    return list(parse_listing(text, EntryKind.FILE))
