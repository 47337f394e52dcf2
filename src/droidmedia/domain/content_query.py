"""MediaStore URIs and parsing of ``content query`` output.

Rows look like::

    Row: 0 _id=123, _data=/storage/emulated/0/DCIM/Camera/IMG.jpg
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from droidmedia.domain.models import MediaType
from droidmedia.domain.rules import PathMatch, match_remote_paths

ROW_PREFIX_RE = re.compile(r'^\s*Row:\s*\d+\s*')
# A value runs until the next ", key=" or the end of the line, so paths with commas survive.
COLUMN_RE = re.compile(r'(\w+)=(.*?)(?=,\s*\w+=|$)')


class ContentUris(Enum):
    IMAGES_MEDIA = 'content://media/external/images/media'
    VIDEO_MEDIA = 'content://media/external/video/media'
    IMAGES_THUMBNAILS = 'content://media/external/images/thumbnails'
    VIDEO_THUMBNAILS = 'content://media/external/video/thumbnails'
    IMAGE_THUMBNAIL_READ = 'content://media/external/images/thumbnails/{id}'
    VIDEO_THUMBNAIL_READ = 'content://media/external/video/media/{id}/thumbnail'

    def format(self, media_id: str) -> str:
        return self.value.format(id=media_id)


@dataclass(frozen=True)
class MediaStoreTable:
    media_uri: ContentUris
    thumbnails_uri: ContentUris
    parent_column: str
    thumbnail_read_uri: ContentUris


MEDIA_STORE_TABLES = {
    MediaType.IMAGE: MediaStoreTable(
        media_uri=ContentUris.IMAGES_MEDIA,
        thumbnails_uri=ContentUris.IMAGES_THUMBNAILS,
        parent_column='image_id',
        thumbnail_read_uri=ContentUris.IMAGE_THUMBNAIL_READ,
    ),
    MediaType.VIDEO: MediaStoreTable(
        media_uri=ContentUris.VIDEO_MEDIA,
        thumbnails_uri=ContentUris.VIDEO_THUMBNAILS,
        parent_column='video_id',
        thumbnail_read_uri=ContentUris.VIDEO_THUMBNAIL_READ,
    ),
}


@dataclass(frozen=True)
class MediaStoreMatch:
    media_id: str
    data_path: str
    match: PathMatch


def parse_row(line: str) -> dict[str, str]:
    body = ROW_PREFIX_RE.sub('', line.strip())
    return {key: value.strip() for key, value in COLUMN_RE.findall(body)}


def iter_rows(output: str) -> Iterator[dict[str, str]]:
    for line in output.splitlines():
        if '=' not in line:
            continue
        row = parse_row(line)
        if row:
            yield row


def find_media_id(output: str, target_path: str) -> MediaStoreMatch | None:
    """Pick the row whose ``_data`` points at *target_path*.

    An exact match on the normalized path wins over any suffix match,
    whatever the row order.
    """
    suffix_match: MediaStoreMatch | None = None
    for row in iter_rows(output):
        media_id = row.get('_id')
        data_path = row.get('_data')
        if not media_id or not data_path:
            continue
        match = match_remote_paths(data_path, target_path)
        if match is PathMatch.EXACT:
            return MediaStoreMatch(media_id, data_path, match)
        if match is PathMatch.SUFFIX and suffix_match is None:
            suffix_match = MediaStoreMatch(media_id, data_path, match)
    return suffix_match


def parse_data_path(output: str) -> str | None:
    for row in iter_rows(output):
        path = row.get('_data', '').rstrip(',')
        if path:
            return path
    return None
