from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath


IMAGE_EXTS = {'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp', '.heic', '.heif'}
VIDEO_EXTS = {'.mp4', '.mkv', '.avi', '.mov', '.webm', '.3gp', '.m4v'}

MEDIA_FOLDERS = (
    'DCIM',
    'Pictures',
    'Download',
    'Movies',
    'WhatsApp/Media',
    'Telegram',
    'Screenshots',
)


class MediaType(str, Enum):
    IMAGE = 'image'
    VIDEO = 'video'


class MediaFilter(str, Enum):
    ALL = 'all'
    IMAGES = 'images'
    VIDEOS = 'videos'

    @classmethod
    def parse(cls, value: str | None) -> MediaFilter:
        if not value:
            return cls.ALL
        return cls(value.strip().lower())

    def accepts(self, media_type: MediaType) -> bool:
        if self is MediaFilter.IMAGES:
            return media_type is MediaType.IMAGE
        if self is MediaFilter.VIDEOS:
            return media_type is MediaType.VIDEO
        return True


def classify_extension(name: str) -> MediaType | None:
    ext = PurePosixPath(name).suffix.lower()
    if ext in IMAGE_EXTS:
        return MediaType.IMAGE
    if ext in VIDEO_EXTS:
        return MediaType.VIDEO
    return None


def is_media_folder(name: str, path: str) -> bool:
    lowered_name = name.lower()
    lowered_path = path.lower()
    for folder in MEDIA_FOLDERS:
        folder = folder.lower()
        if lowered_name == folder or folder in lowered_path:
            return True
    return False


@dataclass(frozen=True)
class FolderInfo:
    name: str
    path: str
    item_count: int | None = None
    is_media_folder: bool = False


@dataclass(frozen=True)
class MediaItem:
    path: str
    name: str
    media_type: MediaType
    size_bytes: int
    width: int | None = None
    height: int | None = None
    duration_ms: int | None = None
    date_taken: datetime | None = None
    thumbnail_url: str | None = None

    @property
    def extension(self) -> str:
        return PurePosixPath(self.name).suffix.lower()

    @property
    def is_image(self) -> bool:
        return self.media_type is MediaType.IMAGE

    @property
    def is_video(self) -> bool:
        return self.media_type is MediaType.VIDEO


@dataclass
class MediaTransferResult:
    source_path: str
    dest_path: str | None
    success: bool
    error: str | None = None
    size_bytes: int = 0


class CancelToken:
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled
