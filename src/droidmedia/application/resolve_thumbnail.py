"""Thumbnail resolution for a single remote media file.

Strategies run cheapest first and stop at the first one that fills the cache
slot with a non-empty file:

1. cache slot already populated
2. MediaStore thumbnail file (``_data`` of the thumbnails table)
3. ``content read`` of the thumbnail URI into a device temp file
4. pull the original image and downscale it locally (Pillow)
5. pull the original video and grab a frame (ffmpeg)

Every strategy writes a staging file next to the slot and moves it into place
only when it is non-empty, so a failed attempt never leaves a partial file that
a later cache check would accept.

The cache key is the sanitized basename only: two ``IMG_0001.jpg`` in different
folders share a slot.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from droidmedia.application.media_store import lookup_media_id, lookup_thumbnail_path
from droidmedia.domain import (
    CancelToken,
    CommandCancelled,
    ExecutionFailed,
    InvalidPath,
    MediaType,
    ThumbnailNotAvailable,
    classify_extension,
)
from droidmedia.domain.content_query import MEDIA_STORE_TABLES, MediaStoreMatch
from droidmedia.domain.rules import remote_basename, storage_path_variants, thumbnail_cache_name
from droidmedia.infrastructure.adb import AdbGateway
from droidmedia.infrastructure.fs.atomic_write import has_content, install_if_nonempty, staging_path_for
from droidmedia.infrastructure.fs.data_url import read_file_as_data_url
from droidmedia.infrastructure.tools.ffmpeg import extract_frame, ffmpeg_available
from droidmedia.infrastructure.tools.imaging import THUMB_SIZE, make_thumbnail

DEVICE_TEMP_TEMPLATE = '/data/local/tmp/droidmedia_thumb_{id}.jpg'
STAGING_DIR = '.staging'


class ThumbnailSource(str, Enum):
    CACHE = 'cache'
    PROVIDER_FILE = 'provider_file'
    CONTENT_READ = 'content_read'
    LOCAL_IMAGE = 'local_image'
    LOCAL_VIDEO = 'local_video'


@dataclass(frozen=True)
class ThumbnailResult:
    data_url: str
    source: ThumbnailSource
    cache_path: Path


def thumbnail_cache_path(cache_dir: Path, remote_path: str) -> Path:
    file_name = remote_basename(remote_path)
    if not file_name:
        raise InvalidPath(f'Invalid remote path: {remote_path!r}')
    return cache_dir / thumbnail_cache_name(file_name)


class ThumbnailResolver:
    def __init__(
        self,
        gateway: AdbGateway,
        serial: str,
        cache_dir: Path,
        ffmpeg_path: str | None = None,
        thumbnail_size: int = THUMB_SIZE,
        log=None,
        cancel_token: CancelToken | None = None,
    ) -> None:
        self._gateway = gateway
        self._serial = serial
        self._cache_dir = Path(cache_dir)
        self._ffmpeg = ffmpeg_path
        self._size = thumbnail_size
        self._log = log or (lambda _message: None)
        self._cancel = cancel_token

    def resolve(self, remote_path: str) -> ThumbnailResult:
        cache_path = thumbnail_cache_path(self._cache_dir, remote_path)
        file_name = remote_basename(remote_path)

        if has_content(cache_path):
            return self._result(cache_path, ThumbnailSource.CACHE)

        media_type = classify_extension(file_name)
        if media_type is None:
            raise ThumbnailNotAvailable(f'Unsupported file type for {file_name}', file_name=file_name)

        self._cache_dir.mkdir(parents=True, exist_ok=True)

        found = self._discover_id(remote_path, media_type)
        if found is not None:
            self._log(f'{file_name}: MediaStore id {found.media_id} ({found.match.value} match)')
            if self._try_provider_file(found.media_id, media_type, cache_path):
                return self._result(cache_path, ThumbnailSource.PROVIDER_FILE)
            if self._try_content_read(found.media_id, media_type, cache_path):
                return self._result(cache_path, ThumbnailSource.CONTENT_READ)

        if media_type is MediaType.IMAGE:
            if self._try_local_image(remote_path, file_name, cache_path):
                return self._result(cache_path, ThumbnailSource.LOCAL_IMAGE)
        elif self._try_local_video(remote_path, file_name, cache_path):
            return self._result(cache_path, ThumbnailSource.LOCAL_VIDEO)

        self._log(f'{file_name}: no thumbnail strategy succeeded')
        raise ThumbnailNotAvailable(f'Thumbnail not found for {file_name}', file_name=file_name)

    def _result(self, cache_path: Path, source: ThumbnailSource) -> ThumbnailResult:
        if source is not ThumbnailSource.CACHE:
            self._log(f'{cache_path.name}: resolved via {source.value}')
        return ThumbnailResult(read_file_as_data_url(cache_path), source, cache_path)

    def _discover_id(self, remote_path: str, media_type: MediaType) -> MediaStoreMatch | None:
        for variant in storage_path_variants(remote_path):
            found = lookup_media_id(
                self._gateway, self._serial, variant, media_type, self._log, self._cancel
            )
            if found is not None:
                return found
        return None

    def _pull_into_slot(self, remote_path: str, cache_path: Path) -> bool:
        staging = staging_path_for(cache_path)
        try:
            self._gateway.pull(self._serial, remote_path, staging, cancel_token=self._cancel)
        except CommandCancelled:
            staging.unlink(missing_ok=True)
            raise
        except ExecutionFailed as exc:
            self._log(f'pull failed for {remote_path}: {exc}')
            staging.unlink(missing_ok=True)
            return False
        return install_if_nonempty(staging, cache_path)

    def _try_provider_file(self, media_id: str, media_type: MediaType, cache_path: Path) -> bool:
        thumb_remote = lookup_thumbnail_path(
            self._gateway, self._serial, media_id, media_type, self._log, self._cancel
        )
        if not thumb_remote:
            return False
        return self._pull_into_slot(thumb_remote, cache_path)

    def _try_content_read(self, media_id: str, media_type: MediaType, cache_path: Path) -> bool:
        uri = MEDIA_STORE_TABLES[media_type].thumbnail_read_uri.format(media_id)
        device_temp = DEVICE_TEMP_TEMPLATE.format(id=media_id)
        try:
            try:
                self._gateway.shell(
                    self._serial,
                    f'content read --uri {uri} > {device_temp}',
                    cancel_token=self._cancel,
                )
            except CommandCancelled:
                raise
            except ExecutionFailed as exc:
                self._log(f'content read failed for {uri}: {exc}')
            return self._pull_into_slot(device_temp, cache_path)
        finally:
            self._remove_device_temp(device_temp)

    def _remove_device_temp(self, device_temp: str) -> None:
        try:
            self._gateway.shell(self._serial, 'rm', '-f', device_temp)
        except ExecutionFailed as exc:
            self._log(f'cleanup failed for {device_temp}: {exc}')

    def _pull_original(self, remote_path: str, file_name: str) -> Path | None:
        staging_dir = self._cache_dir / STAGING_DIR
        staging_dir.mkdir(parents=True, exist_ok=True)
        local = staging_dir / f'{uuid.uuid4().hex}_{Path(file_name).name}'
        try:
            self._gateway.pull(self._serial, remote_path, local, cancel_token=self._cancel)
        except CommandCancelled:
            local.unlink(missing_ok=True)
            raise
        except ExecutionFailed as exc:
            self._log(f'pull of original failed for {remote_path}: {exc}')
            local.unlink(missing_ok=True)
            return None
        return local

    def _try_local_image(self, remote_path: str, file_name: str, cache_path: Path) -> bool:
        pulled = self._pull_original(remote_path, file_name)
        if pulled is None:
            return False
        staging = staging_path_for(cache_path)
        try:
            if not make_thumbnail(pulled, staging, self._size, self._log):
                staging.unlink(missing_ok=True)
                return False
            return install_if_nonempty(staging, cache_path)
        finally:
            pulled.unlink(missing_ok=True)

    def _try_local_video(self, remote_path: str, file_name: str, cache_path: Path) -> bool:
        if not ffmpeg_available(self._ffmpeg):
            self._log('ffmpeg not available, skipping video frame extraction')
            return False
        pulled = self._pull_original(remote_path, file_name)
        if pulled is None:
            return False
        staging = staging_path_for(cache_path)
        try:
            if not extract_frame(self._ffmpeg, pulled, staging, self._log):
                staging.unlink(missing_ok=True)
                return False
            return install_if_nonempty(staging, cache_path)
        finally:
            pulled.unlink(missing_ok=True)


def resolve_thumbnail(
    gateway: AdbGateway,
    serial: str,
    remote_path: str,
    cache_dir: Path,
    *,
    ffmpeg_path: str | None = None,
    thumbnail_size: int = THUMB_SIZE,
    log=None,
    cancel_token: CancelToken | None = None,
) -> str:
    resolver = ThumbnailResolver(
        gateway,
        serial,
        cache_dir,
        ffmpeg_path=ffmpeg_path,
        thumbnail_size=thumbnail_size,
        log=log,
        cancel_token=cancel_token,
    )
    return resolver.resolve(remote_path).data_url
