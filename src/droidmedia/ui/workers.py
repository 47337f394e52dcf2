from __future__ import annotations

from pathlib import Path

from PySide6 import QtCore

from droidmedia.application.browse_folders import list_folders
from droidmedia.application.list_media import list_media
from droidmedia.application.pull_media import pull_many
from droidmedia.application.resolve_thumbnail import resolve_thumbnail
from droidmedia.domain import CancelToken, DroidMediaError, MediaFilter, ThumbnailNotAvailable
from droidmedia.infrastructure.adb import AdbGateway
from droidmedia.infrastructure.tools.imaging import THUMB_SIZE


class FolderListWorker(QtCore.QThread):
    finished = QtCore.Signal(object)  # list[FolderInfo]
    error = QtCore.Signal(str)

    def __init__(
        self,
        gateway: AdbGateway,
        serial: str,
        path: str | None,
        cancel_token: CancelToken | None = None,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._serial = serial
        self._path = path
        self._cancel_token = cancel_token

    def run(self) -> None:
        try:
            folders = list_folders(self._gateway, self._serial, self._path, self._cancel_token)
            self.finished.emit(folders)
        except DroidMediaError as exc:
            self.error.emit(str(exc))


class MediaListWorker(QtCore.QThread):
    finished = QtCore.Signal(object)  # list[MediaItem]
    error = QtCore.Signal(str)

    def __init__(
        self,
        gateway: AdbGateway,
        serial: str,
        path: str,
        media_filter: MediaFilter = MediaFilter.ALL,
        cancel_token: CancelToken | None = None,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._serial = serial
        self._path = path
        self._filter = media_filter
        self._cancel_token = cancel_token

    def run(self) -> None:
        try:
            items = list_media(
                self._gateway, self._serial, self._path, self._filter, self._cancel_token
            )
            self.finished.emit(items)
        except DroidMediaError as exc:
            self.error.emit(str(exc))


class ThumbnailWorker(QtCore.QThread):
    finished = QtCore.Signal(str, str)  # remote path, data URL
    unavailable = QtCore.Signal(str, str)  # remote path, reason
    error = QtCore.Signal(str, str)

    def __init__(
        self,
        gateway: AdbGateway,
        serial: str,
        remote_path: str,
        cache_dir: Path,
        ffmpeg_path: str | None = None,
        thumbnail_size: int = THUMB_SIZE,
        log=None,
        cancel_token: CancelToken | None = None,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._serial = serial
        self._remote_path = remote_path
        self._cache_dir = cache_dir
        self._ffmpeg_path = ffmpeg_path
        self._size = thumbnail_size
        self._log = log
        self._cancel_token = cancel_token

    def run(self) -> None:
        try:
            data_url = resolve_thumbnail(
                self._gateway,
                self._serial,
                self._remote_path,
                self._cache_dir,
                ffmpeg_path=self._ffmpeg_path,
                thumbnail_size=self._size,
                log=self._log,
                cancel_token=self._cancel_token,
            )
            self.finished.emit(self._remote_path, data_url)
        except ThumbnailNotAvailable as exc:
            self.unavailable.emit(self._remote_path, str(exc))
        except DroidMediaError as exc:
            self.error.emit(self._remote_path, str(exc))


class PullWorker(QtCore.QThread):
    finished = QtCore.Signal(object)  # list[MediaTransferResult]
    log = QtCore.Signal(str)
    error = QtCore.Signal(str)

    def __init__(
        self,
        gateway: AdbGateway,
        serial: str,
        remote_paths: list[str],
        dest_dir: Path,
        cancel_token: CancelToken | None = None,
    ) -> None:
        super().__init__()
        self._gateway = gateway
        self._serial = serial
        self._remote_paths = list(remote_paths)
        self._dest_dir = dest_dir
        self._cancel_token = cancel_token

    def run(self) -> None:
        try:
            results = pull_many(
                self._gateway,
                self._serial,
                self._remote_paths,
                self._dest_dir,
                log=self.log.emit,
                cancel_token=self._cancel_token,
            )
            self.finished.emit(results)
        except OSError as exc:
            self.error.emit(str(exc))
