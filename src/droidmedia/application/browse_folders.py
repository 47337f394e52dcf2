from __future__ import annotations

from typing import Iterable

from droidmedia.domain import CancelToken, FolderInfo, is_media_folder
from droidmedia.domain.listing import parse_folders
from droidmedia.domain.rules import join_remote_path, quote_remote_path
from droidmedia.infrastructure.adb import AdbGateway

DEFAULT_ROOT = '/sdcard'


def sort_folders(folders: Iterable[FolderInfo]) -> list[FolderInfo]:
    return sorted(folders, key=lambda f: (not f.is_media_folder, f.name.lower()))


def folders_from_listing(text: str, base_path: str) -> list[FolderInfo]:
    folders = []
    for entry in parse_folders(text):
        path = join_remote_path(base_path, entry.name)
        folders.append(
            FolderInfo(
                name=entry.name,
                path=path,
                item_count=None,
                is_media_folder=is_media_folder(entry.name, path),
            )
        )
    return sort_folders(folders)


def list_folders(
    gateway: AdbGateway,
    serial: str,
    path: str | None = None,
    cancel_token: CancelToken | None = None,
) -> list[FolderInfo]:
    base_path = path or DEFAULT_ROOT
    output = gateway.shell(serial, 'ls', '-la', quote_remote_path(base_path), cancel_token=cancel_token)
    return folders_from_listing(output, base_path)
