from __future__ import annotations

from typing import Iterable

from droidmedia.domain import CancelToken, MediaFilter, MediaItem, classify_extension
from droidmedia.domain.listing import parse_files
from droidmedia.domain.rules import join_remote_path, quote_remote_path
from droidmedia.infrastructure.adb import AdbGateway


def apply_filter(items: Iterable[MediaItem], media_filter: MediaFilter) -> list[MediaItem]:
    return [item for item in items if media_filter.accepts(item.media_type)]


def sort_catalog(items: Iterable[MediaItem]) -> list[MediaItem]:
    """Newest first; undated items go last."""
    items = list(items)
    dated = sorted(
        (i for i in items if i.date_taken is not None),
        key=lambda i: i.date_taken,
        reverse=True,
    )
    return dated + [i for i in items if i.date_taken is None]


def catalog_from_listing(
    text: str,
    base_path: str,
    media_filter: MediaFilter = MediaFilter.ALL,
) -> list[MediaItem]:
    items = []
    for entry in parse_files(text):
        media_type = classify_extension(entry.name)
        if media_type is None:
            continue
        items.append(
            MediaItem(
                path=join_remote_path(base_path, entry.name),
                name=entry.name,
                media_type=media_type,
                size_bytes=entry.size_bytes,
                date_taken=entry.modified,
            )
        )
    return sort_catalog(apply_filter(items, media_filter))


def list_media(
    gateway: AdbGateway,
    serial: str,
    path: str,
    media_filter: MediaFilter = MediaFilter.ALL,
    cancel_token: CancelToken | None = None,
) -> list[MediaItem]:
    output = gateway.shell(serial, 'ls', '-la', quote_remote_path(path), cancel_token=cancel_token)
    return catalog_from_listing(output, path, media_filter)
