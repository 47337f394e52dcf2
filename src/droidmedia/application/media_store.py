from __future__ import annotations

from droidmedia.domain import CancelToken, CommandCancelled, ExecutionFailed, MediaType
from droidmedia.domain.content_query import (
    MEDIA_STORE_TABLES,
    MediaStoreMatch,
    find_media_id,
    parse_data_path,
)
from droidmedia.domain.rules import quote_remote_path, quote_sql_value, remote_basename
from droidmedia.infrastructure.adb import AdbGateway


def lookup_media_id(
    gateway: AdbGateway,
    serial: str,
    remote_path: str,
    media_type: MediaType,
    log=None,
    cancel_token: CancelToken | None = None,
) -> MediaStoreMatch | None:
    """Find the MediaStore row for *remote_path*.

    The query filters on display name only, which sidesteps the /sdcard vs
    /storage/emulated/0 aliasing; the row is then picked by its ``_data`` path.
    """
    log = log or (lambda _message: None)
    file_name = remote_basename(remote_path)
    if not file_name:
        return None
    table = MEDIA_STORE_TABLES[media_type]
    where = f"_display_name='{quote_sql_value(file_name)}'"
    try:
        output = gateway.shell(
            serial,
            'content', 'query',
            '--uri', table.media_uri.value,
            '--projection', '_id:_data',
            '--where', quote_remote_path(where),
            cancel_token=cancel_token,
        )
    except CommandCancelled:
        raise
    except ExecutionFailed as exc:
        log(f'media query failed for {remote_path}: {exc}')
        return None
    return find_media_id(output, remote_path)


def lookup_thumbnail_path(
    gateway: AdbGateway,
    serial: str,
    media_id: str,
    media_type: MediaType,
    log=None,
    cancel_token: CancelToken | None = None,
) -> str | None:
    log = log or (lambda _message: None)
    table = MEDIA_STORE_TABLES[media_type]
    try:
        output = gateway.shell(
            serial,
            'content', 'query',
            '--uri', table.thumbnails_uri.value,
            '--projection', '_data',
            '--where', f'{table.parent_column}={media_id}',
            cancel_token=cancel_token,
        )
    except CommandCancelled:
        raise
    except ExecutionFailed as exc:
        log(f'thumbnail query failed for id {media_id}: {exc}')
        return None
    return parse_data_path(output)
