from __future__ import annotations

from pathlib import Path
from typing import Iterable

from droidmedia.domain import (
    CancelToken,
    DroidMediaError,
    ExecutionFailed,
    InvalidPath,
    MediaTransferResult,
)
from droidmedia.domain.rules import remote_basename
from droidmedia.infrastructure.adb import AdbGateway
from droidmedia.infrastructure.fs.data_url import read_file_as_data_url

PREVIEW_IMAGE_EXTS = {'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp'}
CANCELLED_MESSAGE = 'Transfer cancelled'


def pull_media_file(
    gateway: AdbGateway,
    serial: str,
    remote_path: str,
    dest_dir: Path,
    cancel_token: CancelToken | None = None,
) -> Path:
    file_name = remote_basename(remote_path)
    if not file_name:
        raise InvalidPath(f'Invalid remote path: {remote_path!r}')
    local_path = Path(dest_dir) / file_name
    gateway.pull(serial, remote_path, local_path, cancel_token=cancel_token)
    return local_path


def pull_many(
    gateway: AdbGateway,
    serial: str,
    remote_paths: Iterable[str],
    dest_dir: Path,
    *,
    log=None,
    cancel_token: CancelToken | None = None,
) -> list[MediaTransferResult]:
    """Pull each path on its own; one failure never stops the rest.

    Results come back in input order.
    """
    log = log or (lambda _message: None)
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    results: list[MediaTransferResult] = []

    for remote_path in remote_paths:
        if cancel_token is not None and cancel_token.cancelled:
            results.append(
                MediaTransferResult(
                    source_path=remote_path,
                    dest_path=None,
                    success=False,
                    error=CANCELLED_MESSAGE,
                )
            )
            continue

        try:
            size_bytes = gateway.file_size(serial, remote_path, cancel_token=cancel_token)
        except ExecutionFailed:
            size_bytes = 0

        try:
            local_path = pull_media_file(gateway, serial, remote_path, dest_dir, cancel_token)
        except DroidMediaError as exc:
            log(f'ERROR: {remote_path} ({exc})')
            results.append(
                MediaTransferResult(
                    source_path=remote_path,
                    dest_path=None,
                    success=False,
                    error=str(exc),
                    size_bytes=size_bytes,
                )
            )
            continue

        log(f'OK: {remote_path} -> {local_path}')
        results.append(
            MediaTransferResult(
                source_path=remote_path,
                dest_path=str(local_path),
                success=True,
                size_bytes=size_bytes,
            )
        )

    ok = sum(1 for r in results if r.success)
    log(f'Total: {len(results)}, Copied: {ok}, Failed: {len(results) - ok}')
    return results


def preview_media(
    gateway: AdbGateway,
    serial: str,
    remote_path: str,
    preview_dir: Path,
    cancel_token: CancelToken | None = None,
) -> str:
    """Pull a file for preview.

    Images come back as a data URL; anything else as the local file path.
    """
    preview_dir = Path(preview_dir)
    preview_dir.mkdir(parents=True, exist_ok=True)
    local_path = pull_media_file(gateway, serial, remote_path, preview_dir, cancel_token)
    if local_path.suffix.lower() in PREVIEW_IMAGE_EXTS:
        return read_file_as_data_url(local_path)
    return str(local_path)
