from __future__ import annotations

import base64
from pathlib import Path

from droidmedia.domain import IoError

MIME_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
}
DEFAULT_MIME = 'image/jpeg'


def mime_for(path: Path) -> str:
    return MIME_TYPES.get(path.suffix.lower(), DEFAULT_MIME)


def encode_data_url(data: bytes, mime: str) -> str:
    payload = base64.b64encode(data).decode('ascii')
    return f'data:{mime};base64,{payload}'


def read_file_as_data_url(path: Path) -> str:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise IoError(f'Failed to read file: {exc}') from exc
    return encode_data_url(data, mime_for(path))
