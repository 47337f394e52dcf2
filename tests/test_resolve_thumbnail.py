import base64
import io

import pytest
from PIL import Image

from conftest import FakeGateway
from droidmedia.application import resolve_thumbnail as rt
from droidmedia.application.resolve_thumbnail import (
    ThumbnailResolver,
    ThumbnailSource,
    resolve_thumbnail,
    thumbnail_cache_path,
)
from droidmedia.domain import CancelToken, CommandCancelled, InvalidPath, ThumbnailNotAvailable

IMAGE_QUERY = 'query --uri content://media/external/images/media '
IMAGE_THUMBS_QUERY = 'query --uri content://media/external/images/thumbnails '
VIDEO_QUERY = 'query --uri content://media/external/video/media '
CONTENT_READ = 'content read'

REMOTE = '/sdcard/DCIM/Camera/IMG.jpg'
EMULATED = '/storage/emulated/0/DCIM/Camera/IMG.jpg'
ID_ROW = f'Row: 0 _id=42, _data={EMULATED}\n'
DEVICE_TEMP = '/data/local/tmp/droidmedia_thumb_42.jpg'


def _jpeg(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', (width, height), (200, 30, 30)).save(buf, 'JPEG')
    return buf.getvalue()


def _decode(data_url: str) -> bytes:
    header, payload = data_url.split(',', 1)
    assert header == 'data:image/jpeg;base64'
    return base64.b64decode(payload)


def _resolver(gateway, tmp_path, **kwargs) -> ThumbnailResolver:
    return ThumbnailResolver(gateway, 'SERIAL', tmp_path / 'thumbs', **kwargs)


def test_cache_hit_makes_no_device_calls(tmp_path):
    gateway = FakeGateway()
    cache = tmp_path / 'thumbs'
    cache.mkdir()
    (cache / 'thumb_IMG.jpg.jpg').write_bytes(b'cached')

    result = _resolver(gateway, tmp_path).resolve(REMOTE)

    assert result.source is ThumbnailSource.CACHE
    assert _decode(result.data_url) == b'cached'
    assert gateway.calls == []


def test_empty_cache_file_is_not_a_hit(tmp_path):
    thumb = _jpeg(64, 64)
    gateway = FakeGateway(
        files={'/storage/emulated/0/DCIM/.thumbnails/42.jpg': thumb},
        shell_outputs=[
            (IMAGE_QUERY, ID_ROW),
            (IMAGE_THUMBS_QUERY, 'Row: 0 _data=/storage/emulated/0/DCIM/.thumbnails/42.jpg\n'),
        ],
    )
    cache = tmp_path / 'thumbs'
    cache.mkdir()
    (cache / 'thumb_IMG.jpg.jpg').write_bytes(b'')

    result = _resolver(gateway, tmp_path).resolve(REMOTE)

    assert result.source is ThumbnailSource.PROVIDER_FILE
    assert result.cache_path.read_bytes() == thumb


def test_unsupported_type(tmp_path):
    gateway = FakeGateway()
    with pytest.raises(ThumbnailNotAvailable) as excinfo:
        _resolver(gateway, tmp_path).resolve('/sdcard/Documents/notes.txt')
    assert excinfo.value.file_name == 'notes.txt'
    assert gateway.calls == []


def test_invalid_path(tmp_path):
    with pytest.raises(InvalidPath):
        _resolver(FakeGateway(), tmp_path).resolve('/')


def test_provider_file_used_first(tmp_path):
    thumb = _jpeg(96, 96)
    gateway = FakeGateway(
        files={'/storage/emulated/0/DCIM/.thumbnails/42.jpg': thumb, REMOTE: _jpeg(800, 600)},
        shell_outputs=[
            (IMAGE_QUERY, ID_ROW),
            (IMAGE_THUMBS_QUERY, 'Row: 0 _data=/storage/emulated/0/DCIM/.thumbnails/42.jpg\n'),
        ],
    )

    result = _resolver(gateway, tmp_path).resolve(REMOTE)

    assert result.source is ThumbnailSource.PROVIDER_FILE
    assert _decode(result.data_url) == thumb
    assert gateway.pulled() == ['/storage/emulated/0/DCIM/.thumbnails/42.jpg']
    assert not any(CONTENT_READ in c for c in gateway.shell_commands())


def test_content_read_after_provider_miss(tmp_path):
    thumb = _jpeg(96, 96)
    gateway = FakeGateway(
        files={DEVICE_TEMP: thumb, REMOTE: _jpeg(800, 600)},
        shell_outputs=[
            (IMAGE_QUERY, ID_ROW),
            (IMAGE_THUMBS_QUERY, 'No result found.\n'),
        ],
    )

    result = _resolver(gateway, tmp_path).resolve(REMOTE)

    assert result.source is ThumbnailSource.CONTENT_READ
    assert _decode(result.data_url) == thumb
    assert REMOTE not in gateway.pulled()
    commands = gateway.shell_commands()
    assert f'content read --uri content://media/external/images/thumbnails/42 > {DEVICE_TEMP}' in commands
    assert commands[-1] == f'rm -f {DEVICE_TEMP}'


def test_device_temp_removed_when_content_read_yields_nothing(tmp_path):
    gateway = FakeGateway(
        files={REMOTE: _jpeg(800, 600)},
        shell_outputs=[
            (IMAGE_QUERY, ID_ROW),
            (IMAGE_THUMBS_QUERY, 'No result found.\n'),
        ],
    )

    result = _resolver(gateway, tmp_path).resolve(REMOTE)

    assert result.source is ThumbnailSource.LOCAL_IMAGE
    assert f'rm -f {DEVICE_TEMP}' in gateway.shell_commands()


def test_local_image_fallback_downscales_and_cleans_up(tmp_path):
    gateway = FakeGateway(files={REMOTE: _jpeg(800, 600)})

    result = _resolver(gateway, tmp_path).resolve(REMOTE)

    assert result.source is ThumbnailSource.LOCAL_IMAGE
    with Image.open(io.BytesIO(_decode(result.data_url))) as img:
        assert max(img.size) <= 256
        assert img.size == (256, 192)
    staging = tmp_path / 'thumbs' / rt.STAGING_DIR
    assert list(staging.iterdir()) == []
    assert sorted(p.name for p in (tmp_path / 'thumbs').iterdir()) == [rt.STAGING_DIR, 'thumb_IMG.jpg.jpg']


def test_lookup_tries_both_storage_roots(tmp_path):
    gateway = FakeGateway(
        files={REMOTE: _jpeg(40, 40)},
        shell_outputs=[(IMAGE_QUERY, 'No result found.\n')],
    )

    _resolver(gateway, tmp_path).resolve(REMOTE)

    queries = [c for c in gateway.shell_commands() if IMAGE_QUERY in c]
    assert len(queries) == 2
    assert "_display_name='\\''IMG.jpg'\\''" in queries[0]


def test_undecodable_image_is_unavailable(tmp_path):
    gateway = FakeGateway(files={REMOTE: b'not really a jpeg'})

    with pytest.raises(ThumbnailNotAvailable):
        _resolver(gateway, tmp_path).resolve(REMOTE)

    assert not (tmp_path / 'thumbs' / 'thumb_IMG.jpg.jpg').exists()
    assert list((tmp_path / 'thumbs' / rt.STAGING_DIR).iterdir()) == []


def test_missing_original_is_unavailable(tmp_path):
    with pytest.raises(ThumbnailNotAvailable):
        _resolver(FakeGateway(), tmp_path).resolve(REMOTE)


def test_video_without_ffmpeg_is_unavailable(tmp_path, monkeypatch):
    monkeypatch.setattr(rt, 'ffmpeg_available', lambda _path: False)
    gateway = FakeGateway(files={'/sdcard/DCIM/clip.mp4': b'video'})

    with pytest.raises(ThumbnailNotAvailable):
        _resolver(gateway, tmp_path).resolve('/sdcard/DCIM/clip.mp4')

    assert gateway.pulled() == []


def test_video_frame_fallback(tmp_path, monkeypatch):
    frame = _jpeg(320, 180)
    seen = {}

    def fake_extract(ffmpeg_path, src, dest, log):
        seen['ffmpeg'] = ffmpeg_path
        seen['src_exists'] = src.exists()
        dest.write_bytes(frame)
        return True

    monkeypatch.setattr(rt, 'ffmpeg_available', lambda _path: True)
    monkeypatch.setattr(rt, 'extract_frame', fake_extract)
    gateway = FakeGateway(
        files={'/sdcard/DCIM/clip.mp4': b'video'},
        shell_outputs=[(VIDEO_QUERY, 'No result found.\n')],
    )

    result = _resolver(gateway, tmp_path, ffmpeg_path='/opt/ffmpeg').resolve('/sdcard/DCIM/clip.mp4')

    assert result.source is ThumbnailSource.LOCAL_VIDEO
    assert _decode(result.data_url) == frame
    assert seen == {'ffmpeg': '/opt/ffmpeg', 'src_exists': True}
    assert list((tmp_path / 'thumbs' / rt.STAGING_DIR).iterdir()) == []


def test_failed_frame_extraction_leaves_no_slot(tmp_path, monkeypatch):
    def broken_extract(ffmpeg_path, src, dest, log):
        dest.write_bytes(b'')
        return True

    monkeypatch.setattr(rt, 'ffmpeg_available', lambda _path: True)
    monkeypatch.setattr(rt, 'extract_frame', broken_extract)
    gateway = FakeGateway(files={'/sdcard/DCIM/clip.mp4': b'video'})

    with pytest.raises(ThumbnailNotAvailable):
        _resolver(gateway, tmp_path).resolve('/sdcard/DCIM/clip.mp4')

    assert sorted(p.name for p in (tmp_path / 'thumbs').iterdir()) == [rt.STAGING_DIR]


def test_cancel_propagates(tmp_path):
    token = CancelToken()
    token.cancel()
    gateway = FakeGateway(files={REMOTE: _jpeg(40, 40)})

    with pytest.raises(CommandCancelled):
        _resolver(gateway, tmp_path, cancel_token=token).resolve(REMOTE)


def test_cancel_during_content_read_still_removes_device_temp(tmp_path):
    gateway = FakeGateway(
        shell_outputs=[
            (IMAGE_QUERY, ID_ROW),
            (IMAGE_THUMBS_QUERY, 'No result found.\n'),
            (CONTENT_READ, CommandCancelled('Command cancelled')),
        ],
    )

    with pytest.raises(CommandCancelled):
        _resolver(gateway, tmp_path).resolve(REMOTE)

    assert gateway.shell_commands()[-1] == f'rm -f {DEVICE_TEMP}'


def test_resolve_thumbnail_returns_data_url(tmp_path):
    gateway = FakeGateway(files={REMOTE: _jpeg(300, 300)})
    data_url = resolve_thumbnail(gateway, 'SERIAL', REMOTE, tmp_path, thumbnail_size=64)
    with Image.open(io.BytesIO(_decode(data_url))) as img:
        assert img.size == (64, 64)


def test_cache_key_is_basename_only(tmp_path):
    first = thumbnail_cache_path(tmp_path, '/sdcard/DCIM/IMG_0001.jpg')
    second = thumbnail_cache_path(tmp_path, '/sdcard/Download/IMG_0001.jpg')
    assert first == second == tmp_path / 'thumb_IMG_0001.jpg.jpg'
